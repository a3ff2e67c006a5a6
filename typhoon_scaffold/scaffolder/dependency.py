"""Decides how generated manifests reference the Typhoon crates.

Programs scaffolded inside a checkout of the Typhoon repository (examples,
fixtures, local experiments) depend on the library by relative path so they
build against the working tree.  Everywhere else they depend on the published
release.  The decision is made once per invocation and applied to every crate
reference in every manifest of the generated tree.
"""

from __future__ import annotations

import posixpath
import tomllib
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..config import TYPHOON_VERSION
from .filesystem import FilesystemContext


# ---------------------------------------------------------------------------
# Repository layout
# ---------------------------------------------------------------------------

LIBRARY_CRATE_DIR = "crates/lib"
IDL_GENERATOR_CRATE = "idl-generator"
INSTRUCTION_BUILDER_CRATE = "instruction-builder"

# Members that only the framework's own root manifest declares.
REPOSITORY_MEMBERS: frozenset[str] = frozenset({"crates/*", "cli"})


# ---------------------------------------------------------------------------
# DependencySpec variants
# ---------------------------------------------------------------------------


class PathDependency(BaseModel):
    """Reference the library crate by a path relative to the program."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["path"] = "path"
    relative_path: str

    def manifest_value(self) -> str:
        """Render as a Cargo inline table: ``{ path = "../../crates/lib" }``."""
        return f'{{ path = "{self.relative_path}" }}'

    def sibling(self, crate_dir: str) -> PathDependency:
        """Point at another crate next to the library (e.g. ``idl-generator``)."""
        crates_dir = posixpath.dirname(self.relative_path)
        return PathDependency(relative_path=posixpath.join(crates_dir, crate_dir))


class PublishedDependency(BaseModel):
    """Reference the published release by version string."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["published"] = "published"
    version_string: str

    def manifest_value(self) -> str:
        return f'"{self.version_string}"'

    def sibling(self, crate_dir: str) -> PublishedDependency:
        # All framework crates are released in lockstep.
        return self


DependencySpec = Annotated[
    Union[PathDependency, PublishedDependency],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class DependencyResolver:
    """Chooses between a path and a published dependency for a new program.

    Walks upward from the directory the program will be created in, looking
    for the root of the Typhoon repository.  A directory qualifies when it
    contains ``crates/lib/Cargo.toml`` and its own ``Cargo.toml`` declares a
    workspace listing ``crates/*`` or ``cli`` as members.  Anything ambiguous
    (unreadable or malformed manifests, reaching the filesystem root) counts
    as "outside the repository" and never raises.
    """

    def __init__(self, fs: FilesystemContext, version: str = TYPHOON_VERSION) -> None:
        self.fs = fs
        self.version = version

    def resolve(self, program_location: Path) -> PathDependency | PublishedDependency:
        """Return the dependency spec for a program created at *program_location*."""
        root = self.find_repository_root(Path(program_location).parent)
        if root is None:
            return PublishedDependency(version_string=self.version)

        library = root / LIBRARY_CRATE_DIR
        relative = posixpath.relpath(library.as_posix(), Path(program_location).as_posix())
        return PathDependency(relative_path=relative)

    def find_repository_root(self, start: Path) -> Path | None:
        """Return the nearest ancestor of *start* (inclusive) that is the repository root."""
        for candidate in self.fs.walk_up(start):
            if self._is_repository_root(candidate):
                return candidate
        return None

    def _is_repository_root(self, directory: Path) -> bool:
        if not self.fs.exists(directory / LIBRARY_CRATE_DIR / "Cargo.toml"):
            return False

        manifest_path = directory / "Cargo.toml"
        if not self.fs.exists(manifest_path):
            return False

        try:
            manifest = tomllib.loads(self.fs.read_text(manifest_path))
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
            return False

        workspace = manifest.get("workspace")
        if not isinstance(workspace, dict):
            return False
        members = workspace.get("members")
        if not isinstance(members, list):
            return False
        return any(member in REPOSITORY_MEMBERS for member in members)
