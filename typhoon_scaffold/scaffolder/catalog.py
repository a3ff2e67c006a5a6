"""Registry of the project templates that can be scaffolded.

The catalog is a closed set keyed by ``TemplateId``.  Each ``TemplateBundle``
lists the files it produces, in emission order, together with the Jinja2
template (relative to ``templates/``) that renders each one.  Bundles are
built once at import time and exposed through a read-only mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from .errors import UnknownTemplateError


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TemplateId(str, Enum):
    """Selectable project templates."""

    COUNTER = "counter"
    HELLO_WORLD = "hello-world"


class FileSpec(BaseModel):
    """One file of a bundle: where it goes and what renders it."""

    model_config = ConfigDict(frozen=True)

    relative_path: str = Field(..., description="POSIX path relative to the project root")
    content_template: str = Field(..., description="Template name under the templates directory")
    is_binary: bool = Field(
        default=False,
        description="Copy the template bytes verbatim instead of rendering them",
    )


class TemplateBundle(BaseModel):
    """A named, fixed set of files making up one project style."""

    model_config = ConfigDict(frozen=True)

    identifier: TemplateId
    files: tuple[FileSpec, ...]
    needs_build_script: bool
    description: str = ""
    default_program_id: str

    @property
    def paths(self) -> list[str]:
        return [spec.relative_path for spec in self.files]


# ---------------------------------------------------------------------------
# Bundle definitions
# ---------------------------------------------------------------------------

_GITIGNORE = FileSpec(
    relative_path=".gitignore",
    content_template="shared/gitignore",
    is_binary=True,
)

_COUNTER = TemplateBundle(
    identifier=TemplateId.COUNTER,
    files=(
        FileSpec(relative_path="Cargo.toml", content_template="counter/Cargo.toml.j2"),
        FileSpec(relative_path="src/lib.rs", content_template="counter/lib.rs.j2"),
        FileSpec(relative_path="build.rs", content_template="counter/build.rs.j2"),
        FileSpec(
            relative_path="tests/integration.rs",
            content_template="counter/integration.rs.j2",
        ),
        _GITIGNORE,
    ),
    needs_build_script=True,
    description="Counter program with initialize, increment and close instructions",
    default_program_id="Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS",
)

_HELLO_WORLD = TemplateBundle(
    identifier=TemplateId.HELLO_WORLD,
    files=(
        FileSpec(relative_path="Cargo.toml", content_template="hello_world/Cargo.toml.j2"),
        FileSpec(relative_path="src/lib.rs", content_template="hello_world/lib.rs.j2"),
        FileSpec(
            relative_path="tests/integration.rs",
            content_template="hello_world/integration.rs.j2",
        ),
        _GITIGNORE,
    ),
    needs_build_script=False,
    description="Minimal program that logs a greeting",
    default_program_id="11111111111111111111111111111111",
)

_WORKSPACE_FILES: tuple[FileSpec, ...] = (
    _GITIGNORE,
    FileSpec(
        relative_path="tests/.gitkeep",
        content_template="workspace/gitkeep",
        is_binary=True,
    ),
)

CATALOG: Mapping[TemplateId, TemplateBundle] = MappingProxyType({
    TemplateId.COUNTER: _COUNTER,
    TemplateId.HELLO_WORLD: _HELLO_WORLD,
})


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def available_templates() -> list[str]:
    """Return the identifiers accepted on the command line."""
    return [template.value for template in TemplateId]


def parse_template_id(value: str | TemplateId) -> TemplateId:
    """Map a user-supplied identifier to a ``TemplateId``.

    Raises:
        UnknownTemplateError: If *value* names no template in the catalog.
    """
    if isinstance(value, TemplateId):
        return value
    try:
        return TemplateId(value)
    except ValueError:
        raise UnknownTemplateError(value, available_templates()) from None


def lookup(template: str | TemplateId) -> TemplateBundle:
    """Return the bundle for *template* (an id or its string form)."""
    return CATALOG[parse_template_id(template)]


def describe() -> list[tuple[str, str]]:
    """``(identifier, description)`` pairs for every template, in catalog order."""
    return [(bundle.identifier.value, bundle.description) for bundle in CATALOG.values()]


def workspace_files() -> tuple[FileSpec, ...]:
    """Files placed at the root of every new workspace besides ``Cargo.toml``."""
    return _WORKSPACE_FILES
