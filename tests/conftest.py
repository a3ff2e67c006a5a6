"""Shared pytest fixtures for the typhoon-scaffold test suite.

Provides reusable fixtures for:
- An in-memory ``FilesystemContext`` for planning tests
- Checkouts of the Typhoon repository (fake and on disk)
- Existing workspace manifests
- Orchestrators wired to either of the above
"""

from __future__ import annotations

import textwrap
from collections.abc import Iterator
from pathlib import Path

import pytest

from typhoon_scaffold.config import Config
from typhoon_scaffold.scaffolder.filesystem import LocalFilesystem
from typhoon_scaffold.scaffolder.generator import ScaffoldOrchestrator


REPOSITORY_MANIFEST = textwrap.dedent("""\
    [workspace]
    resolver = "2"
    members = [
        "cli",
        "crates/*",
        "examples/*",
    ]
""")

WORKSPACE_MANIFEST = textwrap.dedent("""\
    # Shared settings for every program.
    [workspace]
    resolver = "2"
    members = [
        "programs/my-workspace-program",
    ]

    [workspace.package]
    version = "0.1.0"
    edition = "2021"
    license = "MIT"

    [workspace.metadata.typhoon]
    name = "my-workspace"
""")


# ---------------------------------------------------------------------------
# In-memory filesystem
# ---------------------------------------------------------------------------


class FakeFilesystem:
    """``FilesystemContext`` over a dict of files.

    Directories are implied by file paths and may also be declared
    explicitly.  ``links`` maps a path to what it resolves to, to simulate
    symlinks.
    """

    def __init__(
        self,
        cwd: str | Path = "/work",
        files: dict[str, str] | None = None,
        dirs: tuple[str, ...] = (),
        links: dict[str, str] | None = None,
    ) -> None:
        self.cwd = Path(cwd)
        self.files = {Path(path): text for path, text in (files or {}).items()}
        self.dirs = {Path(d) for d in dirs} | {self.cwd}
        for path in self.files:
            self.dirs.update(path.parents)
        self.links = {Path(k): Path(v) for k, v in (links or {}).items()}
        self.reads: list[Path] = []

    def current_directory(self) -> Path:
        return self.cwd

    def exists(self, path: Path) -> bool:
        return path in self.files or path in self.dirs

    def is_dir(self, path: Path) -> bool:
        return path in self.dirs

    def read_text(self, path: Path) -> str:
        self.reads.append(path)
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def resolve(self, path: Path) -> Path:
        return self.links.get(path, path)

    def walk_up(self, start: Path) -> Iterator[Path]:
        yield start
        yield from start.parents


@pytest.fixture
def make_fs():
    """Factory building a ``FakeFilesystem`` from keyword arguments."""
    return FakeFilesystem


@pytest.fixture
def fake_fs() -> FakeFilesystem:
    """Empty filesystem with ``/work`` as the working directory."""
    return FakeFilesystem()


@pytest.fixture
def repo_fs() -> FakeFilesystem:
    """A Typhoon repository checkout at ``/repo``, working in ``/repo/examples``."""
    return FakeFilesystem(
        cwd="/repo/examples",
        files={
            "/repo/Cargo.toml": REPOSITORY_MANIFEST,
            "/repo/crates/lib/Cargo.toml": '[package]\nname = "typhoon"\n',
        },
    )


@pytest.fixture
def workspace_fs() -> FakeFilesystem:
    """An existing workspace at ``/ws`` holding ``my-workspace-program``."""
    return FakeFilesystem(
        cwd="/ws",
        files={
            "/ws/Cargo.toml": WORKSPACE_MANIFEST,
            "/ws/programs/my-workspace-program/Cargo.toml": "[package]\n",
        },
    )


# ---------------------------------------------------------------------------
# On-disk fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_workspace(tmp_path: Path) -> Path:
    """Workspace directory on disk with the standard manifest."""
    root = tmp_path / "my-workspace"
    (root / "programs" / "my-workspace-program").mkdir(parents=True)
    (root / "Cargo.toml").write_text(WORKSPACE_MANIFEST, encoding="utf-8")
    return root


@pytest.fixture
def tmp_repository(tmp_path: Path) -> Path:
    """Minimal Typhoon repository checkout on disk."""
    root = tmp_path / "typhoon"
    (root / "crates" / "lib").mkdir(parents=True)
    (root / "examples").mkdir()
    (root / "Cargo.toml").write_text(REPOSITORY_MANIFEST, encoding="utf-8")
    (root / "crates" / "lib" / "Cargo.toml").write_text(
        '[package]\nname = "typhoon"\n', encoding="utf-8"
    )
    return root


@pytest.fixture
def make_orchestrator():
    """Factory for orchestrators working in a given directory on disk."""

    def _make(cwd: Path, **config_overrides) -> ScaffoldOrchestrator:
        return ScaffoldOrchestrator(Config(**config_overrides), fs=LocalFilesystem(cwd))

    return _make
