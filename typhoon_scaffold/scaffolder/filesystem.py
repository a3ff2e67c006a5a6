"""Read-only filesystem queries used while planning a scaffold.

The planning code never touches ``os`` or ``Path.cwd()`` directly; it asks a
``FilesystemContext``.  ``LocalFilesystem`` answers from the real disk, tests
inject an in-memory implementation.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Protocol


class FilesystemContext(Protocol):
    """The queries the scaffolder needs about the invocation's surroundings."""

    def current_directory(self) -> Path: ...

    def exists(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...

    def resolve(self, path: Path) -> Path: ...

    def walk_up(self, start: Path) -> Iterator[Path]: ...


class LocalFilesystem:
    """``FilesystemContext`` backed by the process working directory and disk."""

    def __init__(self, cwd: str | Path | None = None) -> None:
        self._cwd = Path(cwd).resolve() if cwd is not None else None

    def current_directory(self) -> Path:
        return self._cwd if self._cwd is not None else Path.cwd()

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def read_text(self, path: Path) -> str:
        # Line endings are kept as-is so rewritten manifests keep them.
        with open(path, encoding="utf-8", newline="") as handle:
            return handle.read()

    def resolve(self, path: Path) -> Path:
        return Path(path).resolve()

    def walk_up(self, start: Path) -> Iterator[Path]:
        """Yield *start* and each of its ancestors up to the filesystem root."""
        current = Path(start)
        yield current
        yield from current.parents
