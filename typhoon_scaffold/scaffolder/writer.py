"""Persists scaffold plans to disk."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import TargetExistsError

if TYPE_CHECKING:
    from .generator import ScaffoldPlan


class FileWriter:
    """Writes a plan's ``FileTree`` under its root.

    Every directory the plan claims must be absent before anything is
    written; otherwise the write fails with ``TargetExistsError`` and the disk
    is left untouched.  Files are then written in tree order, creating parent
    directories as needed.
    """

    async def write(self, plan: ScaffoldPlan) -> list[Path]:
        root = Path(plan.root)

        for claim in plan.claims:
            target = root / claim
            if await asyncio.to_thread(target.exists):
                raise TargetExistsError(target)

        written: list[Path] = []
        for relative_path, content in plan.tree.items():
            path = root / relative_path
            await asyncio.to_thread(_write_file, path, content)
            written.append(path)
        return written


def _write_file(path: Path, content: bytes) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
