"""Typed failures raised by the scaffolding core.

Every error carries the offending value as an attribute so the CLI can report
the specific kind and value without parsing messages.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class ScaffoldError(Exception):
    """Base class for every failure raised while planning or emitting a scaffold."""


class InvalidNameError(ScaffoldError):
    """Raised when a project, program or workspace name is not usable."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"invalid project name {name!r}: {reason}")


class InvalidProgramIdError(ScaffoldError):
    """Raised when a supplied program id is not a base58 public key."""

    def __init__(self, program_id: str) -> None:
        self.program_id = program_id
        super().__init__(
            f"invalid program id {program_id!r}: must be a base58 encoded public key"
        )


class UnknownTemplateError(ScaffoldError):
    """Raised when a template identifier is not in the catalog."""

    def __init__(self, template: str, available: Iterable[str] = ()) -> None:
        self.template = template
        self.available = tuple(available)
        message = f"template {template!r} not found"
        if self.available:
            message += f". Available templates: {', '.join(self.available)}"
        super().__init__(message)


class UnresolvedPlaceholderError(ScaffoldError):
    """Raised when a template references a variable missing from the context.

    ``key`` is the missing variable, or the missing attribute when a template
    reads a field the context value does not have.
    """

    def __init__(self, key: str, path: str | None = None) -> None:
        self.key = key
        self.path = path
        where = f" in {path}" if path else ""
        super().__init__(f"unresolved placeholder {key!r}{where}")


class DuplicateMemberError(ScaffoldError):
    """Raised when adding a program that is already a workspace member."""

    def __init__(self, member: str) -> None:
        self.member = member
        super().__init__(f"program {member!r} is already a member of this workspace")


class NotAWorkspaceError(ScaffoldError):
    """Raised when ``add program`` runs outside a workspace root."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(
            f"not in a workspace: {self.path}\n\n"
            "This command must be run from the root of a Typhoon workspace.\n"
            "To create a workspace, use: typhoon-scaffold init --workspace <name>"
        )


class ManifestError(ScaffoldError):
    """Raised when a workspace manifest cannot be read or amended."""

    def __init__(self, path: str | Path | None, reason: str) -> None:
        self.path = Path(path) if path is not None else None
        self.reason = reason
        where = f" {self.path}" if self.path is not None else ""
        super().__init__(f"invalid workspace manifest{where}: {reason}")


class TargetExistsError(ScaffoldError):
    """Raised by the writer when a directory it must create already exists."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"directory '{self.path}' already exists")


class UnsafePathError(ScaffoldError):
    """Raised when the programs directory resolves outside the workspace root."""

    def __init__(self, path: str | Path, root: str | Path) -> None:
        self.path = Path(path)
        self.root = Path(root)
        super().__init__(
            f"programs directory {self.path} resolves outside the workspace {self.root}"
        )
