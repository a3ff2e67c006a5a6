"""Identifier derivation for new programs.

A single user-supplied name fans out into every identifier the generated
project needs: the directory it lives in, the crate name written to
``Cargo.toml`` and the underscore-normalized stem the toolchain uses for the
compiled binary, the deploy keypair and the IDL file.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from .errors import InvalidNameError, InvalidProgramIdError


# ---------------------------------------------------------------------------
# Validation rules
# ---------------------------------------------------------------------------

MAX_NAME_LENGTH = 214

_VALID_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

RUST_KEYWORDS: frozenset[str] = frozenset({
    "abstract", "as", "async", "await", "become", "box", "break", "const",
    "continue", "crate", "do", "dyn", "else", "enum", "extern", "false",
    "final", "fn", "for", "if", "impl", "in", "let", "loop", "macro", "match",
    "mod", "move", "mut", "override", "priv", "pub", "ref", "return", "self",
    "Self", "static", "struct", "super", "trait", "true", "try", "type",
    "typeof", "unsafe", "unsized", "use", "virtual", "where", "while", "yield",
})


# ---------------------------------------------------------------------------
# ProjectName
# ---------------------------------------------------------------------------


class ProjectName(BaseModel):
    """All identifiers derived from one raw project name."""

    model_config = ConfigDict(frozen=True)

    raw: str
    directory_name: str
    crate_name: str
    binary_stem: str

    @property
    def keypair_filename(self) -> str:
        """Deploy keypair name expected by ``cargo build-sbf``."""
        return f"{self.binary_stem}-keypair.json"

    @property
    def binary_filename(self) -> str:
        return f"{self.binary_stem}.so"

    @property
    def idl_filename(self) -> str:
        return f"{self.binary_stem}.json"


def derive(raw: str) -> ProjectName:
    """Validate *raw* and derive the identifiers for a new program.

    Args:
        raw: Name as typed by the user (e.g. ``"my-program"``).

    Returns:
        An immutable ``ProjectName``.  ``binary_stem`` is ``crate_name`` with
        every hyphen replaced by an underscore.

    Raises:
        InvalidNameError: If *raw* is empty, contains a path separator or a
            relative path component, is too long, starts with a digit,
            contains characters outside ``[A-Za-z0-9_-]`` or is a Rust keyword.
    """
    validate_name(raw)
    return ProjectName(
        raw=raw,
        directory_name=raw,
        crate_name=raw,
        binary_stem=raw.replace("-", "_"),
    )


def validate_name(name: str) -> None:
    """Raise ``InvalidNameError`` unless *name* is a usable project name."""
    if not name or not name.strip():
        raise InvalidNameError(name, "name cannot be empty")

    if "/" in name or "\\" in name or ".." in name:
        raise InvalidNameError(
            name, "name cannot contain path separators or relative paths"
        )

    if len(name) > MAX_NAME_LENGTH:
        raise InvalidNameError(
            name, f"name is too long (max {MAX_NAME_LENGTH} characters)"
        )

    if name[0].isdigit():
        raise InvalidNameError(name, "name cannot start with a digit")

    if not _VALID_NAME_RE.match(name):
        raise InvalidNameError(
            name,
            "name can only contain alphanumeric characters, hyphens, and underscores",
        )

    if name in RUST_KEYWORDS:
        raise InvalidNameError(name, "name cannot be a Rust keyword")


def validate_program_id(program_id: str) -> str:
    """Check that *program_id* looks like a base58 encoded public key.

    Returns the program id unchanged so the call can be used inline.
    """
    if not _BASE58_RE.match(program_id):
        raise InvalidProgramIdError(program_id)
    return program_id
