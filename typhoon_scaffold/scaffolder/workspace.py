"""Workspace manifest composition.

A workspace is a root ``Cargo.toml`` aggregating programs that live under
``programs/``.  ``WorkspaceComposer`` creates that manifest for a new
workspace, parses an existing one and appends members to it.  Appending edits
the manifest text in place: the new entry is spliced into the ``members``
array so comments, ordering and formatting of everything else survive.
"""

from __future__ import annotations

import re
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .errors import DuplicateMemberError, ManifestError, NotAWorkspaceError
from .names import ProjectName


DEFAULT_PROGRAMS_DIR = "programs"

_DEFAULT_INDENT = "    "

_WORKSPACE_HEADER_RE = re.compile(
    r"^[ \t]*\[[ \t]*workspace[ \t]*\][ \t]*(#[^\r\n]*)?\r?$", re.MULTILINE
)
_TABLE_HEADER_RE = re.compile(r"^[ \t]*\[", re.MULTILINE)
_MEMBERS_KEY_RE = re.compile(r"^[ \t]*members[ \t]*=[ \t]*\[", re.MULTILINE)


# ---------------------------------------------------------------------------
# WorkspaceManifest
# ---------------------------------------------------------------------------


class WorkspaceManifest(BaseModel):
    """Parsed view of a workspace ``Cargo.toml`` plus its exact source text."""

    model_config = ConfigDict(frozen=True)

    name: str
    license: str = ""
    members: tuple[str, ...] = ()
    programs_dir: str = DEFAULT_PROGRAMS_DIR
    source: str

    @property
    def program_names(self) -> list[str]:
        """Member directory names with the programs-dir prefix removed."""
        prefix = f"{self.programs_dir}/"
        return [
            member[len(prefix):] if member.startswith(prefix) else member
            for member in self.members
        ]

    def member_path(self, program: ProjectName) -> str:
        return f"{self.programs_dir}/{program.directory_name}"


# ---------------------------------------------------------------------------
# WorkspaceComposer
# ---------------------------------------------------------------------------


class WorkspaceComposer:
    """Creates, parses and amends workspace manifests.

    The composer works on text only.  Finding the workspace root on disk and
    writing the result back are the caller's job.
    """

    def __init__(self, programs_dir: str = DEFAULT_PROGRAMS_DIR) -> None:
        self.programs_dir = programs_dir

    # -- Creation ----------------------------------------------------------

    def create(
        self, workspace_name: str, first_program: ProjectName, license: str
    ) -> WorkspaceManifest:
        """Manifest for a brand new workspace with exactly one member."""
        member = f"{self.programs_dir}/{first_program.directory_name}"
        lines = [
            "[workspace]",
            'resolver = "2"',
            "members = [",
            f"{_DEFAULT_INDENT}{_toml_quote(member)},",
            "]",
            "",
            "[workspace.package]",
            'version = "0.1.0"',
            'edition = "2021"',
            f"license = {_toml_quote(license)}",
            "",
            "[workspace.metadata.typhoon]",
            f"name = {_toml_quote(workspace_name)}",
            "",
        ]
        return WorkspaceManifest(
            name=workspace_name,
            license=license,
            members=(member,),
            programs_dir=self.programs_dir,
            source="\n".join(lines),
        )

    def render(self, manifest: WorkspaceManifest) -> str:
        """Serialized manifest text, ready to be written as ``Cargo.toml``."""
        return manifest.source

    # -- Parsing -----------------------------------------------------------

    def parse(
        self,
        text: str,
        path: str | Path | None = None,
        programs_dir: str | None = None,
    ) -> WorkspaceManifest:
        """Read a workspace manifest.

        Args:
            text: Manifest source.
            path: Where the text came from; used for error messages and as
                the fallback workspace name (its parent directory).
            programs_dir: Directory new members are placed in.

        Raises:
            ManifestError: If *text* is not valid TOML or ``members`` is
                malformed.
            NotAWorkspaceError: If there is no ``[workspace]`` table.
        """
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ManifestError(path, str(exc)) from exc

        workspace = data.get("workspace")
        if not isinstance(workspace, dict):
            raise NotAWorkspaceError(Path(path).parent if path is not None else Path("."))

        members = workspace.get("members", [])
        if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
            raise ManifestError(path, "workspace.members must be an array of strings")

        metadata = workspace.get("metadata", {})
        typhoon = metadata.get("typhoon", {}) if isinstance(metadata, dict) else {}
        name = typhoon.get("name") if isinstance(typhoon, dict) else None
        if not name:
            name = Path(path).resolve().parent.name if path is not None else ""

        package = workspace.get("package", {})
        license = package.get("license", "") if isinstance(package, dict) else ""

        return WorkspaceManifest(
            name=name,
            license=license if isinstance(license, str) else "",
            members=tuple(members),
            programs_dir=programs_dir or self.programs_dir,
            source=text,
        )

    # -- Amendment ---------------------------------------------------------

    def add_member(
        self, existing: WorkspaceManifest, new_program: ProjectName
    ) -> WorkspaceManifest:
        """Return a copy of *existing* with *new_program* appended to ``members``.

        Raises:
            DuplicateMemberError: If the program is already a member.
            ManifestError: If the ``members`` array cannot be located or the
                amended text does not parse back to the expected members.
        """
        member = existing.member_path(new_program)
        if member in existing.members or new_program.directory_name in existing.program_names:
            raise DuplicateMemberError(new_program.directory_name)

        source = _splice_member(existing.source, member)
        expected = [*existing.members, member]
        try:
            reparsed = tomllib.loads(source)["workspace"].get("members", [])
        except (tomllib.TOMLDecodeError, KeyError) as exc:
            raise ManifestError(None, f"amended manifest is invalid: {exc}") from exc
        if reparsed != expected:
            raise ManifestError(None, "could not append to workspace.members")

        return existing.model_copy(update={"members": tuple(expected), "source": source})


# ---------------------------------------------------------------------------
# Text splicing
# ---------------------------------------------------------------------------


def _toml_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _splice_member(source: str, member: str) -> str:
    """Insert *member* as the last entry of ``[workspace].members``."""
    header = _WORKSPACE_HEADER_RE.search(source)
    if header is None:
        raise ManifestError(None, "no [workspace] table header to amend")

    body_start = source.find("\n", header.end())
    body_start = len(source) if body_start == -1 else body_start + 1
    next_table = _TABLE_HEADER_RE.search(source, body_start)
    body_end = next_table.start() if next_table else len(source)

    key = _MEMBERS_KEY_RE.search(source, body_start, body_end)
    quoted = _toml_quote(member)
    newline = "\r\n" if "\r\n" in source else "\n"
    if key is None:
        # No members key yet: add one directly under the header.
        prefix = source[:body_start]
        if not prefix.endswith("\n"):
            prefix += newline
        entry = f"members = [{newline}{_DEFAULT_INDENT}{quoted},{newline}]{newline}"
        return prefix + entry + source[body_start:]

    open_index = key.end() - 1
    close_index, last_index = _scan_array(source, open_index)
    inner = source[open_index + 1:close_index]

    if "\n" not in inner:
        if last_index == open_index:
            insertion = quoted
        elif source[last_index] == ",":
            insertion = f" {quoted}"
        else:
            insertion = f", {quoted}"
        return source[:last_index + 1] + insertion + source[last_index + 1:]

    indent = _item_indent(source, open_index, last_index)
    line_break = source.rfind("\n", last_index, close_index)
    if line_break != -1:
        insert_at = line_break + 1
        insertion = f"{indent}{quoted},{newline}"
    else:
        insert_at = close_index
        insertion = f"{newline}{indent}{quoted},{newline}"
    result = source[:insert_at] + insertion + source[insert_at:]

    if last_index != open_index and source[last_index] != ",":
        result = result[:last_index + 1] + "," + result[last_index + 1:]
    return result


def _scan_array(source: str, open_index: int) -> tuple[int, int]:
    """Locate the ``]`` closing the array opened at *open_index*.

    Returns ``(close_index, last_index)`` where *last_index* is the final
    character of the last value or separator inside the array (or
    *open_index* when the array is empty).  Strings and comments are skipped.
    """
    depth = 0
    last = open_index
    i = open_index
    length = len(source)
    while i < length:
        char = source[i]
        if char == "#":
            newline = source.find("\n", i)
            i = length if newline == -1 else newline
            continue
        if char in "\"'":
            end = _string_end(source, i)
            last = end
            i = end + 1
            continue
        if char == "[":
            depth += 1
            if i != open_index:
                last = i
        elif char == "]":
            depth -= 1
            if depth == 0:
                return i, last
            last = i
        elif not char.isspace():
            last = i
        i += 1
    raise ManifestError(None, "unterminated workspace.members array")


def _string_end(source: str, start: int) -> int:
    quote = source[start]
    if source.startswith(quote * 3, start):
        end = source.find(quote * 3, start + 3)
        if end == -1:
            raise ManifestError(None, "unterminated string in workspace.members")
        return end + 2

    i = start + 1
    while i < len(source):
        if quote == '"' and source[i] == "\\":
            i += 2
            continue
        if source[i] == quote:
            return i
        i += 1
    raise ManifestError(None, "unterminated string in workspace.members")


def _item_indent(source: str, open_index: int, last_index: int) -> str:
    line_start = source.rfind("\n", 0, last_index) + 1
    if last_index == open_index or line_start <= open_index:
        return _DEFAULT_INDENT
    line = source[line_start:last_index]
    return line[: len(line) - len(line.lstrip())] or _DEFAULT_INDENT
