"""Jinja2 template rendering for program scaffolding.

Provides the ``TemplateRenderer`` which loads the bundle templates from the
``scaffolder/templates/`` directory and renders them into a ``FileTree``, the
ordered in-memory form of everything one scaffold operation will write.
Rendering is strict: a template that references a variable missing from the
context fails with ``UnresolvedPlaceholderError`` instead of producing a
half-substituted file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    UndefinedError,
    meta,
    select_autoescape,
)

from .catalog import FileSpec, TemplateBundle
from .dependency import (
    IDL_GENERATOR_CRATE,
    INSTRUCTION_BUILDER_CRATE,
    PathDependency,
    PublishedDependency,
)
from .errors import UnresolvedPlaceholderError
from .names import ProjectName


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Jinja reports missing names and missing attributes with these sentences.
_UNDEFINED_RE = re.compile(
    r"^'(?P<name>[^']+)' is undefined$|has no attribute '(?P<attr>[^']+)'"
)


# ---------------------------------------------------------------------------
# FileTree
# ---------------------------------------------------------------------------


class FileTree:
    """Ordered mapping of relative POSIX path to file content.

    Insertion order is emission order.  Adding a path twice is an error, so
    two sources can never silently overwrite each other's output.
    """

    def __init__(self, entries: Iterable[tuple[str, bytes]] = ()) -> None:
        self._entries: dict[str, bytes] = {}
        for path, content in entries:
            self.add(path, content)

    def add(self, path: str, content: bytes | str) -> None:
        key = _normalize(path)
        if key in self._entries:
            raise ValueError(f"duplicate path in file tree: {key}")
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._entries[key] = content

    def prefixed(self, prefix: str) -> FileTree:
        """Return a copy with every path nested under *prefix*."""
        return FileTree(
            (str(PurePosixPath(prefix) / path), content)
            for path, content in self._entries.items()
        )

    def merged(self, other: FileTree) -> FileTree:
        """Return a new tree with *other*'s entries after this tree's."""
        return FileTree([*self.items(), *other.items()])

    __add__ = merged

    def paths(self) -> list[str]:
        return list(self._entries)

    def items(self) -> list[tuple[str, bytes]]:
        return list(self._entries.items())

    def text(self, path: str) -> str:
        """Decoded content of *path*."""
        return self._entries[_normalize(path)].decode("utf-8")

    def __getitem__(self, path: str) -> bytes:
        return self._entries[_normalize(path)]

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and _normalize(path) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileTree):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"FileTree({self.paths()!r})"


def _normalize(path: str) -> str:
    normalized = PurePosixPath(path)
    if normalized.is_absolute() or ".." in normalized.parts:
        raise ValueError(f"file tree paths must be relative: {path}")
    return str(normalized)


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------


def build_context(
    project: ProjectName,
    bundle: TemplateBundle,
    dependency: PathDependency | PublishedDependency,
    *,
    program_id: str | None = None,
    license: str,
    typhoon_version: str,
    member_depth: int = 0,
) -> dict[str, Any]:
    """Assemble a fresh render context for one program.

    Every crate reference (the library and its sibling crates) is derived
    from the same *dependency* so manifests never mix path and published
    forms.  *member_depth* is how many directories the program sits below
    the Cargo target root: 0 for a standalone program, 2 for a workspace
    member under ``programs/<name>``.
    """
    return {
        "project_name": project.raw,
        "crate_name": project.crate_name,
        "binary_stem": project.binary_stem,
        "program_id": program_id or bundle.default_program_id,
        "license": license,
        "template": bundle.identifier.value,
        "typhoon_version": typhoon_version,
        "dependency_spec": dependency.manifest_value(),
        "idl_generator_dependency": dependency.sibling(IDL_GENERATOR_CRATE).manifest_value(),
        "instruction_builder_dependency": (
            dependency.sibling(INSTRUCTION_BUILDER_CRATE).manifest_value()
        ),
        "keypair_filename": project.keypair_filename,
        "binary_filename": project.binary_filename,
        "deploy_dir": str(PurePosixPath(*([".."] * member_depth), "target", "deploy")),
        "idl_filename": project.idl_filename,
        "needs_build_script": bundle.needs_build_script,
    }


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders template bundles into file trees.

    Templates are looked up by name under a configurable template directory
    (``counter/Cargo.toml.j2`` and so on).  Files flagged ``is_binary`` are
    copied byte for byte.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # -- Bundle rendering --------------------------------------------------

    def render(self, bundle: TemplateBundle, context: dict[str, Any]) -> FileTree:
        """Render every file of *bundle*, in declaration order."""
        return self.render_files(bundle.files, context)

    def render_files(self, files: Iterable[FileSpec], context: dict[str, Any]) -> FileTree:
        tree = FileTree()
        for spec in files:
            tree.add(spec.relative_path, self.render_file(spec, context))
        return tree

    def render_file(self, spec: FileSpec, context: dict[str, Any]) -> bytes:
        """Render a single ``FileSpec`` to bytes.

        Raises:
            UnresolvedPlaceholderError: If the template references a name
                that *context* does not define.
        """
        if spec.is_binary:
            return (self.template_dir / spec.content_template).read_bytes()

        source, _, _ = self.env.loader.get_source(self.env, spec.content_template)
        self._check_placeholders(source, context, spec.relative_path)
        template = self.env.get_template(spec.content_template)
        return self._render(template, context, spec.relative_path).encode("utf-8")

    # -- Inline rendering --------------------------------------------------

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the same strict rules."""
        self._check_placeholders(template_string, context, None)
        template = self.env.from_string(template_string)
        return self._render(template, context, None)

    def referenced_variables(self, template_string: str) -> set[str]:
        """Names a template reads from its context."""
        return meta.find_undeclared_variables(self.env.parse(template_string))

    # -- Internals ---------------------------------------------------------

    def _check_placeholders(
        self, source: str, context: dict[str, Any], path: str | None
    ) -> None:
        missing = sorted(self.referenced_variables(source) - context.keys())
        if missing:
            raise UnresolvedPlaceholderError(missing[0], path)

    @staticmethod
    def _render(template: Any, context: dict[str, Any], path: str | None) -> str:
        try:
            return template.render(**context)
        except UndefinedError as exc:
            message = exc.message or str(exc)
            match = _UNDEFINED_RE.search(message)
            key = (match["name"] or match["attr"]) if match else message
            raise UnresolvedPlaceholderError(key, path) from exc
