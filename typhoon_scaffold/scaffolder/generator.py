"""Main scaffolding orchestrator.

Coordinates name derivation, dependency resolution, template lookup,
rendering and workspace composition for the two scaffold operations:

* ``init``: a standalone program, or a new workspace with a first program;
* ``add program``: a new member in an existing workspace.

Planning is pure: it reads the filesystem through a ``FilesystemContext`` and
produces a ``ScaffoldPlan`` without touching the disk.  Emitting hands the
plan to the ``FileWriter`` once.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..config import Config
from .catalog import TemplateId, lookup, workspace_files
from .dependency import DependencyResolver, DependencySpec
from .errors import InvalidNameError, NotAWorkspaceError, UnsafePathError
from .filesystem import FilesystemContext, LocalFilesystem
from .names import MAX_NAME_LENGTH, ProjectName, derive, validate_program_id
from .templates import FileTree, TemplateRenderer, build_context
from .workspace import WorkspaceComposer, WorkspaceManifest
from .writer import FileWriter


# Directory names accepted for workspace members, in order of preference.
PROGRAMS_DIR_CANDIDATES: tuple[str, ...] = ("programs", "program")

# Appended to the workspace name when no first program name is given.
DEFAULT_PROGRAM_SUFFIX = "-program"


# ---------------------------------------------------------------------------
# States and plans
# ---------------------------------------------------------------------------


class ScaffoldState(str, Enum):
    """Steps of one scaffold invocation, in the order they are visited."""

    IDLE = "idle"
    CONTEXT_RESOLVED = "context_resolved"
    NAME_DERIVED = "name_derived"
    TEMPLATE_LOADED = "template_loaded"
    RENDERED = "rendered"
    WORKSPACE_COMPOSED = "workspace_composed"
    EMITTED = "emitted"


_STATE_ORDER = list(ScaffoldState)


class ScaffoldPlan(BaseModel):
    """Everything one invocation will write, and where."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    root: Path = Field(..., description="Directory the tree paths are relative to")
    tree: FileTree
    claims: tuple[str, ...] = Field(
        ..., description="Directories under root that must not exist yet ('.' is root itself)"
    )
    manifest: WorkspaceManifest | None = None
    dependency: DependencySpec
    program: ProjectName
    template: TemplateId
    program_id: str

    @property
    def is_workspace(self) -> bool:
        return self.manifest is not None


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ScaffoldOrchestrator:
    """Plans and emits scaffolds.

    Any failure raises a ``ScaffoldError`` subclass before the writer runs,
    so a failed invocation writes nothing.  ``history`` lists the states
    visited by the most recent invocation.
    """

    def __init__(
        self,
        config: Config | None = None,
        fs: FilesystemContext | None = None,
        renderer: TemplateRenderer | None = None,
        writer: FileWriter | None = None,
    ) -> None:
        self.config = config or Config()
        self.fs = fs or LocalFilesystem()
        self.renderer = renderer or TemplateRenderer()
        self.writer = writer or FileWriter()
        self.resolver = DependencyResolver(self.fs, self.config.typhoon_version)
        self.composer = WorkspaceComposer(self.config.programs_dir)
        self.state = ScaffoldState.IDLE
        self.history: list[ScaffoldState] = [ScaffoldState.IDLE]

    # -- Public API --------------------------------------------------------

    def plan_init(
        self,
        name: str,
        template: str | TemplateId | None = None,
        *,
        workspace: bool = False,
        program: str | None = None,
        program_id: str | None = None,
        license: str | None = None,
    ) -> ScaffoldPlan:
        """Plan a new standalone program or a new workspace.

        Args:
            name: Program name (standalone) or workspace name.
            template: Template for the program; defaults to
                ``config.default_template``.
            workspace: Create a workspace holding one program.
            program: Name of the workspace's first program.  Defaults to
                ``"<name>-program"``; ignored for standalone programs.
            program_id: Base58 program id to embed.  Defaults to the
                template's placeholder id.
            license: Overrides ``config.license``.
        """
        self._begin()
        root = self._output_directory() / name
        program_name = (program or f"{name}{DEFAULT_PROGRAM_SUFFIX}") if workspace else name
        location = root / self.config.programs_dir / program_name if workspace else root
        dependency = self.resolver.resolve(location)
        self._advance(ScaffoldState.CONTEXT_RESOLVED)

        workspace_name = derive(name) if workspace else None
        if workspace_name is not None and program is None:
            _check_default_program_name(name)
        project = derive(program_name)
        if program_id is not None:
            validate_program_id(program_id)
        self._advance(ScaffoldState.NAME_DERIVED)

        bundle = lookup(template or self.config.default_template)
        self._advance(ScaffoldState.TEMPLATE_LOADED)

        license = license or self.config.license
        context = build_context(
            project,
            bundle,
            dependency,
            program_id=program_id,
            license=license,
            typhoon_version=self.config.typhoon_version,
            member_depth=_member_depth(self.config.programs_dir) if workspace else 0,
        )
        program_tree = self.renderer.render(bundle, context)
        self._advance(ScaffoldState.RENDERED)

        if workspace_name is None:
            return ScaffoldPlan(
                root=root,
                tree=program_tree,
                claims=(".",),
                dependency=dependency,
                program=project,
                template=bundle.identifier,
                program_id=context["program_id"],
            )

        manifest = self.composer.create(workspace_name.raw, project, license)
        tree = (
            FileTree([("Cargo.toml", self.composer.render(manifest))])
            + self.renderer.render_files(workspace_files(), context)
            + program_tree.prefixed(manifest.member_path(project))
        )
        self._advance(ScaffoldState.WORKSPACE_COMPOSED)
        return ScaffoldPlan(
            root=root,
            tree=tree,
            claims=(".",),
            manifest=manifest,
            dependency=dependency,
            program=project,
            template=bundle.identifier,
            program_id=context["program_id"],
        )

    def plan_add_program(
        self,
        name: str,
        template: str | TemplateId | None = None,
        *,
        program_id: str | None = None,
    ) -> ScaffoldPlan:
        """Plan a new member program for the workspace at the current directory.

        Raises:
            NotAWorkspaceError: If the current directory has no workspace
                ``Cargo.toml``.
            UnsafePathError: If the programs directory resolves outside the
                workspace.
            DuplicateMemberError: If *name* is already a member.
        """
        self._begin()
        root = self.fs.current_directory()
        manifest_path = root / "Cargo.toml"
        if not self.fs.exists(manifest_path):
            raise NotAWorkspaceError(root)
        programs_dir = self._programs_directory(root)
        manifest = self.composer.parse(
            self.fs.read_text(manifest_path), manifest_path, programs_dir=programs_dir
        )
        dependency = self.resolver.resolve(root / programs_dir / name)
        self._advance(ScaffoldState.CONTEXT_RESOLVED)

        project = derive(name)
        if program_id is not None:
            validate_program_id(program_id)
        self._advance(ScaffoldState.NAME_DERIVED)

        bundle = lookup(template or self.config.default_template)
        self._advance(ScaffoldState.TEMPLATE_LOADED)

        context = build_context(
            project,
            bundle,
            dependency,
            program_id=program_id,
            license=manifest.license or self.config.license,
            typhoon_version=self.config.typhoon_version,
            member_depth=_member_depth(programs_dir),
        )
        program_tree = self.renderer.render(bundle, context)
        self._advance(ScaffoldState.RENDERED)

        updated = self.composer.add_member(manifest, project)
        member = updated.member_path(project)
        # The manifest goes last so members never name a half-written program.
        tree = program_tree.prefixed(member) + FileTree(
            [("Cargo.toml", self.composer.render(updated))]
        )
        self._advance(ScaffoldState.WORKSPACE_COMPOSED)
        return ScaffoldPlan(
            root=root,
            tree=tree,
            claims=(member,),
            manifest=updated,
            dependency=dependency,
            program=project,
            template=bundle.identifier,
            program_id=context["program_id"],
        )

    async def init(self, name: str, template: str | TemplateId | None = None, **kwargs) -> ScaffoldPlan:
        """Plan and write a new program or workspace.  See :meth:`plan_init`."""
        plan = self.plan_init(name, template, **kwargs)
        return await self._emit(plan)

    async def add_program(
        self, name: str, template: str | TemplateId | None = None, **kwargs
    ) -> ScaffoldPlan:
        """Plan and write a new workspace member.  See :meth:`plan_add_program`."""
        plan = self.plan_add_program(name, template, **kwargs)
        return await self._emit(plan)

    # -- Internals ---------------------------------------------------------

    async def _emit(self, plan: ScaffoldPlan) -> ScaffoldPlan:
        await self.writer.write(plan)
        self._advance(ScaffoldState.EMITTED)
        return plan

    def _begin(self) -> None:
        self.state = ScaffoldState.IDLE
        self.history = [ScaffoldState.IDLE]

    def _advance(self, state: ScaffoldState) -> None:
        if _STATE_ORDER.index(state) <= _STATE_ORDER.index(self.state):
            raise RuntimeError(f"cannot move from {self.state.value} to {state.value}")
        self.state = state
        self.history.append(state)

    def _output_directory(self) -> Path:
        return self.fs.current_directory() / self.config.output_dir

    def _programs_directory(self, root: Path) -> str:
        """Pick the member directory of the workspace at *root*.

        An existing ``programs/`` or ``program/`` directory wins; otherwise
        the configured default is used and will be created on write.
        """
        candidates = dict.fromkeys((self.config.programs_dir, *PROGRAMS_DIR_CANDIDATES))
        for candidate in candidates:
            directory = root / candidate
            if not self.fs.is_dir(directory):
                continue
            resolved = self.fs.resolve(directory)
            if not resolved.is_relative_to(self.fs.resolve(root)):
                raise UnsafePathError(resolved, root)
            return candidate
        return self.config.programs_dir


def _member_depth(programs_dir: str) -> int:
    """Directories between a member program and the workspace root."""
    return len(Path(programs_dir).parts) + 1


def _check_default_program_name(workspace_name: str) -> None:
    limit = MAX_NAME_LENGTH - len(DEFAULT_PROGRAM_SUFFIX)
    if len(workspace_name) > limit:
        raise InvalidNameError(
            workspace_name,
            f"name is too long to derive the first program name "
            f"'<name>{DEFAULT_PROGRAM_SUFFIX}' (max {limit} characters); "
            "pass an explicit program name",
        )
