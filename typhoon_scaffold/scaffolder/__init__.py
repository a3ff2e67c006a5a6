"""Typhoon program scaffolder -- generates program and workspace trees.

Quick usage::

    from typhoon_scaffold.scaffolder import ScaffoldOrchestrator

    orchestrator = ScaffoldOrchestrator()
    plan = await orchestrator.init("my-program", "counter")
    plan = await orchestrator.init("my-workspace", "counter", workspace=True)
"""

from typhoon_scaffold.scaffolder.catalog import TemplateBundle, TemplateId
from typhoon_scaffold.scaffolder.errors import ScaffoldError
from typhoon_scaffold.scaffolder.generator import (
    ScaffoldOrchestrator,
    ScaffoldPlan,
    ScaffoldState,
)
from typhoon_scaffold.scaffolder.templates import FileTree, TemplateRenderer

__all__ = [
    "FileTree",
    "ScaffoldError",
    "ScaffoldOrchestrator",
    "ScaffoldPlan",
    "ScaffoldState",
    "TemplateBundle",
    "TemplateId",
    "TemplateRenderer",
]
