"""Command line front end for typhoon-scaffold.

Usage::

    typhoon-scaffold init my-program
    typhoon-scaffold init my-workspace --workspace -t hello-world
    typhoon-scaffold add program second-program
    typhoon-scaffold templates
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from typhoon_scaffold import __version__
from typhoon_scaffold.config import Config
from typhoon_scaffold.scaffolder.catalog import available_templates, describe
from typhoon_scaffold.scaffolder.errors import ScaffoldError
from typhoon_scaffold.scaffolder.filesystem import LocalFilesystem
from typhoon_scaffold.scaffolder.generator import ScaffoldOrchestrator, ScaffoldPlan
from typhoon_scaffold.utils import (
    console,
    print_error,
    print_file_tree,
    print_success,
    print_summary_table,
    print_warning,
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    template_help = f"Project template ({', '.join(available_templates())})"

    parser = argparse.ArgumentParser(
        prog="typhoon-scaffold",
        description="Scaffold Typhoon Solana programs and workspaces",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  typhoon-scaffold init my-program\n"
            "  typhoon-scaffold init my-workspace --workspace -t hello-world\n"
            "  typhoon-scaffold add program second-program\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subcommands = parser.add_subparsers(dest="command", required=True)

    init = subcommands.add_parser("init", help="Create a new program or workspace")
    init.add_argument("name", help="Program name, or workspace name with --workspace")
    init.add_argument("--template", "-t", default=None, help=template_help)
    init.add_argument(
        "--workspace", "-w",
        action="store_true",
        help="Create a workspace containing a first program",
    )
    init.add_argument(
        "--program",
        default=None,
        help="Name of the workspace's first program (default: <name>-program)",
    )
    init.add_argument(
        "--program-id",
        default=None,
        help="Base58 program id to embed (default: the template's placeholder id)",
    )
    init.add_argument("--license", default=None, help="License identifier for generated manifests")
    init.add_argument(
        "--output", "-o",
        default=None,
        help="Directory to create the project in (default: current directory)",
    )

    add = subcommands.add_parser("add", help="Add to an existing workspace")
    add_kinds = add.add_subparsers(dest="kind", required=True)
    add_program = add_kinds.add_parser("program", help="Add a program to the workspace")
    add_program.add_argument("name", help="Program name")
    add_program.add_argument("--template", "-t", default=None, help=template_help)
    add_program.add_argument(
        "--program-id",
        default=None,
        help="Base58 program id to embed (default: the template's placeholder id)",
    )
    add_program.add_argument(
        "--directory", "-C",
        default=None,
        help="Workspace root (default: current directory)",
    )

    subcommands.add_parser("templates", help="List available templates")
    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _run_init(args: argparse.Namespace, config: Config) -> ScaffoldPlan:
    if args.output is not None:
        config = config.model_copy(update={"output_dir": Path(args.output)})
    if args.program is not None and not args.workspace:
        print_warning("--program only applies with --workspace; ignoring it")
    orchestrator = ScaffoldOrchestrator(config)
    return await orchestrator.init(
        args.name,
        args.template,
        workspace=args.workspace,
        program=args.program,
        program_id=args.program_id,
        license=args.license,
    )


async def _run_add_program(args: argparse.Namespace, config: Config) -> ScaffoldPlan:
    orchestrator = ScaffoldOrchestrator(config, fs=LocalFilesystem(args.directory))
    return await orchestrator.add_program(args.name, args.template, program_id=args.program_id)


def _list_templates(config: Config) -> None:
    data = {}
    for identifier, description in describe():
        suffix = " (default)" if identifier == config.default_template else ""
        data[identifier + suffix] = description
    print_summary_table(data, title="Templates")


def _report(plan: ScaffoldPlan, command: str) -> None:
    if command == "init" and plan.is_workspace:
        print_success(f"Created workspace '{plan.manifest.name}'")
    elif command == "init":
        print_success(f"Created program '{plan.program.raw}'")
    else:
        print_success(f"Added program '{plan.program.raw}' to workspace '{plan.manifest.name}'")

    print_file_tree(plan.root.name or str(plan.root), plan.tree.paths())
    console.print()
    print_summary_table(
        {
            "Template": plan.template.value,
            "Crate": plan.program.crate_name,
            "Binary": f"target/deploy/{plan.program.binary_filename}",
            "Keypair": f"target/deploy/{plan.program.keypair_filename}",
            "Typhoon": plan.dependency.manifest_value(),
            "Program id": plan.program_id,
        },
        title="Program",
    )

    console.print("[bold]Next steps:[/bold]")
    if command == "init":
        console.print(f"  cd {plan.root.name}")
    console.print("  cargo build-sbf")
    console.print("  cargo test-sbf")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``typhoon-scaffold`` and ``python -m typhoon_scaffold``."""
    args = build_parser().parse_args(argv)

    try:
        config = Config.from_env()
    except ValidationError as exc:
        print_error(f"Invalid configuration: {exc}")
        sys.exit(1)

    if args.command == "templates":
        _list_templates(config)
        return

    try:
        if args.command == "init":
            plan = asyncio.run(_run_init(args, config))
        else:
            plan = asyncio.run(_run_add_program(args, config))
    except ScaffoldError as exc:
        print_error(str(exc))
        sys.exit(1)

    _report(plan, args.command)


if __name__ == "__main__":
    main()
