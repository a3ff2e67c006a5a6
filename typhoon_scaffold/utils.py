"""Shared console output helpers for typhoon-scaffold.

The scaffolding core is silent; everything the user sees goes through the
Rich console defined here.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

console = Console()


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_file_tree(root_label: str, paths: Iterable[str]) -> None:
    """Print relative POSIX *paths* as a directory tree under *root_label*."""
    console.print(build_file_tree(root_label, paths))


def build_file_tree(root_label: str, paths: Iterable[str]) -> Tree:
    """Build the Rich ``Tree`` used by :func:`print_file_tree`."""
    tree = Tree(f"[bold]{root_label}[/bold]")
    branches: dict[tuple[str, ...], Tree] = {(): tree}

    for path in paths:
        parts = PurePosixPath(path).parts
        for depth in range(1, len(parts)):
            key = parts[:depth]
            if key not in branches:
                label = f"[bold blue]{escape(parts[depth - 1])}/[/bold blue]"
                branches[key] = branches[key[:-1]].add(label)
        branches[parts[:-1]].add(escape(parts[-1]))

    return tree


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
