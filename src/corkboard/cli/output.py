"""Rich console output helpers."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from ..web.search.models import SearchResponse

# Shared console instance
console = Console()
error_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def create_table(title: str, columns: list[tuple[str, str]]) -> Table:
    """Create a styled table.

    Args:
        title: Table title
        columns: List of (name, style) tuples
    """
    table = Table(title=title, show_header=True, header_style="bold")
    for name, style in columns:
        table.add_column(name, style=style)
    return table


def print_search_results(response: SearchResponse, title: str = "Search results") -> None:
    """Print a page of search results."""
    table = create_table(
        title,
        [
            ("Score", "yellow"),
            ("Type", "magenta"),
            ("Title", "cyan"),
            ("Snippet", ""),
            ("Board", "green"),
            ("Link", "dim"),
        ],
    )

    for item in response.items:
        snippet = item.snippet or "-"
        if len(snippet) > 60:
            snippet = snippet[:57] + "..."
        table.add_row(
            f"{item.score:.3f}",
            item.entity_type.value,
            item.title,
            snippet,
            item.board.name if item.board else "-",
            item.href,
        )

    console.print(table)
