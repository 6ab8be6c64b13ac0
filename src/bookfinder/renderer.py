"""Rich terminal renderer for book search results and details."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.text import Text

from bookfinder.models import (
    BookResult,
    CoverSize,
    DetailState,
    DetailStatus,
    ListStatus,
    SessionState,
)
from bookfinder.openlibrary import cover_url

console = Console()

# Shown as one-click starting points in the search bar.
SUGGESTIONS = [
    "Classic Literature",
    "Contemporary Fiction",
    "Mystery & Thriller",
    "Science Fiction",
    "Jane Austen",
    "Agatha Christie",
    "Philosophy",
    "Poetry",
]

MAX_ISBNS = 3


def render_results(items: list[BookResult], *, start: int = 1, covers_base: Optional[str] = None) -> None:
    """Render result lines numbered from ``start``."""
    for i, book in enumerate(items, start):
        title_line = Text()
        title_line.append(f"[{i}] ", style="bold cyan")
        title_line.append(book.display_title, style="bold")
        console.print(title_line)

        meta_parts = [book.authors_display]
        if book.first_publish_year:
            meta_parts.append(str(book.first_publish_year))
        if book.pages_median:
            meta_parts.append(f"{book.pages_median} pages")
        console.print(f"     {' | '.join(meta_parts)}", style="dim", markup=False)

        url = cover_url(book.cover_id, CoverSize.MEDIUM, base=covers_base)
        if url:
            console.print(f"     {url}", style="dim")
        console.print()


def render_summary(state: SessionState) -> None:
    """Render the footer below the result list: counts and pagination hint."""
    if state.status == ListStatus.FAILED and state.error:
        console.print(f"[red]Error: {state.error}[/red]")
    if state.is_empty:
        if state.status == ListStatus.READY:
            console.print("[yellow]No books found.[/yellow]")
        return

    console.print(f"Showing {len(state.items)} of {state.total:,} results", style="bold")
    if state.has_more:
        console.print("  > More results available", style="dim italic")
    else:
        console.print("  > You've reached the end of the results", style="dim italic")


def render_state(state: SessionState, *, covers_base: Optional[str] = None) -> None:
    """Render the whole result list followed by its summary."""
    if state.items:
        header = f"Results for {state.mode.name.lower()} search \"{state.query}\""
        console.print(header, markup=False)
        console.print()
        render_results(state.items, covers_base=covers_base)
    render_summary(state)


def render_detail(
    detail: DetailState,
    *,
    covers_base: Optional[str] = None,
    show_unknown: bool = True,
) -> None:
    """Render the detail view for the selected item.

    With ``show_unknown=False`` the author and publisher lines are left out
    when the item has none, instead of printing the "Unknown" placeholders.
    """
    book = detail.item
    if book is None:
        return

    console.print(book.display_title, style="bold", markup=False)
    if book.author_names or show_unknown:
        console.print(book.authors_display, style="dim", markup=False)

    if detail.status == DetailStatus.LOADING:
        console.print("Loading book details...", style="dim italic")
        return
    if detail.status == DetailStatus.FAILED:
        console.print(f"[red]Error: {detail.error}[/red]")
        console.print("  > Retry to fetch the details again", style="dim italic")
        return

    url = cover_url(book.cover_id, CoverSize.LARGE, base=covers_base)
    if url:
        console.print(url, style="dim")

    meta_parts = []
    if book.first_publish_year:
        meta_parts.append(f"First published {book.first_publish_year}")
    if book.pages_median:
        meta_parts.append(f"{book.pages_median} pages")
    if meta_parts:
        console.print(" | ".join(meta_parts), style="dim")

    if book.publishers or show_unknown:
        console.print(f"Publishers: {book.publishers_display}", markup=False)

    if book.isbns:
        shown = ", ".join(book.isbns[:MAX_ISBNS])
        line = f"ISBN: {shown}"
        extra = len(book.isbns) - MAX_ISBNS
        if extra > 0:
            line += f" (+{extra} more ISBN{'s' if extra != 1 else ''})"
        console.print(line)

    info = detail.detail
    if info is not None:
        if info.subjects:
            console.print(f"Subjects: {', '.join(info.subjects[:10])}", style="dim", markup=False)
        if info.description:
            console.print()
            console.print(info.description, markup=False)
    console.print()


def render_suggestions() -> None:
    console.print("Try searching for:")
    for s in SUGGESTIONS:
        console.print(f"  - {s}")
