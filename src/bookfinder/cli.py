"""CLI entry point for the book finder."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

console = Console()

MODES = ["general", "title", "author"]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def _page_size(limit: Optional[int]) -> int:
    from bookfinder.config import get_page_size

    return limit if limit else get_page_size()


@click.group()
@click.version_option(package_name="bookfinder")
@click.option("--verbose", "-v", is_flag=True, help="Log HTTP activity to stderr.")
def cli(verbose: bool):
    """bookfinder - Search Open Library by keyword, title, or author."""
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# bookfinder env
# ---------------------------------------------------------------------------


@cli.group(invoke_without_command=True)
@click.pass_context
def env(ctx):
    """Show or configure settings.

    Run without arguments to see the value each setting resolves to.
    Use `bookfinder env set NAME value` to save a setting to ~/.bookfinder/.env.
    """
    if ctx.invoked_subcommand is not None:
        return

    from bookfinder.config import PERSISTENT_ENV, check_env

    console.print("Settings:")
    console.print()
    for var, is_set, effective, valid, description in check_env():
        source = "set" if is_set else "default"
        if valid:
            console.print(f"  {var}: [green]{escape(effective)}[/green] ({source})")
        else:
            console.print(f"  {var}: [red]invalid[/red]")
            console.print(f"    {effective}", style="red", markup=False)
        console.print(f"    {description}", style="dim")
        console.print()

    console.print(f"Config file: {PERSISTENT_ENV}", style="dim")


@env.command("set")
@click.argument("key")
@click.argument("value")
def env_set(key: str, value: str):
    """Save a setting to ~/.bookfinder/.env.

    KEY: one of OPENLIBRARY_BASE_URL, OPENLIBRARY_COVERS_URL,
    BOOKFINDER_PAGE_SIZE, BOOKFINDER_TIMEOUT
    VALUE: the setting value
    """
    from bookfinder.config import VALID_KEYS, save_key

    key = key.upper()
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key: {key}[/red]")
        console.print(f"Valid keys: {', '.join(sorted(VALID_KEYS))}")
        raise SystemExit(1)

    path = save_key(key, value)
    console.print(f"Saved {key} to {path}")


# ---------------------------------------------------------------------------
# bookfinder search / details / cover
# ---------------------------------------------------------------------------


async def _run_search(query: str, mode: str, page_size: int, pages: int):
    from bookfinder.models import ListStatus
    from bookfinder.openlibrary import OpenLibraryClient
    from bookfinder.session import SearchSession

    async with OpenLibraryClient() as client:
        session = SearchSession(client, page_size=page_size)
        await session.submit_search(query, mode)
        for _ in range(pages - 1):
            if session.state.status != ListStatus.READY or not session.state.has_more:
                break
            await session.load_more()
        return session.state


@cli.command()
@click.argument("query")
@click.option("--mode", "-m", default="general", type=click.Choice(MODES), help="Field to match (default: general).")
@click.option("--limit", "-n", default=None, type=click.IntRange(min=1), help="Results per page (default: 20).")
@click.option("--pages", "-p", default=1, type=click.IntRange(min=1), help="Number of pages to load.")
def search(query: str, mode: str, limit: Optional[int], pages: int):
    """Search for books.

    QUERY: the search text
    """
    from bookfinder.models import ListStatus
    from bookfinder.renderer import render_state

    if not query.strip():
        console.print("[red]Error: query must not be empty[/red]")
        raise SystemExit(1)

    try:
        state = asyncio.run(_run_search(query, mode, _page_size(limit), pages))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    render_state(state)
    if state.status == ListStatus.FAILED:
        raise SystemExit(1)


async def _fetch_detail(key: str):
    from bookfinder.openlibrary import OpenLibraryClient

    async with OpenLibraryClient() as client:
        return await client.get_book_detail(key)


@cli.command()
@click.argument("key")
def details(key: str):
    """Show the full record for a search result.

    KEY: the record key shown by Open Library (e.g., '/works/OL45804W')
    """
    from bookfinder.models import BookResult, DetailState, DetailStatus
    from bookfinder.renderer import render_detail

    try:
        detail = asyncio.run(_fetch_detail(key))
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    item = BookResult.from_record(key, detail.raw)
    render_detail(
        DetailState(item=item, status=DetailStatus.READY, detail=detail),
        show_unknown=False,
    )


@cli.command()
@click.argument("cover_id")
@click.option("--size", "-s", default="M", type=click.Choice(["S", "M", "L"], case_sensitive=False), help="Cover size (default: M).")
def cover(cover_id: str, size: str):
    """Print the cover image URL for a cover id.

    COVER_ID: the numeric cover id from a search result
    """
    from bookfinder.openlibrary import cover_url

    console.print(cover_url(cover_id, size.upper()), soft_wrap=True)


@cli.command()
def suggest():
    """List suggested searches."""
    from bookfinder.renderer import render_suggestions

    render_suggestions()


# ---------------------------------------------------------------------------
# bookfinder browse
# ---------------------------------------------------------------------------

BROWSE_HELP = "[m]ore, [1-N] details, [r]etry details, [n]ew search, [q]uit"


def _prompt_query() -> str:
    return click.prompt("Search (blank to quit)", default="", show_default=False).strip()


async def _browse_results(session) -> str:
    """Handle commands for the current result list.

    Returns the next query to search, or "" to quit.
    """
    from bookfinder.models import ListStatus
    from bookfinder.renderer import render_results, render_summary

    while True:
        choice = click.prompt(BROWSE_HELP, default="q").strip().lower()
        if choice == "q":
            return ""
        if choice == "n":
            session.clear_selection()
            return _prompt_query()
        if choice == "m":
            state = session.state
            if state.is_loading or not state.has_more:
                console.print("[yellow]No more results.[/yellow]")
                continue
            before = len(state.items)
            await session.load_more()
            if session.state.status == ListStatus.READY:
                render_results(session.state.items[before:], start=before + 1)
            render_summary(session.state)
        elif choice == "r":
            await session.retry_detail()
        elif choice.isdigit() and 1 <= int(choice) <= len(session.state.items):
            await session.select_item(session.state.items[int(choice) - 1])
        else:
            console.print(f"[yellow]Unknown choice: {escape(choice)}[/yellow]")


async def _browse(query: str, mode: str, page_size: int) -> None:
    from bookfinder.models import DetailStatus
    from bookfinder.openlibrary import OpenLibraryClient
    from bookfinder.renderer import render_detail, render_state
    from bookfinder.session import SearchSession

    def show_detail(detail):
        if detail.status in (DetailStatus.READY, DetailStatus.FAILED):
            render_detail(detail)

    async with OpenLibraryClient() as client:
        session = SearchSession(client, page_size=page_size)
        # Full list is drawn once per search; load-more appends are drawn by the loop
        session.on_results_ready(render_state)
        session.subscribe_detail(show_detail)

        query = query.strip() or _prompt_query()
        while query:
            console.print("Searching...", style="dim italic")
            await session.submit_search(query, mode)
            query = await _browse_results(session)


@cli.command()
@click.argument("query", required=False, default="")
@click.option("--mode", "-m", default="general", type=click.Choice(MODES), help="Field to match (default: general).")
@click.option("--limit", "-n", default=None, type=click.IntRange(min=1), help="Results per page (default: 20).")
def browse(query: str, mode: str, limit: Optional[int]):
    """Interactively search, page through results, and open details.

    QUERY: optional initial search text
    """
    try:
        asyncio.run(_browse(query, mode, _page_size(limit)))
    except click.Abort:
        raise
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)
