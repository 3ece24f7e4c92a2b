"""Command line interface for PoemFinder."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from poemfinder.config import AppConfig
from poemfinder.errors import PoemFinderError
from poemfinder.models import PoetryRecord, SearchOptions, SearchResult
from poemfinder.services import Services, build_services


console = Console()
app = typer.Typer(help="PoemFinder - search classical Chinese poetry collections")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(
    cache: Path | None,
    data_dir: Path | None,
    *,
    no_cache: bool = False,
    exact: bool = False,
) -> AppConfig:
    config = AppConfig()
    if cache is not None:
        config.cache.path = cache
    if no_cache:
        config.cache.enabled = False
    if data_dir is not None:
        config.data_source.local_path = data_dir
    if exact:
        config.search.fuzzy_search = False
    return config


def _run(services: Services, coro):
    async def runner():
        try:
            return await coro
        finally:
            await services.aclose()

    try:
        return asyncio.run(runner())
    except PoemFinderError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


def _snippet(result: SearchResult) -> str:
    highlights = result.highlights
    if highlights is not None and highlights.content:
        return " / ".join(line.text for line in highlights.content[:2])
    return " ".join(result.record.body_lines[:2])


def _print_poem(poem: PoetryRecord) -> None:
    console.print(f"[bold]{poem.title}[/bold]  {poem.author}")
    for line in poem.body_lines:
        console.print(line)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    category: str = typer.Option("all", "--category", "-c", help="Category key or 'all'"),
    title: bool = typer.Option(True, "--title/--no-title", help="Match titles"),
    author: bool = typer.Option(True, "--author/--no-author", help="Match authors"),
    content: bool = typer.Option(True, "--content/--no-content", help="Match poem text"),
    tags: bool = typer.Option(False, "--tags/--no-tags", help="Match tags"),
    exact: bool = typer.Option(False, "--exact", help="Substring instead of fuzzy matching"),
    page: int = typer.Option(1, help="Result page to display"),
    cache: Path = typer.Option(None, "--cache", help="SQLite cache path"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Do not read or write the cache"),
    data_dir: Path = typer.Option(None, "--data-dir", help="Local chinese-poetry data directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search the poetry corpus."""
    _setup_logging(verbose)
    config = _build_config(cache, data_dir, no_cache=no_cache, exact=exact)
    services = build_services(config, base_dir=Path.cwd())
    options = SearchOptions(
        category=category,
        search_title=title,
        search_author=author,
        search_content=content,
        search_tags=tags,
    )

    async def _search() -> List[SearchResult]:
        results = await services.engine.search(query, options)
        if page != 1:
            results = services.engine.get_page(page)
        return results

    results = _run(services, _search())
    total = services.engine.get_total_results()
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Category")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Snippet")

    for result in results:
        table.add_row(result.category, result.title, result.author, _snippet(result)[:80])

    console.print(table)
    console.print(
        f"Page {services.engine.current_page}/{services.engine.get_total_pages()}, "
        f"{total} matches"
    )


@app.command()
def random(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Corpus category"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="jinrishici, gushiwen, gushicione or corpus"
    ),
    cache: Path = typer.Option(None, "--cache", help="SQLite cache path"),
    data_dir: Path = typer.Option(None, "--data-dir", help="Local chinese-poetry data directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show a random poem."""
    _setup_logging(verbose)
    config = _build_config(cache, data_dir)
    services = build_services(config, base_dir=Path.cwd())

    if category is not None:
        poem = _run(services, services.loader.get_random(category))
    else:
        poem = _run(services, services.providers.get_random_poem(provider))
    _print_poem(poem)


@app.command()
def categories() -> None:
    """List the configured poetry categories."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("Path")
    table.add_column("Files")

    for entry in AppConfig().data_source.categories.values():
        table.add_row(entry.key, entry.name, entry.path, ", ".join(entry.files))
    console.print(table)


@app.command("clear-cache")
def clear_cache(
    category: Optional[str] = typer.Argument(None, help="Category to clear, all if omitted"),
    cache: Path = typer.Option(None, "--cache", help="SQLite cache path"),
) -> None:
    """Remove cached category data."""
    config = _build_config(cache, None)
    resolved_cache = config.resolve_cache_path(Path.cwd())
    if not resolved_cache.exists():
        console.print("[yellow]Cache not found, nothing to clear.[/yellow]")
        return

    services = build_services(config, base_dir=Path.cwd())
    try:
        services.loader.invalidate(category)
    finally:
        asyncio.run(services.aclose())
    console.print(f"Cleared cache for {category or 'all categories'}.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the HTTP API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from poemfinder.web.app import app as web_app

    console.print(f"Starting PoemFinder API on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
