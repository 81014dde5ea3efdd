"""Command line interface for Leyline discovery."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from leyline.config import CacheConfig
from leyline.discovery.cache import MetadataCache
from leyline.discovery.stats import PerformanceStats
from leyline.errors import CacheError
from leyline.models import SearchResult
from leyline.web.app import app as web_app

console = Console()
app = typer.Typer(help="Leyline - browse and search tenets and bindings")

MAX_RELEVANCE = 200.0


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_cache(docs: Path | None, compress: bool) -> MetadataCache:
    config = CacheConfig(
        docs_root=docs if docs is not None else CacheConfig().docs_root,
        compression_enabled=compress,
    )
    return MetadataCache(config)


def _fail(error: CacheError) -> NoReturn:
    console.print(f"[red]Error:[/red] {error.message}")
    if error.suggestions:
        console.print("Suggestions:")
        for suggestion in error.suggestions:
            console.print(f"  - {suggestion}")
    raise typer.Exit(code=1)


def _normalize_score(score: float) -> float:
    return min(score / MAX_RELEVANCE, 1.0)


def _emit_json(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _print_stats(stats: PerformanceStats) -> None:
    table = Table(title="Cache statistics", show_header=True, header_style="bold magenta")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Documents", str(stats.document_count))
    table.add_row("Categories", str(stats.category_count))
    table.add_row("File hit ratio", f"{stats.hit_ratio:.1%}")
    table.add_row("Hits / misses", f"{stats.hit_count} / {stats.miss_count}")
    table.add_row("Scans", str(stats.scan_count))
    table.add_row("Memory usage", f"{stats.memory_usage} bytes")
    compression = stats.compression_stats
    if compression.enabled:
        table.add_row(
            "Compression",
            f"{compression.compression_ratio:.2f} ({compression.compressed_documents} documents)",
        )
    console.print(table)


def _search_payload(query: str, results: List[SearchResult], limit: int, suggestions: List[str]) -> Dict[str, Any]:
    shown = results[:limit]
    return {
        "query": query,
        "total_results": len(results),
        "shown_results": len(shown),
        "limit": limit,
        "results": [
            {
                "id": result.document.id,
                "title": result.document.title,
                "path": result.document.path,
                "category": result.document.category,
                "type": result.document.type,
                "score": _normalize_score(result.score),
                "matches": result.matches,
                "preview": result.document.content_preview,
            }
            for result in shown
        ],
        "suggestions": suggestions,
    }


@app.command()
def categories(
    docs: Path = typer.Option(None, "--docs", help="Checked-out docs directory"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    stats: bool = typer.Option(False, "--stats", help="Show cache statistics"),
    compress: bool = typer.Option(False, "--compress", help="Compress cached content"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List the available categories."""
    _setup_logging(verbose)
    cache = _build_cache(docs, compress)
    try:
        names = cache.categories()
        counts = {name: len(cache.documents_for_category(name)) for name in names}
    except CacheError as error:
        _fail(error)

    if as_json:
        payload: Dict[str, Any] = {"categories": [{"name": name, "documents": counts[name]} for name in names]}
        if stats:
            payload["stats"] = cache.performance_stats().to_dict()
        _emit_json(payload)
        return

    if not names:
        console.print("[yellow]No categories found.[/yellow]")
    else:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Category")
        table.add_column("Documents")
        for name in names:
            table.add_row(name, str(counts[name]))
        console.print(table)

    if stats:
        _print_stats(cache.performance_stats())


@app.command()
def show(
    category: str = typer.Argument(..., help="Category to show"),
    docs: Path = typer.Option(None, "--docs", help="Checked-out docs directory"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    stats: bool = typer.Option(False, "--stats", help="Show cache statistics"),
    compress: bool = typer.Option(False, "--compress", help="Compress cached content"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show the documents of one category."""
    _setup_logging(verbose)
    cache = _build_cache(docs, compress)
    try:
        documents = cache.documents_for_category(category)
        available = cache.categories() if not documents else []
    except CacheError as error:
        _fail(error)

    if as_json:
        payload: Dict[str, Any] = {
            "category": category,
            "documents": [document.to_dict() for document in documents],
        }
        if stats:
            payload["stats"] = cache.performance_stats().to_dict()
        _emit_json(payload)
        return

    if not documents:
        console.print(f"[yellow]No documents found in category '{category}'.[/yellow]")
        if available:
            console.print(f"Available categories: {', '.join(available)}")
    else:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID")
        table.add_column("Title")
        table.add_column("Type")
        if verbose:
            table.add_column("Preview")
        for document in documents:
            row = [document.id, document.title, document.type]
            if verbose:
                row.append(document.content_preview[:150])
            table.add_row(*row)
        console.print(table)

    if stats:
        _print_stats(cache.performance_stats())


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    docs: Path = typer.Option(None, "--docs", help="Checked-out docs directory"),
    limit: int = typer.Option(10, "--limit", help="Number of results to display"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
    stats: bool = typer.Option(False, "--stats", help="Show cache statistics"),
    compress: bool = typer.Option(False, "--compress", help="Compress cached content"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search tenets and bindings, tolerating typos."""
    _setup_logging(verbose)
    if not query.strip():
        raise typer.BadParameter("Search query cannot be empty")
    if limit < 1:
        raise typer.BadParameter("--limit must be at least 1")

    cache = _build_cache(docs, compress)
    try:
        results = cache.search(query)
        suggestions = cache.suggest_corrections(query) if not results else []
    except CacheError as error:
        _fail(error)

    payload = _search_payload(query, results, limit, suggestions)
    if as_json:
        if stats:
            payload["stats"] = cache.performance_stats().to_dict()
        _emit_json(payload)
        return

    if not results:
        console.print(f"[yellow]No results found for '{query}'.[/yellow]")
        if suggestions:
            console.print("Did you mean:")
            for suggestion in suggestions:
                console.print(f"  {suggestion}")
    else:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Score")
        table.add_column("Title")
        table.add_column("Category")
        table.add_column("Type")
        if verbose:
            table.add_column("Matches")
        for item in payload["results"]:
            row = [f"{item['score']:.2f}", item["title"], item["category"], item["type"]]
            if verbose:
                row.append(", ".join(item["matches"]))
            table.add_row(*row)
        console.print(table)
        if payload["total_results"] > payload["shown_results"]:
            console.print(f"Use --limit {payload['total_results']} to see all results")

    if stats:
        _print_stats(cache.performance_stats())


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    docs: Path = typer.Option(None, "--docs", help="Checked-out docs directory"),
) -> None:
    """Serve the discovery API over HTTP."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    config = CacheConfig(docs_root=docs if docs is not None else CacheConfig().docs_root)
    resolved = config.resolve_docs_root(Path.cwd())
    if not resolved.exists():
        console.print("[yellow]Warning: docs directory not found, requests might fail.[/yellow]")

    web_app.state.docs_root = resolved
    console.print(f"Starting discovery API on http://{host}:{port} (docs: {resolved})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
