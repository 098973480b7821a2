"""Command line interface for docseek."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from docseek.config import AppConfig
from docseek.errors import SnapshotError
from docseek.index.indexer import Indexer
from docseek.index.search import Searcher
from docseek.index.storage import DocumentIndex
from docseek.utils.ignore import IgnoreMatcher
from docseek.utils.text import tokenize
from docseek.web.app import create_app

LOGGER = logging.getLogger(__name__)

console = Console()
app = typer.Typer(help="docseek - local full-text search for your files")

BENCH_TERMS = (
    "act", "section", "government", "penalty", "offence",
    "rule", "order", "court", "judge", "police",
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_index(snapshot_path: Path) -> DocumentIndex:
    try:
        return DocumentIndex.load_or_create(snapshot_path)
    except SnapshotError as exc:
        console.print(f"[red]Could not load index: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def _config(snapshot: Optional[Path], workers: Optional[int] = None) -> AppConfig:
    return AppConfig(snapshot_path=snapshot, workers=workers)


@app.command()
def index(
    root: Path = typer.Argument(..., help="Folder to index.", resolve_path=True),
    snapshot: Path = typer.Option(None, "--snapshot", help="Index snapshot path"),
    workers: int = typer.Option(None, "--workers", help="Worker threads (default: auto)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index (or refresh the index of) a folder."""
    _setup_logging(verbose)
    if not root.is_dir():
        raise typer.BadParameter(f"Folder not found: {root}")

    config = _config(snapshot, workers)
    snapshot_path = config.resolve_snapshot_path(root)
    model = _load_index(snapshot_path)
    indexer = Indexer(model, IgnoreMatcher(config.ignore_filename), workers=config.workers)

    console.print(f"Indexing [bold]{root}[/bold]...")
    stats = indexer.index_folder(root)
    console.print(
        f"Indexed: {stats.indexed}, current: {stats.current}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}"
    )
    if stats.indexed > 0:
        model.save(snapshot_path)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    root: Path = typer.Option(Path("."), "--root", help="Indexed folder", resolve_path=True),
    snapshot: Path = typer.Option(None, "--snapshot", help="Index snapshot path"),
    top_k: int = typer.Option(AppConfig().top_k, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search an indexed folder."""
    _setup_logging(verbose)
    config = _config(snapshot)
    snapshot_path = config.resolve_snapshot_path(root)
    if not snapshot_path.exists():
        raise typer.BadParameter(f"Index not found: {snapshot_path}")

    searcher = Searcher(_load_index(snapshot_path))
    results = searcher.search(query, top_k=top_k, min_score=config.min_score, with_preview=True)
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Preview")
    for result in results:
        table.add_row(f"{result.score:.4f}", str(result.path), result.preview[:180])
    console.print(table)


@app.command()
def prune(
    root: Path = typer.Argument(Path("."), help="Indexed folder", resolve_path=True),
    snapshot: Path = typer.Option(None, "--snapshot", help="Index snapshot path"),
) -> None:
    """Remove documents that no longer exist on disk."""
    snapshot_path = _config(snapshot).resolve_snapshot_path(root)
    if not snapshot_path.exists():
        console.print("[yellow]Index not found, nothing to prune.[/yellow]")
        return

    model = _load_index(snapshot_path)
    removed = model.remove_missing_files()
    if removed:
        model.save(snapshot_path)
    console.print(f"Removed {removed} orphaned documents.")


@app.command()
def serve(
    root: Path = typer.Argument(..., help="Folder to index and serve", resolve_path=True),
    host: str = typer.Option(AppConfig().host, help="Host interface"),
    port: int = typer.Option(AppConfig().port, help="Server port"),
    snapshot: Path = typer.Option(None, "--snapshot", help="Index snapshot path"),
    workers: int = typer.Option(None, "--workers", help="Worker threads (default: auto)"),
) -> None:
    """Index a folder in the background and serve the web interface."""
    import uvicorn

    _setup_logging(False)
    if not root.is_dir():
        raise typer.BadParameter(f"Folder not found: {root}")

    config = AppConfig(snapshot_path=snapshot, workers=workers, host=host, port=port)
    snapshot_path = config.resolve_snapshot_path(root)
    model = _load_index(snapshot_path)
    ignore = IgnoreMatcher.from_root(root, config.ignore_filename)

    def background_index() -> None:
        stats = Indexer(model, ignore, workers=config.workers).index_folder(root)
        if stats.indexed > 0:
            model.save(snapshot_path)
        LOGGER.info("Finished indexing")

    threading.Thread(target=background_index, name="docseek-indexer", daemon=True).start()

    console.print(f"Starting web interface on http://{host}:{port} (folder: {root})")
    uvicorn.run(
        create_app(model, root, config=config, ignore=ignore),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )


@app.command()
def bench(
    root: Path = typer.Argument(..., help="Folder to benchmark against", resolve_path=True),
    iterations: int = typer.Option(100, help="Latency test iterations"),
    warmup: int = typer.Option(10, help="Warmup rounds before timing"),
    duration: float = typer.Option(5.0, help="Throughput test length in seconds"),
    workers: int = typer.Option(None, "--workers", help="Worker threads (default: auto)"),
) -> None:
    """Measure indexing throughput and search latency on a fresh in-memory index."""
    if not root.is_dir():
        raise typer.BadParameter(f"Folder not found: {root}")

    console.print("[bold]Indexing[/bold]")
    model = DocumentIndex()
    start = time.perf_counter()
    stats = Indexer(model, IgnoreMatcher(), workers=workers).index_folder(root)
    elapsed = time.perf_counter() - start
    console.print(f"Indexed {stats.indexed} files in {elapsed:.2f}s")
    if stats.indexed and elapsed > 0:
        console.print(f"Indexing throughput: {stats.indexed / elapsed:.2f} files/sec")

    queries = [tokenize(term) for term in BENCH_TERMS]
    for _ in range(warmup):
        for tokens in queries:
            model.search(tokens)

    console.print("[bold]Search latency[/bold]")
    total_latency = 0.0
    query_count = 0
    for _ in range(iterations):
        for tokens in queries:
            start = time.perf_counter()
            model.search(tokens)
            total_latency += time.perf_counter() - start
            query_count += 1
    if query_count:
        console.print(f"Average search latency: {total_latency / query_count * 1000:.3f}ms")

    console.print(f"[bold]Search throughput ({duration:g}s)[/bold]")
    total_queries = 0
    start = time.perf_counter()
    while time.perf_counter() - start < duration:
        for tokens in queries:
            model.search(tokens)
            total_queries += 1
    elapsed = time.perf_counter() - start
    console.print(f"Total queries: {total_queries}")
    if elapsed > 0:
        console.print(f"Throughput: {total_queries / elapsed:.2f} QPS")
