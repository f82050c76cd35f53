"""Command line interface for Recall."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from recall.config import DEFAULT_ENGINE, DEFAULT_LIMIT, AppConfig
from recall.exceptions import StoreError
from recall.index.indexer import Indexer
from recall.index.search import Searcher, SearchRequest
from recall.index.storage import SQLiteResultStore
from recall.models import RankedResult
from recall.ocr.engine import ENGINE_NAMES, LazyExtractor

LOGGER = logging.getLogger(__name__)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)
app = typer.Typer(
    help="Recall is a CLI tool to OCR and search for text in your photos.",
    add_completion=False,
)

CREDITS = (
    "Recall - OCR and search for text in your photos.\n"
    "Neural OCR powered by RapidOCR (Apache-2.0, https://github.com/RapidAI/RapidOCR).\n"
    "Optional Tesseract backend (Apache-2.0, https://github.com/tesseract-ocr/tesseract)."
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _print_results(results: Sequence[RankedResult], show_text: bool) -> None:
    if not show_text:
        for result in results:
            console.print(result.key, markup=False, soft_wrap=True)
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("File")
    table.add_column("Text")
    for result in results:
        snippet = " ".join(result.text.split())
        table.add_row(str(result.score), result.key, snippet[:180])
    console.print(table)


@app.command()
def main(
    search_text: Optional[str] = typer.Argument(
        None, help="Text to search for in OCR results"
    ),
    directory: Path = typer.Argument(
        Path("."), help="The directory to search for photos, defaults to the current directory"
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
    global_search: bool = typer.Option(
        False, "--global-search", "-g", help="Search across all previously OCRed files"
    ),
    num_threads: Optional[int] = typer.Option(
        None,
        "--num-threads",
        "-n",
        min=1,
        help="Number of images to process in parallel, defaults to number of CPUs",
    ),
    db: Path = typer.Option(None, "--db", help="SQLite database path"),
    engine: str = typer.Option(
        DEFAULT_ENGINE, "--engine", help=f"OCR engine: {', '.join(ENGINE_NAMES)}"
    ),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", min=1, help="Maximum number of results"),
    show_text: bool = typer.Option(
        False, "--show-text", help="Show scores and matched text in a table"
    ),
    credits: bool = typer.Option(False, "--credits", help="Show credits and license information"),
) -> None:
    """Index the photos in DIRECTORY, then fuzzy-search their text for SEARCH_TEXT."""
    if credits:
        console.print(CREDITS, markup=False)
        return

    _setup_logging(debug)
    if engine not in ENGINE_NAMES:
        raise typer.BadParameter(
            f"Unknown OCR engine {engine!r}; choose one of: {', '.join(ENGINE_NAMES)}",
            param_hint="--engine",
        )

    config = AppConfig(
        db_path=db if db is not None else AppConfig().db_path,
        engine=engine,
        num_threads=num_threads,
        limit=limit,
    )
    resolved_db = config.resolve_db_path(Path.cwd())
    try:
        _ensure_db_parent(resolved_db)
    except OSError as exc:
        err_console.print(
            f"[red]Failed to create data directory "
            f"{escape(str(resolved_db.parent))}: {escape(str(exc))}[/red]"
        )
        raise typer.Exit(code=1) from exc
    LOGGER.debug("Data file path: %s", resolved_db)

    try:
        store = SQLiteResultStore(resolved_db)
    except StoreError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    try:
        extractor = LazyExtractor.for_engine(config.engine)
        indexer = Indexer(extractor, store, num_threads=config.resolve_num_threads())
        stats = indexer.index_directory(directory)
        LOGGER.info(
            "Indexed: %d, up to date: %d, no text: %d, failed: %d, stored results: %d",
            stats.indexed,
            stats.fresh,
            stats.empty,
            stats.failed,
            store.count(),
        )

        if search_text is None:
            return

        searcher = Searcher(store)
        try:
            results = searcher.search(
                SearchRequest(
                    query=search_text,
                    directory=directory,
                    global_search=global_search,
                    limit=config.limit,
                )
            )
        except StoreError as exc:
            err_console.print(f"[red]Error searching OCR results: {escape(str(exc))}[/red]")
            raise typer.Exit(code=1) from exc

        _print_results(results, show_text)
    finally:
        store.close()
