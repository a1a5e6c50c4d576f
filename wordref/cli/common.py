# wordref/cli/common.py

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape

from wordref.config.settings import settings
from wordref.document.io import load_document, save_document
from wordref.document.memory import MemoryDocument
from wordref.errors import WordRefError
from wordref.storage import JsonFileStore
from wordref.sync import RefreshReport
from wordref.workspace import CitationWorkspace

console = Console()


def document_path(document: Optional[Path]) -> Path:
    return Path(document) if document is not None else settings.document_path


def load_or_new(path: Path) -> MemoryDocument:
    if path.exists():
        return load_document(path, heading=settings.BIBLIOGRAPHY_HEADING)
    return MemoryDocument(heading=settings.BIBLIOGRAPHY_HEADING)


@contextmanager
def open_workspace(document: Optional[Path] = None, save: bool = True) -> Iterator[CitationWorkspace]:
    """
    Load the document and store, yield a workspace over them, and save the
    document back afterwards.

    WordRef errors are printed and turned into exit code 1; the document
    is not saved in that case.
    """
    path = document_path(document)
    doc = load_or_new(path)
    workspace = CitationWorkspace(doc, JsonFileStore(settings.store_path), settings)
    try:
        yield workspace
    except WordRefError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    if save:
        save_document(doc, path)


def print_report(report: Optional[RefreshReport]) -> None:
    if report is None:
        console.print("[yellow]A refresh is already running; request dropped.[/yellow]")
        return
    if not report.ok:
        console.print(f"[red]{report.error}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Refreshed[/green] {report.markers} citation(s) in "
        f"[bold]{report.style.label}[/bold], {report.rewritten} updated."
    )
    for failure in report.failures:
        console.print(f"[yellow]Could not update[/yellow] {escape(failure)}")
    if report.dangling:
        console.print(
            "[yellow]Cited but missing from the library:[/yellow] " + ", ".join(report.dangling)
        )
