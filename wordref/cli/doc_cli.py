# wordref/cli/doc_cli.py

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from wordref.cli.common import console, document_path, load_or_new, open_workspace, print_report
from wordref.config.settings import settings
from wordref.document.io import save_document
from wordref.document.memory import MemoryDocument
from wordref.merge import MergeOutcome
from wordref.styles import Style

app = typer.Typer(help="Cite into a document and keep its numbering and references in sync.")

DocumentOpt = typer.Option(
    None,
    "--document",
    "-d",
    help="Document file (.json, or .md/.txt markup). Defaults to settings.document_path.",
)
StyleOpt = typer.Option(None, "--style", "-s", help="Citation style; defaults to WORDREF_DEFAULT_STYLE.")


def _print_merge(outcome: MergeOutcome) -> None:
    if outcome.ok:
        console.print(f"[green]{outcome.message}[/green]")
    else:
        console.print(f"[yellow]{outcome.message}[/yellow]")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("new")
def new(
    markup: Optional[str] = typer.Argument(None, help="Document markup; one paragraph per line."),
    markup_file: Optional[Path] = typer.Option(None, "--from", help="Read markup from this file."),
    document: Optional[Path] = DocumentOpt,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing document."),
) -> None:
    """
    Create a document from markup.
    """
    if markup_file is not None:
        markup = markup_file.read_text(encoding="utf-8")
    doc = MemoryDocument.from_markup(
        (markup or "").replace("\\n", "\n"), heading=settings.BIBLIOGRAPHY_HEADING
    )
    try:
        path = save_document(doc, document_path(document), overwrite=force)
    except FileExistsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Created[/green] {path} ({len(doc.paragraphs)} paragraphs)")


@app.command("show")
def show(
    document: Optional[Path] = DocumentOpt,
    markup: bool = typer.Option(False, "--markup", help="Show markers and selection as markup."),
) -> None:
    """
    Print the document.
    """
    path = document_path(document)
    if not path.exists():
        console.print(f"[red]Document not found:[/red] {path}")
        raise typer.Exit(code=1)
    doc = load_or_new(path)
    if markup:
        typer.echo(doc.to_markup())
    else:
        console.print(Panel(escape(doc.render()), title=str(path)))


@app.command("select")
def select(
    paragraph: int = typer.Argument(..., help="Paragraph index (0-based)."),
    start: int = typer.Argument(..., help="Segment slot where the selection starts."),
    end: Optional[int] = typer.Argument(None, help="Segment slot where it ends; omit for a caret."),
    document: Optional[Path] = DocumentOpt,
) -> None:
    """
    Move the selection (or caret) used by cite, merge and unmerge.
    """
    with open_workspace(document) as ws:
        try:
            ws.host.select(paragraph, start, end)
        except IndexError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1)
    console.print(f"[green]Selection set[/green] paragraph {paragraph}, {start}..{start if end is None else end}")


@app.command("cite")
def cite(
    entry_id: str = typer.Argument(..., help="Library entry to cite."),
    style: Optional[str] = StyleOpt,
    document: Optional[Path] = DocumentOpt,
) -> None:
    """
    Insert a citation at the selection and resynchronize the document.
    """
    with open_workspace(document) as ws:
        try:
            result = asyncio.run(ws.cite(entry_id, style))
        except KeyError:
            console.print(f"[red]No entry[/red] {entry_id!r} in the library")
            raise typer.Exit(code=1)
        console.print(f"[green]Cited[/green] {entry_id} as {escape(result.insert.text)} ({result.insert.method})")
        print_report(result.report)


@app.command("refresh")
def refresh(style: Optional[str] = StyleOpt, document: Optional[Path] = DocumentOpt) -> None:
    """
    Renumber every citation and rewrite the bibliography.
    """
    with open_workspace(document) as ws:
        print_report(asyncio.run(ws.refresh(style)))


@app.command("style")
def style(
    name: str = typer.Argument(..., help=f"One of: {', '.join(s.value for s in Style)}."),
    document: Optional[Path] = DocumentOpt,
) -> None:
    """
    Re-render the document in another style.
    """
    with open_workspace(document) as ws:
        print_report(asyncio.run(ws.change_style(name)))


@app.command("merge")
def merge(style: Optional[str] = StyleOpt, document: Optional[Path] = DocumentOpt) -> None:
    """
    Merge the citations under the selection into one.
    """
    with open_workspace(document) as ws:
        outcome, report = asyncio.run(ws.merge_selection(style))
        _print_merge(outcome)
        if outcome.ok:
            print_report(report)


@app.command("unmerge")
def unmerge(style: Optional[str] = StyleOpt, document: Optional[Path] = DocumentOpt) -> None:
    """
    Split the grouped citation under the selection.
    """
    with open_workspace(document) as ws:
        outcome, report = asyncio.run(ws.unmerge_selection(style))
        _print_merge(outcome)
        if outcome.ok:
            print_report(report)


@app.command("reset")
def reset(style: Optional[str] = StyleOpt, document: Optional[Path] = DocumentOpt) -> None:
    """
    Forget the stored numbering and renumber from the document.
    """
    with open_workspace(document) as ws:
        print_report(asyncio.run(ws.reset_numbering(style)))


@app.command("order")
def order(document: Optional[Path] = DocumentOpt) -> None:
    """
    Show the cited order as stored.
    """
    with open_workspace(document, save=False) as ws:
        ids = ws.tracker.current()
        library = ws.entries()

    table = Table(title="Cited order")
    table.add_column("#", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("In library")
    for i, entry_id in enumerate(ids, start=1):
        table.add_row(str(i), entry_id, "yes" if entry_id in library else "[red]no[/red]")
    console.print(table)
