# wordref/cli/library_cli.py

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from wordref.cli.common import console, open_workspace, print_report
from wordref.export import EXPORTERS, export_library
from wordref.models.entry import Entry

app = typer.Typer(help="Manage the reference library: import BibTeX, search, export.")


def _read_bibtex(bibtex: Optional[str], file: Optional[Path]) -> str:
    if file is not None:
        if not file.exists():
            console.print(f"[red]BibTeX file not found:[/red] {file}")
            raise typer.Exit(code=1)
        return file.read_text(encoding="utf-8")
    if bibtex:
        return bibtex
    console.print("[red]Pass BibTeX text or --file.[/red]")
    raise typer.Exit(code=1)


def _entries_table(entries: List[Entry], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Author", overflow="fold")
    table.add_column("Year", justify="right")
    table.add_column("Title", overflow="fold")
    for e in entries:
        table.add_row(e.id, e.type, e.field("author"), e.field("year"), e.field("title"))
    return table


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("add")
def add(
    bibtex: Optional[str] = typer.Argument(None, help="Raw BibTeX text."),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read BibTeX from this file."),
    where: str = typer.Option("", "--where", help="Note location, e.g. 'p. 12'."),
    note: str = typer.Option("", "--note", help="Note text attached to every added entry."),
) -> None:
    """
    Add BibTeX entries to the library, skipping ones already there.
    """
    raw = _read_bibtex(bibtex, file)
    with open_workspace(save=False) as ws:
        result = ws.add_entries(raw, where, note)

    for entry_id in result.added:
        console.print(f"[green]Added[/green] {entry_id}")
    for incoming, existing, reason in result.duplicates:
        console.print(
            f"[yellow]Already in your library[/yellow] {incoming} -> {existing} (matched by {reason})"
        )


@app.command("list")
def list_entries() -> None:
    """
    Show every entry in the library.
    """
    with open_workspace(save=False) as ws:
        entries = list(ws.entries().values())
    if not entries:
        console.print("[yellow]Library is empty.[/yellow]")
        return
    console.print(_entries_table(entries, f"Library ({len(entries)} entries)"))


@app.command("search")
def search(
    query: str = typer.Argument(..., help="Text to match in ids, fields and notes."),
    limit: int = typer.Option(50, "--limit", "-n", min=1, help="Max number of hits to display."),
) -> None:
    """
    Search the library by id, title, author, year, venue, DOI or notes.
    """
    with open_workspace(save=False) as ws:
        hits = ws.search(query)
    if not hits:
        console.print(f"[yellow]No entries match[/yellow] {query!r}")
        return
    console.print(_entries_table(hits[:limit], f"Matches for {query!r} ({len(hits)})"))


@app.command("export")
def export(
    fmt: str = typer.Argument("json", help=f"One of: {', '.join(EXPORTERS)}."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write here instead of stdout."),
) -> None:
    """
    Export the library as JSON, CSV or XML.
    """
    if fmt.lower() not in EXPORTERS:
        console.print(f"[red]Unknown format[/red] {fmt!r}; expected one of {', '.join(EXPORTERS)}")
        raise typer.Exit(code=1)

    with open_workspace(save=False) as ws:
        text = export_library(ws.entries(), fmt)

    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    console.print(f"[green]Wrote[/green] {output}")


@app.command("remove")
def remove(entry_id: str = typer.Argument(..., help="Entry id to remove.")) -> None:
    """
    Remove one entry. Citations of it stay in the document.
    """
    with open_workspace(save=False) as ws:
        removed = ws.remove_entry(entry_id)
    if not removed:
        console.print(f"[red]No entry[/red] {entry_id!r}")
        raise typer.Exit(code=1)
    console.print(f"[green]Removed[/green] {entry_id}")


@app.command("clear")
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    document: Optional[Path] = typer.Option(None, "--document", "-d", help="Document to resynchronize."),
) -> None:
    """
    Delete every entry and the cited order, then refresh the document.
    """
    if not yes:
        typer.confirm("Clear the whole library?", abort=True)
    with open_workspace(document) as ws:
        report = asyncio.run(ws.clear_library())
        print_report(report)
