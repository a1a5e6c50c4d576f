# wordref/cli/main.py

from __future__ import annotations

import typer
from wordref.cli import doc_cli, library_cli

app = typer.Typer(help="CLI tools for WordRef citations and bibliographies.")

app.add_typer(library_cli.app, name="library")
app.add_typer(doc_cli.app, name="doc")

if __name__ == "__main__":
    app()
