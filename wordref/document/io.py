# wordref/document/io.py

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from wordref.document.memory import MemoryDocument

PathLike = Union[str, Path]

MARKUP_SUFFIXES = {".txt", ".md"}


def save_document(
    document: MemoryDocument,
    path: PathLike,
    overwrite: bool = True,
) -> Path:
    """
    Serialize an in-memory document.

    - `.md` / `.txt` paths get document markup, anything else JSON.
    - If `path` has no suffix, `.json` is appended.
    - Creates parent directories if needed.
    - If `overwrite` is False and the file already exists, raises FileExistsError.
    """
    output_path = Path(path)

    if output_path.suffix == "":
        output_path = output_path.with_suffix(".json")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Document file already exists and overwrite=False: {output_path}")

    if output_path.suffix in MARKUP_SUFFIXES:
        text = document.to_markup() + "\n"
    else:
        text = json.dumps(document.to_dict(), indent=2, ensure_ascii=False)
    output_path.write_text(text, encoding="utf-8")
    return output_path


def load_document(path: PathLike, heading: Optional[str] = None) -> MemoryDocument:
    """
    Load a document saved by `save_document`.

    Files ending in `.txt` or `.md` are read as document markup instead.
    `heading` is the configured references heading; a heading stored in a
    JSON document takes precedence.
    """
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix in MARKUP_SUFFIXES:
        return MemoryDocument.from_markup(text, heading=heading)
    doc = MemoryDocument.from_dict(json.loads(text))
    if doc.heading is None:
        doc.heading = heading
    return doc
