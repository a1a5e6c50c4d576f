# wordref/models/entry.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List

from pydantic import BaseModel, Field


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Note(BaseModel):
    """
    A free-text annotation attached to an entry.

    Fields
    ------
    where:
        Locator inside the cited work (page, section, figure).
    text:
        The note itself.
    """

    where: str = ""
    text: str = ""


class Entry(BaseModel):
    """
    A single bibliographic entry as stored in the library.

    `id` is the citation key and must not contain ':' or ',' since it is
    embedded verbatim in marker tags. `fields` holds the raw BibTeX-style
    fields (author, year, title, journal, ...), all as strings.
    """

    id: str
    type: str = "misc"
    fields: Dict[str, str] = Field(default_factory=dict)
    notes: List[Note] = Field(default_factory=list)
    created_at: str = Field(default_factory=_now_iso)

    def field(self, name: str, default: str = "") -> str:
        value = self.fields.get(name)
        if value is None:
            return default
        value = str(value).strip()
        return value or default
