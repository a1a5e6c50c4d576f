# wordref/bibtex.py

"""
BibTeX in, library entries out.
"""

from __future__ import annotations

import re
import uuid
from typing import Dict, List, Optional, Tuple

import bibtexparser
from bibtexparser.bparser import BibTexParser
from bibtexparser.customization import convert_to_unicode

from wordref.errors import ParseFailure
from wordref.models.entry import Entry
from wordref.models.marker import is_valid_id

_BIBTEX_HINT_RE = re.compile(r"@\w+\s*\{[\s\S]*\}")
_UNSAFE_ID_RE = re.compile(r"[:,\s]+")


def looks_like_bibtex(text: str) -> bool:
    return bool(_BIBTEX_HINT_RE.search(text or ""))


def _generated_id() -> str:
    return "id_" + uuid.uuid4().hex[:7]


def _safe_id(raw: str) -> str:
    """
    Citation keys end up inside marker tags, which reserve ':' and ','.
    """
    key = (raw or "").strip()
    if not key:
        return _generated_id()
    if is_valid_id(key):
        return key
    return _UNSAFE_ID_RE.sub("-", key).strip("-") or _generated_id()


def parse_bibtex(raw: str) -> List[Entry]:
    """
    Parse one or more BibTeX records.

    Empty input yields no entries. Input that is not empty but produces no
    records, or that the parser rejects, raises ParseFailure.
    """
    text = (raw or "").strip()
    if not text:
        return []

    parser = BibTexParser(common_strings=True)
    parser.customization = convert_to_unicode
    parser.ignore_nonstandard_types = False
    try:
        database = bibtexparser.loads(text, parser=parser)
    except Exception as exc:  # noqa: BLE001
        raise ParseFailure(f"BibTeX parsing error: {exc}") from exc

    if not database.entries:
        raise ParseFailure("No BibTeX entries found in input.")

    entries: List[Entry] = []
    for record in database.entries:
        data = dict(record)
        entry_id = _safe_id(data.pop("ID", ""))
        entry_type = (data.pop("ENTRYTYPE", "") or "misc").lower()
        fields = {str(k).lower(): str(v).strip() for k, v in data.items()}
        entries.append(Entry(id=entry_id, type=entry_type, fields=fields))
    return entries


# ---------------------------------------------------------------------------
# Duplicate lookup
# ---------------------------------------------------------------------------

def _norm(s: str) -> str:
    return re.sub(r"\s+", " ", (s or "").lower()).strip()


def _norm_title(s: str) -> str:
    return re.sub(r"[^a-z0-9 ]", "", _norm(s))


def find_existing(entry: Entry, library: Dict[str, Entry]) -> Optional[Tuple[str, str]]:
    """
    Look for `entry` in the library by citation key, then DOI, then
    normalized title. Returns (existing id, reason) or None.
    """
    if entry.id in library:
        return entry.id, "citationKey"

    doi = _norm(entry.field("doi"))
    if doi:
        for other in library.values():
            if _norm(other.field("doi")) == doi:
                return other.id, "doi"

    title = _norm_title(entry.field("title"))
    if title:
        for other in library.values():
            if _norm_title(other.field("title")) == title:
                return other.id, "title"

    return None


def search_library(library: Dict[str, Entry], query: str) -> List[Entry]:
    """
    Entries whose id, main fields or notes contain `query` (case-insensitive).
    """
    q = _norm(query)
    entries = list(library.values())
    if not q:
        return entries

    hits: List[Entry] = []
    for e in entries:
        blob = " ".join(
            [
                e.id,
                e.field("title"),
                e.field("author"),
                e.field("year"),
                e.field("journal"),
                e.field("booktitle"),
                e.field("doi"),
                *(f"{n.where} {n.text}" for n in e.notes),
            ]
        ).lower()
        if q in blob:
            hits.append(e)
    return hits
