# wordref/styles.py

"""
Citation styles and the text they produce.

Styles fall into two behaviour classes:

- numeric (ieee, numeric, vancouver, acs): bracketed index labels, grouped
  citations use range notation, bibliography keeps citation order.
- author-year (apa, mla, harvard): "(Surname, Year)" labels, grouped
  citations join with "; ", bibliography is sorted by author.

All style-dependent branching goes through `Style.citation_class` or the
bibliography formatter registry below.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from wordref.models.entry import Entry
from wordref.ranges import format_group

ANON = "Anon"
NO_DATE = "n.d."


class Style(str, Enum):
    APA = "apa"
    MLA = "mla"
    HARVARD = "harvard"
    ACS = "acs"
    IEEE = "ieee"
    NUMERIC = "numeric"
    VANCOUVER = "vancouver"

    @classmethod
    def parse(cls, value: Optional[Union[str, "Style"]]) -> "Style":
        """
        Case-insensitive lookup; anything unrecognized falls back to APA.
        """
        if isinstance(value, Style):
            return value
        key = (value or "").strip().lower()
        for style in cls:
            if style.value == key:
                return style
        return cls.APA

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC_STYLES

    @property
    def citation_class(self) -> "CitationClass":
        return NUMERIC_CLASS if self.is_numeric else AUTHOR_YEAR_CLASS

    @property
    def label(self) -> str:
        return _STYLE_LABELS[self]


_NUMERIC_STYLES = frozenset({Style.IEEE, Style.NUMERIC, Style.VANCOUVER, Style.ACS})

_STYLE_LABELS: Dict[Style, str] = {
    Style.IEEE: "IEEE (numeric)",
    Style.NUMERIC: "Numeric",
    Style.APA: "APA",
    Style.MLA: "MLA",
    Style.HARVARD: "Harvard",
    Style.ACS: "ACS",
    Style.VANCOUVER: "Vancouver",
}


# ---------------------------------------------------------------------------
# Author / year helpers
# ---------------------------------------------------------------------------

def _author_field(entry: Entry) -> str:
    return entry.field("author") or entry.field("editor")


def first_author_surname(entry: Entry) -> str:
    """
    First token before a comma or " and " in the author (or editor) field.
    """
    raw = _author_field(entry)
    if not raw:
        return ANON
    first = re.split(r"\s+and\s+", raw, maxsplit=1)[0]
    surname = first.split(",")[0].strip().strip("{}").strip()
    return surname or ANON


def entry_year(entry: Entry) -> str:
    return entry.field("year", NO_DATE)


def strip_in_text(label: str) -> str:
    """
    "(Smith, 2020)" -> "Smith, 2020"
    """
    label = label.strip()
    if label.startswith("(") and label.endswith(")"):
        return label[1:-1].strip()
    return label


# ---------------------------------------------------------------------------
# Behaviour classes
# ---------------------------------------------------------------------------

class CitationClass(ABC):
    numeric: bool = False

    @abstractmethod
    def in_text(self, entry: Optional[Entry], index: Optional[int]) -> Optional[str]:
        """
        Label for a single marker, or None when it cannot be rendered.
        """

    @abstractmethod
    def group_text(
        self,
        entries: Sequence[Optional[Entry]],
        indices: Sequence[int],
    ) -> Optional[str]:
        """
        Combined label for a group marker, or None when nothing resolves.
        """

    @abstractmethod
    def order_entries(
        self, items: List[Tuple[int, Entry]]
    ) -> List[Tuple[int, Entry]]:
        """
        Bibliography order for (cited index, entry) pairs given in citation order.
        """


class NumericClass(CitationClass):
    numeric = True

    def in_text(self, entry: Optional[Entry], index: Optional[int]) -> Optional[str]:
        if index is None:
            return None
        return f"[{index}]"

    def group_text(
        self,
        entries: Sequence[Optional[Entry]],
        indices: Sequence[int],
    ) -> Optional[str]:
        if not indices:
            return None
        return format_group(indices)

    def order_entries(
        self, items: List[Tuple[int, Entry]]
    ) -> List[Tuple[int, Entry]]:
        return list(items)


class AuthorYearClass(CitationClass):
    numeric = False

    def in_text(self, entry: Optional[Entry], index: Optional[int]) -> Optional[str]:
        if entry is None:
            return None
        return f"({first_author_surname(entry)}, {entry_year(entry)})"

    def group_text(
        self,
        entries: Sequence[Optional[Entry]],
        indices: Sequence[int],
    ) -> Optional[str]:
        parts = [
            strip_in_text(label)
            for label in (self.in_text(e, None) for e in entries)
            if label
        ]
        if not parts:
            return None
        return "(" + "; ".join(parts) + ")"

    def order_entries(
        self, items: List[Tuple[int, Entry]]
    ) -> List[Tuple[int, Entry]]:
        return sorted(
            items,
            key=lambda item: (
                first_author_surname(item[1]).casefold(),
                _author_field(item[1]).casefold(),
            ),
        )


NUMERIC_CLASS = NumericClass()
AUTHOR_YEAR_CLASS = AuthorYearClass()


def format_in_text(entry: Optional[Entry], style: Union[str, Style], index: int) -> str:
    sty = Style.parse(style)
    label = sty.citation_class.in_text(entry, index)
    if label is None:
        # Author-year with no entry at all.
        return f"({ANON}, {NO_DATE})"
    return label


# ---------------------------------------------------------------------------
# Bibliography lines
# ---------------------------------------------------------------------------

@dataclass
class _Parts:
    author: str
    year: str
    title: str
    container: str
    volume: str
    number: str
    pages: str
    doi: str

    @classmethod
    def of(cls, entry: Entry) -> "_Parts":
        def clean(value: str) -> str:
            # BibTeX values may wrap across lines
            return " ".join(value.split())

        return cls(
            author=clean(_author_field(entry)) or ANON,
            year=entry_year(entry),
            title=clean(entry.field("title")),
            container=clean(entry.field("journal") or entry.field("booktitle")),
            volume=clean(entry.field("volume")),
            number=clean(entry.field("number")),
            pages=clean(entry.field("pages")),
            doi=entry.field("doi").strip(),
        )

    @property
    def doi_link(self) -> str:
        return f" https://doi.org/{self.doi}" if self.doi else ""

    @property
    def volume_issue(self) -> str:
        """
        "12 (3)", "12", "(3)" or "".
        """
        issue = f"({self.number})" if self.number else ""
        return _words(self.volume, issue)


# Templates only ever join the pieces that are present, so field values
# (titles with their own colons or commas) pass through untouched.

def _words(*bits: str) -> str:
    return " ".join(b for b in bits if b)


def _clause(*bits: str) -> str:
    return ", ".join(b for b in bits if b)


def _sentence(text: str) -> str:
    text = text.strip()
    if not text or text[-1] in ".?!":
        return text
    return text + "."


def _sentences(*parts: str) -> str:
    return _words(*(_sentence(p) for p in parts))


def _format_apa(p: _Parts, index: int) -> str:
    return _sentences(
        f"{p.author} ({p.year})",
        p.title,
        _clause(p.container, p.volume_issue, p.pages),
    ) + p.doi_link


def _format_mla(p: _Parts, index: int) -> str:
    title = f'"{_sentence(p.title)}"' if p.title else ""
    tail = _clause(
        p.container,
        f"vol. {p.volume}" if p.volume else "",
        f"no. {p.number}" if p.number else "",
        p.year,
        f"pp. {p.pages}" if p.pages else "",
    )
    return _words(_sentence(p.author), title, _sentence(tail))


def _format_harvard(p: _Parts, index: int) -> str:
    return _sentences(
        _clause(p.author, p.year),
        p.title,
        _clause(p.container, p.volume_issue, p.pages),
    )


def _format_acs(p: _Parts, index: int) -> str:
    source = _clause(_words(p.container, p.year), p.volume_issue, p.pages)
    return f"{index}. " + _sentences(p.author, p.title, source)


def _format_ieee(p: _Parts, index: int) -> str:
    issue = f"({p.number})" if p.number else ""
    source = _clause(_words(p.container, p.volume + issue), p.pages, p.year)
    title = f"“{p.title},”" if p.title else ""
    return f"[{index}] " + _words(_sentence(p.author), _sentence(_words(title, source))) + p.doi_link


def _format_vancouver(p: _Parts, index: int) -> str:
    source = _words(p.container, p.year)
    if p.volume:
        source += f";{p.volume}"
    if p.number:
        source += f"({p.number})"
    if p.pages:
        source += f":{p.pages}"
    return f"{index}. " + _sentences(p.author, p.title, source)


BIBLIOGRAPHY_FORMATTERS: Dict[Style, Callable[[_Parts, int], str]] = {
    Style.APA: _format_apa,
    Style.MLA: _format_mla,
    Style.HARVARD: _format_harvard,
    Style.ACS: _format_acs,
    Style.IEEE: _format_ieee,
    Style.NUMERIC: _format_ieee,
    Style.VANCOUVER: _format_vancouver,
}


def format_bibliography_entry(entry: Entry, style: Union[str, Style], index: int) -> str:
    """
    Render one reference line for `entry` in `style`.

    Missing fields are left out together with their separators; only the
    author ("Anon") and year ("n.d.") are substituted.
    """
    sty = Style.parse(style)
    formatter = BIBLIOGRAPHY_FORMATTERS[sty]
    return formatter(_Parts.of(entry), index)
