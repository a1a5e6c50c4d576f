# wordref/workspace.py

"""
One object per open document: the host, the persisted library and cited
order, and the refresh machinery, with the user-facing actions on top.

Both the CLI and the HTTP API go through this class; neither touches the
engine modules directly.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from wordref.bibtex import find_existing, parse_bibtex, search_library
from wordref.config.settings import Settings, get_settings
from wordref.document.host import DocumentHost
from wordref.insert import InsertOutcome, insert_citation
from wordref.merge import MergeOutcome, merge_adjacent, merge_selection, unmerge_selection
from wordref.models.entry import Entry, Note
from wordref.order import OrderTracker
from wordref.storage import KeyValueStore, LibraryStore, OrderStore
from wordref.styles import Style
from wordref.sync import RefreshReport, StyleDebouncer, SyncPipeline

logger = logging.getLogger("wordref.workspace")

StyleLike = Union[str, Style, None]


@dataclass
class AddResult:
    added: List[str] = field(default_factory=list)
    # (incoming id, existing id, matched by)
    duplicates: List[Tuple[str, str, str]] = field(default_factory=list)


@dataclass
class CiteResult:
    insert: InsertOutcome
    merged: List[MergeOutcome] = field(default_factory=list)
    report: Optional[RefreshReport] = None


class CitationWorkspace:
    def __init__(
        self,
        host: DocumentHost,
        store: KeyValueStore,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.host = host
        self.library = LibraryStore(store)
        self.tracker = OrderTracker(OrderStore(store))
        self.pipeline = SyncPipeline(
            host,
            self.library,
            self.tracker,
            heading=self.settings.BIBLIOGRAPHY_HEADING,
        )
        self.debouncer = StyleDebouncer(self.pipeline, delay=self.settings.style_debounce_seconds)
        self.style = Style.parse(self.settings.DEFAULT_STYLE)

    def _style(self, style: StyleLike) -> Style:
        return self.style if style is None else Style.parse(style)

    # ------------------------------------------------------------------
    # Library
    # ------------------------------------------------------------------
    def add_entries(self, bibtex: str, note_where: str = "", note_text: str = "") -> AddResult:
        """
        Parse `bibtex` and add every entry not already in the library.

        Raises ParseFailure before anything is stored if the input is bad.
        """
        entries = parse_bibtex(bibtex)
        library = self.library.get()
        result = AddResult()

        fresh: List[Entry] = []
        for entry in entries:
            match = find_existing(entry, library)
            if match is not None:
                existing_id, reason = match
                logger.info("%s already in library as %s (matched by %s)", entry.id, existing_id, reason)
                result.duplicates.append((entry.id, existing_id, reason))
                continue
            if note_where.strip() or note_text.strip():
                entry.notes = [Note(where=note_where.strip(), text=note_text.strip())]
            library[entry.id] = entry
            fresh.append(entry)
            result.added.append(entry.id)

        if fresh:
            self.library.upsert_many(fresh)
        return result

    def entries(self) -> Dict[str, Entry]:
        return self.library.get()

    def search(self, query: str) -> List[Entry]:
        return search_library(self.library.get(), query)

    def remove_entry(self, entry_id: str) -> bool:
        """
        Drop an entry from the library. Markers citing it stay in the
        document; the next refresh leaves it out of the bibliography.
        """
        return self.library.remove(entry_id)

    async def clear_library(self, style: StyleLike = None) -> Optional[RefreshReport]:
        self.library.clear()
        self.tracker.clear()
        return await self.refresh(style)

    # ------------------------------------------------------------------
    # Citing
    # ------------------------------------------------------------------
    async def cite(self, entry_id: str, style: StyleLike = None) -> CiteResult:
        """
        Insert a citation for a library entry, then resynchronize.

        Raises KeyError for an id the library does not hold.
        """
        sty = self._style(style)
        library = self.library.get()
        entry = library.get(entry_id)
        if entry is None:
            raise KeyError(entry_id)

        outcome = await insert_citation(
            self.host,
            entry,
            sty,
            self.tracker,
            library,
            force_append_end=self.settings.force_append_end,
            plain_text_fallback=self.settings.plain_text_fallback,
            merge_into_neighbour=not self.settings.safe_mode_no_merge,
        )

        merged: List[MergeOutcome] = []
        if sty.is_numeric and self.settings.auto_merge_adjacent and not self.settings.safe_mode_no_merge:
            merged = await merge_adjacent(self.host, self.tracker, library, sty)

        report = await self.pipeline.refresh_all(sty)
        return CiteResult(outcome, merged, report)

    async def add_and_cite(
        self,
        bibtex: str,
        note_where: str = "",
        note_text: str = "",
        style: StyleLike = None,
    ) -> Tuple[AddResult, List[CiteResult]]:
        added = self.add_entries(bibtex, note_where, note_text)
        cites = [await self.cite(entry_id, style) for entry_id in added.added]
        return added, cites

    # ------------------------------------------------------------------
    # Document-wide actions
    # ------------------------------------------------------------------
    async def refresh(self, style: StyleLike = None) -> Optional[RefreshReport]:
        return await self.pipeline.refresh_all(self._style(style))

    update_bibliography = refresh

    async def change_style(self, style: StyleLike) -> Optional[RefreshReport]:
        """
        Switch style and wait for the debounced refresh. A newer change
        arriving in the meantime supersedes this one, which then reports None.
        """
        self.style = Style.parse(style)
        task = self.debouncer.request(self.style)
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    async def reset_numbering(self, style: StyleLike = None) -> Optional[RefreshReport]:
        """
        Forget the stored order and renumber from the document alone.
        """
        self.tracker.clear()
        return await self.refresh(style)

    async def merge_selection(self, style: StyleLike = None) -> Tuple[MergeOutcome, Optional[RefreshReport]]:
        sty = self._style(style)
        outcome = await merge_selection(self.host, self.tracker, self.library.get(), sty)
        report = await self.refresh(sty) if outcome.ok else None
        return outcome, report

    async def unmerge_selection(self, style: StyleLike = None) -> Tuple[MergeOutcome, Optional[RefreshReport]]:
        sty = self._style(style)
        outcome = await unmerge_selection(self.host, self.tracker, self.library.get(), sty)
        report = await self.refresh(sty) if outcome.ok else None
        return outcome, report
