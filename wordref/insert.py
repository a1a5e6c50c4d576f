# wordref/insert.py

"""
Put a new citation into the document.

Under numeric styles a citation typed inside, or directly after, an
existing citation joins it ("[2]" + new -> "[2,3]"). Otherwise a fresh
marker is inserted, falling back step by step when the host refuses:

    marker at selection -> marker at end of body -> plain text at
    selection -> plain text at end of body -> HostOperationFailure
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Hashable, Optional

from wordref.document.host import DocumentHost
from wordref.errors import HostOperationFailure
from wordref.merge import extend_marker
from wordref.models.entry import Entry
from wordref.models.marker import SingleMarker
from wordref.order import OrderTracker
from wordref.scanner import ScannedMarker, decode_refs
from wordref.styles import Style, format_in_text

logger = logging.getLogger("wordref.insert")

MERGED = "merged"
AT_SELECTION = "selection"
AT_END = "end"
TEXT_AT_SELECTION = "text-selection"
TEXT_AT_END = "text-end"


@dataclass
class InsertOutcome:
    entry_id: str
    text: str
    method: str
    handle: Optional[Hashable] = None

    @property
    def has_marker(self) -> bool:
        return self.handle is not None


async def _neighbour_citation(host: DocumentHost) -> Optional[ScannedMarker]:
    """
    The citation the selection sits in, or the one ending at the caret.
    """
    inside = decode_refs(await host.selection_markers())
    if len(inside) == 1:
        return inside[0]
    if inside:
        return None

    before = await host.marker_before_selection()
    if before is None:
        return None
    found = decode_refs([before])
    return found[0] if found else None


async def insert_citation(
    host: DocumentHost,
    entry: Entry,
    style: Style,
    tracker: OrderTracker,
    library: Dict[str, Entry],
    *,
    force_append_end: bool = False,
    plain_text_fallback: bool = True,
    merge_into_neighbour: bool = True,
) -> InsertOutcome:
    """
    Insert a citation for `entry` and report where it went.

    The id joins the cited order only when a marker carrying it ends up in
    the document; plain-text fallbacks and failures leave the order as it was.
    """
    style = Style.parse(style)
    previous = tracker.current()
    index = tracker.ensure_index(entry.id)
    try:
        outcome = await _place(
            host,
            entry,
            style,
            index,
            tracker,
            library,
            force_append_end=force_append_end,
            plain_text_fallback=plain_text_fallback,
            merge_into_neighbour=merge_into_neighbour,
        )
    except HostOperationFailure:
        tracker.rebuild(previous)
        raise
    if not outcome.has_marker:
        tracker.rebuild(previous)
    return outcome


async def _place(
    host: DocumentHost,
    entry: Entry,
    style: Style,
    index: int,
    tracker: OrderTracker,
    library: Dict[str, Entry],
    *,
    force_append_end: bool,
    plain_text_fallback: bool,
    merge_into_neighbour: bool,
) -> InsertOutcome:
    text = format_in_text(entry, style, index)
    tag = SingleMarker(entry.id).tag

    if force_append_end:
        handle = await host.insert_marker_at_end(tag, text)
        return InsertOutcome(entry.id, text, AT_END, handle)

    if style.is_numeric and merge_into_neighbour:
        target = await _neighbour_citation(host)
        if target is not None:
            outcome = await extend_marker(
                host, target, entry.id, style, tracker.current(), library
            )
            merged_text = await host.get_marker_text(target.handle)
            logger.info("Folded %s into neighbouring citation -> %s", entry.id, merged_text)
            return InsertOutcome(entry.id, merged_text, MERGED, outcome.handle)

    try:
        handle = await host.insert_marker_at_selection(tag, text)
        return InsertOutcome(entry.id, text, AT_SELECTION, handle)
    except HostOperationFailure as exc:
        logger.warning("Marker insert at selection failed (%s); retrying at end of document", exc)

    try:
        handle = await host.insert_marker_at_end(tag, text)
        return InsertOutcome(entry.id, text, AT_END, handle)
    except HostOperationFailure as exc:
        logger.warning("Marker insert at end of document failed (%s)", exc)

    if plain_text_fallback:
        try:
            await host.insert_text_at_selection(text)
            return InsertOutcome(entry.id, text, TEXT_AT_SELECTION)
        except HostOperationFailure as exc:
            logger.warning("Plain-text insert at selection failed (%s)", exc)
        try:
            await host.insert_text_at_end(text)
            return InsertOutcome(entry.id, text, TEXT_AT_END)
        except HostOperationFailure as exc:
            logger.warning("Plain-text insert at end of document failed (%s)", exc)

    raise HostOperationFailure(
        f"Could not insert a citation for {entry.id!r}",
        operation="insert_citation",
    )
