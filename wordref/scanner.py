# wordref/scanner.py

"""
Find citation markers and put them in reading order.

The host has no "give me everything in document order" call, only a
pairwise location comparison, and each comparison may be a round trip.
Markers are therefore ordered with a stable insertion sort: each marker,
in discovery order, goes in front of the first already-placed marker it
compares BEFORE. Any other answer (AFTER, SAME, INSIDE, EQUAL) keeps
scanning, so markers the host reports at the same position stay in
discovery order.

Worst case is O(n^2) comparisons, fine for the tens of markers a document
typically holds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, Iterable, List, Sequence, TypeVar

from wordref.document.host import DocumentHost, LocationRelation, MarkerRef
from wordref.models.marker import GroupMarker, Marker, SingleMarker, decode_tag

logger = logging.getLogger("wordref.scanner")


@dataclass(frozen=True)
class ScannedMarker:
    handle: Hashable
    marker: Marker

    @property
    def ids(self):
        return self.marker.ids

    @property
    def is_group(self) -> bool:
        return isinstance(self.marker, GroupMarker)

    @property
    def is_single(self) -> bool:
        return isinstance(self.marker, SingleMarker)


T = TypeVar("T", MarkerRef, ScannedMarker)


async def sort_by_location(host: DocumentHost, items: Sequence[T]) -> List[T]:
    """
    Stable insertion sort of markers by document position.
    """
    ordered: List[T] = []
    for item in items:
        slot = len(ordered)
        for i, placed in enumerate(ordered):
            relation = await host.compare_location(item.handle, placed.handle)
            if relation == LocationRelation.BEFORE:
                slot = i
                break
        ordered.insert(slot, item)
    return ordered


def decode_refs(refs: Iterable[MarkerRef]) -> List[ScannedMarker]:
    """
    Keep only refs whose tag is a citation marker.
    """
    scanned: List[ScannedMarker] = []
    for ref in refs:
        marker = decode_tag(ref.tag)
        if marker is not None:
            scanned.append(ScannedMarker(ref.handle, marker))
    return scanned


async def scan_document(host: DocumentHost) -> List[ScannedMarker]:
    """
    Every citation marker in the document, in reading order.

    Read-only: the document is never touched.
    """
    refs = await host.list_markers()
    scanned = decode_refs(refs)
    ordered = await sort_by_location(host, scanned)
    logger.debug("Scanned %d citation markers (%d host markers)", len(ordered), len(refs))
    return ordered


def flatten_ids(scanned: Iterable[ScannedMarker]) -> List[str]:
    """
    Raw id sequence in reading order; group ids expand in their internal
    order at the group's position.
    """
    ids: List[str] = []
    for item in scanned:
        ids.extend(item.ids)
    return ids
