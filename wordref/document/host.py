# wordref/document/host.py

"""
The slice of a document host the citation engine depends on.

A host exposes markers (addressable, taggable spans) through opaque
handles. It does not expose a global order: the only way to learn where a
marker sits is to compare its location against another marker. Every call
is a coroutine because on a real editor each one may be a round trip.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Hashable, List, Optional, Union


class LocationRelation(str, Enum):
    """
    Result of comparing the location of marker A with marker B.
    """
    BEFORE = "before"
    AFTER = "after"
    SAME = "same"
    INSIDE = "inside"
    EQUAL = "equal"


@dataclass(frozen=True)
class MarkerRef:
    """
    A marker as reported by the host: its handle and its raw tag.
    """
    handle: Hashable
    tag: str


# A paragraph's contents: markers interleaved with plain text runs.
ParagraphItem = Union[MarkerRef, str]


class DocumentHost(ABC):

    # ------------------------------------------------------------------
    # Discovery / ordering
    # ------------------------------------------------------------------
    @abstractmethod
    async def list_markers(self) -> List[MarkerRef]:
        """
        Every tagged marker in the document, in host discovery order
        (not necessarily reading order).
        """

    @abstractmethod
    async def compare_location(self, a: Hashable, b: Hashable) -> LocationRelation:
        """
        Where marker `a` sits relative to marker `b`.
        """

    @abstractmethod
    async def paragraph_contents(self) -> List[List[ParagraphItem]]:
        """
        Body paragraphs in reading order, each as its sequence of markers
        and text runs. Headings and the bibliography block are excluded.
        """

    # ------------------------------------------------------------------
    # Marker content
    # ------------------------------------------------------------------
    @abstractmethod
    async def get_marker_text(self, handle: Hashable) -> str:
        ...

    @abstractmethod
    async def set_marker(self, handle: Hashable, tag: str, text: str) -> None:
        """
        Rewrite a marker in place with a new tag and display text.
        """

    @abstractmethod
    async def delete_marker(self, handle: Hashable, keep_content: bool = False) -> None:
        ...

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------
    @abstractmethod
    async def insert_marker_before(self, anchor: Hashable, tag: str, text: str) -> Hashable:
        ...

    @abstractmethod
    async def insert_text_before(self, anchor: Hashable, text: str) -> None:
        ...

    @abstractmethod
    async def insert_marker_at_selection(self, tag: str, text: str) -> Hashable:
        ...

    @abstractmethod
    async def insert_marker_at_end(self, tag: str, text: str) -> Hashable:
        """
        Insert a marker in a new paragraph at the end of the document body.
        """

    @abstractmethod
    async def insert_text_at_selection(self, text: str) -> None:
        ...

    @abstractmethod
    async def insert_text_at_end(self, text: str) -> None:
        ...

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    @abstractmethod
    async def selection_markers(self) -> List[MarkerRef]:
        """
        Markers the current selection covers or sits inside.
        """

    @abstractmethod
    async def marker_before_selection(self) -> Optional[MarkerRef]:
        """
        The marker whose end touches the start of a collapsed selection.
        """

    # ------------------------------------------------------------------
    # Bibliography section
    # ------------------------------------------------------------------
    @abstractmethod
    async def write_bibliography(self, lines: List[str], heading: str = "References") -> None:
        """
        Replace the bibliography block with `lines`, creating the heading
        (with `heading` as its text) first if the document has none.
        """

    @abstractmethod
    async def read_bibliography(self) -> List[str]:
        ...
