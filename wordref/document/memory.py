# wordref/document/memory.py

"""
In-memory document host.

A document is a list of paragraphs; each paragraph is a list of segments,
either plain text (`str`) or a `MarkerSpan`. Paragraphs are one of three
kinds: body text, headings, and the bibliography block that follows the
references heading.

Like a real editor's content-control collection, `list_markers` reports
markers in creation order, not reading order, so callers have to go
through `compare_location` to put them in sequence.

Documents can be written in a small markup, one paragraph per line:

    # Introduction
    Graphs {{cite:smith2020}} and trees {{group:a,b|[2,3]}}.
    Select {{[}}{{cite:x}}{{cite:y}}{{]}} or put the caret here {{^}}.
    # References
    [1] Smith, J. ...

`{{tag}}` / `{{tag|text}}` is a marker, `{{^}}` a caret, `{{[}}` and
`{{]}}` delimit a selection. Lines after a references heading (up to the
next heading) form the bibliography block.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Tuple, Union

from wordref.document.host import (
    DocumentHost,
    LocationRelation,
    MarkerRef,
    ParagraphItem,
)
from wordref.errors import HostOperationFailure

BODY = "body"
HEADING = "heading"
BIBLIOGRAPHY = "bibliography"

_TOKEN_RE = re.compile(r"\{\{([^{}|]+)(?:\|([^{}]*))?\}\}")


@dataclass
class MarkerSpan:
    uid: int
    tag: str
    text: str = ""


Segment = Union[str, MarkerSpan]


@dataclass
class Paragraph:
    segments: List[Segment] = field(default_factory=list)
    kind: str = BODY

    def text(self) -> str:
        return "".join(s.text if isinstance(s, MarkerSpan) else s for s in self.segments)


@dataclass
class Selection:
    """
    A selection inside one paragraph, as segment slot indices.

    Slot i sits just before segment i; `start == end` is a collapsed caret.
    """
    paragraph: int
    start: int
    end: int

    @property
    def collapsed(self) -> bool:
        return self.start == self.end


def is_bibliography_heading(text: str, heading: Optional[str] = None) -> bool:
    t = text.strip().lower()
    if heading and t == heading.strip().lower():
        return True
    return t == "references" or "bibliography" in t


class MemoryDocument(DocumentHost):
    def __init__(
        self,
        paragraphs: Optional[List[Paragraph]] = None,
        selection: Optional[Selection] = None,
        heading: Optional[str] = None,
    ) -> None:
        self.paragraphs: List[Paragraph] = list(paragraphs or [])
        self.selection: Optional[Selection] = selection
        # custom references heading, on top of "References" / "Bibliography"
        self.heading: Optional[str] = heading
        # Number of compare_location calls served; handy for cost checks.
        self.comparisons = 0
        self._next_uid = 1 + max(
            (s.uid for p in self.paragraphs for s in p.segments if isinstance(s, MarkerSpan)),
            default=0,
        )

    # ------------------------------------------------------------------
    # Construction / rendering
    # ------------------------------------------------------------------
    @classmethod
    def from_markup(cls, markup: str, heading: Optional[str] = None) -> "MemoryDocument":
        """
        `heading` names a custom references heading, so the lines under it
        read back as the bibliography block.
        """
        doc = cls(heading=heading)
        in_bibliography = False
        sel_start: Optional[Tuple[int, int]] = None
        sel_end: Optional[Tuple[int, int]] = None

        for line in markup.splitlines():
            if not line.strip():
                continue

            if line.startswith("# "):
                title = line[2:].strip()
                doc.paragraphs.append(Paragraph([title], kind=HEADING))
                in_bibliography = is_bibliography_heading(title, doc.heading)
                continue

            kind = BIBLIOGRAPHY if in_bibliography else BODY
            para = Paragraph(kind=kind)
            p_idx = len(doc.paragraphs)
            pos = 0
            for m in _TOKEN_RE.finditer(line):
                if m.start() > pos:
                    para.segments.append(line[pos:m.start()])
                pos = m.end()

                tag = m.group(1).strip()
                slot = (p_idx, len(para.segments))
                if tag == "^":
                    sel_start = sel_end = slot
                elif tag == "[":
                    sel_start = slot
                elif tag == "]":
                    sel_end = slot
                else:
                    para.segments.append(doc._new_span(tag, m.group(2) or ""))
            if pos < len(line):
                para.segments.append(line[pos:])
            doc.paragraphs.append(para)

        if sel_start is not None:
            if sel_end is None or sel_end[0] != sel_start[0]:
                sel_end = sel_start
            doc.selection = Selection(sel_start[0], sel_start[1], sel_end[1])
        return doc

    def to_markup(self) -> str:
        lines: List[str] = []
        for p_idx, para in enumerate(self.paragraphs):
            if para.kind == HEADING:
                lines.append(f"# {para.text()}")
                continue
            out: List[str] = []
            for s_idx, seg in enumerate(para.segments):
                out.append(self._selection_token(p_idx, s_idx))
                if isinstance(seg, MarkerSpan):
                    out.append(f"{{{{{seg.tag}|{seg.text}}}}}")
                else:
                    out.append(seg)
            out.append(self._selection_token(p_idx, len(para.segments)))
            lines.append("".join(out))
        return "\n".join(lines)

    def _selection_token(self, p_idx: int, slot: int) -> str:
        sel = self.selection
        if sel is None or sel.paragraph != p_idx:
            return ""
        if sel.collapsed:
            return "{{^}}" if slot == sel.start else ""
        if slot == sel.start:
            return "{{[}}"
        if slot == sel.end:
            return "{{]}}"
        return ""

    def render(self) -> str:
        """
        Plain text as a reader would see it.
        """
        return "\n".join(p.text() for p in self.paragraphs)

    def to_dict(self) -> Dict[str, Any]:
        paragraphs = []
        for para in self.paragraphs:
            segments = []
            for seg in para.segments:
                if isinstance(seg, MarkerSpan):
                    segments.append({"marker": {"uid": seg.uid, "tag": seg.tag, "text": seg.text}})
                else:
                    segments.append({"text": seg})
            paragraphs.append({"kind": para.kind, "segments": segments})

        selection = None
        if self.selection is not None:
            selection = {
                "paragraph": self.selection.paragraph,
                "start": self.selection.start,
                "end": self.selection.end,
            }
        return {"paragraphs": paragraphs, "selection": selection, "heading": self.heading}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryDocument":
        paragraphs: List[Paragraph] = []
        for raw in data.get("paragraphs", []):
            segments: List[Segment] = []
            for seg in raw.get("segments", []):
                if "marker" in seg:
                    m = seg["marker"]
                    segments.append(MarkerSpan(int(m["uid"]), m["tag"], m.get("text", "")))
                else:
                    segments.append(seg.get("text", ""))
            paragraphs.append(Paragraph(segments, kind=raw.get("kind", BODY)))

        selection = None
        if data.get("selection"):
            s = data["selection"]
            selection = Selection(int(s["paragraph"]), int(s["start"]), int(s["end"]))
        return cls(paragraphs, selection, heading=data.get("heading"))

    # ------------------------------------------------------------------
    # Selection helpers (the "user" side of the host)
    # ------------------------------------------------------------------
    def select(self, paragraph: int, start: int, end: Optional[int] = None) -> None:
        if not 0 <= paragraph < len(self.paragraphs):
            raise IndexError(f"No paragraph {paragraph}")
        size = len(self.paragraphs[paragraph].segments)
        end = start if end is None else end
        if not 0 <= start <= end <= size:
            raise IndexError(f"Slots {start}..{end} outside paragraph {paragraph} (0..{size})")
        self.selection = Selection(paragraph, start, end)

    def select_marker(self, handle: Hashable) -> None:
        p, s = self._locate(handle)
        self.selection = Selection(p, s, s + 1)

    def caret_after(self, handle: Hashable) -> None:
        p, s = self._locate(handle)
        self.selection = Selection(p, s + 1, s + 1)

    def clear_selection(self) -> None:
        self.selection = None

    def marker_texts(self) -> List[str]:
        """
        Display text of every marker in reading order.
        """
        return [
            s.text
            for p in self.paragraphs
            for s in p.segments
            if isinstance(s, MarkerSpan)
        ]

    def marker_tags(self) -> List[str]:
        return [
            s.tag
            for p in self.paragraphs
            for s in p.segments
            if isinstance(s, MarkerSpan)
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _new_span(self, tag: str, text: str) -> MarkerSpan:
        span = MarkerSpan(self._next_uid, tag, text)
        self._next_uid += 1
        return span

    def _locate(self, handle: Hashable) -> Tuple[int, int]:
        for p_idx, para in enumerate(self.paragraphs):
            for s_idx, seg in enumerate(para.segments):
                if isinstance(seg, MarkerSpan) and seg.uid == handle:
                    return p_idx, s_idx
        raise HostOperationFailure(f"Marker {handle!r} is not in the document", operation="locate")

    def _span(self, handle: Hashable) -> MarkerSpan:
        p, s = self._locate(handle)
        return self.paragraphs[p].segments[s]  # type: ignore[return-value]

    def _insert_segment(self, p_idx: int, slot: int, seg: Segment) -> None:
        self.paragraphs[p_idx].segments.insert(slot, seg)
        sel = self.selection
        if sel is None or sel.paragraph != p_idx:
            return
        if sel.collapsed:
            if sel.start >= slot:
                sel.start += 1
                sel.end += 1
            return
        # content inserted at the start boundary lands before the selection,
        # at the end boundary after it
        if sel.start >= slot:
            sel.start += 1
        if sel.end > slot:
            sel.end += 1

    def _remove_segment(self, p_idx: int, slot: int) -> None:
        del self.paragraphs[p_idx].segments[slot]
        sel = self.selection
        if sel is not None and sel.paragraph == p_idx:
            if sel.start > slot:
                sel.start -= 1
            if sel.end > slot:
                sel.end -= 1

    def _insert_paragraph(self, index: int, para: Paragraph) -> None:
        self.paragraphs.insert(index, para)
        if self.selection is not None and self.selection.paragraph >= index:
            self.selection.paragraph += 1

    def _remove_paragraph(self, index: int) -> None:
        del self.paragraphs[index]
        sel = self.selection
        if sel is None:
            return
        if sel.paragraph == index:
            self.selection = None
        elif sel.paragraph > index:
            sel.paragraph -= 1

    def _anchor_index(self) -> Optional[int]:
        for idx, para in enumerate(self.paragraphs):
            if para.kind == HEADING and is_bibliography_heading(para.text(), self.heading):
                return idx
        return None

    def _body_end_index(self) -> int:
        anchor = self._anchor_index()
        return len(self.paragraphs) if anchor is None else anchor

    def _writable_selection(self, operation: str) -> Selection:
        sel = self.selection
        if sel is None:
            raise HostOperationFailure("There is no selection to insert at", operation=operation)
        if not 0 <= sel.paragraph < len(self.paragraphs):
            raise HostOperationFailure("Selection points outside the document", operation=operation)
        if self.paragraphs[sel.paragraph].kind != BODY:
            raise HostOperationFailure(
                "Cannot insert a citation inside a heading or the bibliography",
                operation=operation,
            )
        return sel

    def _insert_at_selection(self, seg: Segment, operation: str) -> None:
        sel = self._writable_selection(operation)
        slot = sel.end
        self.paragraphs[sel.paragraph].segments.insert(slot, seg)
        sel.start = sel.end = slot + 1

    # ------------------------------------------------------------------
    # DocumentHost
    # ------------------------------------------------------------------
    async def list_markers(self) -> List[MarkerRef]:
        spans = [
            s
            for p in self.paragraphs
            for s in p.segments
            if isinstance(s, MarkerSpan)
        ]
        spans.sort(key=lambda s: s.uid)
        return [MarkerRef(s.uid, s.tag) for s in spans]

    async def compare_location(self, a: Hashable, b: Hashable) -> LocationRelation:
        self.comparisons += 1
        if a == b:
            return LocationRelation.EQUAL
        pos_a = self._locate(a)
        pos_b = self._locate(b)
        if pos_a < pos_b:
            return LocationRelation.BEFORE
        if pos_a > pos_b:
            return LocationRelation.AFTER
        return LocationRelation.SAME

    async def paragraph_contents(self) -> List[List[ParagraphItem]]:
        out: List[List[ParagraphItem]] = []
        for para in self.paragraphs:
            if para.kind != BODY:
                continue
            out.append([
                MarkerRef(s.uid, s.tag) if isinstance(s, MarkerSpan) else s
                for s in para.segments
            ])
        return out

    async def get_marker_text(self, handle: Hashable) -> str:
        return self._span(handle).text

    async def set_marker(self, handle: Hashable, tag: str, text: str) -> None:
        span = self._span(handle)
        span.tag = tag
        span.text = text

    async def delete_marker(self, handle: Hashable, keep_content: bool = False) -> None:
        p, s = self._locate(handle)
        span = self.paragraphs[p].segments[s]
        if keep_content:
            self.paragraphs[p].segments[s] = span.text  # type: ignore[union-attr]
        else:
            self._remove_segment(p, s)

    async def insert_marker_before(self, anchor: Hashable, tag: str, text: str) -> Hashable:
        p, s = self._locate(anchor)
        span = self._new_span(tag, text)
        self._insert_segment(p, s, span)
        return span.uid

    async def insert_text_before(self, anchor: Hashable, text: str) -> None:
        p, s = self._locate(anchor)
        self._insert_segment(p, s, text)

    async def insert_marker_at_selection(self, tag: str, text: str) -> Hashable:
        span = self._new_span(tag, text)
        self._insert_at_selection(span, "insert_marker_at_selection")
        return span.uid

    async def insert_marker_at_end(self, tag: str, text: str) -> Hashable:
        span = self._new_span(tag, text)
        self._insert_paragraph(self._body_end_index(), Paragraph([span]))
        return span.uid

    async def insert_text_at_selection(self, text: str) -> None:
        self._insert_at_selection(text, "insert_text_at_selection")

    async def insert_text_at_end(self, text: str) -> None:
        self._insert_paragraph(self._body_end_index(), Paragraph([text]))

    async def selection_markers(self) -> List[MarkerRef]:
        sel = self.selection
        if sel is None or sel.collapsed:
            return []
        segments = self.paragraphs[sel.paragraph].segments
        return [
            MarkerRef(seg.uid, seg.tag)
            for seg in segments[sel.start:sel.end]
            if isinstance(seg, MarkerSpan)
        ]

    async def marker_before_selection(self) -> Optional[MarkerRef]:
        sel = self.selection
        if sel is None or not sel.collapsed or sel.start == 0:
            return None
        seg = self.paragraphs[sel.paragraph].segments[sel.start - 1]
        if isinstance(seg, MarkerSpan):
            return MarkerRef(seg.uid, seg.tag)
        return None

    async def write_bibliography(self, lines: List[str], heading: str = "References") -> None:
        for idx in reversed(range(len(self.paragraphs))):
            if self.paragraphs[idx].kind == BIBLIOGRAPHY:
                self._remove_paragraph(idx)

        self.heading = heading
        anchor = self._anchor_index()
        if anchor is None:
            self._insert_paragraph(len(self.paragraphs), Paragraph([heading], kind=HEADING))
            anchor = len(self.paragraphs) - 1

        block = [Paragraph([line], kind=BIBLIOGRAPHY) for line in lines] or [
            Paragraph([""], kind=BIBLIOGRAPHY)
        ]
        for offset, para in enumerate(block, start=1):
            self._insert_paragraph(anchor + offset, para)

    async def read_bibliography(self) -> List[str]:
        lines = [p.text() for p in self.paragraphs if p.kind == BIBLIOGRAPHY]
        if lines == [""]:
            return []
        return lines
