# wordref/web/models.py

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from wordref.merge import MergeOutcome
from wordref.models.entry import Entry
from wordref.sync import RefreshReport
from wordref.workspace import AddResult, CiteResult


class StyleRequest(BaseModel):
    style: Optional[str] = Field(
        None,
        description="Citation style; the workspace's current style when omitted.",
    )


class BibtexRequest(BaseModel):
    bibtex: str = Field(..., description="One or more raw BibTeX records.")
    note_where: str = Field("", description="Location for a note attached to each new entry.")
    note_text: str = Field("", description="Note text attached to each new entry.")
    cite: bool = Field(False, description="Also cite every newly added entry.")
    style: Optional[str] = None


class CiteRequest(BaseModel):
    entry_id: str
    style: Optional[str] = None


class SelectionRequest(BaseModel):
    paragraph: int = Field(..., ge=0)
    start: int = Field(..., ge=0)
    end: Optional[int] = Field(None, ge=0, description="Omit for a collapsed caret.")


class DocumentRequest(BaseModel):
    markup: str = Field(..., description="Document markup, one paragraph per line.")


class RefreshOut(BaseModel):
    """
    Outcome of a full refresh. `dropped` is set when another refresh was
    already running and this one never started.
    """
    dropped: bool = False
    style: Optional[str] = None
    order: List[str] = Field(default_factory=list)
    markers: int = 0
    rewritten: int = 0
    failures: List[str] = Field(default_factory=list)
    bibliography: List[str] = Field(default_factory=list)
    dangling: List[str] = Field(default_factory=list)

    @classmethod
    def of(cls, report: Optional[RefreshReport]) -> "RefreshOut":
        if report is None:
            return cls(dropped=True)
        return cls(
            style=report.style.value,
            order=report.order,
            markers=report.markers,
            rewritten=report.rewritten,
            failures=report.failures,
            bibliography=report.bibliography,
            dangling=report.dangling,
        )


class CiteOut(BaseModel):
    entry_id: str
    text: str
    method: str
    merged: int = Field(0, description="Adjacent runs merged after the insert.")
    refresh: RefreshOut

    @classmethod
    def of(cls, result: CiteResult) -> "CiteOut":
        return cls(
            entry_id=result.insert.entry_id,
            text=result.insert.text,
            method=result.insert.method,
            merged=len(result.merged),
            refresh=RefreshOut.of(result.report),
        )


class DuplicateOut(BaseModel):
    entry_id: str
    existing_id: str
    matched_by: str


class AddOut(BaseModel):
    added: List[str] = Field(default_factory=list)
    duplicates: List[DuplicateOut] = Field(default_factory=list)
    citations: List[CiteOut] = Field(default_factory=list)

    @classmethod
    def of(cls, result: AddResult, cites: Optional[List[CiteResult]] = None) -> "AddOut":
        return cls(
            added=result.added,
            duplicates=[
                DuplicateOut(entry_id=a, existing_id=b, matched_by=c)
                for a, b, c in result.duplicates
            ],
            citations=[CiteOut.of(c) for c in cites or []],
        )


class MergeOut(BaseModel):
    ok: bool
    message: str
    entry_ids: List[str] = Field(default_factory=list)
    refresh: Optional[RefreshOut] = None

    @classmethod
    def of(cls, pair: Tuple[MergeOutcome, Optional[RefreshReport]]) -> "MergeOut":
        outcome, report = pair
        return cls(
            ok=outcome.ok,
            message=outcome.message,
            entry_ids=outcome.entry_ids,
            refresh=RefreshOut.of(report) if outcome.ok else None,
        )


class DocumentOut(BaseModel):
    markup: str
    text: str
    order: List[str] = Field(default_factory=list)
    style: str


class LibraryOut(BaseModel):
    count: int
    entries: Dict[str, Entry] = Field(default_factory=dict)
