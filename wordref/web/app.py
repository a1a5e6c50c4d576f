# wordref/web/app.py

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from wordref.config.settings import settings
from wordref.document.io import load_document, save_document
from wordref.document.memory import MemoryDocument
from wordref.errors import HostOperationFailure, ParseFailure
from wordref.export import EXPORTERS, export_library
from wordref.storage import JsonFileStore
from wordref.web.models import (
    AddOut,
    BibtexRequest,
    CiteOut,
    CiteRequest,
    DocumentOut,
    DocumentRequest,
    LibraryOut,
    MergeOut,
    RefreshOut,
    SelectionRequest,
    StyleRequest,
)
from wordref.web.security import api_key_auth, rate_limiter
from wordref.workspace import CitationWorkspace

logger = logging.getLogger("wordref.web")
logging.basicConfig(level=logging.INFO)

EXPORT_MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "xml": "application/xml",
}


# -------------------------------------------------------------------
# Lifespan: open the workspace once at startup
# -------------------------------------------------------------------

def build_workspace(document: Optional[MemoryDocument] = None) -> CitationWorkspace:
    """
    Workspace over the configured document and store. A missing or
    unreadable document starts out empty.
    """
    if document is None:
        path = settings.document_path
        try:
            document = (
                load_document(path, heading=settings.BIBLIOGRAPHY_HEADING) if path.exists() else None
            )
        except Exception:
            logger.exception("Failed to load document %s; starting with an empty one", path)
            document = None
    if document is None:
        logger.info("No saved document found; starting with an empty document")
        document = MemoryDocument(heading=settings.BIBLIOGRAPHY_HEADING)
    return CitationWorkspace(document, JsonFileStore(settings.store_path), settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.workspace = build_workspace()
    yield
    _persist(app)


app = FastAPI(
    title="WordRef API",
    description="Insert citations, keep their numbering in order and the bibliography in sync.",
    version="0.1.0",
    lifespan=lifespan,
)

# -------------------------------------------------------------------
# CORS
# -------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log method, path, and response status.
    """
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    start = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start) * 1000
    logger.info(
        f"Completed {request.method} {request.url.path} "
        f"with status {response.status_code} in {duration_ms:.2f}ms"
    )

    return response


# -------------------------------------------------------------------
# Error mapping
# -------------------------------------------------------------------


@app.exception_handler(ParseFailure)
async def parse_failure_handler(request: Request, exc: ParseFailure) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(HostOperationFailure)
async def host_failure_handler(request: Request, exc: HostOperationFailure) -> JSONResponse:
    logger.warning("Host rejected %s: %s", exc.operation or "an edit", exc)
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "operation": exc.operation},
    )


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------


def _get_workspace(app_obj: FastAPI) -> CitationWorkspace:
    """
    Fetch the workspace from app.state, opening it if needed.
    """
    ws = getattr(app_obj.state, "workspace", None)
    if ws is None:
        ws = build_workspace()
        app_obj.state.workspace = ws
    return ws


def _persist(app_obj: FastAPI) -> None:
    ws = getattr(app_obj.state, "workspace", None)
    if ws is not None and isinstance(ws.host, MemoryDocument):
        save_document(ws.host, settings.document_path)


def workspace_dep(request: Request) -> CitationWorkspace:
    return _get_workspace(request.app)


edit_guards = [Depends(api_key_auth), Depends(rate_limiter)]


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------


@app.get("/health", summary="Health check")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/library", response_model=LibraryOut, summary="List or search library entries")
async def get_library(
    q: Optional[str] = Query(None, description="Case-insensitive search text."),
    ws: CitationWorkspace = Depends(workspace_dep),
) -> LibraryOut:
    entries = ws.search(q) if q else list(ws.entries().values())
    return LibraryOut(count=len(entries), entries={e.id: e for e in entries})


@app.post(
    "/library/bibtex",
    response_model=AddOut,
    dependencies=edit_guards,
    summary="Add BibTeX entries, optionally citing each new one",
)
async def add_bibtex(
    payload: BibtexRequest,
    request: Request,
    ws: CitationWorkspace = Depends(workspace_dep),
) -> AddOut:
    """
    Malformed BibTeX is a 400 and leaves the library untouched. Entries
    already present (same key, DOI or title) are reported as duplicates.
    """
    if payload.cite:
        added, cites = await ws.add_and_cite(
            payload.bibtex, payload.note_where, payload.note_text, payload.style
        )
        _persist(request.app)
        return AddOut.of(added, cites)

    return AddOut.of(ws.add_entries(payload.bibtex, payload.note_where, payload.note_text))


@app.delete(
    "/library/{entry_id}",
    dependencies=edit_guards,
    summary="Remove one library entry",
)
async def delete_entry(entry_id: str, ws: CitationWorkspace = Depends(workspace_dep)) -> dict:
    if not ws.remove_entry(entry_id):
        raise HTTPException(status_code=404, detail=f"Entry {entry_id} not found")
    return {"removed": entry_id}


@app.delete(
    "/library",
    response_model=RefreshOut,
    dependencies=edit_guards,
    summary="Clear the library and cited order, then refresh",
)
async def clear_library(request: Request, ws: CitationWorkspace = Depends(workspace_dep)) -> RefreshOut:
    report = await ws.clear_library()
    _persist(request.app)
    return RefreshOut.of(report)


@app.post(
    "/citations",
    response_model=CiteOut,
    dependencies=edit_guards,
    summary="Cite a library entry at the current selection",
)
async def cite(
    payload: CiteRequest,
    request: Request,
    ws: CitationWorkspace = Depends(workspace_dep),
) -> CiteOut:
    try:
        result = await ws.cite(payload.entry_id, payload.style)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Entry {payload.entry_id} not found")
    _persist(request.app)
    return CiteOut.of(result)


@app.post("/refresh", response_model=RefreshOut, dependencies=edit_guards, summary="Full refresh")
async def refresh(
    payload: StyleRequest,
    request: Request,
    ws: CitationWorkspace = Depends(workspace_dep),
) -> RefreshOut:
    report = await ws.refresh(payload.style)
    _persist(request.app)
    return RefreshOut.of(report)


@app.post("/style", response_model=RefreshOut, dependencies=edit_guards, summary="Change citation style")
async def change_style(
    payload: StyleRequest,
    request: Request,
    ws: CitationWorkspace = Depends(workspace_dep),
) -> RefreshOut:
    """
    Debounced: a newer style request arriving within the window wins, and
    this one comes back with `dropped` set.
    """
    report = await ws.change_style(payload.style)
    _persist(request.app)
    return RefreshOut.of(report)


@app.post("/selection", dependencies=edit_guards, summary="Move the selection or caret")
async def select(
    payload: SelectionRequest,
    request: Request,
    ws: CitationWorkspace = Depends(workspace_dep),
) -> dict:
    if not isinstance(ws.host, MemoryDocument):
        raise HTTPException(status_code=409, detail="This document does not accept remote selection.")
    try:
        ws.host.select(payload.paragraph, payload.start, payload.end)
    except IndexError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    _persist(request.app)
    return {"markup": ws.host.to_markup()}


@app.post("/merge", response_model=MergeOut, dependencies=edit_guards, summary="Merge selected citations")
async def merge(
    payload: StyleRequest,
    request: Request,
    ws: CitationWorkspace = Depends(workspace_dep),
) -> MergeOut:
    result = await ws.merge_selection(payload.style)
    _persist(request.app)
    return MergeOut.of(result)


@app.post("/unmerge", response_model=MergeOut, dependencies=edit_guards, summary="Split a grouped citation")
async def unmerge(
    payload: StyleRequest,
    request: Request,
    ws: CitationWorkspace = Depends(workspace_dep),
) -> MergeOut:
    result = await ws.unmerge_selection(payload.style)
    _persist(request.app)
    return MergeOut.of(result)


@app.post(
    "/reset-numbering",
    response_model=RefreshOut,
    dependencies=edit_guards,
    summary="Forget the stored order and renumber",
)
async def reset_numbering(
    payload: StyleRequest,
    request: Request,
    ws: CitationWorkspace = Depends(workspace_dep),
) -> RefreshOut:
    report = await ws.reset_numbering(payload.style)
    _persist(request.app)
    return RefreshOut.of(report)


@app.get("/document", response_model=DocumentOut, summary="Current document")
async def get_document(ws: CitationWorkspace = Depends(workspace_dep)) -> DocumentOut:
    host = ws.host
    if not isinstance(host, MemoryDocument):
        raise HTTPException(status_code=409, detail="This document cannot be rendered remotely.")
    return DocumentOut(
        markup=host.to_markup(),
        text=host.render(),
        order=ws.tracker.current(),
        style=ws.style.value,
    )


@app.put(
    "/document",
    response_model=DocumentOut,
    dependencies=edit_guards,
    summary="Replace the document from markup",
)
async def put_document(payload: DocumentRequest, request: Request) -> DocumentOut:
    """
    The library and stored order are kept; run /refresh to renumber the
    new document.
    """
    previous = getattr(request.app.state, "workspace", None)
    heading = (previous.settings if previous is not None else settings).BIBLIOGRAPHY_HEADING
    document = MemoryDocument.from_markup(payload.markup, heading=heading)
    if previous is None:
        ws = build_workspace(document)
    else:
        ws = CitationWorkspace(document, previous.library.store, previous.settings)
        ws.style = previous.style
    request.app.state.workspace = ws
    _persist(request.app)
    return await get_document(ws)


@app.get("/export/{fmt}", summary="Export the library")
async def export(fmt: str, ws: CitationWorkspace = Depends(workspace_dep)) -> PlainTextResponse:
    key = fmt.lower()
    if key not in EXPORTERS:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown export format {fmt!r}; expected one of {sorted(EXPORTERS)}",
        )
    return PlainTextResponse(export_library(ws.entries(), key), media_type=EXPORT_MEDIA_TYPES[key])
