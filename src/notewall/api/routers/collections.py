"""
API Routes for Walls (Note Collections).

Endpoints
---------
- `POST   /api/`          : Create a wall from a non-empty note array (201).
- `GET    /api/health`    : Liveness plus store diagnostics.
- `GET    /api/{id}`      : Read a wall.
- `PUT    /api/{id}`      : Replace a wall's notes (last writer wins).
- `DELETE /api/{id}`      : Remove a wall.

Design Decisions
----------------
- Bodies are taken as raw JSON (`Any`) and validated by the store, so
  "not an array" and "empty array" produce the store's own 400 messages.
- Handlers are plain `def` functions: the store is lock-guarded and FastAPI
  runs them in its threadpool.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Request, status

from notewall import __version__
from notewall.core.contracts.note import CollectionRecord, HealthReport, RemovalSummary
from notewall.core.settings import load_settings
from notewall.core.store import CollectionStore

router = APIRouter(prefix="/api", tags=["Collections"])

NotesBody = Annotated[Any, Body()]


def _store(request: Request) -> CollectionStore:
    store: CollectionStore = request.app.state.store
    return store


@router.post(
    "/",
    response_model=CollectionRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new wall",
)
@router.post("", response_model=CollectionRecord, status_code=201, include_in_schema=False)
def create_collection(request: Request, notes: NotesBody) -> CollectionRecord:
    """Store the given notes under a freshly allocated identifier."""
    return _store(request).create(notes)


@router.get("/health", response_model=HealthReport, summary="Store diagnostics")
def health(request: Request) -> HealthReport:
    """Report liveness, collection and note counts, and recently used walls."""
    cfg = load_settings()
    diag = _store(request).diagnostics(limit=cfg.recent_limit)
    return HealthReport(
        environment=cfg.environment,
        version=__version__,
        **diag.model_dump(),
    )


@router.get("/{collection_id}", response_model=CollectionRecord, summary="Read a wall")
def read_collection(request: Request, collection_id: str) -> CollectionRecord:
    return _store(request).read(collection_id)


@router.put("/{collection_id}", response_model=CollectionRecord, summary="Replace a wall")
def replace_collection(request: Request, collection_id: str, notes: NotesBody) -> CollectionRecord:
    return _store(request).replace(collection_id, notes)


@router.delete("/{collection_id}", response_model=RemovalSummary, summary="Remove a wall")
def remove_collection(request: Request, collection_id: str) -> RemovalSummary:
    return _store(request).remove(collection_id)


__all__ = ["router"]
