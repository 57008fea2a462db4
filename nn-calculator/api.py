"""FastAPI endpoints driving calculator sessions.

Routes
------
POST   /sessions                    Open a session
GET    /sessions                    List sessions
GET    /sessions/{id}               Registers and legality flags
DELETE /sessions/{id}               Close a session
POST   /sessions/{id}/digits        Append a digit to the bottom register
POST   /sessions/{id}/{operation}   clear_bottom, swap, enter, add, subtract,
                                    multiply, divide, power or root

A guarded operation invoked while its flag is false answers 409 and the
session is left unchanged.  A ``power`` whose result would exceed the
configured digit cap answers 422.
"""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from models import DigitEntry, Session, SessionCreate
from natural import PreconditionViolation
from store import (
    SessionLimitError,
    SessionNotFoundError,
    ResultTooLargeError,
    SessionStore,
    UnknownOperationError,
)

router = APIRouter(prefix="/sessions", tags=["sessions"])

# The store instance is injected by the app factory (see app.py).
_store: SessionStore | None = None


def set_store(store: SessionStore) -> None:
    """Inject the store instance. Called once at app startup."""
    global _store
    _store = store


def get_store() -> SessionStore:
    assert _store is not None, "Store not initialized"
    return _store


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

class SessionListResponse(BaseModel):
    items: list[Session]
    total: int


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Session not found: {session_id}")


def _not_allowed(e: PreconditionViolation) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=Session, status_code=201)
def create_session(payload: SessionCreate | None = None) -> Session:
    """Open a new calculator session."""
    store = get_store()
    try:
        return store.create(payload)
    except SessionLimitError as e:
        raise HTTPException(status_code=429, detail=str(e)) from e


@router.get("", response_model=SessionListResponse)
def list_sessions(
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=200, description="Pagination limit"),
) -> SessionListResponse:
    """List open sessions."""
    store = get_store()
    items = store.list(offset=offset, limit=limit)
    return SessionListResponse(items=items, total=store.count())


@router.get("/{session_id}", response_model=Session)
def get_session(session_id: str) -> Session:
    """Current registers and legality flags of a session."""
    store = get_store()
    try:
        return store.get(session_id)
    except SessionNotFoundError:
        raise _not_found(session_id)


@router.delete("/{session_id}", response_model=Session)
def delete_session(session_id: str) -> Session:
    """Close a session and return its final state."""
    store = get_store()
    try:
        return store.delete(session_id)
    except SessionNotFoundError:
        raise _not_found(session_id)


@router.post("/{session_id}/digits", response_model=Session)
def append_digit(session_id: str, payload: DigitEntry) -> Session:
    """Append a low-order digit to the bottom register."""
    store = get_store()
    try:
        return store.apply(session_id, "append_digit", payload.digit)
    except SessionNotFoundError:
        raise _not_found(session_id)
    except PreconditionViolation as e:
        raise _not_allowed(e) from e


@router.post("/{session_id}/{operation}", response_model=Session)
def apply_operation(session_id: str, operation: str) -> Session:
    """Apply a register operation."""
    if operation == "append_digit":
        raise HTTPException(status_code=404, detail="Use /digits to append a digit")
    store = get_store()
    try:
        return store.apply(session_id, operation)
    except UnknownOperationError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except SessionNotFoundError:
        raise _not_found(session_id)
    except PreconditionViolation as e:
        raise _not_allowed(e) from e
    except ResultTooLargeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
