"""In-memory calculator session store.

Every session owns exactly one ``CalculatorEngine`` and the
``SnapshotView`` it reports to; engines are never shared.  Operations
on a session run under that session's lock, so concurrent requests
against one session are applied one at a time.  A ``power`` whose
result would exceed ``max_result_digits`` is refused before it starts.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from calculator import OPERATIONS, CalculatorEngine, SnapshotView, load_registers
from models import (
    Backing,
    CalculatorState,
    Flags,
    Session,
    SessionCreate,
    _new_id,
    _utcnow,
)
from natural import BACKINGS

logger = structlog.get_logger()


class SessionNotFoundError(Exception):
    """Raised when a session lookup fails."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class SessionLimitError(Exception):
    """Raised when opening a session would exceed the configured cap."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Session limit reached: {limit}")


class ResultTooLargeError(Exception):
    """Raised when a power would produce more digits than the store allows."""

    def __init__(self, estimate: int, limit: int) -> None:
        self.estimate = estimate
        self.limit = limit
        super().__init__(
            f"Result of about {estimate} digits exceeds the limit of {limit}"
        )


class UnknownOperationError(Exception):
    """Raised for an operation name the engine does not provide."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Unknown operation: {operation}")


@dataclass
class _Record:
    id: str
    backing: Backing
    engine: CalculatorEngine
    view: SnapshotView
    created_at: datetime
    updated_at: datetime
    operations: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)

    def to_session(self) -> Session:
        return Session(
            id=self.id,
            backing=self.backing,
            state=CalculatorState(
                top=self.view.top,
                bottom=self.view.bottom,
                flags=Flags.from_legality(self.view.legality()),
            ),
            operations=self.operations,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class SessionStore:
    """In-memory store of calculator sessions."""

    def __init__(
        self,
        max_sessions: int | None = None,
        default_backing: Backing = Backing.DIGITS,
        max_result_digits: int | None = None,
    ) -> None:
        self._sessions: dict[str, _Record] = {}
        self._lock = threading.Lock()
        self._max_sessions = max_sessions
        self._max_result_digits = max_result_digits
        self._default_backing = Backing(default_backing)

    # -- helpers -------------------------------------------------------------

    def _record(self, session_id: str) -> _Record:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def _check_capacity(self) -> None:
        if (
            self._max_sessions is not None
            and len(self._sessions) >= self._max_sessions
        ):
            logger.warning("session limit reached", limit=self._max_sessions)
            raise SessionLimitError(self._max_sessions)

    def _check_result_size(self, record: _Record, operation: str) -> None:
        if operation != "power" or self._max_result_digits is None:
            return
        estimate = _power_digits(record.engine)
        if estimate > self._max_result_digits:
            logger.warning(
                "result too large",
                session_id=record.id,
                estimate=estimate,
                limit=self._max_result_digits,
            )
            raise ResultTooLargeError(estimate, self._max_result_digits)

    # -- CRUD ----------------------------------------------------------------

    def create(self, payload: SessionCreate | None = None) -> Session:
        """Open a new session, optionally keying in initial registers."""
        payload = payload or SessionCreate()
        backing = payload.backing or self._default_backing
        with self._lock:
            self._check_capacity()
        view = SnapshotView()
        engine = CalculatorEngine(view=view, number_factory=BACKINGS[backing.value])
        if payload.top != "0" or payload.bottom != "0":
            load_registers(engine, payload.top, payload.bottom)

        now = _utcnow()
        record = _Record(
            id=_new_id(),
            backing=backing,
            engine=engine,
            view=view,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._check_capacity()
            self._sessions[record.id] = record
        logger.info("session created", session_id=record.id, backing=backing.value)
        return record.to_session()

    def get(self, session_id: str) -> Session:
        """Current registers and flags of a session."""
        record = self._record(session_id)
        with record.lock:
            return record.to_session()

    def list(self, *, offset: int = 0, limit: int = 50) -> list[Session]:
        """Sessions, newest first."""
        with self._lock:
            records = list(self._sessions.values())
        records.sort(key=lambda r: r.created_at, reverse=True)
        sessions = []
        for record in records[offset : offset + limit]:
            with record.lock:
                sessions.append(record.to_session())
        return sessions

    def apply(self, session_id: str, operation: str, *args: int) -> Session:
        """Run one engine operation against a session.

        ``PreconditionViolation`` from the engine propagates and leaves
        the session untouched.
        """
        if operation not in OPERATIONS:
            raise UnknownOperationError(operation)
        record = self._record(session_id)
        with record.lock:
            self._check_result_size(record, operation)
            record.engine.dispatch(operation, *args)
            record.operations += 1
            record.updated_at = _utcnow()
            return record.to_session()

    def delete(self, session_id: str) -> Session:
        """Close a session and return its final state."""
        with self._lock:
            record = self._record(session_id)
            del self._sessions[session_id]
        with record.lock:
            session = record.to_session()
        logger.info(
            "session closed", session_id=session_id, operations=record.operations
        )
        return session

    def count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        """Remove all sessions (useful for testing)."""
        with self._lock:
            self._sessions.clear()


def _power_digits(engine: CalculatorEngine) -> int:
    """Upper bound on the digits of top ** bottom, 0 when it is trivial."""
    top, bottom = str(engine.top), engine.bottom
    if top in ("0", "1") or not bottom.can_convert_to_int():
        return 0
    return len(top) * bottom.to_int()
