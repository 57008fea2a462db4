"""API models for calculator sessions.

Register values travel as decimal strings so that numbers of any size
survive JSON round trips unchanged.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from calculator import Legality

_DECIMAL = r"^(0|[1-9][0-9]*)$"


class Backing(str, Enum):
    DIGITS = "digits"
    INT = "int"


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

class Flags(BaseModel):
    """Which guarded operations are currently legal."""

    subtract_allowed: bool
    divide_allowed: bool
    power_allowed: bool
    root_allowed: bool

    @classmethod
    def from_legality(cls, flags: Legality) -> Flags:
        return cls(
            subtract_allowed=flags.subtract_allowed,
            divide_allowed=flags.divide_allowed,
            power_allowed=flags.power_allowed,
            root_allowed=flags.root_allowed,
        )


class CalculatorState(BaseModel):
    top: str = Field(..., pattern=_DECIMAL)
    bottom: str = Field(..., pattern=_DECIMAL)
    flags: Flags


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class SessionCreate(BaseModel):
    """Payload for opening a session; registers start at zero by default."""

    backing: Backing | None = None
    top: str = Field(default="0", max_length=1_000)
    bottom: str = Field(default="0", max_length=1_000)

    @field_validator("top", "bottom")
    @classmethod
    def is_natural(cls, v: str) -> str:
        v = v.strip()
        if not v.isascii() or not v.isdigit():
            raise ValueError(f"Register value must be a natural number, got {v!r}")
        return v.lstrip("0") or "0"


class Session(BaseModel):
    """A calculator session as returned by the API."""

    id: str = Field(default_factory=_new_id)
    backing: Backing
    state: CalculatorState
    operations: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class DigitEntry(BaseModel):
    digit: int = Field(..., ge=0, le=9)
