"""Shared fixtures for calculator tests."""

from __future__ import annotations

import pytest

from calculator import CalculatorEngine, SnapshotView
from config import configure_logging
from natural import DigitNaturalNumber, IntNaturalNumber
from store import SessionStore

configure_logging("WARNING")


class RecordingView:
    """View that records every notification in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def update_top_display(self, value) -> None:
        self.calls.append(("top", str(value)))

    def update_bottom_display(self, value) -> None:
        self.calls.append(("bottom", str(value)))

    def update_subtract_allowed(self, allowed: bool) -> None:
        self.calls.append(("subtract", allowed))

    def update_divide_allowed(self, allowed: bool) -> None:
        self.calls.append(("divide", allowed))

    def update_power_allowed(self, allowed: bool) -> None:
        self.calls.append(("power", allowed))

    def update_root_allowed(self, allowed: bool) -> None:
        self.calls.append(("root", allowed))

    def last(self) -> dict[str, object]:
        """Latest value reported for each channel."""
        return dict(self.calls)


@pytest.fixture
def view() -> SnapshotView:
    return SnapshotView()


@pytest.fixture
def engine(view) -> CalculatorEngine:
    return CalculatorEngine(view=view)


@pytest.fixture
def recording() -> RecordingView:
    return RecordingView()


@pytest.fixture(params=[DigitNaturalNumber, IntNaturalNumber], ids=["digits", "int"])
def backing(request):
    return request.param


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()
