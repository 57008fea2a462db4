"""Two-register natural number calculator engine.

The engine owns a ``top`` and a ``bottom`` register and exposes one
method per user action.  After every successful operation it
recomputes the legality flags from the new register values and pushes
registers and flags to its view.

Preconditions of ``subtract``, ``divide``, ``power`` and ``root`` are
the caller's responsibility (it must consult the flags first).  A call
made while its flag is false raises ``PreconditionViolation`` before
any register is touched, so the state and the view are left as they
were.

Decision branches are annotated with branch-IDs (see spec.py
BranchSpec) so white-box tests can trace coverage back to them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

import structlog

from natural import (
    INT_LIMIT,
    DigitNaturalNumber,
    NaturalNumber,
    PreconditionViolation,
    _is_digit,
)

logger = structlog.get_logger()

OPERATIONS = (
    "clear_bottom",
    "swap",
    "enter",
    "add",
    "subtract",
    "multiply",
    "divide",
    "power",
    "root",
    "append_digit",
)


# ---------------------------------------------------------------------------
# Legality flags
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Legality:
    subtract_allowed: bool
    divide_allowed: bool
    power_allowed: bool
    root_allowed: bool


def legality(
    top: NaturalNumber,
    bottom: NaturalNumber,
    int_limit: int = INT_LIMIT,
) -> Legality:
    """Flags for a register pair; depends on nothing but the two values.

    Branches: FLAG-SUB, FLAG-DIV, FLAG-POW, FLAG-ROOT
    """
    fits = _fits(bottom, int_limit)
    return Legality(
        subtract_allowed=top.compare_to(bottom) >= 0,             # FLAG-SUB
        divide_allowed=not bottom.is_zero(),                      # FLAG-DIV
        power_allowed=fits,                                       # FLAG-POW
        root_allowed=fits and bottom.to_int() >= 2,               # FLAG-ROOT
    )


def _fits(n: NaturalNumber, int_limit: int) -> bool:
    if int_limit == INT_LIMIT:
        return n.can_convert_to_int()
    return n.can_convert_to_int() and n.to_int() <= int_limit


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

class CalculatorView(Protocol):
    """Observer notified synchronously at the end of every operation."""

    def update_top_display(self, value: NaturalNumber) -> None: ...

    def update_bottom_display(self, value: NaturalNumber) -> None: ...

    def update_subtract_allowed(self, allowed: bool) -> None: ...

    def update_divide_allowed(self, allowed: bool) -> None: ...

    def update_power_allowed(self, allowed: bool) -> None: ...

    def update_root_allowed(self, allowed: bool) -> None: ...


class NullView:
    """A view that ignores every notification."""

    def update_top_display(self, value: NaturalNumber) -> None:
        pass

    def update_bottom_display(self, value: NaturalNumber) -> None:
        pass

    def update_subtract_allowed(self, allowed: bool) -> None:
        pass

    def update_divide_allowed(self, allowed: bool) -> None:
        pass

    def update_power_allowed(self, allowed: bool) -> None:
        pass

    def update_root_allowed(self, allowed: bool) -> None:
        pass


class SnapshotView:
    """Keeps the most recently displayed registers and flags."""

    def __init__(self) -> None:
        self.top = "0"
        self.bottom = "0"
        self.subtract_allowed = False
        self.divide_allowed = False
        self.power_allowed = False
        self.root_allowed = False
        self.refreshes = 0

    def update_top_display(self, value: NaturalNumber) -> None:
        self.top = str(value)

    def update_bottom_display(self, value: NaturalNumber) -> None:
        # Bottom is always displayed last.
        self.bottom = str(value)
        self.refreshes += 1

    def update_subtract_allowed(self, allowed: bool) -> None:
        self.subtract_allowed = allowed

    def update_divide_allowed(self, allowed: bool) -> None:
        self.divide_allowed = allowed

    def update_power_allowed(self, allowed: bool) -> None:
        self.power_allowed = allowed

    def update_root_allowed(self, allowed: bool) -> None:
        self.root_allowed = allowed

    def legality(self) -> Legality:
        return Legality(
            subtract_allowed=self.subtract_allowed,
            divide_allowed=self.divide_allowed,
            power_allowed=self.power_allowed,
            root_allowed=self.root_allowed,
        )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class CalculatorEngine:
    """Owns the two registers and drives them one operation at a time.

    Not safe for concurrent use; give every session its own engine.
    """

    def __init__(
        self,
        view: CalculatorView | None = None,
        number_factory: Callable[[], NaturalNumber] = DigitNaturalNumber,
        int_limit: int = INT_LIMIT,
    ) -> None:
        if not 2 <= int_limit <= INT_LIMIT:
            raise ValueError(f"int_limit must be in [2, {INT_LIMIT}]")
        self._view: CalculatorView = view if view is not None else NullView()
        self._int_limit = int_limit
        self._top = number_factory()
        self._bottom = number_factory()
        self._refresh_view()

    # -- inspection ----------------------------------------------------------

    @property
    def top(self) -> NaturalNumber:
        """A copy of the top register."""
        copy = self._top.new_instance()
        copy.copy_from(self._top)
        return copy

    @property
    def bottom(self) -> NaturalNumber:
        """A copy of the bottom register."""
        copy = self._bottom.new_instance()
        copy.copy_from(self._bottom)
        return copy

    @property
    def int_limit(self) -> int:
        return self._int_limit

    def snapshot(self) -> tuple[int, int]:
        return int(self._top), int(self._bottom)

    def legality(self) -> Legality:
        return legality(self._top, self._bottom, self._int_limit)

    # -- internal helpers ----------------------------------------------------

    def _refresh_view(self) -> None:
        flags = self.legality()
        self._view.update_subtract_allowed(flags.subtract_allowed)
        self._view.update_divide_allowed(flags.divide_allowed)
        self._view.update_power_allowed(flags.power_allowed)
        self._view.update_root_allowed(flags.root_allowed)
        self._view.update_top_display(self.top)
        self._view.update_bottom_display(self.bottom)

    def _require(self, allowed: bool, operation: str) -> None:
        if not allowed:                                           # OP-REJECTED
            logger.warning(
                "operation not allowed",
                operation=operation,
                top_digits=_size(self._top),
                bottom_digits=_size(self._bottom),
            )
            raise PreconditionViolation(
                f"{operation} is not allowed in the current state"
            )

    def _done(self, operation: str) -> None:
        logger.debug(
            "operation applied",
            operation=operation,
            top_digits=_size(self._top),
            bottom_digits=_size(self._bottom),
        )
        self._refresh_view()

    # -- operations ----------------------------------------------------------

    def clear_bottom(self) -> None:
        """bottom := 0"""
        self._bottom.clear()
        self._done("clear_bottom")

    def swap(self) -> None:
        """Exchange the registers by moving, never copying."""
        temp = self._top.new_instance()
        temp.transfer_from(self._top)
        self._top.transfer_from(self._bottom)
        self._bottom.transfer_from(temp)
        self._done("swap")

    def enter(self) -> None:
        """top := bottom"""
        self._top.copy_from(self._bottom)
        self._done("enter")

    def add(self) -> None:
        """bottom := top + bottom, top := 0"""
        self._top.add(self._bottom)
        self._bottom.transfer_from(self._top)
        self._done("add")

    def subtract(self) -> None:
        """bottom := top - bottom, top := 0; requires top >= bottom."""
        self._require(self.legality().subtract_allowed, "subtract")
        self._top.subtract(self._bottom)
        self._bottom.transfer_from(self._top)
        self._done("subtract")

    def multiply(self) -> None:
        """bottom := top * bottom, top := 0"""
        self._top.multiply(self._bottom)
        self._bottom.transfer_from(self._top)
        self._done("multiply")

    def divide(self) -> None:
        """bottom := top // bottom, top := top % bottom; requires bottom != 0."""
        self._require(self.legality().divide_allowed, "divide")
        remainder = self._top.divide(self._bottom)
        self._bottom.transfer_from(self._top)
        self._top.transfer_from(remainder)
        self._done("divide")

    def power(self) -> None:
        """bottom := top ** bottom, top := 0; requires bottom <= int_limit."""
        self._require(self.legality().power_allowed, "power")
        self._top.power(self._bottom.to_int())
        self._bottom.transfer_from(self._top)
        self._done("power")

    def root(self) -> None:
        """bottom := floor(top ** (1/bottom)), top := 0; requires 2 <= bottom <= int_limit."""
        self._require(self.legality().root_allowed, "root")
        self._top.root(self._bottom.to_int())
        self._bottom.transfer_from(self._top)
        self._done("root")

    def append_digit(self, digit: int) -> None:
        """bottom := bottom * 10 + digit"""
        self._require(_is_digit(digit), "append_digit")
        self._bottom.multiply_by_10(digit)
        self._done("append_digit")

    def dispatch(self, operation: str, *args: int) -> None:
        """Run an operation by its public name."""
        if operation not in OPERATIONS:
            raise KeyError(operation)
        getattr(self, operation)(*args)


def _size(n: NaturalNumber) -> int:
    count = getattr(n, "digit_count", None)
    return count() if count is not None else len(str(n))


def load_registers(
    engine: CalculatorEngine,
    top: int | str | NaturalNumber,
    bottom: int | str | NaturalNumber,
) -> None:
    """Key a register pair in through the engine's own operations."""
    engine.clear_bottom()
    for d in str(DigitNaturalNumber(top)):
        engine.append_digit(int(d))
    engine.enter()
    engine.clear_bottom()
    for d in str(DigitNaturalNumber(bottom)):
        engine.append_digit(int(d))
