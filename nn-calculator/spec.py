"""Formal specification for the two-register calculator engine.

Each engine operation is specified over plain ints as a transition
``(top, bottom) -> (top', bottom')`` with:
- preconditions: when the operation may be invoked
- postconditions: what the new register pair must satisfy
- algebraic properties: relationships that must hold across runs

The contract is machine-readable.  Validation tools iterate over it to
auto-generate conformance tests and search for counterexamples.

Layers
------
FlagRule        the legality flags as functions of (top, bottom)
OperationSpec   per-operation contract (pre/post/properties)
BranchSpec      every decision point that white-box tests must cover
EngineSpec      the full contract for a configured engine
build_spec()    constructs an EngineSpec for a given int limit
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from calculator import CalculatorEngine, load_registers
from natural import INT_LIMIT, _is_digit

EngineFactory = Callable[[], CalculatorEngine]


# ---------------------------------------------------------------------------
# Spec building blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Precondition:
    name: str
    description: str
    check: Callable[..., bool]


@dataclass(frozen=True)
class Postcondition:
    name: str
    description: str
    check: Callable[..., bool]      # (top, bottom, top', bottom', *args)


@dataclass(frozen=True)
class AlgebraicProperty:
    name: str
    description: str
    arity: int          # how many free register values the check needs
    check: Callable[..., bool]      # (engine_factory, *values)


@dataclass(frozen=True)
class FlagRule:
    flag: str
    description: str
    expected: Callable[[int, int], bool]


@dataclass(frozen=True)
class OperationSpec:
    name: str
    preconditions: list[Precondition]
    postconditions: list[Postcondition]
    properties: list[AlgebraicProperty]
    takes_digit: bool = False

    def allowed(self, top: int, bottom: int, *args: int) -> bool:
        return all(p.check(top, bottom, *args) for p in self.preconditions)


@dataclass(frozen=True)
class BranchSpec:
    """A decision point in the implementation that must be exercised."""

    id: str
    description: str
    condition: str      # human-readable boolean expression
    operation: str      # which operation / helper this belongs to


@dataclass(frozen=True)
class EngineSpec:
    """Complete contract for a configured engine."""

    int_limit: int
    flags: list[FlagRule]
    operations: dict[str, OperationSpec]
    branches: list[BranchSpec]

    @property
    def all_properties(self) -> list[tuple[str, AlgebraicProperty]]:
        out: list[tuple[str, AlgebraicProperty]] = []
        for name, op in self.operations.items():
            for prop in op.properties:
                out.append((name, prop))
        return out

    @property
    def all_postconditions(self) -> list[tuple[str, Postcondition]]:
        out: list[tuple[str, Postcondition]] = []
        for name, op in self.operations.items():
            for post in op.postconditions:
                out.append((name, post))
        return out

    def expected_flags(self, top: int, bottom: int) -> dict[str, bool]:
        return {rule.flag: rule.expected(top, bottom) for rule in self.flags}


# ---------------------------------------------------------------------------
# Helpers used inside the predicates
# ---------------------------------------------------------------------------

def iroot(a: int, r: int) -> int:
    """floor(a ** (1/r)) on ints, by bisection."""
    if a < 2:
        return a
    if r >= a.bit_length():
        return 1
    lo, hi = 1, 2
    while hi**r <= a:
        hi *= 2
    # lo**r <= a < hi**r
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if mid**r <= a:
            lo = mid
        else:
            hi = mid
    return lo


def run(factory: EngineFactory, top: int, bottom: int, *ops: str) -> tuple[int, int]:
    """Load a fresh engine with (top, bottom), apply ops, return the registers."""
    engine = factory()
    load_registers(engine, top, bottom)
    for op in ops:
        engine.dispatch(op)
    return engine.snapshot()


# ---------------------------------------------------------------------------
# Spec builder
# ---------------------------------------------------------------------------

def build_spec(int_limit: int = INT_LIMIT) -> EngineSpec:
    """Construct the full engine specification for an int limit."""

    flags = [
        FlagRule("subtract_allowed", "top >= bottom", lambda t, b: t >= b),
        FlagRule("divide_allowed", "bottom != 0", lambda t, b: b != 0),
        FlagRule("power_allowed", "bottom <= int_limit",
                 lambda t, b: b <= int_limit),
        FlagRule("root_allowed", "2 <= bottom <= int_limit",
                 lambda t, b: 2 <= b <= int_limit),
    ]

    top_cleared = Postcondition(
        "top_cleared", "top' == 0",
        lambda t, b, t2, b2, *_: t2 == 0,
    )

    # ---------------------------------------------------------- clear_bottom
    clear_spec = OperationSpec(
        name="clear_bottom",
        preconditions=[],
        postconditions=[
            Postcondition("bottom_zero", "bottom' == 0",
                          lambda t, b, t2, b2: b2 == 0),
            Postcondition("top_kept", "top' == top",
                          lambda t, b, t2, b2: t2 == t),
        ],
        properties=[
            AlgebraicProperty(
                "idempotent", "clear twice == clear once", 2,
                lambda f, a, b: (
                    run(f, a, b, "clear_bottom", "clear_bottom")
                    == run(f, a, b, "clear_bottom")
                ),
            ),
        ],
    )

    # ------------------------------------------------------------------ swap
    swap_spec = OperationSpec(
        name="swap",
        preconditions=[],
        postconditions=[
            Postcondition("exchanged", "(top', bottom') == (bottom, top)",
                          lambda t, b, t2, b2: (t2, b2) == (b, t)),
        ],
        properties=[
            AlgebraicProperty(
                "involution", "swap; swap restores the registers", 2,
                lambda f, a, b: run(f, a, b, "swap", "swap") == (a, b),
            ),
        ],
    )

    # ----------------------------------------------------------------- enter
    enter_spec = OperationSpec(
        name="enter",
        preconditions=[],
        postconditions=[
            Postcondition("top_is_bottom", "top' == bottom",
                          lambda t, b, t2, b2: t2 == b),
            Postcondition("bottom_kept", "bottom' == bottom",
                          lambda t, b, t2, b2: b2 == b),
        ],
        properties=[
            AlgebraicProperty(
                "idempotent", "enter twice == enter once", 2,
                lambda f, a, b: (
                    run(f, a, b, "enter", "enter") == run(f, a, b, "enter")
                ),
            ),
        ],
    )

    # ------------------------------------------------------------------- add
    add_spec = OperationSpec(
        name="add",
        preconditions=[],
        postconditions=[
            top_cleared,
            Postcondition("sum", "bottom' == top + bottom",
                          lambda t, b, t2, b2: b2 == t + b),
        ],
        properties=[
            AlgebraicProperty(
                "commutativity", "add on (a, b) == add on (b, a)", 2,
                lambda f, a, b: run(f, a, b, "add") == run(f, b, a, "add"),
            ),
            AlgebraicProperty(
                "identity", "add on (a, 0) leaves a in bottom", 1,
                lambda f, a: run(f, a, 0, "add") == (0, a),
            ),
        ],
    )

    # -------------------------------------------------------------- subtract
    sub_spec = OperationSpec(
        name="subtract",
        preconditions=[
            Precondition("no_underflow", "top >= bottom",
                         lambda t, b: t >= b),
        ],
        postconditions=[
            top_cleared,
            Postcondition("difference", "bottom' == top - bottom",
                          lambda t, b, t2, b2: b2 == t - b),
        ],
        properties=[
            AlgebraicProperty(
                "self_inverse", "subtract on (a, a) gives 0", 1,
                lambda f, a: run(f, a, a, "subtract") == (0, 0),
            ),
            AlgebraicProperty(
                "add_inverse", "add then subtract of b gives back a", 2,
                lambda f, a, b: _add_then_subtract(f, a, b) == a,
            ),
        ],
    )

    # -------------------------------------------------------------- multiply
    mul_spec = OperationSpec(
        name="multiply",
        preconditions=[],
        postconditions=[
            top_cleared,
            Postcondition("product", "bottom' == top * bottom",
                          lambda t, b, t2, b2: b2 == t * b),
        ],
        properties=[
            AlgebraicProperty(
                "commutativity", "multiply on (a, b) == multiply on (b, a)", 2,
                lambda f, a, b: (
                    run(f, a, b, "multiply") == run(f, b, a, "multiply")
                ),
            ),
            AlgebraicProperty(
                "zero", "multiply on (a, 0) gives 0", 1,
                lambda f, a: run(f, a, 0, "multiply") == (0, 0),
            ),
        ],
    )

    # ---------------------------------------------------------------- divide
    div_spec = OperationSpec(
        name="divide",
        preconditions=[
            Precondition("nonzero_divisor", "bottom != 0",
                         lambda t, b: b != 0),
        ],
        postconditions=[
            Postcondition("division_identity",
                          "top == bottom * bottom' + top'",
                          lambda t, b, t2, b2: t == b * b2 + t2),
            Postcondition("remainder_bounded", "0 <= top' < bottom",
                          lambda t, b, t2, b2: 0 <= t2 < b),
        ],
        properties=[
            AlgebraicProperty(
                "identity", "divide (a, 1) gives quotient a, remainder 0", 1,
                lambda f, a: run(f, a, 1, "divide") == (0, a),
            ),
            AlgebraicProperty(
                "self", "divide (a, a) gives 1 for a != 0", 1,
                lambda f, a: a == 0 or run(f, a, a, "divide") == (0, 1),
            ),
        ],
    )

    # ----------------------------------------------------------------- power
    pow_spec = OperationSpec(
        name="power",
        preconditions=[
            Precondition("exponent_fits", "bottom <= int_limit",
                         lambda t, b: b <= int_limit),
        ],
        postconditions=[
            top_cleared,
            Postcondition("power", "bottom' == top ** bottom",
                          lambda t, b, t2, b2: b2 == t**b),
        ],
        properties=[
            AlgebraicProperty(
                "zero_exponent", "a ** 0 == 1", 1,
                lambda f, a: run(f, a, 0, "power") == (0, 1),
            ),
            AlgebraicProperty(
                "unit_exponent", "a ** 1 == a", 1,
                lambda f, a: run(f, a, 1, "power") == (0, a),
            ),
        ],
    )

    # ------------------------------------------------------------------ root
    root_spec = OperationSpec(
        name="root",
        preconditions=[
            Precondition("index_in_range", "2 <= bottom <= int_limit",
                         lambda t, b: 2 <= b <= int_limit),
        ],
        postconditions=[
            top_cleared,
            Postcondition("lower_bound", "bottom' ** bottom <= top",
                          lambda t, b, t2, b2: b2**b <= t),
            Postcondition("upper_bound", "(bottom' + 1) ** bottom > top",
                          lambda t, b, t2, b2: (b2 + 1) ** b > t),
        ],
        properties=[
            AlgebraicProperty(
                "inverts_power", "root of a ** 2 with index 2 is a", 1,
                lambda f, a: run(f, a * a, 2, "root") == (0, a),
            ),
        ],
    )

    # ---------------------------------------------------------- append_digit
    digit_spec = OperationSpec(
        name="append_digit",
        preconditions=[
            Precondition("is_digit", "digit is an int with 0 <= digit <= 9",
                         lambda t, b, d: _is_digit(d)),
        ],
        postconditions=[
            Postcondition("shifted", "bottom' == 10 * bottom + digit",
                          lambda t, b, t2, b2, d: b2 == 10 * b + d),
            Postcondition("top_kept", "top' == top",
                          lambda t, b, t2, b2, d: t2 == t),
        ],
        properties=[
            AlgebraicProperty(
                "reconstructs", "keying in the digits of a yields a", 1,
                lambda f, a: _key_in(f, a) == (0, a),
            ),
        ],
        takes_digit=True,
    )

    # -------------------------------------------------------------- branches
    branches = [
        # Legality flags (legality)
        BranchSpec("FLAG-SUB", "Subtract flag compares the registers",
                   "top >= bottom", "legality"),
        BranchSpec("FLAG-DIV", "Divide flag tests bottom for zero",
                   "bottom != 0", "legality"),
        BranchSpec("FLAG-POW", "Power flag tests the exponent range",
                   "bottom <= int_limit", "legality"),
        BranchSpec("FLAG-ROOT", "Root flag tests the index range",
                   "2 <= bottom <= int_limit", "legality"),
        # Guarded operations
        BranchSpec("OP-REJECTED", "Disallowed operation raises, state kept",
                   "not flag", "engine"),
        # Natural number kernel
        BranchSpec("NN-CMP-LEN", "Comparison decided by digit count",
                   "len(a) != len(b)", "compare"),
        BranchSpec("NN-CMP-DIGIT", "Comparison decided digit by digit",
                   "len(a) == len(b)", "compare"),
        BranchSpec("NN-SUB-UNDERFLOW", "Subtract below zero rejected",
                   "self < other", "subtract"),
        BranchSpec("NN-DIV-ZERO", "Divide by zero rejected",
                   "other == 0", "divide"),
        BranchSpec("NN-POW-TRIVIAL", "Power of 0 or 1 short-circuits",
                   "self in (0, 1) and p > 0", "power"),
        BranchSpec("NN-POW-SQUARE", "Square-and-multiply loop",
                   "self >= 2 and p > 0", "power"),
        BranchSpec("NN-ROOT-TRIVIAL", "Root of 0 or 1 is itself",
                   "self < 2", "root"),
        BranchSpec("NN-ROOT-HUGE-INDEX",
                   "Index of at least four times the digit count gives 1",
                   "r >= 4 * digits(self)", "root"),
        BranchSpec("NN-ROOT-SEARCH", "Interval halving between bounds",
                   "otherwise", "root"),
        BranchSpec("NN-TOINT-RANGE", "to_int above INT_LIMIT rejected",
                   "self > INT_LIMIT", "to_int"),
        BranchSpec("NN-DIGIT-RANGE", "multiply_by_10 with a non-digit rejected",
                   "not (k is an int and 0 <= k <= 9)", "multiply_by_10"),
    ]

    return EngineSpec(
        int_limit=int_limit,
        flags=flags,
        operations={
            "clear_bottom": clear_spec,
            "swap": swap_spec,
            "enter": enter_spec,
            "add": add_spec,
            "subtract": sub_spec,
            "multiply": mul_spec,
            "divide": div_spec,
            "power": pow_spec,
            "root": root_spec,
            "append_digit": digit_spec,
        },
        branches=branches,
    )


def _add_then_subtract(factory: EngineFactory, a: int, b: int) -> int:
    engine = factory()
    load_registers(engine, a, b)
    engine.add()                # (0, a + b)
    engine.swap()               # (a + b, 0)
    for d in str(b):
        engine.append_digit(int(d))
    engine.subtract()           # (0, a)
    return engine.snapshot()[1]


def _key_in(factory: EngineFactory, a: int) -> tuple[int, int]:
    engine = factory()
    for d in str(a):
        engine.append_digit(int(d))
    return engine.snapshot()
