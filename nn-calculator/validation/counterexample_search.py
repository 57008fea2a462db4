"""Counterexample search over small register grids.

This module runs independently of the test suite.  For each engine
configuration it systematically searches for:

1. Flag violations: register pairs whose reported legality flags
   disagree with the flag rules.
2. Postcondition violations: allowed operations whose resulting
   registers break a postcondition.
3. Rejection violations: disallowed operations that run anyway, raise
   the wrong exception, or alter the registers.
4. Property violations: algebraic relationships that fail for some
   register value.

Run directly::

    cd nn-calculator
    python -m validation.counterexample_search
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable

sys.path.insert(0, ".")

from calculator import CalculatorEngine, load_registers
from natural import BACKINGS, PreconditionViolation
from spec import EngineSpec, build_spec

EngineFactory = Callable[[], CalculatorEngine]


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class Counterexample:
    category: str
    operation: str
    inputs: tuple
    expected: str
    actual: str
    description: str


@dataclass
class SearchReport:
    counterexamples: list[Counterexample] = field(default_factory=list)
    checks_run: int = 0

    @property
    def passed(self) -> bool:
        return len(self.counterexamples) == 0

    def summary(self) -> str:
        lines = [
            "Counterexample Search Report",
            "=" * 40,
            f"Total checks: {self.checks_run}",
            f"Counterexamples found: {len(self.counterexamples)}",
        ]
        if self.counterexamples:
            lines.append("")
            for i, cx in enumerate(self.counterexamples, 1):
                lines.append(f"  [{i}] {cx.category} / {cx.operation}")
                lines.append(f"      Inputs:   {cx.inputs}")
                lines.append(f"      Expected: {cx.expected}")
                lines.append(f"      Actual:   {cx.actual}")
                lines.append(f"      {cx.description}")
        else:
            lines.append("\nNo counterexamples found.")
        return "\n".join(lines)


def _loaded(factory: EngineFactory, top: int, bottom: int) -> CalculatorEngine:
    engine = factory()
    load_registers(engine, top, bottom)
    return engine


def _arguments(spec: EngineSpec, op_name: str) -> list[tuple[int, ...]]:
    if spec.operations[op_name].takes_digit:
        return [(d,) for d in range(-1, 11)]
    return [()]


# ---------------------------------------------------------------------------
# Search functions
# ---------------------------------------------------------------------------

def search_flag_violations(
    factory: EngineFactory,
    spec: EngineSpec,
    grid: range,
) -> tuple[list[Counterexample], int]:
    """Compare the engine's flags with the flag rules on every pair."""
    cxs: list[Counterexample] = []
    checks = 0

    for a in grid:
        for b in grid:
            flags = _loaded(factory, a, b).legality()
            for rule in spec.flags:
                checks += 1
                actual = getattr(flags, rule.flag)
                if actual is not rule.expected(a, b):
                    cxs.append(Counterexample(
                        category="flag_violation",
                        operation=rule.flag,
                        inputs=(a, b),
                        expected=rule.description,
                        actual=f"{rule.flag}={actual}",
                        description=f"Flag '{rule.flag}' reported wrongly",
                    ))

    return cxs, checks


def search_postcondition_violations(
    factory: EngineFactory,
    spec: EngineSpec,
    grid: range,
) -> tuple[list[Counterexample], int]:
    """Apply every allowed operation and verify its postconditions."""
    cxs: list[Counterexample] = []
    checks = 0

    for op_name, op_spec in spec.operations.items():
        for args in _arguments(spec, op_name):
            for a in grid:
                for b in grid:
                    if not op_spec.allowed(a, b, *args):
                        continue
                    checks += 1
                    engine = _loaded(factory, a, b)
                    try:
                        engine.dispatch(op_name, *args)
                    except Exception as e:
                        cxs.append(Counterexample(
                            category="unexpected_error",
                            operation=op_name,
                            inputs=(a, b, *args),
                            expected="no error",
                            actual=f"{type(e).__name__}: {e}",
                            description="Allowed operation raised",
                        ))
                        continue

                    a2, b2 = engine.snapshot()
                    for post in op_spec.postconditions:
                        if not post.check(a, b, a2, b2, *args):
                            cxs.append(Counterexample(
                                category="postcondition_violation",
                                operation=op_name,
                                inputs=(a, b, *args),
                                expected=post.description,
                                actual=f"registers=({a2}, {b2})",
                                description=f"Postcondition '{post.name}' violated",
                            ))

    return cxs, checks


def search_rejection_violations(
    factory: EngineFactory,
    spec: EngineSpec,
    grid: range,
) -> tuple[list[Counterexample], int]:
    """Disallowed operations must raise and leave the registers alone."""
    cxs: list[Counterexample] = []
    checks = 0

    for op_name, op_spec in spec.operations.items():
        for args in _arguments(spec, op_name):
            for a in grid:
                for b in grid:
                    if op_spec.allowed(a, b, *args):
                        continue
                    checks += 1
                    engine = _loaded(factory, a, b)
                    try:
                        engine.dispatch(op_name, *args)
                        cxs.append(Counterexample(
                            category="missing_rejection",
                            operation=op_name,
                            inputs=(a, b, *args),
                            expected="PreconditionViolation",
                            actual=f"registers={engine.snapshot()}",
                            description="Disallowed operation ran",
                        ))
                        continue
                    except PreconditionViolation:
                        pass
                    except Exception as e:
                        cxs.append(Counterexample(
                            category="wrong_error",
                            operation=op_name,
                            inputs=(a, b, *args),
                            expected="PreconditionViolation",
                            actual=f"{type(e).__name__}: {e}",
                            description="Wrong exception type on rejection",
                        ))
                        continue

                    if engine.snapshot() != (a, b):
                        cxs.append(Counterexample(
                            category="state_changed",
                            operation=op_name,
                            inputs=(a, b, *args),
                            expected=f"registers=({a}, {b})",
                            actual=f"registers={engine.snapshot()}",
                            description="Rejected operation altered registers",
                        ))

    return cxs, checks


def search_property_violations(
    factory: EngineFactory,
    spec: EngineSpec,
    grid: range,
) -> tuple[list[Counterexample], int]:
    """Exhaustively check every algebraic property on the grid."""
    cxs: list[Counterexample] = []
    checks = 0

    for op_name, prop in spec.all_properties:
        if prop.arity == 2:
            inputs = [(a, b) for a in grid for b in grid]
        else:
            inputs = [(a,) for a in grid]
        for values in inputs:
            checks += 1
            if not prop.check(factory, *values):
                cxs.append(Counterexample(
                    category="property_violation",
                    operation=op_name,
                    inputs=values,
                    expected=prop.description,
                    actual="property does not hold",
                    description=f"Property '{prop.name}' violated",
                ))

    return cxs, checks


# ---------------------------------------------------------------------------
# Top-level runner
# ---------------------------------------------------------------------------

def run_search(backing: str, int_limit: int, grid: range) -> SearchReport:
    """Run the complete search for one backing and int limit."""
    number_factory = BACKINGS[backing]

    def factory() -> CalculatorEngine:
        return CalculatorEngine(number_factory=number_factory, int_limit=int_limit)

    spec = build_spec(int_limit)
    report = SearchReport()

    for search_fn in (
        search_flag_violations,
        search_postcondition_violations,
        search_rejection_violations,
        search_property_violations,
    ):
        cxs, checks = search_fn(factory, spec, grid)
        report.counterexamples.extend(cxs)
        report.checks_run += checks

    return report


def main() -> None:
    """Run the counterexample search across several configurations."""
    configs = [
        ("digits  limit=2   [0, 8)", "digits", 2, range(0, 8)),
        ("digits  limit=12  [0, 20)", "digits", 12, range(0, 20)),
        ("int     limit=12  [0, 20)", "int", 12, range(0, 20)),
        ("digits  limit=99  [90, 110)", "digits", 99, range(90, 110)),
    ]

    all_passed = True
    for name, backing, int_limit, grid in configs:
        print(f"\n--- Configuration: {name} ---")
        report = run_search(backing, int_limit, grid)
        print(report.summary())
        if not report.passed:
            all_passed = False

    print("\n" + "=" * 40)
    if all_passed:
        print("ALL CONFIGURATIONS PASSED")
    else:
        print("SOME CONFIGURATIONS HAD COUNTEREXAMPLES")
        sys.exit(1)


if __name__ == "__main__":
    main()
