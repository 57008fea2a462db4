"""Natural number collaborator for the calculator engine.

A natural number is an exact, non-negative integer of unbounded
magnitude.  The engine only ever talks to the ``NaturalNumber``
protocol; this module provides two backings for it:

DigitNaturalNumber   little-endian base-10 digit list; every algorithm
                     (schoolbook add/sub/mul, long division,
                     square-and-multiply, interval-halving root) works
                     on the digits directly
IntNaturalNumber     reference backing over a single Python ``int``,
                     used as the oracle in tests

Both are mutable: operations update the receiver in place, never their
argument (``transfer_from`` is the one exception, it zeroes its source).

Branches: NN-CMP-LEN, NN-CMP-DIGIT, NN-SUB-UNDERFLOW, NN-DIV-ZERO,
          NN-POW-TRIVIAL, NN-POW-SQUARE, NN-ROOT-TRIVIAL,
          NN-ROOT-HUGE-INDEX, NN-ROOT-SEARCH, NN-TOINT-RANGE,
          NN-DIGIT-RANGE
"""
from __future__ import annotations

from typing import Protocol, Union

# Largest value of a native signed 32-bit integer; exponents and root
# indices must fit in it.
INT_LIMIT = 2**31 - 1

_INT_LIMIT_DIGITS = [int(c) for c in reversed(str(INT_LIMIT))]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class PreconditionViolation(ValueError):
    """An operation was invoked while its precondition was false."""


class RangeViolation(OverflowError):
    """A value could not be represented as a machine integer."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class NaturalNumber(Protocol):
    """Capability set the calculator engine relies on."""

    def is_zero(self) -> bool: ...

    def compare_to(self, other: NaturalNumber) -> int: ...

    def clear(self) -> None: ...

    def copy_from(self, other: NaturalNumber) -> None: ...

    def transfer_from(self, other: NaturalNumber) -> None: ...

    def add(self, other: NaturalNumber) -> None: ...

    def subtract(self, other: NaturalNumber) -> None: ...

    def multiply(self, other: NaturalNumber) -> None: ...

    def divide(self, other: NaturalNumber) -> NaturalNumber: ...

    def power(self, p: int) -> None: ...

    def root(self, r: int) -> None: ...

    def multiply_by_10(self, k: int) -> None: ...

    def to_int(self) -> int: ...

    def can_convert_to_int(self) -> bool: ...

    def new_instance(self) -> NaturalNumber: ...

    def __int__(self) -> int: ...


Initial = Union[int, str, "NaturalNumber"]


# ---------------------------------------------------------------------------
# Argument checks shared by both backings
# ---------------------------------------------------------------------------

def _check_exponent(p: int) -> None:
    if not 0 <= p <= INT_LIMIT:
        raise PreconditionViolation(f"exponent {p} outside [0, {INT_LIMIT}]")


def _check_root_index(r: int) -> None:
    if not 2 <= r <= INT_LIMIT:
        raise PreconditionViolation(f"root index {r} outside [2, {INT_LIMIT}]")


def _is_digit(k: object) -> bool:
    return isinstance(k, int) and not isinstance(k, bool) and 0 <= k <= 9


def _check_digit(k: int) -> None:
    if not _is_digit(k):                                          # NN-DIGIT-RANGE
        raise PreconditionViolation(f"digit {k!r} outside [0, 9]")


def _parse_decimal(text: str) -> list[int]:
    if not text or not text.isascii() or not text.isdigit():
        raise PreconditionViolation(f"not a natural number: {text!r}")
    return _normalize([int(c) for c in reversed(text)])


# ---------------------------------------------------------------------------
# Digit-list arithmetic (little-endian, no trailing zeros, [] is zero)
# ---------------------------------------------------------------------------

def _normalize(d: list[int]) -> list[int]:
    while d and d[-1] == 0:
        d.pop()
    return d


def _compare(a: list[int], b: list[int]) -> int:
    if len(a) != len(b):                                          # NN-CMP-LEN
        return -1 if len(a) < len(b) else 1
    for x, y in zip(reversed(a), reversed(b)):                    # NN-CMP-DIGIT
        if x != y:
            return -1 if x < y else 1
    return 0


def _add(a: list[int], b: list[int]) -> list[int]:
    out: list[int] = []
    carry = 0
    for i in range(max(len(a), len(b))):
        s = carry
        if i < len(a):
            s += a[i]
        if i < len(b):
            s += b[i]
        out.append(s % 10)
        carry = s // 10
    if carry:
        out.append(carry)
    return out


def _sub(a: list[int], b: list[int]) -> list[int]:
    """a - b, requires a >= b."""
    out: list[int] = []
    borrow = 0
    for i, x in enumerate(a):
        s = x - borrow - (b[i] if i < len(b) else 0)
        borrow = 1 if s < 0 else 0
        out.append(s + 10 * borrow)
    return _normalize(out)


def _mul(a: list[int], b: list[int]) -> list[int]:
    if not a or not b:
        return []
    out = [0] * (len(a) + len(b))
    for i, x in enumerate(a):
        if x == 0:
            continue
        carry = 0
        for j, y in enumerate(b):
            s = out[i + j] + x * y + carry
            out[i + j] = s % 10
            carry = s // 10
        k = i + len(b)
        while carry:
            s = out[k] + carry
            out[k] = s % 10
            carry = s // 10
            k += 1
    return _normalize(out)


def _divmod(a: list[int], b: list[int]) -> tuple[list[int], list[int]]:
    """Long division: (a // b, a % b), requires b != 0."""
    quotient: list[int] = []
    rem: list[int] = []
    for x in reversed(a):
        rem = _normalize([x] + rem)
        q = 0
        while _compare(rem, b) >= 0:
            rem = _sub(rem, b)
            q += 1
        quotient.append(q)
    quotient.reverse()
    return _normalize(quotient), rem


def _halve(a: list[int]) -> list[int]:
    out: list[int] = []
    r = 0
    for x in reversed(a):
        cur = r * 10 + x
        out.append(cur // 2)
        r = cur % 2
    out.reverse()
    return _normalize(out)


def _pow(a: list[int], p: int) -> list[int]:
    if p == 0:
        return [1]
    if len(a) <= 1 and (not a or a[0] == 1):                      # NN-POW-TRIVIAL
        return list(a)
    result = [1]
    base = list(a)
    while p:                                                      # NN-POW-SQUARE
        if p & 1:
            result = _mul(result, base)
        p >>= 1
        if p:
            base = _mul(base, base)
    return result


def _root(a: list[int], r: int) -> list[int]:
    if _compare(a, [2]) < 0:                                      # NN-ROOT-TRIVIAL
        return list(a)
    # a < 10**n < 2**(4n), so any index of 4n or more has floor root 1.
    if r >= 4 * len(a):                                           # NN-ROOT-HUGE-INDEX
        return [1]
    # lo**r <= a < hi**r
    lo = [1]
    hi = _normalize([0] * (-(-len(a) // r)) + [1])
    one = [1]
    while _compare(_add(lo, one), hi) < 0:                        # NN-ROOT-SEARCH
        mid = _halve(_add(lo, hi))
        if _compare(_pow(mid, r), a) <= 0:
            lo = mid
        else:
            hi = mid
    return lo


# ---------------------------------------------------------------------------
# Digit-list backing
# ---------------------------------------------------------------------------

class DigitNaturalNumber:
    """Natural number stored as base-10 digits, least significant first."""

    __slots__ = ("_digits",)

    def __init__(self, value: Initial = 0) -> None:
        self._digits: list[int] = list(_digits_of(value))

    # -- kernel --------------------------------------------------------------

    def is_zero(self) -> bool:
        return not self._digits

    def compare_to(self, other: NaturalNumber) -> int:
        return _compare(self._digits, _digits_of(other))

    def clear(self) -> None:
        self._digits = []

    def copy_from(self, other: NaturalNumber) -> None:
        self._digits = list(_digits_of(other))

    def transfer_from(self, other: NaturalNumber) -> None:
        if other is self:
            return
        if isinstance(other, DigitNaturalNumber):
            self._digits = other._digits
            other._digits = []
        else:
            self.copy_from(other)
            other.clear()

    def new_instance(self) -> DigitNaturalNumber:
        return DigitNaturalNumber()

    # -- arithmetic ----------------------------------------------------------

    def add(self, other: NaturalNumber) -> None:
        self._digits = _add(self._digits, _digits_of(other))

    def subtract(self, other: NaturalNumber) -> None:
        b = _digits_of(other)
        if _compare(self._digits, b) < 0:                         # NN-SUB-UNDERFLOW
            raise PreconditionViolation(f"cannot subtract {other} from {self}")
        self._digits = _sub(self._digits, b)

    def multiply(self, other: NaturalNumber) -> None:
        self._digits = _mul(self._digits, _digits_of(other))

    def divide(self, other: NaturalNumber) -> DigitNaturalNumber:
        """Replace self by the quotient and return the remainder."""
        b = _digits_of(other)
        if not b:                                                 # NN-DIV-ZERO
            raise PreconditionViolation("division by zero")
        self._digits, rem = _divmod(self._digits, b)
        remainder = DigitNaturalNumber()
        remainder._digits = rem
        return remainder

    def power(self, p: int) -> None:
        _check_exponent(p)
        self._digits = _pow(self._digits, p)

    def root(self, r: int) -> None:
        _check_root_index(r)
        self._digits = _root(self._digits, r)

    def multiply_by_10(self, k: int) -> None:
        _check_digit(k)
        self._digits = _normalize([k] + self._digits)

    # -- conversion ----------------------------------------------------------

    def can_convert_to_int(self) -> bool:
        return _compare(self._digits, _INT_LIMIT_DIGITS) <= 0

    def to_int(self) -> int:
        if not self.can_convert_to_int():                         # NN-TOINT-RANGE
            raise RangeViolation(f"{self} exceeds {INT_LIMIT}")
        return int(self)

    def __int__(self) -> int:
        value = 0
        for x in reversed(self._digits):
            value = value * 10 + x
        return value

    def __str__(self) -> str:
        if not self._digits:
            return "0"
        return "".join(str(x) for x in reversed(self._digits))

    def __repr__(self) -> str:
        return f"DigitNaturalNumber({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (DigitNaturalNumber, IntNaturalNumber)):
            return self.compare_to(other) == 0
        return NotImplemented

    def digit_count(self) -> int:
        return len(self._digits)


# ---------------------------------------------------------------------------
# Reference backing
# ---------------------------------------------------------------------------

def _iroot(a: int, r: int) -> int:
    if a < 2:
        return a
    if r >= a.bit_length():
        return 1
    lo, hi = 1, 1 << -(-a.bit_length() // r)
    while hi - lo > 1:
        mid = (lo + hi) // 2
        if mid**r <= a:
            lo = mid
        else:
            hi = mid
    return lo


class IntNaturalNumber:
    """Natural number backed by a Python ``int``."""

    __slots__ = ("_value",)

    def __init__(self, value: Initial = 0) -> None:
        self._value: int = _int_of(value)

    def is_zero(self) -> bool:
        return self._value == 0

    def compare_to(self, other: NaturalNumber) -> int:
        b = _int_of(other)
        return (self._value > b) - (self._value < b)

    def clear(self) -> None:
        self._value = 0

    def copy_from(self, other: NaturalNumber) -> None:
        self._value = _int_of(other)

    def transfer_from(self, other: NaturalNumber) -> None:
        if other is self:
            return
        self._value = _int_of(other)
        other.clear()

    def new_instance(self) -> IntNaturalNumber:
        return IntNaturalNumber()

    def add(self, other: NaturalNumber) -> None:
        self._value += _int_of(other)

    def subtract(self, other: NaturalNumber) -> None:
        b = _int_of(other)
        if b > self._value:
            raise PreconditionViolation(f"cannot subtract {other} from {self}")
        self._value -= b

    def multiply(self, other: NaturalNumber) -> None:
        self._value *= _int_of(other)

    def divide(self, other: NaturalNumber) -> IntNaturalNumber:
        b = _int_of(other)
        if b == 0:
            raise PreconditionViolation("division by zero")
        self._value, rem = divmod(self._value, b)
        return IntNaturalNumber(rem)

    def power(self, p: int) -> None:
        _check_exponent(p)
        self._value = self._value**p

    def root(self, r: int) -> None:
        _check_root_index(r)
        self._value = _iroot(self._value, r)

    def multiply_by_10(self, k: int) -> None:
        _check_digit(k)
        self._value = self._value * 10 + k

    def can_convert_to_int(self) -> bool:
        return self._value <= INT_LIMIT

    def to_int(self) -> int:
        if not self.can_convert_to_int():
            raise RangeViolation(f"{self} exceeds {INT_LIMIT}")
        return self._value

    def __int__(self) -> int:
        return self._value

    def __str__(self) -> str:
        # str(int) refuses very long values, go through the digit list.
        return str(DigitNaturalNumber(self._value))

    def __repr__(self) -> str:
        return f"IntNaturalNumber({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (DigitNaturalNumber, IntNaturalNumber)):
            return self.compare_to(other) == 0
        return NotImplemented

    def digit_count(self) -> int:
        return len(_int_to_digits(self._value))


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

_CHUNK_DIGITS = 18
_CHUNK = 10**_CHUNK_DIGITS


def _int_to_digits(value: int) -> list[int]:
    digits: list[int] = []
    while value:
        value, chunk = divmod(value, _CHUNK)
        for _ in range(_CHUNK_DIGITS):
            chunk, d = divmod(chunk, 10)
            digits.append(d)
    return _normalize(digits)


def _digits_of(value: Initial) -> list[int]:
    """Digit list view of a value; shares storage with a DigitNaturalNumber."""
    if isinstance(value, DigitNaturalNumber):
        return value._digits
    if isinstance(value, bool):
        raise PreconditionViolation(f"not a natural number: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise PreconditionViolation("negative value")
        return _int_to_digits(value)
    if isinstance(value, str):
        return _parse_decimal(value)
    if isinstance(value, IntNaturalNumber):
        return _int_to_digits(value._value)
    return _parse_decimal(str(value))


def _int_of(value: Initial) -> int:
    if isinstance(value, IntNaturalNumber):
        return value._value
    if isinstance(value, bool):
        raise PreconditionViolation(f"not a natural number: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise PreconditionViolation("negative value")
        return value
    if isinstance(value, str):
        return int(DigitNaturalNumber(value))
    return int(value)


BACKINGS: dict[str, type] = {
    "digits": DigitNaturalNumber,
    "int": IntNaturalNumber,
}
