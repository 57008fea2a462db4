"""White-box tests for the natural number backings.

Digit-list branches are named after their ``BranchSpec`` ids (see
spec.py).  The property tests at the bottom cross-check the digit
backing against the ``int`` reference backing.
"""
from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis.strategies import integers

from natural import (
    INT_LIMIT,
    DigitNaturalNumber,
    IntNaturalNumber,
    PreconditionViolation,
    RangeViolation,
)

N = DigitNaturalNumber
naturals = integers(min_value=0, max_value=10**40)


# ===================================================================
# CONSTRUCTION / CONVERSION
# ===================================================================

class TestConstruction:

    def test_default_is_zero(self, backing):
        n = backing()
        assert n.is_zero()
        assert str(n) == "0"
        assert int(n) == 0

    def test_from_int(self, backing):
        assert str(backing(1203)) == "1203"

    def test_from_string_strips_leading_zeros(self, backing):
        assert int(backing("000120")) == 120

    def test_from_other_natural(self):
        a = N(77)
        b = N(a)
        a.clear()
        assert int(b) == 77

    def test_across_backings(self):
        assert int(N(IntNaturalNumber(45))) == 45
        assert int(IntNaturalNumber(N(45))) == 45

    @pytest.mark.parametrize("bad", [-1, "-3", "12a", "", " 1", True])
    def test_rejects_non_naturals(self, backing, bad):
        with pytest.raises(PreconditionViolation):
            backing(bad)

    def test_long_values_render(self, backing):
        n = backing(10**5000)
        assert str(n) == "1" + "0" * 5000

    def test_equality_across_backings(self):
        assert N(9) == IntNaturalNumber(9)
        assert N(9) != IntNaturalNumber(8)


# ===================================================================
# COMPARISON  (NN-CMP-LEN, NN-CMP-DIGIT)
# ===================================================================

class TestCompare:

    def test_nn_cmp_len(self):
        """Branch: NN-CMP-LEN: more digits is greater."""
        assert N(100).compare_to(N(99)) == 1
        assert N(99).compare_to(N(100)) == -1

    def test_nn_cmp_digit(self):
        """Branch: NN-CMP-DIGIT: same length decided by highest differing digit."""
        assert N(521).compare_to(N(519)) == 1
        assert N(519).compare_to(N(521)) == -1

    def test_equal(self, backing):
        assert backing(4096).compare_to(backing(4096)) == 0

    def test_zero_against_zero(self, backing):
        assert backing().compare_to(backing()) == 0


# ===================================================================
# KERNEL: clear / copy_from / transfer_from / new_instance
# ===================================================================

class TestKernel:

    def test_clear(self, backing):
        n = backing(31)
        n.clear()
        assert n.is_zero()

    def test_copy_from_leaves_source(self, backing):
        a, b = backing(), backing(812)
        a.copy_from(b)
        assert int(a) == 812 and int(b) == 812

    def test_copy_does_not_alias(self, backing):
        a, b = backing(), backing(812)
        a.copy_from(b)
        b.multiply_by_10(3)
        assert int(a) == 812

    def test_transfer_from_zeroes_source(self, backing):
        a, b = backing(5), backing(812)
        a.transfer_from(b)
        assert int(a) == 812
        assert b.is_zero()

    def test_transfer_does_not_alias(self, backing):
        a, b = backing(), backing(812)
        a.transfer_from(b)
        b.add(backing(1))
        assert int(a) == 812 and int(b) == 1

    def test_transfer_from_self_is_noop(self, backing):
        a = backing(64)
        a.transfer_from(a)
        assert int(a) == 64

    def test_new_instance(self, backing):
        n = backing(8).new_instance()
        assert type(n) is backing
        assert n.is_zero()


# ===================================================================
# ARITHMETIC
# ===================================================================

class TestAddSubtractMultiply:

    def test_add_with_carry(self, backing):
        n = backing(999)
        n.add(backing(1))
        assert int(n) == 1000

    def test_add_self(self, backing):
        n = backing(21)
        n.add(n)
        assert int(n) == 42

    def test_subtract_with_borrow(self, backing):
        n = backing(1000)
        n.subtract(backing(1))
        assert int(n) == 999

    def test_subtract_to_zero(self, backing):
        n = backing(73)
        n.subtract(backing(73))
        assert n.is_zero()

    def test_nn_sub_underflow(self, backing):
        """Branch: NN-SUB-UNDERFLOW: receiver unchanged."""
        n = backing(3)
        with pytest.raises(PreconditionViolation):
            n.subtract(backing(4))
        assert int(n) == 3

    def test_multiply(self, backing):
        n = backing(12345)
        n.multiply(backing(6789))
        assert int(n) == 12345 * 6789

    def test_multiply_by_zero(self, backing):
        n = backing(12345)
        n.multiply(backing())
        assert n.is_zero()

    def test_operand_not_mutated(self, backing):
        other = backing(6)
        n = backing(7)
        n.multiply(other)
        assert int(other) == 6


class TestDivide:

    def test_quotient_and_remainder(self, backing):
        n = backing(17)
        r = n.divide(backing(5))
        assert int(n) == 3
        assert int(r) == 2

    def test_remainder_is_fresh_instance(self, backing):
        n = backing(17)
        r = n.divide(backing(5))
        assert type(r) is backing
        assert r is not n

    def test_divide_smaller_by_larger(self, backing):
        n = backing(4)
        r = n.divide(backing(9))
        assert n.is_zero()
        assert int(r) == 4

    def test_divide_by_self(self, backing):
        n = backing(123456789)
        r = n.divide(n)
        assert int(n) == 1
        assert r.is_zero()

    def test_long_division(self):
        a, b = 10**30 + 12345, 987654321
        n = N(a)
        r = n.divide(N(b))
        assert int(n) == a // b
        assert int(r) == a % b

    def test_nn_div_zero(self, backing):
        """Branch: NN-DIV-ZERO: receiver unchanged."""
        n = backing(8)
        with pytest.raises(PreconditionViolation):
            n.divide(backing())
        assert int(n) == 8


class TestPower:

    def test_zero_exponent(self, backing):
        n = backing(0)
        n.power(0)
        assert int(n) == 1

    def test_nn_pow_trivial_zero(self):
        """Branch: NN-POW-TRIVIAL: 0 ** p == 0 for p > 0."""
        n = N(0)
        n.power(INT_LIMIT)
        assert n.is_zero()

    def test_nn_pow_trivial_one(self):
        """Branch: NN-POW-TRIVIAL: 1 ** p == 1 even at INT_LIMIT."""
        n = N(1)
        n.power(INT_LIMIT)
        assert int(n) == 1

    def test_nn_pow_square(self):
        """Branch: NN-POW-SQUARE: square-and-multiply."""
        n = N(3)
        n.power(13)
        assert int(n) == 3**13

    def test_large_power(self, backing):
        n = backing(2)
        n.power(200)
        assert int(n) == 2**200

    @pytest.mark.parametrize("p", [-1, INT_LIMIT + 1])
    def test_exponent_out_of_range(self, backing, p):
        n = backing(2)
        with pytest.raises(PreconditionViolation):
            n.power(p)
        assert int(n) == 2


class TestRoot:

    def test_perfect_square(self, backing):
        n = backing(144)
        n.root(2)
        assert int(n) == 12

    def test_floor(self, backing):
        n = backing(143)
        n.root(2)
        assert int(n) == 11

    def test_cube_root(self, backing):
        n = backing(10**30 + 1)
        n.root(3)
        assert int(n) == 10**10

    @pytest.mark.parametrize("v", [0, 1])
    def test_nn_root_trivial(self, backing, v):
        """Branch: NN-ROOT-TRIVIAL: root of 0 or 1 is itself."""
        n = backing(v)
        n.root(5)
        assert int(n) == v

    def test_nn_root_huge_index(self, backing):
        """Branch: NN-ROOT-HUGE-INDEX: index beyond the size gives 1."""
        n = backing(999)
        n.root(INT_LIMIT)
        assert int(n) == 1

    def test_nn_root_search(self):
        """Branch: NN-ROOT-SEARCH: bisection between 1 and 10**ceil(n/r)."""
        n = N(2**64)
        n.root(8)
        assert int(n) == 256

    def test_index_just_below_huge_threshold(self):
        # 4 digits, index 15: 2**15 > 9999 so the floor root is 1.
        n = N(9999)
        n.root(15)
        assert int(n) == 1

    @pytest.mark.parametrize("r", [-1, 0, 1, INT_LIMIT + 1])
    def test_index_out_of_range(self, backing, r):
        n = backing(81)
        with pytest.raises(PreconditionViolation):
            n.root(r)
        assert int(n) == 81


class TestMultiplyBy10:

    def test_appends_digit(self, backing):
        n = backing(12)
        n.multiply_by_10(3)
        assert int(n) == 123

    def test_zero_stays_zero(self, backing):
        n = backing()
        n.multiply_by_10(0)
        assert n.is_zero()
        assert str(n) == "0"

    @pytest.mark.parametrize("k", [-1, 10, 1.5, True, "3"])
    def test_nn_digit_range(self, backing, k):
        """Branch: NN-DIGIT-RANGE."""
        n = backing(5)
        with pytest.raises(PreconditionViolation):
            n.multiply_by_10(k)
        assert int(n) == 5


class TestToInt:

    def test_within_range(self, backing):
        assert backing(2024).to_int() == 2024

    def test_int_limit_is_inclusive(self, backing):
        n = backing(INT_LIMIT)
        assert n.can_convert_to_int()
        assert n.to_int() == INT_LIMIT

    def test_nn_toint_range(self, backing):
        """Branch: NN-TOINT-RANGE: one past the limit."""
        n = backing(INT_LIMIT + 1)
        assert not n.can_convert_to_int()
        with pytest.raises(RangeViolation):
            n.to_int()


# ===================================================================
# CROSS-CHECK AGAINST THE REFERENCE BACKING
# ===================================================================

def _pair(a: int) -> tuple[DigitNaturalNumber, IntNaturalNumber]:
    return N(a), IntNaturalNumber(a)


class TestAgainstReference:

    @given(a=naturals, b=naturals)
    def test_compare(self, a, b):
        assert N(a).compare_to(N(b)) == IntNaturalNumber(a).compare_to(IntNaturalNumber(b))

    @given(a=naturals, b=naturals)
    def test_add(self, a, b):
        d, i = _pair(a)
        d.add(N(b))
        i.add(IntNaturalNumber(b))
        assert d == i

    @given(a=naturals, b=naturals)
    def test_subtract(self, a, b):
        a, b = max(a, b), min(a, b)
        d = N(a)
        d.subtract(N(b))
        assert int(d) == a - b

    @given(a=naturals, b=naturals)
    def test_multiply(self, a, b):
        d = N(a)
        d.multiply(N(b))
        assert int(d) == a * b

    @given(a=naturals, b=integers(min_value=1, max_value=10**20))
    def test_divide(self, a, b):
        d = N(a)
        r = d.divide(N(b))
        assert (int(d), int(r)) == divmod(a, b)

    @given(a=integers(min_value=0, max_value=10**6), p=integers(min_value=0, max_value=12))
    @settings(deadline=None)
    def test_power(self, a, p):
        d = N(a)
        d.power(p)
        assert int(d) == a**p

    @given(a=naturals, r=integers(min_value=2, max_value=40))
    @settings(max_examples=200, deadline=None)
    def test_root(self, a, r):
        d, i = _pair(a)
        d.root(r)
        i.root(r)
        assert d == i
        q = int(d)
        assert q**r <= a < (q + 1) ** r
