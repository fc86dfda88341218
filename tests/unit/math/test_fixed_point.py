"""Tests for 18-decimal fixed-point math."""

import pytest

from sor.errors import DivisionByZero, MathError
from sor.math import fixed_point as fp
from sor.math.fixed_point import ONE, Bfp, LogExpMathError

SAMPLES = [0, 1, 3, 7, 10**6, ONE - 1, ONE, ONE + 1, 3 * ONE // 7, 12345 * ONE + 6789, 10**40 + 17]


class TestMulDiv:
    """Rounding of the four basic operations."""

    def test_mul_down_truncates(self) -> None:
        # (10^18 + 1)^2 / 10^18 = 10^18 + 2 + 1e-18
        assert fp.mul_down(ONE + 1, ONE + 1) == ONE + 2

    def test_mul_up_rounds_up(self) -> None:
        assert fp.mul_up(ONE + 1, ONE + 1) == ONE + 3

    def test_mul_exact_has_no_rounding(self) -> None:
        assert fp.mul_down(2 * ONE, 3 * ONE) == 6 * ONE
        assert fp.mul_up(2 * ONE, 3 * ONE) == 6 * ONE

    def test_mul_up_of_zero_is_zero(self) -> None:
        assert fp.mul_up(0, 5 * ONE) == 0

    def test_div_one_third(self) -> None:
        assert fp.div_down(ONE, 3 * ONE) == 333_333_333_333_333_333
        assert fp.div_up(ONE, 3 * ONE) == 333_333_333_333_333_334

    def test_div_up_of_zero_is_zero(self) -> None:
        assert fp.div_up(0, 7) == 0

    @pytest.mark.parametrize("a", SAMPLES)
    @pytest.mark.parametrize("b", SAMPLES)
    def test_up_never_below_down(self, a: int, b: int) -> None:
        assert fp.mul_up(a, b) >= fp.mul_down(a, b)
        if b > 0:
            assert fp.div_up(a, b) >= fp.div_down(a, b)
            assert fp.div_up(a, b) - fp.div_down(a, b) <= 1

    @pytest.mark.parametrize("func", [fp.div_down, fp.div_up, fp.div_trunc])
    def test_division_by_zero(self, func) -> None:
        with pytest.raises(DivisionByZero):
            func(ONE, 0)

    def test_division_by_zero_is_zero_division_error(self) -> None:
        """Callers catching the builtin error still see it."""
        with pytest.raises(ZeroDivisionError):
            fp.div_down(1, 0)

    def test_complement(self) -> None:
        assert fp.complement(3 * ONE // 10) == 7 * ONE // 10
        assert fp.complement(ONE) == 0
        assert fp.complement(2 * ONE) == 0


class TestDivTrunc:
    def test_truncates_toward_zero(self) -> None:
        assert fp.div_trunc(7, 3) == 2
        assert fp.div_trunc(-7, 3) == -2
        assert fp.div_trunc(7, -3) == -2
        assert fp.div_trunc(-7, -3) == 2


class TestPow:
    """pow_down/pow_up bracket the exact power within the declared error."""

    def test_one_to_any_power(self) -> None:
        assert fp.pow_raw(ONE, 3 * ONE // 7) == ONE

    def test_zero_exponent(self) -> None:
        assert fp.pow_raw(5 * ONE, 0) == ONE

    def test_zero_base(self) -> None:
        assert fp.pow_raw(0, 2 * ONE) == 0

    def test_square_root(self) -> None:
        result = fp.pow_down(4 * ONE, ONE // 2)
        assert 2 * ONE - 2 * ONE // 10**13 <= result <= 2 * ONE

    @pytest.mark.parametrize(
        "x,y",
        [
            (4 * ONE, ONE // 2),
            (ONE // 2, 3 * ONE),
            (9 * ONE // 10, 1_500_000_000_000_000_000),
            (ONE + 1, 2 * ONE),
        ],
    )
    def test_down_below_up(self, x: int, y: int) -> None:
        assert fp.pow_down(x, y) <= fp.pow_up(x, y)

    def test_version_2_exact_square(self) -> None:
        assert fp.pow_down(3 * ONE, 2 * ONE, version=2) == 9 * ONE
        assert fp.pow_up(3 * ONE, 2 * ONE, version=2) == 9 * ONE

    def test_version_2_exact_fourth_power(self) -> None:
        assert fp.pow_down(2 * ONE, 4 * ONE, version=2) == 16 * ONE

    def test_version_2_identity(self) -> None:
        assert fp.pow_up(12345, ONE, version=2) == 12345

    def test_version_1_squares_with_error_margin(self) -> None:
        """Version 1 always goes through ln/exp, so the result carries its error bound."""
        down = fp.pow_down(3 * ONE, 2 * ONE)
        up = fp.pow_up(3 * ONE, 2 * ONE)
        assert down <= 9 * ONE <= up
        assert up - down <= 9 * ONE // 10**13

    def test_exp_of_zero(self) -> None:
        assert fp.exp(0) == ONE

    def test_exp_out_of_bounds(self) -> None:
        with pytest.raises(LogExpMathError):
            fp.exp(131 * ONE)

    def test_log_exp_error_is_math_error(self) -> None:
        assert issubclass(LogExpMathError, MathError)


class TestBfp:
    def test_wraps_module_functions(self) -> None:
        a = Bfp(ONE + 1)
        assert a.mul_down(a).value == ONE + 2
        assert a.mul_up(a).value == ONE + 3

    def test_complement(self) -> None:
        assert Bfp(3 * ONE // 10).complement().value == 7 * ONE // 10

    def test_from_int(self) -> None:
        assert Bfp.from_int(5).value == 5 * ONE

    def test_comparisons(self) -> None:
        assert Bfp(1) < Bfp(2)
        assert Bfp(2) >= Bfp(2)
        assert Bfp(2) == Bfp(2)
