"""18-decimal fixed-point math matching Balancer's FixedPoint.sol and LogExpMath.sol.

Values are plain integers scaled by 10^18. The module-level functions are what
the pool math calls; Bfp wraps them for code that reads better with methods.

Rounding follows the contracts exactly: the "down" variants truncate, the "up"
variants add one unit whenever the exact result has a nonzero remainder.
LogExpMath reference:
https://github.com/balancer-labs/balancer-v2-monorepo/blob/6c9e24e22d0c46cca6dd15861d3d33da61a60b98/pkg/solidity-utils/contracts/math/LogExpMath.sol
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

from sor.constants import WAD
from sor.errors import DivisionByZero, MathError

__all__ = [
    "Bfp",
    "LogExpMathError",
    "ONE",
    "TWO",
    "FOUR",
    "MAX_POW_RELATIVE_ERROR",
    "mul_down",
    "mul_up",
    "div_down",
    "div_up",
    "complement",
    "pow_down",
    "pow_up",
    "pow_raw",
    "exp",
    "div_trunc",
]

ONE = WAD
TWO = 2 * WAD
FOUR = 4 * WAD
ONE_20 = 10**20
ONE_36 = 10**36

# 10^-14 relative error allowance on pow results
MAX_POW_RELATIVE_ERROR = 10000

MAX_NATURAL_EXPONENT = 130 * ONE
MIN_NATURAL_EXPONENT = -41 * ONE

LN_36_LOWER_BOUND = ONE - 10**17
LN_36_UPPER_BOUND = ONE + 10**17

MILD_EXPONENT_BOUND = (1 << 254) // ONE_20

# Powers of two (x) and e^x (a) used for digit extraction.
# Entries 0-1 are 18-decimal, entries 2-11 are 20-decimal.
_X = (
    128 * ONE,
    64 * ONE,
    3_200_000_000_000_000_000_000,
    1_600_000_000_000_000_000_000,
    800_000_000_000_000_000_000,
    400_000_000_000_000_000_000,
    200_000_000_000_000_000_000,
    100_000_000_000_000_000_000,
    50_000_000_000_000_000_000,
    25_000_000_000_000_000_000,
    12_500_000_000_000_000_000,
    6_250_000_000_000_000_000,
)
_A = (
    38877084059945950922200000000000000000000000000000000000,
    6235149080811616882910000000,
    7_896_296_018_268_069_516_100_000_000_000_000,
    888_611_052_050_787_263_676_000_000,
    298_095_798_704_172_827_474_000,
    5_459_815_003_314_423_907_810,
    738_905_609_893_065_022_723,
    271_828_182_845_904_523_536,
    164_872_127_070_012_814_685,
    128_402_541_668_774_148_407,
    113_314_845_306_682_631_683,
    106_449_445_891_785_942_956,
)


class LogExpMathError(MathError):
    """Argument outside the domain LogExpMath supports (errors 006-009)."""

    pass


# =============================================================================
# FixedPoint primitives
# =============================================================================


def mul_down(a: int, b: int) -> int:
    """a * b / 1e18, truncated."""
    return (a * b) // ONE


def mul_up(a: int, b: int) -> int:
    """a * b / 1e18, rounded up."""
    product = a * b
    if product == 0:
        return 0
    return (product - 1) // ONE + 1


def div_down(a: int, b: int) -> int:
    """a * 1e18 / b, truncated.

    Raises:
        DivisionByZero: If b is zero
    """
    if b == 0:
        raise DivisionByZero(f"div_down: {a} / 0")
    return (a * ONE) // b


def div_up(a: int, b: int) -> int:
    """a * 1e18 / b, rounded up.

    Raises:
        DivisionByZero: If b is zero
    """
    if b == 0:
        raise DivisionByZero(f"div_up: {a} / 0")
    if a == 0:
        return 0
    return (a * ONE - 1) // b + 1


def complement(x: int) -> int:
    """1 - x, clamped at zero."""
    return ONE - x if x < ONE else 0


def _max_pow_error(raw: int) -> int:
    return mul_up(raw, MAX_POW_RELATIVE_ERROR) + 1


def pow_down(x: int, y: int, *, version: int = 1) -> int:
    """x^y rounded down.

    Pools of version 2 and above short-circuit the exponents 1, 2 and 4,
    like the newer FixedPoint library does.
    """
    if version >= 2:
        if y == ONE:
            return x
        if y == TWO:
            return mul_down(x, x)
        if y == FOUR:
            square = mul_down(x, x)
            return mul_down(square, square)
    raw = pow_raw(x, y)
    max_error = _max_pow_error(raw)
    if raw < max_error:
        return 0
    return raw - max_error


def pow_up(x: int, y: int, *, version: int = 1) -> int:
    """x^y rounded up. See pow_down for the version switch."""
    if version >= 2:
        if y == ONE:
            return x
        if y == TWO:
            return mul_up(x, x)
        if y == FOUR:
            square = mul_up(x, x)
            return mul_up(square, square)
    raw = pow_raw(x, y)
    return raw + _max_pow_error(raw)


# =============================================================================
# LogExpMath
# =============================================================================


def div_trunc(a: int, b: int) -> int:
    """Signed integer division truncating toward zero, as Solidity does.

    Python's // floors, which differs from truncation when the operands
    have opposite signs (-7 // 3 == -3, Solidity gives -2).

    Raises:
        DivisionByZero: If b is zero
    """
    if b == 0:
        raise DivisionByZero(f"div_trunc: {a} / 0")
    if (a >= 0) == (b >= 0):
        return a // b
    return -(abs(a) // abs(b))


def _ln(a: int) -> int:
    """Natural log of a positive 18-decimal value."""
    if a < ONE:
        return -_ln((ONE * ONE) // a)

    total = 0
    for i in range(2):
        if a >= _A[i] * ONE:
            a //= _A[i]
            total += _X[i]

    # Switch to 20 decimals for the remaining extraction
    total *= 100
    a *= 100

    for i in range(2, 12):
        if a >= _A[i]:
            a = (a * ONE_20) // _A[i]
            total += _X[i]

    # ln(a) = 2 * arctanh((a - 1) / (a + 1))
    z = ((a - ONE_20) * ONE_20) // (a + ONE_20)
    z_squared = (z * z) // ONE_20

    num = z
    series = num
    for i in range(3, 12, 2):
        num = (num * z_squared) // ONE_20
        series += num // i

    return (total + series * 2) // 100


def _ln_36(x: int) -> int:
    """Natural log with 36-decimal output, for arguments close to one."""
    x *= ONE

    z = div_trunc((x - ONE_36) * ONE_36, x + ONE_36)
    z_squared = div_trunc(z * z, ONE_36)

    num = z
    series = num
    for i in range(3, 16, 2):
        num = div_trunc(num * z_squared, ONE_36)
        series += div_trunc(num, i)

    return series * 2


def exp(x: int) -> int:
    """e^x for an 18-decimal exponent.

    Raises:
        LogExpMathError: If x is outside [-41, 130]
    """
    if not MIN_NATURAL_EXPONENT <= x <= MAX_NATURAL_EXPONENT:
        raise LogExpMathError(f"exp: exponent {x} out of bounds")

    if x < 0:
        return (ONE * ONE) // exp(-x)

    if x >= _X[0]:
        x -= _X[0]
        first_an = _A[0]
    elif x >= _X[1]:
        x -= _X[1]
        first_an = _A[1]
    else:
        first_an = 1

    x *= 100

    product = ONE_20
    for i in range(2, 10):
        if x >= _X[i]:
            x -= _X[i]
            product = (product * _A[i]) // ONE_20

    # Taylor series up to the 12th term
    series = ONE_20
    term = x
    series += term
    for i in range(2, 13):
        term = ((term * x) // ONE_20) // i
        series += term

    return (((product * series) // ONE_20) * first_an) // 100


def pow_raw(x: int, y: int) -> int:
    """x^y for non-negative 18-decimal values, without error correction.

    Raises:
        LogExpMathError: If x, y or y * ln(x) fall outside the supported range
    """
    if y == 0:
        return ONE
    if x == 0:
        return 0

    if x >= (1 << 255):
        raise LogExpMathError(f"pow: base {x} out of bounds")
    if y >= MILD_EXPONENT_BOUND:
        raise LogExpMathError(f"pow: exponent {y} out of bounds")

    if LN_36_LOWER_BOUND < x < LN_36_UPPER_BOUND:
        ln_36_x = _ln_36(x)
        quotient = div_trunc(ln_36_x, ONE)
        remainder = ln_36_x - quotient * ONE
        logx_times_y = quotient * y + div_trunc(remainder * y, ONE)
    else:
        logx_times_y = _ln(x) * y

    logx_times_y = div_trunc(logx_times_y, ONE)

    if not MIN_NATURAL_EXPONENT <= logx_times_y <= MAX_NATURAL_EXPONENT:
        raise LogExpMathError(f"pow: product {logx_times_y} out of bounds")

    return exp(logx_times_y)


# =============================================================================
# Bfp wrapper
# =============================================================================


class Bfp:
    """18-decimal fixed-point number stored as int.

    Example: 1.5 is stored as 1_500_000_000_000_000_000.
    """

    ONE: ClassVar[int] = ONE

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    def from_decimal(cls, d: Decimal) -> Bfp:
        """Scale a non-negative Decimal by 10^18, rounding half up."""
        if d < 0:
            raise ValueError(f"Bfp.from_decimal requires non-negative input, got {d}")
        return cls(int((d * ONE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)))

    @classmethod
    def from_int(cls, i: int) -> Bfp:
        return cls(i * ONE)

    def to_decimal(self) -> Decimal:
        return Decimal(self.value) / Decimal(ONE)

    def mul_down(self, other: Bfp) -> Bfp:
        return Bfp(mul_down(self.value, other.value))

    def mul_up(self, other: Bfp) -> Bfp:
        return Bfp(mul_up(self.value, other.value))

    def div_down(self, other: Bfp) -> Bfp:
        return Bfp(div_down(self.value, other.value))

    def div_up(self, other: Bfp) -> Bfp:
        return Bfp(div_up(self.value, other.value))

    def pow_down(self, exponent: Bfp, *, version: int = 1) -> Bfp:
        return Bfp(pow_down(self.value, exponent.value, version=version))

    def pow_up(self, exponent: Bfp, *, version: int = 1) -> Bfp:
        return Bfp(pow_up(self.value, exponent.value, version=version))

    def complement(self) -> Bfp:
        return Bfp(complement(self.value))

    def add(self, other: Bfp) -> Bfp:
        return Bfp(self.value + other.value)

    def sub(self, other: Bfp) -> Bfp:
        """Subtract, clamping at zero."""
        return Bfp(max(0, self.value - other.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: Bfp) -> bool:
        return self.value < other.value

    def __le__(self, other: Bfp) -> bool:
        return self.value <= other.value

    def __gt__(self, other: Bfp) -> bool:
        return self.value > other.value

    def __ge__(self, other: Bfp) -> bool:
        return self.value >= other.value

    def __repr__(self) -> str:
        return f"Bfp({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())
