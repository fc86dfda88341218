"""Weighted pool math.

Port of Balancer's WeightedMath.sol for the two swap directions. Inputs and
outputs are 18-decimal values; fees are handled by the caller (subtracted
before calc_out_given_in, added after calc_in_given_out).
"""

from sor.constants import MAX_IN_RATIO, MAX_OUT_RATIO
from sor.errors import PoolDataError, SwapLimitExceeded
from sor.math.fixed_point import Bfp


def _check_pair(balance_in: Bfp, weight_in: Bfp, balance_out: Bfp, weight_out: Bfp) -> None:
    if weight_in.value <= 0 or weight_out.value <= 0:
        raise PoolDataError("Token weights must be positive")
    if balance_in.value <= 0 or balance_out.value <= 0:
        raise SwapLimitExceeded("Weighted pool balance is zero")


def calc_out_given_in(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_in: Bfp,
    *,
    version: int = 1,
) -> Bfp:
    """Output amount for an exact input (fee already subtracted).

    Formula:
        amount_out = balance_out * (1 - (balance_in / (balance_in + amount_in))^(weight_in / weight_out))

    Raises:
        SwapLimitExceeded: If amount_in > 30% of balance_in or a balance is zero
        PoolDataError: If a weight is not positive
    """
    _check_pair(balance_in, weight_in, balance_out, weight_out)

    if amount_in.value > balance_in.mul_down(Bfp(MAX_IN_RATIO)).value:
        raise SwapLimitExceeded(
            f"Input {amount_in.value} exceeds 30% of balance {balance_in.value}"
        )

    denominator = balance_in.add(amount_in)
    base = balance_in.div_up(denominator)
    exponent = weight_in.div_down(weight_out)
    power = base.pow_up(exponent, version=version)

    return balance_out.mul_down(power.complement())


def calc_in_given_out(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_out: Bfp,
    *,
    version: int = 1,
) -> Bfp:
    """Input amount for an exact output (fee not included).

    Formula:
        amount_in = balance_in * ((balance_out / (balance_out - amount_out))^(weight_out / weight_in) - 1)

    Raises:
        SwapLimitExceeded: If amount_out > 30% of balance_out or a balance is zero
        PoolDataError: If a weight is not positive
    """
    _check_pair(balance_in, weight_in, balance_out, weight_out)

    if amount_out.value > balance_out.mul_down(Bfp(MAX_OUT_RATIO)).value:
        raise SwapLimitExceeded(
            f"Output {amount_out.value} exceeds 30% of balance {balance_out.value}"
        )

    base = balance_out.div_up(balance_out.sub(amount_out))
    # Rounded up here, unlike calc_out_given_in
    exponent = weight_out.div_up(weight_in)
    power = base.pow_up(exponent, version=version)

    ratio = power.sub(Bfp(Bfp.ONE))
    return balance_in.mul_up(ratio)
