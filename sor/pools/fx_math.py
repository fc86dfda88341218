"""FX pool curve math.

Port of the Xave (DFX) CurveMath contract. The contract works in ABDK 64.64
fixed point; here every value is a 36-decimal integer in numeraire (USD)
space, and multiplications and divisions truncate toward zero like the
contract's signed arithmetic.

Balances are always ordered [token_in, token_out]. Both tokens weigh 0.5, so
the order does not change the result.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from sor.constants import RAY
from sor.errors import ConvergenceFailure, CurveHalt, CurveInvariantViolation, DivisionByZero

logger = structlog.get_logger()

HALF = RAY // 2
WEIGHTS = (HALF, HALF)

# Fee rate cap for a single balance (0.25)
MAX_FEE = RAY // 4

# Smallest accepted utility decrease, -0.000001000000000000024
MAX_DIFF = -1_000_000_000_000_024_000_000_000_000_000

# The contract compares outputs after dropping 1e13 units of 2^-64
CONVERGENCE_UNIT = 10**13 * RAY // 2**64

MAX_ITERATIONS = 32


@dataclass(frozen=True)
class CurveParams:
    """Curve shape, all 36-decimal."""

    alpha: int
    beta: int
    delta: int
    lambda_: int


def mul(a: int, b: int) -> int:
    return _trunc_div(a * b, RAY)


def div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZero(f"FX division by zero: {a} / 0")
    return _trunc_div(a * RAY, b)


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def calculate_micro_fee(balance: int, ideal: int, beta: int, delta: int) -> int:
    """Fee charged on one balance for sitting outside the beta band around its ideal."""
    if balance < ideal:
        threshold = mul(ideal, RAY - beta)
        if balance >= threshold:
            return 0
        fee_margin = threshold - balance
    else:
        threshold = mul(ideal, RAY + beta)
        if balance <= threshold:
            return 0
        fee_margin = balance - threshold

    fee = mul(div(fee_margin, ideal), delta)
    fee = min(fee, MAX_FEE)
    return mul(fee, fee_margin)


def calculate_fee(global_liquidity: int, balances: list[int], beta: int, delta: int) -> int:
    return sum(
        calculate_micro_fee(balance, mul(global_liquidity, weight), beta, delta)
        for balance, weight in zip(balances, WEIGHTS, strict=True)
    )


def enforce_halts(
    old_liquidity: int,
    new_liquidity: int,
    old_balances: list[int],
    new_balances: list[int],
    alpha: int,
) -> None:
    """Refuse trades that push a balance further outside the alpha region.

    Raises:
        CurveHalt: On an upper or lower halt
    """
    for i, weight in enumerate(WEIGHTS):
        new_ideal = mul(new_liquidity, weight)
        if new_balances[i] > new_ideal:
            upper_alpha = RAY + alpha
            new_halt = mul(new_ideal, upper_alpha)
            if new_balances[i] > new_halt:
                old_halt = mul(mul(old_liquidity, weight), upper_alpha)
                if old_balances[i] < old_halt:
                    raise CurveHalt("FX curve upper halt")
                if new_balances[i] - new_halt > old_balances[i] - old_halt:
                    raise CurveHalt("FX curve upper halt")
        else:
            lower_alpha = RAY - alpha
            new_halt = mul(new_ideal, lower_alpha)
            if new_balances[i] < new_halt:
                old_halt = mul(mul(old_liquidity, weight), lower_alpha)
                if old_balances[i] > old_halt:
                    raise CurveHalt("FX curve lower halt")
                if new_halt - new_balances[i] > old_halt - old_balances[i]:
                    raise CurveHalt("FX curve lower halt")


def enforce_swap_invariant(old_liquidity: int, omega: int, new_liquidity: int, psi: int) -> None:
    """Utility (liquidity minus fees) may only drop by a rounding margin.

    Raises:
        CurveInvariantViolation: If it drops further
    """
    diff = (new_liquidity - psi) - (old_liquidity - omega)
    if not (diff > 0 or diff >= MAX_DIFF):
        raise CurveInvariantViolation(f"FX curve swap invariant violated (diff {diff})")


def calculate_trade(
    old_liquidity: int,
    old_balances: list[int],
    input_amount: int,
    output_index: int,
    params: CurveParams,
) -> int:
    """Solve the curve for the amount on the output_index side.

    input_amount is the signed numeraire amount the trader adds to the pool
    (negative when it is taken out); the result carries the matching sign
    for the other side. Balances start from a 1:1 guess and iterate until the
    result stops moving.

    Raises:
        CurveHalt: If the trade crosses the alpha region
        CurveInvariantViolation: If the pool would lose utility
        ConvergenceFailure: After 32 iterations without settling
    """
    input_index = 1 - output_index
    new_balances = list(old_balances)
    new_balances[input_index] += input_amount
    new_balances[output_index] -= input_amount
    new_liquidity = old_liquidity

    output_amount = -input_amount
    omega = calculate_fee(old_liquidity, old_balances, params.beta, params.delta)

    for iteration in range(MAX_ITERATIONS):
        psi = calculate_fee(new_liquidity, new_balances, params.beta, params.delta)
        prev_amount = output_amount
        if omega < psi:
            output_amount = -(input_amount + omega - psi)
        else:
            output_amount = -(input_amount + mul(params.lambda_, omega - psi))

        new_liquidity = old_liquidity + input_amount + output_amount
        new_balances[output_index] = old_balances[output_index] + output_amount

        if _trunc_div(output_amount, CONVERGENCE_UNIT) == _trunc_div(prev_amount, CONVERGENCE_UNIT):
            enforce_halts(old_liquidity, new_liquidity, old_balances, new_balances, params.alpha)
            enforce_swap_invariant(old_liquidity, omega, new_liquidity, psi)
            logger.debug("fx_trade_converged", iterations=iteration + 1, output=output_amount)
            return output_amount

    raise ConvergenceFailure(f"FX curve did not converge after {MAX_ITERATIONS} iterations")
