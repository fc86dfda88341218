"""Linear pool math.

Port of Balancer's LinearMath.sol. A linear pool prices main and wrapped
tokens 1:1 in "nominal" space; the main balance is converted to nominal by
charging the swap fee on whatever part of it lies outside the
[lower_target, upper_target] band. The invariant is
nominal_main + wrapped, and BPT is minted or burned proportionally to it.

All amounts are 18-decimal; wrapped amounts already carry the wrapped
token's rate. Results may come out negative for impossible trades; the pool
turns those into NegativeSwapResult.
"""

from dataclasses import dataclass

from sor.math import fixed_point as fp
from sor.safe_int import S


@dataclass(frozen=True)
class LinearParams:
    """Swap fee and main token targets, all 18-decimal."""

    fee: int
    lower_target: int
    upper_target: int


def to_nominal(real: int, params: LinearParams) -> int:
    """Real main balance to nominal. Fees round down."""
    if real < params.lower_target:
        fees = fp.mul_down(params.lower_target - real, params.fee)
        return real - fees
    if real <= params.upper_target:
        return real
    fees = fp.mul_down(real - params.upper_target, params.fee)
    return real - fees


def from_nominal(nominal: int, params: LinearParams) -> int:
    """Nominal main balance to real; the inverse of to_nominal, rounding down."""
    if nominal < params.lower_target:
        return fp.div_down(
            nominal + fp.mul_down(params.fee, params.lower_target), fp.ONE + params.fee
        )
    if nominal <= params.upper_target:
        return nominal
    return fp.div_down(nominal - fp.mul_down(params.fee, params.upper_target), fp.ONE - params.fee)


def calc_invariant(nominal_main_balance: int, wrapped_balance: int) -> int:
    return nominal_main_balance + wrapped_balance


def _div_down(a: int, b: int) -> int:
    return (S(a) // b).value


def _div_up(a: int, b: int) -> int:
    return S(a).ceiling_div(b).value


# =============================================================================
# Main token in/out
# =============================================================================


def calc_bpt_out_per_main_in(
    main_in: int, main_balance: int, wrapped_balance: int, bpt_supply: int, params: LinearParams
) -> int:
    # Amount out, so we round down overall
    if bpt_supply == 0:
        # First join: BPT supply starts equal to the invariant
        return to_nominal(main_in, params)
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance + main_in, params)
    delta_nominal_main = after_nominal_main - previous_nominal_main
    invariant = calc_invariant(previous_nominal_main, wrapped_balance)
    return _div_down(bpt_supply * delta_nominal_main, invariant)


def calc_bpt_in_per_main_out(
    main_out: int, main_balance: int, wrapped_balance: int, bpt_supply: int, params: LinearParams
) -> int:
    # Amount in, so we round up overall
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance - main_out, params)
    delta_nominal_main = previous_nominal_main - after_nominal_main
    invariant = calc_invariant(previous_nominal_main, wrapped_balance)
    return _div_up(bpt_supply * delta_nominal_main, invariant)


def calc_wrapped_out_per_main_in(main_in: int, main_balance: int, params: LinearParams) -> int:
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance + main_in, params)
    return after_nominal_main - previous_nominal_main


def calc_wrapped_in_per_main_out(main_out: int, main_balance: int, params: LinearParams) -> int:
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance - main_out, params)
    return previous_nominal_main - after_nominal_main


def calc_main_in_per_bpt_out(
    bpt_out: int, main_balance: int, wrapped_balance: int, bpt_supply: int, params: LinearParams
) -> int:
    if bpt_supply == 0:
        return from_nominal(bpt_out, params)
    previous_nominal_main = to_nominal(main_balance, params)
    invariant = calc_invariant(previous_nominal_main, wrapped_balance)
    delta_nominal_main = _div_up(invariant * bpt_out, bpt_supply)
    after_nominal_main = previous_nominal_main + delta_nominal_main
    new_main_balance = from_nominal(after_nominal_main, params)
    return new_main_balance - main_balance


def calc_main_out_per_bpt_in(
    bpt_in: int, main_balance: int, wrapped_balance: int, bpt_supply: int, params: LinearParams
) -> int:
    previous_nominal_main = to_nominal(main_balance, params)
    invariant = calc_invariant(previous_nominal_main, wrapped_balance)
    delta_nominal_main = _div_down(invariant * bpt_in, bpt_supply)
    after_nominal_main = previous_nominal_main - delta_nominal_main
    new_main_balance = from_nominal(after_nominal_main, params)
    return main_balance - new_main_balance


def calc_main_out_per_wrapped_in(wrapped_in: int, main_balance: int, params: LinearParams) -> int:
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = previous_nominal_main - wrapped_in
    new_main_balance = from_nominal(after_nominal_main, params)
    return main_balance - new_main_balance


def calc_main_in_per_wrapped_out(wrapped_out: int, main_balance: int, params: LinearParams) -> int:
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = previous_nominal_main + wrapped_out
    new_main_balance = from_nominal(after_nominal_main, params)
    return new_main_balance - main_balance


# =============================================================================
# Wrapped token against BPT
# =============================================================================


def calc_bpt_out_per_wrapped_in(
    wrapped_in: int, main_balance: int, wrapped_balance: int, bpt_supply: int, params: LinearParams
) -> int:
    if bpt_supply == 0:
        return wrapped_in
    nominal_main = to_nominal(main_balance, params)
    previous_invariant = calc_invariant(nominal_main, wrapped_balance)
    new_invariant = calc_invariant(nominal_main, wrapped_balance + wrapped_in)
    new_bpt_balance = _div_down(bpt_supply * new_invariant, previous_invariant)
    return new_bpt_balance - bpt_supply


def calc_bpt_in_per_wrapped_out(
    wrapped_out: int, main_balance: int, wrapped_balance: int, bpt_supply: int, params: LinearParams
) -> int:
    nominal_main = to_nominal(main_balance, params)
    previous_invariant = calc_invariant(nominal_main, wrapped_balance)
    new_invariant = calc_invariant(nominal_main, wrapped_balance - wrapped_out)
    new_bpt_balance = _div_down(bpt_supply * new_invariant, previous_invariant)
    return bpt_supply - new_bpt_balance


def calc_wrapped_in_per_bpt_out(
    bpt_out: int, main_balance: int, wrapped_balance: int, bpt_supply: int, params: LinearParams
) -> int:
    if bpt_supply == 0:
        return bpt_out
    nominal_main = to_nominal(main_balance, params)
    previous_invariant = calc_invariant(nominal_main, wrapped_balance)
    new_bpt_balance = bpt_supply + bpt_out
    new_wrapped_balance = _div_up(new_bpt_balance * previous_invariant, bpt_supply) - nominal_main
    return new_wrapped_balance - wrapped_balance


def calc_wrapped_out_per_bpt_in(
    bpt_in: int, main_balance: int, wrapped_balance: int, bpt_supply: int, params: LinearParams
) -> int:
    nominal_main = to_nominal(main_balance, params)
    previous_invariant = calc_invariant(nominal_main, wrapped_balance)
    new_bpt_balance = bpt_supply - bpt_in
    new_wrapped_balance = _div_up(new_bpt_balance * previous_invariant, bpt_supply) - nominal_main
    return wrapped_balance - new_wrapped_balance
