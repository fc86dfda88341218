"""Stable pool math.

Port of Balancer's StableMath.sol: the StableSwap invariant, swaps between
pool tokens and the join/exit formulas that let composable stable pools
trade their own BPT. All values are 18-decimal integers; amp includes
AMP_PRECISION.

Newton iterations use SafeInt so an unexpected negative intermediate or a
zero divisor raises instead of producing garbage.
"""

from sor.constants import AMP_PRECISION
from sor.errors import ConvergenceFailure, NegativeSwapResult, SwapLimitExceeded
from sor.math import fixed_point as fp
from sor.safe_int import S

# Maximum iterations for Newton-Raphson convergence
MAX_ITERATIONS = 255


def calculate_invariant(amp: int, balances: list[int]) -> int:
    """StableSwap invariant D for the given balances.

    Balancer's parameterization uses A*n in the Newton step; the n^n factor
    comes in through the iterative D_P product.

    Raises:
        SwapLimitExceeded: If a balance is zero
        ConvergenceFailure: If D does not settle within 255 iterations
    """
    n_coins = len(balances)
    total = sum(balances)
    if total == 0:
        return 0
    if any(balance <= 0 for balance in balances):
        raise SwapLimitExceeded("Stable pool has a zero balance")

    sum_balances = S(total)
    invariant = sum_balances
    amp_times_total = S(amp) * n_coins

    for _ in range(MAX_ITERATIONS):
        d_p = invariant
        for balance in balances:
            d_p = (d_p * invariant) // (S(balance) * n_coins)

        prev_invariant = invariant
        numerator = ((amp_times_total * sum_balances) // AMP_PRECISION + d_p * n_coins) * invariant
        denominator = ((amp_times_total - AMP_PRECISION) * invariant) // AMP_PRECISION + d_p * (
            n_coins + 1
        )
        invariant = numerator // denominator

        if invariant > prev_invariant:
            if invariant.value - prev_invariant.value <= 1:
                return invariant.value
        elif prev_invariant.value - invariant.value <= 1:
            return invariant.value

    raise ConvergenceFailure(f"Stable invariant did not converge after {MAX_ITERATIONS} iterations")


def get_token_balance_given_invariant_and_all_other_balances(
    amp: int,
    balances: list[int],
    invariant: int,
    token_index: int,
) -> int:
    """Solve for balances[token_index] so that the invariant holds.

    The current value at token_index only enters through the P_D product and
    is cancelled out, as in the contract.

    Raises:
        ConvergenceFailure: If the balance does not settle within 255 iterations
    """
    n_coins = len(balances)
    d = S(invariant)
    amp_times_total = S(amp) * n_coins

    total = S(balances[0])
    p_d = S(balances[0]) * n_coins
    for j in range(1, n_coins):
        p_d = (p_d * balances[j] * n_coins) // d
        total = total + balances[j]

    sum_others = total - balances[token_index]
    inv2 = d * d

    c = (inv2.ceiling_div(amp_times_total * p_d)) * AMP_PRECISION * balances[token_index]
    b = sum_others + (d // amp_times_total) * AMP_PRECISION

    token_balance = (inv2 + c).ceiling_div(d + b)

    for _ in range(MAX_ITERATIONS):
        prev_token_balance = token_balance
        token_balance = (token_balance * token_balance + c).ceiling_div(
            token_balance * 2 + b - d
        )

        if token_balance > prev_token_balance:
            if token_balance.value - prev_token_balance.value <= 1:
                return token_balance.value
        elif prev_token_balance.value - token_balance.value <= 1:
            return token_balance.value

    raise ConvergenceFailure(f"Stable balance did not converge after {MAX_ITERATIONS} iterations")


def calc_out_given_in(
    amp: int,
    balances: list[int],
    token_index_in: int,
    token_index_out: int,
    amount_in: int,
    invariant: int,
) -> int:
    """Output amount for an exact input (fee already subtracted).

    Raises:
        NegativeSwapResult: If the solved balance leaves nothing to pay out
    """
    new_balances = list(balances)
    new_balances[token_index_in] += amount_in
    final_balance_out = get_token_balance_given_invariant_and_all_other_balances(
        amp, new_balances, invariant, token_index_out
    )
    # One wei kept by the pool against rounding
    amount_out = balances[token_index_out] - final_balance_out - 1
    if amount_out < 0:
        raise NegativeSwapResult(f"Stable swap output is negative ({amount_out})")
    return amount_out


def calc_in_given_out(
    amp: int,
    balances: list[int],
    token_index_in: int,
    token_index_out: int,
    amount_out: int,
    invariant: int,
) -> int:
    """Input amount for an exact output (fee not included).

    Raises:
        SwapLimitExceeded: If amount_out is not below the output balance
    """
    if amount_out >= balances[token_index_out]:
        raise SwapLimitExceeded(
            f"Output {amount_out} exceeds balance {balances[token_index_out]}"
        )
    new_balances = list(balances)
    new_balances[token_index_out] -= amount_out
    final_balance_in = get_token_balance_given_invariant_and_all_other_balances(
        amp, new_balances, invariant, token_index_in
    )
    return final_balance_in - balances[token_index_in] + 1


# =============================================================================
# BPT joins and exits
# =============================================================================


def calc_bpt_out_given_exact_tokens_in(
    amp: int,
    balances: list[int],
    amounts_in: list[int],
    bpt_total_supply: int,
    current_invariant: int,
    swap_fee: int,
) -> int:
    """BPT minted for a join with exact token amounts.

    Only the part of each amount that unbalances the pool pays the swap fee.
    """
    sum_balances = sum(balances)

    balance_ratios_with_fee = []
    invariant_ratio_with_fees = 0
    for balance, amount_in in zip(balances, amounts_in, strict=True):
        current_weight = fp.div_down(balance, sum_balances)
        ratio = fp.div_down(balance + amount_in, balance)
        balance_ratios_with_fee.append(ratio)
        invariant_ratio_with_fees += fp.mul_down(ratio, current_weight)

    new_balances = []
    for balance, amount_in, ratio in zip(balances, amounts_in, balance_ratios_with_fee, strict=True):
        if ratio > invariant_ratio_with_fees:
            non_taxable = fp.mul_down(balance, invariant_ratio_with_fees - fp.ONE)
            taxable = (S(amount_in) - non_taxable).value
            amount_in_without_fee = non_taxable + fp.mul_down(taxable, fp.ONE - swap_fee)
        else:
            amount_in_without_fee = amount_in
        new_balances.append(balance + amount_in_without_fee)

    new_invariant = calculate_invariant(amp, new_balances)
    invariant_ratio = fp.div_down(new_invariant, current_invariant)
    if invariant_ratio > fp.ONE:
        return fp.mul_down(bpt_total_supply, invariant_ratio - fp.ONE)
    return 0


def calc_token_in_given_exact_bpt_out(
    amp: int,
    balances: list[int],
    token_index: int,
    bpt_amount_out: int,
    bpt_total_supply: int,
    current_invariant: int,
    swap_fee: int,
) -> int:
    """Single-token amount needed to mint exactly bpt_amount_out."""
    new_invariant = fp.mul_up(
        fp.div_up(bpt_total_supply + bpt_amount_out, bpt_total_supply), current_invariant
    )
    new_balance = get_token_balance_given_invariant_and_all_other_balances(
        amp, balances, new_invariant, token_index
    )
    amount_in_without_fee = (S(new_balance) - balances[token_index]).value

    current_weight = fp.div_down(balances[token_index], sum(balances))
    taxable = fp.mul_up(amount_in_without_fee, fp.complement(current_weight))
    non_taxable = amount_in_without_fee - taxable

    return non_taxable + fp.div_up(taxable, fp.ONE - swap_fee)


def calc_bpt_in_given_exact_tokens_out(
    amp: int,
    balances: list[int],
    amounts_out: list[int],
    bpt_total_supply: int,
    current_invariant: int,
    swap_fee: int,
) -> int:
    """BPT burned for an exit with exact token amounts."""
    sum_balances = sum(balances)

    balance_ratios_without_fee = []
    invariant_ratio_without_fees = 0
    for balance, amount_out in zip(balances, amounts_out, strict=True):
        current_weight = fp.div_up(balance, sum_balances)
        ratio = fp.div_up((S(balance) - amount_out).value, balance)
        balance_ratios_without_fee.append(ratio)
        invariant_ratio_without_fees += fp.mul_up(ratio, current_weight)

    new_balances = []
    for balance, amount_out, ratio in zip(
        balances, amounts_out, balance_ratios_without_fee, strict=True
    ):
        if invariant_ratio_without_fees > ratio:
            non_taxable = fp.mul_down(balance, fp.complement(invariant_ratio_without_fees))
            taxable = (S(amount_out) - non_taxable).value
            amount_out_with_fee = non_taxable + fp.div_up(taxable, fp.ONE - swap_fee)
        else:
            amount_out_with_fee = amount_out
        new_balances.append((S(balance) - amount_out_with_fee).value)

    new_invariant = calculate_invariant(amp, new_balances)
    invariant_ratio = fp.div_down(new_invariant, current_invariant)
    return fp.mul_up(bpt_total_supply, fp.complement(invariant_ratio))


def calc_token_out_given_exact_bpt_in(
    amp: int,
    balances: list[int],
    token_index: int,
    bpt_amount_in: int,
    bpt_total_supply: int,
    current_invariant: int,
    swap_fee: int,
) -> int:
    """Single-token amount paid out for burning exactly bpt_amount_in."""
    new_invariant = fp.mul_up(
        fp.div_up((S(bpt_total_supply) - bpt_amount_in).value, bpt_total_supply),
        current_invariant,
    )
    new_balance = get_token_balance_given_invariant_and_all_other_balances(
        amp, balances, new_invariant, token_index
    )
    amount_out_without_fee = (S(balances[token_index]) - new_balance).value

    current_weight = fp.div_down(balances[token_index], sum(balances))
    taxable = fp.mul_up(amount_out_without_fee, fp.complement(current_weight))
    non_taxable = amount_out_without_fee - taxable

    return non_taxable + fp.mul_down(taxable, fp.ONE - swap_fee)
