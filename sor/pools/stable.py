"""Stable and composable stable pools.

Both run StableSwap math on rate-scaled balances. A composable stable pool
also lists its own BPT among its tokens: the BPT entry is left out of the
invariant and swaps into or out of it are priced as single-token joins and
exits.
"""

from __future__ import annotations

from sor.constants import AMP_PRECISION, WAD
from sor.errors import PoolDataError, SwapLimitExceeded
from sor.models.snapshot import TokenPairSnapshot
from sor.models.token import RatedPoolToken, Token, TokenAmount, parse_units
from sor.models.types import SwapKind

from . import stable_math
from .base import BasePool, PoolType


class StablePool(BasePool):
    """Balancer stable pool (plain or meta-stable with rate providers).

    Attributes:
        amp: Amplification parameter including AMP_PRECISION
        token_pairs: Precomputed pair liquidity, used for normalized liquidity
    """

    pool_type = PoolType.STABLE
    tokens: list[RatedPoolToken]

    def __init__(
        self,
        id: str,
        address: str,
        chain: str,
        swap_fee: int,
        tokens: list[RatedPoolToken],
        amp: int,
        version: int = 1,
        total_shares: int = 0,
        token_pairs: list[TokenPairSnapshot] | None = None,
    ) -> None:
        super().__init__(id, address, chain, swap_fee, tokens, version, total_shares)
        if amp <= 0:
            raise PoolDataError(f"Pool {id} has non-positive amp {amp}")
        self.amp = amp
        self.token_pairs = token_pairs or []
        self._math_tokens = [t for t in self.tokens if not self.is_bpt(t)]
        self._math_indices = {t.token.address: i for i, t in enumerate(self._math_tokens)}

    # --- Invariant-space helpers ---

    def _balances(self) -> list[int]:
        return [t.scale18 for t in self._math_tokens]

    def _math_index(self, pool_token: RatedPoolToken) -> int:
        """Position of a token in the balance array the invariant sees."""
        return self._math_indices[pool_token.token.address]

    # --- Swaps ---

    def _swap_given_in(
        self, t_in: RatedPoolToken, t_out: RatedPoolToken, amount_in: TokenAmount
    ) -> TokenAmount:
        if amount_in.amount > t_in.amount:
            raise SwapLimitExceeded(f"Swap amount exceeds the limit of pool {self.id}")

        balances = self._balances()
        invariant = stable_math.calculate_invariant(self.amp, balances)

        if self.is_bpt(t_in):
            if amount_in.amount > self.total_shares:
                raise SwapLimitExceeded(f"BPT in exceeds the supply of pool {self.id}")
            amount_out_scale18 = stable_math.calc_token_out_given_exact_bpt_in(
                self.amp,
                balances,
                self._math_index(t_out),
                amount_in.mul_down_fixed(t_in.rate).scale18,
                self.total_shares,
                invariant,
                self.swap_fee,
            )
        elif self.is_bpt(t_out):
            amounts_in = [0] * len(balances)
            amounts_in[self._math_index(t_in)] = amount_in.mul_down_fixed(t_in.rate).scale18
            amount_out_scale18 = stable_math.calc_bpt_out_given_exact_tokens_in(
                self.amp, balances, amounts_in, self.total_shares, invariant, self.swap_fee
            )
        else:
            amount_in_with_fee = self.subtract_swap_fee_amount(amount_in)
            amount_in_scale18 = amount_in_with_fee.mul_down_fixed(t_in.rate).scale18
            if amount_in_scale18 == 0:
                # Nothing left after the fee: the invariant rounding would owe the pool
                raise SwapLimitExceeded(f"Swap amount {amount_in.amount} is dust in pool {self.id}")
            amount_out_scale18 = stable_math.calc_out_given_in(
                self.amp,
                balances,
                self._math_index(t_in),
                self._math_index(t_out),
                amount_in_scale18,
                invariant,
            )

        amount_out = TokenAmount.from_scale18_amount(t_out.token, amount_out_scale18)
        return amount_out.div_down_fixed(t_out.rate)

    def _swap_given_out(
        self, t_in: RatedPoolToken, t_out: RatedPoolToken, amount_out: TokenAmount
    ) -> TokenAmount:
        if amount_out.amount > t_out.amount:
            raise SwapLimitExceeded(f"Swap amount exceeds the limit of pool {self.id}")

        balances = self._balances()
        invariant = stable_math.calculate_invariant(self.amp, balances)
        amount_out_with_rate = amount_out.mul_down_fixed(t_out.rate).scale18

        if self.is_bpt(t_in):
            amounts_out = [0] * len(balances)
            amounts_out[self._math_index(t_out)] = amount_out_with_rate
            amount_in_scale18 = stable_math.calc_bpt_in_given_exact_tokens_out(
                self.amp, balances, amounts_out, self.total_shares, invariant, self.swap_fee
            )
            amount_in = TokenAmount.from_scale18_amount(t_in.token, amount_in_scale18, True)
        elif self.is_bpt(t_out):
            amount_in_scale18 = stable_math.calc_token_in_given_exact_bpt_out(
                self.amp,
                balances,
                self._math_index(t_in),
                amount_out_with_rate,
                self.total_shares,
                invariant,
                self.swap_fee,
            )
            amount_in = TokenAmount.from_scale18_amount(t_in.token, amount_in_scale18, True)
        else:
            amount_in_scale18 = stable_math.calc_in_given_out(
                self.amp,
                balances,
                self._math_index(t_in),
                self._math_index(t_out),
                amount_out_with_rate,
                invariant,
            )
            amount_in = self.add_swap_fee_amount(
                TokenAmount.from_scale18_amount(t_in.token, amount_in_scale18, True)
            )

        return amount_in.div_down_fixed(t_in.rate)

    # --- Limits and depth ---

    def get_limit_amount_swap(self, token_in: Token, token_out: Token, swap_kind: SwapKind) -> int:
        """Whole balance of the given side, expressed before its rate."""
        t_in = self.get_pool_token(token_in)
        t_out = self.get_pool_token(token_out)
        if swap_kind == SwapKind.GIVEN_IN:
            limit = t_in.amount * WAD // t_in.rate
            if self.is_bpt(t_in):
                limit = min(limit, self.total_shares)
            return limit
        return t_out.amount * WAD // t_out.rate

    def get_normalized_liquidity(self, token_in: Token, token_out: Token) -> int:
        """Snapshot pair data when available, else balance_out x amp."""
        t_in = self.get_pool_token(token_in)
        t_out = self.get_pool_token(token_out)
        pair = {t_in.token.address, t_out.token.address}
        for token_pair in self.token_pairs:
            if {token_pair.token_a.lower(), token_pair.token_b.lower()} == pair:
                return parse_units(token_pair.normalized_liquidity, 18)
        return t_out.scale18 * self.amp // AMP_PRECISION


class ComposableStablePool(StablePool):
    """Stable pool with its pre-minted BPT at bpt_index of the token list."""

    pool_type = PoolType.COMPOSABLE_STABLE

    def __init__(self, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(*args, **kwargs)
        bpt_indices = [i for i, t in enumerate(self.tokens) if self.is_bpt(t)]
        if not bpt_indices:
            raise PoolDataError(f"Composable stable pool {self.id} does not list its BPT")
        self.bpt_index = bpt_indices[0]
