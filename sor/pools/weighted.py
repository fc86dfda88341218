"""Weighted product pools."""

from __future__ import annotations

from sor.constants import MAX_IN_RATIO, MAX_OUT_RATIO, WAD
from sor.math.fixed_point import Bfp
from sor.models.token import PoolToken, Token, TokenAmount
from sor.models.types import SwapKind

from .base import BasePool, PoolType
from .weighted_math import calc_in_given_out, calc_out_given_in


class WeightedPoolToken(PoolToken):
    """Pool balance with its normalized weight (18-decimal, weights sum to 1)."""

    __slots__ = ("weight",)

    def __init__(self, token: Token, amount: int, index: int, weight: int) -> None:
        self.weight = weight
        super().__init__(token, amount, index)


class WeightedPool(BasePool):
    """Balancer weighted pool.

    Version 2 and later pools use the exact power shortcuts for exponents
    1, 2 and 4 (50/50 and 80/20 pools).
    """

    pool_type = PoolType.WEIGHTED
    tokens: list[WeightedPoolToken]

    def _swap_given_in(
        self, t_in: WeightedPoolToken, t_out: WeightedPoolToken, amount_in: TokenAmount
    ) -> TokenAmount:
        amount_in_with_fee = self.subtract_swap_fee_amount(amount_in)
        amount_out = calc_out_given_in(
            Bfp(t_in.scale18),
            Bfp(t_in.weight),
            Bfp(t_out.scale18),
            Bfp(t_out.weight),
            Bfp(amount_in_with_fee.scale18),
            version=self.version,
        )
        return TokenAmount.from_scale18_amount(t_out.token, amount_out.value)

    def _swap_given_out(
        self, t_in: WeightedPoolToken, t_out: WeightedPoolToken, amount_out: TokenAmount
    ) -> TokenAmount:
        amount_in = calc_in_given_out(
            Bfp(t_in.scale18),
            Bfp(t_in.weight),
            Bfp(t_out.scale18),
            Bfp(t_out.weight),
            Bfp(amount_out.scale18),
            version=self.version,
        )
        amount_in_without_fee = TokenAmount.from_scale18_amount(t_in.token, amount_in.value, True)
        return self.add_swap_fee_amount(amount_in_without_fee)

    def get_limit_amount_swap(self, token_in: Token, token_out: Token, swap_kind: SwapKind) -> int:
        t_in = self.get_pool_token(token_in)
        t_out = self.get_pool_token(token_out)
        if swap_kind == SwapKind.GIVEN_IN:
            return t_in.amount * MAX_IN_RATIO // WAD
        return t_out.amount * MAX_OUT_RATIO // WAD

    def get_normalized_liquidity(self, token_in: Token, token_out: Token) -> int:
        """balance_out * weight_in / (weight_in + weight_out)."""
        t_in = self.get_pool_token(token_in)
        t_out = self.get_pool_token(token_out)
        return t_out.scale18 * t_in.weight // (t_in.weight + t_out.weight)
