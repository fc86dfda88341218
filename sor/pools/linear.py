"""Linear pools: a main token, its yield-bearing wrapper and the pool's BPT.

Main and wrapped trade close to 1:1 while the main balance stays inside the
target band. The BPT is pre-minted, so its circulating ("virtual") supply is
carried in total_shares rather than read from the BPT balance.
"""

from __future__ import annotations

import structlog

from sor.constants import MAX_TOKEN_BALANCE, WAD
from sor.errors import NoLiquidity, PoolDataError, SwapLimitExceeded
from sor.models.token import RatedPoolToken, Token, TokenAmount
from sor.models.types import SwapKind

from . import linear_math
from .base import BasePool, PoolType
from .linear_math import LinearParams

logger = structlog.get_logger()


class LinearPool(BasePool):
    """Balancer linear pool.

    Attributes:
        main_index: Index of the main token (e.g. DAI)
        wrapped_index: Index of the wrapped token (e.g. aDAI); its rate
            converts wrapped amounts into main units
        lower_target: Lower edge of the fee-free band, 18-decimal main units
        upper_target: Upper edge of the fee-free band, 18-decimal main units
    """

    pool_type = PoolType.LINEAR
    tokens: list[RatedPoolToken]

    def __init__(
        self,
        id: str,
        address: str,
        chain: str,
        swap_fee: int,
        tokens: list[RatedPoolToken],
        main_index: int,
        wrapped_index: int,
        lower_target: int,
        upper_target: int,
        version: int = 1,
        total_shares: int = 0,
    ) -> None:
        super().__init__(id, address, chain, swap_fee, tokens, version, total_shares)
        if len(self.tokens) != 3:
            raise PoolDataError(f"Linear pool {id} must hold main, wrapped and BPT tokens")
        if lower_target > upper_target:
            raise PoolDataError(f"Linear pool {id} has lower target above upper target")

        by_index = {t.index: t for t in self.tokens}
        try:
            self.main_token = by_index[main_index]
            self.wrapped_token = by_index[wrapped_index]
        except KeyError as err:
            raise PoolDataError(f"Linear pool {id} has no token at index {err.args[0]}") from err
        bpt = [t for t in self.tokens if self.is_bpt(t)]
        if not bpt:
            raise PoolDataError(f"Linear pool {id} does not list its BPT")
        self.bpt_token = bpt[0]

        self.main_index = main_index
        self.wrapped_index = wrapped_index
        self.lower_target = lower_target
        self.upper_target = upper_target

    @property
    def params(self) -> LinearParams:
        return LinearParams(
            fee=self.swap_fee, lower_target=self.lower_target, upper_target=self.upper_target
        )

    def _balances(self) -> tuple[int, int, int]:
        """Main and wrapped balances (18-decimal, wrapped with rate) and virtual BPT supply."""
        return self.main_token.scale18, self.wrapped_token.scale18, self.total_shares

    def _kind(self, pool_token: RatedPoolToken) -> str:
        if pool_token is self.main_token:
            return "main"
        if pool_token is self.wrapped_token:
            return "wrapped"
        return "bpt"

    # --- Swaps ---

    def _swap_given_in(
        self, t_in: RatedPoolToken, t_out: RatedPoolToken, amount_in: TokenAmount
    ) -> TokenAmount:
        main, wrapped, supply = self._balances()
        params = self.params
        amount = amount_in.mul_down_fixed(t_in.rate).scale18

        match self._kind(t_in), self._kind(t_out):
            case "main", "bpt":
                out = linear_math.calc_bpt_out_per_main_in(amount, main, wrapped, supply, params)
            case "wrapped", "bpt":
                out = linear_math.calc_bpt_out_per_wrapped_in(amount, main, wrapped, supply, params)
            case "bpt", "main":
                self._check_bpt_in(amount_in.amount)
                out = linear_math.calc_main_out_per_bpt_in(amount, main, wrapped, supply, params)
            case "bpt", "wrapped":
                self._check_bpt_in(amount_in.amount)
                out = linear_math.calc_wrapped_out_per_bpt_in(amount, main, wrapped, supply, params)
            case "main", "wrapped":
                out = linear_math.calc_wrapped_out_per_main_in(amount, main, params)
            case _:
                out = linear_math.calc_main_out_per_wrapped_in(amount, main, params)

        if out > t_out.scale18 and not self.is_bpt(t_out):
            raise SwapLimitExceeded(f"Swap output exceeds the balance of pool {self.id}")
        amount_out = TokenAmount.from_scale18_amount(t_out.token, out)
        return amount_out.div_down_fixed(t_out.rate)

    def _swap_given_out(
        self, t_in: RatedPoolToken, t_out: RatedPoolToken, amount_out: TokenAmount
    ) -> TokenAmount:
        if not self.is_bpt(t_out) and amount_out.amount > t_out.amount:
            raise SwapLimitExceeded(f"Swap amount exceeds the limit of pool {self.id}")

        main, wrapped, supply = self._balances()
        params = self.params
        amount = amount_out.mul_down_fixed(t_out.rate).scale18

        match self._kind(t_in), self._kind(t_out):
            case "main", "bpt":
                amount_in = linear_math.calc_main_in_per_bpt_out(amount, main, wrapped, supply, params)
            case "wrapped", "bpt":
                amount_in = linear_math.calc_wrapped_in_per_bpt_out(
                    amount, main, wrapped, supply, params
                )
            case "bpt", "main":
                amount_in = linear_math.calc_bpt_in_per_main_out(amount, main, wrapped, supply, params)
            case "bpt", "wrapped":
                amount_in = linear_math.calc_bpt_in_per_wrapped_out(
                    amount, main, wrapped, supply, params
                )
            case "main", "wrapped":
                amount_in = linear_math.calc_main_in_per_wrapped_out(amount, main, params)
            case _:
                amount_in = linear_math.calc_wrapped_in_per_main_out(amount, main, params)

        result = TokenAmount.from_scale18_amount(t_in.token, amount_in, True)
        return result.div_up_fixed(t_in.rate)

    def _check_bpt_in(self, amount: int) -> None:
        if amount > self.total_shares:
            raise SwapLimitExceeded(f"BPT in exceeds the virtual supply of pool {self.id}")

    # --- Limits and depth ---

    def get_limit_amount_swap(self, token_in: Token, token_out: Token, swap_kind: SwapKind) -> int:
        """Minting BPT is bounded only by the Vault's balance cap; everything
        else is bounded by draining the output balance."""
        t_in = self.get_pool_token(token_in)
        t_out = self.get_pool_token(token_out)

        if self.is_bpt(t_out):
            if swap_kind == SwapKind.GIVEN_IN:
                return MAX_TOKEN_BALANCE
            return max(0, MAX_TOKEN_BALANCE - self.total_shares)

        if swap_kind == SwapKind.GIVEN_OUT:
            return t_out.amount

        try:
            amount_in = self.swap_given_out(token_in, token_out, TokenAmount(t_out.token, t_out.amount))
        except NoLiquidity:
            return 0
        limit = amount_in.amount
        if self.is_bpt(t_in):
            limit = min(limit, self.total_shares)
        logger.debug(
            "linear_limit_computed", pool_id=self.id, token_in=t_in.token.address, limit=limit
        )
        return limit

    def get_normalized_liquidity(self, token_in: Token, token_out: Token) -> int:
        """Output balance, or the pool invariant when minting BPT."""
        t_out = self.get_pool_token(token_out)
        if self.is_bpt(t_out):
            main, wrapped, _ = self._balances()
            return linear_math.calc_invariant(linear_math.to_nominal(main, self.params), wrapped)
        return t_out.scale18 * WAD // t_out.rate
