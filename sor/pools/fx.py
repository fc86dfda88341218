"""FX pools: two stablecoins of different currencies priced by oracle feeds."""

from __future__ import annotations

from sor.constants import DEFAULT_FX_ORACLE_DECIMALS, RAY
from sor.errors import PoolDataError, SwapLimitExceeded
from sor.models.token import PoolToken, Token, TokenAmount
from sor.models.types import SwapKind

from . import fx_math
from .base import BasePool, PoolType
from .fx_math import CurveParams


class FxPoolToken(PoolToken):
    """Pool balance with its oracle price.

    Attributes:
        latest_fx_price: Oracle price in USD, scaled by fx_oracle_decimals
        numeraire: Balance value in USD, 36-decimal
    """

    __slots__ = ("latest_fx_price", "fx_oracle_decimals", "numeraire")

    def __init__(
        self,
        token: Token,
        amount: int,
        index: int,
        latest_fx_price: int,
        fx_oracle_decimals: int = DEFAULT_FX_ORACLE_DECIMALS,
    ) -> None:
        if latest_fx_price <= 0:
            raise PoolDataError(f"FX token {token.address} has non-positive price")
        self.latest_fx_price = latest_fx_price
        self.fx_oracle_decimals = fx_oracle_decimals
        super().__init__(token, amount, index)

    def _rescale(self) -> None:
        super()._rescale()
        self.numeraire = self.to_numeraire(self.amount)

    def to_numeraire(self, raw_amount: int) -> int:
        scaled = raw_amount * 10 ** (36 - self.token.decimals) * self.latest_fx_price
        return scaled // 10**self.fx_oracle_decimals

    def from_numeraire(self, numeraire: int) -> TokenAmount:
        """Raw token amount worth the given numeraire value, rounded down."""
        raw = numeraire * 10**self.fx_oracle_decimals // self.latest_fx_price
        return TokenAmount(self.token, raw // 10 ** (36 - self.token.decimals))


class FxPool(BasePool):
    """Xave FX pool.

    Attributes:
        alpha: Half-width of the tradable region around the 50/50 balance
        beta: Half-width of the fee-free band
        lambda_: Share of collected fees paid back to rebalancing trades
        delta: Slope of the fee charged outside the beta band
        epsilon: Flat fee on every trade
    """

    pool_type = PoolType.FX
    tokens: list[FxPoolToken]

    def __init__(
        self,
        id: str,
        address: str,
        chain: str,
        swap_fee: int,
        tokens: list[FxPoolToken],
        alpha: int,
        beta: int,
        lambda_: int,
        delta: int,
        epsilon: int,
        version: int = 1,
        total_shares: int = 0,
    ) -> None:
        super().__init__(id, address, chain, swap_fee, tokens, version, total_shares)
        if len(self.tokens) != 2:
            raise PoolDataError(f"FX pool {id} must hold exactly two tokens")
        if not 0 < alpha < RAY:
            raise PoolDataError(f"FX pool {id} has alpha outside (0, 1)")
        self.alpha = alpha
        self.beta = beta
        self.lambda_ = lambda_
        self.delta = delta
        self.epsilon = epsilon

    @property
    def curve_params(self) -> CurveParams:
        return CurveParams(alpha=self.alpha, beta=self.beta, delta=self.delta, lambda_=self.lambda_)

    def _global_liquidity(self) -> int:
        return sum(t.numeraire for t in self.tokens)

    def _check_limit(self, t_in: FxPoolToken, t_out: FxPoolToken, amount: TokenAmount, kind: SwapKind) -> None:
        limit = self.get_limit_amount_swap(t_in.token, t_out.token, kind)
        if amount.amount > limit:
            raise SwapLimitExceeded(
                f"FX pool {self.id} is halted past {limit} for this trade",
                token_in=t_in.token.address,
                token_out=t_out.token.address,
            )

    def _swap_given_in(
        self, t_in: FxPoolToken, t_out: FxPoolToken, amount_in: TokenAmount
    ) -> TokenAmount:
        self._check_limit(t_in, t_out, amount_in, SwapKind.GIVEN_IN)
        output = fx_math.calculate_trade(
            self._global_liquidity(),
            [t_in.numeraire, t_out.numeraire],
            t_in.to_numeraire(amount_in.amount),
            1,
            self.curve_params,
        )
        amount_out_numeraire = fx_math.mul(-output, RAY - self.epsilon)
        return t_out.from_numeraire(amount_out_numeraire)

    def _swap_given_out(
        self, t_in: FxPoolToken, t_out: FxPoolToken, amount_out: TokenAmount
    ) -> TokenAmount:
        self._check_limit(t_in, t_out, amount_out, SwapKind.GIVEN_OUT)
        output = fx_math.calculate_trade(
            self._global_liquidity(),
            [t_in.numeraire, t_out.numeraire],
            -t_out.to_numeraire(amount_out.amount),
            0,
            self.curve_params,
        )
        amount_in_numeraire = fx_math.mul(output, RAY + self.epsilon)
        return t_in.from_numeraire(amount_in_numeraire)

    def get_limit_amount_swap(self, token_in: Token, token_out: Token, swap_kind: SwapKind) -> int:
        """(1 + alpha) * global_liquidity / 2 minus the given side's numeraire, floored at 0."""
        t_in = self.get_pool_token(token_in)
        t_out = self.get_pool_token(token_out)
        max_limit = fx_math.mul(RAY + self.alpha, self._global_liquidity()) // 2
        given = t_in if swap_kind == SwapKind.GIVEN_IN else t_out
        return max(0, given.from_numeraire(max_limit - given.numeraire).amount)

    def get_normalized_liquidity(self, token_in: Token, token_out: Token) -> int:
        self.get_pool_token(token_in)
        return self.get_pool_token(token_out).scale18
