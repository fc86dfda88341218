"""Token-pair spot price and normalized liquidity measurement.

For every pair of tokens in a pool (the pool's own BPT excluded):

- spot price: trade 1% of token A's balance into B and the proceeds back into
  A; the geometric mean of the two prices cancels the fee and most of the
  price impact: sqrt(price_a_to_b / price_b_to_a)
- effective price: price of a small A -> B trade (0.1% of A's balance)
- normalized liquidity: 1 / (1 - spot / effective)

Prices are ratios of raw amounts, as 18-decimal fixed point. Results are
reported as decimal strings so they can be fed back into snapshots as
tokenPairs.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from sor.constants import WAD
from sor.errors import MathError, NoLiquidity
from sor.math import fixed_point as fp
from sor.models.responses import TokenPairLiquidity
from sor.models.token import Token, TokenAmount
from sor.models.types import format_units

from .base import BasePool

logger = structlog.get_logger()

# Share of token A's balance traded for the spot price round trip (1%)
SPOT_TRADE_DIVISOR = 100

# Share of token A's balance traded for the effective price (0.1%)
EFFECTIVE_TRADE_DIVISOR = 1000


@dataclass
class TokenPairMeasurement:
    pool_id: str
    token_a: Token
    token_b: Token
    valid: bool = False
    normalized_liquidity: int = 0
    spot_price: int = 0
    effective_price: int = 0

    @property
    def id(self) -> str:
        return f"{self.pool_id}-{self.token_a.address}-{self.token_b.address}"

    def to_model(self) -> TokenPairLiquidity:
        return TokenPairLiquidity(
            id=self.id,
            pool_id=self.pool_id,
            token_a=self.token_a.address,
            token_b=self.token_b.address,
            valid=self.valid,
            normalized_liquidity=format_units(self.normalized_liquidity, 18),
            spot_price=format_units(self.spot_price, 18),
        )


def token_pairs(pool: BasePool) -> list[tuple[Token, Token]]:
    """Unordered pairs of the pool's tokens in index order, BPT excluded."""
    tokens = [t.token for t in pool.tokens if not pool.is_bpt(t)]
    return [(tokens[i], tokens[j]) for i in range(len(tokens)) for j in range(i + 1, len(tokens))]


def measure_token_pair(pool: BasePool, token_a: Token, token_b: Token) -> TokenPairMeasurement:
    """Quote the pair with the pool's own math; failed quotes mark it invalid."""
    measurement = TokenPairMeasurement(pool.id, token_a, token_b)
    balance_a = pool.get_pool_token(token_a).amount

    spot_amount_in = balance_a // SPOT_TRADE_DIVISOR
    effective_amount_in = balance_a // EFFECTIVE_TRADE_DIVISOR
    if effective_amount_in == 0:
        logger.debug("token_pair_empty_balance", pool_id=pool.id, token=token_a.address)
        return measurement

    try:
        a_to_b_out = pool.swap_given_in(token_a, token_b, TokenAmount(token_a, spot_amount_in))
        b_to_a_out = pool.swap_given_in(token_b, token_a, a_to_b_out)
        effective_out = pool.swap_given_in(token_a, token_b, TokenAmount(token_a, effective_amount_in))

        price_a_to_b = fp.div_down(spot_amount_in, a_to_b_out.amount)
        price_b_to_a = fp.div_down(a_to_b_out.amount, b_to_a_out.amount)
        spot_price = fp.pow_down(fp.div_down(price_a_to_b, price_b_to_a), WAD // 2)
        effective_price = fp.div_down(effective_amount_in, effective_out.amount)
        price_impact = WAD - fp.div_down(spot_price, effective_price)
    except (NoLiquidity, MathError) as err:
        logger.debug(
            "token_pair_quote_failed",
            pool_id=pool.id,
            token_a=token_a.address,
            token_b=token_b.address,
            error=str(err),
        )
        return measurement

    measurement.spot_price = spot_price
    measurement.effective_price = effective_price
    if price_impact <= 0:
        logger.debug("token_pair_no_price_impact", pool_id=pool.id, spot_price=spot_price)
        return measurement

    measurement.normalized_liquidity = fp.div_down(WAD, price_impact)
    measurement.valid = True
    return measurement


def measure_pool(pool: BasePool) -> list[TokenPairMeasurement]:
    measurements = [measure_token_pair(pool, a, b) for a, b in token_pairs(pool)]
    logger.debug(
        "pool_token_pairs_measured",
        pool_id=pool.id,
        pairs=len(measurements),
        valid=sum(m.valid for m in measurements),
    )
    return measurements
