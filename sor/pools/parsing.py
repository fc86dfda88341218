"""Pool snapshot parsing.

Functions to turn validated PoolSnapshot models into pool objects. Human
decimal strings are converted to raw integers here, once, so the pool math
never sees a Decimal.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, localcontext

import structlog

from sor.errors import InvalidInput, PoolDataError
from sor.models.snapshot import (
    ComposableStablePoolSnapshot,
    FxPoolSnapshot,
    LinearPoolSnapshot,
    PoolSnapshot,
    PoolTokenSnapshot,
    StablePoolSnapshot,
    WeightedPoolSnapshot,
)
from sor.models.token import RatedPoolToken, Token, parse_units
from sor.models.types import DECIMAL_PRECISION

from .base import BasePool
from .fx import FxPool, FxPoolToken
from .linear import LinearPool
from .stable import ComposableStablePool, StablePool
from .weighted import WeightedPool, WeightedPoolToken

logger = structlog.get_logger()


def _parse_value(
    raw: str | Decimal,
    decimals: int,
    pool_id: str,
    pool_type: str,
    field: str,
) -> int:
    """Parse a decimal string into a raw integer, raising PoolDataError."""
    try:
        return parse_units(raw, decimals)
    except InvalidInput as err:
        logger.warning(f"{pool_type}_invalid_{field}", pool_id=pool_id, raw_value=str(raw))
        raise PoolDataError(f"Pool {pool_id} has invalid {field} '{raw}'") from err


def _parse_price(raw: str, oracle_decimals: int) -> int:
    """Oracle price in feed units; digits beyond the feed precision are dropped."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return int(Decimal(raw).scaleb(oracle_decimals).to_integral_value(rounding=ROUND_DOWN))


def _token(chain: str, token_data: PoolTokenSnapshot) -> Token:
    return Token(
        chain=chain,
        address=token_data.address,
        decimals=token_data.decimals,
        symbol=token_data.symbol,
        name=token_data.name,
    )


def _parse_common(snapshot: PoolSnapshot, pool_type: str) -> dict:
    swap_fee = _parse_value(snapshot.swap_fee, 18, snapshot.id, pool_type, "fee")
    if swap_fee >= 10**18:
        logger.warning(f"{pool_type}_invalid_fee_value", pool_id=snapshot.id, fee=snapshot.swap_fee)
        raise PoolDataError(f"Pool {snapshot.id} has swap fee >= 1")
    return {
        "id": snapshot.id,
        "address": snapshot.address,
        "chain": snapshot.chain,
        "swap_fee": swap_fee,
        "version": snapshot.version,
        "total_shares": _parse_value(snapshot.total_shares, 18, snapshot.id, pool_type, "shares"),
    }


def _rated_tokens(snapshot: PoolSnapshot, pool_type: str) -> list[RatedPoolToken]:
    tokens = []
    for token_data in snapshot.tokens:
        rate = _parse_value(token_data.price_rate, 18, snapshot.id, pool_type, "rate")
        if rate <= 0:
            logger.warning(
                f"{pool_type}_invalid_rate_value", pool_id=snapshot.id, token=token_data.address
            )
            raise PoolDataError(f"Pool {snapshot.id} has non-positive rate for {token_data.address}")
        balance = _parse_value(
            token_data.balance, token_data.decimals, snapshot.id, pool_type, "balance"
        )
        tokens.append(
            RatedPoolToken(_token(snapshot.chain, token_data), balance, token_data.index, rate)
        )
    return tokens


def parse_weighted_pool(snapshot: WeightedPoolSnapshot) -> WeightedPool:
    """Parse a weighted pool snapshot.

    Weights must be present on every token and add up to 1 (with a 1%
    tolerance for rounded snapshot values).
    """
    pool_type = "weighted_pool"
    tokens = []
    for token_data in snapshot.tokens:
        if token_data.weight is None:
            logger.warning(
                "weighted_pool_missing_weight", pool_id=snapshot.id, token=token_data.address
            )
            raise PoolDataError(f"Pool {snapshot.id} has no weight for {token_data.address}")
        weight = _parse_value(token_data.weight, 18, snapshot.id, pool_type, "weight")
        if weight <= 0:
            logger.warning(
                "weighted_pool_invalid_weight_value", pool_id=snapshot.id, token=token_data.address
            )
            raise PoolDataError(f"Pool {snapshot.id} has non-positive weight for {token_data.address}")
        balance = _parse_value(
            token_data.balance, token_data.decimals, snapshot.id, pool_type, "balance"
        )
        tokens.append(
            WeightedPoolToken(_token(snapshot.chain, token_data), balance, token_data.index, weight)
        )

    total_weight = sum(t.weight for t in tokens)
    if not 99 * 10**16 <= total_weight <= 101 * 10**16:
        logger.warning(
            "weighted_pool_invalid_weight_sum", pool_id=snapshot.id, total_weight=total_weight
        )
        raise PoolDataError(f"Pool {snapshot.id} weights do not add up to 1")

    return WeightedPool(tokens=tokens, **_parse_common(snapshot, pool_type))


def parse_stable_pool(snapshot: StablePoolSnapshot | ComposableStablePoolSnapshot) -> StablePool:
    """Parse a stable or composable stable pool snapshot.

    amp is given in human units and stored with AMP_PRECISION.
    """
    composable = isinstance(snapshot, ComposableStablePoolSnapshot)
    pool_type = "composable_stable_pool" if composable else "stable_pool"
    amp = _parse_value(snapshot.amp, 3, snapshot.id, pool_type, "amp")
    cls = ComposableStablePool if composable else StablePool
    return cls(
        tokens=_rated_tokens(snapshot, pool_type),
        amp=amp,
        token_pairs=list(snapshot.token_pairs),
        **_parse_common(snapshot, pool_type),
    )


def parse_linear_pool(snapshot: LinearPoolSnapshot) -> LinearPool:
    """Parse a linear pool snapshot; targets are in main token units."""
    pool_type = "linear_pool"
    return LinearPool(
        tokens=_rated_tokens(snapshot, pool_type),
        main_index=snapshot.main_index,
        wrapped_index=snapshot.wrapped_index,
        lower_target=_parse_value(snapshot.lower_target, 18, snapshot.id, pool_type, "target"),
        upper_target=_parse_value(snapshot.upper_target, 18, snapshot.id, pool_type, "target"),
        **_parse_common(snapshot, pool_type),
    )


def parse_fx_pool(snapshot: FxPoolSnapshot) -> FxPool:
    """Parse an FX pool snapshot.

    Every token needs its latest oracle price; curve parameters are read as
    36-decimal values.
    """
    pool_type = "fx_pool"
    tokens = []
    for token_data in snapshot.tokens:
        if token_data.latest_fx_price is None:
            logger.warning("fx_pool_missing_price", pool_id=snapshot.id, token=token_data.address)
            raise PoolDataError(f"FX pool {snapshot.id} has no price for {token_data.address}")
        price = _parse_price(token_data.latest_fx_price, token_data.fx_oracle_decimals)
        if price <= 0:
            logger.warning("fx_pool_invalid_price", pool_id=snapshot.id, token=token_data.address)
            raise PoolDataError(f"FX pool {snapshot.id} has non-positive price for {token_data.address}")
        balance = _parse_value(
            token_data.balance, token_data.decimals, snapshot.id, pool_type, "balance"
        )
        tokens.append(
            FxPoolToken(
                _token(snapshot.chain, token_data),
                balance,
                token_data.index,
                price,
                token_data.fx_oracle_decimals,
            )
        )

    def curve(field: str) -> int:
        return _parse_value(getattr(snapshot, field), 36, snapshot.id, pool_type, field.rstrip("_"))

    return FxPool(
        tokens=tokens,
        alpha=curve("alpha"),
        beta=curve("beta"),
        lambda_=curve("lambda_"),
        delta=curve("delta"),
        epsilon=curve("epsilon"),
        **_parse_common(snapshot, pool_type),
    )


def parse_pool(snapshot: PoolSnapshot) -> BasePool:
    """Dispatch a snapshot to the parser of its pool type.

    Raises:
        PoolDataError: If the snapshot cannot be turned into a working pool
    """
    match snapshot:
        case WeightedPoolSnapshot():
            return parse_weighted_pool(snapshot)
        case StablePoolSnapshot() | ComposableStablePoolSnapshot():
            return parse_stable_pool(snapshot)
        case LinearPoolSnapshot():
            return parse_linear_pool(snapshot)
        case FxPoolSnapshot():
            return parse_fx_pool(snapshot)
    raise PoolDataError(f"Unsupported pool snapshot {type(snapshot).__name__}")


def parse_pools(snapshots: list[PoolSnapshot]) -> list[BasePool]:
    """Parse all snapshots, keeping their order."""
    pools = [parse_pool(snapshot) for snapshot in snapshots]
    logger.debug("pools_parsed", count=len(pools))
    return pools
