"""Factory functions for pool snapshots and pools.

Snapshot factories return the camelCase dicts a client would send; pool
factories validate them and run them through the snapshot parser, so tests
build pools exactly the way the router does.

Usage:
    from tests.helpers import make_weighted_pool, weighted_snapshot

    pool = make_weighted_pool({WETH: "1000", DAI: "2000000"})
    request = {"tokenIn": WETH, ..., "pools": [weighted_snapshot({WETH: "1000", DAI: "2000000"})]}
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import TypeAdapter

from sor.models.snapshot import PoolSnapshot
from sor.models.token import Token
from sor.pools import FxPool, LinearPool, StablePool, WeightedPool, parse_pool
from tests.helpers.constants import (
    ADAI,
    DAI,
    TOKEN_DECIMALS,
    TOKEN_SYMBOLS,
    pool_address,
    pool_id,
)

_snapshot_adapter = TypeAdapter(PoolSnapshot)


def make_token(address: str, decimals: int | None = None, chain: str = "MAINNET") -> Token:
    """Token with the decimals and symbol of the test constants."""
    return Token(
        chain=chain,
        address=address,
        decimals=TOKEN_DECIMALS[address] if decimals is None else decimals,
        symbol=TOKEN_SYMBOLS.get(address, ""),
    )


def _token_entry(address: str, index: int, balance: str, **extra: object) -> dict:
    return {
        "address": address,
        "decimals": TOKEN_DECIMALS[address],
        "symbol": TOKEN_SYMBOLS.get(address, ""),
        "index": index,
        "balance": balance,
        **extra,
    }


def _base(n: int, pool_type: str, fee: str, tokens: list[dict], **extra: object) -> dict:
    return {
        "id": pool_id(n),
        "address": pool_address(n),
        "type": pool_type,
        "swapFee": fee,
        "tokens": tokens,
        **extra,
    }


# =============================================================================
# Snapshot dicts
# =============================================================================


def weighted_snapshot(
    balances: dict[str, str],
    weights: dict[str, str] | None = None,
    fee: str = "0.003",
    n: int = 1,
    version: int = 1,
) -> dict:
    """Weighted pool snapshot; equal weights unless given."""
    if weights is None:
        equal = {2: "0.5", 3: "0.333333333333333334", 4: "0.25"}[len(balances)]
        weights = {address: equal for address in balances}
    tokens = [
        _token_entry(address, i, balance, weight=weights[address])
        for i, (address, balance) in enumerate(balances.items())
    ]
    return _base(n, "WEIGHTED", fee, tokens, version=version)


def stable_snapshot(
    balances: dict[str, str],
    amp: str = "200",
    fee: str = "0.0004",
    n: int = 10,
    rates: dict[str, str] | None = None,
    token_pairs: list[dict] | None = None,
) -> dict:
    rates = rates or {}
    tokens = [
        _token_entry(address, i, balance, priceRate=rates.get(address, "1"))
        for i, (address, balance) in enumerate(balances.items())
    ]
    return _base(n, "STABLE", fee, tokens, amp=amp, tokenPairs=token_pairs or [])


def composable_stable_snapshot(
    balances: dict[str, str],
    amp: str = "200",
    fee: str = "0.0004",
    n: int = 20,
    total_shares: str | None = None,
    bpt_balance: str = "2596148429267413.814265248164610048",
) -> dict:
    """Composable stable pool with its BPT at index 0.

    total_shares defaults to the sum of the balances (a pool at rate 1).
    """
    if total_shares is None:
        total_shares = str(sum(Decimal(b) for b in balances.values()))
    bpt = {
        "address": pool_address(n),
        "decimals": 18,
        "symbol": "BPT",
        "index": 0,
        "balance": bpt_balance,
    }
    tokens = [bpt] + [
        _token_entry(address, i + 1, balance) for i, (address, balance) in enumerate(balances.items())
    ]
    return _base(n, "COMPOSABLE_STABLE", fee, tokens, amp=amp, totalShares=total_shares)


def linear_snapshot(
    main_balance: str,
    wrapped_balance: str,
    main: str = DAI,
    wrapped: str = ADAI,
    wrapped_rate: str = "1.1",
    lower_target: str = "1000",
    upper_target: str = "5000",
    fee: str = "0.01",
    total_shares: str | None = None,
    n: int = 30,
    bpt_balance: str = "5192296858534827.628530496329220095",
) -> dict:
    """Linear pool: main at index 0, BPT at 1, wrapped at 2.

    total_shares defaults to the invariant computed by hand for a main
    balance inside the target band (main + wrapped x rate).
    """
    if total_shares is None:
        total_shares = str(Decimal(main_balance) + Decimal(wrapped_balance) * Decimal(wrapped_rate))
    tokens = [
        _token_entry(main, 0, main_balance),
        {
            "address": pool_address(n),
            "decimals": 18,
            "symbol": "bb-a-DAI",
            "index": 1,
            "balance": bpt_balance,
        },
        _token_entry(wrapped, 2, wrapped_balance, priceRate=wrapped_rate),
    ]
    return _base(
        n,
        "LINEAR",
        fee,
        tokens,
        mainIndex=0,
        wrappedIndex=2,
        lowerTarget=lower_target,
        upperTarget=upper_target,
        totalShares=total_shares,
    )


def fx_snapshot(
    balances: dict[str, str],
    prices: dict[str, str],
    alpha: str = "0.8",
    beta: str = "0.42",
    lambda_: str = "0.3",
    delta: str = "0.2",
    epsilon: str = "0.0015",
    n: int = 40,
) -> dict:
    """FX pool; prices are USD oracle prices ("1.00", "0.74")."""
    tokens = [
        _token_entry(address, i, balance, latestFxPrice=prices[address], fxOracleDecimals=8)
        for i, (address, balance) in enumerate(balances.items())
    ]
    return _base(
        n,
        "FX",
        "0",
        tokens,
        alpha=alpha,
        beta=beta,
        delta=delta,
        epsilon=epsilon,
        **{"lambda": lambda_},
    )


# =============================================================================
# Pools
# =============================================================================


def pool_from_snapshot(snapshot: dict):  # type: ignore[no-untyped-def]
    """Validate a snapshot dict and parse it into a pool."""
    return parse_pool(_snapshot_adapter.validate_python(snapshot))


def make_weighted_pool(balances: dict[str, str], **kwargs: object) -> WeightedPool:
    return pool_from_snapshot(weighted_snapshot(balances, **kwargs))


def make_stable_pool(balances: dict[str, str], **kwargs: object) -> StablePool:
    return pool_from_snapshot(stable_snapshot(balances, **kwargs))


def make_composable_stable_pool(balances: dict[str, str], **kwargs: object) -> StablePool:
    return pool_from_snapshot(composable_stable_snapshot(balances, **kwargs))


def make_linear_pool(main_balance: str, wrapped_balance: str, **kwargs: object) -> LinearPool:
    return pool_from_snapshot(linear_snapshot(main_balance, wrapped_balance, **kwargs))


def make_fx_pool(balances: dict[str, str], prices: dict[str, str], **kwargs: object) -> FxPool:
    return pool_from_snapshot(fx_snapshot(balances, prices, **kwargs))


__all__ = [
    "make_token",
    "weighted_snapshot",
    "stable_snapshot",
    "composable_stable_snapshot",
    "linear_snapshot",
    "fx_snapshot",
    "pool_from_snapshot",
    "make_weighted_pool",
    "make_stable_pool",
    "make_composable_stable_pool",
    "make_linear_pool",
    "make_fx_pool",
]
