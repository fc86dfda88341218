"""Test helpers module for shared test utilities.

- constants: Token addresses, decimals and pool ids
- factories: Pool snapshot dicts and parsed pools
"""

from tests.helpers.constants import (
    ADAI,
    BAL,
    DAI,
    EURS,
    TOKEN_DECIMALS,
    USDC,
    USDT,
    WBTC,
    WETH,
    XSGD,
    pool_address,
    pool_id,
)
from tests.helpers.factories import (
    composable_stable_snapshot,
    fx_snapshot,
    linear_snapshot,
    make_composable_stable_pool,
    make_fx_pool,
    make_linear_pool,
    make_stable_pool,
    make_token,
    make_weighted_pool,
    pool_from_snapshot,
    stable_snapshot,
    weighted_snapshot,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "WBTC",
    "BAL",
    "ADAI",
    "XSGD",
    "EURS",
    "TOKEN_DECIMALS",
    "pool_address",
    "pool_id",
    # Factories
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
