"""Pytest configuration and fixtures."""

import pytest

from sor.config import RouterConfig
from sor.pools import PoolGraph, StablePool, WeightedPool
from sor.routing.router import SmartOrderRouter
from tests.helpers import (
    DAI,
    USDC,
    WETH,
    make_stable_pool,
    make_weighted_pool,
    stable_snapshot,
    weighted_snapshot,
)

# =============================================================================
# Pools
# =============================================================================


@pytest.fixture
def weth_dai_pool() -> WeightedPool:
    """50/50 WETH/DAI pool at 2000 DAI per WETH."""
    return make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=1)


@pytest.fixture
def weth_usdc_pool() -> WeightedPool:
    """80/20 WETH/USDC pool at 2000 USDC per WETH."""
    return make_weighted_pool(
        {WETH: "4000", USDC: "2000000"},
        weights={WETH: "0.8", USDC: "0.2"},
        n=2,
        version=2,
    )


@pytest.fixture
def dai_usdc_pool() -> StablePool:
    return make_stable_pool({DAI: "10000000", USDC: "10000000"}, amp="500", n=10)


@pytest.fixture
def pool_graph(weth_dai_pool, weth_usdc_pool, dai_usdc_pool) -> PoolGraph:
    """Triangle WETH/DAI/USDC: direct and two-hop routes between every pair."""
    return PoolGraph([weth_dai_pool, weth_usdc_pool, dai_usdc_pool])


@pytest.fixture
def triangle_snapshots() -> list[dict]:
    """Snapshot dicts of the pool_graph pools, for request payloads."""
    return [
        weighted_snapshot({WETH: "1000", DAI: "2000000"}, n=1),
        weighted_snapshot(
            {WETH: "4000", USDC: "2000000"}, weights={WETH: "0.8", USDC: "0.2"}, n=2, version=2
        ),
        stable_snapshot({DAI: "10000000", USDC: "10000000"}, amp="500", n=10),
    ]


# =============================================================================
# Router
# =============================================================================


@pytest.fixture
def router_config() -> RouterConfig:
    return RouterConfig()


@pytest.fixture
def sor(router_config: RouterConfig) -> SmartOrderRouter:
    return SmartOrderRouter(router_config)
