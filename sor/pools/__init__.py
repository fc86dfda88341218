"""Pool variants and the pool graph.

Pool types supported:
- Weighted (Balancer weighted product, v1 and v2+ power shortcuts)
- Stable and composable stable (StableSwap, BPT joins/exits as swaps)
- Linear (main/wrapped/BPT with fee targets)
- FX (Xave curve in numeraire space)
"""

# Base interface
from .base import BasePool, PoolType

# Variants
from .fx import FxPool, FxPoolToken
from .graph import PoolGraph
from .linear import LinearPool

# Token-pair measurement
from .liquidity import TokenPairMeasurement, measure_pool, measure_token_pair

# Snapshot parsing
from .parsing import parse_pool, parse_pools
from .stable import ComposableStablePool, StablePool
from .weighted import WeightedPool, WeightedPoolToken

__all__ = [
    "BasePool",
    "PoolType",
    "WeightedPool",
    "WeightedPoolToken",
    "StablePool",
    "ComposableStablePool",
    "LinearPool",
    "FxPool",
    "FxPoolToken",
    "PoolGraph",
    "parse_pool",
    "parse_pools",
    "TokenPairMeasurement",
    "measure_pool",
    "measure_token_pair",
]
