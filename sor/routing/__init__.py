"""Swap routing over the pool graph.

Module structure:
- router.py: SmartOrderRouter facade
- types.py: Hop, Path, HopResult, PathAllocation and Route
- pathfinding.py: breadth-first path builder
- quoting.py: path quotes, limits, depth and marginal prices
- optimizer.py: RouteOptimizer splitting an amount across paths
- assembler.py: batch swap steps, totals and prices of a route
"""

from sor.routing.assembler import SwapExecutionPlan, assemble, merge_batch_swaps
from sor.routing.optimizer import RouteOptimizer
from sor.routing.pathfinding import build_paths
from sor.routing.quoting import (
    marginal_price,
    path_limit,
    path_normalized_liquidity,
    path_spot_price,
    quote_path,
    quote_path_amount,
)
from sor.routing.router import SmartOrderRouter, default_router
from sor.routing.types import Hop, HopResult, Path, PathAllocation, Route

__all__ = [
    "Hop",
    "HopResult",
    "Path",
    "PathAllocation",
    "Route",
    "RouteOptimizer",
    "SmartOrderRouter",
    "SwapExecutionPlan",
    "assemble",
    "build_paths",
    "default_router",
    "marginal_price",
    "merge_batch_swaps",
    "path_limit",
    "path_normalized_liquidity",
    "path_spot_price",
    "quote_path",
    "quote_path_amount",
]
