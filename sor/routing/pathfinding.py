"""Path discovery over the pool graph.

Breadth-first search from token_in: every pool holding the current token is
an edge to each of its other tokens. BFS finds shorter paths first, so
direct paths are returned before multi-hop ones.
"""

from __future__ import annotations

from collections import deque

import structlog

from sor.models.token import Token
from sor.pools.base import BasePool
from sor.pools.graph import PoolGraph

from .types import Hop, Path

logger = structlog.get_logger()


def _hop_is_usable(pool: BasePool, token_in: Token, token_out: Token) -> bool:
    """Discard hops that could never carry any amount."""
    if pool.get_pool_token(token_in).amount <= 0 or pool.get_pool_token(token_out).amount <= 0:
        return False
    return pool.get_normalized_liquidity(token_in, token_out) > 0


def build_paths(
    token_in: str,
    token_out: str,
    pools: PoolGraph | list[BasePool],
    max_hops: int = 3,
    max_paths: int = 32,
) -> list[Path]:
    """Find candidate paths from token_in to token_out.

    A path never uses the same pool twice and never revisits a token. Hops
    through an empty balance or with zero normalized liquidity are skipped.

    Args:
        token_in: Starting token address
        token_out: Target token address
        pools: Pool graph (or plain list of pools) to search
        max_hops: Maximum number of swaps in a path
        max_paths: Maximum number of paths to return

    Returns:
        Paths ordered shortest first. Empty list if none are found.
    """
    graph = pools if isinstance(pools, PoolGraph) else PoolGraph(pools)
    if not graph.has_token(token_in) or not graph.has_token(token_out):
        return []
    start = graph.get_token(token_in)
    target = graph.get_token(token_out)
    if start == target:
        return []

    paths: list[Path] = []
    usable: dict[tuple[str, str, str], bool] = {}

    # (current token, hops so far, tokens visited, pools used)
    queue: deque[tuple[Token, tuple[Hop, ...], frozenset[str], frozenset[str]]] = deque(
        [(start, (), frozenset([start.address]), frozenset())]
    )

    while queue and len(paths) < max_paths:
        current, hops, visited, used_pools = queue.popleft()
        if len(hops) >= max_hops:
            continue

        neighbors = graph.neighbors(current.address)
        for address in sorted(neighbors):
            if address in visited:
                continue
            next_token = graph.get_token(address)
            for pool in neighbors[address]:
                if pool.id in used_pools:
                    continue
                key = (pool.id, current.address, address)
                if key not in usable:
                    usable[key] = _hop_is_usable(pool, current, next_token)
                if not usable[key]:
                    continue

                new_hops = hops + (Hop(pool, current, next_token),)
                if next_token == target:
                    paths.append(Path(new_hops))
                    if len(paths) >= max_paths:
                        break
                else:
                    queue.append(
                        (next_token, new_hops, visited | {address}, used_pools | {pool.id})
                    )
            if len(paths) >= max_paths:
                break

    logger.debug(
        "paths_built",
        token_in=start.address,
        token_out=target.address,
        max_hops=max_hops,
        count=len(paths),
    )
    return paths


__all__ = ["build_paths"]
