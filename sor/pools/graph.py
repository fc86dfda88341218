"""Pool graph for path discovery.

Tokens are nodes; every pool holding two tokens is an edge between them. The
graph owns the pool objects of one routing request, and working_copy()
hands out deep copies so sequential execution with mutate=True never leaks
into the pools other quotes read.
"""

from __future__ import annotations

import copy

import structlog

from sor.errors import InvalidInput
from sor.models.token import Token
from sor.models.types import normalize_address

from .base import BasePool

logger = structlog.get_logger()


class PoolGraph:
    """Pools of one chain, indexed by the tokens they hold.

    Usage:
        graph = PoolGraph(pools)
        for pool in graph.pools_between(token_a, token_b):
            ...
    """

    def __init__(self, pools: list[BasePool] | None = None) -> None:
        self._pools: dict[str, BasePool] = {}
        self._by_token: dict[str, list[BasePool]] = {}
        self._tokens: dict[str, Token] = {}
        for pool in pools or []:
            self.add_pool(pool)

    def add_pool(self, pool: BasePool) -> None:
        """Add a pool; a second pool with the same id is rejected.

        Raises:
            InvalidInput: If the id is already present
        """
        if pool.id in self._pools:
            raise InvalidInput(f"Duplicate pool id {pool.id}")
        self._pools[pool.id] = pool
        for pool_token in pool.tokens:
            address = pool_token.token.address
            self._by_token.setdefault(address, []).append(pool)
            self._tokens.setdefault(address, pool_token.token)

    @property
    def pools(self) -> list[BasePool]:
        return list(self._pools.values())

    @property
    def pool_count(self) -> int:
        return len(self._pools)

    @property
    def token_count(self) -> int:
        return len(self._by_token)

    def get_pool(self, pool_id: str) -> BasePool:
        try:
            return self._pools[pool_id.lower()]
        except KeyError as err:
            raise InvalidInput(f"Unknown pool {pool_id}") from err

    def has_token(self, address: str) -> bool:
        return normalize_address(address) in self._by_token

    def get_token(self, address: str) -> Token:
        """Token as the pools describe it (decimals, symbol).

        Raises:
            InvalidInput: If no pool holds the token
        """
        token = self._tokens.get(normalize_address(address))
        if token is None:
            raise InvalidInput(f"No pool holds token {address}")
        return token

    def pools_for_token(self, address: str) -> list[BasePool]:
        return list(self._by_token.get(normalize_address(address), []))

    def neighbors(self, address: str) -> dict[str, list[BasePool]]:
        """Tokens reachable in one hop, with the pools that connect them."""
        address = normalize_address(address)
        result: dict[str, list[BasePool]] = {}
        for pool in self._by_token.get(address, []):
            for other in pool.token_addresses:
                if other != address:
                    result.setdefault(other, []).append(pool)
        return result

    def pools_between(self, token_a: str, token_b: str) -> list[BasePool]:
        return self.neighbors(token_a).get(normalize_address(token_b), [])

    def working_copy(self) -> PoolGraph:
        """Graph over deep copies of every pool."""
        pools = copy.deepcopy(self.pools)
        logger.debug("pool_graph_copied", pools=len(pools))
        return PoolGraph(pools)


__all__ = ["PoolGraph"]
