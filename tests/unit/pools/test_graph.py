"""Tests for PoolGraph."""

import pytest

from sor.errors import InvalidInput
from sor.models.token import TokenAmount
from sor.pools import PoolGraph
from tests.helpers import DAI, USDC, WBTC, WETH, make_token, make_weighted_pool


class TestPoolGraph:
    def test_counts(self, pool_graph) -> None:
        assert pool_graph.pool_count == 3
        assert pool_graph.token_count == 3

    def test_neighbors(self, pool_graph, weth_dai_pool, weth_usdc_pool) -> None:
        neighbors = pool_graph.neighbors(WETH)
        assert set(neighbors) == {DAI, USDC}
        assert neighbors[DAI] == [weth_dai_pool]
        assert neighbors[USDC] == [weth_usdc_pool]

    def test_pools_between(self, pool_graph, dai_usdc_pool) -> None:
        assert pool_graph.pools_between(USDC, DAI) == [dai_usdc_pool]
        assert pool_graph.pools_between(WETH, WBTC) == []

    def test_parallel_pools(self, weth_dai_pool) -> None:
        other = make_weighted_pool({WETH: "10", DAI: "20000"}, n=5)
        graph = PoolGraph([weth_dai_pool, other])
        assert graph.pools_between(DAI, WETH) == [weth_dai_pool, other]

    def test_addresses_are_case_insensitive(self, pool_graph) -> None:
        assert pool_graph.has_token(USDC.upper().replace("0X", "0x"))
        assert pool_graph.get_token(USDC.upper().replace("0X", "0x")).decimals == 6

    def test_unknown_token(self, pool_graph) -> None:
        assert not pool_graph.has_token(WBTC)
        with pytest.raises(InvalidInput):
            pool_graph.get_token(WBTC)

    def test_get_pool(self, pool_graph, weth_dai_pool) -> None:
        assert pool_graph.get_pool(weth_dai_pool.id) is weth_dai_pool
        with pytest.raises(InvalidInput):
            pool_graph.get_pool("0x" + "ff" * 32)

    def test_duplicate_pool_rejected(self, weth_dai_pool) -> None:
        with pytest.raises(InvalidInput):
            PoolGraph([weth_dai_pool, make_weighted_pool({WETH: "1", DAI: "1"}, n=1)])

    def test_working_copy_is_independent(self, pool_graph, weth_dai_pool) -> None:
        copy = pool_graph.working_copy()
        weth, dai = make_token(WETH), make_token(DAI)
        pool = copy.get_pool(weth_dai_pool.id)
        pool.swap_given_in(weth, dai, TokenAmount.from_human_amount(weth, "10"), mutate=True)
        assert pool is not weth_dai_pool
        assert pool.get_pool_token(weth).amount == 1_010 * 10**18
        assert weth_dai_pool.get_pool_token(weth).amount == 1_000 * 10**18
