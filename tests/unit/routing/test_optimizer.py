"""Tests for RouteOptimizer."""

import pytest

from sor.config import RouterConfig
from sor.errors import InvalidInput, NoLiquidity
from sor.models.token import TokenAmount
from sor.models.types import SwapKind
from sor.routing import RouteOptimizer, build_paths, quote_path_amount
from tests.helpers import DAI, USDC, WETH, make_stable_pool, make_token, make_weighted_pool

ONE = 10**18


def weth(amount: int) -> TokenAmount:
    return TokenAmount(make_token(WETH), amount)


def amounts_by_pool(route) -> dict[str, int]:
    return {a.path.pool_ids[0]: a.amount for a in route.allocations}


@pytest.fixture
def optimizer() -> RouteOptimizer:
    return RouteOptimizer(RouterConfig())


class TestOptimizeRoute:
    def test_single_path(self, optimizer, weth_dai_pool) -> None:
        paths = build_paths(WETH, DAI, [weth_dai_pool])
        route = optimizer.optimize_route(paths, weth(10 * ONE), SwapKind.GIVEN_IN)

        assert len(route.allocations) == 1
        assert route.allocations[0].amount == 10 * ONE
        assert route.amount_in.amount == 10 * ONE
        assert route.return_amount.amount == quote_path_amount(paths[0], 10 * ONE, SwapKind.GIVEN_IN)

    def test_split_follows_depth(self, optimizer) -> None:
        # Same price and fee: the best split is proportional to depth
        shallow = make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=1)
        deep = make_weighted_pool({WETH: "3000", DAI: "6000000"}, n=2)
        paths = build_paths(WETH, DAI, [shallow, deep])

        route = optimizer.optimize_route(paths, weth(40 * ONE), SwapKind.GIVEN_IN)

        split = amounts_by_pool(route)
        assert sum(split.values()) == 40 * ONE
        assert abs(split[shallow.id] - 10 * ONE) < ONE // 10
        assert abs(split[deep.id] - 30 * ONE) < ONE // 10

    def test_cheaper_pool_gets_more(self, optimizer) -> None:
        expensive = make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=1, fee="0.003")
        cheap = make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=2, fee="0.0005")
        paths = build_paths(WETH, DAI, [expensive, cheap])
        total = 50 * ONE

        route = optimizer.optimize_route(paths, weth(total), SwapKind.GIVEN_IN)

        split = amounts_by_pool(route)
        assert sum(split.values()) == total
        assert split[cheap.id] > split[expensive.id] > 0

        even = sum(quote_path_amount(p, total // 2, SwapKind.GIVEN_IN) for p in paths)
        best_single = max(quote_path_amount(p, total, SwapKind.GIVEN_IN) for p in paths)
        out = route.return_amount.amount
        assert out >= even
        assert out > best_single

    @pytest.mark.parametrize(
        "swap_kind,token,total",
        [
            (SwapKind.GIVEN_IN, WETH, 50 * ONE),
            (SwapKind.GIVEN_OUT, DAI, 100_000 * ONE),
        ],
        ids=["given-in", "given-out"],
    )
    def test_split_is_locally_optimal(self, optimizer, swap_kind, token, total) -> None:
        expensive = make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=1, fee="0.003")
        cheap = make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=2, fee="0.0005")
        paths = build_paths(WETH, DAI, [expensive, cheap])

        route = optimizer.optimize_route(paths, TokenAmount(make_token(token), total), swap_kind)
        value = route.return_amount.amount

        split = amounts_by_pool(route)
        assert sum(split.values()) == total
        shift = total // 100
        for direction in (1, -1):
            moved = quote_path_amount(
                paths[0], split[paths[0].pool_ids[0]] + direction * shift, swap_kind
            ) + quote_path_amount(
                paths[1], split[paths[1].pool_ids[0]] - direction * shift, swap_kind
            )
            if swap_kind == SwapKind.GIVEN_IN:
                # No shift returns more
                assert moved <= value * (1 + 1e-6)
            else:
                # No shift costs less
                assert moved >= value * (1 - 1e-6)

    @pytest.mark.parametrize("swap_kind", [SwapKind.GIVEN_IN, SwapKind.GIVEN_OUT])
    def test_equal_paths_keep_the_initial_split(self, optimizer, swap_kind) -> None:
        first = make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=1)
        second = make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=2)
        paths = build_paths(WETH, DAI, [first, second])
        token, total = (WETH, 20 * ONE) if swap_kind == SwapKind.GIVEN_IN else (DAI, 40_000 * ONE)

        route = optimizer.optimize_route(paths, TokenAmount(make_token(token), total), swap_kind)

        assert amounts_by_pool(route) == {first.id: total // 2, second.id: total // 2}

    def test_given_out_delivers_exact_amount(self, optimizer, pool_graph) -> None:
        paths = build_paths(WETH, DAI, pool_graph)
        requested = TokenAmount(make_token(DAI), 10_000 * ONE)

        route = optimizer.optimize_route(paths, requested, SwapKind.GIVEN_OUT)

        assert sum(a.amount for a in route.allocations) == 10_000 * ONE
        assert route.amount_out.amount == 10_000 * ONE
        assert route.return_amount == route.amount_in
        assert route.amount_in.amount > 0

    def test_insufficient_capacity(self, optimizer, weth_dai_pool) -> None:
        paths = build_paths(WETH, DAI, [weth_dai_pool])
        with pytest.raises(NoLiquidity) as exc_info:
            optimizer.optimize_route(paths, weth(400 * ONE), SwapKind.GIVEN_IN)
        assert exc_info.value.token_in == WETH
        assert exc_info.value.token_out == DAI

    def test_zero_amount(self, optimizer, pool_graph) -> None:
        paths = build_paths(WETH, DAI, pool_graph)
        with pytest.raises(InvalidInput):
            optimizer.optimize_route(paths, weth(0), SwapKind.GIVEN_IN)

    def test_no_paths(self, optimizer) -> None:
        with pytest.raises(NoLiquidity):
            optimizer.optimize_route([], weth(ONE), SwapKind.GIVEN_IN)

    def test_max_pools_keeps_the_deepest(self) -> None:
        shallow = make_weighted_pool({WETH: "1000", DAI: "2000000"}, n=1)
        deep = make_weighted_pool({WETH: "3000", DAI: "6000000"}, n=2)
        paths = build_paths(WETH, DAI, [shallow, deep])

        route = RouteOptimizer(RouterConfig(max_pools=1)).optimize_route(
            paths, weth(10 * ONE), SwapKind.GIVEN_IN
        )

        assert [a.path.pool_ids for a in route.allocations] == [[deep.id]]


class TestSharedPools:
    @pytest.fixture
    def shared(self):
        """Three-token pool used by both WETH -> DAI paths."""
        return make_weighted_pool({WETH: "1000", DAI: "2000000", USDC: "2000000"}, n=7)

    @pytest.fixture
    def stable(self):
        return make_stable_pool({DAI: "10000000", USDC: "10000000"}, amp="500", n=10)

    def test_shared_pool_is_executed_in_sequence(self, optimizer, shared, stable) -> None:
        paths = build_paths(WETH, DAI, [shared, stable])
        assert [p.pool_ids for p in paths] == [[shared.id], [shared.id, stable.id]]

        route = optimizer.optimize_route(paths, weth(20 * ONE), SwapKind.GIVEN_IN)

        assert len(route.allocations) == 2
        later = route.allocations[1]
        fresh = quote_path_amount(later.path, later.amount, SwapKind.GIVEN_IN)
        # The second path sees the WETH the first one already sold into the pool
        assert later.amount_out.amount < fresh

    def test_callers_pools_are_untouched(self, optimizer, shared, stable) -> None:
        paths = build_paths(WETH, DAI, [shared, stable])
        optimizer.optimize_route(paths, weth(20 * ONE), SwapKind.GIVEN_IN)

        assert shared.get_pool_token(make_token(WETH)).amount == 1_000 * ONE
        assert stable.get_pool_token(make_token(USDC)).amount == 10_000_000 * 10**6

    def test_allocations_report_the_callers_hops(self, optimizer, shared, stable) -> None:
        paths = build_paths(WETH, DAI, [shared, stable])
        route = optimizer.optimize_route(paths, weth(20 * ONE), SwapKind.GIVEN_IN)

        for allocation in route.allocations:
            assert [h.hop for h in allocation.hops] == list(allocation.path.hops)
            assert allocation.hops[0].hop.pool is shared
