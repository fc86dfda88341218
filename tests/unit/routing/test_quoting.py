"""Tests for path quotes, limits, depth and marginal prices."""

import pytest

from sor.errors import NoLiquidity
from sor.models.types import SwapKind
from sor.routing import (
    build_paths,
    marginal_price,
    path_limit,
    path_normalized_liquidity,
    path_spot_price,
    quote_path,
    quote_path_amount,
)
from tests.helpers import DAI, USDC, WETH, make_token

ONE = 10**18


@pytest.fixture
def direct_path(pool_graph):
    """WETH -> DAI through the 50/50 pool."""
    return build_paths(WETH, DAI, pool_graph)[0]


@pytest.fixture
def two_hop_path(pool_graph):
    """WETH -> USDC (80/20 pool) -> DAI (stable pool)."""
    return build_paths(WETH, DAI, pool_graph)[1]


def relative_diff(a: int, b: int) -> float:
    return abs(a - b) / b


class TestQuotePath:
    def test_direct_given_in(self, direct_path, weth_dai_pool) -> None:
        weth, dai = make_token(WETH), make_token(DAI)
        hops = quote_path(direct_path, ONE, SwapKind.GIVEN_IN)
        expected = weth_dai_pool.swap_given_in(weth, dai, hops[0].amount_in)
        assert len(hops) == 1
        assert hops[0].amount_out == expected

    def test_given_in_chains_hops(self, two_hop_path) -> None:
        hops = quote_path(two_hop_path, 10 * ONE, SwapKind.GIVEN_IN)
        assert hops[0].amount_in.amount == 10 * ONE
        assert hops[0].amount_out == hops[1].amount_in
        assert hops[1].amount_out.token.address == DAI

    def test_given_out_chains_hops_backwards(self, two_hop_path) -> None:
        hops = quote_path(two_hop_path, 20_000 * ONE, SwapKind.GIVEN_OUT)
        assert [h.hop.token_in.address for h in hops] == [WETH, USDC]
        assert hops[1].amount_out.amount == 20_000 * ONE
        assert hops[0].amount_out == hops[1].amount_in
        assert hops[0].amount_in.token.address == WETH

    def test_quote_does_not_mutate(self, direct_path, weth_dai_pool) -> None:
        quote_path(direct_path, ONE, SwapKind.GIVEN_IN)
        assert weth_dai_pool.get_pool_token(make_token(WETH)).amount == 1_000 * ONE

    def test_mutate(self, direct_path, weth_dai_pool) -> None:
        quote_path(direct_path, ONE, SwapKind.GIVEN_IN, mutate=True)
        assert weth_dai_pool.get_pool_token(make_token(WETH)).amount == 1_001 * ONE

    def test_refused_amount(self, direct_path) -> None:
        with pytest.raises(NoLiquidity):
            quote_path(direct_path, 301 * ONE, SwapKind.GIVEN_IN)

    def test_quote_path_amount(self, direct_path, two_hop_path) -> None:
        assert quote_path_amount(direct_path, 0, SwapKind.GIVEN_IN) == 0
        out = quote_path_amount(two_hop_path, ONE, SwapKind.GIVEN_IN)
        cost = quote_path_amount(two_hop_path, out, SwapKind.GIVEN_OUT)
        assert relative_diff(cost, ONE) < 1e-6


class TestPathLimit:
    def test_direct(self, direct_path) -> None:
        assert path_limit(direct_path, SwapKind.GIVEN_IN) == 300 * ONE
        assert path_limit(direct_path, SwapKind.GIVEN_OUT) == 600_000 * ONE

    def test_first_hop_binds(self, two_hop_path) -> None:
        # 30% of the 80/20 pool's WETH; the stable hop takes the proceeds easily
        assert path_limit(two_hop_path, SwapKind.GIVEN_IN) == 1_200 * ONE

    def test_later_hop_binds_given_out(self, two_hop_path) -> None:
        # The 80/20 pool pays out at most 600k USDC, worth just under 600k DAI
        limit = path_limit(two_hop_path, SwapKind.GIVEN_OUT)
        assert 599_000 * ONE < limit < 600_000 * ONE
        quote_path(two_hop_path, limit, SwapKind.GIVEN_OUT)

    def test_limit_is_quotable(self, two_hop_path) -> None:
        limit = path_limit(two_hop_path, SwapKind.GIVEN_IN)
        quote_path(two_hop_path, limit, SwapKind.GIVEN_IN)


class TestPathPrices:
    def test_spot_price(self, direct_path) -> None:
        # WETH per DAI, with the 0.3% fee
        expected = ONE * 1000 // (2000 * 997)
        assert relative_diff(path_spot_price(direct_path), expected) < 1e-4

    def test_two_hop_spot_price_is_product(self, two_hop_path, weth_usdc_pool, dai_usdc_pool) -> None:
        weth, usdc, dai = make_token(WETH), make_token(USDC), make_token(DAI)
        first = weth_usdc_pool.spot_price(weth, usdc)
        second = dai_usdc_pool.spot_price(usdc, dai)
        assert path_spot_price(two_hop_path) == first * second // ONE

    def test_normalized_liquidity_direct(self, direct_path) -> None:
        assert path_normalized_liquidity(direct_path) == 1_000_000 * ONE

    def test_normalized_liquidity_is_the_shallowest_hop(self, two_hop_path) -> None:
        # 1.6M USDC of depth in the 80/20 pool, carried into DAI
        liquidity = path_normalized_liquidity(two_hop_path)
        assert 1_590_000 * ONE < liquidity < 1_600_000 * ONE

    @pytest.mark.parametrize("swap_kind", [SwapKind.GIVEN_IN, SwapKind.GIVEN_OUT])
    def test_marginal_price_matches_spot(self, direct_path, swap_kind) -> None:
        probe = ONE // 10**6 if swap_kind == SwapKind.GIVEN_IN else 2_000 * ONE // 10**6
        price = marginal_price(direct_path, probe, swap_kind)
        assert relative_diff(price, path_spot_price(direct_path)) < 1e-4

    def test_marginal_price_grows_with_size(self, direct_path) -> None:
        small = marginal_price(direct_path, ONE, SwapKind.GIVEN_IN)
        large = marginal_price(direct_path, 100 * ONE, SwapKind.GIVEN_IN)
        assert large > small
