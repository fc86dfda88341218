"""Path quoting: amounts, limits, depth and marginal prices of whole paths.

GIVEN_IN paths are quoted front to back, each hop's output feeding the next
hop's input. GIVEN_OUT paths are quoted back to front: the last hop is asked
for the requested output and each earlier hop for the input the next one
needs.
"""

from __future__ import annotations

import structlog

from sor.constants import WAD
from sor.errors import NoLiquidity
from sor.math import fixed_point as fp
from sor.models.token import TokenAmount
from sor.models.types import SwapKind

from .types import Hop, HopResult, Path

logger = structlog.get_logger()

# Bisection steps when the propagated limit is refused by a hop
MAX_LIMIT_BISECTIONS = 64


def _ordered_hops(path: Path, swap_kind: SwapKind) -> list[Hop]:
    return list(path.hops) if swap_kind == SwapKind.GIVEN_IN else list(reversed(path.hops))


def quote_path(path: Path, amount: int, swap_kind: SwapKind, mutate: bool = False) -> list[HopResult]:
    """Quote amount (raw, of the given token) through every hop.

    Returns:
        One HopResult per hop, in path order

    Raises:
        NoLiquidity: If any hop refuses its amount
    """
    results: list[HopResult] = []
    if swap_kind == SwapKind.GIVEN_IN:
        current = TokenAmount(path.token_in, amount)
        for hop in path.hops:
            amount_out = hop.pool.swap_given_in(hop.token_in, hop.token_out, current, mutate)
            results.append(HopResult(hop, current, amount_out))
            current = amount_out
        return results

    current = TokenAmount(path.token_out, amount)
    for hop in reversed(path.hops):
        amount_in = hop.pool.swap_given_out(hop.token_in, hop.token_out, current, mutate)
        results.append(HopResult(hop, amount_in, current))
        current = amount_in
    results.reverse()
    return results


def quote_path_amount(path: Path, amount: int, swap_kind: SwapKind) -> int:
    """Raw return amount of a path: output for GIVEN_IN, required input for GIVEN_OUT."""
    if amount == 0:
        return 0
    hops = quote_path(path, amount, swap_kind)
    if swap_kind == SwapKind.GIVEN_IN:
        return hops[-1].amount_out.amount
    return hops[0].amount_in.amount


def _carry(hops: list[Hop], amount: int, swap_kind: SwapKind) -> int:
    """Amount reaching the far side of hops (in quoting order)."""
    for hop in hops:
        if swap_kind == SwapKind.GIVEN_IN:
            result = hop.pool.swap_given_in(hop.token_in, hop.token_out, TokenAmount(hop.token_in, amount))
        else:
            result = hop.pool.swap_given_out(
                hop.token_in, hop.token_out, TokenAmount(hop.token_out, amount)
            )
        amount = result.amount
    return amount


def _largest_quotable(path: Path, upper: int, swap_kind: SwapKind) -> int:
    """Largest amount up to upper the whole path accepts, by bisection."""
    try:
        quote_path(path, upper, swap_kind)
        return upper
    except NoLiquidity:
        pass

    low, high = 0, upper
    for _ in range(MAX_LIMIT_BISECTIONS):
        if high - low <= max(1, upper // 10**6):
            break
        mid = (low + high) // 2
        try:
            quote_path(path, mid, swap_kind)
            low = mid
        except NoLiquidity:
            high = mid
    return low


def path_limit(path: Path, swap_kind: SwapKind) -> int:
    """Largest raw amount of the given token the path can carry.

    Each hop's own limit is propagated through the hops before it; the
    propagated amount is then verified by quoting and bisected down if a hop
    still refuses it.
    """
    hops = _ordered_hops(path, swap_kind)
    first = hops[0]
    limit = first.pool.get_limit_amount_swap(first.token_in, first.token_out, swap_kind)

    for k in range(1, len(hops)):
        if limit <= 0:
            return 0
        try:
            carried = _carry(hops[:k], limit, swap_kind)
        except NoLiquidity:
            limit = _largest_quotable(path, limit, swap_kind)
            continue
        hop = hops[k]
        hop_limit = hop.pool.get_limit_amount_swap(hop.token_in, hop.token_out, swap_kind)
        if carried > hop_limit:
            limit = limit * hop_limit // carried

    if limit <= 0:
        return 0
    limit = _largest_quotable(path, limit, swap_kind)
    logger.debug("path_limit", path=repr(path), swap_kind=swap_kind.value, limit=limit)
    return limit


def path_spot_price(path: Path) -> int:
    """Product of hop spot prices: 18-decimal token_in per token_out.

    Raises:
        NoLiquidity: If a hop refuses even the probe
    """
    price = WAD
    for hop in path.hops:
        price = fp.mul_down(price, hop.pool.spot_price(hop.token_in, hop.token_out))
    return price


def path_normalized_liquidity(path: Path) -> int:
    """Depth of the shallowest hop, expressed in units of the path's output.

    Each hop's normalized liquidity is in its own output token; the spot
    prices of the hops after it carry it to the final token.
    """
    try:
        spot_prices = [hop.pool.spot_price(hop.token_in, hop.token_out) for hop in path.hops]
    except NoLiquidity:
        return 0
    if any(price == 0 for price in spot_prices):
        return 0

    liquidity = None
    for i, hop in enumerate(path.hops):
        hop_liquidity = hop.pool.get_normalized_liquidity(hop.token_in, hop.token_out)
        for price in spot_prices[i + 1 :]:
            hop_liquidity = fp.div_down(hop_liquidity, price)
        liquidity = hop_liquidity if liquidity is None else min(liquidity, hop_liquidity)
    return liquidity or 0


def marginal_price(path: Path, amount: int, swap_kind: SwapKind) -> int:
    """Human-unit price (token_in per token_out, 18-decimal) of a small trade.

    Raises:
        NoLiquidity: If the path refuses the probe
    """
    hops = quote_path(path, max(1, amount), swap_kind)
    amount_in = hops[0].amount_in.scale18
    amount_out = hops[-1].amount_out.scale18
    if amount_out == 0:
        return 0
    return fp.div_down(amount_in, amount_out)


__all__ = [
    "quote_path",
    "quote_path_amount",
    "path_limit",
    "path_spot_price",
    "path_normalized_liquidity",
    "marginal_price",
]
