"""Swap result assembly.

Turns an optimized Route into a Vault batch swap (deduplicated asset list
plus steps that index into it) and the priced SwapResponse.

Batch swap step encoding:
- GIVEN_IN: hops in path order; the first hop carries the path's amount and
  later hops "0", meaning "use the previous hop's output"
- GIVEN_OUT: hops in reverse order; the last hop carries the path's amount
  and earlier hops "0", meaning "produce the next hop's input"
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext

import structlog

from sor.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from sor.errors import NoLiquidity
from sor.models.responses import BatchSwapStep, RouteHop, SwapResponse, SwapRoute
from sor.models.token import TokenAmount
from sor.models.types import DECIMAL_PRECISION, SwapKind, format_decimal

from .quoting import marginal_price
from .types import Route

logger = structlog.get_logger()


@dataclass
class SwapExecutionPlan:
    """Everything needed to execute and present a route.

    Prices are human-unit Decimals, token_in per token_out unless reversed.
    """

    route: Route
    assets: list[str]
    swaps: list[BatchSwapStep]
    amount_in: TokenAmount
    amount_out: TokenAmount
    effective_price: Decimal
    effective_price_reversed: Decimal
    market_sp: Decimal
    price_impact: Decimal

    @property
    def swap_kind(self) -> SwapKind:
        return self.route.swap_kind

    @property
    def swap_amount(self) -> TokenAmount:
        return self.route.swap_amount

    @property
    def return_amount(self) -> TokenAmount:
        return self.route.return_amount

    def to_response(self) -> SwapResponse:
        route = self.route
        total = route.swap_amount.amount
        routes = []
        for allocation in route.allocations:
            with localcontext() as ctx:
                ctx.prec = DECIMAL_PRECISION
                share = Decimal(allocation.amount) / Decimal(total)
            routes.append(
                SwapRoute(
                    share=format_decimal(share),
                    token_in=allocation.path.token_in.address,
                    token_out=allocation.path.token_out.address,
                    token_in_amount=allocation.amount_in.to_significant(),
                    token_out_amount=allocation.amount_out.to_significant(),
                    path=[t.address for t in allocation.path.tokens],
                    hops=[
                        RouteHop(
                            pool_id=hop_result.hop.pool.id,
                            token_in=hop_result.hop.token_in.address,
                            token_out=hop_result.hop.token_out.address,
                            token_in_amount=hop_result.amount_in.to_significant(),
                            token_out_amount=hop_result.amount_out.to_significant(),
                        )
                        for hop_result in allocation.hops
                    ],
                )
            )

        return SwapResponse(
            token_in=route.token_in.address,
            token_out=route.token_out.address,
            swap_kind=route.swap_kind,
            token_in_amount=self.amount_in.to_significant(),
            token_out_amount=self.amount_out.to_significant(),
            swap_amount=self.swap_amount.to_significant(),
            swap_amount_scaled=str(self.swap_amount.amount),
            return_amount=self.return_amount.to_significant(),
            return_amount_scaled=str(self.return_amount.amount),
            effective_price=format_decimal(self.effective_price),
            effective_price_reversed=format_decimal(self.effective_price_reversed),
            price_impact=format_decimal(self.price_impact),
            market_sp=format_decimal(self.market_sp),
            token_addresses=self.assets,
            swaps=self.swaps,
            routes=routes,
        )


def _batch_steps(route: Route) -> tuple[list[str], list[BatchSwapStep]]:
    assets: list[str] = []
    index: dict[str, int] = {}

    def asset_index(address: str) -> int:
        if address not in index:
            index[address] = len(assets)
            assets.append(address)
        return index[address]

    asset_index(route.token_in.address)
    asset_index(route.token_out.address)

    steps = []
    for allocation in route.allocations:
        hops = list(allocation.path.hops)
        if route.swap_kind == SwapKind.GIVEN_OUT:
            hops.reverse()
        for position, hop in enumerate(hops):
            steps.append(
                BatchSwapStep(
                    pool_id=hop.pool.id,
                    asset_in_index=asset_index(hop.token_in.address),
                    asset_out_index=asset_index(hop.token_out.address),
                    amount=str(allocation.amount) if position == 0 else "0",
                )
            )
    return assets, steps


def _market_spot_price(route: Route, config: RouterConfig) -> Decimal:
    """Marginal price of the route's largest path at a tiny probe, human units."""
    best = max(route.allocations, key=lambda a: a.amount)
    probe = int(Decimal(route.swap_amount.amount) * config.spot_probe_fraction)
    try:
        price = marginal_price(best.path, probe, route.swap_kind)
    except NoLiquidity:
        logger.warning("market_price_probe_failed", path=repr(best.path))
        return Decimal(0)
    return Decimal(price).scaleb(-18)


def assemble(route: Route, config: RouterConfig | None = None) -> SwapExecutionPlan:
    """Build the batch swap, totals and prices of a route."""
    config = config or DEFAULT_ROUTER_CONFIG
    assets, swaps = _batch_steps(route)
    amount_in = route.amount_in
    amount_out = route.amount_out

    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        human_in = amount_in.to_human()
        human_out = amount_out.to_human()
        effective_price = human_in / human_out if human_out else Decimal(0)
        effective_price_reversed = human_out / human_in if human_in else Decimal(0)
        market_sp = _market_spot_price(route, config)
        price_impact = effective_price / market_sp - 1 if market_sp else Decimal(0)

    logger.debug(
        "route_assembled",
        token_in=route.token_in.address,
        token_out=route.token_out.address,
        steps=len(swaps),
        assets=len(assets),
    )
    return SwapExecutionPlan(
        route=route,
        assets=assets,
        swaps=swaps,
        amount_in=amount_in,
        amount_out=amount_out,
        effective_price=effective_price,
        effective_price_reversed=effective_price_reversed,
        market_sp=market_sp,
        price_impact=price_impact,
    )


def merge_batch_swaps(plans: list[SwapExecutionPlan]) -> tuple[list[str], list[BatchSwapStep]]:
    """Join several plans into one batch swap.

    Assets are merged without duplicates (first occurrence wins) and every
    step's indices are remapped to the merged list.
    """
    assets: list[str] = []
    index: dict[str, int] = {}
    steps: list[BatchSwapStep] = []
    for plan in plans:
        remap = []
        for address in plan.assets:
            if address not in index:
                index[address] = len(assets)
                assets.append(address)
            remap.append(index[address])
        for step in plan.swaps:
            steps.append(
                step.model_copy(
                    update={
                        "asset_in_index": remap[step.asset_in_index],
                        "asset_out_index": remap[step.asset_out_index],
                    }
                )
            )
    return assets, steps


__all__ = ["SwapExecutionPlan", "assemble", "merge_batch_swaps"]
