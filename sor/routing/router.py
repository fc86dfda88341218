"""Smart order router entry point.

SmartOrderRouter ties the pieces together for one request:

1. Parse the request's pool snapshots into fresh pool objects
2. Build candidate paths between the two tokens
3. Split the amount across paths (RouteOptimizer)
4. Assemble the batch swap and prices

Expected failures (bad amounts, unknown tokens, no liquidity) come back as a
zero response. Snapshot and arithmetic errors propagate to the caller.
"""

from __future__ import annotations

import structlog

from sor.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from sor.errors import InvalidInput, NoLiquidity, PoolDataError
from sor.models.requests import BatchSwapRequest, SwapOptions, SwapRequest, TokenPairsRequest
from sor.models.responses import BatchSwapResponse, SwapResponse, TokenPairsResponse
from sor.models.snapshot import PoolSnapshot
from sor.models.token import TokenAmount
from sor.models.types import SwapKind, normalize_address
from sor.pools import PoolGraph, measure_pool, parse_pool, parse_pools

from .assembler import SwapExecutionPlan, assemble, merge_batch_swaps
from .optimizer import RouteOptimizer
from .pathfinding import build_paths

logger = structlog.get_logger()


class SmartOrderRouter:
    """Finds the best split route for swaps over a pool snapshot.

    Args:
        config: Bounds and tolerances; request options override max hops and
            max pools per call.
    """

    def __init__(self, config: RouterConfig | None = None) -> None:
        self.config = config or DEFAULT_ROUTER_CONFIG

    def _config_for(self, options: SwapOptions) -> RouterConfig:
        return self.config.with_overrides(max_hops=options.max_hops, max_pools=options.max_pools)

    @staticmethod
    def _build_graph(snapshots: list[PoolSnapshot]) -> PoolGraph:
        return PoolGraph(parse_pools(snapshots))

    def plan_swap(
        self,
        graph: PoolGraph,
        token_in: str,
        token_out: str,
        swap_kind: SwapKind,
        swap_amount: str,
        config: RouterConfig | None = None,
    ) -> SwapExecutionPlan:
        """Route one swap over an already built graph.

        Args:
            graph: Pools to route through (quoted, never mutated)
            token_in: Address of the token sold
            token_out: Address of the token bought
            swap_kind: Which side swap_amount fixes
            swap_amount: Human-readable amount of the given token

        Raises:
            InvalidInput: Unknown token or malformed/non-positive amount
            NoLiquidity: No path or split can carry the amount, or the best
                route returns nothing
        """
        config = config or self.config
        given = token_in if swap_kind == SwapKind.GIVEN_IN else token_out
        amount = TokenAmount.from_human_amount(graph.get_token(given), swap_amount)
        if amount.amount <= 0:
            raise InvalidInput(f"Swap amount must be positive, got '{swap_amount}'")

        paths = build_paths(
            token_in, token_out, graph, max_hops=config.max_hops, max_paths=config.max_paths
        )
        if not paths:
            raise NoLiquidity(
                "No path found",
                token_in=normalize_address(token_in),
                token_out=normalize_address(token_out),
            )
        route = RouteOptimizer(config).optimize_route(paths, amount, swap_kind)
        if route.return_amount.amount == 0:
            raise NoLiquidity(
                f"Route for {swap_amount} rounds to a zero return amount",
                token_in=normalize_address(token_in),
                token_out=normalize_address(token_out),
            )
        return assemble(route, config)

    def get_swaps(self, request: SwapRequest) -> SwapResponse:
        """Best route for a single swap.

        Returns:
            The priced route, or SwapResponse.zero when the swap cannot be
            routed

        Raises:
            PoolDataError: A pool snapshot is unusable
            MathError: Pool arithmetic hit an invariant violation
        """
        logger.info(
            "swap_request_received",
            chain=request.chain,
            token_in=request.token_in,
            token_out=request.token_out,
            swap_kind=request.swap_kind.value,
            swap_amount=request.swap_amount,
            pools=len(request.pools),
        )
        try:
            graph = self._build_graph(request.pools)
            plan = self.plan_swap(
                graph,
                request.token_in,
                request.token_out,
                request.swap_kind,
                request.swap_amount,
                self._config_for(request.options),
            )
        except PoolDataError:
            raise
        except InvalidInput as err:
            logger.info("swap_request_rejected", reason=str(err))
            return self._zero(request)
        except NoLiquidity as err:
            logger.info(
                "no_route_found",
                token_in=err.token_in or request.token_in,
                token_out=err.token_out or request.token_out,
                reason=str(err),
            )
            return self._zero(request)

        response = plan.to_response()
        logger.info(
            "swap_routed",
            token_in=response.token_in,
            token_out=response.token_out,
            paths=len(response.routes),
            return_amount=response.return_amount,
            price_impact=response.price_impact,
        )
        return response

    @staticmethod
    def _zero(request: SwapRequest) -> SwapResponse:
        return SwapResponse.zero(
            request.swap_kind,
            normalize_address(request.token_in),
            normalize_address(request.token_out),
            request.swap_amount,
        )

    def get_batch_swap_for_tokens_in(self, request: BatchSwapRequest) -> BatchSwapResponse:
        """Sell several tokens into token_out as one batch swap.

        Every token is routed on its own over the same snapshot. Tokens that
        cannot be routed are left out of the batch.
        """
        graph = self._build_graph(request.pools)
        config = self._config_for(request.options)
        token_out = normalize_address(request.token_out)

        plans: list[SwapExecutionPlan] = []
        for token in request.tokens_in:
            try:
                plans.append(
                    self.plan_swap(
                        graph, token.address, token_out, SwapKind.GIVEN_IN, token.amount, config
                    )
                )
            except PoolDataError:
                raise
            except (InvalidInput, NoLiquidity) as err:
                logger.warning(
                    "batch_token_skipped",
                    token_in=normalize_address(token.address),
                    token_out=token_out,
                    reason=str(err),
                )

        if not plans:
            return BatchSwapResponse(token_out_amount="0", token_out_amount_scaled="0")

        total_out = TokenAmount(plans[0].amount_out.token, 0)
        for plan in plans:
            total_out = total_out.add(plan.amount_out)
        assets, swaps = merge_batch_swaps(plans)
        logger.info(
            "batch_swap_routed",
            token_out=token_out,
            tokens_routed=len(plans),
            tokens_requested=len(request.tokens_in),
            steps=len(swaps),
        )
        return BatchSwapResponse(
            token_out_amount=total_out.to_significant(),
            token_out_amount_scaled=str(total_out.amount),
            swaps=swaps,
            assets=assets,
        )

    def get_token_pairs(self, request: TokenPairsRequest) -> TokenPairsResponse:
        """Spot price and normalized liquidity of every token pair of every pool."""
        result = {}
        for snapshot in request.pools:
            pool = parse_pool(snapshot)
            result[pool.id] = [m.to_model() for m in measure_pool(pool)]
        logger.info("token_pairs_measured", pools=len(result))
        return TokenPairsResponse(pools=result)


# Router used by the HTTP layer unless a test overrides it
default_router = SmartOrderRouter(RouterConfig.from_env())


__all__ = ["SmartOrderRouter", "default_router"]
