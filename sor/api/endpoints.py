"""API endpoints for the smart order router."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException

from sor.models.requests import BatchSwapRequest, SwapRequest, TokenPairsRequest
from sor.models.responses import BatchSwapResponse, SwapResponse, TokenPairsResponse
from sor.routing.router import SmartOrderRouter, default_router

logger = structlog.get_logger()

router = APIRouter()


def get_router() -> SmartOrderRouter:
    """Dependency provider for the router instance.

    Override this in tests to inject another router:
        app.dependency_overrides[get_router] = lambda: custom_router
    """
    return default_router


@router.post("/sor/swaps", response_model_by_alias=True)
async def get_swaps(
    request: SwapRequest,
    sor: SmartOrderRouter = Depends(get_router),
) -> SwapResponse:
    """Best route for one swap.

    Error Handling:
        - Invalid request schema: 422 (Pydantic)
        - Unroutable swap (unknown token, no liquidity): zero response
        - Bad pool snapshot or pool math failure: logged, 500
    """
    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, sor.get_swaps, request)
    except Exception as err:
        logger.exception(
            "swap_routing_error",
            token_in=request.token_in,
            token_out=request.token_out,
            pools=len(request.pools),
        )
        raise HTTPException(status_code=500, detail="Routing failed") from err


@router.post("/sor/batch-swaps", response_model_by_alias=True)
async def get_batch_swaps(
    request: BatchSwapRequest,
    sor: SmartOrderRouter = Depends(get_router),
) -> BatchSwapResponse:
    """Sell several tokens into one token as a single batch swap."""
    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, sor.get_batch_swap_for_tokens_in, request)
    except Exception as err:
        logger.exception(
            "batch_swap_routing_error",
            token_out=request.token_out,
            tokens_in=len(request.tokens_in),
        )
        raise HTTPException(status_code=500, detail="Routing failed") from err


@router.post("/pools/token-pairs", response_model_by_alias=True)
async def get_token_pairs(
    request: TokenPairsRequest,
    sor: SmartOrderRouter = Depends(get_router),
) -> TokenPairsResponse:
    """Normalized liquidity and spot price of every token pair of each pool."""
    try:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, sor.get_token_pairs, request)
    except Exception as err:
        logger.exception("token_pairs_error", pools=len(request.pools))
        raise HTTPException(status_code=500, detail="Measurement failed") from err
