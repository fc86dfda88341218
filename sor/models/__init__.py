"""Tokens, snapshots and the request/response models of the router."""

from sor.models.requests import BatchSwapRequest, SwapOptions, SwapRequest, TokenPairsRequest
from sor.models.responses import (
    BatchSwapResponse,
    BatchSwapStep,
    RouteHop,
    SwapResponse,
    SwapRoute,
    TokenPairLiquidity,
    TokenPairsResponse,
)
from sor.models.snapshot import PoolSnapshot, PoolTokenSnapshot, TokenPairSnapshot
from sor.models.token import PoolToken, RatedPoolToken, Token, TokenAmount
from sor.models.types import Address, AmountString, DecimalString, SwapKind

__all__ = [
    # Types
    "Address",
    "AmountString",
    "DecimalString",
    "SwapKind",
    # Tokens
    "Token",
    "TokenAmount",
    "PoolToken",
    "RatedPoolToken",
    # Snapshots
    "PoolSnapshot",
    "PoolTokenSnapshot",
    "TokenPairSnapshot",
    # Requests
    "SwapRequest",
    "SwapOptions",
    "BatchSwapRequest",
    "TokenPairsRequest",
    # Responses
    "SwapResponse",
    "SwapRoute",
    "RouteHop",
    "BatchSwapStep",
    "BatchSwapResponse",
    "TokenPairLiquidity",
    "TokenPairsResponse",
]
