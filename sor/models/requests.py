"""Pydantic models for routing requests."""

from pydantic import BaseModel, Field

from sor.models.snapshot import PoolSnapshot
from sor.models.types import Address, AmountString, SwapKind


class SwapOptions(BaseModel):
    """Per-request overrides of the router configuration.

    force_refresh is passed through for the snapshot provider; the router
    always works on the pools supplied with the request.
    """

    max_hops: int | None = Field(default=None, ge=1, le=6, alias="maxHops")
    max_pools: int | None = Field(default=None, ge=1, alias="maxPools")
    force_refresh: bool = Field(default=False, alias="forceRefresh")

    model_config = {"populate_by_name": True}


class SwapRequest(BaseModel):
    """Find the best route for one token pair.

    swap_amount is a human-readable amount of token_in (GIVEN_IN) or
    token_out (GIVEN_OUT). It is checked against the token's decimals when
    routing, so a malformed amount gets the zero response.
    """

    chain: str = "MAINNET"
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    swap_kind: SwapKind = Field(alias="swapKind")
    swap_amount: AmountString = Field(alias="swapAmount")
    pools: list[PoolSnapshot] = Field(default_factory=list)
    options: SwapOptions = Field(default_factory=SwapOptions)

    model_config = {"populate_by_name": True}


class TokenAmountInput(BaseModel):
    address: Address
    amount: AmountString


class BatchSwapRequest(BaseModel):
    """Sell several tokens into one, as a single batch swap."""

    chain: str = "MAINNET"
    tokens_in: list[TokenAmountInput] = Field(min_length=1, alias="tokensIn")
    token_out: Address = Field(alias="tokenOut")
    pools: list[PoolSnapshot] = Field(default_factory=list)
    options: SwapOptions = Field(default_factory=SwapOptions)

    model_config = {"populate_by_name": True}


class TokenPairsRequest(BaseModel):
    """Measure spot price and normalized liquidity of every pool pair."""

    chain: str = "MAINNET"
    pools: list[PoolSnapshot] = Field(min_length=1)
