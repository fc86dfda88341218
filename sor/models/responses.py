"""Pydantic models for routing responses.

All amounts and prices are decimal strings. Human amounts use the token's
own precision; *Scaled fields carry raw integer amounts.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from sor.models.types import Address, SwapKind


class BatchSwapStep(BaseModel):
    """One elementary pool swap of a Vault batch swap.

    amount is the raw given amount of the first hop of a path; chained hops
    carry "0" and consume the previous hop's result.
    """

    pool_id: str = Field(alias="poolId")
    asset_in_index: int = Field(alias="assetInIndex")
    asset_out_index: int = Field(alias="assetOutIndex")
    amount: str
    user_data: str = Field(default="0x", alias="userData")

    model_config = {"populate_by_name": True}


class RouteHop(BaseModel):
    pool_id: str = Field(alias="poolId")
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    token_in_amount: str = Field(alias="tokenInAmount")
    token_out_amount: str = Field(alias="tokenOutAmount")

    model_config = {"populate_by_name": True}


class SwapRoute(BaseModel):
    """A path through the pool graph and the part of the trade it carries."""

    share: str
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    token_in_amount: str = Field(alias="tokenInAmount")
    token_out_amount: str = Field(alias="tokenOutAmount")
    path: list[Address]
    hops: list[RouteHop]

    model_config = {"populate_by_name": True}


class SwapResponse(BaseModel):
    """Best route found for a swap request.

    Prices are human-unit ratios: effective_price is tokenIn per tokenOut,
    effective_price_reversed tokenOut per tokenIn.
    """

    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    swap_kind: SwapKind = Field(alias="swapKind")
    token_in_amount: str = Field(alias="tokenInAmount")
    token_out_amount: str = Field(alias="tokenOutAmount")
    swap_amount: str = Field(alias="swapAmount")
    swap_amount_scaled: str = Field(alias="swapAmountScaled")
    return_amount: str = Field(alias="returnAmount")
    return_amount_scaled: str = Field(alias="returnAmountScaled")
    effective_price: str = Field(alias="effectivePrice")
    effective_price_reversed: str = Field(alias="effectivePriceReversed")
    price_impact: str = Field(alias="priceImpact")
    market_sp: str = Field(alias="marketSp")
    token_addresses: list[Address] = Field(default_factory=list, alias="tokenAddresses")
    swaps: list[BatchSwapStep] = Field(default_factory=list)
    routes: list[SwapRoute] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @classmethod
    def zero(
        cls, swap_kind: SwapKind, token_in: str, token_out: str, swap_amount: str
    ) -> SwapResponse:
        """Response for a trade that cannot be routed.

        The given amount is echoed on its own side; everything else is zero.
        """
        given_in = swap_kind == SwapKind.GIVEN_IN
        return cls(
            token_in=token_in,
            token_out=token_out,
            swap_kind=swap_kind,
            token_in_amount=swap_amount if given_in else "0",
            token_out_amount="0" if given_in else swap_amount,
            swap_amount=swap_amount,
            swap_amount_scaled="0",
            return_amount="0",
            return_amount_scaled="0",
            effective_price="0",
            effective_price_reversed="0",
            price_impact="0",
            market_sp="0",
        )

    @property
    def is_zero(self) -> bool:
        return not self.routes


class BatchSwapResponse(BaseModel):
    """Several single-token routes joined into one batch swap."""

    token_out_amount: str = Field(alias="tokenOutAmount")
    token_out_amount_scaled: str = Field(alias="tokenOutAmountScaled")
    swaps: list[BatchSwapStep] = Field(default_factory=list)
    assets: list[Address] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class TokenPairLiquidity(BaseModel):
    """Measured depth of one token pair in one pool."""

    id: str
    pool_id: str = Field(alias="poolId")
    token_a: Address = Field(alias="tokenA")
    token_b: Address = Field(alias="tokenB")
    valid: bool
    normalized_liquidity: str = Field(alias="normalizedLiquidity")
    spot_price: str = Field(alias="spotPrice")

    model_config = {"populate_by_name": True}


class TokenPairsResponse(BaseModel):
    pools: dict[str, list[TokenPairLiquidity]] = Field(default_factory=dict)
