"""Pydantic models for pool snapshots.

Snapshots are what the persistence layer hands the router: balances, rates,
weights and curve parameters as of a recent on-chain sync. Amounts are
human-readable decimal strings; pools/parsing.py turns them into pools.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from sor.models.types import Address, DecimalString, PoolId


class TokenPairSnapshot(BaseModel):
    """Precomputed liquidity data for one token pair of a pool."""

    token_a: Address = Field(alias="tokenA")
    token_b: Address = Field(alias="tokenB")
    normalized_liquidity: DecimalString = Field(alias="normalizedLiquidity")
    spot_price: DecimalString = Field(default="0", alias="spotPrice")

    model_config = {"populate_by_name": True}


class PoolTokenSnapshot(BaseModel):
    """A token held by a pool, with its balance and per-variant metadata.

    Attributes:
        balance: Human-readable balance ("1000.5")
        weight: Normalized weight, weighted pools only
        price_rate: Rate provider value, stable/linear pools ("1" when absent)
        latest_fx_price: Oracle price in USD, FX pools only
    """

    address: Address
    decimals: int = Field(ge=0, le=18)
    symbol: str = ""
    name: str = ""
    index: int = Field(ge=0)
    balance: DecimalString
    weight: DecimalString | None = None
    price_rate: DecimalString = Field(default="1", alias="priceRate")
    latest_fx_price: DecimalString | None = Field(default=None, alias="latestFxPrice")
    fx_oracle_decimals: int = Field(default=8, ge=0, alias="fxOracleDecimals")

    model_config = {"populate_by_name": True}


class _PoolSnapshotBase(BaseModel):
    id: PoolId
    address: Address
    chain: str = "MAINNET"
    version: int = Field(default=1, ge=1)
    swap_fee: DecimalString = Field(alias="swapFee")
    total_shares: DecimalString = Field(default="0", alias="totalShares")
    tokens: list[PoolTokenSnapshot] = Field(min_length=2)
    token_pairs: list[TokenPairSnapshot] = Field(default_factory=list, alias="tokenPairs")

    model_config = {"populate_by_name": True}


class WeightedPoolSnapshot(_PoolSnapshotBase):
    type: Literal["WEIGHTED"] = "WEIGHTED"


class StablePoolSnapshot(_PoolSnapshotBase):
    """Plain stable pool; amp is the human value (e.g. "200")."""

    type: Literal["STABLE"] = "STABLE"
    amp: DecimalString


class ComposableStablePoolSnapshot(_PoolSnapshotBase):
    """Stable pool whose own BPT is listed among its tokens."""

    type: Literal["COMPOSABLE_STABLE"] = "COMPOSABLE_STABLE"
    amp: DecimalString


class LinearPoolSnapshot(_PoolSnapshotBase):
    """Linear pool between a main and a wrapped token.

    total_shares is the BPT virtual supply.
    """

    type: Literal["LINEAR"] = "LINEAR"
    main_index: int = Field(ge=0, alias="mainIndex")
    wrapped_index: int = Field(ge=0, alias="wrappedIndex")
    lower_target: DecimalString = Field(alias="lowerTarget")
    upper_target: DecimalString = Field(alias="upperTarget")


class FxPoolSnapshot(_PoolSnapshotBase):
    """FX pool; curve parameters are decimal strings ("0.8")."""

    type: Literal["FX"] = "FX"
    alpha: DecimalString
    beta: DecimalString
    lambda_: DecimalString = Field(alias="lambda")
    delta: DecimalString
    epsilon: DecimalString


PoolSnapshot = Annotated[
    WeightedPoolSnapshot
    | StablePoolSnapshot
    | ComposableStablePoolSnapshot
    | LinearPoolSnapshot
    | FxPoolSnapshot,
    Field(discriminator="type"),
]
