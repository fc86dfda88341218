"""Type definitions for routing module."""

from __future__ import annotations

from dataclasses import dataclass, field

from sor.models.token import Token, TokenAmount
from sor.models.types import SwapKind
from sor.pools.base import BasePool


@dataclass(frozen=True)
class Hop:
    """One pool swap of a path."""

    pool: BasePool
    token_in: Token
    token_out: Token


@dataclass(frozen=True)
class Path:
    """Ordered hops from token_in to token_out; no pool appears twice."""

    hops: tuple[Hop, ...]

    @property
    def token_in(self) -> Token:
        return self.hops[0].token_in

    @property
    def token_out(self) -> Token:
        return self.hops[-1].token_out

    @property
    def tokens(self) -> list[Token]:
        return [self.hops[0].token_in] + [hop.token_out for hop in self.hops]

    @property
    def pool_ids(self) -> list[str]:
        return [hop.pool.id for hop in self.hops]

    def __len__(self) -> int:
        return len(self.hops)

    def __repr__(self) -> str:
        tokens = " -> ".join(str(t) for t in self.tokens)
        return f"Path({tokens} via {', '.join(self.pool_ids)})"


@dataclass
class HopResult:
    """Amounts moved by one hop when a path was executed."""

    hop: Hop
    amount_in: TokenAmount
    amount_out: TokenAmount


@dataclass
class PathAllocation:
    """Part of a route's given amount sent through one path.

    amount is raw units of the given token (token_in for GIVEN_IN, token_out
    for GIVEN_OUT). hops is filled by the final sequential evaluation.
    """

    path: Path
    amount: int
    hops: list[HopResult] = field(default_factory=list)

    @property
    def amount_in(self) -> TokenAmount:
        return self.hops[0].amount_in

    @property
    def amount_out(self) -> TokenAmount:
        return self.hops[-1].amount_out


@dataclass
class Route:
    """Optimized split of one swap across paths.

    Allocation amounts add up exactly to swap_amount.
    """

    swap_kind: SwapKind
    token_in: Token
    token_out: Token
    swap_amount: TokenAmount
    allocations: list[PathAllocation]

    @property
    def paths(self) -> list[Path]:
        return [a.path for a in self.allocations]

    @property
    def amount_in(self) -> TokenAmount:
        total = TokenAmount(self.token_in, 0)
        for allocation in self.allocations:
            total = total.add(allocation.amount_in)
        return total

    @property
    def amount_out(self) -> TokenAmount:
        total = TokenAmount(self.token_out, 0)
        for allocation in self.allocations:
            total = total.add(allocation.amount_out)
        return total

    @property
    def return_amount(self) -> TokenAmount:
        """The side the caller did not fix: output for GIVEN_IN, input for GIVEN_OUT."""
        return self.amount_out if self.swap_kind == SwapKind.GIVEN_IN else self.amount_in


__all__ = ["Hop", "Path", "HopResult", "PathAllocation", "Route"]
