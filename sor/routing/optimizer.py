"""Route splitting optimizer.

Splits one swap across candidate paths so that the total output (GIVEN_IN)
is maximized or the total input (GIVEN_OUT) minimized.

1. Every path gets a limit (largest amount it carries) and a normalized
   liquidity; empty paths are dropped and the max_pools deepest are kept.
2. The amount is first split in proportion to liquidity, clamped to limits.
3. A local search repeatedly moves a step of the amount from the path with
   the worst marginal price to the one with the best, keeping the move only
   if the total improves by more than the relative tolerance. Otherwise the
   step is halved; the search ends when the step drops below its minimum.
4. The final split is executed hop by hop with mutate=True on copies of the
   pools, so paths sharing a pool see each other's effect.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from decimal import Decimal

import structlog

from sor.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from sor.errors import InvalidInput, NoLiquidity
from sor.models.token import TokenAmount
from sor.models.types import SwapKind

from .quoting import path_limit, path_normalized_liquidity, quote_path, quote_path_amount
from .types import Path, PathAllocation, Route

logger = structlog.get_logger()


@dataclass
class _Candidate:
    path: Path
    limit: int
    liquidity: int
    amount: int = 0
    value: int = 0
    frozen: bool = False

    @property
    def headroom(self) -> int:
        return 0 if self.frozen else self.limit - self.amount


class RouteOptimizer:
    """Splits a swap across paths by equalizing marginal prices.

    Usage:
        optimizer = RouteOptimizer(config)
        route = optimizer.optimize_route(paths, swap_amount, SwapKind.GIVEN_IN)
    """

    def __init__(self, config: RouterConfig | None = None) -> None:
        self.config = config or DEFAULT_ROUTER_CONFIG

    def optimize_route(self, paths: list[Path], swap_amount: TokenAmount, swap_kind: SwapKind) -> Route:
        """Best split of swap_amount (raw, of the given token) across paths.

        Raises:
            InvalidInput: If the amount is not positive
            NoLiquidity: If the paths cannot carry the whole amount
        """
        if swap_amount.amount <= 0:
            raise InvalidInput("Swap amount must be positive")
        if not paths:
            raise NoLiquidity("No path found", token_in=None, token_out=None)

        token_in = paths[0].token_in
        token_out = paths[0].token_out
        total = swap_amount.amount

        candidates = self._select_candidates(paths, swap_kind)
        if not candidates or sum(c.limit for c in candidates) < total:
            logger.info(
                "insufficient_path_liquidity",
                token_in=token_in.address,
                token_out=token_out.address,
                candidates=len(candidates),
                capacity=sum(c.limit for c in candidates),
                amount=total,
            )
            raise NoLiquidity(
                f"Paths cannot carry {total}",
                token_in=token_in.address,
                token_out=token_out.address,
            )

        self._initial_allocation(candidates, total)
        for candidate in candidates:
            candidate.value = self._value(candidate, candidate.amount, swap_kind)
        if len(candidates) > 1:
            self._local_search(candidates, total, swap_kind)

        try:
            allocations = self._execute(candidates, swap_kind)
        except NoLiquidity:
            logger.warning(
                "split_execution_failed",
                token_in=token_in.address,
                token_out=token_out.address,
                paths=len([c for c in candidates if c.amount > 0]),
            )
            allocations = self._execute_single_path(candidates, total, swap_kind)
        route = Route(
            swap_kind=swap_kind,
            token_in=token_in,
            token_out=token_out,
            swap_amount=swap_amount,
            allocations=allocations,
        )
        logger.debug(
            "route_optimized",
            token_in=token_in.address,
            token_out=token_out.address,
            paths=len(allocations),
            return_amount=route.return_amount.amount,
        )
        return route

    # --- Candidate selection ---

    def _select_candidates(self, paths: list[Path], swap_kind: SwapKind) -> list[_Candidate]:
        scored = []
        for order, path in enumerate(paths):
            limit = path_limit(path, swap_kind)
            liquidity = path_normalized_liquidity(path) if limit > 0 else 0
            if limit <= 0 or liquidity <= 0:
                logger.debug("path_discarded", path=repr(path), limit=limit, liquidity=liquidity)
                continue
            scored.append((-liquidity, order, _Candidate(path, limit, liquidity)))
        scored.sort(key=lambda item: (item[0], item[1]))
        return [candidate for _, _, candidate in scored[: self.config.max_pools]]

    # --- Initial allocation ---

    @staticmethod
    def _initial_allocation(candidates: list[_Candidate], total: int) -> None:
        """Split in proportion to liquidity; clamp to limits and spread the rest."""
        remaining = total
        open_candidates = list(candidates)
        while remaining > 0 and open_candidates:
            weight = sum(c.liquidity for c in open_candidates)
            share_total = remaining
            for candidate in open_candidates:
                share = share_total * candidate.liquidity // weight
                share = min(share, candidate.limit - candidate.amount)
                candidate.amount += share
                remaining -= share
            open_candidates = [c for c in open_candidates if c.amount < c.limit]
            if remaining and open_candidates and remaining == share_total:
                # Shares rounded down to zero: the last paths with headroom take the dust
                for candidate in reversed(open_candidates):
                    extra = min(remaining, candidate.limit - candidate.amount)
                    candidate.amount += extra
                    remaining -= extra
                    if remaining == 0:
                        break
        if remaining:
            raise NoLiquidity(f"Could not place {remaining} of {total} within path limits")

    # --- Local search ---

    @staticmethod
    def _value(candidate: _Candidate, amount: int, swap_kind: SwapKind) -> int:
        return quote_path_amount(candidate.path, amount, swap_kind)

    def _score(self, gain_out: int, swap_kind: SwapKind) -> int:
        """Orient a change so that larger is always better."""
        return gain_out if swap_kind == SwapKind.GIVEN_IN else -gain_out

    def _local_search(self, candidates: list[_Candidate], total: int, swap_kind: SwapKind) -> None:
        config = self.config
        step = max(1, int(Decimal(total) * config.initial_step_fraction))
        min_step = max(1, int(Decimal(total) * config.min_step_fraction))
        iterations = 0

        while iterations < config.max_iterations and step >= min_step:
            iterations += 1
            move = self._best_move(candidates, step, swap_kind)
            if move is None:
                step //= 2
                continue

            donor, receiver, size, donor_value, receiver_value = move
            improvement = self._score(
                (receiver_value - receiver.value) - (donor.value - donor_value), swap_kind
            )
            # Tolerance is relative to the value of the amount being moved
            moved_value = Decimal(sum(c.value for c in candidates)) * size / total
            if improvement > 0 and improvement > config.convergence_tolerance * moved_value:
                donor.amount -= size
                donor.value = donor_value
                receiver.amount += size
                receiver.value = receiver_value
            else:
                step //= 2

        logger.debug("local_search_finished", iterations=iterations, final_step=step)

    def _best_move(
        self, candidates: list[_Candidate], step: int, swap_kind: SwapKind
    ) -> tuple[_Candidate, _Candidate, int, int, int] | None:
        """Pick the receiver with the best marginal gain and the donor with the smallest marginal loss."""
        best_receiver: tuple[Decimal, _Candidate, int, int] | None = None
        for candidate in candidates:
            size = min(step, candidate.headroom)
            if size <= 0:
                continue
            try:
                value = self._value(candidate, candidate.amount + size, swap_kind)
            except NoLiquidity:
                # The path's real capacity is below its estimated limit
                candidate.frozen = True
                continue
            rate = Decimal(self._score(value - candidate.value, swap_kind)) / Decimal(size)
            if best_receiver is None or rate > best_receiver[0]:
                best_receiver = (rate, candidate, size, value)

        if best_receiver is None:
            return None
        _, receiver, receiver_size, receiver_value = best_receiver

        best_donor: tuple[Decimal, _Candidate, int, int] | None = None
        for candidate in candidates:
            if candidate is receiver:
                continue
            size = min(receiver_size, candidate.amount)
            if size <= 0:
                continue
            value = self._value(candidate, candidate.amount - size, swap_kind)
            rate = Decimal(self._score(candidate.value - value, swap_kind)) / Decimal(size)
            if best_donor is None or rate < best_donor[0]:
                best_donor = (rate, candidate, size, value)

        if best_donor is None:
            return None
        _, donor, size, donor_value = best_donor
        if size != receiver_size:
            try:
                receiver_value = self._value(receiver, receiver.amount + size, swap_kind)
            except NoLiquidity:
                return None
        return donor, receiver, size, donor_value, receiver_value

    # --- Final evaluation ---

    def _execute(self, candidates: list[_Candidate], swap_kind: SwapKind) -> list[PathAllocation]:
        """Run the split sequentially on pool copies and record hop amounts.

        Paths are deep-copied together, so a pool shared by two paths stays a
        single object in the copy and the second path quotes against the
        balances the first one left behind.
        """
        active = [c for c in candidates if c.amount > 0]
        working_paths = copy.deepcopy([c.path for c in active])

        allocations = []
        for candidate, working_path in zip(active, working_paths, strict=True):
            hop_results = quote_path(working_path, candidate.amount, swap_kind, mutate=True)
            # Report against the caller's pools, not the copies
            for hop_result, hop in zip(hop_results, candidate.path.hops, strict=True):
                hop_result.hop = hop
            allocations.append(PathAllocation(candidate.path, candidate.amount, hop_results))
        return allocations

    def _execute_single_path(
        self, candidates: list[_Candidate], total: int, swap_kind: SwapKind
    ) -> list[PathAllocation]:
        """Send everything through the deepest path that can carry it alone.

        Used when paths sharing a pool cannot all be executed in sequence.
        """
        for candidate in candidates:
            if candidate.limit < total:
                continue
            single = _Candidate(candidate.path, candidate.limit, candidate.liquidity, amount=total)
            try:
                return self._execute([single], swap_kind)
            except NoLiquidity:
                continue
        raise NoLiquidity(
            f"No path can carry {total} on its own",
            token_in=candidates[0].path.token_in.address,
            token_out=candidates[0].path.token_out.address,
        )


__all__ = ["RouteOptimizer"]
