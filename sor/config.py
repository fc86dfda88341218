"""Router configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from decimal import Decimal

from sor.errors import InvalidInput


@dataclass(frozen=True)
class RouterConfig:
    """Bounds and tolerances of one routing calculation.

    Attributes:
        max_hops: Longest path the path builder explores
        max_pools: Most paths a route may be split across
        max_paths: Candidate paths kept from the path builder (shortest first)
        max_iterations: Cap on optimizer reallocation steps
        convergence_tolerance: Relative gain a reallocation must beat to be
            accepted. Marginal prices closer than this count as equal.
        initial_step_fraction: First reallocation step, as a fraction of the
            total swap amount
        min_step_fraction: The optimizer stops once its step falls below this
            fraction of the total swap amount
        spot_probe_fraction: Size of the probe trade used for marginal/spot
            prices, as a fraction of the total swap amount
    """

    max_hops: int = 3
    max_pools: int = 4
    max_paths: int = 32
    max_iterations: int = 256
    convergence_tolerance: Decimal = Decimal("1e-6")
    initial_step_fraction: Decimal = Decimal("0.1")
    min_step_fraction: Decimal = Decimal("1e-6")
    spot_probe_fraction: Decimal = Decimal("1e-6")

    def __post_init__(self) -> None:
        if self.max_hops < 1:
            raise InvalidInput(f"max_hops must be at least 1, got {self.max_hops}")
        if self.max_pools < 1:
            raise InvalidInput(f"max_pools must be at least 1, got {self.max_pools}")
        if self.max_paths < 1:
            raise InvalidInput(f"max_paths must be at least 1, got {self.max_paths}")
        if self.max_iterations < 1:
            raise InvalidInput(f"max_iterations must be at least 1, got {self.max_iterations}")
        if not Decimal(0) < self.initial_step_fraction <= Decimal(1):
            raise InvalidInput(
                f"initial_step_fraction must be in (0, 1], got {self.initial_step_fraction}"
            )

    def with_overrides(self, max_hops: int | None = None, max_pools: int | None = None) -> RouterConfig:
        """Copy with request options applied; None keeps the configured value."""
        return replace(
            self,
            max_hops=self.max_hops if max_hops is None else max_hops,
            max_pools=self.max_pools if max_pools is None else max_pools,
        )

    @classmethod
    def from_env(cls) -> RouterConfig:
        """Build a config from SOR_* environment variables.

        - SOR_MAX_HOPS, SOR_MAX_POOLS, SOR_MAX_PATHS, SOR_MAX_ITERATIONS
        - SOR_CONVERGENCE_TOLERANCE
        """
        defaults = cls()
        return cls(
            max_hops=int(os.environ.get("SOR_MAX_HOPS", defaults.max_hops)),
            max_pools=int(os.environ.get("SOR_MAX_POOLS", defaults.max_pools)),
            max_paths=int(os.environ.get("SOR_MAX_PATHS", defaults.max_paths)),
            max_iterations=int(os.environ.get("SOR_MAX_ITERATIONS", defaults.max_iterations)),
            convergence_tolerance=Decimal(
                os.environ.get("SOR_CONVERGENCE_TOLERANCE", str(defaults.convergence_tolerance))
            ),
        )


# Default configuration instance
DEFAULT_ROUTER_CONFIG = RouterConfig()
