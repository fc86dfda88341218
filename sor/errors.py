"""Router error classes.

Two families matter to callers:

- Expected conditions (InvalidInput, NoLiquidity) are turned into a zero
  response at the router boundary.
- Arithmetic invariant violations (MathError and subclasses) point at a
  corrupted snapshot or a math bug and are propagated.
"""

from __future__ import annotations


class SorError(Exception):
    """Base error for all router operations."""

    pass


# =============================================================================
# Input errors
# =============================================================================


class InvalidInput(SorError):
    """Malformed amount, unknown token or otherwise unusable request."""

    pass


class PoolDataError(InvalidInput):
    """Pool snapshot cannot be turned into a pool (bad weights, fee, rates)."""

    pass


# =============================================================================
# Arithmetic errors
# =============================================================================


class MathError(SorError, ArithmeticError):
    """Base error for arithmetic invariant violations."""

    pass


class DivisionByZero(MathError, ZeroDivisionError):
    """Fixed-point or integer division by zero."""

    pass


class NegativeAmount(MathError):
    """A token amount went below zero after a subtraction."""

    pass


class NegativeSwapResult(MathError):
    """Pool math produced a negative input or output amount."""

    pass


class ConvergenceFailure(MathError):
    """An iterative solver exceeded its iteration cap."""

    pass


# =============================================================================
# Liquidity errors
# =============================================================================


class NoLiquidity(SorError):
    """No path or allocation can carry the requested trade."""

    def __init__(
        self,
        message: str = "No liquidity",
        *,
        token_in: str | None = None,
        token_out: str | None = None,
    ) -> None:
        super().__init__(message)
        self.token_in = token_in
        self.token_out = token_out


class SwapLimitExceeded(NoLiquidity):
    """A pool refuses the amount (ratio limit, balance cap)."""

    pass


class CurveHalt(SwapLimitExceeded):
    """FX curve halted: the trade pushes the pool past its alpha region."""

    pass


class CurveInvariantViolation(SwapLimitExceeded):
    """FX curve swap would decrease the pool's utility invariant."""

    pass
