"""Mathematical primitives for pool calculations.

- fixed_point: 18-decimal fixed-point arithmetic (Balancer FixedPoint/LogExpMath)
"""

from sor.math.fixed_point import (
    Bfp,
    complement,
    div_down,
    div_up,
    mul_down,
    mul_up,
    pow_down,
    pow_up,
)

__all__ = [
    "Bfp",
    "complement",
    "div_down",
    "div_up",
    "mul_down",
    "mul_up",
    "pow_down",
    "pow_up",
]
