"""
Analytic detection of points known to lie inside the Mandelbrot set.

For the Mandelbrot variant with the standard escape limit, large parts of
the set are bounded by closed-form curves. Points inside those regions are
never iterated. Every test here is conservative: a skipped point is always
a non-escaping one.
"""

from typing import Any
import logging

import numpy as np

from .fractal_types import FractalParameters, FractalVariant

logger = logging.getLogger(__name__)

# Partial capture for z^4 + c: disc of radius 9 / (32 * 2^(1/3)), squared
QUARTIC_RADIUS_SQ = "0.2232282729330280511369586055226683491"

# Partial capture for z^5 + c: disc of radius 16 / 5^2.5, squared
QUINTIC_RADIUS_SQ = "0.2862167011199730811403742295976033581"


def in_cardioid_or_bulb(x, y) -> bool:
    """Main cardioid or period-2 bulb of z^2 + c."""
    y2 = y * y
    xo = x - 0.25
    q = xo * xo + y2
    return bool(q * (q + xo) < 0.25 * y2
                or (x + 1) * (x + 1) + y2 < 0.0625)


def in_cubic_body(x, y) -> bool:
    """
    Main body of z^3 + c.

    The boundary is the curve where the fixed point z = z^3 + c has
    multiplier of modulus one: x(t) = (3cos(t/2) - cos(3t/2)) / (3*sqrt(3)),
    y(t) = +-4sin(t/2)^3 / (3*sqrt(3)). Solved for x^2 in terms of y.
    """
    y2 = y * y
    return bool(x * x < 4.0 / 27.0 - y2 + np.cbrt(4 * y2) / 3.0)


class CardioidSkipOptimizer:
    """Decides before iterating whether a point is provably bounded."""

    def __init__(self, parameters: FractalParameters, dtype: type = np.longdouble):
        """
        Initialize the optimizer.

        Args:
            parameters: Fractal parameters of the render
            dtype: Floating type coordinates arrive in
        """
        self.parameters = parameters
        self.enabled = (not parameters.single
                        and parameters.variant is FractalVariant.MANDELBROT
                        and parameters.escape_limit == 4)
        self.exponent = parameters.exponent
        self._quartic = dtype(QUARTIC_RADIUS_SQ)
        self._quintic = dtype(QUINTIC_RADIUS_SQ)

        if self.enabled and self.exponent in (2, 3, 4, 5):
            logger.debug(f"Skipping known interior regions for exponent {self.exponent:g}")

    def __call__(self, x: Any, y: Any) -> bool:
        return self.can_skip(x, y)

    def can_skip(self, x: Any, y: Any) -> bool:
        """
        Check whether the point (x, y) needs no iteration.

        Args:
            x: Real part of the point
            y: Imaginary part of the point

        Returns:
            True only if the point provably never escapes
        """
        if not self.enabled:
            return False

        if self.exponent == 2:
            return in_cardioid_or_bulb(x, y)
        if self.exponent == 3:
            return in_cubic_body(x, y)
        if self.exponent == 4:
            return bool(x * x + y * y < self._quartic)
        if self.exponent == 5:
            return bool(x * x + y * y < self._quintic)
        return False
