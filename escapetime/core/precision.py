"""
Floating-point precision selection for fractal iteration.

Iteration runs on numpy floating scalars. The default is numpy.longdouble,
the widest native type (80-bit extended on x86 Linux); float64 can be chosen
for comparison. This module picks the type and warns when a viewport is
finer than the chosen type can resolve.
"""

import numpy as np
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)

PRECISION_TYPES = {
    'extended': np.longdouble,
    'double': np.float64,
}

# Platforms such as Windows and Apple silicon alias longdouble to float64
EXTENDED_AVAILABLE = np.finfo(np.longdouble).eps < np.finfo(np.float64).eps


class PrecisionConfig:
    """Configuration for precision levels and arithmetic operations."""

    def __init__(self, precision: str = 'extended'):
        """
        Initialize precision configuration.

        Args:
            precision: Either 'extended' or 'double'
        """
        self.precision = precision
        self._setup_precision()

    def _setup_precision(self):
        """Setup precision parameters based on configuration."""
        if self.precision not in PRECISION_TYPES:
            available = ', '.join(PRECISION_TYPES)
            raise ValueError(f"Unknown precision type '{self.precision}'. Available: {available}")

        self.dtype = PRECISION_TYPES[self.precision]
        info = np.finfo(self.dtype)
        self.decimal_places = info.precision
        self.epsilon = info.eps

        if self.precision == 'extended' and not EXTENDED_AVAILABLE:
            logger.warning("Extended precision requested but numpy.longdouble is no wider "
                           "than float64 on this platform")

    def to_real(self, value: Union[str, float, int]) -> np.floating:
        """Convert a number (or numeric string) to the configured floating type."""
        return self.dtype(value)

    def format_number(self, value: Union[float, complex]) -> str:
        """Format a number according to the precision configuration."""
        precision = min(8, self.decimal_places)
        if isinstance(value, complex):
            return f"{value.real:.{precision}g} + {value.imag:.{precision}g}i"
        return f"{value:.{precision}g}"


def detect_precision_need(pixel_interval: float, magnitude: float) -> Optional[str]:
    """
    Detect which precision a viewport needs.

    Args:
        pixel_interval: Smallest per-pixel step of the viewport
        magnitude: Largest absolute coordinate of the viewport

    Returns:
        'double' or 'extended', or None when even the widest type is too coarse
    """
    for name in ('double', 'extended'):
        if name == 'extended' and not EXTENDED_AVAILABLE:
            break
        epsilon = np.finfo(PRECISION_TYPES[name]).eps
        if pixel_interval > epsilon * max(abs(magnitude), 1.0) * 4:
            return name
    return None
