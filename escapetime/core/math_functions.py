"""
Core mathematical types for escape-time iteration.

This module provides the complex value type every recurrence works on, the
window used for exact-match periodicity detection, and the mapping from raster
pixels to points of the complex plane.
"""

from collections import deque
from typing import Any, Optional, Tuple, Union
import logging

import numpy as np

logger = logging.getLogger(__name__)

# Working type for values built from plain Python numbers
REAL = np.longdouble

Real = Union[float, int, np.floating]


def as_real(value: Real) -> np.floating:
    """Coerce a number to a numpy floating scalar, keeping numpy floats as they are."""
    if isinstance(value, np.floating):
        return value
    return REAL(value)


class ComplexValue:
    """
    Immutable complex number over numpy floating scalars.

    Components are kept in whatever numpy floating type they arrive in, so a
    value built from ``numpy.longdouble`` stays extended precision through
    every operation. All arithmetic follows IEEE semantics: dividing by zero
    yields inf/nan instead of raising.
    """

    __slots__ = ('_real', '_imag')

    # Make numpy scalars defer to our reflected operators (np.longdouble(2) * z)
    __array_ufunc__ = None

    def __init__(self, real: Real = 0, imag: Real = 0):
        object.__setattr__(self, '_real', as_real(real))
        object.__setattr__(self, '_imag', as_real(imag))

    def __setattr__(self, name, value):
        raise AttributeError("ComplexValue is immutable")

    @classmethod
    def from_complex(cls, value: complex) -> 'ComplexValue':
        """Create a value from a Python or numpy complex number."""
        return cls(value.real, value.imag)

    @property
    def real(self) -> np.floating:
        return self._real

    @property
    def imag(self) -> np.floating:
        return self._imag

    def _coerce(self, other: Any) -> 'ComplexValue':
        if isinstance(other, ComplexValue):
            return other
        if isinstance(other, (int, float, np.floating, np.integer)):
            return ComplexValue(other, 0)
        return NotImplemented

    def __add__(self, other: Any) -> 'ComplexValue':
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return ComplexValue(self._real + other._real, self._imag + other._imag)

    __radd__ = __add__

    def __sub__(self, other: Any) -> 'ComplexValue':
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return ComplexValue(self._real - other._real, self._imag - other._imag)

    def __rsub__(self, other: Any) -> 'ComplexValue':
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return other - self

    def __mul__(self, other: Any) -> 'ComplexValue':
        if isinstance(other, (int, float, np.floating, np.integer)):
            factor = as_real(other)
            return ComplexValue(self._real * factor, self._imag * factor)
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        real = self._real * other._real - self._imag * other._imag
        imag = self._real * other._imag + self._imag * other._real
        return ComplexValue(real, imag)

    __rmul__ = __mul__

    def __truediv__(self, other: Any) -> 'ComplexValue':
        if isinstance(other, (int, float, np.floating, np.integer)):
            divisor = as_real(other)
            return ComplexValue(self._real / divisor, self._imag / divisor)
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        denominator = other.norm()
        real = (self._real * other._real + self._imag * other._imag) / denominator
        imag = (self._imag * other._real - self._real * other._imag) / denominator
        return ComplexValue(real, imag)

    def __rtruediv__(self, other: Any) -> 'ComplexValue':
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return other / self

    def __neg__(self) -> 'ComplexValue':
        return ComplexValue(-self._real, -self._imag)

    def __pow__(self, exponent: Real) -> 'ComplexValue':
        return self.power(exponent)

    def __abs__(self) -> np.floating:
        return self.abs()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ComplexValue):
            return NotImplemented
        return bool(self._real == other._real and self._imag == other._imag)

    def __hash__(self) -> int:
        return hash((self._real, self._imag))

    def __repr__(self) -> str:
        return f"ComplexValue({self._real!r}, {self._imag!r})"

    def __str__(self) -> str:
        if self._imag >= 0:
            return f"{self._real:g} + {self._imag:g}i"
        return f"{self._real:g} - {-self._imag:g}i"

    def conjugate(self) -> 'ComplexValue':
        """Return complex conjugate."""
        return ComplexValue(self._real, -self._imag)

    def swap_xy(self) -> 'ComplexValue':
        """Return the value with its real and imaginary parts exchanged."""
        return ComplexValue(self._imag, self._real)

    def reciprocal(self) -> 'ComplexValue':
        """Return 1 / z computed as conj(z) / |z|^2."""
        denominator = self.norm()
        return ComplexValue(self._real / denominator, -self._imag / denominator)

    def norm(self) -> np.floating:
        """Squared modulus |z|^2."""
        return self._real * self._real + self._imag * self._imag

    def abs(self) -> np.floating:
        """Modulus |z|."""
        return np.hypot(self._real, self._imag)

    def arg(self) -> np.floating:
        """Argument in (-pi, pi]; atan2(0, 0) is 0."""
        return np.arctan2(self._imag, self._real)

    def power(self, exponent: Real) -> 'ComplexValue':
        """
        Raise to a real exponent using the polar form r^e * (cos(e*t) + i*sin(e*t)).

        The exponent may be negative or fractional. For a zero base the
        modulus is 0 and the argument is atan2(0, 0) = 0, so:

        - exponent > 0 gives exactly 0
        - exponent == 0 gives 1
        - exponent < 0 gives (inf, nan): 0**negative is inf and inf * sin(0)
          is nan
        """
        magnitude = np.power(self.abs(), exponent)
        angle = self.arg() * exponent
        return ComplexValue(magnitude * np.cos(angle), magnitude * np.sin(angle))

    def cos(self) -> 'ComplexValue':
        """Complex cosine: cos(x)cosh(y) - i*sin(x)sinh(y)."""
        return ComplexValue(np.cos(self._real) * np.cosh(self._imag),
                            -np.sin(self._real) * np.sinh(self._imag))

    def to_complex(self) -> complex:
        """Convert to a Python complex (may lose precision)."""
        return complex(float(self._real), float(self._imag))

    def to_numpy(self) -> np.complexfloating:
        """Convert to the numpy complex type matching the component width."""
        complex_type = np.result_type(self._real.dtype, np.complex64).type
        return complex_type(self._real) + complex_type(1j) * self._imag


class PeriodicityWindow:
    """
    Fixed-capacity window of the most recent orbit values.

    Detection is exact floating-point equality: only true fixed points and
    exactly repeating short cycles are caught.
    """

    def __init__(self, capacity: int, initial: ComplexValue):
        """
        Initialize the window.

        Args:
            capacity: Number of values remembered (0 disables detection)
            initial: Seed value every slot starts with
        """
        self.capacity = capacity
        self._values = deque([initial] * capacity, maxlen=capacity)

    def __len__(self) -> int:
        return len(self._values)

    def match_distance(self, value: ComplexValue) -> int:
        """
        Look for an exact match of value in the window.

        Returns:
            Distance of the oldest matching entry from the newest end (the
            newest entry is 1), or 0 when nothing matches
        """
        for index, previous in enumerate(self._values):
            if previous == value:
                return len(self._values) - index
        return 0

    def push(self, value: ComplexValue) -> None:
        """Append value, dropping the oldest entry."""
        self._values.append(value)


class ComplexPlane:
    """Represents a complex plane region with pixel-centre coordinate mapping."""

    def __init__(self, xmin: Real, xmax: Real, ymin: Real, ymax: Real,
                 width: int, height: int, dtype: Optional[type] = None):
        """
        Initialize complex plane bounds and resolution.

        Args:
            xmin, xmax: Real axis bounds
            ymin, ymax: Imaginary axis bounds
            width, height: Image resolution in pixels
            dtype: Floating type for coordinates (defaults to numpy.longdouble)
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")
        if xmin >= xmax or ymin >= ymax:
            raise ValueError("Invalid bounds: min values must be less than max values")

        dtype = dtype or REAL
        self.xmin = dtype(xmin)
        self.xmax = dtype(xmax)
        self.ymin = dtype(ymin)
        self.ymax = dtype(ymax)
        self.width = width
        self.height = height

        # Size of one pixel along each axis
        self.x_interval = (self.xmax - self.xmin) / width
        self.y_interval = (self.ymax - self.ymin) / height

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    def pixel_to_complex(self, px: int, py: int) -> ComplexValue:
        """Convert pixel coordinates to the complex number at the pixel centre.

        Rows count downwards from the top bound.
        """
        real = self.xmin + px * self.x_interval + self.x_interval / 2
        imag = self.ymax - py * self.y_interval - self.y_interval / 2
        return ComplexValue(real, imag)

    def pixel_size(self) -> Tuple[np.floating, np.floating]:
        """Get the (x, y) extent of a single pixel."""
        return self.x_interval, self.y_interval
