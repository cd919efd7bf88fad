"""
Per-pixel orbit classification.

The classifier iterates a recurrence from a pixel's starting state until the
orbit escapes, repeats a recent value, or runs out of iterations, and returns
exactly one outcome describing what happened.
"""

from dataclasses import dataclass
from typing import Optional
import logging

import numpy as np

from .fractal_types import FractalParameters, FractalRecurrence
from .math_functions import ComplexValue, PeriodicityWindow

logger = logging.getLogger(__name__)


class PixelOutcome:
    """Base class for the result of classifying one pixel.

    ``steps`` on every outcome counts the passes made through the iteration
    loop, including the final one that terminated it.
    """

    __slots__ = ()

    # Whether the outcome is colorized (everything else is background)
    colored = False


@dataclass(frozen=True)
class Escaped(PixelOutcome):
    """Orbit value Z_n exceeded the escape limit."""

    n: int
    z: ComplexValue
    c: ComplexValue
    steps: int = 0

    colored = True


@dataclass(frozen=True)
class FixedIterations(PixelOutcome):
    """Single mode: the orbit ran exactly to the iteration budget."""

    n: int
    z: ComplexValue
    c: ComplexValue
    steps: int = 0

    colored = True


@dataclass(frozen=True)
class Periodic(PixelOutcome):
    """Orbit value Z_n exactly repeated a value still in the window."""

    distance: int
    n: int
    steps: int = 0


@dataclass(frozen=True)
class Bounded(PixelOutcome):
    """Iteration budget exhausted without escaping."""

    steps: int = 0


@dataclass(frozen=True)
class Skipped(PixelOutcome):
    """Point lies in a region known to be bounded; never iterated."""

    steps: int = 0


@dataclass(frozen=True)
class Cancelled(PixelOutcome):
    """Classification abandoned because cancellation was requested."""

    steps: int = 0


class OrbitClassifier:
    """Drives the iterate-until-escape/cycle/exhaustion loop for one pixel."""

    def __init__(self, recurrence: FractalRecurrence, max_iterations: int,
                 periodicity_window: int = 1, cancellation: Optional[object] = None):
        """
        Initialize the classifier.

        Args:
            recurrence: Recurrence bound to the render's fractal parameters
            max_iterations: Iteration budget per pixel
            periodicity_window: Number of recent orbit values compared
                against each new one (0 disables periodicity checking)
            cancellation: Object with an ``is_cancelled()`` method, polled
                once per iteration
        """
        if max_iterations < 0:
            raise ValueError("max_iterations must not be negative")
        if periodicity_window < 0:
            raise ValueError("periodicity_window must not be negative")

        self.recurrence = recurrence
        self.parameters: FractalParameters = recurrence.parameters
        self.max_iterations = max_iterations
        self.periodicity_window = periodicity_window
        self.cancellation = cancellation
        self.escape_limit = recurrence.dtype(self.parameters.escape_limit)

    def classify(self, point: ComplexValue) -> PixelOutcome:
        """
        Classify the orbit starting from a pixel's point.

        Escape is tested on Z_n before advancing; periodicity is tested on the
        new value right after advancing.

        Args:
            point: Complex coordinate of the pixel

        Returns:
            The pixel's outcome
        """
        single = self.parameters.single
        max_iterations = self.max_iterations
        z, c = self.recurrence.initial_state(point)
        window = PeriodicityWindow(self.periodicity_window, z)
        check_period = not single and self.periodicity_window > 0
        steps = 0

        with np.errstate(all='ignore'):
            for n in range(max_iterations + 1):
                steps += 1
                if single:
                    if n == max_iterations:
                        return FixedIterations(n=n, z=z, c=c, steps=steps)
                elif n > 0 and z.norm() > self.escape_limit:
                    return Escaped(n=n, z=z, c=c, steps=steps)

                if n == max_iterations:
                    break

                z, c = self.recurrence(z, c, n)

                if check_period:
                    distance = window.match_distance(z)
                    if distance:
                        # z is now Z_{n+1}
                        return Periodic(distance=distance, n=n + 1, steps=steps)
                    window.push(z)

                if self.cancellation is not None and self.cancellation.is_cancelled():
                    return Cancelled(steps=steps)

        return Bounded(steps=steps)
