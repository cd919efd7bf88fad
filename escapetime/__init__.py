"""
Escape-time fractal rendering library.

This library renders Mandelbrot-style fractals pixel by pixel in extended
precision, with sixteen fractal variants and eighteen coloring methods.

Key Features:
- numpy.longdouble arithmetic throughout (float64 on request)
- Analytic skipping of known interior regions of the Mandelbrot set
- Exact-match periodicity detection for bounded orbits
- Cooperative cancellation and throttled progress reporting
- PNG/TIFF export with embedded render metadata

Example usage:
    >>> from escapetime import FractalParameters, FractalRenderer, RenderConfig
    >>> config = RenderConfig(width=256, height=256,
    ...                       fractal=FractalParameters(variant='burning_ship'))
    >>> result = FractalRenderer(config).render()
    >>> result.image.shape
    (256, 256, 3)
"""

__version__ = "1.0.0"
__author__ = "escapetime developers"

from escapetime.core.fractal_types import FractalParameters, FractalVariant, FractalRecurrence
from escapetime.core.math_functions import ComplexValue, ComplexPlane
from escapetime.core.orbit import OrbitClassifier
from escapetime.core.skip_regions import CardioidSkipOptimizer
from escapetime.rendering.coloring import ColorOptions, ColoringEngine
from escapetime.rendering.image_output import ImageExporter

# Main API classes
from escapetime.api import (FractalRenderer, RenderConfig, RenderResult,
                            RenderStatistics, CancellationToken)

__all__ = [
    "FractalRenderer",
    "RenderConfig",
    "RenderResult",
    "RenderStatistics",
    "CancellationToken",
    "FractalParameters",
    "FractalVariant",
    "FractalRecurrence",
    "ComplexValue",
    "ComplexPlane",
    "OrbitClassifier",
    "CardioidSkipOptimizer",
    "ColorOptions",
    "ColoringEngine",
    "ImageExporter",
]
