"""
Main API classes for fractal rendering.

This module ties the core components together: ``FractalRenderer`` walks the
raster, asks the skip optimizer for a shortcut, otherwise classifies each
pixel's orbit, colors the outcome and keeps the render statistics.
"""

import itertools
import numpy as np
from typing import Optional, Dict, Any, Callable
from dataclasses import dataclass, field, asdict
from pathlib import Path
import logging
import time

from .core.fractal_types import FractalParameters, FractalRecurrence
from .core.math_functions import ComplexPlane
from .core.orbit import (OrbitClassifier, PixelOutcome, Escaped, FixedIterations,
                         Periodic, Bounded, Skipped, Cancelled)
from .core.precision import PRECISION_TYPES, PrecisionConfig, detect_precision_need
from .core.skip_regions import CardioidSkipOptimizer
from .rendering.coloring import ColorOptions, ColoringEngine
from .rendering.image_output import ImageExporter, RenderMetadata, make_filename

logger = logging.getLogger(__name__)

# Minimum seconds between two progress reports
PROGRESS_INTERVAL = 1.0

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RenderConfig:
    """Configuration for one render."""

    # Image parameters
    width: int = 1024
    height: int = 1024

    # Iteration
    max_iterations: int = 1024
    periodicity_window: int = 1  # 0 disables periodicity checking
    precision: str = 'extended'  # 'extended' (long double) or 'double'

    fractal: FractalParameters = field(default_factory=FractalParameters)
    coloring: ColorOptions = field(default_factory=ColorOptions)

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Validate configuration parameters."""
        for name in ('width', 'height', 'max_iterations', 'periodicity_window'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ValueError(f"{name} must be an integer")

        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")

        if self.max_iterations < 0:
            raise ValueError("max_iterations must not be negative")

        if self.periodicity_window < 0:
            raise ValueError("periodicity_window must not be negative")

        if self.precision not in PRECISION_TYPES:
            available = ', '.join(PRECISION_TYPES)
            raise ValueError(f"Unknown precision type '{self.precision}'. Available: {available}")

        if not isinstance(self.fractal, FractalParameters):
            raise ValueError("fractal must be FractalParameters")
        if not isinstance(self.coloring, ColorOptions):
            raise ValueError("coloring must be ColorOptions")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-compatible dictionary."""
        return {
            'width': self.width,
            'height': self.height,
            'max_iterations': self.max_iterations,
            'periodicity_window': self.periodicity_window,
            'precision': self.precision,
            'fractal': self.fractal.to_dict(),
            'coloring': self.coloring.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        """Create configuration from dictionary."""
        data = dict(data)
        if isinstance(data.get('fractal'), dict):
            data['fractal'] = FractalParameters.from_dict(data['fractal'])
        if isinstance(data.get('coloring'), dict):
            data['coloring'] = ColorOptions.from_dict(data['coloring'])
        return cls(**data)


class CancellationToken:
    """Flag polled by the renderer; set from outside (e.g. a signal handler)."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def is_cancelled(self) -> bool:
        return self._cancelled


@dataclass
class RenderStatistics:
    """Counters accumulated over a render."""

    escaped: int = 0
    not_escaped: int = 0
    periodic: int = 0
    skipped: int = 0
    iterations: int = 0
    max_iteration: int = 0
    max_period: int = 0
    max_period_iteration: int = 0
    pixels_done: int = 0
    total_pixels: int = 0
    duration_seconds: float = 0.0
    cancelled: bool = False

    def record(self, outcome: PixelOutcome) -> None:
        """Account for one pixel outcome."""
        self.iterations += outcome.steps

        if isinstance(outcome, Cancelled):
            # abandoned mid-orbit; the pixel is not done
            self.cancelled = True
            return

        if isinstance(outcome, (Escaped, FixedIterations)):
            self.escaped += 1
            self.max_iteration = max(self.max_iteration, outcome.n)
        elif isinstance(outcome, Periodic):
            self.periodic += 1
            self.max_period = max(self.max_period, outcome.distance)
            self.max_period_iteration = max(self.max_period_iteration, outcome.n)
        elif isinstance(outcome, Bounded):
            self.not_escaped += 1
        elif isinstance(outcome, Skipped):
            self.skipped += 1
        else:
            raise TypeError(f"Unknown pixel outcome: {outcome!r}")
        self.pixels_done += 1

    @property
    def consistent(self) -> bool:
        """Whether every processed pixel was counted exactly once."""
        return self.escaped + self.not_escaped + self.periodic + self.skipped == self.pixels_done

    def summary(self) -> str:
        """One-line summary: e, ne, p, mp, mpi, s, i, mi, t."""
        return (f"{self.escaped} e, {self.not_escaped} ne, {self.periodic} p, "
                f"{self.max_period} mp, {self.max_period_iteration} mpi, {self.skipped} s, "
                f"{self.iterations} i, {self.max_iteration} mi, {self.pixels_done} t")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RenderResult:
    """Raster and bookkeeping of a finished or cancelled render."""

    image: np.ndarray
    statistics: RenderStatistics
    config: RenderConfig
    output_path: Optional[Path] = None

    @property
    def partial(self) -> bool:
        """True when the render was cancelled before every pixel was done."""
        return self.statistics.cancelled


class FractalRenderer:
    """Main fractal rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize fractal renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
            clock: Monotonic time source in seconds
        """
        self.config = config or RenderConfig()
        self.config.validate()
        self.clock = clock

        fractal = self.config.fractal
        self.precision_config = PrecisionConfig(self.config.precision)
        dtype = self.precision_config.dtype

        self.recurrence = FractalRecurrence(fractal, dtype)
        self.skip_optimizer = CardioidSkipOptimizer(fractal, dtype)
        self.coloring_engine = ColoringEngine(self.config.coloring,
                                              exponent=self.recurrence.exponent,
                                              escape_limit=dtype(fractal.escape_limit))
        self.plane = ComplexPlane(fractal.left, fractal.right, fractal.bottom, fractal.top,
                                  self.config.width, self.config.height, dtype=dtype)

        self._check_precision()

        logger.debug(f"FractalRenderer initialized: {self.config.width}x{self.config.height}, "
                     f"type={fractal.variant.label}, precision={self.config.precision}")

    def _check_precision(self):
        """Warn when the viewport is finer than the working type resolves."""
        x_interval, y_interval = self.plane.pixel_size()
        magnitude = max(abs(bound) for bound in self.config.fractal.bounds)
        needed = detect_precision_need(min(x_interval, y_interval), magnitude)

        if needed is None:
            logger.warning("Pixel spacing is below the resolution of every native floating "
                           "type; the image will show blocky artifacts")
        elif needed == 'extended' and self.config.precision == 'double':
            logger.warning("Pixel spacing is below double resolution; "
                           "use extended precision for this viewport")

    def render(self, cancellation: Optional[CancellationToken] = None,
               progress_callback: Optional[ProgressCallback] = None,
               output_dir: Optional[Path] = None) -> RenderResult:
        """
        Render the configured fractal.

        Pixels are processed row by row from the top, left to right. When
        cancellation is requested the traversal stops at once and the pixels
        not yet processed stay black.

        Args:
            cancellation: Token polled before every pixel and every iteration
            progress_callback: Called with (pixels_done, total_pixels), at
                most once per second
            output_dir: Root directory to save the image under; nothing is
                saved when None

        Returns:
            RenderResult with the raster and statistics
        """
        config = self.config
        plane = self.plane
        image = np.zeros((config.height, config.width, 3), dtype=np.uint8)
        statistics = RenderStatistics(total_pixels=plane.total_pixels)
        classifier = OrbitClassifier(self.recurrence, config.max_iterations,
                                     config.periodicity_window, cancellation)

        logger.info(f"Starting render: {config.fractal.variant.label}, "
                    f"{config.width}x{config.height}, color method {config.coloring.method}")

        start_time = self.clock()
        last_report = start_time

        with np.errstate(all='ignore'):
            for row, col in itertools.product(range(config.height), range(config.width)):
                if cancellation is not None and cancellation.is_cancelled():
                    statistics.cancelled = True
                    break

                if progress_callback is not None:
                    now = self.clock()
                    if now - last_report >= PROGRESS_INTERVAL:
                        progress_callback(statistics.pixels_done, statistics.total_pixels)
                        last_report = now

                point = plane.pixel_to_complex(col, row)
                if self.skip_optimizer(point.real, point.imag):
                    outcome = Skipped()
                else:
                    outcome = classifier.classify(point)

                statistics.record(outcome)
                if isinstance(outcome, Cancelled):
                    break

                image[row, col] = self.coloring_engine.colorize(outcome).to_tuple()

        statistics.duration_seconds = self.clock() - start_time

        if not statistics.consistent:
            logger.error(f"Pixel accounting mismatch: e + ne + p + s != t ({statistics.summary()})")

        state = "cancelled" if statistics.cancelled else "complete"
        logger.info(f"Render {state} in {statistics.duration_seconds:.2f}s ({statistics.summary()})")

        result = RenderResult(image=image, statistics=statistics, config=config)
        if output_dir is not None:
            result.output_path = self.save(result, output_dir)
        return result

    def save(self, result: RenderResult, output_dir: Path) -> Path:
        """
        Save a render under its generated filename.

        Args:
            result: Result of ``render``
            output_dir: Output root directory

        Returns:
            Path of the written image
        """
        path = make_filename(result.config, result.statistics, Path(output_dir))
        exporter = ImageExporter()
        return exporter.save_image(result.image, path, self._build_metadata(result))

    def _build_metadata(self, result: RenderResult) -> RenderMetadata:
        config = result.config
        fractal = config.fractal
        return RenderMetadata(
            fractal_type=fractal.variant.label,
            bounds=fractal.bounds,
            resolution=(config.width, config.height),
            max_iterations=config.max_iterations,
            escape_limit=fractal.escape_limit,
            color_method=config.coloring.method,
            precision=config.precision,
            render_time_seconds=result.statistics.duration_seconds,
            partial=result.partial,
            statistics=result.statistics.to_dict(),
            fractal_parameters=fractal.to_dict(),
            color_options=config.coloring.to_dict(),
        )


def render(config: Optional[RenderConfig] = None, **kwargs) -> RenderResult:
    """Render a configuration in one call (keyword arguments go to ``render``)."""
    return FractalRenderer(config).render(**kwargs)
