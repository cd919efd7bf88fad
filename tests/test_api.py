"""
End-to-end tests for the renderer: pixel mapping, statistics, cancellation
and progress reporting.
"""

import unittest
import itertools
import os
import sys
import tempfile
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from escapetime.api import (
    CancellationToken, FractalRenderer, RenderConfig, RenderStatistics, render,
)
from escapetime.core.fractal_types import FractalParameters
from escapetime.core.math_functions import ComplexValue
from escapetime.core.orbit import Bounded, Cancelled, Escaped, Periodic, Skipped
from escapetime.rendering.coloring import ColorOptions


class CountingToken:
    """Reports cancellation from the given poll onwards."""

    def __init__(self, cancel_at_poll):
        self.cancel_at_poll = cancel_at_poll
        self.polls = 0

    def is_cancelled(self):
        self.polls += 1
        return self.polls >= self.cancel_at_poll


def far_config(**kwargs):
    """3x3 render of [2, 3]^2, where every point escapes at n = 1."""
    fractal = FractalParameters(left=2, right=3, bottom=2, top=3)
    return RenderConfig(width=3, height=3, max_iterations=16, fractal=fractal,
                        coloring=ColorOptions(method=12), **kwargs)


class TestRenderConfig(unittest.TestCase):
    def test_defaults(self):
        config = RenderConfig()
        self.assertEqual((config.width, config.height), (1024, 1024))
        self.assertEqual(config.max_iterations, 1024)
        self.assertEqual(config.periodicity_window, 1)
        self.assertEqual(config.precision, 'extended')

    def test_invalid(self):
        with self.assertRaises(ValueError):
            RenderConfig(width=0)
        with self.assertRaises(ValueError):
            RenderConfig(max_iterations=-1)
        with self.assertRaises(ValueError):
            RenderConfig(periodicity_window=-2)
        with self.assertRaises(ValueError):
            RenderConfig(precision='quad')

    def test_dict_round_trip(self):
        config = RenderConfig(width=64, height=32, precision='double',
                              fractal=FractalParameters(variant='julia', exponent=3),
                              coloring=ColorOptions(method=5, multiplier=2.0))
        self.assertEqual(RenderConfig.from_dict(config.to_dict()), config)


class TestRenderStatistics(unittest.TestCase):
    def test_record(self):
        z = ComplexValue(0, 0)
        stats = RenderStatistics(total_pixels=5)
        stats.record(Escaped(n=7, z=z, c=z, steps=8))
        stats.record(Periodic(distance=3, n=12, steps=12))
        stats.record(Bounded(steps=17))
        stats.record(Skipped())
        stats.record(Cancelled(steps=4))

        self.assertEqual((stats.escaped, stats.periodic, stats.not_escaped, stats.skipped),
                         (1, 1, 1, 1))
        self.assertEqual(stats.pixels_done, 4)
        self.assertEqual(stats.iterations, 8 + 12 + 17 + 4)
        self.assertEqual(stats.max_iteration, 7)
        self.assertEqual((stats.max_period, stats.max_period_iteration), (3, 12))
        self.assertTrue(stats.cancelled)
        self.assertTrue(stats.consistent)
        self.assertEqual(stats.summary(), "1 e, 1 ne, 1 p, 3 mp, 12 mpi, 1 s, 41 i, 7 mi, 4 t")


class TestFractalRenderer(unittest.TestCase):
    def test_two_by_two(self):
        config = RenderConfig(width=2, height=2, max_iterations=16)
        result = FractalRenderer(config).render()

        self.assertEqual(result.image.shape, (2, 2, 3))
        self.assertEqual(result.image.dtype, np.uint8)
        # (1, 1) escapes at n = 2, (-1, -1) at n = 3
        self.assertEqual(tuple(result.image[0, 1]), (4, 2, 1))
        self.assertEqual(tuple(result.image[1, 0]), (6, 3, 1))

        stats = result.statistics
        self.assertEqual(stats.escaped, 4)
        self.assertEqual(stats.max_iteration, 3)
        self.assertEqual(stats.iterations, 14)
        self.assertEqual(stats.pixels_done, 4)
        self.assertEqual(stats.total_pixels, 4)
        self.assertFalse(result.partial)

    def test_centre_is_skipped(self):
        fractal = FractalParameters(left=-1.5, right=1.5, bottom=-1.5, top=1.5)
        result = FractalRenderer(RenderConfig(width=3, height=3, max_iterations=32,
                                              fractal=fractal)).render()
        self.assertGreaterEqual(result.statistics.skipped, 1)
        self.assertEqual(tuple(result.image[1, 1]), (0, 0, 0))
        self.assertTrue(result.statistics.consistent)
        self.assertEqual(result.statistics.pixels_done, 9)

    def test_statistics_add_up(self):
        fractal = FractalParameters(left=-2, right=0.5, bottom=-1.25, top=1.25)
        config = RenderConfig(width=12, height=10, max_iterations=64, fractal=fractal)
        stats = FractalRenderer(config).render().statistics
        self.assertEqual(stats.escaped + stats.not_escaped + stats.periodic + stats.skipped,
                         120)
        self.assertGreater(stats.skipped, 0)
        self.assertGreater(stats.escaped, 0)

    def test_deterministic(self):
        config = RenderConfig(width=6, height=5, max_iterations=40,
                              fractal=FractalParameters(variant='burning_ship'),
                              coloring=ColorOptions(method=8))
        first = FractalRenderer(config).render()
        second = FractalRenderer(config).render()
        np.testing.assert_array_equal(first.image, second.image)
        self.assertEqual(first.statistics.iterations, second.statistics.iterations)

    def test_every_variant_renders(self):
        for variant in ('julia', 'neuron', 'clouds', 'oops', 'stupidbrot', 'untitled1',
                        'dots', 'magnet1', 'experiment', 'mandelbox', 'negamandelbrot',
                        'collatz', 'experiment2', 'tricorn'):
            config = RenderConfig(width=3, height=2, max_iterations=8,
                                  fractal=FractalParameters(variant=variant))
            result = FractalRenderer(config).render()
            self.assertTrue(result.statistics.consistent, variant)
            self.assertEqual(result.statistics.pixels_done, 6, variant)

    def test_double_precision(self):
        config = RenderConfig(width=2, height=2, max_iterations=16, precision='double')
        result = FractalRenderer(config).render()
        self.assertEqual(tuple(result.image[0, 1]), (4, 2, 1))

    def test_cancel_between_pixels(self):
        # each pixel polls twice: once before it, once after the first step
        result = FractalRenderer(far_config()).render(cancellation=CountingToken(9))
        stats = result.statistics

        self.assertTrue(result.partial)
        self.assertEqual(stats.pixels_done, 4)
        self.assertEqual(stats.escaped, 4)
        self.assertEqual(tuple(result.image[1, 0]), (255, 255, 255))
        self.assertEqual(tuple(result.image[1, 1]), (0, 0, 0))
        self.assertEqual(tuple(result.image[2, 2]), (0, 0, 0))

    def test_cancel_inside_a_pixel(self):
        result = FractalRenderer(far_config()).render(cancellation=CountingToken(4))
        stats = result.statistics

        self.assertTrue(result.partial)
        self.assertEqual(stats.pixels_done, 1)
        self.assertTrue(stats.consistent)
        # steps of the abandoned pixel still count
        self.assertEqual(stats.iterations, 2 + 1)
        self.assertEqual(tuple(result.image[0, 1]), (0, 0, 0))

    def test_cancellation_token(self):
        token = CancellationToken()
        self.assertFalse(token.is_cancelled())
        token.cancel()
        self.assertTrue(token.is_cancelled())

        result = FractalRenderer(far_config()).render(cancellation=token)
        self.assertTrue(result.partial)
        self.assertEqual(result.statistics.pixels_done, 0)
        self.assertFalse(result.image.any())

    def test_progress_is_throttled(self):
        ticks = itertools.count(0, 0.5)
        reports = []
        renderer = FractalRenderer(RenderConfig(width=2, height=2, max_iterations=16),
                                   clock=lambda: next(ticks))
        result = renderer.render(progress_callback=lambda done, total: reports.append((done, total)))

        self.assertEqual(reports, [(1, 4), (3, 4)])
        self.assertEqual(result.statistics.duration_seconds, 2.5)

    def test_save(self):
        with tempfile.TemporaryDirectory() as tmp:
            result = render(RenderConfig(width=2, height=2, max_iterations=16), output_dir=tmp)
            expected = Path(tmp) / 'mandelbrot' / '0' / 'e2_el4_mi3_mpi0_2x_complete_ld.png'
            self.assertEqual(result.output_path, expected)
            self.assertTrue(expected.exists())


if __name__ == '__main__':
    unittest.main()
