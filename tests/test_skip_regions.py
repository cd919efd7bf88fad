"""
Tests for the interior-region skip test.

Soundness check: every point the optimizer skips must stay bounded when it
is actually iterated.
"""

import unittest
import os
import sys

import numpy as np

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from escapetime.core.fractal_types import FractalParameters, FractalRecurrence
from escapetime.core.math_functions import ComplexValue
from escapetime.core.orbit import Bounded, OrbitClassifier
from escapetime.core.skip_regions import CardioidSkipOptimizer, in_cardioid_or_bulb


def L(value):
    return np.longdouble(value)


class TestSkipEnabled(unittest.TestCase):
    def test_only_plain_mandelbrot(self):
        self.assertTrue(CardioidSkipOptimizer(FractalParameters()).enabled)
        self.assertFalse(CardioidSkipOptimizer(FractalParameters(variant='julia')).enabled)
        self.assertFalse(CardioidSkipOptimizer(FractalParameters(single=True)).enabled)
        self.assertFalse(CardioidSkipOptimizer(FractalParameters(escape_limit=8)).enabled)

    def test_disabled_never_skips(self):
        optimizer = CardioidSkipOptimizer(FractalParameters(variant='tricorn'))
        self.assertFalse(optimizer(L(0), L(0)))


class TestKnownPoints(unittest.TestCase):
    def test_quadratic(self):
        optimizer = CardioidSkipOptimizer(FractalParameters())
        self.assertTrue(optimizer(L(0), L(0)))
        self.assertTrue(optimizer(L(-1), L(0)))  # period-2 bulb
        self.assertTrue(optimizer(L(0.2), L(0.3)))
        self.assertFalse(optimizer(L(1), L(1)))
        self.assertFalse(optimizer(L(0.26), L(0)))  # just past the cusp
        self.assertFalse(in_cardioid_or_bulb(L(-1.3), L(0)))

    def test_higher_exponents(self):
        for exponent in (3, 4, 5):
            optimizer = CardioidSkipOptimizer(FractalParameters(exponent=exponent))
            self.assertTrue(optimizer(L(0), L(0)))
            self.assertFalse(optimizer(L(1), L(1)))

    def test_unsupported_exponent(self):
        optimizer = CardioidSkipOptimizer(FractalParameters(exponent=6))
        self.assertFalse(optimizer(L(0), L(0)))
        optimizer = CardioidSkipOptimizer(FractalParameters(exponent=2.5))
        self.assertFalse(optimizer(L(0), L(0)))


class TestSoundness(unittest.TestCase):
    def test_skipped_points_stay_bounded(self):
        xs = np.linspace(-2.0, 0.6, 14)
        ys = np.linspace(-1.2, 1.2, 13)
        for exponent in (2, 3, 4, 5):
            params = FractalParameters(exponent=exponent)
            optimizer = CardioidSkipOptimizer(params)
            classifier = OrbitClassifier(FractalRecurrence(params), max_iterations=150,
                                         periodicity_window=0)
            skipped = 0
            for x in xs:
                for y in ys:
                    if not optimizer(L(x), L(y)):
                        continue
                    skipped += 1
                    outcome = classifier.classify(ComplexValue(L(x), L(y)))
                    self.assertIsInstance(outcome, Bounded,
                                          f"exponent {exponent}: ({x}, {y}) escaped")
            self.assertGreater(skipped, 0)


if __name__ == '__main__':
    unittest.main()
