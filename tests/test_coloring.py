"""
Tests for the color methods and their post-processing.
"""

import unittest
import os
import sys

import numpy as np

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from escapetime.core.math_functions import ComplexValue
from escapetime.core.orbit import Bounded, Escaped, FixedIterations, Periodic, Skipped
from escapetime.rendering.coloring import (
    BACKGROUND, COLOR_METHODS, ColorOptions, ColorRGB, ColoringEngine,
    get_color_method, list_color_methods, round_half_away,
)


def color(method, n=10, z=(0, 0), **options):
    engine = ColoringEngine(ColorOptions(method=method, **options))
    point = ComplexValue(*z)
    return engine.colorize(Escaped(n=n, z=point, c=point)).to_tuple()


class TestColorOptions(unittest.TestCase):
    def test_eighteen_methods(self):
        self.assertEqual(sorted(COLOR_METHODS), list(range(18)))
        self.assertEqual(len(list_color_methods()), 18)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            ColorOptions(method=18)
        with self.assertRaises(ValueError):
            ColorOptions(c_log=-1)
        with self.assertRaises(ValueError):
            get_color_method(-1)

    def test_dict_round_trip(self):
        options = ColorOptions(method=9, multiplier=2.5, c_log=1, smooth=True)
        self.assertEqual(ColorOptions.from_dict(options.to_dict()), options)

    def test_rgb_range(self):
        with self.assertRaises(ValueError):
            ColorRGB(256, 0, 0)


class TestRounding(unittest.TestCase):
    def test_half_away_from_zero(self):
        self.assertEqual(round_half_away(2.5), 3)
        self.assertEqual(round_half_away(0.5), 1)
        self.assertEqual(round_half_away(-2.5), -3)
        self.assertEqual(round_half_away(2.4), 2)


class TestColorMethods(unittest.TestCase):
    def test_gold(self):
        self.assertEqual(color(0, n=10), (20, 10, 5))

    def test_gold_smooth(self):
        # |Z| = 2 with limit 4 and exponent 2 gives n' = n + 1
        red, green, _ = color(0, n=2, z=(2, 0), smooth=True)
        self.assertEqual((red, green), (6, 3))

    def test_green_overflow(self):
        self.assertEqual(color(1, n=300, disable_fancy=True), (0, 255, 90))
        self.assertEqual(color(1, n=400, disable_fancy=True), (255, 200, 200))
        self.assertEqual(color(1, n=10, z=(2, 1)), (4, 10, 1))

    def test_laser_blue(self):
        self.assertEqual(color(2, z=(2, 0)), (0, 4, 255))

    def test_laser_green(self):
        self.assertEqual(color(3, z=(0, 2)), (255, 255, 16))

    def test_ben_nan_is_black(self):
        with np.errstate(all='ignore'):
            self.assertEqual(color(4, z=(np.inf, 0)), (0, 0, 0))

    def test_glow(self):
        self.assertEqual(color(5, z=(0, 0)), (255, 255, 255))
        self.assertEqual(color(6, z=(0, 0)), (255, 255, 255))
        self.assertEqual(color(7, z=(0, 0)), (255, 255, 255))
        # Zr2 = 0.01: 1/Zr2 = 100, 1.5/Zr2 = 150, 0.75/Zr2 = 75
        self.assertEqual(color(5, z=(0.1, 0)), (100, 150, 75))
        self.assertEqual(color(6, z=(0.1, 0)), (150, 75, 100))
        self.assertEqual(color(7, z=(0.1, 0)), (75, 100, 150))

    def test_pink_xor(self):
        self.assertEqual(color(8, n=0, z=(1, 0)), (13, 255, 26))

    def test_xor_stripes(self):
        self.assertEqual(color(9, n=10, z=(0, 0)), (20, 230, 225))

    def test_pink(self):
        self.assertEqual(color(10, n=10), (30, 10, 15))

    def test_green_squares(self):
        self.assertEqual(color(11, z=(2, 3)), (4, 36, 9))

    def test_binary(self):
        self.assertEqual(color(12), (255, 255, 255))

    def test_purple(self):
        self.assertEqual(color(13, n=10), (45, 21, 42))

    def test_random_is_seeded_by_n(self):
        self.assertEqual(color(14, n=7), color(14, n=7, z=(1, 1)))
        for channel in color(14, n=123):
            self.assertTrue(0 <= channel <= 255)

    def test_hue(self):
        self.assertEqual(color(15, n=0), (255, 0, 0))
        self.assertEqual(color(15, n=256), (255, 0, 0))

    def test_orange(self):
        self.assertEqual(color(16, n=10), (10, 10, 0))

    def test_trig(self):
        # sin(0) = 0, cos(0) = 1: (0, 254, 0)
        self.assertEqual(color(17, z=(0, 0)), (0, 254, 0))


class TestPostProcessing(unittest.TestCase):
    def test_multiplier(self):
        self.assertEqual(color(0, n=10, multiplier=2), (40, 20, 10))
        self.assertEqual(color(0, n=10, multiplier=-1), (0, 0, 0))

    def test_c_log(self):
        # ln 255 = 5.54
        self.assertEqual(color(12, c_log=1), (6, 6, 6))
        # ln 0 = -inf clamps to 0
        with np.errstate(all='ignore'):
            self.assertEqual(color(11, z=(0, 0), c_log=1), (0, 0, 0))

    def test_xor_stripes_applies_multiplier_once(self):
        # gold part (40, 20, 10); stripes 255 - 70 = 185
        self.assertEqual(color(9, n=10, z=(0, 0), multiplier=2), (40, 205, 195))

    def test_every_method_stays_in_range(self):
        values = [(0, 0), (0.5, -0.25), (3, 4), (1e300, 1e300), (np.inf, 0), (np.nan, np.nan)]
        with np.errstate(all='ignore'):
            for method in COLOR_METHODS:
                for smooth in (False, True):
                    for z in values:
                        rgb = color(method, n=17, z=z, smooth=smooth)
                        for channel in rgb:
                            self.assertIsInstance(channel, int)
                            self.assertTrue(0 <= channel <= 255, f"method {method}, z={z}")


class TestColoringEngine(unittest.TestCase):
    def test_only_escaped_points_are_colored(self):
        engine = ColoringEngine(ColorOptions(method=12))
        for outcome in (Bounded(), Skipped(), Periodic(distance=1, n=1)):
            self.assertEqual(engine.colorize(outcome), BACKGROUND)

        z = ComplexValue(0, 0)
        self.assertEqual(engine.colorize(FixedIterations(n=3, z=z, c=z)).to_tuple(),
                         (255, 255, 255))


if __name__ == '__main__':
    unittest.main()
