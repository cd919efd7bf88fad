"""
Coloring methods for escape-time fractal rendering.

Each method is a pure function from a ``ColorationContext`` to raw, unclamped
(red, green, blue) channel values. ``COLOR_METHODS`` maps method indices to
them. ``finish_channels`` then applies the shared post-processing: optional
logarithm passes, the color multiplier, clamping to [0, 255] and rounding.
"""

import colorsys
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Tuple
import logging

import numpy as np

from ..core.math_functions import ComplexValue
from ..core.orbit import PixelOutcome

logger = logging.getLogger(__name__)

Channels = Tuple[Any, Any, Any]

INF = np.longdouble(np.inf)
UINT64_MAX = 2 ** 64 - 1
UINT64_LIMIT = 2.0 ** 64
INT128_MAX = 2 ** 127 - 1


@dataclass(frozen=True)
class ColorRGB:
    """8-bit RGB color representation."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        """Validate RGB values."""
        for component in [self.r, self.g, self.b]:
            if not 0 <= component <= 255:
                raise ValueError("RGB components must be between 0 and 255")

    def to_tuple(self) -> Tuple[int, int, int]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)


BACKGROUND = ColorRGB(0, 0, 0)


@dataclass(frozen=True)
class ColorOptions:
    """Global coloring knobs."""

    method: int = 0
    multiplier: float = 1.0
    c_log: int = 0
    smooth: bool = False
    disable_fancy: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate coloring options."""
        if isinstance(self.method, bool) or not isinstance(self.method, (int, np.integer)):
            raise ValueError("method must be an integer")
        if self.method not in COLOR_METHODS:
            available = ', '.join(str(index) for index in COLOR_METHODS)
            raise ValueError(f"Unknown color method '{self.method}'. Available: {available}")
        if not isinstance(self.multiplier, (int, float, np.floating)):
            raise ValueError("multiplier must be numeric")
        if self.c_log < 0:
            raise ValueError("c_log must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ColorOptions':
        """Create options from dictionary."""
        return cls(**data)


@dataclass(frozen=True)
class ColorationContext:
    """Everything a color formula may look at for one pixel."""

    z: ComplexValue
    c: ComplexValue
    n: int
    options: ColorOptions
    exponent: Any = 2.0
    escape_limit: Any = 4.0

    @property
    def zr2(self):
        return self.z.real * self.z.real

    @property
    def zi2(self):
        return self.z.imag * self.z.imag


def round_half_away(value):
    """Round to the nearest integer, halves away from zero (C ``round``)."""
    return np.copysign(np.floor(np.abs(value) + 0.5), value)


def _to_uint64(value) -> int:
    """Round and saturate to the unsigned 64-bit range (nan becomes 0)."""
    if np.isnan(value) or value <= 0:
        return 0
    if value >= UINT64_LIMIT:
        return UINT64_MAX
    return min(int(round_half_away(value)), UINT64_MAX)


def _as_channel(value):
    if isinstance(value, np.floating):
        return value
    if isinstance(value, int) and not -2 ** 63 < value < 2 ** 63:
        return np.longdouble(float(value))
    return np.longdouble(value)


def fractional_escape(ctx: ColorationContext):
    """Continuous escape count n + (ln ln L - ln ln |Z|) / ln e."""
    # from http://www.hpdz.net/TechInfo/Colorizing.htm#FractionalCounts
    dx = ((np.log(np.log(ctx.escape_limit)) - np.log(np.log(ctx.z.abs())))
          / np.log(ctx.exponent))
    return ctx.n + dx


def escape_time_gold(ctx: ColorationContext) -> Channels:
    if ctx.options.smooth:
        nprime = fractional_escape(ctx)
        return (round_half_away(nprime * 2), round_half_away(nprime), round_half_away(nprime / 2))
    return (ctx.n << 1, ctx.n, ctx.n >> 1)


def escape_time_green(ctx: ColorationContext) -> Channels:
    if not ctx.options.disable_fancy:
        red, blue = ctx.zr2, ctx.zi2
    else:
        red, blue = 0, 0

    if ctx.options.smooth:
        green = round_half_away(fractional_escape(ctx))
    else:
        green = ctx.n

    # overflow spills into blue, then into red
    if green > 255:
        difference = green - 255
        green = 255
        blue = difference * 2
        if blue > 255:
            red = blue * 2
            blue = 200
            green = 200
    return (red, green, blue)


def laser_blue(ctx: ColorationContext) -> Channels:
    zr2, zi2 = ctx.zr2, ctx.zi2
    blue = INF if zi2 == 0 else zr2 / zi2
    return (zr2 * zi2, zr2 + zi2, blue)


def laser_green(ctx: ColorationContext) -> Channels:
    zr2, zi2 = ctx.zr2, ctx.zi2
    if zr2 == 0:
        red = green = INF
    else:
        red = (zr2 * zr2 * zr2 + 1) / zr2
        green = zi2 / zr2
    return (red, green, zi2 * zi2)


def ben(ctx: ColorationContext) -> Channels:
    value = ctx.z.real * np.sin(ctx.z.imag + ctx.zi2) - ctx.zr2
    return (value, value, value)


def _glow(zr2, numerator, threshold):
    if zr2 <= threshold:
        return UINT64_MAX
    return round_half_away(numerator / zr2)


def glow_green(ctx: ColorationContext) -> Channels:
    zr2 = ctx.zr2
    return (_glow(zr2, 1, 1 / UINT64_MAX),
            _glow(zr2, 1.5, 0.00588),
            _glow(zr2, 0.75, 0.00294))


def glow_pink(ctx: ColorationContext) -> Channels:
    zr2 = ctx.zr2
    if zr2 == 0:
        return (UINT64_MAX, UINT64_MAX, UINT64_MAX)
    return (round_half_away(1.5 / zr2), round_half_away(0.75 / zr2), round_half_away(1 / zr2))


def glow_blue(ctx: ColorationContext) -> Channels:
    zr2 = ctx.zr2
    return (_glow(zr2, 0.75, 0.00294),
            _glow(zr2, 1, 0.00392),
            _glow(zr2, 1.5, 0.00588))


def pink_xor(ctx: ColorationContext) -> Channels:
    zr2, zi2, n = ctx.zr2, ctx.zi2, ctx.n
    red = INF if zr2 == 0 else zi2 / zr2 + (n << 1)
    green = INF if zi2 == 0 else zr2 / zi2 + n

    limit = float(INT128_MAX // 255)
    if zi2 <= limit and zr2 <= limit:
        blue = int(round_half_away(zi2 * 255)) ^ int(round_half_away(zr2 * 255))
    else:
        # also taken for nan
        blue = INT128_MAX
    blue = _as_channel(blue)

    red = red + blue * 0.5
    green = green + blue * 0.2
    return (red * 0.1, green * 0.1, blue * 0.1)


def xor_stripes(ctx: ColorationContext) -> Channels:
    """
    XOR patterns and stripes layered over the gold escape-time pixel.

    The finished method 0 pixel (post-processing included) is composed in,
    and the multiplier is applied here rather than after the formula.
    """
    gold = finish_channels(escape_time_gold(ctx), ctx.options)
    red_fractal, green_fractal, blue_fractal = gold.to_tuple()
    zr2, zi2 = ctx.zr2, ctx.zi2

    red = _to_uint64(zr2 * 8) ^ _to_uint64(zi2 * 8)
    green = _to_uint64(zr2 * 2) ^ _to_uint64(zi2 * 2)
    blue = _to_uint64(zr2 * 4) ^ _to_uint64(zi2 * 4)

    # darken the colors a bit
    red *= 0.7
    green *= 0.7
    blue *= 0.7

    blue_stripe = 255 if zr2 == 0 else _to_uint64(zi2 / zr2)
    green_stripe = 255 if zi2 == 0 else _to_uint64(zr2 / zi2)
    green_stripe = (green_stripe + blue_stripe) & UINT64_MAX

    multiplier = ctx.options.multiplier
    red = min(red * multiplier, 255)
    green = min(green * multiplier, 255)
    blue = min(blue * multiplier, 255)
    green_stripe = min(green_stripe, 255)
    blue_stripe = min(blue_stripe, 255)

    red -= min(blue_stripe, red)
    red -= min(green_stripe, red)
    green -= min(blue_stripe, green)
    green -= min(green_stripe, green)
    blue -= min(blue_stripe, blue)
    blue -= min(green_stripe, blue)

    sub = red_fractal + green_fractal + blue_fractal
    red -= min(sub, red)
    green_stripe -= min(sub, green_stripe)
    blue_stripe -= min(sub, blue_stripe)

    return (red + red_fractal,
            green + green_stripe + green_fractal,
            blue + blue_stripe + blue_fractal)


def pink(ctx: ColorationContext) -> Channels:
    n = ctx.n
    return ((n << 1) ^ n, n, (n >> 1) ^ n)


def green_squares(ctx: ColorationContext) -> Channels:
    zr2, zi2 = ctx.zr2, ctx.zi2
    return (zr2, zr2 * zi2, zi2)


def binary(ctx: ColorationContext) -> Channels:
    return (255, 255, 255)


def purple(ctx: ColorationContext) -> Channels:
    n = ctx.n
    return ((n << 2) + 5, (n << 1) + 1, (n << 2) + 2)


def random_by_iteration(ctx: ColorationContext) -> Channels:
    """Random color seeded by the iteration count.

    Pixels with the same n always get the same color; different n give
    unrelated colors.
    """
    red, green, blue = np.random.default_rng(ctx.n).integers(0, 256, size=3)
    return (int(red), int(green), int(blue))


def hue(ctx: ColorationContext) -> Channels:
    red, green, blue = colorsys.hsv_to_rgb((ctx.n % 256) / 256.0, 1.0, 1.0)
    return (int(red * 255), int(green * 255), int(blue * 255))


def orange(ctx: ColorationContext) -> Channels:
    n = ctx.n
    return (n * n * 0.1, n, ctx.zr2 * ctx.zi2)


def trig(ctx: ColorationContext) -> Channels:
    r = 2 * np.sin(ctx.zr2)
    g = 2 * np.cos(ctx.zi2)
    return (r * 127, g * 127, r * g * 127)


@dataclass(frozen=True)
class ColorMethod:
    """A numbered coloring method."""

    index: int
    description: str
    formula: Callable[[ColorationContext], Channels]
    applies_multiplier: bool = True


COLOR_METHODS: Dict[int, ColorMethod] = {method.index: method for method in (
    ColorMethod(0, "gold (escape time)", escape_time_gold),
    ColorMethod(1, "green (escape time) with red/blue", escape_time_green),
    ColorMethod(2, "green/orange with blue lasers", laser_blue),
    ColorMethod(3, "red/blue with green lasers", laser_green),
    ColorMethod(4, "white and black", ben),
    ColorMethod(5, "glowing (green)", glow_green),
    ColorMethod(6, "glowing (pink)", glow_pink),
    ColorMethod(7, "glowing (blue)", glow_blue),
    ColorMethod(8, "pinkish XOR (might need a multiplier)", pink_xor),
    ColorMethod(9, "XOR stripes over gold", xor_stripes, applies_multiplier=False),
    ColorMethod(10, "pink XOR (escape time)", pink),
    ColorMethod(11, "green squares", green_squares),
    ColorMethod(12, "black (set) and white (background)", binary),
    ColorMethod(13, "purple (escape time)", purple),
    ColorMethod(14, "random (escape time)", random_by_iteration),
    ColorMethod(15, "hue (escape time)", hue),
    ColorMethod(16, "oversaturated orange/yellow (escape time) with blue", orange),
    ColorMethod(17, "sine/cosine of squared components", trig),
)}


def get_color_method(index: int) -> ColorMethod:
    """Get coloring method by index."""
    if index not in COLOR_METHODS:
        available = ', '.join(str(i) for i in COLOR_METHODS)
        raise ValueError(f"Unknown color method '{index}'. Available: {available}")
    return COLOR_METHODS[index]


def _clamp_channel(value) -> int:
    # nan fails both comparisons; treat it like a negative value
    if value > 255:
        return 255
    if not value >= 0:
        return 0
    return int(round_half_away(value))


def finish_channels(channels: Channels, options: ColorOptions,
                    apply_multiplier: bool = True) -> ColorRGB:
    """
    Turn raw channel values into an 8-bit color.

    Applies ``options.c_log`` natural-log passes (log of 0 is -inf and of a
    negative number nan; both propagate), then the multiplier, then clamps
    every channel to [0, 255] and rounds it.
    """
    red, green, blue = (_as_channel(value) for value in channels)

    for _ in range(options.c_log):
        red, green, blue = np.log(red), np.log(green), np.log(blue)

    if apply_multiplier:
        red = red * options.multiplier
        green = green * options.multiplier
        blue = blue * options.multiplier

    return ColorRGB(_clamp_channel(red), _clamp_channel(green), _clamp_channel(blue))


class ColoringEngine:
    """Maps pixel outcomes to colors with one configured method."""

    def __init__(self, options: ColorOptions, exponent: Any = 2.0, escape_limit: Any = 4.0):
        """
        Initialize coloring engine.

        Args:
            options: Coloring options (method, multiplier, ...)
            exponent: Fractal exponent, used by smoothing
            escape_limit: Squared escape limit, used by smoothing
        """
        self.options = options
        self.method = get_color_method(options.method)
        self.exponent = exponent
        self.escape_limit = escape_limit

    def colorize(self, outcome: PixelOutcome) -> ColorRGB:
        """
        Color one pixel.

        Only escaped (and single-mode) outcomes are colored; every other
        outcome is background.
        """
        if not outcome.colored:
            return BACKGROUND
        ctx = ColorationContext(z=outcome.z, c=outcome.c, n=outcome.n, options=self.options,
                                exponent=self.exponent, escape_limit=self.escape_limit)
        return self.colorize_context(ctx)

    def colorize_context(self, ctx: ColorationContext) -> ColorRGB:
        """Run the configured formula and post-processing on a context."""
        with np.errstate(all='ignore'):
            channels = self.method.formula(ctx)
            return finish_channels(channels, self.options, self.method.applies_multiplier)


def list_color_methods() -> List[Tuple[int, str]]:
    """Get list of available coloring methods."""
    return [(index, method.description) for index, method in COLOR_METHODS.items()]
