"""
Fractal type definitions and parameter management.

Every supported fractal is a named variant with its own recurrence. Each
recurrence is an isolated pure function taking the current orbit value Z,
the constant c, the iteration index n and the exponent, and returning the
next (Z, c) pair. ``RECURRENCES`` is the dispatch table between the two.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Callable, Dict, Tuple, Union
import logging

import numpy as np

from .math_functions import ComplexValue

logger = logging.getLogger(__name__)

PI_DIGITS = "3.14159265358979323846264338327950288"


class FractalVariant(Enum):
    """Available fractal variants."""

    MANDELBROT = 'mandelbrot'
    JULIA = 'julia'
    BURNING_SHIP = 'burning_ship'
    TRICORN = 'tricorn'
    NEURON = 'neuron'
    CLOUDS = 'clouds'
    OOPS = 'oops'
    STUPIDBROT = 'stupidbrot'
    UNTITLED1 = 'untitled1'
    DOTS = 'dots'
    MAGNET1 = 'magnet1'
    EXPERIMENT = 'experiment'
    MANDELBOX = 'mandelbox'
    NEGAMANDELBROT = 'negamandelbrot'
    COLLATZ = 'collatz'
    EXPERIMENT2 = 'experiment2'

    @property
    def label(self) -> str:
        """Display name, also used for output directories."""
        return _LABELS.get(self, self.value)


_LABELS = {
    FractalVariant.BURNING_SHIP: 'burning ship',
    FractalVariant.UNTITLED1: 'untitled 1',
    FractalVariant.MAGNET1: 'magnet 1',
}

DESCRIPTIONS = {
    FractalVariant.MANDELBROT: "z = z^e + c, z_0 = 0",
    FractalVariant.JULIA: "z = z^e + k, z_0 = point, k fixed",
    FractalVariant.BURNING_SHIP: "z = (|Re z| + i|Im z|)^e + c",
    FractalVariant.TRICORN: "z = conj(z)^e + c",
    FractalVariant.NEURON: "z = swap(z)^e + z",
    FractalVariant.CLOUDS: "z = swap(z)^e + c, then c = previous z; z_0 = 0",
    FractalVariant.OOPS: "z = swap(z)^e + c, then c = previous z; z_0 = point",
    FractalVariant.STUPIDBROT: "z = z^e + c on even steps, z^e - c on odd steps",
    FractalVariant.UNTITLED1: "z = z^z + z",
    FractalVariant.DOTS: "z = z^e / c",
    FractalVariant.MAGNET1: "z = ((z^2 + c - 1) / (2z + c - 2))^2",
    FractalVariant.EXPERIMENT: "z = z^e + 1/c",
    FractalVariant.MANDELBOX: "box fold, ball fold, then z = e*z + c",
    FractalVariant.NEGAMANDELBROT: "z = z^(1/e) - c",
    FractalVariant.COLLATZ: "z = (2 + 7z - (2 + 5z)cos(pi z)) / 4",
    FractalVariant.EXPERIMENT2: "z = z^e + c^(1/e)",
}

# Variants whose orbit starts at 0 instead of at the pixel's point
ZERO_SEEDED = frozenset({FractalVariant.MANDELBROT, FractalVariant.CLOUDS})

# Predefined interesting Julia set constants
JULIA_PRESETS = {
    'dragon': (-0.75, 0.1),
    'spiral': (-0.4, 0.6),
    'dendrite': (-0.235125, 0.827215),
    'lightning': (-0.8, 0.156),
    'rabbit': (-0.123, 0.745),
    'airplane': (-1.25, 0.0),
    'san_marco': (-0.75, 0.0),
    'siegel_disk': (-0.391, -0.587),
}


def parse_variant(name: Union[str, FractalVariant]) -> FractalVariant:
    """
    Look up a fractal variant by name.

    Both the identifier ('burning_ship') and the display name ('burning ship')
    are accepted.
    """
    if isinstance(name, FractalVariant):
        return name
    key = str(name).strip().lower()
    for variant in FractalVariant:
        if key in (variant.value, variant.label):
            return variant
    available = ', '.join(variant.value for variant in FractalVariant)
    raise ValueError(f"Unknown fractal type '{name}'. Available: {available}")


@dataclass(frozen=True)
class FractalParameters:
    """Immutable parameters shared by every stage of a render."""

    variant: FractalVariant = FractalVariant.MANDELBROT
    exponent: float = 2.0
    escape_limit: float = 4.0
    left: float = -2.0
    right: float = 2.0
    bottom: float = -2.0
    top: float = 2.0
    julia_real: float = -0.8
    julia_imag: float = 0.156
    single: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'variant', parse_variant(self.variant))
        self.validate()

    def validate(self) -> None:
        """Validate parameter values."""
        for name in ('exponent', 'escape_limit', 'left', 'right', 'bottom', 'top',
                     'julia_real', 'julia_imag'):
            if not isinstance(getattr(self, name), (int, float, np.floating, np.integer)):
                raise ValueError(f"{name} must be numeric")
        if self.left >= self.right or self.bottom >= self.top:
            raise ValueError("Invalid bounds: left/bottom must be less than right/top")

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Viewport as (left, right, bottom, top)."""
        return (self.left, self.right, self.bottom, self.top)

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        data = asdict(self)
        data['variant'] = self.variant.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FractalParameters':
        """Create parameters from dictionary."""
        return cls(**data)


Recurrence = Callable[[ComplexValue, ComplexValue, int, Any], Tuple[ComplexValue, ComplexValue]]


def mandelbrot(z, c, n, exponent):
    return z ** exponent + c, c


def julia(z, c, n, exponent):
    # c holds the fixed Julia constant
    return z ** exponent + c, c


def burning_ship(z, c, n, exponent):
    folded = ComplexValue(np.abs(z.real), np.abs(z.imag))
    return folded ** exponent + c, c


def tricorn(z, c, n, exponent):
    return z.conjugate() ** exponent + c, c


def neuron(z, c, n, exponent):
    return z.swap_xy() ** exponent + z, c


def clouds(z, c, n, exponent):
    """Shared by clouds and oops: the previous Z becomes the next c."""
    return z.swap_xy() ** exponent + c, z


def stupidbrot(z, c, n, exponent):
    z = z ** exponent
    if n % 2 == 0:
        return z + c, c
    return z - c, c


def untitled1(z, c, n, exponent):
    native = z.to_numpy()
    return ComplexValue.from_complex(native ** native) + z, c


def dots(z, c, n, exponent):
    return z ** exponent * c.reciprocal(), c


def magnet1(z, c, n, exponent):
    return ((z ** 2 + (c - 1)) / (z * 2 + (c - 2))) ** 2, c


def experiment(z, c, n, exponent):
    return z ** exponent + c.reciprocal(), c


def box_fold(component):
    """Reflect a component back into [-1, 1] at the box edges."""
    if component > 1:
        return 2 - component
    if component < -1:
        return -2 - component
    return component


def mandelbox(z, c, n, exponent):
    z = ComplexValue(box_fold(z.real), box_fold(z.imag))
    modulus = z.abs()
    if modulus < 0.5:
        z = z / 0.25
    elif modulus < 1:
        z = z / z.norm()
    return exponent * z + c, c


def negamandelbrot(z, c, n, exponent):
    return z ** (1 / exponent) - c, c


def collatz(z, c, n, exponent):
    pi = z.real.dtype.type(PI_DIGITS)
    return (2 + 7 * z - (2 + 5 * z) * (z * pi).cos()) / 4, c


def experiment2(z, c, n, exponent):
    return z ** exponent + c ** (1 / exponent), c


RECURRENCES: Dict[FractalVariant, Recurrence] = {
    FractalVariant.MANDELBROT: mandelbrot,
    FractalVariant.JULIA: julia,
    FractalVariant.BURNING_SHIP: burning_ship,
    FractalVariant.TRICORN: tricorn,
    FractalVariant.NEURON: neuron,
    FractalVariant.CLOUDS: clouds,
    FractalVariant.OOPS: clouds,
    FractalVariant.STUPIDBROT: stupidbrot,
    FractalVariant.UNTITLED1: untitled1,
    FractalVariant.DOTS: dots,
    FractalVariant.MAGNET1: magnet1,
    FractalVariant.EXPERIMENT: experiment,
    FractalVariant.MANDELBOX: mandelbox,
    FractalVariant.NEGAMANDELBROT: negamandelbrot,
    FractalVariant.COLLATZ: collatz,
    FractalVariant.EXPERIMENT2: experiment2,
}


class FractalRecurrence:
    """Recurrence bound to one set of fractal parameters."""

    def __init__(self, parameters: FractalParameters, dtype: type = np.longdouble):
        """
        Initialize the recurrence.

        Args:
            parameters: Fractal parameters
            dtype: Floating type the orbit is computed in
        """
        self.parameters = parameters
        self.dtype = dtype
        self.exponent = dtype(parameters.exponent)
        self._formula = RECURRENCES[parameters.variant]

    def initial_state(self, point: ComplexValue) -> Tuple[ComplexValue, ComplexValue]:
        """Get the (Z, c) pair an orbit starts from for a pixel's point."""
        variant = self.parameters.variant
        if variant in ZERO_SEEDED:
            z = ComplexValue(self.dtype(0), self.dtype(0))
        else:
            z = point

        if variant is FractalVariant.JULIA:
            c = ComplexValue(self.dtype(self.parameters.julia_real),
                             self.dtype(self.parameters.julia_imag))
        else:
            c = point
        return z, c

    def __call__(self, z: ComplexValue, c: ComplexValue, n: int) -> Tuple[ComplexValue, ComplexValue]:
        return self._formula(z, c, n, self.exponent)


def list_fractals() -> Dict[str, str]:
    """Get a dictionary of available fractals and their descriptions."""
    return {variant.label: DESCRIPTIONS[variant] for variant in FractalVariant}
