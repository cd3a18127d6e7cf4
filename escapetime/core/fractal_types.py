"""
Fractal type definitions and parameter management.

This module defines the escape-time recurrences as small variant classes
registered by name, together with the validated fractal configuration that
selects one of them.
"""

import numpy as np
from typing import Dict, Any, Tuple, List
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
import logging

from .precision import ComplexValue, PI

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised for an unknown fractal variant, coloring method or bad setting."""


def is_integer(value) -> bool:
    """True for Python and numpy integers, excluding bools."""
    return not isinstance(value, bool) and isinstance(value, (int, np.integer))


@dataclass(frozen=True)
class FractalConfig:
    """Parameters selecting and shaping the recurrence."""

    fractal_type: str = 'mandelbrot'
    exponent: float = 2.0
    escape_limit: float = 4.0  # compared against the squared norm
    single: bool = False
    lbound: float = -2.0
    rbound: float = 2.0
    bbound: float = -2.0
    ubound: float = 2.0
    julia_a: float = -0.8
    julia_b: float = 0.156

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate parameter values."""
        # Normalises aliases such as "burning ship" to the registry key
        object.__setattr__(self, 'fractal_type', FractalRegistry.resolve(self.fractal_type))
        if not self.lbound < self.rbound:
            raise ConfigurationError(
                f"Invalid bounds: lbound ({self.lbound}) must be less than rbound ({self.rbound})")
        if not self.bbound < self.ubound:
            raise ConfigurationError(
                f"Invalid bounds: bbound ({self.bbound}) must be less than ubound ({self.ubound})")

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Plane bounds as (left, right, bottom, top)."""
        return (self.lbound, self.rbound, self.bbound, self.ubound)

    @property
    def julia_constant(self) -> ComplexValue:
        return ComplexValue(self.julia_a, self.julia_b)

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FractalConfig':
        """Create parameters from dictionary."""
        return cls(**data)


class FractalVariant(ABC):
    """Abstract base class for one escape-time recurrence."""

    name: str = ''
    display_name: str = ''
    formula: str = ''
    # Variants that start iterating from zero instead of the pixel point
    starts_at_zero: bool = False

    @abstractmethod
    def step(self, z: ComplexValue, c: ComplexValue, n: int,
             exponent) -> Tuple[ComplexValue, ComplexValue]:
        """
        Compute one iteration.

        Args:
            z: Current iterate
            c: Per-pixel constant
            n: Index of the iteration being computed
            exponent: Configured exponent

        Returns:
            Tuple of (new z, constant to use for the next step)
        """
        pass

    def get_description(self) -> str:
        """Get a description of this fractal type."""
        return f"{self.display_name}: z = {self.formula}"


class Mandelbrot(FractalVariant):
    name = 'mandelbrot'
    display_name = 'mandelbrot'
    formula = 'z^e + c'
    starts_at_zero = True

    def step(self, z, c, n, exponent):
        return (z ** exponent) + c, c


class Julia(Mandelbrot):
    name = 'julia'
    display_name = 'julia'
    formula = 'z^e + k (k is the Julia constant)'
    starts_at_zero = False


class BurningShip(FractalVariant):
    name = 'burning_ship'
    display_name = 'burning ship'
    formula = '(|Re z| + i|Im z|)^e + c'

    def step(self, z, c, n, exponent):
        folded = ComplexValue(abs(z.real), abs(z.imag))
        return (folded ** exponent) + c, c


class Tricorn(FractalVariant):
    name = 'tricorn'
    display_name = 'tricorn'
    formula = 'conj(z)^e + c'

    def step(self, z, c, n, exponent):
        return (z.conjugate() ** exponent) + c, c


class Neuron(FractalVariant):
    name = 'neuron'
    display_name = 'neuron'
    formula = 'swap(z)^e + z'

    def step(self, z, c, n, exponent):
        # higher exponents come out slightly rotated
        return (z.swap_xy() ** exponent) + z, c


class Clouds(FractalVariant):
    """Feeds the previous iterate back in as the constant."""

    name = 'clouds'
    display_name = 'clouds'
    formula = "swap(z)^e + c, then c = previous z"
    starts_at_zero = True

    def step(self, z, c, n, exponent):
        return (z.swap_xy() ** exponent) + c, z


class Oops(Clouds):
    name = 'oops'
    display_name = 'oops'
    starts_at_zero = False


class Stupidbrot(FractalVariant):
    name = 'stupidbrot'
    display_name = 'stupidbrot'
    formula = 'z^e + c on even steps, z^e - c on odd steps'

    def step(self, z, c, n, exponent):
        z = z ** exponent
        if n % 2 == 0:
            return z + c, c
        return z - c, c


class Untitled1(FractalVariant):
    name = 'untitled1'
    display_name = 'untitled 1'
    formula = 'z^z + z'

    def step(self, z, c, n, exponent):
        return z.complex_pow(z) + z, c


class Dots(FractalVariant):
    name = 'dots'
    display_name = 'dots'
    formula = 'z^e / c'

    def step(self, z, c, n, exponent):
        return (z ** exponent) * c.reciprocal(), c


class Magnet1(FractalVariant):
    name = 'magnet1'
    display_name = 'magnet 1'
    formula = '((z^2 + c - 1) / (2z + c - 2))^2'

    def step(self, z, c, n, exponent):
        return (((z ** 2) + (c - 1)) / (z * 2 + (c - 2))) ** 2, c


class Experiment(FractalVariant):
    name = 'experiment'
    display_name = 'experiment'
    formula = 'z^e + 1/c'

    def step(self, z, c, n, exponent):
        return (z ** exponent) + c.reciprocal(), c


class Mandelbox(FractalVariant):
    """Box fold followed by a ball fold, scaled by the exponent."""

    name = 'mandelbox'
    display_name = 'mandelbox'
    formula = 'e * fold(z) + c'

    @staticmethod
    def box_fold(component):
        if component > 1:
            return 2 - component
        if component < -1:
            return -2 - component
        return component

    def step(self, z, c, n, exponent):
        z = ComplexValue(self.box_fold(z.real), self.box_fold(z.imag))

        if z.magnitude() < 0.5:
            z = z / 0.25  # 0.5 * 0.5
        elif z.magnitude() < 1:
            z = z / z.squared_norm()

        return exponent * z + c, c


class Negamandelbrot(FractalVariant):
    name = 'negamandelbrot'
    display_name = 'negamandelbrot'
    formula = 'z^(1/e) - c'

    def step(self, z, c, n, exponent):
        return (z ** (1 / exponent)) - c, c


class Collatz(FractalVariant):
    name = 'collatz'
    display_name = 'collatz'
    formula = '(2 + 7z - (2 + 5z) cos(pi z)) / 4'

    def step(self, z, c, n, exponent):
        return (2 + 7 * z - (2 + 5 * z) * (PI * z).cos()) / 4, c


class Experiment2(FractalVariant):
    name = 'experiment2'
    display_name = 'experiment2'
    formula = 'z^e + c^(1/e)'

    def step(self, z, c, n, exponent):
        return (z ** exponent) + (c ** (1 / exponent)), c


class FractalRegistry:
    """Registry for the available fractal variants."""

    _fractals: Dict[str, type] = {
        variant.name: variant for variant in (
            Mandelbrot, Julia, BurningShip, Tricorn, Neuron, Clouds, Oops,
            Stupidbrot, Untitled1, Dots, Magnet1, Experiment, Mandelbox,
            Negamandelbrot, Collatz, Experiment2,
        )
    }

    @classmethod
    def resolve(cls, name: str) -> str:
        """
        Map a variant name or display name to its registry key.

        Args:
            name: Fractal identifier, e.g. ``burning_ship`` or ``burning ship``

        Returns:
            Registry key
        """
        if not isinstance(name, str):
            raise ConfigurationError(f"Fractal type must be a string, got {name!r}")
        key = name.strip().lower()
        if key in cls._fractals:
            return key
        for fractal_name, fractal_class in cls._fractals.items():
            if fractal_class.display_name == key:
                return fractal_name
        available = ', '.join(cls._fractals.keys())
        raise ConfigurationError(f"Unknown fractal type '{name}'. Available: {available}")

    @classmethod
    def get(cls, name: str) -> type:
        """Get a fractal variant class by name."""
        return cls._fractals[cls.resolve(name)]

    @classmethod
    def create(cls, name: str) -> FractalVariant:
        """Create a variant instance by name."""
        return cls.get(name)()

    @classmethod
    def names(cls) -> List[str]:
        return list(cls._fractals.keys())

    @classmethod
    def list_fractals(cls) -> Dict[str, str]:
        """Get a dictionary of available fractals and their descriptions."""
        return {name: fractal_class().get_description()
                for name, fractal_class in cls._fractals.items()}
