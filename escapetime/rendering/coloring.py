"""
Escape-time coloring algorithms.

This module maps the terminal state of an orbit (final z, constant and
iteration count) to an 8-bit RGB color. Each of the eighteen numbered
methods computes unbounded channel values; the engine then applies the
shared post-processing (iterated logarithms, color multiplier, clamping
and rounding).
"""

import colorsys
import numpy as np
from typing import Dict, Tuple, List, Any
from dataclasses import dataclass, asdict
from abc import ABC, abstractmethod
import logging

from ..core.precision import ComplexValue, EXTENDED, INF
from ..core.fractal_types import FractalConfig, ConfigurationError, is_integer

logger = logging.getLogger(__name__)

UINT64_MAX = 2 ** 64 - 1
INT128_MAX = 2 ** 127 - 1

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class ColorConfig:
    """Configuration for pixel coloring."""

    method: int = 0
    smooth: bool = False
    disable_fancy: bool = False
    multiplier: float = 1.0
    c_log: int = 0

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration parameters."""
        if not is_integer(self.method):
            raise ConfigurationError(f"Coloring method must be an integer, got {self.method!r}")
        if self.method not in COLORING_METHODS:
            available = ', '.join(str(m) for m in sorted(COLORING_METHODS))
            raise ConfigurationError(f"Unknown coloring method {self.method}. Available: {available}")
        if not is_integer(self.c_log):
            raise ConfigurationError(f"c_log must be an integer, got {self.c_log!r}")
        if self.c_log < 0:
            raise ConfigurationError("c_log must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ColorConfig':
        return cls(**data)


def round_half_away(value):
    """Round to the nearest integer, halves away from zero."""
    return np.copysign(np.floor(np.abs(value) + EXTENDED('0.5')), value)


def saturating_uint(value, limit: int = UINT64_MAX) -> int:
    """
    Convert a non-negative real to an integer, saturating at ``limit``.

    NaN and negative values become 0.
    """
    if np.isnan(value) or value <= 0:
        return 0
    if value >= limit:
        return limit
    return int(value)


def clamp_channel(value) -> int:
    """Force a channel into [0, 255] and round it; NaN maps to 0."""
    if np.isnan(value) or value < 0:
        return 0
    if value > 255:
        return 255
    return int(round_half_away(EXTENDED(value)))


class ColoringAlgorithm(ABC):
    """Abstract base class for numbered coloring methods."""

    method_id: int = -1
    description: str = ''
    # Method 9 scales by the multiplier itself
    applies_multiplier: bool = True

    @abstractmethod
    def compute(self, engine: 'ColoringEngine', z: ComplexValue, c: ComplexValue,
                n: int) -> Tuple[Any, Any, Any]:
        """
        Compute raw, unclamped channel values.

        Args:
            engine: Engine supplying the configuration and smoothing
            z: Terminal iterate
            c: Terminal constant
            n: Iteration count

        Returns:
            Tuple of (red, green, blue)
        """
        pass


class GoldEscapeTime(ColoringAlgorithm):
    method_id = 0
    description = 'gold (escape time)'

    def compute(self, engine, z, c, n):
        if engine.color_config.smooth:
            nprime = n + engine.smooth_offset(z)
            return (round_half_away(nprime * 2), round_half_away(nprime),
                    round_half_away(nprime / 2))
        return n << 1, n, n >> 1


class GreenEscapeTime(ColoringAlgorithm):
    method_id = 1
    description = 'green (escape time) with red/blue components'

    def compute(self, engine, z, c, n):
        if engine.color_config.disable_fancy:
            red = blue = 0
        else:
            red = z.real * z.real
            blue = z.imag * z.imag

        if engine.color_config.smooth:
            green = round_half_away(n + engine.smooth_offset(z))
        else:
            green = n

        if green > 255:
            blue = (green - 255) * 2
            green = 255
            if blue > 255:
                red = blue * 2
                blue = 200
                green = 200
        return red, green, blue


class LaserOne(ColoringAlgorithm):
    method_id = 2
    description = 'green/orange with blue lasers'

    def compute(self, engine, z, c, n):
        zr2 = z.real * z.real
        zi2 = z.imag * z.imag
        blue = INF if zi2 == 0 else zr2 / zi2
        return zr2 * zi2, zr2 + zi2, blue


class LaserTwo(ColoringAlgorithm):
    method_id = 3
    description = 'red/blue with green lasers'

    def compute(self, engine, z, c, n):
        zr2 = z.real * z.real
        zi2 = z.imag * z.imag
        if zr2 == 0:
            red = green = INF
        else:
            red = (zr2 * zr2 * zr2 + 1) / zr2
            green = zi2 / zr2
        return red, green, zi2 * zi2


class Ben(ColoringAlgorithm):
    method_id = 4
    description = 'black and white waves'

    def compute(self, engine, z, c, n):
        zr2 = z.real * z.real
        zi2 = z.imag * z.imag
        value = z.real * np.sin(z.imag + zi2) - zr2
        return value, value, value


class Glow(ColoringAlgorithm):
    """Reciprocal glow around the imaginary axis.

    Each channel is ``weight / Re(z)^2`` rounded, or the saturation value
    when ``Re(z)^2`` is at or below the channel's threshold.
    """

    # (weight, threshold) per channel
    channels: Tuple[Tuple[str, str], ...] = ()

    def compute(self, engine, z, c, n):
        zr2 = z.real * z.real
        result = []
        for weight, threshold in self.channels:
            if zr2 <= EXTENDED(threshold):
                result.append(UINT64_MAX)
            else:
                result.append(round_half_away(EXTENDED(weight) / zr2))
        return tuple(result)


class GlowGreen(Glow):
    method_id = 5
    description = 'glowing (green)'
    channels = (('1', 1 / UINT64_MAX), ('1.5', '0.00588'), ('0.75', '0.00294'))


class GlowPink(Glow):
    method_id = 6
    description = 'glowing (pink)'
    channels = (('1.5', '0'), ('0.75', '0'), ('1', '0'))


class GlowBlue(Glow):
    method_id = 7
    description = 'glowing (blue)'
    channels = (('0.75', '0.00294'), ('1', '0.00392'), ('1.5', '0.00588'))


class PinkXor(ColoringAlgorithm):
    method_id = 8
    description = 'pinkish XOR (might need a multiplier)'

    def compute(self, engine, z, c, n):
        zr2 = z.real * z.real
        zi2 = z.imag * z.imag
        red = INF if zr2 == 0 else zi2 / zr2 + (n << 1)
        green = INF if zi2 == 0 else zr2 / zi2 + n

        limit = EXTENDED(INT128_MAX) / 255
        if not (zi2 <= limit and zr2 <= limit):
            # too large (or NaN) for a 128-bit XOR
            blue = INT128_MAX
        else:
            blue = int(round_half_away(zi2 * 255)) ^ int(round_half_away(zr2 * 255))
        blue = EXTENDED(blue)

        red = red + blue * EXTENDED('0.5')
        green = green + blue * EXTENDED('0.2')
        return red * EXTENDED('0.1'), green * EXTENDED('0.1'), blue * EXTENDED('0.1')


class XorStripes(ColoringAlgorithm):
    """XOR texture with stripes, layered over the gold escape-time color."""

    method_id = 9
    description = 'XOR texture with lots of stripes'
    applies_multiplier = False

    def compute(self, engine, z, c, n):
        red_fractal, green_fractal, blue_fractal = engine.colorize(z, c, n, method=0)

        zr2 = z.real * z.real
        zi2 = z.imag * z.imag

        def xor_term(scale):
            return (saturating_uint(round_half_away(zr2 * scale))
                    ^ saturating_uint(round_half_away(zi2 * scale)))

        # darkened a bit
        darken = EXTENDED('0.7')
        red = xor_term(8) * darken
        green = xor_term(2) * darken
        blue = xor_term(4) * darken

        blue_stripe = 255 if zr2 == 0 else saturating_uint(round_half_away(zi2 / zr2))
        green_stripe = 255 if zi2 == 0 else saturating_uint(round_half_away(zr2 / zi2))
        green_stripe += blue_stripe

        multiplier = EXTENDED(engine.color_config.multiplier)
        red = min(red * multiplier, 255)
        green = min(green * multiplier, 255)
        blue = min(blue * multiplier, 255)
        green_stripe = min(green_stripe, 255)
        blue_stripe = min(blue_stripe, 255)

        red -= red if blue_stripe > red else blue_stripe
        red -= red if green_stripe > red else green_stripe
        green -= green if blue_stripe > green else blue_stripe
        green -= green if green_stripe > green else green_stripe
        blue -= blue if blue_stripe > blue else blue_stripe
        blue -= blue if green_stripe > blue else green_stripe

        sub = red_fractal + green_fractal + blue_fractal
        red -= red if sub > red else sub
        green_stripe -= green_stripe if sub > green_stripe else sub
        blue_stripe -= blue_stripe if sub > blue_stripe else sub

        red += red_fractal
        green += green_stripe + green_fractal
        blue += blue_stripe + blue_fractal
        return red, green, blue


class UglyPink(ColoringAlgorithm):
    method_id = 10
    description = 'pink (escape time XOR)'

    def compute(self, engine, z, c, n):
        return (n << 1) ^ n, n, (n >> 1) ^ n


class UglyGreen(ColoringAlgorithm):
    method_id = 11
    description = 'green components'

    def compute(self, engine, z, c, n):
        zr2 = z.real * z.real
        zi2 = z.imag * z.imag
        return zr2, zr2 * zi2, zi2


class Binary(ColoringAlgorithm):
    method_id = 12
    description = 'black (set) and white (background)'

    def compute(self, engine, z, c, n):
        return 255, 255, 255


class PurpleEscapeTime(ColoringAlgorithm):
    method_id = 13
    description = 'purple (escape time)'

    def compute(self, engine, z, c, n):
        return (n << 2) + 5, (n << 1) + 1, (n << 2) + 2


class RandomEscapeTime(ColoringAlgorithm):
    """Pseudo-random color per iteration count, seeded with the count."""

    method_id = 14
    description = 'random (escape time)'

    def compute(self, engine, z, c, n):
        rng = np.random.default_rng(n)
        red, green, blue = (int(v) for v in rng.integers(0, 256, size=3))
        return red, green, blue


class HueEscapeTime(ColoringAlgorithm):
    method_id = 15
    description = 'hue (escape time)'

    def compute(self, engine, z, c, n):
        hue = (n % 256) / 256.0
        return tuple(int(channel * 255) for channel in colorsys.hsv_to_rgb(hue, 1.0, 1.0))


class OrangeEscapeTime(ColoringAlgorithm):
    method_id = 16
    description = 'oversaturated orange/yellow (escape time) with blue'

    def compute(self, engine, z, c, n):
        zr2 = z.real * z.real
        zi2 = z.imag * z.imag
        return EXTENDED(n) * n * EXTENDED('0.1'), n, zr2 * zi2


class Sine(ColoringAlgorithm):
    method_id = 17
    description = 'sine/cosine of the squared components'

    def compute(self, engine, z, c, n):
        r = 2 * np.sin(z.real * z.real)
        g = 2 * np.cos(z.imag * z.imag)
        b = r * g
        return r * 127, g * 127, b * 127


COLORING_METHODS: Dict[int, ColoringAlgorithm] = {
    algorithm.method_id: algorithm for algorithm in (
        GoldEscapeTime(), GreenEscapeTime(), LaserOne(), LaserTwo(), Ben(),
        GlowGreen(), GlowPink(), GlowBlue(), PinkXor(), XorStripes(),
        UglyPink(), UglyGreen(), Binary(), PurpleEscapeTime(),
        RandomEscapeTime(), HueEscapeTime(), OrangeEscapeTime(), Sine(),
    )
}


class ColoringEngine:
    """Main engine for applying coloring methods to finished orbits."""

    def __init__(self, color_config: ColorConfig, fractal_config: FractalConfig):
        """
        Initialize coloring engine.

        Args:
            color_config: Coloring configuration
            fractal_config: Fractal configuration (escape limit and exponent
                feed the smoothing estimate)
        """
        self.color_config = color_config
        self.fractal_config = fractal_config
        self.algorithms = COLORING_METHODS

        with np.errstate(all='ignore'):
            self._log_log_limit = np.log(np.log(EXTENDED(fractal_config.escape_limit)))
            self._log_exponent = np.log(EXTENDED(fractal_config.exponent))

    def get_algorithm(self, method: int) -> ColoringAlgorithm:
        """Get coloring method by id."""
        if method not in self.algorithms:
            available = ', '.join(str(m) for m in sorted(self.algorithms))
            raise ConfigurationError(f"Unknown coloring method {method}. Available: {available}")
        return self.algorithms[method]

    def smooth_offset(self, z: ComplexValue) -> EXTENDED:
        """Fractional iteration count correction for smooth coloring."""
        return (self._log_log_limit - np.log(np.log(z.magnitude()))) / self._log_exponent

    def colorize(self, z: ComplexValue, c: ComplexValue, n: int, method: int = None) -> RGB:
        """
        Compute the final color of a pixel.

        Args:
            z: Terminal iterate
            c: Terminal constant
            n: Iteration count
            method: Method id (defaults to the configured one)

        Returns:
            Tuple of 8-bit (red, green, blue)
        """
        if method is None:
            method = self.color_config.method
        algorithm = self.get_algorithm(method)

        with np.errstate(all='ignore'):
            channels = [EXTENDED(v) for v in algorithm.compute(self, z, c, int(n))]

            for _ in range(self.color_config.c_log):
                channels = [np.log(v) for v in channels]

            if algorithm.applies_multiplier:
                multiplier = EXTENDED(self.color_config.multiplier)
                channels = [v * multiplier for v in channels]

            red, green, blue = (clamp_channel(v) for v in channels)
        return red, green, blue

    def list_methods(self) -> List[Tuple[int, str]]:
        """Get list of available coloring methods with descriptions."""
        return [(method_id, algorithm.description)
                for method_id, algorithm in sorted(self.algorithms.items())]
