"""
Core mathematical functions for fractal iteration.

This module provides the per-pixel building blocks used by the raster scan:
pixel-to-plane coordinate mapping, the closed-form interior test, orbit
periodicity detection and the configured iteration step.
"""

import numpy as np
from collections import deque
from typing import Tuple
import logging

from .precision import ComplexValue, EXTENDED
from .fractal_types import FractalConfig, FractalRegistry

logger = logging.getLogger(__name__)

# Squared radii of the origin-centred discs known to lie inside the
# exponent 4 and 5 multibrot sets: (9 / (32 * 2^(1/3)))^2 and (16 / 5^2.5)^2
MULTIBROT4_DISC = EXTENDED('0.2232282729330280511369586055226683491')
MULTIBROT5_DISC = EXTENDED('0.2862167011199730811403742295976033581')


class ComplexPlane:
    """Represents a complex plane region with coordinate mapping utilities."""

    def __init__(self, lbound: float, rbound: float, bbound: float, ubound: float,
                 width: int, height: int):
        """
        Initialize complex plane bounds and resolution.

        Args:
            lbound, rbound: Real axis bounds
            bbound, ubound: Imaginary axis bounds
            width, height: Image resolution in pixels
        """
        if lbound >= rbound or bbound >= ubound:
            raise ValueError("Invalid bounds: min values must be less than max values")
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")

        self.lbound = EXTENDED(lbound)
        self.rbound = EXTENDED(rbound)
        self.bbound = EXTENDED(bbound)
        self.ubound = EXTENDED(ubound)
        self.width = width
        self.height = height

        # Calculate scaling factors
        self.x_scale = (self.rbound - self.lbound) / width
        self.y_scale = (self.ubound - self.bbound) / height

    @classmethod
    def from_config(cls, config: FractalConfig, width: int, height: int) -> 'ComplexPlane':
        return cls(*config.bounds, width, height)

    def pixel_to_point(self, px: int, py: int) -> Tuple[EXTENDED, EXTENDED]:
        """
        Convert pixel coordinates to the plane point at the pixel centre.

        Row 0 is the top edge of the image.
        """
        x = self.lbound + px * self.x_scale + self.x_scale / 2
        y = self.ubound - py * self.y_scale - self.y_scale / 2
        return x, y


def can_skip(config: FractalConfig, x, y) -> bool:
    """
    Decide whether a point is provably inside the set without iterating.

    Only the standard Mandelbrot escape condition is covered. The test may
    miss interior points but never reports an escaping point as interior.

    Args:
        config: Fractal configuration
        x, y: Plane point

    Returns:
        True if the point can be skipped as interior
    """
    if (config.single
            or config.fractal_type != 'mandelbrot'
            or config.escape_limit != 4):
        return False

    x = EXTENDED(x)
    y = EXTENDED(y)
    exponent = config.exponent

    if exponent == 2:
        y2 = y * y
        xo = x - EXTENDED('0.25')
        q = xo * xo + y2
        return bool(q * (q + xo) < EXTENDED('0.25') * y2   # main cardioid
                    or (x + 1) * (x + 1) + y2 < EXTENDED('0.0625'))  # period 2 bulb

    if exponent == 3:
        # Squared form of the boundary x(y) = +-(sqrt(4/3 - a) * (3a + 2)) / 6,
        # a = cbrt(2y)^2, of the period 1 component; captures part of it
        y2 = y * y
        return bool(x * x < EXTENDED(4) / 27 - y2 + np.cbrt(4 * y2) / 3)

    if exponent == 4:
        return bool(x * x + y * y < MULTIBROT4_DISC)

    if exponent == 5:
        return bool(x * x + y * y < MULTIBROT5_DISC)

    return False


class PeriodicityChecker:
    """Detects orbits that revisit one of their most recent values."""

    def __init__(self, window: int = 1):
        """
        Initialize periodicity checker.

        Args:
            window: How many previous iterates to remember (0 disables)
        """
        if window < 0:
            raise ValueError("window must be non-negative")
        self.window = window
        self._history = deque(maxlen=window or None)

    @property
    def enabled(self) -> bool:
        return self.window > 0

    def reset(self, z: ComplexValue) -> None:
        """Prime the history with copies of the orbit's starting value."""
        self._history.clear()
        self._history.extend([z] * self.window)

    def check(self, z: ComplexValue) -> int:
        """
        Check a new iterate against the remembered ones.

        Args:
            z: Newest iterate

        Returns:
            Distance from the end of the history to the match (the period),
            or 0 if the value is new; new values are remembered, evicting
            the oldest one
        """
        for index, previous in enumerate(self._history):
            if previous == z:
                return len(self._history) - index
        self._history.append(z)
        return 0


class FractalIterator:
    """Applies the configured recurrence to single orbits."""

    def __init__(self, config: FractalConfig):
        """
        Initialize fractal iterator.

        Args:
            config: Fractal configuration
        """
        self.config = config
        self.variant = FractalRegistry.create(config.fractal_type)
        self.exponent = EXTENDED(config.exponent)
        self.escape_limit = EXTENDED(config.escape_limit)
        self.julia_constant = config.julia_constant

    def initial_state(self, x, y) -> Tuple[ComplexValue, ComplexValue]:
        """
        Starting iterate and constant for a plane point.

        Returns:
            Tuple of (z, c)
        """
        point = ComplexValue(x, y)
        z = ComplexValue(0, 0) if self.variant.starts_at_zero else point
        c = self.julia_constant if self.variant.name == 'julia' else point
        return z, c

    def next(self, z: ComplexValue, c: ComplexValue, n: int) -> Tuple[ComplexValue, ComplexValue]:
        """Advance the orbit by one step; the constant may be replaced."""
        return self.variant.step(z, c, n, self.exponent)

    def has_escaped(self, z: ComplexValue, n: int) -> bool:
        return n > 0 and z.squared_norm() > self.escape_limit
