"""
Extended precision complex arithmetic for deep fractal iteration.

This module provides the complex value type used by every iteration and
coloring routine. Both components are stored as ``numpy.longdouble`` so
that long orbits keep the extra mantissa bits of the platform's extended
floating-point format (80-bit on x86-64 Linux).
"""

import numpy as np
from typing import Union
import logging

logger = logging.getLogger(__name__)

EXTENDED = np.longdouble
INF = EXTENDED(np.inf)
PI = np.arccos(EXTENDED(-1))

Scalar = Union[int, float, np.floating]


class ComplexValue:
    """Extended precision complex number.

    Instances are treated as immutable: every operator returns a new value.
    Division by zero never raises, non-finite components are simply carried
    along to the caller.
    """

    __slots__ = ('real', 'imag')

    # numpy scalars defer to the reflected operators below
    __array_ufunc__ = None

    def __init__(self, real: Scalar = 0, imag: Scalar = 0):
        """
        Initialize complex value.

        Args:
            real: Real part
            imag: Imaginary part
        """
        self.real = EXTENDED(real)
        self.imag = EXTENDED(imag)

    @classmethod
    def from_complex(cls, value: complex) -> 'ComplexValue':
        """Create a value from a builtin complex number."""
        return cls(value.real, value.imag)

    def __add__(self, other: Union['ComplexValue', Scalar]) -> 'ComplexValue':
        if isinstance(other, ComplexValue):
            return ComplexValue(self.real + other.real, self.imag + other.imag)
        return ComplexValue(self.real + other, self.imag)

    __radd__ = __add__

    def __sub__(self, other: Union['ComplexValue', Scalar]) -> 'ComplexValue':
        if isinstance(other, ComplexValue):
            return ComplexValue(self.real - other.real, self.imag - other.imag)
        return ComplexValue(self.real - other, self.imag)

    def __rsub__(self, other: Scalar) -> 'ComplexValue':
        return ComplexValue(other - self.real, -self.imag)

    def __neg__(self) -> 'ComplexValue':
        return ComplexValue(-self.real, -self.imag)

    def __mul__(self, other: Union['ComplexValue', Scalar]) -> 'ComplexValue':
        if isinstance(other, ComplexValue):
            real = self.real * other.real - self.imag * other.imag
            imag = self.real * other.imag + self.imag * other.real
            return ComplexValue(real, imag)
        return ComplexValue(self.real * other, self.imag * other)

    __rmul__ = __mul__

    def __truediv__(self, other: Union['ComplexValue', Scalar]) -> 'ComplexValue':
        if isinstance(other, ComplexValue):
            return self * other.reciprocal()
        other = EXTENDED(other)
        return ComplexValue(self.real / other, self.imag / other)

    def __rtruediv__(self, other: Scalar) -> 'ComplexValue':
        return self.reciprocal() * other

    def __pow__(self, exponent: Scalar) -> 'ComplexValue':
        """
        Raise to a real power using the polar form.

        Works for zero, negative and fractional exponents and follows the
        principal branch of the argument.

        Args:
            exponent: Real exponent

        Returns:
            New complex value
        """
        exponent = EXTENDED(exponent)

        if exponent == 2:
            # Optimized squaring
            real = self.real * self.real - self.imag * self.imag
            imag = 2 * self.real * self.imag
            return ComplexValue(real, imag)
        if exponent == 1:
            return ComplexValue(self.real, self.imag)

        magnitude = self.magnitude()
        if magnitude == 0:
            if exponent > 0:
                return ComplexValue(0, 0)
            if exponent == 0:
                return ComplexValue(1, 0)
            return ComplexValue(INF, 0)

        new_magnitude = np.power(magnitude, exponent)
        new_angle = self.arg() * exponent
        return ComplexValue(new_magnitude * np.cos(new_angle),
                            new_magnitude * np.sin(new_angle))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComplexValue):
            return NotImplemented
        return self.real == other.real and self.imag == other.imag

    def __hash__(self) -> int:
        return hash((self.real, self.imag))

    def __abs__(self) -> EXTENDED:
        return self.magnitude()

    def complex_pow(self, exponent: 'ComplexValue') -> 'ComplexValue':
        """
        Raise to a complex power, ``exp(exponent * log(self))``.

        Zero raised to anything is zero.
        """
        if self.real == 0 and self.imag == 0:
            return ComplexValue(0, 0)
        log_self = ComplexValue(np.log(self.magnitude()), self.arg())
        return (exponent * log_self).exp()

    def exp(self) -> 'ComplexValue':
        """Complex exponential."""
        scale = np.exp(self.real)
        return ComplexValue(scale * np.cos(self.imag), scale * np.sin(self.imag))

    def cos(self) -> 'ComplexValue':
        """Complex cosine."""
        return ComplexValue(np.cos(self.real) * np.cosh(self.imag),
                            -np.sin(self.real) * np.sinh(self.imag))

    def reciprocal(self) -> 'ComplexValue':
        """
        Calculate ``1 / self``.

        A zero value yields ``(inf, 0)`` instead of raising.
        """
        norm = self.squared_norm()
        if norm == 0:
            return ComplexValue(INF, 0)
        return ComplexValue(self.real / norm, -self.imag / norm)

    def conjugate(self) -> 'ComplexValue':
        """Return complex conjugate."""
        return ComplexValue(self.real, -self.imag)

    def swap_xy(self) -> 'ComplexValue':
        """Return the value with real and imaginary parts exchanged."""
        return ComplexValue(self.imag, self.real)

    def squared_norm(self) -> EXTENDED:
        """Calculate squared absolute value for efficiency."""
        return self.real * self.real + self.imag * self.imag

    def magnitude(self) -> EXTENDED:
        """Calculate absolute value (magnitude)."""
        return np.sqrt(self.squared_norm())

    def arg(self) -> EXTENDED:
        """Calculate argument (angle) of complex number."""
        return np.arctan2(self.imag, self.real)

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.real) and np.isfinite(self.imag))

    def to_complex(self) -> complex:
        """Convert to standard Python complex (may lose precision)."""
        return complex(float(self.real), float(self.imag))

    def __str__(self) -> str:
        if self.imag >= 0:
            return f"{format_extended(self.real)} + {format_extended(self.imag)}i"
        return f"{format_extended(self.real)} - {format_extended(-self.imag)}i"

    def __repr__(self) -> str:
        return f"ComplexValue({format_extended(self.real)}, {format_extended(self.imag)})"


def format_extended(value: Scalar) -> str:
    """
    Format a number in the shortest decimal form that round-trips.

    Args:
        value: Number to format

    Returns:
        Decimal string without trailing zeros (``2``, ``-0.8``)
    """
    # Keep the input's own width so 0.1 prints as 0.1, not its extended expansion
    if not isinstance(value, np.floating):
        value = np.float64(value)
    if not np.isfinite(value):
        return str(float(value))
    if value != 0 and not (1e-6 <= abs(value) < 1e16):
        return np.format_float_scientific(value, trim='-')
    return np.format_float_positional(value, trim='-')
