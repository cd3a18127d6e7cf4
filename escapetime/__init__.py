"""
Escape-time fractal rendering library.

This library renders the Mandelbrot set, Julia sets and fourteen other
escape-time recurrences in extended precision, classifying every pixel as
escaped, bounded, periodic or provably interior and coloring it with one of
eighteen coloring methods.

Key Features:
- Extended precision (long double) complex arithmetic
- Sixteen fractal recurrences with arbitrary real exponents
- Closed-form interior skipping and orbit periodicity detection
- Eighteen coloring methods with smoothing and logarithmic damping
- Cooperative cancellation producing partial images

Example usage:
    >>> from escapetime import FractalRenderer, FractalConfig, ColorConfig, RenderConfig
    >>> renderer = FractalRenderer(FractalConfig('mandelbrot'), ColorConfig(method=0),
    ...                            RenderConfig(width=256, height=256))
    >>> result = renderer.render()
    >>> renderer.save(result)
"""

__version__ = "1.0.0"
__author__ = "escapetime developers"

from escapetime.core.precision import ComplexValue
from escapetime.core.fractal_types import FractalConfig, FractalRegistry, ConfigurationError
from escapetime.core.math_functions import FractalIterator, PeriodicityChecker, can_skip
from escapetime.rendering.coloring import ColorConfig, ColoringEngine
from escapetime.rendering.image_output import ImageExporter, build_filename

# Main API classes
from escapetime.api import (FractalRenderer, RenderConfig, RenderResult, RenderStatistics,
                            CancellationToken, PixelOutcome, OutcomeKind)

__all__ = [
    "FractalRenderer",
    "RenderConfig",
    "RenderResult",
    "RenderStatistics",
    "CancellationToken",
    "PixelOutcome",
    "OutcomeKind",
    "ComplexValue",
    "FractalConfig",
    "FractalRegistry",
    "ConfigurationError",
    "FractalIterator",
    "PeriodicityChecker",
    "can_skip",
    "ColorConfig",
    "ColoringEngine",
    "ImageExporter",
    "build_filename",
]
