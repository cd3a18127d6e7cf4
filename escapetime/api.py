"""
Main API classes for fractal generation.

This module provides the raster scan that ties the iteration, interior
test, periodicity detection and coloring components together, along with
the statistics and cancellation plumbing around a render.
"""

import numpy as np
from typing import Optional, Dict, Any, Tuple, Callable
from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
import logging
import time

from .core.fractal_types import FractalConfig, ConfigurationError, is_integer
from .core.math_functions import ComplexPlane, FractalIterator, PeriodicityChecker, can_skip
from .core.precision import ComplexValue
from .rendering.coloring import ColorConfig, ColoringEngine
from .rendering.image_output import ImageExporter, RenderMetadata, build_filename

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderConfig:
    """Configuration for the raster scan."""

    # Image parameters
    width: int = 1024
    height: int = 1024

    # Iteration parameters
    max_iterations: int = 1024
    periodicity_window: int = 1  # 0 disables cycle detection

    # Output
    background: Tuple[int, int, int] = (0, 0, 0)
    progress_interval: float = 1.0  # seconds between progress reports

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Validate configuration parameters."""
        for name in ('width', 'height', 'max_iterations', 'periodicity_window'):
            value = getattr(self, name)
            if not is_integer(value):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")

        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError("Width and height must be positive")

        if self.max_iterations < 0:
            raise ConfigurationError("max_iterations must be non-negative")

        if self.periodicity_window < 0:
            raise ConfigurationError("periodicity_window must be non-negative")

        if len(self.background) != 3 or not all(0 <= v <= 255 for v in self.background):
            raise ConfigurationError("background must be an RGB triple in [0, 255]")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        data = dict(data)
        if 'background' in data:
            data['background'] = tuple(data['background'])
        return cls(**data)


class CancellationToken:
    """Cooperative cancellation flag polled by the raster scan."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class OutcomeKind(Enum):
    ESCAPED = 'escaped'
    BOUNDED = 'bounded'
    PERIODIC = 'periodic'
    SKIPPED = 'skipped'


@dataclass
class PixelOutcome:
    """Terminal classification of one pixel."""

    kind: OutcomeKind
    iterations: int = 0
    period: int = 0
    z: Optional[ComplexValue] = None
    c: Optional[ComplexValue] = None
    painted: bool = False


@dataclass
class RenderStatistics:
    """Counters accumulated over one render."""

    escaped: int = 0
    bounded: int = 0
    periodic: int = 0
    skipped: int = 0
    iterations: int = 0  # loop passes over all pixels
    max_escape_iteration: int = 0
    max_period: int = 0
    max_period_iteration: int = 0  # largest n of any periodic detection, not of the longest period
    pixels: int = 0  # pixels that reached a classification

    def record(self, outcome: PixelOutcome) -> None:
        """Accumulate one classified pixel."""
        self.pixels += 1
        if outcome.kind is OutcomeKind.ESCAPED:
            self.escaped += 1
            self.max_escape_iteration = max(self.max_escape_iteration, outcome.iterations)
        elif outcome.kind is OutcomeKind.BOUNDED:
            self.bounded += 1
        elif outcome.kind is OutcomeKind.PERIODIC:
            self.periodic += 1
            self.max_period = max(self.max_period, outcome.period)
            self.max_period_iteration = max(self.max_period_iteration, outcome.iterations)
        else:
            self.skipped += 1

    @property
    def classified(self) -> int:
        return self.escaped + self.bounded + self.periodic + self.skipped

    def check_invariant(self) -> bool:
        """
        Verify that every processed pixel got exactly one classification.

        A mismatch points at a logic error; it is logged, not raised.
        """
        if self.classified != self.pixels:
            logger.warning(f"Classification counts do not add up: "
                           f"{self.escaped} e + {self.bounded} ne + {self.periodic} p + "
                           f"{self.skipped} s != {self.pixels} total")
            return False
        return True

    def summary(self) -> str:
        return (f"{self.escaped} e, {self.bounded} ne, {self.periodic} p, "
                f"{self.max_period} mp, {self.max_period_iteration} mpi, "
                f"{self.skipped} s, {self.iterations} i, "
                f"{self.max_escape_iteration} mi, {self.pixels} t")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RenderResult:
    """Raster and bookkeeping produced by a render."""

    image: np.ndarray
    statistics: RenderStatistics
    cancelled: bool = False
    render_time_seconds: float = 0.0

    @property
    def complete(self) -> bool:
        return not self.cancelled and self.statistics.pixels == self.image.shape[0] * self.image.shape[1]


class FractalRenderer:
    """Main fractal rendering engine."""

    def __init__(self, fractal_config: Optional[FractalConfig] = None,
                 color_config: Optional[ColorConfig] = None,
                 render_config: Optional[RenderConfig] = None):
        """
        Initialize fractal renderer.

        Args:
            fractal_config: Recurrence selection and plane bounds
            color_config: Coloring configuration
            render_config: Resolution and iteration limits (uses defaults if None)
        """
        self.fractal_config = fractal_config or FractalConfig()
        self.color_config = color_config or ColorConfig()
        self.config = render_config or RenderConfig()

        self.fractal_config.validate()
        self.color_config.validate()
        self.config.validate()

        # Initialize components
        self.iterator = FractalIterator(self.fractal_config)
        self.coloring_engine = ColoringEngine(self.color_config, self.fractal_config)
        self.plane = ComplexPlane.from_config(self.fractal_config, self.config.width, self.config.height)

        logger.info(f"FractalRenderer initialized: {self.config.width}x{self.config.height}, "
                    f"type={self.fractal_config.fractal_type}, method={self.color_config.method}")

    def render_pixel(self, px: int, py: int,
                     cancel_token: Optional[CancellationToken] = None,
                     statistics: Optional[RenderStatistics] = None) -> Optional[PixelOutcome]:
        """
        Classify one pixel and color it if it is painted.

        Args:
            px, py: Pixel coordinates
            cancel_token: Polled after every iteration step
            statistics: Receives the iteration step count

        Returns:
            The pixel outcome, or None if cancelled before classification
        """
        x, y = self.plane.pixel_to_point(px, py)
        if can_skip(self.fractal_config, x, y):
            return PixelOutcome(OutcomeKind.SKIPPED)

        single = self.fractal_config.single
        max_iterations = self.config.max_iterations
        iterator = self.iterator
        checker = PeriodicityChecker(0 if single else self.config.periodicity_window)

        z, c = iterator.initial_state(x, y)
        checker.reset(z)

        for n in range(max_iterations + 1):
            if statistics is not None:
                statistics.iterations += 1

            if single and n == max_iterations:
                return PixelOutcome(OutcomeKind.BOUNDED, n, z=z, c=c, painted=True)
            if not single and iterator.has_escaped(z, n):
                return PixelOutcome(OutcomeKind.ESCAPED, n, z=z, c=c, painted=True)
            if n == max_iterations:
                return PixelOutcome(OutcomeKind.BOUNDED, n, z=z, c=c)

            z, c = iterator.next(z, c, n)

            if checker.enabled:
                period = checker.check(z)
                if period:
                    return PixelOutcome(OutcomeKind.PERIODIC, n, period=period, z=z, c=c)

            if cancel_token is not None and cancel_token.cancelled:
                return None

        return None

    def render(self, cancel_token: Optional[CancellationToken] = None,
               progress_callback: Optional[ProgressCallback] = None) -> RenderResult:
        """
        Render the configured fractal.

        Args:
            cancel_token: Stops the scan early; the partial raster is returned
            progress_callback: Called with (current pixel, total pixels) at
                most once per ``progress_interval`` seconds

        Returns:
            RenderResult with the RGB raster (height, width, 3) as uint8
        """
        width, height = self.config.width, self.config.height
        total_pixels = width * height
        statistics = RenderStatistics()
        image = np.empty((height, width, 3), dtype=np.uint8)
        image[:, :] = self.config.background

        logger.info(f"Starting render: {self.fractal_config.fractal_type} fractal")

        start_time = time.monotonic()
        previous_report = start_time
        cancelled = False
        current_point = 0

        with np.errstate(all='ignore'):
            for py in range(height):
                for px in range(width):
                    if cancel_token is not None and cancel_token.cancelled:
                        cancelled = True
                        break

                    if progress_callback is not None:
                        now = time.monotonic()
                        if now - previous_report >= self.config.progress_interval:
                            progress_callback(current_point, total_pixels)
                            previous_report = now

                    outcome = self.render_pixel(px, py, cancel_token, statistics)
                    if outcome is None:
                        cancelled = True
                        break

                    if outcome.painted:
                        image[py, px] = self.coloring_engine.colorize(outcome.z, outcome.c, outcome.iterations)
                    statistics.record(outcome)
                    current_point += 1
                if cancelled:
                    break

        render_time = time.monotonic() - start_time
        statistics.check_invariant()

        if cancelled:
            logger.info(f"Render cancelled after {current_point}/{total_pixels} pixels ({render_time:.2f}s)")
        else:
            logger.info(f"Render complete: {render_time:.2f}s")
        logger.debug(f"Statistics: {statistics.summary()}")

        return RenderResult(image, statistics, cancelled, render_time)

    def output_filename(self, result: RenderResult, output_root: Path = Path('tiles')) -> Path:
        """Build the output path encoding the configuration and statistics."""
        return Path(output_root) / build_filename(
            self.fractal_config, self.color_config, self.config, result.statistics, result.cancelled)

    def save(self, result: RenderResult, output_root: Path = Path('tiles'),
             exporter: Optional[ImageExporter] = None) -> Path:
        """
        Save a render result under its generated filename.

        Args:
            result: Finished (or cancelled) render
            output_root: Directory the type/method tree is created in
            exporter: Image writer (a new one is created if None)

        Returns:
            Path of the written image
        """
        exporter = exporter or ImageExporter()
        output_path = self.output_filename(result, output_root)

        metadata = RenderMetadata(
            fractal_type=self.fractal_config.fractal_type,
            coloring_method=self.color_config.method,
            resolution=(self.config.width, self.config.height),
            max_iterations=self.config.max_iterations,
            render_time_seconds=result.render_time_seconds,
            partial=result.cancelled,
            fractal_parameters=self.fractal_config.to_dict(),
            color_parameters=self.color_config.to_dict(),
            statistics=result.statistics.to_dict(),
        )
        exporter.save_image(result.image, output_path, metadata)
        return output_path
