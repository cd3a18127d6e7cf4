"""
Image export and output naming for fractal renders.

This module writes finished rasters as PNG files with the render metadata
embedded in text chunks, and builds the output filenames that encode every
setting distinguishing one render from another.
"""

import numpy as np
from typing import Dict, Any, Optional, Tuple, TYPE_CHECKING
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from .. import __version__
from ..core.precision import format_extended

if TYPE_CHECKING:
    from ..api import RenderConfig, RenderStatistics
    from ..core.fractal_types import FractalConfig
    from .coloring import ColorConfig

logger = logging.getLogger(__name__)


@dataclass
class RenderMetadata:
    """Metadata for fractal renders."""

    # Fractal parameters
    fractal_type: str
    coloring_method: int
    resolution: Tuple[int, int]  # width, height
    max_iterations: int

    # Timing
    render_time_seconds: float
    partial: bool = False

    # Generation info
    timestamp: str = ""
    software_version: str = __version__

    fractal_parameters: Dict[str, Any] = field(default_factory=dict)
    color_parameters: Dict[str, Any] = field(default_factory=dict)
    statistics: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        data = dict(data)
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """PNG export with metadata support."""

    def save_image(self, image_array: np.ndarray, filepath: Path,
                   metadata: Optional[RenderMetadata] = None,
                   compress_level: int = 6) -> None:
        """
        Save RGB image array to a PNG file with metadata.

        Missing parent directories are created.

        Args:
            image_array: RGB image array (height, width, 3) with values 0-255
            filepath: Output file path
            metadata: Render metadata to embed
            compress_level: zlib level, 0 (none) to 9 (max)
        """
        filepath = Path(filepath)
        if filepath.suffix.lower() != '.png':
            raise ValueError(f"Unsupported format '{filepath.suffix}'. Supported: .png")

        image_array = self._prepare_image_array(image_array)
        pil_image = Image.fromarray(image_array)

        pnginfo = PngImagePlugin.PngInfo()
        if metadata:
            pnginfo.add_text("Title", f"Fractal: {metadata.fractal_type}")
            pnginfo.add_text("Software", f"escapetime v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text("FractalMetadata", metadata.to_json())

        filepath.parent.mkdir(parents=True, exist_ok=True)
        pil_image.save(filepath, "PNG", pnginfo=pnginfo, compress_level=compress_level)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")

    def _prepare_image_array(self, image_array: np.ndarray) -> np.ndarray:
        """Prepare and validate image array for export."""
        if len(image_array.shape) != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        if image_array.dtype != np.uint8:
            image_array = np.clip(image_array, 0, 255).astype(np.uint8)
        return image_array

    def extract_metadata_from_image(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Extract fractal metadata from a saved image.

        Args:
            filepath: Path to image file

        Returns:
            Extracted metadata or None
        """
        with Image.open(filepath) as img:
            text = getattr(img, 'text', {})
            if 'FractalMetadata' in text:
                return RenderMetadata.from_json(text['FractalMetadata'])
        return None


def build_filename(fractal_config: 'FractalConfig', color_config: 'ColorConfig',
                   render_config: 'RenderConfig', statistics: 'RenderStatistics',
                   cancelled: bool = False) -> Path:
    """
    Build the relative output path for a render.

    The path has the form ``<type>/<method>/<name>.png`` where the name lists
    the exponent, non-default bounds, Julia constant, escape limit, iteration
    figures, resolution and coloring tweaks, followed by a partial/complete
    marker.

    Args:
        fractal_config: Fractal configuration
        color_config: Coloring configuration
        render_config: Resolution and iteration limits
        statistics: Statistics of the finished render
        cancelled: Whether the render was interrupted

    Returns:
        Relative path of the image
    """
    fmt = format_extended
    parts = []

    if fractal_config.single:
        parts.append(f"single_e{fmt(fractal_config.exponent)}")
    else:
        parts.append(f"e{fmt(fractal_config.exponent)}")

    for prefix, value, default in (('lb', fractal_config.lbound, -2),
                                   ('rb', fractal_config.rbound, 2),
                                   ('bb', fractal_config.bbound, -2),
                                   ('ub', fractal_config.ubound, 2)):
        if value != default:
            parts.append(f"{prefix}{fmt(value)}")

    if fractal_config.fractal_type == 'julia':
        parts.append(f"jx{fmt(fractal_config.julia_a)}_jy{fmt(fractal_config.julia_b)}")
    if color_config.method == 1 and color_config.disable_fancy:
        parts.append("df")

    if not fractal_config.single:
        parts.append(f"el{fmt(fractal_config.escape_limit)}")
        parts.append(f"mi{statistics.max_escape_iteration}")
    else:
        parts.append(f"mi{render_config.max_iterations}")
    parts.append(f"mpi{statistics.max_period_iteration}")

    if color_config.method in (0, 1) and color_config.smooth:
        parts.append("smooth")

    resolution = f"{render_config.width}x"
    if render_config.width != render_config.height:
        resolution += str(render_config.height)
    parts.append(resolution)

    if color_config.multiplier != 1:
        parts.append(f"cm{fmt(color_config.multiplier)}")
    if color_config.c_log != 0:
        parts.append(f"clog{color_config.c_log}")

    if cancelled:
        parts.append("partial")
    elif statistics.bounded == 0 and not fractal_config.single:
        parts.append("complete")
    parts.append("ld")  # extended precision

    name = '_'.join(parts) + '.png'
    return Path(fractal_config.fractal_type) / str(color_config.method) / name
