"""
Configuration file handling.

Render settings can be kept in a JSON file with ``fractal``, ``color`` and
``render`` sections mirroring the configuration dataclasses. Command-line
options are layered on top of whatever the file provides.
"""

import json
from dataclasses import fields
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
import logging

from ..api import RenderConfig
from ..core.fractal_types import FractalConfig, ConfigurationError
from ..rendering.coloring import ColorConfig

logger = logging.getLogger(__name__)

SECTIONS = {
    'fractal': FractalConfig,
    'color': ColorConfig,
    'render': RenderConfig,
}


class ConfigManager:
    """Loads, merges and writes render configuration files."""

    def load_config(self, filepath: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
        """
        Load a configuration file.

        Args:
            filepath: JSON file path (an empty configuration if None)

        Returns:
            Dictionary of section name to settings
        """
        if filepath is None:
            return {name: {} for name in SECTIONS}

        filepath = Path(filepath)
        try:
            with open(filepath, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {filepath}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"{filepath} must contain a JSON object")

        errors = self.validate_config(data)
        if errors:
            raise ConfigurationError(f"Invalid configuration {filepath}: " + '; '.join(errors))

        logger.info(f"Loaded configuration: {filepath}")
        return {name: dict(data.get(name, {})) for name in SECTIONS}

    def validate_config(self, data: Dict[str, Any]) -> list:
        """Check section and key names; returns a list of error messages."""
        errors = []
        for section, settings in data.items():
            if section not in SECTIONS:
                errors.append(f"unknown section '{section}'")
                continue
            if not isinstance(settings, dict):
                errors.append(f"section '{section}' must be an object")
                continue
            known = {f.name for f in fields(SECTIONS[section])}
            for key in settings:
                if key not in known:
                    errors.append(f"unknown key '{section}.{key}'")
        return errors

    def create_configs(self, data: Dict[str, Dict[str, Any]],
                       overrides: Optional[Dict[str, Dict[str, Any]]] = None
                       ) -> Tuple[FractalConfig, ColorConfig, RenderConfig]:
        """
        Build validated configuration objects.

        Args:
            data: Loaded configuration sections
            overrides: Per-section values taking precedence (None values are ignored)

        Returns:
            Tuple of (FractalConfig, ColorConfig, RenderConfig)
        """
        overrides = overrides or {}
        merged = {}
        for section in SECTIONS:
            values = dict(data.get(section, {}))
            values.update({k: v for k, v in overrides.get(section, {}).items() if v is not None})
            merged[section] = values

        try:
            return (FractalConfig.from_dict(merged['fractal']),
                    ColorConfig.from_dict(merged['color']),
                    RenderConfig.from_dict(merged['render']))
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

    def save_config(self, filepath: Path, fractal_config: FractalConfig,
                    color_config: ColorConfig, render_config: RenderConfig) -> None:
        """Write the given configuration as a JSON file."""
        data = {
            'fractal': fractal_config.to_dict(),
            'color': color_config.to_dict(),
            'render': render_config.to_dict(),
        }
        filepath = Path(filepath)
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)
        logger.info(f"Saved configuration: {filepath}")
