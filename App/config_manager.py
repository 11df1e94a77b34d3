"""Configuration persistence manager for the bitmap encoder.

This module handles loading and saving of encoder settings to/from JSON files.
"""

import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional, Tuple

from models import CONFIG_FILE, MAX_THRESHOLD, MIN_THRESHOLD, EncoderConfig


class ConfigManager:
    """Handles loading and saving of encoder configuration."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.monobitmap_config.json)
        """
        self.config_path = config_path

    def load(self) -> EncoderConfig:
        """Load configuration from file, returning defaults if not found.

        Returns:
            EncoderConfig with loaded or default values
        """
        config = EncoderConfig()

        try:
            if self.config_path.exists():
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                for item in fields(EncoderConfig):
                    if item.name in data:
                        setattr(config, item.name, data[item.name])
                config = self._validated(config)
                print(f"✓ Loaded configuration from {self.config_path}")
        except (OSError, ValueError, TypeError, AttributeError) as e:
            print(f"Warning: Could not load config file: {e}")
            config = EncoderConfig()

        return config

    def save(self, config: EncoderConfig) -> Tuple[bool, Optional[str]]:
        """Save configuration to file.

        Args:
            config: EncoderConfig to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.config_path, "w") as f:
                json.dump(asdict(config), f, indent=2)
            return True, None
        except (OSError, TypeError) as e:
            return False, str(e)

    def _validated(self, config: EncoderConfig) -> EncoderConfig:
        """Reset out-of-range values to their defaults."""
        defaults = EncoderConfig()
        checks = {
            "threshold": lambda v: _is_int(v) and MIN_THRESHOLD <= v <= MAX_THRESHOLD,
            "max_dimension": lambda v: _is_int(v) and v > 0,
            "bytes_per_line": lambda v: _is_int(v) and v > 0,
            "display_width": lambda v: _is_int(v) and v > 0,
            "display_height": lambda v: _is_int(v) and v > 0,
            "fit_to_display": lambda v: isinstance(v, bool),
        }
        for name, is_valid in checks.items():
            value = getattr(config, name)
            if not is_valid(value):
                print(f"Warning: Invalid {name} {value!r} in config, using {getattr(defaults, name)}")
                setattr(config, name, getattr(defaults, name))
        return config


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
