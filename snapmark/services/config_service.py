"""
Configuration service for SnapMark.

This module handles loading, saving, and managing application settings.
Configuration is stored as JSON in ~/.config/snapmark/config.json following
the XDG Base Directory Specification.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from PySide6.QtGui import QColor

from snapmark.services.logging_service import get_logger

# Default configuration directory following XDG Base Directory Specification
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "snapmark"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

DEFAULT_OUTPUT_FOLDER = Path.home() / "Pictures" / "SnapMark"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    # Tool active when the editor opens: select, rectangle, arrow or text
    "default_tool": "select",
    # Style applied to new annotations
    "default_color": "#ff3b3b",
    "default_stroke_width": 3,
    "default_font_size": 16,
    # Where the folder delivery sink writes finished images and notes
    "output_folder": str(DEFAULT_OUTPUT_FOLDER),
    # Largest on-screen size of the image before it is scaled down
    "viewport": {
        "max_width": 1600,
        "max_height": 1000,
    },
    "log_level": "INFO",
}


class ConfigService:
    """
    Service for managing application configuration.

    Handles loading, saving, and accessing configuration values.
    Provides sensible defaults when config file is missing or corrupted.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize the ConfigService.

        Args:
            config_path: Optional path to config file. Defaults to
                        ~/.config/snapmark/config.json
        """
        self._logger = get_logger(__name__)
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE
        self._config: Dict[str, Any] = {}

        self._load()

    @property
    def config_path(self) -> Path:
        return self._config_path

    def _load(self) -> None:
        """Load configuration from file, using defaults if needed."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if not self._config_path.exists():
            self._logger.info(
                f"Config file not found at {self._config_path}. Using defaults."
            )
            self._save_to_file()
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)

            # Loaded values override defaults
            if isinstance(loaded_config, dict):
                self._deep_merge(self._config, loaded_config)
                self._logger.info(f"Configuration loaded from {self._config_path}")
                # Save back so new default keys are persisted
                self._save_to_file()
            else:
                raise ValueError("Config file does not contain a valid JSON object")

        except (json.JSONDecodeError, ValueError) as e:
            self._logger.warning(
                f"Config file corrupted or invalid: {e}. Recreating with defaults."
            )
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save_to_file()

        except OSError as e:
            self._logger.warning(
                f"Could not read config file: {e}. Using defaults."
            )

    def _deep_merge(self, base: Dict, override: Dict) -> None:
        """Recursively merge override dict into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save_to_file(self) -> None:
        """Save current configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self._config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)

            self._logger.debug(f"Configuration saved to {self._config_path}")

        except OSError as e:
            self._logger.error(f"Could not save config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: The configuration key to retrieve.
            default: Default value if key doesn't exist.

        Returns:
            The configuration value, or default if not found.
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value (in memory only).

        Call save() to persist changes to disk.
        """
        self._config[key] = value
        self._logger.debug(f"Config key '{key}' set to '{value}'")

    def save(self) -> None:
        """Persist current configuration to disk."""
        self._save_to_file()

    def _positive_int(self, key: str) -> int:
        value = self.get(key, DEFAULT_CONFIG[key])
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
        self._logger.warning(
            f"Invalid value for '{key}': {value!r}. Using {DEFAULT_CONFIG[key]}."
        )
        return DEFAULT_CONFIG[key]

    # ─── Editor Settings ──────────────────────────────────────────────────

    @property
    def default_tool(self) -> str:
        """Get the name of the tool selected when the editor opens."""
        return str(self.get("default_tool", DEFAULT_CONFIG["default_tool"])).lower()

    @property
    def default_color(self) -> QColor:
        """Get the default annotation color."""
        value = self.get("default_color", DEFAULT_CONFIG["default_color"])
        color = QColor(str(value))
        if not color.isValid():
            self._logger.warning(
                f"Invalid color '{value}'. Using {DEFAULT_CONFIG['default_color']}."
            )
            color = QColor(DEFAULT_CONFIG["default_color"])
        return color

    @property
    def default_stroke_width(self) -> int:
        """Get the default stroke width for rectangles and arrows."""
        return self._positive_int("default_stroke_width")

    @property
    def default_font_size(self) -> int:
        """Get the default font size for text labels."""
        return self._positive_int("default_font_size")

    # ─── Output Settings ──────────────────────────────────────────────────

    @property
    def output_folder(self) -> Path:
        """Get the folder finished images are delivered to."""
        return Path(self.get("output_folder", str(DEFAULT_OUTPUT_FOLDER))).expanduser()

    # ─── View Settings ────────────────────────────────────────────────────

    @property
    def viewport(self) -> Tuple[int, int]:
        """Get the (max_width, max_height) the image is fitted into."""
        defaults = DEFAULT_CONFIG["viewport"]
        viewport = self.get("viewport", defaults)
        if not isinstance(viewport, dict):
            viewport = defaults
        sizes = []
        for key in ("max_width", "max_height"):
            value = viewport.get(key, defaults[key])
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                self._logger.warning(f"Invalid viewport {key}: {value!r}")
                value = defaults[key]
            sizes.append(value)
        return sizes[0], sizes[1]

    @property
    def log_level(self) -> str:
        """Get the configured log level name."""
        return str(self.get("log_level", DEFAULT_CONFIG["log_level"])).upper()
