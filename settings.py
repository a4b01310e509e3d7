"""
settings.py

Persistent settings management for the key-mapping editor.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/keymap-editor/settings.toml
    - macOS: ~/Library/Application Support/keymap-editor/settings.toml
    - Linux: ~/.config/keymap-editor/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "keymap-editor"

log = logging.getLogger(__name__)

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


# =============================================================================
# Scale Settings
# =============================================================================

@dataclass
class ScaleSettings:
    """Node scale control.

    Defaults:
        value: 1.0
        minimum: 0.5
        maximum: 2.0
        step: 0.05
        repeat_interval_ms: 100
        soft_minimum: 0.1
        soft_maximum: 5.0
    """
    value: float = 1.0               # Default: 1.0 (last manual scale)
    minimum: float = 0.5             # Default: 0.5
    maximum: float = 2.0             # Default: 2.0
    step: float = 0.05               # Default: 0.05 per tick
    repeat_interval_ms: int = 100    # Default: 100 ms while a control is held
    soft_minimum: float = 0.1        # Default: 0.1 (held adjustment)
    soft_maximum: float = 5.0        # Default: 5.0 (held adjustment)


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasZOrderSettings:
    """Z-order settings for nodes.

    Defaults:
        base: 1000
        step: 10
    """
    base: int = 1000  # Default: 1000
    step: int = 10    # Default: 10


@dataclass
class CanvasSettings:
    """Canvas geometry settings.

    Defaults:
        width: 800
        height: 600
        min_width: 300
        min_height: 300
        edge_padding: 0.002
        precision: 4
        resize_debounce_ms: 100
    """
    width: int = 800                # Default: 800 pixels
    height: int = 600               # Default: 600 pixels
    min_width: int = 300            # Default: 300 pixels
    min_height: int = 300           # Default: 300 pixels
    edge_padding: float = 0.002     # Default: 0.002 (normalized)
    precision: int = 4              # Default: 4 decimals
    resize_debounce_ms: int = 100   # Default: 100 ms
    zorder: CanvasZOrderSettings = field(default_factory=CanvasZOrderSettings)


# =============================================================================
# Node Settings
# =============================================================================

@dataclass
class NodeColorSettings:
    """Node colors.

    Defaults:
        click: "#0056b3"
        double_click: "#1e7e34"
        multi_click: "#6f42c1"
        drag: "#fd7e14"
        steer_wheel: "#17a2b8"
        mouse: "#dc3545"
        small_eyes: "#20c997"
        key_active: "#28a745"
    """
    click: str = "#0056b3"         # Default: blue
    double_click: str = "#1e7e34"  # Default: green
    multi_click: str = "#6f42c1"   # Default: purple
    drag: str = "#fd7e14"          # Default: orange
    steer_wheel: str = "#17a2b8"   # Default: teal
    mouse: str = "#dc3545"         # Default: red
    small_eyes: str = "#20c997"    # Default: mint
    key_active: str = "#28a745"    # Default: green


@dataclass
class NodeSettings:
    """Node behavior settings.

    Defaults:
        steer_min_pixel_distance: 20
        multi_click_point_delay: 200
        multi_click_context_delay: 150
    """
    steer_min_pixel_distance: float = 20.0      # Default: 20 pixels
    multi_click_point_delay: int = 200          # Default: 200 ms
    multi_click_context_delay: int = 150        # Default: 150 ms
    colors: NodeColorSettings = field(default_factory=NodeColorSettings)


# =============================================================================
# Animation Settings
# =============================================================================

@dataclass
class AnimationSettings:
    """Cosmetic pulse settings.

    Defaults:
        select_pulse_ms: 1000
    """
    select_pulse_ms: int = 1000      # Default: 1000 ms then revert


# =============================================================================
# Document Settings
# =============================================================================

@dataclass
class DocumentSettings:
    """Persisted document defaults.

    Defaults:
        default_switch_key: "Key_QuoteLeft"
        last_dir: ""
    """
    default_switch_key: str = "Key_QuoteLeft"  # Default: backtick key
    last_dir: str = ""                         # Default: "" (home)


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        scale: Node scale control.
        canvas: Canvas geometry.
        nodes: Node behavior and colors.
        animation: Pulse timings.
        document: Document defaults.
    """
    scale: ScaleSettings = field(default_factory=ScaleSettings)
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    nodes: NodeSettings = field(default_factory=NodeSettings)
    animation: AnimationSettings = field(default_factory=AnimationSettings)
    document: DocumentSettings = field(default_factory=DocumentSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory, overriding the platform location.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        if settings_dir is None:
            settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)

            return self._parse_toml(data)
        except (OSError, tomllib.TOMLDecodeError) as e:
            # If file is corrupted or invalid, return defaults
            log.warning("Ignoring unreadable settings file %s: %s", self.settings_file, e)
            return AppSettings()

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Unknown keys are ignored and values of the wrong type keep their
        default.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()
        _merge_section(settings, data)
        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        return _section_to_dict(self.settings)

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string."""
        return tomli_w.dumps(self._to_toml_dict())

    def get_last_dir(self) -> Path:
        """Directory last used for document save/load, or the home directory."""
        if self.settings.document.last_dir:
            return Path(self.settings.document.last_dir)
        return Path.home()

    def get_settings_path(self) -> Path:
        return self.settings_file


def _merge_section(target: Any, data: Dict[str, Any]) -> None:
    """Copy matching keys of *data* onto the dataclass *target*, recursing into sections."""
    if not isinstance(data, dict):
        return
    for f in fields(target):
        if f.name not in data:
            continue
        current = getattr(target, f.name)
        value = data[f.name]
        if is_dataclass(current):
            _merge_section(current, value)
        elif isinstance(current, bool):
            if isinstance(value, bool):
                setattr(target, f.name, value)
        elif isinstance(current, (int, float)):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                setattr(target, f.name, type(current)(value))
        elif isinstance(value, type(current)):
            setattr(target, f.name, value)


def _section_to_dict(section: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in fields(section):
        value = getattr(section, f.name)
        out[f.name] = _section_to_dict(value) if is_dataclass(value) else value
    return out
