"""
settings.py

Persistent settings management for the scene editor.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/sceneedit/settings.toml
    - macOS: ~/Library/Application Support/sceneedit/settings.toml
    - Linux: ~/.config/sceneedit/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from debug_trace import trace

APP_NAME = "sceneedit"

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


def set_settings(manager: Optional["SettingsManager"]) -> None:
    """Replace the global settings manager (None resets to lazy default)."""
    global _settings_manager
    _settings_manager = manager


# =============================================================================
# Canvas Settings
# =============================================================================

@dataclass
class CanvasHandleSettings:
    """Control handle settings.

    Defaults:
        corner_size: 12.0
        rotating_point_offset: 40.0
        border_color: "#0078D7"
        fill_color: "#FFFFFF"
    """
    corner_size: float = 12.0             # Default: 12.0 pixels (hit square side)
    rotating_point_offset: float = 40.0   # Default: 40.0 pixels above the top edge
    border_color: str = "#0078D7"         # Default: blue
    fill_color: str = "#FFFFFF"           # Default: white


@dataclass
class CanvasObjectSettings:
    """Defaults applied to newly created scene objects.

    Defaults:
        padding: 0.0
        stroke_width: 1.0
        min_scale_limit: 0.01
        border_color: "#0078D7"
        has_controls: True
        has_rotating_point: True
    """
    padding: float = 0.0              # Default: 0.0 pixels
    stroke_width: float = 1.0         # Default: 1.0 pixels
    min_scale_limit: float = 0.01     # Default: 0.01 (smallest |scale| allowed)
    border_color: str = "#0078D7"     # Default: blue
    has_controls: bool = True         # Default: True
    has_rotating_point: bool = True   # Default: True


@dataclass
class CanvasSelectionSettings:
    """Marquee appearance settings.

    Defaults:
        fill_color: "#0078D733"
        border_color: "#0078D7"
        line_width: 1.0
    """
    fill_color: str = "#0078D733"     # Default: translucent blue (#RRGGBBAA)
    border_color: str = "#0078D7"     # Default: blue
    line_width: float = 1.0           # Default: 1.0 pixels


@dataclass
class CanvasGestureSettings:
    """Pointer gesture behavior.

    Defaults:
        uniform_scaling: False
        scale_fudge: 1.0
    """
    uniform_scaling: bool = False  # Default: False (shift toggles proportional scaling)
    scale_fudge: float = 1.0       # Default: 1.0 pixels added to proportional denominator


@dataclass
class CanvasCursorSettings:
    """Symbolic cursor names pushed to the host.

    Defaults:
        default: "default"
        hover: "move"
        move: "move"
        rotation: "crosshair"
    """
    default: str = "default"     # Default: "default"
    hover: str = "move"          # Default: "move"
    move: str = "move"           # Default: "move"
    rotation: str = "crosshair"  # Default: "crosshair"


@dataclass
class CanvasSettings:
    """All canvas-related settings."""
    handles: CanvasHandleSettings = field(default_factory=CanvasHandleSettings)
    objects: CanvasObjectSettings = field(default_factory=CanvasObjectSettings)
    selection: CanvasSelectionSettings = field(default_factory=CanvasSelectionSettings)
    gestures: CanvasGestureSettings = field(default_factory=CanvasGestureSettings)
    cursors: CanvasCursorSettings = field(default_factory=CanvasCursorSettings)


# =============================================================================
# Debug Settings
# =============================================================================

@dataclass
class DebugSettings:
    """Debug tracing settings.

    Defaults:
        trace: False
        trace_paint: False
        log_file: ""
        categories: []
    """
    trace: bool = False        # Default: False
    trace_paint: bool = False  # Default: False (PAINT and COORDS, very verbose)
    log_file: str = ""         # Default: "" (stderr only)
    categories: List[str] = field(default_factory=list)  # Default: [] (all categories)


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        canvas: Canvas-related settings.
        debug: Debug tracing settings.
    """
    canvas: CanvasSettings = field(default_factory=CanvasSettings)
    debug: DebugSettings = field(default_factory=DebugSettings)


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
        settings_dir: Explicit config directory; overrides the platform one.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        if settings_dir is None:
            settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

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
        except (OSError, tomllib.TOMLDecodeError) as e:
            trace(f"Unreadable settings file {self.settings_file}: {e}", "SETTINGS")
            return AppSettings()

        return self._parse_toml(data)

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        # Canvas section
        canvas = data.get("canvas", {})
        if "handles" in canvas:
            h = canvas["handles"]
            settings.canvas.handles.corner_size = h.get("corner_size", settings.canvas.handles.corner_size)
            settings.canvas.handles.rotating_point_offset = h.get("rotating_point_offset", settings.canvas.handles.rotating_point_offset)
            settings.canvas.handles.border_color = h.get("border_color", settings.canvas.handles.border_color)
            settings.canvas.handles.fill_color = h.get("fill_color", settings.canvas.handles.fill_color)
        if "objects" in canvas:
            o = canvas["objects"]
            settings.canvas.objects.padding = o.get("padding", settings.canvas.objects.padding)
            settings.canvas.objects.stroke_width = o.get("stroke_width", settings.canvas.objects.stroke_width)
            limit = o.get("min_scale_limit", settings.canvas.objects.min_scale_limit)
            if limit > 0:
                settings.canvas.objects.min_scale_limit = limit
            else:
                trace(f"Ignoring min_scale_limit={limit!r}; must be positive", "SETTINGS")
            settings.canvas.objects.border_color = o.get("border_color", settings.canvas.objects.border_color)
            settings.canvas.objects.has_controls = o.get("has_controls", settings.canvas.objects.has_controls)
            settings.canvas.objects.has_rotating_point = o.get("has_rotating_point", settings.canvas.objects.has_rotating_point)
        if "selection" in canvas:
            sel = canvas["selection"]
            settings.canvas.selection.fill_color = sel.get("fill_color", settings.canvas.selection.fill_color)
            settings.canvas.selection.border_color = sel.get("border_color", settings.canvas.selection.border_color)
            settings.canvas.selection.line_width = sel.get("line_width", settings.canvas.selection.line_width)
        if "gestures" in canvas:
            g = canvas["gestures"]
            settings.canvas.gestures.uniform_scaling = g.get("uniform_scaling", settings.canvas.gestures.uniform_scaling)
            settings.canvas.gestures.scale_fudge = g.get("scale_fudge", settings.canvas.gestures.scale_fudge)
        if "cursors" in canvas:
            c = canvas["cursors"]
            settings.canvas.cursors.default = c.get("default", settings.canvas.cursors.default)
            settings.canvas.cursors.hover = c.get("hover", settings.canvas.cursors.hover)
            settings.canvas.cursors.move = c.get("move", settings.canvas.cursors.move)
            settings.canvas.cursors.rotation = c.get("rotation", settings.canvas.cursors.rotation)

        # Debug section
        debug = data.get("debug", {})
        settings.debug.trace = debug.get("trace", settings.debug.trace)
        settings.debug.trace_paint = debug.get("trace_paint", settings.debug.trace_paint)
        settings.debug.log_file = debug.get("log_file", settings.debug.log_file)
        settings.debug.categories = list(debug.get("categories", settings.debug.categories))

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
        s = self.settings
        return {
            "canvas": {
                "handles": {
                    "corner_size": s.canvas.handles.corner_size,
                    "rotating_point_offset": s.canvas.handles.rotating_point_offset,
                    "border_color": s.canvas.handles.border_color,
                    "fill_color": s.canvas.handles.fill_color,
                },
                "objects": {
                    "padding": s.canvas.objects.padding,
                    "stroke_width": s.canvas.objects.stroke_width,
                    "min_scale_limit": s.canvas.objects.min_scale_limit,
                    "border_color": s.canvas.objects.border_color,
                    "has_controls": s.canvas.objects.has_controls,
                    "has_rotating_point": s.canvas.objects.has_rotating_point,
                },
                "selection": {
                    "fill_color": s.canvas.selection.fill_color,
                    "border_color": s.canvas.selection.border_color,
                    "line_width": s.canvas.selection.line_width,
                },
                "gestures": {
                    "uniform_scaling": s.canvas.gestures.uniform_scaling,
                    "scale_fudge": s.canvas.gestures.scale_fudge,
                },
                "cursors": {
                    "default": s.canvas.cursors.default,
                    "hover": s.canvas.cursors.hover,
                    "move": s.canvas.cursors.move,
                    "rotation": s.canvas.cursors.rotation,
                },
            },
            "debug": {
                "trace": s.debug.trace,
                "trace_paint": s.debug.trace_paint,
                "log_file": s.debug.log_file,
                "categories": list(s.debug.categories),
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        data = self._to_toml_dict()
        return tomli_w.dumps(data)

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file
