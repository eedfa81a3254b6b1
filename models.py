"""
models.py

Data models and constants for the scene editor: origins, handle ids,
gesture actions, cursor names, pointer events and error types.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional


# ----------------------------
# Errors
# ----------------------------

class GeometryError(ValueError):
    """Raised when geometry or object options are malformed."""


class StaleCoordsError(RuntimeError):
    """Raised when hit testing meets a corner cache that was never refreshed."""


# ----------------------------
# Origin constants
# ----------------------------

class Origin:
    """Allowed values for ``origin_x`` / ``origin_y``."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"

    X_VALUES = frozenset((LEFT, CENTER, RIGHT))
    Y_VALUES = frozenset((TOP, CENTER, BOTTOM))


# Opposite side for each non-center origin; center maps to itself.
OPPOSITE_ORIGIN: Dict[str, str] = {
    Origin.LEFT: Origin.RIGHT,
    Origin.RIGHT: Origin.LEFT,
    Origin.TOP: Origin.BOTTOM,
    Origin.BOTTOM: Origin.TOP,
    Origin.CENTER: Origin.CENTER,
}


def check_finite(name: str, value: float) -> None:
    """Reject NaN and infinite values before they reach the transform math.

    Raises:
        GeometryError: if ``value`` is not a finite number.
    """
    if not math.isfinite(value):
        raise GeometryError(f"{name} must be finite, got {value!r}")


def validate_origin(origin_x: str, origin_y: str) -> None:
    """Fail fast on origin values the transform math does not understand.

    Raises:
        GeometryError: if either value is outside its allowed set.
    """
    if origin_x not in Origin.X_VALUES:
        raise GeometryError(
            f"origin_x must be one of {sorted(Origin.X_VALUES)}, got {origin_x!r}"
        )
    if origin_y not in Origin.Y_VALUES:
        raise GeometryError(
            f"origin_y must be one of {sorted(Origin.Y_VALUES)}, got {origin_y!r}"
        )


# ----------------------------
# Control handle ids
# ----------------------------

class Corner:
    """Control handle ids: four corners, four edge midpoints and rotation."""
    TL = "tl"
    TR = "tr"
    BR = "br"
    BL = "bl"
    ML = "ml"
    MT = "mt"
    MR = "mr"
    MB = "mb"
    MTR = "mtr"

    # Order used when building the corner cache and scanning hit zones
    ALL = (TL, TR, BR, BL, ML, MT, MR, MB, MTR)


# ----------------------------
# Gesture actions
# ----------------------------

class Action:
    """Transform actions a gesture session can perform."""
    DRAG = "drag"
    SCALE = "scale"
    SCALE_X = "scaleX"
    SCALE_Y = "scaleY"
    ROTATE = "rotate"

    SCALING = frozenset((SCALE, SCALE_X, SCALE_Y))


def action_for_corner(corner: Optional[str]) -> str:
    """Map a grabbed handle id to the action it starts."""
    if not corner:
        return Action.DRAG
    if corner in (Corner.ML, Corner.MR):
        return Action.SCALE_X
    if corner in (Corner.MT, Corner.MB):
        return Action.SCALE_Y
    if corner == Corner.MTR:
        return Action.ROTATE
    return Action.SCALE


# ----------------------------
# Cursor constants
# ----------------------------

class Cursor:
    """Symbolic cursor names pushed to the host."""
    DEFAULT = "default"
    MOVE = "move"
    ROTATE = "crosshair"
    N_RESIZE = "n-resize"
    S_RESIZE = "s-resize"
    E_RESIZE = "e-resize"
    W_RESIZE = "w-resize"
    NE_RESIZE = "ne-resize"
    NW_RESIZE = "nw-resize"
    SE_RESIZE = "se-resize"
    SW_RESIZE = "sw-resize"


CURSOR_MAP: Dict[str, str] = {
    Corner.TR: Cursor.NE_RESIZE,
    Corner.BR: Cursor.SE_RESIZE,
    Corner.BL: Cursor.SW_RESIZE,
    Corner.TL: Cursor.NW_RESIZE,
    Corner.ML: Cursor.W_RESIZE,
    Corner.MT: Cursor.N_RESIZE,
    Corner.MR: Cursor.E_RESIZE,
    Corner.MB: Cursor.S_RESIZE,
}


# ----------------------------
# Scene events
# ----------------------------

class SceneEvents:
    """Names of notifications emitted by the scene and its objects."""
    MOUSE_DOWN = "mouse:down"
    MOUSE_MOVE = "mouse:move"
    MOUSE_UP = "mouse:up"
    OBJECT_MOVING = "object:moving"
    OBJECT_SCALING = "object:scaling"
    OBJECT_ROTATING = "object:rotating"
    OBJECT_MODIFIED = "object:modified"
    OBJECT_SELECTED = "object:selected"
    SELECTION_CREATED = "selection:created"
    SELECTION_CLEARED = "selection:cleared"
    BEFORE_RENDER = "before:render"
    AFTER_RENDER = "after:render"


class ObjectEvents:
    """Names of notifications emitted on individual objects."""
    MOUSE_DOWN = "mousedown"
    MOUSE_MOVE = "mousemove"
    MOUSE_UP = "mouseup"
    MOVING = "moving"
    SCALING = "scaling"
    ROTATING = "rotating"
    MODIFIED = "modified"
    SELECTED = "selected"


# ----------------------------
# Pointer input
# ----------------------------

@dataclass(frozen=True)
class PointerEvent:
    """A pointer press/move/release in host coordinate space.

    ``x`` and ``y`` are host coordinates; the scene subtracts the surface
    offset to get canvas-local coordinates.
    """
    x: float
    y: float
    primary: bool = True   # primary button pressed
    shift: bool = False
    alt: bool = False


@dataclass(frozen=True)
class Offset:
    """Translation from host coordinate space to canvas-local space."""
    left: float = 0.0
    top: float = 0.0


@dataclass
class EventInfo:
    """Payload delivered to notification subscribers."""
    target: Optional[object] = None
    e: Optional[PointerEvent] = None


# ----------------------------
# Object geometry
# ----------------------------

NUMERIC_GEOMETRY_FIELDS = (
    "left", "top", "width", "height",
    "scale_x", "scale_y", "angle",
)
GEOMETRY_FIELDS = NUMERIC_GEOMETRY_FIELDS + ("origin_x", "origin_y")


@dataclass
class Geometry:
    """Committed transform state of one scene object.

    ``left``/``top`` locate the origin point named by ``origin_x``/``origin_y``.
    ``width``/``height`` are unscaled; ``scale_x``/``scale_y`` may be negative
    (mirrored). ``angle`` is in degrees, normalized into [0, 360).
    """
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    angle: float = 0.0
    origin_x: str = Origin.CENTER
    origin_y: str = Origin.CENTER

    def __post_init__(self):
        validate_origin(self.origin_x, self.origin_y)
        for name in NUMERIC_GEOMETRY_FIELDS:
            check_finite(name, getattr(self, name))
        if self.width < 0 or self.height < 0:
            raise GeometryError(
                f"width/height must be non-negative, got {self.width}x{self.height}"
            )
        if self.scale_x == 0 or self.scale_y == 0:
            raise GeometryError("scale_x/scale_y must be non-zero")
        self.angle = normalize_angle(self.angle)

    def copy(self) -> "Geometry":
        return Geometry(**{name: getattr(self, name) for name in GEOMETRY_FIELDS})


def normalize_angle(angle: float) -> float:
    """Fold ``angle`` (degrees) into [0, 360)."""
    angle = angle % 360
    # -1e-17 % 360 rounds to 360.0
    return 0.0 if angle >= 360 else angle


def format_geometry(obj) -> str:
    """One-line geometry summary used in trace and status messages."""
    return (
        f"{obj.kind}#{obj.node_id} left={obj.left:.2f} top={obj.top:.2f} "
        f"w={obj.width:.2f} h={obj.height:.2f} "
        f"sx={obj.scale_x:.3f} sy={obj.scale_y:.3f} angle={obj.angle:.2f} "
        f"origin=({obj.origin_x},{obj.origin_y})"
    )
