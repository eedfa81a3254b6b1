"""
canvas/items.py

Scene objects: the transformable base, leaf shapes and transient groups.

Every object keeps an explicit Geometry plus a cache of its nine control
handle positions (``o_coords``). Any geometry mutator marks that cache
stale; ``set_coords()`` refreshes it and hit tests refuse to run against a
stale cache.
"""

from __future__ import annotations

import itertools
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from canvas.geometry import (
    Point,
    bounding_box,
    intersect_polygon_rectangle,
    point_in_quad,
    rotate_point,
)
from canvas.mixins import EventedMixin, GestureStateMixin, StyleMixin
from debug_trace import trace
from models import (
    Corner,
    GEOMETRY_FIELDS,
    Geometry,
    GeometryError,
    Origin,
    StaleCoordsError,
    check_finite,
    format_geometry,
    normalize_angle,
    validate_origin,
)


# Object ids are unique for the life of the process, hence within any scene.
_node_ids = itertools.count(1)


class TransformableItem(EventedMixin, StyleMixin, GestureStateMixin):
    """
    Base class for anything that can be placed, hit-tested and transformed.

    Holds the committed geometry, the selection flag and the control-handle
    cache. Subclasses add what they carry (shape data, group membership).
    """

    KIND = "object"

    def __init__(self, geometry: Optional[Geometry] = None):
        EventedMixin.__init__(self)
        StyleMixin.__init__(self)
        GestureStateMixin.__init__(self)
        self.node_id = next(_node_ids)
        self.kind = self.KIND
        self.geometry = geometry if geometry is not None else Geometry()
        self.active = False
        self.group_id: Optional[int] = None  # set while a member of a group
        self.o_coords: Optional[Dict[str, Point]] = None
        self.current_width = 0.0
        self.current_height = 0.0
        self._coords_dirty = True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind}#{self.node_id}>"

    # ---- geometry accessors ----

    @property
    def left(self) -> float:
        return self.geometry.left

    @property
    def top(self) -> float:
        return self.geometry.top

    @property
    def width(self) -> float:
        return self.geometry.width

    @property
    def height(self) -> float:
        return self.geometry.height

    @property
    def scale_x(self) -> float:
        return self.geometry.scale_x

    @property
    def scale_y(self) -> float:
        return self.geometry.scale_y

    @property
    def angle(self) -> float:
        return self.geometry.angle

    @property
    def origin_x(self) -> str:
        return self.geometry.origin_x

    @property
    def origin_y(self) -> str:
        return self.geometry.origin_y

    # ---- geometry mutators ----

    def set_position(self, left: float, top: float) -> None:
        check_finite("left", left)
        check_finite("top", top)
        self.geometry.left = float(left)
        self.geometry.top = float(top)
        self._coords_dirty = True

    def set_scale(self, scale_x: float, scale_y: float) -> None:
        """Set both scale factors.

        Raises:
            GeometryError: if either factor is zero.
        """
        if scale_x == 0 or scale_y == 0:
            raise GeometryError(f"{self!r}: scale must be non-zero, got ({scale_x}, {scale_y})")
        check_finite("scale_x", scale_x)
        check_finite("scale_y", scale_y)
        self.geometry.scale_x = float(scale_x)
        self.geometry.scale_y = float(scale_y)
        self._coords_dirty = True

    def set_size(self, width: float, height: float) -> None:
        if width < 0 or height < 0:
            raise GeometryError(f"{self!r}: size must be non-negative, got {width}x{height}")
        check_finite("width", width)
        check_finite("height", height)
        self.geometry.width = float(width)
        self.geometry.height = float(height)
        self._coords_dirty = True

    def set_angle(self, angle: float) -> None:
        """Set rotation in degrees; the value is folded into [0, 360)."""
        check_finite("angle", angle)
        self.geometry.angle = normalize_angle(float(angle))
        self._coords_dirty = True

    def set_origin(self, origin_x: str, origin_y: str) -> None:
        """Change which point ``left``/``top`` refer to, without moving the object.

        Raises:
            GeometryError: on an unknown origin value.
        """
        validate_origin(origin_x, origin_y)
        center = self.get_center_point()
        self.geometry.origin_x = origin_x
        self.geometry.origin_y = origin_y
        self.set_position_by_origin(center, Origin.CENTER, Origin.CENTER)

    def set_active(self, active: bool) -> None:
        self.active = bool(active)

    # ---- origin math ----

    def get_width(self) -> float:
        """Scaled (signed) width."""
        return self.width * self.scale_x

    def get_height(self) -> float:
        """Scaled (signed) height."""
        return self.height * self.scale_y

    def _angle_radians(self) -> float:
        return math.radians(self.angle)

    def translate_to_center_point(self, point: Point, origin_x: str, origin_y: str) -> Point:
        """Return the center of this object if ``point`` were its (origin_x, origin_y) point."""
        cx, cy = point.x, point.y
        if origin_x == Origin.LEFT:
            cx = point.x + self.get_width() / 2
        elif origin_x == Origin.RIGHT:
            cx = point.x - self.get_width() / 2
        if origin_y == Origin.TOP:
            cy = point.y + self.get_height() / 2
        elif origin_y == Origin.BOTTOM:
            cy = point.y - self.get_height() / 2
        return rotate_point(Point(cx, cy), point, self._angle_radians())

    def translate_to_origin_point(self, center: Point, origin_x: str, origin_y: str) -> Point:
        """Return the (origin_x, origin_y) point of this object if its center were ``center``."""
        x, y = center.x, center.y
        if origin_x == Origin.LEFT:
            x = center.x - self.get_width() / 2
        elif origin_x == Origin.RIGHT:
            x = center.x + self.get_width() / 2
        if origin_y == Origin.TOP:
            y = center.y - self.get_height() / 2
        elif origin_y == Origin.BOTTOM:
            y = center.y + self.get_height() / 2
        return rotate_point(Point(x, y), center, self._angle_radians())

    def get_center_point(self) -> Point:
        return self.translate_to_center_point(Point(self.left, self.top), self.origin_x, self.origin_y)

    def to_local_point(self, point: Point, origin_x: str, origin_y: str) -> Point:
        """Express ``point`` in the unrotated frame anchored at the (origin_x, origin_y) point."""
        center = self.get_center_point()
        x, y = center.x, center.y
        if origin_x == Origin.LEFT:
            x = center.x - self.get_width() / 2
        elif origin_x == Origin.RIGHT:
            x = center.x + self.get_width() / 2
        if origin_y == Origin.TOP:
            y = center.y - self.get_height() / 2
        elif origin_y == Origin.BOTTOM:
            y = center.y + self.get_height() / 2
        unrotated = rotate_point(point, center, -self._angle_radians())
        return unrotated.subtract(Point(x, y))

    def set_position_by_origin(self, pos: Point, origin_x: str, origin_y: str) -> None:
        """Move the object so its (origin_x, origin_y) point lands on ``pos``."""
        center = self.translate_to_center_point(pos, origin_x, origin_y)
        position = self.translate_to_origin_point(center, self.origin_x, self.origin_y)
        self.set_position(position.x, position.y)

    # ---- control handle cache ----

    @property
    def coords_stale(self) -> bool:
        return self._coords_dirty or self.o_coords is None

    def set_coords(self) -> None:
        """Recompute the nine control handle positions from the current geometry."""
        stroke = self.stroke_width if self.stroke_width > 1 else 0
        self.current_width = abs((self.width + stroke) * self.scale_x) + self.padding * 2
        self.current_height = abs((self.height + stroke) * self.scale_y) + self.padding * 2

        theta = self._angle_radians()
        center = self.get_center_point()
        hw = self.current_width / 2
        hh = self.current_height / 2

        def corner(dx: float, dy: float) -> Point:
            return rotate_point(Point(center.x + dx, center.y + dy), center, theta)

        tl = corner(-hw, -hh)
        tr = corner(hw, -hh)
        br = corner(hw, hh)
        bl = corner(-hw, hh)
        mt = Point((tl.x + tr.x) / 2, (tl.y + tr.y) / 2)
        self.o_coords = {
            Corner.TL: tl,
            Corner.TR: tr,
            Corner.BR: br,
            Corner.BL: bl,
            Corner.ML: Point((tl.x + bl.x) / 2, (tl.y + bl.y) / 2),
            Corner.MT: mt,
            Corner.MR: Point((tr.x + br.x) / 2, (tr.y + br.y) / 2),
            Corner.MB: Point((br.x + bl.x) / 2, (br.y + bl.y) / 2),
            Corner.MTR: Point(
                mt.x + math.sin(theta) * self.rotating_point_offset,
                mt.y - math.cos(theta) * self.rotating_point_offset,
            ),
        }
        self._coords_dirty = False
        trace(f"set_coords {format_geometry(self)}", "COORDS")

    def _checked_coords(self) -> Dict[str, Point]:
        if self.coords_stale:
            raise StaleCoordsError(
                f"{self!r}: control handle cache is stale; call set_coords() after mutating geometry"
            )
        return self.o_coords

    def corners(self) -> Tuple[Point, Point, Point, Point]:
        """The four outer corners (tl, tr, br, bl) from the cache."""
        c = self._checked_coords()
        return (c[Corner.TL], c[Corner.TR], c[Corner.BR], c[Corner.BL])

    # ---- hit tests in this object's own coordinate frame ----

    def contains_point(self, point: Point) -> bool:
        """Even-odd test of ``point`` against the object's rotated, scaled outline."""
        return point_in_quad(point, self.corners())

    def corner_at(self, point: Point) -> Optional[str]:
        """Nearest control handle whose square hit zone holds ``point``, or None."""
        coords = self._checked_coords()
        half = self.corner_size / 2
        best: Optional[str] = None
        best_dist = math.inf
        for corner_id in Corner.ALL:
            if corner_id == Corner.MTR and not self.has_rotating_point:
                continue
            c = coords[corner_id]
            if abs(point.x - c.x) > half or abs(point.y - c.y) > half:
                continue
            dist = point.distance_to(c)
            if dist < best_dist:
                best, best_dist = corner_id, dist
        return best

    def intersects_with_rect(self, p1: Point, p2: Point) -> bool:
        return intersect_polygon_rectangle(self.corners(), p1, p2)

    def is_contained_within_rect(self, p1: Point, p2: Point) -> bool:
        min_x, min_y, max_x, max_y = bounding_box(self.corners())
        return (
            min(p1.x, p2.x) < min_x
            and max_x < max(p1.x, p2.x)
            and min(p1.y, p2.y) < min_y
            and max_y < max(p1.y, p2.y)
        )

    def get_bounding_rect(self) -> Tuple[float, float, float, float]:
        """Axis-aligned (left, top, width, height) of the rotated outline."""
        min_x, min_y, max_x, max_y = bounding_box(self.corners())
        return (min_x, min_y, max_x - min_x, max_y - min_y)


class ShapeItem(TransformableItem):
    """
    A leaf object: one drawable shape.

    ``shape`` names what the renderer should draw ("rect" or "ellipse");
    the engine itself treats every shape as its bounding quad.
    """

    KIND = "shape"
    SHAPES = ("rect", "ellipse")
    OPTION_KEYS = GEOMETRY_FIELDS + (
        "shape",
        "fill_color",
        "border_color",
        "padding",
        "stroke_width",
        "has_controls",
        "has_rotating_point",
    )

    def __init__(
        self,
        left: float,
        top: float,
        width: float,
        height: float,
        shape: str = "rect",
        scale_x: float = 1.0,
        scale_y: float = 1.0,
        angle: float = 0.0,
        origin_x: str = Origin.CENTER,
        origin_y: str = Origin.CENTER,
    ):
        if shape not in self.SHAPES:
            raise GeometryError(f"shape must be one of {self.SHAPES}, got {shape!r}")
        super().__init__(Geometry(
            left=float(left),
            top=float(top),
            width=float(width),
            height=float(height),
            scale_x=float(scale_x),
            scale_y=float(scale_y),
            angle=float(angle),
            origin_x=origin_x,
            origin_y=origin_y,
        ))
        self.shape = shape
        self.fill_color = "#4A90D9"

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ShapeItem":
        """Build a shape from a flat options mapping.

        Args:
            options: Geometry fields plus optional style keys

        Returns:
            The new ShapeItem

        Raises:
            GeometryError: on unknown keys or invalid values.
        """
        unknown = sorted(set(options) - set(cls.OPTION_KEYS))
        if unknown:
            raise GeometryError(f"Unknown shape option(s): {', '.join(unknown)}")
        geometry_kwargs = {k: options[k] for k in GEOMETRY_FIELDS if k in options}
        for required in ("left", "top", "width", "height"):
            geometry_kwargs.setdefault(required, 0.0)
        item = cls(shape=options.get("shape", "rect"), **geometry_kwargs)
        for key in ("fill_color", "border_color", "padding", "stroke_width",
                    "has_controls", "has_rotating_point"):
            if key in options:
                setattr(item, key, options[key])
        return item


class GroupItem(TransformableItem):
    """
    A transient selection of two or more objects handled as one.

    The group stores member ids only and resolves them through the scene's
    object arena. While grouped, each member's ``left``/``top`` are relative
    to the group's center; ``destroy()`` folds the group's transform back
    into every member.

    Args:
        objects: Members in z-order (at least two, all distinct)
        arena: Non-owning id -> object mapping used to resolve members
    """

    KIND = "group"

    def __init__(self, objects: Sequence[TransformableItem], arena: Mapping[int, TransformableItem]):
        ids = [obj.node_id for obj in objects]
        if len(ids) < 2:
            raise GeometryError("A group needs at least two members")
        if len(set(ids)) != len(ids):
            raise GeometryError("Group members must be distinct")
        for obj in objects:
            if isinstance(obj, GroupItem):
                raise GeometryError("Groups cannot be nested")
            if obj.group_id is not None:
                raise GeometryError(f"{obj!r} already belongs to group #{obj.group_id}")
        super().__init__(Geometry(origin_x=Origin.CENTER, origin_y=Origin.CENTER))
        self.stroke_width = 0
        self.padding = 0
        self._arena = arena
        self._member_ids: List[int] = []
        for obj in objects:
            self._adopt(obj)
        self._calc_bounds()
        self._update_objects_coords()
        self.set_coords()
        trace(f"Group #{self.node_id} created with {ids}", "GROUP")

    # ---- membership ----

    def members(self) -> List[TransformableItem]:
        return [self._arena[i] for i in self._member_ids]

    def contains(self, obj: TransformableItem) -> bool:
        return obj.node_id in self._member_ids

    def size(self) -> int:
        return len(self._member_ids)

    def _adopt(self, obj: TransformableItem) -> None:
        self._member_ids.append(obj.node_id)
        obj.group_id = self.node_id

    def add_with_update(self, obj: TransformableItem) -> None:
        """Add ``obj`` and recompute the group's bounds from all members."""
        if self.contains(obj):
            return
        if isinstance(obj, GroupItem):
            raise GeometryError("Groups cannot be nested")
        self._restore_objects_state()
        self._adopt(obj)
        self._rebuild()

    def remove_with_update(self, obj: TransformableItem) -> None:
        """Remove ``obj`` (returned to canvas coordinates) and recompute bounds."""
        if not self.contains(obj):
            return
        self._restore_objects_state()
        self._member_ids.remove(obj.node_id)
        if self._member_ids:
            self._rebuild()

    def _rebuild(self) -> None:
        for obj in self.members():
            obj.group_id = self.node_id
        self.reset_transform()
        self._calc_bounds()
        self._update_objects_coords()
        self.set_coords()

    def reset_transform(self) -> None:
        """Drop the group's own scale and rotation."""
        self.set_scale(1.0, 1.0)
        self.set_angle(0.0)

    def destroy(self) -> None:
        """Dissolve the group, releasing members in canvas coordinates.

        Calling this on an already empty group does nothing.
        """
        if not self._member_ids:
            return
        members = self.members()
        self._restore_objects_state()
        for obj in members:
            obj.set_active(False)
        self._member_ids = []
        trace(f"Group #{self.node_id} dissolved", "GROUP")

    # ---- coordinate bookkeeping ----

    def _calc_bounds(self) -> None:
        points: List[Point] = []
        for obj in self.members():
            obj.set_coords()
            points.extend(obj.corners())
        min_x, min_y, max_x, max_y = bounding_box(points)
        width = max_x - min_x
        height = max_y - min_y
        self.set_size(width, height)
        self.set_position(min_x + width / 2, min_y + height / 2)

    def _update_objects_coords(self) -> None:
        for obj in self.members():
            obj.set_position(obj.left - self.left, obj.top - self.top)
            obj._orig_has_controls = obj.has_controls
            obj.has_controls = False
            obj.set_coords()

    def _restore_objects_state(self) -> None:
        for obj in self.members():
            self._restore_object_state(obj)

    def _restore_object_state(self, obj: TransformableItem) -> None:
        """Fold this group's transform into ``obj`` and detach it."""
        pos = self.to_scene_point(Point(obj.left, obj.top))
        obj.set_angle(obj.angle + self.angle)
        obj.set_position(pos.x, pos.y)
        obj.set_scale(obj.scale_x * self.scale_x, obj.scale_y * self.scale_y)
        if obj._orig_has_controls is not None:
            obj.has_controls = obj._orig_has_controls
            obj._orig_has_controls = None
        obj.group_id = None
        obj.set_coords()

    def set_objects_coords(self) -> None:
        """Refresh every member's handle cache in group-relative space."""
        for obj in self.members():
            obj.set_coords()

    # ---- frame conversion ----

    def to_scene_point(self, point: Point) -> Point:
        """Map a point from this group's frame to canvas space."""
        scaled = point.scale(self.scale_x, self.scale_y)
        rotated = rotate_point(scaled, Point(0, 0), self._angle_radians())
        return rotated.add(Point(self.left, self.top))

    def to_group_point(self, point: Point) -> Point:
        """Map a canvas point into this group's frame (inverse of to_scene_point)."""
        rel = point.subtract(Point(self.left, self.top))
        unrotated = rotate_point(rel, Point(0, 0), -self._angle_radians())
        return Point(unrotated.x / self.scale_x, unrotated.y / self.scale_y)
