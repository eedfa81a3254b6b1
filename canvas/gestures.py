"""
canvas/gestures.py

Pointer gesture state machine for the editor scene.

A primary-button press either opens a marquee (nothing hit, or a click
outside the active group without shift) or a transform session on the
resolved target. Moves feed the open session; release closes it. Only
one session exists at a time: ``EditorScene._session`` holds either a
MarqueeSelector or a TransformSession, never both.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from canvas.geometry import Point
from canvas.items import GroupItem, TransformableItem
from debug_trace import trace, trace_call
from models import (
    Action,
    Corner,
    CURSOR_MAP,
    Geometry,
    ObjectEvents,
    OPPOSITE_ORIGIN,
    Origin,
    PointerEvent,
    SceneEvents,
    action_for_corner,
    format_geometry,
)
from settings import get_settings


# Proportional ("equally") vs independent two-axis scaling for Action.SCALE
SCALE_EQUALLY = "equally"
SCALE_FREE = "free"


def origin_for_corner(corner: Optional[str]) -> Tuple[str, str]:
    """Anchor a scale on the side opposite the grabbed handle."""
    if corner in (Corner.ML, Corner.TL, Corner.BL):
        origin_x = Origin.RIGHT
    elif corner in (Corner.MR, Corner.TR, Corner.BR):
        origin_x = Origin.LEFT
    else:
        origin_x = Origin.CENTER
    if corner in (Corner.TL, Corner.MT, Corner.TR):
        origin_y = Origin.BOTTOM
    elif corner in (Corner.BL, Corner.MB, Corner.BR):
        origin_y = Origin.TOP
    else:
        origin_y = Origin.CENTER
    return origin_x, origin_y


@dataclass
class TransformSession:
    """Live state of a drag, scale or rotate gesture.

    ``origin_x``/``origin_y`` name the side that stays visually anchored;
    they toggle when a scale crosses through zero on that axis.
    """
    target: TransformableItem
    action: str
    corner: Optional[str]
    ex: float
    ey: float
    offset_x: float
    offset_y: float
    theta: float              # original angle, radians
    origin_x: str
    origin_y: str
    original_origin_x: str
    original_origin_y: str
    mouse_x_sign: int = 1
    mouse_y_sign: int = 1
    scale_mode: Optional[str] = None

    @property
    def original(self) -> Geometry:
        """Gesture-start geometry, as saved on the target by save_state()."""
        return self.target.original


@dataclass
class MarqueeSelector:
    """Rubber-band rectangle anchored at (ex, ey) with signed extent (left, top)."""
    ex: float
    ey: float
    left: float = 0.0
    top: float = 0.0

    def rect(self) -> Tuple[Point, Point]:
        """Normalized (top-left, bottom-right) corners."""
        x1, x2 = self.ex, self.ex + self.left
        y1, y2 = self.ey, self.ey + self.top
        return (Point(min(x1, x2), min(y1, y2)), Point(max(x1, x2), max(y1, y2)))


def _local_origin(visual_origin: str, scale: float) -> str:
    """Translate a visual anchor side into the object's own side for that axis."""
    if scale < 0:
        return OPPOSITE_ORIGIN[visual_origin]
    return visual_origin


def _limit_scale(value: float, limit: float) -> float:
    if abs(value) < limit:
        return math.copysign(limit, value)
    return value


def _axis_scale(displacement: float, extent: float, current: float) -> float:
    # a zero-extent axis (a flat line) has nothing to stretch
    if extent == 0:
        return current
    return displacement / extent


class GestureMixin:
    """
    Mixin for EditorScene turning pointer events into gestures.

    Expects HitTestMixin, SelectionMixin and EventedMixin on the host, plus
    ``render_all()``, ``render_top()`` and ``set_cursor()``.
    """

    def _init_gestures(self):
        self._session = None  # Optional[Union[TransformSession, MarqueeSelector]]
        self._last_pointer: Optional[PointerEvent] = None

    @property
    def current_transform(self) -> Optional[TransformSession]:
        return self._session if isinstance(self._session, TransformSession) else None

    @property
    def group_selector(self) -> Optional[MarqueeSelector]:
        return self._session if isinstance(self._session, MarqueeSelector) else None

    # ---- pointer down ----

    def on_pointer_down(self, e: PointerEvent) -> None:
        """Start a marquee or a transform session."""
        if not e.primary:
            return
        if self._session is not None:
            trace("pointer down ignored: session already open", "GESTURE")
            return
        self._last_pointer = e

        target = self.find_target(e)
        if self._should_clear_selection(e, target):
            p = self.get_pointer(e)
            self._session = MarqueeSelector(ex=p.x, ey=p.y)
            self.deactivate_all_with_dispatch(e)
            target = None
            trace(f"marquee opened at ({p.x:.1f}, {p.y:.1f})", "GESTURE")
        else:
            if self._should_handle_group_logic(e, target):
                self.handle_group_logic(e, target)
                target = self._active_group
            elif target is not self._active_group:
                self.deactivate_all()
                self.set_active_object(target, e)
            if target is not None:
                self._setup_current_transform(e, target)

        self.render_all()
        self.emit(SceneEvents.MOUSE_DOWN, target=target, e=e)
        if target is not None:
            target.emit(ObjectEvents.MOUSE_DOWN, target=target, e=e)

    def _should_clear_selection(self, e: PointerEvent, target: Optional[TransformableItem]) -> bool:
        group = self._active_group
        if target is None:
            return True
        return (
            group is not None
            and not group.contains(target)
            and group is not target
            and not e.shift
        )

    def _should_handle_group_logic(self, e: PointerEvent, target: TransformableItem) -> bool:
        if not e.shift:
            return False
        active = self._active_object
        return self._active_group is not None or (active is not None and active is not target)

    @trace_call("GROUP")
    def handle_group_logic(self, e: PointerEvent, target: TransformableItem) -> None:
        """Shift-click: toggle ``target`` in the active group, or pair it with the active object."""
        if target is self._active_group:
            # re-resolve to the member (or neighbour) under the pointer
            target = self.find_target(e, skip_group=True)
            if target is None or isinstance(target, GroupItem):
                return

        group = self._active_group
        if group is not None:
            if group.contains(target):
                group.remove_with_update(target)
                target.set_active(False)
                if group.size() == 1:
                    sole = group.members()[0]
                    self.discard_active_group()
                    self.set_active_object(sole, e)
                    trace(f"group dissolved; {sole!r} selected", "GROUP")
                    return
                trace(f"{target!r} removed from {group!r}", "GROUP")
            else:
                group.add_with_update(target)
                target.set_active(True)
                trace(f"{target!r} added to {group!r}", "GROUP")
            group.set_active(True)
        elif self._active_object is not None and self._active_object is not target:
            group = self.create_group([self._active_object, target])
            target.set_active(True)
            self.set_active_group(group, e)
        else:
            target.set_active(True)

    def _setup_current_transform(self, e: PointerEvent, target: TransformableItem) -> None:
        pointer = self.get_pointer(e)
        corner = self.find_target_corner(e, target)
        action = action_for_corner(corner)
        origin_x, origin_y = origin_for_corner(corner)

        self._session = TransformSession(
            target=target,
            action=action,
            corner=corner,
            ex=pointer.x,
            ey=pointer.y,
            offset_x=pointer.x - target.left,
            offset_y=pointer.y - target.top,
            theta=math.radians(target.angle),
            origin_x=origin_x,
            origin_y=origin_y,
            original_origin_x=origin_x,
            original_origin_y=origin_y,
        )
        target.save_state()
        trace(f"transform {action} on {target!r} corner={corner} origin=({origin_x},{origin_y})", "GESTURE")

    # ---- pointer move ----

    def on_pointer_move(self, e: PointerEvent) -> None:
        """Feed the open session, or update the hover cursor when idle."""
        self._last_pointer = e
        session = self._session
        target = None
        if isinstance(session, MarqueeSelector):
            p = self.get_pointer(e)
            session.left = p.x - session.ex
            session.top = p.y - session.ey
            self.render_top()
        elif session is None:
            target = self.find_target(e)
            self._set_cursor_from_event(e, target)
        else:
            target = session.target
            self._transform(e, session)

        self.emit(SceneEvents.MOUSE_MOVE, target=target, e=e)
        if target is not None:
            target.emit(ObjectEvents.MOUSE_MOVE, target=target, e=e)

    def _transform(self, e: PointerEvent, t: TransformSession) -> None:
        target = t.target
        pointer = self.get_pointer(e)
        target.is_moving = True

        reset = False
        if t.action in Action.SCALING and self._needs_origin_reset(e, t):
            self._reset_current_transform(e, t)
            reset = True

        if t.action == Action.ROTATE:
            self._rotate_object(pointer, t)
            self._emit_transform(SceneEvents.OBJECT_ROTATING, ObjectEvents.ROTATING, target, e)
        elif t.action == Action.SCALE:
            proportional = e.shift != get_settings().settings.canvas.gestures.uniform_scaling
            mode = SCALE_EQUALLY if proportional else SCALE_FREE
            if t.scale_mode is not None and t.scale_mode != mode and not reset:
                self._reset_current_transform(e, t)
            t.scale_mode = mode
            self._scale_object(pointer, t, SCALE_EQUALLY if proportional else None)
            target._scaling = True
            self._emit_transform(SceneEvents.OBJECT_SCALING, ObjectEvents.SCALING, target, e)
        elif t.action == Action.SCALE_X:
            self._scale_object(pointer, t, "x")
            target._scaling = True
            self._emit_transform(SceneEvents.OBJECT_SCALING, ObjectEvents.SCALING, target, e)
        elif t.action == Action.SCALE_Y:
            self._scale_object(pointer, t, "y")
            target._scaling = True
            self._emit_transform(SceneEvents.OBJECT_SCALING, ObjectEvents.SCALING, target, e)
        else:
            self._translate_object(pointer, t)
            self.set_cursor(get_settings().settings.canvas.cursors.move)
            self._emit_transform(SceneEvents.OBJECT_MOVING, ObjectEvents.MOVING, target, e)

        target.set_coords()
        if isinstance(target, GroupItem):
            target.set_objects_coords()
        self.render_all()

    def _emit_transform(self, scene_event: str, object_event: str,
                        target: TransformableItem, e: PointerEvent) -> None:
        self.emit(scene_event, target=target, e=e)
        target.emit(object_event, target=target, e=e)

    def _needs_origin_reset(self, e: PointerEvent, t: TransformSession) -> bool:
        centered = t.origin_x == Origin.CENTER and t.origin_y == Origin.CENTER
        # alt switches to center-anchored scaling; releasing it switches back
        return (e.alt and not centered) or (not e.alt and centered)

    def _reset_current_transform(self, e: PointerEvent, t: TransformSession) -> None:
        """Rewind the target to its gesture-start scale/position and re-anchor."""
        target = t.target
        target.set_scale(t.original.scale_x, t.original.scale_y)
        target.set_position(t.original.left, t.original.top)

        if e.alt:
            if t.origin_x != Origin.CENTER:
                t.mouse_x_sign = -1 if t.origin_x == Origin.RIGHT else 1
            if t.origin_y != Origin.CENTER:
                t.mouse_y_sign = -1 if t.origin_y == Origin.BOTTOM else 1
            t.origin_x = Origin.CENTER
            t.origin_y = Origin.CENTER
        else:
            t.origin_x = t.original_origin_x
            t.origin_y = t.original_origin_y
        trace(f"transform reset, origin=({t.origin_x},{t.origin_y})", "GESTURE")

    def _rotate_object(self, pointer: Point, t: TransformSession) -> None:
        target = t.target
        center = target.get_center_point()
        last_angle = math.atan2(t.ey - center.y, t.ex - center.x)
        cur_angle = math.atan2(pointer.y - center.y, pointer.x - center.x)
        target.set_angle(math.degrees(cur_angle - last_angle + t.theta))
        # rotation pivots on the center regardless of the stored origin
        target.set_position_by_origin(center, Origin.CENTER, Origin.CENTER)

    def _translate_object(self, pointer: Point, t: TransformSession) -> None:
        # absolute, not incremental, so repeated moves cannot drift
        t.target.set_position(pointer.x - t.offset_x, pointer.y - t.offset_y)

    def _scale_object(self, pointer: Point, t: TransformSession, by: Optional[str] = None) -> None:
        """Scale the session target so the anchored side stays put.

        Args:
            pointer: Canvas-local pointer
            t: Open transform session
            by: "equally" (proportional), "x", "y", or None for both axes
        """
        target = t.target
        local_ox = _local_origin(t.origin_x, target.scale_x)
        local_oy = _local_origin(t.origin_y, target.scale_y)

        constraint = target.translate_to_origin_point(target.get_center_point(), local_ox, local_oy)
        local = target.to_local_point(pointer, local_ox, local_oy)

        # lx/ly: signed displacement such that scale = lx / width
        lx, ly = local.x, local.y
        if local_ox == Origin.RIGHT:
            lx = -lx
        elif local_ox == Origin.CENTER:
            lx *= t.mouse_x_sign * 2
            if lx < 0:
                t.mouse_x_sign = -t.mouse_x_sign
                lx = -lx
            lx = math.copysign(lx, target.scale_x)
        if local_oy == Origin.BOTTOM:
            ly = -ly
        elif local_oy == Origin.CENTER:
            ly *= t.mouse_y_sign * 2
            if ly < 0:
                t.mouse_y_sign = -t.mouse_y_sign
                ly = -ly
            ly = math.copysign(ly, target.scale_y)

        old_sx, old_sy = target.scale_x, target.scale_y
        new_sx, new_sy = old_sx, old_sy
        orig = t.original
        if by == SCALE_EQUALLY:
            dist = lx * math.copysign(1, orig.scale_x) + ly * math.copysign(1, orig.scale_y)
            last_dist = (
                target.height * abs(orig.scale_y)
                + target.width * abs(orig.scale_x)
                + target.padding * 2
                - target.stroke_width * 2
                + get_settings().settings.canvas.gestures.scale_fudge
            )
            if last_dist != 0:
                new_sx = orig.scale_x * dist / last_dist
                new_sy = orig.scale_y * dist / last_dist
        else:
            if by in (None, "x"):
                new_sx = _axis_scale(lx, target.width + target.padding, old_sx)
            if by in (None, "y"):
                new_sy = _axis_scale(ly, target.height + target.padding, old_sy)

        new_sx = _limit_scale(new_sx, target.min_scale_limit)
        new_sy = _limit_scale(new_sy, target.min_scale_limit)

        # crossing through zero mirrors the object: the anchored side swaps
        if (new_sx < 0) != (old_sx < 0) and t.origin_x != Origin.CENTER:
            t.origin_x = OPPOSITE_ORIGIN[t.origin_x]
        if (new_sy < 0) != (old_sy < 0) and t.origin_y != Origin.CENTER:
            t.origin_y = OPPOSITE_ORIGIN[t.origin_y]

        target.set_scale(new_sx, new_sy)
        # the same object-local side is pinned to the same canvas point
        target.set_position_by_origin(constraint, local_ox, local_oy)

    # ---- pointer up ----

    def on_pointer_up(self, e: PointerEvent) -> None:
        """Close the open session and settle selection, caches and cursor."""
        self._last_pointer = e
        session = self._session
        target = None
        if isinstance(session, TransformSession):
            target = session.target
            target._scaling = False
            for obj in self.get_objects():
                obj.set_coords()
            target.set_coords()
            target.is_moving = False
            if target.has_state_changed():
                trace(f"modified {format_geometry(target)}", "GESTURE")
                self.emit(SceneEvents.OBJECT_MODIFIED, target=target, e=e)
                target.emit(ObjectEvents.MODIFIED, target=target, e=e)

        self._session = None

        if isinstance(session, MarqueeSelector):
            self.find_selected_objects(e, session)

        group = self._active_group
        if group is not None:
            group.set_objects_coords()
            group.is_moving = False

        self.render_all()
        self._set_cursor_from_event(e, self.find_target(e))

        self.emit(SceneEvents.MOUSE_UP, target=target, e=e)
        if target is not None:
            target.emit(ObjectEvents.MOUSE_UP, target=target, e=e)

    def pointer_lost(self, e: Optional[PointerEvent] = None) -> None:
        """Treat a lost pointer (capture lost, window deactivated) as a release."""
        if self._session is None:
            return
        if e is None:
            last = self._last_pointer
            e = PointerEvent(last.x, last.y) if last is not None else PointerEvent(0.0, 0.0)
        trace("pointer lost; closing session", "GESTURE")
        self.on_pointer_up(e)

    def find_selected_objects(self, e: PointerEvent, selector: MarqueeSelector) -> None:
        """Resolve a released marquee into a selection."""
        p1, p2 = selector.rect()
        matches = []
        for obj in self.get_objects():
            if obj.intersects_with_rect(p1, p2) or obj.is_contained_within_rect(p1, p2):
                obj.set_active(True)
                matches.append(obj)

        if len(matches) == 1:
            self.set_active_object(matches[0], e)
        elif len(matches) > 1:
            self.set_active_group(self.create_group(matches), e)
        trace(f"marquee selected {len(matches)} object(s)", "GESTURE")

    # ---- cursor ----

    def _set_cursor_from_event(self, e: PointerEvent, target: Optional[TransformableItem]) -> None:
        cursors = get_settings().settings.canvas.cursors
        if target is None:
            self.set_cursor(cursors.default)
            return
        corner = self.find_target_corner(e, target)
        if not corner:
            self.set_cursor(cursors.hover)
        elif corner in CURSOR_MAP:
            self.set_cursor(CURSOR_MAP[corner])
        elif corner == Corner.MTR and target.has_rotating_point:
            self.set_cursor(cursors.rotation)
        else:
            self.set_cursor(cursors.default)
