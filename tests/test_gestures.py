"""Pointer gesture state machine: drag, scale, rotate and session lifetime."""
from __future__ import annotations

import pytest

from canvas.items import ShapeItem
from models import Action, Corner, Origin, PointerEvent

from conftest import click, drag, move, press, rect_at, release


def _kinds(events, name):
    return [target for n, target in events if n == name]


@pytest.fixture()
def box(scene):
    """Active 100x100 rectangle spanning (100, 100)..(200, 200)."""
    obj = rect_at(100, 100, 100, 100)
    scene.add(obj)
    click(scene, 150, 150)
    return obj


# ---------------------------------------------------------------------------
# Drag
# ---------------------------------------------------------------------------

class TestDrag:
    def test_drag_moves_by_pointer_delta(self, scene, events):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        drag(scene, (50, 50), (80, 70))
        assert (obj.left, obj.top) == (30, 20)
        assert scene.get_active_object() is obj
        assert len(_kinds(events, "object:moving")) == 4
        assert _kinds(events, "object:modified") == [obj]

    def test_click_without_motion_is_not_a_modification(self, scene, events):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        click(scene, 50, 50)
        assert _kinds(events, "object:modified") == []
        assert scene.current_transform is None

    def test_session_records_start(self, scene):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        press(scene, 40, 30)
        t = scene.current_transform
        assert t.target is obj
        assert t.action == Action.DRAG
        assert t.corner is None
        assert (t.offset_x, t.offset_y) == (40, 30)
        assert t.original.left == 0
        release(scene, 40, 30)

    def test_session_shares_target_snapshot(self, scene):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        press(scene, 40, 30)
        t = scene.current_transform
        assert t.original is obj.original
        move(scene, 60, 30)
        assert t.original.left == 0
        assert obj.left == 20
        release(scene, 60, 30)

    def test_object_level_events(self, scene):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        seen = []
        for name in ("mousedown", "moving", "modified", "mouseup"):
            obj.on(name, lambda info, name=name: seen.append(name))
        drag(scene, (50, 50), (60, 50), steps=1)
        assert seen == ["mousedown", "moving", "modified", "mouseup"]

    def test_dragging_group_moves_members(self, scene):
        a = rect_at(0, 0, 100, 100)
        b = rect_at(200, 0, 100, 100)
        scene.add(a, b)
        click(scene, 50, 50)
        click(scene, 250, 50, shift=True)
        group = scene.get_active_group()

        drag(scene, (150, 50), (160, 60))
        assert (group.left, group.top) == (160, 60)
        # members stay relative while grouped
        assert (a.left, a.top) == (-150, -50)

        scene.discard_active_group()
        assert (a.left, a.top) == (10, 10)
        assert (b.left, b.top) == (210, 10)


# ---------------------------------------------------------------------------
# Scale
# ---------------------------------------------------------------------------

class TestScale:
    def test_edge_handle_scales_one_axis(self, scene, box):
        press(scene, 200, 150)
        assert scene.current_transform.corner == Corner.MR
        assert scene.current_transform.action == Action.SCALE_X
        move(scene, 180, 150)
        assert box.scale_x == pytest.approx(0.8)
        assert box.scale_y == 1
        assert box.left == pytest.approx(100)
        release(scene, 180, 150)

    def test_crossing_zero_mirrors_and_flips_anchor(self, scene, box):
        press(scene, 200, 150)
        t = scene.current_transform
        assert t.origin_x == Origin.LEFT

        move(scene, 180, 150)
        move(scene, 60, 150)
        assert box.scale_x == pytest.approx(-0.4)
        assert t.origin_x == Origin.RIGHT
        # the anchored edge stays at x=100
        assert box.left == pytest.approx(100)

        move(scene, 40, 150)
        assert box.scale_x == pytest.approx(-0.6)
        assert t.origin_x == Origin.RIGHT
        assert box.left == pytest.approx(100)
        release(scene, 40, 150)
        assert box.scale_x == pytest.approx(-0.6)

    def test_corner_scales_both_axes_freely(self, scene):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        click(scene, 50, 50)
        drag(scene, (100, 100), (150, 120))
        assert obj.scale_x == pytest.approx(1.5)
        assert obj.scale_y == pytest.approx(1.2)
        assert (obj.left, obj.top) == (0, 0)

    def test_shift_scales_proportionally(self, scene):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        click(scene, 50, 50)
        drag(scene, (100, 100), (150, 150), shift=True)
        # (150 + 150) / (100 + 100 - 2 * stroke + fudge)
        assert obj.scale_x == pytest.approx(300 / 199)
        assert obj.scale_y == pytest.approx(obj.scale_x)
        assert obj.left == pytest.approx(0)

    def test_uniform_scaling_setting_inverts_shift(self, scene, isolated_settings):
        isolated_settings.settings.canvas.gestures.uniform_scaling = True
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        click(scene, 50, 50)
        drag(scene, (100, 100), (150, 120), shift=True)
        assert obj.scale_x == pytest.approx(1.5)
        assert obj.scale_y == pytest.approx(1.2)

    def test_alt_scales_from_center(self, scene, box):
        press(scene, 200, 150)
        move(scene, 210, 150, alt=True)
        t = scene.current_transform
        assert (t.origin_x, t.origin_y) == (Origin.CENTER, Origin.CENTER)
        assert box.scale_x == pytest.approx(1.2)
        assert box.left == pytest.approx(90)

        # releasing alt rewinds and re-anchors on the opposite side
        move(scene, 210, 150)
        assert t.origin_x == Origin.LEFT
        assert box.scale_x == pytest.approx(1.1)
        assert box.left == pytest.approx(100)
        release(scene, 210, 150)

    def test_scale_is_clamped_to_minimum(self, scene, box):
        press(scene, 200, 150)
        move(scene, 100, 150)
        assert box.scale_x == pytest.approx(0.01)
        release(scene, 100, 150)

    def test_flat_object_keeps_scale_on_zero_axis(self, scene, events):
        line = rect_at(100, 100, 80, 0)
        scene.add(line)
        scene.set_active_object(line)
        press(scene, 140, 100)
        assert scene.current_transform.action == Action.SCALE_Y
        move(scene, 140, 140)
        assert (line.scale_x, line.scale_y) == (1, 1)
        release(scene, 140, 140)
        assert scene.current_transform is None
        assert _kinds(events, "object:modified") == []

    def test_flat_object_corner_scales_nonzero_axis(self, scene):
        line = rect_at(100, 100, 80, 0)
        scene.add(line)
        scene.set_active_object(line)
        drag(scene, (180, 100), (220, 130))
        assert line.scale_x == pytest.approx(1.5)
        assert line.scale_y == 1
        assert line.left == pytest.approx(100)

    def test_rotated_object_scales_along_its_own_axis(self, scene):
        obj = ShapeItem(0, 0, 100, 50, angle=90)
        scene.add(obj)
        scene.set_active_object(obj)
        # quarter turn: the right-middle handle now sits below the center
        press(scene, 0, 50)
        assert scene.current_transform.corner == Corner.MR
        move(scene, 0, 70)
        assert obj.scale_x == pytest.approx(1.2)
        assert obj.left == pytest.approx(0, abs=1e-9)
        assert obj.top == pytest.approx(10)
        release(scene, 0, 70)

    def test_scaling_emits_scaling_events(self, scene, events, box):
        drag(scene, (200, 150), (220, 150), steps=2)
        assert _kinds(events, "object:scaling") == [box, box]
        assert _kinds(events, "object:modified") == [box]


# ---------------------------------------------------------------------------
# Rotate
# ---------------------------------------------------------------------------

class TestRotate:
    @pytest.fixture()
    def wheel(self, scene):
        obj = ShapeItem(200, 200, 100, 100)
        scene.add(obj)
        scene.set_active_object(obj)
        return obj

    def test_rotation_handle_starts_rotate(self, scene, wheel):
        press(scene, 200, 110)
        assert scene.current_transform.action == Action.ROTATE
        release(scene, 200, 110)

    def test_quarter_and_half_turns(self, scene, events, wheel):
        press(scene, 200, 110)
        move(scene, 290, 200)
        assert wheel.angle == pytest.approx(90)
        move(scene, 200, 290)
        assert wheel.angle == pytest.approx(180)
        release(scene, 200, 290)

        center = wheel.get_center_point()
        assert center.x == pytest.approx(200)
        assert center.y == pytest.approx(200)
        assert len(_kinds(events, "object:rotating")) == 2

    def test_rotation_pivots_on_center_for_any_origin(self, scene):
        obj = rect_at(100, 100, 100, 100)
        scene.add(obj)
        scene.set_active_object(obj)
        press(scene, 150, 60)
        move(scene, 240, 150)
        assert obj.angle == pytest.approx(90)
        center = obj.get_center_point()
        assert center.x == pytest.approx(150)
        assert center.y == pytest.approx(150)
        release(scene, 240, 150)


# ---------------------------------------------------------------------------
# Session lifetime
# ---------------------------------------------------------------------------

class TestSession:
    def test_non_primary_press_is_ignored(self, scene):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        scene.on_pointer_down(PointerEvent(50, 50, primary=False))
        assert scene.current_transform is None
        assert scene.get_active_object() is None

    def test_second_press_during_session_is_ignored(self, scene):
        a = rect_at(0, 0, 100, 100)
        b = rect_at(200, 0, 100, 100)
        scene.add(a, b)
        press(scene, 50, 50)
        press(scene, 250, 50)
        assert scene.current_transform.target is a
        assert scene.get_active_object() is a

    def test_pointer_lost_closes_session(self, scene, events):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        press(scene, 50, 50)
        move(scene, 70, 50)
        scene.pointer_lost()
        assert scene.current_transform is None
        assert _kinds(events, "object:modified") == [obj]
        assert obj.left == 20

    def test_pointer_lost_without_session_is_noop(self, scene, events):
        scene.pointer_lost()
        assert events == []

    def test_move_without_session_only_hovers(self, scene, events):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        move(scene, 50, 50)
        assert (obj.left, obj.top) == (0, 0)
        assert _kinds(events, "mouse:move") == [obj]

    def test_coords_fresh_after_gesture(self, scene):
        obj = rect_at(0, 0, 100, 100)
        scene.add(obj)
        drag(scene, (50, 50), (90, 90))
        assert not obj.coords_stale


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------

class TestCursor:
    def test_hover_cursors(self, scene, box):
        pushed = []
        scene.set_cursor_callback(pushed.append)
        move(scene, 500, 500)
        assert scene.cursor == "default"
        move(scene, 150, 150)
        assert scene.cursor == "move"
        move(scene, 200, 150)
        assert scene.cursor == "e-resize"
        move(scene, 100, 100)
        assert scene.cursor == "nw-resize"
        move(scene, 150, 60)
        assert scene.cursor == "crosshair"
        assert pushed == ["default", "move", "e-resize", "nw-resize", "crosshair"]

    def test_cursor_pushed_once_per_change(self, scene, box):
        pushed = []
        scene.set_cursor_callback(pushed.append)
        move(scene, 150, 150)
        move(scene, 151, 150)
        move(scene, 152, 150)
        assert pushed.count("move") <= 1

    def test_cursor_names_come_from_settings(self, scene, isolated_settings, box):
        isolated_settings.settings.canvas.cursors.hover = "pointer"
        move(scene, 150, 150)
        assert scene.cursor == "pointer"
