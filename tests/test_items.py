"""Transformable objects: geometry validation, origin math and the handle cache."""
from __future__ import annotations

import math

import pytest

from canvas.geometry import Point
from canvas.items import ShapeItem
from models import Corner, Geometry, GeometryError, Origin, StaleCoordsError

from conftest import rect_at


def _approx_point(p: Point, x: float, y: float, abs_tol: float = 1e-9) -> bool:
    return p.x == pytest.approx(x, abs=abs_tol) and p.y == pytest.approx(y, abs=abs_tol)


# ---------------------------------------------------------------------------
# Geometry validation
# ---------------------------------------------------------------------------

class TestGeometryValidation:
    def test_unknown_origin_rejected(self):
        with pytest.raises(GeometryError):
            Geometry(origin_x="middle")
        with pytest.raises(GeometryError):
            Geometry(origin_y="left")

    def test_set_origin_rejects_unknown_value(self):
        item = ShapeItem(0, 0, 10, 10)
        with pytest.raises(GeometryError):
            item.set_origin("top", "left")

    def test_zero_scale_rejected(self):
        item = ShapeItem(0, 0, 10, 10)
        with pytest.raises(GeometryError):
            item.set_scale(0, 1)

    def test_negative_size_rejected(self):
        with pytest.raises(GeometryError):
            ShapeItem(0, 0, -1, 10)

    def test_angle_normalized(self):
        item = ShapeItem(0, 0, 10, 10, angle=370)
        assert item.angle == pytest.approx(10)
        item.set_angle(-30)
        assert item.angle == pytest.approx(330)
        item.set_angle(720)
        assert item.angle == 0

    def test_from_options_rejects_unknown_keys(self):
        with pytest.raises(GeometryError, match="colour"):
            ShapeItem.from_options({"left": 1, "top": 2, "width": 3, "height": 4, "colour": "red"})

    def test_from_options_builds_shape(self):
        item = ShapeItem.from_options({
            "shape": "ellipse", "left": 5, "top": 6, "width": 7, "height": 8,
            "angle": 45, "padding": 2, "has_rotating_point": False,
        })
        assert item.shape == "ellipse"
        assert (item.left, item.top, item.width, item.height) == (5, 6, 7, 8)
        assert item.angle == 45
        assert item.padding == 2
        assert item.has_rotating_point is False

    def test_non_finite_values_rejected(self):
        item = ShapeItem(0, 0, 10, 10)
        with pytest.raises(GeometryError):
            item.set_position(float("nan"), 0)
        with pytest.raises(GeometryError):
            item.set_angle(float("inf"))
        with pytest.raises(GeometryError):
            Geometry(width=float("inf"))
        assert (item.left, item.angle) == (0, 0)

    def test_unknown_shape_rejected(self):
        with pytest.raises(GeometryError):
            ShapeItem(0, 0, 1, 1, shape="star")

    def test_style_defaults_come_from_settings(self, isolated_settings):
        isolated_settings.settings.canvas.handles.corner_size = 20
        isolated_settings.settings.canvas.objects.padding = 3
        item = ShapeItem(0, 0, 10, 10)
        assert item.corner_size == 20
        assert item.padding == 3


# ---------------------------------------------------------------------------
# Origin math
# ---------------------------------------------------------------------------

class TestOriginMath:
    def test_center_point_for_each_origin(self):
        assert rect_at(10, 20, 100, 50).get_center_point() == Point(60, 45)
        centered = ShapeItem(60, 45, 100, 50)
        assert centered.get_center_point() == Point(60, 45)
        br = ShapeItem(110, 70, 100, 50, origin_x=Origin.RIGHT, origin_y=Origin.BOTTOM)
        assert br.get_center_point() == Point(60, 45)

    def test_translate_to_origin_point_rotated(self):
        item = ShapeItem(0, 0, 100, 50, angle=90)
        p = item.translate_to_origin_point(Point(0, 0), Origin.LEFT, Origin.TOP)
        assert _approx_point(p, 25, -50)

    def test_to_local_point(self):
        item = rect_at(10, 20, 100, 50)
        assert item.to_local_point(Point(60, 45), Origin.LEFT, Origin.TOP) == Point(50, 25)
        assert item.to_local_point(Point(60, 45), Origin.CENTER, Origin.CENTER) == Point(0, 0)

    def test_set_position_by_origin(self):
        item = rect_at(0, 0, 100, 50)
        item.set_position_by_origin(Point(200, 100), Origin.CENTER, Origin.CENTER)
        assert (item.left, item.top) == (150, 75)

    def test_set_origin_keeps_object_in_place(self):
        item = ShapeItem(50, 50, 100, 40, angle=30)
        before = item.get_center_point()
        item.set_origin(Origin.LEFT, Origin.BOTTOM)
        after = item.get_center_point()
        assert _approx_point(after, before.x, before.y)
        assert item.origin_x == Origin.LEFT

    def test_negative_scale_extends_away_from_origin(self):
        item = rect_at(100, 0, 100, 50, scale_x=-0.5)
        assert item.get_center_point() == Point(75, 25)


# ---------------------------------------------------------------------------
# Control handle cache
# ---------------------------------------------------------------------------

class TestSetCoords:
    @pytest.mark.parametrize("scale", [(1, 1), (2, 0.5), (-1.5, 0.75), (0.3, -2)])
    @pytest.mark.parametrize("origin", [
        (Origin.LEFT, Origin.TOP),
        (Origin.CENTER, Origin.CENTER),
        (Origin.RIGHT, Origin.BOTTOM),
    ])
    def test_corners_form_rectangle_around_center(self, scale, origin):
        for angle in range(0, 360, 15):
            item = ShapeItem(37, -12, 80, 30, scale_x=scale[0], scale_y=scale[1],
                             angle=angle, origin_x=origin[0], origin_y=origin[1])
            item.set_coords()
            tl, tr, br, bl = item.corners()
            center = item.get_center_point()

            cx = (tl.x + tr.x + br.x + bl.x) / 4
            cy = (tl.y + tr.y + br.y + bl.y) / 4
            assert cx == pytest.approx(center.x)
            assert cy == pytest.approx(center.y)

            assert tl.distance_to(tr) == pytest.approx(abs(80 * scale[0]))
            assert tr.distance_to(br) == pytest.approx(abs(30 * scale[1]))
            # diagonals of a rectangle have equal length
            assert tl.distance_to(br) == pytest.approx(tr.distance_to(bl))

    def test_midpoints_and_rotation_handle(self):
        item = rect_at(0, 0, 100, 50)
        item.set_coords()
        c = item.o_coords
        assert c[Corner.ML] == Point(0, 25)
        assert c[Corner.MR] == Point(100, 25)
        assert c[Corner.MB] == Point(50, 50)
        assert c[Corner.MT] == Point(50, 0)
        assert _approx_point(c[Corner.MTR], 50, -40)

    def test_rotation_handle_follows_angle(self):
        # quarter turn about the top-left corner: the top edge now runs down x=0
        item = rect_at(0, 0, 100, 50, angle=90)
        item.set_coords()
        assert _approx_point(item.o_coords[Corner.MT], 0, 50)
        assert _approx_point(item.o_coords[Corner.MTR], 40, 50)

    def test_padding_and_wide_stroke_grow_the_outline(self):
        item = rect_at(0, 0, 100, 50)
        item.padding = 5
        item.set_coords()
        assert item.current_width == 110
        assert item.current_height == 60

        item = rect_at(0, 0, 100, 50)
        item.stroke_width = 3
        item.set_coords()
        assert item.current_width == 103

    def test_hit_test_requires_fresh_cache(self):
        item = rect_at(0, 0, 10, 10)
        with pytest.raises(StaleCoordsError):
            item.contains_point(Point(5, 5))
        item.set_coords()
        assert item.contains_point(Point(5, 5))
        item.set_position(100, 100)
        with pytest.raises(StaleCoordsError):
            item.contains_point(Point(105, 105))

    def test_bounding_rect_of_rotated_square(self):
        item = ShapeItem(0, 0, 10, 10, angle=45)
        item.set_coords()
        left, top, width, height = item.get_bounding_rect()
        assert width == pytest.approx(10 * math.sqrt(2))
        assert left == pytest.approx(-5 * math.sqrt(2))


# ---------------------------------------------------------------------------
# State tracking
# ---------------------------------------------------------------------------

class TestStateTracking:
    def test_unchanged_after_save(self):
        item = rect_at(0, 0, 10, 10)
        item.save_state()
        assert not item.has_state_changed()

    def test_changed_after_move(self):
        item = rect_at(0, 0, 10, 10)
        item.save_state()
        item.set_position(1, 0)
        assert item.has_state_changed()

    def test_snapshot_is_a_copy(self):
        item = rect_at(0, 0, 10, 10)
        item.save_state()
        item.set_scale(2, 2)
        assert item.original.scale_x == 1

    def test_no_snapshot_means_unchanged(self):
        assert not rect_at(0, 0, 10, 10).has_state_changed()
