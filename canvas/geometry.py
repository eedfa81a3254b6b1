"""
canvas/geometry.py

2D point math and the intersection helpers used by hit testing and
marquee selection. Pure Python, no Qt types, so the engine can be
exercised without a running QApplication.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple


@dataclass(frozen=True)
class Point:
    """Immutable 2D point / vector."""
    x: float
    y: float

    def add(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def subtract(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def scale(self, sx: float, sy: float) -> "Point":
        return Point(self.x * sx, self.y * sy)

    def rotate(self, origin: "Point", radians: float) -> "Point":
        """Rotate this point about ``origin`` by ``radians``."""
        return rotate_point(self, origin, radians)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


def rotate_point(point: Point, origin: Point, radians: float) -> Point:
    """Rotate ``point`` about ``origin`` by ``radians`` (clockwise on a y-down canvas).

    Args:
        point: Point to rotate
        origin: Pivot
        radians: Rotation angle

    Returns:
        The rotated point
    """
    sin = math.sin(radians)
    cos = math.cos(radians)
    dx = point.x - origin.x
    dy = point.y - origin.y
    return Point(
        dx * cos - dy * sin + origin.x,
        dx * sin + dy * cos + origin.y,
    )


# ----------------------------
# Edge segments
# ----------------------------

@dataclass(frozen=True)
class Segment:
    """Directed segment from ``o`` to ``d``."""
    o: Point
    d: Point


def image_lines(tl: Point, tr: Point, br: Point, bl: Point) -> Dict[str, Segment]:
    """Build the four edges of a quad, walking clockwise from the top-left."""
    return {
        "topline": Segment(tl, tr),
        "rightline": Segment(tr, br),
        "bottomline": Segment(br, bl),
        "leftline": Segment(bl, tl),
    }


def find_cross_points(ex: float, ey: float, lines: Iterable[Segment]) -> int:
    """Count crossings of a horizontal ray cast from (ex, ey) to +x.

    An edge counts when it straddles ``ey`` (half-open: one endpoint
    strictly below ``ey``, the other at or above it) and meets the ray at
    an x greater than or equal to ``ex``. Points exactly on an edge are
    therefore resolved by this rule rather than treated specially.

    Args:
        ex: Pointer x
        ey: Pointer y
        lines: Quad edges

    Returns:
        Number of crossings; odd means the point is inside.
    """
    count = 0
    for line in lines:
        o, d = line.o, line.d
        # edge entirely above or entirely below the ray
        if (o.y < ey and d.y < ey) or (o.y >= ey and d.y >= ey):
            continue

        # straddling guarantees d.y != o.y; vertical edges give xi == o.x
        xi = o.x + (ey - o.y) * (d.x - o.x) / (d.y - o.y)
        if xi >= ex:
            count += 1
    return count


def point_in_quad(point: Point, quad: Sequence[Point]) -> bool:
    """Even-odd test of ``point`` against a four-corner quad (tl, tr, br, bl)."""
    lines = image_lines(*quad)
    return find_cross_points(point.x, point.y, lines.values()) % 2 == 1


# ----------------------------
# Rectangle intersection
# ----------------------------

def intersect_segments(a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
    """True when segment a1-a2 crosses segment b1-b2.

    Parallel and coincident segments are reported as not intersecting.
    """
    ua_t = (b2.x - b1.x) * (a1.y - b1.y) - (b2.y - b1.y) * (a1.x - b1.x)
    ub_t = (a2.x - a1.x) * (a1.y - b1.y) - (a2.y - a1.y) * (a1.x - b1.x)
    u_b = (b2.y - b1.y) * (a2.x - a1.x) - (b2.x - b1.x) * (a2.y - a1.y)
    if u_b == 0:
        return False
    ua = ua_t / u_b
    ub = ub_t / u_b
    return 0 <= ua <= 1 and 0 <= ub <= 1


def intersect_polygon_rectangle(points: Sequence[Point], r1: Point, r2: Point) -> bool:
    """True when any polygon edge crosses any edge of the axis-aligned rectangle r1-r2."""
    min_x, max_x = min(r1.x, r2.x), max(r1.x, r2.x)
    min_y, max_y = min(r1.y, r2.y), max(r1.y, r2.y)
    rect = [
        Point(min_x, min_y),
        Point(max_x, min_y),
        Point(max_x, max_y),
        Point(min_x, max_y),
    ]
    n = len(points)
    for i in range(n):
        a1 = points[i]
        a2 = points[(i + 1) % n]
        for j in range(4):
            if intersect_segments(a1, a2, rect[j], rect[(j + 1) % 4]):
                return True
    return False


def bounding_box(points: Iterable[Point]) -> Tuple[float, float, float, float]:
    """Axis-aligned bounds of ``points`` as (min_x, min_y, max_x, max_y)."""
    pts: List[Point] = list(points)
    xs = [p.x for p in pts]
    ys = [p.y for p in pts]
    return (min(xs), min(ys), max(xs), max(ys))
