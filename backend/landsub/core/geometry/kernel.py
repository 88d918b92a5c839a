"""Pure polygon and segment math for the subdivision editor.

Points are ``(x, y)`` tuples in scene units. Polygons are lists of points in
open form (no repeated closing vertex). Every function here is total over
its input: degenerate polygons yield 0, the input unchanged, or a mean
point rather than raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

Point = tuple[float, float]

DEDUP_EPS = 1e-6
DEGENERATE_EPS = 1e-9


@dataclass(frozen=True)
class Projection:
    """Clamped projection of a point onto a segment."""

    proj: Point
    squared_distance: float
    t: float

    @property
    def distance(self) -> float:
        return math.sqrt(self.squared_distance)


# ── Distances ───────────────────────────────────────────────────────────

def distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def distance_sq(a: Point, b: Point) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def points_equal(a: Point, b: Point, eps: float = DEDUP_EPS) -> bool:
    return distance(a, b) <= eps


# ── Area / centroid ─────────────────────────────────────────────────────

def signed_area(polygon: list[Point]) -> float:
    """Shoelace area; positive for counter-clockwise winding."""
    n = len(polygon)
    if n < 3:
        return 0.0
    s = 0.0
    for i in range(n):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % n]
        s += x1 * y2 - x2 * y1
    return s / 2


def area(polygon: list[Point]) -> float:
    return abs(signed_area(polygon))


def _vertex_mean(points: list[Point]) -> Point:
    if not points:
        return (0.0, 0.0)
    sx = sum(p[0] for p in points)
    sy = sum(p[1] for p in points)
    return (sx / len(points), sy / len(points))


def centroid(polygon: list[Point]) -> Point:
    """Area-weighted centroid, or the vertex mean for degenerate input."""
    n = len(polygon)
    if n < 3:
        return _vertex_mean(polygon)

    a = 0.0
    cx = 0.0
    cy = 0.0
    for i in range(n):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % n]
        cross = x1 * y2 - x2 * y1
        a += cross
        cx += (x1 + x2) * cross
        cy += (y1 + y2) * cross
    a *= 0.5
    if abs(a) < 1e-12:
        return _vertex_mean(polygon)
    return (cx / (6 * a), cy / (6 * a))


def perimeter(polygon: list[Point], closed: bool = True) -> float:
    return sum(distance(a, b) for a, b in edges(polygon, closed))


# ── Winding / rings ─────────────────────────────────────────────────────

def orient_ccw(polygon: list[Point]) -> list[Point]:
    """Return the polygon with counter-clockwise winding (a new list)."""
    pts = strip_closing_point(polygon)
    if signed_area(pts) < 0:
        return list(reversed(pts))
    return list(pts)


def strip_closing_point(points: list[Point]) -> list[Point]:
    if len(points) >= 2 and points_equal(points[0], points[-1], DEGENERATE_EPS):
        return list(points[:-1])
    return list(points)


def close_ring(polygon: list[Point]) -> list[Point]:
    """Explicitly closed copy of an open polygon (first point repeated)."""
    pts = strip_closing_point(polygon)
    if len(pts) < 3:
        return pts
    return pts + [pts[0]]


def edges(polygon: list[Point], closed: bool = True) -> list[tuple[Point, Point]]:
    """Consecutive segments; the last→first edge only when ``closed``."""
    n = len(polygon)
    if n < 2:
        return []
    segs = [(polygon[i], polygon[i + 1]) for i in range(n - 1)]
    if closed and n >= 3:
        segs.append((polygon[-1], polygon[0]))
    return segs


# ── Convex hull ─────────────────────────────────────────────────────────

def _cross(o: Point, a: Point, b: Point) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull(points: list[Point]) -> list[Point]:
    """Monotone-chain hull in CCW order.

    Inputs with fewer than three points come back unchanged.
    """
    pts = strip_closing_point(points)
    if len(pts) < 3:
        return pts

    pts = sorted(set(pts))
    if len(pts) < 3:
        return pts

    lower: list[Point] = []
    for p in pts:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: list[Point] = []
    for p in reversed(pts):
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    return lower[:-1] + upper[:-1]


# ── Segments ────────────────────────────────────────────────────────────

def point_segment_projection(p: Point, a: Point, b: Point) -> Projection:
    vx = b[0] - a[0]
    vy = b[1] - a[1]
    wx = p[0] - a[0]
    wy = p[1] - a[1]
    vv = vx * vx + vy * vy
    if vv <= 1e-12:
        return Projection(proj=a, squared_distance=distance_sq(p, a), t=0.0)
    t = (wx * vx + wy * vy) / vv
    t = max(0.0, min(1.0, t))
    proj = (a[0] + t * vx, a[1] + t * vy)
    return Projection(proj=proj, squared_distance=distance_sq(p, proj), t=t)


def _orientation(p: Point, q: Point, r: Point) -> int:
    val = (q[1] - p[1]) * (r[0] - q[0]) - (q[0] - p[0]) * (r[1] - q[1])
    if abs(val) < DEGENERATE_EPS:
        return 0
    return 1 if val > 0 else 2


def _on_segment(p: Point, q: Point, r: Point) -> bool:
    """True if q lies within the bounding box of p–r (q collinear assumed)."""
    return (
        min(p[0], r[0]) - DEGENERATE_EPS <= q[0] <= max(p[0], r[0]) + DEGENERATE_EPS
        and min(p[1], r[1]) - DEGENERATE_EPS <= q[1] <= max(p[1], r[1]) + DEGENERATE_EPS
    )


def segments_intersect_or_touch(a: Point, b: Point, c: Point, d: Point) -> bool:
    """Non-strict intersection: crossings, overlaps and endpoint touches."""
    o1 = _orientation(a, b, c)
    o2 = _orientation(a, b, d)
    o3 = _orientation(c, d, a)
    o4 = _orientation(c, d, b)

    if o1 != o2 and o3 != o4:
        return True

    if o1 == 0 and _on_segment(a, c, b):
        return True
    if o2 == 0 and _on_segment(a, d, b):
        return True
    if o3 == 0 and _on_segment(c, a, d):
        return True
    if o4 == 0 and _on_segment(c, b, d):
        return True
    return False


def left_normal(a: Point, b: Point) -> Point | None:
    """Unit normal to the left of a → b, or None for a zero-length edge."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length = math.hypot(dx, dy)
    if length <= DEGENERATE_EPS:
        return None
    return (-dy / length, dx / length)


def midpoint(a: Point, b: Point) -> Point:
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def bounds(points: list[Point]) -> tuple[float, float, float, float] | None:
    """(minx, miny, maxx, maxy) of a point set, or None when empty."""
    if not points:
        return None
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return (min(xs), min(ys), max(xs), max(ys))
