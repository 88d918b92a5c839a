"""Road width estimation from a drawn road polygon.

A naive oriented bounding box over-reports the width of a road whose
polygon includes angled entrances or driveway flares. Instead the edges
are grouped into direction clusters; the cluster with the greatest total
length is taken as the pair of parallel walls, and only vertices on those
walls are used to measure the perpendicular span.

When no such pair exists (triangles, blobs) the polygon is sliced across
its longest axis with Shapely and the narrowest interior slice is reported.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from shapely.geometry import LineString, Polygon

from landsub.core.geometry.kernel import (
    DEGENERATE_EPS,
    Point,
    convex_hull,
    distance_sq,
    edges,
    strip_closing_point,
)

DEFAULT_ANGLE_TOLERANCE_DEG = 10.0
FALLBACK_SAMPLES = 9


@dataclass
class EdgeCluster:
    """Edges sharing a direction (undirected, modulo 180°)."""

    # Direction is tracked as a length-weighted doubled-angle vector so that
    # 0° and 179° average correctly.
    sum_cos2: float = 0.0
    sum_sin2: float = 0.0
    total_length: float = 0.0
    members: list[tuple[Point, Point]] = field(default_factory=list)

    @property
    def angle(self) -> float:
        """Mean undirected direction in radians, in [0, pi)."""
        return (math.atan2(self.sum_sin2, self.sum_cos2) / 2) % math.pi

    def add(self, a: Point, b: Point, theta: float, length: float) -> None:
        self.sum_cos2 += length * math.cos(2 * theta)
        self.sum_sin2 += length * math.sin(2 * theta)
        self.total_length += length
        self.members.append((a, b))


def _undirected_angle(a: Point, b: Point) -> float:
    return math.atan2(b[1] - a[1], b[0] - a[0]) % math.pi


def _angle_gap(t1: float, t2: float) -> float:
    d = abs(t1 - t2) % math.pi
    return min(d, math.pi - d)


def cluster_edges(
    polygon: list[Point],
    angle_tolerance_deg: float = DEFAULT_ANGLE_TOLERANCE_DEG,
) -> list[EdgeCluster]:
    """Group polygon edges into direction clusters, longest edges first."""
    tol = math.radians(angle_tolerance_deg)
    segs = []
    for a, b in edges(polygon, closed=True):
        length = math.sqrt(distance_sq(a, b))
        if length > DEGENERATE_EPS:
            segs.append((length, a, b))
    segs.sort(key=lambda s: s[0], reverse=True)

    clusters: list[EdgeCluster] = []
    for length, a, b in segs:
        theta = _undirected_angle(a, b)
        home = None
        for cluster in clusters:
            if _angle_gap(cluster.angle, theta) <= tol:
                home = cluster
                break
        if home is None:
            home = EdgeCluster()
            clusters.append(home)
        home.add(a, b, theta, length)
    return clusters


def dominant_wall_span(
    polygon: list[Point],
    angle_tolerance_deg: float = DEFAULT_ANGLE_TOLERANCE_DEG,
) -> float | None:
    """Perpendicular span across the dominant parallel walls, if any."""
    clusters = cluster_edges(polygon, angle_tolerance_deg)
    if not clusters:
        return None
    dominant = max(clusters, key=lambda c: c.total_length)
    if len(dominant.members) < 2:
        return None

    theta = dominant.angle
    nx, ny = -math.sin(theta), math.cos(theta)
    offsets = []
    for a, b in dominant.members:
        offsets.append(a[0] * nx + a[1] * ny)
        offsets.append(b[0] * nx + b[1] * ny)
    span = max(offsets) - min(offsets)
    if span <= DEGENERATE_EPS:
        return None
    return span


def _longest_axis(points: list[Point]) -> tuple[Point, Point] | None:
    hull = convex_hull(points)
    best = None
    best_d2 = 0.0
    for i in range(len(hull)):
        for j in range(i + 1, len(hull)):
            d2 = distance_sq(hull[i], hull[j])
            if d2 > best_d2:
                best_d2 = d2
                best = (hull[i], hull[j])
    if best is None or best_d2 <= DEGENERATE_EPS:
        return None
    return best


def sampled_min_width(polygon: list[Point], samples: int = FALLBACK_SAMPLES) -> float:
    """Minimum cross-section length over the middle half of the longest axis."""
    pts = strip_closing_point(polygon)
    if len(pts) < 3:
        return 0.0
    shape = Polygon(pts)
    if not shape.is_valid:
        shape = shape.buffer(0)
    if shape.is_empty:
        return 0.0

    axis = _longest_axis(pts)
    if axis is None:
        return 0.0
    (ax, ay), (bx, by) = axis
    length = math.hypot(bx - ax, by - ay)
    ux, uy = (bx - ax) / length, (by - ay) / length
    nx, ny = -uy, ux

    reach = length * 2
    widths = []
    for k in range(samples):
        t = 0.25 + 0.5 * k / max(samples - 1, 1)
        cx = ax + ux * length * t
        cy = ay + uy * length * t
        cut = LineString([(cx - nx * reach, cy - ny * reach), (cx + nx * reach, cy + ny * reach)])
        section = shape.intersection(cut)
        if section.length > DEGENERATE_EPS:
            widths.append(section.length)
    return min(widths) if widths else 0.0


def estimate_cross_width(
    polygon: list[Point],
    angle_tolerance_deg: float = DEFAULT_ANGLE_TOLERANCE_DEG,
) -> float:
    """Estimated width of an elongated polygon such as a road."""
    pts = strip_closing_point(polygon)
    if len(pts) <= 1:
        return 0.0
    span = dominant_wall_span(pts, angle_tolerance_deg)
    if span is not None:
        return span
    return sampled_min_width(pts)
