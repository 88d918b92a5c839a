"""Which road does a lot face?

Internal roads are checked first, in list order; then public roads via the
stretch of boundary between their first two entry points. The first match
wins, so a lot touching two roads reports only one of them.
"""

from __future__ import annotations

import logging

from shapely.geometry import MultiLineString

from landsub.core.geometry.kernel import (
    Point,
    distance,
    distance_sq,
    edges,
    segments_intersect_or_touch,
)
from landsub.core.site.scene import InternalRoad, PublicRoad

logger = logging.getLogger(__name__)

Segment = tuple[Point, Point]


def segments_meet(lot_edges: list[Segment], other: list[Segment], tolerance: float) -> bool:
    """True if any pair touches/intersects, or else comes within tolerance."""
    for a, b in lot_edges:
        for c, d in other:
            if segments_intersect_or_touch(a, b, c, d):
                return True
    if not lot_edges or not other:
        return False
    return MultiLineString(lot_edges).distance(MultiLineString(other)) <= tolerance


def nearest_vertex_index(ring: list[Point], p: Point) -> int:
    return min(range(len(ring)), key=lambda i: distance_sq(ring[i], p))


def _walk(ring: list[Point], start: int, stop: int, step: int) -> list[Segment]:
    n = len(ring)
    segs = []
    i = start
    while i != stop:
        j = (i + step) % n
        segs.append((ring[i], ring[j]))
        i = j
    return segs


def public_frontage_arc(boundary: list[Point], entry_a: Point, entry_b: Point) -> list[Segment]:
    """Boundary segments between the vertices nearest two entry points.

    The ring is walked both ways and the shorter walk (by length) is kept;
    equal lengths keep the forward walk. When both entry points map to the
    same vertex, the two boundary edges meeting at that vertex are used.
    """
    n = len(boundary)
    i = nearest_vertex_index(boundary, entry_a)
    j = nearest_vertex_index(boundary, entry_b)
    if i == j:
        return [(boundary[(i - 1) % n], boundary[i]), (boundary[i], boundary[(i + 1) % n])]

    forward = _walk(boundary, i, j, 1)
    backward = _walk(boundary, i, j, -1)
    fwd_len = sum(distance(a, b) for a, b in forward)
    bwd_len = sum(distance(a, b) for a, b in backward)
    return forward if fwd_len <= bwd_len else backward


def compute_front_road(
    lot_polygon: list[Point],
    boundary: list[Point],
    boundary_closed: bool,
    public_roads: list[PublicRoad],
    internal_roads: list[InternalRoad],
    tolerance: float,
) -> str | None:
    lot_edges = edges(lot_polygon)
    if not lot_edges:
        return None

    for road in internal_roads:
        if segments_meet(lot_edges, edges(road.polygon), tolerance):
            return road.road_id

    if boundary_closed and len(boundary) >= 3:
        for road in public_roads:
            if len(road.entry_points) < 2:
                continue
            arc = public_frontage_arc(boundary, road.entry_points[0], road.entry_points[1])
            if segments_meet(lot_edges, arc, tolerance):
                return road.road_id

    return None


def resolve_all_frontages(
    lots,
    boundary: list[Point],
    boundary_closed: bool,
    public_roads: list[PublicRoad],
    internal_roads: list[InternalRoad],
    tolerance: float,
) -> dict[str, str | None]:
    """Front road for every lot, keyed by lot id."""
    result = {}
    for lot in lots:
        result[lot.lot_id] = compute_front_road(
            lot.polygon, boundary, boundary_closed, public_roads, internal_roads, tolerance,
        )
    logger.debug("Resolved frontage for %d lots: %s", len(result), result)
    return result
