"""Uniform scaling of points and polygons about an anchor."""

from __future__ import annotations

import math

from landsub.core.geometry.kernel import Point, area, centroid


def transform_point(p: Point, s: float, cx: float, cy: float) -> Point:
    """Scale ``p`` by ``s`` about ``(cx, cy)``."""
    return (cx + s * (p[0] - cx), cy + s * (p[1] - cy))


def scale_polygon(polygon: list[Point], s: float, anchor: Point) -> list[Point]:
    cx, cy = anchor
    return [transform_point(p, s, cx, cy) for p in polygon]


def scale_factor_for_area(current_area: float, target_area: float) -> float | None:
    """Linear factor that takes ``current_area`` to ``target_area``.

    None when either area is non-positive or the target is not finite.
    """
    if not math.isfinite(target_area) or target_area <= 0 or current_area <= 0:
        return None
    return math.sqrt(target_area / current_area)


def scale_polygon_to_area(polygon: list[Point], target_area: float) -> list[Point]:
    """Scale about the polygon's own centroid so its area equals ``target_area``.

    Returns the polygon unchanged when it has no area or the target is
    not a positive finite number.
    """
    s = scale_factor_for_area(area(polygon), target_area)
    if s is None:
        return polygon
    return scale_polygon(polygon, s, centroid(polygon))
