"""Subdivision export document (the ``input`` / ``output`` JSON schema)."""

from __future__ import annotations

import logging

from landsub.core.geometry.kernel import Point, area, close_ring, orient_ccw
from landsub.core.geometry.width import estimate_cross_width
from landsub.core.site.frontage import resolve_all_frontages
from landsub.core.site.scene import SceneState

logger = logging.getLogger(__name__)


def _ring(polygon: list[Point]) -> list[list[float]]:
    return [[x, y] for x, y in close_ring(orient_ccw(polygon))]


def _points(points: list[Point]) -> list[list[float]]:
    return [[x, y] for x, y in points]


def road_width(road, default_width: float, angle_tolerance_deg: float = 10.0) -> float:
    """User-set width, else the estimate, else the configured default."""
    if road.width is not None:
        return float(road.width)
    estimate = estimate_cross_width(road.polygon, angle_tolerance_deg)
    return estimate if estimate > 0 else float(default_width)


def build_export(
    scene: SceneState,
    *,
    frontage_tolerance: float,
    default_internal_width: float = 6.0,
    angle_tolerance_deg: float = 10.0,
) -> dict:
    """Build the export document for the current scene.

    Front roads are recomputed here; ``road_to_lot_mapping`` on every road
    is collected from those same values so the two always agree.
    """
    fronts = resolve_all_frontages(
        scene.lots,
        scene.boundary,
        scene.boundary_closed,
        scene.public_roads,
        scene.internal_roads,
        frontage_tolerance,
    )

    def lots_for(road_id: str) -> list[str]:
        return [lot.lot_id for lot in scene.lots if fronts[lot.lot_id] == road_id]

    if scene.boundary_closed and len(scene.boundary) >= 3:
        boundary = _ring(scene.boundary)
    else:
        boundary = _points(scene.boundary)

    doc = {
        "input": {
            "land_id": scene.land_id,
            "boundary": boundary,
            "roads": [
                {
                    "road_id": road.road_id,
                    "is_public": True,
                    "width": float(road.width),
                    "entry_points": _points(road.entry_points),
                    "connected_to_public_road": None,
                    "road_to_lot_mapping": lots_for(road.road_id),
                }
                for road in scene.public_roads
            ],
        },
        "output": {
            "internal_roads": [
                {
                    "road_id": road.road_id,
                    "polygon": _ring(road.polygon),
                    "is_public": False,
                    "width": road_width(road, default_internal_width, angle_tolerance_deg),
                    "connected_to_public_road": True,
                    "road_to_lot_mapping": lots_for(road.road_id),
                }
                for road in scene.internal_roads
            ],
            "lots": [
                {
                    "lot_id": lot.lot_id,
                    "polygon": _ring(lot.polygon),
                    "area": round(area(lot.polygon), 1),
                    "front_road": fronts[lot.lot_id],
                }
                for lot in scene.lots
            ],
        },
    }
    logger.info(
        "Exported land %s: %d public roads, %d internal roads, %d lots",
        scene.land_id, len(scene.public_roads), len(scene.internal_roads), len(scene.lots),
    )
    return doc
