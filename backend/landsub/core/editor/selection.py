"""Selection locators.

A selection never holds geometry. It names an entity (and optionally a
vertex or edge index) and must be re-checked against the scene each time
it is used, because deletions shift indices.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from landsub.core.geometry.kernel import Point
from landsub.core.site.scene import SceneState


@dataclass(frozen=True)
class BoundaryVertex:
    index: int


@dataclass(frozen=True)
class BoundaryEdge:
    index: int


@dataclass(frozen=True)
class RoadVertex:
    road_id: str
    index: int


@dataclass(frozen=True)
class RoadEdge:
    road_id: str
    index: int


@dataclass(frozen=True)
class LotVertex:
    lot_id: str
    index: int


@dataclass(frozen=True)
class LotEdge:
    lot_id: str
    index: int


@dataclass(frozen=True)
class PublicEntryPoint:
    road_id: str
    index: int


@dataclass(frozen=True)
class RoadEntity:
    road_id: str


@dataclass(frozen=True)
class LotEntity:
    lot_id: str


@dataclass(frozen=True)
class PublicRoadEntity:
    road_id: str


Selection = Union[
    BoundaryVertex, BoundaryEdge,
    RoadVertex, RoadEdge,
    LotVertex, LotEdge,
    PublicEntryPoint,
    RoadEntity, LotEntity, PublicRoadEntity,
]

EDGE_SELECTIONS = (BoundaryEdge, RoadEdge, LotEdge)


def entity_key(sel: Selection) -> tuple[str, str | None]:
    """("boundary"|"public"|"road"|"lot", id) of the entity a selection points into."""
    if isinstance(sel, (BoundaryVertex, BoundaryEdge)):
        return ("boundary", None)
    if isinstance(sel, (RoadVertex, RoadEdge, RoadEntity)):
        return ("road", sel.road_id)
    if isinstance(sel, (LotVertex, LotEdge, LotEntity)):
        return ("lot", sel.lot_id)
    return ("public", sel.road_id)


def geometry_of(scene: SceneState, sel: Selection) -> list[Point] | None:
    """The live point list a selection points into, or None if it is gone."""
    kind, ident = entity_key(sel)
    if kind == "boundary":
        return scene.boundary if scene.boundary else None
    if kind == "road":
        road = scene.find_internal_road(ident)
        return road.polygon if road is not None else None
    if kind == "lot":
        lot = scene.find_lot(ident)
        return lot.polygon if lot is not None else None
    proad = scene.find_public_road(ident)
    return proad.entry_points if proad is not None else None


def set_geometry(scene: SceneState, sel: Selection, points: list[Point]) -> bool:
    """Replace the point list a selection points into. False if it is gone."""
    kind, ident = entity_key(sel)
    if kind == "boundary":
        scene.boundary = points
        return True
    if kind == "road":
        road = scene.find_internal_road(ident)
        if road is None:
            return False
        road.polygon = points
        return True
    if kind == "lot":
        lot = scene.find_lot(ident)
        if lot is None:
            return False
        lot.polygon = points
        return True
    proad = scene.find_public_road(ident)
    if proad is None:
        return False
    proad.entry_points = points
    return True


def is_valid(scene: SceneState, sel: Selection | None) -> bool:
    """Bounds-check a selection against the current scene."""
    if sel is None:
        return False
    if isinstance(sel, (RoadEntity, LotEntity, PublicRoadEntity)):
        return geometry_of(scene, sel) is not None
    pts = geometry_of(scene, sel)
    if pts is None:
        return False
    if isinstance(sel, EDGE_SELECTIONS):
        closed = not isinstance(sel, BoundaryEdge) or scene.boundary_closed
        n_edges = len(pts) if (closed and len(pts) >= 3) else max(len(pts) - 1, 0)
        return 0 <= sel.index < n_edges
    return 0 <= sel.index < len(pts)


def describe(sel: Selection | None) -> dict | None:
    """Plain-dict form for API responses."""
    if sel is None:
        return None
    data = {"type": type(sel).__name__}
    data.update(sel.__dict__)
    return data
