"""Select / drag / delete in edit mode.

Gesture state machine::

    IDLE --down on vertex--> DRAG_VERTEX --up--> IDLE
    IDLE --down on edge----> DRAG_EDGE ----up--> IDLE
    IDLE --down on nothing-> IDLE (selection cleared)

A history snapshot is pushed on pointer-down, so a whole drag undoes as one
step. Every pointer-move rebuilds the edited geometry from the copy taken
at pointer-down (``start_geom``) rather than accumulating deltas.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from landsub.core.errors import SceneInvariantError
from landsub.core.editor.history import HistoryManager
from landsub.core.editor.selection import (
    EDGE_SELECTIONS,
    BoundaryEdge,
    BoundaryVertex,
    LotEdge,
    LotEntity,
    LotVertex,
    PublicEntryPoint,
    PublicRoadEntity,
    RoadEdge,
    RoadEntity,
    RoadVertex,
    Selection,
    entity_key,
    geometry_of,
    is_valid,
    set_geometry,
)
from landsub.core.geometry.kernel import Point, edges, left_normal, point_segment_projection
from landsub.core.site.scene import SceneState

logger = logging.getLogger(__name__)

# (pointer, entity being dragged) -> committed point
SnapFn = Callable[[Point, tuple], Point]


@dataclass
class DragState:
    """Lives from pointer-down to pointer-up."""

    target: Selection
    start_mouse: Point
    start_geom: list[Point]
    constrain_normal: bool = False


# ── Hit testing ────────────────────────────────────────────────────────

def _nearest_vertex(points: list[Point], p: Point, tol_sq: float) -> tuple[int, float] | None:
    best = None
    for i, q in enumerate(points):
        d2 = (q[0] - p[0]) ** 2 + (q[1] - p[1]) ** 2
        if d2 <= tol_sq and (best is None or d2 < best[1]):
            best = (i, d2)
    return best


def _nearest_edge(points: list[Point], p: Point, tol_sq: float, closed: bool = True) -> tuple[int, float] | None:
    best = None
    for i, (a, b) in enumerate(edges(points, closed)):
        d2 = point_segment_projection(p, a, b).squared_distance
        if d2 <= tol_sq and (best is None or d2 < best[1]):
            best = (i, d2)
    return best


def _best(candidates: list[tuple[Selection, float]]) -> Selection | None:
    if not candidates:
        return None
    return min(candidates, key=lambda c: c[1])[0]


def hit_test(scene: SceneState, p: Point, tolerance: float) -> Selection | None:
    """Vertices before edges; within each, lots, then roads, then boundary,
    then public entry points. Nearest hit wins inside a category."""
    tol_sq = tolerance * tolerance

    def vertices(points):
        return _nearest_vertex(points, p, tol_sq)

    def closed_edges(points):
        return _nearest_edge(points, p, tol_sq)

    def boundary_edges(points):
        return _nearest_edge(points, p, tol_sq, scene.boundary_closed)

    def tier(entities, make, finder) -> list[tuple[Selection, float]]:
        found = []
        for ident, points in entities:
            h = finder(points)
            if h is not None:
                found.append((make(ident, h[0]), h[1]))
        return found

    lots = [(lot.lot_id, lot.polygon) for lot in scene.lots]
    roads = [(road.road_id, road.polygon) for road in scene.internal_roads]
    boundary = [(None, scene.boundary)]
    entries = [(road.road_id, road.entry_points) for road in scene.public_roads]

    vertex_tiers = [
        tier(lots, LotVertex, vertices),
        tier(roads, RoadVertex, vertices),
        tier(boundary, lambda _, i: BoundaryVertex(i), vertices),
        tier(entries, PublicEntryPoint, vertices),
    ]
    for candidates in vertex_tiers:
        hit = _best(candidates)
        if hit is not None:
            return hit

    edge_tiers = [
        tier(lots, LotEdge, closed_edges),
        tier(roads, RoadEdge, closed_edges),
        tier(boundary, lambda _, i: BoundaryEdge(i), boundary_edges),
    ]
    for candidates in edge_tiers:
        hit = _best(candidates)
        if hit is not None:
            return hit
    return None


# ── Engine ─────────────────────────────────────────────────────────────

class EditEngine:
    """Selection and drag state for one editing session."""

    def __init__(self, scene: SceneState, history: HistoryManager) -> None:
        self.scene = scene
        self.history = history
        self.selection: Selection | None = None
        self.drag: DragState | None = None

    @property
    def dragging(self) -> bool:
        return self.drag is not None

    def validated_selection(self) -> Selection | None:
        """Current selection, dropped if it no longer points at anything."""
        if self.selection is not None and not is_valid(self.scene, self.selection):
            logger.debug("Dropping stale selection %s", self.selection)
            self.selection = None
        return self.selection

    def select(self, sel: Selection | None) -> None:
        self.selection = sel if sel is None or is_valid(self.scene, sel) else None

    def reset(self) -> None:
        self.selection = None
        self.drag = None

    # ── Gestures ─────────────────────────────────────────────────────────

    def pointer_down(self, p: Point, tolerance: float, constrain_normal: bool = False) -> Selection | None:
        hit = hit_test(self.scene, p, tolerance)
        if hit is None:
            self.selection = None
            self.drag = None
            return None

        self.selection = hit
        self.history.push()
        self.drag = DragState(
            target=hit,
            start_mouse=p,
            start_geom=list(geometry_of(self.scene, hit)),
            constrain_normal=constrain_normal,
        )
        logger.debug("Drag start on %s at %s", hit, p)
        return hit

    def pointer_move(self, p: Point, snap: SnapFn, constrain_normal: bool | None = None) -> None:
        drag = self.drag
        if drag is None:
            return
        if constrain_normal is not None:
            drag.constrain_normal = constrain_normal
        if geometry_of(self.scene, drag.target) is None:
            raise SceneInvariantError(f"Drag target {drag.target} no longer exists")

        geom = list(drag.start_geom)
        n = len(geom)
        target = drag.target

        if isinstance(target, EDGE_SELECTIONS):
            k = target.index
            if not 0 <= k < n:
                raise SceneInvariantError(f"Drag target {target} is out of range")
            a, b = geom[k], geom[(k + 1) % n]
            dx = p[0] - drag.start_mouse[0]
            dy = p[1] - drag.start_mouse[1]
            if drag.constrain_normal:
                normal = left_normal(a, b)
                if normal is not None:
                    along = dx * normal[0] + dy * normal[1]
                    dx, dy = normal[0] * along, normal[1] * along
            geom[k] = (a[0] + dx, a[1] + dy)
            geom[(k + 1) % n] = (b[0] + dx, b[1] + dy)
        else:
            if not 0 <= target.index < n:
                raise SceneInvariantError(f"Drag target {target} is out of range")
            geom[target.index] = snap(p, entity_key(target))

        set_geometry(self.scene, target, geom)

    def pointer_up(self) -> None:
        if self.drag is not None:
            logger.debug("Drag end on %s", self.drag.target)
        self.drag = None

    # ── Deletion ─────────────────────────────────────────────────────────

    def delete_selection(self) -> bool:
        """Delete what the selection points at. False when nothing applies."""
        sel = self.validated_selection()
        self.drag = None
        if sel is None:
            return False

        self.history.push()
        scene = self.scene

        if isinstance(sel, RoadEntity):
            scene.internal_roads = [r for r in scene.internal_roads if r.road_id != sel.road_id]
        elif isinstance(sel, LotEntity):
            scene.lots = [lot for lot in scene.lots if lot.lot_id != sel.lot_id]
        elif isinstance(sel, PublicRoadEntity):
            scene.public_roads = [r for r in scene.public_roads if r.road_id != sel.road_id]
        else:
            pts = list(geometry_of(scene, sel))
            if isinstance(sel, EDGE_SELECTIONS):
                remove_at = (sel.index + 1) % len(pts)
            else:
                remove_at = sel.index
            del pts[remove_at]
            self._apply_collapse(sel, pts)

        logger.info("Deleted %s", sel)
        self.selection = None
        return True

    def _apply_collapse(self, sel: Selection, pts: list[Point]) -> None:
        """Write back a shortened point list; polygons under 3 vertices go away."""
        scene = self.scene
        if isinstance(sel, PublicEntryPoint):
            set_geometry(scene, sel, pts)
            return
        if len(pts) >= 3:
            set_geometry(scene, sel, pts)
            return

        kind, ident = entity_key(sel)
        if kind == "road":
            scene.internal_roads = [r for r in scene.internal_roads if r.road_id != ident]
        elif kind == "lot":
            scene.lots = [lot for lot in scene.lots if lot.lot_id != ident]
        else:
            scene.boundary = []
            scene.boundary_closed = False
        logger.info("Removed %s %s: fewer than 3 vertices left", kind, ident or "")
