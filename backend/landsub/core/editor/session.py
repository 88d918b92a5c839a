"""One in-memory editing session: scene, history, snapping and edit engine.

All input goes through ``EditorSession.handle(event)``, which runs to
completion before returning. Pointer events carry points already mapped to
scene units; tolerances are converted from pixels with ``units_per_px``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace

from landsub.config import Settings, settings as default_settings
from landsub.core.errors import InvalidCommandError, UnknownEntityError
from landsub.core.editor import events as ev
from landsub.core.editor.engine import EditEngine
from landsub.core.editor.history import HistoryManager
from landsub.core.editor.selection import (
    LotEntity,
    PublicRoadEntity,
    RoadEntity,
    describe,
)
from landsub.core.geometry.kernel import (
    DEDUP_EPS,
    Point,
    area,
    bounds,
    centroid,
    distance,
    edges,
    midpoint,
    points_equal,
)
from landsub.core.geometry.transform import (
    scale_factor_for_area,
    scale_polygon,
    scale_polygon_to_area,
)
from landsub.core.geometry.validation import validate_polygon
from landsub.core.geometry.width import estimate_cross_width
from landsub.core.site.export import build_export
from landsub.core.site.frontage import compute_front_road
from landsub.core.site.scene import (
    EditMode,
    InternalRoad,
    Lot,
    PublicRoad,
    SceneState,
)
from landsub.core.snap.resolver import (
    EntityKey,
    SnapKind,
    SnapOptions,
    build_context,
    resolve,
    snap_to_pools,
)

logger = logging.getLogger(__name__)


@dataclass
class Outcome:
    """What a single event did."""

    applied: bool
    detail: str = ""
    issues: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"applied": self.applied, "detail": self.detail, "issues": self.issues}


@dataclass
class AutoScaleOptions:
    enabled: bool = False
    target_area: float = 200.0
    apply_to: frozenset = frozenset({EditMode.BOUNDARY})


def _dedup_push(path: list[Point], p: Point) -> bool:
    if path and points_equal(path[-1], p, DEDUP_EPS):
        return False
    path.append(p)
    return True


class EditorSession:
    """Owns the scene and turns input events into scene mutations."""

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or default_settings
        self.scene = SceneState(land_id=self.config.default_land_id)
        self.history = HistoryManager(self.scene)
        self.engine = EditEngine(self.scene, self.history)
        self.mode = EditMode.BOUNDARY
        self.path_mode: EditMode | None = None
        self.hover: Point | None = None
        self.hover_kind = SnapKind.NONE
        self.units_per_px = self.config.units_per_px
        self.snap_options = SnapOptions(
            vertex_px=self.config.vertex_snap_px,
            line_px=self.config.line_snap_px,
            grid_px=self.config.grid_snap_px,
            grid_step=self.config.grid_step,
            grid_enabled=self.config.grid_enabled,
            grid_strict=self.config.grid_strict,
        )
        self.auto_scale = AutoScaleOptions(target_area=self.config.auto_scale_target_area)

        self._handlers = {
            ev.PointerEvent: self._on_pointer,
            ev.SetMode: self._on_set_mode,
            ev.CloseShape: self._on_close_shape,
            ev.NewPublicRoad: self._on_new_public_road,
            ev.SetRoadWidth: self._on_set_road_width,
            ev.ReopenBoundary: self._on_reopen_boundary,
            ev.ClearAll: self._on_clear_all,
            ev.DeleteSelection: self._on_delete,
            ev.SelectEntity: self._on_select_entity,
            ev.Undo: self._on_undo,
            ev.Redo: self._on_redo,
            ev.SetLandId: self._on_set_land_id,
            ev.SetView: self._on_set_view,
            ev.SetSnapOptions: self._on_set_snap_options,
            ev.ScaleScene: self._on_scale_scene,
            ev.ScaleToArea: self._on_scale_to_area,
            ev.SetAutoScale: self._on_set_auto_scale,
        }

    # ── Dispatch ─────────────────────────────────────────────────────────

    def handle(self, event) -> Outcome:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise InvalidCommandError(f"Unsupported event type: {type(event).__name__}")
        return handler(event)

    # ── Snapping ─────────────────────────────────────────────────────────

    def tolerance(self, px: float) -> float:
        return px * self.units_per_px

    def snap(self, p: Point, axis_lock: bool = False, exclude: EntityKey | None = None):
        ctx = build_context(
            self.scene,
            self.mode,
            units_per_px=self.units_per_px,
            axis_lock=axis_lock,
            options=self.snap_options,
            exclude=exclude,
        )
        return resolve(p, ctx)

    # ── Pointer input ────────────────────────────────────────────────────

    def _on_pointer(self, e: ev.PointerEvent) -> Outcome:
        if e.kind == ev.PointerKind.LEAVE:
            self.hover = None
            self.hover_kind = SnapKind.NONE
            return Outcome(True)
        if e.kind == ev.PointerKind.UP:
            self.engine.pointer_up()
            return Outcome(True)
        if e.point is None:
            return Outcome(False, "pointer event without a point")

        if self.mode == EditMode.SELECT:
            return self._select_pointer(e)

        result = self.snap(e.point, axis_lock=e.axis_lock)
        self.hover = result.point
        self.hover_kind = result.kind
        if e.kind == ev.PointerKind.MOVE:
            return Outcome(True)
        logger.debug("Commit %s in %s mode (snap=%s)", result.point, self.mode.value, result.kind.value)
        return self._commit_point(result.point)

    def _select_pointer(self, e: ev.PointerEvent) -> Outcome:
        if e.kind == ev.PointerKind.DOWN:
            hit = self.engine.pointer_down(
                e.point, self.tolerance(self.config.hit_tolerance_px), e.constrain_normal,
            )
            return Outcome(hit is not None, "selected" if hit is not None else "nothing hit")

        self.hover = e.point
        self.hover_kind = SnapKind.NONE
        if not self.engine.dragging:
            return Outcome(True)

        def drag_snap(p: Point, exclude: EntityKey) -> Point:
            return self.snap(p, axis_lock=e.axis_lock, exclude=exclude).point

        self.engine.pointer_move(e.point, drag_snap, e.constrain_normal)
        return Outcome(True)

    def _commit_point(self, p: Point) -> Outcome:
        scene = self.scene
        if self.mode == EditMode.BOUNDARY:
            if scene.boundary_closed:
                return Outcome(False, "boundary already closed")
            return self._extend_path(p)

        if self.mode == EditMode.PUBLIC_ROAD:
            road = scene.active_public_road
            pools = [scene.boundary] + ([road.entry_points] if road is not None else [])
            snapped = snap_to_pools(p, pools, self.tolerance(self.snap_options.vertex_px))
            if road is not None and any(points_equal(q, snapped, DEDUP_EPS) for q in road.entry_points):
                return Outcome(False, "duplicate entry point")
            self.history.push()
            if road is None:
                road = self._add_public_road(self.config.default_public_road_width)
            road.entry_points.append(snapped)
            return Outcome(True)

        return self._extend_path(p)

    def _extend_path(self, p: Point) -> Outcome:
        if not _dedup_push(self.scene.current, p):
            return Outcome(False)
        self.path_mode = self.mode
        return Outcome(True)

    # ── Shapes ───────────────────────────────────────────────────────────

    def _add_public_road(self, width: float) -> PublicRoad:
        road = PublicRoad(road_id=self.scene.next_road_id(), width=float(width))
        self.scene.public_roads.append(road)
        logger.info("Created public road %s (width=%s)", road.road_id, road.width)
        return road

    def _auto_scaled(self, poly: list[Point]) -> list[Point]:
        opts = self.auto_scale
        if opts.enabled and self.mode in opts.apply_to:
            return scale_polygon_to_area(poly, opts.target_area)
        return poly

    def _on_close_shape(self, e: ev.CloseShape) -> Outcome:
        scene = self.scene
        if self.mode not in (EditMode.BOUNDARY, EditMode.INTERNAL_ROAD, EditMode.LOT):
            return Outcome(False, f"nothing to close in {self.mode.value} mode")
        if self.mode == EditMode.BOUNDARY and scene.boundary_closed:
            return Outcome(False, "boundary already closed")
        if len(scene.current) < 3:
            return Outcome(False, "need at least 3 points")

        check = validate_polygon(scene.current)
        issues = [i.to_dict() for i in check.issues]
        for issue in check.issues:
            logger.warning("Close %s: %s %s", self.mode.value, issue.code, issue.message)
        if not check.valid:
            return Outcome(False, "invalid polygon", issues)

        self.history.push()
        poly = self._auto_scaled(check.polygon)
        if self.mode == EditMode.BOUNDARY:
            scene.boundary = poly
            scene.boundary_closed = True
            detail = "boundary"
        elif self.mode == EditMode.INTERNAL_ROAD:
            if e.width is not None:
                width = float(e.width)
            elif self.config.estimate_road_width:
                width = None
            else:
                width = self.config.default_internal_road_width
            road = InternalRoad(road_id=scene.next_road_id(), polygon=poly, width=width)
            scene.internal_roads.append(road)
            detail = road.road_id
        else:
            lot = Lot(lot_id=scene.next_lot_id(), polygon=poly)
            scene.lots.append(lot)
            lot.front_road = self._front_road(lot)
            detail = lot.lot_id

        scene.current = []
        self.path_mode = None
        self.hover = None
        logger.info("Closed %s shape %s with %d vertices", self.mode.value, detail, len(poly))
        return Outcome(True, detail, issues)

    def _on_new_public_road(self, e: ev.NewPublicRoad) -> Outcome:
        self.history.push()
        width = e.width if e.width is not None else self.config.default_public_road_width
        road = self._add_public_road(width)
        self.mode = EditMode.PUBLIC_ROAD
        self.engine.reset()
        return Outcome(True, road.road_id)

    def _on_set_road_width(self, e: ev.SetRoadWidth) -> Outcome:
        public = self.scene.find_public_road(e.road_id)
        internal = self.scene.find_internal_road(e.road_id)
        if public is None and internal is None:
            raise UnknownEntityError("road", e.road_id)
        if e.width is not None and not (math.isfinite(e.width) and e.width > 0):
            return Outcome(False, "width must be a positive number")
        if public is not None:
            if e.width is None:
                return Outcome(False, "public roads need an explicit width")
            self.history.push()
            public.width = float(e.width)
        else:
            self.history.push()
            internal.width = None if e.width is None else float(e.width)
        return Outcome(True, e.road_id)

    def _on_reopen_boundary(self, e: ev.ReopenBoundary) -> Outcome:
        scene = self.scene
        if not scene.boundary_closed:
            return Outcome(False, "boundary is not closed")
        self.history.push()
        scene.current = list(scene.boundary)
        scene.boundary = []
        scene.boundary_closed = False
        self.mode = EditMode.BOUNDARY
        self.path_mode = EditMode.BOUNDARY
        self.engine.reset()
        logger.info("Boundary reopened for editing")
        return Outcome(True)

    def _on_clear_all(self, e: ev.ClearAll) -> Outcome:
        self.history.push()
        self.scene.clear()
        self.path_mode = None
        self.engine.reset()
        self.hover = None
        logger.info("Scene cleared")
        return Outcome(True)

    # ── Selection / deletion ─────────────────────────────────────────────

    def _on_set_mode(self, e: ev.SetMode) -> Outcome:
        self.mode = EditMode(e.mode)
        self.engine.reset()
        self.hover = None
        return Outcome(True, self.mode.value)

    def _on_delete(self, e: ev.DeleteSelection) -> Outcome:
        return Outcome(self.engine.delete_selection())

    def _on_select_entity(self, e: ev.SelectEntity) -> Outcome:
        if e.kind == "road":
            if self.scene.find_internal_road(e.entity_id) is None:
                raise UnknownEntityError("internal road", e.entity_id)
            sel = RoadEntity(e.entity_id)
        elif e.kind == "lot":
            if self.scene.find_lot(e.entity_id) is None:
                raise UnknownEntityError("lot", e.entity_id)
            sel = LotEntity(e.entity_id)
        elif e.kind == "public":
            if self.scene.find_public_road(e.entity_id) is None:
                raise UnknownEntityError("public road", e.entity_id)
            sel = PublicRoadEntity(e.entity_id)
        else:
            raise InvalidCommandError(f"Unknown entity kind '{e.kind}'")
        self.engine.drag = None
        self.engine.select(sel)
        return Outcome(True)

    # ── History ──────────────────────────────────────────────────────────

    def _owns_path(self) -> bool:
        return (
            bool(self.scene.current)
            and self.mode in (EditMode.BOUNDARY, EditMode.INTERNAL_ROAD, EditMode.LOT)
            and self.mode == self.path_mode
        )

    def _step_history(self, step, backwards: bool) -> bool:
        """Run a history step, keeping the in-progress path in line with the boundary.

        The path is not part of a snapshot. Stepping back over a boundary close
        hands the ring back to the path; stepping forward over one (or back over
        a reopen) drops the path copy again.
        """
        scene = self.scene
        was_closed = scene.boundary_closed
        ring = list(scene.boundary)
        done = step()
        if done:
            reopened = was_closed and not scene.boundary_closed and not scene.boundary
            if backwards and reopened and not scene.current:
                scene.current = ring
                self.path_mode = EditMode.BOUNDARY
                self.mode = EditMode.BOUNDARY
                logger.info("Boundary close undone; %d vertices back in the path", len(ring))
            elif not was_closed and scene.boundary_closed and scene.current == scene.boundary:
                scene.current = []
                self.path_mode = None
        self.engine.reset()
        return done

    def _on_undo(self, e: ev.Undo) -> Outcome:
        if e.smart and self._owns_path():
            self.scene.current.pop()
            if not self.scene.current:
                self.path_mode = None
            return Outcome(True, "path vertex removed")
        return Outcome(self._step_history(self.history.undo, backwards=True))

    def _on_redo(self, e: ev.Redo) -> Outcome:
        return Outcome(self._step_history(self.history.redo, backwards=False))

    # ── Settings-like commands ───────────────────────────────────────────

    def _on_set_land_id(self, e: ev.SetLandId) -> Outcome:
        if not e.land_id.strip():
            return Outcome(False, "land id cannot be empty")
        self.scene.land_id = e.land_id.strip()
        return Outcome(True)

    def _on_set_view(self, e: ev.SetView) -> Outcome:
        if not (math.isfinite(e.units_per_px) and e.units_per_px > 0):
            return Outcome(False, "units_per_px must be positive")
        self.units_per_px = e.units_per_px
        return Outcome(True)

    def _on_set_snap_options(self, e: ev.SetSnapOptions) -> Outcome:
        changes = {k: v for k, v in e.__dict__.items() if v is not None}
        if "grid_origin" in changes:
            changes["grid_origin"] = tuple(changes["grid_origin"])
        self.snap_options = replace(self.snap_options, **changes)
        return Outcome(True)

    def _on_set_auto_scale(self, e: ev.SetAutoScale) -> Outcome:
        self.auto_scale = AutoScaleOptions(
            enabled=e.enabled,
            target_area=e.target_area,
            apply_to=frozenset(EditMode(m) for m in e.apply_to),
        )
        return Outcome(True)

    # ── Scaling ──────────────────────────────────────────────────────────

    def scale_anchor(self, anchor: ev.ScaleAnchor, custom: Point) -> Point:
        if anchor == ev.ScaleAnchor.ORIGIN:
            return (0.0, 0.0)
        if anchor == ev.ScaleAnchor.CUSTOM:
            return (float(custom[0]), float(custom[1]))
        if self.scene.boundary:
            return centroid(self.scene.boundary)
        pts = self.scene.all_points()
        if not pts:
            return (0.0, 0.0)
        return (sum(p[0] for p in pts) / len(pts), sum(p[1] for p in pts) / len(pts))

    def _apply_scale(self, s: float, anchor: Point) -> None:
        scene = self.scene
        scene.boundary = scale_polygon(scene.boundary, s, anchor)
        scene.current = scale_polygon(scene.current, s, anchor)
        for road in scene.public_roads:
            road.entry_points = scale_polygon(road.entry_points, s, anchor)
        for iroad in scene.internal_roads:
            iroad.polygon = scale_polygon(iroad.polygon, s, anchor)
        for lot in scene.lots:
            lot.polygon = scale_polygon(lot.polygon, s, anchor)
        logger.info("Scaled scene by %.6g about %s", s, anchor)

    def _on_scale_scene(self, e: ev.ScaleScene) -> Outcome:
        if not (math.isfinite(e.factor) and e.factor > 0):
            return Outcome(False, "scale factor must be positive")
        self.history.push()
        self._apply_scale(e.factor, self.scale_anchor(e.anchor, e.custom_anchor))
        return Outcome(True)

    def _on_scale_to_area(self, e: ev.ScaleToArea) -> Outcome:
        s = scale_factor_for_area(area(self.scene.boundary), e.target_area)
        if s is None:
            return Outcome(False, "boundary has no area or target is not positive")
        self.history.push()
        self._apply_scale(s, self.scale_anchor(e.anchor, e.custom_anchor))
        return Outcome(True)

    # ── Derived values ───────────────────────────────────────────────────

    def _front_road(self, lot: Lot) -> str | None:
        scene = self.scene
        return compute_front_road(
            lot.polygon,
            scene.boundary,
            scene.boundary_closed,
            scene.public_roads,
            scene.internal_roads,
            self.config.frontage_tolerance,
        )

    def refresh_frontage(self) -> None:
        for lot in self.scene.lots:
            lot.front_road = self._front_road(lot)

    def anchor_point(self) -> Point | None:
        scene = self.scene
        if self.mode == EditMode.BOUNDARY and scene.boundary_closed:
            return None
        if self.mode in (EditMode.BOUNDARY, EditMode.INTERNAL_ROAD, EditMode.LOT) and scene.current:
            return scene.current[-1]
        return None

    def feedback(self) -> dict:
        """Per-frame values for live display."""
        scene = self.scene
        preview = None
        prev = self.anchor_point()
        if self.hover is not None and prev is not None:
            preview = {
                "start": list(prev),
                "end": list(self.hover),
                "midpoint": list(midpoint(prev, self.hover)),
                "length": distance(prev, self.hover),
            }

        live = None
        if len(scene.current) >= 3:
            live = {"area": area(scene.current), "centroid": list(centroid(scene.current))}

        extents = bounds(scene.all_points())
        if extents is not None:
            minx, miny, maxx, maxy = extents
            mw = max(1.0, maxx - minx) * 0.1
            mh = max(1.0, maxy - miny) * 0.1
            extents = [minx - mw, miny - mh, maxx + mw, maxy + mh]

        return {
            "preview_segment": preview,
            "live_polygon": live,
            "boundary_area": area(scene.boundary) if scene.boundary_closed else 0.0,
            "segment_labels": self.segment_labels(),
            "road_widths": {
                road.road_id: estimate_cross_width(road.polygon, self.config.width_angle_tolerance_deg)
                for road in scene.internal_roads
            },
            "fit_extents": extents,
        }

    def segment_labels(self) -> list[dict]:
        scene = self.scene
        shapes = [("boundary", scene.boundary, scene.boundary_closed), ("current", scene.current, False)]
        shapes += [(road.road_id, road.polygon, True) for road in scene.internal_roads]
        shapes += [(lot.lot_id, lot.polygon, True) for lot in scene.lots]
        labels = []
        for owner, points, closed in shapes:
            for a, b in edges(points, closed):
                labels.append({"owner": owner, "midpoint": list(midpoint(a, b)), "length": distance(a, b)})
        return labels

    def scene_view(self) -> dict:
        """Everything a renderer needs to draw the current frame."""
        self.refresh_frontage()
        scene = self.scene
        drag = self.engine.drag
        undo_depth, redo_depth = self.history.depth
        return {
            "land_id": scene.land_id,
            "mode": self.mode.value,
            "boundary": [list(p) for p in scene.boundary],
            "boundary_closed": scene.boundary_closed,
            "public_roads": [
                {"road_id": r.road_id, "width": r.width, "entry_points": [list(p) for p in r.entry_points]}
                for r in scene.public_roads
            ],
            "internal_roads": [
                {"road_id": r.road_id, "width": r.width, "polygon": [list(p) for p in r.polygon]}
                for r in scene.internal_roads
            ],
            "lots": [
                {
                    "lot_id": lot.lot_id,
                    "polygon": [list(p) for p in lot.polygon],
                    "area": lot.area,
                    "front_road": lot.front_road,
                }
                for lot in scene.lots
            ],
            "current": [list(p) for p in scene.current],
            "hover": list(self.hover) if self.hover is not None else None,
            "hover_snap": self.hover_kind.value,
            "selection": describe(self.engine.validated_selection()),
            "drag_target": describe(drag.target) if drag is not None else None,
            "units_per_px": self.units_per_px,
            "undo_depth": undo_depth,
            "redo_depth": redo_depth,
            "feedback": self.feedback(),
        }

    def export(self) -> dict:
        self.refresh_frontage()
        return build_export(
            self.scene,
            frontage_tolerance=self.config.frontage_tolerance,
            default_internal_width=self.config.default_internal_road_width,
            angle_tolerance_deg=self.config.width_angle_tolerance_deg,
        )
