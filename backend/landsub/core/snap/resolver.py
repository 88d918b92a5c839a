"""Pointer snapping: raw cursor position → committed scene point.

Resolution order (first to last):

1. AXIS LOCK: with the modifier held and an anchor available, keep the
   anchor's y (horizontal) or x (vertical), whichever axis moved more.
2. GRID: nearest grid intersection, always in strict mode, otherwise
   only within the grid tolerance.
3. LINE: nearest projection onto any drawn segment within tolerance.
4. GRID vs LINE: if both qualify, the one closer to the un-locked pointer.
5. VERTEX: nearest existing vertex within tolerance replaces the result
   exactly, so coincident vertices share one value.

Tolerances are configured in pixels and converted with the view scale;
everything below works in scene units and never mutates the scene.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

from landsub.core.geometry.kernel import (
    Point,
    distance_sq,
    edges,
    point_segment_projection,
)
from landsub.core.site.scene import EditMode, SceneState

COORD_DECIMALS = 2

# Entity keys: ("boundary", None), ("public", road_id), ("road", road_id), ("lot", lot_id)
EntityKey = tuple[str, "str | None"]


class SnapKind(str, Enum):
    NONE = "none"
    GRID = "grid"
    LINE = "line"
    VERTEX = "vertex"


@dataclass(frozen=True)
class SnapOptions:
    """Snap tolerances (pixels) and grid settings (scene units)."""

    vertex_px: float = 2.0
    line_px: float = 2.0
    grid_px: float = 4.0
    grid_step: float = 1.0
    grid_origin: Point = (0.0, 0.0)
    grid_enabled: bool = False
    grid_strict: bool = False


@dataclass(frozen=True)
class SnapContext:
    """Candidate pools and view state for one resolution."""

    segments: list[tuple[Point, Point]] = field(default_factory=list)
    pools: list[list[Point]] = field(default_factory=list)
    anchor: Point | None = None
    units_per_px: float = 1.0
    axis_lock: bool = False
    options: SnapOptions = field(default_factory=SnapOptions)

    def tolerance(self, px: float) -> float:
        return px * self.units_per_px


@dataclass(frozen=True)
class SnapResult:
    point: Point
    kind: SnapKind
    raw: Point
    axis_locked: bool = False


# ── Individual snap steps ──────────────────────────────────────────────

def axis_align(prev: Point | None, p: Point) -> Point:
    """Lock ``p`` horizontally or vertically against ``prev``; ties go horizontal."""
    if prev is None:
        return p
    dx = abs(p[0] - prev[0])
    dy = abs(p[1] - prev[1])
    if dx >= dy:
        return (p[0], prev[1])
    return (prev[0], p[1])


def _round_half_up(v: float) -> float:
    return math.floor(v + 0.5)


def grid_point(p: Point, step: float, origin: Point = (0.0, 0.0)) -> Point | None:
    """Nearest grid intersection, or None for a non-positive step."""
    if not (step > 0 and math.isfinite(step)):
        return None
    ox, oy = origin
    return (
        ox + _round_half_up((p[0] - ox) / step) * step,
        oy + _round_half_up((p[1] - oy) / step) * step,
    )


def snap_to_nearest_segment(
    p: Point,
    segments: list[tuple[Point, Point]],
    tolerance: float,
) -> Point | None:
    """Projection of ``p`` onto the nearest segment, if within tolerance."""
    best = None
    for a, b in segments:
        info = point_segment_projection(p, a, b)
        if best is None or info.squared_distance < best.squared_distance:
            best = info
    if best is not None and best.distance <= tolerance:
        return (round(best.proj[0], COORD_DECIMALS), round(best.proj[1], COORD_DECIMALS))
    return None


def snap_to_pools(p: Point, pools: list[list[Point]], tolerance: float) -> Point:
    """Nearest pooled vertex within tolerance, else ``p`` unchanged."""
    best = None
    best_d2 = math.inf
    for pool in pools:
        for q in pool:
            d2 = distance_sq(p, q)
            if d2 < best_d2:
                best_d2 = d2
                best = q
    if best is not None and math.sqrt(best_d2) <= tolerance:
        return best
    return p


# ── Full resolution ────────────────────────────────────────────────────

def resolve(pointer: Point, ctx: SnapContext) -> SnapResult:
    opts = ctx.options
    locked = ctx.axis_lock and ctx.anchor is not None
    p = axis_align(ctx.anchor, pointer) if locked else pointer

    grid_cand = None
    if opts.grid_enabled:
        g = grid_point(p, opts.grid_step, opts.grid_origin)
        if g is not None:
            if opts.grid_strict or math.sqrt(distance_sq(g, p)) <= ctx.tolerance(opts.grid_px):
                grid_cand = g

    line_cand = snap_to_nearest_segment(p, ctx.segments, ctx.tolerance(opts.line_px))

    result = p
    kind = SnapKind.NONE
    if grid_cand is not None and line_cand is not None:
        if distance_sq(grid_cand, pointer) <= distance_sq(line_cand, pointer):
            result, kind = grid_cand, SnapKind.GRID
        else:
            result, kind = line_cand, SnapKind.LINE
    elif grid_cand is not None:
        result, kind = grid_cand, SnapKind.GRID
    elif line_cand is not None:
        result, kind = line_cand, SnapKind.LINE

    merged = snap_to_pools(result, ctx.pools, ctx.tolerance(opts.vertex_px))
    if merged is not result:
        result, kind = merged, SnapKind.VERTEX

    return SnapResult(point=result, kind=kind, raw=pointer, axis_locked=locked)


# ── Context from a scene ───────────────────────────────────────────────

def anchor_for_mode(scene: SceneState, mode: EditMode) -> Point | None:
    """Last committed point the next point is drawn from, if any."""
    if mode == EditMode.BOUNDARY and not scene.boundary_closed and scene.current:
        return scene.current[-1]
    if mode in (EditMode.INTERNAL_ROAD, EditMode.LOT) and scene.current:
        return scene.current[-1]
    if mode == EditMode.PUBLIC_ROAD:
        road = scene.active_public_road
        if road is not None and road.entry_points:
            return road.entry_points[-1]
    return None


def build_context(
    scene: SceneState,
    mode: EditMode,
    *,
    units_per_px: float,
    axis_lock: bool = False,
    options: SnapOptions | None = None,
    exclude: EntityKey | None = None,
) -> SnapContext:
    """Collect snap candidates from the scene.

    ``exclude`` names an entity whose vertices and edges must not attract
    the pointer (the one being dragged).
    """
    def keep(key: EntityKey) -> bool:
        return exclude is None or key != exclude

    segments: list[tuple[Point, Point]] = []
    pools: list[list[Point]] = []

    if keep(("boundary", None)):
        segments += edges(scene.boundary, closed=scene.boundary_closed)
        if scene.boundary:
            pools.append(scene.boundary)

    segments += edges(scene.current, closed=False)
    if len(scene.current) > 1:
        pools.append(scene.current[:-1])

    for road in scene.public_roads:
        if keep(("public", road.road_id)) and road.entry_points:
            pools.append(road.entry_points)
    for iroad in scene.internal_roads:
        if keep(("road", iroad.road_id)):
            segments += edges(iroad.polygon)
            pools.append(iroad.polygon)
    for lot in scene.lots:
        if keep(("lot", lot.lot_id)):
            segments += edges(lot.polygon)
            pools.append(lot.polygon)

    return SnapContext(
        segments=segments,
        pools=pools,
        anchor=anchor_for_mode(scene, mode),
        units_per_px=units_per_px,
        axis_lock=axis_lock,
        options=options or SnapOptions(),
    )
