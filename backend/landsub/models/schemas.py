"""Pydantic schemas for API request/response validation."""

from __future__ import annotations

import math
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from landsub.core.editor import events as ev
from landsub.core.errors import InvalidCommandError
from landsub.core.site.scene import EditMode


def _finite_pair(v: Optional[list[float]]) -> Optional[list[float]]:
    if v is None:
        return v
    if len(v) != 2:
        raise ValueError("Coordinate must be [x, y]")
    if not all(math.isfinite(c) for c in v):
        raise ValueError("Coordinate must be a finite number")
    return v


# ── Requests ─────────────────────────────────────────────────────────────

class PointerRequest(BaseModel):
    kind: ev.PointerKind
    point: Optional[list[float]] = None  # [x, y] in scene units
    axis_lock: bool = False
    constrain_normal: bool = False

    @field_validator("point")
    @classmethod
    def must_be_finite_pair(cls, v):
        return _finite_pair(v)

    def to_event(self) -> ev.PointerEvent:
        point = (self.point[0], self.point[1]) if self.point is not None else None
        return ev.PointerEvent(
            kind=self.kind,
            point=point,
            axis_lock=self.axis_lock,
            constrain_normal=self.constrain_normal,
        )


class SnapOptionsInput(BaseModel):
    vertex_px: Optional[float] = None
    line_px: Optional[float] = None
    grid_px: Optional[float] = None
    grid_step: Optional[float] = None
    grid_origin: Optional[list[float]] = None
    grid_enabled: Optional[bool] = None
    grid_strict: Optional[bool] = None

    @field_validator("grid_origin")
    @classmethod
    def origin_pair(cls, v):
        return _finite_pair(v)

    @field_validator("vertex_px", "line_px", "grid_px", "grid_step")
    @classmethod
    def non_negative(cls, v):
        if v is not None and not (math.isfinite(v) and v >= 0):
            raise ValueError("Tolerance must be a finite, non-negative number")
        return v


CommandName = Literal[
    "set_mode", "close_shape", "new_public_road", "set_road_width",
    "reopen_boundary", "clear_all", "delete_selection", "select_entity",
    "undo", "redo", "set_land_id", "set_view", "set_snap_options",
    "scale_scene", "scale_to_area", "set_auto_scale",
]


class CommandRequest(BaseModel):
    """A named command; only the fields it uses need to be sent."""

    command: CommandName
    mode: Optional[EditMode] = None
    width: Optional[float] = None
    road_id: Optional[str] = None
    kind: Optional[Literal["road", "lot", "public"]] = None
    entity_id: Optional[str] = None
    smart: bool = True
    land_id: Optional[str] = None
    units_per_px: Optional[float] = None
    factor: Optional[float] = None
    target_area: Optional[float] = None
    anchor: ev.ScaleAnchor = ev.ScaleAnchor.CENTROID
    custom_anchor: list[float] = [0.0, 0.0]
    enabled: Optional[bool] = None
    apply_to: list[EditMode] = [EditMode.BOUNDARY]
    snap: Optional[SnapOptionsInput] = None

    @field_validator("custom_anchor")
    @classmethod
    def anchor_pair(cls, v):
        return _finite_pair(v)

    def _require(self, *names: str) -> None:
        missing = [n for n in names if getattr(self, n) is None]
        if missing:
            raise InvalidCommandError(f"'{self.command}' requires: {', '.join(missing)}")

    def to_event(self):
        c = self.command
        anchor = (self.custom_anchor[0], self.custom_anchor[1])
        if c == "set_mode":
            self._require("mode")
            return ev.SetMode(self.mode)
        if c == "close_shape":
            return ev.CloseShape(width=self.width)
        if c == "new_public_road":
            return ev.NewPublicRoad(width=self.width)
        if c == "set_road_width":
            self._require("road_id")
            return ev.SetRoadWidth(self.road_id, self.width)
        if c == "reopen_boundary":
            return ev.ReopenBoundary()
        if c == "clear_all":
            return ev.ClearAll()
        if c == "delete_selection":
            return ev.DeleteSelection()
        if c == "select_entity":
            self._require("kind", "entity_id")
            return ev.SelectEntity(self.kind, self.entity_id)
        if c == "undo":
            return ev.Undo(smart=self.smart)
        if c == "redo":
            return ev.Redo()
        if c == "set_land_id":
            self._require("land_id")
            return ev.SetLandId(self.land_id)
        if c == "set_view":
            self._require("units_per_px")
            return ev.SetView(self.units_per_px)
        if c == "set_snap_options":
            self._require("snap")
            opts = self.snap.model_dump()
            if opts["grid_origin"] is not None:
                opts["grid_origin"] = tuple(opts["grid_origin"])
            return ev.SetSnapOptions(**opts)
        if c == "scale_scene":
            self._require("factor")
            return ev.ScaleScene(self.factor, self.anchor, anchor)
        if c == "scale_to_area":
            self._require("target_area")
            return ev.ScaleToArea(self.target_area, self.anchor, anchor)
        self._require("enabled")
        return ev.SetAutoScale(
            enabled=self.enabled,
            target_area=self.target_area if self.target_area is not None else 200.0,
            apply_to=frozenset(self.apply_to),
        )


# ── Responses ────────────────────────────────────────────────────────────

class OutcomeResponse(BaseModel):
    applied: bool
    detail: str = ""
    issues: list[dict] = []
    scene: dict


class PublicRoadOut(BaseModel):
    road_id: str
    is_public: bool = True
    width: float
    entry_points: list[list[float]]
    connected_to_public_road: None = None
    road_to_lot_mapping: list[str]


class InternalRoadOut(BaseModel):
    road_id: str
    polygon: list[list[float]]
    is_public: bool = False
    width: float
    connected_to_public_road: bool = True
    road_to_lot_mapping: list[str]


class LotOut(BaseModel):
    lot_id: str
    polygon: list[list[float]]
    area: float
    front_road: Optional[str] = None


class ExportInput(BaseModel):
    land_id: str
    boundary: list[list[float]]
    roads: list[PublicRoadOut]


class ExportOutput(BaseModel):
    internal_roads: list[InternalRoadOut]
    lots: list[LotOut]


class ExportDocument(BaseModel):
    input: ExportInput
    output: ExportOutput
