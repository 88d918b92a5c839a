"""Input events and commands consumed by ``EditorSession.handle``."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from landsub.core.geometry.kernel import Point
from landsub.core.site.scene import EditMode


class PointerKind(str, Enum):
    MOVE = "move"
    DOWN = "down"
    UP = "up"
    LEAVE = "leave"


class ScaleAnchor(str, Enum):
    CENTROID = "centroid"
    ORIGIN = "origin"
    CUSTOM = "custom"


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position already mapped into scene units by the view."""

    kind: PointerKind
    point: Point | None = None
    axis_lock: bool = False
    constrain_normal: bool = False


@dataclass(frozen=True)
class SetMode:
    mode: EditMode


@dataclass(frozen=True)
class CloseShape:
    width: float | None = None  # internal roads only


@dataclass(frozen=True)
class NewPublicRoad:
    width: float | None = None


@dataclass(frozen=True)
class SetRoadWidth:
    road_id: str
    width: float | None


@dataclass(frozen=True)
class ReopenBoundary:
    pass


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class DeleteSelection:
    pass


@dataclass(frozen=True)
class SelectEntity:
    kind: str  # "road" | "lot" | "public"
    entity_id: str


@dataclass(frozen=True)
class Undo:
    smart: bool = True


@dataclass(frozen=True)
class Redo:
    pass


@dataclass(frozen=True)
class SetLandId:
    land_id: str


@dataclass(frozen=True)
class SetView:
    units_per_px: float


@dataclass(frozen=True)
class SetSnapOptions:
    vertex_px: float | None = None
    line_px: float | None = None
    grid_px: float | None = None
    grid_step: float | None = None
    grid_origin: Point | None = None
    grid_enabled: bool | None = None
    grid_strict: bool | None = None


@dataclass(frozen=True)
class ScaleScene:
    factor: float
    anchor: ScaleAnchor = ScaleAnchor.CENTROID
    custom_anchor: Point = (0.0, 0.0)


@dataclass(frozen=True)
class ScaleToArea:
    target_area: float
    anchor: ScaleAnchor = ScaleAnchor.CENTROID
    custom_anchor: Point = (0.0, 0.0)


@dataclass(frozen=True)
class SetAutoScale:
    enabled: bool
    target_area: float = 200.0
    apply_to: frozenset = field(default_factory=lambda: frozenset({EditMode.BOUNDARY}))
