"""Scene entities: boundary, public roads, internal roads and lots."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from enum import Enum

from landsub.core.geometry.kernel import Point, area

_ROAD_ID_RE = re.compile(r"^R(\d+)$")


class EditMode(str, Enum):
    BOUNDARY = "boundary"
    PUBLIC_ROAD = "publicRoad"
    INTERNAL_ROAD = "internalRoad"
    LOT = "lot"
    SELECT = "select"


@dataclass
class PublicRoad:
    """A public road touching the parcel at one or more entry points."""

    road_id: str
    width: float
    entry_points: list[Point] = field(default_factory=list)


@dataclass
class InternalRoad:
    """A road drawn inside the parcel; ``width=None`` means estimate it."""

    road_id: str
    polygon: list[Point]
    width: float | None = None


@dataclass
class Lot:
    lot_id: str
    polygon: list[Point]
    front_road: str | None = None

    @property
    def area(self) -> float:
        return area(self.polygon)


@dataclass
class HistorySnapshot:
    """Deep copy of the persistent part of a scene."""

    boundary: list[Point]
    boundary_closed: bool
    public_roads: list[PublicRoad]
    internal_roads: list[InternalRoad]
    lots: list[Lot]


@dataclass
class SceneState:
    """Everything the user has drawn plus the path currently being drawn.

    ``current`` (the in-progress path) is transient and never part of a
    history snapshot.
    """

    land_id: str = "L001"
    boundary: list[Point] = field(default_factory=list)
    boundary_closed: bool = False
    public_roads: list[PublicRoad] = field(default_factory=list)
    internal_roads: list[InternalRoad] = field(default_factory=list)
    lots: list[Lot] = field(default_factory=list)
    current: list[Point] = field(default_factory=list)

    # ── Snapshots ────────────────────────────────────────────────────────

    def snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            boundary=list(self.boundary),
            boundary_closed=self.boundary_closed,
            public_roads=copy.deepcopy(self.public_roads),
            internal_roads=copy.deepcopy(self.internal_roads),
            lots=copy.deepcopy(self.lots),
        )

    def restore(self, snap: HistorySnapshot) -> None:
        self.boundary = list(snap.boundary)
        self.boundary_closed = snap.boundary_closed
        self.public_roads = copy.deepcopy(snap.public_roads)
        self.internal_roads = copy.deepcopy(snap.internal_roads)
        self.lots = copy.deepcopy(snap.lots)

    # ── Lookup ───────────────────────────────────────────────────────────

    def find_internal_road(self, road_id: str) -> InternalRoad | None:
        return next((r for r in self.internal_roads if r.road_id == road_id), None)

    def find_public_road(self, road_id: str) -> PublicRoad | None:
        return next((r for r in self.public_roads if r.road_id == road_id), None)

    def find_lot(self, lot_id: str) -> Lot | None:
        return next((lot for lot in self.lots if lot.lot_id == lot_id), None)

    @property
    def active_public_road(self) -> PublicRoad | None:
        return self.public_roads[-1] if self.public_roads else None

    # ── Identifiers ──────────────────────────────────────────────────────

    def next_road_id(self) -> str:
        """Next ``R###`` id; public and internal roads share the sequence."""
        used = [0]
        for rid in [r.road_id for r in self.public_roads] + [r.road_id for r in self.internal_roads]:
            m = _ROAD_ID_RE.match(rid)
            if m:
                used.append(int(m.group(1)))
        return f"R{max(used) + 1:03d}"

    def next_lot_id(self) -> str:
        prefix = f"{self.land_id}-"
        used = [0]
        for lot in self.lots:
            if lot.lot_id.startswith(prefix) and lot.lot_id[len(prefix):].isdigit():
                used.append(int(lot.lot_id[len(prefix):]))
        return f"{prefix}{max(used) + 1:02d}"

    # ── Derived collections ──────────────────────────────────────────────

    def all_points(self) -> list[Point]:
        pts = list(self.boundary)
        for road in self.public_roads:
            pts.extend(road.entry_points)
        for iroad in self.internal_roads:
            pts.extend(iroad.polygon)
        for lot in self.lots:
            pts.extend(lot.polygon)
        pts.extend(self.current)
        return pts

    def clear(self) -> None:
        self.boundary = []
        self.boundary_closed = False
        self.public_roads = []
        self.internal_roads = []
        self.lots = []
        self.current = []
