"""DXF export of a subdivision scene.

Entity structure per element:
  Boundary:      LWPOLYLINE on C-PROP (closed), or C-REFR while still open
  Public road:   POINT per entry point + LWPOLYLINE frontage arc + TEXT id
  Internal road: LWPOLYLINE (closed) + TEXT id and width
  Lot:           LWPOLYLINE (closed) + TEXT id + TEXT area and front road
"""

from __future__ import annotations

import io
import logging

import ezdxf
from ezdxf.enums import TextEntityAlignment

from landsub.core.exporter.dxf_layers import (
    CUSTOM_LINETYPES, DXF_UNITS, LAYERS, TEXT_STYLES,
)
from landsub.core.geometry.kernel import Point, bounds, centroid
from landsub.core.site.export import road_width
from landsub.core.site.frontage import public_frontage_arc, resolve_all_frontages
from landsub.core.site.scene import SceneState

logger = logging.getLogger(__name__)


class DXFExporter:
    """Builds a DXF document from a subdivision scene."""

    def __init__(self, unit: str = "m", text_height: float = 1.0):
        self.doc = ezdxf.new("R2010", setup=True)
        self.msp = self.doc.modelspace()
        self.unit = unit
        self.text_height = text_height

        self._setup_linetypes()
        self._setup_layers()
        self._setup_text_styles()

        self.doc.header["$INSUNITS"] = DXF_UNITS.get(unit, 6)
        self.doc.header["$LTSCALE"] = 1.0

    # ── Setup ───────────────────────────────────────────────────────────

    def _setup_linetypes(self):
        for lt in CUSTOM_LINETYPES:
            if lt["name"] not in self.doc.linetypes:
                self.doc.linetypes.add(
                    lt["name"],
                    pattern=lt["pattern"],
                    description=lt["description"],
                )

    def _setup_layers(self):
        for layer_def in LAYERS:
            if layer_def.name in self.doc.layers:
                continue
            layer = self.doc.layers.add(
                layer_def.name,
                color=layer_def.color,
                linetype=layer_def.linetype,
            )
            layer.dxf.lineweight = layer_def.lineweight
            if not layer_def.plot:
                layer.dxf.plot = 0

    def _setup_text_styles(self):
        for ts in TEXT_STYLES:
            if ts["name"] not in self.doc.styles:
                self.doc.styles.add(ts["name"], font=ts["font"])

    # ── Entities ────────────────────────────────────────────────────────

    def add_boundary(self, coords: list[Point], closed: bool):
        if len(coords) < 2:
            return
        self.msp.add_lwpolyline(
            coords,
            close=closed,
            dxfattribs={"layer": "C-PROP" if closed else "C-REFR"},
        )

    def add_public_road(self, road_id: str, entry_points: list[Point], frontage: list[tuple[Point, Point]]):
        for p in entry_points:
            self.msp.add_point(p, dxfattribs={"layer": "C-ROAD-ENTR"})
        for a, b in frontage:
            self.msp.add_line(a, b, dxfattribs={"layer": "C-ROAD-PUBL"})
        if entry_points:
            self._label(entry_points[0], road_id, "C-ANNO-TEXT")

    def add_internal_road(self, road_id: str, polygon: list[Point], width: float):
        self.msp.add_lwpolyline(polygon, close=True, dxfattribs={"layer": "C-ROAD"})
        self._label(centroid(polygon), f"{road_id} ({width:.1f})", "C-ANNO-TEXT")

    def add_lot(self, lot_id: str, polygon: list[Point], area: float, front_road: str | None):
        """Lot outline with its id at the centroid and area/front road below."""
        self.msp.add_lwpolyline(polygon, close=True, dxfattribs={"layer": "C-LOTS"})
        cx, cy = centroid(polygon)
        self._label((cx, cy), lot_id, "C-ANNO-TEXT")
        note = f"{area:.1f} {self.unit}²"
        if front_road:
            note += f" / {front_road}"
        self._label((cx, cy - 1.5 * self.text_height), note, "C-ANNO-AREA", small=True)

    def _label(self, position: Point, text: str, layer: str, small: bool = False):
        self.msp.add_text(
            text,
            height=self.text_height * (0.7 if small else 1.0),
            dxfattribs={
                "layer": layer,
                "style": "LANDSUB_NOTE" if small else "LANDSUB_LABEL",
            },
        ).set_placement(position, align=TextEntityAlignment.MIDDLE_CENTER)

    # ── Scene ───────────────────────────────────────────────────────────

    def write_scene(
        self,
        scene: SceneState,
        *,
        frontage_tolerance: float,
        default_internal_width: float = 6.0,
        angle_tolerance_deg: float = 10.0,
    ):
        """Draw every entity in the scene."""
        fronts = resolve_all_frontages(
            scene.lots,
            scene.boundary,
            scene.boundary_closed,
            scene.public_roads,
            scene.internal_roads,
            frontage_tolerance,
        )
        closed = scene.boundary_closed and len(scene.boundary) >= 3
        self.add_boundary(scene.boundary, closed)

        for proad in scene.public_roads:
            frontage = []
            if closed and len(proad.entry_points) >= 2:
                frontage = public_frontage_arc(scene.boundary, proad.entry_points[0], proad.entry_points[1])
            self.add_public_road(proad.road_id, proad.entry_points, frontage)

        for iroad in scene.internal_roads:
            self.add_internal_road(
                iroad.road_id,
                iroad.polygon,
                road_width(iroad, default_internal_width, angle_tolerance_deg),
            )

        for lot in scene.lots:
            self.add_lot(lot.lot_id, lot.polygon, lot.area, fronts[lot.lot_id])

        extents = bounds(scene.all_points())
        if extents is not None:
            self.doc.header["$EXTMIN"] = (extents[0], extents[1], 0)
            self.doc.header["$EXTMAX"] = (extents[2], extents[3], 0)

        logger.info(
            "DXF drawn for %s: %d lots, %d internal roads",
            scene.land_id, len(scene.lots), len(scene.internal_roads),
        )

    # ── Output ─────────────────────────────────────────────────────────

    def to_bytes(self) -> bytes:
        """Serialize DXF to bytes for HTTP response streaming."""
        stream = io.StringIO()
        self.doc.write(stream)
        stream.seek(0)
        return stream.read().encode("utf-8")
