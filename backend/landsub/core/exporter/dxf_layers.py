"""DXF layer, linetype and text style definitions for subdivision plans.

Layer naming follows the AIA civil discipline prefix: C-<element>[-<modifier>].

ACI color index reference:
  1=red  2=yellow  3=green  4=cyan  5=blue  6=magenta  7=white  8=dark grey

Lineweight values are in 100ths of mm.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LayerDef:
    name: str
    color: int
    linetype: str
    lineweight: int
    description: str
    plot: bool = True


# ── Layer definitions ───────────────────────────────────────────────────

LAYERS: list[LayerDef] = [
    LayerDef("C-PROP",        2, "Continuous", 70, "Parcel boundary"),
    LayerDef("C-ROAD-PUBL",   1, "Continuous", 35, "Public road frontage"),
    LayerDef("C-ROAD-ENTR",   1, "Continuous", 25, "Public road entry points"),
    LayerDef("C-ROAD",        4, "Continuous", 35, "Internal road outlines"),
    LayerDef("C-LOTS",        3, "Continuous", 25, "Lot outlines"),
    LayerDef("C-ANNO-TEXT",   7, "Continuous", -1, "Lot and road labels"),
    LayerDef("C-ANNO-AREA",   8, "Continuous", -1, "Lot areas"),
    LayerDef("C-REFR",        8, "DASHED",     13, "Open boundary path", plot=False),
]

LAYER_MAP: dict[str, LayerDef] = {layer.name: layer for layer in LAYERS}


# ── Linetypes / text styles ────────────────────────────────────────────

CUSTOM_LINETYPES: list[dict] = [
    {
        "name": "DASHED",
        "pattern": "A,0.5,-0.25",
        "description": "Dashed __ __ __ __",
    },
]

TEXT_STYLES: list[dict] = [
    {"name": "LANDSUB_LABEL", "font": "Arial"},
    {"name": "LANDSUB_NOTE", "font": "Arial Narrow"},
]


# ── DXF unit mapping ───────────────────────────────────────────────────

DXF_UNITS = {
    "mm": 4,
    "cm": 5,
    "m": 6,
    "ft": 2,
    "in": 1,
}
