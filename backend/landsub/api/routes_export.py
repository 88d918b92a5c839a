"""Export endpoints: subdivision JSON and DXF downloads."""

import io

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from landsub.api.routes_session import get_session
from landsub.config import settings
from landsub.core.exporter.dxf_writer import DXFExporter
from landsub.models.schemas import ExportDocument

router = APIRouter(tags=["export"])


@router.get("/export/json", response_model=ExportDocument)
async def export_json():
    return get_session().export()


@router.get("/export/dxf")
async def export_dxf(unit: str = settings.dxf_unit):
    """Render the current scene to DXF and return it as a download."""
    session = get_session()
    session.refresh_frontage()
    exporter = DXFExporter(unit=unit)
    exporter.write_scene(
        session.scene,
        frontage_tolerance=session.config.frontage_tolerance,
        default_internal_width=session.config.default_internal_road_width,
        angle_tolerance_deg=session.config.width_angle_tolerance_deg,
    )
    filename = f"{session.scene.land_id}.dxf"
    return StreamingResponse(
        io.BytesIO(exporter.to_bytes()),
        media_type="application/dxf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
