from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "LandSub Subdivision Editor"
    debug: bool = True
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    default_land_id: str = "L001"
    default_public_road_width: float = 12.0
    default_internal_road_width: float = 6.0
    estimate_road_width: bool = True

    # Snap tolerances are in screen pixels, converted with units_per_px
    vertex_snap_px: float = 2.0
    line_snap_px: float = 2.0
    grid_snap_px: float = 4.0
    grid_step: float = 1.0
    grid_enabled: bool = False
    grid_strict: bool = False
    hit_tolerance_px: float = 6.0

    frontage_tolerance: float = 0.5  # scene units
    width_angle_tolerance_deg: float = 10.0
    units_per_px: float = 0.2  # 100% zoom = 5x magnification
    auto_scale_target_area: float = 200.0
    dxf_unit: str = "m"

    class Config:
        env_prefix = "LANDSUB_"


settings = Settings()
