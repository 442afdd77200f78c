# path: territory-conquest/territory_conquest/config.py

"""Configuration management."""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine and API settings."""

    model_config = SettingsConfigDict(env_prefix="TERRITORY_", env_file=".env", extra="ignore")

    # Corridor
    corridor_half_width_m: float = Field(default=50.0, gt=0, description="Corridor half-width in metres")
    corridor_quad_segs: int = Field(default=8, ge=1, description="Segments per quarter circle on round caps/joins")

    # Boolean operations
    snap_tolerance_m: float = Field(default=0.001, gt=0, description="Precision grid for snap-rounding, metres")
    sliver_area_m2: float = Field(default=0.01, ge=0, description="Parts below this area are dropped")

    # Local planar frame
    meters_per_degree: float = Field(default=111_320.0, gt=0, description="Metres per degree of latitude")
    reference_latitude_deg: float = Field(
        default=40.4168, gt=-90, lt=90, description="Latitude the equirectangular frame is centred on"
    )

    # Aggregates
    aggregate_tolerance_m2: float = Field(default=1e-6, ge=0, description="Allowed drift between stored and derived totals")

    # API / logging
    api_title: str = Field(default="territory-conquest", description="FastAPI title")
    log_level: str = Field(default="INFO", description="Log level")

    @model_validator(mode="after")
    def check_tolerance_scale(self):
        if self.snap_tolerance_m >= self.corridor_half_width_m / 100:
            raise ValueError("snap_tolerance_m must be much smaller than corridor_half_width_m")
        return self


settings = Settings()
