# path: territory-conquest/territory_conquest/models/route_models.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RouteSubmission(BaseModel):
    """A completed GPS trace as sent by the client. Coordinates are (lat, lng)."""

    user_id: str = Field(min_length=1)
    coordinates: List[Tuple[float, float]]  # (lat, lng)
    name: Optional[str] = Field(default=None, max_length=80)
    duration_s: Optional[int] = Field(default=None, ge=0)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    corridor_half_width_m: Optional[float] = Field(default=None, gt=0)

    @field_validator("coordinates")
    @classmethod
    def validate_coords(cls, coords: List[Tuple[float, float]]):
        if len(coords) < 1:
            raise ValueError("Route must contain at least 1 coordinate")
        for lat, lng in coords:
            if not (-90.0 <= lat <= 90.0):
                raise ValueError(f"lat out of range [-90,90]: {lat}")
            if not (-180.0 <= lng <= 180.0):
                raise ValueError(f"lng out of range [-180,180]: {lng}")
        return coords

    @model_validator(mode="after")
    def validate_times(self):
        if self.started_at and self.completed_at and self.completed_at < self.started_at:
            raise ValueError("completed_at must not precede started_at")
        return self


class BBoxWGS84(BaseModel):
    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float


class Route(BaseModel):
    """A recorded route. Immutable once handed to the engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    name: str
    coordinates: Tuple[Tuple[float, float], ...]  # (lat, lng), consecutive duplicates removed
    distinct_point_count: int = Field(ge=1)
    distance_m: float = Field(ge=0)
    duration_s: Optional[int] = None
    bbox_wgs84: BBoxWGS84
    started_at: datetime
    completed_at: datetime

    @model_validator(mode="after")
    def validate_points(self):
        if not self.coordinates:
            raise ValueError("Route must contain at least 1 coordinate")
        if self.distinct_point_count > len(self.coordinates):
            raise ValueError("distinct_point_count cannot exceed the number of coordinates")
        return self
