# path: territory-conquest/territory_conquest/models/territory_models.py

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Set, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

from territory_conquest.models.route_models import utcnow


Position = Tuple[float, float]  # GeoJSON order: (lng, lat)
Ring = List[Position]


class PolygonGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["Polygon"] = "Polygon"
    coordinates: List[Ring] = Field(min_length=1)  # outer ring, then holes


class MultiPolygonGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["MultiPolygon"] = "MultiPolygon"
    coordinates: List[List[Ring]] = Field(min_length=1)


TerritoryGeometry = Annotated[Union[PolygonGeometry, MultiPolygonGeometry], Field(discriminator="type")]


class Territory(BaseModel):
    """
    An owned polygon or multipolygon.

    Never edited in place: a settlement deletes the old id and inserts a new
    territory, so `area` always matches `geometry`. Build through
    `services.geometry.build_territory`, which derives the area.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    route_id: str
    geometry: TerritoryGeometry
    area: float = Field(ge=0)  # m²
    conquered_at: datetime = Field(default_factory=utcnow)


class GeometryWarning(BaseModel):
    """A conquest or merge step that was skipped because its geometry could not be processed."""

    model_config = ConfigDict(frozen=True)

    stage: Literal["corridor", "conquest", "merge"]
    territory_id: Optional[str] = None
    user_id: str
    error: str
    message: str


ResolutionOutcome = Literal["conquest", "insufficient_points", "corridor_failed"]


class ResolutionResult(BaseModel):
    """Mutation set produced by one route submission; applied by the store in one transaction."""

    model_config = ConfigDict(frozen=True)

    route_id: str
    outcome: ResolutionOutcome = "conquest"
    created_territory: Optional[Territory] = None
    deleted_territory_ids: Set[str] = Field(default_factory=set)
    updated_territories: List[Territory] = Field(default_factory=list)
    affected_user_totals: Dict[str, float] = Field(default_factory=dict)
    warnings: List[GeometryWarning] = Field(default_factory=list)

    @property
    def has_mutations(self) -> bool:
        return bool(self.created_territory or self.deleted_territory_ids or self.updated_territories)


class UserTotal(BaseModel):
    user_id: str
    total_area: float = Field(ge=0)
    territory_count: int = Field(ge=0)
