# path: territory-conquest/territory_conquest/services/corridor_builder.py

from __future__ import annotations

from typing import List, Sequence, Tuple

import structlog
from shapely.geometry import LineString
from shapely.geometry.base import BaseGeometry

from territory_conquest.errors import InsufficientPoints, InvalidGeometry
from territory_conquest.services.boolean_ops import BooleanOperator, is_empty
from territory_conquest.utils.geo import LocalProjection

logger = structlog.get_logger()


MIN_DISTINCT_POINTS = 3


def distinct_points(coordinates: Sequence[Tuple[float, float]]) -> int:
    return len({(float(lat), float(lng)) for lat, lng in coordinates})


class CorridorBuilder:
    """Buffers a route polyline into the corridor polygon it claims."""

    def __init__(
        self,
        projection: LocalProjection,
        operator: BooleanOperator,
        half_width_m: float,
        quad_segs: int = 8,
    ):
        if half_width_m <= 0:
            raise ValueError("half_width_m must be positive")
        if half_width_m < operator.grid_size * 100:
            raise ValueError(
                f"half_width_m ({half_width_m}) must be at least 100x the snap tolerance ({operator.grid_size})"
            )
        self.projection = projection
        self.operator = operator
        self.half_width_m = half_width_m
        self.quad_segs = quad_segs

    @classmethod
    def from_settings(cls, settings, half_width_m: float | None = None) -> "CorridorBuilder":
        return cls(
            projection=LocalProjection.from_settings(settings),
            operator=BooleanOperator.from_settings(settings),
            half_width_m=half_width_m or settings.corridor_half_width_m,
            quad_segs=settings.corridor_quad_segs,
        )

    def build(self, coordinates: Sequence[Tuple[float, float]]) -> BaseGeometry:
        """
        coordinates: ordered (lat, lng) pairs.

        Raises InsufficientPoints below three distinct coordinates. The buffer
        has round caps and joins; self-overlap at sharp turns is healed before
        the corridor is returned.
        """
        count = distinct_points(coordinates)
        if count < MIN_DISTINCT_POINTS:
            raise InsufficientPoints(count, MIN_DISTINCT_POINTS)

        path: List[Tuple[float, float]] = []
        for lat, lng in coordinates:
            pt = self.projection.forward(lat, lng)
            if not path or pt != path[-1]:
                path.append(pt)

        buffered = LineString(path).buffer(
            self.half_width_m,
            quad_segs=self.quad_segs,
            cap_style="round",
            join_style="round",
        )
        corridor = self.operator.normalize(buffered)
        if is_empty(corridor):
            raise InvalidGeometry("Route corridor collapsed to an empty polygon")

        logger.debug(
            "Corridor built",
            points=len(path),
            half_width_m=self.half_width_m,
            area_m2=round(corridor.area, 2),
        )
        return corridor
