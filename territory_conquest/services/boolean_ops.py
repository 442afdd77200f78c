# path: territory-conquest/territory_conquest/services/boolean_ops.py

"""
Polygon union / intersection / difference.

All clipping goes through GEOS (shapely 2) with snap-rounding to a fixed
precision grid. Nothing outside this module calls shapely overlay functions,
so the clipping backend can be replaced without touching the resolver.
"""

from __future__ import annotations

from typing import Callable, List, Optional

import shapely
import structlog
from shapely.errors import GEOSException
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

from territory_conquest.errors import UnresolvableGeometry
from territory_conquest.services.geometry import polygon_parts

logger = structlog.get_logger()


EMPTY = Polygon()


def is_empty(shape: Optional[BaseGeometry]) -> bool:
    return shape is None or shape.is_empty


class BooleanOperator:
    """
    Robust boolean operations over metric polygons and multipolygons.

    snap_tolerance_m: precision grid size; vertices closer than this are merged.
    sliver_area_m2: result parts and holes smaller than this are discarded.
    """

    def __init__(self, snap_tolerance_m: float, sliver_area_m2: float):
        if snap_tolerance_m <= 0:
            raise ValueError("snap_tolerance_m must be positive")
        self.grid_size = snap_tolerance_m
        self.sliver_area_m2 = sliver_area_m2

    @classmethod
    def from_settings(cls, settings) -> "BooleanOperator":
        return cls(settings.snap_tolerance_m, settings.sliver_area_m2)

    def normalize(self, shape: Optional[BaseGeometry]) -> BaseGeometry:
        """Heal self-touching or self-overlapping rings and snap to the precision grid."""
        if is_empty(shape):
            return EMPTY
        try:
            # Parts are healed one by one so overlapping parts dissolve in the union below.
            parts = []
            for part in polygon_parts(shape):
                if not part.is_valid:
                    logger.debug("Healing invalid polygon", vertices=len(part.exterior.coords))
                    part = shapely.make_valid(part)
                parts.extend(polygon_parts(part))
            if not parts:
                raise UnresolvableGeometry(f"No polygonal area left after healing {shape.geom_type}")
            healed = shapely.union_all(parts, grid_size=self.grid_size)
        except GEOSException as e:
            raise UnresolvableGeometry(str(e)) from e
        if not healed.is_valid:
            raise UnresolvableGeometry("Geometry is still invalid after healing")
        return self._drop_slivers(healed)

    def union(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return self._overlay(shapely.union, a, b)

    def intersect(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return self._overlay(shapely.intersection, a, b)

    def difference(self, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        return self._overlay(shapely.difference, a, b)

    def _overlay(self, op: Callable, a: BaseGeometry, b: BaseGeometry) -> BaseGeometry:
        na = self.normalize(a)
        nb = self.normalize(b)
        try:
            result = op(na, nb, grid_size=self.grid_size)
        except GEOSException as e:
            raise UnresolvableGeometry(f"{getattr(op, '__name__', 'overlay')} failed: {e}") from e
        # Touching inputs can leave lines or points next to the polygons.
        parts = polygon_parts(result)
        if not parts:
            return EMPTY
        shape = parts[0] if len(parts) == 1 else MultiPolygon(parts)
        return self._drop_slivers(shape)

    def _drop_slivers(self, shape: BaseGeometry) -> BaseGeometry:
        kept: List[Polygon] = []
        for part in polygon_parts(shape):
            if part.area < self.sliver_area_m2:
                continue
            holes = [h for h in part.interiors if Polygon(h).area >= self.sliver_area_m2]
            if len(holes) != len(part.interiors):
                part = Polygon(part.exterior, holes)
            kept.append(part)
        if not kept:
            return EMPTY
        if len(kept) == 1:
            return kept[0]
        return MultiPolygon(kept)
