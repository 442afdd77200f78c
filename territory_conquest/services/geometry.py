# path: territory-conquest/territory_conquest/services/geometry.py

"""
Geometry primitives shared by the corridor builder, boolean operator and resolver.

Internal shapes are shapely geometries in the LocalProjection metric frame
(x east, y north, metres). Exchange geometry is GeoJSON with (lng, lat)
positions; conversion happens only in `to_shape` / `to_geojson`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple, Union
import math
import uuid

from pydantic import TypeAdapter, ValidationError
import shapely
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient

from territory_conquest.errors import InvalidGeometry
from territory_conquest.models.route_models import utcnow
from territory_conquest.models.territory_models import (
    MultiPolygonGeometry,
    PolygonGeometry,
    Territory,
    TerritoryGeometry,
)
from territory_conquest.utils.geo import LocalProjection


_geometry_adapter = TypeAdapter(TerritoryGeometry)

GeometryLike = Union[PolygonGeometry, MultiPolygonGeometry, dict]


def new_territory_id() -> str:
    return str(uuid.uuid4())


def open_ring(ring: Sequence[Sequence[float]]) -> List[Tuple[float, float]]:
    """Drop the explicit closing vertex if present."""
    pts = [(float(p[0]), float(p[1])) for p in ring]
    if len(pts) > 1 and pts[0] == pts[-1]:
        pts = pts[:-1]
    return pts


def ring_is_valid(ring: Sequence[Sequence[float]]) -> bool:
    """True iff the ring has >= 3 distinct finite vertices and no zero-length edges."""
    try:
        pts = open_ring(ring)
    except (TypeError, ValueError, IndexError):
        return False
    if len(pts) < 3:
        return False
    if not all(math.isfinite(c) for p in pts for c in p):
        return False
    if len(set(pts)) < 3:
        return False
    for i in range(len(pts)):
        if pts[i] == pts[(i + 1) % len(pts)]:
            return False
    return True


def parse_geometry(geometry: GeometryLike) -> Union[PolygonGeometry, MultiPolygonGeometry]:
    if isinstance(geometry, (PolygonGeometry, MultiPolygonGeometry)):
        return geometry
    try:
        return _geometry_adapter.validate_python(geometry)
    except ValidationError as e:
        raise InvalidGeometry(f"Not a GeoJSON Polygon/MultiPolygon: {e.error_count()} error(s)") from e


def _polygon_from_rings(rings: List[Sequence[Sequence[float]]], projection: LocalProjection) -> Polygon:
    if not rings:
        raise InvalidGeometry("Polygon has no rings")
    for ring in rings:
        if not ring_is_valid(ring):
            raise InvalidGeometry(f"Degenerate ring with {len(ring)} position(s)")
    # GeoJSON (lng, lat) is already (x, y) order
    return projection.to_metric(Polygon(open_ring(rings[0]), [open_ring(r) for r in rings[1:]]))


def to_shape(geometry: GeometryLike, projection: LocalProjection) -> BaseGeometry:
    """Exchange geometry -> metric shapely Polygon / MultiPolygon."""
    geom = parse_geometry(geometry)
    if isinstance(geom, PolygonGeometry):
        return _polygon_from_rings(geom.coordinates, projection)
    return MultiPolygon([_polygon_from_rings(rings, projection) for rings in geom.coordinates])


def polygon_parts(shape: Optional[BaseGeometry]) -> List[Polygon]:
    """Flatten any geometry to its non-empty polygonal parts."""
    if shape is None or shape.is_empty:
        return []
    if isinstance(shape, Polygon):
        return [shape]
    if isinstance(shape, MultiPolygon):
        return [p for p in shape.geoms if not p.is_empty]
    if hasattr(shape, "geoms"):
        parts: List[Polygon] = []
        for g in shape.geoms:
            parts.extend(polygon_parts(g))
        return parts
    return []


def _ring_positions(coords) -> List[Tuple[float, float]]:
    return [(float(lng), float(lat)) for lng, lat in coords]


def to_geojson(shape: BaseGeometry, projection: LocalProjection) -> Union[PolygonGeometry, MultiPolygonGeometry]:
    """Metric shape -> exchange geometry with closed, counter-clockwise outer rings."""
    parts = polygon_parts(shape)
    if not parts:
        raise InvalidGeometry("Cannot export an empty geometry")
    polygons = []
    for part in parts:
        part = projection.to_degrees(orient(part, sign=1.0))
        rings = [_ring_positions(part.exterior.coords)]
        rings.extend(_ring_positions(hole.coords) for hole in part.interiors)
        polygons.append(rings)
    if len(polygons) == 1:
        return PolygonGeometry(coordinates=polygons[0])
    return MultiPolygonGeometry(coordinates=polygons)


def area(geometry: Union[GeometryLike, BaseGeometry], projection: LocalProjection) -> float:
    """Planar area in m². Exchange geometry is validated; metric shapes are measured directly."""
    if isinstance(geometry, BaseGeometry):
        shape = geometry
    else:
        shape = to_shape(geometry, projection)
    if not shape.is_valid:
        raise InvalidGeometry(f"Invalid polygon: {shapely.is_valid_reason(shape)}")
    return max(0.0, float(shape.area))


def build_territory(
    shape: BaseGeometry,
    user_id: str,
    route_id: str,
    projection: LocalProjection,
    id_factory: Callable[[], str] = new_territory_id,
    conquered_at: Optional[datetime] = None,
) -> Territory:
    """Create a territory whose area is derived from the exported geometry itself."""
    geometry = to_geojson(shape, projection)
    return Territory(
        id=id_factory(),
        user_id=user_id,
        route_id=route_id,
        geometry=geometry,
        area=area(geometry, projection),
        conquered_at=conquered_at or utcnow(),
    )
