# path: territory-conquest/territory_conquest/utils/geo.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple
import math

import numpy as np
import shapely
from shapely.geometry.base import BaseGeometry


EARTH_RADIUS_M = 6371000.0


def bbox_wgs84(points_latlng: Iterable[Tuple[float, float]]) -> Dict[str, float]:
    points = list(points_latlng)
    lats = [p[0] for p in points]
    lngs = [p[1] for p in points]
    return {
        "min_lat": min(lats),
        "min_lng": min(lngs),
        "max_lat": max(lats),
        "max_lng": max(lngs),
    }


def haversine_m(a_lat: float, a_lng: float, b_lat: float, b_lng: float) -> float:
    # Route statistics only; territory geometry uses LocalProjection.
    phi1 = math.radians(a_lat)
    phi2 = math.radians(b_lat)
    dphi = math.radians(b_lat - a_lat)
    dlmb = math.radians(b_lng - a_lng)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(s))


def polyline_length_m(points_latlng: List[Tuple[float, float]]) -> float:
    total = 0.0
    for i in range(1, len(points_latlng)):
        a_lat, a_lng = points_latlng[i - 1]
        b_lat, b_lng = points_latlng[i]
        total += haversine_m(a_lat, a_lng, b_lat, b_lng)
    return total


@dataclass(frozen=True)
class LocalProjection:
    """
    Equirectangular frame used for every territory computation.

    x = lng * meters_per_degree * cos(reference_latitude), y = lat * meters_per_degree.
    Good for the small extents a route covers; not geodesically exact.
    """

    meters_per_degree: float
    reference_latitude_deg: float

    @classmethod
    def from_settings(cls, settings) -> "LocalProjection":
        return cls(settings.meters_per_degree, settings.reference_latitude_deg)

    @property
    def x_scale(self) -> float:
        return self.meters_per_degree * math.cos(math.radians(self.reference_latitude_deg))

    @property
    def y_scale(self) -> float:
        return self.meters_per_degree

    def forward(self, lat: float, lng: float) -> Tuple[float, float]:
        return lng * self.x_scale, lat * self.y_scale

    def inverse(self, x: float, y: float) -> Tuple[float, float]:
        """Returns (lat, lng)."""
        return y / self.y_scale, x / self.x_scale

    def to_metric(self, geom: BaseGeometry) -> BaseGeometry:
        """Shape in (lng, lat) degrees -> shape in metres."""
        scale = np.array([self.x_scale, self.y_scale])
        return shapely.transform(geom, lambda coords: coords * scale)

    def to_degrees(self, geom: BaseGeometry) -> BaseGeometry:
        """Shape in metres -> shape in (lng, lat) degrees."""
        scale = np.array([self.x_scale, self.y_scale])
        return shapely.transform(geom, lambda coords: coords / scale)
