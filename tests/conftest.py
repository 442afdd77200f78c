"""Shared fixtures: settings, a metric test frame, and deterministic ids."""

import itertools

import pytest

from territory_conquest.config import Settings
from territory_conquest.models.territory_models import PolygonGeometry
from territory_conquest.services.boolean_ops import BooleanOperator
from territory_conquest.services.geometry import build_territory, to_shape
from territory_conquest.utils.geo import LocalProjection


ORIGIN_LAT = 40.4168
ORIGIN_LNG = -3.7038


class MapBuilder:
    """Builds test coordinates and territories from metre offsets around a fixed origin."""

    def __init__(self, projection: LocalProjection):
        self.projection = projection
        self.ox, self.oy = projection.forward(ORIGIN_LAT, ORIGIN_LNG)

    def latlng(self, x, y):
        return self.projection.inverse(self.ox + x, self.oy + y)

    def path(self, points):
        return [self.latlng(x, y) for x, y in points]

    def rect(self, x0, y0, x1, y1) -> PolygonGeometry:
        ring = []
        for x, y in [(x0, y0), (x1, y0), (x1, y1), (x0, y1), (x0, y0)]:
            lat, lng = self.latlng(x, y)
            ring.append((lng, lat))
        return PolygonGeometry(coordinates=[ring])

    def shape(self, x0, y0, x1, y1):
        return to_shape(self.rect(x0, y0, x1, y1), self.projection)

    def territory(self, territory_id, user_id, x0, y0, x1, y1, route_id="route-seed"):
        return build_territory(
            self.shape(x0, y0, x1, y1),
            user_id,
            route_id,
            self.projection,
            id_factory=lambda: territory_id,
        )


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def projection(settings):
    return LocalProjection.from_settings(settings)


@pytest.fixture
def operator(settings):
    return BooleanOperator.from_settings(settings)


@pytest.fixture
def world(projection):
    return MapBuilder(projection)


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"t-{next(counter):03d}"
