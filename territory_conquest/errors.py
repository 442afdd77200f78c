# path: territory-conquest/territory_conquest/errors.py

from __future__ import annotations


class TerritoryEngineError(Exception):
    """Base class for every condition raised by the conquest engine."""


class InvalidGeometry(TerritoryEngineError, ValueError):
    """A polygon or ring is malformed (too few vertices, zero-length edges, bad coordinates)."""


class InsufficientPoints(TerritoryEngineError):
    """The route has too few distinct coordinates to be buffered into a corridor."""

    def __init__(self, distinct_points: int, required: int = 3):
        self.distinct_points = distinct_points
        self.required = required
        super().__init__(f"Route has {distinct_points} distinct points, {required} required for a corridor")


class UnresolvableGeometry(TerritoryEngineError):
    """A boolean operation could not normalize its inputs into valid polygonal area."""


class InconsistentAggregate(TerritoryEngineError):
    """A stored total area disagrees with the territory set it is derived from."""

    def __init__(self, user_id: str, message: str):
        self.user_id = user_id
        super().__init__(f"{user_id}: {message}")
