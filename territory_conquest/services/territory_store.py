# path: territory-conquest/territory_conquest/services/territory_store.py

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol
import threading

import structlog

from territory_conquest.config import settings
from territory_conquest.errors import InvalidGeometry
from territory_conquest.models.route_models import Route
from territory_conquest.models.territory_models import ResolutionResult, Territory, UserTotal
from territory_conquest.services.area_aggregator import recompute_total
from territory_conquest.services.geometry import area
from territory_conquest.utils.geo import LocalProjection

logger = structlog.get_logger()


class StaleMutationSet(RuntimeError):
    """A mutation set references territories that are no longer in the store."""


class TerritoryStore(Protocol):
    """What the conquest service needs from persistence."""

    def record_route(self, route: Route) -> None: ...

    def get_route(self, route_id: str) -> Optional[Route]: ...

    def list_routes(self, user_id: str) -> List[Route]: ...

    def list_territories(self) -> List[Territory]: ...

    def territories_for(self, user_id: str) -> List[Territory]: ...

    def get_total(self, user_id: str) -> Optional[float]: ...

    def apply(self, result: ResolutionResult) -> None: ...


class InMemoryTerritoryStore:
    """
    Reference store. `apply` is all-or-nothing: the new state is built on
    copies and swapped in only when every mutation succeeded.
    """

    def __init__(self, projection: Optional[LocalProjection] = None, tolerance_m2: Optional[float] = None):
        self.projection = projection or LocalProjection.from_settings(settings)
        self.tolerance_m2 = settings.aggregate_tolerance_m2 if tolerance_m2 is None else tolerance_m2
        self._lock = threading.RLock()
        self._routes: Dict[str, Route] = {}
        self._territories: Dict[str, Territory] = {}
        self._totals: Dict[str, float] = {}

    def record_route(self, route: Route) -> None:
        with self._lock:
            self._routes[route.id] = route
        logger.info("Route recorded", route_id=route.id, user_id=route.user_id, distance_m=round(route.distance_m, 1))

    def get_route(self, route_id: str) -> Optional[Route]:
        with self._lock:
            return self._routes.get(route_id)

    def list_routes(self, user_id: str) -> List[Route]:
        with self._lock:
            return [r for r in self._routes.values() if r.user_id == user_id]

    def list_territories(self) -> List[Territory]:
        with self._lock:
            return sorted(self._territories.values(), key=lambda t: t.id)

    def territories_for(self, user_id: str) -> List[Territory]:
        return [t for t in self.list_territories() if t.user_id == user_id]

    def get_total(self, user_id: str) -> Optional[float]:
        with self._lock:
            return self._totals.get(user_id)

    def user_total(self, user_id: str) -> UserTotal:
        with self._lock:
            owned = self.territories_for(user_id)
            return UserTotal(
                user_id=user_id,
                total_area=self._totals.get(user_id, 0.0),
                territory_count=len(owned),
            )

    def insert_territories(self, territories: Iterable[Territory]) -> None:
        """Load pre-existing territories (imports, fixtures) and refresh their owners' totals.

        Each stored area must match the planar area of its geometry; a mismatch
        raises InvalidGeometry and nothing is loaded.
        """
        territories = list(territories)
        for t in territories:
            derived = area(t.geometry, self.projection)
            if abs(derived - t.area) > max(self.tolerance_m2, derived * 1e-9):
                raise InvalidGeometry(f"Territory {t.id} stores area {t.area} but its geometry measures {derived}")
        with self._lock:
            owners = set()
            for t in territories:
                self._territories[t.id] = t
                owners.add(t.user_id)
            for user_id in owners:
                self._totals[user_id] = recompute_total(user_id, self._territories.values())

    def apply(self, result: ResolutionResult) -> None:
        with self._lock:
            missing = [tid for tid in result.deleted_territory_ids if tid not in self._territories]
            if missing:
                raise StaleMutationSet(f"Unknown territory ids in mutation set: {sorted(missing)}")

            territories = dict(self._territories)
            totals = dict(self._totals)
            for tid in result.deleted_territory_ids:
                del territories[tid]
            for t in result.updated_territories:
                territories[t.id] = t
            if result.created_territory is not None:
                territories[result.created_territory.id] = result.created_territory
            totals.update(result.affected_user_totals)

            self._territories = territories
            self._totals = totals

        logger.info(
            "Mutation set applied",
            route_id=result.route_id,
            deleted=len(result.deleted_territory_ids),
            updated=len(result.updated_territories),
            created=result.created_territory is not None,
        )
