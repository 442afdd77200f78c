# path: territory-conquest/territory_conquest/services/conquest_service.py

from __future__ import annotations

from typing import Callable, Optional, Sequence, Tuple
import threading

import structlog

from territory_conquest.config import Settings, settings as default_settings
from territory_conquest.errors import InsufficientPoints, InvalidGeometry, UnresolvableGeometry
from territory_conquest.models.route_models import RouteSubmission
from territory_conquest.models.territory_models import GeometryWarning, ResolutionResult
from territory_conquest.services.area_aggregator import verify_total
from territory_conquest.services.conquest_resolver import ConquestResolver
from territory_conquest.services.corridor_builder import CorridorBuilder
from territory_conquest.services.route_normalizer import new_route_id, normalize_submission
from territory_conquest.services.territory_store import TerritoryStore

logger = structlog.get_logger()

# Every resolution reads and rewrites the shared territory set.
CONQUEST_LOCK = threading.Lock()


class ConquestService:
    """Records a route and settles the territory it claims, one submission at a time."""

    def __init__(
        self,
        store: TerritoryStore,
        settings: Optional[Settings] = None,
        resolver: Optional[ConquestResolver] = None,
        route_id_factory: Callable[[], str] = new_route_id,
        lock: Optional[threading.Lock] = None,
    ):
        self.store = store
        self.settings = settings or default_settings
        self.resolver = resolver or ConquestResolver.from_settings(self.settings)
        self.route_id_factory = route_id_factory
        self.lock = lock or CONQUEST_LOCK

    def submit_route(
        self,
        user_id: str,
        coordinates: Sequence[Tuple[float, float]],
        corridor_half_width_m: Optional[float] = None,
    ) -> ResolutionResult:
        submission = RouteSubmission(
            user_id=user_id,
            coordinates=list(coordinates),
            corridor_half_width_m=corridor_half_width_m,
        )
        return self.submit(submission)

    def submit(self, submission: RouteSubmission) -> ResolutionResult:
        route = normalize_submission(submission, self.route_id_factory)
        builder = CorridorBuilder.from_settings(self.settings, submission.corridor_half_width_m)

        with self.lock:
            self.store.record_route(route)

            try:
                corridor = builder.build(route.coordinates)
            except InsufficientPoints as e:
                logger.info("No territory claimed", route_id=route.id, user_id=route.user_id, reason=str(e))
                return ResolutionResult(route_id=route.id, outcome="insufficient_points")
            except (InvalidGeometry, UnresolvableGeometry) as e:
                logger.warning("Corridor could not be built", route_id=route.id, user_id=route.user_id, error=str(e))
                return ResolutionResult(
                    route_id=route.id,
                    outcome="corridor_failed",
                    warnings=[
                        GeometryWarning(
                            stage="corridor",
                            user_id=route.user_id,
                            error=type(e).__name__,
                            message=f"Route {route.id} recorded without territory: {e}",
                        )
                    ],
                )

            result = self.resolver.resolve(corridor, route.user_id, route.id, self.store.list_territories())
            self.store.apply(result)
            self.verify(result)

        return result

    def verify(self, result: ResolutionResult) -> None:
        """Check stored totals against the stored territory sets; raises InconsistentAggregate."""
        for user_id in result.affected_user_totals:
            verify_total(
                user_id,
                self.store.get_total(user_id),
                self.store.territories_for(user_id),
                self.settings.aggregate_tolerance_m2,
            )
