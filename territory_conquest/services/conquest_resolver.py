# path: territory-conquest/territory_conquest/services/conquest_resolver.py

"""
Conquest resolution for one route corridor.

Given the claimant's corridor and the current territory set, compute the
mutation set: rival territories shrunk or removed, the claimant's own pieces
folded into a single successor, and fresh totals for every affected user.
The resolver reads nothing but its arguments and writes nothing; the caller
applies the returned ResolutionResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set, Tuple

import structlog
from shapely.geometry.base import BaseGeometry

from territory_conquest.errors import InvalidGeometry, TerritoryEngineError, UnresolvableGeometry
from territory_conquest.models.route_models import utcnow
from territory_conquest.models.territory_models import GeometryWarning, ResolutionResult, Territory
from territory_conquest.services.area_aggregator import (
    check_unique_ids,
    project_territory_set,
    recompute_totals,
)
from territory_conquest.services.boolean_ops import BooleanOperator, is_empty
from territory_conquest.services.geometry import build_territory, new_territory_id, to_shape
from territory_conquest.utils.geo import LocalProjection

logger = structlog.get_logger()


@dataclass
class ConquestPass:
    """Accumulated outcome of the conquest pass over rival territories."""
    deleted_ids: Set[str] = field(default_factory=set)
    replacements: List[Territory] = field(default_factory=list)
    affected_users: Set[str] = field(default_factory=set)
    warnings: List[GeometryWarning] = field(default_factory=list)


@dataclass
class MergePass:
    """Accumulated outcome of folding the claimant's own territories into the corridor."""
    combined: BaseGeometry
    consumed_ids: Set[str] = field(default_factory=set)
    warnings: List[GeometryWarning] = field(default_factory=list)


def by_id(territories: Iterable[Territory]) -> List[Territory]:
    return sorted(territories, key=lambda t: t.id)


def geometry_warning(stage: str, territory: Territory, error: TerritoryEngineError) -> GeometryWarning:
    action = "left untouched" if stage == "conquest" else "kept unmerged"
    return GeometryWarning(
        stage=stage,
        territory_id=territory.id,
        user_id=territory.user_id,
        error=type(error).__name__,
        message=f"Territory {territory.id} {action}: {error}",
    )


class ConquestResolver:
    def __init__(
        self,
        projection: LocalProjection,
        operator: BooleanOperator,
        id_factory: Callable[[], str] = new_territory_id,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.projection = projection
        self.operator = operator
        self.id_factory = id_factory
        self.clock = clock

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "ConquestResolver":
        return cls(LocalProjection.from_settings(settings), BooleanOperator.from_settings(settings), **kwargs)

    def resolve(
        self,
        corridor: BaseGeometry,
        user_id: str,
        route_id: str,
        territories: Iterable[Territory],
    ) -> ResolutionResult:
        territories = list(territories)
        check_unique_ids(territories)
        now = self.clock()

        rivals = by_id(t for t in territories if t.user_id != user_id)
        own = by_id(t for t in territories if t.user_id == user_id)

        conquest = self.conquest_pass(corridor, rivals, now)
        merge = self.merge_pass(corridor, own)

        created = build_territory(
            merge.combined, user_id, route_id, self.projection, self.id_factory, now
        )

        deleted = conquest.deleted_ids | merge.consumed_ids
        post = project_territory_set(territories, deleted, conquest.replacements + [created])
        totals = recompute_totals(conquest.affected_users | {user_id}, post)
        warnings = conquest.warnings + merge.warnings

        logger.info(
            "Conquest resolved",
            user_id=user_id,
            route_id=route_id,
            territory_id=created.id,
            area_m2=round(created.area, 2),
            rivals_examined=len(rivals),
            rivals_affected=len(conquest.affected_users),
            own_merged=len(merge.consumed_ids),
            deleted=len(deleted),
            warnings=len(warnings),
        )
        return ResolutionResult(
            route_id=route_id,
            outcome="conquest",
            created_territory=created,
            deleted_territory_ids=deleted,
            updated_territories=conquest.replacements,
            affected_user_totals=totals,
            warnings=warnings,
        )

    def conquest_pass(self, corridor: BaseGeometry, rivals: List[Territory], now: datetime) -> ConquestPass:
        result = ConquestPass()
        for rival in rivals:
            try:
                touched, replacement = self.conquer(corridor, rival, now)
            except (InvalidGeometry, UnresolvableGeometry) as e:
                warning = geometry_warning("conquest", rival, e)
                logger.warning("Conquest step skipped", territory_id=rival.id, user_id=rival.user_id, error=str(e))
                result.warnings.append(warning)
                continue
            if not touched:
                continue
            result.deleted_ids.add(rival.id)
            result.affected_users.add(rival.user_id)
            if replacement is not None:
                result.replacements.append(replacement)
        return result

    def conquer(
        self, corridor: BaseGeometry, rival: Territory, now: datetime
    ) -> Tuple[bool, Optional[Territory]]:
        """
        Returns (touched, replacement). An untouched rival gives (False, None);
        a fully consumed one gives (True, None).
        """
        shape = to_shape(rival.geometry, self.projection)
        overlap = self.operator.intersect(corridor, shape)
        if is_empty(overlap):
            return False, None

        remainder = self.operator.difference(shape, corridor)
        if is_empty(remainder):
            logger.info("Territory consumed", territory_id=rival.id, user_id=rival.user_id)
            return True, None

        replacement = build_territory(
            remainder, rival.user_id, rival.route_id, self.projection, self.id_factory, now
        )
        logger.info(
            "Territory reduced",
            territory_id=rival.id,
            replacement_id=replacement.id,
            user_id=rival.user_id,
            lost_m2=round(rival.area - replacement.area, 2),
        )
        return True, replacement

    def merge_pass(self, corridor: BaseGeometry, own: List[Territory]) -> MergePass:
        result = MergePass(combined=corridor)
        for piece in own:
            try:
                merged = self.operator.union(result.combined, to_shape(piece.geometry, self.projection))
            except (InvalidGeometry, UnresolvableGeometry) as e:
                logger.warning("Merge step skipped", territory_id=piece.id, user_id=piece.user_id, error=str(e))
                result.warnings.append(geometry_warning("merge", piece, e))
                continue
            result.combined = merged
            result.consumed_ids.add(piece.id)
        return result
