# path: territory-conquest/territory_conquest/services/area_aggregator.py

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Set

from territory_conquest.errors import InconsistentAggregate
from territory_conquest.models.territory_models import Territory


def check_unique_ids(territories: Iterable[Territory]) -> None:
    seen: Set[str] = set()
    for t in territories:
        if t.id in seen:
            raise InconsistentAggregate(t.user_id, f"territory {t.id} appears more than once")
        seen.add(t.id)


def recompute_total(user_id: str, territories: Iterable[Territory]) -> float:
    """
    Total claimed area for one user, summed from scratch over the territory set.

    Never patches a previous total with a delta.
    """
    owned = [t for t in territories if t.user_id == user_id]
    check_unique_ids(owned)
    return math.fsum(t.area for t in owned)


def project_territory_set(
    prior: Iterable[Territory],
    deleted_ids: Set[str],
    inserted: Iterable[Territory],
) -> List[Territory]:
    """The territory set after a mutation set is applied."""
    survivors = [t for t in prior if t.id not in deleted_ids]
    return survivors + list(inserted)


def recompute_totals(user_ids: Iterable[str], territories: Iterable[Territory]) -> Dict[str, float]:
    territories = list(territories)
    return {user_id: recompute_total(user_id, territories) for user_id in sorted(set(user_ids))}


def verify_total(
    user_id: str,
    stored_total: Optional[float],
    territories: Iterable[Territory],
    tolerance_m2: float = 1e-6,
) -> float:
    """Raise InconsistentAggregate if a stored total has drifted from its territory set."""
    expected = recompute_total(user_id, territories)
    stored = stored_total or 0.0
    if abs(stored - expected) > tolerance_m2:
        raise InconsistentAggregate(user_id, f"stored total {stored:.6f} m² != derived total {expected:.6f} m²")
    return expected
