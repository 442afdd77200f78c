# path: territory-conquest/territory_conquest/services/route_normalizer.py

from __future__ import annotations

from typing import Callable, List, Tuple
import uuid

from territory_conquest.models.route_models import BBoxWGS84, Route, RouteSubmission, utcnow
from territory_conquest.services.corridor_builder import distinct_points
from territory_conquest.utils.geo import bbox_wgs84, haversine_m, polyline_length_m


MAX_POINTS = 20_000
MAX_SEGMENT_M = 50_000.0


def new_route_id() -> str:
    return str(uuid.uuid4())


def dedupe_consecutive(points_latlng: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    deduped = [points_latlng[0]]
    for p in points_latlng[1:]:
        if p != deduped[-1]:
            deduped.append(p)
    return deduped


def validate_route_guardrails(points_latlng: List[Tuple[float, float]]) -> None:
    if len(points_latlng) > MAX_POINTS:
        raise ValueError(f"Route has too many points (> {MAX_POINTS}): {len(points_latlng)}")
    for i in range(1, len(points_latlng)):
        a_lat, a_lng = points_latlng[i - 1]
        b_lat, b_lng = points_latlng[i]
        seg = haversine_m(a_lat, a_lng, b_lat, b_lng)
        if seg > MAX_SEGMENT_M:
            raise ValueError(f"Segment too long (> {MAX_SEGMENT_M} m): {seg:.1f} m")


def normalize_submission(
    submission: RouteSubmission,
    id_factory: Callable[[], str] = new_route_id,
) -> Route:
    """Turn a raw submission into an immutable Route record. Does not build geometry."""
    points = [(float(lat), float(lng)) for lat, lng in submission.coordinates]
    points = dedupe_consecutive(points)
    validate_route_guardrails(points)

    completed_at = submission.completed_at or utcnow()
    started_at = submission.started_at or completed_at
    route_id = id_factory()

    return Route(
        id=route_id,
        user_id=submission.user_id,
        name=submission.name or f"Route {route_id[:8]}",
        coordinates=tuple(points),
        distinct_point_count=distinct_points(points),
        distance_m=polyline_length_m(points),
        duration_s=submission.duration_s,
        bbox_wgs84=BBoxWGS84(**bbox_wgs84(points)),
        started_at=started_at,
        completed_at=completed_at,
    )
