"""Tests for turning a raw submission into a recorded route."""

from datetime import datetime, timedelta, timezone

import pytest

from territory_conquest.models.route_models import RouteSubmission
from territory_conquest.services.route_normalizer import (
    MAX_POINTS,
    dedupe_consecutive,
    normalize_submission,
    validate_route_guardrails,
)


class TestNormalizeSubmission:

    def test_consecutive_duplicates_removed(self):
        submission = RouteSubmission(
            user_id="alice",
            coordinates=[(40.0, -3.0), (40.0, -3.0), (40.001, -3.0), (40.001, -3.001)],
        )
        route = normalize_submission(submission, id_factory=lambda: "route-abc12345")
        assert route.id == "route-abc12345"
        assert route.name == "Route route-ab"
        assert len(route.coordinates) == 3
        assert route.distinct_point_count == 3
        assert route.distance_m > 0
        assert route.bbox_wgs84.min_lat == 40.0
        assert route.bbox_wgs84.max_lng == -3.0

    def test_timestamps(self):
        start = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
        submission = RouteSubmission(
            user_id="alice",
            coordinates=[(40.0, -3.0)],
            started_at=start,
            completed_at=start + timedelta(minutes=30),
            duration_s=1800,
        )
        route = normalize_submission(submission)
        assert route.started_at == start
        assert route.duration_s == 1800

    def test_completed_before_started_is_rejected(self):
        start = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
        with pytest.raises(ValueError):
            RouteSubmission(
                user_id="alice",
                coordinates=[(40.0, -3.0)],
                started_at=start,
                completed_at=start - timedelta(minutes=1),
            )

    def test_route_is_immutable(self):
        route = normalize_submission(RouteSubmission(user_id="alice", coordinates=[(40.0, -3.0)]))
        with pytest.raises(Exception):
            route.user_id = "bob"


class TestGuardrails:

    def test_dedupe_keeps_non_consecutive_repeats(self):
        assert dedupe_consecutive([(0, 0), (0, 0), (1, 1), (0, 0)]) == [(0, 0), (1, 1), (0, 0)]

    def test_gps_jump_is_rejected(self):
        with pytest.raises(ValueError):
            validate_route_guardrails([(40.0, -3.0), (41.0, -3.0)])

    def test_too_many_points(self):
        with pytest.raises(ValueError):
            validate_route_guardrails([(0.0, 0.0)] * (MAX_POINTS + 1))
