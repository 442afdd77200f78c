"""
Unit tests for the boolean operator.

Tests cover:
- Union of disjoint and overlapping polygons
- Intersection and difference, including empty results
- Area conservation across intersect/difference
- Healing of self-overlapping rings and sliver removal
- UnresolvableGeometry for rings that cannot be healed
"""

import pytest
from shapely.geometry import MultiPolygon, Polygon

from territory_conquest.errors import UnresolvableGeometry
from territory_conquest.services.boolean_ops import BooleanOperator, is_empty


class TestUnion:
    """Test union."""

    def test_disjoint_union_is_additive(self, operator, world):
        a = world.shape(0, 0, 100, 100)
        b = world.shape(200, 0, 300, 100)
        merged = operator.union(a, b)
        assert isinstance(merged, MultiPolygon)
        assert merged.area == pytest.approx(a.area + b.area, rel=1e-3)

    def test_overlapping_union_coalesces(self, operator, world):
        merged = operator.union(world.shape(0, 0, 100, 100), world.shape(50, 0, 150, 100))
        assert isinstance(merged, Polygon)
        assert merged.area == pytest.approx(15_000, rel=1e-3)

    def test_union_with_empty(self, operator, world):
        a = world.shape(0, 0, 10, 10)
        assert operator.union(a, Polygon()).area == pytest.approx(100, rel=1e-3)


class TestIntersectAndDifference:
    """Test intersection and difference."""

    def test_disjoint_intersection_is_empty(self, operator, world):
        assert is_empty(operator.intersect(world.shape(0, 0, 10, 10), world.shape(20, 20, 30, 30)))

    def test_edge_contact_is_not_overlap(self, operator, world):
        assert is_empty(operator.intersect(world.shape(0, 0, 10, 10), world.shape(10, 0, 20, 10)))

    def test_partial_overlap(self, operator, world):
        overlap = operator.intersect(world.shape(0, 0, 100, 100), world.shape(50, 50, 150, 150))
        assert overlap.area == pytest.approx(2_500, rel=1e-3)

    def test_difference_removes_footprint(self, operator, world):
        remainder = operator.difference(world.shape(0, 0, 100, 100), world.shape(50, 0, 150, 100))
        assert remainder.area == pytest.approx(5_000, rel=1e-3)

    def test_difference_fully_covered_is_empty(self, operator, world):
        assert is_empty(operator.difference(world.shape(10, 10, 20, 20), world.shape(0, 0, 100, 100)))

    def test_difference_can_split(self, operator, world):
        remainder = operator.difference(world.shape(0, 0, 300, 100), world.shape(100, -10, 200, 110))
        assert isinstance(remainder, MultiPolygon)
        assert len(remainder.geoms) == 2

    def test_difference_can_punch_hole(self, operator, world):
        remainder = operator.difference(world.shape(0, 0, 100, 100), world.shape(40, 40, 60, 60))
        assert len(remainder.interiors) == 1
        assert remainder.area == pytest.approx(9_600, rel=1e-3)

    @pytest.mark.parametrize(
        "corridor",
        [(50, 50, 150, 150), (-10, 20, 110, 40), (20, 20, 30, 30), (500, 500, 600, 600)],
    )
    def test_conquest_conservation(self, operator, world, corridor):
        rival = world.shape(0, 0, 100, 100)
        c = world.shape(*corridor)
        kept = operator.difference(rival, c)
        taken = operator.intersect(rival, c)
        assert kept.area + taken.area == pytest.approx(rival.area, rel=1e-4)


class TestHealing:
    """Test normalization of rings produced by buffering or bad input."""

    def test_bowtie_is_healed_into_two_parts(self, operator):
        bowtie = Polygon([(0, 0), (10, 10), (10, 0), (0, 10)])
        assert not bowtie.is_valid
        healed = operator.normalize(bowtie)
        assert healed.is_valid
        assert healed.area == pytest.approx(50, rel=1e-3)

    def test_self_overlapping_parts_are_dissolved(self, operator, world):
        overlapping = MultiPolygon([world.shape(0, 0, 100, 100), world.shape(50, 0, 150, 100)])
        healed = operator.normalize(overlapping)
        assert healed.is_valid
        assert healed.area == pytest.approx(15_000, rel=1e-3)

    def test_collinear_ring_is_unresolvable(self, operator):
        with pytest.raises(UnresolvableGeometry):
            operator.normalize(Polygon([(0, 0), (10, 0), (20, 0)]))

    def test_collinear_ring_in_overlay_is_unresolvable(self, operator, world):
        with pytest.raises(UnresolvableGeometry):
            operator.intersect(world.shape(0, 0, 10, 10), Polygon([(0, 0), (10, 0), (20, 0)]))

    def test_near_identical_difference_leaves_no_sliver(self, world):
        operator = BooleanOperator(snap_tolerance_m=0.001, sliver_area_m2=1.0)
        a = world.shape(0, 0, 100, 100)
        b = world.shape(0.002, 0, 100.002, 100)
        assert is_empty(operator.difference(a, b))

    def test_small_parts_are_dropped(self):
        operator = BooleanOperator(snap_tolerance_m=0.001, sliver_area_m2=1.0)
        shape = MultiPolygon(
            [Polygon([(0, 0), (10, 0), (10, 10), (0, 10)]), Polygon([(20, 0), (20.5, 0), (20.5, 0.5), (20, 0.5)])]
        )
        cleaned = operator.normalize(shape)
        assert isinstance(cleaned, Polygon)
        assert cleaned.area == pytest.approx(100)

    def test_small_holes_are_dropped(self):
        operator = BooleanOperator(snap_tolerance_m=0.001, sliver_area_m2=1.0)
        shape = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)], [[(5, 5), (5.5, 5), (5.5, 5.5), (5, 5.5)]])
        cleaned = operator.normalize(shape)
        assert len(cleaned.interiors) == 0

    def test_rejects_non_positive_tolerance(self):
        with pytest.raises(ValueError):
            BooleanOperator(snap_tolerance_m=0, sliver_area_m2=0.01)
