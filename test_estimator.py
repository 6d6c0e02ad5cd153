"""
Unit tests for estimator.py - casts to K more legendaries.
"""
import math

import pytest

from lakeplan.estimator import (
    UNREACHABLE,
    LegendaryRange,
    casts_for_break_chance,
    estimate_for_lake,
    estimate_range,
    expected_one,
    legendary_chance,
)
from lakeplan.lake_state import LakeShape, LakeState


class TestWithinPool:
    """Targets the current pool can satisfy."""

    def test_single_legendary(self):
        result = estimate_range(9, 1, 9, 1, 1)
        assert (result.best, result.expected, result.worst) == (1, 5, 9)
        assert result.expected_one == 5

    def test_two_legendaries(self):
        result = estimate_range(18, 2, 18, 2, 2)
        assert result.best == 2
        assert result.expected == pytest.approx(2 * 19 / 3)
        assert result.worst == 18

    def test_expected_one(self):
        assert expected_one(9, 1) == 5
        assert expected_one(0, 0) == 1


class TestAcrossRefills:
    """Targets that need refills."""

    def test_empty_current_pool_two_more(self):
        result = estimate_range(9, 0, 9, 1, 2)
        assert result.best == 19
        assert result.expected == 23
        assert result.worst == 27
        # Nothing left here: finish the pool, then a fresh one
        assert result.expected_one == 14

    def test_partial_pool_then_fresh(self):
        # 4 fish left with 1 legendary, want 2: finish this pool then one more in a fresh pool
        result = estimate_range(4, 1, 9, 1, 2)
        assert result.best == 4 + 1
        assert result.expected == 4 + 5
        assert result.worst == 4 + 9
        assert result.expected_one == pytest.approx(5 / 2)

    def test_multiple_full_pools(self):
        result = estimate_range(18, 2, 18, 2, 7)
        # 2 here, two full pools of 2, then 1 in the last pool
        assert result.best == 18 + 2 * 18 + 1
        assert result.worst == 18 + 2 * 18 + 17


class TestInvariants:
    @pytest.mark.parametrize("n,r", [(9, 1), (5, 0), (1, 1), (18, 2), (3, 2)])
    def test_best_le_expected_le_worst(self, n, r):
        full_fish = 18
        full_legendary = 2
        for goal in range(1, 8):
            result = estimate_range(n, r, full_fish, full_legendary, goal)
            assert result.best <= result.expected <= result.worst

    def test_expected_monotone_in_goal(self):
        previous = 0
        for goal in range(1, 10):
            result = estimate_range(7, 1, 9, 1, goal)
            assert result.expected >= previous
            previous = result.expected


class TestEdgeCases:
    def test_nothing_outstanding(self):
        assert estimate_range(9, 1, 9, 1, 0) is None
        assert estimate_range(9, 1, 9, 1, -3) is None

    def test_no_legendary_in_full_pool(self):
        result = estimate_range(9, 0, 9, 0, 1)
        assert result is UNREACHABLE
        assert not result.reachable
        assert math.isinf(result.expected)

    def test_adding_ranges(self):
        total = LegendaryRange(1, 2, 3, 2) + LegendaryRange(10, 20, 30, 99)
        assert (total.best, total.expected, total.worst) == (11, 22, 33)
        assert total.expected_one == 2
        assert (LegendaryRange(1, 2, 3, 2) + UNREACHABLE).reachable is False


class TestLakeHelpers:
    @pytest.fixture
    def shape(self):
        return LakeShape(lake_id="pond", full_counts={"common": 8, "legendary": 1}, legendary_type_id="legendary")

    def test_estimate_for_lake(self, shape):
        result = estimate_for_lake(shape.fresh_state(), shape, 1)
        assert result.expected == 5

    def test_legendary_chance(self, shape):
        assert legendary_chance(shape.fresh_state(), shape) == pytest.approx(1 / 9)
        assert legendary_chance(LakeState(remaining={"common": 3, "legendary": 0}), shape) == 0

    def test_casts_for_break_chance(self):
        assert casts_for_break_chance(9, 1, 0.5) == 6
        assert casts_for_break_chance(9, 1, 0.9) == 20
        assert casts_for_break_chance(2, 2, 0.95) == 1
        assert casts_for_break_chance(9, 0, 0.5) is None
        assert casts_for_break_chance(0, 0, 0.5) is None

    def test_casts_for_certain_or_zero_target(self):
        assert casts_for_break_chance(9, 1, 1.0) is None
        assert casts_for_break_chance(2, 2, 1.0) == 1
        assert casts_for_break_chance(9, 1, 0) == 0
