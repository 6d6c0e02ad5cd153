"""
Unit tests for targets.py - purchase goals, silver weighting and lure budgets.
"""
import math

import pytest

from lakeplan.constants import GOAL_PRESETS, SILVER_BASELINE_DEFAULT
from lakeplan.targets import (
    TaskTier,
    clamp_number,
    compute_earned,
    compute_remaining,
    effective_silver_target,
    estimated_gem_lures_used,
    fish_needed_for_silver,
    gold_target,
    lure_budget,
    shortfall,
    silver_baseline,
    silver_weight,
    suggested_silver_target,
)


class TestPurchaseTargets:
    def test_gold_target(self):
        assert gold_target({"etched_rune": 1}) == 16
        assert gold_target({"etched_rune": 1, "advanced_enchantium": 2}) == 52
        assert gold_target({"etched_rune": None, "chromatic_key_bundle": 0}) is None

    def test_preset_silver_target(self):
        preset = GOAL_PRESETS["silver-heavy"]
        assert suggested_silver_target(preset) == 3 * 32_400 + 4 * 4_050

    def test_explicit_target_wins(self):
        assert effective_silver_target(50_000, {"artifact": 1}) == 50_000
        assert effective_silver_target(None, {"artifact": 1}) == 184_000
        assert effective_silver_target(None, {}) is None

    def test_shortfall(self):
        assert shortfall(None, 10) is None
        assert shortfall(5, None) is None
        assert shortfall(5, 10) == 5
        assert shortfall(20, 10) == 0


class TestSilverWeight:
    """Tests for silver_baseline() and silver_weight()."""

    def test_baseline_clamped(self):
        assert silver_baseline(None) == SILVER_BASELINE_DEFAULT
        assert silver_baseline(50_000) == 70_000
        assert silver_baseline(200_000) == 130_000

    def test_no_silver_outstanding(self):
        assert silver_weight(0, 100_000) == 0
        assert silver_weight(None, 100_000) == 0

    @pytest.mark.parametrize("remaining,target,expected", [
        (60_000, 120_000, 0.5),
        (10_000, 120_000, 0.25),
        (200_000, 120_000, 1.0),
        (35_000, 50_000, 0.5),
    ])
    def test_weight(self, remaining, target, expected):
        assert silver_weight(remaining, target) == pytest.approx(expected)

    def test_fish_needed(self):
        assert fish_needed_for_silver(1_000, 300) == 4
        assert fish_needed_for_silver(None, 300) is None
        assert fish_needed_for_silver(1_000, None) is None

    def test_clamp_number_nan(self):
        assert clamp_number(math.nan, 1, 5) == 1


class TestTaskRewards:
    @pytest.fixture
    def tiers(self):
        return [TaskTier(10, 5), TaskTier(20, 5), TaskTier(30, 10)]

    def test_earned_and_remaining(self, tiers):
        assert compute_earned(tiers, 20) == 10
        assert compute_remaining(tiers, 20) == 10

    def test_totals_add_up(self, tiers):
        for progress in (0, 9, 10, 25, 30, 100):
            assert compute_earned(tiers, progress) + compute_remaining(tiers, progress) == 20


class TestLureBudget:
    def test_full_budget(self):
        budget = lure_budget(100, current_lures=20, lures_from_tasks=30, purchased_lures=5, current_gems=1_000)
        assert budget.total_available == 55
        assert budget.purchasable_from_gems == 6
        assert budget.max_possible == 61
        assert budget.shortfall == 45
        assert budget.gem_cost == 45 * 150

    def test_enough_lures(self):
        budget = lure_budget(10, current_lures=20, lures_from_tasks=0)
        assert budget.shortfall == 0
        assert budget.gem_cost == 0
        assert budget.purchasable_from_gems is None

    def test_unknown_inputs(self):
        budget = lure_budget(100, current_lures=None, lures_from_tasks=30)
        assert budget.total_available is None
        assert budget.shortfall is None

    def test_gem_lures_used(self):
        assert estimated_gem_lures_used(100, 60, 10) == 30
        assert estimated_gem_lures_used(10, 60, 10) == 0
        assert estimated_gem_lures_used(10, None, 10) is None
