"""
Purchase goals, ticket shortfalls and lure budgets.

Gold tickets come from legendaries (one each); silver tickets are the
byproduct of every catch. Shop purchase counts set the targets.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Mapping, Optional

from lakeplan.constants import (
    GEMS_PER_LURE,
    GOLD_PRICES,
    SILVER_BASELINE_DEFAULT,
    SILVER_BASELINE_MAX,
    SILVER_BASELINE_MIN,
    SILVER_PRICES,
    SILVER_WEIGHT_MAX,
    SILVER_WEIGHT_MIN,
)


def clamp_number(value: float, minimum: float, maximum: float) -> float:
    if value != value:  # NaN
        return minimum
    return max(minimum, min(maximum, value))


def _priced_total(counts: Mapping[str, Optional[int]], prices: Mapping[str, int]) -> Optional[int]:
    total = 0
    for item, price in prices.items():
        count = counts.get(item)
        if count:
            total += count * price
    return total or None


def gold_target(gold_purchase_counts: Mapping[str, Optional[int]]) -> Optional[int]:
    """Gold tickets needed for the selected purchases, or None when nothing is selected."""
    return _priced_total(gold_purchase_counts, GOLD_PRICES)


def suggested_silver_target(purchase_counts: Mapping[str, Optional[int]]) -> Optional[int]:
    return _priced_total(purchase_counts, SILVER_PRICES)


def effective_silver_target(
    target_silver: Optional[int],
    purchase_counts: Mapping[str, Optional[int]]
) -> Optional[int]:
    """An explicit target wins over the one derived from purchases."""
    if target_silver is not None:
        return target_silver
    return suggested_silver_target(purchase_counts)


def shortfall(current: Optional[float], target: Optional[float]) -> Optional[float]:
    """max(0, target - current), or None when either side is unknown."""
    if current is None or target is None:
        return None
    return max(0, target - current)


def silver_baseline(silver_target: Optional[float]) -> float:
    raw = silver_target if silver_target is not None else SILVER_BASELINE_DEFAULT
    return clamp_number(raw, SILVER_BASELINE_MIN, SILVER_BASELINE_MAX)


def silver_weight(silver_remaining: Optional[float], silver_target: Optional[float]) -> float:
    """
    How strongly the recommender should favour silver-rich lakes.

    0 when no silver is outstanding; otherwise the outstanding share of
    the (clamped) baseline, clamped to [0.25, 1].
    """
    if not silver_remaining:
        return 0.0
    baseline = silver_baseline(silver_target)
    if baseline <= 0:
        return 0.0
    return clamp_number(silver_remaining / baseline, SILVER_WEIGHT_MIN, SILVER_WEIGHT_MAX)


def fish_needed_for_silver(silver_remaining: Optional[float], avg_tickets_per_fish: Optional[float]) -> Optional[int]:
    if silver_remaining is None or not avg_tickets_per_fish:
        return None
    return math.ceil(silver_remaining / avg_tickets_per_fish)


# ---- Task rewards ----

@dataclass(frozen=True)
class TaskTier:
    """One reward tier of a grouped event task."""
    target_value: int
    reward_amount: int


def compute_earned(tiers: list[TaskTier], progress_value: float) -> int:
    return sum(tier.reward_amount for tier in tiers if progress_value >= tier.target_value)


def compute_remaining(tiers: list[TaskTier], progress_value: float) -> int:
    return sum(tier.reward_amount for tier in tiers if progress_value < tier.target_value)


# ---- Lure budget ----

@dataclass(frozen=True)
class LureBudget:
    """
    Lures on hand versus lures needed.

    Any field is None when an input it depends on is unknown.
    """
    total_available: Optional[int]
    purchasable_from_gems: Optional[int]
    max_possible: Optional[int]
    shortfall: Optional[int]
    gem_cost: Optional[int]


def lure_budget(
    lures_needed: Optional[int],
    current_lures: Optional[int],
    lures_from_tasks: Optional[int],
    purchased_lures: Optional[int] = None,
    current_gems: Optional[int] = None
) -> LureBudget:
    """
    Compare lures needed for a goal with lures the player can still get.

    Args:
        lures_needed: Casts the goal needs (e.g. ceil of an expected estimate)
        current_lures: Lures in the bag
        lures_from_tasks: Lures still claimable from event tasks
        purchased_lures: Lures already bought but not yet counted
        current_gems: Gems available for buying more lures

    Returns:
        LureBudget
    """
    total_available = None
    if current_lures is not None and lures_from_tasks is not None:
        total_available = current_lures + lures_from_tasks + (purchased_lures or 0)

    purchasable = current_gems // GEMS_PER_LURE if current_gems is not None else None
    max_possible = None
    if total_available is not None and purchasable is not None:
        max_possible = total_available + purchasable

    missing = None
    gem_cost = None
    if lures_needed is not None and total_available is not None:
        missing = max(0, lures_needed - total_available)
        gem_cost = missing * GEMS_PER_LURE

    return LureBudget(
        total_available=total_available,
        purchasable_from_gems=purchasable,
        max_possible=max_possible,
        shortfall=missing,
        gem_cost=gem_cost,
    )


def estimated_gem_lures_used(
    total_fish_caught: int,
    lures_earned_from_tasks: Optional[int],
    current_lures: Optional[int]
) -> Optional[int]:
    """Lures that must have been bought with gems to explain the catches so far."""
    if lures_earned_from_tasks is None or current_lures is None:
        return None
    return max(0, total_fish_caught - lures_earned_from_tasks - current_lures)
