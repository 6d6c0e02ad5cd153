"""
Estimator - casts needed to catch K more legendaries

Pure functions (no side effects) over a lake's remaining pool (n fish,
r legendaries) and its full-pool shape (N fish, R legendaries).

Within one pool, draws are without replacement, so for a target K <= r:
- best     = K                (every cast is a legendary)
- worst    = (n - r) + K      (every other fish comes first)
- expected = K * (n + 1) / (r + 1)

Targets beyond the current pool finish the partial pool, run whole
refills, then finish in a fresh pool.
"""

from __future__ import annotations
from dataclasses import dataclass
import math
from typing import Optional

from lakeplan.lake_state import LakeShape, LakeState


@dataclass(frozen=True)
class LegendaryRange:
    """Best/expected/worst casts, plus expected casts to the very next legendary."""
    best: float
    expected: float
    worst: float
    expected_one: float
    reachable: bool = True

    def __add__(self, other: "LegendaryRange") -> "LegendaryRange":
        return LegendaryRange(
            best=self.best + other.best,
            expected=self.expected + other.expected,
            worst=self.worst + other.worst,
            expected_one=self.expected_one,
            reachable=self.reachable and other.reachable,
        )


UNREACHABLE = LegendaryRange(
    best=math.inf,
    expected=math.inf,
    worst=math.inf,
    expected_one=math.inf,
    reachable=False,
)


def expected_one(total_fish: int, legendary_count: int) -> float:
    """Expected casts to the next legendary: (n + 1) / (r + 1)."""
    return (total_fish + 1) / (legendary_count + 1)


def _pool_range(total_fish: int, legendary_count: int, target: int) -> tuple[float, float, float]:
    best = target
    worst = total_fish - legendary_count + target
    expected = target * (total_fish + 1) / (legendary_count + 1)
    return best, expected, worst


def estimate_range(
    remaining_fish: int,
    remaining_legendary: int,
    full_fish: int,
    full_legendary: int,
    goal: int
) -> Optional[LegendaryRange]:
    """
    Estimate casts to catch `goal` more legendaries.

    Args:
        remaining_fish: n, fish left in the current pool
        remaining_legendary: r, legendaries left in the current pool
        full_fish: N, fish in a full pool
        full_legendary: R, legendaries in a full pool
        goal: K, legendaries still wanted

    Returns:
        LegendaryRange, UNREACHABLE when a full pool holds no legendary,
        or None when nothing is outstanding
    """
    if goal <= 0:
        return None
    if full_legendary <= 0:
        return UNREACHABLE

    expected_one_full = expected_one(full_fish, full_legendary)

    if goal <= remaining_legendary:
        best, expected, worst = _pool_range(remaining_fish, remaining_legendary, goal)
        return LegendaryRange(
            best=best,
            expected=expected,
            worst=worst,
            expected_one=expected_one(remaining_fish, remaining_legendary),
        )

    outstanding = goal - remaining_legendary
    full_pools_before = (outstanding - 1) // full_legendary
    leftover = outstanding - full_pools_before * full_legendary

    prefix = remaining_fish + full_pools_before * full_fish
    best, expected, worst = _pool_range(full_fish, full_legendary, leftover)

    if remaining_legendary > 0:
        next_one = expected_one(remaining_fish, remaining_legendary)
    else:
        next_one = remaining_fish + expected_one_full

    return LegendaryRange(
        best=prefix + best,
        expected=prefix + expected,
        worst=prefix + worst,
        expected_one=next_one,
    )


def estimate_for_lake(state: LakeState, shape: LakeShape, goal: int) -> Optional[LegendaryRange]:
    """estimate_range() for a lake's live state."""
    return estimate_range(
        remaining_fish=state.total_remaining,
        remaining_legendary=state.remaining_of(shape.legendary_type_id),
        full_fish=shape.full_fish,
        full_legendary=shape.full_legendary,
        goal=goal,
    )


def legendary_chance(state: LakeState, shape: LakeShape) -> float:
    """Chance (0-1) that the next cast is a legendary."""
    total = state.total_remaining
    if total <= 0:
        return 0.0
    return state.remaining_of(shape.legendary_type_id) / total


def casts_for_break_chance(remaining_fish: int, remaining_legendary: int, target_chance: float) -> Optional[int]:
    """
    Line breaks needed to reach target_chance of at least one legendary hook.

    Each break is treated as an independent roll at the current legendary
    share of the pool. None when no legendary is left, or when a target
    of 1 or more can never be reached by independent rolls.
    """
    if remaining_fish <= 0 or remaining_legendary <= 0:
        return None
    chance = remaining_legendary / remaining_fish
    if chance >= 1:
        return 1
    if target_chance >= 1:
        return None
    if target_chance <= 0:
        return 0
    return math.ceil(math.log(1 - target_chance) / math.log(1 - chance))
