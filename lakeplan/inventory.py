"""
Inventory - draws, refills and resets for lake pools

Pure state transitions (no persistence, no history).

Main rules:
1. A draw removes one fish of one type; exhausted types are a no-op
2. When a pool's total reaches zero it refills in the same step and
   pools_cleared goes up by one
3. Resets refill the pool; only reset_pool_progress zeroes the counters

History and persistence are handled by the fishing_tool module.
"""

from __future__ import annotations
import logging
from typing import Mapping

from lakeplan.lake_state import LakeShape, LakeState, sum_counts


log = logging.getLogger(__name__)


def draw(state: LakeState, shape: LakeShape, type_id: str) -> LakeState:
    """
    Catch one fish of type_id.

    Args:
        state: Current lake state
        shape: Full-pool shape of the lake
        type_id: Fish type caught

    Returns:
        New lake state, or the same state when none of that type remain
    """
    if state.remaining_of(type_id) <= 0:
        return state

    remaining = dict(state.remaining)
    remaining[type_id] -= 1
    pools_cleared = state.pools_cleared
    legendary_caught = state.legendary_caught + (1 if type_id == shape.legendary_type_id else 0)

    if sum_counts(remaining) == 0:
        pools_cleared += 1
        remaining = dict(shape.full_counts)
        log.debug("Lake %s exhausted, refilled (pools cleared: %d)", shape.lake_id, pools_cleared)

    return LakeState(
        remaining=remaining,
        pools_cleared=pools_cleared,
        legendary_caught=legendary_caught,
        fish_caught=state.fish_caught + 1,
    )


def draw_whole_pool(state: LakeState, shape: LakeShape) -> LakeState:
    """
    Catch everything left in the current pool in one step, then refill.
    """
    remaining_total = state.total_remaining
    if not remaining_total:
        return state
    return LakeState(
        remaining=shape.full_counts,
        pools_cleared=state.pools_cleared + 1,
        legendary_caught=state.legendary_caught + state.remaining_of(shape.legendary_type_id),
        fish_caught=state.fish_caught + remaining_total,
    )


def reset_pool(state: LakeState, shape: LakeShape) -> LakeState:
    """Refill the lake; counters are kept."""
    return LakeState(
        remaining=shape.full_counts,
        pools_cleared=state.pools_cleared,
        legendary_caught=state.legendary_caught,
        fish_caught=state.fish_caught,
    )


def reset_pool_progress(shape: LakeShape) -> LakeState:
    """Refill the lake and zero its counters."""
    return shape.fresh_state()


def reset_all(shapes: Mapping[str, LakeShape]) -> dict[str, LakeState]:
    """Fresh state for every lake."""
    return {lake_id: reset_pool_progress(shape) for lake_id, shape in shapes.items()}


def clamp_broken_lines(value: int, maximum: int) -> int:
    return max(0, min(maximum, value))
