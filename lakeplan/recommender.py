"""
Recommender - which lake to fish for the gold goal

Scores every lake of the active set with the estimator, discounted by
how much silver the lake yields when a silver goal is also open:

    score = (expected + 0.5*worst + 0.25*best)
            - (expected * avg_tickets / max_avg_tickets) * silver_weight

Lower is better. A lake that is nearly empty but still holds a legendary
is a "quick pick": fish it out first, then follow up elsewhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from lakeplan.constants import (
    QUICK_PICK_THRESHOLD,
    SCORE_BEST_WEIGHT,
    SCORE_EXPECTED_WEIGHT,
    SCORE_WORST_WEIGHT,
    TIE_EPSILON,
)
from lakeplan.estimator import LegendaryRange, estimate_for_lake
from lakeplan.lake_state import LakeShape, LakeState


@dataclass(frozen=True)
class LakeScore:
    lake_id: str
    score: float
    avg_tickets_per_fish: Optional[float]
    estimate: LegendaryRange


@dataclass(frozen=True)
class Recommendation:
    """
    Lake to fish next.

    For a quick pick, lake_id is the nearly-empty lake and secondary_lake_id
    the lake to continue in for the rest of the goal.
    """
    lake_id: str
    estimate: Optional[LegendaryRange]
    silver_weight: float
    avg_tickets_per_fish: Optional[float]
    score: float
    quick_pick: bool = False
    secondary_lake_id: Optional[str] = None


def score_lake(
    lake_id: str,
    goal: int,
    state: LakeState,
    shape: LakeShape,
    avg_tickets_per_fish: Optional[float],
    max_avg_tickets: float,
    silver_weight: float
) -> Optional[LakeScore]:
    """
    Risk-adjusted cost of reaching `goal` legendaries in one lake.

    Returns:
        LakeScore, or None when the goal is empty or unreachable in this lake
    """
    estimate = estimate_for_lake(state, shape, goal)
    if estimate is None or not estimate.reachable:
        return None
    fish_equivalent = 0.0
    if avg_tickets_per_fish and max_avg_tickets > 0:
        fish_equivalent = estimate.expected * avg_tickets_per_fish / max_avg_tickets
    risk_adjusted = (
        estimate.expected * SCORE_EXPECTED_WEIGHT
        + estimate.worst * SCORE_WORST_WEIGHT
        + estimate.best * SCORE_BEST_WEIGHT
    )
    return LakeScore(
        lake_id=lake_id,
        score=risk_adjusted - fish_equivalent * silver_weight,
        avg_tickets_per_fish=avg_tickets_per_fish,
        estimate=estimate,
    )


def find_quick_pick(
    lake_ids: Sequence[str],
    states: Mapping[str, LakeState],
    shapes: Mapping[str, LakeShape],
    threshold: int = QUICK_PICK_THRESHOLD
) -> Optional[str]:
    """
    Lake with at most `threshold` fish left that still holds a legendary.

    The emptiest qualifying lake wins; the first one found wins ties.
    """
    best_id = None
    best_remaining = None
    for lake_id in lake_ids:
        state = states.get(lake_id)
        shape = shapes.get(lake_id)
        if state is None or shape is None:
            continue
        remaining = state.total_remaining
        if state.remaining_of(shape.legendary_type_id) > 0 and remaining <= threshold:
            if best_remaining is None or remaining < best_remaining:
                best_id = lake_id
                best_remaining = remaining
    return best_id


def _best_scored(
    lake_ids: Sequence[str],
    goal: int,
    states: Mapping[str, LakeState],
    shapes: Mapping[str, LakeShape],
    avg_tickets: Mapping[str, Optional[float]],
    max_avg_tickets: float,
    silver_weight: float,
    epsilon: float,
    exclude: Optional[str] = None
) -> Optional[LakeScore]:
    best: Optional[LakeScore] = None
    for lake_id in lake_ids:
        if lake_id == exclude or lake_id not in states or lake_id not in shapes:
            continue
        scored = score_lake(
            lake_id, goal, states[lake_id], shapes[lake_id],
            avg_tickets.get(lake_id), max_avg_tickets, silver_weight,
        )
        if scored is None:
            continue
        if best is None or scored.score < best.score - epsilon:
            best = scored
    return best


def recommend_lake(
    lake_ids: Sequence[str],
    states: Mapping[str, LakeState],
    shapes: Mapping[str, LakeShape],
    avg_tickets: Mapping[str, Optional[float]],
    gold_remaining: Optional[int],
    silver_weight: float = 0.0,
    epsilon: float = TIE_EPSILON,
    quick_threshold: int = QUICK_PICK_THRESHOLD
) -> Optional[Recommendation]:
    """
    Pick the lake that reaches the outstanding gold goal most cheaply.

    Args:
        lake_ids: Candidate lakes, in display order
        states: Live lake states
        shapes: Full-pool shapes
        avg_tickets: Average silver tickets per fish for each lake
        gold_remaining: Legendaries still needed
        silver_weight: Output of targets.silver_weight()
        epsilon: Score margin a later lake needs to replace an earlier one
        quick_threshold: Max fish left for a quick pick

    Returns:
        Recommendation, or None when nothing is outstanding or no lake can
        reach the goal
    """
    if not gold_remaining or gold_remaining <= 0:
        return None

    max_avg_tickets = max([avg_tickets.get(lake_id) or 0 for lake_id in lake_ids] or [0])

    quick_id = find_quick_pick(lake_ids, states, shapes, quick_threshold)
    if quick_id is not None:
        rest_goal = max(0, gold_remaining - 1)
        rest = None
        if rest_goal > 0:
            rest = _best_scored(
                lake_ids, rest_goal, states, shapes, avg_tickets,
                max_avg_tickets, silver_weight, epsilon, exclude=quick_id,
            )
        first = estimate_for_lake(states[quick_id], shapes[quick_id], 1)
        if rest is not None and first is not None:
            estimate = first + rest.estimate
        else:
            estimate = estimate_for_lake(states[quick_id], shapes[quick_id], gold_remaining)
        return Recommendation(
            lake_id=quick_id,
            estimate=estimate,
            silver_weight=silver_weight,
            avg_tickets_per_fish=avg_tickets.get(quick_id),
            score=float("-inf"),
            quick_pick=True,
            secondary_lake_id=rest.lake_id if rest else None,
        )

    best = _best_scored(
        lake_ids, gold_remaining, states, shapes, avg_tickets,
        max_avg_tickets, silver_weight, epsilon,
    )
    if best is None:
        return None
    return Recommendation(
        lake_id=best.lake_id,
        estimate=best.estimate,
        silver_weight=silver_weight,
        avg_tickets_per_fish=best.avg_tickets_per_fish,
        score=best.score,
    )
