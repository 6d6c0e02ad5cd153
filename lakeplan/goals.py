"""
Goal evaluation for guided route steps.

Two phases:
1. evaluate_goal() / evaluate_step() produce structured results
2. format_goal() / format_step() turn results into display labels

Formatting never feeds back into completion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from lakeplan.constants import DEFAULT_WARN_MESSAGE, OVERRIDE_LABEL
from lakeplan.lake_state import LakeState
from lakeplan.schemas import GoalScope, GoalType, GuidedGoal, GuidedRouteStep


@dataclass(frozen=True)
class RouteContext:
    """Live values a goal can read."""
    lake_states: Mapping[str, LakeState]
    active_lake_id: str = ""
    broken_lines: int = 0
    current_gold: Optional[float] = None
    gold_target: Optional[float] = None
    current_weight: Optional[float] = None

    @property
    def total_legendary(self) -> int:
        return sum(state.legendary_caught for state in self.lake_states.values())

    def legendary_for(self, lake_id: str, scope: Optional[str]) -> int:
        if scope == GoalScope.TOTAL:
            return self.total_legendary
        state = self.lake_states.get(lake_id)
        return state.legendary_caught if state else 0


@dataclass(frozen=True)
class GoalResult:
    """Outcome of one goal against the live context."""
    goal_type: str
    completed: bool
    current: Optional[float] = None
    target: Optional[float] = None
    warning: Optional[str] = None
    has_lake_data: bool = True


@dataclass(frozen=True)
class StepStatus:
    """
    Outcome of one route step.

    overridden is True when an "only if legendary below N" condition was
    already met and the step completed without evaluating its goals.
    """
    step_index: int
    step: GuidedRouteStep
    completed: bool
    goal_results: list[GoalResult] = field(default_factory=list)
    should_skip: bool = False
    overridden: bool = False
    goal_warning: Optional[str] = None
    threshold_warning: Optional[str] = None
    skip_threshold: Optional[int] = None
    wrong_lake_id: Optional[str] = None
    target_lake_id: Optional[str] = None

    @property
    def warning(self) -> Optional[str]:
        return self.goal_warning or self.threshold_warning

    @property
    def off_path(self) -> bool:
        return self.wrong_lake_id is not None


def evaluate_goal(goal: GuidedGoal, lake_id: str, context: RouteContext) -> GoalResult:
    """
    Evaluate one goal for a step that targets lake_id.
    """
    goal_type = goal.type
    lake_state = context.lake_states.get(lake_id)

    if goal_type == GoalType.MANUAL_CONFIRM:
        return GoalResult(goal_type=goal_type, completed=False)

    if goal_type == GoalType.WEIGHT_AT_LEAST:
        weight = context.current_weight
        return GoalResult(
            goal_type=goal_type,
            completed=weight is not None and weight >= goal.count,
            current=weight,
            target=goal.count,
        )

    if goal_type == GoalType.GOLD_TARGET:
        current = context.current_gold or 0
        target = context.gold_target or 0
        return GoalResult(
            goal_type=goal_type,
            completed=target > 0 and current >= target,
            current=current,
            target=target,
        )

    if lake_state is None:
        return GoalResult(goal_type=goal_type, completed=False, target=goal.count, has_lake_data=False)

    if goal_type == GoalType.REMAINING_FISH_AT_MOST:
        remaining = lake_state.total_remaining
        return GoalResult(
            goal_type=goal_type,
            completed=remaining <= goal.count,
            current=remaining,
            target=goal.count,
        )

    if goal_type == GoalType.POOLS_CLEARED:
        return GoalResult(
            goal_type=goal_type,
            completed=lake_state.pools_cleared >= goal.count,
            current=lake_state.pools_cleared,
            target=goal.count,
        )

    if goal_type == GoalType.LEGENDARY_CAUGHT:
        current = context.legendary_for(lake_id, goal.scope or GoalScope.LAKE)
        warning = None
        if goal.max_count is not None and current > goal.max_count:
            warning = f"You are over the recommended legendary count ({goal.max_count}+)."
        return GoalResult(
            goal_type=goal_type,
            completed=current >= goal.count,
            current=current,
            target=goal.count,
            warning=warning,
        )

    return GoalResult(goal_type=goal_type, completed=False, has_lake_data=False)


def _thresholds(step: GuidedRouteStep) -> tuple[Optional[int], Optional[int], Optional[str]]:
    goal = step.goal
    skip = step.skip_if_broken_lines_over
    if skip is None and goal is not None:
        skip = goal.skip_if_broken_lines_over
    warn = step.warn_if_broken_lines_over
    if warn is None and goal is not None:
        warn = goal.warn_if_broken_lines_over
    if warn is None:
        warn = skip
    message = step.warn_message or (goal.warn_message if goal is not None else None)
    return skip, warn, message


def evaluate_step(step: GuidedRouteStep, step_index: int, context: RouteContext) -> StepStatus:
    """
    Evaluate a route step.

    Order of checks:
    1. Broken-lines warning and skip threshold (independent of completion)
    2. Off-path: active lake differs from the step's lake
    3. "Only if legendary below N" override
    4. Goals combined with ALL (goal_all, bare goal) or ANY (goal_any)

    Args:
        step: Step to evaluate
        step_index: Position of the step in its option
        context: Live values

    Returns:
        StepStatus
    """
    skip_threshold, warn_threshold, warn_text = _thresholds(step)
    threshold_warning = None
    if warn_threshold is not None and context.broken_lines >= warn_threshold:
        threshold_warning = warn_text or DEFAULT_WARN_MESSAGE.format(threshold=warn_threshold)
    should_skip = skip_threshold is not None and context.broken_lines > skip_threshold

    wrong_lake_id = None
    target_lake_id = None
    if step.lake_id and context.active_lake_id != step.lake_id:
        wrong_lake_id = context.active_lake_id
        target_lake_id = step.lake_id

    common = dict(
        step_index=step_index,
        step=step,
        should_skip=should_skip,
        threshold_warning=threshold_warning,
        skip_threshold=skip_threshold,
        wrong_lake_id=wrong_lake_id,
        target_lake_id=target_lake_id,
    )

    goal = step.goal
    if goal is not None and goal.only_if_legendary_below is not None:
        value = context.legendary_for(step.lake_id, goal.only_if_legendary_below_scope or GoalScope.LAKE)
        if value >= goal.only_if_legendary_below:
            return StepStatus(completed=True, overridden=True, **common)

    goals = step.goals()
    if not goals:
        return StepStatus(completed=False, **common)

    results = [evaluate_goal(entry, step.lake_id, context) for entry in goals]
    if step.uses_any:
        completed = any(result.completed for result in results)
    else:
        completed = all(result.completed for result in results)
    goal_warning = next((result.warning for result in results if result.warning), None)

    return StepStatus(
        completed=completed,
        goal_results=results,
        goal_warning=goal_warning,
        **common,
    )


# ---- Formatting ----

def _num(value: Optional[float]) -> str:
    if value is None:
        return "0"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def format_goal(result: GoalResult) -> str:
    """Display label for one goal result."""
    goal_type = result.goal_type
    if goal_type == GoalType.MANUAL_CONFIRM:
        return "Manual step"
    if goal_type == GoalType.WEIGHT_AT_LEAST:
        return f"{_num(result.current)} / {_num(result.target)}+ kg"
    if goal_type == GoalType.GOLD_TARGET:
        return f"{_num(result.current)}/{_num(result.target)} gold tickets"
    if not result.has_lake_data:
        return "No lake data"
    if goal_type == GoalType.REMAINING_FISH_AT_MOST:
        left = max(0, (result.current or 0) - (result.target or 0))
        return f"Fish {_num(left)} more" if left > 0 else "Step complete"
    if goal_type == GoalType.POOLS_CLEARED:
        return f"{_num(result.current)}/{_num(result.target)} pools cleared"
    if goal_type == GoalType.LEGENDARY_CAUGHT:
        return f"{_num(result.current)}/{_num(result.target)} legendaries caught"
    return "No lake data"


def format_step(status: StepStatus, lake_labels: Optional[Mapping[str, str]] = None) -> list[str]:
    """
    Display lines for a step: switch directive first, then goal progress,
    then any warning.
    """
    labels = lake_labels or {}
    lines = []
    if status.off_path:
        current = labels.get(status.wrong_lake_id, status.wrong_lake_id)
        target = labels.get(status.target_lake_id, status.target_lake_id)
        lines.append(f"You are on {current}. Switch to {target}.")
    if status.overridden:
        lines.append(OVERRIDE_LABEL)
    elif status.goal_results:
        lines.append(" | ".join(format_goal(result) for result in status.goal_results))
    else:
        lines.append("Awaiting progress")
    if status.warning:
        lines.append(status.warning)
    return lines
