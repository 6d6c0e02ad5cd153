"""
Unit tests for goals.py and guided_route.py - step evaluation and navigation.
"""
import pytest

from lakeplan.constants import DEFAULT_WARN_MESSAGE, OVERRIDE_LABEL
from lakeplan.goals import (
    GoalResult,
    RouteContext,
    StepStatus,
    evaluate_goal,
    evaluate_step,
    format_goal,
    format_step,
)
from lakeplan.guided_route import GuidedRoute
from lakeplan.lake_state import LakeState, build_shape
from lakeplan.schemas import GoalType, GuidedGoal


LAKE_LABELS = {"lake_1": "Shallow Cove", "lake_2": "Misty Lake", "lake_3": "Abyss"}


@pytest.fixture
def lake_states(tool_data):
    return {lake_id: build_shape(tool_data, lake_id).fresh_state() for lake_id in LAKE_LABELS}


def context_with(lake_states, active="lake_1", **changes):
    states = dict(lake_states)
    for lake_id, state in changes.pop("lakes", {}).items():
        states[lake_id] = state
    return RouteContext(lake_states=states, active_lake_id=active, **changes)


def step(routes, option_id, index):
    return routes.get_option(option_id).steps[index]


class TestEvaluateGoal:
    """Tests for single goals."""

    def test_manual_never_completes(self, lake_states):
        goal = GuidedGoal(type=GoalType.MANUAL_CONFIRM)
        result = evaluate_goal(goal, "lake_1", context_with(lake_states))
        assert not result.completed
        assert format_goal(result) == "Manual step"

    def test_pools_cleared(self, lake_states):
        goal = GuidedGoal(type=GoalType.POOLS_CLEARED, count=2)
        cleared = LakeState(remaining={"rare": 12, "epic": 4, "legendary": 1}, pools_cleared=2)
        result = evaluate_goal(goal, "lake_1", context_with(lake_states, lakes={"lake_1": cleared}))
        assert result.completed
        assert format_goal(result) == "2/2 pools cleared"

    def test_legendary_scope(self, lake_states):
        lakes = {
            "lake_1": LakeState(remaining={"rare": 12, "epic": 4, "legendary": 0}, legendary_caught=1),
            "lake_2": LakeState(remaining={"rare": 12, "epic": 4, "legendary": 0}, legendary_caught=1),
        }
        context = context_with(lake_states, lakes=lakes)
        per_lake = GuidedGoal(type=GoalType.LEGENDARY_CAUGHT, count=2)
        total = GuidedGoal(type=GoalType.LEGENDARY_CAUGHT, count=2, scope="total")
        assert not evaluate_goal(per_lake, "lake_1", context).completed
        assert evaluate_goal(total, "lake_1", context).completed

    def test_legendary_over_max_warns(self, lake_states):
        goal = GuidedGoal(type=GoalType.LEGENDARY_CAUGHT, count=1, max_count=2)
        lake = LakeState(remaining={"rare": 12, "epic": 4, "legendary": 1}, legendary_caught=3)
        result = evaluate_goal(goal, "lake_1", context_with(lake_states, lakes={"lake_1": lake}))
        assert result.completed
        assert result.warning == "You are over the recommended legendary count (2+)."

    def test_remaining_fish(self, lake_states):
        goal = GuidedGoal(type=GoalType.REMAINING_FISH_AT_MOST, count=3)
        result = evaluate_goal(goal, "lake_1", context_with(lake_states))
        assert not result.completed
        assert format_goal(result) == "Fish 14 more"
        low = LakeState(remaining={"rare": 2, "epic": 0, "legendary": 1})
        result = evaluate_goal(goal, "lake_1", context_with(lake_states, lakes={"lake_1": low}))
        assert result.completed
        assert format_goal(result) == "Step complete"

    def test_weight(self, lake_states):
        goal = GuidedGoal(type=GoalType.WEIGHT_AT_LEAST, count=100)
        assert not evaluate_goal(goal, "lake_1", context_with(lake_states)).completed
        result = evaluate_goal(goal, "lake_1", context_with(lake_states, current_weight=120.5))
        assert result.completed
        assert format_goal(result) == "120.5 / 100+ kg"

    def test_gold_target_needs_target(self, lake_states):
        goal = GuidedGoal(type=GoalType.GOLD_TARGET)
        assert not evaluate_goal(goal, "lake_1", context_with(lake_states, current_gold=5)).completed
        result = evaluate_goal(goal, "lake_1", context_with(lake_states, current_gold=16, gold_target=16))
        assert result.completed
        assert format_goal(result) == "16/16 gold tickets"

    def test_missing_lake(self, lake_states):
        goal = GuidedGoal(type=GoalType.POOLS_CLEARED, count=1)
        result = evaluate_goal(goal, "lake_9", context_with(lake_states))
        assert not result.completed
        assert format_goal(result) == "No lake data"

    def test_aliases(self):
        goal = GuidedGoal.model_validate({"type": "legendary_caught", "count": 1, "maxCount": 2})
        assert goal.max_count == 2
        assert goal.type == GoalType.LEGENDARY_CAUGHT


class TestEvaluateStep:
    """Tests for step-level combination, overrides and thresholds."""

    def test_goal_any(self, routes, lake_states):
        dip = step(routes, "standard", 1)
        assert not evaluate_step(dip, 1, context_with(lake_states, active="lake_2")).completed

        caught = LakeState(remaining={"rare": 12, "epic": 4, "legendary": 0}, legendary_caught=1)
        status = evaluate_step(dip, 1, context_with(lake_states, active="lake_2", lakes={"lake_2": caught}))
        assert status.completed
        assert not status.goal_results[1].completed

        low = LakeState(remaining={"rare": 3, "epic": 0, "legendary": 0})
        status = evaluate_step(dip, 1, context_with(lake_states, active="lake_2", lakes={"lake_2": low}))
        assert status.completed

    def test_goal_all(self, routes, lake_states):
        gold = step(routes, "gold", 0)
        only_gold = context_with(lake_states, active="lake_3", current_gold=16, gold_target=16, current_weight=99)
        assert not evaluate_step(gold, 0, only_gold).completed
        both = context_with(lake_states, active="lake_3", current_gold=16, gold_target=16, current_weight=100)
        status = evaluate_step(gold, 0, both)
        assert status.completed
        assert format_step(status, LAKE_LABELS) == ["16/16 gold tickets | 100 / 100+ kg"]

    def test_off_path(self, routes, lake_states):
        status = evaluate_step(step(routes, "standard", 0), 0, context_with(lake_states, active="lake_2"))
        assert status.off_path
        assert status.wrong_lake_id == "lake_2"
        assert status.target_lake_id == "lake_1"
        assert format_step(status, LAKE_LABELS) == [
            "You are on Misty Lake. Switch to Shallow Cove.",
            "0/1 pools cleared",
        ]

    def test_step_without_lake_is_never_off_path(self, routes, lake_states):
        status = evaluate_step(step(routes, "gold", 1), 1, context_with(lake_states, active="lake_2"))
        assert not status.off_path
        assert not status.completed
        assert format_step(status) == ["Awaiting progress"]

    def test_override(self, routes, lake_states):
        farm = step(routes, "standard", 2)
        caught = LakeState(remaining={"rare": 12, "epic": 4, "legendary": 1}, legendary_caught=2)
        lakes = {"lake_1": caught, "lake_2": caught}
        status = evaluate_step(farm, 2, context_with(lake_states, active="lake_3", lakes=lakes))
        assert status.completed
        assert status.overridden
        assert format_step(status) == [OVERRIDE_LABEL]

    def test_no_override_below_threshold(self, routes, lake_states):
        farm = step(routes, "standard", 2)
        caught = LakeState(remaining={"rare": 12, "epic": 4, "legendary": 1}, legendary_caught=1)
        status = evaluate_step(farm, 2, context_with(lake_states, active="lake_3", lakes={"lake_1": caught}))
        assert not status.completed
        assert not status.overridden
        assert format_step(status) == ["0/2 legendaries caught"]

    def test_skip_threshold_and_fallback_warning(self, routes, lake_states):
        dip = step(routes, "standard", 1)
        at_threshold = evaluate_step(dip, 1, context_with(lake_states, active="lake_2", broken_lines=50))
        assert not at_threshold.should_skip
        assert at_threshold.warning == DEFAULT_WARN_MESSAGE.format(threshold=50)

        over = evaluate_step(dip, 1, context_with(lake_states, active="lake_2", broken_lines=51))
        assert over.should_skip
        assert over.skip_threshold == 50
        assert not over.completed

    def test_custom_warning(self, routes, lake_states):
        gold = step(routes, "gold", 0)
        status = evaluate_step(gold, 0, context_with(lake_states, active="lake_3", broken_lines=30))
        assert status.warning == "Too many snapped lines"
        assert not status.should_skip
        assert format_step(status)[-1] == "Too many snapped lines"

    def test_goal_warning_comes_first(self, routes):
        status = StepStatus(
            step_index=0,
            step=step(routes, "standard", 2),
            completed=True,
            goal_results=[GoalResult(goal_type=GoalType.LEGENDARY_CAUGHT, completed=True, current=4, target=2)],
            goal_warning="over max",
            threshold_warning="snapped lines",
        )
        assert status.warning == "over max"
        assert format_step(status) == ["4/2 legendaries caught", "over max"]


class TestGuidedRoute:
    """Tests for GuidedRoute navigation."""

    def test_defaults_to_first_option(self, routes):
        route = GuidedRoute(routes, option_id="missing")
        assert route.option_id == "standard"
        assert route.step_index == 0
        assert route.auto_advance

    def test_index_is_clamped(self, routes):
        assert GuidedRoute(routes, step_index=99).step_index == 3
        assert GuidedRoute(routes, step_index=-2).step_index == 0

    def test_next_switches_lake(self, routes, lake_states):
        route = GuidedRoute(routes)
        transition = route.next_step(lake_states)
        assert transition.moved
        assert transition.step_index == 1
        assert transition.switch_to_lake_id == "lake_2"

    def test_next_on_final_step(self, routes, lake_states):
        route = GuidedRoute(routes, step_index=3)
        assert route.is_final_step
        transition = route.next_step(lake_states)
        assert not transition.moved
        assert transition.switch_to_lake_id is None

    def test_previous_disables_auto_advance(self, routes, lake_states):
        route = GuidedRoute(routes, step_index=2)
        transition = route.previous_step(lake_states)
        assert transition.step_index == 1
        assert not route.auto_advance

        cleared = LakeState(remaining={"rare": 3, "epic": 0, "legendary": 0})
        context = context_with(lake_states, active="lake_2", lakes={"lake_2": cleared})
        assert not route.maybe_auto_advance(context).moved

    def test_skip_disables_auto_advance(self, routes, lake_states):
        route = GuidedRoute(routes)
        route.skip_step(lake_states)
        assert route.step_index == 1
        assert not route.auto_advance

    def test_auto_advance_on_completion(self, routes, lake_states):
        route = GuidedRoute(routes)
        assert not route.maybe_auto_advance(context_with(lake_states)).moved

        cleared = LakeState(remaining={"rare": 12, "epic": 4, "legendary": 1}, pools_cleared=1)
        transition = route.maybe_auto_advance(context_with(lake_states, lakes={"lake_1": cleared}))
        assert transition.moved
        assert transition.step_index == 1
        assert transition.switch_to_lake_id == "lake_2"

    def test_auto_advance_on_skip_condition(self, routes, lake_states):
        route = GuidedRoute(routes, step_index=1)
        transition = route.maybe_auto_advance(context_with(lake_states, active="lake_2", broken_lines=60))
        assert transition.moved
        assert transition.step_index == 2

    def test_should_skip_click(self, routes, lake_states):
        route = GuidedRoute(routes)
        status = route.evaluate(context_with(lake_states))
        assert route.should_skip_click(status)

        manual = GuidedRoute(routes, step_index=3)
        assert not manual.should_skip_click(manual.evaluate(context_with(lake_states, active="lake_3")))

    def test_select_option_and_reset(self, routes, lake_states):
        route = GuidedRoute(routes, step_index=2, auto_advance=False)
        route.select_option("gold")
        assert route.option_id == "gold"
        assert route.step_index == 0
        assert len(route.steps) == 2

        route.next_step(lake_states)
        route.reset()
        assert route.step_index == 0
        assert route.auto_advance
