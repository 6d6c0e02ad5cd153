"""
Guided route engine.

A finite state machine over the steps of one route option:
- state: step index (initial 0, terminal = last step)
- transitions: next/skip/previous, plus auto-advance when the current
  step becomes complete (or hits its skip condition)

Going back by hand, or skipping an incomplete step, turns auto-advance off
so the engine does not immediately jump forward again.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Mapping, Optional

from lakeplan.goals import RouteContext, StepStatus, evaluate_step
from lakeplan.schemas import GuidedRouteData, GuidedRouteOption, GuidedRouteStep


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """Result of a navigation call: the new index and the lake to switch to, if any."""
    step_index: int
    moved: bool
    switch_to_lake_id: Optional[str] = None


class GuidedRoute:
    """
    Step pointer plus auto-advance flag for one route option.
    """

    def __init__(
        self,
        routes: GuidedRouteData,
        option_id: Optional[str] = None,
        step_index: int = 0,
        auto_advance: bool = True
    ):
        self.routes = routes
        self.option: Optional[GuidedRouteOption] = routes.get_option(option_id)
        self.step_index = self._clamp(step_index)
        self.auto_advance = auto_advance

    # ---- State ----

    @property
    def steps(self) -> list[GuidedRouteStep]:
        return self.option.steps if self.option else []

    @property
    def option_id(self) -> Optional[str]:
        return self.option.option_id if self.option else None

    @property
    def is_final_step(self) -> bool:
        return self.step_index >= len(self.steps) - 1

    def _clamp(self, index: int) -> int:
        return min(max(0, index), max(len(self.steps) - 1, 0))

    def current_step(self) -> Optional[GuidedRouteStep]:
        steps = self.steps
        return steps[self.step_index] if steps else None

    def evaluate(self, context: RouteContext) -> Optional[StepStatus]:
        step = self.current_step()
        if step is None:
            return None
        return evaluate_step(step, self.step_index, context)

    def should_skip_click(self, status: StepStatus) -> bool:
        """
        True when moving forward now would leave an unfinished goal behind.
        """
        step = status.step
        has_goals = bool(step.goals())
        return status.should_skip or (has_goals and not step.is_manual_only and not status.completed)

    # ---- Transitions ----

    def select_option(self, option_id: str) -> None:
        self.option = self.routes.get_option(option_id)
        self.step_index = 0
        log.debug("Guided route switched to option %s", self.option_id)

    def _move_to(self, index: int, lake_states: Mapping[str, object]) -> Transition:
        index = self._clamp(index)
        moved = index != self.step_index
        self.step_index = index
        step = self.current_step()
        switch_to = None
        if moved and step is not None and step.lake_id and step.lake_id in lake_states:
            switch_to = step.lake_id
        return Transition(step_index=index, moved=moved, switch_to_lake_id=switch_to)

    def next_step(self, lake_states: Mapping[str, object]) -> Transition:
        """Advance by one; a no-op on the final step."""
        return self._move_to(self.step_index + 1, lake_states)

    def skip_step(self, lake_states: Mapping[str, object]) -> Transition:
        """Advance past an incomplete step and stop auto-advancing."""
        self.auto_advance = False
        return self._move_to(self.step_index + 1, lake_states)

    def previous_step(self, lake_states: Mapping[str, object]) -> Transition:
        """Go back one step and stop auto-advancing."""
        self.auto_advance = False
        return self._move_to(self.step_index - 1, lake_states)

    def reset(self) -> None:
        self.step_index = 0
        self.auto_advance = True

    def maybe_auto_advance(self, context: RouteContext) -> Transition:
        """
        Advance once if auto-advance is on and the current step is done or skipped.
        """
        if not self.auto_advance:
            return Transition(step_index=self.step_index, moved=False)
        status = self.evaluate(context)
        if status is None or not (status.completed or status.should_skip):
            return Transition(step_index=self.step_index, moved=False)
        transition = self._move_to(self.step_index + 1, context.lake_states)
        if transition.moved:
            log.debug("Guided route auto-advanced to step %d", transition.step_index)
        return transition
