"""
Fishing Tool - the planner service for one progress record

Ties together:
- inventory transitions and the undo log (history)
- the lake recommender and goal targets
- the guided route engine
- persistence of the whole tool state in the progress store

Every mutating call builds a new ToolState, writes it through
ProgressStore.set_tool_state and then lets the guided route auto-advance.
Another writer on the same store (for example an import) triggers a reload.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import math
from typing import Callable, Mapping, Optional

import pandas as pd

from lakeplan.activity import visible_frame
from lakeplan.constants import (
    DEFAULT_BROKEN_LINES_MAX,
    GOAL_PRESETS,
    RECENT_CATCHES_DEFAULT,
    TOOL_STATE_PREFIX,
)
from lakeplan.estimator import (
    LegendaryRange,
    casts_for_break_chance,
    estimate_for_lake,
    legendary_chance,
)
from lakeplan.goals import RouteContext, StepStatus
from lakeplan.guided_route import GuidedRoute, Transition
from lakeplan.history import (
    CatchEntry,
    FullResetEntry,
    HistoryEntry,
    LakeResetEntry,
    PoolClearEntry,
)
from lakeplan import inventory
from lakeplan.lake_state import (
    LakeShape,
    LakeState,
    avg_tickets_per_fish,
    build_shape,
    caught_weight,
    weight_remaining,
)
from lakeplan.progress.events import StoreChange
from lakeplan.progress.store import ProgressStore, RecordKey
from lakeplan.recommender import Recommendation, recommend_lake
from lakeplan.schemas import FishingToolData, GuidedRouteData
from lakeplan.targets import (
    LureBudget,
    TaskTier,
    compute_earned,
    compute_remaining,
    effective_silver_target,
    fish_needed_for_silver,
    gold_target,
    lure_budget,
    shortfall,
    silver_weight,
    suggested_silver_target,
)
from lakeplan.tool_state import ToolState, build_tool_state


log = logging.getLogger(__name__)

DEFAULT_STATE_KEY = f"{TOOL_STATE_PREFIX}fishing_calculator"


@dataclass(frozen=True)
class LakeSummary:
    """Per-lake numbers shown next to the catch buttons."""
    lake_id: str
    remaining_fish: int
    remaining_legendary: int
    legendary_chance: float
    expected_to_next: Optional[float]
    weight_remaining: float
    tickets_remaining: Optional[float]
    casts_for_50: Optional[int]
    casts_for_90: Optional[int]
    casts_for_95: Optional[int]


@dataclass(frozen=True)
class Totals:
    """Sums over every lake of the base set."""
    legendary_caught: int
    fish_caught: int
    weight_caught: float
    tickets_caught: Optional[float]


class FishingTool:
    """
    Planner service bound to one progress record.

    Args:
        data: Validated fishing tool content
        store: Progress store holding the tool state
        record_key: Record the state lives in
        state_key: Key of the tool state inside the record
        routes: Guided routes for the event, if any
        default_set_id: Set to show when nothing is stored
    """

    def __init__(
        self,
        data: FishingToolData,
        store: ProgressStore,
        record_key: RecordKey,
        state_key: str = DEFAULT_STATE_KEY,
        routes: Optional[GuidedRouteData] = None,
        default_set_id: Optional[str] = None
    ):
        self.data = data
        self.store = store
        self.record_key = record_key
        self.state_key = state_key
        self.routes = routes
        self.default_set_id = default_set_id
        self.shapes: dict[str, LakeShape] = {
            lake.lake_id: build_shape(data, lake.lake_id) for lake in data.sets[0].lakes
        }
        self._writing = False
        self.state = self._load()
        self._unsubscribe: Optional[Callable[[], None]] = store.bus.subscribe(self._on_store_change)

    # ---- Persistence ----

    def _load(self) -> ToolState:
        stored = self.store.get_tool_state(self.record_key, self.state_key)
        try:
            state = build_tool_state(self.data, stored, self.default_set_id)
        except (TypeError, ValueError, AttributeError):
            log.exception("Unreadable tool state in %s, starting from defaults", self.record_key.storage_key())
            state = build_tool_state(self.data, None, self.default_set_id)
        if stored is None:
            self._persist(state)
        return state

    def _persist(self, state: ToolState) -> None:
        self._writing = True
        try:
            self.store.set_tool_state(self.record_key, self.state_key, state.to_dict())
        finally:
            self._writing = False

    def _on_store_change(self, change: StoreChange) -> None:
        if self._writing:
            return
        if change.record_key not in (None, self.record_key.storage_key()):
            return
        log.info("Progress record %s changed elsewhere, reloading", self.record_key.storage_key())
        self.state = self._load()

    def close(self) -> None:
        """Stop listening for store changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _commit(self, state: ToolState, advance: bool = True) -> ToolState:
        if advance:
            state = self._auto_advance(state)
        self.state = state
        self._persist(state)
        return state

    # ---- Lookups ----

    @property
    def broken_lines_max(self) -> int:
        return self.data.broken_lines_max or DEFAULT_BROKEN_LINES_MAX

    def lake_ids(self) -> list[str]:
        """Lakes of the active set that have state, in display order."""
        active = self.data.get_set(self.state.active_set_id)
        return [lake.lake_id for lake in active.lakes if lake.lake_id in self.state.lake_states]

    def lake_labels(self) -> dict[str, str]:
        labels = {}
        for tool_set in self.data.sets:
            for lake in tool_set.lakes:
                labels.setdefault(lake.lake_id, lake.label)
        return labels

    def lake_state(self, lake_id: Optional[str] = None) -> LakeState:
        return self.state.lake_states[lake_id or self.state.active_lake_id]

    def _fish_name(self, lake_id: str, type_id: str) -> str:
        active = self.data.get_set(self.state.active_set_id)
        for lake in active.lakes:
            if lake.lake_id == lake_id:
                for fish in lake.fish:
                    if fish.type_id == type_id:
                        return fish.name
        for fish_type in self.data.fish_types:
            if fish_type.type_id == type_id:
                return fish_type.label
        return type_id

    # ---- Lake actions ----

    def catch_fish(self, type_id: str, lake_id: Optional[str] = None) -> ToolState:
        """
        Record one catch of type_id in a lake (the active lake by default).

        A catch of an exhausted type changes nothing and is not logged.
        """
        lake_id = lake_id or self.state.active_lake_id
        previous = self.lake_state(lake_id)
        updated = inventory.draw(previous, self.shapes[lake_id], type_id)
        if updated is previous:
            return self.state
        entry = CatchEntry(
            lake_id=lake_id,
            type_id=type_id,
            fish_name=self._fish_name(lake_id, type_id),
            rarity=self.data.rarity_of(type_id).value,
            prev_state=previous,
        )
        return self._apply_lake(lake_id, updated, entry)

    def catch_whole_pool(self, lake_id: Optional[str] = None) -> ToolState:
        """Catch everything left in a lake's current pool."""
        lake_id = lake_id or self.state.active_lake_id
        previous = self.lake_state(lake_id)
        if previous.total_remaining <= 0:
            return self.state
        updated = inventory.draw_whole_pool(previous, self.shapes[lake_id])
        return self._apply_lake(lake_id, updated, PoolClearEntry(lake_id=lake_id, prev_state=previous))

    def reset_lake(self, lake_id: Optional[str] = None) -> ToolState:
        """Refill a lake, keeping its counters."""
        lake_id = lake_id or self.state.active_lake_id
        previous = self.lake_state(lake_id)
        updated = inventory.reset_pool(previous, self.shapes[lake_id])
        entry = LakeResetEntry(lake_id=lake_id, prev_state=previous, kind="reset_lake")
        return self._apply_lake(lake_id, updated, entry)

    def reset_lake_progress(self, lake_id: Optional[str] = None) -> ToolState:
        """Refill a lake and zero its counters."""
        lake_id = lake_id or self.state.active_lake_id
        previous = self.lake_state(lake_id)
        updated = inventory.reset_pool_progress(self.shapes[lake_id])
        entry = LakeResetEntry(lake_id=lake_id, prev_state=previous, kind="reset_lake_progress")
        return self._apply_lake(lake_id, updated, entry)

    def _apply_lake(self, lake_id: str, updated: LakeState, entry: HistoryEntry) -> ToolState:
        state = self.state.with_lake(lake_id, updated)
        state = replace(state, history=state.history.append(entry))
        log.debug("%s on lake %s", entry.kind, lake_id)
        return self._commit(state)

    def reset_all(self) -> ToolState:
        """
        Start the whole event over.

        Every lake refills with zero counters, broken lines and the weight
        input are cleared and the guided route returns to its first step.
        One undo puts everything back, including the prior history.
        """
        current = self.state
        first_lake = self.lake_ids()[0] if self.lake_ids() else current.active_lake_id
        entry = FullResetEntry(
            lake_id=current.active_lake_id,
            prev_states=dict(current.lake_states),
            prev_broken_lines=current.broken_lines,
            prev_guided_weight=current.guided_current_weight,
            prev_history=current.history.entries,
            prev_reset_epoch=current.reset_history_epoch,
        )
        state = replace(
            current,
            lake_states=inventory.reset_all(self.shapes),
            broken_lines=0,
            guided_current_weight=None,
            guided_step_index=0,
            guided_auto_advance=True,
            active_lake_id=first_lake,
            reset_history_epoch=entry.timestamp,
            history=current.history.append(entry),
        )
        log.info("Reset all lakes for %s", self.record_key.storage_key())
        return self._commit(state, advance=False)

    def undo(self) -> bool:
        """
        Invert the newest history entry.

        Returns:
            False when there was nothing to undo
        """
        restore = self.state.history.undo()
        if restore is None:
            return False
        self._commit(self.state.apply_restore(restore), advance=False)
        return True

    def adjust_broken_lines(self, delta: int) -> int:
        value = inventory.clamp_broken_lines(self.state.broken_lines + delta, self.broken_lines_max)
        self._commit(replace(self.state, broken_lines=value))
        return value

    def set_broken_lines(self, value: int) -> int:
        value = inventory.clamp_broken_lines(value, self.broken_lines_max)
        self._commit(replace(self.state, broken_lines=value))
        return value

    def set_active_lake(self, lake_id: str) -> None:
        if lake_id not in self.state.lake_states:
            raise KeyError(f"Unknown lake: {lake_id}")
        self._commit(replace(self.state, active_lake_id=lake_id))

    def set_active_set(self, set_id: str) -> None:
        tool_set = self.data.get_set(set_id)
        lake_ids = [lake.lake_id for lake in tool_set.lakes if lake.lake_id in self.state.lake_states]
        active_lake = self.state.active_lake_id
        if active_lake not in lake_ids and lake_ids:
            active_lake = lake_ids[0]
        self._commit(replace(self.state, active_set_id=tool_set.set_id, active_lake_id=active_lake))

    # ---- Goal inputs ----

    def update_inputs(self, **changes) -> ToolState:
        """
        Set goal inputs (current_silver, current_gold, current_lures, ...).

        Unknown names raise TypeError, as dataclasses.replace() does.
        """
        return self._commit(replace(self.state, **changes))

    def set_target_silver(self, value: Optional[int]) -> ToolState:
        """An explicit silver target detaches the goal from any preset."""
        return self._commit(replace(self.state, target_silver=value, goal_preset="custom"))

    def set_purchase_count(self, item_id: str, count: Optional[int]) -> ToolState:
        counts = dict(self.state.purchase_counts)
        counts[item_id] = count
        return self._commit(replace(self.state, purchase_counts=counts, goal_preset="custom", target_silver=None))

    def set_gold_purchase_count(self, item_id: str, count: Optional[int]) -> ToolState:
        counts = dict(self.state.gold_purchase_counts)
        counts[item_id] = count
        return self._commit(replace(self.state, gold_purchase_counts=counts, goal_preset="custom"))

    def apply_goal_preset(self, preset: str) -> ToolState:
        """
        Load a named purchase preset; "custom" only changes the label.
        """
        if preset not in GOAL_PRESETS:
            return self._commit(replace(self.state, goal_preset="custom"))
        values = GOAL_PRESETS[preset]
        purchase_counts = {
            "etched_rune": values.get("etched_rune"),
            "blessed_rune": values.get("blessed_rune"),
            "artifact": values.get("artifact"),
        }
        gold_counts = dict(self.state.gold_purchase_counts)
        gold_counts["etched_rune"] = values.get("gold_etched_rune")
        return self._commit(replace(
            self.state,
            goal_preset=preset,
            purchase_counts=purchase_counts,
            gold_purchase_counts=gold_counts,
            target_silver=None,
        ))

    # ---- Targets ----

    def gold_target(self) -> Optional[int]:
        return gold_target(self.state.gold_purchase_counts)

    def gold_remaining(self) -> Optional[int]:
        target = self.gold_target()
        if target is None:
            return None
        return int(max(0, target - (self.state.current_gold or 0)))

    def silver_target(self) -> Optional[int]:
        return effective_silver_target(self.state.target_silver, self.state.purchase_counts)

    def suggested_silver_target(self) -> Optional[int]:
        return suggested_silver_target(self.state.purchase_counts)

    def silver_remaining(self) -> Optional[float]:
        return shortfall(self.state.current_silver, self.silver_target())

    def silver_weight(self) -> float:
        return silver_weight(self.silver_remaining(), self.silver_target())

    def avg_tickets(self) -> dict[str, Optional[float]]:
        return {lake_id: avg_tickets_per_fish(self.data, lake_id) for lake_id in self.lake_ids()}

    def fish_needed_for_silver(self, lake_id: Optional[str] = None) -> Optional[int]:
        lake_id = lake_id or self.state.silver_estimate_lake_id
        if not lake_id:
            return None
        return fish_needed_for_silver(self.silver_remaining(), avg_tickets_per_fish(self.data, lake_id))

    # ---- Estimates ----

    def recommendation(self) -> Optional[Recommendation]:
        """Lake to fish for the outstanding gold goal, weighted by any open silver goal."""
        weight = self.silver_weight() if self.state.goal_mode in ("silver", "both") else 0.0
        return recommend_lake(
            self.lake_ids(),
            self.state.lake_states,
            self.shapes,
            self.avg_tickets(),
            self.gold_remaining(),
            silver_weight=weight,
        )

    def legendary_range(self, goal: int, lake_id: Optional[str] = None) -> Optional[LegendaryRange]:
        lake_id = lake_id or self.state.active_lake_id
        return estimate_for_lake(self.lake_state(lake_id), self.shapes[lake_id], goal)

    def gold_range(self) -> Optional[LegendaryRange]:
        """Casts to the gold target in the recommended lake, else in the active lake."""
        remaining = self.gold_remaining()
        if not remaining:
            return None
        recommendation = self.recommendation()
        if recommendation is not None:
            return recommendation.estimate
        return self.legendary_range(remaining)

    def lake_summary(self, lake_id: Optional[str] = None) -> LakeSummary:
        lake_id = lake_id or self.state.active_lake_id
        state = self.lake_state(lake_id)
        shape = self.shapes[lake_id]
        remaining = state.total_remaining
        legendary = state.remaining_of(shape.legendary_type_id)
        next_one = estimate_for_lake(state, shape, 1)
        avg = avg_tickets_per_fish(self.data, lake_id)
        weight = weight_remaining(self.data, lake_id, state)
        tickets_per_kg = (self.data.tickets_per_kg_by_lake or {}).get(lake_id)
        return LakeSummary(
            lake_id=lake_id,
            remaining_fish=remaining,
            remaining_legendary=legendary,
            legendary_chance=legendary_chance(state, shape),
            expected_to_next=next_one.expected_one if next_one is not None and next_one.reachable else None,
            weight_remaining=weight,
            tickets_remaining=weight * tickets_per_kg if tickets_per_kg and avg is not None else None,
            casts_for_50=casts_for_break_chance(remaining, legendary, 0.5),
            casts_for_90=casts_for_break_chance(remaining, legendary, 0.9),
            casts_for_95=casts_for_break_chance(remaining, legendary, 0.95),
        )

    def totals(self) -> Totals:
        legendary = 0
        fish = 0
        weight = 0.0
        tickets: Optional[float] = 0.0
        rates = self.data.tickets_per_kg_by_lake or {}
        for lake_id, state in self.state.lake_states.items():
            legendary += state.legendary_caught
            fish += state.fish_caught
            lake_weight = caught_weight(self.data, lake_id, state)
            weight += lake_weight
            if tickets is not None:
                rate = rates.get(lake_id)
                tickets = tickets + lake_weight * rate if rate else None
        return Totals(legendary_caught=legendary, fish_caught=fish, weight_caught=weight, tickets_caught=tickets)

    def lure_budget_for_gold(self, lures_from_tasks: Optional[int]) -> LureBudget:
        estimate = self.gold_range()
        needed = math.ceil(estimate.expected) if estimate is not None and estimate.reachable else None
        return self._lure_budget(needed, lures_from_tasks)

    def lure_budget_for_silver(self, lures_from_tasks: Optional[int]) -> LureBudget:
        return self._lure_budget(self.fish_needed_for_silver(), lures_from_tasks)

    def _lure_budget(self, needed: Optional[int], lures_from_tasks: Optional[int]) -> LureBudget:
        state = self.state
        return lure_budget(needed, state.current_lures, lures_from_tasks, state.purchased_lures, state.current_gems)

    def task_lures(self, task_tiers: Mapping[str, list[TaskTier]]) -> tuple[int, int]:
        """
        Lures earned and still to earn from the record's task progress.

        Args:
            task_tiers: Lure reward tiers per task id

        Returns:
            (earned, remaining); the remaining part feeds lure_budget_for_*()
        """
        tasks = self.store.get(self.record_key)["tasks"]
        earned = remaining = 0
        for task_id, tiers in task_tiers.items():
            progress = (tasks.get(task_id) or {}).get("progressValue", 0)
            earned += compute_earned(tiers, progress)
            remaining += compute_remaining(tiers, progress)
        return earned, remaining

    def recent_activity(self, limit: int = RECENT_CATCHES_DEFAULT) -> list[HistoryEntry]:
        return self.state.history.recent_catches(self.state.reset_history_epoch, limit)

    def activity_frame(self) -> pd.DataFrame:
        """Catches since the latest full reset, one row per entry."""
        return visible_frame(self.state.history, self.state.reset_history_epoch)

    # ---- Guided route ----

    def _route(self, state: Optional[ToolState] = None) -> Optional[GuidedRoute]:
        if self.routes is None:
            return None
        state = state or self.state
        return GuidedRoute(self.routes, state.guided_option_id, state.guided_step_index, state.guided_auto_advance)

    def route_context(self, state: Optional[ToolState] = None) -> RouteContext:
        state = state or self.state
        return RouteContext(
            lake_states=state.lake_states,
            active_lake_id=state.active_lake_id,
            broken_lines=state.broken_lines,
            current_gold=state.current_gold,
            gold_target=gold_target(state.gold_purchase_counts),
            current_weight=state.guided_current_weight,
        )

    def step_status(self) -> Optional[StepStatus]:
        route = self._route()
        return route.evaluate(self.route_context()) if route else None

    def _store_route(self, state: ToolState, route: GuidedRoute, transition: Optional[Transition] = None) -> ToolState:
        changes = dict(
            guided_option_id=route.option_id,
            guided_step_index=route.step_index,
            guided_auto_advance=route.auto_advance,
        )
        if transition is not None and transition.switch_to_lake_id:
            changes["active_lake_id"] = transition.switch_to_lake_id
        return replace(state, **changes)

    def _auto_advance(self, state: ToolState) -> ToolState:
        route = self._route(state)
        if route is None:
            return state
        # One step per pass until a step is still open
        for _ in range(len(route.steps)):
            transition = route.maybe_auto_advance(self.route_context(state))
            if not transition.moved:
                break
            state = self._store_route(state, route, transition)
        return state

    def _navigate(self, move: Callable[[GuidedRoute], Optional[Transition]], advance: bool) -> ToolState:
        route = self._route()
        if route is None:
            return self.state
        transition = move(route)
        return self._commit(self._store_route(self.state, route, transition), advance=advance)

    def select_route_option(self, option_id: str) -> ToolState:
        return self._navigate(lambda route: route.select_option(option_id), advance=False)

    def next_step(self) -> ToolState:
        return self._navigate(lambda route: route.next_step(self.state.lake_states), advance=False)

    def skip_step(self) -> ToolState:
        return self._navigate(lambda route: route.skip_step(self.state.lake_states), advance=False)

    def previous_step(self) -> ToolState:
        return self._navigate(lambda route: route.previous_step(self.state.lake_states), advance=False)

    def reset_route(self) -> ToolState:
        """Back to the first step with auto-advance on; the weight input is cleared."""
        route = self._route()
        if route is None:
            return self.state
        route.reset()
        state = replace(self._store_route(self.state, route), guided_current_weight=None)
        return self._commit(state, advance=False)

    def set_auto_advance(self, enabled: bool) -> ToolState:
        return self._commit(replace(self.state, guided_auto_advance=enabled))

    def set_guided_weight(self, weight: Optional[float]) -> ToolState:
        return self._commit(replace(self.state, guided_current_weight=weight))
