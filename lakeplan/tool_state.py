"""
Fishing tool state: everything the tool persists for one record.

ToolState is immutable; the fishing_tool service builds a new one with
dataclasses.replace() for every change and persists it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Mapping, Optional

from lakeplan.history import HistoryLog, Restore, format_timestamp, parse_timestamp
from lakeplan.lake_state import LakeState, build_full_counts, coerce_int, coerce_optional, is_number
from lakeplan.schemas import FishingToolData


def default_purchase_counts() -> dict[str, Optional[int]]:
    return {"etched_rune": None, "blessed_rune": None, "artifact": None}


def default_gold_purchase_counts() -> dict[str, Optional[int]]:
    return {
        "etched_rune": 1,
        "advanced_enchantium": None,
        "ruin_shovel_bundle": None,
        "promised_shovel_bundle": None,
        "chromatic_key_bundle": None,
    }


@dataclass(frozen=True)
class ToolState:
    active_set_id: str
    active_lake_id: str
    lake_states: Mapping[str, LakeState]
    broken_lines: int = 0
    history: HistoryLog = field(default_factory=HistoryLog)
    reset_history_epoch: Optional[datetime] = None

    # Goal inputs
    goal_mode: str = "silver"  # silver, gold or both
    goal_preset: str = "custom"
    current_silver: Optional[int] = None
    target_silver: Optional[int] = None
    silver_estimate_lake_id: Optional[str] = None
    current_gold: Optional[int] = None
    current_lures: Optional[int] = None
    purchased_lures: Optional[int] = None
    current_gems: Optional[int] = None
    purchase_counts: Mapping[str, Optional[int]] = field(default_factory=default_purchase_counts)
    gold_purchase_counts: Mapping[str, Optional[int]] = field(default_factory=default_gold_purchase_counts)

    # Guided route position
    guided_option_id: Optional[str] = None
    guided_step_index: int = 0
    guided_current_weight: Optional[float] = None
    guided_auto_advance: bool = True

    def with_lake(self, lake_id: str, state: LakeState) -> "ToolState":
        lake_states = dict(self.lake_states)
        lake_states[lake_id] = state
        return replace(self, lake_states=lake_states)

    def apply_restore(self, restore: Restore) -> "ToolState":
        """Apply an undo."""
        lake_states = dict(self.lake_states)
        lake_states.update(restore.lake_states)
        changes = dict(lake_states=lake_states, history=restore.history)
        if restore.broken_lines is not None:
            changes["broken_lines"] = restore.broken_lines
        if restore.restore_guided_weight:
            changes["guided_current_weight"] = restore.guided_weight
        if restore.restore_reset_epoch:
            changes["reset_history_epoch"] = restore.reset_epoch
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "activeSetId": self.active_set_id,
            "activeLakeId": self.active_lake_id,
            "lakeStates": {lake_id: state.to_dict() for lake_id, state in self.lake_states.items()},
            "brokenLines": self.broken_lines,
            "history": self.history.to_list(),
            "resetHistoryEpoch": format_timestamp(self.reset_history_epoch),
            "goalMode": self.goal_mode,
            "goalPreset": self.goal_preset,
            "currentSilverTickets": self.current_silver,
            "targetSilverTickets": self.target_silver,
            "silverEstimateLakeId": self.silver_estimate_lake_id,
            "currentGoldTickets": self.current_gold,
            "currentLures": self.current_lures,
            "purchasedLures": self.purchased_lures,
            "currentGems": self.current_gems,
            "purchaseCounts": dict(self.purchase_counts),
            "goldPurchaseCounts": dict(self.gold_purchase_counts),
            "guidedOptionId": self.guided_option_id,
            "guidedStepIndex": self.guided_step_index,
            "guidedCurrentWeight": self.guided_current_weight,
            "guidedAutoAdvance": self.guided_auto_advance,
        }


def _counts(value, defaults: dict[str, Optional[int]]) -> dict[str, Optional[int]]:
    if not isinstance(value, Mapping):
        return defaults
    return {item_id: max(0, int(count)) if is_number(count) else None for item_id, count in value.items()}


def _text(value) -> Optional[str]:
    return value if isinstance(value, str) else None


def build_tool_state(
    data: FishingToolData,
    stored: Optional[Mapping] = None,
    default_set_id: Optional[str] = None
) -> ToolState:
    """
    Build tool state from configuration and an optional stored dict.

    Lakes of the base set that have no stored state start full. Stored
    ids that no longer exist in the content, and fields of the wrong
    type, fall back to defaults.

    Args:
        data: Fishing tool configuration
        stored: Output of ToolState.to_dict(), possibly from an older build
            or an imported code
        default_set_id: Set to use when nothing valid is stored

    Returns:
        ToolState
    """
    if not isinstance(stored, Mapping):
        stored = {}
    base_set = data.sets[0]
    set_ids = {entry.set_id for entry in data.sets}
    lake_ids = [lake.lake_id for lake in base_set.lakes]

    active_set_id = _text(stored.get("activeSetId"))
    if active_set_id not in set_ids:
        active_set_id = default_set_id if default_set_id in set_ids else base_set.set_id

    stored_lakes = stored.get("lakeStates")
    if not isinstance(stored_lakes, Mapping):
        stored_lakes = {}
    lake_states = {}
    for lake_id in lake_ids:
        full_counts = build_full_counts(data, lake_id)
        lake_states[lake_id] = LakeState.from_dict(stored_lakes.get(lake_id), full_counts)

    active_lake_id = _text(stored.get("activeLakeId"))
    if active_lake_id not in lake_states:
        active_lake_id = lake_ids[0] if lake_ids else ""

    silver_lake = _text(stored.get("silverEstimateLakeId")) or data.last_lake_id or (lake_ids[0] if lake_ids else None)
    auto_advance = stored.get("guidedAutoAdvance")

    return ToolState(
        active_set_id=active_set_id,
        active_lake_id=active_lake_id,
        lake_states=lake_states,
        broken_lines=max(0, coerce_int(stored.get("brokenLines"))),
        history=HistoryLog.from_list(stored.get("history")),
        reset_history_epoch=parse_timestamp(stored.get("resetHistoryEpoch")),
        goal_mode=_text(stored.get("goalMode")) or "silver",
        goal_preset=_text(stored.get("goalPreset")) or "custom",
        current_silver=coerce_optional(stored.get("currentSilverTickets")),
        target_silver=coerce_optional(stored.get("targetSilverTickets")),
        silver_estimate_lake_id=silver_lake,
        current_gold=coerce_optional(stored.get("currentGoldTickets")),
        current_lures=coerce_optional(stored.get("currentLures")),
        purchased_lures=coerce_optional(stored.get("purchasedLures")),
        current_gems=coerce_optional(stored.get("currentGems")),
        purchase_counts=_counts(stored.get("purchaseCounts"), default_purchase_counts()),
        gold_purchase_counts=_counts(stored.get("goldPurchaseCounts"), default_gold_purchase_counts()),
        guided_option_id=_text(stored.get("guidedOptionId")),
        guided_step_index=max(0, coerce_int(stored.get("guidedStepIndex"))),
        guided_current_weight=coerce_optional(stored.get("guidedCurrentWeight")),
        guided_auto_advance=auto_advance if isinstance(auto_advance, bool) else True,
    )
