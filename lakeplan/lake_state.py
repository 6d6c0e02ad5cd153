"""
Lake State - per-lake pool bookkeeping and full-pool shape

Key concepts:
- Full counts: how many fish of each type a freshly refilled lake holds
- Remaining: fish still in the current pool (drawn without replacement)
- Counters: pools cleared, legendaries caught and fish caught, across refills
"""

from __future__ import annotations
from dataclasses import dataclass, field
import math
from typing import Any, Mapping, Optional

from lakeplan.schemas import FishingToolData


@dataclass(frozen=True)
class LakeState:
    """
    Pool state for a single lake.

    Instances are never mutated; inventory operations return new states,
    so any instance can double as an undo snapshot.
    """
    remaining: Mapping[str, int]
    pools_cleared: int = 0
    legendary_caught: int = 0
    fish_caught: int = 0

    def __post_init__(self):
        object.__setattr__(self, "remaining", dict(self.remaining))

    @property
    def total_remaining(self) -> int:
        return sum_counts(self.remaining)

    def remaining_of(self, type_id: str) -> int:
        return self.remaining.get(type_id, 0)

    def to_dict(self) -> dict:
        """Serialize using the storage field names."""
        return {
            "remainingByTypeId": dict(self.remaining),
            "poolsCompleted": self.pools_cleared,
            "legendaryCaught": self.legendary_caught,
            "fishCaught": self.fish_caught,
        }

    @classmethod
    def from_dict(cls, raw: Mapping, full_counts: Optional[Mapping[str, int]] = None) -> "LakeState":
        """
        Rebuild a lake state from storage.

        Types missing from the stored remaining map, or stored with a
        non-numeric count, are filled from full_counts. Stored values are
        clamped to [0, full].
        """
        if not isinstance(raw, Mapping):
            raw = {}
        stored = raw.get("remainingByTypeId")
        if not isinstance(stored, Mapping):
            stored = {}
        if full_counts is None:
            remaining = {
                type_id: max(0, int(count)) for type_id, count in stored.items() if is_number(count)
            }
        else:
            remaining = {}
            for type_id, full in full_counts.items():
                count = coerce_int(stored.get(type_id), full)
                remaining[type_id] = min(full, max(0, count))
            if sum_counts(remaining) == 0:
                remaining = dict(full_counts)
        return cls(
            remaining=remaining,
            pools_cleared=max(0, coerce_int(raw.get("poolsCompleted"))),
            legendary_caught=max(0, coerce_int(raw.get("legendaryCaught"))),
            fish_caught=max(0, coerce_int(raw.get("fishCaught"))),
        )


@dataclass(frozen=True)
class LakeShape:
    """Full-pool shape of one lake: (N, R) plus per-type counts."""
    lake_id: str
    full_counts: Mapping[str, int] = field(default_factory=dict)
    legendary_type_id: str = ""

    @property
    def full_fish(self) -> int:
        return sum_counts(self.full_counts)

    @property
    def full_legendary(self) -> int:
        return self.full_counts.get(self.legendary_type_id, 0)

    def fresh_state(self) -> LakeState:
        return LakeState(remaining=self.full_counts)


def sum_counts(values: Mapping[str, int]) -> int:
    return sum(values.values())


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def coerce_int(value: Any, default: int = 0) -> int:
    """Stored count as an int; anything non-numeric falls back to default."""
    return int(value) if is_number(value) else default


def coerce_optional(value: Any) -> Optional[float]:
    """Stored numeric input, or None when missing or non-numeric."""
    return value if is_number(value) else None


def build_full_counts(data: FishingToolData, lake_id: str) -> dict[str, int]:
    """
    Full per-type counts for a lake.

    The last lake multiplies every base count by last_lake_multiplier.
    """
    multiplier = data.last_lake_multiplier if lake_id == data.last_lake_id else 1
    return {fish_type.type_id: fish_type.base_count * multiplier for fish_type in data.fish_types}


def build_shape(data: FishingToolData, lake_id: str) -> LakeShape:
    return LakeShape(
        lake_id=lake_id,
        full_counts=build_full_counts(data, lake_id),
        legendary_type_id=data.legendary_type_id(),
    )


def avg_tickets_per_fish(data: FishingToolData, lake_id: str) -> Optional[float]:
    """
    Average silver tickets per fish over a full pool.

    Weighted by each type's full count and weight, converted with the
    lake's tickets-per-kg rate. None when the lake has no rate.

    Args:
        data: Fishing tool configuration
        lake_id: Lake to evaluate

    Returns:
        Tickets per fish, or None
    """
    tickets_per_kg = (data.tickets_per_kg_by_lake or {}).get(lake_id)
    if not tickets_per_kg:
        return None
    full_counts = build_full_counts(data, lake_id)
    weights = data.weights_by_lake.get(lake_id, {})
    total_weight = sum(count * weights.get(type_id, 0) for type_id, count in full_counts.items())
    fish_count = sum_counts(full_counts)
    if not fish_count:
        return None
    return (total_weight / fish_count) * tickets_per_kg


def weight_remaining(data: FishingToolData, lake_id: str, state: LakeState) -> float:
    """Total kg of fish still in the lake's current pool."""
    weights = data.weights_by_lake.get(lake_id, {})
    return sum(count * weights.get(type_id, 0) for type_id, count in state.remaining.items())


def caught_weight(data: FishingToolData, lake_id: str, state: LakeState) -> float:
    """
    Total kg caught in a lake: every cleared pool plus the current partial pool.
    """
    full_counts = build_full_counts(data, lake_id)
    weights = data.weights_by_lake.get(lake_id, {})
    total = 0.0
    for type_id, full in full_counts.items():
        caught = state.pools_cleared * full + max(0, full - state.remaining_of(type_id))
        total += caught * weights.get(type_id, 0)
    return total
