"""
Pydantic models for the fishing tool's static content.

These models mirror the JSON files shipped with the companion app
(camelCase keys) and validate them before any planner code runs.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from lakeplan.constants import Rarity


class GoalType(str, Enum):
    """Completion predicate attached to a guided route step."""
    MANUAL_CONFIRM = "manual_confirm"
    POOLS_CLEARED = "pools_cleared"
    LEGENDARY_CAUGHT = "legendary_caught"
    GOLD_TARGET = "gold_target"
    WEIGHT_AT_LEAST = "weight_at_least"
    REMAINING_FISH_AT_MOST = "remaining_fish_at_most"


class GoalScope(str, Enum):
    """Whether a legendary count is read from one lake or summed over all lakes."""
    LAKE = "lake"
    TOTAL = "total"


# ---- Fishing tool data ----

class FishType(BaseModel):
    """One category of fish, shared by every lake."""
    type_id: str = Field(..., alias="typeId")
    label: str
    rarity: Rarity
    base_count: int = Field(..., alias="baseCount", ge=0, description="Count in a full pool before multipliers")

    class Config:
        populate_by_name = True
        use_enum_values = True


class FishingFish(BaseModel):
    """A named fish as displayed in a lake."""
    fish_id: str = Field(..., alias="fishId")
    type_id: str = Field(..., alias="typeId")
    name: str
    image: Optional[str] = None

    class Config:
        populate_by_name = True


class FishingLake(BaseModel):
    lake_id: str = Field(..., alias="lakeId")
    label: str
    fish: list[FishingFish] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class FishingToolSet(BaseModel):
    set_id: str = Field(..., alias="setId")
    label: str
    lakes: list[FishingLake] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class FishingToolData(BaseModel):
    """
    Static configuration of the fishing calculator.

    The last lake's pool is larger: every base count is multiplied by
    last_lake_multiplier there.
    """
    schema_version: int = Field(1, alias="schemaVersion")
    sets: list[FishingToolSet] = Field(..., min_length=1)
    fish_types: list[FishType] = Field(..., alias="fishTypes")
    last_lake_id: str = Field(..., alias="lastLakeId")
    last_lake_multiplier: int = Field(1, alias="lastLakeMultiplier", ge=1)
    weights_by_lake: dict[str, dict[str, float]] = Field(default_factory=dict, alias="weightsByLake")
    tickets_per_kg_by_lake: Optional[dict[str, float]] = Field(None, alias="ticketsPerKgByLake")
    broken_lines_max: Optional[int] = Field(None, alias="brokenLinesMax")

    class Config:
        populate_by_name = True

    def get_set(self, set_id: Optional[str] = None) -> FishingToolSet:
        """Return the set with set_id, falling back to the first set."""
        if set_id:
            for entry in self.sets:
                if entry.set_id == set_id:
                    return entry
        return self.sets[0]

    def legendary_type_id(self) -> str:
        """Type id of the legendary tier, or "" when the content has none."""
        return next(
            (fish_type.type_id for fish_type in self.fish_types if fish_type.rarity == Rarity.LEGENDARY),
            ""
        )

    def rarity_of(self, type_id: str) -> Rarity:
        for fish_type in self.fish_types:
            if fish_type.type_id == type_id:
                return Rarity(fish_type.rarity)
        return Rarity.RARE


# ---- Guided routes ----

class GuidedGoal(BaseModel):
    """A typed completion predicate with optional thresholds."""
    type: GoalType
    count: float = 0
    scope: Optional[GoalScope] = None
    max_count: Optional[int] = Field(None, alias="maxCount")
    skip_if_broken_lines_over: Optional[int] = Field(None, alias="skipIfBrokenLinesOver")
    only_if_legendary_below: Optional[int] = Field(None, alias="onlyIfLegendaryBelow")
    only_if_legendary_below_scope: Optional[GoalScope] = Field(None, alias="onlyIfLegendaryBelowScope")
    warn_if_broken_lines_over: Optional[int] = Field(None, alias="warnIfBrokenLinesOver")
    warn_message: Optional[str] = Field(None, alias="warnMessage")

    class Config:
        populate_by_name = True
        use_enum_values = True


class GuidedRouteStep(BaseModel):
    """
    One goal-gated action.

    Goals are read in priority order goal_all, goal_any, goal; a bare goal
    behaves like a one-element goal_all.
    """
    step_id: str = Field(..., alias="stepId")
    lake_id: str = Field("", alias="lakeId")
    action: str
    notes: Optional[str] = None
    goal: Optional[GuidedGoal] = None
    goal_all: Optional[list[GuidedGoal]] = Field(None, alias="goalAll")
    goal_any: Optional[list[GuidedGoal]] = Field(None, alias="goalAny")
    skip_if_broken_lines_over: Optional[int] = Field(None, alias="skipIfBrokenLinesOver")
    warn_if_broken_lines_over: Optional[int] = Field(None, alias="warnIfBrokenLinesOver")
    warn_message: Optional[str] = Field(None, alias="warnMessage")

    class Config:
        populate_by_name = True

    def goals(self) -> list[GuidedGoal]:
        if self.goal_all:
            return list(self.goal_all)
        if self.goal_any:
            return list(self.goal_any)
        return [self.goal] if self.goal else []

    @property
    def uses_any(self) -> bool:
        return not self.goal_all and bool(self.goal_any)

    @property
    def is_manual_only(self) -> bool:
        return (
            self.goal is not None
            and self.goal.type == GoalType.MANUAL_CONFIRM
            and not self.goal_all
            and not self.goal_any
        )


class GuidedRouteOption(BaseModel):
    option_id: str = Field(..., alias="optionId")
    title: str
    summary: Optional[str] = None
    disclaimer: Optional[str] = None
    steps: list[GuidedRouteStep] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class GuidedRouteData(BaseModel):
    """All strategies offered for one event."""
    schema_version: int = Field(1, alias="schemaVersion")
    final_lake_id: str = Field("", alias="finalLakeId")
    pool_sizes: dict[str, int] = Field(default_factory=dict, alias="poolSizes")
    options: list[GuidedRouteOption] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    def get_option(self, option_id: Optional[str]) -> Optional[GuidedRouteOption]:
        """Return the preferred option, else the first one."""
        if option_id:
            for option in self.options:
                if option.option_id == option_id:
                    return option
        return self.options[0] if self.options else None
