"""
Lake Planner - progress and probability planning for the fishing event

Main API for the fishing calculator.

This package implements:
- Depletable per-lake fish pools drawn without replacement (auto-refill)
- Best/expected/worst casts to K more legendaries across refills
- A lake recommender for gold goals, weighted by open silver goals
- A guided route state machine of goal-gated steps
- Snapshot undo and a namespaced progress store with export codes

Quick start:
    from lakeplan import FishingTool, ContentCache
    from lakeplan.progress import ProgressStore, SqlByteStore, RecordKey

    content = ContentCache()
    data = content.load_tool_data("fishing/tool.json").data
    store = ProgressStore(SqlByteStore())

    tool = FishingTool(data, store, RecordKey("fishing_event", 2))
    tool.catch_fish("legendary")
    print(tool.recommendation())
"""

# Inventory and estimates (pure functions)
from lakeplan.inventory import (
    draw,
    draw_whole_pool,
    reset_pool,
    reset_pool_progress,
    reset_all,
    clamp_broken_lines,
)
from lakeplan.estimator import (
    LegendaryRange,
    UNREACHABLE,
    estimate_range,
    estimate_for_lake,
    expected_one,
    legendary_chance,
    casts_for_break_chance,
)
from lakeplan.lake_state import LakeShape, LakeState, build_shape
from lakeplan.recommender import Recommendation, recommend_lake

# Guided routes
from lakeplan.goals import RouteContext, StepStatus, evaluate_step, format_step
from lakeplan.guided_route import GuidedRoute, Transition

# History
from lakeplan.history import HistoryLog

# Content and service
from lakeplan.content import ContentCache, LoadState
from lakeplan.schemas import FishingToolData, GuidedRouteData
from lakeplan.fishing_tool import FishingTool
from lakeplan.tool_state import ToolState


__all__ = [
    "draw",
    "draw_whole_pool",
    "reset_pool",
    "reset_pool_progress",
    "reset_all",
    "clamp_broken_lines",
    "LegendaryRange",
    "UNREACHABLE",
    "estimate_range",
    "estimate_for_lake",
    "expected_one",
    "legendary_chance",
    "casts_for_break_chance",
    "LakeShape",
    "LakeState",
    "build_shape",
    "Recommendation",
    "recommend_lake",
    "RouteContext",
    "StepStatus",
    "evaluate_step",
    "format_step",
    "GuidedRoute",
    "Transition",
    "HistoryLog",
    "ContentCache",
    "LoadState",
    "FishingToolData",
    "GuidedRouteData",
    "FishingTool",
    "ToolState",
]
