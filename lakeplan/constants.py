"""
Lake Planner Constants and Parameters

All tunable numbers for the planner in one place.
Recommender constants are empirical values carried over from the live tool.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


# ---- Rarity tiers ----

class Rarity(str, Enum):
    """Rarity tier of a fish type."""
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


# ---- Inventory ----

DEFAULT_BROKEN_LINES_MAX: Final[int] = 120  # Used when content omits brokenLinesMax


# ---- Recommender ----

TIE_EPSILON: Final[float] = 0.01  # Scores closer than this keep the earlier lake
QUICK_PICK_THRESHOLD: Final[int] = 10  # Max fish left in a lake for a quick legendary pick

# Weights of the risk-adjusted score: expected + 0.5*worst + 0.25*best
SCORE_EXPECTED_WEIGHT: Final[float] = 1.0
SCORE_WORST_WEIGHT: Final[float] = 0.5
SCORE_BEST_WEIGHT: Final[float] = 0.25

# Silver goal baseline used to scale the silver weight
SILVER_BASELINE_MIN: Final[int] = 70_000
SILVER_BASELINE_MAX: Final[int] = 130_000
SILVER_BASELINE_DEFAULT: Final[int] = 120_000
SILVER_WEIGHT_MIN: Final[float] = 0.25
SILVER_WEIGHT_MAX: Final[float] = 1.0


# ---- Purchases ----

GEMS_PER_LURE: Final[int] = 150

# Gold ticket prices per shop item
GOLD_PRICES: Final[dict[str, int]] = {
    "etched_rune": 16,
    "advanced_enchantium": 18,
    "ruin_shovel_bundle": 1,
    "promised_shovel_bundle": 1,
    "chromatic_key_bundle": 4,
}

# Silver ticket prices per shop item
SILVER_PRICES: Final[dict[str, int]] = {
    "etched_rune": 32_400,
    "blessed_rune": 4_050,
    "artifact": 184_000,
}

# Goal presets: silver purchase counts plus gold etched runes
GOAL_PRESETS: Final[dict[str, dict[str, int | None]]] = {
    "silver-heavy": {"etched_rune": 3, "blessed_rune": 4, "artifact": None, "gold_etched_rune": 1},
    "gold-efficient": {"etched_rune": 2, "blessed_rune": 4, "artifact": None, "gold_etched_rune": 1},
}


# ---- History ----

HISTORY_MEMORY_LIMIT: Final[int] = 100  # Entries kept in memory
HISTORY_PERSIST_LIMIT: Final[int] = 50  # Entries written to the store
RECENT_CATCHES_DEFAULT: Final[int] = 3


# ---- Progress store ----

SCHEMA_VERSION: Final[int] = 1
STORAGE_KEY: Final[str] = "event_companion_user_state_v1"
TOOL_STATE_PREFIX: Final[str] = "tool_state_"


# ---- Guided route ----

DEFAULT_WARN_MESSAGE: Final[str] = "You are over {threshold} snapped lines. Consider switching strategies."
OVERRIDE_LABEL: Final[str] = "Legendary target already met"
