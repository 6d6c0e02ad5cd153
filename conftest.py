"""
Shared pytest fixtures: a small three-lake event and two guided routes.

Per pool: 12 rare, 4 epic, 1 legendary (17 fish). lake_3 is the last lake
and holds twice that (34 fish, 2 legendaries).
"""
import pytest

from lakeplan.progress import ChangeBus, MemoryByteStore, ProgressStore, RecordKey
from lakeplan.schemas import FishingToolData, GuidedRouteData


TOOL_DATA = {
    "schemaVersion": 1,
    "sets": [
        {
            "setId": "main",
            "label": "Main",
            "lakes": [
                {"lakeId": "lake_1", "label": "Shallow Cove", "fish": [
                    {"fishId": "carp", "typeId": "rare", "name": "Carp"},
                    {"fishId": "pike", "typeId": "epic", "name": "Pike"},
                    {"fishId": "koi", "typeId": "legendary", "name": "Golden Koi"},
                ]},
                {"lakeId": "lake_2", "label": "Misty Lake", "fish": []},
                {"lakeId": "lake_3", "label": "Abyss", "fish": []},
            ],
        },
        {
            "setId": "late",
            "label": "Late game",
            "lakes": [
                {"lakeId": "lake_2", "label": "Misty Lake"},
                {"lakeId": "lake_3", "label": "Abyss"},
            ],
        },
    ],
    "fishTypes": [
        {"typeId": "rare", "label": "Rare", "rarity": "rare", "baseCount": 12},
        {"typeId": "epic", "label": "Epic", "rarity": "epic", "baseCount": 4},
        {"typeId": "legendary", "label": "Legendary", "rarity": "legendary", "baseCount": 1},
    ],
    "lastLakeId": "lake_3",
    "lastLakeMultiplier": 2,
    "weightsByLake": {
        "lake_1": {"rare": 1.0, "epic": 2.0, "legendary": 5.0},
        "lake_2": {"rare": 1.0, "epic": 2.0, "legendary": 5.0},
        "lake_3": {"rare": 2.0, "epic": 4.0, "legendary": 10.0},
    },
    "ticketsPerKgByLake": {"lake_1": 100, "lake_2": 150, "lake_3": 200},
    "brokenLinesMax": 120,
}


ROUTES = {
    "schemaVersion": 1,
    "finalLakeId": "lake_3",
    "options": [
        {
            "optionId": "standard",
            "title": "Standard route",
            "steps": [
                {
                    "stepId": "clear-1",
                    "lakeId": "lake_1",
                    "action": "Clear the first lake once",
                    "goal": {"type": "pools_cleared", "count": 1},
                },
                {
                    "stepId": "dip-2",
                    "lakeId": "lake_2",
                    "action": "Fish lake 2 until the legendary or 3 fish are left",
                    "goalAny": [
                        {"type": "legendary_caught", "count": 1},
                        {"type": "remaining_fish_at_most", "count": 3},
                    ],
                    "skipIfBrokenLinesOver": 50,
                },
                {
                    "stepId": "farm-3",
                    "lakeId": "lake_3",
                    "action": "Farm legendaries in lake 3",
                    "goal": {
                        "type": "legendary_caught",
                        "count": 2,
                        "maxCount": 3,
                        "onlyIfLegendaryBelow": 4,
                        "onlyIfLegendaryBelowScope": "total",
                    },
                },
                {
                    "stepId": "done",
                    "lakeId": "lake_3",
                    "action": "Spend your tickets",
                    "goal": {"type": "manual_confirm"},
                },
            ],
        },
        {
            "optionId": "gold",
            "title": "Gold first",
            "steps": [
                {
                    "stepId": "gold",
                    "lakeId": "lake_3",
                    "action": "Reach the gold goal",
                    "goalAll": [
                        {"type": "gold_target"},
                        {"type": "weight_at_least", "count": 100},
                    ],
                    "warnIfBrokenLinesOver": 30,
                    "warnMessage": "Too many snapped lines",
                },
                {
                    "stepId": "wrap-up",
                    "lakeId": "",
                    "action": "Wrap up",
                },
            ],
        },
    ],
}


@pytest.fixture
def tool_data():
    return FishingToolData.model_validate(TOOL_DATA)


@pytest.fixture
def routes():
    return GuidedRouteData.model_validate(ROUTES)


@pytest.fixture
def bus():
    return ChangeBus()


@pytest.fixture
def store(bus):
    return ProgressStore(MemoryByteStore(), bus=bus)


@pytest.fixture
def record_key():
    return RecordKey("fishing_event", 1)
