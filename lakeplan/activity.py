"""
Activity summaries over the history log.

Builds a flat DataFrame of catch events and aggregates it per lake,
per rarity and per UTC day.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

import pandas as pd

from lakeplan.history import CatchEntry, HistoryEntry, HistoryLog, PoolClearEntry


ACTIVITY_COLUMNS = ["entry_id", "timestamp", "day_utc", "lake_id", "kind", "type_id", "rarity", "fish"]


def history_to_frame(entries: Iterable[HistoryEntry]) -> pd.DataFrame:
    """
    One row per catch or pool clear.

    A pool clear counts every fish that was left in the pool; its type and
    rarity columns are empty.
    """
    rows = []
    for entry in entries:
        if isinstance(entry, CatchEntry):
            fish = 1
            type_id, rarity = entry.type_id, entry.rarity
        elif isinstance(entry, PoolClearEntry):
            fish = entry.prev_state.total_remaining
            type_id, rarity = None, None
        else:
            continue
        rows.append({
            "entry_id": entry.entry_id,
            "timestamp": entry.timestamp,
            "lake_id": entry.lake_id,
            "kind": entry.kind,
            "type_id": type_id,
            "rarity": rarity,
            "fish": fish,
        })

    if not rows:
        return pd.DataFrame(columns=ACTIVITY_COLUMNS)

    df = pd.DataFrame(rows)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df["day_utc"] = df["timestamp"].dt.floor("D")
    return df[ACTIVITY_COLUMNS]


def visible_frame(history: HistoryLog, reset_epoch: Optional[datetime] = None) -> pd.DataFrame:
    """Frame of the entries an activity view would show."""
    return history_to_frame(history.visible(reset_epoch))


def catches_by_lake(df: pd.DataFrame) -> pd.Series:
    """Fish caught per lake."""
    if df.empty:
        return pd.Series(dtype="int64")
    return df.groupby("lake_id")["fish"].sum().astype("int64")


def catches_by_rarity(df: pd.DataFrame) -> pd.DataFrame:
    """
    Single catches per lake and rarity (pool clears are not broken down).
    """
    singles = df[df["kind"] == "catch"]
    if singles.empty:
        return pd.DataFrame()
    return (
        singles.groupby(["lake_id", "rarity"]).size()
        .unstack(fill_value=0)
        .astype("int64")
    )


def daily_catches(df: pd.DataFrame) -> pd.Series:
    """Fish caught per UTC day over a dense day index."""
    if df.empty:
        return pd.Series(dtype="int64")
    daily = df.groupby("day_utc")["fish"].sum()
    day_index = pd.date_range(start=daily.index.min(), end=daily.index.max(), freq="D")
    return daily.reindex(day_index, fill_value=0).astype("int64")
