"""
History and undo.

Every mutating tool operation appends one entry carrying the snapshot
needed to invert it. Entry kinds:
- CatchEntry: one fish caught (restores one lake)
- PoolClearEntry: whole pool caught at once (restores one lake)
- LakeResetEntry: refill / refill + zero counters (restores one lake)
- FullResetEntry: every lake, broken lines, weight input and the whole
  prior log (restores all of it)

The log only grows by append and shrinks by pop; entries are frozen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Literal, Mapping, Optional, Union
import uuid

from lakeplan.constants import (
    HISTORY_MEMORY_LIMIT,
    HISTORY_PERSIST_LIMIT,
    RECENT_CATCHES_DEFAULT,
)
from lakeplan.lake_state import LakeState, coerce_int, coerce_optional, is_number


log = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class CatchEntry:
    lake_id: str
    type_id: str
    fish_name: str
    rarity: str
    prev_state: LakeState
    entry_id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)
    kind: Literal["catch"] = "catch"


@dataclass(frozen=True)
class PoolClearEntry:
    lake_id: str
    prev_state: LakeState
    entry_id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)
    kind: Literal["pool_clear"] = "pool_clear"


@dataclass(frozen=True)
class LakeResetEntry:
    """reset_lake refills only; reset_lake_progress also zeroed the counters."""
    lake_id: str
    prev_state: LakeState
    kind: Literal["reset_lake", "reset_lake_progress"] = "reset_lake"
    entry_id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class FullResetEntry:
    lake_id: str
    prev_states: Mapping[str, LakeState]
    prev_broken_lines: int
    prev_guided_weight: Optional[float]
    prev_history: tuple["HistoryEntry", ...]
    prev_reset_epoch: Optional[datetime]
    entry_id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)
    kind: Literal["reset_all"] = "reset_all"


HistoryEntry = Union[CatchEntry, PoolClearEntry, LakeResetEntry, FullResetEntry]

CATCH_KINDS = ("catch", "pool_clear")


@dataclass(frozen=True)
class Restore:
    """
    What an undo puts back.

    lake_states holds only the lakes to overwrite; scalar fields are None
    when the entry did not touch them.
    """
    lake_states: Mapping[str, LakeState]
    history: "HistoryLog"
    broken_lines: Optional[int] = None
    guided_weight: Optional[float] = None
    restore_guided_weight: bool = False
    reset_epoch: Optional[datetime] = None
    restore_reset_epoch: bool = False


class HistoryLog:
    """
    Bounded, append/pop-only list of history entries (newest last).
    """

    def __init__(self, entries: tuple[HistoryEntry, ...] = (), limit: int = HISTORY_MEMORY_LIMIT):
        self.limit = limit
        self.entries: tuple[HistoryEntry, ...] = tuple(entries)[-limit:]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __eq__(self, other) -> bool:
        return isinstance(other, HistoryLog) and self.entries == other.entries

    def append(self, entry: HistoryEntry) -> "HistoryLog":
        """New log with entry appended; the oldest entries fall off past the limit."""
        return HistoryLog(self.entries + (entry,), self.limit)

    def undo(self) -> Optional[Restore]:
        """
        Pop the newest entry and describe how to invert it.

        Returns:
            Restore, or None on an empty log
        """
        if not self.entries:
            return None
        last = self.entries[-1]
        rest = HistoryLog(self.entries[:-1], self.limit)

        if isinstance(last, FullResetEntry):
            log.debug("Undo full reset %s", last.entry_id)
            return Restore(
                lake_states=dict(last.prev_states),
                history=HistoryLog(last.prev_history, self.limit),
                broken_lines=last.prev_broken_lines,
                guided_weight=last.prev_guided_weight,
                restore_guided_weight=True,
                reset_epoch=last.prev_reset_epoch,
                restore_reset_epoch=True,
            )

        log.debug("Undo %s on lake %s", last.kind, last.lake_id)
        return Restore(lake_states={last.lake_id: last.prev_state}, history=rest)

    def visible(self, reset_epoch: Optional[datetime]) -> list[HistoryEntry]:
        """
        Entries for an activity view: full resets are hidden, and so is
        everything older than the latest full reset.
        """
        return [
            entry for entry in self.entries
            if entry.kind != "reset_all" and (reset_epoch is None or entry.timestamp >= reset_epoch)
        ]

    def recent_catches(self, reset_epoch: Optional[datetime], limit: int = RECENT_CATCHES_DEFAULT) -> list[HistoryEntry]:
        """Newest catch and pool-clear entries first."""
        catches = [entry for entry in self.visible(reset_epoch) if entry.kind in CATCH_KINDS]
        return list(reversed(catches[-limit:])) if limit > 0 else []

    # ---- Serialization ----

    def to_list(self, limit: int = HISTORY_PERSIST_LIMIT) -> list[dict]:
        """
        Storage form of the newest `limit` entries.

        A full reset keeps its own prior log, but full resets nested inside
        that prior log are stored without theirs.
        """
        return [entry_to_dict(entry, compact=False) for entry in self.entries[-limit:]] if limit > 0 else []

    @classmethod
    def from_list(cls, raw: list, limit: int = HISTORY_MEMORY_LIMIT) -> "HistoryLog":
        entries = []
        for item in raw if isinstance(raw, list) else []:
            entry = entry_from_dict(item)
            if entry is not None:
                entries.append(entry)
        return cls(tuple(entries), limit)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def parse_timestamp(value) -> Optional[datetime]:
    """ISO string or epoch milliseconds; None for anything unreadable."""
    try:
        if is_number(value):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        if not isinstance(value, str):
            return None
        parsed = datetime.fromisoformat(value)
    except (ValueError, OverflowError, OSError):
        log.warning("Ignoring unreadable timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def entry_to_dict(entry: HistoryEntry, compact: bool = False) -> dict:
    data = {
        "entryId": entry.entry_id,
        "action": entry.kind,
        "lakeId": entry.lake_id,
        "timestamp": format_timestamp(entry.timestamp),
    }
    if isinstance(entry, CatchEntry):
        data.update(typeId=entry.type_id, fishName=entry.fish_name, rarity=entry.rarity)
    if isinstance(entry, FullResetEntry):
        data["prevAllStates"] = {lake_id: state.to_dict() for lake_id, state in entry.prev_states.items()}
        data["prevBrokenLines"] = entry.prev_broken_lines
        data["prevGuidedWeight"] = entry.prev_guided_weight
        data["prevResetEpoch"] = format_timestamp(entry.prev_reset_epoch)
        if not compact:
            prior = entry.prev_history[-HISTORY_PERSIST_LIMIT:]
            data["prevHistory"] = [entry_to_dict(item, compact=True) for item in prior]
    else:
        data["prevLakeState"] = entry.prev_state.to_dict()
    return data


def _text(value, default: str = "") -> str:
    return value if isinstance(value, str) else default


def entry_from_dict(raw: Mapping) -> Optional[HistoryEntry]:
    """Rebuild an entry from storage; unknown kinds are dropped."""
    if not isinstance(raw, Mapping):
        return None
    kind = raw.get("action") or "catch"
    common = dict(
        lake_id=_text(raw.get("lakeId")),
        entry_id=_text(raw.get("entryId")) or _new_id(),
        timestamp=parse_timestamp(raw.get("timestamp")) or _now(),
    )
    if kind == "reset_all":
        prev_all = raw.get("prevAllStates")
        prev_states = {
            lake_id: LakeState.from_dict(state)
            for lake_id, state in (prev_all.items() if isinstance(prev_all, Mapping) else ())
        }
        prior_raw = raw.get("prevHistory")
        prior = [entry_from_dict(item) for item in (prior_raw if isinstance(prior_raw, list) else [])]
        return FullResetEntry(
            prev_states=prev_states,
            prev_broken_lines=max(0, coerce_int(raw.get("prevBrokenLines"))),
            prev_guided_weight=coerce_optional(raw.get("prevGuidedWeight")),
            prev_history=tuple(item for item in prior if item is not None),
            prev_reset_epoch=parse_timestamp(raw.get("prevResetEpoch")),
            **common,
        )

    prev_state = LakeState.from_dict(raw.get("prevLakeState"))
    if kind == "catch":
        return CatchEntry(
            type_id=_text(raw.get("typeId")),
            fish_name=_text(raw.get("fishName")),
            rarity=_text(raw.get("rarity"), "rare"),
            prev_state=prev_state,
            **common,
        )
    if kind == "pool_clear":
        return PoolClearEntry(prev_state=prev_state, **common)
    if kind in ("reset_lake", "reset_lake_progress"):
        return LakeResetEntry(prev_state=prev_state, kind=kind, **common)
    return None
