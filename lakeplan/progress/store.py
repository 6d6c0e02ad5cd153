"""
Progress Store - namespaced progress records and export codes

Root layout (one JSON value under STORAGE_KEY):

    {"schemaVersion": 1,
     "events": {"<entityId>::v<version>": {
         "eventId": ..., "eventVersion": ...,
         "tasks": {taskId: {"progressValue": n, "flags": {...}}},
         "shopQuantities": {itemId: qty},
         "tools": {stateKey: {...tool state...}}}}}

A version change gives a new, disjoint record. Every write rewrites the
whole root and publishes a StoreChange on the injected ChangeBus.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
import json
import logging
import math
import re
from typing import Any, Callable, Mapping, NamedTuple, Optional

from lakeplan.constants import SCHEMA_VERSION, STORAGE_KEY
from lakeplan.progress.codes import CodeDecodeError, decode_text, encode_payload
from lakeplan.progress.database import ByteStore
from lakeplan.progress.events import ChangeBus, StoreChange


log = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^(.*)::v(\d+)$")


class RecordKey(NamedTuple):
    entity_id: str
    version: int

    def storage_key(self) -> str:
        return f"{self.entity_id}::v{self.version}"

    @classmethod
    def parse(cls, key: str) -> Optional["RecordKey"]:
        match = KEY_PATTERN.match(key)
        if not match:
            return None
        return cls(match.group(1), int(match.group(2)))


@dataclass(frozen=True)
class ImportResult:
    """ok is True on success; otherwise error holds a readable reason."""
    ok: bool
    error: Optional[str] = None
    imported: int = 0
    skipped: int = 0


def default_task_state() -> dict:
    return {"progressValue": 0, "flags": {"isCompleted": False, "isClaimed": False}}


def empty_record(key: RecordKey) -> dict:
    return {
        "eventId": key.entity_id,
        "eventVersion": key.version,
        "tasks": {},
        "shopQuantities": {},
        "tools": {},
    }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def normalize_record(storage_key: str, raw: Any) -> Optional[dict]:
    """
    Clean one imported record.

    The identity comes from the record's own eventId/eventVersion, falling
    back to its storage key. Returns None when neither yields an identity.
    """
    if not isinstance(raw, Mapping):
        return None
    parsed = RecordKey.parse(storage_key)
    entity_id = raw.get("eventId") if isinstance(raw.get("eventId"), str) else None
    if entity_id is None and parsed is not None:
        entity_id = parsed.entity_id
    version = raw.get("eventVersion") if _is_number(raw.get("eventVersion")) else None
    if version is None and parsed is not None:
        version = parsed.version
    if not entity_id or version is None:
        return None

    tasks = {}
    tasks_raw = raw.get("tasks") if isinstance(raw.get("tasks"), Mapping) else {}
    for task_id, task_raw in tasks_raw.items():
        if not isinstance(task_raw, Mapping):
            continue
        progress = task_raw.get("progressValue")
        flags = task_raw.get("flags") if isinstance(task_raw.get("flags"), Mapping) else {}
        tasks[task_id] = {
            "progressValue": max(0, progress) if _is_number(progress) else 0,
            "flags": {
                "isCompleted": bool(flags.get("isCompleted")),
                "isClaimed": bool(flags.get("isClaimed")),
            },
        }

    quantities = {}
    shop_raw = raw.get("shopQuantities")
    if isinstance(shop_raw, Mapping):
        for item_id, qty in shop_raw.items():
            if _is_number(qty):
                quantities[item_id] = max(0, math.floor(qty))

    tools = {}
    tools_raw = raw.get("tools")
    if isinstance(tools_raw, Mapping):
        tools = {state_key: copy.deepcopy(value) for state_key, value in tools_raw.items() if isinstance(value, Mapping)}

    return {
        "eventId": entity_id,
        "eventVersion": int(version),
        "tasks": tasks,
        "shopQuantities": quantities,
        "tools": tools,
    }


class ProgressStore:
    """
    Progress records over a byte store.

    Args:
        byte_store: Where the root JSON lives
        bus: Change channel (a private one is created when omitted)
        storage_key: Byte-store key of the root
    """

    def __init__(self, byte_store: ByteStore, bus: Optional[ChangeBus] = None, storage_key: str = STORAGE_KEY):
        self.byte_store = byte_store
        self.bus = bus or ChangeBus()
        self.storage_key = storage_key

    # ---- Root I/O ----

    def _empty_root(self) -> dict:
        return {"schemaVersion": SCHEMA_VERSION, "events": {}}

    def load_root(self) -> dict:
        raw = self.byte_store.get(self.storage_key)
        if not raw:
            return self._empty_root()
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Stored progress is not valid JSON, starting empty")
            return self._empty_root()
        if not isinstance(parsed, dict) or parsed.get("schemaVersion") != SCHEMA_VERSION:
            return self._empty_root()
        if not isinstance(parsed.get("events"), dict):
            parsed["events"] = {}
        return parsed

    def _save_root(self, root: dict, record_key: Optional[str] = None) -> None:
        self.byte_store.set(self.storage_key, json.dumps(root, separators=(",", ":")))
        self.bus.publish(StoreChange(storage_key=self.storage_key, record_key=record_key))

    # ---- Records ----

    def records(self) -> dict[str, dict]:
        return self.load_root()["events"]

    def get(self, key: RecordKey) -> dict:
        """
        Return the record for key, creating and persisting an empty one if missing.
        """
        root = self.load_root()
        storage_key = key.storage_key()
        existing = root["events"].get(storage_key)
        if existing is not None:
            return existing
        created = empty_record(key)
        root["events"][storage_key] = created
        self._save_root(root, storage_key)
        return created

    def upsert(self, key: RecordKey, transform: Callable[[dict], dict]) -> dict:
        """
        Replace one record with transform(copy of record) and rewrite the root.

        Args:
            key: Record identity
            transform: Pure function from the previous record to the next

        Returns:
            The stored record
        """
        root = self.load_root()
        storage_key = key.storage_key()
        previous = root["events"].get(storage_key) or empty_record(key)
        record = transform(copy.deepcopy(previous))
        record["eventId"] = key.entity_id
        record["eventVersion"] = key.version
        root["events"][storage_key] = record
        self._save_root(root, storage_key)
        return record

    def upsert_task(self, key: RecordKey, task_id: str, updater: Callable[[dict], dict]) -> dict:
        """Functional update of one task's progress."""
        def transform(record: dict) -> dict:
            tasks = record.setdefault("tasks", {})
            tasks[task_id] = updater(tasks.get(task_id) or default_task_state())
            return record

        return self.upsert(key, transform)["tasks"][task_id]

    def get_shop_quantities(self, key: RecordKey) -> dict[str, int]:
        record = self.records().get(key.storage_key()) or {}
        return dict(record.get("shopQuantities") or {})

    def set_shop_quantity(self, key: RecordKey, item_id: str, qty: float) -> dict[str, int]:
        """Store a purchase quantity; zero removes the item."""
        next_qty = max(0, math.floor(qty))

        def transform(record: dict) -> dict:
            quantities = dict(record.get("shopQuantities") or {})
            if next_qty == 0:
                quantities.pop(item_id, None)
            else:
                quantities[item_id] = next_qty
            record["shopQuantities"] = quantities
            return record

        return self.upsert(key, transform)["shopQuantities"]

    def get_tool_state(self, key: RecordKey, state_key: str) -> Optional[dict]:
        record = self.records().get(key.storage_key()) or {}
        return (record.get("tools") or {}).get(state_key)

    def set_tool_state(self, key: RecordKey, state_key: str, state: dict) -> None:
        def transform(record: dict) -> dict:
            tools = dict(record.get("tools") or {})
            tools[state_key] = state
            record["tools"] = tools
            return record

        self.upsert(key, transform)

    def delete_tool_state(self, key: RecordKey, state_key: str) -> None:
        def transform(record: dict) -> dict:
            tools = dict(record.get("tools") or {})
            tools.pop(state_key, None)
            record["tools"] = tools
            return record

        self.upsert(key, transform)

    # ---- Export / import ----

    def export_payload(self) -> dict:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "events": self.load_root()["events"],
            "preferences": {},
        }

    def export_code(self) -> str:
        """Whole root as one base64 code."""
        return encode_payload(self.export_payload())

    def import_code(self, code: str) -> ImportResult:
        """
        Replace all stored progress with the contents of an export code.

        The store is untouched unless the whole payload is valid; individual
        records without an identity are skipped.

        Returns:
            ImportResult
        """
        try:
            decoded = decode_text(code)
        except CodeDecodeError:
            log.warning("Rejected import: base64 decode failed")
            return ImportResult(ok=False, error="Invalid code (base64 decode failed).")

        try:
            parsed = json.loads(decoded)
        except json.JSONDecodeError:
            log.warning("Rejected import: JSON parse failed")
            return ImportResult(ok=False, error="Invalid code (JSON parse failed).")

        if not isinstance(parsed, dict) or parsed.get("schemaVersion") != SCHEMA_VERSION:
            log.warning("Rejected import: unsupported schema version")
            return ImportResult(ok=False, error="Unsupported schema version.")

        next_root = self._empty_root()
        skipped = 0
        events = parsed.get("events")
        if isinstance(events, Mapping):
            for storage_key, value in events.items():
                normalized = normalize_record(storage_key, value)
                if normalized is None:
                    skipped += 1
                    continue
                key = RecordKey(normalized["eventId"], normalized["eventVersion"])
                next_root["events"][key.storage_key()] = normalized

        self._save_root(next_root)
        log.info("Imported %d progress records (%d skipped)", len(next_root["events"]), skipped)
        return ImportResult(ok=True, imported=len(next_root["events"]), skipped=skipped)
