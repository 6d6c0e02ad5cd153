"""
Progress persistence: byte stores, records and export codes.

Quick start:
    from lakeplan.progress import ProgressStore, SqlByteStore, RecordKey

    store = ProgressStore(SqlByteStore())
    record = store.get(RecordKey("fishing_event", 2))
    code = store.export_code()
    result = store.import_code(code)
"""

from lakeplan.progress.database import (
    ByteStore,
    MemoryByteStore,
    SqlByteStore,
    get_database_url,
    get_default_entity_id,
    get_engine,
    init_db,
    is_test_mode,
    reset_db,
)
from lakeplan.progress.events import ChangeBus, StoreChange
from lakeplan.progress.store import (
    ImportResult,
    ProgressStore,
    RecordKey,
    normalize_record,
)


__all__ = [
    "ByteStore",
    "MemoryByteStore",
    "SqlByteStore",
    "get_database_url",
    "get_default_entity_id",
    "get_engine",
    "init_db",
    "is_test_mode",
    "reset_db",
    "ChangeBus",
    "StoreChange",
    "ImportResult",
    "ProgressStore",
    "RecordKey",
    "normalize_record",
]
