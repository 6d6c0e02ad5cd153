"""
Export and import progress codes.

An export code carries every stored event record (tasks, shop quantities
and tool state) as one base64 string.

Usage:
    # Print the export code for the configured database
    python -m scripts.progress_codes export

    # Write it to a file
    python -m scripts.progress_codes export --output progress.txt

    # Replace all stored progress with a code
    python -m scripts.progress_codes import --code <CODE>
    python -m scripts.progress_codes import --input progress.txt

    # Show the records stored
    python -m scripts.progress_codes list
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from lakeplan.progress import ProgressStore, RecordKey, SqlByteStore, get_engine


def export_code(store: ProgressStore, output: str | None) -> None:
    code = store.export_code()
    if output:
        Path(output).write_text(code, encoding="utf-8")
        print(f"✓ Wrote export code ({len(code)} chars) to {output}")
    else:
        print(code)


def import_code(store: ProgressStore, code: str, force: bool) -> int:
    records = store.records()
    if records and not force:
        print(f"This will REPLACE {len(records)} stored record(s).")
        response = input("Continue? (type 'yes' to confirm): ")
        if response.lower() != "yes":
            print("\nCancelled. No changes made.")
            return 1

    result = store.import_code(code)
    if not result.ok:
        print(f"✗ {result.error}")
        return 1
    print(f"✓ Imported {result.imported} record(s)")
    if result.skipped:
        print(f"  {result.skipped} record(s) without an event id were skipped")
    return 0


def list_records(store: ProgressStore) -> None:
    records = store.records()
    if not records:
        print("No stored progress")
        return
    print(f"{'RECORD':<40} {'TASKS':>6} {'SHOP':>6}  TOOLS")
    print("-" * 80)
    for storage_key, record in sorted(records.items()):
        key = RecordKey.parse(storage_key)
        label = f"{key.entity_id} v{key.version}" if key else storage_key
        tools = ", ".join(sorted((record.get("tools") or {}).keys())) or "-"
        print(f"{label:<40} {len(record.get('tasks') or {}):>6} {len(record.get('shopQuantities') or {}):>6}  {tools}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Export or import progress codes")
    parser.add_argument("--db-url", help="Database URL (defaults to PROGRESS_DATABASE_URL)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Print the export code")
    export_parser.add_argument("--output", help="Write the code to this file instead")

    import_parser = subparsers.add_parser("import", help="Replace stored progress with a code")
    source = import_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--code", help="Export code")
    source.add_argument("--input", help="File holding the export code")
    import_parser.add_argument("--force", action="store_true", help="Do not ask for confirmation")

    subparsers.add_parser("list", help="Show stored records")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    store = ProgressStore(SqlByteStore(get_engine(args.db_url)))

    if args.command == "export":
        export_code(store, args.output)
        return 0
    if args.command == "import":
        code = args.code if args.code else Path(args.input).read_text(encoding="utf-8")
        return import_code(store, code, args.force)
    list_records(store)
    return 0


if __name__ == "__main__":
    sys.exit(main())
