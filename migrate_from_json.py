#!/usr/bin/env python3
"""
Import entries from a JSON export into the database
Accepts the /api/entries response shape or a database export
({"$oid": ...} ids and {"$date": ...} timestamps). Ids and timestamps are kept.

Usage: python migrate_from_json.py entries.json
"""

import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from database import check_db_connection, existing_entry_ids, init_db, insert_entry
from models import entry_from_json

load_dotenv()


def load_export(path):
    """Read the export file; a single object or a JSON-lines file also works"""
    content = Path(path).read_text()
    if not content.strip():
        return []
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        # mongoexport writes one document per line by default
        data = [json.loads(line) for line in content.splitlines() if line.strip()]
    if isinstance(data, dict):
        data = [data]
    return data


def migrate_entries(records):
    """Insert records not already stored. Returns (imported, skipped, invalid)"""
    known_ids = existing_entry_ids()
    imported = skipped = invalid = 0

    for record in records:
        try:
            entry = entry_from_json(record)
        except (ValueError, TypeError) as e:
            print(f"  Skipping invalid entry: {e}")
            invalid += 1
            continue

        if entry.id in known_ids:
            skipped += 1
            continue

        insert_entry(entry)
        known_ids.add(entry.id)
        imported += 1

    return imported, skipped, invalid


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python migrate_from_json.py entries.json")
        return 2

    export_path = Path(argv[0])
    if not export_path.exists():
        print(f"❌ File not found: {export_path}")
        return 1

    print("=" * 50)
    print("Fitness Tracker - Entry Import")
    print("=" * 50)

    if not check_db_connection():
        print("❌ Cannot connect to database. Check DATABASE_URL environment variable.")
        return 1

    print("✓ Database connection successful")
    init_db()

    records = load_export(export_path)
    print(f"Found {len(records)} entries in {export_path.name}")

    imported, skipped, invalid = migrate_entries(records)

    print("\n" + "=" * 50)
    print("Import Summary:")
    print(f"  Imported: {imported}")
    print(f"  Already present: {skipped}")
    print(f"  Invalid: {invalid}")
    print("=" * 50)
    return 0


if __name__ == '__main__':
    sys.exit(main())
