from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

import database
from database import StorageError, create_entry, existing_entry_ids, list_entries
from models import ActivityEntry, ParsedDetail, WeightEntry


def test_create_then_list_round_trip(db: Path) -> None:
    created = create_entry(
        "activity", "Pushups - 40", ParsedDetail(name="pushups", reps=40)
    )
    assert len(created.id) == 24

    entries = list_entries()
    assert len(entries) == 1
    stored = entries[0]
    assert isinstance(stored, ActivityEntry)
    assert stored.id == created.id
    assert stored.timestamp == created.timestamp
    assert stored.details == ParsedDetail(name="pushups", reps=40)


def test_list_entries_newest_first(db: Path) -> None:
    create_entry("weight", 70.0, now=datetime(2026, 10, 1, tzinfo=timezone.utc))
    create_entry("weight", 72.0, now=datetime(2026, 10, 3, tzinfo=timezone.utc))
    create_entry("activity", "stretching", now=datetime(2026, 10, 2, tzinfo=timezone.utc))

    entries = list_entries()
    assert [type(e).__name__ for e in entries] == ["WeightEntry", "ActivityEntry", "WeightEntry"]
    assert isinstance(entries[0], WeightEntry)
    assert entries[0].weight == 72.0
    assert isinstance(entries[1], ActivityEntry)
    assert entries[1].details is None


def test_same_timestamp_lists_latest_insert_first(db: Path) -> None:
    same = datetime(2026, 10, 1, 8, tzinfo=timezone.utc)
    first = create_entry("weight", 70.0, now=same)
    second = create_entry("weight", 71.0, now=same)
    assert [e.id for e in list_entries()] == [second.id, first.id]


def test_existing_entry_ids(db: Path) -> None:
    entry = create_entry("weight", 70.0)
    assert existing_entry_ids() == {entry.id}


def test_create_entry_rejects_unknown_kind(db: Path) -> None:
    with pytest.raises(ValueError):
        create_entry("cardio", "run")


def test_unreachable_database_raises_storage_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'missing' / 'x.db'}")
    with pytest.raises(StorageError):
        list_entries()
    with pytest.raises(StorageError):
        create_entry("weight", 70.0)
    assert database.check_db_connection() is False


def test_missing_table_raises_storage_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'empty.db'}")
    with pytest.raises(StorageError):
        list_entries()


def test_default_url_is_sqlite(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POSTGRES_URL", raising=False)
    assert database.get_db_url() == "sqlite:///fitness_tracker.db"
    assert database.placeholder() == "?"
    assert database.placeholder("postgresql://u@h/db") == "%s"


def test_storage_error_is_shared_with_the_client() -> None:
    import entry_parser
    import tracker_client

    assert database.StorageError is entry_parser.StorageError
    assert not hasattr(tracker_client, "database")
