"""Shared fixtures: every test gets its own SQLite database."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

import pytest

# app.py initializes the database at import time; point it somewhere disposable.
_IMPORT_DB_DIR = tempfile.mkdtemp(prefix="fitness_tracker_test_")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite:///" + os.path.join(_IMPORT_DB_DIR, "fitness_tracker_test.db"),
)

import database  # noqa: E402


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    shutil.rmtree(_IMPORT_DB_DIR, ignore_errors=True)


@pytest.fixture
def db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "fitness.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    database.init_db()
    return db_path
