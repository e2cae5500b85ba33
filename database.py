"""
Database module for the Fitness Tracker
Handles PostgreSQL and SQLite connections, the entries schema, and the
entry store (list / create)
"""

import os
import secrets
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from entry_parser import StorageError
from models import ACTIVITY, WEIGHT, ActivityEntry, ParsedDetail, WeightEntry, format_timestamp, parse_timestamp

# Try to import psycopg2 for PostgreSQL support
try:
    import psycopg2
    HAS_POSTGRES = True
except ImportError:
    HAS_POSTGRES = False


def get_db_url():
    """Get database URL from environment variable"""
    # Production sets DATABASE_URL, local dev can use POSTGRES_URL
    db_url = os.getenv('DATABASE_URL') or os.getenv('POSTGRES_URL')
    if not db_url:
        # Fallback to SQLite for local development
        return 'sqlite:///fitness_tracker.db'
    return db_url

def is_sqlite(db_url):
    """Check if database URL is SQLite"""
    return db_url and db_url.startswith('sqlite:///')

def placeholder(db_url=None):
    """Query parameter marker for the configured driver"""
    return '?' if is_sqlite(db_url or get_db_url()) else '%s'

@contextmanager
def get_db_connection():
    """Get a database connection with automatic cleanup"""
    db_url = get_db_url()
    if not db_url:
        raise ValueError("No database URL found. Set DATABASE_URL or POSTGRES_URL environment variable.")

    # Check if it's SQLite
    if is_sqlite(db_url):
        db_path = db_url.replace('sqlite:///', '')
        # Make path absolute
        if not os.path.isabs(db_path):
            db_path = str(Path(__file__).parent / db_path)
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row  # Enable column access by name
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
    else:
        # PostgreSQL
        if not HAS_POSTGRES:
            raise ValueError("PostgreSQL URL provided but psycopg2 not installed. Install with: pip install psycopg2-binary")

        # Handle Heroku/Railway's postgres:// URL format (convert to postgresql://)
        if db_url.startswith('postgres://'):
            db_url = db_url.replace('postgres://', 'postgresql://', 1)

        conn = psycopg2.connect(db_url)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

def init_db():
    """Initialize database tables - works with both PostgreSQL and SQLite"""
    db_url = get_db_url()
    use_sqlite = is_sqlite(db_url)

    with get_db_connection() as conn:
        cur = conn.cursor()

        # Entries table: one row per logged activity or weight.
        # value_text holds activity text, value_number holds weight.
        if use_sqlite:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    entry_id TEXT UNIQUE NOT NULL,
                    timestamp TEXT NOT NULL,
                    type TEXT NOT NULL CHECK (type IN ('activity', 'weight')),
                    value_text TEXT,
                    value_number REAL,
                    detail_name TEXT,
                    detail_reps INTEGER,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        else:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    seq SERIAL PRIMARY KEY,
                    entry_id TEXT UNIQUE NOT NULL,
                    timestamp TEXT NOT NULL,
                    type TEXT NOT NULL CHECK (type IN ('activity', 'weight')),
                    value_text TEXT,
                    value_number DOUBLE PRECISION,
                    detail_name TEXT,
                    detail_reps INTEGER,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

        # Create indexes
        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_entries_timestamp ON entries(timestamp)
        """)
        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_entries_type ON entries(type)
        """)

        conn.commit()
        print("Database tables initialized successfully")

def check_db_connection():
    """Check if database connection works"""
    try:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            return True
    except Exception as e:
        print(f"Database connection failed: {e}")
        return False

# ============================================================================
# Entry Store
# ============================================================================

ENTRY_COLUMNS = "entry_id, timestamp, type, value_text, value_number, detail_name, detail_reps"

def new_entry_id():
    """Opaque 24-hex-character id"""
    return secrets.token_hex(12)

def row_to_entry(row):
    """Convert an entries row (tuple or sqlite3.Row) into an entry model"""
    entry_id, timestamp, kind, value_text, value_number, detail_name, detail_reps = tuple(row)
    timestamp = parse_timestamp(timestamp)
    if kind == WEIGHT:
        return WeightEntry(id=entry_id, timestamp=timestamp, weight=float(value_number))
    details = None
    if detail_name is not None and detail_reps is not None:
        details = ParsedDetail(name=detail_name, reps=int(detail_reps))
    return ActivityEntry(id=entry_id, timestamp=timestamp, text=value_text, details=details)

def entry_to_row(entry):
    """Column values for an INSERT, in ENTRY_COLUMNS order"""
    if isinstance(entry, WeightEntry):
        return (entry.id, format_timestamp(entry.timestamp), WEIGHT, None, entry.weight, None, None)
    details = entry.details
    return (
        entry.id,
        format_timestamp(entry.timestamp),
        ACTIVITY,
        entry.text,
        None,
        details.name if details else None,
        details.reps if details else None,
    )

def list_entries():
    """All entries, newest first"""
    try:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute(f"""
                SELECT {ENTRY_COLUMNS}
                FROM entries
                ORDER BY timestamp DESC, seq DESC
            """)
            rows = cur.fetchall()
    except Exception as e:
        raise StorageError(f"Error fetching entries: {e}") from e
    return [row_to_entry(row) for row in rows]

def insert_entry(entry):
    """Insert a fully built entry (id and timestamp already set)"""
    mark = placeholder()
    marks = ", ".join([mark] * 7)
    try:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute(f"""
                INSERT INTO entries ({ENTRY_COLUMNS})
                VALUES ({marks})
            """, entry_to_row(entry))
    except Exception as e:
        raise StorageError(f"Error saving entry: {e}") from e
    return entry

def create_entry(kind, value, details=None, now=None):
    """
    Create an entry with a server-assigned id and timestamp

    Expects values already checked by entry_parser.validate_entry_payload.
    """
    timestamp = now or datetime.now(timezone.utc)
    # Stored with millisecond precision
    timestamp = timestamp.replace(microsecond=timestamp.microsecond // 1000 * 1000)
    if kind == WEIGHT:
        entry = WeightEntry(id=new_entry_id(), timestamp=timestamp, weight=float(value))
    elif kind == ACTIVITY:
        entry = ActivityEntry(id=new_entry_id(), timestamp=timestamp, text=value, details=details)
    else:
        raise ValueError(f"Invalid entry type: {kind!r}")
    return insert_entry(entry)

def existing_entry_ids():
    """Set of ids already stored (used by imports to skip duplicates)"""
    try:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT entry_id FROM entries")
            return {row[0] for row in cur.fetchall()}
    except Exception as e:
        raise StorageError(f"Error reading entry ids: {e}") from e
