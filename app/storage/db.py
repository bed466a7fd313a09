"""
Database connection management.

Provides the SQLite connection and schema shared by the quota store and the
document store.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

# Seconds a writer waits on a locked database before giving up
BUSY_TIMEOUT = 30.0

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    title TEXT,
    content TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_documents_created_at ON documents(created_at);

CREATE TABLE IF NOT EXISTS quotas (
    ip_address TEXT PRIMARY KEY,
    remaining_operations INTEGER NOT NULL,
    last_reset TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS operations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ip_address TEXT NOT NULL,
    operation_type TEXT NOT NULL,
    operation_count INTEGER NOT NULL DEFAULT 1,
    document_id TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_operations_ip ON operations(ip_address);
CREATE INDEX IF NOT EXISTS idx_operations_created_at ON operations(created_at);
CREATE INDEX IF NOT EXISTS idx_operations_ip_created ON operations(ip_address, created_at);
"""


def get_connection(db_path: Union[str, Path]) -> sqlite3.Connection:
    """Create and return a SQLite database connection.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection that waits on locks instead of failing immediately
    """
    conn = sqlite3.connect(str(db_path), timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    return conn


def initialize_schema(db_path: Union[str, Path]) -> None:
    """Create the documents, quotas and operations tables if they don't exist.

    Args:
        db_path: Path to SQLite database file
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(path)
    try:
        # WAL lets readers proceed while a publish holds the write lock
        conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """Serialize a datetime so that string order matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: str) -> datetime:
    """Parse a timestamp written by to_db_timestamp."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
