"""SQLite connection and schema management.

Every operation opens its own short-lived connection and closes it when
done, so one store object can be shared freely between threads. SQLite's
file locking serializes writers; the busy timeout makes a competing writer
wait for the lock instead of failing immediately.

Connections run in autocommit mode and transactions are opened explicitly
with `transaction()`, which lets writers take the write lock up front
(`BEGIN IMMEDIATE`) and lets readers group several SELECTs into one
consistent snapshot (`BEGIN`).
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from .constants import (
    DEFAULT_BUSY_TIMEOUT,
    DEFAULT_ENTRIES_PER_PAGE,
    DEFAULT_THEME,
    PREBUILT_TAGS,
)
from .exceptions import DatabaseNotFoundError, PersistenceError

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = ["connect", "transaction", "initialize_schema", "prepare_database"]

logger = logging.getLogger(__name__)


_CATEGORY_CHECK = "IN ('Positive', 'Neutral', 'Negative')"

SCHEMA: str = f"""
CREATE TABLE IF NOT EXISTS journal_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    entry_date TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    primary_mood TEXT NOT NULL,
    primary_mood_category TEXT NOT NULL CHECK (primary_mood_category {_CATEGORY_CHECK}),
    secondary_mood1 TEXT,
    secondary_mood1_category TEXT CHECK (secondary_mood1_category {_CATEGORY_CHECK}),
    secondary_mood2 TEXT,
    secondary_mood2_category TEXT CHECK (secondary_mood2_category {_CATEGORY_CHECK}),
    tags TEXT NOT NULL DEFAULT '',
    word_count INTEGER NOT NULL DEFAULT 0,
    CHECK ((secondary_mood1 IS NULL) = (secondary_mood1_category IS NULL)),
    CHECK ((secondary_mood2 IS NULL) = (secondary_mood2_category IS NULL))
);

CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    is_prebuilt INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS app_settings (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    theme TEXT NOT NULL,
    entries_per_page INTEGER NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def connect(db_path: Path, *, timeout: float = DEFAULT_BUSY_TIMEOUT) -> sqlite3.Connection:
    """Open an autocommit connection to the journal database.

    Args:
        db_path: Path to the SQLite file.
        timeout: Seconds to wait on a locked database.

    Returns:
        SQLite connection with explicit transaction control.

    Raises:
        PersistenceError: If the connection cannot be opened.
    """
    try:
        # isolation_level=None: transactions are opened by transaction() only
        conn = sqlite3.connect(str(db_path), timeout=timeout, isolation_level=None)
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to connect to database: {e}") from e
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(
    conn: sqlite3.Connection, *, immediate: bool = False
) -> Iterator[sqlite3.Connection]:
    """Run a block inside a transaction, committing on success.

    Args:
        conn: Connection from `connect()`.
        immediate: Take the write lock at BEGIN (for writers).

    Yields:
        The same connection.
    """
    conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def initialize_schema(conn: sqlite3.Connection, now: str) -> None:
    """Create tables and seed reference data if they are missing.

    Args:
        conn: Open connection.
        now: ISO timestamp recorded on the default settings row.
    """
    conn.executescript(SCHEMA)
    with transaction(conn, immediate=True):
        conn.executemany(
            "INSERT OR IGNORE INTO tags (name, is_prebuilt) VALUES (?, 1)",
            [(name,) for name in PREBUILT_TAGS],
        )
        conn.execute(
            "INSERT OR IGNORE INTO app_settings (id, theme, entries_per_page, updated_at) "
            "VALUES (1, ?, ?, ?)",
            (DEFAULT_THEME, DEFAULT_ENTRIES_PER_PAGE, now),
        )


def prepare_database(db_path: Path | str, now: str, *, create: bool = True) -> Path:
    """Resolve the database path and make sure its schema exists.

    Args:
        db_path: Location of the SQLite file.
        now: ISO timestamp used when seeding default rows.
        create: If False, a missing file is an error instead of being created.

    Returns:
        The resolved path.

    Raises:
        DatabaseNotFoundError: If `create` is False and the file is missing.
        PersistenceError: If the schema cannot be created.
    """
    path = Path(db_path).expanduser()
    if not path.exists():
        if not create:
            raise DatabaseNotFoundError(str(path))
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Creating journal database at %s", path)

    conn = connect(path)
    try:
        initialize_schema(conn, now)
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to initialize database schema: {e}") from e
    finally:
        conn.close()

    logger.debug("Database ready at %s", path)
    return path
