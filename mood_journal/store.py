"""Persistent storage for journal entries and the tag catalog.

This module owns the entry lifecycle: create, read, update, delete and
paging. It enforces the one-entry-per-day rule with a UNIQUE index on
`entry_date`, so the database itself rejects a second entry for a date
even when two writers race each other.

Example:
    >>> from datetime import date
    >>> from mood_journal.store import EntryStore
    >>> store = EntryStore("/tmp/journal.db")
    >>> entry_id = store.create(entry)
    >>> store.get_by_date(date.today()).word_count
    42

Note:
    Every call opens and closes its own connection. A store object holds
    no connection state and can be shared between threads.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from .constants import DEFAULT_ENTRIES_PER_PAGE, TAG_MAX_LENGTH
from .database import connect as open_connection, prepare_database, transaction
from .exceptions import DuplicateDateError, NotFoundError, PersistenceError, ValidationError
from .models import (
    JournalEntry,
    Mood,
    MoodCategory,
    Tag,
    count_words,
    parse_tags,
    to_date,
    validate_entry,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["EntryStore", "TagCatalog", "page_count"]

logger = logging.getLogger(__name__)

_ENTRY_FIELDS = (
    "id",
    "title",
    "content",
    "entry_date",
    "created_at",
    "updated_at",
    "primary_mood",
    "primary_mood_category",
    "secondary_mood1",
    "secondary_mood1_category",
    "secondary_mood2",
    "secondary_mood2_category",
    "tags",
    "word_count",
)

_ENTRY_COLUMNS = ", ".join(_ENTRY_FIELDS)

# id is assigned by SQLite
_INSERT_SQL = (
    f"INSERT INTO journal_entries ({', '.join(_ENTRY_FIELDS[1:])}) "
    f"VALUES ({', '.join('?' * (len(_ENTRY_FIELDS) - 1))})"
)

_ORDER_NEWEST_FIRST = "ORDER BY entry_date DESC, id DESC"


# =============================================================================
# Helper Functions
# =============================================================================


def _format_instant(dt: datetime) -> str:
    return dt.isoformat(timespec="microseconds")


def _parse_instant(text: str) -> datetime:
    return datetime.fromisoformat(text)


def _mood_from_columns(name: str | None, category: str | None) -> Mood | None:
    if name is None or category is None:
        return None
    return Mood(name, MoodCategory(category))


def _mood_to_columns(mood: Mood | None) -> tuple[str | None, str | None]:
    if mood is None:
        return (None, None)
    return (mood.name, mood.category.value)


def _row_to_entry(row: Sequence) -> JournalEntry:
    """Convert a row selected with `_ENTRY_COLUMNS` into an entry."""
    (
        entry_id,
        title,
        content,
        entry_date,
        created,
        updated,
        primary,
        primary_category,
        secondary1,
        secondary1_category,
        secondary2,
        secondary2_category,
        tags,
        word_count,
    ) = row
    return JournalEntry(
        id=entry_id,
        title=title,
        content=content,
        entry_date=date.fromisoformat(entry_date),
        created_at=_parse_instant(created),
        updated_at=_parse_instant(updated),
        primary_mood=Mood(primary, MoodCategory(primary_category)),
        secondary_mood_1=_mood_from_columns(secondary1, secondary1_category),
        secondary_mood_2=_mood_from_columns(secondary2, secondary2_category),
        tags=parse_tags(tags),
        word_count=word_count,
    )


def _is_date_collision(error: sqlite3.IntegrityError) -> bool:
    return "journal_entries.entry_date" in str(error)


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed to show `total` items.

    Example:
        >>> page_count(21, 10)
        3
    """
    if page_size < 1:
        raise ValidationError("page_size", "page size must be at least 1")
    return math.ceil(total / page_size)


# =============================================================================
# Entry Store
# =============================================================================


class EntryStore:
    """Date-unique storage for journal entries.

    Attributes:
        db_path: Path to the SQLite database.

    Example:
        >>> store = EntryStore("~/.mood-journal/journal.db")
        >>> recent = store.list_entries(page=1, page_size=5)

    Raises:
        DatabaseNotFoundError: If `create` is False and the file is missing.
    """

    def __init__(
        self,
        db_path: Path | str,
        *,
        create: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Open (and if needed initialize) the journal database.

        Args:
            db_path: Path to the SQLite file.
            create: Create the file and schema when missing.
            clock: Source of "now" for timestamps. Defaults to datetime.now.
        """
        self._clock: Callable[[], datetime] = clock or datetime.now
        self.db_path: Path = prepare_database(
            db_path, _format_instant(self._clock()), create=create
        )

    def connect(self) -> sqlite3.Connection:
        """Open a new connection to the journal database."""
        return open_connection(self.db_path)

    def _select(
        self,
        conn: sqlite3.Connection,
        where_clauses: Sequence[str] = (),
        params: Sequence[object] = (),
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[JournalEntry]:
        where = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        query = f"SELECT {_ENTRY_COLUMNS} FROM journal_entries {where} {_ORDER_NEWEST_FIRST}"
        args = list(params)
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            args.extend((limit, offset))
        rows = conn.execute(query, args).fetchall()
        return [_row_to_entry(row) for row in rows]

    def _select_dates(self, conn: sqlite3.Connection) -> list[date]:
        rows = conn.execute(
            "SELECT DISTINCT entry_date FROM journal_entries ORDER BY entry_date ASC"
        ).fetchall()
        return [date.fromisoformat(value) for (value,) in rows]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, entry: JournalEntry) -> int:
        """Store a new entry.

        The date check and the insert are one statement: the UNIQUE index
        on `entry_date` rejects the row if the day is already taken.

        Args:
            entry: Entry to store. Its id, word count and timestamps are
                   ignored and assigned here.

        Returns:
            The new entry id.

        Raises:
            ValidationError: If a field is invalid.
            DuplicateDateError: If an entry already exists for the date.
            PersistenceError: On any other database failure.
        """
        validate_entry(entry)
        stamp = _format_instant(self._clock())
        params = (
            entry.title.strip(),
            entry.content,
            entry.entry_date.isoformat(),
            stamp,
            stamp,
            entry.primary_mood.name,
            entry.primary_mood.category.value,
            *_mood_to_columns(entry.secondary_mood_1),
            *_mood_to_columns(entry.secondary_mood_2),
            entry.tags_text,
            count_words(entry.content),
        )

        conn = self.connect()
        try:
            with transaction(conn, immediate=True):
                cursor = conn.execute(_INSERT_SQL, params)
                entry_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            if _is_date_collision(e):
                logger.warning("Rejected second entry for %s", entry.entry_date)
                raise DuplicateDateError(entry.entry_date) from e
            raise PersistenceError(f"Failed to create entry: {e}") from e
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to create entry: {e}") from e
        finally:
            conn.close()

        logger.info("Created entry %s for %s", entry_id, entry.entry_date)
        return entry_id

    def update(self, entry: JournalEntry) -> JournalEntry:
        """Overwrite the mutable fields of an existing entry.

        Title, content, moods and tags are replaced and the word count is
        recomputed. The entry date never changes here; moving an entry to
        another day is a delete followed by a create.

        Args:
            entry: Entry carrying the id to update and the new field values.

        Returns:
            The stored entry after the update.

        Raises:
            NotFoundError: If no entry has `entry.id`.
            ValidationError: If a field is invalid.
            PersistenceError: On any other database failure.
        """
        if entry.id is None:
            raise NotFoundError(None, "Cannot update an entry without an id")
        validate_entry(entry)

        conn = self.connect()
        try:
            with transaction(conn, immediate=True):
                row = conn.execute(
                    "SELECT entry_date, updated_at FROM journal_entries WHERE id = ?",
                    (entry.id,),
                ).fetchone()
                if row is None:
                    logger.warning("Update of missing entry %s", entry.id)
                    raise NotFoundError(entry.id)

                stored_date, previous = row
                if entry.entry_date.isoformat() != stored_date:
                    logger.debug(
                        "Ignoring date change for entry %s (%s -> %s)",
                        entry.id, stored_date, entry.entry_date,
                    )

                now = self._clock()
                previous_dt = _parse_instant(previous)
                if now <= previous_dt:
                    now = previous_dt + timedelta(microseconds=1)

                conn.execute(
                    """
                    UPDATE journal_entries SET
                        title = ?,
                        content = ?,
                        primary_mood = ?,
                        primary_mood_category = ?,
                        secondary_mood1 = ?,
                        secondary_mood1_category = ?,
                        secondary_mood2 = ?,
                        secondary_mood2_category = ?,
                        tags = ?,
                        word_count = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        entry.title.strip(),
                        entry.content,
                        entry.primary_mood.name,
                        entry.primary_mood.category.value,
                        *_mood_to_columns(entry.secondary_mood_1),
                        *_mood_to_columns(entry.secondary_mood_2),
                        entry.tags_text,
                        count_words(entry.content),
                        _format_instant(now),
                        entry.id,
                    ),
                )
                updated = self._select(conn, ("id = ?",), (entry.id,))
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to update entry {entry.id}: {e}") from e
        finally:
            conn.close()

        logger.info("Updated entry %s", entry.id)
        return updated[0]

    def delete(self, entry_id: int) -> None:
        """Remove an entry.

        Raises:
            NotFoundError: If no entry has `entry_id` (including a second delete).
            PersistenceError: On any other database failure.
        """
        conn = self.connect()
        try:
            with transaction(conn, immediate=True):
                cursor = conn.execute(
                    "DELETE FROM journal_entries WHERE id = ?", (entry_id,)
                )
                if cursor.rowcount == 0:
                    logger.warning("Delete of missing entry %s", entry_id)
                    raise NotFoundError(entry_id)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete entry {entry_id}: {e}") from e
        finally:
            conn.close()

        logger.info("Deleted entry %s", entry_id)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def query(
        self,
        where_clauses: Sequence[str] = (),
        params: Sequence[object] = (),
    ) -> list[JournalEntry]:
        """Select entries with SQL-level filtering, newest first.

        Args:
            where_clauses: SQL conditions joined with AND.
            params: Positional parameters for the conditions.

        Raises:
            PersistenceError: If the query fails.
        """
        conn = self.connect()
        try:
            return self._select(conn, where_clauses, params)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to query entries: {e}") from e
        finally:
            conn.close()

    def get_by_id(self, entry_id: int) -> JournalEntry | None:
        """Get an entry by id, or None if it does not exist."""
        entries = self.query(("id = ?",), (entry_id,))
        return entries[0] if entries else None

    def get_by_date(self, day: date | datetime | str) -> JournalEntry | None:
        """Get the entry filed under a calendar day, or None.

        Any time-of-day component of `day` is ignored.
        """
        entries = self.query(("entry_date = ?",), (to_date(day).isoformat(),))
        return entries[0] if entries else None

    def exists_for_date(self, day: date | datetime | str) -> bool:
        return self.get_by_date(day) is not None

    def list_entries(
        self,
        page: int = 1,
        page_size: int = DEFAULT_ENTRIES_PER_PAGE,
    ) -> list[JournalEntry]:
        """Get one page of entries, newest first.

        Args:
            page: 1-based page number.
            page_size: Entries per page.

        Raises:
            ValidationError: If page or page_size is below 1.
        """
        if page < 1:
            raise ValidationError("page", "page must be at least 1")
        if page_size < 1:
            raise ValidationError("page_size", "page size must be at least 1")

        conn = self.connect()
        try:
            return self._select(
                conn, limit=page_size, offset=(page - 1) * page_size
            )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to list entries: {e}") from e
        finally:
            conn.close()

    def count(self) -> int:
        conn = self.connect()
        try:
            (total,) = conn.execute("SELECT COUNT(*) FROM journal_entries").fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to count entries: {e}") from e
        finally:
            conn.close()
        return total

    def distinct_dates(self) -> list[date]:
        """All calendar dates that have an entry, oldest first."""
        conn = self.connect()
        try:
            return self._select_dates(conn)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to query entry dates: {e}") from e
        finally:
            conn.close()

    def read_history(
        self,
        start: date | datetime | None = None,
        end: date | datetime | None = None,
    ) -> tuple[list[JournalEntry], list[date]]:
        """Read a window of entries and the full date history together.

        Both reads share one transaction, so they describe the same state
        of the database even while other writers are active.

        Args:
            start: First day of the window (inclusive). None means unbounded.
            end: Last day of the window (inclusive). None means unbounded.

        Returns:
            Tuple of (entries in the window, every entry date oldest first).
        """
        clauses: list[str] = []
        params: list[object] = []
        if start is not None:
            clauses.append("entry_date >= ?")
            params.append(to_date(start).isoformat())
        if end is not None:
            clauses.append("entry_date <= ?")
            params.append(to_date(end).isoformat())

        conn = self.connect()
        try:
            with transaction(conn):
                entries = self._select(conn, clauses, params)
                dates = self._select_dates(conn)
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read entry history: {e}") from e
        finally:
            conn.close()
        return entries, dates


# =============================================================================
# Tag Catalog
# =============================================================================


class TagCatalog:
    """Pre-built and user-defined tags.

    The pre-built tags are seeded when the database is created; this class
    lists them and records new user-defined names.
    """

    def __init__(self, store: EntryStore) -> None:
        self._store = store

    def list_tags(self) -> list[Tag]:
        """All catalog tags, pre-built first, each group by name."""
        conn = self._store.connect()
        try:
            rows = conn.execute(
                "SELECT name, is_prebuilt FROM tags ORDER BY is_prebuilt DESC, name ASC"
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to list tags: {e}") from e
        finally:
            conn.close()
        return [Tag(name=name, is_prebuilt=bool(prebuilt)) for name, prebuilt in rows]

    def add_tag(self, name: str) -> Tag:
        """Add a user-defined tag, returning the existing one if present.

        Raises:
            ValidationError: If the name is empty, too long or has a delimiter.
        """
        parsed = parse_tags(name)
        if len(parsed) != 1 or parsed[0] != name.strip():
            raise ValidationError("tag", f"'{name}' is not a single tag name")
        tag_name = parsed[0]
        if len(tag_name) > TAG_MAX_LENGTH:
            raise ValidationError("tag", f"tag cannot exceed {TAG_MAX_LENGTH} characters")

        conn = self._store.connect()
        try:
            with transaction(conn, immediate=True):
                conn.execute(
                    "INSERT OR IGNORE INTO tags (name, is_prebuilt) VALUES (?, 0)",
                    (tag_name,),
                )
                (prebuilt,) = conn.execute(
                    "SELECT is_prebuilt FROM tags WHERE name = ?", (tag_name,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to add tag: {e}") from e
        finally:
            conn.close()

        logger.debug("Tag '%s' available in catalog", tag_name)
        return Tag(name=tag_name, is_prebuilt=bool(prebuilt))

    def usage(self) -> list[tuple[str, int]]:
        """Tag usage across all stored entries.

        Returns:
            List of (tag_name, mention_count) tuples, sorted by count descending.
        """
        conn = self._store.connect()
        try:
            rows = conn.execute(
                "SELECT tags FROM journal_entries WHERE tags <> '' ORDER BY entry_date ASC"
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to query tag usage: {e}") from e
        finally:
            conn.close()

        tag_counts: dict[str, int] = {}
        for (raw,) in rows:
            for tag in parse_tags(raw):
                tag_counts[tag] = tag_counts.get(tag, 0) + 1
        return sorted(tag_counts.items(), key=lambda x: -x[1])
