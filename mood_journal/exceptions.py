"""Custom exceptions for mood-journal.

This module defines a hierarchy of exceptions used throughout the library.
All exceptions inherit from MoodJournalError for easy catching.

Example:
    try:
        store.create(entry)
    except DuplicateDateError as e:
        print(f"Already wrote today: {e}")
    except MoodJournalError as e:
        print(f"mood-journal error: {e}")
"""

from __future__ import annotations

from datetime import date


class MoodJournalError(Exception):
    """Base exception for all mood-journal errors.

    All custom exceptions in this library inherit from this class,
    making it easy to catch any mood-journal specific error.
    """

    pass


class ValidationError(MoodJournalError):
    """A field value violates its constraints.

    Raised for missing required fields, length violations, malformed
    tags and out-of-range paging or settings values.

    Attributes:
        field: Name of the offending field.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class DuplicateDateError(MoodJournalError):
    """An entry already exists for the calendar date.

    Attributes:
        entry_date: The date that collided.
    """

    def __init__(self, entry_date: date, message: str | None = None):
        self.entry_date = entry_date
        if message is None:
            message = (
                f"An entry already exists for {entry_date.isoformat()}.\n"
                "Only one entry is allowed per day; edit the existing entry instead."
            )
        super().__init__(message)


class NotFoundError(MoodJournalError):
    """No entry exists with the given id.

    Attributes:
        entry_id: The id that was looked up.
    """

    def __init__(self, entry_id: int | None, message: str | None = None):
        self.entry_id = entry_id
        if message is None:
            message = f"Entry not found: {entry_id}"
        super().__init__(message)


class PersistenceError(MoodJournalError):
    """Error related to the underlying storage.

    Raised when a database query fails for reasons other than the
    expected duplicate-date and not-found conditions.
    """

    pass


class DatabaseNotFoundError(PersistenceError):
    """Journal database file not found.

    Attributes:
        path: The path where the database was expected.
    """

    def __init__(self, path: str, message: str | None = None):
        self.path = path
        if message is None:
            message = (
                f"Journal database not found at: {path}\n"
                "Possible solutions:\n"
                "  1. Add an entry first to create the database\n"
                "  2. Use --db to specify a custom database path"
            )
        super().__init__(message)
