"""Application settings persisted alongside the journal.

Settings live in a single-row table of the journal database. Components
that care about theme changes register a callback with `subscribe()` and
receive an opaque handle they later pass to `unsubscribe()`.

Example:
    >>> settings = SettingsStore(store.db_path)
    >>> handle = settings.subscribe(lambda theme: print(f"theme -> {theme}"))
    >>> settings.update_theme("Dark")
    theme -> Dark
    >>> settings.unsubscribe(handle)
    True
"""

from __future__ import annotations

import itertools
import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from .constants import MAX_ENTRIES_PER_PAGE, VALID_THEMES
from .database import connect, prepare_database, transaction
from .exceptions import PersistenceError, ValidationError

__all__ = ["AppSettings", "SettingsStore", "ThemeListener"]

logger = logging.getLogger(__name__)

ThemeListener = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class AppSettings:
    """Snapshot of the stored settings.

    Attributes:
        theme: UI theme name ("Light" or "Dark").
        entries_per_page: Page size used by entry listings.
        updated_at: When any setting last changed.
    """

    theme: str
    entries_per_page: int
    updated_at: datetime


class SettingsStore:
    """Read and change application settings."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._clock: Callable[[], datetime] = clock or datetime.now
        self.db_path: Path = prepare_database(db_path, self._stamp())
        self._listeners: dict[int, ThemeListener] = {}
        self._handles = itertools.count(1)
        self._lock = threading.Lock()

    def _stamp(self) -> str:
        return self._clock().isoformat(timespec="microseconds")

    def get(self) -> AppSettings:
        """Current settings."""
        conn = connect(self.db_path)
        try:
            row = conn.execute(
                "SELECT theme, entries_per_page, updated_at FROM app_settings WHERE id = 1"
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read settings: {e}") from e
        finally:
            conn.close()

        theme, per_page, updated = row
        return AppSettings(
            theme=theme,
            entries_per_page=per_page,
            updated_at=datetime.fromisoformat(updated),
        )

    def _write(self, column: str, value: object) -> AppSettings:
        conn = connect(self.db_path)
        try:
            with transaction(conn, immediate=True):
                conn.execute(
                    f"UPDATE app_settings SET {column} = ?, updated_at = ? WHERE id = 1",
                    (value, self._stamp()),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to update {column}: {e}") from e
        finally:
            conn.close()
        logger.info("Setting %s changed to %s", column, value)
        return self.get()

    def update_theme(self, theme: str) -> AppSettings:
        """Change the theme and notify subscribers.

        Raises:
            ValidationError: If the theme is not one of VALID_THEMES.
        """
        if theme not in VALID_THEMES:
            raise ValidationError(
                "theme", f"'{theme}' is not one of: {', '.join(VALID_THEMES)}"
            )
        settings = self._write("theme", theme)
        self._notify(settings.theme)
        return settings

    def update_entries_per_page(self, count: int) -> AppSettings:
        """Change the listing page size.

        Raises:
            ValidationError: If count is outside 1..MAX_ENTRIES_PER_PAGE.
        """
        if not 1 <= count <= MAX_ENTRIES_PER_PAGE:
            raise ValidationError(
                "entries_per_page",
                f"must be between 1 and {MAX_ENTRIES_PER_PAGE}",
            )
        return self._write("entries_per_page", count)

    # -------------------------------------------------------------------------
    # Theme change notification
    # -------------------------------------------------------------------------

    def subscribe(self, listener: ThemeListener) -> int:
        """Register a theme-change callback.

        Returns:
            Handle to pass to `unsubscribe()`.
        """
        with self._lock:
            handle = next(self._handles)
            self._listeners[handle] = listener
        return handle

    def unsubscribe(self, handle: int) -> bool:
        """Remove a callback. Returns False if the handle was unknown."""
        with self._lock:
            return self._listeners.pop(handle, None) is not None

    def _notify(self, theme: str) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(theme)
            except Exception:
                # Logged; the remaining listeners still run.
                logger.exception("Theme listener %r failed", listener)
