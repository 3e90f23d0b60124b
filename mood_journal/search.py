"""Read-only search and filtering over stored entries.

Every method returns entries newest first. Filters are independent;
callers that need several criteria combine the results themselves.

Example:
    >>> from mood_journal.search import EntrySearch
    >>> search = EntrySearch(store)
    >>> work_days = search.filter_by_tag("Work")
    >>> low_days = search.filter_by_mood_category("Negative")
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from .models import JournalEntry, MoodCategory, to_date

if TYPE_CHECKING:
    from .store import EntryStore

__all__ = ["EntrySearch"]


class EntrySearch:
    """Query layer over an EntryStore. Never modifies the store."""

    def __init__(self, store: EntryStore) -> None:
        self._store = store

    def search(self, term: str | None) -> list[JournalEntry]:
        """Find entries whose title or content contains `term`.

        Matching is case-sensitive. An empty or blank term returns every
        entry.
        """
        if term is None or not term.strip():
            return self._store.query()
        # instr() is case-sensitive, unlike LIKE
        return self._store.query(
            ("(instr(title, ?) > 0 OR instr(content, ?) > 0)",),
            (term, term),
        )

    def filter_by_date_range(
        self,
        start: date | datetime | str,
        end: date | datetime | str,
    ) -> list[JournalEntry]:
        """Entries filed between two calendar days, both inclusive.

        Returns an empty list when `end` is before `start`.
        """
        start_day = to_date(start)
        end_day = to_date(end)
        if end_day < start_day:
            return []
        return self._store.query(
            ("entry_date >= ?", "entry_date <= ?"),
            (start_day.isoformat(), end_day.isoformat()),
        )

    def filter_by_mood(self, mood_name: str) -> list[JournalEntry]:
        """Entries with `mood_name` in any mood slot (exact match)."""
        return self._store.query(
            ("(primary_mood = ? OR secondary_mood1 = ? OR secondary_mood2 = ?)",),
            (mood_name, mood_name, mood_name),
        )

    def filter_by_mood_category(self, category: MoodCategory | str) -> list[JournalEntry]:
        """Entries with a mood of `category` in any mood slot."""
        value = MoodCategory.parse(category).value
        return self._store.query(
            (
                "(primary_mood_category = ? OR secondary_mood1_category = ? "
                "OR secondary_mood2_category = ?)",
            ),
            (value, value, value),
        )

    def filter_by_tag(self, tag: str) -> list[JournalEntry]:
        """Entries carrying exactly `tag`.

        Whole tags are compared, so "ork" does not match an entry tagged
        "Work".
        """
        wanted = tag.strip()
        if not wanted:
            return []
        # Coarse SQL pre-filter, then exact comparison on the parsed tags.
        candidates = self._store.query(("instr(tags, ?) > 0",), (wanted,))
        return [entry for entry in candidates if entry.has_tag(wanted)]
