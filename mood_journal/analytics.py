"""Behavioral statistics over the journal history.

This module turns a list of entries into an immutable AnalyticsSnapshot:
mood distribution, writing streaks, tag usage and word count trends.
Everything here is a pure function of its inputs; nothing reads or writes
the database except `get_analytics`, which only reads.

Streaks and missed days always use the complete list of entry dates,
while the other figures use whatever (possibly date-windowed) entries the
caller passes in.

Example:
    >>> from mood_journal.analytics import compute_analytics
    >>> entries, dates = store.read_history(start=date(2024, 1, 1))
    >>> snapshot = compute_analytics(entries, dates)
    >>> print(f"{snapshot.current_streak} day streak")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from .models import MoodCategory

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import JournalEntry
    from .store import EntryStore

__all__ = [
    "AnalyticsSnapshot",
    "compute_analytics",
    "get_analytics",
    "calculate_current_streak",
    "calculate_longest_streak",
    "calculate_missed_days",
]


def _empty_mapping() -> Mapping:
    return MappingProxyType({})


def _zero_by_category() -> Mapping[MoodCategory, float]:
    return MappingProxyType({category: 0 for category in MoodCategory})


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True, slots=True)
class AnalyticsSnapshot:
    """Immutable statistics computed from the journal history.

    Attributes:
        total_entries: Number of entries analyzed.
        first_entry_date: Earliest analyzed entry date, or None.
        last_entry_date: Latest analyzed entry date, or None.
        mood_counts: Mentions per mood category (all three mood slots).
        mood_percentages: Share of mentions per category, 2 decimals.
        most_frequent_mood: Most mentioned mood name, or None.
        most_frequent_mood_count: Mentions of that mood.
        current_streak: Consecutive days with entries ending today or yesterday.
        longest_streak: Longest run of consecutive days with entries.
        missed_days: Days without an entry between the first and last entry.
        tag_usage: Mentions per tag, most used first.
        tag_percentages: Share of tag mentions per tag, 2 decimals.
        total_word_count: Words across analyzed entries.
        average_word_count: Mean words per entry, 2 decimals.
        daily_word_counts: Words per entry date, oldest first.
    """

    total_entries: int = 0
    first_entry_date: date | None = None
    last_entry_date: date | None = None
    mood_counts: Mapping[MoodCategory, int] = field(default_factory=_zero_by_category)
    mood_percentages: Mapping[MoodCategory, float] = field(
        default_factory=_zero_by_category
    )
    most_frequent_mood: str | None = None
    most_frequent_mood_count: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    missed_days: int = 0
    tag_usage: Mapping[str, int] = field(default_factory=_empty_mapping)
    tag_percentages: Mapping[str, float] = field(default_factory=_empty_mapping)
    total_word_count: int = 0
    average_word_count: float = 0.0
    daily_word_counts: Mapping[date, int] = field(default_factory=_empty_mapping)

    @property
    def total_mood_mentions(self) -> int:
        return sum(self.mood_counts.values())

    @property
    def total_tag_mentions(self) -> int:
        return sum(self.tag_usage.values())


# =============================================================================
# Streak Calculation
# =============================================================================


def calculate_current_streak(dates: Iterable[date], today: date) -> int:
    """Count the run of days with entries that ends today or yesterday.

    A missing entry for today does not break the streak as long as
    yesterday has one; any other gap ends the count.

    Args:
        dates: Entry dates in any order.
        today: The caller's current date.

    Returns:
        Number of days with entries in the run, 0 if the streak is broken.

    Example:
        >>> calculate_current_streak([date(2024, 1, 1), date(2024, 1, 2)], date(2024, 1, 3))
        2
    """
    entry_dates = set(dates)
    if not entry_dates:
        return 0

    yesterday = today - timedelta(days=1)
    if max(entry_dates) < yesterday:
        return 0

    streak = 0
    check_date = today
    while check_date in entry_dates or (check_date == today and yesterday in entry_dates):
        if check_date in entry_dates:
            streak += 1
        check_date -= timedelta(days=1)
    return streak


def calculate_longest_streak(dates: Iterable[date]) -> int:
    """Length of the longest run of consecutive calendar days.

    Example:
        >>> calculate_longest_streak([date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 4)])
        2
    """
    ordered = sorted(set(dates))
    if not ordered:
        return 0

    longest = 1
    run = 1
    for previous, current in zip(ordered, ordered[1:]):
        if (current - previous).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def calculate_missed_days(dates: Iterable[date]) -> int:
    """Days without an entry between the first and last entry date."""
    distinct = set(dates)
    if not distinct:
        return 0
    span = (max(distinct) - min(distinct)).days + 1
    return span - len(distinct)


# =============================================================================
# Aggregation Helpers
# =============================================================================


def _percentage(count: int, total: int) -> float:
    return round(count / total * 100, 2)


def _mood_distribution(
    entries: Sequence[JournalEntry],
) -> tuple[dict[MoodCategory, int], dict[MoodCategory, float]]:
    counts: dict[MoodCategory, int] = {category: 0 for category in MoodCategory}
    for entry in entries:
        for mood in entry.moods:
            counts[mood.category] += 1

    total = sum(counts.values())
    percentages: dict[MoodCategory, float] = {category: 0.0 for category in MoodCategory}
    if total > 0:
        percentages = {
            category: _percentage(count, total) for category, count in counts.items()
        }
    return counts, percentages


def _most_frequent_mood(entries: Sequence[JournalEntry]) -> tuple[str | None, int]:
    mood_counts: dict[str, int] = {}
    for entry in entries:
        for mood in entry.moods:
            mood_counts[mood.name] = mood_counts.get(mood.name, 0) + 1

    if not mood_counts:
        return None, 0
    # max() keeps the first maximal key, i.e. the first mood encountered
    name = max(mood_counts, key=mood_counts.__getitem__)
    return name, mood_counts[name]


def _tag_usage(entries: Sequence[JournalEntry]) -> tuple[dict[str, int], dict[str, float]]:
    tag_counts: dict[str, int] = {}
    for entry in entries:
        for tag in entry.tags:
            tag_counts[tag] = tag_counts.get(tag, 0) + 1

    # sorted() is stable, so equal counts keep first-seen order
    usage = dict(sorted(tag_counts.items(), key=lambda x: -x[1]))
    total = sum(usage.values())
    percentages = {tag: _percentage(count, total) for tag, count in usage.items()}
    return usage, percentages


def _daily_word_counts(entries: Sequence[JournalEntry]) -> dict[date, int]:
    daily: dict[date, int] = {}
    for entry in sorted(entries, key=lambda e: e.entry_date):
        daily[entry.entry_date] = daily.get(entry.entry_date, 0) + entry.word_count
    return daily


# =============================================================================
# Public API
# =============================================================================


def compute_analytics(
    entries: Sequence[JournalEntry],
    all_dates: Iterable[date],
    today: date | None = None,
) -> AnalyticsSnapshot:
    """Compute statistics for a set of entries.

    Never raises on empty input; an empty history yields a snapshot of
    zeros and empty mappings.

    Args:
        entries: Entries to analyze (may be limited to a date window).
        all_dates: Every entry date in the journal, used for streaks and
                   missed days regardless of any window.
        today: Reference day for the current streak. Defaults to today.

    Returns:
        A new AnalyticsSnapshot.

    Example:
        >>> snapshot = compute_analytics(entries, store.distinct_dates())
        >>> snapshot.mood_percentages[MoodCategory.POSITIVE]
        66.67
    """
    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()

    history = sorted(set(all_dates))
    mood_counts, mood_percentages = _mood_distribution(entries)
    most_frequent, most_frequent_count = _most_frequent_mood(entries)
    tag_usage, tag_percentages = _tag_usage(entries)

    total_words = sum(entry.word_count for entry in entries)
    average_words = round(total_words / len(entries), 2) if entries else 0.0
    entry_dates = [entry.entry_date for entry in entries]

    return AnalyticsSnapshot(
        total_entries=len(entries),
        first_entry_date=min(entry_dates) if entry_dates else None,
        last_entry_date=max(entry_dates) if entry_dates else None,
        mood_counts=MappingProxyType(mood_counts),
        mood_percentages=MappingProxyType(mood_percentages),
        most_frequent_mood=most_frequent,
        most_frequent_mood_count=most_frequent_count,
        current_streak=calculate_current_streak(history, today),
        longest_streak=calculate_longest_streak(history),
        missed_days=calculate_missed_days(history),
        tag_usage=MappingProxyType(tag_usage),
        tag_percentages=MappingProxyType(tag_percentages),
        total_word_count=total_words,
        average_word_count=average_words,
        daily_word_counts=MappingProxyType(_daily_word_counts(entries)),
    )


def get_analytics(
    store: EntryStore,
    start: date | datetime | None = None,
    end: date | datetime | None = None,
    today: date | None = None,
) -> AnalyticsSnapshot:
    """Read a consistent history from the store and analyze it.

    Args:
        store: Entry store to read from.
        start: First day of the analysis window (inclusive), or None.
        end: Last day of the analysis window (inclusive), or None.
        today: Reference day for the current streak.
    """
    entries, all_dates = store.read_history(start, end)
    return compute_analytics(entries, all_dates, today)
