"""mood-journal: A daily journal with moods, tags and habit statistics.

This package stores one journal entry per calendar day in a local SQLite
database and derives behavioral statistics from the history.

Key Features:
    - One entry per day, enforced by the database itself
    - Primary and secondary moods with Positive/Neutral/Negative categories
    - Free-form and pre-built tags
    - Search and filters by text, date range, mood, category and tag
    - Streaks, missed days, mood distribution, tag usage and word trends
    - Markdown and JSON export

Quick Start:
    >>> from datetime import date
    >>> from mood_journal import EntryStore, EntrySearch, JournalEntry, Mood, get_analytics
    >>>
    >>> store = EntryStore("~/.mood-journal/journal.db")
    >>> store.create(JournalEntry(
    ...     title="First day",
    ...     content="Started a journal today.",
    ...     entry_date=date.today(),
    ...     primary_mood=Mood("Hopeful", "Positive"),
    ...     tags="Reflection",
    ... ))
    >>>
    >>> EntrySearch(store).filter_by_tag("Reflection")
    >>> get_analytics(store).current_streak
    1

CLI Usage:
    $ mood-journal add -T "First day" -c "Started a journal today." -m Hopeful Positive
    $ mood-journal list
    $ mood-journal stats
"""

__version__ = "0.1.0"

# Core classes
from .models import (
    JournalEntry,
    Mood,
    MoodCategory,
    Tag,
    count_words,
    format_tags,
    parse_tags,
    validate_entry,
)
from .store import EntryStore, TagCatalog, page_count
from .search import EntrySearch
from .analytics import (
    AnalyticsSnapshot,
    compute_analytics,
    get_analytics,
    calculate_current_streak,
    calculate_longest_streak,
    calculate_missed_days,
)
from .settings import AppSettings, SettingsStore
from .export import export_entries, render_markdown, entries_to_json

# Exceptions
from .exceptions import (
    MoodJournalError,
    ValidationError,
    DuplicateDateError,
    NotFoundError,
    PersistenceError,
    DatabaseNotFoundError,
)

# Constants (for advanced users)
from .constants import (
    DEFAULT_DB_PATH,
    DB_PATH_ENV_VAR,
    PREBUILT_TAGS,
    VALID_THEMES,
)

__all__ = [
    # Version
    "__version__",
    # Core classes
    "JournalEntry",
    "Mood",
    "MoodCategory",
    "Tag",
    "EntryStore",
    "TagCatalog",
    "EntrySearch",
    "AnalyticsSnapshot",
    "AppSettings",
    "SettingsStore",
    # Functions
    "count_words",
    "format_tags",
    "parse_tags",
    "validate_entry",
    "page_count",
    "compute_analytics",
    "get_analytics",
    "calculate_current_streak",
    "calculate_longest_streak",
    "calculate_missed_days",
    "export_entries",
    "render_markdown",
    "entries_to_json",
    # Constants
    "DEFAULT_DB_PATH",
    "DB_PATH_ENV_VAR",
    "PREBUILT_TAGS",
    "VALID_THEMES",
    # Exceptions
    "MoodJournalError",
    "ValidationError",
    "DuplicateDateError",
    "NotFoundError",
    "PersistenceError",
    "DatabaseNotFoundError",
]
