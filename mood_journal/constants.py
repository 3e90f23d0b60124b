"""Shared constants for mood-journal.

This module centralizes limits, paths, and default values used
throughout the library. Import from here to ensure consistency.
"""

from pathlib import Path
from typing import Final


# =============================================================================
# Database Configuration
# =============================================================================

# Environment variable that overrides the database location
DB_PATH_ENV_VAR: Final[str] = "MOOD_JOURNAL_DB"

# Default location of the journal database
DEFAULT_DB_PATH: Final[Path] = Path.home() / ".mood-journal" / "journal.db"

# Seconds a connection waits for a competing writer to release its lock
DEFAULT_BUSY_TIMEOUT: Final[float] = 5.0

# Date format accepted by command-line date options and arguments
DATE_FORMAT: Final[str] = "%Y-%m-%d"


# =============================================================================
# Entry Validation
# =============================================================================

TITLE_MAX_LENGTH: Final[int] = 200

CONTENT_MIN_LENGTH: Final[int] = 10
CONTENT_MAX_LENGTH: Final[int] = 10_000

MOOD_NAME_MAX_LENGTH: Final[int] = 50

TAG_MAX_LENGTH: Final[int] = 50

# Tags are persisted as a single delimited string
TAG_DELIMITER: Final[str] = ","

# Number of optional mood slots besides the primary mood
MAX_SECONDARY_MOODS: Final[int] = 2


# =============================================================================
# Settings
# =============================================================================

DEFAULT_ENTRIES_PER_PAGE: Final[int] = 10
MAX_ENTRIES_PER_PAGE: Final[int] = 100

VALID_THEMES: Final[tuple[str, ...]] = ("Light", "Dark")
DEFAULT_THEME: Final[str] = "Light"


# =============================================================================
# Tag Catalog
# =============================================================================

# Seeded once when the database is initialized
PREBUILT_TAGS: Final[tuple[str, ...]] = (
    "Work",
    "Career",
    "Studies",
    "Family",
    "Friends",
    "Relationships",
    "Health",
    "Fitness",
    "Personal Growth",
    "Self-care",
    "Hobbies",
    "Travel",
    "Nature",
    "Finance",
    "Spirituality",
    "Birthday",
    "Holiday",
    "Vacation",
    "Celebration",
    "Exercise",
    "Reading",
    "Writing",
    "Cooking",
    "Meditation",
    "Yoga",
    "Music",
    "Shopping",
    "Parenting",
    "Projects",
    "Planning",
    "Reflection",
)


# =============================================================================
# Display Configuration
# =============================================================================

# Maximum tags to display in tag listings
MAX_TAGS_TO_DISPLAY: Final[int] = 30

# Maximum rows of the daily word count table in `stats`
MAX_DAILY_ROWS_TO_DISPLAY: Final[int] = 14

# Content preview length in entry tables
PREVIEW_LENGTH: Final[int] = 60
