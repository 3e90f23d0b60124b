"""Domain model for journal entries.

This module defines the immutable value types shared by the store, the
search layer and the analytics engine, along with the helpers that derive
and validate their fields.

Example:
    >>> from datetime import date
    >>> from mood_journal.models import JournalEntry, Mood, MoodCategory, count_words
    >>> entry = JournalEntry(
    ...     title="A quiet Sunday",
    ...     content="Walked by the river and read for an hour.",
    ...     entry_date=date(2024, 1, 7),
    ...     primary_mood=Mood("Calm", MoodCategory.POSITIVE),
    ...     tags="Nature, Reading",
    ... )
    >>> entry.tags
    ('Nature', 'Reading')
    >>> count_words(entry.content)
    9
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from .constants import (
    CONTENT_MAX_LENGTH,
    CONTENT_MIN_LENGTH,
    MOOD_NAME_MAX_LENGTH,
    TAG_DELIMITER,
    TAG_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)
from .exceptions import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = [
    "MoodCategory",
    "Mood",
    "JournalEntry",
    "Tag",
    "count_words",
    "parse_tags",
    "format_tags",
    "to_date",
    "validate_entry",
]


# =============================================================================
# Mood Types
# =============================================================================


class MoodCategory(str, Enum):
    """Broad classification of a mood."""

    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"

    @classmethod
    def parse(cls, value: MoodCategory | str) -> MoodCategory:
        """Coerce a category or its name (case-insensitive) to a MoodCategory.

        Raises:
            ValidationError: If the value names no category.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for category in cls:
            if category.value.lower() == text:
                return category
        valid = ", ".join(c.value for c in cls)
        raise ValidationError("mood_category", f"'{value}' is not one of: {valid}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Mood:
    """A named mood together with its category.

    Name and category always travel together, so a mood slot is either
    fully set or absent.

    Attributes:
        name: Mood name as the writer chose it (e.g. "Grateful").
        category: Positive, Neutral or Negative.
    """

    name: str
    category: MoodCategory

    def __post_init__(self) -> None:
        name = (self.name or "").strip()
        if not name:
            raise ValidationError("mood", "mood name is required")
        if len(name) > MOOD_NAME_MAX_LENGTH:
            raise ValidationError(
                "mood", f"mood name cannot exceed {MOOD_NAME_MAX_LENGTH} characters"
            )
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "category", MoodCategory.parse(self.category))

    def __str__(self) -> str:
        return f"{self.name} ({self.category.value})"


@dataclass(frozen=True, slots=True)
class Tag:
    """A catalog tag.

    Attributes:
        name: Tag label.
        is_prebuilt: True for tags seeded with the database.
    """

    name: str
    is_prebuilt: bool = False


# =============================================================================
# Helper Functions
# =============================================================================


def count_words(content: str) -> int:
    """Count whitespace-delimited words.

    Example:
        >>> count_words("  one two\\n\\tthree ")
        3
    """
    if not content:
        return 0
    return len(content.split())


def parse_tags(raw: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalize tags to an ordered tuple.

    Accepts either the delimited storage form or any iterable of tag
    strings. Tokens are split on the delimiter and trimmed, and empty
    tokens are dropped. Repeated tags are kept, so each occurrence counts
    in tag usage.

    Example:
        >>> parse_tags(" Work, ,Family,Work ")
        ('Work', 'Family', 'Work')
    """
    if raw is None:
        return ()
    items = [raw] if isinstance(raw, str) else list(raw)
    tokens = (part.strip() for item in items for part in item.split(TAG_DELIMITER))
    return tuple(token for token in tokens if token)


def format_tags(tags: Iterable[str]) -> str:
    """Encode tags in their delimited storage form."""
    return f"{TAG_DELIMITER} ".join(tags)


def to_date(value: date | datetime | str) -> date:
    """Reduce a date, datetime or ISO string to a calendar date.

    Raises:
        ValidationError: If a string is not an ISO date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise ValidationError("entry_date", f"'{value}' is not a valid date") from e


# =============================================================================
# Journal Entry
# =============================================================================


@dataclass(frozen=True, slots=True)
class JournalEntry:
    """An immutable journal entry for a single calendar day.

    Entries built by callers leave `id`, `word_count` and the timestamps
    unset; the store assigns them on write and returns fresh instances.

    Attributes:
        title: Short headline for the day.
        content: Free-text reflection.
        entry_date: Calendar day the entry is filed under (unique).
        primary_mood: Required mood.
        secondary_mood_1: Optional additional mood.
        secondary_mood_2: Optional additional mood.
        tags: Ordered tag names, repeats included.
        id: Store-assigned identifier.
        word_count: Whitespace token count of `content` at last write.
        created_at: When the entry was first stored.
        updated_at: When the entry was last changed.
    """

    title: str
    content: str
    entry_date: date
    primary_mood: Mood
    secondary_mood_1: Mood | None = None
    secondary_mood_2: Mood | None = None
    tags: tuple[str, ...] = ()
    id: int | None = None
    word_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "entry_date", to_date(self.entry_date))
        object.__setattr__(self, "tags", parse_tags(self.tags))

    @property
    def moods(self) -> tuple[Mood, ...]:
        """Filled mood slots, primary first."""
        slots = (self.primary_mood, self.secondary_mood_1, self.secondary_mood_2)
        return tuple(mood for mood in slots if mood is not None)

    @property
    def tags_text(self) -> str:
        """Tags in their delimited storage form."""
        return format_tags(self.tags)

    def has_mood(self, name: str) -> bool:
        return any(mood.name == name for mood in self.moods)

    def has_category(self, category: MoodCategory | str) -> bool:
        wanted = MoodCategory.parse(category)
        return any(mood.category is wanted for mood in self.moods)

    def has_tag(self, tag: str) -> bool:
        return tag.strip() in self.tags

    def to_dict(self) -> dict[str, Any]:
        """Plain serializable representation (ISO dates, lists)."""

        def mood_dict(mood: Mood | None) -> dict[str, str] | None:
            if mood is None:
                return None
            return {"name": mood.name, "category": mood.category.value}

        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "entry_date": self.entry_date.isoformat(),
            "primary_mood": mood_dict(self.primary_mood),
            "secondary_mood_1": mood_dict(self.secondary_mood_1),
            "secondary_mood_2": mood_dict(self.secondary_mood_2),
            "tags": list(self.tags),
            "word_count": self.word_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def validate_entry(entry: JournalEntry) -> None:
    """Check an entry's client-supplied fields.

    Args:
        entry: Entry to validate.

    Raises:
        ValidationError: On the first violated constraint.
    """
    title = (entry.title or "").strip()
    if not title:
        raise ValidationError("title", "title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            "title", f"title cannot exceed {TITLE_MAX_LENGTH} characters"
        )

    content = entry.content or ""
    if not content.strip():
        raise ValidationError("content", "content is required")
    # Length is checked on the text exactly as it will be stored
    if not CONTENT_MIN_LENGTH <= len(content) <= CONTENT_MAX_LENGTH:
        raise ValidationError(
            "content",
            f"content must be between {CONTENT_MIN_LENGTH} and "
            f"{CONTENT_MAX_LENGTH} characters",
        )

    if not isinstance(entry.primary_mood, Mood):
        raise ValidationError("primary_mood", "primary mood is required")
    for field_name in ("secondary_mood_1", "secondary_mood_2"):
        mood = getattr(entry, field_name)
        if mood is not None and not isinstance(mood, Mood):
            raise ValidationError(field_name, "secondary mood must be a Mood or None")

    for tag in entry.tags:
        if len(tag) > TAG_MAX_LENGTH:
            raise ValidationError(
                "tags", f"tag '{tag[:20]}...' exceeds {TAG_MAX_LENGTH} characters"
            )
