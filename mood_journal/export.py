"""Export journal entries to Markdown or JSON.

Entries are fetched with `EntrySearch.filter_by_date_range` and written
oldest first, with a date header for each day.

Example:
    >>> from mood_journal.export import export_entries
    >>> count = export_entries(search, date(2024, 1, 1), date(2024, 3, 31), "q1.md")
    >>> print(f"Exported {count} entries")
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from .exceptions import PersistenceError, ValidationError
from .models import to_date

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import JournalEntry
    from .search import EntrySearch

__all__ = [
    "EXPORT_FORMATS",
    "ExportFormat",
    "render_markdown",
    "entries_to_json",
    "export_entries",
]

logger = logging.getLogger(__name__)

ExportFormat = Literal["markdown", "json"]

EXPORT_FORMATS: tuple[str, ...] = ("markdown", "json")

_SEPARATOR = "-" * 60


def _chronological(entries: Sequence[JournalEntry]) -> list[JournalEntry]:
    return sorted(entries, key=lambda e: e.entry_date)


def _format_instant(dt: datetime | None) -> str:
    return dt.strftime("%Y-%m-%d %H:%M") if dt else "-"


def render_markdown(entries: Sequence[JournalEntry], start: date, end: date) -> str:
    """Render entries as a Markdown document.

    Example output:
        # Journal Entries Export

        Date Range: Jan 01, 2024 - Jan 31, 2024

        --- 2024-01-01 (Monday) ---
        ## New year, slow start
        *Mood: Calm (Positive), Hopeful*
        *Tags: Family, Reflection*

        Content of the entry...

    Returns:
        Markdown text, or "" when there are no entries.
    """
    if not entries:
        return ""

    lines: list[str] = [
        "# Journal Entries Export\n",
        f"Date Range: {start:%b %d, %Y} - {end:%b %d, %Y}\n",
    ]

    for entry in _chronological(entries):
        weekday = entry.entry_date.strftime("%A")
        lines.append(f"\n--- {entry.entry_date.isoformat()} ({weekday}) ---\n")
        lines.append(f"## {entry.title.strip()}\n")

        mood_text = f"Mood: {entry.primary_mood}"
        for mood in (entry.secondary_mood_1, entry.secondary_mood_2):
            if mood is not None:
                mood_text += f", {mood.name}"
        lines.append(f"*{mood_text}*")

        if entry.tags:
            lines.append(f"*Tags: {entry.tags_text}*")

        lines.append(f"\n{entry.content.strip()}\n")
        lines.append(
            f"Word Count: {entry.word_count} | "
            f"Created: {_format_instant(entry.created_at)} | "
            f"Updated: {_format_instant(entry.updated_at)}"
        )
        lines.append(f"\n{_SEPARATOR}")

    return "\n".join(lines) + "\n"


def entries_to_json(entries: Sequence[JournalEntry]) -> str:
    """Serialize entries (oldest first) as a JSON array."""
    return json.dumps(
        [entry.to_dict() for entry in _chronological(entries)],
        ensure_ascii=False,
        indent=2,
    )


def export_entries(
    search: EntrySearch,
    start: date | datetime | str,
    end: date | datetime | str,
    path: Path | str,
    fmt: ExportFormat | str = "markdown",
) -> int:
    """Write the entries of a date range to a file.

    Args:
        search: Search layer to read entries from.
        start: First day to export (inclusive).
        end: Last day to export (inclusive).
        path: Output file. Missing parent directories are created.
        fmt: "markdown" or "json".

    Returns:
        Number of exported entries. Nothing is written when it is 0.

    Raises:
        ValidationError: If the format is unknown or end is before start.
        PersistenceError: If the file cannot be written.
    """
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(
            "format", f"'{fmt}' is not one of: {', '.join(EXPORT_FORMATS)}"
        )
    start_day, end_day = to_date(start), to_date(end)
    if end_day < start_day:
        raise ValidationError("end", "end date is before start date")

    entries = search.filter_by_date_range(start_day, end_day)
    if not entries:
        logger.info("No entries between %s and %s; nothing exported", start_day, end_day)
        return 0

    if fmt == "json":
        text = entries_to_json(entries)
    else:
        text = render_markdown(entries, start_day, end_day)

    out = Path(path).expanduser()
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Failed to write export to {out}: {e}") from e

    logger.info("Exported %d entries to %s", len(entries), out)
    return len(entries)
