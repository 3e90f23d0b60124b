"""Command-line interface for mood-journal.

This module provides the CLI entry point for the mood-journal tool.
All commands are implemented using Click and output is formatted
using Rich.

Usage:
    mood-journal add --title T --mood Calm Positive     # Write today's entry
    mood-journal list                                    # Browse entries
    mood-journal search TERM                             # Full-text search
    mood-journal stats                                   # Streaks and moods
    mood-journal export 2024-01-01 2024-03-31 -o q1.md   # Export a range
"""

from __future__ import annotations

import dataclasses
import functools
import logging
import sys
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .analytics import get_analytics
from .constants import (
    DATE_FORMAT,
    DB_PATH_ENV_VAR,
    DEFAULT_DB_PATH,
    MAX_DAILY_ROWS_TO_DISPLAY,
    MAX_ENTRIES_PER_PAGE,
    MAX_SECONDARY_MOODS,
    MAX_TAGS_TO_DISPLAY,
    PREVIEW_LENGTH,
    VALID_THEMES,
)
from .exceptions import MoodJournalError
from .export import EXPORT_FORMATS, export_entries
from .models import JournalEntry, Mood, MoodCategory, to_date
from .search import EntrySearch
from .settings import SettingsStore
from .store import EntryStore, TagCatalog, page_count

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .analytics import AnalyticsSnapshot

F = TypeVar("F", bound=Callable[..., None])

# Rich console for formatted output
console = Console()

DATE_TYPE = click.DateTime(formats=[DATE_FORMAT])
MOOD_TYPE = (str, click.Choice([c.value for c in MoodCategory], case_sensitive=False))


# =============================================================================
# Helper Functions
# =============================================================================


def _configure_logging(verbose: bool) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _handle_errors(func: F) -> F:
    """Print library errors in red and exit with code 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MoodJournalError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)

    return wrapper  # type: ignore[return-value]


def _open_store(ctx: click.Context, *, create: bool = False) -> EntryStore:
    """Open the store at the path chosen on the command group.

    Raises:
        DatabaseNotFoundError: If `create` is False and no database exists yet.
    """
    return EntryStore(ctx.obj["db_path"], create=create)


def _to_mood(pair: tuple[str, str] | None) -> Mood | None:
    if not pair:
        return None
    name, category = pair
    return Mood(name, MoodCategory.parse(category))


def _secondary_moods(also: Sequence[tuple[str, str]]) -> tuple[Mood | None, Mood | None]:
    if len(also) > MAX_SECONDARY_MOODS:
        raise click.UsageError(f"At most {MAX_SECONDARY_MOODS} --also moods are allowed.")
    moods = [_to_mood(pair) for pair in also]
    moods += [None] * (MAX_SECONDARY_MOODS - len(moods))
    return moods[0], moods[1]


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) <= PREVIEW_LENGTH:
        return flat
    return flat[: PREVIEW_LENGTH - 1] + "…"


def _mood_label(entry: JournalEntry) -> str:
    return ", ".join(mood.name for mood in entry.moods)


def _print_entries(entries: Sequence[JournalEntry], title: str) -> None:
    """Render entries as a table."""
    if not entries:
        console.print("[yellow]No entries found.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Title")
    table.add_column("Moods")
    table.add_column("Tags")
    table.add_column("Words", justify="right")

    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.entry_date.isoformat(),
            _preview(entry.title),
            _mood_label(entry),
            entry.tags_text,
            f"{entry.word_count:,}",
        )

    console.print(table)


def _print_entry(entry: JournalEntry) -> None:
    """Render one entry in full."""
    weekday = entry.entry_date.strftime("%A")
    console.print(f"\n[bold cyan]{entry.entry_date.isoformat()} ({weekday})[/bold cyan]")
    console.print(f"[bold]{entry.title}[/bold]  [dim]#{entry.id}[/dim]")
    console.print(f"Mood: {entry.primary_mood}")
    for mood in (entry.secondary_mood_1, entry.secondary_mood_2):
        if mood is not None:
            console.print(f"Also: {mood}")
    if entry.tags:
        console.print(f"Tags: {entry.tags_text}")
    console.print()
    console.print(entry.content, markup=False)
    console.print()
    console.print(
        f"[dim]{entry.word_count:,} words | "
        f"created {entry.created_at:%Y-%m-%d %H:%M} | "
        f"updated {entry.updated_at:%Y-%m-%d %H:%M}[/dim]"
    )


def _print_snapshot(snapshot: AnalyticsSnapshot) -> None:
    """Render an analytics snapshot as a set of tables."""
    console.print("\n[bold]Journal Statistics[/bold]")
    console.print(f"Entries: {snapshot.total_entries:,}")
    if snapshot.first_entry_date and snapshot.last_entry_date:
        console.print(
            f"Date range: {snapshot.first_entry_date.isoformat()} "
            f"to {snapshot.last_entry_date.isoformat()}"
        )
    console.print(f"Current streak: [green]{snapshot.current_streak}[/green] days")
    console.print(f"Longest streak: {snapshot.longest_streak} days")
    console.print(f"Missed days: {snapshot.missed_days}")
    console.print(
        f"Words: {snapshot.total_word_count:,} total, "
        f"{snapshot.average_word_count:,.2f} per entry"
    )
    if snapshot.most_frequent_mood:
        console.print(
            f"Most frequent mood: [cyan]{snapshot.most_frequent_mood}[/cyan] "
            f"({snapshot.most_frequent_mood_count}x)"
        )

    moods = Table(title="\nMood Distribution")
    moods.add_column("Category", style="cyan")
    moods.add_column("Mentions", justify="right")
    moods.add_column("Share", justify="right")
    for category in MoodCategory:
        moods.add_row(
            category.value,
            str(snapshot.mood_counts[category]),
            f"{snapshot.mood_percentages[category]:.2f}%",
        )
    console.print(moods)

    if snapshot.tag_usage:
        tags = Table(title="\nTag Usage")
        tags.add_column("Tag", style="cyan")
        tags.add_column("Uses", justify="right")
        tags.add_column("Share", justify="right")
        for tag_name, count in list(snapshot.tag_usage.items())[:MAX_TAGS_TO_DISPLAY]:
            tags.add_row(tag_name, str(count), f"{snapshot.tag_percentages[tag_name]:.2f}%")
        console.print(tags)

    if snapshot.daily_word_counts:
        daily = Table(title="\nRecent Word Counts")
        daily.add_column("Date", style="cyan")
        daily.add_column("Words", justify="right")
        recent = list(snapshot.daily_word_counts.items())[-MAX_DAILY_ROWS_TO_DISPLAY:]
        for day, words in recent:
            daily.add_row(day.isoformat(), f"{words:,}")
        console.print(daily)


# =============================================================================
# CLI Group
# =============================================================================


@click.group()
@click.version_option(package_name="mood-journal")
@click.option(
    "--db", "db_path",
    envvar=DB_PATH_ENV_VAR,
    type=click.Path(dir_okay=False),
    default=str(DEFAULT_DB_PATH),
    show_default=True,
    help=f"Path to the journal database (or set {DB_PATH_ENV_VAR}).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, db_path: str, verbose: bool) -> None:
    """Keep a daily journal with moods and tags, and track your habits.

    One entry per day. Each entry has a title, free text, a primary mood,
    up to two secondary moods and any number of tags.

    Quick start:

        mood-journal add --title "First day" \\
            --content "Started a journal today." \\
            --mood Hopeful Positive --tags "Reflection"

        mood-journal stats
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


# =============================================================================
# Entry Commands
# =============================================================================


@main.command()
@click.option("--date", "entry_day", type=DATE_TYPE, help="Entry date (default: today).")
@click.option("--title", "-T", required=True, help="Entry title.")
@click.option("--content", "-c", help="Entry text (opens your editor when omitted).")
@click.option(
    "--mood", "-m",
    nargs=2,
    type=MOOD_TYPE,
    required=True,
    metavar="NAME CATEGORY",
    help="Primary mood and its category.",
)
@click.option(
    "--also", "-a",
    nargs=2,
    type=MOOD_TYPE,
    multiple=True,
    metavar="NAME CATEGORY",
    help="Secondary mood (up to two).",
)
@click.option("--tags", "-t", default="", help="Comma-separated tags.")
@click.pass_context
@_handle_errors
def add(
    ctx: click.Context,
    entry_day: datetime | None,
    title: str,
    content: str | None,
    mood: tuple[str, str],
    also: tuple[tuple[str, str], ...],
    tags: str,
) -> None:
    """Write the entry for a day.

    Only one entry is allowed per day; use 'edit' to change it.

    Examples:

        mood-journal add -T "Long walk" -c "Spent the afternoon outside." -m Calm Positive

        mood-journal add --date 2024-01-02 -T "Deadline" -m Stressed Negative \\
            -a Tired Negative -t "Work"
    """
    if content is None:
        content = click.edit() or ""

    secondary_1, secondary_2 = _secondary_moods(also)
    entry = JournalEntry(
        title=title,
        content=content,
        entry_date=to_date(entry_day) if entry_day else date.today(),
        primary_mood=_to_mood(mood),
        secondary_mood_1=secondary_1,
        secondary_mood_2=secondary_2,
        tags=tags,
    )

    store = _open_store(ctx, create=True)
    entry_id = store.create(entry)
    console.print(
        f"[green]Saved entry #{entry_id} for {entry.entry_date.isoformat()}[/green]"
    )


@main.command()
@click.option("--id", "entry_id", type=int, help="Entry id.")
@click.option("--date", "entry_day", type=DATE_TYPE, help="Entry date (default: today).")
@click.pass_context
@_handle_errors
def show(ctx: click.Context, entry_id: int | None, entry_day: datetime | None) -> None:
    """Show one entry in full.

    Examples:

        mood-journal show

        mood-journal show --date 2024-01-02
    """
    store = _open_store(ctx)
    if entry_id is not None:
        entry = store.get_by_id(entry_id)
        label = f"#{entry_id}"
    else:
        day = to_date(entry_day) if entry_day else date.today()
        entry = store.get_by_date(day)
        label = day.isoformat()

    if entry is None:
        console.print(f"[yellow]No entry found for {label}[/yellow]")
        sys.exit(1)

    _print_entry(entry)


@main.command()
@click.argument("entry_id", type=int)
@click.option("--title", "-T", help="New title.")
@click.option("--content", "-c", help="New text.")
@click.option("--mood", "-m", nargs=2, type=MOOD_TYPE, metavar="NAME CATEGORY")
@click.option(
    "--also", "-a",
    nargs=2,
    type=MOOD_TYPE,
    multiple=True,
    metavar="NAME CATEGORY",
    help="Replace the secondary moods (up to two).",
)
@click.option("--clear-also", is_flag=True, help="Remove the secondary moods.")
@click.option("--tags", "-t", help="Replace the tags (comma-separated).")
@click.pass_context
@_handle_errors
def edit(
    ctx: click.Context,
    entry_id: int,
    title: str | None,
    content: str | None,
    mood: tuple[str, str] | None,
    also: tuple[tuple[str, str], ...],
    clear_also: bool,
    tags: str | None,
) -> None:
    """Change an existing entry.

    Only the given fields change. The date of an entry cannot be edited;
    delete it and add it again under the new date instead.

    Example:

        mood-journal edit 12 -t "Work, Friends" -a Proud Positive
    """
    store = _open_store(ctx)
    entry = store.get_by_id(entry_id)
    if entry is None:
        console.print(f"[red]Entry not found: {entry_id}[/red]")
        sys.exit(1)

    changes: dict[str, object] = {}
    if title is not None:
        changes["title"] = title
    if content is not None:
        changes["content"] = content
    if mood:
        changes["primary_mood"] = _to_mood(mood)
    if clear_also:
        changes["secondary_mood_1"] = changes["secondary_mood_2"] = None
    if also:
        changes["secondary_mood_1"], changes["secondary_mood_2"] = _secondary_moods(also)
    if tags is not None:
        changes["tags"] = tags

    if not changes:
        console.print("[yellow]Nothing to change.[/yellow]")
        return

    updated = store.update(dataclasses.replace(entry, **changes))
    console.print(f"[green]Updated entry #{updated.id}[/green] ({updated.word_count:,} words)")


@main.command()
@click.argument("entry_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@_handle_errors
def delete(ctx: click.Context, entry_id: int, yes: bool) -> None:
    """Delete an entry."""
    store = _open_store(ctx)
    if not yes:
        click.confirm(f"Delete entry #{entry_id}?", abort=True)
    store.delete(entry_id)
    console.print(f"[green]Deleted entry #{entry_id}[/green]")


# =============================================================================
# Browse Commands
# =============================================================================


@main.command("list")
@click.option("--page", "-p", default=1, show_default=True, type=click.IntRange(min=1))
@click.option(
    "--page-size", "-n",
    type=click.IntRange(1, MAX_ENTRIES_PER_PAGE),
    help="Entries per page (default: the 'settings' page size).",
)
@click.pass_context
@_handle_errors
def list_cmd(ctx: click.Context, page: int, page_size: int | None) -> None:
    """List entries, newest first.

    Examples:

        mood-journal list

        mood-journal list -p 2 -n 20
    """
    store = _open_store(ctx)
    if page_size is None:
        page_size = SettingsStore(store.db_path).get().entries_per_page

    total = store.count()
    pages = page_count(total, page_size)
    entries = store.list_entries(page, page_size)
    _print_entries(entries, f"Entries (page {page} of {max(pages, 1)})")
    console.print(f"[dim]{total:,} entries in total[/dim]")


@main.command()
@click.argument("term")
@click.pass_context
@_handle_errors
def search(ctx: click.Context, term: str) -> None:
    """Find entries whose title or text contains TERM (case-sensitive)."""
    entries = EntrySearch(_open_store(ctx)).search(term)
    _print_entries(entries, f"Entries matching '{term}'")


@main.command("filter")
@click.option("--from", "start", type=DATE_TYPE, help="First day (inclusive).")
@click.option("--to", "end", type=DATE_TYPE, help="Last day (inclusive).")
@click.option("--mood", "-m", help="Mood name in any mood slot.")
@click.option(
    "--category", "-c",
    type=click.Choice([c.value for c in MoodCategory], case_sensitive=False),
    help="Mood category in any mood slot.",
)
@click.option("--tag", "-t", help="Exact tag name.")
@click.pass_context
@_handle_errors
def filter_cmd(
    ctx: click.Context,
    start: datetime | None,
    end: datetime | None,
    mood: str | None,
    category: str | None,
    tag: str | None,
) -> None:
    """Filter entries by date range, mood, mood category or tag.

    Give exactly one kind of filter.

    Examples:

        mood-journal filter --from 2024-01-01 --to 2024-01-31

        mood-journal filter --category negative
    """
    kinds = [start is not None or end is not None, bool(mood), bool(category), bool(tag)]
    if sum(kinds) != 1:
        raise click.UsageError("Give exactly one of --from/--to, --mood, --category, --tag.")

    finder = EntrySearch(_open_store(ctx))
    if start is not None or end is not None:
        if start is None or end is None:
            raise click.UsageError("--from and --to must be used together.")
        entries = finder.filter_by_date_range(start, end)
        title = f"Entries from {start:%Y-%m-%d} to {end:%Y-%m-%d}"
    elif mood:
        entries = finder.filter_by_mood(mood)
        title = f"Entries with mood '{mood}'"
    elif category:
        entries = finder.filter_by_mood_category(category)
        title = f"Entries with a {MoodCategory.parse(category).value} mood"
    else:
        entries = finder.filter_by_tag(tag)
        title = f"Entries tagged '{tag}'"

    _print_entries(entries, title)


@main.command()
@click.pass_context
@_handle_errors
def dates(ctx: click.Context) -> None:
    """List the days that have an entry, grouped by month."""
    entry_dates = _open_store(ctx).distinct_dates()
    if not entry_dates:
        console.print("[yellow]No entries yet.[/yellow]")
        return

    months: dict[str, list[int]] = {}
    for day in entry_dates:
        months.setdefault(f"{day.year}-{day.month:02d}", []).append(day.day)

    table = Table(title="Days With Entries")
    table.add_column("Month", style="cyan")
    table.add_column("Days")
    table.add_column("Count", justify="right")
    for month, days in months.items():
        table.add_row(month, " ".join(str(d) for d in days), str(len(days)))
    console.print(table)


# =============================================================================
# Analytics Command
# =============================================================================


@main.command()
@click.option("--from", "start", type=DATE_TYPE, help="Analyze entries from this day.")
@click.option("--to", "end", type=DATE_TYPE, help="Analyze entries up to this day.")
@click.option("--today", type=DATE_TYPE, help="Reference day for the current streak.")
@click.pass_context
@_handle_errors
def stats(
    ctx: click.Context,
    start: datetime | None,
    end: datetime | None,
    today: datetime | None,
) -> None:
    """Show streaks, mood distribution, tag usage and word counts.

    --from/--to narrow the mood, tag and word statistics; streaks always
    cover the whole journal.

    Examples:

        mood-journal stats

        mood-journal stats --from 2024-01-01 --to 2024-03-31
    """
    snapshot = get_analytics(
        _open_store(ctx),
        start,
        end,
        today=to_date(today) if today else None,
    )
    _print_snapshot(snapshot)


# =============================================================================
# Tags, Settings and Export
# =============================================================================


@main.command()
@click.option("--add", "new_tag", help="Add a custom tag to the catalog.")
@click.pass_context
@_handle_errors
def tags(ctx: click.Context, new_tag: str | None) -> None:
    """List catalog tags and how many entries use them."""
    catalog = TagCatalog(_open_store(ctx, create=new_tag is not None))

    if new_tag:
        tag = catalog.add_tag(new_tag)
        console.print(f"[green]Tag '{tag.name}' is in the catalog[/green]")
        return

    usage = dict(catalog.usage())
    table = Table(title="Tags")
    table.add_column("Tag", style="cyan")
    table.add_column("Type")
    table.add_column("Entries", justify="right")

    catalog_tags = catalog.list_tags()
    known = {tag.name for tag in catalog_tags}
    rows = [(t.name, "pre-built" if t.is_prebuilt else "custom") for t in catalog_tags]
    rows += [(name, "entry only") for name in usage if name not in known]
    rows.sort(key=lambda row: -usage.get(row[0], 0))

    for name, kind in rows[:MAX_TAGS_TO_DISPLAY]:
        table.add_row(name, kind, str(usage.get(name, 0)))
    console.print(table)

    if len(rows) > MAX_TAGS_TO_DISPLAY:
        console.print(f"\n[dim]... and {len(rows) - MAX_TAGS_TO_DISPLAY} more tags[/dim]")


@main.command()
@click.option("--theme", type=click.Choice(VALID_THEMES), help="Set the theme.")
@click.option(
    "--per-page",
    type=click.IntRange(1, MAX_ENTRIES_PER_PAGE),
    help="Set the default page size for 'list'.",
)
@click.pass_context
@_handle_errors
def settings(ctx: click.Context, theme: str | None, per_page: int | None) -> None:
    """Show or change settings."""
    store = SettingsStore(ctx.obj["db_path"])
    if theme:
        store.update_theme(theme)
    if per_page:
        store.update_entries_per_page(per_page)

    current = store.get()
    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Theme", current.theme)
    table.add_row("Entries per page", str(current.entries_per_page))
    table.add_row("Last updated", f"{current.updated_at:%Y-%m-%d %H:%M}")
    console.print(table)


@main.command()
@click.argument("start", type=DATE_TYPE)
@click.argument("end", type=DATE_TYPE)
@click.option(
    "--output", "-o",
    required=True,
    type=click.Path(dir_okay=False),
    help="File to write.",
)
@click.option(
    "--format", "-f", "fmt",
    type=click.Choice(EXPORT_FORMATS),
    default="markdown",
    show_default=True,
)
@click.pass_context
@_handle_errors
def export(ctx: click.Context, start: datetime, end: datetime, output: str, fmt: str) -> None:
    """Export the entries between START and END (inclusive).

    Examples:

        mood-journal export 2024-01-01 2024-03-31 -o q1.md

        mood-journal export 2024-01-01 2024-12-31 -o 2024.json -f json
    """
    count = export_entries(EntrySearch(_open_store(ctx)), start, end, output, fmt)
    if count == 0:
        console.print("[yellow]No entries found for the selected date range.[/yellow]")
        return
    console.print(f"[green]Exported {count} entries to {output}[/green]")


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    main()
