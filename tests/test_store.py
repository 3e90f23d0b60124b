from __future__ import annotations

import dataclasses
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta

import pytest

from mood_journal.constants import PREBUILT_TAGS
from mood_journal.exceptions import (
    DatabaseNotFoundError,
    DuplicateDateError,
    NotFoundError,
    ValidationError,
)
from mood_journal.models import Mood, MoodCategory
from mood_journal.store import EntryStore, TagCatalog, page_count


# =============================================================================
# Create / Read
# =============================================================================


def test_create_assigns_id_word_count_and_timestamps(store, make_entry):
    entry_id = store.create(make_entry(content="one two three four five six"))

    stored = store.get_by_id(entry_id)
    assert stored is not None
    assert stored.id == entry_id
    assert stored.word_count == 6
    assert stored.created_at == stored.updated_at
    assert stored.primary_mood == Mood("Calm", MoodCategory.POSITIVE)


def test_create_rejects_second_entry_for_same_date(store, make_entry):
    store.create(make_entry(date(2024, 1, 1), title="Morning"))

    with pytest.raises(DuplicateDateError) as exc_info:
        store.create(make_entry(date(2024, 1, 1), title="Evening"))

    assert exc_info.value.entry_date == date(2024, 1, 1)
    assert store.count() == 1
    assert store.get_by_date(date(2024, 1, 1)).title == "Morning"


def test_time_of_day_does_not_distinguish_entries(store, make_entry):
    store.create(make_entry(datetime(2024, 1, 1, 8, 0)))
    with pytest.raises(DuplicateDateError):
        store.create(make_entry(datetime(2024, 1, 1, 21, 0)))


def test_concurrent_creates_for_same_date(store, make_entry):
    entries = [make_entry(date(2024, 5, 1), title=f"Writer {i}") for i in range(2)]

    def attempt(entry):
        try:
            return store.create(entry)
        except DuplicateDateError as e:
            return e

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(attempt, entries))

    successes = [r for r in results if isinstance(r, int)]
    failures = [r for r in results if isinstance(r, DuplicateDateError)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert store.count() == 1


def test_create_validates_before_writing(store, make_entry):
    with pytest.raises(ValidationError):
        store.create(make_entry(content="short"))
    assert store.count() == 0


def test_create_rejects_content_longer_than_limit_with_whitespace(store, make_entry):
    with pytest.raises(ValidationError):
        store.create(make_entry(content="x" * 10_000 + "     "))
    assert store.count() == 0


def test_content_is_stored_as_written(store, make_entry):
    entry_id = store.create(make_entry(content="   abcdefghi   "))
    stored = store.get_by_id(entry_id)
    assert stored.content == "   abcdefghi   "
    assert len(stored.content) == 15
    assert stored.word_count == 1


def test_repeated_tags_are_stored(store, make_entry):
    entry_id = store.create(make_entry(tags="Work, Family, Work"))
    assert store.get_by_id(entry_id).tags == ("Work", "Family", "Work")


def test_lookups_return_none_when_missing(store):
    assert store.get_by_id(999) is None
    assert store.get_by_date(date(2030, 1, 1)) is None
    assert store.exists_for_date("2030-01-01") is False


def test_get_by_date_ignores_time_of_day(store, make_entry):
    store.create(make_entry(date(2024, 2, 2)))
    assert store.get_by_date(datetime(2024, 2, 2, 17, 45)) is not None
    assert store.exists_for_date("2024-02-02")


def test_tags_round_trip_through_storage(store, make_entry):
    entry_id = store.create(make_entry(tags="Work, ,Family"))
    assert store.get_by_id(entry_id).tags == ("Work", "Family")


def test_secondary_moods_are_stored(store, make_entry):
    entry_id = store.create(
        make_entry(also=(("Tired", "Negative"), ("Curious", "Neutral")))
    )
    stored = store.get_by_id(entry_id)
    assert stored.secondary_mood_1 == Mood("Tired", MoodCategory.NEGATIVE)
    assert stored.secondary_mood_2 == Mood("Curious", MoodCategory.NEUTRAL)


def test_schema_rejects_half_filled_mood_slot(store):
    conn = store.connect()
    try:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO journal_entries (title, content, entry_date, created_at, "
                "updated_at, primary_mood, primary_mood_category, secondary_mood1) "
                "VALUES ('t', 'content here', '2024-01-01', 'x', 'x', 'Calm', "
                "'Positive', 'Tired')"
            )
    finally:
        conn.close()


def test_missing_database_without_create(tmp_path):
    with pytest.raises(DatabaseNotFoundError):
        EntryStore(tmp_path / "missing.db", create=False)


def test_reopening_existing_database_keeps_entries(db_path, store, make_entry):
    store.create(make_entry())
    reopened = EntryStore(db_path, create=False)
    assert reopened.count() == 1


# =============================================================================
# Update / Delete
# =============================================================================


def test_update_recomputes_word_count_and_advances_updated_at(store, make_entry):
    entry_id = store.create(make_entry(content="one two three four five"))
    original = store.get_by_id(entry_id)

    updated = store.update(
        dataclasses.replace(original, title="Edited", content="just three words here now")
    )

    assert updated.title == "Edited"
    assert updated.word_count == 5
    assert updated.created_at == original.created_at
    assert updated.updated_at > original.updated_at


def test_update_keeps_updated_at_increasing_with_frozen_clock(db_path, make_entry):
    frozen = datetime(2024, 1, 1, 12, 0)
    store = EntryStore(db_path, clock=lambda: frozen)
    entry_id = store.create(make_entry())
    original = store.get_by_id(entry_id)

    updated = store.update(dataclasses.replace(original, title="Edited"))

    assert updated.updated_at == original.updated_at + timedelta(microseconds=1)


def test_update_ignores_entry_date_change(store, make_entry):
    entry_id = store.create(make_entry(date(2024, 1, 1)))
    original = store.get_by_id(entry_id)

    updated = store.update(dataclasses.replace(original, entry_date=date(2024, 1, 9)))

    assert updated.entry_date == date(2024, 1, 1)


def test_update_can_clear_secondary_moods_and_tags(store, make_entry):
    entry_id = store.create(make_entry(also=(("Tired", "Negative"),), tags="Work"))
    original = store.get_by_id(entry_id)

    updated = store.update(
        dataclasses.replace(original, secondary_mood_1=None, tags=())
    )

    assert updated.secondary_mood_1 is None
    assert updated.tags == ()


def test_update_missing_entry(store, make_entry):
    with pytest.raises(NotFoundError):
        store.update(dataclasses.replace(make_entry(), id=404))
    with pytest.raises(NotFoundError):
        store.update(make_entry())


def test_update_validates(store, make_entry):
    entry_id = store.create(make_entry())
    original = store.get_by_id(entry_id)
    with pytest.raises(ValidationError):
        store.update(dataclasses.replace(original, title=""))
    assert store.get_by_id(entry_id).title == original.title


def test_delete_twice_raises_not_found(store, make_entry):
    entry_id = store.create(make_entry())
    store.delete(entry_id)

    assert store.get_by_id(entry_id) is None
    with pytest.raises(NotFoundError) as exc_info:
        store.delete(entry_id)
    assert exc_info.value.entry_id == entry_id


def test_date_is_free_again_after_delete(store, make_entry):
    entry_id = store.create(make_entry(date(2024, 1, 1)))
    store.delete(entry_id)
    assert store.create(make_entry(date(2024, 1, 1))) != entry_id


# =============================================================================
# Listing
# =============================================================================


def test_list_entries_pages_newest_first(store, make_entry):
    for day in range(1, 26):
        store.create(make_entry(date(2024, 1, day), title=f"Day {day}"))

    first = store.list_entries(page=1, page_size=10)
    third = store.list_entries(page=3, page_size=10)

    assert [e.entry_date.day for e in first] == list(range(25, 15, -1))
    assert [e.entry_date.day for e in third] == [5, 4, 3, 2, 1]
    assert store.list_entries(page=4, page_size=10) == []
    assert page_count(store.count(), 10) == 3


def test_list_entries_rejects_bad_paging(store):
    with pytest.raises(ValidationError):
        store.list_entries(page=0)
    with pytest.raises(ValidationError):
        store.list_entries(page_size=0)


@pytest.mark.parametrize("total, size, expected", [(0, 10, 0), (10, 10, 1), (21, 10, 3)])
def test_page_count(total, size, expected):
    assert page_count(total, size) == expected


def test_distinct_dates_are_ascending(store, make_entry):
    for day in (date(2024, 1, 3), date(2024, 1, 1), date(2024, 1, 2)):
        store.create(make_entry(day))
    assert store.distinct_dates() == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]


def test_read_history_windows_entries_but_not_dates(store, make_entry):
    for day in (1, 2, 10):
        store.create(make_entry(date(2024, 1, day)))

    entries, dates = store.read_history(date(2024, 1, 2), date(2024, 1, 5))

    assert [e.entry_date for e in entries] == [date(2024, 1, 2)]
    assert dates == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 10)]


# =============================================================================
# Tag Catalog
# =============================================================================


def test_prebuilt_tags_are_seeded(store):
    tags = TagCatalog(store).list_tags()
    prebuilt = [t.name for t in tags if t.is_prebuilt]
    assert sorted(prebuilt) == sorted(PREBUILT_TAGS)


def test_add_custom_tag(store):
    catalog = TagCatalog(store)

    tag = catalog.add_tag(" Gardening ")
    again = catalog.add_tag("Gardening")
    existing = catalog.add_tag("Work")

    assert tag.name == "Gardening" and not tag.is_prebuilt
    assert again == tag
    assert existing.is_prebuilt
    assert [t.name for t in catalog.list_tags()].count("Gardening") == 1


@pytest.mark.parametrize("name", ["", "   ", "Work, Family", "x" * 51])
def test_add_tag_rejects_invalid_names(store, name):
    with pytest.raises(ValidationError):
        TagCatalog(store).add_tag(name)


def test_tag_usage_counts_entries(store, make_entry):
    store.create(make_entry(date(2024, 1, 1), tags="Work, Family"))
    store.create(make_entry(date(2024, 1, 2), tags="Work"))
    store.create(make_entry(date(2024, 1, 3)))

    assert TagCatalog(store).usage() == [("Work", 2), ("Family", 1)]
