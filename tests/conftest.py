from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from mood_journal.models import JournalEntry, Mood, MoodCategory
from mood_journal.search import EntrySearch
from mood_journal.store import EntryStore


class FakeClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "journal.db"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(db_path, clock):
    return EntryStore(db_path, clock=clock)


@pytest.fixture
def search(store):
    return EntrySearch(store)


@pytest.fixture
def make_entry():
    def _make(
        day: date | str = date(2024, 1, 1),
        *,
        title: str = "A day",
        content: str = "Nothing much happened today.",
        mood: tuple[str, str] = ("Calm", "Positive"),
        also: tuple[tuple[str, str], ...] = (),
        tags: str = "",
    ) -> JournalEntry:
        secondary = [Mood(name, MoodCategory.parse(cat)) for name, cat in also]
        secondary += [None] * (2 - len(secondary))
        return JournalEntry(
            title=title,
            content=content,
            entry_date=day,
            primary_mood=Mood(mood[0], MoodCategory.parse(mood[1])),
            secondary_mood_1=secondary[0],
            secondary_mood_2=secondary[1],
            tags=tags,
        )

    return _make
