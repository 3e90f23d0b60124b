from __future__ import annotations

from datetime import date, timedelta

import pytest

from mood_journal.analytics import (
    AnalyticsSnapshot,
    calculate_current_streak,
    calculate_longest_streak,
    calculate_missed_days,
    compute_analytics,
    get_analytics,
)
from mood_journal.models import MoodCategory


def _days(*numbers):
    return [date(2024, 1, n) for n in numbers]


# =============================================================================
# Streaks
# =============================================================================


def test_consecutive_days_up_to_today():
    dates = _days(1, 2, 3)
    assert calculate_current_streak(dates, date(2024, 1, 3)) == 3
    assert calculate_longest_streak(dates) == 3
    assert calculate_missed_days(dates) == 0


def test_gap_in_history():
    dates = _days(1, 3, 4)
    assert calculate_longest_streak(dates) == 2
    assert calculate_missed_days(dates) == 1
    assert calculate_current_streak(dates, date(2024, 1, 4)) == 2


def test_current_streak_survives_missing_today():
    assert calculate_current_streak(_days(1, 2, 3), date(2024, 1, 4)) == 3


def test_current_streak_breaks_after_two_days():
    assert calculate_current_streak(_days(1, 2, 3), date(2024, 1, 5)) == 0


def test_streaks_of_empty_history():
    assert calculate_current_streak([], date(2024, 1, 1)) == 0
    assert calculate_longest_streak([]) == 0
    assert calculate_missed_days([]) == 0


def test_single_entry():
    assert calculate_longest_streak(_days(7)) == 1
    assert calculate_missed_days(_days(7)) == 0
    assert calculate_current_streak(_days(7), date(2024, 1, 8)) == 1


@pytest.mark.parametrize(
    "dates, today",
    [
        (_days(1, 2, 3, 10, 11), date(2024, 1, 11)),
        (_days(1, 3, 5, 6), date(2024, 1, 7)),
        (_days(5, 1, 2), date(2024, 1, 2)),
    ],
)
def test_current_streak_never_exceeds_longest(dates, today):
    assert calculate_current_streak(dates, today) <= calculate_longest_streak(dates)


def test_duplicate_dates_are_ignored():
    assert calculate_longest_streak(_days(1, 1, 2)) == 2
    assert calculate_missed_days(_days(1, 1, 3)) == 1


# =============================================================================
# Snapshot
# =============================================================================


def test_mood_distribution_from_primary_moods(make_entry):
    entries = [
        make_entry(date(2024, 1, 1), mood=("Happy", "Positive")),
        make_entry(date(2024, 1, 2), mood=("Calm", "Positive")),
        make_entry(date(2024, 1, 3), mood=("Sad", "Negative")),
    ]

    snapshot = compute_analytics(entries, _days(1, 2, 3), today=date(2024, 1, 3))

    assert snapshot.mood_counts[MoodCategory.POSITIVE] == 2
    assert snapshot.mood_percentages[MoodCategory.POSITIVE] == 66.67
    assert snapshot.mood_percentages[MoodCategory.NEUTRAL] == 0
    assert snapshot.mood_percentages[MoodCategory.NEGATIVE] == 33.33
    assert snapshot.total_mood_mentions == 3


def test_secondary_moods_count_as_mentions(make_entry):
    entries = [make_entry(mood=("Tired", "Negative"), also=(("Proud", "Positive"),))]
    snapshot = compute_analytics(entries, _days(1), today=date(2024, 1, 1))
    assert snapshot.total_mood_mentions == 2
    assert snapshot.mood_percentages[MoodCategory.NEGATIVE] == 50.0


def test_tag_usage_counts_every_occurrence(make_entry):
    entries = [
        make_entry(date(2024, 1, 1), tags="Work, Family, Work"),
        make_entry(date(2024, 1, 2)),
    ]

    snapshot = compute_analytics(entries, _days(1, 2), today=date(2024, 1, 2))

    assert dict(snapshot.tag_usage) == {"Work": 2, "Family": 1}
    assert list(snapshot.tag_usage) == ["Work", "Family"]
    assert dict(snapshot.tag_percentages) == {"Work": 66.67, "Family": 33.33}
    assert snapshot.total_tag_mentions == 3


def test_tag_usage_across_entries(make_entry):
    entries = [
        make_entry(date(2024, 1, 1), tags="Family, Work"),
        make_entry(date(2024, 1, 2), tags="Work, Travel"),
    ]

    snapshot = compute_analytics(entries, _days(1, 2), today=date(2024, 1, 2))

    assert list(snapshot.tag_usage.items()) == [("Work", 2), ("Family", 1), ("Travel", 1)]
    assert snapshot.tag_percentages["Work"] == 50.0


def test_tag_usage_from_stored_entry(store, make_entry):
    store.create(make_entry(date(2024, 1, 1), tags="Work, Family, Work"))

    snapshot = get_analytics(store, today=date(2024, 1, 1))

    assert dict(snapshot.tag_usage) == {"Work": 2, "Family": 1}


def test_most_frequent_mood_tie_goes_to_first_encountered(make_entry):
    calm_first = [
        make_entry(date(2024, 1, 1), mood=("Calm", "Positive")),
        make_entry(date(2024, 1, 2), mood=("Sad", "Negative")),
        make_entry(date(2024, 1, 3), mood=("Sad", "Negative"), also=(("Calm", "Positive"),)),
    ]

    snapshot = compute_analytics(calm_first, _days(1, 2, 3), today=date(2024, 1, 3))
    assert snapshot.most_frequent_mood == "Calm"
    assert snapshot.most_frequent_mood_count == 2

    reversed_order = compute_analytics(
        list(reversed(calm_first)), _days(1, 2, 3), today=date(2024, 1, 3)
    )
    assert reversed_order.most_frequent_mood == "Sad"
    assert reversed_order.most_frequent_mood_count == 2


def test_word_counts(store, make_entry):
    store.create(make_entry(date(2024, 1, 2), content="one two three four five"))
    store.create(make_entry(date(2024, 1, 1), content="one two three four five six"))

    snapshot = get_analytics(store, today=date(2024, 1, 2))

    assert snapshot.total_word_count == 11
    assert snapshot.average_word_count == 5.5
    assert list(snapshot.daily_word_counts.items()) == [
        (date(2024, 1, 1), 6),
        (date(2024, 1, 2), 5),
    ]
    assert snapshot.first_entry_date == date(2024, 1, 1)
    assert snapshot.last_entry_date == date(2024, 1, 2)


def test_empty_history_yields_zero_snapshot():
    snapshot = compute_analytics([], [], today=date(2024, 1, 1))

    assert snapshot.total_entries == 0
    assert snapshot.current_streak == 0
    assert snapshot.longest_streak == 0
    assert snapshot.most_frequent_mood is None
    assert snapshot.average_word_count == 0.0
    assert dict(snapshot.tag_usage) == {}
    assert all(v == 0 for v in snapshot.mood_percentages.values())


def test_default_snapshot_matches_empty_history():
    default = AnalyticsSnapshot()
    assert default.total_mood_mentions == 0
    assert set(default.mood_counts) == set(MoodCategory)


def test_snapshot_is_immutable(make_entry):
    snapshot = compute_analytics([make_entry()], _days(1), today=date(2024, 1, 1))
    with pytest.raises(AttributeError):
        snapshot.total_entries = 5
    with pytest.raises(TypeError):
        snapshot.tag_usage["Work"] = 1


def test_window_limits_moods_but_not_streaks(store, make_entry):
    store.create(make_entry(date(2024, 1, 1), mood=("Sad", "Negative")))
    store.create(make_entry(date(2024, 1, 2), mood=("Happy", "Positive")))
    store.create(make_entry(date(2024, 1, 3), mood=("Happy", "Positive")))

    snapshot = get_analytics(
        store, date(2024, 1, 2), date(2024, 1, 3), today=date(2024, 1, 3)
    )

    assert snapshot.total_entries == 2
    assert snapshot.mood_percentages[MoodCategory.POSITIVE] == 100.0
    assert snapshot.current_streak == 3
    assert snapshot.longest_streak == 3


def test_defaults_today_to_current_date(make_entry):
    today = date.today()
    dates = [today - timedelta(days=1), today]
    snapshot = compute_analytics([], dates)
    assert snapshot.current_streak == 2
