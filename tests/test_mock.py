import datetime as dt

import pytest

from chronos.errors import ApiError
from chronos.grid import ReportGrid
from chronos.mock import MemoryTracker, generate_demo_activity, generate_demo_entries
from chronos.models import ReportMonth, TimeEntry


def test_demo_entries_stay_on_weekdays_in_month():
    month = ReportMonth(2024, 3)
    entries = generate_demo_entries(month)
    assert entries
    for e in entries:
        assert month.contains(e.start)
        assert not month.is_weekend(e.start.day)
        assert e.seconds > 0


def test_memory_tracker_round_trip():
    month = ReportMonth(2024, 3)
    tracker = MemoryTracker()
    entry_id = tracker.create_entry(TimeEntry('Build', dt.datetime(2024, 3, 5, 10, 45, tzinfo=dt.timezone.utc), 3600))
    assert entry_id == 'mem-1'
    fetched = tracker.fetch_entries(*month.bounds())
    assert [(e.id, e.description, e.seconds) for e in fetched] == [('mem-1', 'Build', 3600)]

    tracker.update_entry(entry_id, TimeEntry('Build', dt.datetime(2024, 3, 5, 10, 45, tzinfo=dt.timezone.utc), 7200))
    assert tracker.entries[entry_id].seconds == 7200
    tracker.delete_entry(entry_id)
    assert tracker.fetch_entries(*month.bounds()) == []


def test_memory_tracker_unknown_ids_raise():
    tracker = MemoryTracker()
    with pytest.raises(ApiError):
        tracker.delete_entry('nope')
    with pytest.raises(ApiError):
        tracker.update_entry('nope', TimeEntry('x', dt.datetime(2024, 3, 1, tzinfo=dt.timezone.utc), 60))


def test_demo_grid_loads_from_memory_tracker():
    month = ReportMonth(2024, 3)
    tracker = MemoryTracker(generate_demo_entries(month))
    grid = ReportGrid(tracker, month, entries=tracker.fetch_entries(*month.bounds()))
    assert grid.task_names == ['Code review', 'Feature work', 'Meetings']


def test_demo_activity_has_both_feeds():
    activity = generate_demo_activity()
    assert set(activity) == {'Linear', 'Git'}
    assert all(item.source == 'linear' for item in activity['Linear'])
