"""Unit tests for chronological grouping."""

import pytest
from datetime import datetime, timedelta, timezone

from quakewatch.core.event import SeismicEvent
from quakewatch.core.grouping import (
    EventCache,
    compute_gaps,
    format_day_label,
    group_by_day,
    project_snapshot,
    sort_events,
)
from quakewatch.core.rules import DisplayFilter


NOW = datetime(2024, 3, 13, 10, 0, tzinfo=timezone.utc)  # a Wednesday


def make_event(event_id: str, time: datetime, place: str = "Napoli") -> SeismicEvent:
    return SeismicEvent(
        id=event_id,
        magnitude=2.5,
        place=place,
        time=time,
        latitude=40.8,
        longitude=14.2,
        depth_km=5.0,
    )


@pytest.fixture
def snapshot():
    """Events spread over today, yesterday and an older day (feed order)."""
    return [
        make_event("older", datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc), "Roma"),
        make_event("today-1", datetime(2024, 3, 13, 9, 0, tzinfo=timezone.utc)),
        make_event("yesterday", datetime(2024, 3, 12, 22, 0, tzinfo=timezone.utc)),
        make_event("today-2", datetime(2024, 3, 13, 8, 0, tzinfo=timezone.utc)),
    ]


class TestSortEvents:
    def test_newest_first(self, snapshot):
        ids = [e.id for e in sort_events(snapshot)]
        assert ids == ["today-1", "today-2", "yesterday", "older"]

    def test_ties_are_deterministic(self):
        t = datetime(2024, 3, 13, 9, 0, tzinfo=timezone.utc)
        a, b = make_event("a", t), make_event("b", t)
        assert sort_events([a, b]) == sort_events([b, a])


class TestGroupByDay:
    """Tests for group_by_day()."""

    def test_today_yesterday_and_older(self, snapshot):
        groups = group_by_day(sort_events(snapshot), NOW)

        assert [g.key for g in groups] == ["today", "yesterday", "2024-03-10"]
        assert [g.label for g in groups] == ["Today", "Yesterday", "Sunday 10 March"]
        assert [e.id for e in groups[0].events] == ["today-1", "today-2"]

    def test_no_empty_groups(self):
        events = [make_event("a", datetime(2024, 3, 11, 9, 0, tzinfo=timezone.utc))]
        groups = group_by_day(events, NOW)
        assert len(groups) == 1
        assert groups[0].key == "2024-03-11"

    def test_uses_viewer_timezone(self):
        """23:30 UTC is already the next day two hours east."""
        plus_two = timezone(timedelta(hours=2))
        event = make_event("late", datetime(2024, 3, 12, 23, 30, tzinfo=timezone.utc))

        assert group_by_day([event], NOW, timezone.utc)[0].key == "yesterday"
        assert group_by_day([event], NOW, plus_two)[0].key == "today"

    def test_future_event_grouped_as_today(self):
        event = make_event("future", NOW + timedelta(days=1))
        assert group_by_day([event], NOW)[0].key == "today"

    def test_empty(self):
        assert group_by_day([], NOW) == []


class TestFormatDayLabel:
    def test_label(self):
        assert format_day_label(datetime(2025, 10, 13).date()) == "Monday 13 October"


class TestComputeGaps:
    """Tests for compute_gaps()."""

    def test_gaps_across_groups(self, snapshot):
        gaps = compute_gaps(sort_events(snapshot))

        assert gaps["today-1"] == "1 h 0 min"
        assert gaps["today-2"] == "10 h 0 min"
        assert gaps["yesterday"] == "58 h 0 min"
        assert gaps["older"] is None

    def test_short_gap(self):
        events = [
            make_event("b", NOW),
            make_event("a", NOW - timedelta(minutes=7, seconds=30)),
        ]
        assert compute_gaps(events) == {"b": "7 min", "a": None}


class TestProjectSnapshot:
    """Tests for project_snapshot()."""

    def test_filter_then_group(self, snapshot):
        view = project_snapshot(snapshot, DisplayFilter(place_text="roma"), NOW)
        assert [e.id for e in view.events] == ["older"]

    def test_no_results_is_empty_view(self, snapshot):
        view = project_snapshot(snapshot, DisplayFilter(place_text="milano"), NOW)
        assert view.is_empty is True
        assert view.events == []

    def test_same_input_same_output(self, snapshot):
        first = project_snapshot(snapshot, None, NOW, include_gaps=True)
        second = project_snapshot(list(reversed(snapshot)), None, NOW, include_gaps=True)
        assert first == second

    def test_gaps_only_when_requested(self, snapshot):
        assert project_snapshot(snapshot, None, NOW).gaps == {}
        assert len(project_snapshot(snapshot, None, NOW, include_gaps=True).gaps) == 4


class TestEventCache:
    """Tests for EventCache."""

    def test_not_loaded(self):
        cache = EventCache()
        assert cache.has_data is False
        assert cache.snapshot == []
        assert cache.fetched_at is None

    def test_empty_snapshot_counts_as_loaded(self):
        cache = EventCache()
        cache.update([], fetched_at=NOW)

        assert cache.has_data is True
        assert cache.fetched_at == NOW
        assert cache.project(now=NOW).is_empty is True

    def test_replaced_on_update(self, snapshot):
        cache = EventCache()
        cache.update(snapshot, fetched_at=NOW)
        cache.update(snapshot[:1], fetched_at=NOW)
        assert [e.id for e in cache.project(now=NOW).events] == ["older"]
