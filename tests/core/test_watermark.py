"""Unit tests for watermark-based novelty detection."""

from datetime import datetime, timedelta, timezone

from quakewatch.core.event import SeismicEvent
from quakewatch.core.watermark import WatermarkTracker, diff_snapshot, max_event_time


T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_event(event_id: str, minutes: int, place: str = "Napoli") -> SeismicEvent:
    return SeismicEvent(
        id=event_id,
        magnitude=3.0,
        place=place,
        time=T0 + timedelta(minutes=minutes),
        latitude=40.8,
        longitude=14.2,
        depth_km=5.0,
    )


class TestMaxEventTime:
    def test_empty(self):
        assert max_event_time([]) is None

    def test_latest(self):
        events = [make_event("a", 5), make_event("b", 10), make_event("c", 1)]
        assert max_event_time(events) == T0 + timedelta(minutes=10)


class TestDiffSnapshot:
    """Tests for diff_snapshot()."""

    def test_bootstrap_reports_nothing(self):
        snapshot = [make_event("a", 0), make_event("b", 5)]
        diff = diff_snapshot(snapshot, None)

        assert diff.is_bootstrap is True
        assert diff.novel == []
        assert diff.watermark == T0 + timedelta(minutes=5)

    def test_empty_bootstrap_keeps_watermark_unset(self):
        diff = diff_snapshot([], None)
        assert diff.is_bootstrap is True
        assert diff.watermark is None

    def test_strictly_newer_is_novel(self):
        watermark = T0 + timedelta(minutes=5)
        snapshot = [make_event("c", 6), make_event("b", 5), make_event("a", 0)]

        diff = diff_snapshot(snapshot, watermark)

        assert [e.id for e in diff.novel] == ["c"]
        assert diff.watermark == T0 + timedelta(minutes=6)

    def test_equal_timestamp_is_not_novel(self):
        watermark = T0 + timedelta(minutes=5)
        diff = diff_snapshot([make_event("new-id", 5)], watermark)
        assert diff.novel == []

    def test_backfilled_event_is_not_novel(self):
        """A new id with an older timestamp does not count as new."""
        watermark = T0 + timedelta(minutes=5)
        diff = diff_snapshot([make_event("late", 2)], watermark)

        assert diff.novel == []
        assert diff.watermark == watermark

    def test_watermark_never_regresses(self):
        """Events rolling out of the window don't move the watermark back."""
        watermark = T0 + timedelta(minutes=30)
        diff = diff_snapshot([make_event("a", 0)], watermark)
        assert diff.watermark == watermark

    def test_empty_snapshot_keeps_watermark(self):
        watermark = T0 + timedelta(minutes=30)
        diff = diff_snapshot([], watermark)

        assert diff.novel == []
        assert diff.is_bootstrap is False
        assert diff.watermark == watermark


class TestWatermarkTracker:
    """Tests for WatermarkTracker across consecutive polls."""

    def test_two_snapshots(self):
        """Bootstrap on the first poll, then only the newer event."""
        tracker = WatermarkTracker()
        s1 = [make_event("roma-1", 0, "Roma"), make_event("napoli-1", 10, "Napoli")]
        s2 = [make_event("roma-2", 20, "Roma")] + s1

        first = tracker.diff_and_advance(s1)
        assert first.is_bootstrap is True
        assert first.novel == []
        assert tracker.is_bootstrapped is True

        second = tracker.diff_and_advance(s2)
        assert second.is_bootstrap is False
        assert [e.id for e in second.novel] == ["roma-2"]
        assert tracker.watermark == T0 + timedelta(minutes=20)

    def test_same_snapshot_twice(self):
        tracker = WatermarkTracker()
        snapshot = [make_event("a", 0), make_event("b", 5)]

        tracker.diff_and_advance(snapshot)
        assert tracker.diff_and_advance(snapshot).novel == []

    def test_monotonic(self):
        tracker = WatermarkTracker()
        previous = None
        for snapshot in (
            [make_event("a", 10)],
            [make_event("b", 5)],
            [],
            [make_event("c", 15)],
        ):
            tracker.diff_and_advance(snapshot)
            if previous is not None:
                assert tracker.watermark >= previous
            previous = tracker.watermark

        assert tracker.watermark == T0 + timedelta(minutes=15)

    def test_empty_first_snapshot_bootstraps_again(self):
        """An empty first poll leaves the tracker waiting for a real baseline."""
        tracker = WatermarkTracker()
        tracker.diff_and_advance([])
        assert tracker.is_bootstrapped is False

        diff = tracker.diff_and_advance([make_event("a", 0)])
        assert diff.is_bootstrap is True
        assert diff.novel == []
