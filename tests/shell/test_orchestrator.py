"""Tests for the Orchestrator module.

Tests the coordination between functional core and imperative shell.
Uses mocks for shell components to test orchestration logic.
"""

import pytest
import requests
import responses
from datetime import datetime, timezone
from unittest.mock import Mock

from quakewatch.alert_lifecycle import AlertLifecycle
from quakewatch.core.config import DEFAULT_FEED_URL, Config
from quakewatch.core.geo import Coordinate
from quakewatch.core.rules import (
    DisplayFilter,
    GeofencedScope,
    GlobalScope,
    NotificationSettings,
    PlaceListScope,
)
from quakewatch.orchestrator import CycleResult, LocationCell, Orchestrator, resolve_timezone


NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def feature(event_id, magnitude, place, time, lat=41.9, lon=12.5):
    """Build a GeoJSON feature the way INGV sends it (naive UTC time)."""
    return {
        "type": "Feature",
        "id": event_id,
        "properties": {"time": time, "mag": magnitude, "place": place},
        "geometry": {"type": "Point", "coordinates": [lon, lat, 8.0]},
    }


ROMA_1 = feature("roma-1", 2.0, "Roma", "2024-03-01T10:00:00")
NAPOLI_1 = feature("napoli-1", 2.5, "5 km SW Napoli", "2024-03-01T10:10:00", 40.83, 14.22)
ROMA_2 = feature("roma-2", 2.2, "Roma", "2024-03-01T10:20:00")

SNAPSHOT_1 = {"type": "FeatureCollection", "features": [NAPOLI_1, ROMA_1]}
SNAPSHOT_2 = {"type": "FeatureCollection", "features": [ROMA_2, NAPOLI_1, ROMA_1]}


def make_orchestrator(settings, snapshots, location=None):
    feed_client = Mock()
    feed_client.fetch_recent.side_effect = list(snapshots)
    alerts = Mock(spec=AlertLifecycle)
    config = Config(notifications=settings, display_timezone="UTC")
    return Orchestrator(
        config,
        feed_client=feed_client,
        alerts=alerts,
        location=LocationCell(location),
        clock=lambda: NOW,
    )


@pytest.fixture
def global_settings():
    return NotificationSettings(enabled=True, min_magnitude=2.0, scope=GlobalScope())


class TestProcess:
    """Tests for Orchestrator.process()."""

    def test_bootstrap_never_alerts(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_1])

        result = orchestrator.process()

        assert result.success is True
        assert result.is_bootstrap is True
        assert result.events_fetched == 2
        assert result.novel_events == []
        orchestrator.alerts.fire.assert_not_called()
        assert orchestrator.cache.has_data is True

    def test_new_event_alerts_global(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_1, SNAPSHOT_2])

        orchestrator.process()
        result = orchestrator.process()

        assert [e.id for e in result.novel_events] == ["roma-2"]
        assert [e.id for e in result.matched_events] == ["roma-2"]
        fired = orchestrator.alerts.fire.call_args.args[0]
        assert [e.id for e in fired] == ["roma-2"]

    def test_place_list_scope_matches(self):
        settings = NotificationSettings(enabled=True, min_magnitude=2.0, scope=PlaceListScope("roma"))
        orchestrator = make_orchestrator(settings, [SNAPSHOT_1, SNAPSHOT_2])

        orchestrator.process()
        result = orchestrator.process()

        assert [e.id for e in result.matched_events] == ["roma-2"]

    def test_place_list_scope_no_match(self):
        settings = NotificationSettings(enabled=True, min_magnitude=2.0, scope=PlaceListScope("napoli"))
        orchestrator = make_orchestrator(settings, [SNAPSHOT_1, SNAPSHOT_2])

        orchestrator.process()
        result = orchestrator.process()

        assert [e.id for e in result.novel_events] == ["roma-2"]
        assert result.matched_events == []
        orchestrator.alerts.fire.assert_not_called()

    def test_magnitude_floor(self):
        settings = NotificationSettings(enabled=True, min_magnitude=3.0)
        orchestrator = make_orchestrator(settings, [SNAPSHOT_1, SNAPSHOT_2])

        orchestrator.process()
        result = orchestrator.process()

        assert result.matched_events == []

    def test_geofence_uses_current_location(self):
        settings = NotificationSettings(enabled=True, min_magnitude=2.0, scope=GeofencedScope(50))
        near_napoli = feature("napoli-2", 2.7, "Napoli", "2024-03-01T10:30:00", 40.85, 14.25)
        snapshot_3 = {"features": [near_napoli, ROMA_2, NAPOLI_1, ROMA_1]}
        orchestrator = make_orchestrator(settings, [SNAPSHOT_1, SNAPSHOT_2, snapshot_3])

        orchestrator.process()
        # Location still unknown: a geofence never matches
        assert orchestrator.process().matched_events == []

        orchestrator.location.set(Coordinate(latitude=40.8518, longitude=14.2681))
        result = orchestrator.process()

        assert [e.id for e in result.matched_events] == ["napoli-2"]

    def test_disabled_still_advances_watermark(self, global_settings):
        """Events seen while disabled don't alert after re-enabling."""
        orchestrator = make_orchestrator(
            NotificationSettings(enabled=False),
            [SNAPSHOT_1, SNAPSHOT_2, SNAPSHOT_2],
        )

        orchestrator.process()
        assert [e.id for e in orchestrator.process().novel_events] == ["roma-2"]

        orchestrator.notification_settings = global_settings
        result = orchestrator.process()

        assert result.novel_events == []
        orchestrator.alerts.fire.assert_not_called()

    def test_same_snapshot_twice_alerts_once(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_1, SNAPSHOT_2, SNAPSHOT_2])

        for _ in range(3):
            orchestrator.process()

        assert orchestrator.alerts.fire.call_count == 1

    def test_fetch_failure_leaves_state_untouched(self, global_settings):
        orchestrator = make_orchestrator(
            global_settings,
            [SNAPSHOT_1, requests.ConnectionError("offline"), SNAPSHOT_2],
        )
        failures = []
        orchestrator.add_failure_listener(failures.append)

        orchestrator.process()
        watermark = orchestrator.tracker.watermark
        cached = orchestrator.cache.snapshot

        result = orchestrator.process()

        assert result.success is False
        assert "offline" in result.error
        assert orchestrator.tracker.watermark == watermark
        assert orchestrator.cache.snapshot == cached
        assert len(failures) == 1
        orchestrator.alerts.fire.assert_not_called()

        # The next successful poll picks up where we left off
        assert [e.id for e in orchestrator.process().matched_events] == ["roma-2"]

    def test_malformed_payload_is_a_failure(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [{"features": "broken"}])

        result = orchestrator.process()

        assert result.success is False
        assert orchestrator.cache.has_data is False
        assert orchestrator.tracker.watermark is None

    def test_fetch_uses_configured_window(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_1])
        orchestrator.process()

        orchestrator.feed_client.fetch_recent.assert_called_once_with(days=3, min_magnitude=0.0)


class TestMalformedFeed:
    """A real client against a feed that answers with a non-object body."""

    @responses.activate
    def test_null_body_is_a_failed_cycle(self, global_settings):
        responses.add(responses.GET, DEFAULT_FEED_URL, body="null", status=200)
        orchestrator = Orchestrator(
            Config(notifications=global_settings, display_timezone="UTC"),
            alerts=Mock(spec=AlertLifecycle),
        )
        failures = []
        orchestrator.add_failure_listener(failures.append)

        result = orchestrator.process()

        assert result.success is False
        assert len(failures) == 1
        assert "not a JSON object" in failures[0]
        assert orchestrator.tracker.watermark is None
        assert orchestrator.cache.has_data is False


class TestClose:
    """Tests for Orchestrator.close()."""

    def test_process_after_close_does_not_fetch(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_1])
        orchestrator.close()

        result = orchestrator.process()

        assert result.success is False
        orchestrator.feed_client.fetch_recent.assert_not_called()

    def test_close_during_fetch_discards_snapshot(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_1, SNAPSHOT_2])
        orchestrator.process()
        failures = []
        orchestrator.add_failure_listener(failures.append)

        def fetch_then_close(**kwargs):
            orchestrator.close()
            return SNAPSHOT_2

        orchestrator.feed_client.fetch_recent.side_effect = fetch_then_close
        watermark = orchestrator.tracker.watermark

        result = orchestrator.process()

        assert result.success is False
        assert result.novel_events == []
        assert orchestrator.tracker.watermark == watermark
        assert sorted(e.id for e in orchestrator.cache.snapshot) == ["napoli-1", "roma-1"]
        orchestrator.alerts.fire.assert_not_called()
        assert failures == []


class TestViews:
    def test_grouped_view(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_2])
        orchestrator.process()

        view = orchestrator.grouped_view()

        assert [g.key for g in view.groups] == ["today"]
        assert [e.id for e in view.events] == ["roma-2", "napoli-1", "roma-1"]

    def test_grouped_view_with_filter(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_2])
        orchestrator.process()

        view = orchestrator.grouped_view(DisplayFilter(place_text="napoli"))

        assert [e.id for e in view.events] == ["napoli-1"]

    def test_statistics(self, global_settings):
        orchestrator = make_orchestrator(global_settings, [SNAPSHOT_2])
        orchestrator.process()

        stats = orchestrator.statistics()

        assert stats.count == 3
        assert stats.strongest.id == "napoli-1"


class TestCycleResult:
    def test_summary(self):
        assert CycleResult(events_fetched=3, is_bootstrap=True).summary == (
            "Fetched 3 events, 0 new, 0 matched (bootstrap)"
        )
        assert CycleResult(error="boom").summary == "Cycle failed: boom"


class TestResolveTimezone:
    def test_unknown_falls_back_to_utc(self):
        assert resolve_timezone("Mars/Olympus") == timezone.utc
