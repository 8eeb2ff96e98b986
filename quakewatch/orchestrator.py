"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core and the I/O-performing shell components. One call to process()
is one polling cycle:

    fetch -> watermark diff -> notification match -> alert -> cache
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests

from quakewatch.alert_lifecycle import AlertLifecycle
from quakewatch.core.config import Config
from quakewatch.core.event import SeismicEvent, parse_events
from quakewatch.core.geo import Coordinate
from quakewatch.core.grouping import EventCache, GroupedView
from quakewatch.core.rules import (
    DisplayFilter,
    NotificationSettings,
    apply_display_filter,
    find_notification_matches,
)
from quakewatch.core.stats import EventStatistics, compute_statistics
from quakewatch.core.watermark import WatermarkTracker
from quakewatch.shell.ingv_client import INGVClient


logger = logging.getLogger(__name__)

# Error reported by cycles that run or finish after close()
CLOSED_ERROR = "Orchestrator closed"


@dataclass
class CycleResult:
    """Result of a single polling cycle.

    Attributes:
        events_fetched: Events in the snapshot
        novel_events: Events newer than the previous watermark
        matched_events: Novel events that passed the notification rules
        is_bootstrap: True for the first snapshot (nothing is novel yet)
        error: Error message if the cycle aborted
    """
    events_fetched: int = 0
    novel_events: list[SeismicEvent] = field(default_factory=list)
    matched_events: list[SeismicEvent] = field(default_factory=list)
    is_bootstrap: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        """Returns True if the cycle completed."""
        return self.error is None

    @property
    def summary(self) -> str:
        """Human-readable summary of the cycle."""
        if self.error:
            return f"Cycle failed: {self.error}"
        return (
            f"Fetched {self.events_fetched} events, "
            f"{len(self.novel_events)} new, "
            f"{len(self.matched_events)} matched"
            + (" (bootstrap)" if self.is_bootstrap else "")
        )


class LocationCell:
    """The user's last known position.

    Single writer (the geolocation collaborator), many readers. A cycle
    uses whatever value is current when it reads the cell.
    """

    def __init__(self, value: Coordinate | None = None) -> None:
        self._value = value

    def get(self) -> Coordinate | None:
        return self._value

    def set(self, value: Coordinate | None) -> None:
        self._value = value


def resolve_timezone(name: str) -> tzinfo:
    """Look up an IANA timezone, falling back to UTC."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, grouping by UTC days", name)
        return timezone.utc


class Orchestrator:
    """Coordinates event monitoring and alerting.

    This class wires together:
    - INGV client (fetches the snapshot)
    - Watermark tracker (novelty detection)
    - Core rules (notification matching)
    - Alert lifecycle (active alert, alarm and notification collaborators)
    - Event cache (grouped display view)
    """

    def __init__(
        self,
        config: Config,
        feed_client: INGVClient | None = None,
        alerts: AlertLifecycle | None = None,
        tracker: WatermarkTracker | None = None,
        cache: EventCache | None = None,
        location: LocationCell | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            feed_client: Feed client (created if not provided)
            alerts: Alert lifecycle (created without collaborators if not provided)
            tracker: Watermark tracker (created if not provided)
            cache: Event cache (created if not provided)
            location: User location cell (created empty if not provided)
            clock: Returns the current time
        """
        self.config = config
        self.feed_client = feed_client or INGVClient(
            base_url=config.feed_url,
            timeout=config.request_timeout_seconds,
        )
        self.alerts = alerts or AlertLifecycle(dwell_seconds=config.alert_dwell_seconds)
        self.tracker = tracker or WatermarkTracker()
        self.cache = cache or EventCache()
        self.location = location or LocationCell()
        self.notification_settings: NotificationSettings = config.notifications
        self.tz = resolve_timezone(config.display_timezone)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._failure_listeners: list[Callable[[str], Any]] = []
        self._state_lock = threading.Lock()
        self._closed = False

    def add_failure_listener(self, listener: Callable[[str], Any]) -> None:
        """Register a callback for aborted cycles (receives the error message)."""
        self._failure_listeners.append(listener)

    def close(self) -> None:
        """Stop accepting cycle results.

        Waits for a cycle that is already updating state; a cycle still
        fetching when close() returns discards its snapshot.
        """
        with self._state_lock:
            self._closed = True
        logger.info("Orchestrator closed")

    def _fetch_snapshot(self) -> list[SeismicEvent]:
        """Fetch and parse the trailing window of events.

        Returns:
            List of parsed events
        """
        geojson = self.feed_client.fetch_recent(
            days=self.config.lookback_days,
            min_magnitude=self.config.min_fetch_magnitude,
        )

        # Pure core function
        return parse_events(geojson)

    def _report_failure(self, error_msg: str) -> None:
        logger.error(error_msg)
        for listener in list(self._failure_listeners):
            try:
                listener(error_msg)
            except Exception:
                logger.exception("Failure listener raised")

    def process(self) -> CycleResult:
        """Run a complete polling cycle.

        This is the main entry point that:
        1. Reads the current settings and user location
        2. Fetches the snapshot
        3. Diffs it against the watermark
        4. Matches novel events against the notification rules
        5. Fires the alert lifecycle
        6. Updates the display cache

        A failed fetch leaves watermark, cache and alert untouched, and so
        does a cycle that finishes after close().

        Returns:
            CycleResult with details of what happened
        """
        if self._closed:
            return CycleResult(error=CLOSED_ERROR)

        settings = self.notification_settings
        user_location = self.location.get()

        # Step 1: Fetch snapshot
        try:
            snapshot = self._fetch_snapshot()
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            error_msg = f"Failed to fetch events: {e}"
            self._report_failure(error_msg)
            return CycleResult(error=error_msg)

        logger.info("Fetched %d events", len(snapshot))

        with self._state_lock:
            if self._closed:
                logger.info("Orchestrator closed, discarding snapshot")
                return CycleResult(events_fetched=len(snapshot), error=CLOSED_ERROR)

            # Step 2: Novelty (always advances, even with notifications off)
            diff = self.tracker.diff_and_advance(snapshot)

            # Step 3: Notification rules (pure core function)
            matches = find_notification_matches(diff.novel, settings, user_location)

            # Step 4: Alert (ignored once the lifecycle is shut down)
            if matches:
                logger.info("%d events match notification rules", len(matches))
                self.alerts.fire(matches)

            # Step 5: Display cache
            self.cache.update(snapshot, fetched_at=self._clock())

        if diff.is_bootstrap:
            logger.info(
                "Bootstrap snapshot, watermark set to %s",
                diff.watermark.isoformat() if diff.watermark else None,
            )
        else:
            logger.info(
                "%d new events (of %d total)",
                len(diff.novel),
                len(snapshot),
            )

        return CycleResult(
            events_fetched=len(snapshot),
            novel_events=diff.novel,
            matched_events=matches,
            is_bootstrap=diff.is_bootstrap,
        )

    def grouped_view(
        self,
        display_filter: DisplayFilter | None = None,
        include_gaps: bool = False,
    ) -> GroupedView:
        """Group the latest snapshot for display."""
        return self.cache.project(
            display_filter,
            now=self._clock(),
            tz=self.tz,
            include_gaps=include_gaps,
        )

    def statistics(self, display_filter: DisplayFilter | None = None) -> EventStatistics:
        """Compute statistics over the (filtered) latest snapshot."""
        events = apply_display_filter(self.cache.snapshot, display_filter)
        return compute_statistics(events, self.tz)
