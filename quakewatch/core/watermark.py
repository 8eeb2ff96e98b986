"""Novelty detection - Watermark logic.

The feed returns a snapshot of a trailing time window on every poll, never
a delta. An event is "new" when its timestamp is strictly later than the
latest timestamp seen in any previously processed snapshot (the watermark).

Note: an event with a brand-new id but a timestamp older than the
watermark (a backfilled or re-reviewed event) is deliberately NOT novel.
"""

from dataclasses import dataclass, field
from datetime import datetime

from quakewatch.core.event import SeismicEvent


@dataclass(frozen=True)
class SnapshotDiff:
    """Result of comparing a snapshot against the watermark.

    Attributes:
        novel: Events newer than the previous watermark, in snapshot order
        is_bootstrap: True if this was the first snapshot ever considered
        watermark: Watermark after processing this snapshot
    """
    novel: list[SeismicEvent] = field(default_factory=list)
    is_bootstrap: bool = False
    watermark: datetime | None = None


def max_event_time(events: list[SeismicEvent]) -> datetime | None:
    """Return the latest event time, or None for an empty list.

    Pure function.
    """
    if not events:
        return None
    return max(e.time for e in events)


def diff_snapshot(
    snapshot: list[SeismicEvent],
    watermark: datetime | None,
) -> SnapshotDiff:
    """Determine novel events and the advanced watermark.

    Pure function.

    Args:
        snapshot: Complete list of events from one poll
        watermark: Current watermark, None before the first snapshot

    Returns:
        SnapshotDiff with novel events and the new watermark
    """
    latest = max_event_time(snapshot)

    # Bootstrap: the first load never alerts on pre-existing events
    if watermark is None:
        return SnapshotDiff(novel=[], is_bootstrap=True, watermark=latest)

    novel = [e for e in snapshot if e.time > watermark]

    if latest is not None and latest > watermark:
        watermark = latest

    return SnapshotDiff(novel=novel, is_bootstrap=False, watermark=watermark)


class WatermarkTracker:
    """Holds the watermark between polling cycles.

    Single writer: only the polling cycle calls diff_and_advance().
    """

    def __init__(self, watermark: datetime | None = None) -> None:
        self._watermark = watermark

    @property
    def watermark(self) -> datetime | None:
        """Latest event time considered so far (None until bootstrapped)."""
        return self._watermark

    @property
    def is_bootstrapped(self) -> bool:
        return self._watermark is not None

    def diff_and_advance(self, snapshot: list[SeismicEvent]) -> SnapshotDiff:
        """Return novel events in the snapshot and advance the watermark.

        Args:
            snapshot: Complete list of events from one poll

        Returns:
            SnapshotDiff for this snapshot
        """
        diff = diff_snapshot(snapshot, self._watermark)
        self._watermark = diff.watermark
        return diff
