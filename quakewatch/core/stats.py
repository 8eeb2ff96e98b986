"""Snapshot statistics - Pure functions.

Summaries behind the analysis panel: daily counts, magnitude
distribution, strongest event and average magnitude.
"""

import math
from dataclasses import dataclass, field
from datetime import date, timezone, tzinfo

from quakewatch.core.event import SeismicEvent


@dataclass(frozen=True)
class DailyCount:
    """Number of events on one local calendar day.

    Attributes:
        day: Local calendar day
        count: Number of events
        max_magnitude: Strongest magnitude that day
    """
    day: date
    count: int
    max_magnitude: float


@dataclass(frozen=True)
class MagnitudeBand:
    """Number of events within a one-unit magnitude band.

    Attributes:
        label: Band label, e.g. "2-3" (lower bound inclusive)
        lower: Lower bound of the band
        count: Number of events
    """
    label: str
    lower: int
    count: int


@dataclass(frozen=True)
class EventStatistics:
    """Statistics over a list of events.

    Attributes:
        count: Number of events
        strongest: Event with the highest magnitude (None when empty)
        average_magnitude: Mean magnitude rounded to one decimal (0.0 when empty)
        daily_counts: Per-day counts, oldest day first
        magnitude_distribution: Magnitude bands, lowest first
    """
    count: int = 0
    strongest: SeismicEvent | None = None
    average_magnitude: float = 0.0
    daily_counts: list[DailyCount] = field(default_factory=list)
    magnitude_distribution: list[MagnitudeBand] = field(default_factory=list)


def count_by_day(
    events: list[SeismicEvent],
    tz: tzinfo = timezone.utc,
) -> list[DailyCount]:
    """Count events per local calendar day.

    Pure function.
    """
    counts: dict[date, int] = {}
    maxima: dict[date, float] = {}
    for event in events:
        day = event.time.astimezone(tz).date()
        counts[day] = counts.get(day, 0) + 1
        maxima[day] = max(maxima.get(day, event.magnitude), event.magnitude)

    return [
        DailyCount(day=day, count=counts[day], max_magnitude=maxima[day])
        for day in sorted(counts)
    ]


def magnitude_distribution(events: list[SeismicEvent]) -> list[MagnitudeBand]:
    """Count events per one-unit magnitude band.

    Pure function.
    """
    counts: dict[int, int] = {}
    for event in events:
        lower = math.floor(event.magnitude)
        counts[lower] = counts.get(lower, 0) + 1

    return [
        MagnitudeBand(label=f"{lower}-{lower + 1}", lower=lower, count=counts[lower])
        for lower in sorted(counts)
    ]


def compute_statistics(
    events: list[SeismicEvent],
    tz: tzinfo = timezone.utc,
) -> EventStatistics:
    """Compute summary statistics for a list of events.

    Pure function.

    Args:
        events: Events to summarize (usually the filtered snapshot)
        tz: Timezone used to bucket events by day

    Returns:
        EventStatistics (zeroed when events is empty)
    """
    if not events:
        return EventStatistics()

    # First event wins ties, matching a left-to-right scan
    strongest = events[0]
    for event in events[1:]:
        if event.magnitude > strongest.magnitude:
            strongest = event

    average = sum(e.magnitude for e in events) / len(events)

    return EventStatistics(
        count=len(events),
        strongest=strongest,
        average_magnitude=round(average, 1),
        daily_counts=count_by_day(events, tz),
        magnitude_distribution=magnitude_distribution(events),
    )
