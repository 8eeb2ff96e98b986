"""Chronological grouping of events for display.

Turns a snapshot into a sorted, day-bucketed view ("Today", "Yesterday",
then one bucket per older calendar day in the viewer's timezone), with
optional gap strings between consecutive events. The grouping functions
are pure; EventCache is a plain in-memory holder for the latest snapshot.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo

from quakewatch.core.event import SeismicEvent
from quakewatch.core.formatter import format_gap
from quakewatch.core.rules import DisplayFilter, apply_display_filter


TODAY_KEY = "today"
YESTERDAY_KEY = "yesterday"


@dataclass(frozen=True)
class EventGroup:
    """Events that happened on the same local calendar day.

    Attributes:
        key: "today", "yesterday" or the ISO date (e.g. "2024-03-01")
        label: Display label (e.g. "Today", "Friday 1 March")
        day: Local calendar day of the group
        events: Events, newest first
    """
    key: str
    label: str
    day: date
    events: list[SeismicEvent]


@dataclass(frozen=True)
class GroupedView:
    """Display-ready view of a snapshot.

    An empty view means "no results", which is distinct from "not loaded yet".

    Attributes:
        groups: Day groups in reverse-chronological order
        gaps: Event id -> time since the previous (older) event; None for the oldest
    """
    groups: list[EventGroup] = field(default_factory=list)
    gaps: dict[str, str | None] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.groups

    @property
    def events(self) -> list[SeismicEvent]:
        """All events across groups, newest first."""
        return [e for group in self.groups for e in group.events]


def sort_events(events: list[SeismicEvent]) -> list[SeismicEvent]:
    """Sort events newest first, ties broken by id.

    Pure function.
    """
    return sorted(events, key=lambda e: (e.time, e.id), reverse=True)


def format_day_label(day: date) -> str:
    """Format a calendar day as e.g. "Monday 13 October".

    Pure function.
    """
    return f"{day.strftime('%A')} {day.day} {day.strftime('%B')}"


def group_by_day(
    events: list[SeismicEvent],
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> list[EventGroup]:
    """Partition sorted events into local calendar-day groups.

    Pure function.

    Args:
        events: Events sorted newest first (see sort_events)
        now: Current time, used to decide "Today" and "Yesterday"
        tz: Viewer's timezone

    Returns:
        Non-empty groups: Today, Yesterday, then older days descending
    """
    today = now.astimezone(tz).date()
    yesterday = today - timedelta(days=1)

    buckets: dict[date, list[SeismicEvent]] = {}
    for event in events:
        day = event.time.astimezone(tz).date()
        # Clock skew can put an event slightly in the future
        if day > today:
            day = today
        buckets.setdefault(day, []).append(event)

    groups = []
    for day in sorted(buckets, reverse=True):
        if day == today:
            key, label = TODAY_KEY, "Today"
        elif day == yesterday:
            key, label = YESTERDAY_KEY, "Yesterday"
        else:
            key, label = day.isoformat(), format_day_label(day)
        groups.append(EventGroup(key=key, label=label, day=day, events=buckets[day]))

    return groups


def compute_gaps(events: list[SeismicEvent]) -> dict[str, str | None]:
    """Compute the time since the previous (older) event for each event.

    Pure function. Gaps run across the whole sorted list, not per group.

    Args:
        events: Events sorted newest first

    Returns:
        Mapping of event id to gap string (None for the oldest event)
    """
    gaps: dict[str, str | None] = {}
    for index, event in enumerate(events):
        if index + 1 < len(events):
            older = events[index + 1]
            gaps[event.id] = format_gap(event.time - older.time)
        else:
            gaps[event.id] = None
    return gaps


def project_snapshot(
    snapshot: list[SeismicEvent],
    display_filter: DisplayFilter | None,
    now: datetime,
    tz: tzinfo = timezone.utc,
    include_gaps: bool = False,
) -> GroupedView:
    """Build the grouped display view of a snapshot.

    Pure function.

    Args:
        snapshot: Events from the latest poll
        display_filter: Display filter (None shows everything)
        now: Current time
        tz: Viewer's timezone
        include_gaps: Whether to compute inter-event gap strings

    Returns:
        GroupedView (empty when nothing passes the filter)
    """
    filtered = sort_events(apply_display_filter(snapshot, display_filter))
    if not filtered:
        return GroupedView()

    gaps = compute_gaps(filtered) if include_gaps else {}
    return GroupedView(groups=group_by_day(filtered, now, tz), gaps=gaps)


class EventCache:
    """Holds the latest snapshot for display.

    Written once per successful cycle; read by displays at any time.
    """

    def __init__(self) -> None:
        self._snapshot: list[SeismicEvent] | None = None
        self._fetched_at: datetime | None = None

    @property
    def has_data(self) -> bool:
        """True once a snapshot has been stored (even an empty one)."""
        return self._snapshot is not None

    @property
    def snapshot(self) -> list[SeismicEvent]:
        return list(self._snapshot or [])

    @property
    def fetched_at(self) -> datetime | None:
        return self._fetched_at

    def update(self, snapshot: list[SeismicEvent], fetched_at: datetime | None = None) -> None:
        """Replace the cached snapshot."""
        self._snapshot = list(snapshot)
        self._fetched_at = fetched_at or datetime.now(timezone.utc)

    def project(
        self,
        display_filter: DisplayFilter | None = None,
        now: datetime | None = None,
        tz: tzinfo = timezone.utc,
        include_gaps: bool = False,
    ) -> GroupedView:
        """Group the cached snapshot for display."""
        return project_snapshot(
            self.snapshot,
            display_filter,
            now or datetime.now(timezone.utc),
            tz,
            include_gaps,
        )
