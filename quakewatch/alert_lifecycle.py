"""Alert Lifecycle - the single active in-app alert.

Holds at most one ActiveAlert. Every matching event is handed to the
audible-alarm and system-notification collaborators, but only the most
newsworthy one (highest magnitude, then most recent) is held as the
displayed alert. The alert clears itself after a fixed dwell time, or
immediately on dismiss.

The dwell timer runs independently of the polling timer and only ever
touches the active-alert cell.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from quakewatch.core.event import SeismicEvent


logger = logging.getLogger(__name__)


DEFAULT_DWELL_SECONDS = 8.0

AlertCollaborator = Callable[[SeismicEvent], Any]


@dataclass(frozen=True)
class ActiveAlert:
    """The alert currently shown to the user.

    Attributes:
        event: Event that triggered the alert
        activated_at: When the alert became active
        deadline: When the alert clears itself
    """
    event: SeismicEvent
    activated_at: datetime
    deadline: datetime


def alert_rank(event: SeismicEvent) -> tuple[float, datetime]:
    """Ordering key for newsworthiness: magnitude, then recency."""
    return (event.magnitude, event.time)


def select_headline(events: list[SeismicEvent]) -> SeismicEvent | None:
    """Pick the most newsworthy event, or None for an empty list.

    Pure function.
    """
    if not events:
        return None
    return max(events, key=alert_rank)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AlertLifecycle:
    """State machine: Idle <-> Active(event, deadline)."""

    def __init__(
        self,
        alarm: AlertCollaborator | None = None,
        notifier: AlertCollaborator | None = None,
        dwell_seconds: float = DEFAULT_DWELL_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
        timer_factory: Callable[..., Any] = threading.Timer,
    ) -> None:
        """Initialize the lifecycle in the Idle state.

        Args:
            alarm: Audible-alarm trigger, called once per matching event
            notifier: System-notification trigger, called once per matching event
            dwell_seconds: How long an alert stays active
            clock: Returns the current time (for deadlines)
            timer_factory: threading.Timer-compatible factory
        """
        self._alarm = alarm
        self._notifier = notifier
        self._dwell_seconds = dwell_seconds
        self._clock = clock
        self._timer_factory = timer_factory

        self._lock = threading.Lock()
        self._active: ActiveAlert | None = None
        self._timer: Any = None
        self._generation = 0
        self._closed = False
        # Transition counter; listeners only ever see increasing values
        self._transitions = 0
        self._delivered = 0
        self._listener_lock = threading.RLock()
        self._listeners: list[Callable[[ActiveAlert | None], Any]] = []

    @property
    def active(self) -> ActiveAlert | None:
        """The active alert, or None when idle."""
        with self._lock:
            return self._active

    def add_listener(self, listener: Callable[[ActiveAlert | None], Any]) -> None:
        """Register a callback for Active/Idle transitions (banner state)."""
        self._listeners.append(listener)

    def fire(self, matches: list[SeismicEvent]) -> ActiveAlert | None:
        """Surface the events that matched this cycle.

        Args:
            matches: Novel events that passed the notification rules

        Returns:
            The active alert after this call
        """
        if not matches:
            return self.active

        headline = select_headline(matches)
        changed = None
        seq = 0

        with self._lock:
            if self._closed:
                logger.warning("Ignoring %d alert(s) after shutdown", len(matches))
                return None

            current = self._active
            if current is None or alert_rank(headline) >= alert_rank(current.event):
                changed = self._activate(headline)
                seq = self._next_transition()

            active = self._active

        if changed is not None:
            logger.info(
                "Active alert: M%.1f %s (until %s)",
                changed.event.magnitude,
                changed.event.place,
                changed.deadline.isoformat(),
            )
            self._notify_listeners(changed, seq)

        for event in matches:
            self._invoke("alarm", self._alarm, event)
            self._invoke("notifier", self._notifier, event)

        return active

    def dismiss(self) -> bool:
        """Clear the active alert immediately.

        Returns:
            True if an alert was cleared
        """
        with self._lock:
            if self._active is None:
                return False
            self._clear()
            seq = self._next_transition()

        logger.info("Alert dismissed")
        self._notify_listeners(None, seq)
        return True

    def shutdown(self) -> None:
        """Cancel the dwell timer and clear the alert for teardown."""
        with self._lock:
            self._closed = True
            was_active = self._active is not None
            self._clear()
            seq = self._next_transition()

        if was_active:
            self._notify_listeners(None, seq)

    def _activate(self, event: SeismicEvent) -> ActiveAlert:
        """Hold an event and (re)start the dwell timer. Caller holds the lock."""
        self._cancel_timer()
        self._generation += 1

        now = self._clock()
        self._active = ActiveAlert(
            event=event,
            activated_at=now,
            deadline=now + timedelta(seconds=self._dwell_seconds),
        )

        timer = self._timer_factory(
            self._dwell_seconds,
            self._expire,
            args=(self._generation,),
        )
        timer.daemon = True
        timer.start()
        self._timer = timer

        return self._active

    def _clear(self) -> None:
        """Return to Idle. Caller holds the lock."""
        self._cancel_timer()
        self._generation += 1
        self._active = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire(self, generation: int) -> None:
        """Dwell timer callback."""
        with self._lock:
            # A newer alert (or a dismiss) superseded this timer
            if generation != self._generation or self._active is None:
                return
            self._active = None
            self._timer = None
            seq = self._next_transition()

        logger.info("Alert expired")
        self._notify_listeners(None, seq)

    def _next_transition(self) -> int:
        """Number the transition just made. Caller holds the lock."""
        self._transitions += 1
        return self._transitions

    def _notify_listeners(self, alert: ActiveAlert | None, seq: int) -> None:
        """Deliver a transition unless a later one was already delivered."""
        with self._listener_lock:
            if seq <= self._delivered:
                logger.debug("Dropping stale alert transition %d", seq)
                return
            self._delivered = seq
            for listener in list(self._listeners):
                self._invoke("listener", listener, alert)

    def _invoke(self, name: str, callback: Callable[..., Any] | None, arg: Any) -> None:
        if callback is None:
            return
        try:
            callback(arg)
        except Exception:
            logger.exception("Alert %s failed", name)
