"""Notification and display rule evaluation - Pure functions.

This module decides which events should trigger notifications, based on
the user's notification scope and magnitude floor, and which events pass
the (independently configured) display filter. All functions are pure
with no side effects.
"""

from dataclasses import dataclass

from quakewatch.core.event import SeismicEvent
from quakewatch.core.geo import Coordinate, is_within_radius
from quakewatch.core.places import parse_place_terms, place_matches_terms


# Default radius used for "near me" scopes and filters
DEFAULT_RADIUS_KM = 50.0


@dataclass(frozen=True)
class GlobalScope:
    """Notify for events anywhere in the feed."""


@dataclass(frozen=True)
class GeofencedScope:
    """Notify for events within a radius of the user's last known position.

    The center is not stored here: it's whatever the location cell holds
    when the scope is evaluated.

    Attributes:
        radius_km: Geofence radius in kilometers (inclusive)
    """
    radius_km: float = DEFAULT_RADIUS_KM


@dataclass(frozen=True)
class PlaceListScope:
    """Notify for events whose place contains any of the given terms.

    Attributes:
        terms: Raw comma-separated terms as entered by the user
    """
    terms: str

    @property
    def parsed_terms(self) -> tuple[str, ...]:
        """Return the non-empty lowercase terms."""
        return parse_place_terms(self.terms)


NotificationScope = GlobalScope | GeofencedScope | PlaceListScope

# Names used by configuration and the HTTP API
SCOPE_MODES = ("global", "gps", "city")


@dataclass(frozen=True)
class NotificationSettings:
    """User notification preferences, read at the start of every cycle.

    Attributes:
        enabled: Master switch for notifications
        min_magnitude: Minimum magnitude to notify on (inclusive)
        scope: Where events must occur to notify
    """
    enabled: bool = False
    min_magnitude: float = 2.0
    scope: NotificationScope = GlobalScope()


@dataclass(frozen=True)
class DisplayFilter:
    """Filter applied to the event list shown to the user.

    Attributes:
        place_text: Comma-separated place terms ("" shows every place)
        center: Only show events within radius_km of this point (None disables)
        radius_km: Radius for the center filter
        min_magnitude: Hide weaker events (None shows every magnitude)
    """
    place_text: str = ""
    center: Coordinate | None = None
    radius_km: float = DEFAULT_RADIUS_KM
    min_magnitude: float | None = None


def build_scope(
    mode: str,
    place_terms: str = "",
    geofence_radius_km: float = DEFAULT_RADIUS_KM,
) -> NotificationScope:
    """Build a NotificationScope from its configuration form.

    Pure function.

    Args:
        mode: One of 'global', 'gps', 'city'
        place_terms: Comma-separated terms (used by 'city')
        geofence_radius_km: Radius in km (used by 'gps')

    Returns:
        The matching scope variant

    Raises:
        ValueError: If mode is unknown
    """
    normalized = mode.strip().lower()
    if normalized == "global":
        return GlobalScope()
    if normalized == "gps":
        return GeofencedScope(radius_km=float(geofence_radius_km))
    if normalized == "city":
        return PlaceListScope(terms=place_terms)
    raise ValueError(f"Unknown notification scope '{mode}', expected one of {SCOPE_MODES}")


def scope_mode(scope: NotificationScope) -> str:
    """Return the configuration name of a scope variant."""
    if isinstance(scope, GlobalScope):
        return "global"
    if isinstance(scope, GeofencedScope):
        return "gps"
    if isinstance(scope, PlaceListScope):
        return "city"
    raise TypeError(f"Unsupported notification scope: {scope!r}")


def matches_scope(
    event: SeismicEvent,
    scope: NotificationScope,
    user_location: Coordinate | None,
) -> bool:
    """Check if an event falls within a notification scope.

    Pure function.

    Returns False for a geofenced scope while the user's location is
    unknown: a location is never guessed.

    Raises:
        TypeError: If scope is not a known variant
    """
    if isinstance(scope, GlobalScope):
        return True

    if isinstance(scope, GeofencedScope):
        if user_location is None:
            return False
        return is_within_radius(event, user_location, scope.radius_km)

    if isinstance(scope, PlaceListScope):
        terms = scope.parsed_terms
        if not terms:
            return False
        return place_matches_terms(event.place, terms)

    raise TypeError(f"Unsupported notification scope: {scope!r}")


def matches_notification(
    event: SeismicEvent,
    scope: NotificationScope,
    min_magnitude: float,
    user_location: Coordinate | None,
) -> bool:
    """Evaluate if an event should trigger a notification.

    Pure function. The magnitude floor is checked first and fails closed,
    whatever the scope.

    Args:
        event: Event to evaluate
        scope: Notification scope
        min_magnitude: Minimum magnitude (inclusive)
        user_location: Last known user position, if any

    Returns:
        True if the event should notify
    """
    if event.magnitude < min_magnitude:
        return False

    return matches_scope(event, scope, user_location)


def find_notification_matches(
    events: list[SeismicEvent],
    settings: NotificationSettings,
    user_location: Coordinate | None,
) -> list[SeismicEvent]:
    """Filter events to only those that should notify.

    Pure function.

    Args:
        events: Candidate (usually novel) events
        settings: Current notification settings
        user_location: Last known user position, if any

    Returns:
        Matching events in input order (empty when notifications are disabled)
    """
    if not settings.enabled:
        return []

    return [
        e for e in events
        if matches_notification(e, settings.scope, settings.min_magnitude, user_location)
    ]


def matches_display_filter(event: SeismicEvent, display_filter: DisplayFilter) -> bool:
    """Check if an event passes the display filter.

    Pure function. All configured conditions must hold.
    """
    if display_filter.min_magnitude is not None and event.magnitude < display_filter.min_magnitude:
        return False

    terms = parse_place_terms(display_filter.place_text)
    if terms and not place_matches_terms(event.place, terms):
        return False

    if display_filter.center is not None:
        return is_within_radius(event, display_filter.center, display_filter.radius_km)

    return True


def apply_display_filter(
    events: list[SeismicEvent],
    display_filter: DisplayFilter | None,
) -> list[SeismicEvent]:
    """Filter events for display.

    Pure function. A None filter keeps every event.
    """
    if display_filter is None:
        return list(events)
    return [e for e in events if matches_display_filter(e, display_filter)]
