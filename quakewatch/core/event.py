"""Seismic event data model and parsing - Pure functions.

This module handles parsing INGV FDSN GeoJSON data into typed SeismicEvent
objects. All functions are pure with no side effects.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeismicEvent:
    """Immutable seismic event data model.

    Attributes:
        id: Unique feed event ID
        magnitude: Event magnitude
        place: Human-readable location description (may carry a "5 km SW" prefix)
        time: Event timestamp (UTC)
        latitude: Epicenter latitude, None if the feed omitted coordinates
        longitude: Epicenter longitude, None if the feed omitted coordinates
        depth_km: Depth in kilometers (may be negative)
        kind: Event type (e.g., 'earthquake', 'quarry blast')
        mag_type: Magnitude type (e.g., 'ML', 'Mw')
        url: Event detail URL
    """
    id: str
    magnitude: float
    place: str
    time: datetime
    latitude: float | None
    longitude: float | None
    depth_km: float
    kind: str = "earthquake"
    mag_type: str = "ML"
    url: str = ""

    @property
    def has_location(self) -> bool:
        """Return True if the event carries usable coordinates."""
        return self.latitude is not None and self.longitude is not None

    @property
    def coordinates(self) -> tuple[float, float] | None:
        """Return (latitude, longitude) tuple, or None without coordinates."""
        if not self.has_location:
            return None
        return (self.latitude, self.longitude)


def parse_event_time(value: Any) -> datetime | None:
    """Parse a feed timestamp into a UTC datetime.

    Pure function.

    INGV sends ISO-8601 text without a UTC marker
    (e.g. "2024-03-01T10:00:00.120000"). Naive timestamps are forced to UTC,
    never interpreted as local time. Millisecond epoch numbers are accepted too.

    Args:
        value: ISO string or milliseconds since epoch

    Returns:
        Timezone-aware UTC datetime, or None if the value can't be parsed
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


def parse_event(feature: dict[str, Any]) -> SeismicEvent | None:
    """Parse a single GeoJSON feature into a SeismicEvent.

    Pure function: takes raw dict, returns typed SeismicEvent or None if invalid.

    Features without coordinates are kept (with latitude/longitude None) so
    they still show up in lists; they are only excluded from distance checks.

    Args:
        feature: GeoJSON feature dict from the feed

    Returns:
        SeismicEvent object or None if parsing fails
    """
    try:
        props = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        coords = geometry.get("coordinates") or []

        event_id = feature.get("id") or props.get("eventId")
        if not event_id:
            return None

        event_time = parse_event_time(props.get("time"))
        if event_time is None:
            return None

        magnitude = props.get("mag")
        if magnitude is None:
            return None

        longitude = _optional_float(coords[0]) if len(coords) > 0 else None
        latitude = _optional_float(coords[1]) if len(coords) > 1 else None
        depth = _optional_float(coords[2]) if len(coords) > 2 else None

        return SeismicEvent(
            id=str(event_id),
            magnitude=float(magnitude),
            place=props.get("place") or "Unknown location",
            time=event_time,
            latitude=latitude,
            longitude=longitude,
            depth_km=depth if depth is not None else 0.0,
            kind=props.get("type") or "earthquake",
            mag_type=props.get("magType") or "ML",
            url=props.get("url") or "",
        )
    except (KeyError, TypeError, ValueError, AttributeError):
        return None


def parse_events(geojson: dict[str, Any]) -> list[SeismicEvent]:
    """Parse a GeoJSON FeatureCollection into a list of SeismicEvents.

    Pure function: filters out invalid features, preserves feed order.

    Args:
        geojson: Full GeoJSON FeatureCollection from the feed

    Returns:
        List of valid SeismicEvent objects

    Raises:
        ValueError: If the payload is not a FeatureCollection-like mapping
    """
    if not isinstance(geojson, dict):
        raise ValueError("Feed payload is not a JSON object")

    features = geojson.get("features", [])
    if not isinstance(features, list):
        raise ValueError("Feed payload 'features' is not a list")

    events = []
    for feature in features:
        event = parse_event(feature) if isinstance(feature, dict) else None
        if event is None:
            logger.debug("Skipping malformed feature: %r", feature)
            continue
        events.append(event)

    return events
