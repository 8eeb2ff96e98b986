"""Geographic calculations - Pure functions.

This module provides distance calculations for event locations.
All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass

from quakewatch.core.event import SeismicEvent


# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    """A point on the Earth's surface.

    Attributes:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
    """
    latitude: float
    longitude: float


def calculate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate distance between two points using Haversine formula.

    Pure function.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    # Convert to radians
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    # Haversine formula
    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometers.

    Pure function. NaN inputs propagate NaN.
    """
    return calculate_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def distance_to_event(event: SeismicEvent, point: Coordinate) -> float | None:
    """Calculate distance from a point to an event's epicenter.

    Pure function.

    Args:
        event: The event
        point: Reference point (e.g., the user's position)

    Returns:
        Distance in kilometers, or None if the event has no coordinates
    """
    if not event.has_location:
        return None

    return calculate_distance(
        point.latitude,
        point.longitude,
        event.latitude,
        event.longitude,
    )


def is_within_radius(
    event: SeismicEvent,
    center: Coordinate,
    radius_km: float,
) -> bool:
    """Check if an event is within a radius of a point.

    Pure function. The boundary is inclusive; events without coordinates
    never match.

    Args:
        event: Event to check
        center: Center point
        radius_km: Radius in kilometers

    Returns:
        True if event is within radius
    """
    distance = distance_to_event(event, center)
    if distance is None:
        return False
    return distance <= radius_km
