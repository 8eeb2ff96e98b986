"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Event data parsing (UTC normalization)
- Geo/distance calculations
- Place name normalization
- Notification scope and display filter evaluation
- Watermark-based novelty detection
- Chronological grouping and statistics
- Message formatting

All functions here are deterministic and have no I/O.
"""

from quakewatch.core.event import SeismicEvent, parse_events
from quakewatch.core.geo import Coordinate, calculate_distance, distance_km, is_within_radius
from quakewatch.core.places import normalize_place, parse_place_terms
from quakewatch.core.rules import (
    DisplayFilter,
    GeofencedScope,
    GlobalScope,
    NotificationSettings,
    PlaceListScope,
    find_notification_matches,
    matches_notification,
)
from quakewatch.core.watermark import WatermarkTracker, diff_snapshot
from quakewatch.core.grouping import EventCache, GroupedView, project_snapshot
from quakewatch.core.formatter import format_notification, format_webhook_message

__all__ = [
    # Event
    "SeismicEvent",
    "parse_events",
    # Geo
    "Coordinate",
    "calculate_distance",
    "distance_km",
    "is_within_radius",
    # Places
    "normalize_place",
    "parse_place_terms",
    # Rules
    "DisplayFilter",
    "GeofencedScope",
    "GlobalScope",
    "NotificationSettings",
    "PlaceListScope",
    "find_notification_matches",
    "matches_notification",
    # Watermark
    "WatermarkTracker",
    "diff_snapshot",
    # Grouping
    "EventCache",
    "GroupedView",
    "project_snapshot",
    # Formatter
    "format_notification",
    "format_webhook_message",
]
