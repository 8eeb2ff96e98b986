"""Quakewatch API - FastAPI service around a monitoring session.

Serves the grouped event view, the active alert, statistics, and lets
clients push the user's location and change notification settings.
Polling runs in the background for the lifetime of the app.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone, tzinfo
from typing import Any, Literal

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from quakewatch.alert_lifecycle import ActiveAlert
from quakewatch.core.config import validate_notification_settings
from quakewatch.core.event import SeismicEvent
from quakewatch.core.formatter import format_relative_time, format_share_text
from quakewatch.core.geo import Coordinate, distance_to_event
from quakewatch.core.places import normalize_place
from quakewatch.core.rules import (
    DisplayFilter,
    GeofencedScope,
    NotificationSettings,
    PlaceListScope,
    build_scope,
    scope_mode,
)
from quakewatch.session import MonitorSession
from quakewatch.shell.config_loader import load_config, load_config_from_env


log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ===== Request Models =====

class LocationUpdate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class NotificationSettingsUpdate(BaseModel):
    enabled: bool
    min_magnitude: float = Field(default=2.0, ge=0, le=10)
    scope: Literal["global", "gps", "city"] = "global"
    place_terms: str = ""
    geofence_radius_km: float = Field(default=50.0, gt=0)


# ===== Serialization =====

def _event_to_dict(
    event: SeismicEvent,
    now: datetime,
    user_location: Coordinate | None = None,
    gap: str | None = None,
    tz: tzinfo = timezone.utc,
) -> dict[str, Any]:
    """Convert an event to a JSON-friendly dict."""
    distance = distance_to_event(event, user_location) if user_location else None
    return {
        "id": event.id,
        "magnitude": event.magnitude,
        "mag_type": event.mag_type,
        "place": event.place,
        "place_name": normalize_place(event.place),
        "time": event.time.isoformat(),
        "relative_time": format_relative_time(event.time, now),
        "latitude": event.latitude,
        "longitude": event.longitude,
        "depth_km": event.depth_km,
        "kind": event.kind,
        "url": event.url,
        "distance_km": round(distance, 1) if distance is not None else None,
        "gap": gap,
        "share_text": format_share_text(event, tz, event.url),
    }


def _alert_to_dict(alert: ActiveAlert | None, tz: tzinfo = timezone.utc) -> dict[str, Any] | None:
    if alert is None:
        return None
    now = datetime.now(timezone.utc)
    return {
        "event": _event_to_dict(alert.event, now, tz=tz),
        "activated_at": alert.activated_at.isoformat(),
        "deadline": alert.deadline.isoformat(),
    }


def _settings_to_dict(settings: NotificationSettings) -> dict[str, Any]:
    scope = settings.scope
    return {
        "enabled": settings.enabled,
        "min_magnitude": settings.min_magnitude,
        "scope": scope_mode(scope),
        "place_terms": scope.terms if isinstance(scope, PlaceListScope) else "",
        "geofence_radius_km": scope.radius_km if isinstance(scope, GeofencedScope) else None,
    }


def _load_session() -> MonitorSession:
    """Build a session from CONFIG_PATH, or from env vars without one."""
    if os.environ.get("CONFIG_PATH") or os.path.exists("config/config.yaml"):
        config = load_config()
    else:
        config = load_config_from_env()
    return MonitorSession(config)


def create_app(session: MonitorSession | None = None, start_polling: bool = True) -> FastAPI:
    """Create the API app around a monitoring session.

    Args:
        session: Session to serve (built from configuration if not provided)
        start_polling: Start/stop the session's poller with the app

    Returns:
        FastAPI application
    """
    session = session or _load_session()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_polling:
            session.start()
        try:
            yield
        finally:
            session.stop()

    app = FastAPI(
        title="Quakewatch API",
        description="Live seismic event monitoring with scoped alerts",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    orchestrator = session.orchestrator

    def _display_filter(
        q: str,
        lat: float | None,
        lng: float | None,
        radius_km: float | None,
        near_me: bool,
        min_magnitude: float | None,
    ) -> DisplayFilter:
        center = None
        if lat is not None and lng is not None:
            center = Coordinate(latitude=lat, longitude=lng)
        elif near_me:
            center = orchestrator.location.get()
            if center is None:
                raise HTTPException(status_code=409, detail="User location is unknown")

        return DisplayFilter(
            place_text=q,
            center=center,
            radius_km=radius_km or session.config.display_radius_km,
            min_magnitude=min_magnitude,
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        last = session.last_result
        return {
            "status": "healthy",
            "polling": session.poller.is_running,
            "loaded": orchestrator.cache.has_data,
            "watermark": orchestrator.tracker.watermark.isoformat()
            if orchestrator.tracker.watermark else None,
            "bootstrapped": orchestrator.tracker.is_bootstrapped,
            "last_cycle": last.summary if last else None,
        }

    @app.get("/api-events")
    async def get_events(
        q: str = "",
        lat: float | None = Query(default=None, ge=-90, le=90),
        lng: float | None = Query(default=None, ge=-180, le=180),
        radius_km: float | None = Query(default=None, gt=0),
        near_me: bool = False,
        min_magnitude: float | None = None,
        gaps: bool = True,
    ):
        """Get the latest snapshot, grouped by day, newest first."""
        display_filter = _display_filter(q, lat, lng, radius_km, near_me, min_magnitude)
        view = orchestrator.grouped_view(display_filter, include_gaps=gaps)
        now = datetime.now(timezone.utc)
        user_location = display_filter.center or orchestrator.location.get()

        return {
            "loaded": orchestrator.cache.has_data,
            "fetched_at": orchestrator.cache.fetched_at.isoformat()
            if orchestrator.cache.fetched_at else None,
            "count": len(view.events),
            "groups": [
                {
                    "key": group.key,
                    "label": group.label,
                    "date": group.day.isoformat(),
                    "events": [
                        _event_to_dict(
                            e, now, user_location, view.gaps.get(e.id), orchestrator.tz
                        )
                        for e in group.events
                    ],
                }
                for group in view.groups
            ],
        }

    @app.get("/api-stats")
    async def get_stats(
        q: str = "",
        lat: float | None = Query(default=None, ge=-90, le=90),
        lng: float | None = Query(default=None, ge=-180, le=180),
        radius_km: float | None = Query(default=None, gt=0),
        near_me: bool = False,
        min_magnitude: float | None = None,
    ):
        """Get statistics for the (filtered) latest snapshot."""
        display_filter = _display_filter(q, lat, lng, radius_km, near_me, min_magnitude)
        stats = orchestrator.statistics(display_filter)
        now = datetime.now(timezone.utc)

        return {
            "count": stats.count,
            "average_magnitude": stats.average_magnitude,
            "strongest": _event_to_dict(stats.strongest, now, tz=orchestrator.tz) if stats.strongest else None,
            "daily_counts": [
                {"date": d.day.isoformat(), "count": d.count, "max_magnitude": d.max_magnitude}
                for d in stats.daily_counts
            ],
            "magnitude_distribution": [
                {"range": b.label, "count": b.count}
                for b in stats.magnitude_distribution
            ],
        }

    @app.get("/api-alert")
    async def get_alert():
        """Get the active alert (null when idle)."""
        return {"alert": _alert_to_dict(session.alerts.active, orchestrator.tz)}

    @app.delete("/api-alert")
    async def dismiss_alert():
        """Dismiss the active alert."""
        return {"dismissed": session.alerts.dismiss()}

    @app.put("/api-location")
    async def set_location(update: LocationUpdate):
        """Store the user's current position."""
        location = Coordinate(latitude=update.latitude, longitude=update.longitude)
        orchestrator.location.set(location)
        logger.info("User location updated")
        return {"latitude": location.latitude, "longitude": location.longitude}

    @app.delete("/api-location")
    async def clear_location():
        """Forget the user's position."""
        orchestrator.location.set(None)
        return {"latitude": None, "longitude": None}

    @app.get("/api-notification-settings")
    async def get_notification_settings():
        """Get the current notification settings."""
        return _settings_to_dict(orchestrator.notification_settings)

    @app.put("/api-notification-settings")
    async def update_notification_settings(update: NotificationSettingsUpdate):
        """Replace the notification settings; applied from the next cycle."""
        settings = NotificationSettings(
            enabled=update.enabled,
            min_magnitude=update.min_magnitude,
            scope=build_scope(update.scope, update.place_terms, update.geofence_radius_km),
        )

        errors = [
            e for e in validate_notification_settings(settings)
            if e.severity == "error"
        ]
        if errors:
            raise HTTPException(status_code=400, detail="; ".join(e.message for e in errors))

        orchestrator.notification_settings = settings
        logger.info("Notification settings updated: %s", _settings_to_dict(settings))
        return _settings_to_dict(settings)

    return app


app = create_app()
