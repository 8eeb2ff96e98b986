"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, NotificationSettings) are defined in quakewatch/core
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from quakewatch.core.config import Config, DEFAULT_FEED_URL
from quakewatch.core.rules import DEFAULT_RADIUS_KM, NotificationSettings, build_scope


logger = logging.getLogger(__name__)


def _resolve_value(value: Any) -> Any:
    """Resolve a value that may contain an environment variable placeholder.

    Args:
        value: Value to resolve (may be a "${VAR}" placeholder)

    Returns:
        Resolved value, or the original placeholder if VAR is not set
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _parse_bool(value: Any, default: bool = False) -> bool:
    """Parse a boolean from YAML or environment text."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def parse_notification_settings(data: dict[str, Any]) -> NotificationSettings:
    """Parse notification settings from config data.

    Args:
        data: Mapping with enabled, min_magnitude, scope, place_terms,
              geofence_radius_km

    Returns:
        NotificationSettings

    Raises:
        ValueError: If the scope mode is unknown or a number is invalid
    """
    scope = build_scope(
        str(data.get("scope", "global")),
        place_terms=str(data.get("place_terms") or ""),
        geofence_radius_km=float(data.get("geofence_radius_km", DEFAULT_RADIUS_KM)),
    )

    return NotificationSettings(
        enabled=_parse_bool(data.get("enabled"), default=False),
        min_magnitude=float(data.get("min_magnitude", 2.0)),
        scope=scope,
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    feed = data.get("feed", {}) or {}
    display = data.get("display", {}) or {}
    alerts = data.get("alerts", {}) or {}

    webhook_url = alerts.get("webhook_url")
    if webhook_url:
        webhook_url = _resolve_value(webhook_url)

    return Config(
        feed_url=_resolve_value(feed.get("url", DEFAULT_FEED_URL)),
        lookback_days=int(feed.get("lookback_days", 3)),
        min_fetch_magnitude=float(feed.get("min_magnitude", 0.0)),
        request_timeout_seconds=int(feed.get("timeout_seconds", 30)),
        polling_interval_seconds=int(data.get("polling_interval_seconds", 60)),
        alert_dwell_seconds=float(alerts.get("dwell_seconds", 8.0)),
        display_timezone=display.get("timezone", "Europe/Rome"),
        display_radius_km=float(display.get("radius_km", DEFAULT_RADIUS_KM)),
        notifications=parse_notification_settings(data.get("notifications", {}) or {}),
        webhook_url=webhook_url or None,
        audible_alarm=_parse_bool(alerts.get("audible_alarm"), default=True),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
        ValueError: If a value can't be parsed
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: polling every %ds, notifications %s (M%.1f+)",
        config.polling_interval_seconds,
        "enabled" if config.notifications.enabled else "disabled",
        config.notifications.min_magnitude,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        NOTIFY_ENABLED: Enable notifications ("true"/"false")
        MIN_MAGNITUDE: Minimum magnitude to notify on
        NOTIFY_MODE: global, gps or city
        NOTIFY_PLACES: Comma-separated place terms (city mode)
        NOTIFY_RADIUS_KM: Geofence radius (gps mode)
        ALERT_WEBHOOK_URL: Webhook for system notifications
        POLL_INTERVAL_SECONDS: Seconds between polls
        LOOKBACK_DAYS: Trailing window fetched on every poll
        DISPLAY_TIMEZONE: IANA timezone for day grouping

    Returns:
        Config object from environment
    """
    notifications = parse_notification_settings({
        "enabled": os.environ.get("NOTIFY_ENABLED", "false"),
        "min_magnitude": os.environ.get("MIN_MAGNITUDE", "2.0"),
        "scope": os.environ.get("NOTIFY_MODE", "global"),
        "place_terms": os.environ.get("NOTIFY_PLACES", ""),
        "geofence_radius_km": os.environ.get("NOTIFY_RADIUS_KM", str(DEFAULT_RADIUS_KM)),
    })

    return Config(
        lookback_days=int(os.environ.get("LOOKBACK_DAYS", "3")),
        polling_interval_seconds=int(os.environ.get("POLL_INTERVAL_SECONDS", "60")),
        display_timezone=os.environ.get("DISPLAY_TIMEZONE", "Europe/Rome"),
        notifications=notifications,
        webhook_url=os.environ.get("ALERT_WEBHOOK_URL") or None,
    )
