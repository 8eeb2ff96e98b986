"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from quakewatch.core.rules import (
    DEFAULT_RADIUS_KM,
    GeofencedScope,
    NotificationSettings,
    PlaceListScope,
)


# INGV FDSN event web service
DEFAULT_FEED_URL = "https://webservices.ingv.it/fdsnws/event/1/query"


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        feed_url: FDSN event service endpoint (GeoJSON output)
        lookback_days: Trailing window fetched on every poll
        min_fetch_magnitude: Minimum magnitude requested from the feed
        request_timeout_seconds: HTTP timeout for feed requests
        polling_interval_seconds: Seconds between polling cycles
        alert_dwell_seconds: How long an in-app alert stays active
        display_timezone: IANA timezone used to group events by day
        display_radius_km: Radius used by the "near me" display filter
        notifications: Notification settings at startup
        webhook_url: Webhook for system notifications (None disables)
        audible_alarm: Whether to ring the terminal bell on alerts
    """
    feed_url: str = DEFAULT_FEED_URL
    lookback_days: int = 3
    min_fetch_magnitude: float = 0.0
    request_timeout_seconds: int = 30
    polling_interval_seconds: int = 60
    alert_dwell_seconds: float = 8.0
    display_timezone: str = "Europe/Rome"
    display_radius_km: float = DEFAULT_RADIUS_KM
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    webhook_url: str | None = None
    audible_alarm: bool = True


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_notification_settings(
    settings: NotificationSettings,
    field_name: str = "notifications",
) -> list[ValidationError]:
    """Validate notification settings.

    Pure function.

    Args:
        settings: Settings to validate
        field_name: Name of the field for error messages

    Returns:
        List of validation errors/warnings
    """
    errors = []

    if settings.min_magnitude < 0 or settings.min_magnitude > 10:
        errors.append(ValidationError(
            field=f"{field_name}.min_magnitude",
            message=f"Minimum magnitude {settings.min_magnitude} out of range [0, 10]",
        ))

    scope = settings.scope
    if isinstance(scope, GeofencedScope) and scope.radius_km <= 0:
        errors.append(ValidationError(
            field=f"{field_name}.geofence_radius_km",
            message=f"Geofence radius must be positive, got {scope.radius_km}",
        ))

    if isinstance(scope, PlaceListScope) and not scope.parsed_terms:
        errors.append(ValidationError(
            field=f"{field_name}.place_terms",
            message="Place scope has no terms, no event will ever notify",
            severity="warning",
        ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if config.polling_interval_seconds <= 0:
        errors.append(ValidationError(
            field="polling_interval_seconds",
            message=f"Polling interval must be positive, got {config.polling_interval_seconds}",
        ))

    if config.lookback_days <= 0:
        errors.append(ValidationError(
            field="lookback_days",
            message=f"Lookback window must be positive, got {config.lookback_days}",
        ))

    if config.alert_dwell_seconds <= 0:
        errors.append(ValidationError(
            field="alert_dwell_seconds",
            message=f"Alert dwell time must be positive, got {config.alert_dwell_seconds}",
        ))

    if config.display_radius_km <= 0:
        errors.append(ValidationError(
            field="display_radius_km",
            message=f"Display radius must be positive, got {config.display_radius_km}",
        ))

    errors.extend(validate_notification_settings(config.notifications))

    # Warn about unresolved webhook placeholder
    if config.webhook_url and config.webhook_url.startswith("${"):
        errors.append(ValidationError(
            field="webhook_url",
            message="Webhook URL not resolved (still contains placeholder)",
            severity="warning",
        ))

    if config.notifications.enabled and not config.webhook_url and not config.audible_alarm:
        errors.append(ValidationError(
            field="notifications",
            message="Notifications enabled but no webhook or audible alarm configured",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
