"""Alert collaborators - Imperative Shell.

The alert lifecycle hands every matching event to two collaborators:
an audible alarm and a system notification. These are the default
implementations: a terminal bell and a Slack-compatible webhook post.
"""

import logging
import sys
from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import TextIO

import requests

from quakewatch.core.event import SeismicEvent
from quakewatch.core.formatter import format_event_summary, format_webhook_message


logger = logging.getLogger(__name__)


# Default timeout for webhook requests (seconds)
DEFAULT_TIMEOUT = 10

BELL = "\a"


@dataclass
class WebhookResponse:
    """Response from a webhook.

    Attributes:
        success: Whether the message was sent successfully
        status_code: HTTP status code (0 when no response was received)
        error: Error message if failed
    """
    success: bool
    status_code: int
    error: str | None = None


class AudibleAlarm:
    """Rings the terminal bell once per alerted event."""

    def __init__(self, stream: TextIO | None = None, tz: tzinfo = timezone.utc) -> None:
        """Initialize alarm.

        Args:
            stream: Where to write the bell (defaults to stdout)
            tz: Timezone used in the log line
        """
        self.stream = stream
        self.tz = tz

    def __call__(self, event: SeismicEvent) -> None:
        stream = self.stream or sys.stdout
        stream.write(BELL)
        stream.flush()
        logger.info("Alarm: %s", format_event_summary(event, self.tz))


class WebhookNotifier:
    """Posts a system notification for each alerted event to a webhook.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        webhook_url: str,
        tz: tzinfo = timezone.utc,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize webhook notifier.

        Args:
            webhook_url: Incoming webhook URL
            tz: Timezone used for displayed times
            timeout: Request timeout in seconds
            session: HTTP session (created if not provided)
        """
        self.webhook_url = webhook_url
        self.tz = tz
        self.timeout = timeout
        self.session = session or requests.Session()

    def __call__(self, event: SeismicEvent) -> WebhookResponse:
        return self.send(event)

    def send(self, event: SeismicEvent) -> WebhookResponse:
        """Post a notification for an event.

        This method performs HTTP I/O. Failures are logged and reported
        in the response, never raised.

        Args:
            event: Event to notify about

        Returns:
            WebhookResponse indicating success or failure
        """
        payload = format_webhook_message(event, self.tz)

        try:
            response = self.session.post(
                self.webhook_url,
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error("Webhook request timed out for event %s", event.id)
            return WebhookResponse(success=False, status_code=0, error="Request timed out")
        except requests.RequestException as e:
            logger.error("Webhook request failed for event %s: %s", event.id, e)
            return WebhookResponse(success=False, status_code=0, error=str(e))

        if not response.ok:
            logger.warning(
                "Webhook returned %d for event %s: %s",
                response.status_code,
                event.id,
                response.text,
            )
            return WebhookResponse(
                success=False,
                status_code=response.status_code,
                error=response.text,
            )

        logger.info("Notification sent for M%.1f %s", event.magnitude, event.place)
        return WebhookResponse(success=True, status_code=response.status_code)


class LogNotifier:
    """System-notification stand-in used when no webhook is configured."""

    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        self.tz = tz

    def __call__(self, event: SeismicEvent) -> None:
        logger.warning("New event: %s", format_event_summary(event, self.tz))
