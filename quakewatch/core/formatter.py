"""Message formatting - Pure functions.

This module formats event data into notification, webhook and share
messages, plus the short duration strings used by event lists.
All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any

from quakewatch.core.event import SeismicEvent
from quakewatch.core.places import normalize_place


@dataclass(frozen=True)
class NotificationMessage:
    """A system notification.

    Attributes:
        title: Notification title
        body: Notification body text
    """
    title: str
    body: str


def get_magnitude_emoji(magnitude: float) -> str:
    """Get an emoji representing event severity.

    Pure function.
    """
    if magnitude >= 5.0:
        return "🔴"
    elif magnitude >= 4.0:
        return "🟠"
    elif magnitude >= 3.0:
        return "🟡"
    elif magnitude >= 2.0:
        return "🟢"
    else:
        return "⚪"


def get_severity_label(magnitude: float) -> str:
    """Get a human-readable severity label.

    Pure function.
    """
    if magnitude >= 8.0:
        return "Great"
    elif magnitude >= 7.0:
        return "Major"
    elif magnitude >= 6.0:
        return "Strong"
    elif magnitude >= 5.0:
        return "Moderate"
    elif magnitude >= 4.0:
        return "Light"
    elif magnitude >= 3.0:
        return "Minor"
    else:
        return "Micro"


def format_gap(delta: timedelta) -> str:
    """Format the time between two consecutive events.

    Pure function.

    Args:
        delta: Elapsed time (negative values are treated as zero)

    Returns:
        "<m> min" below one hour, "<h> h <m> min" from one hour
    """
    minutes = max(0, int(delta.total_seconds() // 60))
    if minutes < 60:
        return f"{minutes} min"
    hours, minutes = divmod(minutes, 60)
    return f"{hours} h {minutes} min"


def format_relative_time(event_time: datetime, now: datetime) -> str:
    """Format how long ago an event happened.

    Pure function.

    Args:
        event_time: Event timestamp
        now: Current time

    Returns:
        e.g. "12 min ago", "3 h ago", "2 d ago"
    """
    minutes = max(0, int((now - event_time).total_seconds() // 60))
    if minutes < 60:
        return f"{minutes} min ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} h ago"
    return f"{hours // 24} d ago"


def format_notification(event: SeismicEvent) -> NotificationMessage:
    """Format an event as a system notification.

    Pure function.
    """
    return NotificationMessage(
        title=f"Earthquake: {event.place}",
        body=f"Magnitude {event.magnitude:.1f} - Depth {event.depth_km:.1f} km",
    )


def format_event_summary(event: SeismicEvent, tz: tzinfo = timezone.utc) -> str:
    """Format a one-line summary of an event.

    Pure function.

    Args:
        event: Event to summarize
        tz: Timezone used for the displayed time

    Returns:
        One-line summary string
    """
    local_time = event.time.astimezone(tz)
    time_str = local_time.strftime("%Y-%m-%d %H:%M:%S %Z")
    return (
        f"M{event.magnitude:.1f} - {normalize_place(event.place)} "
        f"at {time_str} (depth: {event.depth_km:.1f}km)"
    )


def format_share_text(
    event: SeismicEvent,
    tz: tzinfo = timezone.utc,
    url: str | None = None,
) -> str:
    """Format an event as a plain-text message for sharing.

    Pure function.

    Args:
        event: Event to share
        tz: Timezone used for the displayed time
        url: Optional link appended to the message

    Returns:
        Multi-line share text
    """
    local_time = event.time.astimezone(tz)
    lines = [
        "🔴 Seismic event detected",
        f"📍 {event.place}",
        f"📉 Magnitude: {event.magnitude:.1f}",
        f"🌍 Depth: {event.depth_km:.1f} km",
        f"🕒 Time: {local_time.strftime('%H:%M')}",
    ]
    text = "\n".join(lines)
    if url:
        text = f"{text}\n\nLive monitoring: {url}"
    return text


def format_webhook_message(
    event: SeismicEvent,
    tz: tzinfo = timezone.utc,
) -> dict[str, Any]:
    """Format an event as a Slack-compatible webhook payload.

    Pure function.

    Args:
        event: Event to format
        tz: Timezone used for the displayed time

    Returns:
        Webhook payload dict
    """
    notification = format_notification(event)
    local_time = event.time.astimezone(tz)
    emoji = get_magnitude_emoji(event.magnitude)

    text = f"{emoji} *{event.magnitude:.1f}* - {event.place}"

    location_text = event.place
    if event.has_location:
        maps_url = f"https://www.google.com/maps?q={event.latitude},{event.longitude}"
        location_text = f"<{maps_url}|{event.place}>"

    blocks: list[dict[str, Any]] = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": notification.title,
            },
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": (
                    f"{location_text} at {local_time.strftime('%H:%M %Z')}\n"
                    f"{notification.body} ({get_severity_label(event.magnitude)})"
                ),
            },
        },
    ]

    if event.kind and event.kind != "earthquake":
        blocks.append({
            "type": "context",
            "elements": [
                {"type": "mrkdwn", "text": f"Event type: {event.kind}"},
            ],
        })

    if event.url:
        blocks.append({
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "text": {
                        "type": "plain_text",
                        "text": "View event details",
                    },
                    "url": event.url,
                },
            ],
        })

    blocks.append({"type": "divider"})

    return {
        "text": text,
        "blocks": blocks,
    }
