"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- INGV FDSN client (HTTP)
- Alert collaborators: terminal bell, webhook notifications (HTTP)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from quakewatch.shell.ingv_client import INGVClient
from quakewatch.shell.notifiers import AudibleAlarm, WebhookNotifier
from quakewatch.shell.config_loader import load_config, Config

__all__ = [
    "INGVClient",
    "AudibleAlarm",
    "WebhookNotifier",
    "load_config",
    "Config",
]
