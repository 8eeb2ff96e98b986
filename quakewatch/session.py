"""Monitor Session - builds and tears down a monitored session.

A session owns one orchestrator, its alert lifecycle and collaborators,
and the poller that drives it. Stopping the session cancels both the
poll timer and any pending alert dwell timer.
"""

import logging

from quakewatch.alert_lifecycle import AlertLifecycle
from quakewatch.core.config import Config, validate_config
from quakewatch.orchestrator import CycleResult, Orchestrator, resolve_timezone
from quakewatch.poller import FeedPoller
from quakewatch.shell.ingv_client import INGVClient
from quakewatch.shell.notifiers import AudibleAlarm, LogNotifier, WebhookNotifier


logger = logging.getLogger(__name__)


def build_alert_lifecycle(config: Config) -> AlertLifecycle:
    """Create the alert lifecycle with the configured collaborators."""
    tz = resolve_timezone(config.display_timezone)

    alarm = AudibleAlarm(tz=tz) if config.audible_alarm else None

    if config.webhook_url:
        notifier = WebhookNotifier(config.webhook_url, tz=tz)
    else:
        notifier = LogNotifier(tz=tz)

    return AlertLifecycle(
        alarm=alarm,
        notifier=notifier,
        dwell_seconds=config.alert_dwell_seconds,
    )


class MonitorSession:
    """A running (or runnable) monitoring session."""

    def __init__(
        self,
        config: Config,
        orchestrator: Orchestrator | None = None,
        poller: FeedPoller | None = None,
    ) -> None:
        """Initialize session.

        Args:
            config: Application configuration
            orchestrator: Orchestrator (built from config if not provided)
            poller: Poller (built around the orchestrator if not provided)
        """
        validation = validate_config(config)
        for error in validation.errors:
            log = logger.error if error.severity == "error" else logger.warning
            log("Config %s: %s", error.field, error.message)
        if not validation.valid:
            raise ValueError(
                "Invalid configuration: "
                + "; ".join(e.message for e in validation.critical_errors)
            )

        self.config = config
        self.orchestrator = orchestrator or Orchestrator(
            config,
            feed_client=INGVClient(
                base_url=config.feed_url,
                timeout=config.request_timeout_seconds,
            ),
            alerts=build_alert_lifecycle(config),
        )
        self.poller = poller or FeedPoller(
            self.run_cycle,
            interval_seconds=config.polling_interval_seconds,
            on_error=self._on_cycle_error,
        )
        self.last_result: CycleResult | None = None

    @property
    def alerts(self) -> AlertLifecycle:
        return self.orchestrator.alerts

    def run_cycle(self) -> CycleResult:
        """Run one polling cycle and remember its result."""
        result = self.orchestrator.process()
        self.last_result = result
        logger.info("Completed: %s", result.summary)
        return result

    def _on_cycle_error(self, error: Exception) -> None:
        logger.error("Polling cycle raised: %s", error)
        self.last_result = CycleResult(error=f"Cycle failed: {error}")

    def start(self) -> None:
        """Start polling."""
        self.poller.start()

    def stop(self) -> None:
        """Stop polling, discard in-flight cycles and cancel any pending alert timer."""
        self.poller.stop()
        self.orchestrator.close()
        self.orchestrator.alerts.shutdown()
