"""quakewatch - seismic feed monitor with watermark-based alerting.

Layout follows a functional core / imperative shell split:
- quakewatch.core: pure business logic
- quakewatch.shell: HTTP clients, notifiers, configuration loading
- quakewatch.orchestrator, alert_lifecycle, poller, session: stateful wiring
"""

__version__ = "1.0.0"
