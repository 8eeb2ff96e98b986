"""Command-line entry point.

Runs a monitoring session in the foreground: one polling cycle
immediately, then one per configured interval, until interrupted.
With --once, runs a single cycle and prints its result as JSON.
"""

import argparse
import json
import logging
import os
import sys
import threading

from quakewatch.session import MonitorSession
from quakewatch.shell.config_loader import load_config, load_config_from_env


logger = logging.getLogger(__name__)


def _get_config(config_path: str | None):
    """Load configuration from file or environment."""
    if config_path:
        return load_config(config_path)
    elif os.environ.get("CONFIG_PATH"):
        return load_config()
    elif os.environ.get("NOTIFY_ENABLED"):
        # Simple env-based config
        return load_config_from_env()
    else:
        # Try default config path
        return load_config()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Monitor the INGV seismic feed and alert on new events",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML config file (default: $CONFIG_PATH or config/config.yaml)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single polling cycle and print the result",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        session = MonitorSession(_get_config(args.config))
    except ValueError as e:
        logger.error("Cannot start: %s", e)
        return 2

    if args.once:
        result = session.run_cycle()
        session.stop()
        print(json.dumps({
            "status": "success" if result.success else "error",
            "summary": result.summary,
            "events_fetched": result.events_fetched,
            "events_new": len(result.novel_events),
            "events_matched": len(result.matched_events),
            "bootstrap": result.is_bootstrap,
        }, indent=2))
        return 0 if result.success else 1

    session.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        session.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
