"""Feed Poller - drives polling cycles on a fixed interval.

Runs one cycle immediately on start, then one per interval. Cycles never
overlap: a tick that finds the previous cycle still in flight is skipped,
not queued, so the watermark always has a single writer.
"""

import logging
import threading
from typing import Any, Callable


logger = logging.getLogger(__name__)


DEFAULT_INTERVAL_SECONDS = 60.0


class FeedPoller:
    """Periodic, non-overlapping cycle runner."""

    def __init__(
        self,
        cycle: Callable[[], Any],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        on_error: Callable[[Exception], Any] | None = None,
        timer_factory: Callable[..., Any] = threading.Timer,
    ) -> None:
        """Initialize poller.

        Args:
            cycle: One fetch-and-process cycle
            interval_seconds: Seconds between ticks
            on_error: Observer for exceptions raised by a cycle
            timer_factory: threading.Timer-compatible factory
        """
        self._cycle = cycle
        self._interval = interval_seconds
        self._on_error = on_error
        self._timer_factory = timer_factory

        self._state_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._timer: Any = None
        self._running = False

        self.cycles_run = 0
        self.ticks_skipped = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start polling: an immediate cycle, then one per interval.

        Calling start() on a running poller does nothing.
        """
        with self._state_lock:
            if self._running:
                return
            self._running = True
            self._schedule(0.0)

        logger.info("Polling started (every %.0fs)", self._interval)

    def stop(self) -> None:
        """Cancel the timer. Safe to call repeatedly or before start()."""
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        logger.info("Polling stopped")

    def run_cycle(self) -> bool:
        """Run one cycle now unless another is in flight.

        Returns:
            True if the cycle ran, False if it was skipped
        """
        if not self._cycle_lock.acquire(blocking=False):
            self.ticks_skipped += 1
            logger.warning("Previous cycle still running, skipping tick")
            return False

        try:
            self._cycle()
            self.cycles_run += 1
        except Exception as e:
            logger.exception("Polling cycle failed")
            if self._on_error is not None:
                try:
                    self._on_error(e)
                except Exception:
                    logger.exception("Error observer failed")
        finally:
            self._cycle_lock.release()

        return True

    def _schedule(self, delay: float) -> None:
        """Arm the timer for the next tick. Caller holds the state lock."""
        timer = self._timer_factory(delay, self._tick)
        timer.daemon = True
        timer.start()
        self._timer = timer

    def _tick(self) -> None:
        # Re-arm first so ticks keep their cadence while a slow cycle runs
        with self._state_lock:
            if not self._running:
                return
            self._schedule(self._interval)

        self.run_cycle()
