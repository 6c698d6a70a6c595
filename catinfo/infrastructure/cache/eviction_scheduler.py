"""Periodic expiry sweeps of the disk cache.

A daemon thread wakes up at a fixed interval and asks the persistent store to
delete entries that have not been accessed for longer than the maximum age.
Ticks that fire while the previous sweep is still running are skipped.
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, Optional

from catinfo.infrastructure.cache.persistent_store import PersistentStore

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 24 * 60 * 60 # 24 hours
DEFAULT_MAX_AGE_SECONDS = 30 * 24 * 60 * 60 # 30 days

class EvictionScheduler:
    """Drives PersistentStore.delete_older_than on a timer thread."""

    def __init__(
        self,
        store: PersistentStore,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        initial_delay_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initializes the scheduler without starting it.

        Args:
            store: The disk store to sweep.
            interval_seconds: Time between two sweeps.
            max_age_seconds: Entries last accessed longer ago than this are deleted.
            initial_delay_seconds: Delay before the first sweep (defaults to one interval).
            clock: Source of POSIX timestamps used to compute the expiry threshold.
        """
        self.store = store
        self.interval_seconds = interval_seconds
        self.max_age_seconds = max_age_seconds
        self.initial_delay_seconds = interval_seconds if initial_delay_seconds is None else initial_delay_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._in_flight: Optional["Future[int]"] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Starts the timer thread. Calling it again while running does nothing."""
        with self._lock:
            if self.is_running:
                logger.debug("EvictionScheduler already running.")
                return
            # One event per timer thread
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,), name="catinfo-cache-sweeper", daemon=True
            )
            self._thread.start()
        logger.info(
            f"EvictionScheduler started: every {self.interval_seconds}s, "
            f"max_age={self.max_age_seconds}s, first sweep in {self.initial_delay_seconds}s"
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stops the timer thread. A sweep already submitted still completes."""
        with self._lock:
            thread = self._thread
            self._thread = None
            self._stop_event.set()
        if thread is not None:
            thread.join(timeout)
            logger.info("EvictionScheduler stopped.")

    def run_once(self) -> Optional["Future[int]"]:
        """Submits a sweep now.

        Returns:
            The future of the submitted sweep, or None if one is still running.
        """
        with self._lock:
            if self._in_flight is not None and not self._in_flight.done():
                logger.debug("Previous cache sweep still running; skipping this tick.")
                return None
            threshold = self._clock() - self.max_age_seconds
            future = self.store.submit_delete_older_than(threshold)
            self._in_flight = future
        future.add_done_callback(self._log_result)
        return future

    def _run(self, stop_event: threading.Event) -> None:
        delay = self.initial_delay_seconds
        while not stop_event.wait(delay):
            self.run_once()
            delay = self.interval_seconds

    @staticmethod
    def _log_result(future: "Future[int]") -> None:
        # Store failures resolve to 0, never to an exception
        removed = future.result()
        if removed:
            logger.info(f"Cache sweep removed {removed} expired disk entries.")
        else:
            logger.debug("Cache sweep found no expired disk entries.")
