"""Implementation of a rate limiter.

Controls the frequency of outgoing catalog requests so bursts (e.g. paging
quickly through a carousel) stay under the API's request quota.
Uses a sliding window algorithm.
"""

import time
import asyncio
import logging
from collections import deque
from typing import Deque

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 10 # Max 10 requests...
DEFAULT_TIME_WINDOW_SECONDS = 1.0 # ...per second

class RateLimiter:
    """Simple sliding window rate limiter."""

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        time_window: float = DEFAULT_TIME_WINDOW_SECONDS,
    ):
        """Initializes the rate limiter.

        Args:
            max_requests: Maximum number of requests allowed in the time window.
            time_window: The time window in seconds.
        """
        if max_requests <= 0 or time_window <= 0:
            raise ValueError("RateLimiter requires a positive request count and time window")
        self.max_requests = max_requests
        self.time_window = time_window
        self.timestamps: Deque[float] = deque()
        self._lock = asyncio.Lock()
        logger.info(f"RateLimiter initialized: {max_requests} requests / {time_window} seconds")

    def _cleanup_timestamps(self) -> None:
        """Removes timestamps older than the time window."""
        now = time.monotonic()
        while self.timestamps and now - self.timestamps[0] > self.time_window:
            self.timestamps.popleft()

    async def wait_for_permission(self) -> None:
        """Waits until a request is permitted according to the rate limit."""
        while True:
            async with self._lock:
                self._cleanup_timestamps()
                if len(self.timestamps) < self.max_requests:
                    self.timestamps.append(time.monotonic())
                    logger.debug("Rate limit permission granted.")
                    return
                oldest_timestamp = self.timestamps[0]
                wait_time = max(0.0, oldest_timestamp + self.time_window - time.monotonic())

            if wait_time > 0:
                logger.debug(f"Rate limit reached. Waiting for {wait_time:.2f} seconds.")
                await asyncio.sleep(wait_time)
            # Loop again to re-check condition after waiting

    async def get_wait_time(self) -> float:
        """Estimates the time needed before the next request can be made."""
        async with self._lock:
            self._cleanup_timestamps()
            if len(self.timestamps) < self.max_requests:
                return 0.0
            oldest_timestamp = self.timestamps[0]
            return max(0.0, oldest_timestamp + self.time_window - time.monotonic())
