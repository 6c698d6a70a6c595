"""Service for executing catalog API calls with automatic retries.

Implements exponential backoff for transient failures: transport errors and
5xx responses. Every other error (bad key, missing resource, undecodable
payload) is raised on the first attempt. Once retries are exhausted the last
error is raised unchanged so callers see the same taxonomy either way.
"""

import logging
import asyncio
import time
from typing import Any, Callable, Coroutine, Optional

# Infrastructure Layer Imports
from catinfo.infrastructure.resilience.rate_limiter import RateLimiter

# Domain Layer Imports
from catinfo.domain.events.api_events import (
    ApiCallInitiated, ApiCallSucceeded, ApiCallFailed,
    ApiCallDeferred, RetryScheduled, DomainEvent,
)
from catinfo.domain.models.errors import NetworkError, ServerError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF_S = 0.5
DEFAULT_BACKOFF_FACTOR = 2.0


def is_retryable(error: Exception) -> bool:
    """Transport failures and 5xx responses are worth another attempt."""
    if isinstance(error, NetworkError):
        return True
    return isinstance(error, ServerError) and error.is_transient


class ApiRetryService:
    """Handles catalog call execution with rate limiting and retries."""

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff_s: float = DEFAULT_INITIAL_BACKOFF_S,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        event_sink: Optional[Callable[[DomainEvent], None]] = None,
    ):
        """Initializes the ApiRetryService.

        Args:
            rate_limiter: Optional rate limiter consulted before every attempt.
            max_retries: Maximum number of retry attempts after the first call.
            initial_backoff_s: Initial delay in seconds for the first retry.
            backoff_factor: Multiplier for the backoff delay (e.g., 2 for exponential).
            event_sink: Optional callable receiving every domain event emitted.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        self._event_sink = event_sink

        logger.info(
            f"ApiRetryService initialized: max_retries={max_retries}, "
            f"initial_backoff={initial_backoff_s}s, factor={backoff_factor}"
        )

    def _dispatch_event(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self._event_sink is not None:
            self._event_sink(event)

    async def _wait_for_rate_limit(self, endpoint: str) -> None:
        if self.rate_limiter is None:
            return
        wait_duration = await self.rate_limiter.get_wait_time()
        if wait_duration > 0:
            self._dispatch_event(ApiCallDeferred(endpoint=endpoint, wait_time_seconds=wait_duration))
        await self.rate_limiter.wait_for_permission()

    async def execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, Any]],
        *args: Any,
        endpoint_name: Optional[str] = None, # e.g., 'fetch_image_metadata'
        **kwargs: Any
    ) -> Any:
        """Executes an async catalog call with rate limiting and retries.

        Args:
            func: The async function (API call) to execute.
            *args: Positional arguments for the function.
            endpoint_name: Name used in logs and events (defaults to func.__name__).
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            CatInfoError: The first non-retryable error, or the last retryable
                one once max_retries is exhausted.
        """
        current_backoff = self.initial_backoff_s
        endpoint = endpoint_name or getattr(func, "__name__", "call")

        for attempt in range(self.max_retries + 1):
            await self._wait_for_rate_limit(endpoint)
            self._dispatch_event(ApiCallInitiated(endpoint=endpoint, attempt_number=attempt + 1))
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                if not is_retryable(e) or attempt >= self.max_retries:
                    if is_retryable(e):
                        logger.error(f"Max retries ({self.max_retries}) reached for {endpoint}. Last error: {e}")
                    else:
                        logger.debug(f"Non-retryable error calling {endpoint}: {type(e).__name__}: {e}")
                    self._dispatch_event(ApiCallFailed(
                        endpoint=endpoint,
                        error_type=type(e).__name__,
                        error_message=str(e),
                        status_code=getattr(e, "status_code", None),
                    ))
                    raise

                logger.warning(
                    f"Retryable error calling {endpoint} on attempt {attempt + 1}/{self.max_retries + 1}: "
                    f"{type(e).__name__}. Waiting {current_backoff:.2f}s..."
                )
                self._dispatch_event(RetryScheduled(endpoint=endpoint, attempt_number=attempt + 1, delay_seconds=current_backoff))
                await asyncio.sleep(current_backoff)
                current_backoff *= self.backoff_factor
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            self._dispatch_event(ApiCallSucceeded(endpoint=endpoint, latency_ms=latency_ms))
            return result

        raise RuntimeError(f"Retry loop for {endpoint} ended without a result")
