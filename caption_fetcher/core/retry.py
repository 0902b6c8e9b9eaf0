"""Retry envelope: bounded exponential backoff with a per-attempt timeout.

WHY: The upstream fails transiently far more often than it fails for good:
timeouts, throttling, half-rendered pages. One acquisition attempt is cheap
compared to returning no transcript, so each path gets a few tries.

HOW: with_retry() awaits the operation under asyncio.wait_for with the
configured attempt timeout. On any exception it sleeps
min(base * 2**attempt, cap) and tries again, up to max_attempts. The last
error is re-raised when attempts run out.

RULES:
- RetryConfig is passed explicitly; nothing reads module constants here
- Every exception class is retryable (input is validated before this stage)
- A timed-out attempt becomes UpstreamError and is retried like any failure
- No sleep after the final attempt
- Cancellation is never swallowed
- The sleep function is injectable for tests
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from caption_fetcher.config import (
    ATTEMPT_TIMEOUT_S,
    RETRY_BASE_DELAY_S,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY_S,
)
from caption_fetcher.core.errors import UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Retry bounds for one acquisition path.

    RULES:
    - max_attempts >= 1 (values below 1 are treated as 1)
    - delays are float seconds; the delay before retry n is
      min(base_delay_s * 2**(n-1), max_delay_s)
    - attempt_timeout_s bounds each whole attempt, not a single request
    """

    max_attempts: int = 3
    base_delay_s: float = 1.0
    max_delay_s: float = 10.0
    attempt_timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> RetryConfig:
        return cls(
            max_attempts=RETRY_MAX_ATTEMPTS,
            base_delay_s=RETRY_BASE_DELAY_S,
            max_delay_s=RETRY_MAX_DELAY_S,
            attempt_timeout_s=ATTEMPT_TIMEOUT_S,
        )

    @classmethod
    def no_delay(cls, max_attempts: int = 3, attempt_timeout_s: float = 30.0) -> RetryConfig:
        """Zero-backoff configuration for tests and local tooling."""
        return cls(
            max_attempts=max_attempts,
            base_delay_s=0.0,
            max_delay_s=0.0,
            attempt_timeout_s=attempt_timeout_s,
        )

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry following zero-based attempt number."""
        return min(self.base_delay_s * (2 ** attempt), self.max_delay_s)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    label: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """Run operation with bounded retries and exponential backoff.

    Args:
        operation: Zero-argument coroutine function; called once per attempt.
        config: Retry bounds.
        label: Name used in log lines.
        sleep: Backoff sleeper, defaults to asyncio.sleep.

    Returns:
        The first successful result.

    Raises:
        The last attempt's exception when every attempt failed.
    """
    sleeper = sleep or asyncio.sleep
    attempts = max(1, config.max_attempts)
    attempt = 0

    while True:
        attempt += 1
        try:
            return await asyncio.wait_for(operation(), timeout=config.attempt_timeout_s)
        except asyncio.TimeoutError:
            error: BaseException = UpstreamError(
                None,
                "{} attempt timed out after {:.1f}s".format(label, config.attempt_timeout_s),
            )
        except Exception as exc:
            error = exc

        if attempt >= attempts:
            logger.warning("%s failed (attempt %d/%d): %s", label, attempt, attempts, error)
            raise error

        delay = config.delay_for(attempt - 1)
        logger.warning(
            "%s failed (attempt %d/%d): %s; retrying in %.2fs",
            label, attempt, attempts, error, delay,
        )
        if delay > 0:
            await sleeper(delay)
