"""Read-side retry with exponential backoff for eventually consistent stores.

Object stores may not expose a just-written object to the next read.
Reads are retried with backoff, but only for errors that look transient
(see ``is_transient_read_error``); everything else propagates at once.
Writes are never retried here.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from backend.studio.config import Settings
from backend.studio.errors import is_transient_read_error
from backend.studio.utils.metrics import PrometheusStorageMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff schedule."""

    retry_count: int
    base_delay_ms: int
    max_delay_ms: int

    def delay_ms(self, retry_index: int) -> int:
        """Delay before retry ``retry_index`` (0-based), capped at max_delay_ms."""
        return int(min(self.base_delay_ms * (2**retry_index), self.max_delay_ms))

    @classmethod
    def for_reads(cls, settings: Settings) -> "BackoffPolicy":
        return cls(
            retry_count=settings.read_retry_count,
            base_delay_ms=settings.read_retry_base_ms,
            max_delay_ms=settings.read_retry_max_ms,
        )

    @classmethod
    def for_create_confirmation(cls, settings: Settings) -> "BackoffPolicy":
        # Polls, not retries: attempts - 1 sleeps between attempts
        return cls(
            retry_count=max(settings.create_confirm_attempts - 1, 0),
            base_delay_ms=settings.create_confirm_base_ms,
            max_delay_ms=settings.read_retry_max_ms,
        )


DEFAULT_READ_POLICY = BackoffPolicy(retry_count=3, base_delay_ms=500, max_delay_ms=2000)
DEFAULT_CONFIRM_POLICY = BackoffPolicy(retry_count=4, base_delay_ms=200, max_delay_ms=2000)


async def with_read_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    operation: str,
    policy: BackoffPolicy = DEFAULT_READ_POLICY,
    sleep_fn: SleepFn | None = None,
    metrics: PrometheusStorageMetrics | None = None,
) -> T:
    """Run a read, retrying transient failures with exponential backoff.

    Args:
        fn: Zero-argument coroutine factory performing the read
        operation: Operation name for logs and metrics
        policy: Backoff schedule (default 3 retries, 500ms doubling, 2000ms cap)
        sleep_fn: Injectable sleep function (default: asyncio.sleep)
        metrics: Metrics recorder (optional)

    Returns:
        Result of the first successful attempt

    Raises:
        The last error once retries are exhausted, or the first
        non-transient error immediately.
    """
    sleep = sleep_fn or asyncio.sleep

    for attempt in range(policy.retry_count + 1):
        try:
            return await fn()
        except Exception as e:
            if not is_transient_read_error(e) or attempt >= policy.retry_count:
                raise

            delay_ms = policy.delay_ms(attempt)
            logger.info(
                f"[{operation}] transient read failure ({e}); "
                f"retry {attempt + 1}/{policy.retry_count} in {delay_ms}ms"
            )
            if metrics:
                metrics.inc_read_retry(operation)
            await sleep(delay_ms / 1000)

    raise AssertionError("unreachable")  # pragma: no cover


async def confirm_readable(
    fn: Callable[[], Awaitable[object]],
    *,
    operation: str,
    policy: BackoffPolicy = DEFAULT_CONFIRM_POLICY,
    sleep_fn: SleepFn | None = None,
) -> bool:
    """Poll a read until it succeeds after a write.

    Used after creating a record: the caller proceeds optimistically
    whether or not the record became readable, so this never raises for
    transient failures.

    Returns:
        True once a poll succeeded, False if every poll failed
    """
    sleep = sleep_fn or asyncio.sleep

    for attempt in range(policy.retry_count + 1):
        try:
            await fn()
            return True
        except Exception as e:
            if not is_transient_read_error(e):
                raise
            if attempt < policy.retry_count:
                await sleep(policy.delay_ms(attempt) / 1000)

    logger.warning(f"[{operation}] record still not readable after write; continuing")
    return False
