# =============================================================================
# core/retry.py  -  Retry Policy
# =============================================================================
#
# One small policy object, injected into every adapter through the shared
# ProviderClient.  Only TransientError is retried by default: a provider
# that answered "page not found" will answer the same thing again.
# =============================================================================

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from core.errors import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff."""

    max_attempts: int = 3              # Total attempts, including the first
    backoff_base_s: float = 0.5
    backoff_max_s: float = 8.0


def backoff_delay(attempt: int, policy: RetryPolicy) -> float:
    """Delay before retry number `attempt + 1` (attempt is zero-based)."""
    return min(policy.backoff_base_s * (2 ** attempt), policy.backoff_max_s)


def is_transient(error: BaseException) -> bool:
    return isinstance(error, TransientError)


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    is_retryable: Callable[[BaseException], bool] = is_transient,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await `fn()` until it succeeds, fails non-retryably, or attempts run out.

    The last error is re-raised unchanged, so callers see the same exception
    type whether or not retries happened.
    """
    attempts = max(policy.max_attempts, 1)
    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as error:
            if not is_retryable(error) or attempt == attempts - 1:
                raise
            delay = backoff_delay(attempt, policy)
            logger.info(
                "Attempt %d/%d failed (%s); retrying in %.2fs",
                attempt + 1, attempts, error, delay,
            )
            await sleep(delay)
    raise AssertionError("unreachable")
