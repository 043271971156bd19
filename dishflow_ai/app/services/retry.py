"""Retry helper for model calls with full-jitter exponential backoff."""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from google.genai import errors as genai_errors

from dishflow_ai.app.core.errors import DishflowError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
RETRYABLE_API_STATUSES = {"RESOURCE_EXHAUSTED", "UNAVAILABLE", "INTERNAL", "DEADLINE_EXCEEDED"}
RETRYABLE_MESSAGE_MARKERS = (
    "503",
    "429",
    "500",
    "timeout",
    "connection reset",
    "temporary failure",
    "RESOURCE_EXHAUSTED",
)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int
    base_delay: float
    max_delay: float
    rate_limit_base_delay: float = 2.0
    rate_limit_min_delay: float = 1.0


DEFAULT_RETRY_POLICY = RetryPolicy(max_attempts=5, base_delay=1.0, max_delay=30.0)
# Two sequential conversion passes must finish within a 360s job deadline.
THERMOMIX_RETRY_POLICY = RetryPolicy(max_attempts=2, base_delay=2.0, max_delay=5.0)
THERMOMIX_CALL_TIMEOUT_SECONDS = 150.0


def is_rate_limit_error(exc: BaseException) -> bool:
    if isinstance(exc, genai_errors.APIError):
        return exc.code == 429 or exc.status == "RESOURCE_EXHAUSTED"
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429
    message = str(exc)
    return "429" in message or "RESOURCE_EXHAUSTED" in message


def is_retryable_error(exc: BaseException) -> bool:
    """Return True for transient upstream failures worth another attempt."""
    if isinstance(exc, DishflowError):
        return False
    if isinstance(exc, genai_errors.APIError):
        return exc.code in RETRYABLE_STATUS_CODES or exc.status in RETRYABLE_API_STATUSES
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, ConnectionResetError)):
        return True
    message = str(exc)
    return any(marker in message for marker in RETRYABLE_MESSAGE_MARKERS)


def compute_backoff(
    attempt: int,
    policy: RetryPolicy,
    rate_limited: bool = False,
    rng: Optional[random.Random] = None,
) -> float:
    """Full jitter: uniform in [0, min(max_delay, base * 2^attempt))."""
    rng = rng or random
    base = policy.rate_limit_base_delay if rate_limited else policy.base_delay
    ceiling = min(policy.max_delay, base * (2**attempt))
    delay = rng.uniform(0, ceiling)
    if rate_limited:
        delay = max(delay, policy.rate_limit_min_delay)
    return delay


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    call_timeout: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: Optional[random.Random] = None,
) -> T:
    """Await ``operation()`` until it succeeds or the policy gives up.

    ``operation`` is a zero-argument coroutine factory and must be safe to
    invoke more than once. Non-retryable errors propagate unchanged after the
    first failure. Cancellation of the calling task interrupts both the call
    and the backoff wait.
    """
    last_error: Optional[BaseException] = None
    for attempt in range(policy.max_attempts):
        try:
            if call_timeout is not None:
                return await asyncio.wait_for(operation(), timeout=call_timeout)
            return await operation()
        except Exception as exc:
            if not is_retryable_error(exc):
                raise
            last_error = exc
            if attempt == policy.max_attempts - 1:
                break
            delay = compute_backoff(attempt, policy, is_rate_limit_error(exc), rng)
            logger.warning(
                "Retryable error on attempt %d/%d, retrying in %.2fs: %s",
                attempt + 1,
                policy.max_attempts,
                delay,
                exc,
            )
            await sleep(delay)

    raise UpstreamUnavailableError(
        f"max retries exceeded: {last_error}", attempts=policy.max_attempts
    ) from last_error
