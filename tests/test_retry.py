import asyncio
import random

import httpx
import pytest
from google.genai import errors as genai_errors

from dishflow_ai.app.core.errors import ContentBlockedError, UpstreamUnavailableError
from dishflow_ai.app.services.retry import (
    DEFAULT_RETRY_POLICY,
    RetryPolicy,
    compute_backoff,
    is_rate_limit_error,
    is_retryable_error,
    with_retry,
)


def api_error(cls, code, status):
    return cls(code, {"error": {"code": code, "message": "upstream said no", "status": status}})


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def flaky(failures, result="ok"):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if failures:
            raise failures.pop(0)
        return result

    return operation, calls


def test_retryable_classification():
    assert is_retryable_error(api_error(genai_errors.ServerError, 503, "UNAVAILABLE"))
    assert is_retryable_error(api_error(genai_errors.ClientError, 429, "RESOURCE_EXHAUSTED"))
    assert is_retryable_error(asyncio.TimeoutError())
    assert is_retryable_error(httpx.ConnectError("connection refused"))
    assert is_retryable_error(RuntimeError("upstream returned 503"))

    assert not is_retryable_error(api_error(genai_errors.ClientError, 400, "INVALID_ARGUMENT"))
    assert not is_retryable_error(ContentBlockedError("content blocked by safety filters"))
    assert not is_retryable_error(ValueError("bad input"))


def test_rate_limit_detection():
    assert is_rate_limit_error(api_error(genai_errors.ClientError, 429, "RESOURCE_EXHAUSTED"))
    assert not is_rate_limit_error(api_error(genai_errors.ServerError, 503, "UNAVAILABLE"))


def test_backoff_stays_within_jitter_window():
    policy = RetryPolicy(max_attempts=5, base_delay=1.0, max_delay=30.0)
    rng = random.Random(7)
    for attempt in range(6):
        ceiling = min(30.0, 2**attempt)
        for _ in range(50):
            delay = compute_backoff(attempt, policy, rng=rng)
            assert 0 <= delay <= ceiling


def test_rate_limited_backoff_has_floor():
    policy = RetryPolicy(max_attempts=5, base_delay=1.0, max_delay=30.0)
    rng = random.Random(3)
    for attempt in range(4):
        for _ in range(50):
            delay = compute_backoff(attempt, policy, rate_limited=True, rng=rng)
            assert delay >= 1.0
            assert delay <= min(30.0, 2.0 * 2**attempt)


@pytest.mark.asyncio
async def test_non_retryable_error_is_raised_after_one_call():
    sleep = RecordingSleep()
    operation, calls = flaky([api_error(genai_errors.ClientError, 400, "INVALID_ARGUMENT")])

    with pytest.raises(genai_errors.ClientError):
        await with_retry(operation, DEFAULT_RETRY_POLICY, sleep=sleep)

    assert calls["count"] == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures():
    sleep = RecordingSleep()
    operation, calls = flaky(
        [
            api_error(genai_errors.ServerError, 503, "UNAVAILABLE"),
            api_error(genai_errors.ServerError, 500, "INTERNAL"),
        ],
        result="recipe",
    )

    result = await with_retry(operation, DEFAULT_RETRY_POLICY, sleep=sleep)

    assert result == "recipe"
    assert calls["count"] == 3
    assert len(sleep.delays) == 2


@pytest.mark.asyncio
async def test_exhaustion_raises_upstream_unavailable():
    sleep = RecordingSleep()
    policy = RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=5.0)
    last = api_error(genai_errors.ServerError, 503, "UNAVAILABLE")
    operation, calls = flaky([api_error(genai_errors.ServerError, 503, "UNAVAILABLE") for _ in range(2)] + [last])

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        await with_retry(operation, policy, sleep=sleep)

    assert calls["count"] == 3
    # no wait after the final attempt
    assert len(sleep.delays) == 2
    assert excinfo.value.attempts == 3
    assert excinfo.value.message.startswith("max retries exceeded")
    assert excinfo.value.__cause__ is last


@pytest.mark.asyncio
async def test_call_timeout_counts_as_retryable():
    sleep = RecordingSleep()
    policy = RetryPolicy(max_attempts=2, base_delay=0.1, max_delay=0.1)
    calls = {"count": 0}

    async def slow():
        calls["count"] += 1
        await asyncio.sleep(1)

    with pytest.raises(UpstreamUnavailableError):
        await with_retry(slow, policy, call_timeout=0.01, sleep=sleep)

    assert calls["count"] == 2
