"""Tests for the retry policy around fix requests."""

from __future__ import annotations

import pytest

from a11yfix.core.errors import FailureReason, ServiceError
from a11yfix.fix.retry import retry_within_limits


class FlakyOperation:
    """Raises the queued errors in turn, then returns ``result``."""

    def __init__(self, errors: list[Exception], result: str = "ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0
        self.raised: list[Exception] = []

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            error = self.errors.pop(0)
            self.raised.append(error)
            raise error
        return self.result


def rate_limited(seconds: int = 5) -> ServiceError:
    return ServiceError(
        f"Rate limit is exceeded. Please retry after {seconds} seconds.",
        reason=FailureReason.RATE_LIMIT,
        retry_after=seconds,
        status_code=429,
    )


def timed_out() -> ServiceError:
    return ServiceError("The operation was timeout.", reason=FailureReason.TIMEOUT)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    async def sleep(delay: float) -> None:
        sleeps.append(delay)

    return sleep


class TestRetryWithinLimits:
    @pytest.mark.asyncio
    async def test_returns_first_success(self, fake_sleep, sleeps):
        operation = FlakyOperation([])

        assert await retry_within_limits(operation, sleep=fake_sleep) == "ok"
        assert operation.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_fatal_error_not_retried(self, fake_sleep, sleeps):
        error = ServiceError("Bad request", reason=FailureReason.FATAL, status_code=400)
        operation = FlakyOperation([error])

        with pytest.raises(ServiceError) as exc_info:
            await retry_within_limits(operation, sleep=fake_sleep)

        assert exc_info.value is error
        assert operation.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_not_retried(self, fake_sleep):
        operation = FlakyOperation([RuntimeError("boom")])

        with pytest.raises(RuntimeError):
            await retry_within_limits(operation, sleep=fake_sleep)
        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_rate_limit_waits_server_delay_plus_one(self, fake_sleep, sleeps):
        operation = FlakyOperation([rate_limited(1)])

        assert await retry_within_limits(operation, sleep=fake_sleep) == "ok"
        assert operation.calls == 2
        assert sleeps == [2]

    @pytest.mark.asyncio
    async def test_timeout_retried_immediately(self, fake_sleep, sleeps):
        operation = FlakyOperation([timed_out(), timed_out()])

        assert await retry_within_limits(operation, sleep=fake_sleep) == "ok"
        assert operation.calls == 3
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_rate_limit_exhausts_budget(self, fake_sleep, sleeps):
        operation = FlakyOperation([rate_limited(5), rate_limited(5), rate_limited(5), rate_limited(5)])

        with pytest.raises(ServiceError) as exc_info:
            await retry_within_limits(operation, max_retries=3, sleep=fake_sleep)

        assert operation.calls == 3
        assert exc_info.value is operation.raised[-1]
        assert sleeps == [6, 6]

    @pytest.mark.asyncio
    async def test_mixed_recoverable_errors_share_budget(self, fake_sleep, sleeps):
        operation = FlakyOperation([timed_out(), rate_limited(2), timed_out(), rate_limited(2)])

        with pytest.raises(ServiceError) as exc_info:
            await retry_within_limits(operation, max_retries=3, sleep=fake_sleep)

        assert operation.calls == 3
        assert exc_info.value.reason == FailureReason.TIMEOUT
        assert sleeps == [3]

    @pytest.mark.asyncio
    async def test_custom_budget(self, fake_sleep):
        operation = FlakyOperation([timed_out()] * 4)

        assert await retry_within_limits(operation, max_retries=5, sleep=fake_sleep) == "ok"
        assert operation.calls == 5

    @pytest.mark.asyncio
    async def test_rejects_empty_budget(self, fake_sleep):
        with pytest.raises(ValueError):
            await retry_within_limits(FlakyOperation([]), max_retries=0, sleep=fake_sleep)
