from unittest.mock import AsyncMock

import httpx
import pytest

from common.errors import describe_error
from common.retry import RetryPolicy, call_with_retry


class TestRetryPolicy:
    def test_fixed_delay(self):
        policy = RetryPolicy(base_delay=2.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [2.0, 2.0, 2.0]

    def test_linear_delay(self):
        policy = RetryPolicy(base_delay=3.0, linear=True)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [3.0, 6.0, 9.0]


class TestCallWithRetry:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = AsyncMock(return_value="ok")
        sleep = AsyncMock()
        assert await call_with_retry(func, RetryPolicy(), sleep=sleep) == "ok"
        func.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        func = AsyncMock(side_effect=[ValueError("a"), ValueError("b"), "ok"])
        sleep = AsyncMock()

        result = await call_with_retry(
            func, RetryPolicy(max_attempts=3, base_delay=1.5), label="fetch", sleep=sleep
        )

        assert result == "ok"
        assert [c.args[0] for c in sleep.await_args_list] == [1.5, 1.5]

    @pytest.mark.asyncio
    async def test_reraises_last_error(self):
        func = AsyncMock(side_effect=[ValueError("first"), ValueError("last")])
        with pytest.raises(ValueError, match="last"):
            await call_with_retry(func, RetryPolicy(max_attempts=2), sleep=AsyncMock())

    @pytest.mark.asyncio
    async def test_only_listed_errors_retried(self):
        func = AsyncMock(side_effect=KeyError("nope"))
        sleep = AsyncMock()
        with pytest.raises(KeyError):
            await call_with_retry(
                func, RetryPolicy(retry_on=(TimeoutError,)), sleep=sleep
            )
        func.assert_awaited_once()
        sleep.assert_not_awaited()


def status_error(status: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.test/refresh")
    response = httpx.Response(status, request=request, **kwargs)
    return httpx.HTTPStatusError("status error", request=request, response=response)


class TestDescribeError:
    def test_prefers_body_message(self):
        error = status_error(401, json={"message": "token expired"})
        assert describe_error(error) == "token expired"

    def test_body_text(self):
        assert describe_error(status_error(502, text="bad gateway upstream")) == "bad gateway upstream"

    def test_reason_phrase_for_empty_body(self):
        assert describe_error(status_error(503)) == "Service Unavailable"

    def test_plain_message(self):
        assert describe_error(ValueError("broken")) == "broken"

    def test_falls_back_to_cause(self):
        try:
            try:
                raise OSError("disk full")
            except OSError as e:
                raise RuntimeError() from e
        except RuntimeError as e:
            assert describe_error(e) == "disk full"

    def test_type_name_last(self):
        assert describe_error(TimeoutError()) == "TimeoutError"
