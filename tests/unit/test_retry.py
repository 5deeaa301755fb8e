"""
Tests for retry logic with exponential backoff.
"""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from models import ErrorKind, FerretError
from retry import (
    RETRYABLE_STATUS_CODES,
    _convert_to_ferret_error,
    _get_http_status,
    _retry_after_ms,
    _should_retry,
    with_retry,
)


def status_error(status: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://graph.test/v1.0/drives/d/items/i")
    response = httpx.Response(status, headers=headers, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestGetHttpStatus:
    """Tests for _get_http_status helper."""

    def test_httpx_status_error(self):
        assert _get_http_status(status_error(404)) == 404

    def test_status_code_attribute(self):
        exc = Exception("Error")
        exc.status_code = 503
        assert _get_http_status(exc) == 503

    def test_no_status(self):
        assert _get_http_status(ValueError("plain")) is None

    def test_non_int_status_ignored(self):
        exc = Exception("Error")
        exc.response = Mock(status_code="404")
        assert _get_http_status(exc) is None


class TestShouldRetry:
    """Tests for _should_retry logic."""

    @pytest.mark.parametrize("status", sorted(RETRYABLE_STATUS_CODES))
    def test_retryable_statuses(self, status: int):
        assert _should_retry(status_error(status)) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_client_errors_not_retried(self, status: int):
        assert _should_retry(status_error(status)) is False

    def test_transport_errors_retried(self):
        assert _should_retry(httpx.ReadTimeout("slow")) is True
        assert _should_retry(httpx.ConnectError("refused")) is True

    def test_builtin_connection_errors_retried(self):
        assert _should_retry(ConnectionError("reset")) is True
        assert _should_retry(TimeoutError()) is True

    def test_ferret_error_uses_flag(self):
        assert _should_retry(FerretError(ErrorKind.RATE_LIMITED, "slow down", retryable=True)) is True
        assert _should_retry(FerretError(ErrorKind.NOT_FOUND, "gone")) is False

    def test_value_error_not_retried(self):
        assert _should_retry(ValueError("bad")) is False


class TestConvertToFerretError:
    """Tests for _convert_to_ferret_error."""

    @pytest.mark.parametrize("status,kind,retryable", [
        (401, ErrorKind.AUTH_EXPIRED, False),
        (403, ErrorKind.PERMISSION_DENIED, False),
        (404, ErrorKind.NOT_FOUND, False),
        (429, ErrorKind.RATE_LIMITED, True),
        (500, ErrorKind.NETWORK_ERROR, True),
        (504, ErrorKind.NETWORK_ERROR, True),
    ])
    def test_status_mapping(self, status: int, kind: ErrorKind, retryable: bool):
        error = _convert_to_ferret_error(status_error(status))
        assert error.kind == kind
        assert error.retryable is retryable
        assert error.details == {"status": status}

    def test_timeout(self):
        error = _convert_to_ferret_error(httpx.ReadTimeout("read timed out"))
        assert error.kind == ErrorKind.TIMEOUT
        assert error.retryable is True

    def test_connect_error(self):
        assert _convert_to_ferret_error(httpx.ConnectError("refused")).kind == ErrorKind.NETWORK_ERROR

    def test_ferret_error_passes_through(self):
        original = FerretError(ErrorKind.INVALID_INPUT, "bad")
        assert _convert_to_ferret_error(original) is original

    def test_unknown(self):
        assert _convert_to_ferret_error(RuntimeError("??")).kind == ErrorKind.UNKNOWN

    def test_rate_limit_carries_retry_after(self):
        error = _convert_to_ferret_error(status_error(429, {"Retry-After": "7"}))
        assert error.details == {"status": 429, "retry_after_ms": 7000}


class TestRetryAfter:
    """Tests for _retry_after_ms."""

    def test_seconds(self):
        assert _retry_after_ms(status_error(503, {"Retry-After": "2"})) == 2000

    def test_missing(self):
        assert _retry_after_ms(status_error(503)) is None

    def test_http_date_ignored(self):
        assert _retry_after_ms(status_error(429, {"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"})) is None

    def test_no_response(self):
        assert _retry_after_ms(ConnectionError("reset")) is None


class TestWithRetry:
    """Tests for the with_retry decorator."""

    @pytest.mark.asyncio
    async def test_successful_call(self):
        @with_retry(max_attempts=3, delay_ms=1)
        async def succeed() -> str:
            return "ok"

        assert await succeed() == "ok"

    @pytest.mark.asyncio
    async def test_retries_on_retryable_error(self):
        attempts = [0]

        @with_retry(max_attempts=3, delay_ms=1)
        async def fail_then_succeed() -> str:
            attempts[0] += 1
            if attempts[0] < 3:
                raise status_error(503)
            return "ok"

        assert await fail_then_succeed() == "ok"
        assert attempts[0] == 3

    @pytest.mark.asyncio
    async def test_not_found_raised_immediately(self):
        attempts = [0]

        @with_retry(max_attempts=3, delay_ms=1)
        async def missing() -> str:
            attempts[0] += 1
            raise status_error(404)

        with pytest.raises(FerretError) as exc_info:
            await missing()

        assert exc_info.value.kind == ErrorKind.NOT_FOUND
        assert attempts[0] == 1

    @pytest.mark.asyncio
    async def test_raises_after_max_attempts(self):
        attempts = [0]

        @with_retry(max_attempts=2, delay_ms=1)
        async def always_fail() -> str:
            attempts[0] += 1
            raise ConnectionError("always")

        with pytest.raises(FerretError) as exc_info:
            await always_fail()

        assert exc_info.value.kind == ErrorKind.NETWORK_ERROR
        assert attempts[0] == 2

    @pytest.mark.asyncio
    async def test_exponential_backoff(self):
        @with_retry(max_attempts=4, delay_ms=100, backoff_multiplier=2.0)
        async def always_fail() -> str:
            raise httpx.ReadTimeout("slow")

        with patch("retry.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(FerretError):
                await always_fail()

        assert [c.args[0] for c in sleep.await_args_list] == [0.1, 0.2, 0.4]

    @pytest.mark.asyncio
    async def test_honors_retry_after(self):
        attempts = [0]

        @with_retry(max_attempts=2, delay_ms=100)
        async def throttled() -> str:
            attempts[0] += 1
            if attempts[0] == 1:
                raise status_error(429, {"Retry-After": "3"})
            return "ok"

        with patch("retry.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await throttled() == "ok"

        sleep.assert_awaited_once_with(3.0)

    @pytest.mark.asyncio
    async def test_no_conversion_when_disabled(self):
        @with_retry(max_attempts=1, delay_ms=1, convert_errors=False)
        async def fail() -> str:
            raise status_error(404)

        with pytest.raises(httpx.HTTPStatusError):
            await fail()

    @pytest.mark.asyncio
    async def test_preserves_function_name(self):
        @with_retry()
        async def get_item() -> None:
            return None

        assert get_item.__name__ == "get_item"
