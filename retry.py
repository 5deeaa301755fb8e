"""
Retry decorator with exponential backoff.

Used by adapters to handle transient backend failures (throttling, 5xx,
dropped connections). Everything that escapes is a FerretError.
"""

import asyncio
from functools import wraps
from typing import TypeVar, Callable, Any, ParamSpec, Awaitable, cast

import httpx

from logging_config import logger, log_retry
from models import FerretError, ErrorKind

T = TypeVar("T")
P = ParamSpec("P")


# Exceptions that should trigger retry
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,  # ConnectError, ReadTimeout, RemoteProtocolError...
)

# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({
    429,  # Rate limited
    500,  # Internal server error
    502,  # Bad gateway
    503,  # Service unavailable
    504,  # Gateway timeout
})


def _get_http_status(exception: Exception) -> int | None:
    """
    Extract HTTP status code from exception if available.

    Works with httpx.HTTPStatusError and similar.
    """
    # Check for response.status_code (httpx.HTTPStatusError)
    response = getattr(exception, "response", None)
    if response is not None and hasattr(response, "status_code"):
        status = response.status_code
        if isinstance(status, int):
            return status

    # Check for status_code attribute (requests-style)
    if hasattr(exception, "status_code"):
        status = exception.status_code
        if isinstance(status, int):
            return status

    return None


def _retry_after_ms(exception: Exception) -> int | None:
    """
    Server-requested wait from a Retry-After header, in milliseconds.

    Graph sends Retry-After (seconds) on 429 and 503 while throttling.
    HTTP-date values are ignored.
    """
    response = getattr(exception, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return int(float(value) * 1000)
    except (TypeError, ValueError):
        return None


def _should_retry(exception: Exception) -> bool:
    """Determine if an exception is retryable."""
    if isinstance(exception, FerretError):
        return exception.retryable

    if isinstance(exception, RETRYABLE_EXCEPTIONS):
        return True

    status = _get_http_status(exception)
    if status is not None and status in RETRYABLE_STATUS_CODES:
        return True

    return False


def _convert_to_ferret_error(exception: Exception) -> FerretError:
    """Convert an exception to a FerretError if not already one."""
    if isinstance(exception, FerretError):
        return exception

    # Check HTTP status first (more reliable than exception type)
    status = _get_http_status(exception)
    if status is not None:
        details = {"status": status}
        if status == 401:
            return FerretError(ErrorKind.AUTH_EXPIRED, str(exception), details)
        elif status == 403:
            return FerretError(ErrorKind.PERMISSION_DENIED, str(exception), details)
        elif status == 404:
            return FerretError(ErrorKind.NOT_FOUND, str(exception), details)
        elif status == 429:
            retry_after = _retry_after_ms(exception)
            if retry_after is not None:
                details["retry_after_ms"] = retry_after
            return FerretError(ErrorKind.RATE_LIMITED, str(exception), details, retryable=True)
        elif status >= 500:
            return FerretError(ErrorKind.NETWORK_ERROR, str(exception), details, retryable=True)

    # Fall back to exception type. TimeoutException subclasses TransportError,
    # so it must be checked first.
    if isinstance(exception, (httpx.TimeoutException, TimeoutError)):
        return FerretError(ErrorKind.TIMEOUT, str(exception) or "Request timed out", retryable=True)
    if isinstance(exception, (httpx.TransportError, ConnectionError)):
        return FerretError(ErrorKind.NETWORK_ERROR, str(exception), retryable=True)

    return FerretError(ErrorKind.UNKNOWN, str(exception))


def with_retry(
    max_attempts: int = 3,
    delay_ms: int = 1000,
    backoff_multiplier: float = 2.0,
    convert_errors: bool = True,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Retry decorator with exponential backoff for async backend calls.

    Args:
        max_attempts: Maximum number of attempts
        delay_ms: Initial delay in milliseconds
        backoff_multiplier: Multiplier for exponential backoff
        convert_errors: Convert exceptions to FerretError on final failure

    Returns:
        Decorated coroutine function with retry logic

    Example:
        @with_retry(max_attempts=3, delay_ms=1000)
        async def get_item(self, drive_id: str, item_id: str):
            return await self._get_json(f"/drives/{drive_id}/items/{item_id}")
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            last_exception: Exception | None = None

            for attempt in range(max_attempts):
                try:
                    coro = cast(Awaitable[T], func(*args, **kwargs))
                    return await coro
                except Exception as e:
                    last_exception = e

                    if not _should_retry(e) or attempt == max_attempts - 1:
                        # 404/403 are routine while probing containers
                        status = _get_http_status(e)
                        if status in (403, 404):
                            logger.debug(f"{func.__name__} failed with HTTP {status}: {e}")
                        else:
                            logger.error(
                                f"{func.__name__} failed after {attempt + 1} attempts: {e}"
                            )
                        if convert_errors:
                            raise _convert_to_ferret_error(e) from e
                        raise

                    wait_ms = int(delay_ms * (backoff_multiplier ** attempt))
                    # Never sooner than the server asked
                    wait_ms = max(wait_ms, _retry_after_ms(e) or 0)
                    log_retry(attempt + 1, max_attempts, wait_ms, str(e))
                    await asyncio.sleep(wait_ms / 1000)

            # Should never reach here, but satisfy type checker
            assert last_exception is not None
            if convert_errors:
                raise _convert_to_ferret_error(last_exception) from last_exception
            raise last_exception

        return cast(Callable[P, Awaitable[T]], async_wrapper)

    return decorator
