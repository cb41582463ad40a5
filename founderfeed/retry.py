"""
Retry logic with exponential backoff for the feed's network calls.

The client never retries on its own; callers that want a retry (the CLI's
initial load, for example) wrap the coroutine with ``exponential_backoff``.
"""

import asyncio
import functools
from typing import Callable, Optional, Tuple, Type

from .errors import NetworkError, ServerError


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def should_retry_http_status(status_code: int) -> bool:
    """
    Check if HTTP status code indicates a retryable error.

    Args:
        status_code: HTTP status code

    Returns:
        True if should retry
    """
    retryable_codes = {
        408,  # Request Timeout
        429,  # Too Many Requests
        500,  # Internal Server Error
        502,  # Bad Gateway
        503,  # Service Unavailable
        504,  # Gateway Timeout
    }

    return status_code in retryable_codes


def is_transient_error(exception: Exception) -> bool:
    """
    Determine if a feed error is likely transient and worth retrying.

    Transport failures always are; server errors only for retryable
    statuses. Auth and conflict errors never are.
    """
    if isinstance(exception, NetworkError):
        return True
    if isinstance(exception, ServerError):
        return exception.status is not None and should_retry_http_status(exception.status)
    return False


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (NetworkError, ServerError),
    should_retry: Callable[[Exception], bool] = is_transient_error,
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying coroutine functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch
        should_retry: Predicate deciding whether a caught exception is retried;
            a rejected exception is re-raised unchanged
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=2, base_delay=0.5)
        async def load():
            return await feed.load()
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if not should_retry(e):
                        raise

                    if attempt < max_retries:
                        current_delay = min(delay, max_delay)

                        if on_retry:
                            on_retry(attempt + 1, e, current_delay)

                        await asyncio.sleep(current_delay)
                        delay *= exponential_base
                    else:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

        return wrapper
    return decorator
