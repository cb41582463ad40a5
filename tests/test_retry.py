"""
Tests for retry logic.
"""

import asyncio

import pytest

from founderfeed.errors import AuthError, ConflictError, NetworkError, ServerError
from founderfeed.retry import (
    RetryError,
    exponential_backoff,
    is_transient_error,
    should_retry_http_status,
)


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        """Coroutine that succeeds immediately should not retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01)
        async def succeeds():
            call_count[0] += 1
            return "success"

        assert asyncio.run(succeeds()) == "success"
        assert call_count[0] == 1

    def test_retry_then_succeed(self):
        """Transient failures are retried until success."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01)
        async def fails_twice():
            call_count[0] += 1
            if call_count[0] < 3:
                raise NetworkError("Temporary failure")
            return "success"

        assert asyncio.run(fails_twice()) == "success"
        assert call_count[0] == 3

    def test_all_retries_exhausted(self):
        """Should raise RetryError after all attempts fail."""
        call_count = [0]

        @exponential_backoff(max_retries=2, base_delay=0.01)
        async def always_fails():
            call_count[0] += 1
            raise ServerError("Bad gateway", 502)

        with pytest.raises(RetryError) as exc:
            asyncio.run(always_fails())

        assert call_count[0] == 3  # Initial + 2 retries
        assert isinstance(exc.value.__cause__, ServerError)

    def test_non_transient_error_not_retried(self):
        """Auth failures and client errors surface unchanged."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, exceptions=(Exception,))
        async def unauthorized():
            call_count[0] += 1
            raise AuthError("Unauthorized", 401)

        with pytest.raises(AuthError):
            asyncio.run(unauthorized())
        assert call_count[0] == 1

    def test_only_catches_specified_exceptions(self):
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01)
        async def raises_value_error():
            call_count[0] += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            asyncio.run(raises_value_error())
        assert call_count[0] == 1

    def test_exponential_delay(self):
        """Delay should increase exponentially."""
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exponential_base=2.0,
            on_retry=on_retry_callback
        )
        async def always_fails():
            raise NetworkError("Test")

        with pytest.raises(RetryError):
            asyncio.run(always_fails())

        assert delays == [0.01, 0.02, 0.04]

    def test_max_delay_cap(self):
        """Delay should not exceed max_delay."""
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=4,
            base_delay=0.01,
            max_delay=0.02,
            exponential_base=3.0,
            on_retry=on_retry_callback
        )
        async def always_fails():
            raise NetworkError("Test")

        with pytest.raises(RetryError):
            asyncio.run(always_fails())

        assert all(d <= 0.02 for d in delays)


class TestTransientErrorDetection:
    """Test transient error detection utilities."""

    def test_network_errors_are_transient(self):
        assert is_transient_error(NetworkError("Connection reset by peer"))

    def test_retryable_server_statuses(self):
        for status in (500, 502, 503, 504, 429):
            assert is_transient_error(ServerError("boom", status))

    def test_permanent_errors(self):
        errors = [
            ServerError("Not found", 404),
            ServerError("Malformed response"),
            AuthError("Unauthorized", 401),
            ConflictError("c1"),
            ValueError("Invalid data"),
        ]
        for error in errors:
            assert not is_transient_error(error)

    def test_http_status_retry_logic(self):
        """Should correctly identify retryable HTTP status codes."""
        assert should_retry_http_status(408)
        assert should_retry_http_status(429)
        assert should_retry_http_status(500)
        assert should_retry_http_status(502)
        assert should_retry_http_status(503)

        assert not should_retry_http_status(200)
        assert not should_retry_http_status(404)
        assert not should_retry_http_status(403)
        assert not should_retry_http_status(401)
