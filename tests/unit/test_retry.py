"""
Unit tests for retry logic with exponential backoff.
"""

from unittest.mock import AsyncMock

import pytest

from pcviz.core.exceptions import ResolutionError, TransportError, TransportTimeoutError
from pcviz.core.retry import DEFAULT_RETRY_CONFIG, RetryConfig, retry_async_operation

NO_WAIT = dict(initial_wait=0, max_wait=0)


@pytest.mark.unit
class TestRetryConfig:

    def test_default_retry_config(self):
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.initial_wait == 1.0
        assert config.max_wait == 10.0
        assert config.multiplier == 2.0
        assert DEFAULT_RETRY_CONFIG.max_attempts == 3

    def test_retry_config_bounds(self):
        assert RetryConfig(max_attempts=100).max_attempts == 10
        assert RetryConfig(max_attempts=0).max_attempts == 1
        assert RetryConfig(initial_wait=10.0).initial_wait == 5.0
        assert RetryConfig(max_wait=100.0).max_wait == 60.0
        assert RetryConfig(initial_wait=3.0, max_wait=1.0).max_wait == 3.0

    def test_should_retry_transient_errors(self):
        config = RetryConfig()
        assert config.should_retry(TransportError("PathwayCommons", "u", "reset"))
        assert config.should_retry(TransportTimeoutError("PathwayCommons", "u", 5))
        assert not config.should_retry(ResolutionError("FOO", "unknown"))
        assert not config.should_retry(ValueError())

    def test_custom_retry_on(self):
        config = RetryConfig(retry_on=(ValueError,))
        assert config.should_retry(ValueError())
        assert not config.should_retry(TransportError("PathwayCommons", "u", "reset"))


@pytest.mark.unit
class TestRetryAsyncOperation:

    @pytest.mark.asyncio
    async def test_success_first_attempt(self):
        operation = AsyncMock(return_value="ok")
        result = await retry_async_operation(operation, "a", config=RetryConfig(**NO_WAIT), key="b")
        assert result == "ok"
        operation.assert_awaited_once_with("a", key="b")

    @pytest.mark.asyncio
    async def test_retries_transient_error(self):
        operation = AsyncMock(side_effect=[TransportError("PathwayCommons", "u", "reset"), "ok"])
        result = await retry_async_operation(operation, config=RetryConfig(**NO_WAIT))
        assert result == "ok"
        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_reraises_after_max_attempts(self):
        operation = AsyncMock(side_effect=TransportError("PathwayCommons", "u", "reset"))
        with pytest.raises(TransportError):
            await retry_async_operation(operation, config=RetryConfig(max_attempts=3, **NO_WAIT))
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_non_retryable_error_raised_immediately(self):
        operation = AsyncMock(side_effect=ResolutionError("FOO", "unknown"))
        with pytest.raises(ResolutionError):
            await retry_async_operation(operation, config=RetryConfig(**NO_WAIT))
        assert operation.await_count == 1
