"""
Retry Logic with Exponential Backoff

Used for the interaction query only. iHOP fetches are deliberately single
attempt and never go through this module.
"""

import logging
from typing import Any, Callable, Optional, Tuple, Type

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import is_transient_error

logger = logging.getLogger(__name__)


class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (default: 3)
        initial_wait: Initial wait time in seconds (default: 1)
        max_wait: Maximum wait time in seconds (default: 10)
        multiplier: Exponential backoff multiplier (default: 2)
        retry_on: Exception types to retry on (defaults to transient errors)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_wait: float = 1.0,
        max_wait: float = 10.0,
        multiplier: float = 2.0,
        retry_on: Optional[Tuple[Type[Exception], ...]] = None
    ):
        self.max_attempts = max(1, min(10, max_attempts))
        self.initial_wait = max(0.0, min(5.0, initial_wait))
        self.max_wait = max(self.initial_wait, min(60.0, max_wait))
        self.multiplier = max(1.0, min(5.0, multiplier))
        self.retry_on = retry_on

    def should_retry(self, exception: BaseException) -> bool:
        if self.retry_on is not None:
            return isinstance(exception, self.retry_on)
        return isinstance(exception, Exception) and is_transient_error(exception)


DEFAULT_RETRY_CONFIG = RetryConfig()


async def retry_async_operation(
    operation: Callable,
    *args,
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
    **kwargs
) -> Any:
    """
    Retry an async operation with exponential backoff.

    Args:
        operation: Async callable to retry
        *args: Positional arguments for operation
        config: Retry configuration
        operation_name: Name for logging (defaults to operation.__name__)
        **kwargs: Keyword arguments for operation

    Returns:
        Result of the operation

    Raises:
        Exception: the last error once attempts are exhausted, or the first
        non-retryable error

    Example:
        >>> text = await retry_async_operation(
        ...     fetcher, url,
        ...     config=RetryConfig(max_attempts=3),
        ...     operation_name="pathwaycommons_graph"
        ... )
    """
    cfg = config or DEFAULT_RETRY_CONFIG
    op_name = operation_name or getattr(operation, '__name__', 'async_operation')

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(cfg.max_attempts),
        wait=wait_exponential(
            multiplier=cfg.multiplier,
            min=cfg.initial_wait,
            max=cfg.max_wait
        ),
        retry=retry_if_exception(cfg.should_retry),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    ):
        with attempt:
            result = await operation(*args, **kwargs)

            if attempt.retry_state.attempt_number > 1:
                logger.info(
                    f"{op_name} succeeded after "
                    f"{attempt.retry_state.attempt_number} attempts"
                )

            return result
