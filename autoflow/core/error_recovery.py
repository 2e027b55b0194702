"""Error recovery mechanisms for transient processor failures."""

import asyncio
import random
from typing import Awaitable, Callable, Any, Optional, List, Type
from functools import wraps

from .exceptions import WorkflowEngineError, TransientError
from .logging import get_logger, RetryLogger


logger = get_logger(__name__)


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retryable_exceptions: Optional[List[Type[Exception]]] = None
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.retryable_exceptions = retryable_exceptions or [TransientError]

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if an exception should be retried."""
        if attempt >= self.max_attempts:
            return False

        # Engine errors carry their own verdict
        if isinstance(exception, WorkflowEngineError):
            return exception.recoverable

        return any(isinstance(exception, exc_type) for exc_type in self.retryable_exceptions)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for the given attempt."""
        delay = self.base_delay * (self.exponential_base ** (attempt - 1))
        delay = min(delay, self.max_delay)

        if self.jitter:
            delay *= (0.5 + random.random() * 0.5)

        return delay


def with_async_retry(config: Optional[RetryConfig] = None):
    """Decorator to add async retry logic to coroutine functions."""
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await execute_async_with_retry(func, config, *args, **kwargs)
        return wrapper

    return decorator


async def execute_async_with_retry(
    func: Callable[..., Awaitable[Any]],
    config: RetryConfig,
    *args,
    operation: Optional[str] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    **kwargs
) -> Any:
    """Execute an async function with retry logic.

    Args:
        func: Coroutine function to call
        config: Retry policy
        operation: Name used in retry logs, defaults to the function name
        on_retry: Optional callback invoked with (error, attempt) before each retry

    Returns:
        The function's result from the first successful attempt

    Raises:
        The last exception once the policy gives up
    """
    operation = operation or getattr(func, "__name__", "operation")
    retry_logger = RetryLogger(operation)

    for attempt in range(1, config.max_attempts + 1):
        try:
            result = await func(*args, **kwargs)
            if attempt > 1:
                retry_logger.recovered(attempt)
            return result
        except Exception as e:
            if not config.should_retry(e, attempt):
                retry_logger.gave_up(e, attempt)
                raise

            retry_logger.attempt_failed(e, attempt, config.max_attempts)
            if on_retry is not None:
                on_retry(e, attempt)
            await asyncio.sleep(config.get_delay(attempt))
