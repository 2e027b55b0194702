"""Processor-level retries driven by a node's retry budget."""

from typing import Any, Dict, Optional

from ..core.error_recovery import RetryConfig, execute_async_with_retry
from ..models.core import NodeExecutionContext
from ..models.nodes import NodeConfig
from .base import NodeProcessor, invoke_processor


class RetryingProcessor:
    """Re-invokes an inner processor after failures.

    The node's ``retry_count`` sets the number of extra attempts, falling back
    to ``default_retries`` (normally the workflow's ``max_retries``). Errors the
    engine marks as non-recoverable, such as a missing required input, are not
    retried. The inner processor must tolerate repeated invocation.
    """

    def __init__(
        self,
        inner: NodeProcessor,
        node: NodeConfig,
        default_retries: Optional[int] = None,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        jitter: bool = True,
    ):
        self.inner = inner
        self.node = node
        retries = node.retry_count if node.retry_count is not None else (default_retries or 0)
        self.retry_config = RetryConfig(
            max_attempts=retries + 1,
            base_delay=base_delay,
            max_delay=max_delay,
            jitter=jitter,
            retryable_exceptions=[Exception],
        )

    @property
    def max_attempts(self) -> int:
        return self.retry_config.max_attempts

    async def execute(self, context: NodeExecutionContext) -> Dict[str, Any]:
        def note_retry(error: Exception, attempt: int) -> None:
            context.log(f"Attempt {attempt}/{self.max_attempts} failed: {error}; retrying")

        return await execute_async_with_retry(
            invoke_processor,
            self.retry_config,
            self.inner,
            context,
            operation=f"node_{self.node.id}",
            on_retry=note_retry,
        )

    def __repr__(self) -> str:
        return f"RetryingProcessor({self.inner!r}, max_attempts={self.max_attempts})"
