"""The processor capability and helpers shared by processor implementations."""

import asyncio
import contextvars
import functools
import inspect
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict, Iterable, Protocol, Union, runtime_checkable

from ..core.exceptions import MissingInputError, NodeExecutionError
from ..models.core import NodeExecutionContext

ProcessorOutput = Union[Mapping, None]


@runtime_checkable
class NodeProcessor(Protocol):
    """Anything that performs a node's work.

    ``execute`` receives the node's context with ``input_data`` already
    resolved and returns the node's output mapping. It may be a coroutine
    function or a plain function, may append to ``context.logs``, and signals
    failure by raising. The engine may invoke it more than once per run when
    it is wrapped for retries.
    """

    def execute(self, context: NodeExecutionContext) -> Union[ProcessorOutput, Awaitable[ProcessorOutput]]:
        ...


async def invoke_processor(processor: NodeProcessor, context: NodeExecutionContext) -> Dict[str, Any]:
    """Run ``processor`` for ``context`` and normalize its output to a dict.

    Plain functions run in a worker thread so the event loop stays free and a
    deadline can still be applied to the wait. A worker thread cannot be
    interrupted: when the call is cancelled, the cancellation is held back
    until the thread returns, so a timed-out node never overlaps the next one.

    A ``TimeoutError`` raised by the processor itself, such as a socket read
    timeout, is reported as a :class:`NodeExecutionError`. Only the engine's
    own deadlines surface as timeouts.
    """
    try:
        result = await _call(processor.execute, context)
    except (TimeoutError, asyncio.TimeoutError) as e:
        raise NodeExecutionError(
            str(e) or type(e).__name__,
            node_id=context.node_id,
            execution_id=context.execution_id
        ) from e

    if result is None:
        return {}
    if not isinstance(result, Mapping):
        raise NodeExecutionError(
            f"Processor {type(processor).__name__} returned {type(result).__name__}, expected a mapping",
            node_id=context.node_id,
            execution_id=context.execution_id,
            recoverable=False
        )
    return dict(result)


async def _call(execute: Callable, context: NodeExecutionContext) -> Any:
    if inspect.iscoroutinefunction(execute):
        return await execute(context)

    loop = asyncio.get_running_loop()
    worker = loop.run_in_executor(None, functools.partial(contextvars.copy_context().run, execute, context))
    try:
        result = await asyncio.shield(worker)
    except asyncio.CancelledError:
        await asyncio.wait([worker])
        raise
    if inspect.isawaitable(result):
        result = await result
    return result


def require_inputs(context: NodeExecutionContext, required_fields: Iterable[str]) -> None:
    """Raise MissingInputError for the first required field that is absent or None."""
    for field_name in required_fields:
        if context.input_data.get(field_name) is None:
            raise MissingInputError(field_name, node_id=context.node_id, execution_id=context.execution_id)
