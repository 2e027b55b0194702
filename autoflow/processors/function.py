"""Adapter turning a plain callable into a processor."""

import inspect
from typing import Any, Callable, Dict

from ..core.exceptions import ProcessorRegistryError
from ..models.core import NodeExecutionContext
from .base import invoke_processor


class FunctionProcessor:
    """Wraps ``func(context) -> mapping`` (sync or async) as a processor."""

    def __init__(self, func: Callable[[NodeExecutionContext], Any], name: str = ""):
        if not callable(func):
            raise ProcessorRegistryError(f"Processor function {func!r} is not callable")

        try:
            signature = inspect.signature(func)
        except (ValueError, TypeError) as e:
            raise ProcessorRegistryError(f"Cannot inspect signature of processor function: {e}")
        if not signature.parameters:
            raise ProcessorRegistryError(
                f"Processor function '{getattr(func, '__name__', func)}' must accept the node context"
            )

        self.func = func
        self.name = name or getattr(func, "__name__", type(func).__name__)

    async def execute(self, context: NodeExecutionContext) -> Dict[str, Any]:
        return await invoke_processor(_CallableShim(self.func), context)

    def __repr__(self) -> str:
        return f"FunctionProcessor({self.name})"


class _CallableShim:
    """Exposes a bare function under the ``execute`` name."""

    def __init__(self, func: Callable[[NodeExecutionContext], Any]):
        self.execute = func
