"""Node processors: the capability interface and stock implementations."""

from .base import NodeProcessor, invoke_processor, require_inputs
from .function import FunctionProcessor
from .retry import RetryingProcessor
from .simulated import SimulatedProcessor

__all__ = [
    "NodeProcessor",
    "invoke_processor",
    "require_inputs",
    "FunctionProcessor",
    "RetryingProcessor",
    "SimulatedProcessor",
]
