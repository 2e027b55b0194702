"""Automation Workflow Engine: build, validate and run node-based workflows."""

from .models import (
    Workflow,
    WorkflowBuilder,
    WorkflowExecution,
    NodeExecutionContext,
    ValidationResult,
)
from .core import validate_workflow, get_execution_order, resolve_inputs
from .processors import NodeProcessor, SimulatedProcessor, FunctionProcessor, RetryingProcessor
from .core.processor_registry import ProcessorRegistry
from .core.execution_engine import WorkflowExecutionEngine

__version__ = "1.0.0"

__all__ = [
    "Workflow",
    "WorkflowBuilder",
    "WorkflowExecution",
    "NodeExecutionContext",
    "ValidationResult",
    "validate_workflow",
    "get_execution_order",
    "resolve_inputs",
    "NodeProcessor",
    "SimulatedProcessor",
    "FunctionProcessor",
    "RetryingProcessor",
    "ProcessorRegistry",
    "WorkflowExecutionEngine",
]
