"""Core workflow engine components."""

from .exceptions import (
    WorkflowEngineError,
    WorkflowValidationError,
    CircularDependencyError,
    NodeExecutionError,
    MissingInputError,
    NodeTimeoutError,
    ExecutionTimeoutError,
    ExecutionCancelledError,
    ProcessorRegistryError,
    TransientError,
    ConfigurationError,
    APIError,
)
from .logging import setup_logging, get_logger
from .scheduler import get_execution_order, find_reachable_nodes
from .validator import WorkflowValidator, validate_workflow
from .input_router import resolve_inputs

__all__ = [
    "WorkflowEngineError",
    "WorkflowValidationError",
    "CircularDependencyError",
    "NodeExecutionError",
    "MissingInputError",
    "NodeTimeoutError",
    "ExecutionTimeoutError",
    "ExecutionCancelledError",
    "ProcessorRegistryError",
    "TransientError",
    "ConfigurationError",
    "APIError",
    "setup_logging",
    "get_logger",
    "get_execution_order",
    "find_reachable_nodes",
    "WorkflowValidator",
    "validate_workflow",
    "resolve_inputs",
]
