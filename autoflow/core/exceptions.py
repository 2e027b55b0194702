"""Custom exceptions for the workflow engine with detailed error information."""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels for categorizing exceptions."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for better classification."""
    VALIDATION = "validation"
    EXECUTION = "execution"
    TIMEOUT = "timeout"
    CANCELLATION = "cancellation"
    CONFIGURATION = "configuration"
    NETWORK = "network"


class WorkflowEngineError(Exception):
    """Base exception for all workflow engine errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.EXECUTION,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.severity = severity
        self.category = category
        self.details = details or {}
        self.recoverable = recoverable
        self.retry_after = retry_after
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "details": self.details,
            "recoverable": self.recoverable,
            "retry_after": self.retry_after,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "exception_type": self.__class__.__name__
        }

    def add_context(self, **kwargs):
        """Add additional context to the exception."""
        self.context.update(kwargs)
        return self

    def add_details(self, **kwargs):
        """Add additional details to the exception."""
        self.details.update(kwargs)
        return self


class WorkflowValidationError(WorkflowEngineError):
    """Raised when a workflow fails structural validation."""

    def __init__(
        self,
        message: str,
        validation_errors: Optional[List[str]] = None,
        workflow_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.VALIDATION,
            **kwargs
        )
        self.validation_errors = validation_errors or []
        if workflow_id:
            self.add_context(workflow_id=workflow_id)
        if validation_errors:
            self.add_details(validation_errors=validation_errors)


class CircularDependencyError(WorkflowValidationError):
    """Raised by strict scheduling when the dependency graph has a cycle."""

    def __init__(self, message: str, cycle: Optional[List[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.cycle = cycle or []
        if cycle:
            self.add_details(cycle=cycle)


class NodeExecutionError(WorkflowEngineError):
    """Raised when a node's processor fails."""

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        execution_id: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        kwargs.setdefault("category", ErrorCategory.EXECUTION)
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.node_id = node_id
        if node_id:
            self.add_context(node_id=node_id)
        if execution_id:
            self.add_context(execution_id=execution_id)


class MissingInputError(NodeExecutionError):
    """Raised by a processor when a required input field is absent."""

    def __init__(self, field_name: str, node_id: Optional[str] = None, **kwargs):
        super().__init__(
            f"Required input field '{field_name}' is missing",
            node_id=node_id,
            recoverable=False,
            **kwargs
        )
        self.field_name = field_name
        self.add_details(field=field_name)


class NodeTimeoutError(NodeExecutionError):
    """Raised when a node exceeds its deadline."""

    def __init__(self, message: str, timeout_ms: Optional[int] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.TIMEOUT,
            **kwargs
        )
        self.timeout_ms = timeout_ms
        if timeout_ms is not None:
            self.add_details(timeout_ms=timeout_ms)


class ExecutionTimeoutError(WorkflowEngineError):
    """Raised when a whole workflow run exceeds its maximum execution time."""

    def __init__(
        self,
        message: str,
        timeout_ms: Optional[int] = None,
        execution_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.TIMEOUT,
            **kwargs
        )
        self.timeout_ms = timeout_ms
        if timeout_ms is not None:
            self.add_details(timeout_ms=timeout_ms)
        if execution_id:
            self.add_context(execution_id=execution_id)


class ExecutionCancelledError(WorkflowEngineError):
    """Raised when a workflow run is cancelled before it finishes."""

    def __init__(self, message: str, execution_id: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.CANCELLATION,
            **kwargs
        )
        if execution_id:
            self.add_context(execution_id=execution_id)


class ProcessorRegistryError(WorkflowEngineError):
    """Raised when processor registry operations fail."""

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.CONFIGURATION,
            **kwargs
        )
        if node_id:
            self.add_context(node_id=node_id)
        if operation:
            self.add_context(operation=operation)


class TransientError(WorkflowEngineError):
    """Raised for transient errors that should be retried."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            recoverable=True,
            retry_after=5,
            **kwargs
        )


class ConfigurationError(WorkflowEngineError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.CONFIGURATION,
            **kwargs
        )
        if config_key:
            self.add_context(config_key=config_key)


class APIError(WorkflowEngineError):
    """Raised when API operations fail."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        endpoint: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.NETWORK,
            **kwargs
        )
        self.status_code = status_code
        if endpoint:
            self.add_context(endpoint=endpoint)
        self.add_details(status_code=status_code)


def create_error_response(error: WorkflowEngineError) -> Dict[str, Any]:
    """Create a standardized error response from a WorkflowEngineError."""
    return {
        "error": error.error_code,
        "message": error.message,
        "details": {
            **error.details,
            "severity": error.severity.value,
            "category": error.category.value,
            "recoverable": error.recoverable,
            "retry_after": error.retry_after,
            "timestamp": error.timestamp.isoformat()
        },
        "context": error.context
    }
