"""Data models for the workflow engine."""

from .nodes import (
    NodeType,
    Position,
    BaseNodeConfig,
    TriggerNodeConfig,
    ActionNodeConfig,
    TableNodeConfig,
    PageNodeConfig,
    EmailNodeConfig,
    LineItem,
    InvoiceNodeConfig,
    ReportNodeConfig,
    NotificationNodeConfig,
    NodeConfig,
    NODE_CONFIG_TYPES,
)
from .core import (
    ExecutionStatusEnum,
    ErrorHandlingMode,
    ErrorKind,
    ValidationResult,
    Connection,
    WorkflowSettings,
    Workflow,
    NodeExecutionContext,
    WorkflowExecution,
)
from .builder import WorkflowBuilder

__all__ = [
    "NodeType",
    "Position",
    "BaseNodeConfig",
    "TriggerNodeConfig",
    "ActionNodeConfig",
    "TableNodeConfig",
    "PageNodeConfig",
    "EmailNodeConfig",
    "LineItem",
    "InvoiceNodeConfig",
    "ReportNodeConfig",
    "NotificationNodeConfig",
    "NodeConfig",
    "NODE_CONFIG_TYPES",
    "ExecutionStatusEnum",
    "ErrorHandlingMode",
    "ErrorKind",
    "ValidationResult",
    "Connection",
    "WorkflowSettings",
    "Workflow",
    "NodeExecutionContext",
    "WorkflowExecution",
    "WorkflowBuilder",
]
