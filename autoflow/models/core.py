"""Core Pydantic models for workflows and their execution records."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from .nodes import NodeConfig, NodeType, WireModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExecutionStatusEnum(str, Enum):
    """Status of a workflow run or of a single node within it."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ErrorHandlingMode(str, Enum):
    """What the engine does after a node fails."""
    STOP = "stop"
    CONTINUE = "continue"
    RETRY = "retry"


class ErrorKind(str, Enum):
    """Machine-readable classification of a recorded failure."""
    PROCESSOR_ERROR = "processor_error"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    NO_TRIGGER = "no_trigger"
    VALIDATION = "validation"
    ENGINE_ERROR = "engine_error"


class ValidationResult(WireModel):
    """Result of workflow validation."""
    is_valid: bool = Field(..., description="Whether the workflow is valid")
    errors: List[str] = Field(default_factory=list, description="List of validation errors")
    warnings: List[str] = Field(default_factory=list, description="List of validation warnings")


class Connection(WireModel):
    """Directed data-flow edge from one node's output port to another node's input port."""
    id: str = Field(..., description="Unique identifier of the connection")
    source_node_id: str = Field(..., description="Node producing the value")
    target_node_id: str = Field(..., description="Node consuming the value")
    source_output: str = Field(..., description="Key read from the source node's output")
    target_input: str = Field(..., description="Key written into the target node's input")
    label: Optional[str] = None

    @field_validator('id', 'source_node_id', 'target_node_id')
    @classmethod
    def validate_ids(cls, value):
        """Ensure identifiers are not blank."""
        if not value or not value.strip():
            raise ValueError("Connection identifiers cannot be empty")
        return value.strip()


class WorkflowSettings(WireModel):
    """Workflow-wide execution settings."""
    error_handling: ErrorHandlingMode = Field(ErrorHandlingMode.STOP, description="Policy after a node failure")
    max_execution_time: Optional[int] = Field(None, description="Whole-run deadline in milliseconds")
    max_retries: Optional[int] = Field(None, ge=0, description="Default retry budget for processors")

    @field_validator('max_execution_time')
    @classmethod
    def validate_max_execution_time(cls, value):
        if value is not None and value <= 0:
            raise ValueError("Maximum execution time must be a positive number of milliseconds")
        return value


class Workflow(WireModel):
    """A set of nodes and the connections routing data between them."""
    id: str = Field(..., description="Workflow identifier")
    name: str = Field(..., description="Workflow name")
    description: Optional[str] = None
    version: str = Field("1.0.0", description="Workflow version")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_active: bool = True
    nodes: List[NodeConfig] = Field(default_factory=list, description="Nodes in insertion order")
    connections: List[Connection] = Field(default_factory=list, description="Data-flow edges")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Global workflow variables")
    settings: WorkflowSettings = Field(default_factory=WorkflowSettings)

    @field_validator('nodes')
    @classmethod
    def validate_unique_node_ids(cls, nodes):
        """Ensure all node IDs are unique."""
        seen = set()
        for node in nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node ID: {node.id}")
            seen.add(node.id)
        return nodes

    @field_validator('connections')
    @classmethod
    def validate_unique_connection_ids(cls, connections):
        """Ensure all connection IDs are unique."""
        seen = set()
        for connection in connections:
            if connection.id in seen:
                raise ValueError(f"Duplicate connection ID: {connection.id}")
            seen.add(connection.id)
        return connections

    @field_validator('variables', mode='before')
    @classmethod
    def default_variables(cls, variables):
        return variables if variables is not None else {}

    def get_node(self, node_id: str) -> Optional[NodeConfig]:
        """Find a node by ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def trigger_nodes(self) -> List[NodeConfig]:
        """Trigger nodes in insertion order."""
        return [node for node in self.nodes if node.type == NodeType.TRIGGER]

    def incoming_connections(self, node_id: str) -> List[Connection]:
        return [conn for conn in self.connections if conn.target_node_id == node_id]

    def outgoing_connections(self, node_id: str) -> List[Connection]:
        return [conn for conn in self.connections if conn.source_node_id == node_id]


class NodeExecutionContext(WireModel):
    """Runtime record of one attempted node within a workflow run."""
    node_id: str
    workflow_id: str
    execution_id: str
    input_data: Dict[str, Any] = Field(default_factory=dict)
    output_data: Dict[str, Any] = Field(default_factory=dict)
    status: ExecutionStatusEnum = ExecutionStatusEnum.PENDING
    start_time: datetime = Field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    logs: List[str] = Field(default_factory=list)

    def log(self, message: str) -> None:
        """Append a timestamped line to the node's log."""
        self.logs.append(f"[{utc_now().isoformat()}] {message}")

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() * 1000


class WorkflowExecution(WireModel):
    """Complete record of one workflow run."""
    id: str = Field(..., description="Engine-generated execution identifier")
    workflow_id: str
    status: ExecutionStatusEnum = ExecutionStatusEnum.PENDING
    start_time: datetime = Field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    trigger_data: Optional[Dict[str, Any]] = None
    node_executions: List[NodeExecutionContext] = Field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    def get_node_execution(self, node_id: str) -> Optional[NodeExecutionContext]:
        """Return the record for ``node_id`` if it was attempted in this run."""
        for node_execution in self.node_executions:
            if node_execution.node_id == node_id:
                return node_execution
        return None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() * 1000
