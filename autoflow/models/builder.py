"""Programmatic construction and editing of workflows."""

from typing import Any, Dict, List, Optional, Union

from .core import Connection, ErrorHandlingMode, Workflow, WorkflowSettings, utc_now
from .nodes import NODE_CONFIG_TYPES, NodeConfig, NodeType, Position


class WorkflowBuilder:
    """Mutable editor for a workflow definition.

    Mirrors the editing operations of the visual builder: nodes and connections
    are added and removed here, and :meth:`build` produces an independent
    :class:`Workflow` snapshot for the engine.
    """

    def __init__(
        self,
        workflow_id: str,
        name: str,
        description: Optional[str] = None,
        version: str = "1.0.0",
    ):
        self.workflow_id = workflow_id
        self.name = name
        self.description = description
        self.version = version
        self.created_at = utc_now()
        self.updated_at = self.created_at
        self.nodes: List[NodeConfig] = []
        self.connections: List[Connection] = []
        self.variables: Dict[str, Any] = {}
        self.settings = WorkflowSettings()
        self._connection_counter = 0

    @classmethod
    def from_workflow(cls, workflow: Workflow) -> "WorkflowBuilder":
        """Start editing a copy of an existing workflow."""
        builder = cls(workflow.id, workflow.name, workflow.description, workflow.version)
        copy = workflow.model_copy(deep=True)
        builder.created_at = copy.created_at or builder.created_at
        builder.nodes = list(copy.nodes)
        builder.connections = list(copy.connections)
        builder.variables = dict(copy.variables)
        builder.settings = copy.settings
        builder._connection_counter = len(builder.connections)
        return builder

    def _touch(self) -> None:
        self.updated_at = utc_now()

    def add_node(self, node: NodeConfig) -> "WorkflowBuilder":
        if any(existing.id == node.id for existing in self.nodes):
            raise ValueError(f"Node '{node.id}' already exists")
        self.nodes.append(node)
        self._touch()
        return self

    def add(self, node_type: Union[NodeType, str], node_id: str, name: str, **fields) -> "WorkflowBuilder":
        """Create a node of ``node_type`` from keyword fields and add it."""
        model = NODE_CONFIG_TYPES[NodeType(node_type)]
        return self.add_node(model(id=node_id, name=name, **fields))

    def update_node(self, node: NodeConfig) -> "WorkflowBuilder":
        """Replace the node with the same ID. Unknown IDs are ignored."""
        for index, existing in enumerate(self.nodes):
            if existing.id == node.id:
                self.nodes[index] = node
                self._touch()
                break
        return self

    def remove_node(self, node_id: str) -> "WorkflowBuilder":
        """Remove a node together with every connection touching it."""
        self.nodes = [node for node in self.nodes if node.id != node_id]
        self.connections = [
            conn for conn in self.connections
            if conn.source_node_id != node_id and conn.target_node_id != node_id
        ]
        self._touch()
        return self

    def move_node(self, node_id: str, x: float, y: float) -> "WorkflowBuilder":
        for node in self.nodes:
            if node.id == node_id:
                node.position = Position(x=x, y=y)
                self._touch()
                break
        return self

    def connect(
        self,
        source_node_id: str,
        target_node_id: str,
        source_output: str = "output",
        target_input: str = "input",
        connection_id: Optional[str] = None,
        label: Optional[str] = None,
    ) -> "WorkflowBuilder":
        """Route ``source_output`` of one node into ``target_input`` of another.

        Endpoints are not checked here; dangling references are reported by the
        validator.
        """
        if connection_id is None:
            self._connection_counter += 1
            connection_id = f"conn_{self._connection_counter}"
            while any(conn.id == connection_id for conn in self.connections):
                self._connection_counter += 1
                connection_id = f"conn_{self._connection_counter}"
        self.connections.append(Connection(
            id=connection_id,
            source_node_id=source_node_id,
            target_node_id=target_node_id,
            source_output=source_output,
            target_input=target_input,
            label=label,
        ))
        self._touch()
        return self

    def disconnect(self, connection_id: str) -> "WorkflowBuilder":
        self.connections = [conn for conn in self.connections if conn.id != connection_id]
        self._touch()
        return self

    def set_variable(self, key: str, value: Any) -> "WorkflowBuilder":
        self.variables[key] = value
        self._touch()
        return self

    def configure(
        self,
        error_handling: Optional[Union[ErrorHandlingMode, str]] = None,
        max_execution_time: Optional[int] = None,
        max_retries: Optional[int] = None,
    ) -> "WorkflowBuilder":
        """Update workflow settings; arguments left as ``None`` are unchanged."""
        updates: Dict[str, Any] = {}
        if error_handling is not None:
            updates["error_handling"] = ErrorHandlingMode(error_handling)
        if max_execution_time is not None:
            updates["max_execution_time"] = max_execution_time
        if max_retries is not None:
            updates["max_retries"] = max_retries
        self.settings = WorkflowSettings.model_validate({**self.settings.model_dump(), **updates})
        self._touch()
        return self

    def build(self) -> Workflow:
        """Return a validated, independent workflow snapshot."""
        workflow = Workflow(
            id=self.workflow_id,
            name=self.name,
            description=self.description,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
            nodes=list(self.nodes),
            connections=list(self.connections),
            variables=dict(self.variables),
            settings=self.settings,
        )
        return workflow.model_copy(deep=True)
