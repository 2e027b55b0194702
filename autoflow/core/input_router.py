"""Assembly of a node's input payload from upstream outputs, variables and trigger data."""

from typing import Any, Dict

from ..models.core import ExecutionStatusEnum, Workflow, WorkflowExecution
from ..models.nodes import NodeConfig, NodeType
from .logging import get_logger

logger = get_logger(__name__)


def resolve_inputs(node: NodeConfig, workflow: Workflow, execution: WorkflowExecution) -> Dict[str, Any]:
    """
    Build the input mapping for a node about to run.

    Sources, later ones overwriting earlier ones key by key:

    1. For each connection into ``node`` whose source has completed in this run,
       the source's ``source_output`` value stored under ``target_input``.
       Sources that failed, were skipped or have not run contribute nothing.
    2. Workflow variables.
    3. The run's trigger data, for trigger nodes only.

    Args:
        node: Node about to execute
        workflow: Workflow being run
        execution: Run record so far

    Returns:
        A new dictionary; values are not deep-merged.
    """
    input_data: Dict[str, Any] = {}

    for connection in workflow.incoming_connections(node.id):
        source_execution = execution.get_node_execution(connection.source_node_id)
        if source_execution is None or source_execution.status != ExecutionStatusEnum.COMPLETED:
            logger.debug(
                f"Input '{connection.target_input}' of node {node.id} left unset: "
                f"source {connection.source_node_id} has not completed"
            )
            continue
        input_data[connection.target_input] = source_execution.output_data.get(connection.source_output)

    if workflow.variables:
        input_data.update(workflow.variables)

    if node.type == NodeType.TRIGGER and execution.trigger_data:
        input_data.update(execution.trigger_data)

    return input_data
