"""Structural validation of workflow graphs."""

from typing import Dict, List

from ..models.core import ValidationResult, Workflow
from .logging import get_logger
from .scheduler import find_reachable_nodes

logger = get_logger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


class WorkflowValidator:
    """Checks a workflow for problems that would make a run meaningless.

    Problems are returned as data, never raised, so a caller can show every
    issue at once. Validation has no side effects.
    """

    def validate(self, workflow: Workflow) -> ValidationResult:
        """
        Validate a workflow for structural correctness.

        Args:
            workflow: The workflow to validate

        Returns:
            ValidationResult: Validation results with errors and warnings
        """
        logger.debug(f"Validating workflow: {workflow.id}")

        errors: List[str] = []
        warnings: List[str] = []

        try:
            self._validate_triggers(workflow, errors, warnings)
            self._validate_cycles(workflow, errors, warnings)
            self._validate_connection_references(workflow, errors, warnings)
            self._validate_reachability(workflow, errors, warnings)
        except Exception as e:
            logger.error(f"Error during workflow validation: {str(e)}", exc_info=True)
            errors.append(f"Validation error: {str(e)}")

        result = ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)
        logger.debug(f"Workflow validation completed. Valid: {result.is_valid}, "
                     f"Errors: {len(result.errors)}, Warnings: {len(result.warnings)}")
        return result

    def _validate_triggers(self, workflow: Workflow, errors: List[str], warnings: List[str]):
        triggers = workflow.trigger_nodes()
        if not triggers:
            errors.append("Workflow must have at least one trigger node")
            return

        disabled = [node.id for node in triggers if not node.enabled]
        if disabled:
            warnings.append(f"Disabled trigger nodes: {', '.join(disabled)}")

    def _validate_cycles(self, workflow: Workflow, errors: List[str], warnings: List[str]):
        if self.has_circular_dependencies(workflow):
            errors.append("Workflow contains circular dependencies")

    def _validate_connection_references(self, workflow: Workflow, errors: List[str], warnings: List[str]):
        node_ids = {node.id for node in workflow.nodes}
        for connection in workflow.connections:
            if connection.source_node_id not in node_ids:
                errors.append(
                    f"Connection '{connection.id}' references non-existent source node: "
                    f"{connection.source_node_id}"
                )
            if connection.target_node_id not in node_ids:
                errors.append(
                    f"Connection '{connection.id}' references non-existent target node: "
                    f"{connection.target_node_id}"
                )

    def _validate_reachability(self, workflow: Workflow, errors: List[str], warnings: List[str]):
        if not workflow.trigger_nodes():
            return
        reachable = find_reachable_nodes(workflow)
        unreachable = [node.id for node in workflow.nodes if node.id not in reachable]
        if unreachable:
            warnings.append(
                f"Nodes not reachable from any trigger will never run: {', '.join(unreachable)}"
            )

    @staticmethod
    def has_circular_dependencies(workflow: Workflow) -> bool:
        """Three-color depth-first search over forward (source to target) edges."""
        adjacency: Dict[str, List[str]] = {}
        for connection in workflow.connections:
            adjacency.setdefault(connection.source_node_id, []).append(connection.target_node_id)

        color: Dict[str, int] = {}
        for node in workflow.nodes:
            if color.get(node.id, _WHITE) != _WHITE:
                continue
            color[node.id] = _GRAY
            stack = [(node.id, iter(adjacency.get(node.id, [])))]
            while stack:
                current, neighbors = stack[-1]
                for neighbor in neighbors:
                    state = color.get(neighbor, _WHITE)
                    if state == _GRAY:
                        return True
                    if state == _WHITE:
                        color[neighbor] = _GRAY
                        stack.append((neighbor, iter(adjacency.get(neighbor, []))))
                        break
                else:
                    color[current] = _BLACK
                    stack.pop()
        return False


_default_validator = WorkflowValidator()


def validate_workflow(workflow: Workflow) -> ValidationResult:
    """Validate ``workflow`` and return every structural problem found."""
    return _default_validator.validate(workflow)
