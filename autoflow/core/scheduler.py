"""Topological scheduling of workflow nodes."""

from collections import deque
from typing import Dict, Iterator, List, Set, Tuple

from ..models.core import Workflow
from .exceptions import CircularDependencyError
from .logging import get_logger

logger = get_logger(__name__)


def build_dependency_map(workflow: Workflow) -> Dict[str, List[str]]:
    """Map each target node ID to the source node IDs feeding it, in connection order."""
    dependencies: Dict[str, List[str]] = {}
    for connection in workflow.connections:
        dependencies.setdefault(connection.target_node_id, []).append(connection.source_node_id)
    return dependencies


def get_execution_order(workflow: Workflow, strict: bool = False) -> List[str]:
    """
    Compute the order in which nodes are attempted for one run.

    Only nodes reachable downstream from a trigger are scheduled. Post-order
    depth-first traversal seeded from every trigger in insertion order, then
    from every other scheduled node in insertion order: a node's upstream
    sources are appended before the node itself. Each node is visited once, so
    a cycle ends the descent silently.

    Args:
        workflow: Workflow to schedule; it need not be valid
        strict: Raise instead of silently truncating when a cycle is met

    Returns:
        Node IDs in execution order. Connections pointing at missing nodes can
        contribute IDs with no matching node.

    Raises:
        CircularDependencyError: If ``strict`` and a dependency cycle is found
    """
    dependencies = build_dependency_map(workflow)
    reachable = find_reachable_nodes(workflow)
    seeds = [node.id for node in workflow.trigger_nodes()]
    seeds += [node.id for node in workflow.nodes if node.id in reachable and node.id not in seeds]

    visited: Set[str] = set()
    order: List[str] = []

    for seed in seeds:
        if seed in visited:
            continue
        visited.add(seed)
        stack: List[Tuple[str, Iterator[str]]] = [(seed, iter(dependencies.get(seed, [])))]
        on_stack: Set[str] = {seed}

        while stack:
            node_id, pending = stack[-1]
            for dependency in pending:
                if dependency not in reachable:
                    continue
                if dependency in visited:
                    if strict and dependency in on_stack:
                        path = [entry[0] for entry in stack]
                        cycle = [dependency] + list(reversed(path[path.index(dependency):]))
                        raise CircularDependencyError(
                            f"Circular dependency detected: {' -> '.join(cycle)}",
                            cycle=cycle,
                            workflow_id=workflow.id
                        )
                    continue
                visited.add(dependency)
                on_stack.add(dependency)
                stack.append((dependency, iter(dependencies.get(dependency, []))))
                break
            else:
                stack.pop()
                on_stack.discard(node_id)
                order.append(node_id)

    logger.debug(f"Execution order for workflow {workflow.id}: {order}")
    return order


def find_reachable_nodes(workflow: Workflow) -> Set[str]:
    """Node IDs reachable downstream from any trigger node."""
    adjacency: Dict[str, List[str]] = {}
    for connection in workflow.connections:
        adjacency.setdefault(connection.source_node_id, []).append(connection.target_node_id)

    reachable = {node.id for node in workflow.trigger_nodes()}
    queue = deque(reachable)
    while queue:
        current = queue.popleft()
        for neighbor in adjacency.get(current, []):
            if neighbor not in reachable:
                reachable.add(neighbor)
                queue.append(neighbor)
    return reachable
