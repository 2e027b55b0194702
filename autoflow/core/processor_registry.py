"""Registry mapping node IDs to the processors that execute them."""

import threading
from typing import Any, Callable, Dict, Optional

from ..models.core import NodeExecutionContext
from ..models.nodes import NodeConfig
from ..processors.base import NodeProcessor
from ..processors.function import FunctionProcessor
from ..processors.simulated import SimulatedProcessor
from .exceptions import ProcessorRegistryError
from .logging import get_logger

logger = get_logger(__name__)

ProcessorFactory = Callable[[NodeConfig], NodeProcessor]


class ProcessorRegistry:
    """Per-engine registry of node processors keyed by node ID.

    Lookups fall back to a default processor built by ``default_factory`` for
    nodes with nothing registered. Registration and lookup are safe from
    concurrent runs.
    """

    def __init__(self, default_factory: Optional[ProcessorFactory] = None):
        """Initialize the processor registry.

        Args:
            default_factory: Builds the processor used for unregistered nodes.
                Defaults to :class:`SimulatedProcessor`.
        """
        self._processors: Dict[str, NodeProcessor] = {}
        self._lock = threading.RLock()
        self._default_factory: ProcessorFactory = default_factory or SimulatedProcessor

    @staticmethod
    def _normalize_node_id(node_id: str) -> str:
        if not node_id or not node_id.strip():
            raise ProcessorRegistryError("Node ID cannot be empty")
        return node_id.strip()

    def register_processor(self, node_id: str, processor: NodeProcessor) -> None:
        """Register a processor for a node, replacing any previous one.

        Args:
            node_id: ID of the node the processor executes
            processor: Object exposing ``execute(context)``

        Raises:
            ProcessorRegistryError: If the node ID is empty or the processor has no callable ``execute``
        """
        node_id = self._normalize_node_id(node_id)
        if not callable(getattr(processor, "execute", None)):
            raise ProcessorRegistryError(
                f"Processor for node '{node_id}' must provide a callable execute(context)",
                node_id=node_id,
                operation="register"
            )

        with self._lock:
            replaced = node_id in self._processors
            self._processors[node_id] = processor

        if replaced:
            logger.info(f"Replaced processor for node '{node_id}' with {type(processor).__name__}")
        else:
            logger.info(f"Registered processor {type(processor).__name__} for node '{node_id}'")

    def register_function(
        self,
        node_id: str,
        func: Callable[[NodeExecutionContext], Any],
        name: str = ""
    ) -> FunctionProcessor:
        """Register a plain ``func(context) -> mapping`` as the node's processor."""
        processor = FunctionProcessor(func, name=name)
        self.register_processor(node_id, processor)
        return processor

    def unregister_processor(self, node_id: str) -> bool:
        """Remove a node's processor.

        Returns:
            True if a processor was removed, False if none was registered
        """
        node_id = self._normalize_node_id(node_id)
        with self._lock:
            removed = self._processors.pop(node_id, None) is not None
        if removed:
            logger.info(f"Unregistered processor for node '{node_id}'")
        return removed

    def get_processor(self, node_id: str) -> Optional[NodeProcessor]:
        """Return the processor registered for ``node_id``, or None."""
        with self._lock:
            return self._processors.get(node_id)

    def has_processor(self, node_id: str) -> bool:
        with self._lock:
            return node_id in self._processors

    def resolve(self, node: NodeConfig) -> NodeProcessor:
        """Return the registered processor for ``node`` or a fresh default one."""
        processor = self.get_processor(node.id)
        if processor is not None:
            return processor
        logger.debug(f"No processor registered for node '{node.id}', using default")
        return self._default_factory(node)

    def list_processors(self) -> Dict[str, str]:
        """Map each node ID with a registered processor to the processor's class name."""
        with self._lock:
            return {node_id: type(processor).__name__ for node_id, processor in self._processors.items()}

    def clear(self) -> None:
        with self._lock:
            self._processors.clear()
        logger.debug("Processor registry cleared")

    def __contains__(self, node_id: str) -> bool:
        return self.has_processor(node_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._processors)
