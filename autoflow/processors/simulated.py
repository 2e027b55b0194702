"""Simulated processor used when no real processor is registered for a node."""

import asyncio
import random
import time
from typing import Any, Dict, Optional

from ..core.logging import get_logger
from ..models.core import NodeExecutionContext
from ..models.nodes import NodeConfig, NodeType

logger = get_logger(__name__)


class SimulatedProcessor:
    """Stand-in for a real integration during local development and tests.

    Waits a random delay to model external-call latency, then returns a canned
    payload shaped for the node's type.
    """

    def __init__(
        self,
        node: NodeConfig,
        min_delay_ms: float = 500,
        max_delay_ms: float = 1500,
        rng: Optional[random.Random] = None,
    ):
        if min_delay_ms < 0 or max_delay_ms < min_delay_ms:
            raise ValueError("Simulated delay bounds must satisfy 0 <= min <= max")
        self.node = node
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self._rng = rng or random.Random()

    async def execute(self, context: NodeExecutionContext) -> Dict[str, Any]:
        context.log(f"Executing simulated process for node {self.node.name}")
        logger.info(f"Simulating node {self.node.id} ({self.node.type})")

        delay_ms = self._rng.uniform(self.min_delay_ms, self.max_delay_ms)
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

        return self._canned_output()

    def _canned_output(self) -> Dict[str, Any]:
        node = self.node
        if node.type == NodeType.ACTION:
            return {"success": True, "data": f"Simulated API response for {node.name}"}
        if node.type == NodeType.TABLE:
            return {"recordsAffected": self._rng.randint(1, 10)}
        if node.type == NodeType.EMAIL:
            return {"sent": True, "messageId": f"msg_{int(time.time() * 1000)}"}
        if node.type == NodeType.NOTIFICATION:
            return {"delivered": True, "recipients": list(node.recipients)}
        return {"processed": True}
