"""Execution Engine for workflow processing."""

import asyncio
import functools
import threading
import uuid
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

from ..config import AppConfig, get_config
from ..models.core import (
    ErrorHandlingMode, ErrorKind, ExecutionStatusEnum,
    NodeExecutionContext, Workflow, WorkflowExecution, utc_now
)
from ..models.nodes import NodeConfig
from ..processors.base import NodeProcessor, invoke_processor
from ..processors.function import FunctionProcessor
from ..processors.simulated import SimulatedProcessor
from .exceptions import (
    ExecutionCancelledError, ExecutionTimeoutError, NodeTimeoutError, WorkflowValidationError
)
from .input_router import resolve_inputs
from .logging import get_logger, logging_context
from .processor_registry import ProcessorRegistry
from .scheduler import get_execution_order
from .validator import validate_workflow

logger = get_logger(__name__)


class _RunClock:
    """Tracks the remaining wall-clock budget of one run."""

    def __init__(self, budget_ms: Optional[int]):
        self.budget_ms = budget_ms
        self.exhausted = False
        self._loop = asyncio.get_running_loop()
        self._deadline = None if budget_ms is None else self._loop.time() + budget_ms / 1000

    def remaining_ms(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max((self._deadline - self._loop.time()) * 1000, 0.0)


class WorkflowExecutionEngine:
    """Runs workflows node by node in dependency order and records the outcome."""

    def __init__(self, registry: Optional[ProcessorRegistry] = None, config: Optional[AppConfig] = None):
        """Initialize the execution engine.

        Args:
            registry: Processor registry to use. Each engine gets its own by default.
            config: Engine configuration; the global configuration when omitted
        """
        self.config = config or get_config()
        self.registry = registry or ProcessorRegistry(
            default_factory=functools.partial(
                SimulatedProcessor,
                min_delay_ms=self.config.simulated_delay_min_ms,
                max_delay_ms=self.config.simulated_delay_max_ms
            )
        )

        self._active_executions: Dict[str, asyncio.Event] = {}
        self._lock = threading.RLock()

        logger.info(
            f"WorkflowExecutionEngine initialized (validate_before_run={self.config.validate_before_run}, "
            f"strict_scheduling={self.config.strict_scheduling})"
        )

    def register_processor(self, node_id: str, processor: NodeProcessor) -> None:
        """Register the processor that executes ``node_id``."""
        self.registry.register_processor(node_id, processor)

    def register_function(
        self,
        node_id: str,
        func: Callable[[NodeExecutionContext], Any],
        name: str = ""
    ) -> FunctionProcessor:
        """Register a plain function as the processor for ``node_id``."""
        return self.registry.register_function(node_id, func, name=name)

    def cancel_execution(self, execution_id: str) -> bool:
        """
        Request cancellation of an in-flight run.

        The run stops before its next node starts; the node currently running
        is allowed to finish.

        Args:
            execution_id: ID of the run to cancel

        Returns:
            True if the run was in flight, False otherwise
        """
        with self._lock:
            event = self._active_executions.get(execution_id)
        if event is None:
            logger.warning(f"Cannot cancel execution {execution_id}: not running")
            return False
        event.set()
        logger.info(f"Cancellation requested for execution {execution_id}")
        return True

    def get_active_executions(self) -> List[str]:
        """IDs of runs currently in flight."""
        with self._lock:
            return list(self._active_executions.keys())

    async def execute_workflow(
        self,
        workflow: Workflow,
        trigger_data: Optional[Dict[str, Any]] = None
    ) -> WorkflowExecution:
        """
        Run a workflow once.

        Nodes run one at a time in scheduler order. Each attempted node gets a
        context appended to ``node_executions``; node failures are handled
        according to ``workflow.settings.error_handling``.

        Args:
            workflow: Workflow to run; it is never modified
            trigger_data: Payload merged into the inputs of trigger nodes

        Returns:
            The finalized execution record. Failures are reported through its
            ``status``, ``error`` and ``error_kind`` fields; this method does not raise.
        """
        execution = WorkflowExecution(
            id=str(uuid.uuid4()),
            workflow_id=workflow.id,
            status=ExecutionStatusEnum.RUNNING
        )
        cancel_event = asyncio.Event()
        with self._lock:
            self._active_executions[execution.id] = cancel_event

        with logging_context(execution_id=execution.id, workflow_id=workflow.id):
            logger.info(f"Starting execution {execution.id} of workflow '{workflow.name}'")

            try:
                await self._run(workflow, execution, trigger_data, cancel_event)
            except WorkflowValidationError as e:
                logger.error(f"Execution {execution.id} rejected: {e}")
                self._fail(execution, str(e), ErrorKind.VALIDATION)
            except ExecutionCancelledError as e:
                logger.info(f"Execution {execution.id} cancelled after {len(execution.node_executions)} node(s)")
                self._fail(execution, e.message, ErrorKind.CANCELLED)
            except Exception as e:
                logger.error(f"Execution {execution.id} failed with unexpected error: {e}", exc_info=True)
                self._fail(execution, str(e) or type(e).__name__, ErrorKind.ENGINE_ERROR)
            finally:
                execution.end_time = utc_now()
                with self._lock:
                    self._active_executions.pop(execution.id, None)
                logger.info(
                    f"Execution {execution.id} finished with status {execution.status.value} "
                    f"after {len(execution.node_executions)} node(s)"
                )

        return execution

    def run_workflow(
        self,
        workflow: Workflow,
        trigger_data: Optional[Dict[str, Any]] = None
    ) -> WorkflowExecution:
        """Synchronous wrapper around :meth:`execute_workflow` for callers without an event loop."""
        return asyncio.run(self.execute_workflow(workflow, trigger_data))

    async def _run(
        self,
        workflow: Workflow,
        execution: WorkflowExecution,
        trigger_data: Optional[Dict[str, Any]],
        cancel_event: asyncio.Event
    ) -> None:
        if trigger_data is not None:
            if not isinstance(trigger_data, Mapping):
                raise WorkflowValidationError(
                    f"Trigger data must be a mapping, got {type(trigger_data).__name__}",
                    workflow_id=workflow.id
                )
            execution.trigger_data = dict(trigger_data)

        if not workflow.trigger_nodes():
            logger.warning(f"Workflow {workflow.id} has no trigger nodes")
            self._fail(execution, "No trigger nodes found in workflow", ErrorKind.NO_TRIGGER)
            return

        if self.config.validate_before_run:
            result = validate_workflow(workflow)
            if not result.is_valid:
                raise WorkflowValidationError(
                    f"Workflow validation failed: {'; '.join(result.errors)}",
                    validation_errors=result.errors,
                    workflow_id=workflow.id
                )

        order = get_execution_order(workflow, strict=self.config.strict_scheduling)
        budget_ms = workflow.settings.max_execution_time or self.config.default_execution_timeout_ms
        clock = _RunClock(budget_ms)
        stop_on_error = workflow.settings.error_handling == ErrorHandlingMode.STOP

        for node_id in order:
            if cancel_event.is_set():
                raise ExecutionCancelledError("Workflow execution was cancelled", execution_id=execution.id)

            node = workflow.get_node(node_id)
            if node is None or not node.enabled:
                logger.debug(f"Skipping node {node_id}: missing or disabled")
                continue

            context = await self._execute_node(node, workflow, execution, clock)
            execution.node_executions.append(context)

            if context.status != ExecutionStatusEnum.FAILED:
                continue

            if clock.exhausted:
                self._fail(
                    execution,
                    f"Workflow exceeded maximum execution time of {budget_ms} ms",
                    ErrorKind.TIMEOUT
                )
                return

            if stop_on_error:
                self._fail(execution, f"Node {node.name} failed: {context.error}", context.error_kind)
                return

            logger.info(f"Continuing after failure of node {node.id}")

        execution.status = ExecutionStatusEnum.COMPLETED

    async def _execute_node(
        self,
        node: NodeConfig,
        workflow: Workflow,
        execution: WorkflowExecution,
        clock: _RunClock
    ) -> NodeExecutionContext:
        context = NodeExecutionContext(
            node_id=node.id,
            workflow_id=workflow.id,
            execution_id=execution.id,
            status=ExecutionStatusEnum.RUNNING
        )

        attempt = None
        try:
            context.input_data = resolve_inputs(node, workflow, execution)
            processor = self.registry.resolve(node)
            # The processor writes to a copy; only a call that ends before its deadline is kept
            attempt = context.model_copy(deep=True)
            context.output_data = await self._invoke_with_deadline(processor, node, attempt, clock)
            context.logs = attempt.logs
            context.status = ExecutionStatusEnum.COMPLETED
            logger.debug(f"Node {node.id} completed")
        except (NodeTimeoutError, ExecutionTimeoutError) as e:
            context.status = ExecutionStatusEnum.FAILED
            context.error = e.message
            context.error_kind = ErrorKind.TIMEOUT
            context.log(e.message)
            logger.warning(f"Node {node.id} timed out: {e.message}")
        except Exception as e:
            if attempt is not None:
                context.logs = attempt.logs
            context.status = ExecutionStatusEnum.FAILED
            context.error = str(e) or type(e).__name__
            context.error_kind = ErrorKind.PROCESSOR_ERROR
            logger.warning(f"Node {node.id} failed: {context.error}")
        finally:
            context.end_time = utc_now()

        return context

    async def _invoke_with_deadline(
        self,
        processor: NodeProcessor,
        node: NodeConfig,
        context: NodeExecutionContext,
        clock: _RunClock
    ) -> Dict[str, Any]:
        node_timeout_ms = node.timeout or self.config.default_node_timeout_ms
        remaining_ms = clock.remaining_ms()

        if remaining_ms == 0:
            clock.exhausted = True
            raise ExecutionTimeoutError(
                f"Run budget of {clock.budget_ms} ms exhausted before node {node.name} started",
                timeout_ms=clock.budget_ms,
                execution_id=context.execution_id
            )

        wait_ms = node_timeout_ms
        bounded_by_run = False
        if remaining_ms is not None and (wait_ms is None or remaining_ms < wait_ms):
            wait_ms = remaining_ms
            bounded_by_run = True

        if wait_ms is None:
            return await invoke_processor(processor, context)

        try:
            return await asyncio.wait_for(invoke_processor(processor, context), timeout=wait_ms / 1000)
        except asyncio.TimeoutError:
            if bounded_by_run:
                clock.exhausted = True
                raise ExecutionTimeoutError(
                    f"Node {node.name} interrupted: run budget of {clock.budget_ms} ms exhausted",
                    timeout_ms=clock.budget_ms,
                    execution_id=context.execution_id
                )
            raise NodeTimeoutError(
                f"Node {node.name} timed out after {node_timeout_ms} ms",
                timeout_ms=node_timeout_ms,
                node_id=node.id,
                execution_id=context.execution_id
            )

    @staticmethod
    def _fail(execution: WorkflowExecution, error: str, kind: Optional[ErrorKind]) -> None:
        execution.status = ExecutionStatusEnum.FAILED
        execution.error = error
        execution.error_kind = kind
