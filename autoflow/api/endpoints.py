"""FastAPI REST endpoints for the workflow engine."""

from datetime import datetime, timezone
from typing import Dict, List, Any, Optional
from fastapi import APIRouter, HTTPException, Depends, status
from pydantic import Field

from ..core.execution_engine import WorkflowExecutionEngine
from ..core.validator import validate_workflow
from ..models.core import ValidationResult, Workflow, WorkflowExecution
from ..models.nodes import NodeType, WireModel
from ..core.logging import get_logger

logger = get_logger(__name__)

# Create router
router = APIRouter(prefix="/api/v1", tags=["workflow"])

# Global instance (initialized by the application factory)
_execution_engine: Optional[WorkflowExecutionEngine] = None


def init_dependencies(execution_engine: WorkflowExecutionEngine):
    """Initialize the global dependencies."""
    global _execution_engine
    _execution_engine = execution_engine


def get_execution_engine() -> WorkflowExecutionEngine:
    """Dependency to get execution engine."""
    if _execution_engine is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Execution engine not initialized"
        )
    return _execution_engine


# Request/Response models
class ExecuteWorkflowRequest(WireModel):
    """Request model for running a workflow."""
    workflow: Workflow = Field(..., description="Workflow to execute")
    trigger_data: Optional[Dict[str, Any]] = Field(None, description="Payload merged into trigger node inputs")


class CancelExecutionResponse(WireModel):
    """Response model for execution cancellation."""
    execution_id: str
    cancelled: bool
    message: str


# Endpoints

@router.post(
    "/workflows/validate",
    response_model=ValidationResult,
    summary="Validate a workflow",
    description="Check a workflow for missing triggers, cycles and dangling connections"
)
async def validate_workflow_endpoint(workflow: Workflow) -> ValidationResult:
    """
    Validate a workflow definition.

    Args:
        workflow: Workflow to check

    Returns:
        Validation result with errors and warnings
    """
    logger.debug(f"Validating workflow: {workflow.name}")
    result = validate_workflow(workflow)
    logger.debug(f"Workflow validation completed. Valid: {result.is_valid}")
    return result


@router.post(
    "/workflows/execute",
    response_model=WorkflowExecution,
    summary="Execute a workflow",
    description="Run a workflow to completion and return its execution record"
)
async def execute_workflow(
    request: ExecuteWorkflowRequest,
    execution_engine: WorkflowExecutionEngine = Depends(get_execution_engine)
) -> WorkflowExecution:
    """
    Execute a workflow.

    A run that fails still returns 200; the outcome is in the record's
    ``status``, ``error`` and ``errorKind`` fields.

    Args:
        request: Workflow and optional trigger payload
        execution_engine: Execution engine dependency

    Returns:
        The finalized execution record
    """
    logger.info(f"Executing workflow '{request.workflow.name}' ({request.workflow.id})")

    execution = await execution_engine.execute_workflow(request.workflow, request.trigger_data)

    logger.info(f"Workflow execution {execution.id} finished: {execution.status.value}")
    return execution


@router.post(
    "/executions/{execution_id}/cancel",
    response_model=CancelExecutionResponse,
    summary="Cancel workflow execution",
    description="Stop an in-flight workflow execution before its next node"
)
async def cancel_execution(
    execution_id: str,
    execution_engine: WorkflowExecutionEngine = Depends(get_execution_engine)
) -> CancelExecutionResponse:
    """
    Cancel a workflow execution.

    Args:
        execution_id: ID of the run to cancel
        execution_engine: Execution engine dependency

    Returns:
        Cancellation result

    Raises:
        HTTPException: If the execution is not in flight
    """
    logger.info(f"Cancelling workflow execution: {execution_id}")

    if not execution_engine.cancel_execution(execution_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "ExecutionNotFound",
                "message": f"Execution '{execution_id}' is not running",
                "details": {"execution_id": execution_id}
            }
        )

    return CancelExecutionResponse(
        execution_id=execution_id,
        cancelled=True,
        message=f"Execution {execution_id} will stop before its next node"
    )


@router.get(
    "/executions/active",
    response_model=List[str],
    summary="List active executions"
)
async def list_active_executions(
    execution_engine: WorkflowExecutionEngine = Depends(get_execution_engine)
) -> List[str]:
    return execution_engine.get_active_executions()


@router.get(
    "/processors",
    summary="List registered processors",
    description="Map each node ID with a registered processor to the processor's class name"
)
async def list_processors(
    execution_engine: WorkflowExecutionEngine = Depends(get_execution_engine)
) -> Dict[str, str]:
    return execution_engine.registry.list_processors()


@router.get("/node-types", summary="List node types")
async def list_node_types() -> List[str]:
    return [node_type.value for node_type in NodeType]


@router.get("/health", summary="API health check")
async def api_health(
    execution_engine: WorkflowExecutionEngine = Depends(get_execution_engine)
) -> Dict[str, Any]:
    """Report engine liveness and the number of runs in flight."""
    return {
        "status": "healthy",
        "active_executions": len(execution_engine.get_active_executions()),
        "registered_processors": len(execution_engine.registry),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
