"""Application factory for creating FastAPI instances."""

from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import AppConfig, get_config, validate_config
from .core.exceptions import WorkflowEngineError, create_error_response
from .core.execution_engine import WorkflowExecutionEngine
from .core.logging import setup_logging, get_logger
from .core.middleware import (
    ErrorHandlingMiddleware,
    PerformanceMonitoringMiddleware,
    get_status_code_for_error
)
from .api.endpoints import router, init_dependencies

logger = get_logger(__name__)


def create_lifespan_handler(config: AppConfig, execution_engine: WorkflowExecutionEngine):
    """Create the application lifespan handler."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(
            level=config.log_level.value,
            log_file=config.log_file,
            log_format=config.log_format,
            structured=config.log_structured,
            max_size=config.log_max_size,
            backup_count=config.log_backup_count
        )
        logger.info(f"Starting {config.app_name} v{config.app_version}")

        yield

        active = execution_engine.get_active_executions()
        for execution_id in active:
            execution_engine.cancel_execution(execution_id)
        logger.info(f"Shutting down {config.app_name} ({len(active)} execution(s) cancelled)")

    return lifespan


def create_app(
    config: Optional[AppConfig] = None,
    execution_engine: Optional[WorkflowExecutionEngine] = None
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        config: Application configuration; loaded from the environment when omitted
        execution_engine: Engine serving the API, e.g. one with processors already
            registered. A new engine is built from ``config`` when omitted.

    Returns:
        The configured application
    """
    if config is None:
        config = get_config()

    validate_config(config)

    if execution_engine is None:
        execution_engine = WorkflowExecutionEngine(config=config)
    init_dependencies(execution_engine)

    app = FastAPI(
        title=config.app_name,
        description="Build, validate and execute node-based automation workflows",
        version=config.app_version,
        debug=config.debug,
        lifespan=create_lifespan_handler(config, execution_engine)
    )
    app.state.config = config
    app.state.execution_engine = execution_engine

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=config.cors_methods,
            allow_headers=["*"],
        )

    app.add_middleware(PerformanceMonitoringMiddleware, slow_request_threshold=config.slow_request_threshold)
    app.add_middleware(ErrorHandlingMiddleware)

    @app.exception_handler(WorkflowEngineError)
    async def workflow_engine_error_handler(request: Request, exc: WorkflowEngineError):
        logger.warning(f"Workflow engine error on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=get_status_code_for_error(exc),
            content=create_error_response(exc)
        )

    app.include_router(router)

    add_health_endpoints(app, config)

    return app


def add_health_endpoints(app: FastAPI, config: AppConfig) -> None:
    """Add health check endpoints to the application."""

    @app.get("/")
    async def root():
        """Root endpoint for basic health check."""
        return {"message": f"{config.app_name} is running", "version": config.app_version}

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint."""
        return {
            "status": "healthy",
            "service": config.app_name.lower().replace(" ", "-"),
            "version": config.app_version
        }
