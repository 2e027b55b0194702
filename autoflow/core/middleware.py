"""HTTP middleware: request tagging, error conversion and response timing."""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .exceptions import (
    APIError, ProcessorRegistryError, TransientError,
    WorkflowEngineError, WorkflowValidationError, create_error_response
)
from .logging import get_logger, logging_context


logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"

_STATUS_CODES = (
    (WorkflowValidationError, 400),
    (ProcessorRegistryError, 400),
    (TransientError, 503),
)


def get_status_code_for_error(error: WorkflowEngineError) -> int:
    """HTTP status for an engine error escaping a request handler."""
    if isinstance(error, APIError):
        return error.status_code
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ID and turns escaped errors into JSON bodies.

    The ID is taken from an incoming ``X-Request-ID`` header when present and
    bound to the logging context for the whole request, so a workflow run
    started by the request logs it next to its execution ID.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        with logging_context(request_id=request_id, method=request.method, path=request.url.path):
            try:
                response = await call_next(request)
            except WorkflowEngineError as e:
                logger.warning(
                    f"{request.method} {request.url.path} failed with {e.error_code}: {e.message}",
                    extra={"extra_fields": {"error": e.to_dict()}}
                )
                response = JSONResponse(
                    status_code=get_status_code_for_error(e),
                    content=create_error_response(e)
                )
            except Exception as e:
                logger.error(f"Unhandled error on {request.method} {request.url.path}: {e}", exc_info=True)
                response = JSONResponse(
                    status_code=500,
                    content={
                        "error": "InternalServerError",
                        "message": "An unexpected error occurred",
                        "details": {
                            "error_type": type(e).__name__,
                            "timestamp": datetime.now(timezone.utc).isoformat()
                        },
                        "request_id": request_id
                    }
                )

            logger.info(f"{request.method} {request.url.path} -> {response.status_code}")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """Reports response time in a header and warns about slow requests."""

    def __init__(self, app, slow_request_threshold: float = 5.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers[RESPONSE_TIME_HEADER] = f"{elapsed:.3f}s"
        if elapsed > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {elapsed:.3f}s "
                f"(threshold {self.slow_request_threshold}s)"
            )
        return response
