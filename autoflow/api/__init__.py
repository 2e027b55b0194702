"""HTTP API for validating and executing workflows."""

from .endpoints import router, init_dependencies, get_execution_engine

__all__ = ["router", "init_dependencies", "get_execution_engine"]
