"""Pytest configuration and fixtures."""

import os

import pytest

from autoflow.config import get_testing_config, reset_config
from autoflow.core.execution_engine import WorkflowExecutionEngine
from autoflow.models import Workflow, WorkflowBuilder


class RecordingProcessor:
    """Returns a fixed output and remembers the inputs it was given."""

    def __init__(self, output=None):
        self.output = output if output is not None else {"ok": True}
        self.calls = []

    def execute(self, context):
        self.calls.append(dict(context.input_data))
        return dict(self.output)


class FailingProcessor:
    """Always raises."""

    def __init__(self, message="boom"):
        self.message = message
        self.calls = 0

    def execute(self, context):
        self.calls += 1
        raise RuntimeError(self.message)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Keep tests independent of AUTOFLOW_* variables and the cached global config."""
    for key in list(os.environ):
        if key.startswith("AUTOFLOW_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def test_config():
    """Testing configuration with an instant simulated processor."""
    return get_testing_config()


@pytest.fixture
def engine(test_config):
    """Create a WorkflowExecutionEngine instance for testing."""
    return WorkflowExecutionEngine(config=test_config)


def build_linear_workflow(error_handling: str = "stop", **settings) -> Workflow:
    """Trigger -> A -> B, routing the trigger's ``payload`` and A's ``data``."""
    return (
        WorkflowBuilder("wf-linear", "Linear workflow")
        .add("trigger", "trigger", "Start", trigger_type="manual")
        .add("action", "a", "Call API", api_endpoint="https://example.com/api", method="POST")
        .add("action", "b", "Follow up")
        .connect("trigger", "a", source_output="payload", target_input="payload")
        .connect("a", "b", source_output="data", target_input="upstream")
        .configure(error_handling=error_handling, **settings)
        .build()
    )


@pytest.fixture
def linear_workflow_factory():
    """Factory for the Trigger -> A -> B workflow."""
    return build_linear_workflow


@pytest.fixture
def recording_processor_cls():
    return RecordingProcessor


@pytest.fixture
def failing_processor_cls():
    return FailingProcessor
