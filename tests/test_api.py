"""API tests for the workflow engine endpoints."""

import pytest
from fastapi.testclient import TestClient

from autoflow.config import get_testing_config
from autoflow.core.execution_engine import WorkflowExecutionEngine
from autoflow.factory import create_app


WIRE_WORKFLOW = {
    "id": "wf-api",
    "name": "API workflow",
    "nodes": [
        {"id": "hook", "type": "trigger", "name": "Webhook", "triggerType": "webhook"},
        {"id": "call", "type": "action", "name": "Call API", "apiEndpoint": "https://example.com", "method": "POST"},
        {"id": "notify", "type": "notification", "name": "Notify", "notificationType": "slack",
         "recipients": ["#ops"], "message": "done"},
    ],
    "connections": [
        {"id": "c1", "sourceNodeId": "hook", "targetNodeId": "call",
         "sourceOutput": "body", "targetInput": "payload"},
        {"id": "c2", "sourceNodeId": "call", "targetNodeId": "notify",
         "sourceOutput": "data", "targetInput": "text"},
    ],
    "variables": {"region": "eu"},
    "settings": {"errorHandling": "stop"},
}


@pytest.fixture
def execution_engine(test_config):
    return WorkflowExecutionEngine(config=test_config)


@pytest.fixture
def client(test_config, execution_engine):
    """Create a test client backed by an instant simulated processor."""
    app = create_app(test_config, execution_engine)
    return TestClient(app)


class TestHealthEndpoints:
    """Test cases for health endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {"message": "Automation Workflow Engine is running", "version": "1.0.0"}

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "automation-workflow-engine"

    def test_api_health(self, client, execution_engine, recording_processor_cls):
        execution_engine.register_processor("call", recording_processor_cls())

        data = client.get("/api/v1/health").json()

        assert data["status"] == "healthy"
        assert data["active_executions"] == 0
        assert data["registered_processors"] == 1

    def test_request_id_and_timing_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Request-ID"]
        assert response.headers["X-Response-Time"].endswith("s")

    def test_incoming_request_id_is_kept(self, client):
        response = client.get("/health", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"


class TestValidateEndpoint:
    """Test cases for workflow validation."""

    def test_valid_workflow(self, client):
        response = client.post("/api/v1/workflows/validate", json=WIRE_WORKFLOW)

        assert response.status_code == 200
        assert response.json() == {"isValid": True, "errors": [], "warnings": []}

    def test_invalid_workflow(self, client):
        workflow = {**WIRE_WORKFLOW, "nodes": WIRE_WORKFLOW["nodes"][1:], "connections": []}

        response = client.post("/api/v1/workflows/validate", json=workflow)

        assert response.status_code == 200
        assert response.json()["isValid"] is False
        assert "Workflow must have at least one trigger node" in response.json()["errors"]

    def test_unknown_node_type_rejected(self, client):
        workflow = {**WIRE_WORKFLOW, "nodes": [{"id": "x", "type": "teleport", "name": "X"}]}

        response = client.post("/api/v1/workflows/validate", json=workflow)

        assert response.status_code == 422


class TestExecuteEndpoint:
    """Test cases for workflow execution."""

    def test_execute_workflow(self, client):
        response = client.post(
            "/api/v1/workflows/execute",
            json={"workflow": WIRE_WORKFLOW, "triggerData": {"body": {"order": 7}}}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["workflowId"] == "wf-api"
        assert data["triggerData"] == {"body": {"order": 7}}
        assert [node["nodeId"] for node in data["nodeExecutions"]] == ["hook", "call", "notify"]
        assert data["nodeExecutions"][0]["inputData"] == {"region": "eu", "body": {"order": 7}}
        assert data["nodeExecutions"][1]["inputData"] == {"payload": None, "region": "eu"}

    def test_failed_run_still_returns_record(self, client, execution_engine, failing_processor_cls):
        execution_engine.register_processor("call", failing_processor_cls("gateway down"))

        response = client.post("/api/v1/workflows/execute", json={"workflow": WIRE_WORKFLOW})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "failed"
        assert data["error"] == "Node Call API failed: gateway down"
        assert data["errorKind"] == "processor_error"
        assert len(data["nodeExecutions"]) == 2

    def test_missing_workflow_rejected(self, client):
        response = client.post("/api/v1/workflows/execute", json={"triggerData": {}})

        assert response.status_code == 422

    def test_no_active_executions_after_run(self, client):
        client.post("/api/v1/workflows/execute", json={"workflow": WIRE_WORKFLOW})

        response = client.get("/api/v1/executions/active")

        assert response.status_code == 200
        assert response.json() == []


class TestManagementEndpoints:
    """Test cases for cancellation and registry listings."""

    def test_cancel_unknown_execution(self, client):
        response = client.post("/api/v1/executions/missing-run/cancel")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "ExecutionNotFound"

    def test_list_processors(self, client, execution_engine, recording_processor_cls):
        execution_engine.register_processor("call", recording_processor_cls())
        execution_engine.register_function("notify", lambda context: {"sent": True})

        response = client.get("/api/v1/processors")

        assert response.json() == {"call": "RecordingProcessor", "notify": "FunctionProcessor"}

    def test_list_node_types(self, client):
        response = client.get("/api/v1/node-types")

        assert response.json() == [
            "trigger", "action", "table", "page", "email", "invoice", "report", "notification"
        ]


def test_create_app_builds_engine_from_config():
    app = create_app(get_testing_config())

    assert isinstance(app.state.execution_engine, WorkflowExecutionEngine)
    assert app.state.config.simulated_delay_max_ms == 0
