"""Tests for structural workflow validation."""

from autoflow.core.validator import WorkflowValidator, validate_workflow
from autoflow.models import WorkflowBuilder


class TestWorkflowValidator:
    """Test cases for WorkflowValidator."""

    def test_valid_workflow(self, linear_workflow_factory):
        result = validate_workflow(linear_workflow_factory())

        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_missing_trigger(self):
        workflow = WorkflowBuilder("wf", "No trigger").add("action", "a", "A").build()
        result = validate_workflow(workflow)

        assert not result.is_valid
        assert result.errors == ["Workflow must have at least one trigger node"]

    def test_cycle_reported(self):
        workflow = (
            WorkflowBuilder("wf", "Cycle")
            .add("trigger", "start", "Start", trigger_type="manual")
            .add("action", "a", "A")
            .add("action", "b", "B")
            .connect("start", "a")
            .connect("a", "b")
            .connect("b", "a")
            .build()
        )
        result = validate_workflow(workflow)

        assert not result.is_valid
        assert any("circular" in error for error in result.errors)

    def test_cycle_among_unreachable_nodes_reported(self):
        """The cycle check covers every node, not only those reachable from a trigger."""
        workflow = (
            WorkflowBuilder("wf", "Island cycle")
            .add("trigger", "start", "Start", trigger_type="manual")
            .add("action", "x", "X")
            .add("action", "y", "Y")
            .connect("x", "y")
            .connect("y", "x")
            .build()
        )

        assert "Workflow contains circular dependencies" in validate_workflow(workflow).errors

    def test_dangling_connection_references(self):
        workflow = (
            WorkflowBuilder("wf", "Dangling")
            .add("trigger", "start", "Start", trigger_type="manual")
            .connect("ghost", "start", connection_id="c-src")
            .connect("start", "phantom", connection_id="c-tgt")
            .build()
        )
        result = validate_workflow(workflow)

        assert result.errors == [
            "Connection 'c-src' references non-existent source node: ghost",
            "Connection 'c-tgt' references non-existent target node: phantom",
        ]

    def test_errors_are_cumulative_and_ordered(self):
        workflow = (
            WorkflowBuilder("wf", "Everything wrong")
            .add("action", "a", "A")
            .add("action", "b", "B")
            .connect("a", "b", connection_id="c1")
            .connect("b", "a", connection_id="c2")
            .connect("a", "nowhere", connection_id="c3")
            .build()
        )
        errors = validate_workflow(workflow).errors

        assert errors == [
            "Workflow must have at least one trigger node",
            "Workflow contains circular dependencies",
            "Connection 'c3' references non-existent target node: nowhere",
        ]

    def test_warnings_do_not_affect_validity(self):
        workflow = (
            WorkflowBuilder("wf", "Warnings")
            .add("trigger", "start", "Start", trigger_type="manual", enabled=False)
            .add("action", "lonely", "Lonely")
            .build()
        )
        result = validate_workflow(workflow)

        assert result.is_valid
        assert "Disabled trigger nodes: start" in result.warnings
        assert "Nodes not reachable from any trigger will never run: lonely" in result.warnings

    def test_validation_is_repeatable_and_pure(self):
        workflow = (
            WorkflowBuilder("wf", "Repeat")
            .add("action", "a", "A")
            .connect("a", "missing")
            .build()
        )
        snapshot = workflow.model_dump()
        validator = WorkflowValidator()

        first = validator.validate(workflow)
        second = validator.validate(workflow)

        assert first.errors == second.errors
        assert first.warnings == second.warnings
        assert workflow.model_dump() == snapshot

    def test_has_circular_dependencies_self_loop(self):
        workflow = (
            WorkflowBuilder("wf", "Self loop")
            .add("trigger", "start", "Start", trigger_type="manual")
            .connect("start", "start")
            .build()
        )

        assert WorkflowValidator.has_circular_dependencies(workflow)
