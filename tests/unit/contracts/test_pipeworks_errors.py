"""Tests for the exception taxonomy."""

import pytest


class TestExecutionErrors:
    def test_all_execution_failures_share_a_base(self) -> None:
        from pipeworks.contracts.errors import (
            CyclicGraphError,
            ExecutionCancelledError,
            ExecutionError,
            MalformedDefinitionError,
            NodeExecutionError,
            PipelineNotFoundError,
            PipeworksError,
            StoreError,
            UnknownNodeTypeError,
        )

        errors = [
            PipelineNotFoundError("p"),
            MalformedDefinitionError("bad"),
            CyclicGraphError(["a", "b"]),
            UnknownNodeTypeError("x"),
            NodeExecutionError("n", "t", RuntimeError("boom")),
            ExecutionCancelledError(),
            StoreError("write failed"),
        ]

        for error in errors:
            assert isinstance(error, ExecutionError)
            assert isinstance(error, PipeworksError)
            assert error.execution_id is None

    def test_node_execution_error_names_node_and_type(self) -> None:
        from pipeworks.contracts.errors import NodeExecutionError

        cause = ValueError("HTTP 500")
        error = NodeExecutionError("fetch", "rss-source", cause)

        assert str(error) == "node fetch (rss-source): HTTP 500"
        assert error.node_id == "fetch"
        assert error.node_type == "rss-source"
        assert error.cause is cause

    def test_cyclic_graph_error_renders_cycle(self) -> None:
        from pipeworks.contracts.errors import CyclicGraphError

        error = CyclicGraphError(["a", "b", "c"])

        assert "a -> b -> c -> a" in str(error)
        assert error.cycle == ["a", "b", "c"]

    def test_messages(self) -> None:
        from pipeworks.contracts.errors import PipelineNotFoundError, UnknownNodeTypeError

        assert str(PipelineNotFoundError("p1")) == "Pipeline not found: p1"
        assert str(UnknownNodeTypeError("mystery")) == "Unknown node type: mystery"

    def test_execution_id_is_settable(self) -> None:
        from pipeworks.contracts.errors import ExecutionError

        error = ExecutionError("failed", execution_id="e1")
        error.execution_id = "e2"

        assert error.execution_id == "e2"


class TestConfigurationErrors:
    def test_node_config_error_is_not_an_execution_error(self) -> None:
        from pipeworks.contracts.errors import ExecutionError, NodeConfigError

        error = NodeConfigError("limit", "count: must be positive")

        assert not isinstance(error, ExecutionError)
        assert str(error) == "Invalid configuration for limit: count: must be positive"
        assert error.node_type == "limit"

    def test_schedule_expression_error(self) -> None:
        from pipeworks.contracts.errors import ScheduleExpressionError

        with pytest.raises(ScheduleExpressionError, match="every day"):
            raise ScheduleExpressionError("every day", "not a valid cron expression")
