# tests/unit/engine/test_pipeline_executor.py
"""Tests for PipelineExecutor.

Pipelines are built from the test nodes in tests.helpers.pipelines plus
the built-in transforms, so no run touches the network.
"""

import json
import threading

import pytest

from pipeworks.contracts.enums import ExecutionStatus, LogLevel, TriggerKind
from tests.helpers.pipelines import connect, definition, node

# Ten records, four of them tagged "keep" (ids 1, 4, 7, 10)
ARTICLES = [{"id": i, "tag": "keep" if i % 3 == 1 else "drop"} for i in range(1, 11)]


def _add(store, defn, name="test"):
    return store.create_pipeline(name, defn).pipeline_id


class TestSuccessfulRuns:
    def test_empty_pipeline_succeeds_with_zero_items(self, store, executor) -> None:
        pipeline_id = _add(store, definition([]))

        result = executor.execute(pipeline_id)

        assert result.status == ExecutionStatus.SUCCESS
        assert result.item_count == 0
        records = store.list_executions(pipeline_id)
        assert len(records) == 1
        assert records[0].status == ExecutionStatus.SUCCESS
        assert records[0].items_processed == 0
        assert records[0].trigger == TriggerKind.MANUAL
        assert store.get_execution_logs(result.execution_id) == []

    def test_source_filter_limit_chain(self, store, executor) -> None:
        pipeline_id = _add(
            store,
            definition(
                [
                    node("src", "static-source", items=ARTICLES),
                    node("keep", "filter", field="tag", operator="equals", value="keep"),
                    node("top", "limit", count=2),
                ],
                [connect("src", "keep"), connect("keep", "top")],
            ),
        )

        result = executor.execute(pipeline_id)

        assert result.item_count == 2
        logs = store.get_execution_logs(result.execution_id)
        data = [entry for entry in logs if entry.level == LogLevel.DATA]
        assert [(entry.node_id, entry.message) for entry in data] == [
            ("src", "10 items"),
            ("keep", "4 items"),
            ("top", "2 items"),
        ]
        assert json.loads(data[-1].payload) == [{"id": 1, "tag": "keep"}, {"id": 4, "tag": "keep"}]
        assert [entry.sequence for entry in logs] == sorted(entry.sequence for entry in logs)

        record = store.get_execution(result.execution_id)
        assert record.status == ExecutionStatus.SUCCESS
        assert record.items_processed == 2
        assert record.completed_at is not None

    def test_inputs_follow_connection_order(self, store, executor, registry) -> None:
        pipeline_id = _add(
            store,
            definition(
                [
                    node("rec", "input-recorder"),
                    node("b", "static-source", items=[{"n": "b"}]),
                    node("a", "static-source", items=[{"n": "a"}]),
                ],
                [connect("b", "rec"), connect("a", "rec")],
            ),
        )

        executor.execute(pipeline_id)

        recorder = registry.get("input-recorder")
        assert recorder.calls == [("rec", [[{"n": "b"}], [{"n": "a"}]])]

    def test_stale_connection_gives_empty_input(self, store, executor, registry) -> None:
        pipeline_id = _add(
            store,
            definition([node("rec", "input-recorder")], [connect("ghost", "rec")]),
        )

        result = executor.execute(pipeline_id)

        assert result.item_count == 0
        assert registry.get("input-recorder").calls == [("rec", [])]
        logs = store.get_execution_logs(result.execution_id)
        assert [(entry.node_id, entry.level) for entry in logs] == [("rec", LogLevel.INFO), ("rec", LogLevel.DATA)]
        assert "ghost->rec" in logs[0].message

    def test_item_count_comes_from_last_node_in_order(self, store, executor) -> None:
        pipeline_id = _add(
            store,
            definition(
                [
                    node("many", "static-source", items=ARTICLES),
                    node("one", "static-source", items=[{"x": 1}]),
                ]
            ),
        )

        assert executor.execute(pipeline_id).item_count == 1

    def test_definition_hash_recorded(self, store, executor) -> None:
        from pipeworks.engine.executor import definition_hash

        defn = definition([node("src", "static-source", items=[{"a": 1}])])
        pipeline_id = _add(store, defn)

        result = executor.execute(pipeline_id, TriggerKind.SCHEDULED)

        record = store.get_execution(result.execution_id)
        assert record.definition_hash == definition_hash(defn)
        assert record.trigger == TriggerKind.SCHEDULED

    def test_published_output_is_saved(self, store, executor) -> None:
        pipeline_id = _add(
            store,
            definition(
                [node("src", "static-source", items=[{"a": 1}]), node("out", "json-output")],
                [connect("src", "out")],
            ),
        )

        result = executor.execute(pipeline_id)

        output = store.get_pipeline_output(pipeline_id, "json")
        assert output is not None
        assert output.execution_id == result.execution_id
        assert json.loads(output.content) == {"count": 1, "items": [{"a": 1}]}

    def test_duration_uses_clock(self, store, registry, clock) -> None:
        from pipeworks.engine.executor import PipelineExecutor

        executor = PipelineExecutor(store, registry, clock=clock)
        pipeline_id = _add(store, definition([]))

        assert executor.execute(pipeline_id).duration_ms == 0


class TestFailedRuns:
    def test_node_failure_stops_run(self, store, executor) -> None:
        from pipeworks.contracts.errors import NodeExecutionError

        pipeline_id = _add(
            store,
            definition(
                [
                    node("src", "static-source", items=[{"a": 1}]),
                    node("bad", "failing", message="kaput"),
                    node("after", "input-recorder"),
                ],
                [connect("src", "bad"), connect("bad", "after")],
            ),
        )

        with pytest.raises(NodeExecutionError) as exc_info:
            executor.execute(pipeline_id)

        error = exc_info.value
        assert error.node_id == "bad"
        assert error.node_type == "failing"
        assert isinstance(error.cause, RuntimeError)

        record = store.get_execution(error.execution_id)
        assert record.status == ExecutionStatus.FAILED
        assert "bad" in record.error_message
        assert "kaput" in record.error_message
        assert record.completed_at is not None

        logs = store.get_execution_logs(error.execution_id)
        assert [(entry.node_id, entry.level, entry.message) for entry in logs if entry.level != LogLevel.DATA] == [
            ("bad", LogLevel.INFO, "about to fail"),
            ("bad", LogLevel.ERROR, "kaput"),
        ]
        assert all(entry.node_id != "after" for entry in logs)

    def test_missing_pipeline_still_recorded(self, store, executor) -> None:
        from pipeworks.contracts.errors import PipelineNotFoundError

        with pytest.raises(PipelineNotFoundError) as exc_info:
            executor.execute("no-such-pipeline")

        record = store.get_execution(exc_info.value.execution_id)
        assert record is not None
        assert record.pipeline_id == "no-such-pipeline"
        assert record.status == ExecutionStatus.FAILED

    def test_malformed_definition(self, store, executor) -> None:
        from pipeworks.contracts.errors import MalformedDefinitionError

        pipeline_id = store.create_pipeline("broken", "{not json").pipeline_id

        with pytest.raises(MalformedDefinitionError) as exc_info:
            executor.execute(pipeline_id)

        assert store.get_execution(exc_info.value.execution_id).status == ExecutionStatus.FAILED

    def test_cycle_rejected_before_any_node_runs(self, store, executor) -> None:
        from pipeworks.contracts.errors import CyclicGraphError

        pipeline_id = _add(
            store,
            definition(
                [node("a", "input-recorder"), node("b", "input-recorder")],
                [connect("a", "b"), connect("b", "a")],
            ),
        )

        with pytest.raises(CyclicGraphError) as exc_info:
            executor.execute(pipeline_id)

        assert store.get_execution_logs(exc_info.value.execution_id) == []

    def test_unknown_node_type(self, store, executor) -> None:
        from pipeworks.contracts.errors import UnknownNodeTypeError

        pipeline_id = _add(
            store,
            definition(
                [node("src", "static-source", items=[{"a": 1}]), node("x", "does-not-exist")],
                [connect("src", "x")],
            ),
        )

        with pytest.raises(UnknownNodeTypeError, match="does-not-exist") as exc_info:
            executor.execute(pipeline_id)

        record = store.get_execution(exc_info.value.execution_id)
        assert record.status == ExecutionStatus.FAILED
        assert "does-not-exist" in record.error_message

    @pytest.mark.parametrize("shape", ["tuple-keys", "scalar"])
    def test_unrecordable_output_fails_the_node(self, store, executor, shape) -> None:
        from pipeworks.contracts.errors import NodeExecutionError

        pipeline_id = _add(store, definition([node("odd", "malformed-output", shape=shape)]))

        with pytest.raises(NodeExecutionError) as exc_info:
            executor.execute(pipeline_id)

        error = exc_info.value
        assert error.node_id == "odd"
        assert isinstance(error.cause, TypeError)
        record = store.get_execution(error.execution_id)
        assert record.status == ExecutionStatus.FAILED
        assert record.completed_at is not None
        logs = store.get_execution_logs(error.execution_id)
        assert [(entry.node_id, entry.level) for entry in logs] == [("odd", LogLevel.ERROR)]

    def test_unexpected_error_is_still_recorded(self, store) -> None:
        from pipeworks.contracts.errors import ExecutionError
        from pipeworks.engine.executor import PipelineExecutor

        class BrokenRegistry:
            def get(self, node_type):
                raise RuntimeError("registry unavailable")

        executor = PipelineExecutor(store, BrokenRegistry())
        pipeline_id = _add(store, definition([node("src", "static-source")]))

        with pytest.raises(ExecutionError, match="registry unavailable") as exc_info:
            executor.execute(pipeline_id)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        record = store.get_execution(exc_info.value.execution_id)
        assert record.status == ExecutionStatus.FAILED
        assert "registry unavailable" in record.error_message


class TestCancellation:
    def test_cancelled_before_start(self, store, executor) -> None:
        from pipeworks.contracts.errors import ExecutionCancelledError

        pipeline_id = _add(store, definition([node("src", "static-source", items=[{"a": 1}])]))
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ExecutionCancelledError) as exc_info:
            executor.execute(pipeline_id, cancel_event=cancel)

        assert store.get_execution(exc_info.value.execution_id).status == ExecutionStatus.FAILED
        assert store.get_execution_logs(exc_info.value.execution_id) == []

    def test_cancel_between_nodes(self, store, executor, registry) -> None:
        from pipeworks.contracts.errors import ExecutionCancelledError

        pipeline_id = _add(
            store,
            definition(
                [
                    node("src", "static-source", items=[{"a": 1}]),
                    node("stop", "cancelling"),
                    node("after", "input-recorder"),
                ],
                [connect("src", "stop"), connect("stop", "after")],
            ),
        )

        with pytest.raises(ExecutionCancelledError) as exc_info:
            executor.execute(pipeline_id)

        assert registry.get("input-recorder").calls == []
        logs = store.get_execution_logs(exc_info.value.execution_id)
        assert [entry.node_id for entry in logs] == ["src", "stop"]


class TestGatherInputs:
    def test_skips_sources_without_output(self) -> None:
        from pipeworks.contracts.pipeline import Connection
        from pipeworks.engine.executor import gather_inputs

        connections = [
            Connection(id="1", source="a", target="t"),
            Connection(id="2", source="missing", target="t"),
            Connection(id="3", source="b", target="t"),
            Connection(id="4", source="a", target="other"),
        ]

        inputs = gather_inputs("t", connections, {"a": [1], "b": [], "other": [9]})

        assert inputs == [[1], []]


class TestConcurrentRuns:
    def test_shared_executor_keeps_runs_apart(self, tmp_path, registry) -> None:
        from pipeworks.core.store import PipelineDB, PipelineStore
        from pipeworks.engine.executor import PipelineExecutor

        db = PipelineDB.from_url(f"sqlite:///{tmp_path / 'runs.db'}")
        store = PipelineStore(db)
        executor = PipelineExecutor(store, registry)

        expected_trails = {
            "articles": [("src", "10 items"), ("keep", "4 items"), ("top", "2 items")],
            "numbers": [("nums", "7 items"), ("rec", "7 items")],
        }
        expected_counts = {"articles": 2, "numbers": 7}
        pipeline_ids = {
            "articles": _add(
                store,
                definition(
                    [
                        node("src", "static-source", items=ARTICLES),
                        node("keep", "filter", field="tag", operator="equals", value="keep"),
                        node("top", "limit", count=2),
                    ],
                    [connect("src", "keep"), connect("keep", "top")],
                ),
                "articles",
            ),
            "numbers": _add(
                store,
                definition(
                    [node("nums", "static-source", items=[{"n": i} for i in range(7)]), node("rec", "input-recorder")],
                    [connect("nums", "rec")],
                ),
                "numbers",
            ),
        }

        runs_each = 4
        barrier = threading.Barrier(runs_each * len(pipeline_ids))
        lock = threading.Lock()
        finished = []
        errors = []

        def run(name: str) -> None:
            barrier.wait(timeout=10)
            try:
                result = executor.execute(pipeline_ids[name])
            except Exception as e:
                with lock:
                    errors.append(e)
                return
            with lock:
                finished.append((name, result))

        threads = [threading.Thread(target=run, args=(name,)) for name in pipeline_ids for _ in range(runs_each)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        try:
            assert errors == []
            assert sorted(name for name, _ in finished) == ["articles"] * runs_each + ["numbers"] * runs_each
            for name, result in finished:
                assert result.item_count == expected_counts[name]
                record = store.get_execution(result.execution_id)
                assert record.status == ExecutionStatus.SUCCESS
                assert record.items_processed == expected_counts[name]

                logs = store.get_execution_logs(result.execution_id)
                assert [entry.sequence for entry in logs] == list(range(1, len(logs) + 1))
                assert {entry.execution_id for entry in logs} == {result.execution_id}
                data = [(entry.node_id, entry.message) for entry in logs if entry.level == LogLevel.DATA]
                assert data == expected_trails[name]
        finally:
            db.close()
