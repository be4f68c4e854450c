"""Tests for PipelineStore over in-memory SQLite."""

from datetime import UTC, datetime, timedelta

import pytest

from tests.helpers.pipelines import definition, node

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class TestPipelineRecording:
    def test_create_and_get_pipeline(self, store) -> None:
        from pipeworks.contracts.pipeline import PipelineDefinition

        d = definition([node("a", "limit", count=3)])
        created = store.create_pipeline("news", d, owner_id="u1", description="daily news", is_public=True)

        loaded = store.get_pipeline(created.pipeline_id)

        assert loaded is not None
        assert loaded.name == "news"
        assert loaded.owner_id == "u1"
        assert loaded.is_public is True
        assert loaded.created_at.tzinfo is not None
        assert PipelineDefinition.from_json(loaded.config) == d

    def test_raw_config_text_is_stored_verbatim(self, store) -> None:
        created = store.create_pipeline("raw", "not json at all", pipeline_id="p-raw")

        assert created.pipeline_id == "p-raw"
        assert store.get_pipeline("p-raw").config == "not json at all"

    def test_get_missing_pipeline(self, store) -> None:
        assert store.get_pipeline("nope") is None

    def test_list_pipelines_by_owner(self, store) -> None:
        store.create_pipeline("a", "{}", owner_id="u1")
        store.create_pipeline("b", "{}", owner_id="u2")

        assert {p.name for p in store.list_pipelines()} == {"a", "b"}
        assert [p.name for p in store.list_pipelines(owner_id="u2")] == ["b"]

    def test_update_pipeline(self, store) -> None:
        created = store.create_pipeline("old", "{}")

        updated = store.update_pipeline(created.pipeline_id, name="new", is_public=True)

        assert updated.name == "new"
        assert updated.is_public is True
        assert updated.config == "{}"

    def test_update_missing_pipeline_raises(self, store) -> None:
        from pipeworks.contracts.errors import StoreError

        with pytest.raises(StoreError):
            store.update_pipeline("missing", name="x")

    def test_delete_pipeline_cascades(self, store) -> None:
        from pipeworks.contracts.enums import LogLevel, TriggerKind

        pipeline = store.create_pipeline("doomed", "{}")
        pid = pipeline.pipeline_id
        store.create_execution("e1", pid, TriggerKind.MANUAL, T0)
        store.append_log("e1", "n1", LogLevel.INFO, "hello")
        store.upsert_scheduled_job(pid, "@every 1h", T0)
        store.save_pipeline_output(pid, "json", "application/json", "{}")

        assert store.delete_pipeline(pid) is True

        assert store.get_pipeline(pid) is None
        assert store.get_execution("e1") is None
        assert store.get_execution_logs("e1") == []
        assert store.get_scheduled_job(pid) is None
        assert store.get_pipeline_output(pid, "json") is None

    def test_delete_missing_pipeline(self, store) -> None:
        assert store.delete_pipeline("missing") is False

    def test_save_output_replaces_previous(self, store) -> None:
        pid = store.create_pipeline("feed", "{}").pipeline_id

        store.save_pipeline_output(pid, "rss", "application/rss+xml", "<rss>1</rss>", execution_id="e1")
        store.save_pipeline_output(pid, "rss", "application/rss+xml", "<rss>2</rss>", execution_id="e2")

        output = store.get_pipeline_output(pid, "rss")
        assert output is not None
        assert output.content == "<rss>2</rss>"
        assert output.execution_id == "e2"
        assert store.get_pipeline_output(pid, "json") is None


class TestExecutionRecording:
    def test_execution_lifecycle_success(self, store) -> None:
        from pipeworks.contracts.enums import ExecutionStatus, TriggerKind

        record = store.create_execution("e1", "p1", TriggerKind.SCHEDULED, T0)
        assert record.status == ExecutionStatus.RUNNING
        assert not record.is_terminal

        store.update_execution_success("e1", T0 + timedelta(seconds=2), 2000, 7)

        loaded = store.get_execution("e1")
        assert loaded.status == ExecutionStatus.SUCCESS
        assert loaded.trigger == TriggerKind.SCHEDULED
        assert loaded.started_at == T0
        assert loaded.completed_at == T0 + timedelta(seconds=2)
        assert loaded.duration_ms == 2000
        assert loaded.items_processed == 7
        assert loaded.is_terminal

    def test_execution_lifecycle_failed(self, store) -> None:
        from pipeworks.contracts.enums import ExecutionStatus, TriggerKind

        store.create_execution("e1", "p1", TriggerKind.MANUAL, T0)
        store.update_execution_failed("e1", T0, 5, "node a (limit): boom")

        loaded = store.get_execution("e1")
        assert loaded.status == ExecutionStatus.FAILED
        assert loaded.error_message == "node a (limit): boom"

    def test_execution_for_unknown_pipeline_can_be_recorded(self, store) -> None:
        from pipeworks.contracts.enums import TriggerKind

        store.create_execution("e1", "no-such-pipeline", TriggerKind.MANUAL, T0)

        assert store.get_execution("e1") is not None

    def test_terminal_records_are_final(self, store) -> None:
        from pipeworks.contracts.enums import TriggerKind
        from pipeworks.contracts.errors import StoreError

        store.create_execution("e1", "p1", TriggerKind.MANUAL, T0)
        store.update_execution_success("e1", T0, 1, 0)

        with pytest.raises(StoreError):
            store.update_execution_failed("e1", T0, 1, "late failure")

    def test_update_missing_execution_raises(self, store) -> None:
        from pipeworks.contracts.errors import StoreError

        with pytest.raises(StoreError):
            store.update_execution_success("missing", T0, 1, 0)

    def test_duplicate_execution_id_raises(self, store) -> None:
        from pipeworks.contracts.enums import TriggerKind
        from pipeworks.contracts.errors import StoreError

        store.create_execution("e1", "p1", TriggerKind.MANUAL, T0)

        with pytest.raises(StoreError):
            store.create_execution("e1", "p1", TriggerKind.MANUAL, T0)

    def test_definition_hash(self, store) -> None:
        from pipeworks.contracts.enums import TriggerKind

        store.create_execution("e1", "p1", TriggerKind.MANUAL, T0)
        store.set_execution_definition_hash("e1", "abc123")

        assert store.get_execution("e1").definition_hash == "abc123"

    def test_list_executions_newest_first_with_limit(self, store) -> None:
        from pipeworks.contracts.enums import TriggerKind

        for i in range(5):
            store.create_execution(f"e{i}", "p1", TriggerKind.MANUAL, T0 + timedelta(minutes=i))
        store.create_execution("other", "p2", TriggerKind.MANUAL, T0)

        records = store.list_executions("p1", limit=3)

        assert [r.execution_id for r in records] == ["e4", "e3", "e2"]

    def test_logs_are_sequenced_in_append_order(self, store) -> None:
        from pipeworks.contracts.enums import LogLevel, TriggerKind

        store.create_execution("e1", "p1", TriggerKind.MANUAL, T0)
        store.append_log("e1", "a", LogLevel.INFO, "Fetching")
        store.append_log("e1", "a", LogLevel.DATA, "2 items", '[{"x": 1}, {"x": 2}]')
        store.append_log("e1", "b", LogLevel.ERROR, "boom")

        entries = store.get_execution_logs("e1")

        assert [e.sequence for e in entries] == [1, 2, 3]
        assert [e.level for e in entries] == [LogLevel.INFO, LogLevel.DATA, LogLevel.ERROR]
        assert entries[1].payload == '[{"x": 1}, {"x": 2}]'
        assert entries[0].payload is None

    def test_log_for_missing_execution_raises(self, store) -> None:
        from pipeworks.contracts.enums import LogLevel
        from pipeworks.contracts.errors import StoreError

        with pytest.raises(StoreError):
            store.append_log("missing", "a", LogLevel.INFO, "orphan")


class TestScheduleRecording:
    def test_upsert_creates_then_updates(self, store) -> None:
        pid = store.create_pipeline("p", "{}").pipeline_id

        created = store.upsert_scheduled_job(pid, "0 * * * *", T0)
        updated = store.upsert_scheduled_job(pid, "*/5 * * * *", T0 + timedelta(minutes=5))

        assert updated.job_id == created.job_id
        job = store.get_scheduled_job(pid)
        assert job.schedule == "*/5 * * * *"
        assert job.next_run_at == T0 + timedelta(minutes=5)
        assert job.enabled is True
        assert len(store.list_scheduled_jobs()) == 1

    def test_due_jobs(self, store) -> None:
        early = store.create_pipeline("early", "{}").pipeline_id
        due = store.create_pipeline("due", "{}").pipeline_id
        future = store.create_pipeline("future", "{}").pipeline_id
        disabled = store.create_pipeline("disabled", "{}").pipeline_id
        store.upsert_scheduled_job(due, "@every 1h", T0)
        store.upsert_scheduled_job(early, "@every 1h", T0 - timedelta(hours=1))
        store.upsert_scheduled_job(future, "@every 1h", T0 + timedelta(seconds=1))
        store.upsert_scheduled_job(disabled, "@every 1h", T0 - timedelta(hours=2), enabled=False)

        jobs = store.get_due_jobs(T0)

        assert [j.pipeline_id for j in jobs] == [early, due]

    def test_disable_scheduled_job(self, store) -> None:
        pid = store.create_pipeline("p", "{}").pipeline_id
        store.upsert_scheduled_job(pid, "@every 1h", T0)

        assert store.disable_scheduled_job(pid) is True
        assert store.get_due_jobs(T0 + timedelta(days=1)) == []
        assert store.disable_scheduled_job("missing") is False

    def test_update_job_after_run(self, store) -> None:
        pid = store.create_pipeline("p", "{}").pipeline_id
        job = store.upsert_scheduled_job(pid, "@every 1h", T0)

        store.update_job_after_run(job.job_id, last_run=T0, next_run=T0 + timedelta(hours=1))

        reloaded = store.get_scheduled_job(pid)
        assert reloaded.last_run_at == T0
        assert reloaded.next_run_at == T0 + timedelta(hours=1)

    def test_update_missing_job_raises(self, store) -> None:
        from pipeworks.contracts.errors import StoreError

        with pytest.raises(StoreError):
            store.update_job_after_run("missing", last_run=T0, next_run=T0)


class TestPipelineDB:
    def test_file_database_creates_parent_directory(self, tmp_path) -> None:
        from pipeworks.core.store import PipelineDB, PipelineStore

        url = f"sqlite:///{tmp_path / 'nested' / 'pipeworks.db'}"
        with PipelineDB.from_url(url) as db:
            store = PipelineStore(db)
            store.create_pipeline("p", "{}", pipeline_id="p1")
            assert store.get_pipeline("p1") is not None

        assert (tmp_path / "nested" / "pipeworks.db").exists()
