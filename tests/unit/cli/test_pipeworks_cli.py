# tests/unit/cli/test_pipeworks_cli.py
"""Tests for the pipeworks CLI.

Each test points --settings at a settings file whose database lives in
tmp_path, so commands share state across invocations but not across tests.
Pipelines used here contain no source nodes and never touch the network.
"""

import json
import re
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

runner = CliRunner()

OFFLINE_PIPELINE = {
    "version": "1",
    "nodes": [
        {"id": "first", "type": "limit", "config": {"count": 5}},
        {"id": "second", "type": "sort", "config": {"field": "title"}},
    ],
    "connections": [{"id": "c1", "source": "first", "target": "second"}],
    "settings": {"schedule": "@every 1m", "enabled": True},
}

CYCLIC_PIPELINE = {
    "nodes": [
        {"id": "a", "type": "limit", "config": {"count": 1}},
        {"id": "b", "type": "limit", "config": {"count": 1}},
    ],
    "connections": [
        {"id": "ab", "source": "a", "target": "b"},
        {"id": "ba", "source": "b", "target": "a"},
    ],
}


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "database": {"url": f"sqlite:///{tmp_path / 'pipeworks.db'}"},
                "logging": {"level": "WARNING"},
            }
        )
    )
    return path


def invoke(settings_file: Path, *args: str):
    from pipeworks.cli import app

    return runner.invoke(app, ["--settings", str(settings_file), *args])


def add_pipeline(settings_file: Path, tmp_path: Path, data: dict, name: str = "offline") -> str:
    path = tmp_path / f"{name}.json"
    path.write_text(json.dumps(data))
    result = invoke(settings_file, "pipelines", "add", str(path), "--name", name)
    assert result.exit_code == 0, result.output
    match = re.search(r"Added pipeline (\S+) \(", result.output)
    assert match is not None
    return match.group(1)


class TestCLIBasics:
    def test_version_flag(self) -> None:
        from pipeworks import __version__
        from pipeworks.cli import app

        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"pipeworks version {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        from pipeworks.cli import app

        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("run", "serve", "nodes", "init", "pipelines", "executions"):
            assert command in result.output

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = invoke(tmp_path / "absent.yaml", "nodes")

        assert result.exit_code == 1
        assert "Settings file not found" in result.output


class TestNodesCommand:
    def test_text_listing(self, settings_file: Path) -> None:
        result = invoke(settings_file, "nodes")

        assert result.exit_code == 0
        assert "SOURCES:" in result.output
        assert "TRANSFORMS:" in result.output
        assert "OUTPUTS:" in result.output
        assert "rss-source" in result.output
        assert "webhook-output" in result.output

    def test_json_listing(self, settings_file: Path) -> None:
        result = invoke(settings_file, "nodes", "--json")

        assert result.exit_code == 0
        descriptors = json.loads(result.stdout)
        types = [d["type"] for d in descriptors]
        assert types == sorted(types)
        assert len(types) == 12


class TestInitCommand:
    def test_writes_sample(self, tmp_path: Path) -> None:
        from pipeworks.cli import app
        from pipeworks.contracts.pipeline import PipelineDefinition

        target = tmp_path / "sample.yaml"
        result = runner.invoke(app, ["init", str(target)])

        assert result.exit_code == 0
        definition = PipelineDefinition.from_dict(yaml.safe_load(target.read_text()))
        assert [n.type for n in definition.nodes] == ["rss-source", "filter", "limit", "rss-output"]
        assert definition.settings.enabled

    def test_refuses_to_overwrite(self, tmp_path: Path) -> None:
        from pipeworks.cli import app

        target = tmp_path / "sample.yaml"
        target.write_text("keep me")

        result = runner.invoke(app, ["init", str(target)])
        assert result.exit_code == 1
        assert target.read_text() == "keep me"

        result = runner.invoke(app, ["init", str(target), "--force"])
        assert result.exit_code == 0
        assert target.read_text() != "keep me"

    def test_sample_passes_node_validation(self, tmp_path: Path, settings_file: Path) -> None:
        from pipeworks.cli import app

        target = tmp_path / "sample.json"
        runner.invoke(app, ["init", str(target)])

        result = invoke(settings_file, "pipelines", "add", str(target))

        assert result.exit_code == 0, result.output
        assert "Scheduled '0 * * * *'" in result.output


class TestPipelineCommands:
    def test_add_list_remove(self, settings_file: Path, tmp_path: Path) -> None:
        pipeline_id = add_pipeline(settings_file, tmp_path, OFFLINE_PIPELINE)

        listed = invoke(settings_file, "pipelines", "list")
        assert listed.exit_code == 0
        assert pipeline_id in listed.output
        assert "schedule=@every 1m" in listed.output

        removed = invoke(settings_file, "pipelines", "remove", pipeline_id)
        assert removed.exit_code == 0
        assert f"Removed pipeline {pipeline_id}" in removed.output

        assert "No pipelines." in invoke(settings_file, "pipelines", "list").output

    def test_add_yaml_file(self, settings_file: Path, tmp_path: Path) -> None:
        path = tmp_path / "offline.yaml"
        path.write_text(yaml.safe_dump(OFFLINE_PIPELINE))

        result = invoke(settings_file, "pipelines", "add", str(path))

        assert result.exit_code == 0, result.output
        assert "(offline)" in result.output

    def test_add_rejects_invalid_node_config(self, settings_file: Path, tmp_path: Path) -> None:
        bad = {"nodes": [{"id": "f", "type": "filter", "config": {"field": "title", "operator": "nearly"}}]}
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(bad))

        result = invoke(settings_file, "pipelines", "add", str(path))

        assert result.exit_code == 1
        assert "Node configuration errors:" in result.output
        assert "f:" in result.output

    def test_add_rejects_unknown_node_type(self, settings_file: Path, tmp_path: Path) -> None:
        path = tmp_path / "unknown.json"
        path.write_text(json.dumps({"nodes": [{"id": "x", "type": "teleport"}]}))

        result = invoke(settings_file, "pipelines", "add", str(path))

        assert result.exit_code == 1
        assert "teleport" in result.output

    def test_remove_unknown(self, settings_file: Path) -> None:
        result = invoke(settings_file, "pipelines", "remove", "nope")

        assert result.exit_code == 1
        assert "Pipeline not found: nope" in result.output


class TestRunAndHistory:
    def test_run_success_then_history(self, settings_file: Path, tmp_path: Path) -> None:
        pipeline_id = add_pipeline(settings_file, tmp_path, OFFLINE_PIPELINE)

        result = invoke(settings_file, "run", pipeline_id)
        assert result.exit_code == 0, result.output
        match = re.search(r"Execution (\S+) succeeded: 0 items", result.output)
        assert match is not None
        execution_id = match.group(1)

        history = invoke(settings_file, "executions", "list", pipeline_id)
        assert history.exit_code == 0
        assert execution_id in history.output
        assert "success" in history.output
        assert "manual" in history.output

        logs = invoke(settings_file, "executions", "logs", execution_id, "--payload")
        assert logs.exit_code == 0
        assert f"Execution {execution_id} (success, trigger=manual)" in logs.output
        assert "first" in logs.output
        assert "second" in logs.output
        assert "[]" in logs.output

    def test_run_failure_exits_nonzero(self, settings_file: Path, tmp_path: Path) -> None:
        pipeline_id = add_pipeline(settings_file, tmp_path, CYCLIC_PIPELINE, name="cyclic")

        result = invoke(settings_file, "run", pipeline_id)

        assert result.exit_code == 1
        assert "Execution failed:" in result.output
        assert "cycle" in result.output
        match = re.search(r"Execution id: (\S+)", result.output)
        assert match is not None

        logs = invoke(settings_file, "executions", "logs", match.group(1))
        assert "failed" in logs.output

    def test_run_unknown_pipeline(self, settings_file: Path) -> None:
        result = invoke(settings_file, "run", "missing")

        assert result.exit_code == 1
        assert "Pipeline not found: missing" in result.output

    def test_no_executions(self, settings_file: Path) -> None:
        result = invoke(settings_file, "executions", "list", "whatever")

        assert result.exit_code == 0
        assert "No executions." in result.output

    def test_logs_for_unknown_execution(self, settings_file: Path) -> None:
        result = invoke(settings_file, "executions", "logs", "nope")

        assert result.exit_code == 1
        assert "Execution not found" in result.output


class TestServeCommand:
    def test_once_with_nothing_due(self, settings_file: Path, tmp_path: Path) -> None:
        add_pipeline(settings_file, tmp_path, OFFLINE_PIPELINE)

        result = invoke(settings_file, "serve", "--once")

        assert result.exit_code == 0, result.output
        assert "Ran 0 due jobs (0 failed)" in result.output

    def test_disabled_scheduler(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "database": {"url": f"sqlite:///{tmp_path / 'p.db'}"},
                    "scheduler": {"enabled": False},
                }
            )
        )

        result = invoke(path, "serve")

        assert result.exit_code == 0
        assert "Scheduler is disabled" in result.output
