# src/pipeworks/cli.py
"""Pipeworks Command Line Interface.

Entry point for the pipeworks CLI tool.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
import yaml
from pydantic import ValidationError

from pipeworks import __version__
from pipeworks.contracts.enums import NodeCategory, TriggerKind
from pipeworks.contracts.errors import ExecutionError, PipeworksError
from pipeworks.contracts.pipeline import PipelineDefinition
from pipeworks.core.config import PipeworksSettings, load_settings

if TYPE_CHECKING:
    from pipeworks.core.store import PipelineStore
    from pipeworks.engine.executor import PipelineExecutor
    from pipeworks.plugins.manager import NodeRegistry

__all__ = ["app"]

app = typer.Typer(
    name="pipeworks",
    help="Pipeworks: visual data pipelines, run now or on a schedule.",
    no_args_is_help=True,
)

pipelines_app = typer.Typer(help="Pipeline management commands.", no_args_is_help=True)
app.add_typer(pipelines_app, name="pipelines")

executions_app = typer.Typer(help="Execution history commands.", no_args_is_help=True)
app.add_typer(executions_app, name="executions")


@dataclass(frozen=True)
class CLIState:
    """Options of the top-level callback, shared with subcommands."""

    settings: PipeworksSettings


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pipeworks version {__version__}")
        raise typer.Exit()


def _fail(message: str) -> typer.Exit:
    typer.secho(message, fg=typer.colors.RED, err=True)
    return typer.Exit(1)


def _load_settings_or_exit(path: Path | None) -> PipeworksSettings:
    try:
        return load_settings(path)
    except FileNotFoundError:
        raise _fail(f"Error: Settings file not found: {path}") from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to a settings YAML file.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Pipeworks: visual data pipelines, run now or on a schedule."""
    from dotenv import load_dotenv

    from pipeworks.core.logging import configure_logging

    # Existing environment variables win over .env
    load_dotenv(override=False)

    loaded = _load_settings_or_exit(settings)
    log_level = "DEBUG" if verbose else loaded.logging.level
    configure_logging(json_output=json_logs or loaded.logging.json_output, level=log_level)

    ctx.obj = CLIState(settings=loaded)


# === Wiring helpers ===


def _state(ctx: typer.Context) -> CLIState:
    state: CLIState = ctx.find_root().obj
    return state


def _open_store(settings: PipeworksSettings) -> PipelineStore:
    from sqlalchemy.exc import SQLAlchemyError

    from pipeworks.core.store import PipelineDB, PipelineStore

    try:
        db = PipelineDB.from_url(settings.database.url)
    except SQLAlchemyError as e:
        raise _fail(f"Error opening database: {e}") from None
    return PipelineStore(db)


def _build_registry() -> NodeRegistry:
    from pipeworks.plugins.manager import NodeRegistry

    registry = NodeRegistry()
    registry.register_builtin_nodes()
    return registry


def _build_executor(settings: PipeworksSettings, store: PipelineStore, registry: NodeRegistry) -> PipelineExecutor:
    from pipeworks.engine.executor import PipelineExecutor

    return PipelineExecutor(
        store,
        registry,
        http_timeout=settings.http.timeout_seconds,
        user_agent=settings.http.user_agent,
    )


def _read_definition_file(path: Path) -> dict[str, Any]:
    """Load a definition from JSON or YAML (by file suffix)."""
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise _fail(f"Error: Cannot parse {path}: {e}") from None
    if not isinstance(data, dict):
        raise _fail(f"Error: {path} must contain a mapping at the top level")
    return data


def _validate_node_configs(definition: PipelineDefinition, registry: NodeRegistry) -> list[str]:
    """Return one message per node whose type or config is invalid."""
    problems: list[str] = []
    for node in definition.nodes:
        try:
            registry.get(node.type).validate_config(node.config)
        except PipeworksError as e:
            problems.append(f"{node.id}: {e}")
    return problems


# === Top-level commands ===


@app.command()
def run(
    ctx: typer.Context,
    pipeline_id: str = typer.Argument(..., help="Pipeline to execute."),
) -> None:
    """Execute a pipeline once (manual trigger)."""
    settings = _state(ctx).settings
    store = _open_store(settings)
    try:
        executor = _build_executor(settings, store, _build_registry())
        try:
            result = executor.execute(pipeline_id, TriggerKind.MANUAL)
        except ExecutionError as e:
            typer.secho(f"Execution failed: {e}", fg=typer.colors.RED, err=True)
            if e.execution_id:
                typer.echo(f"Execution id: {e.execution_id}", err=True)
            raise typer.Exit(1) from None

        typer.secho(
            f"Execution {result.execution_id} succeeded: {result.item_count} items in {result.duration_ms} ms",
            fg=typer.colors.GREEN,
        )
    finally:
        store.db.close()


@app.command()
def serve(
    ctx: typer.Context,
    once: bool = typer.Option(False, "--once", help="Run one scheduler tick and exit."),
) -> None:
    """Run the scheduler, executing due pipelines until interrupted."""
    from pipeworks.engine.scheduler import Scheduler

    settings = _state(ctx).settings
    if not settings.scheduler.enabled:
        typer.secho("Scheduler is disabled in settings; nothing to serve.", fg=typer.colors.YELLOW)
        return

    store = _open_store(settings)
    try:
        scheduler = Scheduler(
            store,
            _build_executor(settings, store, _build_registry()),
            poll_interval=settings.scheduler.poll_interval_seconds,
            fallback_interval=settings.scheduler.fallback_interval_seconds,
        )
        if once:
            try:
                outcomes = scheduler.tick()
            except PipeworksError as e:
                raise _fail(f"Scheduler tick failed: {e}") from None
            failed = sum(1 for outcome in outcomes if not outcome.succeeded)
            typer.echo(f"Ran {len(outcomes)} due jobs ({failed} failed)")
            return

        typer.echo(f"Scheduler running (poll interval {settings.scheduler.poll_interval_seconds:g}s). Press Ctrl+C to stop.")
        scheduler.start()
        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            typer.echo("Stopping scheduler...")
        finally:
            scheduler.stop()
    finally:
        store.db.close()


@app.command()
def nodes(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output descriptors as JSON."),
) -> None:
    """List available node types."""
    descriptors = sorted(_build_registry().describe_all(), key=lambda d: d.type)

    if json_output:
        typer.echo(json.dumps([d.to_dict() for d in descriptors], indent=2))
        return

    for category in NodeCategory:
        typer.echo(f"\n{category.value.upper()}S:")
        members = [d for d in descriptors if d.category == category]
        if not members:
            typer.echo("  (none available)")
        for descriptor in members:
            typer.echo(f"  {descriptor.type:20} - {descriptor.description}")


_SAMPLE_PIPELINE: dict[str, Any] = {
    "version": "1",
    "nodes": [
        {
            "id": "feed",
            "type": "rss-source",
            "label": "News feed",
            "config": {"url": "https://hnrss.org/frontpage", "limit": 50},
            "position": {"x": 100, "y": 100},
        },
        {
            "id": "python-only",
            "type": "filter",
            "config": {"field": "title", "operator": "contains", "value": "python"},
            "position": {"x": 300, "y": 100},
        },
        {
            "id": "top",
            "type": "limit",
            "config": {"count": 10},
            "position": {"x": 500, "y": 100},
        },
        {
            "id": "publish",
            "type": "rss-output",
            "config": {"title": "Python headlines", "link": "https://hnrss.org/frontpage"},
            "position": {"x": 700, "y": 100},
        },
    ],
    "connections": [
        {"id": "c1", "source": "feed", "target": "python-only"},
        {"id": "c2", "source": "python-only", "target": "top"},
        {"id": "c3", "source": "top", "target": "publish"},
    ],
    "settings": {"schedule": "0 * * * *", "enabled": True},
}


@app.command()
def init(
    path: Path = typer.Argument(Path("pipeline.yaml"), help="Where to write the sample pipeline."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a sample pipeline definition to start from."""
    if path.exists() and not force:
        raise _fail(f"Error: {path} already exists (use --force to overwrite)")

    if path.suffix.lower() == ".json":
        text = json.dumps(_SAMPLE_PIPELINE, indent=2) + "\n"
    else:
        text = yaml.safe_dump(_SAMPLE_PIPELINE, sort_keys=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")

    typer.echo(f"Wrote sample pipeline to {path}")
    typer.echo(f"Import it with: pipeworks pipelines add {path}")


# === pipelines ===


@pipelines_app.command("add")
def pipelines_add(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Definition file (JSON or YAML)."),
    name: str | None = typer.Option(None, "--name", "-n", help="Display name (defaults to the file name)."),
    owner: str = typer.Option("local", "--owner", help="Owning user id."),
    public: bool = typer.Option(False, "--public", help="Mark published outputs as public."),
) -> None:
    """Import a pipeline definition and schedule it if enabled."""
    from pipeworks.engine.clock import DEFAULT_CLOCK
    from pipeworks.engine.schedule import sync_schedule

    try:
        definition = PipelineDefinition.from_dict(_read_definition_file(file))
    except ExecutionError as e:
        raise _fail(f"Error: {e}") from None

    problems = _validate_node_configs(definition, _build_registry())
    if problems:
        typer.echo("Node configuration errors:", err=True)
        for problem in problems:
            typer.echo(f"  - {problem}", err=True)
        raise typer.Exit(1)

    settings = _state(ctx).settings
    store = _open_store(settings)
    try:
        pipeline = store.create_pipeline(name or file.stem, definition, owner_id=owner, is_public=public)
        try:
            job = sync_schedule(store, pipeline.pipeline_id, definition, DEFAULT_CLOCK.now())
        except PipeworksError as e:
            typer.secho(f"Warning: pipeline not scheduled: {e}", fg=typer.colors.YELLOW, err=True)
            job = None
    finally:
        store.db.close()

    typer.echo(f"Added pipeline {pipeline.pipeline_id} ({pipeline.name})")
    if job is not None:
        typer.echo(f"  Scheduled '{job.schedule}', next run {job.next_run_at.isoformat()}")


@pipelines_app.command("list")
def pipelines_list(ctx: typer.Context) -> None:
    """List stored pipelines."""
    store = _open_store(_state(ctx).settings)
    try:
        pipelines = store.list_pipelines()
        jobs = {job.pipeline_id: job for job in store.list_scheduled_jobs()}
    finally:
        store.db.close()

    if not pipelines:
        typer.echo("No pipelines.")
        return

    for pipeline in pipelines:
        job = jobs.get(pipeline.pipeline_id)
        schedule = job.schedule if job is not None and job.enabled else "-"
        typer.echo(f"{pipeline.pipeline_id}  {pipeline.name:30}  owner={pipeline.owner_id}  schedule={schedule}")


@pipelines_app.command("remove")
def pipelines_remove(
    ctx: typer.Context,
    pipeline_id: str = typer.Argument(..., help="Pipeline to delete."),
) -> None:
    """Delete a pipeline with its executions, logs, job and outputs."""
    store = _open_store(_state(ctx).settings)
    try:
        deleted = store.delete_pipeline(pipeline_id)
    finally:
        store.db.close()

    if not deleted:
        raise _fail(f"Error: Pipeline not found: {pipeline_id}")
    typer.echo(f"Removed pipeline {pipeline_id}")


# === executions ===


@executions_app.command("list")
def executions_list(
    ctx: typer.Context,
    pipeline_id: str = typer.Argument(..., help="Pipeline whose runs to list."),
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Maximum number of runs."),
) -> None:
    """List a pipeline's executions, newest first."""
    store = _open_store(_state(ctx).settings)
    try:
        records = store.list_executions(pipeline_id, limit=limit)
    finally:
        store.db.close()

    if not records:
        typer.echo("No executions.")
        return

    for record in records:
        items = record.items_processed if record.items_processed is not None else "-"
        duration = f"{record.duration_ms}ms" if record.duration_ms is not None else "-"
        line = f"{record.execution_id}  {record.started_at.isoformat()}  {record.status:8} {record.trigger:9} items={items} duration={duration}"
        if record.error_message:
            line += f"  error={record.error_message}"
        typer.echo(line)


@executions_app.command("logs")
def executions_logs(
    ctx: typer.Context,
    execution_id: str = typer.Argument(..., help="Execution whose log trail to show."),
    payload: bool = typer.Option(False, "--payload", "-p", help="Also print data payloads."),
) -> None:
    """Show an execution's log trail in order."""
    store = _open_store(_state(ctx).settings)
    try:
        record = store.get_execution(execution_id)
        entries = store.get_execution_logs(execution_id) if record is not None else []
    finally:
        store.db.close()

    if record is None:
        raise _fail(f"Error: Execution not found: {execution_id}")

    typer.echo(f"Execution {record.execution_id} ({record.status}, trigger={record.trigger})")
    for entry in entries:
        typer.echo(f"  {entry.sequence:>3} {entry.timestamp.isoformat()} {entry.level:5} {entry.node_id or '-':16} {entry.message}")
        if payload and entry.payload:
            typer.echo(f"      {entry.payload}")
    if record.error_message:
        typer.secho(f"Error: {record.error_message}", fg=typer.colors.RED)


if __name__ == "__main__":
    app()
