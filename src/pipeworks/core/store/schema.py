# src/pipeworks/core/store/schema.py
"""SQLAlchemy table definitions for the pipeline store.

Uses SQLAlchemy Core (not ORM) for explicit control over queries
and compatibility with multiple database backends.

All timestamps are written as UTC; the repository layer re-attaches the
UTC zone on read, since SQLite drops it.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    UniqueConstraint,
)

# Shared metadata for all tables
metadata = MetaData()

# === Pipelines ===

pipelines_table = Table(
    "pipelines",
    metadata,
    Column("pipeline_id", String(64), primary_key=True),
    Column("owner_id", String(128), nullable=False),
    Column("name", String(256), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("config", Text, nullable=False),  # Definition JSON
    Column("is_public", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

Index("ix_pipelines_owner", pipelines_table.c.owner_id)

# === Executions ===

# No FK to pipelines: a run for a missing pipeline is still recorded
# (PipelineNotFound). delete_pipeline() removes a pipeline's executions.
executions_table = Table(
    "executions",
    metadata,
    Column("execution_id", String(64), primary_key=True),
    Column("pipeline_id", String(64), nullable=False),
    Column("status", String(16), nullable=False),  # running, success, failed
    Column("trigger", String(16), nullable=False),  # manual, scheduled, auto
    Column("started_at", DateTime(timezone=True), nullable=False),
    Column("completed_at", DateTime(timezone=True)),
    Column("duration_ms", Integer),
    Column("items_processed", Integer),
    Column("error_message", Text),
    Column("definition_hash", String(64)),
)

Index("ix_executions_pipeline_started", executions_table.c.pipeline_id, executions_table.c.started_at)

# === Execution Logs ===

execution_logs_table = Table(
    "execution_logs",
    metadata,
    Column("log_id", String(64), primary_key=True),
    Column(
        "execution_id",
        String(64),
        ForeignKey("executions.execution_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("sequence", Integer, nullable=False),
    Column("node_id", String(128), nullable=False),
    Column("level", String(16), nullable=False),  # info, error, data
    Column("message", Text, nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("payload", Text),  # JSON of the node output for data entries
    UniqueConstraint("execution_id", "sequence"),
)

# === Scheduled Jobs ===

scheduled_jobs_table = Table(
    "scheduled_jobs",
    metadata,
    Column("job_id", String(64), primary_key=True),
    Column(
        "pipeline_id",
        String(64),
        ForeignKey("pipelines.pipeline_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("schedule", String(256), nullable=False),
    Column("next_run_at", DateTime(timezone=True), nullable=False),
    Column("last_run_at", DateTime(timezone=True)),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

Index("ix_scheduled_jobs_due", scheduled_jobs_table.c.enabled, scheduled_jobs_table.c.next_run_at)

# === Published Outputs ===

pipeline_outputs_table = Table(
    "pipeline_outputs",
    metadata,
    Column(
        "pipeline_id",
        String(64),
        ForeignKey("pipelines.pipeline_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("format", String(16), nullable=False),  # json, rss
    Column("content_type", String(128), nullable=False),
    Column("content", Text, nullable=False),
    Column("execution_id", String(64)),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    PrimaryKeyConstraint("pipeline_id", "format"),
)
