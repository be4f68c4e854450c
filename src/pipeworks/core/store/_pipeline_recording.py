# src/pipeworks/core/store/_pipeline_recording.py
"""Pipeline definition and published output methods for PipelineStore."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from pipeworks.contracts.errors import StoreError
from pipeworks.contracts.pipeline import PipelineDefinition
from pipeworks.contracts.records import Pipeline, PipelineOutput
from pipeworks.core.store._helpers import generate_id, now
from pipeworks.core.store.schema import (
    executions_table,
    pipeline_outputs_table,
    pipelines_table,
    scheduled_jobs_table,
)

if TYPE_CHECKING:
    from pipeworks.core.store._database_ops import DatabaseOps
    from pipeworks.core.store.database import PipelineDB
    from pipeworks.core.store.repositories import PipelineOutputRepository, PipelineRepository


def _config_text(config: str | PipelineDefinition) -> str:
    if isinstance(config, PipelineDefinition):
        return config.to_json()
    return config


class PipelineRecordingMixin:
    """Pipeline CRUD and output publishing. Mixed into PipelineStore."""

    # Shared state annotations (set by PipelineStore.__init__)
    _db: PipelineDB
    _ops: DatabaseOps
    _pipeline_repo: PipelineRepository
    _output_repo: PipelineOutputRepository

    def create_pipeline(
        self,
        name: str,
        config: str | PipelineDefinition,
        *,
        owner_id: str = "local",
        description: str = "",
        is_public: bool = False,
        pipeline_id: str | None = None,
    ) -> Pipeline:
        """Store a new pipeline definition.

        The config is stored as given; it is only parsed when executed, so
        a malformed definition can be stored and fails at run time.

        Args:
            name: Display name
            config: Definition JSON text or a parsed PipelineDefinition
            owner_id: Owning user id
            description: Free text
            is_public: Whether the published outputs are public
            pipeline_id: Optional id (generated if not provided)

        Returns:
            The stored Pipeline
        """
        timestamp = now()
        pipeline = Pipeline(
            pipeline_id=pipeline_id or generate_id(),
            owner_id=owner_id,
            name=name,
            description=description,
            config=_config_text(config),
            is_public=is_public,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._ops.execute_insert(
            pipelines_table.insert().values(
                pipeline_id=pipeline.pipeline_id,
                owner_id=pipeline.owner_id,
                name=pipeline.name,
                description=pipeline.description,
                config=pipeline.config,
                is_public=pipeline.is_public,
                created_at=pipeline.created_at,
                updated_at=pipeline.updated_at,
            )
        )
        return pipeline

    def get_pipeline(self, pipeline_id: str) -> Pipeline | None:
        """Get a pipeline by id, or None if it does not exist."""
        row = self._ops.execute_fetchone(select(pipelines_table).where(pipelines_table.c.pipeline_id == pipeline_id))
        if row is None:
            return None
        return self._pipeline_repo.load(row)

    def list_pipelines(self, owner_id: str | None = None) -> list[Pipeline]:
        """List pipelines, most recently updated first."""
        query = select(pipelines_table).order_by(pipelines_table.c.updated_at.desc())
        if owner_id is not None:
            query = query.where(pipelines_table.c.owner_id == owner_id)
        return [self._pipeline_repo.load(row) for row in self._ops.execute_fetchall(query)]

    def update_pipeline(
        self,
        pipeline_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        config: str | PipelineDefinition | None = None,
        is_public: bool | None = None,
    ) -> Pipeline:
        """Update selected fields of a pipeline.

        Raises:
            StoreError: If the pipeline does not exist
        """
        values: dict[str, object] = {"updated_at": now()}
        if name is not None:
            values["name"] = name
        if description is not None:
            values["description"] = description
        if config is not None:
            values["config"] = _config_text(config)
        if is_public is not None:
            values["is_public"] = is_public

        self._ops.execute_update_one(
            pipelines_table.update().where(pipelines_table.c.pipeline_id == pipeline_id).values(**values),
            what=f"Pipeline {pipeline_id}",
        )
        pipeline = self.get_pipeline(pipeline_id)
        if pipeline is None:
            raise StoreError(f"Pipeline {pipeline_id} vanished during update")
        return pipeline

    def delete_pipeline(self, pipeline_id: str) -> bool:
        """Delete a pipeline and everything recorded for it.

        Executions (and through the FK cascade their logs), the scheduled
        job and published outputs are removed in the same transaction.

        Returns:
            True if the pipeline existed
        """
        try:
            with self._db.connection() as conn:
                conn.execute(delete(executions_table).where(executions_table.c.pipeline_id == pipeline_id))
                conn.execute(delete(scheduled_jobs_table).where(scheduled_jobs_table.c.pipeline_id == pipeline_id))
                conn.execute(delete(pipeline_outputs_table).where(pipeline_outputs_table.c.pipeline_id == pipeline_id))
                result = conn.execute(delete(pipelines_table).where(pipelines_table.c.pipeline_id == pipeline_id))
                return bool(result.rowcount)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete pipeline {pipeline_id}: {e}") from e

    # === Published outputs ===

    def save_pipeline_output(
        self,
        pipeline_id: str,
        fmt: str,
        content_type: str,
        content: str,
        *,
        execution_id: str | None = None,
    ) -> PipelineOutput:
        """Replace the published output of a pipeline for one format."""
        output = PipelineOutput(
            pipeline_id=pipeline_id,
            format=fmt,
            content_type=content_type,
            content=content,
            execution_id=execution_id,
            updated_at=now(),
        )
        try:
            with self._db.connection() as conn:
                conn.execute(
                    delete(pipeline_outputs_table).where(
                        (pipeline_outputs_table.c.pipeline_id == pipeline_id) & (pipeline_outputs_table.c.format == fmt)
                    )
                )
                conn.execute(
                    pipeline_outputs_table.insert().values(
                        pipeline_id=output.pipeline_id,
                        format=output.format,
                        content_type=output.content_type,
                        content=output.content,
                        execution_id=output.execution_id,
                        updated_at=output.updated_at,
                    )
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save {fmt} output for pipeline {pipeline_id}: {e}") from e
        return output

    def get_pipeline_output(self, pipeline_id: str, fmt: str) -> PipelineOutput | None:
        row = self._ops.execute_fetchone(
            select(pipeline_outputs_table).where(
                (pipeline_outputs_table.c.pipeline_id == pipeline_id) & (pipeline_outputs_table.c.format == fmt)
            )
        )
        if row is None:
            return None
        return self._output_repo.load(row)
