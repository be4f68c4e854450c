"""Pipeline definition models.

The definition is stored as JSON text on the pipeline row and parsed once
per execution. The serialized form uses the editor's camelCase keys
(sourceHandle, retryConfig, ...); the models accept both those aliases and
the snake_case field names. Unknown keys are ignored so that editor-only
metadata does not break execution.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from pipeworks.contracts.errors import MalformedDefinitionError


class Position(BaseModel):
    """Display position of a node on the editing canvas."""

    model_config = {"frozen": True}

    x: float = 0.0
    y: float = 0.0


class NodeInstance(BaseModel):
    """A configured node within one pipeline."""

    model_config = {"frozen": True}

    id: str = Field(min_length=1, description="Identifier unique within the pipeline")
    type: str = Field(min_length=1, description="Registered node type string")
    config: dict[str, Any] = Field(default_factory=dict, description="Free-form node configuration")
    position: Position = Field(default_factory=Position)
    label: str | None = None

    @field_validator("config", mode="before")
    @classmethod
    def _null_config_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class Connection(BaseModel):
    """Directed edge: source node output feeds target node input."""

    model_config = {"frozen": True, "populate_by_name": True}

    id: str = ""
    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")


class RetryPolicy(BaseModel):
    """Declared retry policy. Advisory; the engine never retries."""

    model_config = {"frozen": True, "populate_by_name": True}

    max_retries: int = Field(default=0, ge=0, alias="maxRetries")
    backoff_ms: int = Field(default=0, ge=0, alias="backoffMs")


class PipelineSettings(BaseModel):
    """Per-pipeline run settings."""

    model_config = {"frozen": True, "populate_by_name": True}

    schedule: str | None = Field(default=None, description="Cron expression or '@every <duration>' (units d, h, m, s, ms)")
    enabled: bool = False
    timeout: int | None = Field(default=None, ge=0, description="Advisory upper bound in seconds")
    retry_config: RetryPolicy | None = Field(default=None, alias="retryConfig")

    @field_validator("schedule", mode="before")
    @classmethod
    def _blank_schedule_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PipelineDefinition(BaseModel):
    """Full graph of a pipeline: nodes, connections and settings."""

    model_config = {"frozen": True}

    version: str = "1"
    nodes: list[NodeInstance] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)
    settings: PipelineSettings = Field(default_factory=PipelineSettings)

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, v: Any) -> Any:
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("nodes", "connections", mode="before")
    @classmethod
    def _null_list_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @classmethod
    def from_dict(cls, data: Any) -> PipelineDefinition:
        """Validate an already-decoded definition.

        Raises:
            MalformedDefinitionError: If the structure does not match.
        """
        if not isinstance(data, dict):
            raise MalformedDefinitionError(f"Pipeline definition must be an object, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedDefinitionError(f"Invalid pipeline definition: {e}") from e

    @classmethod
    def from_json(cls, text: str) -> PipelineDefinition:
        """Parse the stored JSON configuration text.

        Raises:
            MalformedDefinitionError: If the text is not JSON or does not match.
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise MalformedDefinitionError(f"Pipeline definition is not valid JSON: {e}") from e
        return cls.from_dict(data)

    def to_json(self) -> str:
        """Serialize using the editor's camelCase keys."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def node_by_id(self) -> dict[str, NodeInstance]:
        """Map node id to node instance.

        Raises:
            MalformedDefinitionError: If two nodes share an id.
        """
        index: dict[str, NodeInstance] = {}
        for node in self.nodes:
            if node.id in index:
                raise MalformedDefinitionError(f"Duplicate node id: {node.id!r}")
            index[node.id] = node
        return index
