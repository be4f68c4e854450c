"""Limit transform: keep the first N records."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseTransform, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema
from pipeworks.plugins.utils import config_int


class LimitOptions(NodeOptions):
    count: int = Field(gt=0)


class Limit(BaseTransform):
    """Keep at most `count` records.

    A count <= 0 (or missing) passes the input through unchanged.
    """

    name = "limit"
    label = "Limit"
    description = "Limit the number of items"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        items = self.first_input(inputs)
        count = config_int(config, "count", 0)
        if count <= 0 or count >= len(items):
            return list(items)

        limited = list(items[:count])
        ctx.log(LogLevel.INFO, f"Limited {len(items)} -> {len(limited)} items")
        return limited

    def validate_config(self, config: dict[str, Any]) -> None:
        LimitOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="count",
                    label="Count",
                    type=FieldType.NUMBER,
                    required=True,
                    default=10,
                    help_text="Maximum number of items to output",
                ),
            )
        )
