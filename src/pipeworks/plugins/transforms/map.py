"""Map transform: rename, extract or create fields."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseTransform, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema
from pipeworks.plugins.utils import config_bool, config_str, get_nested_value, parse_mappings


class MapOptions(NodeOptions):
    mappings: str = Field(min_length=1)
    keep_original: bool = True

    @field_validator("mappings")
    @classmethod
    def _has_pairs(cls, v: str) -> str:
        if not parse_mappings(v):
            raise ValueError("expected 'newField:sourceField' pairs separated by commas")
        return v


class Map(BaseTransform):
    """Build records from field mappings.

    Config options:
        mappings: "new:source, other:nested.path" pairs.
        keep_original: Copy all original fields first (default true).

    Source values that are missing or null are not copied. Records that
    are not mappings pass through unchanged.
    """

    name = "map"
    label = "Map Fields"
    description = "Rename, extract, or create new fields"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        items = self.first_input(inputs)
        if not items:
            return []
        mappings = parse_mappings(config_str(config, "mappings"))
        if not mappings:
            return list(items)
        keep_original = config_bool(config, "keep_original", True)

        result: NodeOutput = []
        for item in items:
            if not isinstance(item, dict):
                result.append(item)
                continue
            new_item: dict[str, Any] = dict(item) if keep_original else {}
            for new_field, source_field in mappings.items():
                value = get_nested_value(item, source_field)
                if value is not None:
                    new_item[new_field] = value
            result.append(new_item)

        ctx.log(LogLevel.INFO, f"Mapped {len(result)} items")
        return result

    def validate_config(self, config: dict[str, Any]) -> None:
        MapOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="mappings",
                    label="Field Mappings",
                    type=FieldType.TEXTAREA,
                    required=True,
                    placeholder="title:name, url:link, summary:description",
                    help_text="Map fields as newField:sourceField, separated by commas. Use dot notation for nested fields.",
                ),
                ConfigField(
                    name="keep_original",
                    label="Keep Original Fields",
                    type=FieldType.CHECKBOX,
                    default=True,
                    help_text="Keep all original fields in addition to mapped ones",
                ),
            )
        )
