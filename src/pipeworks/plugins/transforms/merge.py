"""Merge transform: combine several inputs into one sequence."""

from __future__ import annotations

from typing import Any, Literal

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseTransform, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema, FieldOption
from pipeworks.plugins.utils import config_str, format_value, sort_records


class MergeOptions(NodeOptions):
    dedupe_field: str = ""
    sort_field: str = ""
    sort_order: Literal["asc", "desc", ""] = ""


def dedupe_by_field(items: NodeOutput, field: str) -> NodeOutput:
    """Drop records whose field value was already seen; first one wins.

    Non-mapping records are always kept.
    """
    seen: set[str] = set()
    result: NodeOutput = []
    for item in items:
        if not isinstance(item, dict):
            result.append(item)
            continue
        key = format_value(item.get(field))
        if key not in seen:
            seen.add(key)
            result.append(item)
    return result


class Merge(BaseTransform):
    """Concatenate all inputs in connection order.

    Config options:
        dedupe_field: Remove later records repeating this field's value.
        sort_field: Sort the merged records by this dot path.
        sort_order: asc (default) or desc.
    """

    name = "merge"
    label = "Merge"
    description = "Combine multiple feeds into one"
    inputs = 2

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        merged: NodeOutput = [item for sequence in inputs for item in sequence]

        dedupe_field = config_str(config, "dedupe_field")
        if dedupe_field:
            merged = dedupe_by_field(merged, dedupe_field)

        sort_field = config_str(config, "sort_field")
        if sort_field:
            merged = sort_records(merged, sort_field, descending=config_str(config, "sort_order") == "desc")

        ctx.log(LogLevel.INFO, f"Merged {len(inputs)} inputs into {len(merged)} items")
        return merged

    def validate_config(self, config: dict[str, Any]) -> None:
        MergeOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="dedupe_field",
                    label="Dedupe Field",
                    type=FieldType.TEXT,
                    placeholder="link",
                    help_text="Remove duplicates based on this field (e.g., link, guid)",
                ),
                ConfigField(
                    name="sort_field",
                    label="Sort By",
                    type=FieldType.TEXT,
                    placeholder="published_at",
                    help_text="Field to sort merged results by (use published_at for date sorting)",
                ),
                ConfigField(
                    name="sort_order",
                    label="Sort Order",
                    type=FieldType.SELECT,
                    options=(FieldOption("desc", "Newest First"), FieldOption("asc", "Oldest First")),
                ),
            )
        )
