"""Sort transform."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseTransform, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema, FieldOption
from pipeworks.plugins.utils import config_str, sort_records


class SortOptions(NodeOptions):
    field: str = Field(min_length=1)
    order: Literal["asc", "desc"] = "asc"


class Sort(BaseTransform):
    """Stable sort of records by a field.

    Numbers compare numerically, everything else by text. The input
    sequence is not modified.
    """

    name = "sort"
    label = "Sort"
    description = "Sort items by a field"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        items = self.first_input(inputs)
        field = config_str(config, "field")
        if not field:
            return list(items)
        order = config_str(config, "order") or "asc"

        result = sort_records(items, field, descending=order == "desc")
        ctx.log(LogLevel.INFO, f"Sorted {len(result)} items by {field} ({order})")
        return result

    def validate_config(self, config: dict[str, Any]) -> None:
        SortOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="field",
                    label="Field Path",
                    type=FieldType.TEXT,
                    required=True,
                    placeholder="published_at",
                    help_text="Field to sort by",
                ),
                ConfigField(
                    name="order",
                    label="Order",
                    type=FieldType.SELECT,
                    default="asc",
                    options=(FieldOption("asc", "Ascending"), FieldOption("desc", "Descending")),
                ),
            )
        )
