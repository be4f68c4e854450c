"""Filter transform: keep records whose field matches a condition."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any, Literal

from pydantic import Field, model_validator

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseTransform, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema, FieldOption
from pipeworks.plugins.utils import config_str, format_value, get_nested_value


class FilterOptions(NodeOptions):
    field: str = Field(min_length=1)
    operator: Literal["contains", "equals", "not-equals", "regex"]
    value: str | int | float | bool = ""

    @model_validator(mode="after")
    def _valid_regex(self) -> FilterOptions:
        if self.operator == "regex":
            try:
                re.compile(str(self.value))
            except re.error as e:
                raise ValueError(f"invalid regex pattern: {e}") from e
        return self


def _matcher(operator: str, value: str) -> Callable[[str], bool]:
    """Build a predicate over the text form of a field value."""
    if operator == "contains":
        needle = value.lower()
        return lambda text: needle in text.lower()
    if operator == "equals":
        return lambda text: text == value
    if operator == "not-equals":
        return lambda text: text != value
    if operator == "regex":
        try:
            pattern = re.compile(value)
        except re.error:
            # Rejected by validate_config; at run time nothing matches
            return lambda text: False
        return lambda text: pattern.search(text) is not None
    return lambda text: True


class Filter(BaseTransform):
    """Keep records whose field satisfies an operator.

    Config options:
        field: Dot path of the field to test (e.g. "author.name").
        operator: contains (case-insensitive), equals, not-equals or regex.
        value: Comparison value.

    Without a field or operator, input passes through unchanged. Records
    that are not mappings never match.
    """

    name = "filter"
    label = "Filter"
    description = "Filter items based on conditions"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        items = self.first_input(inputs)
        field = config_str(config, "field")
        operator = config_str(config, "operator")
        if not field or not operator:
            return list(items)

        matches = _matcher(operator, format_value(config.get("value")))
        filtered = [item for item in items if isinstance(item, dict) and matches(format_value(get_nested_value(item, field)))]

        ctx.log(LogLevel.INFO, f"Filtered {len(items)} -> {len(filtered)} items")
        return filtered

    def validate_config(self, config: dict[str, Any]) -> None:
        FilterOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="field",
                    label="Field Path",
                    type=FieldType.TEXT,
                    required=True,
                    placeholder="title",
                    help_text="Field to filter on (use dot notation for nested: author.name)",
                ),
                ConfigField(
                    name="operator",
                    label="Operator",
                    type=FieldType.SELECT,
                    required=True,
                    options=(
                        FieldOption("contains", "Contains"),
                        FieldOption("equals", "Equals"),
                        FieldOption("not-equals", "Not Equals"),
                        FieldOption("regex", "Regex Match"),
                    ),
                ),
                ConfigField(
                    name="value",
                    label="Value",
                    type=FieldType.TEXT,
                    required=True,
                    placeholder="search term",
                ),
            )
        )
