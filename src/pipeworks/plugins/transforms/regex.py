"""Regex replace transform."""

from __future__ import annotations

import re
from typing import Any

from pydantic import Field, field_validator

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseTransform, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema
from pipeworks.plugins.utils import config_str, translate_replacement


class RegexOptions(NodeOptions):
    field: str = Field(min_length=1)
    pattern: str = Field(min_length=1)
    replacement: str = ""

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regex pattern: {e}") from e
        return v


class RegexReplace(BaseTransform):
    """Replace every match of a pattern in one string field.

    Config options:
        field: Top-level field to rewrite.
        pattern: Regular expression.
        replacement: Replacement text; $1 or ${name} refer to groups.

    Non-string field values and non-mapping records are left as they are.
    An invalid pattern fails the node.
    """

    name = "regex"
    label = "Regex Replace"
    description = "Search and replace text using regex"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        items = self.first_input(inputs)
        if not items:
            return []
        field = config_str(config, "field")
        pattern_text = config_str(config, "pattern")
        if not field or not pattern_text:
            return list(items)

        try:
            pattern = re.compile(pattern_text)
        except re.error as e:
            raise ValueError(f"invalid regex: {e}") from e
        replacement = translate_replacement(config_str(config, "replacement"))

        result: NodeOutput = []
        modified = 0
        for item in items:
            if not isinstance(item, dict):
                result.append(item)
                continue
            new_item = dict(item)
            value = new_item.get(field)
            if isinstance(value, str):
                new_value = pattern.sub(replacement, value)
                if new_value != value:
                    modified += 1
                new_item[field] = new_value
            result.append(new_item)

        ctx.log(LogLevel.INFO, f"Modified {modified} of {len(result)} items")
        return result

    def validate_config(self, config: dict[str, Any]) -> None:
        RegexOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="field",
                    label="Field",
                    type=FieldType.TEXT,
                    required=True,
                    placeholder="title",
                    help_text="Field to apply regex to",
                ),
                ConfigField(
                    name="pattern",
                    label="Pattern",
                    type=FieldType.TEXT,
                    required=True,
                    placeholder=r"\[.*?\]",
                    help_text="Regex pattern to match",
                ),
                ConfigField(
                    name="replacement",
                    label="Replacement",
                    type=FieldType.TEXT,
                    help_text="Text to replace matches with (use $1, $2 for groups)",
                ),
            )
        )
