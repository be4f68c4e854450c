"""Truncate transform.

Strips HTML from a text field and shortens it to a maximum length,
preferring to cut at a word boundary.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseTransform, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema
from pipeworks.plugins.utils import config_int, config_str, strip_html

DEFAULT_MAX_LENGTH = 200
DEFAULT_SUFFIX = "..."


class TruncateOptions(NodeOptions):
    field: str = Field(min_length=1)
    max_length: int = Field(default=DEFAULT_MAX_LENGTH, gt=0)
    suffix: str = DEFAULT_SUFFIX


def truncate_text(text: str, max_length: int, suffix: str) -> str:
    """Strip tags and shorten text to max_length characters plus suffix.

    Cuts at the last space before the limit when that space lies past the
    halfway point, otherwise at the limit itself.
    """
    text = strip_html(text)
    if len(text) <= max_length:
        return text
    cutoff = max_length
    space = text.rfind(" ", 0, max_length)
    if space > max_length // 2:
        cutoff = space
    return text[:cutoff].strip() + suffix


class Truncate(BaseTransform):
    """Limit text length in a field.

    Config options:
        field: Top-level string field to shorten.
        max_length: Maximum characters before the suffix (default 200).
        suffix: Appended when text was cut (default "...").

    Use cases:
    - Turn HTML feed descriptions into short plain-text summaries
    - Keep webhook payloads small
    """

    name = "truncate"
    label = "Truncate"
    description = "Limit text length in a field"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        items = self.first_input(inputs)
        if not items:
            return []
        field = config_str(config, "field")
        if not field:
            return list(items)
        max_length = config_int(config, "max_length", DEFAULT_MAX_LENGTH)
        if max_length <= 0:
            max_length = DEFAULT_MAX_LENGTH
        suffix = config_str(config, "suffix") or DEFAULT_SUFFIX

        result: NodeOutput = []
        for item in items:
            if not isinstance(item, dict):
                result.append(item)
                continue
            new_item = dict(item)
            value = new_item.get(field)
            if isinstance(value, str):
                new_item[field] = truncate_text(value, max_length, suffix)
            result.append(new_item)

        ctx.log(LogLevel.INFO, f"Truncated {len(result)} items")
        return result

    def validate_config(self, config: dict[str, Any]) -> None:
        TruncateOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="field",
                    label="Field",
                    type=FieldType.TEXT,
                    required=True,
                    placeholder="description",
                    help_text="Field to truncate",
                ),
                ConfigField(
                    name="max_length",
                    label="Max Length",
                    type=FieldType.NUMBER,
                    default=DEFAULT_MAX_LENGTH,
                    help_text="Maximum character length",
                ),
                ConfigField(
                    name="suffix",
                    label="Suffix",
                    type=FieldType.TEXT,
                    default=DEFAULT_SUFFIX,
                    help_text="Text to append when truncated",
                ),
            )
        )
