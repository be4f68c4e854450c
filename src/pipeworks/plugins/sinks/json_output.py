"""JSON output node."""

from __future__ import annotations

from typing import Any

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import LogLevel
from pipeworks.core.canonical import dump_payload
from pipeworks.plugins.base import BaseOutput, NodeOutput

CONTENT_TYPE = "application/json"


def render_document(items: NodeOutput, *, indent: int | None = 2) -> str:
    """Render the {"count", "items"} document shared by JSON and webhook outputs."""
    return dump_payload({"count": len(items), "items": items}, indent=indent)


class JSONOutput(BaseOutput):
    """Render input records as a JSON document.

    The document is logged for the run and published as the pipeline's
    "json" output. The input is returned unchanged.
    """

    name = "json-output"
    label = "JSON Output"
    description = "Output data as JSON"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        items = self.first_input(inputs)
        if not items:
            ctx.log(LogLevel.INFO, "No input data")
            return []

        document = render_document(items)
        ctx.log(LogLevel.INFO, document)
        ctx.publish("json", CONTENT_TYPE, document)
        return items
