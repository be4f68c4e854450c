"""Webhook output node: POST records as JSON to a URL."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseOutput, NodeOutput
from pipeworks.plugins.clients.http import client_for
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema
from pipeworks.plugins.utils import config_str, parse_headers


class WebhookOutputOptions(NodeOptions):
    url: str = Field(min_length=1)
    headers: str = ""

    @field_validator("url")
    @classmethod
    def _http_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v


class WebhookOutput(BaseOutput):
    """Send input records to a webhook.

    Config options:
        url: Required. Webhook URL.
        headers: Extra request headers, one 'Name: Value' per line.

    The body is {"count": n, "items": [...]}. Empty input sends nothing.
    A response status of 400 or above fails the node.
    """

    name = "webhook-output"
    label = "Webhook"
    description = "Send data to a webhook URL"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        url = config_str(config, "url").strip()
        if not url:
            raise ValueError("url is required")

        items = self.first_input(inputs)
        if not items:
            ctx.log(LogLevel.INFO, "No input data, webhook not called")
            return []

        ctx.raise_if_cancelled()
        payload = {"count": len(items), "items": items}
        response = client_for(ctx).post_json(url, payload, headers=parse_headers(config_str(config, "headers")))
        if response.status_code >= 400:
            raise ValueError(f"webhook returned HTTP {response.status_code}")

        ctx.log(LogLevel.INFO, f"Posted {len(items)} items to webhook (HTTP {response.status_code})")
        return items

    def validate_config(self, config: dict[str, Any]) -> None:
        WebhookOutputOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="url",
                    label="Webhook URL",
                    type=FieldType.URL,
                    required=True,
                    placeholder="https://hooks.example.com/...",
                ),
                ConfigField(
                    name="headers",
                    label="Custom Headers",
                    type=FieldType.TEXTAREA,
                    placeholder="Authorization: Bearer token",
                    help_text="One header per line: Name: Value",
                ),
            )
        )
