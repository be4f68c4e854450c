"""HTTP/JSON API source.

GETs a URL, decodes the JSON body and turns it into records:
- a list is used as-is,
- an object becomes a single record,
- null (or an items_path that matches nothing) yields no records,
- any other value becomes [{"value": <value>}].

items_path selects a nested part of the body first (dot path; numeric
parts index into lists, e.g. "data.results" or "pages.0.items").
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseSource, NodeOutput
from pipeworks.plugins.clients.http import client_for
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema
from pipeworks.plugins.utils import config_int, config_str, extract_path, parse_headers

DEFAULT_LIMIT = 50


class HTTPSourceOptions(NodeOptions):
    url: str = Field(min_length=1)
    items_path: str = ""
    headers: str = ""
    limit: int = Field(default=DEFAULT_LIMIT, ge=0)

    @field_validator("url")
    @classmethod
    def _http_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v


def _to_records(data: Any) -> NodeOutput:
    if data is None:
        return []
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return [{"value": data}]


class HTTPSource(BaseSource):
    """Fetch records from a JSON API.

    Config options:
        url: Required. Endpoint URL.
        items_path: Dot path to the list of items within the body.
        headers: Extra request headers, one 'Name: Value' per line.
        limit: Maximum number of items (default 50, 0 for no limit).
    """

    name = "http-source"
    label = "HTTP/JSON"
    description = "Fetch data from a JSON API"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        url = config_str(config, "url").strip()
        if not url:
            raise ValueError("url is required")

        ctx.log(LogLevel.INFO, f"Fetching {url}")
        ctx.raise_if_cancelled()
        response = client_for(ctx).get(url, headers=parse_headers(config_str(config, "headers")))
        if response.status_code != 200:
            raise ValueError(f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ValueError(f"parse JSON: {e}") from e

        items_path = config_str(config, "items_path").strip()
        if items_path:
            data = extract_path(data, items_path)

        items = _to_records(data)
        limit = config_int(config, "limit", DEFAULT_LIMIT)
        if 0 < limit < len(items):
            items = items[:limit]

        ctx.log(LogLevel.INFO, f"Retrieved {len(items)} items")
        return items

    def validate_config(self, config: dict[str, Any]) -> None:
        HTTPSourceOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="url",
                    label="API URL",
                    type=FieldType.URL,
                    required=True,
                    placeholder="https://api.example.com/items",
                ),
                ConfigField(
                    name="items_path",
                    label="Items Path",
                    type=FieldType.TEXT,
                    placeholder="data.items",
                    help_text="Dot path to the array of items in the response",
                ),
                ConfigField(
                    name="headers",
                    label="Headers",
                    type=FieldType.TEXTAREA,
                    placeholder="Authorization: Bearer token",
                    help_text="One header per line as Name: Value",
                ),
                ConfigField(
                    name="limit",
                    label="Max Items",
                    type=FieldType.NUMBER,
                    default=DEFAULT_LIMIT,
                ),
            )
        )
