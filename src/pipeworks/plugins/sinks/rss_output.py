"""RSS 2.0 output node.

Renders input records into an RSS feed with Jinja2. Records provide
title, link, description, guid and published_at (Unix seconds, as
produced by rss-source); missing fields are left out of the item.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import format_datetime
from typing import Any

import jinja2
from pydantic import Field

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseOutput, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema
from pipeworks.plugins.utils import config_str, format_value

CONTENT_TYPE = "application/rss+xml"
DEFAULT_TITLE = "Pipeworks feed"

_FEED_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>{{ title }}</title>
    <link>{{ link }}</link>
    <description>{{ description }}</description>
{%- for item in items %}
    <item>
{%- if item.title %}
      <title>{{ item.title }}</title>
{%- endif %}
{%- if item.link %}
      <link>{{ item.link }}</link>
{%- endif %}
{%- if item.description %}
      <description>{{ item.description }}</description>
{%- endif %}
{%- if item.guid %}
      <guid isPermaLink="false">{{ item.guid }}</guid>
{%- endif %}
{%- if item.pub_date %}
      <pubDate>{{ item.pub_date }}</pubDate>
{%- endif %}
    </item>
{%- endfor %}
  </channel>
</rss>
"""


class RSSOutputOptions(NodeOptions):
    title: str = Field(default=DEFAULT_TITLE, min_length=1)
    link: str = ""
    description: str = ""


def _create_env() -> jinja2.Environment:
    return jinja2.Environment(
        autoescape=True,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )


_TEMPLATE = _create_env().from_string(_FEED_TEMPLATE)


def _pub_date(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        return ""
    return format_datetime(datetime.fromtimestamp(value, tz=UTC))


def _feed_item(record: dict[str, Any]) -> dict[str, str]:
    return {
        "title": format_value(record.get("title")),
        "link": format_value(record.get("link")),
        "description": format_value(record.get("description")),
        "guid": format_value(record.get("guid")),
        "pub_date": _pub_date(record.get("published_at")),
    }


def render_feed(items: NodeOutput, *, title: str, link: str = "", description: str = "") -> str:
    """Render records as an RSS 2.0 document. Non-mapping records are skipped."""
    return _TEMPLATE.render(
        title=title,
        link=link,
        description=description,
        items=[_feed_item(record) for record in items if isinstance(record, dict)],
    )


class RSSOutput(BaseOutput):
    """Publish input records as an RSS 2.0 feed.

    Config options:
        title: Channel title (default "Pipeworks feed").
        link: Channel link.
        description: Channel description.
    """

    name = "rss-output"
    label = "RSS Output"
    description = "Publish data as an RSS feed"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        items = self.first_input(inputs)
        document = render_feed(
            items,
            title=config_str(config, "title") or DEFAULT_TITLE,
            link=config_str(config, "link"),
            description=config_str(config, "description"),
        )
        ctx.publish("rss", CONTENT_TYPE, document)
        ctx.log(LogLevel.INFO, f"Published feed with {len(items)} items")
        return items

    def validate_config(self, config: dict[str, Any]) -> None:
        RSSOutputOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="title",
                    label="Feed Title",
                    type=FieldType.TEXT,
                    default=DEFAULT_TITLE,
                ),
                ConfigField(
                    name="link",
                    label="Feed Link",
                    type=FieldType.URL,
                    placeholder="https://example.com",
                ),
                ConfigField(
                    name="description",
                    label="Feed Description",
                    type=FieldType.TEXTAREA,
                ),
            )
        )
