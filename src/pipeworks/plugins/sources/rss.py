"""RSS/Atom feed source.

Fetches a feed over HTTP and flattens its entries into plain records:

    title, description, content, link, author, published, published_at,
    updated, updated_at, guid, categories, enclosures, image

published_at/updated_at are Unix seconds (0 when the feed gives no
parseable date), so downstream sort and merge nodes can order by them
numerically.
"""

from __future__ import annotations

import calendar
from typing import Any

import feedparser
from pydantic import Field, field_validator

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import FieldType, LogLevel
from pipeworks.plugins.base import BaseSource, NodeOutput
from pipeworks.plugins.clients.http import client_for
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.schema import ConfigField, ConfigSchema
from pipeworks.plugins.utils import config_int, config_str

DEFAULT_LIMIT = 50


class RSSSourceOptions(NodeOptions):
    url: str = Field(min_length=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=0)

    @field_validator("url")
    @classmethod
    def _http_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v


def _timestamp(parsed: Any) -> int:
    # feedparser normalizes parsed dates to UTC struct_time
    if parsed is None:
        return 0
    return int(calendar.timegm(parsed))


def _entry_to_record(entry: Any) -> dict[str, Any]:
    description = entry.get("summary", "")
    content = description
    for block in entry.get("content", []):
        if block.get("value"):
            content = block["value"]
            break

    enclosures = [
        {
            "url": enc.get("href", ""),
            "type": enc.get("type", ""),
            "length": enc.get("length", ""),
        }
        for enc in entry.get("enclosures", [])
    ]

    image = ""
    thumbnails = entry.get("media_thumbnail") or []
    if thumbnails and thumbnails[0].get("url"):
        image = thumbnails[0]["url"]
    elif entry.get("image"):
        image = entry["image"].get("href", "")

    return {
        "title": entry.get("title", ""),
        "description": description,
        "content": content,
        "link": entry.get("link", ""),
        "author": entry.get("author", ""),
        "published": entry.get("published", ""),
        "published_at": _timestamp(entry.get("published_parsed")),
        "updated": entry.get("updated", ""),
        "updated_at": _timestamp(entry.get("updated_parsed")),
        "guid": entry.get("id", ""),
        "categories": [tag.get("term", "") for tag in entry.get("tags", []) if tag.get("term")],
        "enclosures": enclosures,
        "image": image,
    }


class RSSSource(BaseSource):
    """Fetch items from an RSS or Atom feed.

    Config options:
        url: Required. Feed URL.
        limit: Maximum number of items (default 50, 0 for no limit).
    """

    name = "rss-source"
    label = "RSS Feed"
    description = "Fetch items from an RSS or Atom feed"

    def execute(self, config: dict[str, Any], inputs: list[NodeOutput], ctx: ExecutionContext) -> NodeOutput:
        url = config_str(config, "url").strip()
        if not url:
            raise ValueError("url is required")

        ctx.log(LogLevel.INFO, f"Fetching {url}")
        ctx.raise_if_cancelled()
        response = client_for(ctx).get(url)
        if response.status_code != 200:
            raise ValueError(f"HTTP {response.status_code}")

        feed = feedparser.parse(response.content)
        if feed.get("bozo") and not feed.entries:
            raise ValueError(f"parse feed: {feed.get('bozo_exception')}")

        items = [_entry_to_record(entry) for entry in feed.entries]

        limit = config_int(config, "limit", DEFAULT_LIMIT)
        if 0 < limit < len(items):
            items = items[:limit]

        ctx.log(LogLevel.INFO, f"Retrieved {len(items)} items")
        return items

    def validate_config(self, config: dict[str, Any]) -> None:
        RSSSourceOptions.from_dict(self.name, config)

    def config_schema(self) -> ConfigSchema:
        return ConfigSchema(
            fields=(
                ConfigField(
                    name="url",
                    label="Feed URL",
                    type=FieldType.URL,
                    required=True,
                    placeholder="https://example.com/feed.xml",
                    help_text="RSS or Atom feed URL",
                ),
                ConfigField(
                    name="limit",
                    label="Max Items",
                    type=FieldType.NUMBER,
                    default=DEFAULT_LIMIT,
                    help_text="Maximum number of items to fetch",
                ),
            )
        )
