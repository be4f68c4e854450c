"""Output nodes: emit records and return them unchanged."""

from pipeworks.plugins.sinks.json_output import JSONOutput
from pipeworks.plugins.sinks.rss_output import RSSOutput
from pipeworks.plugins.sinks.webhook_output import WebhookOutput

__all__ = ["JSONOutput", "RSSOutput", "WebhookOutput"]
