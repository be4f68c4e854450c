"""Source nodes: produce records from external feeds."""

from pipeworks.plugins.sources.http import HTTPSource
from pipeworks.plugins.sources.rss import RSSSource

__all__ = ["HTTPSource", "RSSSource"]
