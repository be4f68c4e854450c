"""Built-in node types.

The list is explicit: adding a node type means importing it here.
"""

from pipeworks.plugins.base import BaseNode
from pipeworks.plugins.hookspecs import hookimpl
from pipeworks.plugins.sinks import JSONOutput, RSSOutput, WebhookOutput
from pipeworks.plugins.sources import HTTPSource, RSSSource
from pipeworks.plugins.transforms import Filter, Limit, Map, Merge, RegexReplace, Sort, Truncate

BUILTIN_NODES: tuple[type[BaseNode], ...] = (
    RSSSource,
    HTTPSource,
    Filter,
    Sort,
    Limit,
    Merge,
    Map,
    RegexReplace,
    Truncate,
    JSONOutput,
    RSSOutput,
    WebhookOutput,
)


class BuiltinNodes:
    """pluggy plugin providing the built-in node types."""

    @hookimpl
    def pipeworks_get_nodes(self) -> list[type[BaseNode]]:
        return list(BUILTIN_NODES)
