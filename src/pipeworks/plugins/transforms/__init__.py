"""Transform nodes: derive records from upstream outputs."""

from pipeworks.plugins.transforms.filter import Filter
from pipeworks.plugins.transforms.limit import Limit
from pipeworks.plugins.transforms.map import Map
from pipeworks.plugins.transforms.merge import Merge
from pipeworks.plugins.transforms.regex import RegexReplace
from pipeworks.plugins.transforms.sort import Sort
from pipeworks.plugins.transforms.truncate import Truncate

__all__ = ["Filter", "Limit", "Map", "Merge", "RegexReplace", "Sort", "Truncate"]
