# src/pipeworks/plugins/hookspecs.py
"""pluggy hook specifications for Pipeworks node plugins.

Plugins implement these hooks to register node types with the registry.

Usage (implementing a plugin):
    from pipeworks.plugins.hookspecs import hookimpl

    class MyNodes:
        @hookimpl
        def pipeworks_get_nodes(self):
            return [MyTransform]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from pipeworks.plugins.base import BaseNode

# Project name for pluggy
PROJECT_NAME = "pipeworks"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class PipeworksNodeSpec:
    """Hook specifications for node plugins."""

    @hookspec
    def pipeworks_get_nodes(self) -> list[type["BaseNode"]]:  # type: ignore[empty-body]
        """Return node classes (not instances)."""
