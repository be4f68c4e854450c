# src/pipeworks/plugins/manager.py
"""Node registry: registration and lookup of node types via pluggy."""

import threading
from typing import Any

import pluggy

from pipeworks.contracts.errors import UnknownNodeTypeError
from pipeworks.plugins.base import BaseNode
from pipeworks.plugins.hookspecs import PROJECT_NAME, PipeworksNodeSpec
from pipeworks.plugins.schema import NodeDescriptor


class NodeRegistry:
    """Maps node type names to shared node instances.

    Each registered class is instantiated once. Nodes keep no per-run
    state, so one instance serves every run on every thread.

    Usage:
        registry = NodeRegistry()
        registry.register_builtin_nodes()

        node = registry.get("rss-source")
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(PipeworksNodeSpec)
        self._lock = threading.RLock()
        self._nodes: dict[str, BaseNode] = {}

    def register_builtin_nodes(self) -> None:
        """Register the node types shipped with Pipeworks."""
        from pipeworks.plugins.builtins import BuiltinNodes

        self.register(BuiltinNodes())

    def register(self, plugin: Any) -> None:
        """Register a plugin implementing pipeworks_get_nodes().

        Raises:
            ValueError: If a node type name is provided twice. The plugin
                is unregistered again and the previous table is kept.
        """
        with self._lock:
            self._pm.register(plugin)
            try:
                self._refresh()
            except ValueError:
                self._pm.unregister(plugin)
                raise

    def _refresh(self) -> None:
        new_nodes: dict[str, BaseNode] = {}
        for node_classes in self._pm.hook.pipeworks_get_nodes():
            for cls in node_classes:
                name = cls.name
                if name in new_nodes:
                    raise ValueError(f"Duplicate node type name: '{name}'. Already registered by {type(new_nodes[name]).__name__}")
                existing = self._nodes.get(name)
                new_nodes[name] = existing if type(existing) is cls else cls()
        # All validated, swap in the new table
        self._nodes = new_nodes

    # === Lookup ===

    def get(self, node_type: str) -> BaseNode:
        """Get the node instance for a type name.

        Raises:
            UnknownNodeTypeError: If no node is registered under that name
        """
        node = self._nodes.get(node_type)
        if node is None:
            raise UnknownNodeTypeError(node_type)
        return node

    def has(self, node_type: str) -> bool:
        return node_type in self._nodes

    def get_all(self) -> list[BaseNode]:
        """Get all registered node instances."""
        return list(self._nodes.values())

    def describe_all(self) -> list[NodeDescriptor]:
        return [node.describe() for node in self._nodes.values()]

    def __len__(self) -> int:
        return len(self._nodes)
