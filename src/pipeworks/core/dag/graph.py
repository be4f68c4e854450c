# src/pipeworks/core/dag/graph.py
"""ExecutionGraph: pipeline topology, cycle detection and ordering.

Wraps a NetworkX MultiDiGraph. A MultiDiGraph is used because the editor
allows several connections between the same pair of nodes (different
handles); each one is an edge and each one counts towards in-degree.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

import networkx as nx
from networkx import MultiDiGraph

from pipeworks.contracts.errors import CyclicGraphError, MalformedDefinitionError
from pipeworks.contracts.pipeline import Connection, NodeInstance


class ExecutionGraph:
    """Execution graph for one pipeline definition.

    Nodes are kept in declaration order; ordering ties are broken
    first-ready-first-out over that order. Callers must not rely on the
    relative order of independent branches.
    """

    def __init__(self) -> None:
        self._graph: MultiDiGraph[str] = nx.MultiDiGraph()
        self._ignored: list[Connection] = []

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Number of edges in the graph."""
        return self._graph.number_of_edges()

    @property
    def ignored_connections(self) -> list[Connection]:
        """Connections dropped because an endpoint is not a node."""
        return list(self._ignored)

    def has_node(self, node_id: str) -> bool:
        return self._graph.has_node(node_id)

    def add_node(self, node_id: str, *, node_type: str) -> None:
        """Add a node.

        Raises:
            MalformedDefinitionError: If the id is already present.
        """
        if self._graph.has_node(node_id):
            raise MalformedDefinitionError(f"Duplicate node id: {node_id!r}")
        self._graph.add_node(node_id, node_type=node_type)

    def add_connection(self, connection: Connection) -> bool:
        """Add an edge for a connection if both endpoints exist.

        Connections naming an absent node are remembered in
        ignored_connections and otherwise have no effect.

        Returns:
            True if the edge was added.
        """
        if not (self._graph.has_node(connection.source) and self._graph.has_node(connection.target)):
            self._ignored.append(connection)
            return False
        self._graph.add_edge(connection.source, connection.target, connection_id=connection.id)
        return True

    def find_cycle(self) -> list[str]:
        """Return node ids along one cycle, or [] when acyclic."""
        try:
            cycle = nx.find_cycle(self._graph)
        except nx.NetworkXNoCycle:
            return []
        # MultiDiGraph returns (u, v, key) tuples
        return [edge[0] for edge in cycle]

    def topological_order(self) -> list[str]:
        """Return node ids in dependency order (Kahn's algorithm).

        Every node appears after all nodes with an edge into it.

        Raises:
            CyclicGraphError: If the graph has a cycle. No partial order
                is returned.
        """
        in_degree: dict[str, int] = dict(self._graph.in_degree())
        ready: deque[str] = deque(node for node in self._graph.nodes if in_degree[node] == 0)
        order: list[str] = []

        while ready:
            node = ready.popleft()
            order.append(node)
            # One decrement per edge, so parallel connections are counted
            for _, successor in self._graph.out_edges(node):
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    ready.append(successor)

        if len(order) < self.node_count:
            raise CyclicGraphError(self.find_cycle())
        return order

    def get_node_type(self, node_id: str) -> str:
        node_type: str = self._graph.nodes[node_id]["node_type"]
        return node_type

    @classmethod
    def from_definition(
        cls,
        nodes: Iterable[NodeInstance],
        connections: Iterable[Connection],
    ) -> ExecutionGraph:
        """Build a graph from a pipeline's nodes and connections."""
        graph = cls()
        for node in nodes:
            graph.add_node(node.id, node_type=node.type)
        for connection in connections:
            graph.add_connection(connection)
        return graph


def resolve_execution_order(
    nodes: Iterable[NodeInstance],
    connections: Iterable[Connection],
) -> list[str]:
    """Resolve the order in which a pipeline's nodes run.

    Args:
        nodes: Node instances of the pipeline
        connections: Connections; those naming absent nodes are ignored

    Returns:
        Node ids, each after all of its predecessors. Empty for no nodes.

    Raises:
        CyclicGraphError: If the connections form a cycle
        MalformedDefinitionError: If two nodes share an id
    """
    return ExecutionGraph.from_definition(nodes, connections).topological_order()
