"""DAG operations for execution planning.

Turns a pipeline's nodes and connections into a dependency-respecting
execution order, or rejects the graph when it contains a cycle.
"""

from pipeworks.core.dag.graph import ExecutionGraph, resolve_execution_order

__all__ = [
    "ExecutionGraph",
    "resolve_execution_order",
]
