"""
Pipeworks: graph-based feed and data pipelines.

Assemble sources, transforms and outputs into a directed graph, then run
it on demand or on a recurring schedule with a durable execution trail.
"""

__version__ = "0.1.0"
