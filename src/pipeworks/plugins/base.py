# src/pipeworks/plugins/base.py
"""Base classes for node implementations.

Every node type subclasses BaseSource, BaseTransform or BaseOutput. The
category is a convention for presentation only; the executor treats all
nodes alike: execute(config, inputs, ctx) -> records.

Node instances are created once by the registry and shared by every
concurrent run, so they must keep no per-run state. Anything a run needs
travels in the config mapping, the inputs or the ExecutionContext.

Execution contract:
- inputs holds one sequence per incoming connection whose source produced
  output. Sources ignore it; transforms and outputs must accept an empty
  list and return [] (or pass data through) rather than fail.
- Long-running work checks ctx.raise_if_cancelled().
- Logging goes through ctx.log(); nodes never write to the store.
- Failures are raised as ordinary exceptions; the executor wraps them with
  the node id and type.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pipeworks.contracts.context import ExecutionContext
from pipeworks.contracts.enums import NodeCategory
from pipeworks.plugins.schema import ConfigSchema, NodeDescriptor

# A node output: records (normally mappings) in order
NodeOutput = list[Any]


class BaseNode(ABC):
    """Common identity and contract of all node types.

    Subclasses set the identity class attributes and implement execute().
    validate_config() accepts everything unless overridden.
    """

    name: ClassVar[str]
    label: ClassVar[str]
    description: ClassVar[str] = ""
    category: ClassVar[NodeCategory]
    inputs: ClassVar[int] = 1
    outputs: ClassVar[int] = 1

    @abstractmethod
    def execute(
        self,
        config: dict[str, Any],
        inputs: list[NodeOutput],
        ctx: ExecutionContext,
    ) -> NodeOutput:
        """Produce this node's output for one run.

        Args:
            config: The node instance's config mapping
            inputs: One sequence per wired upstream producer
            ctx: Execution context bound to this node

        Returns:
            Output records, passed to downstream nodes
        """

    def validate_config(self, config: dict[str, Any]) -> None:
        """Check a config mapping without side effects.

        Raises:
            NodeConfigError: Describing the first problem found.
        """

    def config_schema(self) -> ConfigSchema:
        """Describe recognized config fields for an editing surface."""
        return ConfigSchema()

    def describe(self) -> NodeDescriptor:
        return NodeDescriptor(
            type=self.name,
            label=self.label,
            description=self.description,
            category=self.category,
            inputs=self.inputs,
            outputs=self.outputs,
            config_schema=self.config_schema(),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class BaseSource(BaseNode):
    """Base class for nodes that produce records from an external feed.

    Sources ignore their inputs.
    """

    category = NodeCategory.SOURCE
    inputs = 0


class BaseTransform(BaseNode):
    """Base class for nodes that derive records from their inputs."""

    category = NodeCategory.TRANSFORM

    @staticmethod
    def first_input(inputs: list[NodeOutput]) -> NodeOutput:
        """The first wired input, or [] when nothing is wired."""
        return inputs[0] if inputs else []


class BaseOutput(BaseNode):
    """Base class for nodes that emit their input somewhere.

    Outputs perform a side effect and return their input unchanged so
    further nodes can be chained after them.
    """

    category = NodeCategory.OUTPUT
    outputs = 0

    @staticmethod
    def first_input(inputs: list[NodeOutput]) -> NodeOutput:
        return inputs[0] if inputs else []
