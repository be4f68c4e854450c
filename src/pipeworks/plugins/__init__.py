"""Node plugin system.

- Base classes: BaseSource, BaseTransform, BaseOutput
- Schema: declarative config descriptions for editing surfaces
- Hookspecs: pluggy hook definitions
- Registry: node type registration and lookup
"""

from pipeworks.plugins.base import BaseNode, BaseOutput, BaseSource, BaseTransform, NodeOutput
from pipeworks.plugins.config_base import NodeOptions
from pipeworks.plugins.hookspecs import hookimpl, hookspec
from pipeworks.plugins.manager import NodeRegistry
from pipeworks.plugins.schema import ConfigField, ConfigSchema, FieldOption, NodeDescriptor

__all__ = [
    "BaseNode",
    "BaseOutput",
    "BaseSource",
    "BaseTransform",
    "ConfigField",
    "ConfigSchema",
    "FieldOption",
    "NodeDescriptor",
    "NodeOptions",
    "NodeOutput",
    "NodeRegistry",
    "hookimpl",
    "hookspec",
]
