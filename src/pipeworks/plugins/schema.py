"""Declarative config schemas for presenting an editing surface.

Schemas are metadata only: nothing validates a config against them. Node
types validate their own configs in validate_config().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pipeworks.contracts.enums import FieldType, NodeCategory


@dataclass(frozen=True, slots=True)
class FieldOption:
    """One choice of a SELECT field."""

    value: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True, slots=True)
class ConfigField:
    """One recognized configuration key of a node type."""

    name: str
    label: str
    type: FieldType
    required: bool = False
    default: Any = None
    options: tuple[FieldOption, ...] = ()
    placeholder: str = ""
    help_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the editor's keys, omitting empty values."""
        data: dict[str, Any] = {"name": self.name, "label": self.label, "type": str(self.type)}
        if self.required:
            data["required"] = True
        if self.default is not None:
            data["defaultValue"] = self.default
        if self.options:
            data["options"] = [option.to_dict() for option in self.options]
        if self.placeholder:
            data["placeholder"] = self.placeholder
        if self.help_text:
            data["helpText"] = self.help_text
        return data


@dataclass(frozen=True, slots=True)
class ConfigSchema:
    fields: tuple[ConfigField, ...] = ()

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def to_dict(self) -> dict[str, Any]:
        return {"fields": [f.to_dict() for f in self.fields]}


@dataclass(frozen=True, slots=True)
class NodeDescriptor:
    """Identity and config schema of a node type, for enumeration."""

    type: str
    label: str
    description: str
    category: NodeCategory
    inputs: int
    outputs: int
    config_schema: ConfigSchema = field(default_factory=ConfigSchema)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "label": self.label,
            "description": self.description,
            "category": str(self.category),
            "inputs": self.inputs,
            "outputs": self.outputs,
            "configSchema": self.config_schema.to_dict(),
        }
