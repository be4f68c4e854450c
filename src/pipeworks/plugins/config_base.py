"""Base class for typed node option models.

validate_config() parses a node's free-form config mapping into one of
these models. Execution does not depend on them: execute() reads the raw
mapping with per-field type checks (see plugins.utils) and falls back to
defaults, since the executor never re-validates stored configs.

Example usage:
    class LimitOptions(NodeOptions):
        count: int = Field(gt=0)

    LimitOptions.from_dict("limit", config)
"""

from typing import Any, Self

from pydantic import BaseModel, ValidationError

from pipeworks.contracts.errors import NodeConfigError


class NodeOptions(BaseModel):
    """Base class for node option models.

    Unknown keys are ignored: editors store display-only keys alongside
    the recognized ones.
    """

    model_config = {"extra": "ignore"}

    @classmethod
    def from_dict(cls, node_type: str, config: Any) -> Self:
        """Create options from a config mapping.

        Raises:
            NodeConfigError: If the config is invalid.
        """
        if not isinstance(config, dict):
            raise NodeConfigError(node_type, f"config must be a mapping, got {type(config).__name__}")
        try:
            return cls.model_validate(config)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "config"
            raise NodeConfigError(node_type, f"{location}: {first['msg']}") from e
