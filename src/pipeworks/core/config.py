"""Configuration schema and loading for Pipeworks.

Uses Pydantic for validation and Dynaconf for multi-source loading.

Settings are frozen (immutable) after construction.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class DatabaseSettings(BaseModel):
    """Pipeline store database configuration."""

    model_config = {"frozen": True}

    url: str = Field(
        default="sqlite:///./pipeworks.db",
        description="SQLAlchemy database URL",
    )


class SchedulerSettings(BaseModel):
    """Background scheduler configuration."""

    model_config = {"frozen": True}

    enabled: bool = Field(default=True, description="Run the scheduler loop under 'serve'")
    poll_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between due-job polls",
    )
    fallback_interval_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Reschedule interval used when a job's schedule expression cannot be parsed",
    )


class HTTPSettings(BaseModel):
    """Outbound HTTP defaults for source and webhook nodes."""

    model_config = {"frozen": True}

    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request timeout")
    user_agent: str = Field(default="Pipeworks/1.0", min_length=1)


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = Field(default=False, description="Emit JSON log lines instead of console output")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class PipeworksSettings(BaseModel):
    """Top-level Pipeworks configuration.

    Every section has defaults, so an empty settings file (or none at all)
    yields a working local configuration backed by SQLite.
    """

    model_config = {"frozen": True}

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# ${NAME} or ${NAME:-fallback}; unset names without a fallback are left as-is
_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Z_][A-Z0-9_]*)(?::-(?P<fallback>[^}]*))?\}")

# Bookkeeping keys Dynaconf reports alongside real settings
_DYNACONF_KEYS = frozenset({"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"})


def _substitute_env(match: re.Match[str]) -> str:
    resolved = os.environ.get(match["name"], match["fallback"])
    return match[0] if resolved is None else resolved


def _expand_env_vars(config: Any) -> Any:
    """Replace ``${NAME}`` references in every string of a nested config."""
    match config:
        case str():
            return _ENV_REFERENCE.sub(_substitute_env, config)
        case dict():
            return {key: _expand_env_vars(value) for key, value in config.items()}
        case list():
            return [_expand_env_vars(item) for item in config]
        case _:
            return config


def _lowercase_keys(value: Any) -> Any:
    # Dynaconf upper-cases top-level keys; env overrides keep their own casing
    if isinstance(value, dict):
        return {str(k).lower(): _lowercase_keys(v) for k, v in value.items()}
    return value


def load_settings(config_path: Path | None = None) -> PipeworksSettings:
    """Build validated settings from defaults, a YAML file and the environment.

    Later sources win: model defaults, then ``config_path`` (when given),
    then ``PIPEWORKS_*`` variables. Nested keys use a double underscore,
    so ``PIPEWORKS_SCHEDULER__POLL_INTERVAL_SECONDS=5`` sets
    ``scheduler.poll_interval_seconds``. String values may reference other
    environment variables as ``${NAME}`` or ``${NAME:-fallback}``.

    Raises:
        FileNotFoundError: ``config_path`` was given but does not exist.
        ValidationError: The merged values do not fit PipeworksSettings.
    """
    from dynaconf import Dynaconf

    settings_files: list[str] = []
    if config_path is not None:
        if not config_path.is_file():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        settings_files.append(str(config_path))

    loaded = Dynaconf(
        envvar_prefix="PIPEWORKS",
        settings_files=settings_files,
        environments=False,
        load_dotenv=False,  # cli.py calls load_dotenv() before we get here
        merge_enabled=True,
    ).as_dict()

    user_values = {key: value for key, value in loaded.items() if key not in _DYNACONF_KEYS}
    return PipeworksSettings(**_expand_env_vars(_lowercase_keys(user_values)))
