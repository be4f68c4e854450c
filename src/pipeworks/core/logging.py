# src/pipeworks/core/logging.py
"""Log output setup for the Pipeworks CLI and daemon.

Engine modules log through structlog; node implementations and
third-party clients tend to use plain ``logging.getLogger``. Both end up
on one stderr handler whose ProcessorFormatter renders every record the
same way, either as JSON lines or as coloured console output.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Client and database internals that chatter at DEBUG about pools and
# connections. Held at WARNING (or the root level, if higher).
_NOISY_LOGGERS: tuple[str, ...] = (
    "urllib3",
    "urllib3.connectionpool",
    "httpx",
    "httpcore",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
)


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    # ProcessorFormatter injects both keys on every record it formats.
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _pre_chain() -> list[Any]:
    """Processors every record passes through, whatever its origin."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_chain(json_output: bool) -> list[Any]:
    if json_output:
        return [
            _drop_formatter_bookkeeping,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    return [
        _drop_formatter_bookkeeping,
        structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
    ]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Install the shared stderr handler and point structlog at it.

    Safe to call more than once; each call replaces the root handlers, so
    tests and repeated CLI invocations in one process do not stack output.

    Args:
        json_output: Render JSON lines instead of console output.
        level: Root level name, e.g. ``"DEBUG"`` or ``"warning"``.
    """
    numeric_level = logging.getLevelNamesMapping()[level.upper()]
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # stdout carries command output (e.g. `pipeworks list`), so logs use stderr
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(
        ProcessorFormatter(
            processors=_render_chain(json_output),
            foreign_pre_chain=pre_chain,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [stderr_handler]
    root_logger.setLevel(numeric_level)

    quiet_level = max(numeric_level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
