"""Logging for the scoreboard engine.

Engine code logs key/value events through structlog (``"round submitted"``,
``game_id=..., round_number=...``). Those events are routed through stdlib
logging, so pytest's caplog sees them as well.
Enum, NamedTuple and pydantic values in an event are flattened to plain
JSON data before rendering, so a ``BlockReason`` logs as ``"would_bust"``
and a ``Tournament`` as its record.

Environment variables:
- LOG_FORMAT: "console" (default) or "json".
- LOG_LEVEL: "DEBUG", "INFO" (default), "WARNING", "ERROR", or "CRITICAL".
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_NAME_FORMAT = "scoreboard_%Y-%m-%d_%H-%M-%S.log"

_LOG_FORMATS = ("console", "json")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _plain(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        # NamedTuples such as BlockedAction keep their field names
        if hasattr(value, "_asdict"):
            return {k: _plain(v) for k, v in value._asdict().items()}
        return [_plain(v) for v in value]
    return value


def plain_domain_values(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Flatten domain values in an event to JSON-compatible data."""
    for key, value in event_dict.items():
        event_dict[key] = _plain(value)
    return event_dict


def _log_format() -> str:
    value = os.environ.get("LOG_FORMAT", "").lower() or "console"
    if value not in _LOG_FORMATS:
        msg = f"Invalid LOG_FORMAT={value!r}. Must be one of {', '.join(_LOG_FORMATS)}."
        raise ValueError(msg)
    return value


def _log_level() -> int:
    value = os.environ.get("LOG_LEVEL", "INFO").upper()
    if value not in _LOG_LEVELS:
        msg = f"Invalid LOG_LEVEL={value!r}. Must be one of {', '.join(_LOG_LEVELS)}."
        raise ValueError(msg)
    return getattr(logging, value)


def configure_structlog() -> None:
    """Send structlog events through stdlib logging, with domain values flattened."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            plain_domain_values,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def _handler(handler: logging.Handler, *, json_output: bool, colors: bool = False) -> logging.Handler:
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=colors)
    # tracebacks are rendered here, once per handler
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        ),
    )
    return handler


def setup_logging(log_dir: Path | str | None = None, level: int | None = None) -> Path | None:
    """Log to stdout and, when ``log_dir`` is given, to a new timestamped file in it.

    Returns the log file path, or None when logging to stdout only. Calling
    it again replaces the previous handlers.
    """
    json_output = _log_format() == "json"
    configure_structlog()

    root = logging.getLogger()
    root.setLevel(_log_level() if level is None else level)
    root.handlers.clear()
    root.addHandler(_handler(logging.StreamHandler(sys.stdout), json_output=json_output, colors=sys.stdout.isatty()))

    if log_dir is None:
        return None
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    file_path = directory / datetime.now(tz=UTC).strftime(LOG_FILE_NAME_FORMAT)
    root.addHandler(_handler(logging.FileHandler(file_path, encoding="utf-8"), json_output=json_output))
    return file_path
