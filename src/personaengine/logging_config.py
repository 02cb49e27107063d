"""Logging setup for PersonaEngine.

Environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL. Default: INFO
- LOG_FORMAT: 'text' or 'json'. Default: text

Usage:
    from personaengine.logging_config import configure_logging
    configure_logging()  # once, at process startup
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any, ClassVar

NAMESPACE = "personaengine"

# Attributes every LogRecord carries; anything else was passed via `extra=`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName"}

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _short_name(name: str) -> str:
    """Strip the package prefix from a logger name."""
    prefix = f"{NAMESPACE}."
    return name[len(prefix) :] if name.startswith(prefix) else name


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Context passed through ``extra=`` (for example ``trait`` or ``profile_id``)
    is grouped under the ``context`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as a JSON line.

        Args:
            record: Log record to format.

        Returns:
            JSON string.
        """
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.ERROR or record.levelno == logging.DEBUG:
            payload["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"
        context = _extra_fields(record)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human readable single-line formatter.

    Format: TIMESTAMP LEVEL [logger] message key=value ...
    """

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize formatter.

        Args:
            use_colors: Colorize level names when stderr is a TTY.
        """
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def _level(self, levelname: str) -> str:
        if not self.use_colors:
            return f"{levelname:8s}"
        color = self.LEVEL_COLORS.get(levelname, "")
        return f"{color}{levelname:8s}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as text.

        Args:
            record: Log record to format.

        Returns:
            Formatted line (plus traceback when present).
        """
        stamp = datetime.fromtimestamp(record.created, UTC).strftime("%H:%M:%S.%f")[:-3]
        line = f"{stamp} {self._level(record.levelname)} [{_short_name(record.name)}] "
        line += record.getMessage()

        context = _extra_fields(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))
        if record.levelno >= logging.ERROR:
            line += f" ({record.filename}:{record.lineno})"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_log_level() -> int:
    """Read the log level from LOG_LEVEL, falling back to INFO."""
    return _LEVELS.get(os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)


def get_log_format() -> str:
    """Read the output format from LOG_FORMAT ('text' or 'json')."""
    value = os.environ.get("LOG_FORMAT", "text").lower()
    return value if value in ("text", "json") else "text"


def configure_logging(
    level: int | None = None,
    format_type: str | None = None,
    use_colors: bool = True,
) -> None:
    """Attach a single stderr handler to the package logger.

    Calling it again replaces the previous handler rather than stacking a
    second one.

    Args:
        level: Logging level. Reads LOG_LEVEL when None.
        format_type: 'text' or 'json'. Reads LOG_FORMAT when None.
        use_colors: Colorize text output on a TTY.
    """
    level = get_log_level() if level is None else level
    format_type = get_log_format() if format_type is None else format_type

    handler = logging.StreamHandler(sys.stderr)
    if format_type == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter(use_colors=use_colors))

    package_logger = logging.getLogger(NAMESPACE)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    # The API server logs requests through uvicorn.access.
    access_logger = logging.getLogger("uvicorn.access")
    access_logger.handlers.clear()
    access_logger.addHandler(handler)
    access_logger.setLevel(level)
    access_logger.propagate = False

    package_logger.debug(
        "Logging configured: level=%s, format=%s", logging.getLevelName(level), format_type
    )


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the package namespace.

    Args:
        name: Module name, usually ``__name__``.

    Returns:
        Logger instance.
    """
    if not name.startswith(NAMESPACE):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)
