"""Package-wide logging configuration for the CLI and scripts."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMATS = ("human", "json")

_LEVELS: Mapping[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class JSONFormatter(logging.Formatter):
    """Formatter that outputs JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(level: str = "warning", log_format: str = "human") -> None:
    """Configure root logging.

    Args:
        level: Logging level (debug, info, warning, error, critical).
        log_format: "human" (Rich, to stderr) or "json" (JSON lines to stderr).
    """
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unsupported log format '{log_format}'. Choose from {LOG_FORMATS}.")
    numeric_level = _LEVELS.get(level.lower(), logging.WARNING)

    handler: logging.Handler
    if log_format == "json":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter())
    else:
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, markup=False)

    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)
