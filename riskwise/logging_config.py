# riskwise/logging_config.py
"""
Stderr-only JSON logging configuration.

The MCP server uses stdio transport and the CLI prints results to stdout,
so ALL logging goes to stderr.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

VERBOSITY_LEVELS = {
    "quiet": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON line."""
        log_data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            log_data["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def level_for_verbosity(verbosity: str) -> int:
    """Map an output.verbosity setting to a logging level (INFO if unknown)."""
    return VERBOSITY_LEVELS.get(verbosity, logging.INFO)


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure logging to output JSON to stderr only.

    Clears existing handlers to prevent stdout pollution.

    Args:
        level: Root logging level
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Third-party loggers share the handler; httpx logs every request at INFO
    third_party = {"uvicorn": level, "fastmcp": level, "httpx": max(level, logging.WARNING)}
    for logger_name, logger_level in third_party.items():
        logger = logging.getLogger(logger_name)
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(logger_level)
        logger.propagate = False  # Don't propagate to root to avoid double logging
