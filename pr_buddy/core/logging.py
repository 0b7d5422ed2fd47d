# pr_buddy/core/logging.py

"""Logging setup

One stdout handler on the root logger. JSON lines in production, a short
text format for local runs. Log calls may attach review context with
``extra={"delivery_id": ..., "pr": ..., "file": ...}``; both formatters
render it.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pr_buddy.core.config import Settings, settings

# Attributes a log call may set through `extra`
CONTEXT_FIELDS = ("delivery_id", "pr", "file")

NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "github")


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        log_data.update(_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter for development"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S")
        line = f"{timestamp} {record.levelname:7s} {record.name}: {record.getMessage()}"

        context = _context(record)
        if context:
            line += " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"

        return line


def setup_logging(config: Settings = settings) -> None:
    """
    Configure root logging from LOG_LEVEL and LOG_FORMAT

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.
    """
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if config.LOG_FORMAT.lower() == "json" else SimpleFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={config.LOG_LEVEL}, format={config.LOG_FORMAT}"
    )
