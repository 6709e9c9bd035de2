"""JSON-lines logging for the CLI and the sync server.

Records go to stderr so command output on stdout stays parseable.
"""

import json
import logging
import sys
from typing import Any

from .config import get_log_level


class JSONFormatter(logging.Formatter):
    """Formatter that outputs JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        """Formats a log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            A JSON string representation of the log record.

        """
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "lineno": record.lineno,
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def setup_logging(level: str | None = None) -> None:
    """Configures the root logger with a JSON formatter on stderr.

    Args:
        level: Log level name; ``ARKNOTES_LOG_LEVEL`` (or INFO) when omitted.

    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    # Avoid adding multiple handlers if setup is called multiple times
    if not root.handlers:
        root.addHandler(handler)
        root.setLevel(level or get_log_level())
