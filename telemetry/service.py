"""
Structured JSON logging.

Every record is rendered as one JSON object with timestamp, level,
message, logger name and the current request ID. Anything passed as
``extra={"extra_data": {...}}`` is merged into the object.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from middleware.request_id import request_id_var


class JSONFormatter(logging.Formatter):
    """
    Log formatter that outputs one JSON object per record.

    Fields:
    - timestamp: ISO 8601 UTC timestamp
    - level: Log level name
    - message: The formatted message
    - logger: Name of the logger
    - request_id: Correlation ID of the current request, if any
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": request_id_var.get(""),
        }

        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update(extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Send root logger output to stdout as JSON.

    Existing root handlers are removed so records are not emitted twice.

    Args:
        log_level: Level name, e.g. "DEBUG" or "INFO".

    Returns:
        The root logger.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(
        "Logging configured", extra={"extra_data": {"log_level": log_level}}
    )
    return root_logger
