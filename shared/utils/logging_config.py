"""
Activity Coach Centralized Logging Configuration
Structured logging with JSON output
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging"""

    def __init__(self, *args: Any, service_name: str = "activity-coach", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record"""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name

        # Request-scoped identifiers, when passed via `extra`
        if hasattr(record, "correlation_id"):
            log_record["correlation_id"] = record.correlation_id
        if hasattr(record, "request_id"):
            log_record["request_id"] = record.request_id


def setup_logging(
    service_name: str, log_level: str = "INFO", json_logs: bool = True
) -> logging.Logger:
    """
    Setup centralized logging configuration

    Installs a single stdout handler on the root logger so every module
    logger (shared.*, activity_coach.*) emits through the same formatter.

    Args:
        service_name: Name of the service (e.g., 'activity-coach')
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to use JSON formatting (True for production)

    Returns:
        The service logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if json_logs:
        formatter: logging.Formatter = CustomJsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            rename_fields={
                "levelname": "level",
                "name": "logger",
                "pathname": "file",
                "lineno": "line",
            },
            service_name=service_name,
        )
    else:
        # Human-readable formatter for development
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    # Module loggers created before setup may carry their own console handler
    for logger_name in list(logging.root.manager.loggerDict):
        existing = logging.getLogger(logger_name)
        if logger_name.startswith(("shared", "activity_coach")):
            existing.handlers.clear()
            existing.propagate = True

    return logging.getLogger(service_name)
