"""
Activity Coach Shared Logger
Centralized logging configuration
"""

import logging
import sys
from typing import Optional

from .config import get_settings


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get configured logger instance

    Module loggers propagate to the root logger once setup_logging() has
    installed the JSON handler there; before that (scripts, tests) a plain
    console handler is attached.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger
    """
    settings = get_settings()
    logger_name = name or settings.service_name

    logger = logging.getLogger(logger_name)

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    # Avoid duplicate handlers
    if logger.handlers or logging.getLogger().handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

    return logger


def preview(text: str, limit: int = 80) -> str:
    """Bounded, single-line preview of user text for log lines"""
    flat = " ".join((text or "").split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3] + "..."
