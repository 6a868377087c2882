"""
Activity Coach Shared Utilities
Common utility functions and classes used across services
"""

from .config import Settings, get_settings
from .errors import (
    ActivityCoachError,
    ConfigurationError,
    ExternalServiceError,
    MalformedResponseError,
    RemoteTimeoutError,
    ValidationError,
)
from .logger import get_logger

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Logging
    "get_logger",
    # Errors
    "ActivityCoachError",
    "ValidationError",
    "ConfigurationError",
    "ExternalServiceError",
    "RemoteTimeoutError",
    "MalformedResponseError",
]
