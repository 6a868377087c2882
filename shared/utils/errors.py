"""
Activity Coach Shared Errors
Custom exception classes
"""

from typing import Any, Dict, Optional


class ActivityCoachError(Exception):
    """Base exception for the activity coach"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ActivityCoachError):
    """Validation error (400)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class ConfigurationError(ActivityCoachError):
    """Invalid service configuration"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=500, details=details)


class ExternalServiceError(ActivityCoachError):
    """External service error (502)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=502, details=details)


class RemoteTimeoutError(ExternalServiceError):
    """A remote call lost its timeout race (504)"""

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            f"{operation} timed out after {timeout_seconds:g}s",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )
        self.status_code = 504
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class MalformedResponseError(ExternalServiceError):
    """Remote call succeeded but returned an unusable payload"""

    def __init__(self, message: str, raw: Optional[str] = None):
        preview = (raw or "")[:200]
        super().__init__(message, details={"raw_preview": preview})
        self.raw_preview = preview
