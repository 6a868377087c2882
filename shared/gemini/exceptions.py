"""
Gemini API Exceptions
Custom exceptions for Gemini API operations
"""

from typing import Optional


class GeminiError(Exception):
    """Base exception for Gemini client errors"""

    def __init__(self, message: str, is_quota_error: bool = False):
        self.message = message
        self.is_quota_error = is_quota_error
        super().__init__(self.message)


class MissingApiKeyError(GeminiError):
    """Raised when a call is attempted without a configured API key"""

    def __init__(self):
        super().__init__(
            message="No Gemini API key configured. Please set the GEMINI_API_KEY environment variable."
        )


class GeminiAPICallError(GeminiError):
    """Raised when Gemini API call fails"""

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None,
        is_quota_error: bool = False,
    ):
        super().__init__(message=message, is_quota_error=is_quota_error)
        self.model = model
        self.original_error = original_error


class EmptyResponseError(GeminiAPICallError):
    """Raised when Gemini returns no text (blocked or empty candidate)"""

    def __init__(self, model: str):
        super().__init__(
            message=f"Gemini model {model} returned an empty response",
            model=model,
        )
