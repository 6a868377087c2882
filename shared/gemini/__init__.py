"""
Gemini Integration Module
Exports the resilient client, configuration, and exception components
"""

from shared.gemini.client import ResilientGeminiClient
from shared.gemini.config import (
    TASK_CONFIGS,
    GeminiConfig,
    GeminiModelType,
    ModelConfig,
    TaskType,
    get_gemini_config,
    get_task_config,
)
from shared.gemini.exceptions import (
    EmptyResponseError,
    GeminiAPICallError,
    GeminiError,
    MissingApiKeyError,
)

__all__ = [
    # Client
    "ResilientGeminiClient",
    # Config
    "GeminiConfig",
    "GeminiModelType",
    "TaskType",
    "ModelConfig",
    "TASK_CONFIGS",
    "get_gemini_config",
    "get_task_config",
    # Exceptions
    "GeminiError",
    "MissingApiKeyError",
    "GeminiAPICallError",
    "EmptyResponseError",
]
