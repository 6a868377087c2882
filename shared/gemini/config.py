"""
Gemini Configuration Module
Centralized configuration for the Gemini models used by the activity pipeline.
"""

from dataclasses import dataclass, replace
from enum import Enum
from functools import lru_cache
from typing import Dict, Optional

from pydantic import BaseModel, Field

from shared.utils.config import get_settings


class GeminiModelType(str, Enum):
    """Available Gemini model types for different use cases"""

    FLASH = "gemini-2.5-flash"  # Conversational coaching
    PRO = "gemini-2.5-pro"
    FLASH_LITE = "gemini-2.0-flash-lite"  # Fast structured extraction


class TaskType(str, Enum):
    """Task types that determine which model to use"""

    ACTIVITY_EXTRACTION = "activity_extraction"
    COACH_RESPONSE = "coach_response"
    DAILY_MISSION = "daily_mission"
    PATTERN_ANALYSIS = "pattern_analysis"
    CONNECTION_PROBE = "connection_probe"
    GENERAL = "general"


@dataclass(frozen=True)
class ModelConfig:
    """Configuration for a specific model use case"""

    model: str
    temperature: float = 0.7
    max_output_tokens: int = 1024
    json_output: bool = False
    # 2.5 models think by default and thinking tokens count against
    # max_output_tokens; 0 turns thinking off
    thinking_budget: Optional[int] = None
    system_instruction: Optional[str] = None
    description: str = ""


class GeminiConfig(BaseModel):
    """
    Central Gemini configuration.
    Model names can be overridden via environment variables.
    """

    model_config = {"protected_namespaces": ()}

    api_key: Optional[str] = Field(default=None, description="Gemini API key")
    max_retries: int = Field(default=1, ge=1, description="Attempts per call")

    default_model: str = Field(default=GeminiModelType.FLASH.value)
    extraction_model: str = Field(
        default=GeminiModelType.FLASH_LITE.value,
        description="Fast model for structured extraction",
    )
    coaching_model: str = Field(
        default=GeminiModelType.FLASH.value,
        description="Conversational model for coaching replies",
    )

    @classmethod
    def from_env(cls) -> "GeminiConfig":
        """Load configuration from the shared settings"""
        settings = get_settings()
        return cls(
            api_key=settings.gemini_api_key,
            max_retries=max(1, settings.gemini_max_retries),
            default_model=settings.gemini_default_model,
            extraction_model=settings.gemini_extraction_model,
            coaching_model=settings.gemini_coaching_model,
        )

    def get_model_for_task(self, task: TaskType) -> str:
        """
        Get the appropriate model for a specific task type.

        Extraction and probes of the extraction path use the fast model;
        everything conversational goes to the coaching model.
        """
        task_models = {
            TaskType.ACTIVITY_EXTRACTION: self.extraction_model,
            TaskType.COACH_RESPONSE: self.coaching_model,
            TaskType.DAILY_MISSION: self.coaching_model,
            TaskType.PATTERN_ANALYSIS: self.coaching_model,
            TaskType.GENERAL: self.default_model,
        }
        return task_models.get(task, self.default_model)


# Task-specific model configurations with tuned parameters
TASK_CONFIGS: Dict[TaskType, ModelConfig] = {
    TaskType.ACTIVITY_EXTRACTION: ModelConfig(
        model=GeminiModelType.FLASH_LITE.value,
        temperature=0.1,  # Deterministic extraction
        max_output_tokens=512,
        json_output=True,
        description="Convert a free-text activity log into a typed payload",
        system_instruction="""You are a fitness activity parser.
Parse the user's input into exactly one structured activity.
Return ONLY a JSON object with the keys kind, payload and confidence.""",
    ),
    TaskType.COACH_RESPONSE: ModelConfig(
        model=GeminiModelType.FLASH.value,
        temperature=0.7,
        max_output_tokens=500,
        thinking_budget=0,
        json_output=True,
        description="Short encouraging reply to a logged activity",
    ),
    TaskType.DAILY_MISSION: ModelConfig(
        model=GeminiModelType.FLASH.value,
        temperature=0.8,
        max_output_tokens=100,
        thinking_budget=0,
        description="One achievable daily fitness mission",
        system_instruction=(
            "Generate a simple, achievable daily fitness mission in 10 words or less. "
            "Make it specific and motivating. Reply with the mission text only."
        ),
    ),
    TaskType.PATTERN_ANALYSIS: ModelConfig(
        model=GeminiModelType.FLASH.value,
        temperature=0.5,
        max_output_tokens=600,
        thinking_budget=0,
        json_output=True,
        description="Trends, recommendations and achievements over activity history",
        system_instruction=(
            "Analyze user fitness patterns and provide insights. Return JSON with: "
            "trends (array of observations), recommendations (array of suggestions), "
            "achievements (array of accomplishments)."
        ),
    ),
    TaskType.CONNECTION_PROBE: ModelConfig(
        model=GeminiModelType.FLASH_LITE.value,
        temperature=0.0,
        max_output_tokens=8,
        description="Minimal round trip used by health checks",
    ),
    TaskType.GENERAL: ModelConfig(
        model=GeminiModelType.FLASH.value,
        temperature=0.7,
        max_output_tokens=1024,
        description="General purpose generation",
    ),
}


@lru_cache()
def get_gemini_config() -> GeminiConfig:
    """
    Get cached Gemini configuration instance.
    Configuration is loaded once and cached for performance.
    """
    return GeminiConfig.from_env()


def get_task_config(task: TaskType, config: Optional[GeminiConfig] = None) -> ModelConfig:
    """
    Get the configuration for a specific task type, with the model
    resolved from the (possibly environment-overridden) Gemini config.

    Args:
        task: The task type
        config: Gemini config to resolve models from (defaults to the cached one)

    Returns:
        ModelConfig: Configuration for the task
    """
    config = config or get_gemini_config()
    task_config = TASK_CONFIGS.get(task, TASK_CONFIGS[TaskType.GENERAL])

    if task == TaskType.CONNECTION_PROBE:
        return task_config
    return replace(task_config, model=config.get_model_for_task(task))
