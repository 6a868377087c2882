"""
Activity Coach Shared Library - Models Module
Pydantic models used across the coaching services
"""

from .activity import (
    PAYLOAD_MODELS,
    UNKNOWN_CONFIDENCE,
    ActivityKind,
    ActivityPayload,
    EnergyPayload,
    FoodItem,
    FoodPayload,
    MoodPayload,
    ParsedActivity,
    SleepPayload,
    UnknownPayload,
    WaterPayload,
    WeightPayload,
    WorkoutPayload,
    WorkoutSet,
)
from .coaching import (
    CoachResponse,
    ConnectionStatus,
    PatternAnalysis,
    ProcessedResult,
    UserContext,
)

__all__ = [
    # Activities
    "ActivityKind",
    "ActivityPayload",
    "PAYLOAD_MODELS",
    "UNKNOWN_CONFIDENCE",
    "ParsedActivity",
    "WeightPayload",
    "FoodItem",
    "FoodPayload",
    "WorkoutSet",
    "WorkoutPayload",
    "MoodPayload",
    "EnergyPayload",
    "SleepPayload",
    "WaterPayload",
    "UnknownPayload",
    # Coaching
    "CoachResponse",
    "UserContext",
    "ProcessedResult",
    "PatternAnalysis",
    "ConnectionStatus",
]
