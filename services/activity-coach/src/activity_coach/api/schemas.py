"""
Activity Coach - API Schemas
Request/response bodies for the coaching endpoints (camelCase on the wire)
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.models import (
    ConnectionStatus,
    ParsedActivity,
    PatternAnalysis,
    ProcessedResult,
    UserContext,
)

MAX_TEXT_LENGTH = 2000
MAX_BATCH_INPUTS = 100


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# REQUESTS
# ============================================================================


class ProcessRequest(ApiModel):
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    context: Optional[UserContext] = None


class BatchRequest(ApiModel):
    texts: List[str] = Field(min_length=1, max_length=MAX_BATCH_INPUTS)
    context: Optional[UserContext] = None


class QuickParseRequest(ApiModel):
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)


class MissionRequest(ApiModel):
    context: Optional[UserContext] = None


class PatternsRequest(ApiModel):
    activities: List[ParsedActivity] = Field(default_factory=list)


# ============================================================================
# RESPONSES
# ============================================================================


class BatchResponse(ApiModel):
    results: List[ProcessedResult]


class QuickParseResponse(ApiModel):
    activities: List[ParsedActivity]


class MissionResponse(ApiModel):
    mission: str


class SuggestionsResponse(ApiModel):
    suggestions: List[str]


class HealthCheckResponse(ApiModel):
    status: str
    service: str
    version: str


class ErrorResponse(ApiModel):
    error: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "ProcessRequest",
    "BatchRequest",
    "QuickParseRequest",
    "MissionRequest",
    "PatternsRequest",
    "BatchResponse",
    "QuickParseResponse",
    "MissionResponse",
    "SuggestionsResponse",
    "HealthCheckResponse",
    "ErrorResponse",
    "ProcessedResult",
    "PatternAnalysis",
    "ConnectionStatus",
]
