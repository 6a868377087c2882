"""
Activity Coach - Coaching Models
Coach replies, user context, and the orchestrator's result contracts.
"""

from typing import Any, Optional, Tuple

from pydantic import Field, ValidationInfo, field_validator

from .activity import CamelModel, ParsedActivity

# Upper bounds on the optional list fields of a coach reply
MAX_INSIGHTS = 2
MAX_NEXT_STEPS = 2


class CoachResponse(CamelModel):
    """Short coaching reply with optional structured extras"""

    message: str = Field(min_length=1)
    motivation: Optional[str] = None
    insights: Optional[Tuple[str, ...]] = None
    challenge: Optional[str] = None
    encouragement: Optional[str] = None
    next_steps: Optional[Tuple[str, ...]] = None

    @field_validator("insights", "next_steps", mode="before")
    @classmethod
    def cap_list_length(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return None
        if isinstance(value, (str, int, float)):
            value = [value]
        elif not isinstance(value, (list, tuple)):
            raise ValueError("expected a list of strings")
        items = [str(item).strip() for item in value if str(item).strip()]
        limit = MAX_INSIGHTS if info.field_name == "insights" else MAX_NEXT_STEPS
        return tuple(items[:limit]) or None

    @field_validator("motivation", "challenge", "encouragement", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class UserContext(CamelModel):
    """Optional user context passed to the coaching model"""

    recent_activities: Tuple[ParsedActivity, ...] = Field(
        default=(), description="Most recent first"
    )
    goals: Tuple[str, ...] = ()
    current_mood: Optional[str] = None
    energy_level: Optional[int] = Field(None, ge=1, le=10)


class ProcessedResult(CamelModel):
    """Orchestrator output for a single input text"""

    parsed_activity: ParsedActivity
    coach_response: CoachResponse
    should_save: bool
    error: Optional[str] = None

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PatternAnalysis(CamelModel):
    """Trends, recommendations and achievements over an activity history"""

    trends: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    achievements: Tuple[str, ...] = ()


class ConnectionStatus(CamelModel):
    """Result of probing both remote language-model services"""

    extraction_ok: bool
    coaching_ok: bool
    errors: Tuple[str, ...] = ()
