"""
Activity Coach - Activity Models
Typed activity payloads and the parsed-activity value object.

`ParsedActivity.payload` is a tagged union keyed by `kind`: every
ActivityKind maps to exactly one payload model in PAYLOAD_MODELS, and the
mapping is checked for completeness at import time.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional, Tuple, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# ============================================================================
# ENUMS
# ============================================================================


class ActivityKind(str, Enum):
    WEIGHT = "weight"
    FOOD = "food"
    WORKOUT = "workout"
    MOOD = "mood"
    ENERGY = "energy"
    SLEEP = "sleep"
    WATER = "water"
    UNKNOWN = "unknown"


WeightUnit = Literal["lbs", "kg"]
MealType = Literal["breakfast", "lunch", "dinner", "snack"]
Intensity = Literal["low", "medium", "high"]
MoodLevel = Literal["great", "good", "okay", "bad", "terrible"]
SleepQuality = Literal["great", "good", "poor"]
WaterUnit = Literal["oz", "ml", "cups", "liters"]

# Confidence reported for failed or unrecognised extractions
UNKNOWN_CONFIDENCE = 0.1


class CamelModel(BaseModel):
    """Immutable model serialised with camelCase keys"""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ============================================================================
# PAYLOADS
# ============================================================================


class WeightPayload(CamelModel):
    value: float = Field(gt=0, validation_alias=AliasChoices("value", "weight"))
    unit: WeightUnit = "lbs"


class FoodItem(CamelModel):
    name: str = Field(min_length=1)
    quantity: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = None
    calories: Optional[float] = Field(None, ge=0)


class FoodPayload(CamelModel):
    items: Tuple[FoodItem, ...] = Field(min_length=1)
    meal: Optional[MealType] = None


class WorkoutSet(CamelModel):
    reps: Optional[int] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    weight_unit: Optional[str] = None


class WorkoutPayload(CamelModel):
    activity: str = Field(min_length=1)
    duration: Optional[float] = Field(None, ge=0, description="Minutes")
    distance: Optional[float] = Field(None, ge=0)
    distance_unit: Optional[str] = None
    sets: Optional[Tuple[WorkoutSet, ...]] = None
    intensity: Optional[Intensity] = None


class MoodPayload(CamelModel):
    mood: MoodLevel
    notes: Optional[str] = None


class EnergyPayload(CamelModel):
    level: int = Field(ge=1, le=10)


class SleepPayload(CamelModel):
    hours: float = Field(ge=0, le=24)
    quality: Optional[SleepQuality] = None


class WaterPayload(CamelModel):
    amount: float = Field(gt=0)
    unit: WaterUnit


class UnknownPayload(CamelModel):
    original_text: str = Field(
        "", validation_alias=AliasChoices("originalText", "original_text", "text")
    )
    error_detail: Optional[str] = Field(
        None, validation_alias=AliasChoices("errorDetail", "error_detail", "error")
    )


ActivityPayload = Union[
    WeightPayload,
    FoodPayload,
    WorkoutPayload,
    MoodPayload,
    EnergyPayload,
    SleepPayload,
    WaterPayload,
    UnknownPayload,
]

PAYLOAD_MODELS: Mapping[ActivityKind, Type[CamelModel]] = MappingProxyType(
    {
        ActivityKind.WEIGHT: WeightPayload,
        ActivityKind.FOOD: FoodPayload,
        ActivityKind.WORKOUT: WorkoutPayload,
        ActivityKind.MOOD: MoodPayload,
        ActivityKind.ENERGY: EnergyPayload,
        ActivityKind.SLEEP: SleepPayload,
        ActivityKind.WATER: WaterPayload,
        ActivityKind.UNKNOWN: UnknownPayload,
    }
)

_unmapped = set(ActivityKind) - set(PAYLOAD_MODELS)
if _unmapped:
    raise RuntimeError(f"Activity kinds without a payload model: {sorted(k.value for k in _unmapped)}")


# ============================================================================
# PARSED ACTIVITY
# ============================================================================


class ParsedActivity(CamelModel):
    """One extracted activity, immutable once built"""

    kind: ActivityKind = Field(validation_alias=AliasChoices("kind", "type"))
    payload: ActivityPayload = Field(validation_alias=AliasChoices("payload", "data"))
    confidence: float = Field(ge=0.0, le=1.0)
    raw_text: str = Field("", validation_alias=AliasChoices("rawText", "raw_text"))

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: Any) -> float:
        try:
            score = float(value)
        except (TypeError, ValueError):
            raise ValueError("confidence must be a number") from None
        if score != score:  # NaN
            raise ValueError("confidence must be a number")
        return min(1.0, max(0.0, score))

    @model_validator(mode="before")
    @classmethod
    def coerce_payload(cls, data: Any) -> Any:
        """Validate a raw payload against the model registered for its kind"""
        if not isinstance(data, dict):
            return data
        kind_value = data.get("kind", data.get("type"))
        payload_key = "payload" if "payload" in data else "data"
        payload = data.get(payload_key)
        try:
            kind = ActivityKind(kind_value)
        except ValueError:
            return data
        if isinstance(payload, dict):
            data = dict(data)
            data[payload_key] = PAYLOAD_MODELS[kind].model_validate(payload)
        return data

    @model_validator(mode="after")
    def payload_matches_kind(self) -> "ParsedActivity":
        expected = PAYLOAD_MODELS[self.kind]
        if not isinstance(self.payload, expected):
            raise ValueError(
                f"payload {type(self.payload).__name__} does not match kind {self.kind.value}"
            )
        return self

    @classmethod
    def unknown(
        cls,
        raw_text: str,
        error_detail: Optional[str] = None,
        confidence: float = UNKNOWN_CONFIDENCE,
    ) -> "ParsedActivity":
        """Build the unknown activity used when nothing could be extracted"""
        return cls(
            kind=ActivityKind.UNKNOWN,
            payload=UnknownPayload(original_text=raw_text, error_detail=error_detail),
            confidence=confidence,
            raw_text=raw_text,
        )

    @property
    def error_detail(self) -> Optional[str]:
        if isinstance(self.payload, UnknownPayload):
            return self.payload.error_detail
        return None

    def to_wire(self) -> dict:
        """camelCase JSON-ready dict without empty optionals"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
