"""
Activity Coach - Coaching Response Client
Gemini-backed coaching replies, daily missions and pattern analysis,
plus the static tables used when those calls fail.
"""

import json
import re
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from shared.gemini.client import ResilientGeminiClient
from shared.gemini.config import TaskType
from shared.models import (
    ActivityKind,
    CoachResponse,
    ParsedActivity,
    PatternAnalysis,
    UserContext,
)
from shared.utils.errors import MalformedResponseError
from shared.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MESSAGE = "Great job logging that!"
MAX_PLAIN_MESSAGE_CHARS = 200
RECENT_KINDS_IN_PROMPT = 3

COACH_SYSTEM_PROMPT = """You are an encouraging, knowledgeable fitness coach helping users track their health naturally through conversation.

Your personality:
- Supportive and motivating, never judgmental
- Concise but warm (2-3 sentences max per response)
- Focus on progress over perfection

Your responses should:
1. Acknowledge what the user just logged
2. Provide brief encouragement or insight
3. Optionally suggest a small next action or challenge

Format your response as JSON with these fields:
- message: Main response (required)
- motivation: Motivational quote or thought (optional)
- insights: Array of 1-2 brief insights (optional)
- challenge: Small actionable challenge (optional)
- encouragement: Specific praise (optional)
- nextSteps: Array of 1-2 suggested actions (optional)"""


# ============================================================================
# STATIC FALLBACK TABLES
# ============================================================================

DEFAULT_COACH_RESPONSES: Mapping[ActivityKind, CoachResponse] = MappingProxyType(
    {
        ActivityKind.WEIGHT: CoachResponse(
            message="Weight tracked! Consistency in tracking helps you see the bigger picture.",
            encouragement="Every data point helps build your success story.",
        ),
        ActivityKind.FOOD: CoachResponse(
            message="Meal logged! Being mindful of what you eat is a powerful habit.",
            motivation="Fuel your body, fuel your goals.",
            next_steps=["Consider adding a glass of water before your next meal"],
        ),
        ActivityKind.WORKOUT: CoachResponse(
            message="Workout complete! You're building strength with every session.",
            encouragement="You showed up and that's what matters!",
            challenge="Try to beat today's performance next time by just 1%",
        ),
        ActivityKind.MOOD: CoachResponse(
            message=(
                "Thanks for sharing how you're feeling. "
                "Your mental state is just as important as physical health."
            ),
            insights=["Mood tracking helps identify patterns and triggers"],
        ),
        ActivityKind.ENERGY: CoachResponse(
            message="Energy level noted. Tracking this helps optimize your daily routine.",
            next_steps=["Notice what activities or foods affect your energy most"],
        ),
        ActivityKind.SLEEP: CoachResponse(
            message="Sleep logged! Quality rest is when your body recovers and grows stronger.",
            motivation="Prioritize sleep, prioritize success.",
        ),
        ActivityKind.WATER: CoachResponse(
            message="Hydration tracked! Water is the foundation of peak performance.",
            challenge="Try to drink a glass of water right when you wake up tomorrow",
        ),
        ActivityKind.UNKNOWN: CoachResponse(
            message="Got it! I've noted that for you.",
            next_steps=["Try being more specific so I can provide better insights"],
        ),
    }
)

DEFAULT_MISSIONS: Tuple[str, ...] = (
    "Drink 8 glasses of water today",
    "Take 10,000 steps",
    "Log every meal honestly",
    "Get 7+ hours of sleep tonight",
    "Do 20 pushups",
    "Stretch for 10 minutes",
    "Eat a vegetable with every meal",
    "No screens 30 minutes before bed",
    "Take a 15-minute walk outside",
    "Practice 5 minutes of deep breathing",
)

# Missions suitable when the user reports low energy
GENTLE_MISSIONS = frozenset(
    {
        "Drink 8 glasses of water today",
        "Stretch for 10 minutes",
        "Take a 15-minute walk outside",
        "Practice 5 minutes of deep breathing",
        "Get 7+ hours of sleep tonight",
    }
)
LOW_ENERGY_LEVEL = 4


def select_default_mission(
    context: Optional[UserContext],
    missions: Sequence[str] = DEFAULT_MISSIONS,
    today: Optional[date] = None,
) -> str:
    """
    Deterministic fallback mission

    Low energy (<= 4) restricts the pick to gentle missions; the day ordinal
    rotates through the pool so the mission changes daily.
    """
    pool = list(missions)
    if context is not None and context.energy_level is not None and context.energy_level <= LOW_ENERGY_LEVEL:
        pool = [mission for mission in pool if mission in GENTLE_MISSIONS] or pool
    day = today or date.today()
    return pool[day.toordinal() % len(pool)]


# ============================================================================
# COACHING CLIENT
# ============================================================================


class CoachingResponseClient:
    """
    Conversational model calls: coach replies, missions and pattern analysis

    All methods raise on transport or parse failure; the orchestrator owns
    the fallbacks.
    """

    def __init__(self, gemini_client: Optional[ResilientGeminiClient] = None):
        self.gemini_client = gemini_client or ResilientGeminiClient()

    async def respond(
        self,
        original_text: str,
        parsed: ParsedActivity,
        context: Optional[UserContext] = None,
    ) -> CoachResponse:
        prompt = self.build_prompt(original_text, parsed, context or UserContext())
        logger.debug(f"Sending coaching prompt to Gemini ({len(prompt)} chars)")
        response = await self.gemini_client.generate_for_task(
            TaskType.COACH_RESPONSE,
            prompt,
            system_instruction=COACH_SYSTEM_PROMPT,
        )
        return self.parse_coach_response(response)

    @staticmethod
    def build_prompt(original_text: str, parsed: ParsedActivity, context: UserContext) -> str:
        payload = parsed.payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        lines = [
            f"User said: {json.dumps(original_text)}",
            f"Activity type: {parsed.kind.value}",
            f"Parsed data: {json.dumps(payload)}",
        ]
        if context.current_mood:
            lines.append(f"Current mood: {context.current_mood}")
        if context.energy_level:
            lines.append(f"Energy level: {context.energy_level}/10")
        if context.recent_activities:
            recent = context.recent_activities[:RECENT_KINDS_IN_PROMPT]
            lines.append(f"Recent activities: {', '.join(a.kind.value for a in recent)}")
        if context.goals:
            lines.append(f"Goals: {'; '.join(context.goals)}")
        lines.append("")
        lines.append("Generate an appropriate coaching response in JSON format.")
        return "\n".join(lines)

    @staticmethod
    def parse_coach_response(text: str) -> CoachResponse:
        """
        JSON replies keep their fields; plain text becomes a message-only reply

        Raises:
            MalformedResponseError: Empty reply
        """
        if not text or not text.strip():
            raise MalformedResponseError("Coaching reply is empty", raw=text)

        json_match = re.search(r"\{[\s\S]*\}", text)
        if json_match:
            try:
                data = json.loads(json_match.group(0))
            except json.JSONDecodeError:
                data = None
            if isinstance(data, dict):
                message = data.get("message")
                message = str(message).strip() if message is not None else ""
                message = message or DEFAULT_MESSAGE
                try:
                    return CoachResponse.model_validate({**data, "message": message})
                except ValidationError as e:
                    logger.warning(f"Dropping malformed coaching extras: {e.error_count()} errors")
                    return CoachResponse(message=message)

        return CoachResponse(message=text.strip()[:MAX_PLAIN_MESSAGE_CHARS])

    async def generate_daily_mission(self, context: Optional[UserContext] = None) -> str:
        context = context or UserContext()
        summary = context.model_dump(mode="json", by_alias=True, exclude_none=True)
        response = await self.gemini_client.generate_for_task(
            TaskType.DAILY_MISSION,
            f"Generate a mission based on this context: {json.dumps(summary)}",
        )
        mission = response.strip().splitlines()[0].strip().strip('"') if response.strip() else ""
        if not mission:
            raise MalformedResponseError("Mission reply is empty", raw=response)
        return mission

    async def analyze_patterns(self, activities: Sequence[ParsedActivity]) -> PatternAnalysis:
        """
        Remote trend analysis over the given activities

        Raises:
            MalformedResponseError: Reply is not a JSON object of string lists
        """
        history = [activity.to_wire() for activity in activities]
        response = await self.gemini_client.generate_for_task(
            TaskType.PATTERN_ANALYSIS,
            f"Analyze these activities: {json.dumps(history)}",
        )
        json_match = re.search(r"\{[\s\S]*\}", response or "")
        if not json_match:
            raise MalformedResponseError("Analysis reply has no JSON object", raw=response)
        try:
            data: Any = json.loads(json_match.group(0))
            return PatternAnalysis.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise MalformedResponseError(f"Analysis reply is invalid: {e}", raw=response) from e

    async def probe(self) -> None:
        """Minimal round trip to the coaching model; raises on failure"""
        await self.gemini_client.generate_for_task(
            TaskType.CONNECTION_PROBE,
            "Reply with OK.",
            model=self.gemini_client.get_model_for_task(TaskType.COACH_RESPONSE),
            thinking_budget=0,
        )
