import asyncio
import json
from datetime import date

import pytest
from activity_coach.application.coaching import (
    DEFAULT_COACH_RESPONSES,
    DEFAULT_MISSIONS,
    GENTLE_MISSIONS,
    CoachingResponseClient,
    select_default_mission,
)
from activity_coach.application.pattern_matcher import FastPatternMatcher

from shared.gemini.config import TaskType
from shared.models import ActivityKind, CoachResponse, ParsedActivity, UserContext
from shared.utils.errors import MalformedResponseError


def _run(coroutine):
    return asyncio.run(coroutine)


class FakeGemini:
    def __init__(self, reply: str = ""):
        self.reply = reply
        self.calls = []

    async def generate_for_task(self, task, prompt, **kwargs):
        self.calls.append((task, prompt, kwargs))
        return self.reply

    def get_model_for_task(self, task):
        return "coach-model"


matcher = FastPatternMatcher()


def test_canned_responses_cover_every_kind() -> None:
    assert set(DEFAULT_COACH_RESPONSES) == set(ActivityKind)
    assert all(len(r.message) <= 200 for r in DEFAULT_COACH_RESPONSES.values())
    with pytest.raises(TypeError):
        DEFAULT_COACH_RESPONSES[ActivityKind.WEIGHT] = CoachResponse(message="changed")


def test_json_reply_keeps_structured_fields() -> None:
    reply = json.dumps(
        {
            "message": "Nice run!",
            "insights": ["Pace is improving", "Consistent distance", "Third insight"],
            "nextSteps": ["Hydrate", "Stretch"],
            "challenge": "Add 1k next time",
        }
    )

    response = CoachingResponseClient.parse_coach_response(f"Here you go: {reply}")

    assert response.message == "Nice run!"
    assert response.insights == ("Pace is improving", "Consistent distance")
    assert response.next_steps == ("Hydrate", "Stretch")
    assert response.challenge == "Add 1k next time"
    assert response.motivation is None


def test_json_reply_without_message_gets_default() -> None:
    response = CoachingResponseClient.parse_coach_response('{"motivation": "Keep going"}')

    assert response.message == "Great job logging that!"
    assert response.motivation == "Keep going"


def test_plain_text_reply_becomes_message_only() -> None:
    text = "Great work today! " * 30

    response = CoachingResponseClient.parse_coach_response(text)

    assert len(response.message) <= 200
    assert response.insights is None
    assert response.next_steps is None


def test_malformed_extras_are_dropped() -> None:
    response = CoachingResponseClient.parse_coach_response(
        '{"message": "Logged!", "insights": {"bad": "shape"}}'
    )

    assert response == CoachResponse(message="Logged!")


def test_empty_reply_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        CoachingResponseClient.parse_coach_response("   ")


def test_prompt_includes_context_fields() -> None:
    history = tuple(matcher.match(text) for text in ("ran 5k", "weight 175", "slept 8 hours", "energy 5"))
    context = UserContext(
        recent_activities=history,
        goals=("Run a half marathon",),
        current_mood="tired",
        energy_level=4,
    )
    parsed = matcher.match("drank 64 oz water")

    prompt = CoachingResponseClient.build_prompt("drank 64 oz water", parsed, context)

    assert "Activity type: water" in prompt
    assert '"amount": 64' in prompt
    assert "Current mood: tired" in prompt
    assert "Energy level: 4/10" in prompt
    assert "Recent activities: workout, weight, sleep" in prompt
    assert "energy" not in prompt.split("Recent activities:")[1].splitlines()[0]
    assert "Run a half marathon" in prompt


def test_respond_uses_coach_task() -> None:
    gemini = FakeGemini(reply='{"message": "Hydration hero!"}')
    client = CoachingResponseClient(gemini_client=gemini)
    parsed = matcher.match("drank 64 oz water")

    response = _run(client.respond("drank 64 oz water", parsed))

    assert response.message == "Hydration hero!"
    assert gemini.calls[0][0] is TaskType.COACH_RESPONSE
    assert "system_instruction" in gemini.calls[0][2]


def test_daily_mission_takes_first_line() -> None:
    client = CoachingResponseClient(gemini_client=FakeGemini(reply='"Walk 20 minutes after lunch"\nExtra'))

    assert _run(client.generate_daily_mission()) == "Walk 20 minutes after lunch"


def test_empty_mission_is_malformed() -> None:
    client = CoachingResponseClient(gemini_client=FakeGemini(reply="  "))

    with pytest.raises(MalformedResponseError):
        _run(client.generate_daily_mission())


def test_analyze_patterns_parses_json() -> None:
    reply = json.dumps(
        {"trends": ["More runs"], "recommendations": ["Sleep more"], "achievements": ["10 logs"]}
    )
    gemini = FakeGemini(reply=reply)
    client = CoachingResponseClient(gemini_client=gemini)
    activities = [ParsedActivity.unknown("x")] * 3

    analysis = _run(client.analyze_patterns(activities))

    assert analysis.trends == ("More runs",)
    assert analysis.achievements == ("10 logs",)
    assert gemini.calls[0][0] is TaskType.PATTERN_ANALYSIS


def test_analyze_patterns_without_json_is_malformed() -> None:
    client = CoachingResponseClient(gemini_client=FakeGemini(reply="You are doing great"))

    with pytest.raises(MalformedResponseError):
        _run(client.analyze_patterns([]))


def test_default_mission_is_deterministic_per_day() -> None:
    day = date(2026, 3, 14)

    first = select_default_mission(None, DEFAULT_MISSIONS, day)
    second = select_default_mission(UserContext(energy_level=9), DEFAULT_MISSIONS, day)

    assert first == second
    assert first in DEFAULT_MISSIONS
    assert len(DEFAULT_MISSIONS) == 10


def test_low_energy_picks_gentle_mission() -> None:
    context = UserContext(energy_level=3)
    for offset in range(10):
        mission = select_default_mission(context, DEFAULT_MISSIONS, date.fromordinal(740000 + offset))
        assert mission in GENTLE_MISSIONS


def test_blank_json_message_gets_default() -> None:
    response = CoachingResponseClient.parse_coach_response('{"message": "   ", "challenge": "Walk 10 minutes"}')

    assert response.message == "Great job logging that!"
    assert response.challenge == "Walk 10 minutes"


def test_list_extras_are_capped_per_field() -> None:
    response = CoachResponse(
        message="Logged!",
        insights=["a", "b", "c"],
        next_steps=["x", " ", "y", "z"],
    )

    assert response.insights == ("a", "b")
    assert response.next_steps == ("x", "y")


def test_coaching_connection_check_disables_thinking() -> None:
    gemini = FakeGemini(reply="OK")
    client = CoachingResponseClient(gemini_client=gemini)

    _run(client.probe())

    task, _prompt, kwargs = gemini.calls[0]
    assert task is TaskType.CONNECTION_PROBE
    assert kwargs["model"] == "coach-model"
    assert kwargs["thinking_budget"] == 0
