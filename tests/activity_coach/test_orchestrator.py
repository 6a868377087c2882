import asyncio
import time
from datetime import date

import pytest
from activity_coach.application.coaching import DEFAULT_COACH_RESPONSES, DEFAULT_MISSIONS
from activity_coach.application.orchestrator import (
    KEEP_LOGGING_ANALYSIS,
    ActivityCoachOrchestrator,
    local_pattern_analysis,
    should_save,
)
from activity_coach.application.pattern_matcher import FastPatternMatcher
from activity_coach.core.config import ActivityCoachConfig

from shared.models import (
    ActivityKind,
    CoachResponse,
    MoodPayload,
    ParsedActivity,
    PatternAnalysis,
    UserContext,
    WeightPayload,
)
from shared.utils.errors import ConfigurationError


def _run(coroutine):
    return asyncio.run(coroutine)


def _config(**overrides) -> ActivityCoachConfig:
    values = dict(
        request_timeout_ms=200,
        mission_timeout_ms=200,
        analysis_timeout_ms=400,
        probe_timeout_ms=200,
    )
    values.update(overrides)
    return ActivityCoachConfig(**values)


class FakeExtraction:
    def __init__(self, result=None, error=None, delay=0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = 0

    async def extract(self, text):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result or ParsedActivity(
            kind=ActivityKind.MOOD,
            payload=MoodPayload(mood="good"),
            confidence=0.7,
            raw_text=text,
        )

    async def probe(self):
        if self.error is not None:
            raise self.error


class FakeCoaching:
    def __init__(self, error=None, delay=0.0, mission="Climb 5 flights of stairs", analysis=None):
        self.error = error
        self.delay = delay
        self.mission = mission
        self.analysis = analysis
        self.respond_calls = 0
        self.analysis_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def respond(self, text, parsed, context=None):
        self.respond_calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return CoachResponse(message=f"coached: {text}")
        finally:
            self.in_flight -= 1

    async def generate_daily_mission(self, context=None):
        if self.error is not None:
            raise self.error
        return self.mission

    async def analyze_patterns(self, activities):
        self.analysis_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.analysis or PatternAnalysis(trends=(f"{len(activities)} analysed",))

    async def probe(self):
        if self.error is not None:
            raise self.error


def _orchestrator(extraction=None, coaching=None, **config) -> ActivityCoachOrchestrator:
    return ActivityCoachOrchestrator(
        extraction_client=extraction or FakeExtraction(),
        coaching_client=coaching or FakeCoaching(),
        matcher=FastPatternMatcher(),
        config=_config(**config),
        today=lambda: date(2026, 1, 1),
    )


def test_fast_path_skips_remote_extraction() -> None:
    extraction = FakeExtraction()
    coaching = FakeCoaching()
    orchestrator = _orchestrator(extraction, coaching)

    for text in ("weight 175", "ran 5k in 25 minutes", "slept 8 hours", "drank 64 oz water"):
        result = _run(orchestrator.process_input(text))
        assert result.error is None
        assert result.should_save is True

    assert extraction.calls == 0
    assert coaching.respond_calls == 4


def test_weight_scenario() -> None:
    result = _run(_orchestrator().process_input("weight 175"))

    assert result.parsed_activity.kind is ActivityKind.WEIGHT
    assert result.parsed_activity.payload == WeightPayload(value=175, unit="lbs")
    assert result.parsed_activity.confidence >= 0.9
    assert result.coach_response.message == "coached: weight 175"


def test_unmatched_text_uses_remote_extraction() -> None:
    extraction = FakeExtraction()
    orchestrator = _orchestrator(extraction)

    result = _run(orchestrator.process_input("pretty chill afternoon overall"))

    assert extraction.calls == 1
    assert result.parsed_activity.kind is ActivityKind.MOOD
    assert result.should_save is True


def test_extraction_failure_returns_unknown_fallback() -> None:
    coaching = FakeCoaching()
    orchestrator = _orchestrator(FakeExtraction(error=RuntimeError("parser offline")), coaching)

    result = _run(orchestrator.process_input("asdkjasjd random gibberish"))

    assert result.parsed_activity.kind is ActivityKind.UNKNOWN
    assert result.parsed_activity.confidence == pytest.approx(0.1)
    assert result.parsed_activity.raw_text == "asdkjasjd random gibberish"
    assert result.should_save is False
    assert result.error == "parser offline"
    assert result.coach_response == DEFAULT_COACH_RESPONSES[ActivityKind.UNKNOWN]
    assert coaching.respond_calls == 0


def test_degraded_unknown_from_client_is_reported_as_error() -> None:
    degraded = ParsedActivity.unknown("???", error_detail="MalformedResponseError: not JSON")
    result = _run(_orchestrator(FakeExtraction(result=degraded)).process_input("???"))

    assert result.should_save is False
    assert result.error == "MalformedResponseError: not JSON"


def test_coaching_failure_keeps_parsed_activity() -> None:
    orchestrator = _orchestrator(coaching=FakeCoaching(error=RuntimeError("coach offline")))

    result = _run(orchestrator.process_input("slept 8 hours"))

    assert result.parsed_activity.kind is ActivityKind.SLEEP
    assert result.coach_response == DEFAULT_COACH_RESPONSES[ActivityKind.SLEEP]
    assert result.should_save is True
    assert result.error == "coach offline"


def test_coaching_timeout_is_reported() -> None:
    orchestrator = _orchestrator(coaching=FakeCoaching(delay=5), request_timeout_ms=50)

    result = _run(orchestrator.process_input("weight 175"))

    assert result.coach_response == DEFAULT_COACH_RESPONSES[ActivityKind.WEIGHT]
    assert "timed out" in result.error


def test_both_clients_hanging_resolve_within_twice_the_timeout() -> None:
    orchestrator = _orchestrator(
        FakeExtraction(delay=5),
        FakeCoaching(delay=5),
        request_timeout_ms=100,
    )

    start = time.perf_counter()
    result = _run(orchestrator.process_input("asdkjasjd random gibberish"))
    elapsed = time.perf_counter() - start

    assert elapsed < 0.2 + 0.5
    assert result.parsed_activity.kind is ActivityKind.UNKNOWN
    assert result.should_save is False
    assert result.error is not None


@pytest.mark.parametrize("kind", list(ActivityKind))
@pytest.mark.parametrize("confidence", [0.0, 0.1, 0.59, 0.6, 0.61, 0.85, 1.0])
def test_should_save_iff_confident_and_known(kind: ActivityKind, confidence: float) -> None:
    activity = ParsedActivity.unknown("x", confidence=confidence)
    if kind is not ActivityKind.UNKNOWN:
        activity = ParsedActivity.model_validate(
            {
                "kind": kind,
                "payload": _payload_for(kind),
                "confidence": confidence,
                "rawText": "x",
            }
        )

    expected = confidence > 0.6 and kind is not ActivityKind.UNKNOWN
    assert should_save(activity, 0.6) is expected


def _payload_for(kind: ActivityKind) -> dict:
    return {
        ActivityKind.WEIGHT: {"value": 175, "unit": "lbs"},
        ActivityKind.FOOD: {"items": [{"name": "eggs"}]},
        ActivityKind.WORKOUT: {"activity": "running"},
        ActivityKind.MOOD: {"mood": "okay"},
        ActivityKind.ENERGY: {"level": 5},
        ActivityKind.SLEEP: {"hours": 7},
        ActivityKind.WATER: {"amount": 1, "unit": "liters"},
    }[kind]


def test_batch_preserves_order_and_bounds_concurrency() -> None:
    coaching = FakeCoaching(delay=0.01)
    orchestrator = _orchestrator(coaching=coaching, batch_size=3)
    texts = [f"weight {150 + i}" for i in range(8)]

    results = _run(orchestrator.process_batch(texts))

    assert [r.parsed_activity.raw_text for r in results] == texts
    assert coaching.max_in_flight == 3


def test_batch_order_holds_when_later_items_settle_first() -> None:
    class SlowFirst(FakeCoaching):
        async def respond(self, text, parsed, context=None):
            await asyncio.sleep(0.05 if text.endswith("150") else 0)
            return CoachResponse(message=text)

    orchestrator = _orchestrator(coaching=SlowFirst())
    texts = ["weight 150", "weight 151", "weight 152"]

    results = _run(orchestrator.process_batch(texts))

    assert [r.coach_response.message for r in results] == texts


def test_empty_batch() -> None:
    assert _run(_orchestrator().process_batch([])) == []


def test_quick_parse_is_local() -> None:
    extraction = FakeExtraction()
    orchestrator = _orchestrator(extraction)

    activities = orchestrator.quick_parse("ran 5k; slept 8 hours, weight 175")

    assert [a.kind for a in activities] == [ActivityKind.WORKOUT, ActivityKind.SLEEP, ActivityKind.WEIGHT]
    assert extraction.calls == 0


def test_daily_mission_remote_and_fallback() -> None:
    assert _run(_orchestrator().generate_daily_mission()) == "Climb 5 flights of stairs"

    failing = _orchestrator(coaching=FakeCoaching(error=RuntimeError("down")))
    mission = _run(failing.generate_daily_mission(UserContext(energy_level=8)))
    assert mission in DEFAULT_MISSIONS
    assert mission == _run(failing.generate_daily_mission(UserContext(energy_level=8)))


def test_short_history_never_calls_remote_analysis() -> None:
    coaching = FakeCoaching()
    orchestrator = _orchestrator(coaching=coaching)
    history = [ParsedActivity.unknown("x")] * 4

    analysis = _run(orchestrator.analyze_user_patterns(history))

    assert analysis == KEEP_LOGGING_ANALYSIS
    assert coaching.analysis_calls == 0


def test_analysis_sends_recent_window() -> None:
    coaching = FakeCoaching()
    orchestrator = _orchestrator(coaching=coaching, analysis_window=20)
    history = [ParsedActivity.unknown(str(i)) for i in range(30)]

    analysis = _run(orchestrator.analyze_user_patterns(history))

    assert analysis.trends == ("20 analysed",)
    assert coaching.analysis_calls == 1


def test_analysis_failure_uses_local_heuristic() -> None:
    matcher = FastPatternMatcher()
    history = [matcher.match("ran 5k")] * 6 + [matcher.match("weight 175")] * 4
    orchestrator = _orchestrator(coaching=FakeCoaching(error=RuntimeError("down")))

    analysis = _run(orchestrator.analyze_user_patterns(history))

    assert "5+ workouts logged!" in analysis.achievements
    assert "You're maintaining a consistent workout routine" in analysis.trends
    assert "Regular weight tracking helps see progress" in analysis.trends
    assert "Try logging your water intake daily" in analysis.recommendations
    assert "Track your sleep to optimize recovery" in analysis.recommendations


def test_local_heuristic_defaults() -> None:
    matcher = FastPatternMatcher()
    history = [matcher.match("drank 64 oz water")] * 3 + [matcher.match("slept 8 hours")] * 3

    analysis = local_pattern_analysis(history)

    assert analysis.trends == ("You're building good tracking habits",)
    assert analysis.recommendations == ("Keep up the great work!",)
    assert analysis.achievements == ()


def test_validate_connections_reports_each_client() -> None:
    healthy = _run(_orchestrator().validate_connections())
    assert healthy.extraction_ok and healthy.coaching_ok
    assert healthy.errors == ()

    broken = _run(
        _orchestrator(coaching=FakeCoaching(error=RuntimeError("no key"))).validate_connections()
    )
    assert broken.extraction_ok is True
    assert broken.coaching_ok is False
    assert broken.errors == ("Coaching connection failed: no key",)


def test_suggestions_are_local() -> None:
    extraction = FakeExtraction()
    coaching = FakeCoaching()
    orchestrator = _orchestrator(extraction, coaching)
    matcher = FastPatternMatcher()

    suggestions = orchestrator.get_suggestions("I want to eat something")

    assert 0 < len(suggestions) <= 3
    assert all(matcher.match(s).kind is ActivityKind.FOOD for s in suggestions)
    assert extraction.calls == 0 and coaching.respond_calls == 0


def test_fallback_table_must_cover_every_kind() -> None:
    partial = {ActivityKind.UNKNOWN: DEFAULT_COACH_RESPONSES[ActivityKind.UNKNOWN]}

    with pytest.raises(ConfigurationError):
        ActivityCoachOrchestrator(
            extraction_client=FakeExtraction(),
            coaching_client=FakeCoaching(),
            config=_config(),
            fallback_responses=partial,
        )
