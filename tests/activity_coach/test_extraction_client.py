import asyncio
import json

import pytest
from activity_coach.application.extraction import (
    EXTRACTION_EXAMPLES,
    StructuredExtractionClient,
)

from shared.gemini.config import TaskType
from shared.gemini.exceptions import GeminiAPICallError
from shared.models import ActivityKind, ParsedActivity, WeightPayload
from shared.utils.errors import MalformedResponseError


def _run(coroutine):
    return asyncio.run(coroutine)


class FakeGemini:
    def __init__(self, reply: str = "", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate_for_task(self, task, prompt, **kwargs):
        self.calls.append((task, prompt, kwargs))
        if self.error is not None:
            raise self.error
        return self.reply

    def get_model_for_task(self, task):
        return "fake-model"


def test_worked_examples_cover_every_kind_and_validate() -> None:
    kinds = set()
    for text, example in EXTRACTION_EXAMPLES:
        activity = ParsedActivity.model_validate({**example, "rawText": text})
        kinds.add(activity.kind)
    assert kinds == set(ActivityKind)


def test_prompt_contains_examples_and_input() -> None:
    prompt = StructuredExtractionClient.build_prompt("walked the dog twice")

    assert '"ran 5k in 25 minutes"' in prompt
    assert '"walked the dog twice"' in prompt
    assert "unknown" in prompt


def test_extract_parses_model_json() -> None:
    reply = json.dumps(
        {
            "kind": "workout",
            "payload": {"activity": "yoga", "duration": 45, "intensity": "low"},
            "confidence": 0.82,
        }
    )
    gemini = FakeGemini(reply=f"```json\n{reply}\n```")
    client = StructuredExtractionClient(gemini_client=gemini)

    activity = _run(client.extract("an hour-ish of vinyasa flow"))

    assert activity.kind is ActivityKind.WORKOUT
    assert activity.payload.activity == "yoga"
    assert activity.payload.duration == 45
    assert activity.confidence == pytest.approx(0.82)
    assert activity.raw_text == "an hour-ish of vinyasa flow"
    assert gemini.calls[0][0] is TaskType.ACTIVITY_EXTRACTION


def test_model_confidence_is_clamped() -> None:
    reply = json.dumps({"kind": "weight", "payload": {"value": 70, "unit": "kg"}, "confidence": 3})

    activity = StructuredExtractionClient.parse_response(reply, "seventy kilos")

    assert activity.confidence == 1.0
    assert activity.payload == WeightPayload(value=70, unit="kg")


def test_legacy_type_and_data_keys_are_accepted() -> None:
    reply = json.dumps({"type": "weight", "data": {"weight": 175, "unit": "lbs"}, "confidence": 0.9})

    activity = StructuredExtractionClient.parse_response(reply, "one seventy five")

    assert activity.payload == WeightPayload(value=175, unit="lbs")


@pytest.mark.parametrize(
    "reply",
    [
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"kind": "weight", "payload": {"value": 175}}),
        json.dumps({"kind": "weight", "confidence": 0.9}),
        json.dumps({"kind": "dance", "payload": {}, "confidence": 0.9}),
        json.dumps({"kind": "energy", "payload": {"level": 42}, "confidence": 0.9}),
        json.dumps({"kind": "sleep", "payload": {"amount": 2, "unit": "oz"}, "confidence": 0.9}),
    ],
)
def test_incomplete_replies_are_malformed(reply: str) -> None:
    with pytest.raises(MalformedResponseError):
        StructuredExtractionClient.parse_response(reply, "whatever")


def test_model_unknown_keeps_original_text() -> None:
    reply = json.dumps({"kind": "unknown", "payload": {}, "confidence": 0.2})

    activity = StructuredExtractionClient.parse_response(reply, "called my mom")

    assert activity.kind is ActivityKind.UNKNOWN
    assert activity.payload.original_text == "called my mom"
    assert activity.error_detail is None


def test_transport_failure_falls_back_to_local_rules() -> None:
    gemini = FakeGemini(error=GeminiAPICallError("boom", model="fake-model"))
    client = StructuredExtractionClient(gemini_client=gemini)

    activity = _run(client.extract("slept 8 hours"))

    assert activity.kind is ActivityKind.SLEEP
    assert activity.payload.hours == 8
    assert len(gemini.calls) == 1


def test_total_failure_returns_unknown_with_detail() -> None:
    client = StructuredExtractionClient(gemini_client=FakeGemini(reply="I am not JSON"))

    activity = _run(client.extract("asdkjasjd random gibberish"))

    assert activity.kind is ActivityKind.UNKNOWN
    assert activity.confidence == pytest.approx(0.1)
    assert activity.payload.original_text == "asdkjasjd random gibberish"
    assert "MalformedResponseError" in activity.error_detail


def test_extract_remote_raises() -> None:
    client = StructuredExtractionClient(gemini_client=FakeGemini(error=RuntimeError("down")))

    with pytest.raises(RuntimeError, match="down"):
        _run(client.extract_remote("anything"))


def test_probe_uses_extraction_model() -> None:
    gemini = FakeGemini(reply="OK")
    client = StructuredExtractionClient(gemini_client=gemini)

    _run(client.probe())

    task, _prompt, kwargs = gemini.calls[0]
    assert task is TaskType.CONNECTION_PROBE
    assert kwargs["model"] == "fake-model"
