"""
Activity Coach - Structured Extraction Client
Gemini-backed extraction of a typed activity from free text.

Fallback chain, in order: remote model -> local pattern rules -> unknown.
`extract` always returns an activity; `extract_remote` raises.
"""

import json
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from shared.gemini.client import ResilientGeminiClient
from shared.gemini.config import TaskType
from shared.models import ActivityKind, ParsedActivity
from shared.utils.errors import MalformedResponseError
from shared.utils.logger import get_logger, preview

from activity_coach.application.pattern_matcher import FastPatternMatcher

logger = get_logger(__name__)


# One worked example per activity kind
EXTRACTION_EXAMPLES: Tuple[Tuple[str, Dict[str, Any]], ...] = (
    (
        "weight 175",
        {"kind": "weight", "payload": {"value": 175, "unit": "lbs"}, "confidence": 0.95},
    ),
    (
        "had eggs for breakfast",
        {
            "kind": "food",
            "payload": {"items": [{"name": "eggs"}], "meal": "breakfast"},
            "confidence": 0.9,
        },
    ),
    (
        "ran 5k in 25 minutes",
        {
            "kind": "workout",
            "payload": {"activity": "running", "distance": 5, "distanceUnit": "km", "duration": 25},
            "confidence": 0.95,
        },
    ),
    (
        "feeling great today",
        {"kind": "mood", "payload": {"mood": "great", "notes": "feeling great today"}, "confidence": 0.85},
    ),
    ("energy 8/10", {"kind": "energy", "payload": {"level": 8}, "confidence": 0.95}),
    ("slept 8 hours", {"kind": "sleep", "payload": {"hours": 8}, "confidence": 0.95}),
    (
        "drank 64 oz water",
        {"kind": "water", "payload": {"amount": 64, "unit": "oz"}, "confidence": 0.95},
    ),
    (
        "called my mom",
        {"kind": "unknown", "payload": {"originalText": "called my mom"}, "confidence": 0.1},
    ),
)

REQUIRED_FIELDS = ("kind", "payload", "confidence")


def strip_code_fences(response: str) -> str:
    """Remove the markdown code fence Gemini sometimes wraps JSON in"""
    cleaned = response.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


class StructuredExtractionClient:
    """
    Converts free text into one ParsedActivity using the fast extraction model
    """

    def __init__(
        self,
        gemini_client: Optional[ResilientGeminiClient] = None,
        matcher: Optional[FastPatternMatcher] = None,
    ):
        self.gemini_client = gemini_client or ResilientGeminiClient()
        self.matcher = matcher or FastPatternMatcher()

    async def extract(self, text: str) -> ParsedActivity:
        """
        Extract an activity, never raising

        Any transport or parse failure falls back to the local rules, then
        to an unknown activity whose payload carries the failure reason.
        """
        try:
            return await self.extract_remote(text)
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            logger.warning(f"Remote extraction failed for {preview(text)!r}: {reason}")
            return self.fallback(text, reason)

    async def extract_remote(self, text: str) -> ParsedActivity:
        """
        One remote extraction attempt

        Raises:
            GeminiError: Transport failure or missing API key
            MalformedResponseError: Response is not a complete activity object
        """
        prompt = self.build_prompt(text)
        logger.debug(f"Sending extraction prompt to Gemini ({len(prompt)} chars)")
        response = await self.gemini_client.generate_for_task(
            TaskType.ACTIVITY_EXTRACTION, prompt
        )
        return self.parse_response(response, text)

    def fallback(self, text: str, reason: str) -> ParsedActivity:
        local = self.matcher.match(text)
        if local is not None:
            logger.info(f"Recovered {local.kind.value} from local rules after remote failure")
            return local
        return ParsedActivity.unknown(text, error_detail=reason)

    async def probe(self) -> None:
        """Minimal round trip to the extraction model; raises on failure"""
        await self.gemini_client.generate_for_task(
            TaskType.CONNECTION_PROBE,
            "Reply with OK.",
            model=self.gemini_client.get_model_for_task(TaskType.ACTIVITY_EXTRACTION),
        )

    @staticmethod
    def build_prompt(text: str) -> str:
        kinds = ", ".join(kind.value for kind in ActivityKind)
        examples = "\n".join(
            f'"{example}" -> {json.dumps(result)}' for example, result in EXTRACTION_EXAMPLES
        )
        return f"""Parse the fitness log below into structured data.

Return JSON with:
- kind: one of [{kinds}]
- payload: structured data for that kind
- confidence: 0-1 confidence score

Examples:
{examples}

Log: {json.dumps(text)}
"""

    @staticmethod
    def parse_response(response: str, text: str) -> ParsedActivity:
        """
        Strictly parse the model reply into a ParsedActivity

        Raises:
            MalformedResponseError: Invalid JSON, missing fields, or a payload
                that does not fit its kind
        """
        try:
            data = json.loads(strip_code_fences(response or ""))
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Extraction reply is not JSON: {e.msg}", raw=response) from e

        if not isinstance(data, dict):
            raise MalformedResponseError("Extraction reply is not a JSON object", raw=response)

        # Older prompts used type/data; accept them as aliases
        data.setdefault("kind", data.get("type"))
        data.setdefault("payload", data.get("data"))
        missing = [field for field in REQUIRED_FIELDS if data.get(field) is None]
        if missing:
            raise MalformedResponseError(
                f"Extraction reply is missing {', '.join(missing)}", raw=response
            )

        payload = data["payload"]
        if data["kind"] == ActivityKind.UNKNOWN.value and isinstance(payload, dict):
            payload = {"originalText": text, **payload}

        try:
            return ParsedActivity.model_validate(
                {
                    "kind": data["kind"],
                    "payload": payload,
                    "confidence": data["confidence"],
                    "rawText": text,
                }
            )
        except ValidationError as e:
            raise MalformedResponseError(
                f"Extraction reply failed validation ({e.error_count()} errors)", raw=response
            ) from e
