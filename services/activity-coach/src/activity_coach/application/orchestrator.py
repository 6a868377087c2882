"""
Activity Coach - Orchestrator
Single entry point for the parse -> coach pipeline.

Every public coroutine returns a valid value: remote failures and timeouts
are converted into fallback results here and never propagate to callers.
"""

import asyncio
from collections import Counter
from datetime import date
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence

from shared.models import (
    ActivityKind,
    CoachResponse,
    ConnectionStatus,
    ParsedActivity,
    PatternAnalysis,
    ProcessedResult,
    UserContext,
)
from shared.utils.errors import ConfigurationError, RemoteTimeoutError
from shared.utils.logger import get_logger, preview
from shared.utils.metrics import record_input_processed, record_save_decision, track_remote_call

from activity_coach.application.coaching import (
    DEFAULT_COACH_RESPONSES,
    DEFAULT_MISSIONS,
    CoachingResponseClient,
    select_default_mission,
)
from activity_coach.application.extraction import StructuredExtractionClient
from activity_coach.application.pattern_matcher import FastPatternMatcher
from activity_coach.application.suggestions import suggest_rephrasings
from activity_coach.core.config import ActivityCoachConfig, get_coach_config

logger = get_logger(__name__)

KEEP_LOGGING_ANALYSIS = PatternAnalysis(
    trends=("Keep logging to see patterns emerge",),
    recommendations=("Consistency is key - keep tracking daily",),
    achievements=("Started your tracking journey!",),
)


def should_save(activity: ParsedActivity, threshold: float) -> bool:
    """Persistence gate: confident enough and not unknown"""
    return activity.confidence > threshold and activity.kind is not ActivityKind.UNKNOWN


def local_pattern_analysis(activities: Sequence[ParsedActivity]) -> PatternAnalysis:
    """Count-based trends used when remote analysis is unavailable"""
    counts = Counter(activity.kind for activity in activities)
    trends: List[str] = []
    recommendations: List[str] = []
    achievements: List[str] = []

    if counts[ActivityKind.WORKOUT] > 5:
        trends.append("You're maintaining a consistent workout routine")
        achievements.append("5+ workouts logged!")
    if counts[ActivityKind.FOOD] > 10:
        trends.append("Great job tracking your nutrition regularly")
        achievements.append("Food tracking champion!")
    if counts[ActivityKind.WEIGHT] > 3:
        trends.append("Regular weight tracking helps see progress")

    if counts[ActivityKind.WATER] < 3:
        recommendations.append("Try logging your water intake daily")
    if counts[ActivityKind.SLEEP] < 3:
        recommendations.append("Track your sleep to optimize recovery")

    if not trends:
        trends.append("You're building good tracking habits")
    if not recommendations:
        recommendations.append("Keep up the great work!")

    return PatternAnalysis(
        trends=trends, recommendations=recommendations, achievements=achievements
    )


def _describe(error: BaseException) -> str:
    message = str(error)
    return message if message else type(error).__name__


class ActivityCoachOrchestrator:
    """
    Hybrid local/remote activity pipeline:
    1. Fast pattern matcher (no remote call when it matches)
    2. Structured extraction client behind a timeout
    3. Coaching client behind a timeout
    4. Confidence-gated save decision

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(
        self,
        extraction_client: Optional[StructuredExtractionClient] = None,
        coaching_client: Optional[CoachingResponseClient] = None,
        matcher: Optional[FastPatternMatcher] = None,
        config: Optional[ActivityCoachConfig] = None,
        fallback_responses: Mapping[ActivityKind, CoachResponse] = DEFAULT_COACH_RESPONSES,
        missions: Sequence[str] = DEFAULT_MISSIONS,
        today: Callable[[], date] = date.today,
    ):
        self.matcher = matcher or FastPatternMatcher()
        self.extraction_client = extraction_client or StructuredExtractionClient(matcher=self.matcher)
        self.coaching_client = coaching_client or CoachingResponseClient()
        self.config = config or get_coach_config()

        missing = [kind.value for kind in ActivityKind if kind not in fallback_responses]
        if missing:
            raise ConfigurationError(
                "Fallback responses must cover every activity kind",
                details={"missing": missing},
            )
        if not missions:
            raise ConfigurationError("At least one default mission is required")
        self.fallback_responses = fallback_responses
        self.missions = tuple(missions)
        self._today = today

    async def with_timeout(self, operation: str, awaitable: Awaitable[Any], timeout: float) -> Any:
        """
        Race a remote call against a timer

        The losing call is cancelled by asyncio.wait_for.

        Raises:
            RemoteTimeoutError: The timer won
        """
        with track_remote_call(operation):
            try:
                return await asyncio.wait_for(awaitable, timeout)
            except asyncio.TimeoutError:
                raise RemoteTimeoutError(operation, timeout) from None

    # ------------------------------------------------------------------
    # Core pipeline
    # ------------------------------------------------------------------

    async def process_input(
        self, text: str, context: Optional[UserContext] = None
    ) -> ProcessedResult:
        """
        Parse one input and coach on it

        Returns:
            ProcessedResult, with `error` set when a remote step failed
        """
        context = context or UserContext()
        timeout = self.config.request_timeout

        activity = self.matcher.match(text)
        path = "fast"
        if activity is None:
            path = "remote"
            try:
                activity = await self.with_timeout(
                    "extraction", self.extraction_client.extract(text), timeout
                )
            except Exception as e:
                logger.warning(f"Extraction failed for {preview(text)!r}: {_describe(e)}")
                return self._fallback_result(text, _describe(e))

            if activity.kind is ActivityKind.UNKNOWN and activity.error_detail:
                logger.warning(f"Extraction degraded for {preview(text)!r}: {activity.error_detail}")
                return self._fallback_result(text, activity.error_detail)

        error = None
        try:
            coach_response = await self.with_timeout(
                "coaching", self.coaching_client.respond(text, activity, context), timeout
            )
        except Exception as e:
            error = _describe(e)
            logger.warning(f"Coaching failed, using canned {activity.kind.value} response: {error}")
            coach_response = self.fallback_responses[activity.kind]

        save = should_save(activity, self.config.save_confidence_threshold)
        record_input_processed(path)
        record_save_decision(save)
        logger.info(
            f"Processed input via {path} path: kind={activity.kind.value}, "
            f"confidence={activity.confidence}, should_save={save}"
        )
        return ProcessedResult(
            parsed_activity=activity,
            coach_response=coach_response,
            should_save=save,
            error=error,
        )

    def _fallback_result(self, text: str, reason: str) -> ProcessedResult:
        record_input_processed("fallback")
        record_save_decision(False)
        return ProcessedResult(
            parsed_activity=ParsedActivity.unknown(text, error_detail=reason),
            coach_response=self.fallback_responses[ActivityKind.UNKNOWN],
            should_save=False,
            error=reason,
        )

    async def process_batch(
        self, texts: Sequence[str], context: Optional[UserContext] = None
    ) -> List[ProcessedResult]:
        """
        Process inputs in fixed-size chunks

        Items within a chunk run concurrently; the next chunk starts only
        after the current one settles. Output order matches input order.
        """
        results: List[ProcessedResult] = []
        size = self.config.batch_size
        for start in range(0, len(texts), size):
            chunk = texts[start : start + size]
            results.extend(
                await asyncio.gather(*(self.process_input(text, context) for text in chunk))
            )
        return results

    def quick_parse(self, text: str) -> List[ParsedActivity]:
        """Local-only parse of a compound entry into every recognised activity"""
        return self.matcher.match_segments(text)

    # ------------------------------------------------------------------
    # Auxiliary operations
    # ------------------------------------------------------------------

    async def generate_daily_mission(self, context: Optional[UserContext] = None) -> str:
        try:
            return await self.with_timeout(
                "mission",
                self.coaching_client.generate_daily_mission(context),
                self.config.mission_timeout,
            )
        except Exception as e:
            logger.warning(f"Mission generation failed, using default: {_describe(e)}")
            return select_default_mission(context, self.missions, self._today())

    async def analyze_user_patterns(self, activities: Sequence[ParsedActivity]) -> PatternAnalysis:
        """
        Trends, recommendations and achievements over an activity history

        `activities` is oldest first. Short histories get fixed guidance with
        no remote call; remote failures fall back to local counting.
        """
        if len(activities) < self.config.min_history_for_analysis:
            return KEEP_LOGGING_ANALYSIS

        window = list(activities)[-self.config.analysis_window :]
        try:
            return await self.with_timeout(
                "analysis",
                self.coaching_client.analyze_patterns(window),
                self.config.analysis_timeout,
            )
        except Exception as e:
            logger.warning(f"Pattern analysis failed, using local heuristic: {_describe(e)}")
            return local_pattern_analysis(activities)

    async def validate_connections(self) -> ConnectionStatus:
        """Probe both remote services; for health checks only"""
        errors: List[str] = []
        timeout = self.config.probe_timeout

        extraction_ok = False
        try:
            await self.with_timeout("extraction_probe", self.extraction_client.probe(), timeout)
            extraction_ok = True
        except Exception as e:
            errors.append(f"Extraction connection failed: {_describe(e)}")

        coaching_ok = False
        try:
            await self.with_timeout("coaching_probe", self.coaching_client.probe(), timeout)
            coaching_ok = True
        except Exception as e:
            errors.append(f"Coaching connection failed: {_describe(e)}")

        return ConnectionStatus(extraction_ok=extraction_ok, coaching_ok=coaching_ok, errors=errors)

    def get_suggestions(self, text: str) -> List[str]:
        return suggest_rephrasings(text)
