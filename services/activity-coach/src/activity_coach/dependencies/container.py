from contextlib import asynccontextmanager
from typing import Optional

from shared.gemini.client import ResilientGeminiClient
from shared.utils.logger import get_logger

from activity_coach.application.coaching import CoachingResponseClient
from activity_coach.application.extraction import StructuredExtractionClient
from activity_coach.application.orchestrator import ActivityCoachOrchestrator
from activity_coach.application.pattern_matcher import FastPatternMatcher
from activity_coach.core.config import get_coach_config

logger = get_logger(__name__)

_orchestrator: Optional[ActivityCoachOrchestrator] = None


def build_orchestrator() -> ActivityCoachOrchestrator:
    config = get_coach_config()
    gemini_client = ResilientGeminiClient()
    matcher = FastPatternMatcher()
    return ActivityCoachOrchestrator(
        extraction_client=StructuredExtractionClient(gemini_client, matcher),
        coaching_client=CoachingResponseClient(gemini_client),
        matcher=matcher,
        config=config,
    )


def get_orchestrator() -> ActivityCoachOrchestrator:
    """FastAPI dependency; one shared orchestrator per process"""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = build_orchestrator()
    return _orchestrator


@asynccontextmanager
async def lifespan(app):
    config = get_coach_config()
    logger.info("Activity Coach starting up")
    get_orchestrator()
    logger.info(
        "Activity Coach config loaded",
        extra={
            "service_name": config.service_name,
            "service_port": config.service_port,
            "request_timeout_ms": config.request_timeout_ms,
            "batch_size": config.batch_size,
            "save_confidence_threshold": config.save_confidence_threshold,
        },
    )
    yield
    logger.info("Activity Coach shutting down")
