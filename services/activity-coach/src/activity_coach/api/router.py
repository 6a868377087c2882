"""
Activity Coach - API Endpoints
Thin FastAPI adapter over the orchestrator.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from shared.utils.errors import ValidationError
from shared.utils.logger import get_logger

from activity_coach import __version__
from activity_coach.application.orchestrator import ActivityCoachOrchestrator
from activity_coach.core.config import get_coach_config
from activity_coach.dependencies.container import get_orchestrator

from .schemas import (
    BatchRequest,
    BatchResponse,
    ConnectionStatus,
    HealthCheckResponse,
    MissionRequest,
    MissionResponse,
    PatternAnalysis,
    PatternsRequest,
    ProcessedResult,
    ProcessRequest,
    QuickParseRequest,
    QuickParseResponse,
    SuggestionsResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/coach", tags=["activity-coach"])
health_router = APIRouter(tags=["health"])


def _require_text(text: str, field: str = "text") -> str:
    if not text.strip():
        raise ValidationError(f"{field} must not be blank", details={"field": field})
    return text


# ============================================================================
# PIPELINE
# ============================================================================


@router.post(
    "/process",
    response_model=ProcessedResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Parse one activity log and coach on it",
)
async def process_input(
    request: ProcessRequest,
    orchestrator: ActivityCoachOrchestrator = Depends(get_orchestrator),
) -> ProcessedResult:
    """
    Remote failures are reported in the `error` field; the response is
    always a complete result.
    """
    text = _require_text(request.text)
    return await orchestrator.process_input(text, request.context)


@router.post("/batch", response_model=BatchResponse, response_model_exclude_none=True)
async def process_batch(
    request: BatchRequest,
    orchestrator: ActivityCoachOrchestrator = Depends(get_orchestrator),
) -> BatchResponse:
    texts: List[str] = [_require_text(text, "texts") for text in request.texts]
    logger.info(f"API /coach/batch - {len(texts)} inputs")
    results = await orchestrator.process_batch(texts, request.context)
    return BatchResponse(results=results)


@router.post("/quick-parse", response_model=QuickParseResponse, response_model_exclude_none=True)
async def quick_parse(
    request: QuickParseRequest,
    orchestrator: ActivityCoachOrchestrator = Depends(get_orchestrator),
) -> QuickParseResponse:
    """Local-only parse; makes no remote calls"""
    return QuickParseResponse(activities=orchestrator.quick_parse(_require_text(request.text)))


# ============================================================================
# AUXILIARY
# ============================================================================


@router.post("/mission", response_model=MissionResponse)
async def daily_mission(
    request: MissionRequest,
    orchestrator: ActivityCoachOrchestrator = Depends(get_orchestrator),
) -> MissionResponse:
    mission = await orchestrator.generate_daily_mission(request.context)
    return MissionResponse(mission=mission)


@router.post("/patterns", response_model=PatternAnalysis)
async def analyze_patterns(
    request: PatternsRequest,
    orchestrator: ActivityCoachOrchestrator = Depends(get_orchestrator),
) -> PatternAnalysis:
    return await orchestrator.analyze_user_patterns(request.activities)


@router.get("/suggestions", response_model=SuggestionsResponse)
async def suggestions(
    text: str = Query(default="", max_length=2000),
    orchestrator: ActivityCoachOrchestrator = Depends(get_orchestrator),
) -> SuggestionsResponse:
    return SuggestionsResponse(suggestions=orchestrator.get_suggestions(text))


@router.get("/connections", response_model=ConnectionStatus)
async def connections(
    orchestrator: ActivityCoachOrchestrator = Depends(get_orchestrator),
) -> ConnectionStatus:
    return await orchestrator.validate_connections()


# ============================================================================
# HEALTH
# ============================================================================


@health_router.get("/health", response_model=HealthCheckResponse)
async def health() -> HealthCheckResponse:
    return HealthCheckResponse(
        status="healthy",
        service=get_coach_config().service_name,
        version=__version__,
    )


@health_router.get("/metrics")
async def metrics() -> PlainTextResponse:
    return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
