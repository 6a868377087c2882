from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.utils.errors import ActivityCoachError
from shared.utils.logger import get_logger
from shared.utils.logging_config import setup_logging

from activity_coach import __version__
from activity_coach.api.router import health_router, router as coach_router
from activity_coach.api.schemas import ErrorResponse
from activity_coach.core.config import get_coach_config
from activity_coach.dependencies.container import lifespan

config = get_coach_config()
setup_logging(config.service_name, log_level=config.log_level, json_logs=config.json_logs)
logger = get_logger(__name__)

app = FastAPI(
    title="Activity Coach",
    description="Parses free-text fitness logs into typed activities and replies with coaching.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ActivityCoachError)
async def activity_coach_exception_handler(request: Request, exc: ActivityCoachError):
    """Map service exceptions to their status codes"""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__, message=exc.message, details=exc.details
        ).model_dump(),
    )


app.include_router(health_router)
app.include_router(coach_router)


@app.get("/")
async def root() -> dict:
    return {
        "service": config.service_name,
        "status": "operational",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.service_port)
