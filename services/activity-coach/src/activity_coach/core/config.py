import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from shared.utils.config import get_settings
from shared.utils.errors import ConfigurationError


@dataclass(frozen=True)
class ActivityCoachConfig:
    service_name: str = "activity-coach"
    service_port: int = 8000
    log_level: str = "INFO"
    json_logs: bool = True
    app_env: str = "development"
    debug: bool = False
    # --- pipeline ---
    request_timeout_ms: int = 5000
    mission_timeout_ms: int = 5000
    analysis_timeout_ms: int = 10000
    probe_timeout_ms: int = 5000
    batch_size: int = 5
    save_confidence_threshold: float = 0.6
    min_history_for_analysis: int = 5
    analysis_window: int = 20

    def __post_init__(self) -> None:
        for name in (
            "request_timeout_ms",
            "mission_timeout_ms",
            "analysis_timeout_ms",
            "probe_timeout_ms",
        ):
            if getattr(self, name) <= 0:
                raise ConfigurationError(
                    f"{name} must be positive", details={name: getattr(self, name)}
                )
        if self.batch_size < 1:
            raise ConfigurationError(
                "batch_size must be at least 1", details={"batch_size": self.batch_size}
            )
        if not 0.0 <= self.save_confidence_threshold <= 1.0:
            raise ConfigurationError(
                "save_confidence_threshold must be within [0, 1]",
                details={"save_confidence_threshold": self.save_confidence_threshold},
            )
        if self.min_history_for_analysis < 0 or self.analysis_window < 1:
            raise ConfigurationError("analysis history settings are out of range")

    @property
    def request_timeout(self) -> float:
        return self.request_timeout_ms / 1000

    @property
    def mission_timeout(self) -> float:
        return self.mission_timeout_ms / 1000

    @property
    def analysis_timeout(self) -> float:
        return self.analysis_timeout_ms / 1000

    @property
    def probe_timeout(self) -> float:
        return self.probe_timeout_ms / 1000


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_number(name: str, default: str, cast=int):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} is not a valid number", details={name: raw}) from None


def load_coach_config() -> ActivityCoachConfig:
    """Build the service config from the environment, uncached"""
    settings = get_settings()
    request_timeout_ms = _parse_number(
        "COACH_REQUEST_TIMEOUT_MS", str(settings.coach_request_timeout_ms)
    )
    return ActivityCoachConfig(
        service_name=os.getenv("SERVICE_NAME", settings.service_name),
        service_port=_parse_number("PORT", str(settings.service_port)),
        log_level=os.getenv("LOG_LEVEL", settings.log_level),
        json_logs=_parse_bool(os.getenv("JSON_LOGS"), settings.json_logs),
        app_env=os.getenv("APP_ENV", settings.app_env),
        debug=_parse_bool(os.getenv("DEBUG"), settings.debug),
        request_timeout_ms=request_timeout_ms,
        mission_timeout_ms=_parse_number(
            "COACH_MISSION_TIMEOUT_MS", str(request_timeout_ms)
        ),
        # Analysis gets twice the request budget unless set explicitly
        analysis_timeout_ms=_parse_number(
            "COACH_ANALYSIS_TIMEOUT_MS", str(request_timeout_ms * 2)
        ),
        probe_timeout_ms=_parse_number(
            "COACH_PROBE_TIMEOUT_MS", str(request_timeout_ms)
        ),
        batch_size=_parse_number("COACH_BATCH_SIZE", str(settings.coach_batch_size)),
        save_confidence_threshold=_parse_number(
            "COACH_SAVE_CONFIDENCE_THRESHOLD",
            str(settings.coach_save_confidence_threshold),
            cast=float,
        ),
        min_history_for_analysis=_parse_number("COACH_MIN_HISTORY_FOR_ANALYSIS", "5"),
        analysis_window=_parse_number("COACH_ANALYSIS_WINDOW", "20"),
    )


@lru_cache()
def get_coach_config() -> ActivityCoachConfig:
    return load_coach_config()
