"""
Activity Coach Shared Config
Environment configuration management using Pydantic
"""

from functools import lru_cache
from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    json_logs: bool = True
    service_name: str = "activity-coach"
    service_port: int = 8000

    # Gemini API Configuration
    gemini_api_key: Optional[str] = None
    gemini_default_model: str = "gemini-2.5-flash"
    gemini_extraction_model: str = "gemini-2.0-flash-lite"
    gemini_coaching_model: str = "gemini-2.5-flash"
    gemini_max_retries: int = 1

    # Pipeline tuning
    coach_request_timeout_ms: int = 5000
    coach_batch_size: int = 5
    coach_save_confidence_threshold: float = 0.6


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
