"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MIN_RATING = 1
MAX_RATING = 5


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    erp_base_url: str = "https://erp.vidyaacademy.ac.in"
    erp_database: str = "liveone"
    feedback_model: str = "vict.feedback.student.batch.feedback"
    erp_lang: str = "en_GB"
    erp_timezone: str = "Asia/Kolkata"
    pending_page_size: int = 80
    request_timeout_seconds: float = 30.0
    strict_group_resolution: bool = False
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_rating(raw: object) -> int:
    """Validate a rating value coming from a client payload."""
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError("Rating must be an integer between 1 and 5.")
    if raw < MIN_RATING or raw > MAX_RATING:
        raise ValueError("Rating must be an integer between 1 and 5.")
    return raw
