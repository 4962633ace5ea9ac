"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_CORS_ORIGIN_REGEX = r"^http://(localhost|127\.0\.0\.1)(:\d+)?$"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = _ENVIRONMENT
    log_level: str = "INFO"
    session_store: Literal["supabase", "memory"] = "supabase"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_timeout_seconds: float = 10.0
    pairing_ttl_seconds: int = 600
    pairing_max_code_attempts: int = 20
    cors_allow_origin_regex: str = DEFAULT_CORS_ORIGIN_REGEX
    client_backend_url: str = "http://localhost:8000"
    client_countdown_seconds: int = 30
    client_request_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def require_supabase_credentials(settings: Settings) -> tuple[str, str]:
    """Return the Supabase url and key, failing fast when either is missing."""
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY are required "
            "when SESSION_STORE is 'supabase'"
        )
    return settings.supabase_url, settings.supabase_service_key
