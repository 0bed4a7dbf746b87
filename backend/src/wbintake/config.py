"""Configuration management for the report intake service.

Uses pydantic-settings to load configuration from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> Path | None:
    """Search for .env file in common locations."""
    cwd = Path.cwd()
    check_dir = cwd
    for _ in range(5):
        if (check_dir / ".env").exists():
            return check_dir / ".env"
        parent = check_dir.parent
        if parent == check_dir:
            break
        check_dir = parent

    # backend/src/wbintake/config.py -> project root
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    if (project_root / ".env").exists():
        return project_root / ".env"

    return None


_env_file = _find_env_file()

# Values shipped in .env templates that mean "not configured"
PLACEHOLDER_VALUES = {
    "",
    "your_vapi_api_key_here",
    "your_vapi_assistant_id_here",
    "your_supabase_url_here",
    "your_supabase_service_role_key_here",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_env_file) if _env_file else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================
    # Environment
    # =========================
    environment: Literal["development", "staging", "production"] = "development"

    # =========================
    # API Settings
    # =========================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    cors_origins: str = "http://localhost:3000"

    # =========================
    # Supabase
    # =========================
    supabase_url: str = ""
    supabase_service_role_key: str = Field(default="", repr=False)
    supabase_anon_key: str = Field(default="", repr=False)
    reports_table: str = "reports"
    cases_table: str = "cases"

    # =========================
    # VAPI (voice intake)
    # =========================
    vapi_api_key: str = Field(default="", repr=False)
    vapi_base_url: str = "https://api.vapi.ai"
    vapi_assistant_id: str = ""
    vapi_timeout_seconds: float = 30.0

    # =========================
    # Rate limiting
    # =========================
    redis_url: str = "redis://localhost:6379/0"
    rate_limit_backend: Literal["memory", "redis"] = "memory"
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_manual: int = 5
    rate_limit_map: int = 10
    rate_limit_voice: int = 100
    rate_limit_webhook: int = 100

    # =========================
    # Classification
    # =========================
    priority_policy: Literal["keywords", "category_default", "highest"] = "keywords"

    # =========================
    # Logging
    # =========================
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def supabase_key(self) -> str:
        """Service role key, falling back to the anon key."""
        return self.supabase_service_role_key or self.supabase_anon_key

    @property
    def has_supabase(self) -> bool:
        """Check if Supabase credentials are configured."""
        return (
            self.supabase_url not in PLACEHOLDER_VALUES
            and self.supabase_key not in PLACEHOLDER_VALUES
        )

    @property
    def has_vapi(self) -> bool:
        """Check if VAPI credentials are configured."""
        return self.vapi_api_key not in PLACEHOLDER_VALUES

    @property
    def rate_limits(self) -> dict[str, tuple[int, int]]:
        """Per call site limits as (max_requests, window_seconds)."""
        window = self.rate_limit_window_seconds
        return {
            "manual": (self.rate_limit_manual, window),
            "map": (self.rate_limit_map, window),
            "voice": (self.rate_limit_voice, window),
            "webhook": (self.rate_limit_webhook, window),
        }

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
