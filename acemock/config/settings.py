"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "AceMock"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Gemini (generative language API)
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-flash"
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 60.0

    # Piston code execution
    piston_base_url: str = "https://piston-api.bun.sh/api/v2"
    execution_timeout_seconds: float = 15.0
    sandbox_timeout_seconds: float = 10.0

    # Interview settings
    aptitude_question_count: int = Field(default=5, ge=1, le=20)
    aptitude_seconds_per_question: int = Field(default=90, ge=10)
    hr_question_count: int = Field(default=5, ge=1, le=10)
    hr_seconds_per_question: int = Field(default=120, ge=10)
    technical_min_questions: int = 8
    technical_max_questions: int = 10
    server_side_timers: bool = False  # Browser drives timer ticks by default

    # Langfuse tracing
    langfuse_enabled: bool = False
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
