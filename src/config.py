"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./codegen.db"

    # Model providers
    default_provider: str = "openai"  # openai, xai, gemini, huggingface
    default_model: Optional[str] = None
    openai_api_key: str = ""
    xai_api_key: str = ""
    google_api_key: str = ""
    huggingfacehub_api_key: str = ""

    # Model invocation
    llm_temperature: float = 0.2
    llm_max_tokens: int = 4096
    llm_timeout_seconds: float = 120.0
    llm_max_retries: int = 2

    # Workflow runner
    resume_interrupted_workflows: bool = True
    shutdown_grace_seconds: float = 5.0

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Backend Codegen Studio"
    version: str = "0.1.0"
    cors_origins: List[str] = [
        "http://localhost:4200",
        "http://localhost:3000",
        "http://127.0.0.1:4200",
    ]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
