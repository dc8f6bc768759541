from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Dev Assistant"
    app_env: str = "development"

    # Provider HTTP clients
    http_timeout_seconds: float = 120.0
    gemini_api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Fallback model when no model is marked active in the registry
    default_model_name: str = "gpt-4o"
    default_base_url: str = "https://api.openai.com/v1"
    default_api_key: str = ""

    # Fallback model for context compression
    compression_model_name: str = "gemini-3.1-pro-preview"
    compression_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_http: str = "WARNING"          # httpx / httpcore — outbound HTTP
    log_level_providers: str = "INFO"        # Gemini / OpenAI-compatible clients
    log_level_chat: str = "INFO"             # Orchestrator, compressor, conversations

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
