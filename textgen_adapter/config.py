"""
Configuration Management Module

Configures adapter parameters via environment variables or .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "Text Generation Adapter"
    DEBUG: bool = False
    # Adapter log level, overrides the DEBUG-derived default
    LOG_LEVEL: Optional[str] = None

    # Backend Config
    # REST API root of the inference backend
    BACKEND_BASE_URL: str = "https://api.cloudflare.com/client/v4"
    # Gateway root, used only when GATEWAY_ID is set
    GATEWAY_BASE_URL: str = "https://gateway.ai.cloudflare.com/v1"
    ACCOUNT_ID: str = ""
    API_TOKEN: Optional[str] = None
    # Route backend calls through a named gateway instead of the REST API
    GATEWAY_ID: Optional[str] = None

    # HTTP Client Config
    # Request timeout (seconds)
    HTTP_TIMEOUT: int = 300

    # Model Config
    DEFAULT_MODEL: str = "@cf/meta/llama-3.3-70b-instruct-fp8-fast"
    # Search index used by the retrieval-augmented chat model
    DEFAULT_SEARCH_INDEX: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application configuration (Singleton)

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
