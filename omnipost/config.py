"""
Application configuration using Pydantic Settings.

Centralizes all environment variables and app settings.
Storage backend, credential scheme and the AI provider key all live here.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    All sensitive/configurable values should live here.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars not defined here
    )

    # Application
    app_name: str = "OmniPost API"
    debug: bool = False
    log_level: str = "INFO"

    # Key-value storage (mirrors browser local storage)
    storage_backend: Literal["memory", "file", "mongo"] = "file"
    storage_dir: str = "data"
    storage_key_prefix: str = "omnipost"
    storage_quota_bytes: int = 5 * 1024 * 1024

    # MongoDB - only used when storage_backend == "mongo"
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "omnipost_db"
    mongodb_collection: str = "local_storage"

    # Auth
    password_scheme: Literal["plain", "hashed"] = "plain"
    avatar_base_url: str = "https://api.dicebear.com/7.x/avataaars/svg"

    # Post images are stored inline as data URIs, so keep them small
    max_image_size_mb: int = 2

    # LLM - Groq (free tier; get key at https://console.groq.com)
    groq_api_key: Optional[str] = None
    llm_model: str = "llama-3.1-8b-instant"

    @field_validator("groq_api_key", mode="before")
    @classmethod
    def strip_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not isinstance(v, str):
            return v
        return v.strip() or None


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.
    Using lru_cache avoids re-reading .env on every request.
    """
    return Settings()
