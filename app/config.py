"""Configuration management for the URL shortener application.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from app.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    redis_url = settings.REDIS_URL

**Step 3 — Access values**::
    print(f"Links hash: {settings.LINKS_KEY}")
    print(f"Code length: {settings.SHORT_CODE_LENGTH}")

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- An optional ``.env`` file is read from the working directory.
- LINK_STORE_BACKEND selects ``redis`` (production) or ``memory`` (local runs).

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "url-shortener"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8080"
    LOG_LEVEL: str = "INFO"

    # Link store
    LINK_STORE_BACKEND: Literal["redis", "memory"] = "redis"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    LINKS_KEY: str = "url_shortener:links"
    REDIS_COMMAND_TIMEOUT_SECONDS: float = Field(2.0, gt=0)

    # Short code generation
    SHORT_CODE_LENGTH: int = Field(8, ge=1)
    CODE_GENERATION_ATTEMPTS: int = Field(5, ge=1)

    # Admin basic auth
    BASIC_AUTH_USERNAME: str = "admin"
    BASIC_AUTH_PASSWORD: str = "admin"

    # 301 matches the legacy service; 307 keeps the method on redirect
    REDIRECT_STATUS_CODE: int = Field(301, ge=300, le=399)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
