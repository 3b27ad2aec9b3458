# src/sitedash/settings.py
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration, environment-driven with prefix SITEDASH_
    (case-insensitive). Only `api_base_url` is part of the REST contract;
    the rest tune the transport, the notification relay and logging.
    """

    api_base_url: str = Field(
        "http://localhost:3001/api",
        description="Base URL of the project management REST API.",
    )
    request_timeout: float = Field(10.0, gt=0, description="Per-request timeout in seconds.")
    max_retries: int = Field(2, ge=0, description="Connect retries handled by the transport.")
    notification_duration: float = Field(
        6.0,
        gt=0,
        description="Seconds before a visible notification auto-dismisses.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO",
        description="Level of the `sitedash` package logger.",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="SITEDASH_",
    )

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("api_base_url must not be empty")
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
