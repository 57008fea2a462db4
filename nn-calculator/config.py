"""Configuration and logging setup.

Settings are read from ``NNCALC_*`` environment variables (or a
``.env`` file) and fall back to the defaults below.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="NNCALC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Natural Number Calculator"
    log_level: str = "INFO"
    log_json: bool = False

    # Sessions
    max_sessions: int = Field(default=1000, ge=1)
    max_result_digits: int = Field(default=10_000, ge=1)
    default_backing: Literal["digits", "int"] = "digits"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """Route structlog output through a level filter and a renderer."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=False,
    )
