"""Operator configuration loaded from the environment."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .builders.cronjob_builder import DEFAULT_COMMAND_PREFIX, DEFAULT_IMAGE, DEFAULT_SCHEDULE
from .constants import FIELD_MANAGER


class OperatorConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WEBAPP_OPERATOR_",
        case_sensitive=False,
        extra="ignore",
    )

    # CronJob rendering
    schedule: str = DEFAULT_SCHEDULE
    image: str = DEFAULT_IMAGE
    command_prefix: str = DEFAULT_COMMAND_PREFIX

    # kopf execution
    max_workers: int = Field(default=4, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)
    reconcile_timeout: float = Field(default=60.0, gt=0)
    retry_delay: float = Field(default=10.0, ge=0)

    metrics_port: int = Field(default=8080, ge=0)
    log_level: str = "INFO"
    field_manager: str = FIELD_MANAGER

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


@lru_cache(maxsize=1)
def load_config() -> OperatorConfig:
    return OperatorConfig()
