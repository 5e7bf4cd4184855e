"""Runtime settings.

Configuration is loaded from environment variables and a local `.env` file (if
present). Tests can override the env file via `MachineSettings(_env_file=path)`.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MachineSettings(BaseSettings):
    """Settings shared by the CLI, the server and the bundled workflows.

    Environment variables:
    - LOG_LEVEL                          (optional)
    - RACE_MACHINE_TIMEOUT_SECONDS       (optional)
    - RACE_MACHINE_POLL_INTERVAL_SECONDS (optional)
    - RACE_MACHINE_MAX_ATTEMPTS          (optional)
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="RACE_MACHINE_TIMEOUT_SECONDS",
        description="Default per-state deadline armed by bundled workflows",
    )

    poll_interval_seconds: float = Field(
        default=0.05,
        gt=0,
        validation_alias="RACE_MACHINE_POLL_INTERVAL_SECONDS",
        description="Interval between condition checks of polling watchers",
    )

    max_attempts: int = Field(
        default=2,
        ge=1,
        le=20,
        validation_alias="RACE_MACHINE_MAX_ATTEMPTS",
        description="How many times a bundled workflow submits before giving up",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )
