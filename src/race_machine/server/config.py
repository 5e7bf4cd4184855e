"""Configuration for the run control server."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from race_machine.runtime.config import MachineSettings


class ServerSettings(MachineSettings):
    """Settings for the REST API.

    Inherits the workflow defaults of :class:`MachineSettings`.
    """

    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="RACE_MACHINE_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
