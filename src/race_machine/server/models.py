"""Pydantic models for the REST server."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ApiWorkflow(BaseModel):
    name: str
    description: str
    initial_state: str


class RunRequest(BaseModel):
    params: dict[str, object] = Field(default_factory=dict)


RunStatus = Literal["queued", "running", "terminal", "stopped", "failed"]


class ApiRun(BaseModel):
    run_id: str
    workflow: str
    status: RunStatus

    created_at: datetime
    updated_at: datetime

    state: str | None = None
    step: str | None = None
    history: list[str] = Field(default_factory=list)
    stop_requested: bool = False

    error: str | None = None
