"""Explicit per-run context shared by entry actions and watchers.

Ownership: the caller that builds the machine owns the context and passes it by
reference into its entry actions and watcher factories. The engine never reads or
writes it.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import BaseModel, Field, PrivateAttr


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class ProcessingContext(BaseModel):
    """Mutable data bag for one workflow run."""

    name: str = Field(default="workflow", description="Human readable workflow name")
    step: str = Field(default="start", description="Last step recorded by a collaborator")
    additional_info: str = Field(default="", description="Free-form detail for the last step")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Per-state deadline budget")
    started_at: datetime = Field(default_factory=_utc_now)
    disabled: bool = Field(default=False, description="Set when the target refuses new work")
    attempts: int = Field(default=0, ge=0)
    data: dict[str, object] = Field(default_factory=dict)

    _stop: Callable[[], None] | None = PrivateAttr(default=None)

    def bind_stop(self, stop: Callable[[], None]) -> None:
        """Attach the stop hook of the machine running this context."""

        self._stop = stop

    def request_stop(self) -> bool:
        """Ask the bound machine to stop. Returns False when nothing is bound."""

        if self._stop is None:
            return False
        self._stop()
        return True

    def record(self, step: str, info: str = "") -> None:
        self.step = step
        self.additional_info = info

    def elapsed_seconds(self) -> float:
        return (_utc_now() - self.started_at).total_seconds()
