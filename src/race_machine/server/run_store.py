"""In-memory tracking of workflow runs started by the server.

Runs are not persisted: a restart forgets them, as it forgets the machines.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel, Field


class RunRecord(BaseModel):
    run_id: str
    workflow: str
    status: str
    created_at: str
    updated_at: str

    params: dict[str, object] = Field(default_factory=dict)
    state: str | None = None
    step: str | None = None
    history: list[str] = Field(default_factory=list)
    stop_requested: bool = False
    error: str | None = None


def _utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


@dataclass
class RunStore:
    _runs: dict[str, RunRecord] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def list(self) -> list[RunRecord]:
        with self._lock:
            return sorted(self._runs.values(), key=lambda r: r.created_at)

    def get(self, run_id: str) -> RunRecord | None:
        with self._lock:
            return self._runs.get(run_id)

    def create(self, *, run_id: str, workflow: str, params: dict[str, object]) -> RunRecord:
        with self._lock:
            if run_id in self._runs:
                raise ValueError(f"Run already exists: {run_id}")
            now = _utc_iso_now()
            record = RunRecord(
                run_id=run_id,
                workflow=workflow,
                status="queued",
                created_at=now,
                updated_at=now,
                params=params,
            )
            self._runs[run_id] = record
            return record

    def update(self, run_id: str, **updates: object) -> RunRecord:
        with self._lock:
            current = self._runs.get(run_id)
            if current is None:
                raise KeyError(run_id)
            merged = current.model_copy(update={"updated_at": _utc_iso_now(), **updates})
            self._runs[run_id] = merged
            return merged
