"""FastAPI app factory.

Endpoints are thin wrappers over the workflow registry and the run manager.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import cast

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from race_machine import __version__
from race_machine.server.config import ServerSettings
from race_machine.server.models import ApiRun, ApiWorkflow, RunRequest, RunStatus
from race_machine.server.run_store import RunRecord, RunStore
from race_machine.server.runner import RunManager
from race_machine.workflow.registry import (
    UnknownWorkflowError,
    WorkflowRegistry,
    default_registry,
)

logger = logging.getLogger(__name__)


def _iso_to_dt(value: str) -> datetime:
    # Best-effort parsing; the store always writes ISO format.
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(tz=UTC)


def _to_api_run(record: RunRecord) -> ApiRun:
    return ApiRun(
        run_id=record.run_id,
        workflow=record.workflow,
        status=cast(RunStatus, record.status),
        created_at=_iso_to_dt(record.created_at),
        updated_at=_iso_to_dt(record.updated_at),
        state=record.state,
        step=record.step,
        history=record.history,
        stop_requested=record.stop_requested,
        error=record.error,
    )


def create_app(registry: WorkflowRegistry | None = None) -> FastAPI:
    settings = ServerSettings()
    registry = registry if registry is not None else default_registry(settings)

    app = FastAPI(
        title="race-machine",
        version=__version__,
        description="Start, inspect and stop race-driven workflow runs.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    run_store = RunStore()
    runs = RunManager(registry, run_store)
    app.state.runs = runs

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/v1/workflows", response_model=list[ApiWorkflow])
    def list_workflows() -> list[ApiWorkflow]:
        return [
            ApiWorkflow(name=d.name, description=d.description, initial_state=d.initial_state)
            for d in registry.list()
        ]

    @app.post("/api/v1/workflows/{name}/runs", response_model=ApiRun, status_code=202)
    async def start_run(name: str, req: RunRequest | None = None) -> ApiRun:
        params = req.params if req is not None else {}
        try:
            run_id = runs.start(name, params)
        except UnknownWorkflowError as e:
            raise HTTPException(status_code=404, detail=str(e)) from None
        except ValidationError as e:
            raise HTTPException(
                status_code=422, detail=e.errors(include_url=False, include_context=False)
            ) from None
        logger.info("Run started", extra={"run_id": run_id, "workflow": name})
        record = runs.snapshot(run_id)
        if record is None:
            raise HTTPException(status_code=500, detail="Run creation failed")
        return _to_api_run(record)

    @app.get("/api/v1/runs", response_model=list[ApiRun])
    async def list_runs() -> list[ApiRun]:
        return [_to_api_run(record) for record in run_store.list()]

    @app.get("/api/v1/runs/{run_id}", response_model=ApiRun)
    async def get_run(run_id: str) -> ApiRun:
        record = runs.snapshot(run_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return _to_api_run(record)

    @app.post("/api/v1/runs/{run_id}/stop", response_model=ApiRun)
    async def stop_run(run_id: str) -> ApiRun:
        if run_store.get(run_id) is None:
            raise HTTPException(status_code=404, detail="Run not found")
        if not runs.stop(run_id):
            raise HTTPException(status_code=409, detail="Run is not active")
        record = runs.snapshot(run_id)
        assert record is not None
        return _to_api_run(record)

    return app
