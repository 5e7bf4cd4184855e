"""Background execution of workflow runs on the server's event loop."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Mapping

from race_machine.engine.context import ProcessingContext
from race_machine.engine.state_machine import StateMachine
from race_machine.server.run_store import RunRecord, RunStore
from race_machine.workflow.registry import WorkflowDefinition, WorkflowRegistry

logger = logging.getLogger(__name__)


class RunManager:
    """Start runs as asyncio tasks and route stop requests to their machines."""

    def __init__(self, registry: WorkflowRegistry, store: RunStore) -> None:
        self._registry = registry
        self._store = store
        self._machines: dict[str, StateMachine] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def start(self, workflow: str, params: Mapping[str, object] | None = None) -> str:
        """Create a run and schedule it. Must be called from the running loop."""

        definition = self._registry.get(workflow)
        run_id = uuid.uuid4().hex
        context = ProcessingContext(name=f"{workflow}-{run_id[:8]}")
        machine = definition.create_machine(context, params)

        self._store.create(run_id=run_id, workflow=workflow, params=dict(params or {}))
        self._machines[run_id] = machine
        task = asyncio.create_task(
            self._run(run_id=run_id, definition=definition, machine=machine, context=context),
            name=f"run-{workflow}-{run_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return run_id

    def stop(self, run_id: str) -> bool:
        """Request a cooperative stop. Returns False when the run is not active."""

        machine = self._machines.get(run_id)
        if machine is None:
            return False
        machine.stop()
        self._store.update(run_id, stop_requested=True)
        return True

    def snapshot(self, run_id: str) -> RunRecord | None:
        """Current record, refreshed from the live machine when the run is active."""

        record = self._store.get(run_id)
        machine = self._machines.get(run_id)
        if record is None or machine is None:
            return record
        return record.model_copy(update={"state": machine.state, "history": list(machine.history)})

    async def _run(
        self,
        *,
        run_id: str,
        definition: WorkflowDefinition,
        machine: StateMachine,
        context: ProcessingContext,
    ) -> None:
        self._store.update(run_id, status="running")
        try:
            final = await machine.start(definition.initial_state)
            self._store.update(
                run_id,
                status=machine.status.value,
                state=final,
                step=context.step,
                history=list(machine.history),
            )
        except Exception as e:
            logger.exception(
                "Workflow run failed", extra={"run_id": run_id, "workflow": definition.name}
            )
            self._store.update(
                run_id,
                status="failed",
                state=machine.state,
                step=context.step,
                history=list(machine.history),
                error=str(e),
            )
        finally:
            self._machines.pop(run_id, None)
