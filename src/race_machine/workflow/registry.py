"""Named workflow definitions.

A definition knows how to build a state graph for one run; the registry is what the
CLI and the server look workflows up in.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from race_machine.engine.context import ProcessingContext
from race_machine.engine.state_machine import StateGraph, StateMachine
from race_machine.engine.watchers import WatcherSet
from race_machine.runtime.config import MachineSettings
from race_machine.workflow.demo import DemoOptions, build_demo

GraphBuilder = Callable[[ProcessingContext, WatcherSet, Mapping[str, object]], StateGraph]


class UnknownWorkflowError(KeyError):
    def __str__(self) -> str:
        return f"Unknown workflow: {self.args[0]!r}"


@dataclass(frozen=True, slots=True)
class WorkflowDefinition:
    name: str
    description: str
    initial_state: str
    build: GraphBuilder

    def create_machine(
        self, context: ProcessingContext, params: Mapping[str, object] | None = None
    ) -> StateMachine:
        """Build a fresh single-run machine wired to ``context``."""

        watchers = WatcherSet()
        graph = self.build(context, watchers, params or {})
        machine = StateMachine(watchers, states=graph, name=context.name)
        context.bind_stop(machine.stop)
        return machine


class WorkflowRegistry:
    def __init__(self) -> None:
        self._definitions: dict[str, WorkflowDefinition] = {}

    def register(self, definition: WorkflowDefinition) -> None:
        if definition.name in self._definitions:
            raise ValueError(f"Workflow already registered: {definition.name!r}")
        self._definitions[definition.name] = definition

    def get(self, name: str) -> WorkflowDefinition:
        try:
            return self._definitions[name]
        except KeyError:
            raise UnknownWorkflowError(name) from None

    def list(self) -> list[WorkflowDefinition]:
        return sorted(self._definitions.values(), key=lambda d: d.name)


def demo_definition(settings: MachineSettings) -> WorkflowDefinition:
    def _build(
        context: ProcessingContext, watchers: WatcherSet, params: Mapping[str, object]
    ) -> StateGraph:
        options = DemoOptions.model_validate(
            {
                "timeout_seconds": settings.timeout_seconds,
                "poll_interval_seconds": settings.poll_interval_seconds,
                "max_attempts": settings.max_attempts,
                **params,
            }
        )
        return build_demo(context, watchers, options)

    return WorkflowDefinition(
        name="demo",
        description="Simulated request that is accepted, rejected or times out",
        initial_state="start",
        build=_build,
    )


def default_registry(settings: MachineSettings) -> WorkflowRegistry:
    registry = WorkflowRegistry()
    registry.register(demo_definition(settings))
    return registry
