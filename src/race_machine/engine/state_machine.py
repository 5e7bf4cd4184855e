from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping, MutableMapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

from .errors import (
    CollaboratorError,
    EmptyWatcherSetError,
    InvalidTransitionError,
    MachineStateError,
)
from .race import TIMEOUT, RaceResult, Watcher, settle_first
from .watchers import WatcherSet, discard_started

logger = logging.getLogger(__name__)

EntryAction: TypeAlias = Callable[[], Awaitable[None] | None]


async def _no_entry() -> None:
    return None


@dataclass(frozen=True, slots=True)
class StateDescriptor:
    """A state of the graph.

    ``entry`` runs every time the state is entered and is expected to arm the
    watchers for the race that follows. Terminal states are never raced.
    """

    entry: EntryAction = field(default=_no_entry)
    terminal: bool = False

    @staticmethod
    def coerce(value: StateDescriptor | Mapping[str, object]) -> StateDescriptor:
        if isinstance(value, StateDescriptor):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(f"State descriptor must be a mapping, got {type(value).__name__}")
        unknown = set(value) - {"entry", "terminal"}
        if unknown:
            raise ValueError(f"Unknown state descriptor fields: {sorted(unknown)}")
        entry = value.get("entry") or _no_entry
        if not callable(entry):
            raise TypeError("State entry must be callable")
        return StateDescriptor(entry=entry, terminal=bool(value.get("terminal", False)))


StateGraph: TypeAlias = Mapping[str, StateDescriptor | Mapping[str, object]]


class MachineStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    TERMINAL = "terminal"
    STOPPED = "stopped"
    FAILED = "failed"


class StateMachine:
    """Event-race-driven state machine.

    There is no edge table: the next state is named by whichever armed watcher
    settles first. The graph only constrains which names are legal targets.

    Loop checkpoints, in order, for every entered state:

    1. stop requested before entering: the loop ends, the state is not entered;
    2. after the entry action, a terminal state ends the loop;
    3. otherwise the armed watchers are raced once;
    4. stop requested during the entry action or the race: the loop ends at the
       current state and the winner is not transitioned to.

    A machine runs once; build a new one for every run.
    """

    def __init__(
        self,
        watchers: MutableMapping[str, Watcher] | None = None,
        *,
        states: StateGraph | None = None,
        name: str = "machine",
    ) -> None:
        self.name = name
        self.watchers: MutableMapping[str, Watcher] = (
            watchers if watchers is not None else WatcherSet()
        )
        self._states: dict[str, StateDescriptor] = {}
        self._state: str | None = None
        self._status = MachineStatus.IDLE
        self._stop_requested = False
        self.history: list[str] = []
        self.last_result: RaceResult | None = None
        if states is not None:
            self.set_states(states)

    @property
    def state(self) -> str | None:
        return self._state

    @property
    def status(self) -> MachineStatus:
        return self._status

    @property
    def stopped(self) -> bool:
        return self._stop_requested

    @property
    def state_names(self) -> list[str]:
        return list(self._states)

    def set_states(self, graph: StateGraph) -> None:
        self._states = {name: StateDescriptor.coerce(d) for name, d in graph.items()}

    def stop(self) -> None:
        """Request a cooperative stop; in-flight work is never interrupted."""

        if not self._stop_requested:
            logger.info("Stop requested", extra={"machine": self.name, "state": self._state})
        self._stop_requested = True

    async def start(self, initial: str) -> str | None:
        """Run the loop from ``initial`` and return the state it ended in.

        Returns ``None`` when a stop was requested before ``initial`` was entered.
        """

        if self._status is not MachineStatus.IDLE:
            raise MachineStateError(
                f"Machine {self.name!r} already ran (status={self._status.value}); "
                "build a new machine for every run"
            )
        if not self._states:
            raise MachineStateError(f"Machine {self.name!r} has no states; call set_states first")
        if initial not in self._states:
            self._status = MachineStatus.FAILED
            raise InvalidTransitionError(initial, self._states)

        self._status = MachineStatus.RUNNING
        target: str | None = initial
        try:
            while target is not None:
                if self._stop_requested:
                    self._status = MachineStatus.STOPPED
                    break
                target = await self._change_state(target)
        except BaseException:
            self._status = MachineStatus.FAILED
            raise

        logger.info(
            "Machine finished",
            extra={"machine": self.name, "state": self._state, "status": self._status.value},
        )
        return self._state

    async def _change_state(self, name: str) -> str | None:
        """Enter ``name`` and return the next target, or ``None`` when the loop ends."""

        descriptor = self._states.get(name)
        if descriptor is None:
            raise InvalidTransitionError(name, self._states)

        previous = self._state
        self._state = name
        self.history.append(name)
        logger.debug(
            "State entered", extra={"machine": self.name, "from_state": previous, "state": name}
        )

        try:
            outcome = descriptor.entry()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            raise CollaboratorError(name) from e

        if descriptor.terminal:
            self._status = MachineStatus.TERMINAL
            return None

        result = await self._race(name)
        self.last_result = result

        if self._stop_requested:
            self._status = MachineStatus.STOPPED
            logger.info(
                "Stopped after race",
                extra={"machine": self.name, "state": name, "winner": result.winner_name},
            )
            return None

        return result.target

    async def _race(self, state: str) -> RaceResult:
        if not self.watchers:
            raise EmptyWatcherSetError(f"State {state!r} armed no watchers")

        winner, future = await settle_first(self.watchers)
        discard_started(self.watchers)
        try:
            value = future.result()
        except Exception as e:
            raise CollaboratorError(state, watcher=winner) from e

        result = RaceResult(winner_name=None if value is TIMEOUT else winner, value=value)
        logger.debug(
            "Race settled",
            extra={"machine": self.name, "state": state, "winner": result.target},
        )
        return result
