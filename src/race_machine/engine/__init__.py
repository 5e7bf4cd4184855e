"""Race-driven state machine engine.

- :func:`race` starts named watchers concurrently and reports the first to settle
- :class:`StateMachine` enters states, runs their entry actions and transitions to
  whichever watcher wins
- :class:`ProcessingContext` is the explicit data bag shared by collaborators
"""

from .context import ProcessingContext
from .errors import (
    CollaboratorError,
    EmptyWatcherSetError,
    InvalidTransitionError,
    MachineStateError,
    StepFailedError,
    WorkflowError,
)
from .race import TIMEOUT, TIMEOUT_STATE, RaceResult, Watcher, race, settle_first
from .state_machine import MachineStatus, StateDescriptor, StateGraph, StateMachine
from .watchers import WatcherSet, deadline, poll_until, resolved, sleep, wait_for

__all__ = [
    "TIMEOUT",
    "TIMEOUT_STATE",
    "CollaboratorError",
    "EmptyWatcherSetError",
    "InvalidTransitionError",
    "MachineStateError",
    "MachineStatus",
    "ProcessingContext",
    "RaceResult",
    "StateDescriptor",
    "StateGraph",
    "StateMachine",
    "StepFailedError",
    "Watcher",
    "WatcherSet",
    "WorkflowError",
    "deadline",
    "poll_until",
    "race",
    "resolved",
    "settle_first",
    "sleep",
    "wait_for",
]
