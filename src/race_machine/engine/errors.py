"""Error kinds raised by the engine.

Programming errors (bad graph, bad watcher names, misuse of a machine) and runtime
failures of collaborators are kept apart so callers can tell them apart.
"""

from __future__ import annotations

from collections.abc import Iterable


class WorkflowError(Exception):
    """Base class for everything the engine raises on its own."""


class InvalidTransitionError(WorkflowError, ValueError):
    """Raised when a transition targets a state that is not in the graph."""

    def __init__(self, target: str, valid_names: Iterable[str]) -> None:
        self.target = target
        self.valid_names = tuple(valid_names)
        super().__init__(f"No state {target!r} in states [{', '.join(self.valid_names)}]")


class EmptyWatcherSetError(WorkflowError, ValueError):
    """Raised when a race is requested but no watchers are armed."""


class MachineStateError(WorkflowError, RuntimeError):
    """Raised when a machine is used outside its single-run lifecycle."""


class CollaboratorError(WorkflowError):
    """An entry action or a watcher failed.

    The original exception is chained as ``__cause__``. ``watcher`` is ``None`` when
    the failure came from the entry action of ``state``.
    """

    def __init__(self, state: str, watcher: str | None = None) -> None:
        self.state = state
        self.watcher = watcher
        if watcher is None:
            message = f"Entry action of state {state!r} failed"
        else:
            message = f"Watcher {watcher!r} failed while racing in state {state!r}"
        super().__init__(message)


class StepFailedError(Exception):
    """Expected business failure raised by a collaborator step.

    Step helpers catch this and record it on the context instead of aborting the run.
    """
