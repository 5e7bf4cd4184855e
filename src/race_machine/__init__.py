"""race-machine.

A workflow engine that drives multi-step asynchronous processes by racing named
watchers and transitioning to whichever settles first:

- `race_machine.engine`: race scheduler, state machine, watcher helpers
- `race_machine.workflow`: reusable steps, a demo workflow and the registry
- `race_machine.server`: REST API to start, inspect and stop runs
"""

__version__ = "0.1.0"

from race_machine.engine import ProcessingContext, RaceResult, StateMachine, race

__all__ = ["__version__", "ProcessingContext", "RaceResult", "StateMachine", "race"]
