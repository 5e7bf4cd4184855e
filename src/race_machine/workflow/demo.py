"""A simulated request-acceptance workflow.

The remote side is a :class:`SimulatedRequest` that accepts (or rejects) some time
after each submission. Graph::

    start ──success──▶ success (terminal)
      │  ──error────▶ error   (terminal)
      └──timeout──▶ timeout ──start──▶ start      (reopened, attempts left)
                            ──error──▶ error      (reopen failed)
                            ──expired─▶ expired   (attempt budget spent)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, Field

from race_machine.engine.context import ProcessingContext
from race_machine.engine.errors import StepFailedError
from race_machine.engine.race import TIMEOUT
from race_machine.engine.state_machine import StateDescriptor
from race_machine.engine.watchers import WatcherSet, deadline, resolved, wait_for
from race_machine.workflow.steps import finish, reopen

logger = logging.getLogger(__name__)


class DemoOptions(BaseModel):
    accept_after_seconds: float | None = Field(
        default=0.1, ge=0, description="Delay after submission before the request is accepted"
    )
    reject_after_seconds: float | None = Field(
        default=None, ge=0, description="Delay after submission before the request is rejected"
    )
    reopen_fails: bool = Field(default=False, description="Make every reopen attempt fail")
    timeout_seconds: float = Field(default=1.0, gt=0)
    poll_interval_seconds: float = Field(default=0.01, gt=0)
    max_attempts: int = Field(default=2, ge=1)


class SimulatedRequest:
    """Remote side of the demo workflow."""

    def __init__(self, options: DemoOptions, clock: Callable[[], float] = time.monotonic) -> None:
        self._options = options
        self._clock = clock
        self._submitted_at: float | None = None
        self.submissions = 0
        self.reopens = 0

    def _elapsed(self) -> float | None:
        if self._submitted_at is None:
            return None
        return self._clock() - self._submitted_at

    async def submit(self) -> None:
        self.submissions += 1
        self._submitted_at = self._clock()

    async def reopen(self) -> None:
        self.reopens += 1
        if self._options.reopen_fails:
            raise StepFailedError("request could not be reopened")
        self._submitted_at = None

    def accepted(self) -> bool:
        elapsed = self._elapsed()
        delay = self._options.accept_after_seconds
        return elapsed is not None and delay is not None and elapsed >= delay

    def rejected(self) -> bool:
        elapsed = self._elapsed()
        delay = self._options.reject_after_seconds
        return elapsed is not None and delay is not None and elapsed >= delay


def build_demo(
    context: ProcessingContext,
    watchers: WatcherSet,
    options: DemoOptions,
    request: SimulatedRequest | None = None,
) -> dict[str, StateDescriptor]:
    remote = request if request is not None else SimulatedRequest(options)
    context.timeout_seconds = options.timeout_seconds

    def _poll(condition: Callable[[], bool]) -> Callable[[], Awaitable[object]]:
        # Bounded by the same budget as the deadline so losers do not poll forever.
        return wait_for(
            condition,
            timeout=options.timeout_seconds,
            interval=options.poll_interval_seconds,
            falsy_value=TIMEOUT,
        )

    async def enter_start() -> None:
        context.attempts += 1
        context.record("submitting")
        await remote.submit()
        context.record("submitted", f"attempt {context.attempts}")
        watchers.arm(
            success=_poll(remote.accepted),
            error=_poll(remote.rejected),
            timeout=deadline(options.timeout_seconds),
        )

    async def enter_timeout() -> None:
        logger.info(
            "No answer before deadline",
            extra={"machine": context.name, "attempts": context.attempts},
        )
        if context.attempts >= options.max_attempts:
            watchers.arm(expired=resolved())
            return
        if await reopen(context, remote.reopen):
            watchers.arm(start=resolved())
        else:
            watchers.arm(error=resolved())

    return {
        "start": StateDescriptor(entry=enter_start),
        "timeout": StateDescriptor(entry=enter_timeout),
        "success": StateDescriptor(entry=finish(context, "success"), terminal=True),
        "error": StateDescriptor(entry=finish(context, "error", "request rejected"), terminal=True),
        "expired": StateDescriptor(
            entry=finish(context, "timeout", "attempt budget exhausted"), terminal=True
        ),
    }
