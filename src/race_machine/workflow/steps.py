"""Reusable entry actions for request/confirmation style workflows.

These are collaborators, not engine code: they record progress on the
:class:`ProcessingContext`, log, and turn expected failures into recorded steps
instead of exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from race_machine.engine.context import ProcessingContext
from race_machine.engine.errors import StepFailedError

logger = logging.getLogger(__name__)

Notifier = Callable[[str], Awaitable[None] | None]


def finish(context: ProcessingContext, step: str, info: str = "") -> Callable[[], Awaitable[None]]:
    """Entry action for a terminal state: record the outcome.

    When a collaborator already recorded ``step`` (e.g. a failed reopen recording
    ``error``), its details are kept.
    """

    async def _finish() -> None:
        if context.step != step:
            context.record(step, info)
        logger.info(
            "Workflow finished",
            extra={"machine": context.name, "step": step, "attempts": context.attempts},
        )

    return _finish


async def reopen(context: ProcessingContext, open_action: Callable[[], Awaitable[None]]) -> bool:
    """Run ``open_action`` again after a timeout or a rejected attempt.

    Records ``reopen`` before the attempt and ``reopened`` or ``error`` after it.
    Only :class:`StepFailedError` is treated as an expected failure; anything else
    propagates.
    """

    context.record("reopen")
    try:
        await open_action()
    except StepFailedError as e:
        logger.warning("Reopen failed", extra={"machine": context.name, "reason": str(e)})
        context.record("error", str(e))
        return False
    logger.info("Reopened", extra={"machine": context.name})
    context.record("reopened")
    return True


def error_message(context: ProcessingContext, message: str) -> str:
    lines = [
        f"{context.name} failed to process the request:",
        message,
        f"Last step: {context.step}",
        f"Attempts: {context.attempts}",
    ]
    if context.additional_info:
        lines.append(f"Details: {context.additional_info}")
    return "\n".join(lines)


async def notify(notifier: Notifier, context: ProcessingContext, message: str) -> None:
    """Send a formatted failure notification through ``notifier``."""

    outcome = notifier(error_message(context, message))
    if outcome is not None:
        await outcome
