"""Unit tests for the bundled request-acceptance workflow."""

from __future__ import annotations

import pytest

from race_machine.engine.context import ProcessingContext
from race_machine.engine.state_machine import MachineStatus, StateMachine
from race_machine.engine.watchers import WatcherSet
from race_machine.workflow.demo import DemoOptions, SimulatedRequest, build_demo


def _machine(
    context: ProcessingContext,
    options: DemoOptions,
    request: SimulatedRequest | None = None,
) -> StateMachine:
    watchers = WatcherSet()
    return StateMachine(watchers, states=build_demo(context, watchers, options, request))


class _AcceptedOnSecondSubmission(SimulatedRequest):
    def accepted(self) -> bool:
        return self.submissions >= 2


@pytest.mark.asyncio
async def test_accepted_request_ends_in_success(
    context: ProcessingContext, fast_demo_options: DemoOptions
) -> None:
    machine = _machine(context, fast_demo_options)

    assert await machine.start("start") == "success"
    assert machine.history == ["start", "success"]
    assert context.step == "success"
    assert context.attempts == 1


@pytest.mark.asyncio
async def test_rejected_request_ends_in_error(
    context: ProcessingContext, fast_demo_options: DemoOptions
) -> None:
    options = fast_demo_options.model_copy(
        update={"accept_after_seconds": None, "reject_after_seconds": 0.01}
    )
    machine = _machine(context, options)

    assert await machine.start("start") == "error"
    assert context.step == "error"
    assert context.additional_info == "request rejected"


@pytest.mark.asyncio
async def test_timeout_reopens_and_retries(
    context: ProcessingContext, fast_demo_options: DemoOptions
) -> None:
    options = fast_demo_options.model_copy(update={"timeout_seconds": 0.03})
    request = _AcceptedOnSecondSubmission(options)
    machine = _machine(context, options, request)

    assert await machine.start("start") == "success"
    assert machine.history == ["start", "timeout", "start", "success"]
    assert request.reopens == 1
    assert context.attempts == 2


@pytest.mark.asyncio
async def test_attempt_budget_exhausted_ends_in_expired(
    context: ProcessingContext, fast_demo_options: DemoOptions
) -> None:
    options = fast_demo_options.model_copy(
        update={"accept_after_seconds": None, "timeout_seconds": 0.02, "max_attempts": 2}
    )
    machine = _machine(context, options)

    assert await machine.start("start") == "expired"
    assert machine.history == ["start", "timeout", "start", "timeout", "expired"]
    assert machine.status is MachineStatus.TERMINAL
    assert context.step == "timeout"
    assert context.additional_info == "attempt budget exhausted"


@pytest.mark.asyncio
async def test_failed_reopen_ends_in_error(
    context: ProcessingContext, fast_demo_options: DemoOptions
) -> None:
    options = fast_demo_options.model_copy(
        update={"accept_after_seconds": None, "timeout_seconds": 0.02, "reopen_fails": True}
    )
    machine = _machine(context, options)

    assert await machine.start("start") == "error"
    assert machine.history == ["start", "timeout", "error"]
    assert context.additional_info == "request could not be reopened"


def test_simulated_request_is_idle_before_submission(fast_demo_options: DemoOptions) -> None:
    request = SimulatedRequest(fast_demo_options, clock=lambda: 100.0)

    assert request.accepted() is False
    assert request.rejected() is False


@pytest.mark.asyncio
async def test_simulated_request_uses_its_clock(fast_demo_options: DemoOptions) -> None:
    now = {"t": 0.0}
    request = SimulatedRequest(fast_demo_options, clock=lambda: now["t"])
    await request.submit()

    assert request.accepted() is False
    now["t"] = 0.5
    assert request.accepted() is True
