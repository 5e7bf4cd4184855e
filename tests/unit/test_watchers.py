"""Unit tests for watcher helpers."""

from __future__ import annotations

import asyncio

import pytest

from race_machine.engine.race import TIMEOUT
from race_machine.engine.watchers import (
    WatcherSet,
    deadline,
    discard_started,
    poll_until,
    resolved,
    wait_for,
)


@pytest.mark.asyncio
async def test_poll_until_returns_condition_result() -> None:
    values = iter([None, 0, "found"])

    assert await poll_until(lambda: next(values), timeout=1.0, interval=0.001) == "found"


@pytest.mark.asyncio
async def test_poll_until_substitutes_truthy_value() -> None:
    result = await poll_until(lambda: "element", truthy_value="success")

    assert result == "success"


@pytest.mark.asyncio
async def test_poll_until_gives_up_with_falsy_value() -> None:
    result = await poll_until(lambda: False, timeout=0.01, interval=0.002, falsy_value=TIMEOUT)

    assert result is TIMEOUT


@pytest.mark.asyncio
async def test_poll_until_without_timeout_keeps_polling() -> None:
    state = {"ready": False}
    asyncio.get_running_loop().call_later(0.03, state.update, {"ready": True})

    assert await poll_until(lambda: state["ready"], timeout=None, interval=0.002) is True


@pytest.mark.asyncio
async def test_wait_for_builds_a_fresh_operation_per_call() -> None:
    calls: list[int] = []

    def condition() -> bool:
        calls.append(1)
        return True

    factory = wait_for(condition, truthy_value="ok")

    assert await factory() == "ok"
    assert await factory() == "ok"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_deadline_and_resolved() -> None:
    assert await deadline(0)() is TIMEOUT
    assert await resolved("v")() == "v"
    assert await resolved()() is None


def test_arm_replaces_previous_watchers() -> None:
    watchers = WatcherSet(old=resolved())

    watchers.arm({"success": resolved()}, timeout=deadline(1))

    assert sorted(watchers) == ["success", "timeout"]


@pytest.mark.asyncio
async def test_discard_started_keeps_only_factories() -> None:
    task = asyncio.ensure_future(asyncio.sleep(0))
    watchers = {"task": task, "factory": resolved()}

    discard_started(watchers)

    assert list(watchers) == ["factory"]
    await task
