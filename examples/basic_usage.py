#!/usr/bin/env python3
"""Programmatic state machine example.

This demonstrates driving a workflow with the engine directly:

* build a graph whose entry actions arm named watchers
* race a confirmation watcher against a deadline
* stop cooperatively from outside with `--stop-after`
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from race_machine.engine import (
    ProcessingContext,
    StateDescriptor,
    StateMachine,
    WatcherSet,
    deadline,
    wait_for,
)
from race_machine.runtime.config import MachineSettings
from race_machine.runtime.logging import configure_logging


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Race a confirmation against a deadline.")
    parser.add_argument("--confirm-after", type=float, default=0.5, help="Seconds until confirmed")
    parser.add_argument("--timeout", type=float, default=2.0, help="Deadline in seconds")
    parser.add_argument("--stop-after", type=float, default=None, help="Stop after N seconds")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> str | None:
    loop = asyncio.get_running_loop()
    confirmed_at = loop.time() + args.confirm_after
    context = ProcessingContext(name="example", timeout_seconds=args.timeout)
    watchers = WatcherSet()

    async def enter_start() -> None:
        context.record("waiting")
        watchers.arm(
            confirmed=wait_for(lambda: loop.time() >= confirmed_at, timeout=None),
            timeout=deadline(context.timeout_seconds),
        )

    async def enter_done() -> None:
        context.record(machine.state or "")

    machine = StateMachine(
        watchers,
        states={
            "start": StateDescriptor(entry=enter_start),
            "confirmed": StateDescriptor(entry=enter_done, terminal=True),
            "timeout": StateDescriptor(entry=enter_done, terminal=True),
        },
        name=context.name,
    )
    context.bind_stop(machine.stop)
    if args.stop_after is not None:
        loop.call_later(args.stop_after, context.request_stop)
    return await machine.start("start")


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = MachineSettings()
    configure_logging(settings.log_level)

    final = asyncio.run(_run(args))
    print(f"Finished in state: {final}")
    return 0 if final == "confirmed" else 4


if __name__ == "__main__":
    raise SystemExit(main())
