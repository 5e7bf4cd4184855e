"""CLI entrypoint for race-machine.

Runs bundled workflows from the command line with structured logging.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from race_machine import __version__
from race_machine.engine.context import ProcessingContext
from race_machine.engine.errors import WorkflowError
from race_machine.engine.state_machine import MachineStatus, StateMachine
from race_machine.runtime.config import MachineSettings
from race_machine.runtime.logging import configure_logging
from race_machine.workflow.registry import default_registry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="race-machine",
        description="Race-driven workflow state machine",
    )
    parser.add_argument("--version", action="version", version=f"race-machine {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-workflows", help="List the bundled workflows")

    demo = subparsers.add_parser(
        "demo",
        help="Run the simulated request-acceptance workflow",
    )
    demo.add_argument(
        "--accept-after",
        type=float,
        default=0.2,
        help="Seconds after each submission before the request is accepted (negative: never)",
    )
    demo.add_argument(
        "--reject-after",
        type=float,
        default=None,
        help="Seconds after each submission before the request is rejected",
    )
    demo.add_argument(
        "--timeout-seconds",
        type=float,
        default=None,
        help="Per-state deadline (defaults to RACE_MACHINE_TIMEOUT_SECONDS)",
    )
    demo.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Submissions before giving up (defaults to RACE_MACHINE_MAX_ATTEMPTS)",
    )
    demo.add_argument(
        "--reopen-fails",
        action="store_true",
        help="Make every reopen after a timeout fail",
    )
    demo.add_argument(
        "--stop-after",
        type=float,
        default=None,
        help="Request a cooperative stop after this many seconds",
    )

    return parser


def _demo_params(args: argparse.Namespace) -> dict[str, object]:
    params: dict[str, object] = {
        "accept_after_seconds": args.accept_after if args.accept_after >= 0 else None,
        "reject_after_seconds": args.reject_after,
        "reopen_fails": args.reopen_fails,
    }
    if args.timeout_seconds is not None:
        params["timeout_seconds"] = args.timeout_seconds
    if args.max_attempts is not None:
        params["max_attempts"] = args.max_attempts
    return params


async def _run(machine: StateMachine, initial: str, stop_after: float | None) -> str | None:
    if stop_after is not None:
        asyncio.get_running_loop().call_later(stop_after, machine.stop)
    return await machine.start(initial)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = MachineSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    registry = default_registry(settings)

    try:
        if args.command == "list-workflows":
            for definition in registry.list():
                print(f"{definition.name}: {definition.description}")
            return 0

        if args.command == "demo":
            definition = registry.get("demo")
            context = ProcessingContext(name="demo")
            try:
                machine = definition.create_machine(context, _demo_params(args))
            except ValidationError as e:
                print(e, file=sys.stderr)
                return 2

            final = asyncio.run(_run(machine, definition.initial_state, args.stop_after))
            ended_in = final or "none"
            print(
                f"Finished in state '{ended_in}' (status={machine.status.value}, step={context.step}, "
                f"attempts={context.attempts}, path={' -> '.join(machine.history) or 'none'})"
            )

            # Exit codes are designed to be CI-friendly.
            if machine.status is MachineStatus.STOPPED:
                return 5
            if final == "success":
                return 0
            return 4

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except WorkflowError:
        logger.exception("Workflow failed")
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
