"""Race scheduler.

Starts every watcher of a set concurrently and commits to the first one that
settles. Losing watchers are never cancelled: they keep running in the background
and whatever they eventually produce (a value or an exception) is dropped.

Same-tick policy: when several watchers are already settled by the time the
scheduler wakes up, the one registered first in the set wins.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TypeAlias

from .errors import EmptyWatcherSetError

Watcher: TypeAlias = Awaitable[object] | Callable[[], Awaitable[object]]

TIMEOUT_STATE = "timeout"


class _TimeoutMarker:
    """Value a deadline watcher resolves with. Falsy, compared by identity."""

    __slots__ = ()

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "TIMEOUT"


TIMEOUT = _TimeoutMarker()

# Losing watchers are kept referenced here until they settle.
_background: set[asyncio.Future[object]] = set()


@dataclass(frozen=True, slots=True)
class RaceResult:
    """Outcome of a single race.

    ``winner_name`` is ``None`` when a deadline watcher won; a watcher resolving
    with a falsy value under its own name still reports that name.
    """

    winner_name: str | None
    value: object = None

    @property
    def timed_out(self) -> bool:
        return self.winner_name is None

    @property
    def target(self) -> str:
        """Name of the state this result transitions to."""

        return TIMEOUT_STATE if self.winner_name is None else self.winner_name


def _start(name: str, watcher: Watcher) -> asyncio.Future[object]:
    operation = watcher
    if callable(operation) and not inspect.isawaitable(operation):
        try:
            operation = operation()
        except Exception as e:
            # A factory that raises counts as a watcher that failed at once.
            failed: asyncio.Future[object] = asyncio.get_running_loop().create_future()
            failed.set_exception(e)
            return failed
    if not inspect.isawaitable(operation):
        raise TypeError(
            f"Watcher {name!r} must be an awaitable or a zero-argument factory returning one, "
            f"got {type(operation).__name__}"
        )
    return asyncio.ensure_future(operation)


def _forget(future: asyncio.Future[object]) -> None:
    _background.discard(future)
    if not future.cancelled():
        # Retrieve late failures so the loop does not report them as unhandled.
        future.exception()


def _detach(future: asyncio.Future[object]) -> None:
    if future.done():
        _forget(future)
        return
    _background.add(future)
    future.add_done_callback(_forget)


async def settle_first(watchers: Mapping[str, Watcher]) -> tuple[str, asyncio.Future[object]]:
    """Start all watchers and return the name and future of the first to settle.

    The returned future is done; it may hold an exception. Every other watcher is
    detached and left running.
    """

    if not watchers:
        raise EmptyWatcherSetError(
            "Cannot race an empty watcher set: arm at least one watcher (e.g. a deadline)"
        )

    futures: dict[str, asyncio.Future[object]] = {}
    try:
        for name, watcher in watchers.items():
            futures[name] = _start(name, watcher)
        done, _pending = await asyncio.wait(
            set(futures.values()), return_when=asyncio.FIRST_COMPLETED
        )
    except BaseException:
        for future in futures.values():
            _detach(future)
        raise

    winner = next(name for name, future in futures.items() if future in done)
    winning = futures[winner]
    for future in futures.values():
        if future is not winning:
            _detach(future)
    return winner, winning


async def race(watchers: Mapping[str, Watcher]) -> RaceResult:
    """Race a non-empty watcher set and report the single winner.

    A failure of the first watcher to settle propagates unchanged. A winner whose
    value is :data:`TIMEOUT` is reported as ``winner_name=None``.
    """

    name, future = await settle_first(watchers)
    value = future.result()
    if value is TIMEOUT:
        return RaceResult(winner_name=None, value=value)
    return RaceResult(winner_name=name, value=value)
