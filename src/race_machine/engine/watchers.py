"""Building blocks for watcher sets.

Entry actions arm the live :class:`WatcherSet` with factories built from these
helpers, e.g.::

    watchers.arm(
        success=wait_for(lambda: page.accepted, timeout=None),
        error=wait_for(lambda: page.rejected, timeout=None),
        timeout=deadline(30),
    )
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping, MutableMapping
from typing import TypeVar

from .race import TIMEOUT, Watcher

T = TypeVar("T")


class WatcherSet(dict[str, Watcher]):
    """The live set of named watchers a machine races on."""

    def arm(self, watchers: Mapping[str, Watcher] | None = None, **named: Watcher) -> None:
        """Replace the armed watchers."""

        self.clear()
        if watchers is not None:
            self.update(watchers)
        self.update(named)

    def discard_started(self) -> None:
        discard_started(self)


def discard_started(watchers: MutableMapping[str, Watcher]) -> None:
    """Drop one-shot entries (already-started awaitables), keep factories."""

    for name in [n for n, w in watchers.items() if inspect.isawaitable(w)]:
        del watchers[name]


async def sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def deadline(seconds: float) -> Callable[[], Awaitable[object]]:
    """Watcher factory that resolves with :data:`TIMEOUT` after ``seconds``."""

    async def _deadline() -> object:
        await asyncio.sleep(seconds)
        return TIMEOUT

    return _deadline


def resolved(value: object = None) -> Callable[[], Awaitable[object]]:
    """Watcher factory that resolves with ``value`` on the next loop iteration."""

    async def _resolved() -> object:
        await asyncio.sleep(0)
        return value

    return _resolved


async def poll_until(
    condition: Callable[[], T],
    timeout: float | None = 3.0,
    interval: float = 0.004,
    truthy_value: object = None,
    falsy_value: object = None,
) -> T | object:
    """Poll ``condition`` until it returns something truthy.

    Resolves with the condition's result (or ``truthy_value`` when given) as soon as
    it is truthy, or with ``falsy_value`` once ``timeout`` seconds have elapsed.
    ``timeout=None`` polls forever.
    """

    loop = asyncio.get_running_loop()
    started = loop.time()
    while True:
        result = condition()
        if result:
            return result if truthy_value is None else truthy_value
        if timeout is not None and loop.time() - started > timeout:
            return falsy_value
        await asyncio.sleep(interval)


def wait_for(
    condition: Callable[[], object],
    timeout: float | None = 3.0,
    interval: float = 0.004,
    truthy_value: object = None,
    falsy_value: object = None,
) -> Callable[[], Awaitable[object]]:
    """Factory form of :func:`poll_until` for use in a watcher set."""

    def _factory() -> Awaitable[object]:
        return poll_until(
            condition,
            timeout=timeout,
            interval=interval,
            truthy_value=truthy_value,
            falsy_value=falsy_value,
        )

    return _factory
