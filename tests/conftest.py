"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from race_machine.engine.context import ProcessingContext
from race_machine.engine.watchers import WatcherSet
from race_machine.workflow.demo import DemoOptions

_SETTINGS_ENV = (
    "LOG_LEVEL",
    "RACE_MACHINE_TIMEOUT_SECONDS",
    "RACE_MACHINE_POLL_INTERVAL_SECONDS",
    "RACE_MACHINE_MAX_ATTEMPTS",
    "RACE_MACHINE_CORS_ORIGINS",
)


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory with no settings in the environment."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    """Undo `configure_logging` side effects on the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def watchers() -> WatcherSet:
    """Provide an empty live watcher set."""
    return WatcherSet()


@pytest.fixture
def context() -> ProcessingContext:
    """Provide a fresh processing context."""
    return ProcessingContext(name="test-run")


@pytest.fixture
def fast_demo_options() -> DemoOptions:
    """Demo options tuned for quick tests."""
    return DemoOptions(
        accept_after_seconds=0.01,
        reject_after_seconds=None,
        timeout_seconds=0.2,
        poll_interval_seconds=0.002,
        max_attempts=2,
    )
