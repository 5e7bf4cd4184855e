"""FastAPI server adapter for race-machine.

This module exposes a REST API to start, inspect and cooperatively stop workflow
runs.

Design intent:
- Keep engine and workflow logic in `race_machine.engine` and `race_machine.workflow`
- Keep server-specific concerns (routing, CORS, run tracking) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from race_machine.server.app import create_app
