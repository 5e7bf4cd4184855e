"""Workflows built on the engine: reusable steps, the demo flow and the registry."""
