"""CLI package for the weather station dashboard."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer instance stays on ``cli.app`` so tests can patch module attributes
# such as ``cli.app.ApiClient``.

__all__ = []
