"""CLI package for reconciling waste-bin sensor history."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# ``cli.app`` must stay the module so tests can patch attributes on it.

__all__ = []
