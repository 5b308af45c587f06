# pyright: reportUnusedImport=false
"""Config command app for inspecting ideaflow configuration."""

# Import command modules to register commands with the app
from . import _read  # noqa: F401
from ._app import app

__all__ = ["app"]
