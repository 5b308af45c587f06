# pyright: reportUnusedImport=false
"""Commands for tracking ideas through their lifecycle."""

# Import command modules to register commands with the app
from . import _inspect, _integrity, _lifecycle  # noqa: F401
from ._app import app
from ._helpers import get_engine, get_store_root, record_to_dict

__all__ = ["app", "get_engine", "get_store_root", "record_to_dict"]
