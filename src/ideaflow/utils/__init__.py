"""Shared utilities: project paths and structured logging."""

from ._logging import LogFormatType, create_cli_logger, get_null_logger
from ._paths import (
    PROJECT_DIR_NAME,
    find_project_root,
    get_ideaflow_cli_log_file,
    get_ideaflow_dir,
    get_ideaflow_log_dir,
    get_worktree_root,
    resolve_project_root,
)

__all__ = [
    "PROJECT_DIR_NAME",
    "LogFormatType",
    "create_cli_logger",
    "find_project_root",
    "get_ideaflow_cli_log_file",
    "get_ideaflow_dir",
    "get_ideaflow_log_dir",
    "get_null_logger",
    "get_worktree_root",
    "resolve_project_root",
]
