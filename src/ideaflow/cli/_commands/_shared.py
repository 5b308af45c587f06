# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
standardized exit codes, output formatters and console helpers.
"""

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

from rich.markup import escape

from ideaflow.exceptions import (
    ConfigError,
    ConflictError,
    IdeaNotFoundError,
    ImmutableRecordError,
    IntegrityError,
    InvalidTransitionError,
    SchemaError,
    SelectionRequiredError,
    StoreError,
)

if TYPE_CHECKING:
    from rich.console import Console

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any] | list[Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "exit_code_for_exception",
    "exit_with_error",
    "format_json",
    "format_table",
    "format_yaml",
    "get_error_console",
]


class ExitCode(IntEnum):
    """Standard exit codes for ideaflow CLI commands."""

    SUCCESS = 0
    NOT_FOUND = 1
    VALIDATION_ERROR = 2
    CONFLICT = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5


def exit_code_for_exception(error: Exception) -> ExitCode:
    """Map an exception to the CLI exit code that reports it.

    Args:
        error: The exception raised by a command.

    Returns:
        The exit code for the exception's category.
    """
    match error:
        case IdeaNotFoundError():
            return ExitCode.NOT_FOUND
        case SchemaError() | ImmutableRecordError() | ConfigError():
            return ExitCode.VALIDATION_ERROR
        case (
            ConflictError()
            | InvalidTransitionError()
            | SelectionRequiredError()
            | IntegrityError()
        ):
            return ExitCode.CONFLICT
        case StoreError() | OSError():
            return ExitCode.IO_ERROR
        case _:
            return ExitCode.INTERNAL_ERROR


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Dictionary or list to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    import orjson

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def format_yaml(data: FormattableData) -> str:
    """Format data as YAML.

    Args:
        data: Dictionary or list to format as YAML.

    Returns:
        YAML-formatted string representation.
    """
    import yaml

    return yaml.safe_dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False
    )


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format data as a Markdown table.

    Args:
        headers: Column headers for the table.
        rows: List of rows, where each row is a list of cell values.

    Returns:
        Markdown table string representation.
    """
    from pytablewriter import MarkdownTableWriter

    writer = MarkdownTableWriter(
        headers=headers,
        value_matrix=rows,
        margin=1,
    )
    return writer.dumps()


def get_error_console() -> "Console":
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: "Console | None" = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    raise SystemExit(code)

