# pyright: reportUnusedFunction=false, reportAny=false, reportExplicitAny=false
# ruff: noqa: D415
"""Read commands for viewing ideaflow configuration."""

from typing import Annotated, Any

import tomli_w
from cyclopts import Parameter

from ideaflow.cli._commands._context import CLIContext, OutputFormat
from ideaflow.cli._commands._shared import (
    ExitCode,
    exit_with_error,
    format_json,
    format_table,
    format_yaml,
)

from ._app import app


_MISSING = object()


@app.command(name="show")
def _show(
    key: str | None = None,
    /,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TOML,
    no_defaults: Annotated[
        bool,
        Parameter(name=["--no-defaults"], help="Only show values that differ"),
    ] = False,
) -> None:
    """Show the merged configuration

    Args:
        key: Dot-notation key to show (e.g. ideas.areas). Defaults to all.
        format_: Output format (toml, json or yaml).
        no_defaults: Only show values that differ from the defaults. Applies
            to the whole configuration, not to a single key.
    """
    config = CLIContext.get_current().config

    if key is None:
        value: Any = config.to_dict(include_defaults=not no_defaults)
    else:
        value = config.get(key, _MISSING)
        if value is _MISSING:
            exit_with_error(f"Unknown config key: {key}", ExitCode.NOT_FOUND)

    if format_ is OutputFormat.JSON:
        print(format_json(value))
    elif format_ is OutputFormat.YAML:
        print(format_yaml(value), end="")
    elif format_ is OutputFormat.TOML:
        if key is None:
            print(config.to_toml(include_defaults=not no_defaults), end="")
        else:
            leaf = key.rsplit(".", 1)[-1]
            table = value if isinstance(value, dict) else {leaf: value}
            print(tomli_w.dumps(table), end="")
    else:
        exit_with_error(
            f"Unsupported format for config show: {format_.value}",
            ExitCode.VALIDATION_ERROR,
        )


@app.command(name="sources")
def _sources() -> None:
    """List the configuration sources in precedence order"""
    ctx = CLIContext.get_current()
    if not ctx.config.sources:
        print("No configuration sources loaded.")
        return

    headers = ["Source", "Path", "Loaded"]
    rows = [
        [
            source.name.value,
            str(source.path) if source.path is not None else "",
            "yes" if source.exists else "no",
        ]
        for source in ctx.config.sources
    ]
    print(format_table(headers, rows))
