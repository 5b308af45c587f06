# pyright: reportUnusedFunction=false
# ruff: noqa: D415
"""Read-only commands for browsing ideas."""

from typing import Annotated

from cyclopts import Parameter

from ideaflow.cli._commands._context import CLIContext, OutputFormat
from ideaflow.cli._commands._shared import format_json, format_table
from ideaflow.exceptions import IdeaflowError
from ideaflow.idea import IdeaStatus, Stage, normalize_id

from ._app import app
from ._helpers import fail, get_engine, print_record, print_records


@app.command(name="list")
def _list(
    *,
    stage: Annotated[
        Stage | None, Parameter(name=["--stage", "-s"], help="Only this stage")
    ] = None,
    area: Annotated[
        str | None, Parameter(name=["--area", "-a"], help="Only this area")
    ] = None,
    status: Annotated[
        IdeaStatus | None, Parameter(name=["--status"], help="Only this status")
    ] = None,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """List ideas ordered by creation date

    Args:
        stage: Only list ideas in this stage.
        area: Only list ideas in this area.
        status: Only list ideas with this status.
        format_: Output format.
    """
    try:
        records = get_engine().query.list(stage=stage, area=area, status=status)
    except IdeaflowError as e:
        fail(e)

    print_records(records, format_)


@app.command(name="show")
def _show(
    idea_id: str,
    /,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """Display an idea

    Args:
        idea_id: The idea ID or title.
        format_: Output format.
    """
    try:
        record = get_engine().store.get(normalize_id(idea_id))
    except IdeaflowError as e:
        fail(e)

    print_record(record, format_)


@app.command(name="history")
def _history(
    idea_id: str | None = None,
    /,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Show the lifecycle history log

    Args:
        idea_id: Only show events for this idea.
        format_: Output format.
    """
    try:
        entries = get_engine().history(idea_id)
    except IdeaflowError as e:
        fail(e)

    if format_ is OutputFormat.JSON:
        print(format_json(entries))
        return

    if not entries:
        print("No history recorded.")
        return

    headers = ["Timestamp", "Event", "ID", "From", "To", "Actor"]
    rows = [
        [
            str(entry.get("timestamp", "")),
            str(entry.get("event", "")),
            str(entry.get("id", "")),
            str(entry.get("from_value", "")),
            str(entry.get("to_value", "")),
            str(entry.get("actor", "")),
        ]
        for entry in entries
    ]
    print(format_table(headers, rows))


@app.command(name="areas")
def _areas(
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """List the area tags ideas can use

    Args:
        format_: Output format.
    """
    ideas = CLIContext.get_current().config.ideas

    if format_ is OutputFormat.JSON:
        print(format_json(list(ideas.all_areas)))
        return

    extended = set(ideas.extend_areas) - set(ideas.areas)
    for area in ideas.all_areas:
        suffix = " (extended)" if area in extended else ""
        print(f"{area}{suffix}")
