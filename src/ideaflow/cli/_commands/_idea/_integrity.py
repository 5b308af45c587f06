# pyright: reportUnusedFunction=false
# ruff: noqa: D415
"""Commands that detect and reconcile store inconsistencies."""

from typing import Annotated

from cyclopts import Parameter

from ideaflow.cli._commands._context import OutputFormat
from ideaflow.cli._commands._shared import ExitCode, format_json, format_table
from ideaflow.exceptions import IdeaflowError
from ideaflow.idea import Stage

from ._app import app
from ._helpers import ACTOR, fail, get_engine, warning_to_dict


@app.command(name="check")
def _check(
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Report ideas whose folder and metadata disagree

    Exits with code 3 when any problem is found.

    Args:
        format_: Output format.
    """
    try:
        warnings = get_engine().query.find_inconsistent()
    except IdeaflowError as e:
        fail(e)

    if format_ is OutputFormat.JSON:
        print(format_json([warning_to_dict(w) for w in warnings]))
    elif not warnings:
        print("No integrity problems found.")
    else:
        headers = ["Kind", "ID", "Stages", "Message"]
        rows = [
            [
                w.kind.value,
                w.idea_id,
                ", ".join(stage.value for stage in w.stages),
                w.message,
            ]
            for w in warnings
        ]
        print(format_table(headers, rows))

    if warnings:
        raise SystemExit(ExitCode.CONFLICT)


@app.command(name="repair")
def _repair(
    idea_id: str,
    /,
    keep: Annotated[
        Stage | None,
        Parameter(name=["--keep"], help="Stage whose copy survives a duplicate"),
    ] = None,
) -> None:
    """Reconcile an idea flagged by check

    Rewrites a status that does not fit the idea's stage. When the idea is
    in several stages, the copies outside --keep are moved to .orphans/.

    Args:
        idea_id: The idea ID or title.
        keep: Stage whose copy is kept when the idea is duplicated.
    """
    try:
        record = get_engine().repair(idea_id, keep=keep, actor=ACTOR)
    except IdeaflowError as e:
        fail(e)

    stage = record.stage.value if record.stage is not None else "-"
    print(f"Repaired {record.id}: {stage} ({record.status.value})")
