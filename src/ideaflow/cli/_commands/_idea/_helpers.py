# pyright: reportExplicitAny=false, reportAny=false
"""Helper utilities for idea commands."""

from pathlib import Path
from typing import Any, Never

from rich.markup import escape

from ideaflow.cli._commands._context import CLIContext, OutputFormat
from ideaflow.cli._commands._shared import (
    exit_code_for_exception,
    format_json,
    format_table,
    format_yaml,
    get_error_console,
)
from ideaflow.exceptions import IdeaflowError, IntegrityError, SelectionRequiredError
from ideaflow.idea import (
    IdeaRecord,
    IntegrityWarning,
    LifecycleEngine,
    StageStore,
    Transition,
)
from ideaflow.utils import resolve_project_root

__all__ = [
    "ACTOR",
    "fail",
    "get_engine",
    "get_store_root",
    "print_record",
    "print_records",
    "print_transition",
    "print_warnings",
    "record_to_dict",
    "transition_to_dict",
    "warning_to_dict",
]

# Static actor identifier for history tracking
ACTOR: str = "cli"


def get_store_root() -> Path:
    """Resolve the stage store directory from CLIContext."""
    ctx = CLIContext.get_current()
    project_root = ctx.project_root or resolve_project_root()
    return ctx.config.store_root(project_root)


def get_engine() -> LifecycleEngine:
    """Get a LifecycleEngine configured from CLIContext.

    Returns:
        An engine over the project's stage store.
    """
    ctx = CLIContext.get_current()
    store = StageStore(
        get_store_root(), areas=ctx.config.ideas.all_areas, logger=ctx.logger
    )
    return LifecycleEngine(
        store, config=ctx.config.ideas, logger=ctx.logger, actor=ACTOR
    )


def record_to_dict(record: IdeaRecord) -> dict[str, Any]:
    """Convert an IdeaRecord to an output dictionary."""
    data: dict[str, Any] = {
        **record.to_frontmatter(),
        "stage": record.stage.value if record.stage is not None else None,
        "artifacts": list(record.artifacts),
    }
    return data


def warning_to_dict(warning: IntegrityWarning) -> dict[str, Any]:
    """Convert an IntegrityWarning to an output dictionary."""
    return {
        "kind": warning.kind.value,
        "id": warning.idea_id,
        "stages": [stage.value for stage in warning.stages],
        "message": warning.message,
    }


def _format_record_text(record: IdeaRecord) -> str:
    stage = record.stage.value if record.stage is not None else "-"
    lines = [
        f"# {record.title}",
        "",
        f"ID:             {record.id}",
        f"Stage:          {stage}",
        f"Status:         {record.status.value}",
        f"Area:           {record.area}",
        f"Created:        {record.created.isoformat()}",
        f"Implementation: {record.implementation.value}",
        (
            f"Effort/Impact/Risk: {record.effort.value}/"
            f"{record.impact.value}/{record.risk.value}"
        ),
    ]
    if record.extension_api:
        lines.append(f"Extension API:  {record.extension_api}")
    if record.depends_on:
        lines.append(f"Depends on:     {', '.join(record.depends_on)}")
    if record.files:
        lines.append("Files:")
        lines.extend(f"  - {path}" for path in record.files)
    if record.artifacts:
        lines.append("Artifacts:")
        lines.extend(f"  - {name}" for name in record.artifacts)
    if record.body.strip():
        lines.extend(["", record.body.rstrip()])
    return "\n".join(lines)


def print_record(record: IdeaRecord, format_: OutputFormat) -> None:
    """Print a single record in the requested format."""
    if format_ is OutputFormat.JSON:
        print(format_json(record_to_dict(record)))
    elif format_ is OutputFormat.YAML:
        print(format_yaml(record_to_dict(record)), end="")
    else:
        print(_format_record_text(record))


def print_records(records: list[IdeaRecord], format_: OutputFormat) -> None:
    """Print a list of records in the requested format."""
    if format_ is OutputFormat.JSON:
        print(format_json([record_to_dict(r) for r in records]))
        return
    if format_ is OutputFormat.YAML:
        print(format_yaml([record_to_dict(r) for r in records]), end="")
        return
    if format_ is OutputFormat.TEXT:
        for record in records:
            print(record.id)
        return

    if not records:
        print("No ideas found.")
        return

    headers = ["ID", "Title", "Area", "Status", "Stage", "Created"]
    rows = [
        [
            r.id,
            r.title,
            r.area,
            r.status.value,
            r.stage.value if r.stage is not None else "",
            r.created.isoformat(),
        ]
        for r in records
    ]
    print(format_table(headers, rows))


def print_warnings(warnings: tuple[str, ...] | list[str]) -> None:
    """Print advisory warnings to stderr."""
    if not warnings:
        return
    console = get_error_console()
    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}", highlight=False)


def transition_to_dict(transition: Transition) -> dict[str, Any]:
    """Convert a Transition to an output dictionary."""
    return {
        "record": record_to_dict(transition.record),
        "from_stage": transition.from_stage.value,
        "to_stage": transition.to_stage.value,
        "warnings": list(transition.warnings),
    }


def print_transition(
    transition: Transition, verb: str, format_: OutputFormat = OutputFormat.TEXT
) -> None:
    """Report a completed transition and its warnings."""
    print_warnings(transition.warnings)
    if format_ is OutputFormat.JSON:
        print(format_json(transition_to_dict(transition)))
        return
    record = transition.record
    print(
        f"{verb} {record.id}: {transition.from_stage.value} -> "
        f"{transition.to_stage.value} ({record.status.value})"
    )


def fail(error: IdeaflowError) -> Never:
    """Report a domain error and exit with its exit code.

    Selection errors list the candidates to choose from. Integrity errors
    point at the repair command.
    """
    console = get_error_console()
    console.print(f"[red]Error:[/red] {escape(str(error))}", highlight=False)
    if isinstance(error, SelectionRequiredError):
        for candidate in error.candidates:
            console.print(f"  {candidate}", highlight=False, markup=False)
    elif isinstance(error, IntegrityError):
        console.print("Run 'ideaflow idea repair' to reconcile the idea.")
    raise SystemExit(exit_code_for_exception(error))
