# pyright: reportUnusedFunction=false, reportAny=false, reportExplicitAny=false
# ruff: noqa: D415, TC003  # Path needed at runtime for cyclopts parameter parsing
"""Commands that create ideas and move them through the lifecycle."""

from pathlib import Path
from typing import Annotated, Any

from cyclopts import Parameter

from ideaflow.cli._commands._context import OutputFormat
from ideaflow.cli._commands._shared import ExitCode, exit_with_error
from ideaflow.exceptions import IdeaflowError
from ideaflow.idea import IdeaStatus, Implementation, Level, normalize_id

from ._app import app
from ._helpers import ACTOR, fail, get_engine, print_record, print_transition


@app.command(name="create")
def _create(
    title: str,
    /,
    *,
    area: Annotated[str, Parameter(name=["--area", "-a"], help="Area tag")],
    implementation: Annotated[
        Implementation | None,
        Parameter(name=["--implementation", "-i"], help="Delivery classification"),
    ] = None,
    effort: Annotated[
        Level | None, Parameter(name=["--effort"], help="Estimated effort")
    ] = None,
    impact: Annotated[
        Level | None, Parameter(name=["--impact"], help="Estimated impact")
    ] = None,
    risk: Annotated[
        Level | None, Parameter(name=["--risk"], help="Estimated risk")
    ] = None,
    files: Annotated[
        list[str] | None,
        Parameter(name=["--file"], help="File touched by the idea (repeatable)"),
    ] = None,
    extension_api: Annotated[
        str | None,
        Parameter(name=["--extension-api"], help="Extension API involved"),
    ] = None,
    depends_on: Annotated[
        list[str] | None,
        Parameter(name=["--depends-on"], help="ID of an idea this depends on"),
    ] = None,
    body: Annotated[
        str | None, Parameter(name=["--body"], help="Markdown description")
    ] = None,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """Create an idea in the backlog

    Args:
        title: Idea title. The ID is derived from it.
        area: Area tag from the configured vocabulary.
        implementation: Delivery classification.
        effort: Estimated effort.
        impact: Estimated impact.
        risk: Estimated risk.
        files: File paths the idea touches.
        extension_api: Extension API the idea relies on.
        depends_on: IDs of ideas this one depends on.
        body: Markdown body of the idea document.
        format_: Output format.
    """
    fields: dict[str, Any] = {"title": title, "area": area}
    optional: dict[str, Any] = {
        "implementation": implementation,
        "effort": effort,
        "impact": impact,
        "risk": risk,
        "files": files,
        "extensionApi": extension_api,
        "dependsOn": depends_on,
        "body": body,
    }
    fields.update({key: value for key, value in optional.items() if value is not None})

    try:
        engine = get_engine()
        engine.store.initialize()
        record = engine.create(fields, actor=ACTOR)
    except IdeaflowError as e:
        fail(e)

    if format_ is OutputFormat.TEXT:
        print(f"Created {record.id} in backlog")
    else:
        print_record(record, format_)


@app.command(name="ready")
def _ready(idea_id: str, /) -> None:
    """Mark a backlog idea as ready to start

    Args:
        idea_id: The idea ID or title.
    """
    try:
        record = get_engine().mark_ready(idea_id, actor=ACTOR)
    except IdeaflowError as e:
        fail(e)

    print(f"Marked {record.id} ready")


@app.command(name="promote")
def _promote(
    idea_id: str,
    /,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """Start work on a backlog idea

    Args:
        idea_id: The idea ID or title.
        format_: Output format.
    """
    try:
        transition = get_engine().promote(idea_id, actor=ACTOR)
    except IdeaflowError as e:
        fail(e)

    print_transition(transition, "Promoted", format_)


@app.command(name="park")
def _park(
    idea_id: str | None = None,
    /,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """Pause an active idea and return it to the backlog

    Args:
        idea_id: The idea ID or title. Defaults to the only active idea.
        format_: Output format.
    """
    try:
        transition = get_engine().park(idea_id, actor=ACTOR)
    except IdeaflowError as e:
        fail(e)

    print_transition(transition, "Parked", format_)


@app.command(name="complete")
def _complete(
    idea_id: str | None = None,
    /,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """Finish an active idea and move it to done

    Args:
        idea_id: The idea ID or title. Defaults to the only active idea.
        format_: Output format.
    """
    try:
        transition = get_engine().complete(idea_id, actor=ACTOR)
    except IdeaflowError as e:
        fail(e)

    print_transition(transition, "Completed", format_)


@app.command(name="edit")
def _edit(
    idea_id: str,
    /,
    *,
    title: Annotated[str | None, Parameter(name=["--title"], help="New title")] = None,
    area: Annotated[
        str | None, Parameter(name=["--area", "-a"], help="New area tag")
    ] = None,
    status: Annotated[
        IdeaStatus | None,
        Parameter(name=["--status"], help="New status (idea or ready)"),
    ] = None,
    implementation: Annotated[
        Implementation | None,
        Parameter(name=["--implementation", "-i"], help="New classification"),
    ] = None,
    effort: Annotated[Level | None, Parameter(name=["--effort"])] = None,
    impact: Annotated[Level | None, Parameter(name=["--impact"])] = None,
    risk: Annotated[Level | None, Parameter(name=["--risk"])] = None,
    files: Annotated[
        list[str] | None,
        Parameter(name=["--file"], help="Files touched (replaces existing)"),
    ] = None,
    add_files: Annotated[
        list[str] | None,
        Parameter(name=["--add-file"], help="File to append to the file list"),
    ] = None,
    extension_api: Annotated[
        str | None, Parameter(name=["--extension-api"], help="New extension API")
    ] = None,
    depends_on: Annotated[
        list[str] | None,
        Parameter(name=["--depends-on"], help="Dependencies (replaces existing)"),
    ] = None,
    body: Annotated[
        str | None, Parameter(name=["--body"], help="New Markdown body")
    ] = None,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """Edit an idea's metadata

    Backlog ideas accept any field. Active ideas accept only the fields
    listed in ``ideas.active_editable_fields``. Done ideas are read-only.

    Args:
        idea_id: The idea ID or title.
        title: New title.
        area: New area tag.
        status: New status (only idea and ready, in the backlog).
        implementation: New delivery classification.
        effort: New effort estimate.
        impact: New impact estimate.
        risk: New risk estimate.
        files: Replacement file list.
        add_files: Files appended to the current file list.
        extension_api: New extension API note.
        depends_on: Replacement dependency list.
        body: New Markdown body.
        format_: Output format.
    """
    candidates: dict[str, Any] = {
        "title": title,
        "area": area,
        "status": status,
        "implementation": implementation,
        "effort": effort,
        "impact": impact,
        "risk": risk,
        "files": files,
        "extensionApi": extension_api,
        "dependsOn": depends_on,
        "body": body,
    }
    updates = {key: value for key, value in candidates.items() if value is not None}
    if not updates and not add_files:
        exit_with_error("Nothing to edit", ExitCode.VALIDATION_ERROR)

    try:
        engine = get_engine()
        if add_files:
            current = updates.get("files")
            if current is None:
                current = engine.store.get(normalize_id(idea_id)).files
            updates["files"] = [*current, *add_files]
        record = engine.edit(idea_id, updates, actor=ACTOR)
    except IdeaflowError as e:
        fail(e)

    if format_ is OutputFormat.TEXT:
        print(f"Updated {record.id}: {', '.join(sorted(updates))}")
    else:
        print_record(record, format_)


@app.command(name="attach")
def _attach(
    idea_id: str,
    name: str,
    /,
    *,
    source: Annotated[
        Path | None,
        Parameter(name=["--from"], help="File whose content is attached"),
    ] = None,
    content: Annotated[
        str | None, Parameter(name=["--content"], help="Literal content")
    ] = None,
    overwrite: Annotated[
        bool,
        Parameter(name=["--overwrite"], help="Replace an existing artifact"),
    ] = False,
) -> None:
    """Attach an artifact file to an idea

    Args:
        idea_id: The idea ID or title.
        name: Artifact name relative to the idea folder.
        source: File to copy into the idea folder.
        content: Literal text content.
        overwrite: Replace an existing artifact of the same name.
    """
    if (source is None) == (content is None):
        exit_with_error(
            "Give exactly one of --from and --content", ExitCode.VALIDATION_ERROR
        )

    data: bytes | str
    if source is not None:
        try:
            data = source.read_bytes()
        except OSError as e:
            exit_with_error(f"Cannot read {source}: {e}", ExitCode.IO_ERROR)
    else:
        data = content or ""

    try:
        path = get_engine().attach(
            idea_id, name, data, overwrite=overwrite, actor=ACTOR
        )
    except IdeaflowError as e:
        fail(e)
    except ValueError as e:
        exit_with_error(str(e), ExitCode.VALIDATION_ERROR)

    print(f"Attached {name} to {normalize_id(idea_id)}: {path}")
