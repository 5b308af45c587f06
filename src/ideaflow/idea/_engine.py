# pyright: reportAny=false, reportExplicitAny=false
"""Lifecycle engine for ideas.

This module provides the LifecycleEngine, the only component allowed to
change an idea's status or stage. It enforces the state machine

    idea -> ready -> active -> done
                  <- (park)

validates every request against the current stored state, and records each
successful operation in the store's history log.
"""

from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import pendulum

from ideaflow.config import IdeasConfiguration, PromotePolicy
from ideaflow.exceptions import (
    ConflictError,
    ConflictKind,
    IdeaNotFoundError,
    ImmutableRecordError,
    IntegrityError,
    InvalidTransitionError,
    SchemaError,
    SchemaErrorKind,
    SelectionRequiredError,
    StoreIOError,
)
from ideaflow.idea._io import append_jsonl, read_jsonl
from ideaflow.idea._models import (
    IdeaRecord,
    IdeaStatus,
    IntegrityKind,
    Stage,
    Transition,
)
from ideaflow.idea._query import QueryService
from ideaflow.idea._schema import canonical_fields, normalize_id, validate
from ideaflow.idea._store import StageStore
from ideaflow.utils._logging import get_null_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

__all__ = ["HISTORY_FILENAME", "LifecycleEngine"]

HISTORY_FILENAME: Final = "history.jsonl"

_DEFAULT_ACTOR: Final = "ideaflow"

# Status a record takes when repaired into a stage its status does not fit
_REPAIR_STATUS: Final = {
    Stage.BACKLOG: IdeaStatus.READY,
    Stage.ACTIVE: IdeaStatus.ACTIVE,
    Stage.DONE: IdeaStatus.DONE,
}

_REQUIREMENTS_TEMPLATE: Final = """\
# {title}: Requirements

## Problem

## Goals

## Non-goals

## Acceptance criteria
"""


class LifecycleEngine:
    """Applies lifecycle transitions and edits to ideas in a stage store.

    Every public operation re-reads the stored record before acting, refuses
    to touch ideas flagged by integrity checks, and moves records only through
    ``StageStore.move_atomic``.
    """

    __slots__: Final = ("_actor", "_config", "_logger", "_query", "_store")

    _store: StageStore
    _query: QueryService
    _config: IdeasConfiguration
    _logger: "FilteringBoundLogger"
    _actor: str

    def __init__(
        self,
        store: StageStore,
        *,
        config: IdeasConfiguration | None = None,
        logger: "FilteringBoundLogger | None" = None,
        actor: str = _DEFAULT_ACTOR,
    ) -> None:
        """Initialize the engine.

        Args:
            store: The stage store to operate on.
            config: Ideas configuration. Defaults to the built-in defaults.
            logger: Structured logger. Defaults to a logger that discards events.
            actor: Name recorded in history for operations without an actor.
        """
        self._store = store
        self._query = QueryService(store)
        self._config = config if config is not None else IdeasConfiguration()
        self._logger = logger if logger is not None else get_null_logger()
        self._actor = actor

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def store(self) -> StageStore:
        """The underlying stage store."""
        return self._store

    @property
    def query(self) -> QueryService:
        """Read-only queries over the store."""
        return self._query

    @property
    def config(self) -> IdeasConfiguration:
        """The ideas configuration in effect."""
        return self._config

    @property
    def history_path(self) -> Path:
        """Path to the JSONL history log."""
        return self._store.root / HISTORY_FILENAME

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _resolve(self, reference: str) -> str:
        idea_id = normalize_id(reference)
        if not idea_id:
            msg = f"Idea not found: {reference!r}"
            raise IdeaNotFoundError(msg, idea_id=reference)
        return idea_id

    def _guard(self, idea_id: str) -> None:
        warnings = self._query.warnings_for(idea_id)
        if warnings:
            details = "; ".join(w.message for w in warnings)
            msg = f"Idea {idea_id} must be repaired before it can change: {details}"
            raise IntegrityError(msg, idea_id=idea_id, warnings=tuple(warnings))

    def _load(self, idea_id: str) -> IdeaRecord:
        self._guard(idea_id)
        return self._store.get(idea_id)

    def _record_history(
        self,
        event: str,
        actor: str | None,
        idea_id: str,
        from_value: str | None = None,
        to_value: str | None = None,
        **extra: Any,
    ) -> None:
        """Append an event to the history log.

        A failed append is logged as a warning because the change it
        describes has already been committed.

        Args:
            event: The event type (e.g., "created", "promoted").
            actor: Who performed the action. Defaults to the engine actor.
            idea_id: The affected idea ID.
            from_value: The previous value (stage or status).
            to_value: The new value.
            **extra: Additional event fields.
        """
        entry: dict[str, Any] = {
            "timestamp": pendulum.now("UTC").isoformat(),
            "event": event,
            "actor": actor or self._actor,
            "id": idea_id,
        }
        if from_value is not None:
            entry["from_value"] = from_value
        if to_value is not None:
            entry["to_value"] = to_value
        entry.update(extra)

        try:
            append_jsonl(self.history_path, entry)
        except StoreIOError as e:
            self._logger.warning(
                "history_not_recorded", event=event, id=idea_id, error=str(e)
            )

    def _select_active(self, reference: str | None, operation: str) -> str:
        if reference is not None:
            return self._resolve(reference)

        candidates = tuple(record.id for record in self._query.active())
        if not candidates:
            msg = f"No active idea to {operation}"
            raise InvalidTransitionError(msg, operation=operation)
        if len(candidates) > 1:
            msg = (
                f"Several ideas are active; choose one to {operation}: "
                f"{', '.join(candidates)}"
            )
            raise SelectionRequiredError(msg, candidates=candidates)
        return candidates[0]

    def _move(
        self,
        record: IdeaRecord,
        to_stage: Stage,
        status: IdeaStatus,
    ) -> IdeaRecord:
        if record.stage is None:
            msg = f"Record {record.id} has no stage"
            raise ValueError(msg)
        return self._store.move_atomic(
            record.id,
            record.stage,
            to_stage,
            lambda current: replace(current, status=status),
        )

    def _require_active(self, record: IdeaRecord, operation: str) -> None:
        if record.stage is not Stage.ACTIVE or record.status is not IdeaStatus.ACTIVE:
            msg = (
                f"Cannot {operation} {record.id}: status is "
                f"'{record.status.value}', expected 'active'"
            )
            raise InvalidTransitionError(
                msg,
                idea_id=record.id,
                status=record.status.value,
                operation=operation,
            )

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create(
        self, fields: Mapping[str, Any], *, actor: str | None = None
    ) -> IdeaRecord:
        """Create a new idea in the backlog with status ``idea``.

        Args:
            fields: Metadata fields. ``title`` and ``area`` are required; the
                ID is derived from the title and ``created`` is today.
            actor: Who is creating the idea.

        Returns:
            The stored record.

        Raises:
            SchemaError: If the fields are invalid or the ID already exists.
        """
        data = canonical_fields(fields)
        for managed in ("id", "created"):
            if managed in data:
                msg = f"Field '{managed}' is set automatically and cannot be given"
                raise SchemaError(
                    msg,
                    kind=SchemaErrorKind.INVALID_VALUE,
                    field=managed,
                    value=data[managed],
                )
        status = data.get("status")
        if status is not None and status != IdeaStatus.IDEA.value:
            msg = f"New ideas start with status 'idea', not '{status}'"
            raise SchemaError(
                msg, kind=SchemaErrorKind.INVALID_VALUE, field="status", value=status
            )

        record = validate(
            {**data, "status": IdeaStatus.IDEA.value},
            areas=self._config.all_areas,
            existing_ids=self._store.ids(),
            created=pendulum.now("UTC").date(),
        )
        stored = self._store.create(record)

        self._record_history(
            "created", actor, stored.id, to_value=Stage.BACKLOG.value
        )
        self._logger.info(
            "idea_created", id=stored.id, area=stored.area, title=stored.title
        )
        return stored

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def mark_ready(self, reference: str, *, actor: str | None = None) -> IdeaRecord:
        """Mark a backlog idea as ready to start.

        Idempotent on ideas that are already ready.

        Raises:
            IdeaNotFoundError: If the idea does not exist.
            InvalidTransitionError: If the idea is not in the backlog.
            IntegrityError: If the idea needs repair.
        """
        record = self._load(self._resolve(reference))
        if record.stage is not Stage.BACKLOG:
            msg = (
                f"Cannot mark {record.id} ready: status is '{record.status.value}'"
            )
            raise InvalidTransitionError(
                msg,
                idea_id=record.id,
                status=record.status.value,
                operation="ready",
            )
        if record.status is IdeaStatus.READY:
            return record

        updated = self._store.update(replace(record, status=IdeaStatus.READY))
        self._record_history(
            "ready",
            actor,
            updated.id,
            from_value=IdeaStatus.IDEA.value,
            to_value=IdeaStatus.READY.value,
        )
        self._logger.info("idea_ready", id=updated.id)
        return updated

    def promote(self, reference: str, *, actor: str | None = None) -> Transition:
        """Start work on a backlog idea.

        Moves the idea to the active stage with status ``active`` and attaches
        a blank requirements document unless one exists. Promoting an idea
        never marked ready follows ``ideas.promote_from_idea``. Dependencies
        that are not done produce warnings but never block.

        Args:
            reference: The idea ID or title.
            actor: Who is promoting the idea.

        Returns:
            The transition, with any advisory warnings.

        Raises:
            IdeaNotFoundError: If the idea does not exist.
            InvalidTransitionError: If the idea is not in the backlog, or is
                still an ``idea`` and the policy is ``deny``.
            ConflictError: If the store changed underneath the move, or
                another idea in the same area is active and areas are
                exclusive.
            IntegrityError: If the idea needs repair.
        """
        record = self._load(self._resolve(reference))
        if record.stage is not Stage.BACKLOG:
            msg = (
                f"Cannot promote {record.id}: status is '{record.status.value}', "
                "expected 'ready'"
            )
            raise InvalidTransitionError(
                msg,
                idea_id=record.id,
                status=record.status.value,
                operation="promote",
            )

        warnings: list[str] = []
        if record.status is IdeaStatus.IDEA:
            policy = self._config.promote_from_idea
            if policy is PromotePolicy.DENY:
                msg = f"Cannot promote {record.id}: it has not been marked ready"
                raise InvalidTransitionError(
                    msg,
                    idea_id=record.id,
                    status=record.status.value,
                    operation="promote",
                )
            if policy is PromotePolicy.WARN:
                warnings.append(f"{record.id} was promoted without being marked ready")
                self._logger.warning("promote_from_idea", id=record.id)

        if self._config.area_exclusive:
            occupied = [r.id for r in self._query.active() if r.area == record.area]
            if occupied:
                msg = (
                    f"Area '{record.area}' already has an active idea: "
                    f"{', '.join(occupied)}"
                )
                raise ConflictError(
                    msg,
                    kind=ConflictKind.AREA_OCCUPIED,
                    idea_id=record.id,
                    stage=Stage.ACTIVE.value,
                )

        for dependency in self._query.unmet_dependencies(record):
            warnings.append(f"{record.id} depends on unfinished idea {dependency}")
            self._logger.warning(
                "dependency_unmet", id=record.id, dependency=dependency
            )

        moved = self._move(record, Stage.ACTIVE, IdeaStatus.ACTIVE)

        requirements = self._config.requirements
        if requirements.generate and requirements.filename not in moved.artifacts:
            try:
                _ = self._store.attach_artifact(
                    moved.id,
                    requirements.filename,
                    _REQUIREMENTS_TEMPLATE.format(title=moved.title),
                )
            except (StoreIOError, ValueError) as e:
                warnings.append(f"Could not create {requirements.filename}: {e}")
                self._logger.error(
                    "requirements_not_created", id=moved.id, error=str(e)
                )
            else:
                moved = self._store.get(moved.id, Stage.ACTIVE)

        self._record_history(
            "promoted",
            actor,
            moved.id,
            from_value=record.status.value,
            to_value=IdeaStatus.ACTIVE.value,
        )
        self._logger.info("idea_promoted", id=moved.id, area=moved.area)
        return Transition(
            record=moved,
            from_stage=Stage.BACKLOG,
            to_stage=Stage.ACTIVE,
            warnings=tuple(warnings),
        )

    def park(
        self, reference: str | None = None, *, actor: str | None = None
    ) -> Transition:
        """Pause an active idea, returning it to the backlog as ``ready``.

        Args:
            reference: The idea ID or title. If None, the single active idea.
            actor: Who is parking the idea.

        Returns:
            The transition.

        Raises:
            SelectionRequiredError: If no reference is given and several
                ideas are active.
            InvalidTransitionError: If the idea is not active.
            ConflictError: If the store changed underneath the move.
            IntegrityError: If the idea needs repair.
        """
        record = self._load(self._select_active(reference, "park"))
        self._require_active(record, "park")

        moved = self._move(record, Stage.BACKLOG, IdeaStatus.READY)

        self._record_history(
            "parked",
            actor,
            moved.id,
            from_value=IdeaStatus.ACTIVE.value,
            to_value=IdeaStatus.READY.value,
        )
        self._logger.info("idea_parked", id=moved.id)
        return Transition(record=moved, from_stage=Stage.ACTIVE, to_stage=Stage.BACKLOG)

    def complete(
        self, reference: str | None = None, *, actor: str | None = None
    ) -> Transition:
        """Finish an active idea, moving it to done.

        Args:
            reference: The idea ID or title. If None, the single active idea.
            actor: Who is completing the idea.

        Returns:
            The transition.

        Raises:
            SelectionRequiredError: If no reference is given and several
                ideas are active.
            InvalidTransitionError: If the idea is not active.
            ConflictError: If the store changed underneath the move.
            IntegrityError: If the idea needs repair.
        """
        record = self._load(self._select_active(reference, "complete"))
        self._require_active(record, "complete")

        moved = self._move(record, Stage.DONE, IdeaStatus.DONE)

        self._record_history(
            "completed",
            actor,
            moved.id,
            from_value=IdeaStatus.ACTIVE.value,
            to_value=IdeaStatus.DONE.value,
        )
        self._logger.info("idea_completed", id=moved.id)
        return Transition(record=moved, from_stage=Stage.ACTIVE, to_stage=Stage.DONE)

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def _check_edit(self, record: IdeaRecord, updates: Mapping[str, Any]) -> None:
        for immutable in ("id", "created"):
            if immutable in updates:
                msg = f"Field '{immutable}' of {record.id} cannot be edited"
                raise ImmutableRecordError(msg, idea_id=record.id, field=immutable)

        if record.stage is Stage.DONE:
            field = next(iter(updates))
            msg = f"{record.id} is done and cannot be edited"
            raise ImmutableRecordError(msg, idea_id=record.id, field=field)

        if record.stage is Stage.BACKLOG:
            status = updates.get("status")
            if status is not None and str(status) not in (
                IdeaStatus.IDEA.value,
                IdeaStatus.READY.value,
            ):
                msg = (
                    f"Status of {record.id} can only be edited between "
                    "'idea' and 'ready'"
                )
                raise InvalidTransitionError(
                    msg,
                    idea_id=record.id,
                    status=record.status.value,
                    operation="edit",
                )
            return

        if "status" in updates:
            msg = f"Status of active idea {record.id} changes only by park or complete"
            raise InvalidTransitionError(
                msg, idea_id=record.id, status=record.status.value, operation="edit"
            )
        allowed = set(self._config.active_editable_fields)
        for field in updates:
            if field not in allowed:
                msg = f"Field '{field}' of active idea {record.id} cannot be edited"
                raise ImmutableRecordError(msg, idea_id=record.id, field=field)

        files = updates.get("files")
        if files is not None:
            existing = list(record.files)
            if (
                not isinstance(files, (list, tuple))
                or list(files[: len(existing)]) != existing
            ):
                msg = f"Files of active idea {record.id} can only be appended"
                raise ImmutableRecordError(msg, idea_id=record.id, field="files")

    def edit(
        self,
        reference: str,
        updates: Mapping[str, Any],
        *,
        actor: str | None = None,
    ) -> IdeaRecord:
        """Edit an idea's metadata without changing its stage.

        Backlog ideas accept any field except ``id`` and ``created``, with
        ``status`` limited to ``idea`` and ``ready``. Active ideas accept only
        the fields in ``ideas.active_editable_fields``, and ``files`` only
        grows. Done ideas are read-only.

        Args:
            reference: The idea ID or title.
            updates: Fields to change (stored or Python spelling).
            actor: Who is editing the idea.

        Returns:
            The stored record.

        Raises:
            ImmutableRecordError: If a field cannot be edited in this stage.
            InvalidTransitionError: If a status edit is not allowed.
            SchemaError: If the edited metadata is invalid.
            IntegrityError: If the idea needs repair.
        """
        record = self._load(self._resolve(reference))
        changes = canonical_fields(updates)
        if not changes:
            return record

        self._check_edit(record, changes)

        merged = {**record.to_frontmatter(), "body": record.body, **changes}
        edited = validate(merged, areas=self._config.all_areas)
        stored = self._store.update(replace(edited, stage=record.stage))

        self._record_history("edited", actor, stored.id, fields=sorted(changes))
        self._logger.info("idea_edited", id=stored.id, fields=sorted(changes))
        return stored

    def attach(
        self,
        reference: str,
        name: str,
        content: bytes | str,
        *,
        overwrite: bool = False,
        actor: str | None = None,
    ) -> Path:
        """Attach an artifact file to a backlog or active idea.

        Args:
            reference: The idea ID or title.
            name: Artifact name relative to the idea folder.
            content: File content.
            overwrite: Replace an existing artifact of the same name.
            actor: Who is attaching the artifact.

        Returns:
            Path of the written artifact.

        Raises:
            ImmutableRecordError: If the idea is done.
            ValueError: If the name is not a valid artifact name.
            StoreIOError: If the artifact exists and ``overwrite`` is False.
            IntegrityError: If the idea needs repair.
        """
        record = self._load(self._resolve(reference))
        if record.stage is Stage.DONE:
            msg = f"{record.id} is done and cannot take new artifacts"
            raise ImmutableRecordError(msg, idea_id=record.id, field="artifacts")

        path = self._store.attach_artifact(
            record.id, name, content, overwrite=overwrite
        )
        self._record_history("attached", actor, record.id, artifact=name)
        self._logger.info("artifact_attached", id=record.id, artifact=name)
        return path

    # -------------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------------

    def repair(
        self,
        reference: str,
        *,
        keep: Stage | None = None,
        actor: str | None = None,
    ) -> IdeaRecord:
        """Reconcile an idea flagged by integrity checks.

        A status that does not fit the stage is rewritten to match the stage
        (an active or done status left in the backlog becomes ``ready``). An
        ID found in several stages keeps the copy in ``keep``; the others are
        quarantined under ``.orphans/`` and nothing is deleted.

        Args:
            reference: The idea ID or title.
            keep: Stage whose copy survives when the ID is duplicated.
            actor: Who is repairing the idea.

        Returns:
            The repaired record. A healthy idea is returned unchanged.

        Raises:
            IdeaNotFoundError: If the idea does not exist, or ``keep`` names
                a stage without a copy.
            SelectionRequiredError: If the ID is duplicated and ``keep`` is
                None.
            IntegrityError: If what remains cannot be repaired automatically
                (unreadable metadata or a folder/ID mismatch).
        """
        idea_id = self._resolve(reference)
        warnings = self._query.warnings_for(idea_id)
        if not warnings:
            return self._store.get(idea_id)

        stages = self._store.locate(idea_id)
        if not stages:
            msg = f"Idea not found: {idea_id}"
            raise IdeaNotFoundError(msg, idea_id=idea_id)

        quarantined: list[str] = []
        if len(stages) > 1:
            if keep is None:
                msg = (
                    f"Idea {idea_id} exists in several stages; choose which copy "
                    "to keep"
                )
                raise SelectionRequiredError(
                    msg, candidates=tuple(stage.value for stage in stages)
                )
            if keep not in stages:
                msg = f"Idea {idea_id} has no copy in {keep.value}"
                raise IdeaNotFoundError(msg, idea_id=idea_id)
            for stage in stages:
                if stage is not keep:
                    _ = self._store.quarantine(idea_id, stage)
                    quarantined.append(stage.value)
            stage = keep
        else:
            stage = stages[0]

        remaining = [
            w
            for w in self._query.warnings_for(idea_id)
            if w.kind is not IntegrityKind.STATUS_MISMATCH
        ]
        if remaining:
            details = "; ".join(w.message for w in remaining)
            msg = f"Idea {idea_id} needs manual repair: {details}"
            raise IntegrityError(msg, idea_id=idea_id, warnings=tuple(remaining))

        record = self._store.get(idea_id, stage)
        previous = record.status
        if not record.is_consistent:
            record = self._store.update(
                replace(record, status=_REPAIR_STATUS[stage])
            )

        self._record_history(
            "repaired",
            actor,
            idea_id,
            from_value=previous.value,
            to_value=record.status.value,
            stage=stage.value,
            quarantined=quarantined,
        )
        self._logger.info(
            "idea_repaired",
            id=idea_id,
            stage=stage.value,
            status=record.status.value,
            quarantined=quarantined,
        )
        return record

    def history(self, reference: str | None = None) -> list[dict[str, Any]]:
        """Read the history log, optionally for one idea.

        Args:
            reference: The idea ID or title. If None, every event.

        Returns:
            Events in the order they were recorded.
        """
        entries = read_jsonl(self.history_path)
        if reference is None:
            return entries
        idea_id = normalize_id(reference)
        return [entry for entry in entries if entry.get("id") == idea_id]
