# pyright: reportAny=false, reportExplicitAny=false
"""Stage store: three folder partitions holding idea records.

Each idea lives in ``<root>/<stage>/<id>/`` with one metadata document
(``idea.md``) and any number of opaque artifact files. Records change stage
by renaming their whole folder, so artifacts travel with them untouched.
"""

import shutil
import threading
import uuid
import weakref
from collections.abc import Callable, Collection, Iterator
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Final

import pendulum

from ideaflow.exceptions import (
    ConflictError,
    ConflictKind,
    IdeaflowError,
    IdeaNotFoundError,
    ImmutableRecordError,
    InvalidTransitionError,
    SchemaError,
    SchemaErrorKind,
    SelectionRequiredError,
    StoreError,
    StoreIOError,
    StoreParseError,
)
from ideaflow.idea._io import (
    atomic_write,
    read_markdown_frontmatter,
    render_markdown_with_frontmatter,
    write_markdown_with_frontmatter,
)
from ideaflow.idea._models import METADATA_FILENAME, STAGE_STATUSES, IdeaRecord, Stage
from ideaflow.idea._schema import validate
from ideaflow.utils._logging import get_null_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

__all__ = ["StageStore", "StoreEntry"]

_PENDING_SUFFIX: Final = ".pending"
_STAGING_DIR: Final = ".staging"
_ORPHANS_DIR: Final = ".orphans"

# One lock per store root, shared by every live StageStore in the process
_root_locks: "weakref.WeakValueDictionary[Path, threading.RLock]" = (
    weakref.WeakValueDictionary()
)
_root_locks_guard = threading.Lock()


def _lock_for(root: Path) -> threading.RLock:
    key = root.resolve()
    with _root_locks_guard:
        lock = _root_locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _root_locks[key] = lock
        return lock


@dataclass(frozen=True, slots=True)
class StoreEntry:
    """Raw result of scanning one idea folder.

    Attributes:
        folder: Name of the idea folder.
        stage: Stage the folder lives in.
        path: Path to the folder.
        record: The loaded record, or None if it could not be loaded.
        error: Why the record could not be loaded, if it could not.
    """

    folder: str
    stage: Stage
    path: Path
    record: IdeaRecord | None = None
    error: IdeaflowError | None = None


class StageStore:
    """Folder-backed store partitioned into backlog, active and done.

    All mutating calls are serialized by a lock shared per store root, and
    every move is a single directory rename, so no caller ever observes a
    record in two stages or in none.
    """

    __slots__: Final = ("_areas", "_lock", "_logger", "_root")

    _root: Path
    _areas: frozenset[str]
    _lock: threading.RLock
    _logger: "FilteringBoundLogger"

    def __init__(
        self,
        root: Path | str,
        *,
        areas: Collection[str],
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the store.

        Args:
            root: Directory holding the three stage folders.
            areas: Area vocabulary used to validate loaded metadata.
            logger: Structured logger. Defaults to a logger that discards events.
        """
        self._root = Path(root)
        self._areas = frozenset(areas)
        self._lock = _lock_for(self._root)
        self._logger = logger if logger is not None else get_null_logger()

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    @property
    def root(self) -> Path:
        """Directory holding the stage folders."""
        return self._root

    @property
    def areas(self) -> frozenset[str]:
        """Area vocabulary used for validation."""
        return self._areas

    def stage_dir(self, stage: Stage) -> Path:
        """Path of a stage folder."""
        return self._root / stage.value

    def folder(self, stage: Stage, idea_id: str) -> Path:
        """Path of an idea folder within a stage."""
        return self.stage_dir(stage) / idea_id

    def initialize(self) -> None:
        """Create the stage folders if they do not exist."""
        for stage in Stage:
            self.stage_dir(stage).mkdir(parents=True, exist_ok=True)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _has_record(self, stage: Stage, idea_id: str) -> bool:
        return (self.folder(stage, idea_id) / METADATA_FILENAME).is_file()

    def _artifact_names(self, folder: Path) -> tuple[str, ...]:
        names: list[str] = []
        for path in folder.rglob("*"):
            relative = path.relative_to(folder)
            if not path.is_file() or relative.as_posix() == METADATA_FILENAME:
                continue
            if any(part.startswith(".") for part in relative.parts):
                continue
            names.append(relative.as_posix())
        return tuple(sorted(names))

    def _load(self, folder: Path, stage: Stage) -> IdeaRecord:
        path = folder / METADATA_FILENAME
        frontmatter, body = read_markdown_frontmatter(path)
        if not frontmatter:
            msg = f"No front matter found in {path}"
            raise StoreParseError(msg, path=path, content_type="frontmatter")

        record = validate({**frontmatter, "body": body.strip()}, areas=self._areas)
        return replace(record, stage=stage, artifacts=self._artifact_names(folder))

    def _write(self, folder: Path, record: IdeaRecord) -> None:
        write_markdown_with_frontmatter(
            folder / METADATA_FILENAME, record.to_frontmatter(), record.body
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def entries(self, stage: Stage) -> Iterator[StoreEntry]:
        """Scan a stage folder, yielding loadable and broken entries alike.

        Args:
            stage: The stage to scan.

        Yields:
            One StoreEntry per idea folder, in folder-name order.
        """
        stage_dir = self.stage_dir(stage)
        if not stage_dir.is_dir():
            return

        for child in sorted(stage_dir.iterdir()):
            if not child.is_dir() or child.name.startswith("."):
                continue
            try:
                record = self._load(child, stage)
            except (SchemaError, StoreError) as e:
                yield StoreEntry(folder=child.name, stage=stage, path=child, error=e)
            else:
                yield StoreEntry(
                    folder=child.name, stage=stage, path=child, record=record
                )

    def list(self, stage: Stage) -> Iterator[IdeaRecord]:
        """Lazily iterate over the valid records in a stage.

        Records whose metadata cannot be loaded are skipped and logged;
        integrity checks report them.

        Args:
            stage: The stage to list.

        Yields:
            Records in no guaranteed order.
        """
        for entry in self.entries(stage):
            if entry.record is None:
                self._logger.warning(
                    "idea_unreadable",
                    stage=stage.value,
                    folder=entry.folder,
                    error=str(entry.error),
                )
                continue
            yield entry.record

    def ids(self) -> set[str]:
        """Return every ID present in any stage.

        Both folder names and the IDs declared in readable metadata count.
        """
        found: set[str] = set()
        for stage in Stage:
            for entry in self.entries(stage):
                found.add(entry.folder)
                if entry.record is not None:
                    found.add(entry.record.id)
        return found

    def locate(self, idea_id: str) -> tuple[Stage, ...]:
        """Return the stages holding a record folder for the given ID."""
        return tuple(stage for stage in Stage if self._has_record(stage, idea_id))

    def exists(self, idea_id: str) -> bool:
        """Check whether an idea exists in any stage."""
        return bool(self.locate(idea_id))

    def get(self, idea_id: str, stage: Stage | None = None) -> IdeaRecord:
        """Load a record by ID.

        Args:
            idea_id: The idea ID.
            stage: Stage to read from. If None, the stage is looked up.

        Returns:
            The record, with ``stage`` and ``artifacts`` populated.

        Raises:
            IdeaNotFoundError: If no stage holds the idea.
            SelectionRequiredError: If several stages hold it and no stage
                was given.
            SchemaError: If the stored metadata is invalid.
            StoreError: If the metadata document cannot be read.
        """
        if stage is None:
            stage = self.get_stage(idea_id)
        elif not self._has_record(stage, idea_id):
            msg = f"Idea not found in {stage.value}: {idea_id}"
            raise IdeaNotFoundError(msg, idea_id=idea_id)

        return self._load(self.folder(stage, idea_id), stage)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create(self, record: IdeaRecord) -> IdeaRecord:
        """Store a new record in the stage matching its status.

        The folder is assembled under a hidden staging directory and renamed
        into place, so a half-written idea is never visible.

        Args:
            record: A validated record.

        Returns:
            The stored record.

        Raises:
            SchemaError: If the ID already exists in any stage.
            ConflictError: If the destination folder appeared concurrently.
            StoreIOError: If the folder cannot be written.
        """
        stage = record.status.stage
        with self._lock:
            if record.id in self.ids():
                msg = f"Idea already exists: {record.id}"
                raise SchemaError(
                    msg,
                    kind=SchemaErrorKind.DUPLICATE_ID,
                    field="id",
                    value=record.id,
                    idea_id=record.id,
                )

            staging = self._root / _STAGING_DIR / f"{record.id}-{uuid.uuid4().hex}"
            staging.mkdir(parents=True)
            destination = self.folder(stage, record.id)
            try:
                self._write(staging, record)
                destination.parent.mkdir(parents=True, exist_ok=True)
                _ = staging.rename(destination)
            except OSError as e:
                shutil.rmtree(staging, ignore_errors=True)
                if destination.exists():
                    msg = f"Idea already exists in {stage.value}: {record.id}"
                    raise ConflictError(
                        msg,
                        kind=ConflictKind.DESTINATION_COLLISION,
                        idea_id=record.id,
                        stage=stage.value,
                    ) from e
                msg = f"Failed to create idea folder: {e}"
                raise StoreIOError(
                    msg, path=destination, operation="write", cause=e
                ) from e
            except StoreIOError:
                shutil.rmtree(staging, ignore_errors=True)
                raise

            self._logger.debug("idea_stored", id=record.id, stage=stage.value)
            return self._load(destination, stage)

    def update(self, record: IdeaRecord) -> IdeaRecord:
        """Rewrite a record's metadata in place, without changing stage.

        Args:
            record: The updated record. Its ``stage`` must be set.

        Returns:
            The stored record.

        Raises:
            IdeaNotFoundError: If the record is not in its stage.
            ImmutableRecordError: If ``id`` or ``created`` changed.
            InvalidTransitionError: If the status does not fit the stage.
        """
        if record.stage is None:
            msg = f"Record {record.id} has no stage; use create()"
            raise ValueError(msg)

        with self._lock:
            current = self.get(record.id, record.stage)
            self._check_mutation(current, record, record.stage)
            folder = self.folder(record.stage, record.id)
            self._write(folder, record)
            return self._load(folder, record.stage)

    def _check_mutation(
        self, current: IdeaRecord, updated: IdeaRecord, stage: Stage
    ) -> None:
        if updated.id != current.id:
            msg = f"Idea ID cannot change: {current.id}"
            raise ImmutableRecordError(msg, idea_id=current.id, field="id")
        if updated.created != current.created:
            msg = f"Creation date of {current.id} cannot change"
            raise ImmutableRecordError(msg, idea_id=current.id, field="created")
        if updated.status not in STAGE_STATUSES[stage]:
            msg = (
                f"Status '{updated.status.value}' is not valid in stage "
                f"'{stage.value}'"
            )
            raise InvalidTransitionError(
                msg, idea_id=current.id, status=updated.status.value
            )

    def move_atomic(
        self,
        idea_id: str,
        from_stage: Stage,
        to_stage: Stage,
        mutate: Callable[[IdeaRecord], IdeaRecord],
    ) -> IdeaRecord:
        """Move a record between stages, updating its metadata.

        Either the record ends up fully in ``to_stage`` with the mutated
        metadata and every artifact intact, or it stays fully in
        ``from_stage`` unchanged.

        Args:
            idea_id: The idea ID.
            from_stage: Stage the record is expected in.
            to_stage: Destination stage.
            mutate: Produces the updated record from the current one.

        Returns:
            The record as stored in ``to_stage``.

        Raises:
            ConflictError: ALREADY_MOVED if the record is not in
                ``from_stage``; DESTINATION_COLLISION if ``to_stage`` already
                holds the ID.
            ImmutableRecordError: If ``mutate`` changed ``id`` or ``created``.
            InvalidTransitionError: If the mutated status does not fit
                ``to_stage``, or the stages are equal.
            StoreIOError: If the filesystem operation fails; the record is
                left in ``from_stage``.
        """
        if from_stage is to_stage:
            msg = f"Cannot move {idea_id} within {from_stage.value}"
            raise InvalidTransitionError(msg, idea_id=idea_id)

        with self._lock:
            source = self.folder(from_stage, idea_id)
            destination = self.folder(to_stage, idea_id)

            if not self._has_record(from_stage, idea_id):
                msg = f"Idea {idea_id} is no longer in {from_stage.value}"
                raise ConflictError(
                    msg,
                    kind=ConflictKind.ALREADY_MOVED,
                    idea_id=idea_id,
                    stage=from_stage.value,
                )
            if destination.exists():
                msg = f"Idea {idea_id} already exists in {to_stage.value}"
                raise ConflictError(
                    msg,
                    kind=ConflictKind.DESTINATION_COLLISION,
                    idea_id=idea_id,
                    stage=to_stage.value,
                )

            current = self._load(source, from_stage)
            updated = mutate(current)
            self._check_mutation(current, updated, to_stage)

            # Stage the new metadata inside the folder so it travels with it
            pending_name = f".{METADATA_FILENAME}{_PENDING_SUFFIX}"
            atomic_write(
                source / pending_name,
                render_markdown_with_frontmatter(updated.to_frontmatter(), updated.body),
            )

            destination.parent.mkdir(parents=True, exist_ok=True)
            try:
                _ = source.rename(destination)
            except OSError as e:
                (source / pending_name).unlink(missing_ok=True)
                if isinstance(e, FileNotFoundError):
                    msg = f"Idea {idea_id} is no longer in {from_stage.value}"
                    raise ConflictError(
                        msg,
                        kind=ConflictKind.ALREADY_MOVED,
                        idea_id=idea_id,
                        stage=from_stage.value,
                    ) from e
                if destination.exists():
                    msg = f"Idea {idea_id} already exists in {to_stage.value}"
                    raise ConflictError(
                        msg,
                        kind=ConflictKind.DESTINATION_COLLISION,
                        idea_id=idea_id,
                        stage=to_stage.value,
                    ) from e
                msg = f"Failed to move idea folder: {e}"
                raise StoreIOError(msg, path=source, operation="move", cause=e) from e

            try:
                _ = (destination / pending_name).replace(
                    destination / METADATA_FILENAME
                )
            except OSError as e:
                self._rollback(destination, source, pending_name)
                msg = f"Failed to update metadata for {idea_id}: {e}"
                raise StoreIOError(
                    msg, path=destination, operation="move", cause=e
                ) from e

            self._logger.debug(
                "idea_moved",
                id=idea_id,
                from_stage=from_stage.value,
                to_stage=to_stage.value,
            )
            return self._load(destination, to_stage)

    def _rollback(self, destination: Path, source: Path, pending_name: str) -> None:
        try:
            _ = destination.rename(source)
        except OSError as e:
            msg = (
                f"Failed to restore {source.name} to {source.parent.name}; "
                "manual reconciliation required"
            )
            raise StoreIOError(msg, path=destination, operation="move", cause=e) from e
        (source / pending_name).unlink(missing_ok=True)

    def quarantine(self, idea_id: str, stage: Stage) -> Path:
        """Move one copy of an idea out of every stage without deleting it.

        Used to resolve an ID that exists in several stages. The folder is
        renamed into ``<root>/.orphans/<stage>/``.

        Args:
            idea_id: The idea ID.
            stage: The stage whose copy is removed from view.

        Returns:
            Where the folder now lives.

        Raises:
            IdeaNotFoundError: If the stage has no folder for the ID.
            StoreIOError: If the rename fails.
        """
        with self._lock:
            source = self.folder(stage, idea_id)
            if not source.is_dir():
                msg = f"Idea not found in {stage.value}: {idea_id}"
                raise IdeaNotFoundError(msg, idea_id=idea_id)

            timestamp = pendulum.now("UTC").format("YYYYMMDD-HHmmss")
            target = self._root / _ORPHANS_DIR / stage.value / f"{idea_id}-{timestamp}"
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                _ = source.rename(target)
            except OSError as e:
                msg = f"Failed to quarantine idea folder: {e}"
                raise StoreIOError(msg, path=source, operation="move", cause=e) from e

            self._logger.info(
                "idea_quarantined", id=idea_id, stage=stage.value, path=str(target)
            )
            return target

    # -------------------------------------------------------------------------
    # Artifacts
    # -------------------------------------------------------------------------

    def artifacts(self, idea_id: str) -> tuple[str, ...]:
        """Names of the artifact files attached to an idea.

        Raises:
            IdeaNotFoundError: If the idea does not exist.
        """
        stage = self.get_stage(idea_id)
        return self._artifact_names(self.folder(stage, idea_id))

    def artifact_path(self, idea_id: str, name: str) -> Path:
        """Resolve the path of an artifact inside an idea folder.

        Args:
            idea_id: The idea ID.
            name: Artifact name relative to the idea folder.

        Returns:
            The artifact path (which may not exist yet).

        Raises:
            IdeaNotFoundError: If the idea does not exist.
            ValueError: If the name escapes the folder or names the metadata.
        """
        stage = self.get_stage(idea_id)
        folder = self.folder(stage, idea_id)
        path = folder / name
        relative = Path(name)
        if (
            relative.is_absolute()
            or ".." in relative.parts
            or not relative.parts
            or relative.as_posix() == METADATA_FILENAME
            or any(part.startswith(".") for part in relative.parts)
        ):
            msg = f"Invalid artifact name: {name}"
            raise ValueError(msg)
        return path

    def attach_artifact(
        self,
        idea_id: str,
        name: str,
        content: bytes | str,
        *,
        overwrite: bool = False,
    ) -> Path:
        """Write an artifact file into an idea folder.

        Args:
            idea_id: The idea ID.
            name: Artifact name relative to the idea folder.
            content: File content.
            overwrite: Replace an existing artifact of the same name.

        Returns:
            Path of the written artifact.

        Raises:
            IdeaNotFoundError: If the idea does not exist.
            ValueError: If the name is not a valid artifact name.
            StoreIOError: If the artifact exists and ``overwrite`` is False,
                or the write fails.
        """
        with self._lock:
            path = self.artifact_path(idea_id, name)
            if path.exists() and not overwrite:
                msg = f"Artifact already exists: {name}"
                raise StoreIOError(msg, path=path, operation="write")
            atomic_write(path, content)
            self._logger.debug("artifact_attached", id=idea_id, artifact=name)
            return path

    def get_stage(self, idea_id: str) -> Stage:
        """Return the one stage holding an idea.

        Raises:
            IdeaNotFoundError: If no stage holds the idea.
            SelectionRequiredError: If several stages hold it.
        """
        stages = self.locate(idea_id)
        if not stages:
            msg = f"Idea not found: {idea_id}"
            raise IdeaNotFoundError(msg, idea_id=idea_id)
        if len(stages) > 1:
            names = ", ".join(s.value for s in stages)
            msg = f"Idea {idea_id} exists in several stages: {names}"
            raise SelectionRequiredError(
                msg, candidates=tuple(f"{s.value}/{idea_id}" for s in stages)
            )
        return stages[0]

