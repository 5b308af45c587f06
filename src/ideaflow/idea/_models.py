"""Data models for idea records.

This module provides the closed vocabularies used in idea metadata, the
IdeaRecord dataclass, and the diagnostics produced by integrity checks.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Final

__all__ = [
    "METADATA_FILENAME",
    "STAGE_STATUSES",
    "IdeaRecord",
    "IdeaStatus",
    "Implementation",
    "IntegrityKind",
    "IntegrityWarning",
    "Level",
    "Stage",
    "Transition",
]

METADATA_FILENAME: Final = "idea.md"


class Stage(StrEnum):
    """Physical partitions of the store."""

    BACKLOG = "backlog"
    ACTIVE = "active"
    DONE = "done"


class IdeaStatus(StrEnum):
    """Declared lifecycle status of an idea."""

    IDEA = "idea"
    READY = "ready"
    ACTIVE = "active"
    DONE = "done"

    @property
    def stage(self) -> Stage:
        """The stage a record with this status must live in."""
        if self in (IdeaStatus.IDEA, IdeaStatus.READY):
            return Stage.BACKLOG
        return Stage(self.value)


class Implementation(StrEnum):
    """How an idea would be delivered; informational only."""

    EXTENSION = "extension"
    CORE = "core"
    HYBRID = "hybrid"


class Level(StrEnum):
    """Ordinal rating used for effort, impact and risk."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


STAGE_STATUSES: Final[dict[Stage, frozenset[IdeaStatus]]] = {
    Stage.BACKLOG: frozenset({IdeaStatus.IDEA, IdeaStatus.READY}),
    Stage.ACTIVE: frozenset({IdeaStatus.ACTIVE}),
    Stage.DONE: frozenset({IdeaStatus.DONE}),
}


@dataclass(frozen=True, slots=True)
class IdeaRecord:
    """A single trackable idea.

    Attributes:
        id: Normalized identifier, unique across all stages.
        title: Human-readable title.
        area: Area tag from the configured vocabulary.
        status: Declared lifecycle status.
        created: Creation date, never modified after creation.
        implementation: Delivery classification.
        effort: Estimated effort.
        impact: Estimated impact.
        risk: Estimated risk.
        files: Ordered file paths touched by the idea.
        extension_api: Free-form note on the extension API involved.
        depends_on: IDs of ideas this one depends on (advisory).
        body: Markdown body of the metadata document.
        stage: Stage the record was loaded from, None if not yet stored.
        artifacts: Names of the other files in the idea folder.
    """

    id: str
    title: str
    area: str
    status: IdeaStatus
    created: date
    implementation: Implementation = Implementation.EXTENSION
    effort: Level = Level.MEDIUM
    impact: Level = Level.MEDIUM
    risk: Level = Level.MEDIUM
    files: tuple[str, ...] = field(default_factory=tuple)
    extension_api: str = ""
    depends_on: tuple[str, ...] = field(default_factory=tuple)
    body: str = ""
    stage: Stage | None = None
    artifacts: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_consistent(self) -> bool:
        """Whether the declared status matches the stage the record lives in."""
        return self.stage is None or self.status in STAGE_STATUSES[self.stage]

    def to_frontmatter(self) -> dict[str, object]:
        """Convert this record to a front-matter dictionary for serialization.

        Returns:
            Dictionary suitable for YAML serialization. Stage and artifact
            names are physical facts and are not persisted.
        """
        return {
            "id": self.id,
            "title": self.title,
            "area": self.area,
            "implementation": self.implementation.value,
            "effort": self.effort.value,
            "impact": self.impact.value,
            "risk": self.risk.value,
            "status": self.status.value,
            "files": list(self.files),
            "extensionApi": self.extension_api,
            "created": self.created.isoformat(),
            "dependsOn": list(self.depends_on),
        }


@dataclass(frozen=True, slots=True)
class Transition:
    """Outcome of a stage transition.

    Attributes:
        record: The record as stored after the transition.
        from_stage: Stage the record left.
        to_stage: Stage the record now lives in.
        warnings: Advisory messages produced while transitioning.
    """

    record: IdeaRecord
    from_stage: Stage
    to_stage: Stage
    warnings: tuple[str, ...] = ()


class IntegrityKind(StrEnum):
    """Kinds of disagreement between the store and the metadata."""

    STATUS_MISMATCH = "status_mismatch"
    DUPLICATE_ID = "duplicate_id"
    INVALID_METADATA = "invalid_metadata"
    FOLDER_MISMATCH = "folder_mismatch"


@dataclass(frozen=True, slots=True)
class IntegrityWarning:
    """Diagnostic for a record whose placement and metadata disagree.

    Attributes:
        kind: What is inconsistent.
        idea_id: The affected idea (the folder name for unreadable records).
        stages: Stages in which the record was found.
        message: Human-readable description.
    """

    kind: IntegrityKind
    idea_id: str
    stages: tuple[Stage, ...]
    message: str
