"""Read-only queries over the stage store."""

from collections import defaultdict
from collections.abc import Iterable

from ideaflow.idea._models import (
    IdeaRecord,
    IdeaStatus,
    IntegrityKind,
    IntegrityWarning,
    Stage,
)
from ideaflow.idea._store import StageStore

__all__ = ["QueryService"]


def _sort_key(record: IdeaRecord) -> tuple[str, str]:
    return (record.created.isoformat(), record.id)


class QueryService:
    """Filtered, ordered views of the store and its integrity diagnostics.

    Nothing here mutates the store.
    """

    __slots__ = ("_store",)

    def __init__(self, store: StageStore) -> None:
        self._store = store

    @property
    def store(self) -> StageStore:
        """The store being queried."""
        return self._store

    def list_by_stage(self, stage: Stage) -> list[IdeaRecord]:
        """Records in one stage, ordered by creation date then ID."""
        return sorted(self._store.list(stage), key=_sort_key)

    def list_by_area(self, area: str) -> list[IdeaRecord]:
        """Records with the given area across every stage."""
        return self.list(area=area)

    def active(self) -> list[IdeaRecord]:
        """Records currently in the active stage."""
        return self.list_by_stage(Stage.ACTIVE)

    def find_inconsistent(self) -> list[IntegrityWarning]:
        """Report every disagreement between placement and metadata.

        Returns:
            Warnings ordered by idea ID then kind. Reports IDs found in
            several stages, statuses that do not fit the stage, folders whose
            metadata cannot be loaded, and folders named differently from the
            ID their metadata declares.
        """
        warnings: list[IntegrityWarning] = []
        seen: defaultdict[str, list[Stage]] = defaultdict(list)

        for stage in Stage:
            for entry in self._store.entries(stage):
                if entry.record is None:
                    warnings.append(
                        IntegrityWarning(
                            kind=IntegrityKind.INVALID_METADATA,
                            idea_id=entry.folder,
                            stages=(stage,),
                            message=f"{stage.value}/{entry.folder}: {entry.error}",
                        )
                    )
                    seen[entry.folder].append(stage)
                    continue

                record = entry.record
                if record.id != entry.folder:
                    warnings.append(
                        IntegrityWarning(
                            kind=IntegrityKind.FOLDER_MISMATCH,
                            idea_id=entry.folder,
                            stages=(stage,),
                            message=(
                                f"{stage.value}/{entry.folder} declares id "
                                f"'{record.id}'"
                            ),
                        )
                    )
                if not record.is_consistent:
                    warnings.append(
                        IntegrityWarning(
                            kind=IntegrityKind.STATUS_MISMATCH,
                            idea_id=entry.folder,
                            stages=(stage,),
                            message=(
                                f"{entry.folder} has status "
                                f"'{record.status.value}' but lives in "
                                f"{stage.value}"
                            ),
                        )
                    )
                seen[entry.folder].append(stage)

        for idea_id, stages in seen.items():
            if len(stages) > 1:
                names = ", ".join(s.value for s in stages)
                warnings.append(
                    IntegrityWarning(
                        kind=IntegrityKind.DUPLICATE_ID,
                        idea_id=idea_id,
                        stages=tuple(stages),
                        message=f"{idea_id} exists in several stages: {names}",
                    )
                )

        return sorted(warnings, key=lambda w: (w.idea_id, w.kind.value))

    def warnings_for(self, idea_id: str) -> list[IntegrityWarning]:
        """Integrity warnings affecting one idea."""
        return [w for w in self.find_inconsistent() if w.idea_id == idea_id]

    def unmet_dependencies(self, record: IdeaRecord) -> list[str]:
        """IDs in the record's dependsOn that are not yet done.

        Unknown IDs count as unmet.
        """
        done = {r.id for r in self._store.list(Stage.DONE)}
        return [dep for dep in record.depends_on if dep not in done]

    def list(
        self,
        stage: Stage | None = None,
        area: str | None = None,
        status: IdeaStatus | None = None,
    ) -> list[IdeaRecord]:
        """List records matching every given filter.

        Args:
            stage: Only records physically in this stage.
            area: Only records with this area tag.
            status: Only records declaring this status.

        Returns:
            Matching records ordered by creation date then ID.
        """
        stages: Iterable[Stage] = (stage,) if stage is not None else Stage
        records = [
            record
            for current in stages
            for record in self._store.list(current)
            if (area is None or record.area == area)
            and (status is None or record.status is status)
        ]
        return sorted(records, key=_sort_key)
