"""Idea lifecycle tracking.

Ideas live as folders in a stage store partitioned into ``backlog``,
``active`` and ``done``. The lifecycle engine is the only component that
moves them between stages.

Example:
    >>> from ideaflow.idea import LifecycleEngine, StageStore
    >>> store = StageStore("ideas", areas=["global"])
    >>> store.initialize()
    >>> engine = LifecycleEngine(store)
    >>> record = engine.create({"title": "Color Themes", "area": "global"})
    >>> record.id
    'color-themes'
"""

from ideaflow.idea._driver import IdeaDriver, Result, error_tag
from ideaflow.idea._engine import HISTORY_FILENAME, LifecycleEngine
from ideaflow.idea._models import (
    METADATA_FILENAME,
    STAGE_STATUSES,
    IdeaRecord,
    IdeaStatus,
    Implementation,
    IntegrityKind,
    IntegrityWarning,
    Level,
    Stage,
    Transition,
)
from ideaflow.idea._query import QueryService
from ideaflow.idea._schema import normalize_id, validate
from ideaflow.idea._store import StageStore, StoreEntry

__all__ = [
    "HISTORY_FILENAME",
    "METADATA_FILENAME",
    "STAGE_STATUSES",
    "IdeaDriver",
    "IdeaRecord",
    "IdeaStatus",
    "Implementation",
    "IntegrityKind",
    "IntegrityWarning",
    "LifecycleEngine",
    "Level",
    "QueryService",
    "Result",
    "Stage",
    "StageStore",
    "StoreEntry",
    "Transition",
    "error_tag",
    "normalize_id",
    "validate",
]
