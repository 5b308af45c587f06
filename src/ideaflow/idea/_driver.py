"""Request/response facade over the lifecycle engine.

The driver is the entry point for automated callers (such as a coding
agent). Every request returns a Result instead of raising, so a caller can
inspect the outcome and decide what to do next without handling exceptions.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from ideaflow.exceptions import (
    ConflictError,
    IdeaflowError,
    IdeaNotFoundError,
    ImmutableRecordError,
    IntegrityError,
    InvalidTransitionError,
    SchemaError,
    SelectionRequiredError,
    StoreError,
)
from ideaflow.idea._engine import LifecycleEngine
from ideaflow.idea._models import IdeaRecord, IntegrityWarning, Stage, Transition

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

__all__ = ["IdeaDriver", "Result", "error_tag"]

_DRIVER_ACTOR: Final = "driver"


def error_tag(error: IdeaflowError) -> str:
    """Short machine-readable tag for a domain error.

    Schema and conflict errors include their kind, e.g.
    ``schema:duplicate_id`` or ``conflict:already_moved``.
    """
    match error:
        case SchemaError():
            return f"schema:{error.kind.value}"
        case ConflictError():
            return f"conflict:{error.kind.value}"
        case IdeaNotFoundError():
            return "not_found"
        case InvalidTransitionError():
            return "invalid_transition"
        case ImmutableRecordError():
            return "immutable"
        case SelectionRequiredError():
            return "selection_required"
        case IntegrityError():
            return "integrity"
        case StoreError():
            return "store"
        case _:
            return "error"


@dataclass(frozen=True)
class Result[T]:
    """Outcome of a driver request.

    Exactly one of ``value`` and ``error`` is meaningful: ``ok`` tells which.

    Attributes:
        value: The request's result on success.
        warnings: Advisory messages produced on success.
        error: The domain error on failure.
    """

    value: T | None = None
    warnings: tuple[str, ...] = ()
    error: IdeaflowError | None = None

    @property
    def ok(self) -> bool:
        """Whether the request succeeded."""
        return self.error is None

    @property
    def tag(self) -> str | None:
        """Tag of the error, or None on success."""
        return error_tag(self.error) if self.error is not None else None

    @property
    def candidates(self) -> tuple[str, ...]:
        """Choices offered when the caller must pick one idea."""
        if isinstance(self.error, SelectionRequiredError):
            return self.error.candidates
        return ()

    def unwrap(self) -> T:
        """Return the value, raising the error if the request failed."""
        if self.error is not None:
            raise self.error
        return self.value  # pyright: ignore[reportReturnType]


class IdeaDriver:
    """Submits lifecycle requests to the engine and reports the outcome."""

    __slots__ = ("_actor", "_engine", "_logger")

    def __init__(
        self,
        engine: LifecycleEngine,
        *,
        actor: str = _DRIVER_ACTOR,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        self._engine = engine
        self._actor = actor
        self._logger = logger

    @property
    def engine(self) -> LifecycleEngine:
        """The engine requests are submitted to."""
        return self._engine

    def _call[T](
        self,
        request: str,
        operation: Callable[[], T],
        warnings: Callable[[T], tuple[str, ...]] | None = None,
    ) -> Result[T]:
        try:
            value = operation()
        except IdeaflowError as e:
            if self._logger is not None:
                self._logger.info(
                    "request_failed",
                    request=request,
                    error=error_tag(e),
                    message=str(e),
                )
            return Result(error=e)

        return Result(value=value, warnings=warnings(value) if warnings else ())

    def request_create(self, fields: Mapping[str, Any]) -> Result[IdeaRecord]:
        """Create an idea in the backlog."""
        return self._call(
            "create", lambda: self._engine.create(fields, actor=self._actor)
        )

    def request_ready(self, idea_id: str) -> Result[IdeaRecord]:
        """Mark a backlog idea ready."""
        return self._call(
            "ready", lambda: self._engine.mark_ready(idea_id, actor=self._actor)
        )

    def request_promote(self, idea_id: str) -> Result[Transition]:
        """Promote an idea to active."""
        return self._call(
            "promote",
            lambda: self._engine.promote(idea_id, actor=self._actor),
            lambda transition: transition.warnings,
        )

    def request_park(self, idea_id: str | None = None) -> Result[Transition]:
        """Park an active idea; None targets the only active idea."""
        return self._call(
            "park",
            lambda: self._engine.park(idea_id, actor=self._actor),
            lambda transition: transition.warnings,
        )

    def request_complete(self, idea_id: str | None = None) -> Result[Transition]:
        """Complete an active idea; None targets the only active idea."""
        return self._call(
            "complete",
            lambda: self._engine.complete(idea_id, actor=self._actor),
            lambda transition: transition.warnings,
        )

    def request_edit(
        self, idea_id: str, updates: Mapping[str, Any]
    ) -> Result[IdeaRecord]:
        """Edit an idea's metadata."""
        return self._call(
            "edit", lambda: self._engine.edit(idea_id, updates, actor=self._actor)
        )

    def request_repair(
        self, idea_id: str, keep: Stage | None = None
    ) -> Result[IdeaRecord]:
        """Repair an idea flagged by integrity checks."""
        return self._call(
            "repair",
            lambda: self._engine.repair(idea_id, keep=keep, actor=self._actor),
        )

    def request_list(
        self, stage: Stage | None = None, area: str | None = None
    ) -> Result[list[IdeaRecord]]:
        """List ideas ordered by creation date, optionally filtered."""
        return self._call(
            "list", lambda: self._engine.query.list(stage=stage, area=area)
        )

    def request_check(self) -> Result[list[IntegrityWarning]]:
        """Report integrity warnings across the store.

        The warnings are the value of the result, not its ``warnings``.
        """
        return self._call("check", self._engine.query.find_inconsistent)
