"""Ideaflow exceptions."""

from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ideaflow.idea._models import IntegrityWarning


class IdeaflowError(Exception):
    """Base exception for ideaflow errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(IdeaflowError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Store I/O Exceptions
# =============================================================================


class StoreError(IdeaflowError):
    """Base exception for stage store I/O errors."""


class StoreIOError(StoreError):
    """Raised when a store file cannot be read or written.

    Attributes:
        path: Path to the file that caused the error.
        operation: The operation that failed ("read", "write", "append", "move").
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and I/O context.

        Args:
            message: Human-readable error message.
            path: Path to the file that caused the error.
            operation: The operation that failed.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.path: Path = path
        self.operation: str = operation
        self.cause: Exception | None = cause


class StoreParseError(StoreError):
    """Raised when a metadata document cannot be parsed.

    Attributes:
        path: Path to the file that caused the error.
        line: Line number where the parse error occurred.
        content_type: The content type that failed to parse.
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        line: int | None = None,
        content_type: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and parse context."""
        super().__init__(message)
        self.path: Path = path
        self.line: int | None = line
        self.content_type: str = content_type
        self.cause: Exception | None = cause


# =============================================================================
# Idea Exceptions
# =============================================================================


class SchemaErrorKind(StrEnum):
    """Reasons a metadata document fails schema validation."""

    MISSING_FIELD = "missing_field"
    INVALID_ENUM = "invalid_enum"
    DUPLICATE_ID = "duplicate_id"
    INVALID_VALUE = "invalid_value"


class ConflictKind(StrEnum):
    """Reasons a stage transition conflicts with the current store state."""

    ALREADY_MOVED = "already_moved"
    DESTINATION_COLLISION = "destination_collision"
    AREA_OCCUPIED = "area_occupied"


class IdeaError(IdeaflowError):
    """Base exception for idea lifecycle errors."""


class IdeaNotFoundError(IdeaError, KeyError):
    """Raised when an idea cannot be found in any stage.

    Attributes:
        idea_id: The ID of the idea that was not found.
    """

    def __init__(self, message: str, *, idea_id: str | None = None) -> None:
        """Initialize with error message and idea context.

        Args:
            message: Human-readable error message.
            idea_id: The ID of the idea that was not found.
        """
        super().__init__(message)
        self.idea_id: str | None = idea_id

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message verbatim
        return str(self.args[0]) if self.args else ""


class SchemaError(IdeaError, ValueError):
    """Raised when idea metadata fails schema validation.

    Attributes:
        kind: Why validation failed.
        field: The field that failed validation, if any.
        value: The offending value, if any.
        idea_id: The ID of the idea involved, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: SchemaErrorKind,
        field: str | None = None,
        value: Any = None,  # pyright: ignore[reportAny,reportExplicitAny]
        idea_id: str | None = None,
    ) -> None:
        """Initialize with error message and validation context.

        Args:
            message: Human-readable error message.
            kind: Why validation failed.
            field: The field that failed validation.
            value: The invalid value.
            idea_id: The ID of the idea involved.
        """
        super().__init__(message)
        self.kind: SchemaErrorKind = kind
        self.field: str | None = field
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.idea_id: str | None = idea_id


class ConflictError(IdeaError):
    """Raised when a move conflicts with the current contents of the store.

    Conflicts are never retried automatically; they are surfaced to the
    operator for manual reconciliation.

    Attributes:
        kind: The kind of conflict.
        idea_id: The ID of the idea being moved.
        stage: The stage involved in the conflict, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ConflictKind,
        idea_id: str | None = None,
        stage: str | None = None,
    ) -> None:
        """Initialize with error message and conflict context."""
        super().__init__(message)
        self.kind: ConflictKind = kind
        self.idea_id: str | None = idea_id
        self.stage: str | None = stage


class InvalidTransitionError(IdeaError):
    """Raised when a transition does not apply to the idea's current status.

    Attributes:
        idea_id: The ID of the idea.
        status: The idea's current status.
        operation: The requested operation.
    """

    def __init__(
        self,
        message: str,
        *,
        idea_id: str | None = None,
        status: str | None = None,
        operation: str | None = None,
    ) -> None:
        """Initialize with error message and transition context."""
        super().__init__(message)
        self.idea_id: str | None = idea_id
        self.status: str | None = status
        self.operation: str | None = operation


class ImmutableRecordError(IdeaError):
    """Raised when an edit targets a field that cannot change.

    Attributes:
        idea_id: The ID of the idea.
        field: The field that cannot be edited.
    """

    def __init__(
        self,
        message: str,
        *,
        idea_id: str | None = None,
        field: str | None = None,
    ) -> None:
        """Initialize with error message and edit context."""
        super().__init__(message)
        self.idea_id: str | None = idea_id
        self.field: str | None = field


class SelectionRequiredError(IdeaError):
    """Raised when an operation matches several ideas and the caller must choose.

    Attributes:
        candidates: IDs of the ideas eligible for the operation.
    """

    def __init__(self, message: str, *, candidates: tuple[str, ...]) -> None:
        """Initialize with error message and the eligible candidates."""
        super().__init__(message)
        self.candidates: tuple[str, ...] = candidates


class IntegrityError(IdeaError):
    """Raised when an idea is flagged by an integrity check and must be repaired.

    Attributes:
        idea_id: The ID of the flagged idea.
        warnings: The integrity warnings affecting the idea.
    """

    def __init__(
        self,
        message: str,
        *,
        idea_id: str,
        warnings: "tuple[IntegrityWarning, ...]",
    ) -> None:
        """Initialize with error message and integrity context."""
        super().__init__(message)
        self.idea_id: str = idea_id
        self.warnings: "tuple[IntegrityWarning, ...]" = warnings
