# pyright: reportAny=false, reportExplicitAny=false
"""Schema validation for idea metadata.

Converts loosely-typed front-matter mappings into IdeaRecord instances,
rejecting missing fields and values outside the closed vocabularies at the
boundary. Everything here is pure: no I/O and no side effects.
"""

import re
import unicodedata
from collections.abc import Collection, Mapping
from datetime import date, datetime
from enum import StrEnum
from typing import Any, Final

import pendulum

from ideaflow.exceptions import SchemaError, SchemaErrorKind
from ideaflow.idea._models import IdeaRecord, IdeaStatus, Implementation, Level

__all__ = ["KNOWN_FIELDS", "REQUIRED_FIELDS", "normalize_id", "validate"]

_SEPARATOR_RUN: Final = re.compile(r"[^a-z0-9]+")

REQUIRED_FIELDS: Final = ("title", "area", "status")

KNOWN_FIELDS: Final = frozenset(
    {
        "id",
        "title",
        "area",
        "implementation",
        "effort",
        "impact",
        "risk",
        "status",
        "files",
        "extensionApi",
        "created",
        "dependsOn",
        "body",
    }
)

# Python-side spellings accepted from callers
_ALIASES: Final = {
    "extension_api": "extensionApi",
    "depends_on": "dependsOn",
}


def normalize_id(text: str) -> str:
    """Derive an idea ID from free text.

    Folds accented letters to their ASCII base letter,
    lower-cases the text and replaces every run of non-alphanumeric
    characters with a single hyphen, trimming hyphens at either end. IDs
    are folder names, so characters with no ASCII form are dropped.

    Args:
        text: Title or user-supplied reference.

    Returns:
        The normalized ID (may be empty if the text has no alphanumerics).
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode()
    return _SEPARATOR_RUN.sub("-", folded.lower()).strip("-")


def canonical_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of raw with Python-side aliases mapped to stored keys."""
    return {_ALIASES.get(key, key): value for key, value in raw.items()}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_enum[E: StrEnum](
    enum_type: type[E], data: Mapping[str, Any], field: str, default: E
) -> E:
    value = data.get(field)
    if value is None:
        return default
    try:
        return enum_type(str(value).strip())
    except ValueError:
        valid = ", ".join(member.value for member in enum_type)
        msg = f"Invalid {field} '{value}'. Valid: {valid}"
        raise SchemaError(
            msg, kind=SchemaErrorKind.INVALID_ENUM, field=field, value=value
        ) from None


def _parse_str_sequence(data: Mapping[str, Any], field: str) -> tuple[str, ...]:
    value = data.get(field)
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(item, str) for item in value
    ):
        msg = f"Field '{field}' must be a list of strings"
        raise SchemaError(
            msg, kind=SchemaErrorKind.INVALID_VALUE, field=field, value=value
        )
    return tuple(value)


def _parse_created(data: Mapping[str, Any], default: date | None) -> date:
    value = data.get("created")
    if value is None:
        if default is None:
            msg = "Missing required field 'created'"
            raise SchemaError(msg, kind=SchemaErrorKind.MISSING_FIELD, field="created")
        return default

    # YAML already turns unquoted ISO dates into date objects
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    parsed: object = None
    if isinstance(value, str):
        try:
            parsed = pendulum.parse(value.strip())
        except ValueError:
            parsed = None
    if not isinstance(parsed, datetime):
        msg = f"Invalid created date '{value}'"
        raise SchemaError(
            msg, kind=SchemaErrorKind.INVALID_VALUE, field="created", value=value
        )
    return date(parsed.year, parsed.month, parsed.day)


def _parse_id(data: Mapping[str, Any], title: str) -> str:
    value = data.get("id")
    if value is None:
        idea_id = normalize_id(title)
        if not idea_id:
            msg = f"Title '{title}' does not produce a usable ID"
            raise SchemaError(
                msg, kind=SchemaErrorKind.INVALID_VALUE, field="title", value=title
            )
        return idea_id

    idea_id = str(value)
    if not idea_id or normalize_id(idea_id) != idea_id:
        msg = f"ID '{idea_id}' is not in normalized form"
        raise SchemaError(
            msg, kind=SchemaErrorKind.INVALID_VALUE, field="id", value=value
        )
    return idea_id


def validate(
    raw: Mapping[str, Any],
    *,
    areas: Collection[str],
    existing_ids: Collection[str] = (),
    created: date | None = None,
) -> IdeaRecord:
    """Validate raw idea metadata and build an IdeaRecord.

    Args:
        raw: Front-matter mapping (optionally with a ``body`` key).
        areas: The configured area vocabulary.
        existing_ids: IDs already present in any stage. A record whose ID is
            among them is rejected as a duplicate.
        created: Creation date to use when ``raw`` has none.

    Returns:
        The validated record. Its ``stage`` is None; stores set it on load.

    Raises:
        SchemaError: If a required field is missing, an enum field holds a
            value outside its vocabulary, a payload field has the wrong
            shape, or the ID collides with an existing one.
    """
    data = canonical_fields(raw)

    for key in data:
        if key not in KNOWN_FIELDS:
            msg = f"Unknown field '{key}'"
            raise SchemaError(msg, kind=SchemaErrorKind.INVALID_VALUE, field=key)

    for required in REQUIRED_FIELDS:
        if _is_blank(data.get(required)):
            msg = f"Missing required field '{required}'"
            raise SchemaError(
                msg, kind=SchemaErrorKind.MISSING_FIELD, field=required
            )

    title = str(data["title"]).strip()
    idea_id = _parse_id(data, title)

    area = str(data["area"]).strip()
    if area not in areas:
        valid = ", ".join(sorted(areas))
        msg = f"Invalid area '{area}'. Valid: {valid}"
        raise SchemaError(
            msg,
            kind=SchemaErrorKind.INVALID_ENUM,
            field="area",
            value=area,
            idea_id=idea_id,
        )

    status = _parse_enum(IdeaStatus, data, "status", IdeaStatus.IDEA)
    implementation = _parse_enum(
        Implementation, data, "implementation", Implementation.EXTENSION
    )
    effort = _parse_enum(Level, data, "effort", Level.MEDIUM)
    impact = _parse_enum(Level, data, "impact", Level.MEDIUM)
    risk = _parse_enum(Level, data, "risk", Level.MEDIUM)

    files = _parse_str_sequence(data, "files")
    depends_on = tuple(
        sorted(
            {normalize_id(dep) for dep in _parse_str_sequence(data, "dependsOn")}
            - {idea_id, ""}
        )
    )

    extension_api = data.get("extensionApi")
    if extension_api is None:
        extension_api = ""
    if not isinstance(extension_api, str):
        msg = "Field 'extensionApi' must be a string"
        raise SchemaError(
            msg,
            kind=SchemaErrorKind.INVALID_VALUE,
            field="extensionApi",
            value=extension_api,
        )

    body = data.get("body") or ""
    if not isinstance(body, str):
        msg = "Field 'body' must be a string"
        raise SchemaError(msg, kind=SchemaErrorKind.INVALID_VALUE, field="body")

    created_date = _parse_created(data, created)

    if idea_id in existing_ids:
        msg = f"Idea already exists: {idea_id}"
        raise SchemaError(
            msg,
            kind=SchemaErrorKind.DUPLICATE_ID,
            field="id",
            value=idea_id,
            idea_id=idea_id,
        )

    return IdeaRecord(
        id=idea_id,
        title=title,
        area=area,
        status=status,
        created=created_date,
        implementation=implementation,
        effort=effort,
        impact=impact,
        risk=risk,
        files=files,
        extension_api=extension_api,
        depends_on=depends_on,
        body=body,
    )
