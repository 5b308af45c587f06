"""Ideas configuration model.

This module provides the IdeasConfiguration Pydantic model, which controls
where the stage store lives, the area vocabulary, and lifecycle policies.
"""

from enum import StrEnum
from typing import ClassVar, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ideaflow.config._defaults import DEFAULT_AREAS

EditableField = Literal[
    "title",
    "area",
    "implementation",
    "effort",
    "impact",
    "risk",
    "files",
    "extensionApi",
    "dependsOn",
    "body",
]

EDITABLE_FIELDS: frozenset[str] = frozenset(get_args(EditableField))

# The metadata document every idea folder holds
RESERVED_ARTIFACT_NAME = "idea.md"


class PromotePolicy(StrEnum):
    """What to do when promoting an idea that was never marked ready."""

    WARN = "warn"
    ALLOW = "allow"
    DENY = "deny"


class RequirementsConfiguration(BaseModel):
    """Requirements document attached to an idea when it is promoted."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    generate: bool = Field(
        default=True,
        description="Attach a blank requirements document on promotion.",
    )
    filename: str = Field(
        default="prd.md",
        pattern=r"^[^./\\][^/\\]*$",
        description="Artifact name of the requirements document.",
    )

    @field_validator("filename")
    @classmethod
    def _check_filename(cls, value: str) -> str:
        if value == RESERVED_ARTIFACT_NAME:
            msg = f"'{value}' is reserved for idea metadata"
            raise ValueError(msg)
        return value


class IdeasConfiguration(BaseModel):
    """Ideas configuration section.

    Controls the store location, the area vocabulary and lifecycle policies.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    root: str = Field(
        default="ideas",
        min_length=1,
        description="Store directory, relative to the project root.",
    )
    areas: list[str] = Field(
        default_factory=lambda: list(DEFAULT_AREAS),
        description="Base area vocabulary.",
    )
    extend_areas: list[str] = Field(
        default_factory=list,
        description="Project-specific areas added to the base vocabulary.",
    )
    area_exclusive: bool = Field(
        default=False,
        description="Allow at most one active idea per area.",
    )
    promote_from_idea: PromotePolicy = Field(
        default=PromotePolicy.WARN,
        description="Whether an idea can be promoted before it is marked ready.",
    )
    active_editable_fields: list[EditableField] = Field(
        default_factory=lambda: ["files"],
        description="Fields that may be edited while an idea is active.",
    )
    requirements: RequirementsConfiguration = Field(
        default_factory=RequirementsConfiguration
    )

    @property
    def all_areas(self) -> tuple[str, ...]:
        """Base areas followed by extended areas, without duplicates."""
        return tuple(dict.fromkeys([*self.areas, *self.extend_areas]))
