"""Configuration models.

This module provides Pydantic models for ideaflow configuration sections
and the main Config container class.
"""

from ideaflow.config._models._common import (
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from ideaflow.config._models._config import Config
from ideaflow.config._models._ideas import (
    EDITABLE_FIELDS,
    IdeasConfiguration,
    PromotePolicy,
    RequirementsConfiguration,
)
from ideaflow.config._models._logging import LoggingConfig

__all__ = [
    "EDITABLE_FIELDS",
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "IdeasConfiguration",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PromotePolicy",
    "RequirementsConfiguration",
]
