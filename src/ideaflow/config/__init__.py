"""ideaflow configuration.

This module provides the public API for ideaflow configuration management,
including loading, validation, and typed access to configuration values.

Example:
    >>> from ideaflow.config import Config
    >>> config = Config.load()
    >>> config.ideas.area_exclusive
    False
"""

from ideaflow.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_AREAS, DEFAULT_CONFIG
from ._discovery import discover_sources, get_user_config_path
from ._load import safe_load_config
from ._loader import deep_merge, parse_env_vars, read_toml_file, set_nested_key
from ._models import (
    EDITABLE_FIELDS,
    Config,
    ConfigSource,
    ConfigSourceName,
    IdeasConfiguration,
    LogFormat,
    LoggingConfig,
    LogLevel,
    PromotePolicy,
    RequirementsConfiguration,
)
from ._validation import (
    ValidationIssue,
    raise_if_validation_errors,
    validate_config,
    validate_source,
)

__all__ = [
    "DEFAULT_AREAS",
    "DEFAULT_CONFIG",
    "EDITABLE_FIELDS",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "IdeasConfiguration",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PromotePolicy",
    "RequirementsConfiguration",
    "ValidationIssue",
    "deep_merge",
    "discover_sources",
    "get_user_config_path",
    "parse_env_vars",
    "raise_if_validation_errors",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
    "validate_config",
    "validate_source",
]
