# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration container with typed access.

This module provides the main Config class that serves as the primary
interface for accessing ideaflow configuration values.
"""

from pathlib import Path
from typing import Any, ClassVar, Self, TypeVar, overload

import tomli_w
from pydantic import BaseModel, ConfigDict, PrivateAttr

from ideaflow.config._defaults import DEFAULT_CONFIG
from ideaflow.config._loader import (
    copy_value,
    deep_merge,
    parse_env_vars,
    read_toml_file,
)
from ideaflow.config._models._common import ConfigSource, ConfigSourceName
from ideaflow.config._models._ideas import IdeasConfiguration
from ideaflow.config._models._logging import LoggingConfig

T = TypeVar("T")


def _parse_sections(
    merged: dict[str, Any],
) -> tuple[IdeasConfiguration, LoggingConfig]:
    """Parse the typed sections out of a validated configuration dictionary.

    Args:
        merged: Complete configuration dictionary.

    Returns:
        Tuple of (ideas section, logging section).
    """
    return (
        IdeasConfiguration.model_validate(merged.get("ideas", {})),
        LoggingConfig.model_validate(merged.get("logging", {})),
    )


class Config(BaseModel):
    """Configuration container with typed access.

    This class provides immutable, type-safe access to ideaflow
    configuration. Use factory methods to create instances rather than the
    constructor.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    _data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())
    _ideas: IdeasConfiguration = PrivateAttr(default_factory=IdeasConfiguration)
    _logging: LoggingConfig = PrivateAttr(default_factory=LoggingConfig)

    def __init__(
        self,
        *,
        _data: dict[str, Any] | None = None,
        _sources: tuple[ConfigSource, ...] = (),
        _ideas: IdeasConfiguration | None = None,
        _logging: LoggingConfig | None = None,
    ) -> None:
        """Initialize configuration container.

        This constructor is intended for internal use. Use factory methods
        like from_dict(), from_file(), or load() to create Config instances.

        Args:
            _data: The complete merged configuration dictionary.
            _sources: Sources that contributed to this configuration.
            _ideas: Parsed ideas configuration section.
            _logging: Parsed logging configuration section.
        """
        super().__init__()
        self._data = _data if _data is not None else copy_value(DEFAULT_CONFIG)
        self._sources = _sources
        self._ideas = _ideas if _ideas is not None else IdeasConfiguration()
        self._logging = _logging if _logging is not None else LoggingConfig()

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        validate: bool = True,
    ) -> Self:
        """Create configuration from a dictionary.

        Args:
            data: Dictionary of configuration values.
            validate: Whether to validate the configuration.

        Returns:
            Configuration object from the dictionary.

        Raises:
            ConfigValidationError: If validation fails (when validate=True).
        """
        # Deferred import to avoid circular dependency
        from ideaflow.config._validation import (  # noqa: PLC0415
            raise_if_validation_errors,
            validate_config,
        )

        merged = deep_merge(DEFAULT_CONFIG, data)

        if validate:
            issues = validate_config(merged)
            raise_if_validation_errors(issues)

        ideas_config, logging_config = _parse_sections(merged)
        return cls(
            _data=merged,
            _sources=(),
            _ideas=ideas_config,
            _logging=logging_config,
        )

    @classmethod
    def from_file(
        cls,
        path: Path,
        *,
        validate: bool = True,
    ) -> Self:
        """Load configuration from a specific file.

        Args:
            path: Path to the TOML config file.
            validate: Whether to validate the loaded config.

        Returns:
            Configuration object from the specified file only.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        from ideaflow.config._validation import (  # noqa: PLC0415
            raise_if_validation_errors,
            validate_config,
        )

        data = read_toml_file(path)

        # A single explicit file is treated as the project source
        source = ConfigSource(
            name=ConfigSourceName.PROJECT,
            path=path,
            exists=True,
            values=data,
        )

        merged = deep_merge(DEFAULT_CONFIG, data)

        if validate:
            issues = validate_config(merged)
            raise_if_validation_errors(issues, source=str(path))

        ideas_config, logging_config = _parse_sections(merged)
        return cls(
            _data=merged,
            _sources=(source,),
            _ideas=ideas_config,
            _logging=logging_config,
        )

    @classmethod
    def load(
        cls,
        *,
        project_root: Path | None = None,
        include_env: bool = True,
        include_cli: bool = False,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Discovers all configuration sources and merges them in precedence
        order (defaults -> user -> project -> local -> env -> cli).

        Args:
            project_root: Project root directory. If None, auto-detect by
                searching upward for a `.ideaflow/` directory.
            include_env: Include environment variables as a source.
            include_cli: Include CLI overrides.
            cli_overrides: Dict of CLI argument overrides. Only used if
                include_cli is True.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If config files cannot be loaded.
            ConfigValidationError: If merged config fails validation.
        """
        from ideaflow.config._discovery import discover_sources  # noqa: PLC0415
        from ideaflow.config._validation import (  # noqa: PLC0415
            raise_if_validation_errors,
            validate_config,
            validate_source,
        )

        sources = discover_sources(
            project_root=project_root,
            include_env=include_env,
            include_cli=include_cli,
            cli_overrides=cli_overrides,
        )

        # Sources are discovered highest-to-lowest, merge lowest first
        merged: dict[str, Any] = {}
        loaded_sources: list[ConfigSource] = []

        for source in reversed(sources):
            values: dict[str, Any] = {}

            if source.name == ConfigSourceName.DEFAULT:
                values = source.values
            elif source.name == ConfigSourceName.ENV:
                if include_env:
                    values = parse_env_vars()
            elif source.name == ConfigSourceName.CLI:
                if include_cli and cli_overrides:
                    values = cli_overrides
            elif source.path and source.exists:
                values = read_toml_file(source.path)

            loaded_source = ConfigSource(
                name=source.name,
                path=source.path,
                exists=source.exists or bool(values),
                values=values,
            )
            loaded_sources.append(loaded_source)

            # Report the offending source rather than the merged result
            raise_if_validation_errors(validate_source(loaded_source))

            if values:
                merged = deep_merge(merged, values)

        issues = validate_config(merged)
        raise_if_validation_errors(issues)

        ideas_config, logging_config = _parse_sections(merged)
        return cls(
            _data=merged,
            _sources=tuple(reversed(loaded_sources)),
            _ideas=ideas_config,
            _logging=logging_config,
        )

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the sources that contributed to this configuration.

        Returns:
            List of ConfigSource objects in precedence order.
        """
        return list(self._sources)

    @property
    def logging(self) -> LoggingConfig:
        """Return the logging configuration section."""
        return self._logging

    @property
    def ideas(self) -> IdeasConfiguration:
        """Return the ideas configuration section."""
        return self._ideas

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get(self, key: str, default: T) -> T: ...

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., "ideas.requirements.filename").
            default: Default value if key not found.

        Returns:
            The configuration value, or default if not found.

        Examples:
            >>> config.get("logging.level")
            'info'
            >>> config.get("nonexistent", "fallback")
            'fallback'
        """
        current: Any = self._data

        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]

        return current

    def to_dict(self, *, include_defaults: bool = True) -> dict[str, Any]:
        """Convert configuration to a dictionary.

        Args:
            include_defaults: Whether to include default values. If False,
                only values that differ from defaults are included.

        Returns:
            Dictionary representation of the configuration.
        """
        if include_defaults:
            return copy_value(self._data)

        return _diff_from_defaults(self._data, DEFAULT_CONFIG)

    def to_toml(self, *, include_defaults: bool = False) -> str:
        """Convert configuration to a TOML string.

        Args:
            include_defaults: Whether to include default values. If False,
                only values that differ from defaults are included.

        Returns:
            TOML string representation of the configuration.
        """
        return tomli_w.dumps(self.to_dict(include_defaults=include_defaults))

    def store_root(self, project_root: Path) -> Path:
        """Resolve the stage store directory for a project.

        Args:
            project_root: The project root directory.

        Returns:
            ``ideas.root`` resolved against the project root (absolute
            values are used as-is).
        """
        root = Path(self._ideas.root).expanduser()
        return root if root.is_absolute() else project_root / root


def _diff_from_defaults(
    data: dict[str, Any],
    defaults: dict[str, Any],
) -> dict[str, Any]:
    """Extract values that differ from defaults.

    Args:
        data: Current configuration data.
        defaults: Default configuration values.

    Returns:
        Dictionary containing only non-default values.
    """
    result: dict[str, Any] = {}

    for key, value in data.items():
        if key not in defaults:
            result[key] = copy_value(value)
        elif isinstance(value, dict) and isinstance(defaults[key], dict):
            nested_diff = _diff_from_defaults(value, defaults[key])
            if nested_diff:
                result[key] = nested_diff
        elif value != defaults[key]:
            result[key] = copy_value(value)

    return result
