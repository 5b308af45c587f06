"""Configuration source discovery.

This module determines which configuration files apply to a project and in
which order they are merged.
"""

from pathlib import Path
from typing import Any

import platformdirs

from ideaflow.utils._paths import PROJECT_DIR_NAME, find_project_root

from ._defaults import DEFAULT_CONFIG
from ._models._common import ConfigSource, ConfigSourceName

PROJECT_CONFIG_NAME = "ideaflow.toml"
LOCAL_CONFIG_NAME = "ideaflow.local.toml"


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``~/.config/ideaflow/config.toml``
    - macOS: ``~/Library/Application Support/ideaflow/config.toml``
    - Windows: ``%APPDATA%\ideaflow\config.toml``

    The path is returned regardless of whether the file exists.

    Returns:
        Path to the user config file for the current platform.
    """
    return platformdirs.user_config_path("ideaflow") / "config.toml"


def _file_exists(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def discover_sources(
    project_root: Path | None = None,
    *,
    include_env: bool = True,
    include_cli: bool = False,
    cli_overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> list[ConfigSource]:
    """Discover all configuration sources.

    Args:
        project_root: Project root directory. If None, auto-detect by
            searching upward for a `.ideaflow/` directory.
        include_env: Include environment variables as a source.
        include_cli: Include CLI overrides as a source.
        cli_overrides: Dictionary of CLI argument overrides. Only used
            if include_cli is True.

    Returns:
        List of ConfigSource objects in precedence order (highest first).
        File sources that don't exist are still included with exists=False.
        Project sources are omitted when there is no project root.
    """
    sources: list[ConfigSource] = []
    resolved_root = project_root if project_root else find_project_root()

    if include_cli:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.CLI,
                path=None,
                exists=bool(cli_overrides),
                values=cli_overrides or {},
            )
        )

    if include_env:
        # Values are parsed during loading
        sources.append(
            ConfigSource(name=ConfigSourceName.ENV, path=None, exists=True, values={})
        )

    if resolved_root:
        for name, filename in (
            (ConfigSourceName.LOCAL, LOCAL_CONFIG_NAME),
            (ConfigSourceName.PROJECT, PROJECT_CONFIG_NAME),
        ):
            path = resolved_root / PROJECT_DIR_NAME / filename
            sources.append(
                ConfigSource(
                    name=name, path=path, exists=_file_exists(path), values={}
                )
            )

    user_path = get_user_config_path()
    sources.append(
        ConfigSource(
            name=ConfigSourceName.USER,
            path=user_path,
            exists=_file_exists(user_path),
            values={},
        )
    )

    sources.append(
        ConfigSource(
            name=ConfigSourceName.DEFAULT,
            path=None,
            exists=True,
            values=DEFAULT_CONFIG,
        )
    )

    return sources
