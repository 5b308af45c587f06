"""Default configuration values.

This module defines the built-in default configuration values that are used
when no other configuration sources provide values.

DEFAULT_CONFIG is a plain dict so it can be passed to deep_merge, which
always returns copies.
"""

from typing import Any

DEFAULT_AREAS: tuple[str, ...] = (
    "footer",
    "input",
    "header",
    "global",
    "model-selector",
    "editor",
    "session",
    "tools",
    "providers",
    "docs",
)

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
    },
    "ideas": {
        "root": "ideas",
        "areas": list(DEFAULT_AREAS),
        "extend_areas": [],
        "area_exclusive": False,
        "promote_from_idea": "warn",
        "active_editable_fields": ["files"],
        "requirements": {
            "generate": True,
            "filename": "prd.md",
        },
    },
}
