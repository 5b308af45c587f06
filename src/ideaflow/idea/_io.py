# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""File I/O utilities for the stage store.

This module provides functions for reading and writing idea metadata
documents (Markdown with YAML front matter) and the JSONL history log. All
document writes use an atomic write-then-rename pattern.
"""

import tempfile
from pathlib import Path
from typing import Any

import orjson
import yaml

from ideaflow.exceptions import StoreIOError, StoreParseError

__all__ = [
    "append_jsonl",
    "atomic_write",
    "read_jsonl",
    "read_markdown_frontmatter",
    "render_markdown_with_frontmatter",
    "write_markdown_with_frontmatter",
]


def atomic_write(path: Path, content: bytes | str) -> None:
    """Write content to a file atomically.

    Writes to a temporary file in the same directory, then renames to the
    target path. The file is either fully written or not at all.

    Args:
        path: Destination file path.
        content: Content to write (bytes or string).

    Raises:
        StoreIOError: If the write operation fails.
    """
    _ = path.parent.mkdir(parents=True, exist_ok=True)

    is_bytes = isinstance(content, bytes)
    mode = "wb" if is_bytes else "w"
    encoding = None if is_bytes else "utf-8"

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode=mode,
            dir=path.parent,
            delete=False,
            prefix=".",
            suffix=".tmp",
            encoding=encoding,
        ) as f:
            _ = f.write(content)
            temp_path = Path(f.name)

        _ = temp_path.replace(path)

    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        msg = f"Failed to write file: {e}"
        raise StoreIOError(msg, path=path, operation="write", cause=e) from e


def read_markdown_frontmatter(
    path: Path,
) -> tuple[dict[str, Any], str]:  # pyright: ignore[reportExplicitAny]
    """Read a Markdown file and extract YAML front matter.

    Args:
        path: Path to the Markdown file.

    Returns:
        A tuple of (front matter dict, body content). If no front matter
        block is found, returns ({}, full_content).

    Raises:
        StoreIOError: If the file cannot be read.
        StoreParseError: If the front matter contains malformed YAML.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Failed to read file: {e}"
        raise StoreIOError(msg, path=path, operation="read", cause=e) from e

    if not content.startswith("---\n"):
        return {}, content

    end_marker = content.find("\n---", 3)
    if end_marker == -1:
        return {}, content

    frontmatter_str = content[4:end_marker].strip()
    body = content[end_marker + 4 :].lstrip("\n")

    try:
        frontmatter_data = yaml.safe_load(frontmatter_str)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in front matter: {e}"
        line = None
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line = mark.line + 2
        raise StoreParseError(
            msg, path=path, line=line, content_type="frontmatter", cause=e
        ) from e

    if frontmatter_data is None:
        return {}, body

    if not isinstance(frontmatter_data, dict):
        actual_type = type(frontmatter_data).__name__
        msg = f"Expected YAML mapping in front matter, got {actual_type}"
        raise StoreParseError(msg, path=path, content_type="frontmatter")

    return frontmatter_data, body


def render_markdown_with_frontmatter(
    frontmatter: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    content: str,
) -> str:
    """Render a Markdown document with YAML front matter.

    Args:
        frontmatter: Dictionary to serialize as YAML front matter.
        content: Markdown body content.

    Returns:
        The full document text.
    """
    frontmatter_yaml = yaml.safe_dump(
        frontmatter,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
    body = content.strip()
    if not body:
        return f"---\n{frontmatter_yaml}---\n"
    return f"---\n{frontmatter_yaml}---\n\n{body}\n"


def write_markdown_with_frontmatter(
    path: Path,
    frontmatter: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    content: str,
) -> None:
    """Write a Markdown file with YAML front matter atomically.

    Args:
        path: Destination file path.
        frontmatter: Dictionary to serialize as YAML front matter.
        content: Markdown body content.

    Raises:
        StoreIOError: If serialization or the write fails.
    """
    try:
        document = render_markdown_with_frontmatter(frontmatter, content)
    except yaml.YAMLError as e:
        msg = f"Failed to serialize YAML: {e}"
        raise StoreIOError(msg, path=path, operation="write", cause=e) from e

    atomic_write(path, document)


def read_jsonl(
    path: Path,
) -> list[dict[str, Any]]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a JSONL file.

    Returns an empty list for missing or empty files.

    Args:
        path: Path to the JSONL file.

    Returns:
        List of parsed JSON objects, one per line.

    Raises:
        StoreIOError: If the file exists but cannot be read.
        StoreParseError: If a line contains invalid JSON or is not an object.
    """
    if not path.exists():
        return []

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Failed to read file: {e}"
        raise StoreIOError(msg, path=path, operation="read", cause=e) from e

    entries: list[dict[str, Any]] = []  # pyright: ignore[reportExplicitAny]
    for line_num, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue

        try:
            data = orjson.loads(line)
        except orjson.JSONDecodeError as e:
            msg = f"Invalid JSON on line {line_num}: {e}"
            raise StoreParseError(
                msg, path=path, line=line_num, content_type="jsonl", cause=e
            ) from e

        if not isinstance(data, dict):
            msg = f"Expected JSON object on line {line_num}, got {type(data).__name__}"
            raise StoreParseError(msg, path=path, line=line_num, content_type="jsonl")

        entries.append(data)

    return entries


def append_jsonl(
    path: Path,
    entry: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> None:
    """Append a JSON object to a JSONL file.

    Args:
        path: Path to the JSONL file.
        entry: Dictionary to append as a JSON line.

    Raises:
        StoreIOError: If the append operation fails.
    """
    try:
        content = orjson.dumps(entry)
    except TypeError as e:
        msg = f"Failed to serialize JSON: {e}"
        raise StoreIOError(msg, path=path, operation="append", cause=e) from e

    try:
        _ = path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("ab") as f:
            _ = f.write(content)
            _ = f.write(b"\n")
    except OSError as e:
        msg = f"Failed to append to file: {e}"
        raise StoreIOError(msg, path=path, operation="append", cause=e) from e
