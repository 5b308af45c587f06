# pyright: reportExplicitAny=false
"""Unit tests for the shared CLI utilities module."""

from io import StringIO
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from ideaflow.cli._commands._shared import (
    ExitCode,
    exit_code_for_exception,
    exit_with_error,
    format_json,
    format_table,
    format_yaml,
    get_error_console,
)
from ideaflow.exceptions import (
    ConfigLoadError,
    ConflictError,
    ConflictKind,
    IdeaNotFoundError,
    ImmutableRecordError,
    IntegrityError,
    InvalidTransitionError,
    SchemaError,
    SchemaErrorKind,
    SelectionRequiredError,
    StoreIOError,
)


class TestExitCode:
    def test_exit_code_values(self) -> None:
        assert ExitCode.SUCCESS == 0
        assert ExitCode.NOT_FOUND == 1
        assert ExitCode.VALIDATION_ERROR == 2
        assert ExitCode.CONFLICT == 3
        assert ExitCode.IO_ERROR == 4
        assert ExitCode.INTERNAL_ERROR == 5

    def test_exit_code_usable_with_system_exit(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            raise SystemExit(ExitCode.CONFLICT)
        assert exc_info.value.code == 3


class TestExitCodeForException:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (IdeaNotFoundError("missing"), ExitCode.NOT_FOUND),
            (
                SchemaError("bad", kind=SchemaErrorKind.INVALID_ENUM),
                ExitCode.VALIDATION_ERROR,
            ),
            (ImmutableRecordError("frozen"), ExitCode.VALIDATION_ERROR),
            (ConfigLoadError("broken"), ExitCode.VALIDATION_ERROR),
            (
                ConflictError("moved", kind=ConflictKind.ALREADY_MOVED),
                ExitCode.CONFLICT,
            ),
            (InvalidTransitionError("no"), ExitCode.CONFLICT),
            (SelectionRequiredError("pick", candidates=("a", "b")), ExitCode.CONFLICT),
            (IntegrityError("repair", idea_id="a", warnings=()), ExitCode.CONFLICT),
            (
                StoreIOError("disk", path=Path("/x"), operation="write"),
                ExitCode.IO_ERROR,
            ),
            (PermissionError("denied"), ExitCode.IO_ERROR),
            (RuntimeError("boom"), ExitCode.INTERNAL_ERROR),
        ],
    )
    def test_maps_error_category(self, error: Exception, expected: ExitCode) -> None:
        assert exit_code_for_exception(error) is expected


class TestFormatJson:
    def test_format_empty_dict(self) -> None:
        assert format_json({}) == "{}"

    def test_format_indented(self) -> None:
        data: dict[str, Any] = {"id": "color-themes", "files": ["a.ts"]}

        result = format_json(data)

        assert result == '{\n  "id": "color-themes",\n  "files": [\n    "a.ts"\n  ]\n}'

    def test_format_compact(self) -> None:
        assert format_json([1, 2], indent=False) == "[1,2]"


class TestFormatYaml:
    def test_keeps_key_order(self) -> None:
        result = format_yaml({"title": "Color Themes", "area": "global"})

        assert result == "title: Color Themes\narea: global\n"


class TestFormatTable:
    def test_renders_markdown_table(self) -> None:
        result = format_table(["ID", "Stage"], [["color-themes", "backlog"]])

        lines = result.strip().splitlines()
        assert "ID" in lines[0]
        assert "Stage" in lines[0]
        assert "color-themes" in lines[2]
        assert "backlog" in lines[2]


class TestConsoles:
    def test_error_console_writes_to_stderr(self) -> None:
        console = get_error_console()

        assert console.stderr is True

    def test_exit_with_error_prints_and_exits(self) -> None:
        output = StringIO()
        console = Console(file=output, force_terminal=False, width=120)

        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("Idea not found: [x]", ExitCode.NOT_FOUND, console=console)

        assert exc_info.value.code == ExitCode.NOT_FOUND
        assert "Error: Idea not found: [x]" in output.getvalue()
