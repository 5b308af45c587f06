# pyright: reportAny=false
"""Integration tests for the idea command."""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import TYPE_CHECKING

import orjson
import pytest

from ideaflow.cli._commands._context import CLIContext
from ideaflow.config import Config

if TYPE_CHECKING:
    from tests.conftest import IdeaflowProject, WriteIdeaFunc


@pytest.fixture(autouse=True)
def setup_cli_context(
    ideaflow_project: "IdeaflowProject", monkeypatch: pytest.MonkeyPatch
) -> Generator[None]:
    """Set up CLI context with the default ideas config."""
    # Keep rich from wrapping error messages
    monkeypatch.setenv("COLUMNS", "200")
    ctx = CLIContext(config=Config.from_dict({}), project_root=ideaflow_project.root)
    CLIContext.set_current(ctx)
    yield
    CLIContext.reset()


@pytest.fixture
def run(ideaflow_cli_with_exit_code: Callable[..., int]) -> Callable[..., int]:
    return ideaflow_cli_with_exit_code


def _start(run: Callable[..., int], title: str = "Color Themes") -> None:
    assert run("idea", "create", title, "--area", "global") == 0
    assert run("idea", "ready", title) == 0
    assert run("idea", "promote", title) == 0


class TestCreate:
    def test_creates_idea_in_backlog(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
    ) -> None:
        code = run("idea", "create", "Color Themes", "--area", "global")

        assert code == 0
        assert "Created color-themes in backlog" in capsys.readouterr().out
        metadata = ideaflow_project.store_root / "backlog" / "color-themes" / "idea.md"
        assert metadata.is_file()
        assert "status: idea" in metadata.read_text()

    def test_json_output(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        code = run(
            "idea",
            "create",
            "Inline Blame",
            "--area",
            "editor",
            "--effort",
            "high",
            "--file",
            "src/blame.ts",
            "--file",
            "src/gutter.ts",
            "--format",
            "json",
        )

        assert code == 0
        data = orjson.loads(capsys.readouterr().out)
        assert data["id"] == "inline-blame"
        assert data["stage"] == "backlog"
        assert data["status"] == "idea"
        assert data["effort"] == "high"
        assert data["files"] == ["src/blame.ts", "src/gutter.ts"]

    def test_duplicate_exits_with_validation_error(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        code = run("idea", "create", "color themes", "--area", "editor")

        assert code == 2
        assert "Idea already exists: color-themes" in capsys.readouterr().err

    def test_unknown_area_exits_with_validation_error(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        code = run("idea", "create", "Color Themes", "--area", "kitchen")

        assert code == 2
        assert "Invalid area 'kitchen'" in capsys.readouterr().err


class TestLifecycle:
    def test_full_lifecycle(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        assert run("idea", "ready", "color-themes") == 0
        assert "Marked color-themes ready" in capsys.readouterr().out

        assert run("idea", "promote", "color-themes") == 0
        assert (
            "Promoted color-themes: backlog -> active (active)"
            in capsys.readouterr().out
        )
        prd = ideaflow_project.store_root / "active" / "color-themes" / "prd.md"
        assert prd.read_text().startswith("# Color Themes: Requirements")

        assert run("idea", "park") == 0
        assert (
            "Parked color-themes: active -> backlog (ready)" in capsys.readouterr().out
        )

        assert run("idea", "promote", "color-themes") == 0
        assert run("idea", "complete") == 0
        assert (
            "Completed color-themes: active -> done (done)" in capsys.readouterr().out
        )
        assert (ideaflow_project.store_root / "done" / "color-themes").is_dir()

    def test_second_complete_is_rejected(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _start(run)
        _ = run("idea", "complete", "color-themes")
        _ = capsys.readouterr()

        code = run("idea", "complete", "color-themes")

        assert code == 3
        assert "Cannot complete color-themes" in capsys.readouterr().err

    def test_complete_from_backlog_is_rejected(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")

        assert run("idea", "complete", "color-themes") == 3

    def test_promote_unready_idea_warns(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        code = run("idea", "promote", "color-themes")

        captured = capsys.readouterr()
        assert code == 0
        assert "was promoted without being marked ready" in captured.err
        assert "Promoted color-themes" in captured.out

    def test_promote_json_output(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = run("idea", "ready", "color-themes")
        _ = capsys.readouterr()

        _ = run("idea", "promote", "color-themes", "--format", "json")

        data = orjson.loads(capsys.readouterr().out)
        assert data["from_stage"] == "backlog"
        assert data["to_stage"] == "active"
        assert data["record"]["artifacts"] == ["prd.md"]
        assert data["warnings"] == []

    def test_park_requires_choice_between_active_ideas(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _start(run, "Color Themes")
        _start(run, "Dark Mode")
        _ = capsys.readouterr()

        code = run("idea", "park")

        err = capsys.readouterr().err
        assert code == 3
        assert "Several ideas are active" in err
        assert "  color-themes" in err
        assert "  dark-mode" in err

    def test_park_without_active_idea(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        code = run("idea", "park")

        assert code == 3
        assert "No active idea to park" in capsys.readouterr().err

    def test_unknown_idea_exits_not_found(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        code = run("idea", "promote", "missing")

        assert code == 1
        assert "Idea not found: missing" in capsys.readouterr().err

    def test_flagged_idea_points_at_repair(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
        write_idea: "WriteIdeaFunc",
    ) -> None:
        _ = write_idea(
            ideaflow_project.store_root, "backlog", "color-themes", status="done"
        )

        code = run("idea", "promote", "color-themes")

        assert code == 3
        assert "Run 'ideaflow idea repair'" in capsys.readouterr().err


class TestList:
    def test_empty_store(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        assert run("idea", "list") == 0
        assert "No ideas found." in capsys.readouterr().out

    def test_table(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = run("idea", "create", "Inline Blame", "--area", "editor")
        _ = capsys.readouterr()

        _ = run("idea", "list")

        out = capsys.readouterr().out
        assert "ID" in out
        assert "Stage" in out
        assert "color-themes" in out
        assert "inline-blame" in out

    def test_filters(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _start(run, "Color Themes")
        _ = run("idea", "create", "Inline Blame", "--area", "editor")
        _ = capsys.readouterr()

        _ = run("idea", "list", "--stage", "active", "--format", "text")
        assert capsys.readouterr().out.split() == ["color-themes"]

        _ = run("idea", "list", "--area", "editor", "--format", "text")
        assert capsys.readouterr().out.split() == ["inline-blame"]

        _ = run("idea", "list", "--status", "idea", "--format", "text")
        assert capsys.readouterr().out.split() == ["inline-blame"]

    def test_json(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        _ = run("idea", "list", "--format", "json")

        data = orjson.loads(capsys.readouterr().out)
        assert [item["id"] for item in data] == ["color-themes"]


class TestShow:
    def test_text(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run(
            "idea",
            "create",
            "Color Themes",
            "--area",
            "global",
            "--body",
            "Let users pick a palette.",
        )
        _ = capsys.readouterr()

        assert run("idea", "show", "Color Themes") == 0

        out = capsys.readouterr().out
        assert "# Color Themes" in out
        assert "Stage:          backlog" in out
        assert "Status:         idea" in out
        assert "Let users pick a palette." in out

    def test_yaml(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        _ = run("idea", "show", "color-themes", "--format", "yaml")

        out = capsys.readouterr().out
        assert out.startswith("id: color-themes\n")
        assert "stage: backlog" in out

    def test_missing(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        assert run("idea", "show", "missing") == 1


class TestEdit:
    def test_edits_backlog_idea(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        code = run("idea", "edit", "color-themes", "--title", "Colour Themes")

        assert code == 0
        assert "Updated color-themes: title" in capsys.readouterr().out
        _ = run("idea", "show", "color-themes", "--format", "json")
        assert orjson.loads(capsys.readouterr().out)["title"] == "Colour Themes"

    def test_nothing_to_edit(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        assert run("idea", "edit", "color-themes") == 2
        assert "Nothing to edit" in capsys.readouterr().err

    def test_active_idea_accepts_appended_files(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run(
            "idea", "create", "Color Themes", "--area", "global", "--file", "a.ts"
        )
        _ = run("idea", "ready", "color-themes")
        _ = run("idea", "promote", "color-themes")
        _ = capsys.readouterr()

        code = run("idea", "edit", "color-themes", "--add-file", "b.ts")

        assert code == 0
        _ = capsys.readouterr()
        _ = run("idea", "show", "color-themes", "--format", "json")
        assert orjson.loads(capsys.readouterr().out)["files"] == ["a.ts", "b.ts"]

    def test_active_idea_rejects_title(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _start(run)
        _ = capsys.readouterr()

        code = run("idea", "edit", "color-themes", "--title", "Renamed")

        assert code == 2
        assert "cannot be edited" in capsys.readouterr().err

    def test_backlog_status_cannot_skip_ahead(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")

        assert run("idea", "edit", "color-themes", "--status", "active") == 3


class TestAttach:
    def test_attaches_literal_content(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        code = run(
            "idea", "attach", "color-themes", "notes/sketch.md", "--content", "draft"
        )

        assert code == 0
        assert "Attached notes/sketch.md to color-themes" in capsys.readouterr().out
        path = ideaflow_project.store_root / "backlog" / "color-themes" / "notes"
        assert (path / "sketch.md").read_text() == "draft"

    def test_attaches_file_bytes(
        self,
        ideaflow_project: "IdeaflowProject",
        tmp_path: Path,
        run: Callable[..., int],
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        source = tmp_path / "mock.png"
        payload = b"\x89PNG\r\n\x1a\n\x00\xff"
        _ = source.write_bytes(payload)

        code = run("idea", "attach", "color-themes", "mock.png", "--from", str(source))

        assert code == 0
        attached = ideaflow_project.store_root / "backlog" / "color-themes" / "mock.png"
        assert attached.read_bytes() == payload

    def test_requires_exactly_one_source(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")

        assert run("idea", "attach", "color-themes", "notes.md") == 2

    def test_rejects_escaping_name(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        code = run("idea", "attach", "color-themes", "../evil.md", "--content", "x")

        assert code == 2
        assert "Invalid artifact name" in capsys.readouterr().err

    def test_existing_artifact_needs_overwrite(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = run("idea", "attach", "color-themes", "notes.md", "--content", "one")

        assert run("idea", "attach", "color-themes", "notes.md", "--content", "two") == 4
        assert (
            run(
                "idea",
                "attach",
                "color-themes",
                "notes.md",
                "--content",
                "two",
                "--overwrite",
            )
            == 0
        )

    def test_done_idea_is_rejected(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _start(run)
        _ = run("idea", "complete")

        assert run("idea", "attach", "color-themes", "late.md", "--content", "x") == 2


class TestCheckAndRepair:
    def test_clean_store(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        assert run("idea", "check") == 0
        assert "No integrity problems found." in capsys.readouterr().out

    def test_reports_problems_and_exits_with_conflict(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
        write_idea: "WriteIdeaFunc",
    ) -> None:
        _ = write_idea(
            ideaflow_project.store_root, "backlog", "color-themes", status="active"
        )

        code = run("idea", "check")

        out = capsys.readouterr().out
        assert code == 3
        assert "status_mismatch" in out
        assert "color-themes" in out

    def test_json_report(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
        write_idea: "WriteIdeaFunc",
    ) -> None:
        _ = write_idea(ideaflow_project.store_root, "backlog", "a")
        _ = write_idea(ideaflow_project.store_root, "done", "a", status="done")

        _ = run("idea", "check", "--format", "json")

        data = orjson.loads(capsys.readouterr().out)
        assert data == [
            {
                "kind": "duplicate_id",
                "id": "a",
                "stages": ["backlog", "done"],
                "message": "a exists in several stages: backlog, done",
            }
        ]

    def test_repairs_status(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
        write_idea: "WriteIdeaFunc",
    ) -> None:
        _ = write_idea(
            ideaflow_project.store_root, "backlog", "color-themes", status="active"
        )

        code = run("idea", "repair", "color-themes")

        assert code == 0
        assert "Repaired color-themes: backlog (ready)" in capsys.readouterr().out
        assert run("idea", "check") == 0

    def test_duplicate_needs_keep(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
        write_idea: "WriteIdeaFunc",
    ) -> None:
        _ = write_idea(ideaflow_project.store_root, "backlog", "a")
        _ = write_idea(ideaflow_project.store_root, "done", "a", status="done")

        assert run("idea", "repair", "a") == 3
        err = capsys.readouterr().err
        assert "  backlog" in err
        assert "  done" in err

        assert run("idea", "repair", "a", "--keep", "done") == 0
        assert "Repaired a: done (done)" in capsys.readouterr().out
        assert not (ideaflow_project.store_root / "backlog" / "a").exists()
        assert (ideaflow_project.store_root / ".orphans" / "backlog").is_dir()


class TestHistory:
    def test_empty(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        assert run("idea", "history") == 0
        assert "No history recorded." in capsys.readouterr().out

    def test_records_cli_actor(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _start(run)
        _ = run("idea", "create", "Dark Mode", "--area", "global")
        _ = capsys.readouterr()

        _ = run("idea", "history", "color-themes", "--format", "json")

        entries = orjson.loads(capsys.readouterr().out)
        assert [e["event"] for e in entries] == ["created", "ready", "promoted"]
        assert {e["actor"] for e in entries} == {"cli"}

    def test_table(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        _ = run("idea", "create", "Color Themes", "--area", "global")
        _ = capsys.readouterr()

        _ = run("idea", "history")

        out = capsys.readouterr().out
        assert "Event" in out
        assert "created" in out


class TestAreas:
    def test_lists_default_areas(
        self, capsys: pytest.CaptureFixture[str], run: Callable[..., int]
    ) -> None:
        assert run("idea", "areas") == 0

        lines = capsys.readouterr().out.splitlines()
        assert "global" in lines
        assert "editor" in lines

    def test_marks_extended_areas(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        run: Callable[..., int],
    ) -> None:
        config = Config.from_dict({"ideas": {"extend_areas": ["kitchen"]}})
        CLIContext.set_current(
            CLIContext(config=config, project_root=ideaflow_project.root)
        )

        _ = run("idea", "areas")

        assert "kitchen (extended)" in capsys.readouterr().out.splitlines()
        assert run("idea", "create", "Fridge Sync", "--area", "kitchen") == 0
