"""Integration tests for the global CLI options."""

import os
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from ideaflow.cli import CLIContext, create_app

if TYPE_CHECKING:
    from tests.conftest import IdeaflowProject


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:  # pyright: ignore[reportUnusedFunction]
    for key in list(os.environ):
        if key.startswith("IDEAFLOW_"):
            monkeypatch.delenv(key)


def _run_meta(console: Console, *args: str) -> int:
    app = create_app(console=console, error_console=console)
    try:
        app.meta(list(args))
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    return 0


class TestGlobalOptions:
    def test_loads_project_config(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        console: Console,
    ) -> None:
        _ = (ideaflow_project.ideaflow_dir / "ideaflow.toml").write_text(
            '[ideas]\nextend_areas = ["kitchen"]\n'
        )

        code = _run_meta(
            console, "--project-root", str(ideaflow_project.root), "idea", "areas"
        )

        assert code == 0
        assert "kitchen (extended)" in capsys.readouterr().out.splitlines()

    def test_writes_cli_log(
        self,
        ideaflow_project: "IdeaflowProject",
        console: Console,
    ) -> None:
        code = _run_meta(
            console,
            "--project-root",
            str(ideaflow_project.root),
            "idea",
            "create",
            "Color Themes",
            "--area",
            "global",
        )

        assert code == 0
        log_file = ideaflow_project.ideaflow_dir / "logs" / "cli.log"
        content = log_file.read_text()
        assert '"event": "idea_created"' in content
        assert '"command": "idea"' in content
        assert (ideaflow_project.store_root / "backlog" / "color-themes").is_dir()

    def test_verbose_enables_debug_logging(
        self,
        ideaflow_project: "IdeaflowProject",
        console: Console,
    ) -> None:
        _ = _run_meta(
            console,
            "--verbose",
            "--project-root",
            str(ideaflow_project.root),
            "idea",
            "create",
            "Color Themes",
            "--area",
            "global",
        )

        content = (ideaflow_project.ideaflow_dir / "logs" / "cli.log").read_text()
        assert '"event": "idea_stored"' in content

    def test_explicit_config_file(
        self,
        ideaflow_project: "IdeaflowProject",
        capsys: pytest.CaptureFixture[str],
        console: Console,
    ) -> None:
        custom = ideaflow_project.root / "custom.toml"
        _ = custom.write_text('[ideas]\nroot = "elsewhere"\n')

        _ = _run_meta(
            console,
            "--config",
            str(custom),
            "--project-root",
            str(ideaflow_project.root),
            "config",
            "show",
            "ideas.root",
        )

        assert capsys.readouterr().out == 'root = "elsewhere"\n'

    def test_context_is_reset_after_run(
        self,
        ideaflow_project: "IdeaflowProject",
        console: Console,
    ) -> None:
        _ = _run_meta(
            console, "--project-root", str(ideaflow_project.root), "idea", "areas"
        )

        assert CLIContext.get_current().project_root is None
