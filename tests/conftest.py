"""Shared test fixtures for ideaflow tests."""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest
import yaml
from dulwich.repo import Repo
from rich.console import Console

from ideaflow.config import DEFAULT_AREAS
from ideaflow.idea import LifecycleEngine, StageStore


@dataclass(frozen=True, slots=True)
class IdeaflowProject:
    """Paths for an ideaflow-enabled test project."""

    root: Path
    ideaflow_dir: Path
    store_root: Path


@pytest.fixture
def ideaflow_project(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> IdeaflowProject:
    """Create an ideaflow-enabled project inside a real git repo.

    Structure:
        tmp_path/
            project/
                .git/
                .ideaflow/
                ideas/          # created on first write
    """
    project_root = tmp_path / "project"
    project_root.mkdir()
    Repo.init(str(project_root))

    ideaflow_dir = project_root / ".ideaflow"
    ideaflow_dir.mkdir()

    monkeypatch.setattr(
        "ideaflow.utils._paths.get_worktree_root",
        lambda start=None: project_root,
    )
    monkeypatch.chdir(project_root)

    return IdeaflowProject(
        root=project_root,
        ideaflow_dir=ideaflow_dir,
        store_root=project_root / "ideas",
    )


@pytest.fixture
def store(tmp_path: Path) -> StageStore:
    """An initialized stage store using the default areas."""
    stage_store = StageStore(tmp_path / "ideas", areas=DEFAULT_AREAS)
    stage_store.initialize()
    return stage_store


@pytest.fixture
def engine(store: StageStore) -> LifecycleEngine:
    """A lifecycle engine with the default configuration."""
    return LifecycleEngine(store)


WriteIdeaFunc = Callable[..., Path]


@pytest.fixture
def write_idea() -> WriteIdeaFunc:
    """Return a function that writes an idea folder directly to disk.

    Bypasses the engine so tests can set up states it would refuse to
    create, such as a status that does not match the folder.
    """

    def _write(
        root: Path,
        stage: str,
        folder: str,
        *,
        body: str = "",
        **fields: object,
    ) -> Path:
        metadata: dict[str, object] = {
            "id": folder,
            "title": folder.replace("-", " ").title(),
            "area": "global",
            "status": "idea",
            "created": "2024-01-15",
        }
        metadata.update(fields)

        idea_dir = root / stage / folder
        idea_dir.mkdir(parents=True, exist_ok=True)
        document = f"---\n{yaml.safe_dump(metadata, sort_keys=False)}---\n\n{body}\n"
        (idea_dir / "idea.md").write_text(document, encoding="utf-8")
        return idea_dir

    return _write


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
