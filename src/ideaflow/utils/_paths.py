from pathlib import Path

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

PROJECT_DIR_NAME = ".ideaflow"


def get_worktree_root(start: Path | None = None) -> Path:
    """Get the root directory of the Git worktree containing start."""
    repo = Repo.discover(str(start) if start is not None else ".")
    # repo.path is bytes on some dulwich versions
    path_str = repo.path.decode() if isinstance(repo.path, bytes) else repo.path
    return Path(path_str)


def find_project_root(start: Path | None = None) -> Path | None:
    """Find the project root by searching upward for a .ideaflow/ directory.

    Args:
        start: Directory to start searching from. Defaults to the current
            working directory.

    Returns:
        The directory containing ``.ideaflow/``, or None if there is none.
    """
    current = (start or Path.cwd()).resolve()

    while True:
        if (current / PROJECT_DIR_NAME).is_dir():
            return current
        parent = current.parent
        if parent == current:
            return None
        current = parent


def resolve_project_root(start: Path | None = None) -> Path:
    """Resolve the project root, falling back when there is no marker.

    Uses the nearest ``.ideaflow/`` directory, then the enclosing Git
    worktree, then ``start`` itself.
    """
    found = find_project_root(start)
    if found is not None:
        return found

    origin = (start or Path.cwd()).resolve()
    try:
        return get_worktree_root(origin)
    except NotGitRepository:
        return origin


def get_ideaflow_dir(project_root: Path | None = None) -> Path:
    """Get the path to the .ideaflow/ directory of a project."""
    root = project_root if project_root is not None else resolve_project_root()
    return root / PROJECT_DIR_NAME


def get_ideaflow_log_dir(project_root: Path | None = None) -> Path:
    """Get the path to the logs/ directory inside .ideaflow/."""
    return get_ideaflow_dir(project_root) / "logs"


def get_ideaflow_cli_log_file(project_root: Path | None = None) -> Path:
    """Get the path to the CLI log file inside .ideaflow/logs/.

    Returns:
        Path to the CLI log file (.ideaflow/logs/cli.log).
    """
    return get_ideaflow_log_dir(project_root) / "cli.log"
