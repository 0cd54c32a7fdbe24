"""Git repository management for new packages."""
from pathlib import Path
from typing import Iterable, List, Optional, Union

from sprout.core.config import get_settings
from sprout.core.errors import ExternalCommandFailure
from sprout.core.logger import get_logger
from sprout.core.outcome import Outcome
from sprout.services.runner import run_command

logger = get_logger(__name__)

GIT_MARKER = ".git"
GITMODULES_FILE = ".gitmodules"


class GitManager:
    """Manages git operations for a package directory.

    Every operation is a single git invocation with the terminal attached;
    a non-zero exit code raises ExternalCommandFailure.
    """

    def __init__(self, repo_dir: Path, git_executable: Optional[str] = None):
        self.repo_dir = Path(repo_dir)
        self.git_executable = git_executable or get_settings().git_executable

    @staticmethod
    def get_git_dir(start: Path) -> Optional[Path]:
        """Find the closest directory at or above ``start`` holding a .git marker.

        Args:
            start: Directory to start searching from

        Returns:
            Directory containing the marker, or None when the filesystem root
            is reached without finding one
        """
        current = Path(start).resolve()
        while True:
            logger.debug(f"Searching git directory from {current}")
            if (current / GIT_MARKER).exists():
                return current
            parent = current.parent
            if parent == current:
                return None
            current = parent

    def init(self) -> None:
        """Run git init in the repository directory."""
        logger.debug(f"Creating git repository in {self.repo_dir}")
        self._git(["init"])

    def init_repository(self) -> Outcome:
        """Initialize git unless the directory is already inside a repository."""
        existing = self.get_git_dir(self.repo_dir)
        if existing is not None:
            logger.warning(f"Git directory already exists: {existing}")
            return Outcome.SKIPPED

        self.init()
        return Outcome.APPLIED

    def add_files(self, paths: Union[str, Iterable[str]]) -> None:
        files = [paths] if isinstance(paths, str) else list(paths)
        logger.debug(f"Adding files: {files}")
        self._git(["add", *files])

    def has_staged_changes(self) -> bool:
        """Return True when the index differs from HEAD (or any file is staged in a new repo)."""
        cmd = ["diff", "--cached", "--quiet"]
        returncode = self._git(cmd, check=False)
        if returncode == 0:
            return False
        if returncode == 1:
            return True
        raise ExternalCommandFailure(self._command(cmd), returncode=returncode, cwd=self.repo_dir)

    def commit(self, message: str) -> None:
        logger.debug(f"Commit with: {message}")
        self._git(["commit", "-m", message])

    def rename_branch(self, name: str) -> None:
        """Rename the current branch (git branch -M)."""
        logger.debug(f"Rename branch: {name}")
        self._git(["branch", "-M", name])

    def add_submodule(self, url: str, path: str) -> None:
        logger.debug(f"Adding submodule {url} at {path}")
        self._git(["submodule", "add", url, path])

    def set_submodule_branch(self, path: str, branch: str) -> None:
        """Set the tracked branch of ``path`` in .gitmodules."""
        self._git(["config", "-f", GITMODULES_FILE, f"submodule.{path}.branch", branch])

    def _command(self, args: List[str]) -> List[str]:
        return [self.git_executable, *args]

    def _git(self, args: List[str], check: bool = True) -> int:
        return run_command(self._command(args), cwd=self.repo_dir, check=check)
