"""Idempotent git submodule registration."""
from pathlib import PurePosixPath

from sprout.core.logger import get_logger
from sprout.core.outcome import Outcome
from sprout.services import filesystem
from sprout.services.git_manager import GitManager

logger = get_logger(__name__)

DEFAULT_BRANCH = "main"


class SubmoduleInitializer:
    """Ensures a path is a submodule tracking a given branch."""

    def __init__(self, git: GitManager):
        self.git = git

    def ensure(self, url: str, path: str, branch: str = DEFAULT_BRANCH) -> Outcome:
        """Register ``url`` at ``path`` and pin its tracked branch.

        Args:
            url: Repository URL of the submodule
            path: Submodule path relative to the repository root
            branch: Branch to track (default: main)

        Returns:
            Outcome.SKIPPED when ``path`` already existed, else Outcome.APPLIED.
            The branch setting is written in both cases.

        Raises:
            ExternalCommandFailure: If a git call fails
        """
        branch = branch or DEFAULT_BRANCH
        target = self.git.repo_dir / path

        if filesystem.exists(target):
            logger.warning(f"Git submodule directory already exists: {target}")
            outcome = Outcome.SKIPPED
        else:
            parent = PurePosixPath(path).parent
            logger.debug(f"Creating submodule parent: {parent}")
            filesystem.mkdir_recursive(self.git.repo_dir / parent)

            logger.info(f"Adding submodule {url} at {path}")
            self.git.add_submodule(url, path)
            outcome = Outcome.APPLIED

        logger.debug(f"Configuring branch for {path}: {branch}")
        self.git.set_submodule_branch(path, branch)
        return outcome
