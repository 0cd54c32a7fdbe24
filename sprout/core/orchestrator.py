"""Scaffolding pipeline: one configuration in, one initialized package out.

Steps run in a fixed order and each finishes before the next starts. A hard
failure raises a ScaffoldError and stops the run without rolling back;
re-running converges because every step skips work that is already done.
"""
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Set

from sprout.config.models import Configuration, PackageManagerType
from sprout.core.errors import PreconditionFailure
from sprout.core.logger import get_logger
from sprout.core.manifest import MANIFEST_FILE, ManifestMerger
from sprout.core.outcome import Outcome, StepResult
from sprout.core.replacements import build_replacements
from sprout.services import filesystem
from sprout.services.git_manager import GitManager
from sprout.services.package_manager import InstallOptions, PackageManagerDriver
from sprout.services.submodules import SubmoduleInitializer

logger = get_logger(__name__)


@dataclass(frozen=True)
class RunState:
    """Values discovered while a run progresses."""
    root_directory: Path
    package_manager: Optional[PackageManagerType] = None
    manifest_path: Optional[Path] = None
    package_directory: Optional[Path] = None

    def with_package_directory(self, directory: Path) -> "RunState":
        if self.package_directory is not None and self.package_directory != directory:
            raise PreconditionFailure(
                f"Package directory already resolved to {self.package_directory}"
            )
        return replace(self, package_directory=directory)

    def require_package_directory(self) -> Path:
        if self.package_directory is None:
            raise PreconditionFailure("Package directory has not been resolved")
        return self.package_directory

    def source_directory(self, config: Configuration) -> Path:
        return self.require_package_directory() / config.source_dir

    def build_directory(self, config: Configuration) -> Path:
        return self.require_package_directory() / config.build_dir


@dataclass
class RunReport:
    """Per-step outcomes of a finished run."""
    state: RunState
    steps: List[StepResult] = field(default_factory=list)

    def record(self, step: str, outcome: Outcome, detail: str = "") -> None:
        self.steps.append(StepResult(step=step, outcome=outcome, detail=detail))

    def outcome_of(self, step: str) -> Optional[Outcome]:
        for result in self.steps:
            if result.step == step:
                return result.outcome
        return None


class ScaffoldOrchestrator:
    """Drives the scaffolding steps against a single Configuration."""

    def __init__(
        self,
        package_manager: Optional[PackageManagerDriver] = None,
        manifest_merger: Optional[ManifestMerger] = None,
        git_factory: Callable[[Path], GitManager] = GitManager,
        base_directory: Optional[Path] = None,
    ):
        self.package_manager = package_manager or PackageManagerDriver()
        self.manifest_merger = manifest_merger or ManifestMerger()
        self.git_factory = git_factory
        self.base_directory = base_directory

    def run(self, config: Configuration) -> RunReport:
        """Scaffold the package described by ``config``.

        Returns:
            RunReport with one entry per step

        Raises:
            PreconditionFailure: package.json is missing after initialization
            InvalidManifest: package.json is not a JSON object
            TemplateNotFoundError: A declared template file is missing
            ExternalCommandFailure: git or the package manager failed
        """
        state = self._resolve_directory(config)
        report = RunReport(state=state)
        report.record("directory", Outcome.APPLIED, str(state.root_directory))

        state = self._initialize_manifest(config, state)
        report.record("manifest-init", Outcome.APPLIED, state.package_manager.value)

        state = state.with_package_directory(state.manifest_path.parent)
        report.state = state
        package_dir = state.require_package_directory()
        git = self.git_factory(package_dir)

        created = self._create_directories(config, package_dir)
        report.record(
            "directories",
            Outcome.APPLIED if created else Outcome.SKIPPED,
            f"{created} created",
        )

        logger.debug("Initializing git if necessary")
        report.record("git-init", git.init_repository())

        written = self._instantiate_templates(config, package_dir)
        report.record(
            "templates",
            Outcome.APPLIED if written else Outcome.SKIPPED,
            f"{written} written",
        )

        report.record(
            "manifest-update",
            self.manifest_merger.merge_if_changed(
                state.manifest_path, config.manifest_transform, config
            ),
        )

        added = self._initialize_submodules(config, git)
        report.record(
            "submodules",
            Outcome.APPLIED if added else Outcome.SKIPPED,
            f"{added} added",
        )

        self._install_packages(config, state)
        report.record("install", Outcome.APPLIED, ", ".join(config.packages))

        report.record("commit", self._finalize_git(config, git), config.git_branch)

        logger.info(f"✨ Package ready: {package_dir}")
        return report

    def _resolve_directory(self, config: Configuration) -> RunState:
        root = Path(self.base_directory or Path.cwd()).resolve()
        if config.target_directory:
            root = (root / config.target_directory).resolve()
            logger.debug(f"Creating project directory: {root}")
            filesystem.mkdir_recursive(root)
        return RunState(root_directory=root)

    def _initialize_manifest(self, config: Configuration, state: RunState) -> RunState:
        options = self._install_options(config, state.root_directory)
        manager = self.package_manager.detect(options)

        logger.info(f"Initializing {MANIFEST_FILE} using {manager.value}")
        self.package_manager.init(manager, config.init_args, cwd=state.root_directory)

        manifest_path = state.root_directory / MANIFEST_FILE
        if not filesystem.exists(manifest_path):
            raise PreconditionFailure(f"{MANIFEST_FILE} did not exist: {manifest_path}")

        return replace(state, package_manager=manager, manifest_path=manifest_path)

    def _target_paths(self, config: Configuration) -> List[str]:
        targets = [config.target_path(item) for item in config.files]
        targets.append(config.main_source_file_name)
        return targets

    def _create_directories(self, config: Configuration, package_dir: Path) -> int:
        directories: Set[str] = set()
        for target in self._target_paths(config):
            parent = str(PurePosixPath(target).parent)
            if parent != ".":
                directories.add(parent)

        created = 0
        for directory in sorted(directories):
            resolved = package_dir / directory
            if not filesystem.exists(resolved):
                created += 1
            filesystem.mkdir_recursive(resolved)
        return created

    def _instantiate_templates(self, config: Configuration, package_dir: Path) -> int:
        tokens = build_replacements(config)
        pairs = [(item, config.target_path(item)) for item in config.files]
        pairs.append((config.main_source_file_template, config.main_source_file_name))

        written = 0
        for template, target in pairs:
            outcome = filesystem.write_text_file_with_replacements_if_missing(
                config.templates_dir / template,
                package_dir / target,
                tokens,
            )
            if outcome is Outcome.APPLIED:
                written += 1
        return written

    def _initialize_submodules(self, config: Configuration, git: GitManager) -> int:
        """Register submodules one after another; the first failure propagates."""
        initializer = SubmoduleInitializer(git)
        seen: Set[str] = set()
        added = 0

        for descriptor in config.git_submodules:
            path = PurePosixPath(descriptor.path).as_posix()
            if path in seen:
                logger.warning(f"Duplicate git submodule path ignored: {descriptor.path}")
                continue
            seen.add(path)

            logger.debug(
                f"Initializing git submodule from {descriptor.url} "
                f"and branch {descriptor.branch} to {path}"
            )
            if initializer.ensure(descriptor.url, path, descriptor.branch) is Outcome.APPLIED:
                added += 1
        return added

    def _install_packages(self, config: Configuration, state: RunState) -> None:
        options = self._install_options(config, state.require_package_directory())
        logger.info(f"Installing packages: {', '.join(config.packages) or '(from manifest)'}")
        self.package_manager.install(config.packages, options, manager=state.package_manager)

    def _finalize_git(self, config: Configuration, git: GitManager) -> Outcome:
        logger.debug("Adding files to git")
        git.add_files(["."])

        if git.has_staged_changes():
            logger.debug("Initial git commit")
            git.commit(config.git_commit_message)
            outcome = Outcome.APPLIED
        else:
            logger.warning("Nothing to commit, skipping commit")
            outcome = Outcome.SKIPPED

        logger.debug(f"Renaming main git branch to '{config.git_branch}'")
        git.rename_branch(config.git_branch)
        return outcome

    @staticmethod
    def _install_options(config: Configuration, cwd: Path) -> InstallOptions:
        return InstallOptions.from_settings(
            config.install,
            prefer=config.preferred_package_manager,
            cwd=cwd,
        )
