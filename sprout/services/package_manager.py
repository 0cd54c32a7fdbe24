"""Package manager driver for npm, yarn and pnpm."""
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from sprout.config.models import InstallSettings, PackageManagerType
from sprout.core.logger import get_logger
from sprout.services.runner import run_command

logger = get_logger(__name__)

LOCKFILES = (
    ("yarn.lock", PackageManagerType.YARN),
    ("pnpm-lock.yaml", PackageManagerType.PNPM),
    ("package-lock.json", PackageManagerType.NPM),
)


@dataclass(frozen=True)
class InstallOptions:
    """Options shared by detection and installation."""
    dev: bool = False
    exact: bool = False
    no_save: bool = False
    bundle: bool = False
    verbose: bool = False
    global_install: bool = False
    prefer: PackageManagerType = PackageManagerType.NPM
    output_mode: str = "inherit"
    cwd: Optional[Path] = None

    @classmethod
    def from_settings(
        cls,
        settings: InstallSettings,
        prefer: PackageManagerType,
        cwd: Optional[Path] = None,
    ) -> "InstallOptions":
        return cls(
            dev=settings.dev,
            exact=settings.exact,
            no_save=settings.no_save,
            bundle=settings.bundle,
            verbose=settings.verbose,
            global_install=settings.global_install,
            prefer=prefer,
            cwd=cwd,
        )


class PackageManagerDriver:
    """Runs init and install through the selected package manager."""

    def detect(self, options: InstallOptions) -> PackageManagerType:
        """Pick the package manager for a run.

        The preferred manager wins when it is installed. Otherwise a lockfile
        in the working directory decides, then the first installed manager,
        and finally the preferred one regardless.
        """
        if self._available(options.prefer):
            return options.prefer

        cwd = Path(options.cwd) if options.cwd else Path.cwd()
        for lockfile, manager in LOCKFILES:
            if (cwd / lockfile).exists() and self._available(manager):
                logger.debug(f"Found {lockfile}, using {manager.value}")
                return manager

        for manager in PackageManagerType:
            if self._available(manager):
                logger.warning(
                    f"{options.prefer.value} is not installed, falling back to {manager.value}"
                )
                return manager

        logger.warning(f"No package manager found on PATH, trying {options.prefer.value}")
        return options.prefer

    def init(
        self,
        manager: PackageManagerType,
        extra_args: Sequence[str] = (),
        cwd: Optional[Path] = None,
    ) -> None:
        """Create package.json with ``<manager> init``."""
        cmd = [manager.value, "init", *extra_args]
        logger.debug(f"Executing: {' '.join(cmd)}")
        run_command(cmd, cwd=cwd)

    def install(
        self,
        dependencies: Sequence[str],
        options: InstallOptions,
        manager: Optional[PackageManagerType] = None,
    ) -> None:
        """Install ``dependencies`` in one package manager call."""
        cmd = self.install_command(manager or options.prefer, dependencies, options)
        logger.debug(f"Installing packages: {list(dependencies)}")
        run_command(cmd, cwd=options.cwd, output_mode=options.output_mode)

    def install_command(
        self,
        manager: PackageManagerType,
        dependencies: Sequence[str],
        options: InstallOptions,
    ) -> List[str]:
        """Translate install options into the manager's command line."""
        packages = list(dependencies)

        if manager is PackageManagerType.YARN:
            if not packages:
                return ["yarn", "install"]
            cmd = ["yarn", "global", "add"] if options.global_install else ["yarn", "add"]
            if options.dev:
                cmd.append("--dev")
            if options.exact:
                cmd.append("--exact")
            if options.verbose:
                cmd.append("--verbose")
            if options.no_save or options.bundle:
                logger.warning("yarn does not support noSave/bundle, ignoring")
            return cmd + packages

        if manager is PackageManagerType.PNPM:
            if not packages:
                return ["pnpm", "install"]
            cmd = ["pnpm", "add"]
            if options.dev:
                cmd.append("--save-dev")
            if options.exact:
                cmd.append("--save-exact")
            if options.global_install:
                cmd.append("--global")
            if options.no_save or options.bundle or options.verbose:
                logger.warning("pnpm does not support noSave/bundle/verbose, ignoring")
            return cmd + packages

        cmd = ["npm", "install"]
        if options.dev:
            cmd.append("--save-dev")
        if options.exact:
            cmd.append("--save-exact")
        if options.no_save:
            cmd.append("--no-save")
        if options.bundle:
            cmd.append("--save-bundle")
        if options.verbose:
            cmd.append("--verbose")
        if options.global_install:
            cmd.append("--global")
        return cmd + packages

    @staticmethod
    def _available(manager: PackageManagerType) -> bool:
        return shutil.which(manager.value) is not None
