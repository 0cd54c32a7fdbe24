"""Immutable configuration consumed by the scaffolding pipeline."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

Manifest = Dict[str, Any]
ManifestTransform = Callable[[Manifest, "Configuration"], Manifest]


class PackageManagerType(Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"

    @classmethod
    def parse(cls, value: str) -> "PackageManagerType":
        """Parse a manager name case-insensitively."""
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        valid = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown package manager '{value}' (expected one of: {valid})")


def identity_transform(manifest: Manifest, config: "Configuration") -> Manifest:
    """Manifest transform that changes nothing."""
    return manifest


@dataclass(frozen=True)
class SubmoduleDescriptor:
    """A git submodule to register under the package directory."""
    url: str
    path: str
    branch: str = "main"


@dataclass(frozen=True)
class InstallSettings:
    """Install flags declared in the project configuration."""
    dev: bool = False
    exact: bool = False
    no_save: bool = False
    bundle: bool = False
    verbose: bool = False
    global_install: bool = False


@dataclass(frozen=True)
class Configuration:
    """Everything a scaffolding run needs, resolved up front.

    Attributes:
        templates_dir: Absolute directory holding the template files
        source_dir: Source directory, relative to the package directory
        build_dir: Build output directory, relative to the package directory
        main_name: Project name used for PROJECT-NAME and projectName tokens
        main_source_file_template: Template path of the main source file
        main_source_file_name: Target path of the main source file
        files: Template-relative paths to instantiate, in order
        rename_files: Template path -> target path overrides
        packages: Dependencies to install
        git_submodules: Submodules to register, in order
        manifest_transform: Pure function applied to package.json
        target_directory: Optional new project directory (from the CLI)
        init_args: Flag arguments forwarded to the manifest initialization
    """

    templates_dir: Path
    main_name: str
    main_source_file_template: str
    main_source_file_name: str
    preferred_package_manager: PackageManagerType = PackageManagerType.NPM
    git_organization: str = ""
    organization_name: str = ""
    organization_email: str = ""
    source_dir: str = "src"
    build_dir: str = "dist"
    files: Tuple[str, ...] = ()
    rename_files: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    packages: Tuple[str, ...] = ()
    git_submodules: Tuple[SubmoduleDescriptor, ...] = ()
    git_commit_message: str = "Initial commit"
    git_branch: str = "main"
    manifest_transform: ManifestTransform = identity_transform
    install: InstallSettings = field(default_factory=InstallSettings)
    target_directory: Optional[str] = None
    init_args: Tuple[str, ...] = ()

    def target_path(self, template_path: str) -> str:
        """Return where ``template_path`` is written, applying renames."""
        return self.rename_files.get(template_path, template_path)
