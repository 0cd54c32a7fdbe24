"""YAML loader for project configuration files."""
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from sprout.config.models import (
    Configuration,
    InstallSettings,
    PackageManagerType,
    SubmoduleDescriptor,
    identity_transform,
)
from sprout.core.errors import ConfigValidationError
from sprout.core.logger import get_logger
from sprout.core.manifest import merge_fields

logger = get_logger(__name__)

KNOWN_KEYS = frozenset({
    'preferredPackageSystem',
    'gitOrganization',
    'organizationName',
    'organizationEmail',
    'sourceDir',
    'templatesDir',
    'buildDir',
    'mainName',
    'mainSourceFileTemplate',
    'mainSourceFileName',
    'gitCommitMessage',
    'gitBranch',
    'files',
    'renameFiles',
    'packages',
    'gitSubmodules',
    'manifest',
    'install',
})

INSTALL_KEYS = {
    'dev': 'dev',
    'exact': 'exact',
    'noSave': 'no_save',
    'bundle': 'bundle',
    'verbose': 'verbose',
    'global': 'global_install',
}


class ConfigLoader:
    """Loads sprout.yml files into a Configuration."""

    def __init__(self, config_path: str = "sprout.yml"):
        self.config_path = Path(config_path).expanduser()
        self.raw_config: Optional[Dict[str, Any]] = None

    @property
    def base_dir(self) -> Path:
        return self.config_path.resolve().parent

    def load_raw(self) -> Dict[str, Any]:
        """Read and structurally validate the YAML document."""
        if not self.config_path.exists():
            raise ConfigValidationError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"Failed to parse {self.config_path}: {exc}") from exc

        if not raw:
            raise ConfigValidationError(f"Config file is empty: {self.config_path}")
        if not isinstance(raw, dict):
            raise ConfigValidationError("Config file must contain a mapping at the top level")

        unknown = sorted(set(raw) - KNOWN_KEYS)
        if unknown:
            raise ConfigValidationError(f"Unknown config keys: {', '.join(unknown)}")

        self.raw_config = raw
        return raw

    def load(
        self,
        target_directory: Optional[str] = None,
        init_args: Sequence[str] = (),
        base_directory: Optional[Path] = None,
    ) -> Configuration:
        """Build the Configuration for one run.

        Args:
            target_directory: New project directory name from the command line
            init_args: Flag arguments forwarded to the package manager init
            base_directory: Directory the run starts from (defaults to cwd)

        Returns:
            Fully resolved Configuration
        """
        raw = self.raw_config if self.raw_config is not None else self.load_raw()

        try:
            manager = PackageManagerType.parse(_optional_str(raw, 'preferredPackageSystem') or "npm")
        except ValueError as exc:
            raise ConfigValidationError(str(exc)) from exc

        templates_dir = self._resolve_templates_dir(_optional_str(raw, 'templatesDir') or ".")
        main_name = _optional_str(raw, 'mainName') or _default_main_name(target_directory, base_directory)
        source_dir = _relative_path(_optional_str(raw, 'sourceDir') or "src", 'sourceDir')
        build_dir = _relative_path(_optional_str(raw, 'buildDir') or "dist", 'buildDir')

        main_template = _required_str(raw, 'mainSourceFileTemplate')
        _relative_path(main_template, 'mainSourceFileTemplate')
        main_target = _optional_str(raw, 'mainSourceFileName')
        if main_target is None:
            suffix = PurePosixPath(main_template).suffix
            main_target = str(PurePosixPath(source_dir) / f"{main_name}{suffix}")
        main_target = _relative_path(main_target, 'mainSourceFileName')

        files = tuple(_relative_path(item, 'files') for item in _str_list(raw, 'files'))
        rename_files = _rename_map(raw)
        manifest_fields = raw.get('manifest')
        if manifest_fields is not None and not isinstance(manifest_fields, dict):
            raise ConfigValidationError("'manifest' must be a mapping")

        config = Configuration(
            templates_dir=templates_dir,
            main_name=main_name,
            main_source_file_template=main_template,
            main_source_file_name=main_target,
            preferred_package_manager=manager,
            git_organization=_optional_str(raw, 'gitOrganization') or "",
            organization_name=_optional_str(raw, 'organizationName') or "",
            organization_email=_optional_str(raw, 'organizationEmail') or "",
            source_dir=source_dir,
            build_dir=build_dir,
            files=files,
            rename_files=MappingProxyType(rename_files),
            packages=tuple(_str_list(raw, 'packages')),
            git_submodules=_submodules(raw),
            git_commit_message=_optional_str(raw, 'gitCommitMessage') or "Initial commit",
            git_branch=_optional_str(raw, 'gitBranch') or "main",
            manifest_transform=merge_fields(manifest_fields) if manifest_fields else identity_transform,
            install=_install_settings(raw),
            target_directory=target_directory,
            init_args=tuple(init_args),
        )
        logger.debug(f"Loaded configuration from {self.config_path}: {config}")
        return config

    def _resolve_templates_dir(self, value: str) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        path = path.resolve()
        if not path.is_dir():
            raise ConfigValidationError(f"Templates directory not found: {path}")
        return path


def _default_main_name(target_directory: Optional[str], base_directory: Optional[Path]) -> str:
    directory = base_directory or Path.cwd()
    if target_directory:
        directory = directory / target_directory
    name = directory.resolve().name
    if not name:
        raise ConfigValidationError(f"Cannot derive a project name from {directory}; set 'mainName'")
    return name


def _optional_str(raw: Dict[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigValidationError(f"'{key}' must be a string")
    return value if value.strip() else None


def _required_str(raw: Dict[str, Any], key: str) -> str:
    value = _optional_str(raw, key)
    if value is None:
        raise ConfigValidationError(f"Missing required '{key}' field")
    return value


def _str_list(raw: Dict[str, Any], key: str) -> List[str]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigValidationError(f"'{key}' must be a list of strings")
    return value


def _relative_path(value: str, key: str) -> str:
    """Normalize ``value`` and reject paths that would escape the package directory."""
    path = PurePosixPath(value)
    if path.is_absolute() or Path(value).is_absolute():
        raise ConfigValidationError(f"'{key}' entry must be a relative path: {value}")
    if '..' in path.parts:
        raise ConfigValidationError(f"'{key}' entry must not contain '..': {value}")
    return path.as_posix()


def _rename_map(raw: Dict[str, Any]) -> Dict[str, str]:
    value = raw.get('renameFiles')
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigValidationError("'renameFiles' must be a mapping")

    renames: Dict[str, str] = {}
    for source, target in value.items():
        if not isinstance(source, str) or not isinstance(target, str):
            raise ConfigValidationError("'renameFiles' keys and values must be strings")
        renames[_relative_path(source, 'renameFiles')] = _relative_path(target, 'renameFiles')
    return renames


def _submodules(raw: Dict[str, Any]) -> Tuple[SubmoduleDescriptor, ...]:
    entries = raw.get('gitSubmodules')
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise ConfigValidationError("'gitSubmodules' must be a list")

    descriptors = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigValidationError("Each git submodule must be a mapping")
        unknown = sorted(set(entry) - {'url', 'path', 'branch'})
        if unknown:
            raise ConfigValidationError(f"Unknown git submodule keys: {', '.join(unknown)}")
        url = _required_str(entry, 'url')
        path = _relative_path(_required_str(entry, 'path'), 'gitSubmodules')
        branch = _optional_str(entry, 'branch') or "main"
        descriptors.append(SubmoduleDescriptor(url=url, path=path, branch=branch))
    return tuple(descriptors)


def _install_settings(raw: Dict[str, Any]) -> InstallSettings:
    value = raw.get('install')
    if value is None:
        return InstallSettings()
    if not isinstance(value, dict):
        raise ConfigValidationError("'install' must be a mapping")

    flags = {}
    for key, flag in value.items():
        if key not in INSTALL_KEYS:
            raise ConfigValidationError(f"Unknown install option: {key}")
        if not isinstance(flag, bool):
            raise ConfigValidationError(f"Install option '{key}' must be true or false")
        flags[INSTALL_KEYS[key]] = flag
    return InstallSettings(**flags)
