"""Project configuration models and YAML loader."""
from sprout.config.loader import ConfigLoader
from sprout.config.models import (
    Configuration,
    InstallSettings,
    PackageManagerType,
    SubmoduleDescriptor,
    identity_transform,
)

__all__ = [
    "ConfigLoader",
    "Configuration",
    "InstallSettings",
    "PackageManagerType",
    "SubmoduleDescriptor",
    "identity_transform",
]
