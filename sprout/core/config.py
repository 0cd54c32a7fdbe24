"""Sprout runtime settings."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class SproutSettings:
    """Runtime settings for scaffolding runs.

    Attributes:
        git_executable: Name or path of the git binary (default: git)
        config_path: Project configuration file to use when --config is absent
        log_file: File that receives the detailed run log
    """

    git_executable: str = "git"
    config_path: Optional[str] = None
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "SproutSettings":
        """Create settings from environment variables.

        Environment variables:
            SPROUT_GIT: git executable
            SPROUT_CONFIG: Project configuration file
            SPROUT_LOG_FILE: Log file path

        Returns:
            SproutSettings instance with values from environment or defaults
        """
        return cls(
            git_executable=os.getenv("SPROUT_GIT", cls.git_executable),
            config_path=os.getenv("SPROUT_CONFIG") or None,
            log_file=os.getenv("SPROUT_LOG_FILE") or None,
        )


# Global settings instance (can be overridden)
_settings: Optional[SproutSettings] = None


def get_settings() -> SproutSettings:
    """Get the global Sprout settings.

    Returns:
        SproutSettings instance (creates from environment if not set)
    """
    global _settings
    if _settings is None:
        _settings = SproutSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
