"""Error taxonomy for scaffolding runs.

Hard failures derive from ScaffoldError and abort the pipeline. Soft
conditions (already existing files, unchanged manifests) are never raised,
they are reported as Outcome.SKIPPED.
"""
from pathlib import Path
from typing import Optional, Sequence


class ScaffoldError(Exception):
    """Base class for errors that abort a scaffolding run."""
    pass


class ConfigValidationError(ScaffoldError):
    """Raised when a project configuration file is malformed."""
    pass


class PreconditionFailure(ScaffoldError):
    """Raised when a step cannot proceed because an earlier result is missing."""
    pass


class InvalidFormatError(ScaffoldError):
    """Raised when a structured file cannot be parsed."""
    pass


class InvalidManifest(ScaffoldError, TypeError):
    """Raised when package.json is not a JSON object."""
    pass


class TemplateNotFoundError(ScaffoldError):
    """Raised when a declared template file is missing."""
    pass


class ExternalCommandFailure(ScaffoldError):
    """Raised when git or the package manager exits non-zero."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        cwd: Optional[Path] = None,
        reason: Optional[str] = None,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.cwd = cwd
        self.reason = reason

        message = f"Command failed: {' '.join(self.command)}"
        if returncode is not None:
            message += f" (exit code {returncode})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
