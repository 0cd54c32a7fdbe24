"""Run external commands with the caller's terminal attached."""
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from sprout.core.errors import ExternalCommandFailure
from sprout.core.logger import get_logger

logger = get_logger(__name__)

OUTPUT_MODES = ("inherit", "silent")


def run_command(
    args: Sequence[str],
    cwd: Optional[Path] = None,
    output_mode: str = "inherit",
    check: bool = True,
) -> int:
    """Run ``args`` and return its exit code.

    Output is never captured: with ``inherit`` the command writes straight to
    the invoking terminal, with ``silent`` its output is discarded.

    Args:
        args: Command and arguments
        cwd: Working directory for the command
        output_mode: "inherit" or "silent"
        check: Raise ExternalCommandFailure on a non-zero exit code

    Returns:
        The command's exit code

    Raises:
        ExternalCommandFailure: If the executable is missing, or exits
            non-zero while ``check`` is set
    """
    if output_mode not in OUTPUT_MODES:
        raise ValueError(f"output_mode must be one of {OUTPUT_MODES}, got '{output_mode}'")

    cmd = [str(arg) for arg in args]
    stream = subprocess.DEVNULL if output_mode == "silent" else None
    logger.debug(f"Executing: {' '.join(cmd)} (cwd={cwd})")

    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            stdout=stream,
            stderr=stream,
            check=check,
        )
    except FileNotFoundError as e:
        raise ExternalCommandFailure(cmd, cwd=cwd, reason=f"{cmd[0]} not found") from e
    except subprocess.CalledProcessError as e:
        raise ExternalCommandFailure(cmd, returncode=e.returncode, cwd=cwd) from e

    return result.returncode
