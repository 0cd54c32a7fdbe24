"""Unified logging for Sprout with console and file output."""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

# Log file configuration
LOG_DIR = Path.home() / ".sprout"
LOG_FILE = LOG_DIR / "sprout.log"
FALLBACK_LOG_FILE = Path("/tmp/sprout.log")

# Track if file logging has been set up
_file_logging_configured = False


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Set up file logging for scaffolding runs.

    Args:
        log_file: Path to log file (defaults to ~/.sprout/sprout.log)
        verbose: Enable debug-level logging

    Returns:
        Path of the log file in use

    Note:
        Creates log directory if it doesn't exist.
        Falls back to /tmp if the home directory is not writable.
    """
    global _file_logging_configured

    target_log_file = Path(log_file) if log_file else LOG_FILE

    root_logger = logging.getLogger("sprout")
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    if _file_logging_configured:
        return target_log_file

    try:
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target_log_file = FALLBACK_LOG_FILE
        target_log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(target_log_file)
    file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Detailed format for file logs
    file_formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    _file_logging_configured = True

    root_logger.info(f"Sprout logging initialized: {target_log_file}")
    return target_log_file


def set_console_level(verbose: bool = False) -> None:
    """Switch every console handler between INFO and DEBUG."""
    level = logging.DEBUG if verbose else logging.INFO
    for name in list(logging.root.manager.loggerDict):
        if not name.startswith("sprout"):
            continue
        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance with console output.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger with Rich console handler

    Note:
        File logging must be enabled separately via setup_file_logging()
    """
    logger = logging.getLogger(name)

    # Only add console handler if not already present
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger
