"""Filesystem helpers used by the scaffolding steps."""
import json
from pathlib import Path
from typing import Any, Mapping

from sprout.core.errors import InvalidFormatError, TemplateNotFoundError
from sprout.core.logger import get_logger
from sprout.core.outcome import Outcome
from sprout.core.replacements import substitute

logger = get_logger(__name__)


def exists(path: Path) -> bool:
    return Path(path).exists()


def mkdir_recursive(path: Path) -> None:
    logger.debug(f"Creating directory: {path}")
    Path(path).mkdir(parents=True, exist_ok=True)


def read_text_file(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_text_file(path: Path, content: str) -> None:
    Path(path).write_text(content, encoding="utf-8")


def write_text_file_with_replacements_if_missing(
    source: Path,
    target: Path,
    tokens: Mapping[str, str],
) -> Outcome:
    """Copy ``source`` to ``target`` through token substitution.

    Existing targets are never touched, so user edits survive re-runs.

    Raises:
        TemplateNotFoundError: If ``target`` is missing and ``source`` does
            not exist either
    """
    source = Path(source)
    target = Path(target)

    if target.exists():
        logger.warning(f"File already exists, keeping it: {target}")
        return Outcome.SKIPPED

    if not source.is_file():
        raise TemplateNotFoundError(f"Template not found: {source}")

    content = substitute(read_text_file(source), tokens)
    mkdir_recursive(target.parent)
    write_text_file(target, content)
    logger.debug(f"Created {target} from {source}")
    return Outcome.APPLIED


def read_json_file(path: Path) -> Any:
    """Parse a JSON file.

    Raises:
        InvalidFormatError: If the file is not UTF-8 encoded JSON
    """
    try:
        return json.loads(read_text_file(path))
    except UnicodeDecodeError as e:
        raise InvalidFormatError(f"{path} is not UTF-8 text: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidFormatError(f"{path} is not valid JSON: {e}") from e


def write_json_file(path: Path, document: Any) -> None:
    """Write ``document`` the way npm formats package.json."""
    write_text_file(path, json.dumps(document, indent=2, ensure_ascii=False) + "\n")
