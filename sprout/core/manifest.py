"""Conditional package.json updates."""
import copy
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping

from sprout.core.errors import InvalidFormatError, InvalidManifest
from sprout.core.logger import get_logger
from sprout.core.outcome import Outcome
from sprout.core.replacements import build_replacements, substitute
from sprout.services import filesystem

if TYPE_CHECKING:
    from sprout.config.models import Configuration, ManifestTransform

logger = get_logger(__name__)

MANIFEST_FILE = "package.json"


class ManifestMerger:
    """Applies a transform to package.json and writes only real changes."""

    def merge_if_changed(
        self,
        path: Path,
        transform: "ManifestTransform",
        config: "Configuration",
    ) -> Outcome:
        """Transform the manifest at ``path`` and persist it if it changed.

        The transform receives a deep copy, so in-place edits cannot leak into
        the comparison. Equality is by value and JSON type, so 1 and true differ.

        Returns:
            Outcome.APPLIED if the file was rewritten, Outcome.SKIPPED otherwise

        Raises:
            InvalidManifest: If the file or the transform result is not a JSON object
        """
        path = Path(path)
        try:
            current = filesystem.read_json_file(path)
        except InvalidFormatError as e:
            raise InvalidManifest(f"{path.name} was invalid: {e}") from e

        if not isinstance(current, dict):
            raise InvalidManifest(f"{path.name} was invalid: expected a JSON object")

        candidate = transform(copy.deepcopy(current), config)
        if not isinstance(candidate, dict):
            raise InvalidManifest(
                f"Manifest transform returned {type(candidate).__name__}, expected a JSON object"
            )

        if same_json(candidate, current):
            logger.warning(f"No changes to {path.name} detected")
            return Outcome.SKIPPED

        filesystem.write_json_file(path, candidate)
        logger.info(f"Updated {path}")
        return Outcome.APPLIED


def same_json(left: Any, right: Any) -> bool:
    """Compare two JSON documents without Python's bool/int/float coercion."""
    if type(left) is not type(right):
        return False
    if isinstance(left, dict):
        return left.keys() == right.keys() and all(same_json(left[key], right[key]) for key in left)
    if isinstance(left, list):
        return len(left) == len(right) and all(same_json(a, b) for a, b in zip(left, right))
    return left == right


def deep_merge(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with ``overrides`` merged in; nested dicts merge recursively."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _substitute_values(value: Any, tokens: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return substitute(value, tokens)
    if isinstance(value, Mapping):
        return {key: _substitute_values(item, tokens) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute_values(item, tokens) for item in value]
    return value


def merge_fields(fields: Mapping[str, Any]) -> Callable[[Dict[str, Any], "Configuration"], Dict[str, Any]]:
    """Build a manifest transform that merges ``fields`` into package.json.

    String values may use the same ``{{TOKEN}}`` placeholders as templates.
    """
    frozen = copy.deepcopy(dict(fields))

    def transform(manifest: Dict[str, Any], config: "Configuration") -> Dict[str, Any]:
        tokens = build_replacements(config)
        return deep_merge(manifest, _substitute_values(frozen, tokens))

    return transform
