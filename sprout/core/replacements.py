"""Flat token substitution for template files.

A token is written as ``{{KEY}}`` in template text. Substitution is a single
literal pass: there are no filters, conditionals or nested lookups, and
placeholders whose key is not in the mapping are left untouched.
"""
import re
from datetime import date
from typing import TYPE_CHECKING, Dict, Mapping, Optional

if TYPE_CHECKING:
    from sprout.config.models import Configuration

_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def placeholder(key: str) -> str:
    """Return the template spelling of ``key``."""
    return "{{" + key + "}}"


def substitute(text: str, tokens: Mapping[str, str]) -> str:
    """Replace every ``{{KEY}}`` occurrence for every key in ``tokens``.

    Replacement values are inserted verbatim and never scanned again, so the
    result does not depend on the iteration order of ``tokens``.
    """
    if not tokens or not text:
        return text

    keys = sorted(tokens, key=len, reverse=True)
    pattern = re.compile(
        r"\{\{(" + "|".join(re.escape(key) for key in keys) + r")\}\}"
    )
    return pattern.sub(lambda match: str(tokens[match.group(1)]), text)


def camel_case(value: str) -> str:
    """Convert ``value`` to camelCase ("my-project" -> "myProject")."""
    words = _WORDS.findall(value)
    if not words:
        return ""
    first, *rest = words
    return first.lower() + "".join(word.capitalize() for word in rest)


def build_replacements(
    config: "Configuration",
    year: Optional[int] = None,
) -> Dict[str, str]:
    """Build the token map used for every template of a run.

    Args:
        config: Resolved project configuration
        year: Year for CURRENT-YEAR (defaults to the current year)

    Returns:
        Mapping of token name to replacement text
    """
    current_year = year if year is not None else date.today().year
    return {
        "GIT-ORGANISATION": config.git_organization,
        "ORGANISATION-NAME": config.organization_name,
        "ORGANISATION-EMAIL": config.organization_email,
        "CURRENT-YEAR": str(current_year),
        "PROJECT-NAME": config.main_name,
        "projectName": camel_case(config.main_name),
    }
