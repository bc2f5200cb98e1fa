"""Pattern matcher used by every rule that screens free-text fields.

Matching tries three modes in order and stops at the first success:

1. Case-insensitive exact equality.
2. Regular expression search, when the pattern looks like one
   (contains ".*" or a backslash escape).
3. Case-insensitive substring containment.

A pattern that is not a valid regular expression simply fails mode 2
and falls through to mode 3; matching never raises.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from functools import lru_cache
from typing import TypeVar

T = TypeVar("T")

REGEX_MARKERS: tuple[str, ...] = (".*", "\\")


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return None


def looks_like_regex(pattern: str) -> bool:
    """Return True if the pattern should be tried as a regular expression."""
    return any(marker in pattern for marker in REGEX_MARKERS)


def matches(value: str, pattern: str) -> bool:
    """Check whether a value matches a screening pattern.

    Args:
        value: The field value under inspection.
        pattern: Literal text or a regular expression.

    Returns:
        True if any of the three matching modes succeeds.

    Examples:
        >>> matches("System:Admin", "system:admin")
        True
        >>> matches("/api/v1/pods/web/exec", "/api/v1/pods/.*/exec")
        True
        >>> matches("my-cluster-admin-sa", "cluster-admin")
        True
        >>> matches("viewer", "admin")
        False
    """
    folded_value = value.casefold()
    folded_pattern = pattern.casefold()

    if folded_value == folded_pattern:
        return True

    if looks_like_regex(pattern):
        compiled = _compile(pattern)
        if compiled is not None and compiled.search(value):
            return True

    return folded_pattern in folded_value


def is_allowed(value: str, allowed: Iterable[str]) -> bool:
    """Case-insensitive allow-list membership."""
    folded = value.casefold()
    return any(folded == candidate.casefold() for candidate in allowed)


def lookup(table: Mapping[str, T], key: str, default: T) -> T:
    """Case-insensitive table lookup with a fallback value."""
    folded = key.casefold()
    for name, value in table.items():
        if name.casefold() == folded:
            return value
    return default
