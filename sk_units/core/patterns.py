"""Wildcard path patterns.

``*`` matches one path segment (one or more characters that are not a
dot); ``**`` matches any characters, dots included.  Matching is
case-sensitive and always against the whole path.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

from sk_units.core.models import PathPattern

logger = logging.getLogger(__name__)

_SEGMENT = "[^.]+"
_ANYTHING = ".*"


@dataclass(frozen=True)
class Matcher:
    """A compiled wildcard pattern."""

    pattern: str
    regex: re.Pattern[str]

    def test(self, path: str) -> bool:
        return self.regex.fullmatch(path) is not None


def wildcard_to_regex(pattern: str) -> str:
    """Translate a wildcard pattern into an anchored regular expression.

    ``**`` is split out before single ``*`` so the two never collide;
    every other character (dots included) is matched literally.
    """
    parts = []
    for chunk in pattern.split("**"):
        parts.append(_SEGMENT.join(re.escape(piece) for piece in chunk.split("*")))
    return "^" + _ANYTHING.join(parts) + "$"


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> Matcher:
    """Compile (and cache) a wildcard pattern."""
    return Matcher(pattern=pattern, regex=re.compile(wildcard_to_regex(pattern)))


def matches(path: str, pattern: str) -> bool:
    """Return True if *path* matches the wildcard *pattern*."""
    return compile_pattern(pattern).test(path)


def sort_by_priority(patterns: Iterable[PathPattern]) -> list[PathPattern]:
    """Order patterns by descending priority, keeping list order for ties."""
    return sorted(patterns, key=lambda p: -(p.priority or 0))


def find_matching_pattern(path: str, patterns: Iterable[PathPattern] | None) -> PathPattern | None:
    """Return the highest-priority pattern matching *path*, or None.

    Patterns sharing the highest priority are decided by their order in
    *patterns*.
    """
    if not patterns:
        return None

    for rule in sort_by_priority(patterns):
        if matches(path, rule.pattern):
            logger.debug("%s matched pattern %s (priority %s)", path, rule.pattern, rule.priority)
            return rule
    return None
