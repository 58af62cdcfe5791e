"""
Pattern matching for tab URLs and titles.

Patterns are either plain case-insensitive substrings (simple mode) or
case-insensitive regular expressions (regex mode). An invalid regex never
raises: it is logged once and treated as matching nothing.
"""
import logging
import re
from functools import lru_cache
from typing import Iterable, Optional, Pattern

from .models import Group, MatchMode

logger = logging.getLogger(__name__)


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> Optional[Pattern]:
    """
    Compile a regex pattern case-insensitively.

    Returns:
        The compiled pattern, or None if the pattern is invalid
    """
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.error(f"Invalid regex pattern '{pattern}': {e}")
        return None


def matches(text: Optional[str], pattern: Optional[str], mode=MatchMode.SIMPLE) -> bool:
    """
    Check whether text satisfies a pattern.

    Args:
        text: URL or title to test
        pattern: Substring or regex, depending on mode
        mode: MatchMode (or its string value)

    Returns:
        True if the pattern matches, False otherwise
    """
    if not text or not pattern:
        return False

    if MatchMode.parse(mode) == MatchMode.REGEX:
        compiled = compile_pattern(pattern)
        if compiled is None:
            return False
        return compiled.search(text) is not None

    return pattern.lower() in text.lower()


def matches_any(text: Optional[str], patterns: Iterable[str], mode=MatchMode.SIMPLE) -> bool:
    return any(matches(text, pattern, mode) for pattern in patterns)


def tab_matches_group(url: Optional[str], title: Optional[str], group: Group) -> bool:
    """True if the tab's URL or title matches any of the group's patterns."""
    return any(
        matches(url, pattern, group.mode) or matches(title, pattern, group.mode)
        for pattern in group.patterns
    )


def is_valid_regex(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True
