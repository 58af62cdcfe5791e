"""
Group resolution strategies.

This module decides which single group claims a tab. Two strategies
exist and produce different outcomes on overlapping patterns, so they are
kept as separate named classes and the caller picks one explicitly:

- TitlePriorityResolver: title matches beat URL matches, ties are broken
  alphabetically by group name. Numeric priority is ignored.
- PriorityOrderResolver: groups are tried in ascending priority and only
  the URL is considered.
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from .models import Config, Group, MatchInfo, MatchType
from .pattern_matcher import matches_any


class MatchPolicy(Enum):
    """Available group resolution policies."""
    TITLE_PRIORITY = "title_priority"
    PRIORITY_ORDER = "priority_order"


class GroupResolver(ABC):
    """
    Abstract base class for group resolution strategies.

    Each strategy implements resolve_match(); resolve() wraps it and
    returns the bare group.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def policy(self) -> MatchPolicy:
        """The policy this strategy implements."""
        pass

    @abstractmethod
    def _match(self, url: str, title: str, groups: List[Group]) -> Optional[MatchInfo]:
        pass

    def resolve_match(self, url: str, title: str, config: Config) -> Optional[MatchInfo]:
        """
        Find the group claiming a tab.

        Args:
            url: Tab URL
            title: Tab title
            config: Current configuration

        Returns:
            MatchInfo for the winning group, or None if routing is disabled
            or no group matched
        """
        if not config.enabled:
            return None

        match = self._match(url, title, config.groups)
        if match:
            self.logger.debug(
                f"Tab '{title}' ({url}) resolved to group '{match.group.name}' "
                f"by {match.match_type.value}"
            )
        return match

    def resolve(self, url: str, title: str, config: Config) -> Optional[Group]:
        match = self.resolve_match(url, title, config)
        return match.group if match else None


class TitlePriorityResolver(GroupResolver):
    """Title matches outrank URL matches; ties break by group name."""

    @property
    def policy(self) -> MatchPolicy:
        return MatchPolicy.TITLE_PRIORITY

    def _match(self, url, title, groups):
        candidates = []
        for group in groups:
            if matches_any(title, group.patterns, group.mode):
                candidates.append(MatchInfo(group, MatchType.TITLE))
            elif matches_any(url, group.patterns, group.mode):
                candidates.append(MatchInfo(group, MatchType.URL))

        if not candidates:
            return None

        candidates.sort(key=lambda m: (m.match_type != MatchType.TITLE, m.group.name))
        return candidates[0]


class PriorityOrderResolver(GroupResolver):
    """First group, in ascending priority, whose URL matches."""

    @property
    def policy(self) -> MatchPolicy:
        return MatchPolicy.PRIORITY_ORDER

    def _match(self, url, title, groups):
        # Stable sort keeps insertion order for equal priorities
        for group in sorted(groups, key=lambda g: g.priority):
            if matches_any(url, group.patterns, group.mode):
                return MatchInfo(group, MatchType.URL)
        return None


_RESOLVERS = {
    MatchPolicy.TITLE_PRIORITY: TitlePriorityResolver,
    MatchPolicy.PRIORITY_ORDER: PriorityOrderResolver,
}


def create_resolver(policy) -> GroupResolver:
    """
    Build the resolver for a policy.

    Args:
        policy: MatchPolicy or its string value
    """
    if not isinstance(policy, MatchPolicy):
        policy = MatchPolicy(policy)
    return _RESOLVERS[policy]()


def resolve_group(url: str, title: str, config: Config,
                  policy=MatchPolicy.PRIORITY_ORDER) -> Optional[Group]:
    return create_resolver(policy).resolve(url, title, config)
