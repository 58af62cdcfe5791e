"""
Data models for TabShepherd.

This module contains the dataclass definitions shared by the routing
engine, the batch sorter and the storage layer. Groups and configs know
how to convert to and from the plain records kept in storage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class MatchMode(Enum):
    """How a group's patterns are interpreted."""
    SIMPLE = "simple"
    REGEX = "regex"

    @classmethod
    def parse(cls, value) -> "MatchMode":
        if isinstance(value, cls):
            return value
        if not value:
            return cls.SIMPLE
        return cls(str(value).lower())


class MatchType(Enum):
    """Which tab field produced a group match."""
    TITLE = "title"
    URL = "url"


@dataclass
class Group:
    """
    A named set of patterns whose matching tabs share one window.

    Attributes:
        name: Unique, user-facing key
        patterns: Ordered list of patterns
        priority: Lower number = higher priority
        mode: How patterns are matched (simple substring or regex)
    """
    name: str
    patterns: List[str] = field(default_factory=list)
    priority: int = 0
    mode: MatchMode = MatchMode.SIMPLE

    def __post_init__(self):
        # Convert string mode to enum if needed
        self.mode = MatchMode.parse(self.mode)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'patterns': list(self.patterns),
            'priority': self.priority,
            'mode': self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: dict, default_priority: int = 0) -> "Group":
        priority = data.get('priority')
        return cls(
            name=data['name'],
            patterns=list(data.get('patterns') or []),
            priority=default_priority if priority is None else int(priority),
            mode=MatchMode.parse(data.get('mode')),
        )


@dataclass
class Config:
    """
    Routing configuration as stored under the synced ``config`` key.

    Attributes:
        enabled: Master switch for all routing
        groups: Configured groups (order is insertion order, not priority)
        catch_all_window_id: Window receiving tabs that match no group
    """
    enabled: bool = True
    groups: List[Group] = field(default_factory=list)
    catch_all_window_id: Optional[int] = None

    def get_group(self, name: str) -> Optional[Group]:
        for group in self.groups:
            if group.name == name:
                return group
        return None

    def groups_by_priority(self) -> List[Group]:
        """Groups in ascending priority; ties keep insertion order."""
        return sorted(self.groups, key=lambda g: g.priority)

    def to_dict(self) -> dict:
        return {
            'enabled': self.enabled,
            'groups': [g.to_dict() for g in self.groups],
            'catchAllWindowId': self.catch_all_window_id,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Config":
        if not data:
            return cls()
        return cls(
            enabled=data.get('enabled', True) is not False,
            groups=[Group.from_dict(g, i) for i, g in enumerate(data.get('groups') or [])],
            catch_all_window_id=data.get('catchAllWindowId'),
        )


@dataclass
class Tab:
    """A browser tab as seen by the core."""
    id: int
    window_id: int
    url: str = ""
    title: str = ""
    pending_url: Optional[str] = None
    label_id: Optional[int] = None


@dataclass
class Window:
    """A browser window as seen by the core."""
    id: int
    type: str = "normal"
    tabs: List[Tab] = field(default_factory=list)
    focused: bool = False

    @property
    def is_normal(self) -> bool:
        return self.type == "normal"


@dataclass
class TabLabel:
    """A named, colored visual grouping of tabs inside one window."""
    id: int
    window_id: int
    title: str
    color: str


@dataclass(frozen=True)
class MatchInfo:
    """Ephemeral result of group resolution. Never persisted."""
    group: Group
    match_type: MatchType


@dataclass
class SortResult:
    """Outcome of a sort-all pass."""
    moved: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {'moved': self.moved, 'errors': list(self.errors)}
