"""
Persisted routing configuration and group list maintenance.

The config lives under the synced ``config`` key. The settings UI edits it
through the operations below; every structural change to the group list
ends by renumbering priorities to their rank.
"""
import json
import logging
from typing import Iterable, List, Optional

import yaml

from .errors import ConfigValidationError
from .models import Config, Group, MatchMode
from .pattern_matcher import is_valid_regex
from .storage import CONFIG_KEY, StorageArea


def renumber_priorities(groups: Iterable[Group]) -> List[Group]:
    """
    Assign priorities 0..n-1 by current priority rank.

    Ties keep their existing order. Groups are updated in place; the
    returned list is in priority order.
    """
    ordered = sorted(groups, key=lambda g: g.priority)
    for rank, group in enumerate(ordered):
        group.priority = rank
    return ordered


def parse_groups(raw_groups) -> List[Group]:
    """
    Validate and convert raw group records.

    :param raw_groups: List of dicts with name, patterns and optional mode/priority
    :return: List of Group objects in input order with renumbered priorities
    :raises ConfigValidationError: If any group is malformed
    """
    if not isinstance(raw_groups, list):
        raise ConfigValidationError("Invalid config: missing groups array")

    groups = []
    names = set()
    for i, raw in enumerate(raw_groups):
        if not isinstance(raw, dict):
            raise ConfigValidationError(f"Invalid config: group at index {i} must be a dictionary")

        name = raw.get('name')
        patterns = raw.get('patterns')
        if not name or not isinstance(patterns, list):
            raise ConfigValidationError("Invalid config: group missing name or patterns")
        if not isinstance(name, str):
            raise ConfigValidationError(f"Invalid config: group name at index {i} must be a string")
        if not all(isinstance(p, str) for p in patterns):
            raise ConfigValidationError(f"Invalid config: group '{name}' patterns must be strings")
        if not any(p.strip() for p in patterns):
            raise ConfigValidationError(f"Invalid config: group '{name}' has no patterns")
        if name in names:
            raise ConfigValidationError(f"Invalid config: duplicate group name '{name}'")
        names.add(name)

        try:
            mode = MatchMode.parse(raw.get('mode'))
        except ValueError:
            raise ConfigValidationError(
                f"Invalid config: group '{name}' has invalid mode '{raw.get('mode')}'. "
                f"Valid values: simple, regex"
            )

        priority = raw.get('priority')
        if priority is None:
            priority = i
        elif isinstance(priority, bool) or not isinstance(priority, (int, float)):
            raise ConfigValidationError(f"Invalid config: group '{name}' priority must be a number")

        groups.append(Group(name=name, patterns=list(patterns), priority=priority, mode=mode))

    renumber_priorities(groups)
    return groups


def import_config(text: str) -> Config:
    """
    Parse an exported configuration (JSON or YAML).

    :raises ConfigValidationError: If the document is not a valid config
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid config: {e}")

    return config_from_record(data)


def config_from_record(data) -> Config:
    """
    Validate a plain config record and build a Config from it.

    :raises ConfigValidationError: If the record is not a valid config
    """
    if not isinstance(data, dict):
        raise ConfigValidationError("Invalid config: expected an object")

    if 'groups' not in data:
        raise ConfigValidationError("Invalid config: missing groups array")

    catch_all = data.get('catchAllWindowId') or None
    if catch_all is not None and (isinstance(catch_all, bool) or not isinstance(catch_all, int)):
        raise ConfigValidationError("Invalid config: catchAllWindowId must be a window id")

    return Config(
        enabled=data.get('enabled') is not False,
        groups=parse_groups(data['groups']),
        catch_all_window_id=catch_all,
    )


def export_config(config: Config) -> str:
    return json.dumps(config.to_dict(), indent=2)


class ConfigStore:
    """Async access to the stored routing configuration."""

    def __init__(self, storage: StorageArea, bindings=None):
        """
        :param storage: Synced storage area
        :param bindings: Optional BindingTable kept consistent on rename/delete
        """
        self.logger = logging.getLogger(__name__)
        self.storage = storage
        self.bindings = bindings

    async def get(self) -> Config:
        return Config.from_dict(await self.storage.get(CONFIG_KEY))

    async def save(self, config: Config) -> None:
        await self.storage.set(CONFIG_KEY, config.to_dict())

    async def save_dict(self, data: dict) -> Config:
        """
        Store a config received as a plain record.

        :raises ConfigValidationError: If the record is malformed; the stored config is kept
        """
        config = config_from_record(data)
        await self.save(config)
        return config

    async def import_text(self, text: str) -> Config:
        """
        Replace the stored config with an imported one.

        The stored config is only touched if the import validates.
        """
        config = import_config(text)
        await self.save(config)
        self.logger.info(f"Imported config with {len(config.groups)} groups")
        return config

    async def export_text(self) -> str:
        return export_config(await self.get())

    async def set_enabled(self, enabled: bool) -> Config:
        config = await self.get()
        config.enabled = bool(enabled)
        await self.save(config)
        self.logger.info("Routing enabled" if config.enabled else "Routing disabled")
        return config

    async def set_catch_all_window(self, window_id: Optional[int]) -> Config:
        config = await self.get()
        config.catch_all_window_id = window_id
        await self.save(config)
        return config

    async def add_group(self, name: str, patterns: List[str], mode=MatchMode.SIMPLE) -> Group:
        """
        Append a new lowest-priority group.

        :raises ConfigValidationError: On empty name/patterns, duplicate name or invalid regex
        """
        config = await self.get()
        name, patterns, mode = self._validate_group_fields(name, patterns, mode)
        if config.get_group(name):
            raise ConfigValidationError("A group with this name already exists")

        priority = max((g.priority for g in config.groups), default=-1) + 1
        group = Group(name=name, patterns=patterns, priority=priority, mode=mode)
        config.groups.append(group)
        renumber_priorities(config.groups)
        await self.save(config)
        self.logger.info(f"Added group '{name}'")
        return group

    async def update_group(self, old_name: str, name: str, patterns: List[str], mode=MatchMode.SIMPLE) -> Group:
        config = await self.get()
        group = config.get_group(old_name)
        if group is None:
            raise ConfigValidationError(f"Unknown group '{old_name}'")
        name, patterns, mode = self._validate_group_fields(name, patterns, mode)
        if name != old_name and config.get_group(name):
            raise ConfigValidationError("A group with this name already exists")

        group.name = name
        group.patterns = patterns
        group.mode = mode
        renumber_priorities(config.groups)
        await self.save(config)

        if name != old_name and self.bindings is not None:
            await self.bindings.rename_group(old_name, name)
        return group

    async def delete_group(self, name: str) -> Config:
        config = await self.get()
        config.groups = [g for g in config.groups if g.name != name]
        renumber_priorities(config.groups)
        await self.save(config)
        if self.bindings is not None:
            await self.bindings.unbind_group(name)
        self.logger.info(f"Deleted group '{name}'")
        return config

    async def swap_priority(self, dragged_name: str, target_name: str) -> Config:
        """Exchange the priorities of two groups (drag-and-drop reorder)."""
        config = await self.get()
        dragged = config.get_group(dragged_name)
        target = config.get_group(target_name)
        if dragged is None or target is None or dragged is target:
            return config

        dragged.priority, target.priority = target.priority, dragged.priority
        renumber_priorities(config.groups)
        await self.save(config)
        return config

    @staticmethod
    def _validate_group_fields(name, patterns, mode):
        name = (name or "").strip()
        patterns = [p.strip() for p in patterns or [] if p and p.strip()]
        if not name:
            raise ConfigValidationError("Please enter a group name")
        if not patterns:
            raise ConfigValidationError("Please enter at least one pattern")
        try:
            mode = MatchMode.parse(mode)
        except ValueError:
            raise ConfigValidationError(f"Invalid match mode '{mode}'")
        if mode == MatchMode.REGEX:
            for pattern in patterns:
                if not is_valid_regex(pattern):
                    raise ConfigValidationError(f"Invalid regex: {pattern}")
        return name, patterns, mode
