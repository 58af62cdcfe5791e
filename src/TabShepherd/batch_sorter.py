"""
Sort-all reconciliation.

Walks groups in ascending priority and pulls every matching tab into the
group's window. A window bound to a higher-priority group owns its tabs:
a later, lower-priority group never takes them in the same pass.
"""
import logging
from typing import Dict

from .binding_table import BindingTable
from .config_loader import EngineSettings
from .errors import TabNotFoundError
from .models import Config, Group, SortResult
from .pattern_matcher import tab_matches_group
from .window_coordinator import WindowCoordinator


class BatchSorter:
    """Reconcile all open tabs against the current group configuration."""

    def __init__(self, bindings: BindingTable, coordinator: WindowCoordinator,
                 settings: EngineSettings = None):
        self.logger = logging.getLogger(__name__)
        self.bindings = bindings
        self.coordinator = coordinator
        self.browser = coordinator.browser
        self.settings = settings or EngineSettings()

    async def sort_all(self, config: Config) -> SortResult:
        """
        Move every matching tab into its group's window.

        Args:
            config: Configuration to sort against

        Returns:
            SortResult with the number of tabs moved and per-tab error messages
        """
        result = SortResult()
        if not config.enabled or not config.groups:
            return result

        priorities = {g.name: g.priority for g in config.groups}

        for group in config.groups_by_priority():
            await self._sort_group(group, priorities, result)

        self.logger.info(f"Sort complete: moved {result.moved} tabs, {len(result.errors)} errors")
        return result

    async def _sort_group(self, group: Group, priorities: Dict[str, int], result: SortResult) -> None:
        # State may have changed during the previous group's moves
        windows = await self.browser.get_all_windows()
        bindings = await self.bindings.get()

        candidates = []
        for window in windows:
            if not window.is_normal:
                continue

            current_group = bindings.get(window.id)
            if current_group == group.name:
                continue
            # Owned by a higher-priority group
            if current_group in priorities and priorities[current_group] < group.priority:
                continue

            for tab in window.tabs:
                if self.settings.is_internal_url(tab.url):
                    continue
                if tab_matches_group(tab.url, tab.title, group):
                    candidates.append(tab)

        for tab in candidates:
            try:
                # An earlier candidate may have just created the window
                target_window_id = await self.bindings.find_window_for_group(group.name, self.browser)

                try:
                    current_tab = await self.browser.get_tab(tab.id)
                except TabNotFoundError:
                    continue

                if target_window_id is None:
                    await self.coordinator.create_window_for_group(group.name, tab.id)
                    result.moved += 1
                elif target_window_id != current_tab.window_id:
                    await self.coordinator.move_tab(tab.id, target_window_id)
                    result.moved += 1
            except Exception as e:
                reason = getattr(e, 'reason', e)
                self.logger.warning(f"Failed to move tab '{tab.title}': {reason}")
                result.errors.append(f'Failed to move tab "{tab.title}": {reason}')
