"""
Rebuilding window bindings after a restart.

Window ids do not survive a browser restart, so the persisted bindings are
discarded and reconstructed from the tabs each window currently holds.
"""
import logging
from typing import Dict, List

from .binding_table import BindingTable
from .models import Config, Window
from .pattern_matcher import tab_matches_group


class StartupRebinder:
    """
    Bind each group to the first window holding a tab that matches it.

    Groups are visited in configured order, not priority order.
    """

    def __init__(self, bindings: BindingTable):
        self.logger = logging.getLogger(__name__)
        self.bindings = bindings

    @staticmethod
    def compute(config: Config, live_windows: List[Window]) -> Dict[int, str]:
        """
        Compute a fresh binding table from live window contents.

        Args:
            config: Current configuration
            live_windows: Windows in enumeration order, populated with tabs

        Returns:
            New windowId -> groupName mapping
        """
        new_bindings: Dict[int, str] = {}
        for group in config.groups:
            for window in live_windows:
                if group.name in new_bindings.values():
                    break
                if window.id in new_bindings:
                    continue
                if any(tab_matches_group(tab.url, tab.title, group) for tab in window.tabs):
                    new_bindings[window.id] = group.name
                    break
        return new_bindings

    async def rebind(self, config: Config, live_windows: List[Window]) -> Dict[int, str]:
        """
        Replace the binding table with one derived from live windows.

        The previous table is never merged in. When routing is disabled or no
        groups exist the table is left as it is.
        """
        if not config.enabled or not config.groups:
            return await self.bindings.get()

        new_bindings = self.compute(config, live_windows)
        for window_id, group_name in new_bindings.items():
            self.logger.info(f"Bound window {window_id} to group '{group_name}'")

        await self.bindings.replace(new_bindings)
        self.logger.info(f"Window bindings restored: {new_bindings}")
        return new_bindings
