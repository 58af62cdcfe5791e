"""
Per-event tab routing.

Invoked whenever a tab is created or its URL changes. Decides whether the
tab belongs in another window and moves it there.
"""
import logging
from enum import Enum
from typing import Optional

from .binding_table import BindingTable
from .config_loader import EngineSettings
from .config_store import ConfigStore
from .group_resolver import GroupResolver, create_resolver
from .window_coordinator import WindowCoordinator


class RouteDecision(Enum):
    """What on_tab_navigated did with a tab."""
    IGNORED = "ignored"
    ALREADY_PLACED = "already_placed"
    MOVED = "moved"
    MOVE_FAILED = "move_failed"
    CREATED_WINDOW = "created_window"
    LEFT_IN_PLACE = "left_in_place"
    CATCH_ALL = "catch_all"
    CATCH_ALL_MISSING = "catch_all_missing"
    NO_MATCH = "no_match"


class RoutingEngine:
    """
    Route a single tab to the window bound to its group.

    Rules, in order:
    - disabled config or internal URL: ignore
    - matched group already owns the current window: leave it
    - matched group bound elsewhere: move the tab there
    - matched group unbound: create a window (or leave the tab, depending on
      create_window_on_unbound_match)
    - no group: send to the catch-all window if one is configured and alive
    """

    def __init__(
        self,
        config_store: ConfigStore,
        bindings: BindingTable,
        coordinator: WindowCoordinator,
        settings: Optional[EngineSettings] = None,
        resolver: Optional[GroupResolver] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.config_store = config_store
        self.bindings = bindings
        self.coordinator = coordinator
        self.settings = settings or EngineSettings()
        self.resolver = resolver or create_resolver(self.settings.match_policy)

    async def on_tab_navigated(self, tab_id: int, url: str, title: str, current_window_id: int) -> RouteDecision:
        """
        Route a tab after navigation or creation.

        Args:
            tab_id: Tab that changed
            url: New URL
            title: Current title (may be empty)
            current_window_id: Window the tab is in now

        Returns:
            RouteDecision describing the action taken
        """
        config = await self.config_store.get()
        if not config.enabled or self.settings.is_internal_url(url):
            return RouteDecision.IGNORED

        group = self.resolver.resolve(url, title, config)
        if group is None:
            return await self._route_to_catch_all(tab_id, current_window_id, config.catch_all_window_id)

        if await self.bindings.group_for_window(current_window_id) == group.name:
            return RouteDecision.ALREADY_PLACED

        target_window_id = await self.bindings.find_window_for_group(group.name, self.coordinator.browser)

        if target_window_id is not None:
            if target_window_id == current_window_id:
                return RouteDecision.ALREADY_PLACED
            if await self.coordinator.move_tab_to_window(tab_id, target_window_id):
                self.logger.info(f"Moved tab to '{group.name}' window")
                return RouteDecision.MOVED
            return RouteDecision.MOVE_FAILED

        if not self.settings.create_window_on_unbound_match:
            self.logger.debug(f"No window bound to '{group.name}', leaving tab {tab_id} in place")
            return RouteDecision.LEFT_IN_PLACE

        try:
            await self.coordinator.create_window_for_group(group.name, tab_id)
        except Exception as e:
            self.logger.error(f"Failed to create window for '{group.name}': {e}")
            return RouteDecision.MOVE_FAILED
        self.logger.info(f"Created new window for '{group.name}'")
        return RouteDecision.CREATED_WINDOW

    async def _route_to_catch_all(self, tab_id, current_window_id, catch_all_window_id) -> RouteDecision:
        if catch_all_window_id is None:
            return RouteDecision.NO_MATCH

        if current_window_id == catch_all_window_id:
            return RouteDecision.ALREADY_PLACED

        if not await self.coordinator.window_exists(catch_all_window_id):
            self.logger.info(f"Catch-all window {catch_all_window_id} no longer exists")
            return RouteDecision.CATCH_ALL_MISSING

        if await self.coordinator.move_tab_to_window(tab_id, catch_all_window_id):
            self.logger.info("Moved unmatched tab to catch-all window")
            return RouteDecision.CATCH_ALL
        return RouteDecision.MOVE_FAILED
