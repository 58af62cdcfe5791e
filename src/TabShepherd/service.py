"""
TabShepherd service: wires the routing core to a browser host and storage,
and reacts to browser events.
"""
import logging
from typing import Dict, Optional

from .batch_sorter import BatchSorter
from .binding_table import BindingCache, BindingTable
from .browser import STARTUP, TAB_CREATED, TAB_UPDATED, WINDOW_REMOVED, BrowserHost
from .config_loader import EngineSettings
from .config_store import ConfigStore
from .messages import MessageRouter
from .models import Config, SortResult, Tab
from .routing_engine import RouteDecision, RoutingEngine
from .startup_rebinder import StartupRebinder
from .storage import CONFIG_KEY, MemoryStorageArea, StorageArea
from .tab_labels import TabLabeler
from .window_coordinator import WindowCoordinator


class TabShepherdService:
    """
    Owns every routing component for one browser.

    The binding cache lives here and is re-populated by start(), which
    stands in for the worker waking up after a restart.
    """

    def __init__(
        self,
        browser: BrowserHost,
        sync_storage: Optional[StorageArea] = None,
        local_storage: Optional[StorageArea] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.browser = browser
        self.settings = settings or EngineSettings()

        self.binding_cache = BindingCache()
        self.bindings = BindingTable(local_storage or MemoryStorageArea("local"), self.binding_cache)
        self.config_store = ConfigStore(sync_storage or MemoryStorageArea("sync"), self.bindings)
        self.coordinator = WindowCoordinator(browser, self.bindings)
        self.engine = RoutingEngine(self.config_store, self.bindings, self.coordinator, self.settings)
        self.sorter = BatchSorter(self.bindings, self.coordinator, self.settings)
        self.rebinder = StartupRebinder(self.bindings)
        self.labeler = TabLabeler(browser)
        self.router = MessageRouter(self)
        self._attached = False

    async def start(self, seed_config: Optional[Config] = None) -> None:
        """
        Populate the binding cache and subscribe to browser events.

        :param seed_config: Config stored only if none has been saved yet
        """
        if seed_config is not None and await self.config_store.storage.get(CONFIG_KEY) is None:
            await self.config_store.save(seed_config)
            self.logger.info(f"Seeded config with {len(seed_config.groups)} groups")

        await self.bindings.load()
        self.attach()
        self.logger.info("Service started")

    def attach(self) -> None:
        if self._attached:
            return
        self.browser.add_listener(TAB_UPDATED, self.on_tab_updated)
        self.browser.add_listener(TAB_CREATED, self.on_tab_created)
        self.browser.add_listener(WINDOW_REMOVED, self.on_window_removed)
        self.browser.add_listener(STARTUP, self.on_startup)
        self._attached = True

    # Browser events

    async def on_tab_updated(self, tab_id: int, change_info: dict, tab: Tab) -> Optional[RouteDecision]:
        # Only act when the URL changes, not on every update
        if not change_info.get('url'):
            return None
        return await self.engine.on_tab_navigated(tab_id, change_info['url'], tab.title, tab.window_id)

    async def on_tab_created(self, tab: Tab) -> Optional[RouteDecision]:
        # New tabs usually start on an internal page; wait for real navigation
        if not tab.pending_url or self.settings.is_internal_url(tab.pending_url):
            return None
        return await self.engine.on_tab_navigated(tab.id, tab.pending_url, tab.title, tab.window_id)

    async def on_window_removed(self, window_id: int) -> None:
        await self.bindings.unbind(window_id)
        self.logger.info(f"Unbound closed window {window_id}")

    async def on_startup(self) -> None:
        self.logger.info("Browser startup, rebinding windows...")
        await self.rebind()

    # Operations

    async def sort_all(self) -> SortResult:
        return await self.sorter.sort_all(await self.config_store.get())

    async def rebind(self) -> Dict[int, str]:
        config = await self.config_store.get()
        windows = await self.browser.get_all_windows()
        return await self.rebinder.rebind(config, windows)

    async def handle_message(self, message: dict):
        return await self.router.handle(message)
