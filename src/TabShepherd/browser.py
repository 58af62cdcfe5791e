"""
Browser host interface and an in-memory simulation of it.

The routing core never touches tabs or windows directly: it goes through
BrowserHost, whose methods are all coroutines (every call is a suspension
point). SimulatedBrowser implements the same surface in memory for
headless runs and tests, and fires the same events a real host would.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Awaitable, Callable, Dict, List, Optional

from .errors import TabNotFoundError, WindowNotFoundError
from .models import Tab, TabLabel, Window

TAB_UPDATED = 'tab_updated'
TAB_CREATED = 'tab_created'
WINDOW_REMOVED = 'window_removed'
STARTUP = 'startup'

EVENTS = (TAB_UPDATED, TAB_CREATED, WINDOW_REMOVED, STARTUP)


class BrowserHost(ABC):
    """
    Abstract async access to the browser's windows and tabs.

    Lookups of missing objects raise WindowNotFoundError or
    TabNotFoundError; other failures propagate as-is.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._listeners: Dict[str, List[Callable[..., Awaitable[None]]]] = {e: [] for e in EVENTS}

    def add_listener(self, event: str, callback: Callable[..., Awaitable[None]]) -> None:
        """
        Register a coroutine callback for a browser event.

        :param event: One of tab_updated, tab_created, window_removed, startup
        :param callback: Async function receiving the event arguments
        """
        if event not in self._listeners:
            raise ValueError(f"Unknown browser event: {event}")
        self._listeners[event].append(callback)

    async def _emit(self, event: str, *args) -> None:
        for callback in list(self._listeners[event]):
            try:
                await callback(*args)
            except Exception:
                self.logger.exception(f"Error in '{event}' listener")

    @abstractmethod
    async def get_window(self, window_id: int) -> Window:
        pass

    @abstractmethod
    async def get_all_windows(self) -> List[Window]:
        """All windows, each populated with its tabs in tab order."""
        pass

    @abstractmethod
    async def get_current_window(self) -> Window:
        pass

    @abstractmethod
    async def get_tab(self, tab_id: int) -> Tab:
        pass

    @abstractmethod
    async def move_tab(self, tab_id: int, window_id: int, index: int = -1) -> Tab:
        """Move a tab into a window at index (-1 = end)."""
        pass

    @abstractmethod
    async def create_window(self, tab_id: Optional[int] = None, focused: bool = True) -> Window:
        """Create a window, optionally adopting an existing tab."""
        pass

    @abstractmethod
    async def focus_window(self, window_id: int, draw_attention: bool = False) -> None:
        pass

    @abstractmethod
    async def group_tabs(self, window_id: int, tab_ids: List[int]) -> int:
        """Put tabs of a window under one visual label; return the label id."""
        pass

    @abstractmethod
    async def update_label(self, label_id: int, title: str, color: str) -> TabLabel:
        pass

    @abstractmethod
    async def get_labels(self) -> List[TabLabel]:
        pass


class SimulatedBrowser(BrowserHost):
    """
    In-memory browser used for simulation mode and tests.

    Returned Window and Tab objects are snapshots; use tab_window() to
    inspect the live placement of a tab.
    """

    def __init__(self, first_window_id: int = 1000, first_tab_id: int = 2000):
        super().__init__()
        self._windows: Dict[int, Window] = {}
        self._tabs: Dict[int, Tab] = {}
        self._labels: Dict[int, TabLabel] = {}
        self._next_window_id = first_window_id
        self._next_tab_id = first_tab_id
        self._next_label_id = 1
        self.current_window_id: Optional[int] = None
        self.attention_requests: List[int] = []

    # Simulation helpers (synchronous, no events)

    def add_window(self, window_id: Optional[int] = None, window_type: str = "normal") -> int:
        if window_id is None:
            window_id = self._allocate_window_id()
        if window_id in self._windows:
            raise ValueError(f"Window {window_id} already exists")
        self._windows[window_id] = Window(id=window_id, type=window_type)
        if self.current_window_id is None:
            self.current_window_id = window_id
        return window_id

    def add_tab(self, window_id: int, url: str, title: str = "", tab_id: Optional[int] = None) -> int:
        window = self._require_window(window_id)
        if tab_id is None:
            tab_id = self._next_tab_id
            self._next_tab_id += 1
        tab = Tab(id=tab_id, window_id=window_id, url=url, title=title or url)
        self._tabs[tab_id] = tab
        window.tabs.append(tab)
        return tab_id

    def tab_window(self, tab_id: int) -> Optional[int]:
        tab = self._tabs.get(tab_id)
        return tab.window_id if tab else None

    def window_ids(self) -> List[int]:
        return list(self._windows)

    def tab_ids(self, window_id: int) -> List[int]:
        return [t.id for t in self._require_window(window_id).tabs]

    # Simulated user activity (fires events)

    async def open_tab(self, window_id: int, url: str, title: str = "") -> int:
        tab_id = self.add_tab(window_id, url="", title=title)
        self._tabs[tab_id].pending_url = url
        await self._emit(TAB_CREATED, self._snapshot_tab(self._tabs[tab_id]))
        return tab_id

    async def navigate(self, tab_id: int, url: str, title: Optional[str] = None) -> None:
        tab = self._require_tab(tab_id)
        tab.url = url
        tab.pending_url = None
        if title is not None:
            tab.title = title
        await self._emit(TAB_UPDATED, tab_id, {'url': url}, self._snapshot_tab(tab))

    async def set_title(self, tab_id: int, title: str) -> None:
        tab = self._require_tab(tab_id)
        tab.title = title
        await self._emit(TAB_UPDATED, tab_id, {'title': title}, self._snapshot_tab(tab))

    async def close_tab(self, tab_id: int) -> None:
        tab = self._require_tab(tab_id)
        window = self._windows[tab.window_id]
        window.tabs.remove(tab)
        del self._tabs[tab_id]

    async def close_window(self, window_id: int) -> None:
        window = self._require_window(window_id)
        for tab in window.tabs:
            self._tabs.pop(tab.id, None)
        del self._windows[window_id]
        self._labels = {k: v for k, v in self._labels.items() if v.window_id != window_id}
        if self.current_window_id == window_id:
            self.current_window_id = next(iter(self._windows), None)
        await self._emit(WINDOW_REMOVED, window_id)

    async def startup(self) -> None:
        await self._emit(STARTUP)

    # BrowserHost implementation

    async def get_window(self, window_id):
        await asyncio.sleep(0)
        return self._snapshot_window(self._require_window(window_id))

    async def get_all_windows(self):
        await asyncio.sleep(0)
        return [self._snapshot_window(w) for w in self._windows.values()]

    async def get_current_window(self):
        await asyncio.sleep(0)
        if self.current_window_id is None:
            raise WindowNotFoundError(None)
        return self._snapshot_window(self._require_window(self.current_window_id))

    async def get_tab(self, tab_id):
        await asyncio.sleep(0)
        return self._snapshot_tab(self._require_tab(tab_id))

    async def move_tab(self, tab_id, window_id, index=-1):
        await asyncio.sleep(0)
        tab = self._require_tab(tab_id)
        target = self._require_window(window_id)
        self._windows[tab.window_id].tabs.remove(tab)
        tab.window_id = window_id
        tab.label_id = None
        if index < 0 or index >= len(target.tabs):
            target.tabs.append(tab)
        else:
            target.tabs.insert(index, tab)
        self.logger.debug(f"Moved tab {tab_id} to window {window_id}")
        return self._snapshot_tab(tab)

    async def create_window(self, tab_id=None, focused=True):
        await asyncio.sleep(0)
        window_id = self.add_window()
        if tab_id is not None:
            tab = self._require_tab(tab_id)
            self._windows[tab.window_id].tabs.remove(tab)
            tab.window_id = window_id
            tab.label_id = None
            self._windows[window_id].tabs.append(tab)
        if focused:
            self._set_focus(window_id)
        return self._snapshot_window(self._windows[window_id])

    async def focus_window(self, window_id, draw_attention=False):
        await asyncio.sleep(0)
        self._require_window(window_id)
        self._set_focus(window_id)
        if draw_attention:
            self.attention_requests.append(window_id)

    async def group_tabs(self, window_id, tab_ids):
        await asyncio.sleep(0)
        self._require_window(window_id)
        label_id = self._next_label_id
        self._next_label_id += 1
        self._labels[label_id] = TabLabel(id=label_id, window_id=window_id, title="", color="grey")
        for tab_id in tab_ids:
            tab = self._require_tab(tab_id)
            if tab.window_id != window_id:
                raise ValueError(f"Tab {tab_id} is not in window {window_id}")
            tab.label_id = label_id
        return label_id

    async def update_label(self, label_id, title, color):
        await asyncio.sleep(0)
        label = self._labels[label_id]
        label.title = title
        label.color = color
        return replace(label)

    async def get_labels(self):
        await asyncio.sleep(0)
        return [replace(label) for label in self._labels.values()]

    # Internals

    def _allocate_window_id(self) -> int:
        while self._next_window_id in self._windows:
            self._next_window_id += 1
        window_id = self._next_window_id
        self._next_window_id += 1
        return window_id

    def _set_focus(self, window_id: int) -> None:
        for window in self._windows.values():
            window.focused = window.id == window_id
        self.current_window_id = window_id

    def _require_window(self, window_id) -> Window:
        window = self._windows.get(window_id)
        if window is None:
            raise WindowNotFoundError(window_id)
        return window

    def _require_tab(self, tab_id) -> Tab:
        tab = self._tabs.get(tab_id)
        if tab is None:
            raise TabNotFoundError(tab_id)
        return tab

    @staticmethod
    def _snapshot_tab(tab: Tab) -> Tab:
        return replace(tab)

    def _snapshot_window(self, window: Window) -> Window:
        return replace(window, tabs=[self._snapshot_tab(t) for t in window.tabs])
