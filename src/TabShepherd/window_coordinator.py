"""
Moving tabs between windows and creating windows for groups.
"""
import logging

from .binding_table import BindingTable
from .browser import BrowserHost
from .errors import TabMoveError, WindowNotFoundError


class WindowCoordinator:
    """Drives the browser host on behalf of the routing engine and batch sorter."""

    def __init__(self, browser: BrowserHost, bindings: BindingTable):
        self.logger = logging.getLogger(__name__)
        self.browser = browser
        self.bindings = bindings

    async def window_exists(self, window_id) -> bool:
        if window_id is None:
            return False
        try:
            await self.browser.get_window(window_id)
            return True
        except WindowNotFoundError:
            return False

    async def move_tab(self, tab_id: int, window_id: int) -> None:
        """
        Move a tab to the end of a window without focusing it.

        :raises TabMoveError: If the browser rejects the move
        """
        try:
            await self.browser.move_tab(tab_id, window_id, index=-1)
        except Exception as e:
            raise TabMoveError(tab_id, window_id, e) from e

    async def move_tab_to_window(self, tab_id: int, window_id: int) -> bool:
        """
        Move a tab to the end of a window, then focus that window.

        :return: True on success, False if the move or focus failed
        """
        try:
            await self.move_tab(tab_id, window_id)
            await self.browser.focus_window(window_id)
            return True
        except Exception as e:
            self.logger.error(f"Failed to move tab {tab_id} to window {window_id}: {e}")
            return False

    async def create_window_for_group(self, group_name: str, seed_tab_id: int) -> int:
        """
        Create a focused window holding the seed tab and bind it to the group.

        :param group_name: Group the new window will hold
        :param seed_tab_id: Tab to move into the new window
        :return: The new window id
        """
        window = await self.browser.create_window(tab_id=seed_tab_id, focused=True)
        await self.bindings.bind(window.id, group_name)
        self.logger.info(f"Created window {window.id} for group '{group_name}'")
        return window.id
