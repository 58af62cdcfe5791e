"""
Window-to-group binding table.

Maps window ids to group names and enforces that at most one window is
bound to a given group after every completed write. Reads are served from
an explicit BindingCache that the service populates on startup; each write
invalidates the cache, persists, then refills it with what was written.

No locking is done. Two interleaved operations can transiently leave two
windows claiming one group; the next bind() for that group evicts the
other entry, so the table converges.
"""
import logging
from typing import Dict, Optional

from .errors import WindowNotFoundError
from .storage import BINDINGS_KEY, StorageArea


def _normalize(raw) -> Dict[int, str]:
    """Storage may hand back string keys; the core always uses int window ids."""
    bindings = {}
    for window_id, group_name in (raw or {}).items():
        try:
            bindings[int(window_id)] = group_name
        except (TypeError, ValueError):
            logging.getLogger(__name__).warning(f"Dropping binding with invalid window id {window_id!r}")
    return bindings


class BindingCache:
    """In-memory mirror of the persisted bindings, owned by the service lifecycle."""

    def __init__(self):
        self._bindings: Optional[Dict[int, str]] = None

    @property
    def is_valid(self) -> bool:
        return self._bindings is not None

    def get(self) -> Optional[Dict[int, str]]:
        if self._bindings is None:
            return None
        return dict(self._bindings)

    def populate(self, bindings: Dict[int, str]) -> None:
        self._bindings = dict(bindings)

    def invalidate(self) -> None:
        self._bindings = None


class BindingTable:
    """Persisted windowId -> groupName mapping with one-window-per-group."""

    def __init__(self, storage: StorageArea, cache: Optional[BindingCache] = None):
        """
        :param storage: Local (non-synced) storage area
        :param cache: Cache shared with the owning service; a private one is created if omitted
        """
        self.logger = logging.getLogger(__name__)
        self.storage = storage
        self.cache = cache or BindingCache()

    async def load(self) -> Dict[int, str]:
        """Re-synchronize the cache from durable storage."""
        bindings = _normalize(await self.storage.get(BINDINGS_KEY, {}))
        self.cache.populate(bindings)
        self.logger.debug(f"Loaded {len(bindings)} window bindings")
        return dict(bindings)

    async def get(self) -> Dict[int, str]:
        cached = self.cache.get()
        if cached is not None:
            return cached
        return await self.load()

    async def _save(self, bindings: Dict[int, str]) -> None:
        self.cache.invalidate()
        await self.storage.set(BINDINGS_KEY, dict(bindings))
        self.cache.populate(bindings)

    async def replace(self, bindings: Dict[int, str]) -> None:
        await self._save(dict(bindings))

    async def bind(self, window_id: int, group_name: str) -> None:
        """
        Bind a window to a group, evicting any other window bound to it.

        Args:
            window_id: Window to bind
            group_name: Group the window will hold
        """
        bindings = await self.get()
        for other_id, bound_group in list(bindings.items()):
            if bound_group == group_name and other_id != window_id:
                del bindings[other_id]
                self.logger.info(f"Unbound window {other_id} from group '{group_name}'")
        bindings[window_id] = group_name
        await self._save(bindings)
        self.logger.info(f"Bound window {window_id} to group '{group_name}'")

    async def unbind(self, window_id: int) -> None:
        bindings = await self.get()
        removed = bindings.pop(window_id, None)
        await self._save(bindings)
        if removed is not None:
            self.logger.info(f"Unbound window {window_id} from group '{removed}'")

    async def unbind_group(self, group_name: str) -> None:
        bindings = await self.get()
        remaining = {w: g for w, g in bindings.items() if g != group_name}
        if len(remaining) != len(bindings):
            await self._save(remaining)

    async def rename_group(self, old_name: str, new_name: str) -> None:
        bindings = await self.get()
        if old_name not in bindings.values():
            return
        await self._save({w: (new_name if g == old_name else g) for w, g in bindings.items()})

    async def group_for_window(self, window_id: int) -> Optional[str]:
        return (await self.get()).get(window_id)

    async def find_window_for_group(self, group_name: str, browser) -> Optional[int]:
        """
        Find the live window bound to a group.

        Stale entries (windows that no longer exist) are deleted as they are
        found and the scan continues.

        Args:
            group_name: Group to look up
            browser: BrowserHost used to verify the window exists

        Returns:
            Window id, or None if no live window is bound to the group
        """
        bindings = await self.get()
        for window_id, bound_group in bindings.items():
            if bound_group != group_name:
                continue
            try:
                await browser.get_window(window_id)
                return window_id
            except WindowNotFoundError:
                self.logger.info(
                    f"Window {window_id} bound to '{group_name}' no longer exists, removing binding"
                )
                current = await self.get()
                current.pop(window_id, None)
                await self._save(current)
        return None
