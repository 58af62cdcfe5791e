"""
Durable key/value storage areas.

The routing core keeps two independent records: the routing config in a
"sync" area and the window bindings in a "local" area. Both are plain
structured data. Every read and write is a suspension point.
"""
import asyncio
import copy
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import yaml

CONFIG_KEY = 'config'
BINDINGS_KEY = 'windowBindings'


class StorageArea(ABC):
    """Abstract async key/value store."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the value stored under key, or default."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        pass


class MemoryStorageArea(StorageArea):
    """
    Storage area kept in process memory.

    Values are deep-copied in and out so callers never share mutable state
    with the store, like a real serializing backend.
    """

    def __init__(self, name: str = "memory", initial: Optional[Dict[str, Any]] = None):
        super().__init__(name)
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key, default=None):
        await asyncio.sleep(0)
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    async def set(self, key, value):
        await asyncio.sleep(0)
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key):
        await asyncio.sleep(0)
        self._data.pop(key, None)


class YamlFileStorageArea(StorageArea):
    """
    Storage area persisted as a single YAML document on disk.

    Read-modify-write cycles are serialized by a per-area lock and each
    write goes through its own temporary file before replacing the target.
    """

    def __init__(self, path: str, name: Optional[str] = None):
        super().__init__(name or os.path.basename(path))
        self.path = path
        self._lock = asyncio.Lock()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r') as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            self.logger.warning(f"Ignoring malformed storage file {self.path}")
            return {}
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        with tempfile.NamedTemporaryFile('w', dir=directory, prefix=f".{os.path.basename(self.path)}.",
                                         suffix='.tmp', delete=False) as f:
            tmp_path = f.name
            try:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            except Exception:
                f.close()
                os.remove(tmp_path)
                raise
        os.replace(tmp_path, self.path)

    async def get(self, key, default=None):
        async with self._lock:
            data = await asyncio.to_thread(self._read)
        return data.get(key, default)

    async def set(self, key, value):
        def _update():
            data = self._read()
            data[key] = value
            self._write(data)
        async with self._lock:
            await asyncio.to_thread(_update)
        self.logger.debug(f"Stored '{key}' in {self.path}")

    async def remove(self, key):
        def _update():
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)
        async with self._lock:
            await asyncio.to_thread(_update)


def open_storage(storage_dir: Optional[str]) -> Tuple[StorageArea, StorageArea]:
    """
    Create the (sync, local) storage areas.

    :param storage_dir: Directory for the YAML files, or None for in-memory areas
    :return: Tuple of (sync_area, local_area)
    """
    if not storage_dir:
        return MemoryStorageArea("sync"), MemoryStorageArea("local")

    storage_dir = os.path.expanduser(os.path.expandvars(storage_dir))
    return (
        YamlFileStorageArea(os.path.join(storage_dir, 'sync.yml'), name="sync"),
        YamlFileStorageArea(os.path.join(storage_dir, 'local.yml'), name="local"),
    )
