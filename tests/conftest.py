import os
import sys

import pytest

# Add src to python path so we can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from TabShepherd.batch_sorter import BatchSorter
from TabShepherd.binding_table import BindingTable
from TabShepherd.browser import SimulatedBrowser
from TabShepherd.config_store import ConfigStore
from TabShepherd.models import Config, Group
from TabShepherd.storage import MemoryStorageArea
from TabShepherd.window_coordinator import WindowCoordinator


@pytest.fixture
def browser():
    """Fixture that returns an empty simulated browser."""
    return SimulatedBrowser()


@pytest.fixture
def sync_storage():
    return MemoryStorageArea("sync")


@pytest.fixture
def local_storage():
    return MemoryStorageArea("local")


@pytest.fixture
def bindings(local_storage):
    return BindingTable(local_storage)


@pytest.fixture
def config_store(sync_storage, bindings):
    return ConfigStore(sync_storage, bindings)


@pytest.fixture
def coordinator(browser, bindings):
    return WindowCoordinator(browser, bindings)


@pytest.fixture
def sorter(bindings, coordinator):
    return BatchSorter(bindings, coordinator)


@pytest.fixture
def make_config():
    """
    Factory fixture building a Config from group tuples.

    Usage in tests:
        config = make_config(("3003", ["localhost:3003"]), ("3004", ["localhost:3004"]))
        config = make_config(("Dev Ports", ["localhost:300[0-2]"], "regex"))

    Priorities follow argument order unless given as a fourth element.
    """
    def _make(*group_defs, enabled=True, catch_all_window_id=None):
        groups = []
        for i, group_def in enumerate(group_defs):
            name, patterns = group_def[0], group_def[1]
            mode = group_def[2] if len(group_def) > 2 else "simple"
            priority = group_def[3] if len(group_def) > 3 else i
            groups.append(Group(name=name, patterns=list(patterns), priority=priority, mode=mode))
        return Config(enabled=enabled, groups=groups, catch_all_window_id=catch_all_window_id)
    return _make
