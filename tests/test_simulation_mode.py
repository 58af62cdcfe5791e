import os
from unittest.mock import patch

import pytest

import main
from TabShepherd.config_loader import ConfigLoader

RESOURCES = os.path.join(os.path.dirname(__file__), 'resources')
CONFIG_PATH = os.path.join(RESOURCES, 'simulation_config.yml')
SNAPSHOT_PATH = os.path.join(RESOURCES, 'simulation_snapshot.yml')


def test_load_snapshot():
    browser, bindings = main.load_snapshot(SNAPSHOT_PATH)
    assert browser.window_ids() == [100, 200, 300]
    assert len(browser.tab_ids(300)) == 2
    assert bindings is None


def test_load_snapshot_with_bindings(tmp_path):
    path = tmp_path / "snapshot.yml"
    path.write_text("windows:\n  - id: 7\nbindings:\n  '7': Docs\n")
    browser, bindings = main.load_snapshot(str(path))
    assert browser.window_ids() == [7]
    assert bindings == {7: "Docs"}


@pytest.mark.asyncio
async def test_run_rebinds_and_sorts():
    loader = ConfigLoader(CONFIG_PATH)
    loader.load()

    result = await main.run(loader, SNAPSHOT_PATH)

    # Docs 3003 moves to 100; Other 3004 stays in the higher-priority 3003 window
    assert result.moved == 1
    assert result.errors == []


def test_main_requires_arguments():
    with patch('sys.argv', ['main.py']):
        with pytest.raises(SystemExit) as excinfo:
            main.main()
    assert excinfo.value.code == 1


def test_main_reports_missing_config():
    with patch('sys.argv', ['main.py', 'missing.yml', SNAPSHOT_PATH]):
        with pytest.raises(SystemExit) as excinfo:
            main.main()
    assert excinfo.value.code == 1


def test_main_exits_cleanly_after_sort():
    with patch('sys.argv', ['main.py', CONFIG_PATH, SNAPSHOT_PATH]):
        with pytest.raises(SystemExit) as excinfo:
            main.main()
    assert excinfo.value.code == 0
