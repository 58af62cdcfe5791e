#!/usr/bin/env python3
"""
TabShepherd simulation runner.

Usage:
    ./main.py config.yml snapshot.yml

Loads engine settings and groups from config.yml, builds a simulated
browser from the windows/tabs in snapshot.yml, rebinds windows, runs a
sort-all pass and logs where every tab ended up.

Snapshot format:
    windows:
      - id: 100
        tabs:
          - url: "http://localhost:3003/app"
            title: "App 3003"
    bindings:            # optional; rebind from tab contents when omitted
      100: "3003"
"""
import asyncio
import logging
import sys

import yaml

from TabShepherd.browser import SimulatedBrowser
from TabShepherd.config_loader import ConfigLoader, ConfigValidationError
from TabShepherd.service import TabShepherdService
from TabShepherd.storage import open_storage


def load_snapshot(path):
    """
    Build a SimulatedBrowser from a snapshot file.

    :param path: YAML snapshot path
    :return: Tuple of (browser, bindings or None)
    """
    with open(path, 'r') as f:
        snapshot = yaml.safe_load(f) or {}

    browser = SimulatedBrowser()
    for window_def in snapshot.get('windows') or []:
        window_id = browser.add_window(window_def.get('id'), window_def.get('type', 'normal'))
        for tab_def in window_def.get('tabs') or []:
            browser.add_tab(window_id, tab_def.get('url', ''), tab_def.get('title', ''))

    bindings = snapshot.get('bindings')
    if bindings is not None:
        bindings = {int(k): v for k, v in bindings.items()}
    return browser, bindings


async def run(config_loader, snapshot_path):
    settings = config_loader.settings
    browser, bindings = load_snapshot(snapshot_path)
    sync_storage, local_storage = open_storage(settings.storage_dir)

    service = TabShepherdService(browser, sync_storage, local_storage, settings)
    await service.start(seed_config=config_loader.seed_config)

    if bindings is None:
        bindings = await service.rebind()
    else:
        await service.bindings.replace(bindings)
    logging.info(f"Window bindings: {bindings}")

    result = await service.sort_all()
    logging.info(f"Moved {result.moved} tab(s)")
    for error in result.errors:
        logging.error(error)

    final_bindings = await service.bindings.get()
    for window in await browser.get_all_windows():
        logging.info(f"Window {window.id} [{final_bindings.get(window.id, 'unassigned')}]")
        for tab in window.tabs:
            logging.info(f"  {tab.title} ({tab.url})")
    return result


def main():
    """Main application entry point."""
    logging.basicConfig(level=logging.INFO)

    if len(sys.argv) < 3:
        logging.error(f"Usage: {sys.argv[0]} <config.yml> <snapshot.yml>")
        sys.exit(1)

    config_file, snapshot_file = sys.argv[1], sys.argv[2]

    try:
        config_loader = ConfigLoader(config_file)
        config_loader.load()
    except FileNotFoundError as e:
        logging.error(f"{e}")
        sys.exit(1)
    except ConfigValidationError as e:
        logging.error(f"Configuration Error: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(config_loader.settings.log_level)

    try:
        result = asyncio.run(run(config_loader, snapshot_file))
    except FileNotFoundError as e:
        logging.error(f"{e}")
        sys.exit(1)

    sys.exit(1 if result.errors else 0)


if __name__ == "__main__":
    main()
