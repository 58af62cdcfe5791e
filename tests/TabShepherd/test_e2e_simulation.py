import pytest

from TabShepherd.browser import SimulatedBrowser
from TabShepherd.routing_engine import RouteDecision
from TabShepherd.service import TabShepherdService
from TabShepherd.storage import BINDINGS_KEY, MemoryStorageArea


class TestE2ESimulation:

    @pytest.mark.asyncio
    async def test_navigation_moves_tab_to_bound_window(self, service):
        browser = service.browser
        tab = browser.add_tab(200, "about:blank", "New Tab")

        await browser.navigate(tab, "http://localhost:3003/settings", "Settings")

        assert browser.tab_window(tab) == 100
        assert browser.current_window_id == 100

    @pytest.mark.asyncio
    async def test_title_change_alone_does_not_route(self, service):
        browser = service.browser
        tab = browser.add_tab(200, "https://example.com", "Example")

        await browser.set_title(tab, "[ART-12] Fix login")

        assert browser.tab_window(tab) == 200

    @pytest.mark.asyncio
    async def test_regex_group_gets_new_window(self, service):
        browser = service.browser
        tab = browser.add_tab(100, "about:blank", "New Tab")

        await browser.navigate(tab, "https://tracker.example.com/browse/[ART-42]", "ART-42")

        new_window = browser.tab_window(tab)
        assert new_window not in (100, 200)
        assert (await service.bindings.get())[new_window] == "Tickets"

    @pytest.mark.asyncio
    async def test_created_tab_with_pending_url_is_routed(self, service):
        browser = service.browser
        tab = await browser.open_tab(100, "http://localhost:3004/docs")
        assert browser.tab_window(tab) == 200

    @pytest.mark.asyncio
    async def test_created_new_tab_page_is_left_alone(self, service):
        browser = service.browser
        tab = await browser.open_tab(200, "chrome://newtab/")
        assert browser.tab_window(tab) == 200
        assert await service.on_tab_created(await browser.get_tab(tab)) is None

    @pytest.mark.asyncio
    async def test_closing_window_unbinds_it(self, service):
        await service.browser.close_window(200)
        assert await service.bindings.get() == {100: "3003"}

    @pytest.mark.asyncio
    async def test_closed_group_window_is_recreated_on_next_match(self, service):
        browser = service.browser
        await browser.close_window(200)
        tab = browser.add_tab(100, "about:blank")

        await browser.navigate(tab, "http://localhost:3004/again")

        new_window = browser.tab_window(tab)
        assert new_window not in (100, 200)
        assert await service.bindings.get() == {100: "3003", new_window: "3004"}

    @pytest.mark.asyncio
    async def test_startup_rebinds_from_tab_contents(self, service):
        browser = service.browser
        # Window ids changed across a restart; old bindings point nowhere
        await service.bindings.replace({1: "3003", 2: "3004"})

        await browser.startup()

        assert await service.bindings.get() == {100: "3003", 200: "3004"}

    @pytest.mark.asyncio
    async def test_disabled_routing_leaves_tabs(self, service):
        browser = service.browser
        await service.config_store.set_enabled(False)
        tab = browser.add_tab(200, "about:blank")

        await browser.navigate(tab, "http://localhost:3003/x")

        assert browser.tab_window(tab) == 200

    @pytest.mark.asyncio
    async def test_engine_decisions(self, service):
        browser = service.browser
        tab = browser.add_tab(200, "http://localhost:3003/x")
        decision = await service.on_tab_updated(tab, {'url': "http://localhost:3003/x"}, await browser.get_tab(tab))
        assert decision == RouteDecision.MOVED
        assert await service.on_tab_updated(tab, {'status': 'complete'}, await browser.get_tab(tab)) is None


@pytest.mark.asyncio
async def test_start_does_not_overwrite_saved_config(seed_config):
    sync_storage = MemoryStorageArea("sync")
    first = TabShepherdService(SimulatedBrowser(), sync_storage=sync_storage)
    await first.start(seed_config=seed_config)
    await first.config_store.delete_group("Tickets")

    second = TabShepherdService(SimulatedBrowser(), sync_storage=sync_storage)
    await second.start(seed_config=seed_config)

    assert [g.name for g in (await second.config_store.get()).groups] == ["3003", "3004"]


@pytest.mark.asyncio
async def test_start_reloads_bindings_into_cache(seed_config):
    local_storage = MemoryStorageArea("local", {BINDINGS_KEY: {"100": "3003"}})
    service = TabShepherdService(SimulatedBrowser(), local_storage=local_storage)
    assert not service.binding_cache.is_valid

    await service.start(seed_config=seed_config)

    assert service.binding_cache.is_valid
    assert await service.bindings.get() == {100: "3003"}
