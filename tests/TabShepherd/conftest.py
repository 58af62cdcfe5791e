import pytest
import pytest_asyncio

from TabShepherd.browser import SimulatedBrowser
from TabShepherd.config_loader import EngineSettings
from TabShepherd.models import Config, Group
from TabShepherd.service import TabShepherdService


@pytest.fixture
def seed_config():
    """Two port groups and a broader development group."""
    return Config(groups=[
        Group(name="3003", patterns=["localhost:3003"], priority=0),
        Group(name="3004", patterns=["localhost:3004"], priority=1),
        Group(name="Tickets", patterns=[r"\[ART-\d+\]"], priority=2, mode="regex"),
    ])


@pytest_asyncio.fixture
async def service(seed_config):
    """Started service on a simulated browser with windows 100 and 200."""
    browser = SimulatedBrowser()
    browser.add_window(100)
    browser.add_window(200)
    browser.add_tab(100, "http://localhost:3003/app", "App 3003")
    browser.add_tab(200, "http://localhost:3004/app", "App 3004")

    service = TabShepherdService(browser, settings=EngineSettings())
    await service.start(seed_config=seed_config)
    await service.bindings.replace({100: "3003", 200: "3004"})
    return service
