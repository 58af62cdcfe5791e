from .batch_sorter import BatchSorter
from .binding_table import BindingCache, BindingTable
from .browser import BrowserHost, SimulatedBrowser
from .config_loader import ConfigLoader, EngineSettings
from .errors import ConfigValidationError, TabShepherdError
from .group_resolver import MatchPolicy, resolve_group
from .models import Config, Group, MatchMode
from .routing_engine import RouteDecision, RoutingEngine
from .service import TabShepherdService

__all__ = [
    'BatchSorter', 'BindingCache', 'BindingTable', 'BrowserHost', 'SimulatedBrowser',
    'ConfigLoader', 'EngineSettings', 'ConfigValidationError', 'TabShepherdError',
    'MatchPolicy', 'resolve_group', 'Config', 'Group', 'MatchMode',
    'RouteDecision', 'RoutingEngine', 'TabShepherdService',
]
