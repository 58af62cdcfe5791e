"""
Request/response interface for the settings page and toolbar popup.

Each action is a tagged request dataclass. parse_request() turns an
incoming ``{"action": ..., ...}`` record into the matching request, and
MessageRouter dispatches it through an explicit table, one handler per
action. Responses are plain records.
"""
import logging
from dataclasses import dataclass, field, fields
from typing import Callable, ClassVar, Dict, List, Optional, Type

from .errors import (ConfigValidationError, InvalidMessageError,
                     TabShepherdError, UnknownActionError, WindowNotFoundError)
from .models import MatchMode
from .pattern_matcher import matches_any


@dataclass(frozen=True)
class Request:
    action: ClassVar[str] = ""


@dataclass(frozen=True)
class GetConfig(Request):
    action: ClassVar[str] = "getConfig"


@dataclass(frozen=True)
class SaveConfig(Request):
    action: ClassVar[str] = "saveConfig"
    config: dict = field(default_factory=dict)


@dataclass(frozen=True)
class GetWindowBindings(Request):
    action: ClassVar[str] = "getWindowBindings"


@dataclass(frozen=True)
class BindWindow(Request):
    action: ClassVar[str] = "bindWindow"
    window_id: int
    group_name: str


@dataclass(frozen=True)
class UnbindWindow(Request):
    action: ClassVar[str] = "unbindWindow"
    window_id: int


@dataclass(frozen=True)
class BindWindowToGroup(Request):
    """Assign a group's window from the settings page; no window unassigns it."""
    action: ClassVar[str] = "bindWindowToGroup"
    group_name: str
    window_id: Optional[int] = None


@dataclass(frozen=True)
class GetCurrentWindow(Request):
    action: ClassVar[str] = "getCurrentWindow"


@dataclass(frozen=True)
class SortAllTabs(Request):
    action: ClassVar[str] = "sortAllTabs"


@dataclass(frozen=True)
class RebindWindows(Request):
    action: ClassVar[str] = "rebindWindows"


@dataclass(frozen=True)
class GetAllWindows(Request):
    action: ClassVar[str] = "getAllWindows"


@dataclass(frozen=True)
class TestPatterns(Request):
    """Preview which open tabs a pattern set would match. Read-only."""
    __test__: ClassVar[bool] = False
    action: ClassVar[str] = "testPatterns"
    patterns: tuple = ()
    simple_mode: bool = True


@dataclass(frozen=True)
class IdentifyWindow(Request):
    action: ClassVar[str] = "identifyWindow"
    window_id: int


@dataclass(frozen=True)
class LabelWindow(Request):
    action: ClassVar[str] = "labelWindow"
    window_id: int
    name: Optional[str] = None


@dataclass(frozen=True)
class ExportConfig(Request):
    action: ClassVar[str] = "exportConfig"


@dataclass(frozen=True)
class ImportConfig(Request):
    action: ClassVar[str] = "importConfig"
    text: str


REQUEST_TYPES: Dict[str, Type[Request]] = {
    cls.action: cls for cls in (
        GetConfig, SaveConfig, GetWindowBindings, BindWindow, UnbindWindow,
        BindWindowToGroup, GetCurrentWindow, SortAllTabs, RebindWindows,
        GetAllWindows, TestPatterns, IdentifyWindow, LabelWindow,
        ExportConfig, ImportConfig,
    )
}

# Message records use camelCase keys
_FIELD_ALIASES = {
    'windowId': 'window_id',
    'groupName': 'group_name',
    'simpleMode': 'simple_mode',
}


def parse_request(message: dict) -> Request:
    """
    Build a typed request from a message record.

    :raises UnknownActionError: If the action has no request type
    :raises InvalidMessageError: If required fields are missing
    """
    if not isinstance(message, dict):
        raise InvalidMessageError("Message must be an object")

    action = message.get('action')
    request_type = REQUEST_TYPES.get(action)
    if request_type is None:
        raise UnknownActionError(f"Unknown action: {action}")

    known = {f.name for f in fields(request_type)}
    kwargs = {}
    for key, value in message.items():
        name = _FIELD_ALIASES.get(key, key)
        if name in known:
            kwargs[name] = value

    if 'patterns' in kwargs:
        kwargs['patterns'] = tuple(kwargs['patterns'] or ())

    try:
        return request_type(**kwargs)
    except TypeError as e:
        raise InvalidMessageError(f"Invalid '{action}' message: {e}")


class MessageRouter:
    """Dispatch requests to the service, one handler per request type."""

    def __init__(self, service):
        """
        :param service: TabShepherdService providing the components
        """
        self.logger = logging.getLogger(__name__)
        self.service = service
        self.handlers: Dict[Type[Request], Callable] = {
            GetConfig: self._get_config,
            SaveConfig: self._save_config,
            GetWindowBindings: self._get_window_bindings,
            BindWindow: self._bind_window,
            UnbindWindow: self._unbind_window,
            BindWindowToGroup: self._bind_window_to_group,
            GetCurrentWindow: self._get_current_window,
            SortAllTabs: self._sort_all_tabs,
            RebindWindows: self._rebind_windows,
            GetAllWindows: self._get_all_windows,
            TestPatterns: self._test_patterns,
            IdentifyWindow: self._identify_window,
            LabelWindow: self._label_window,
            ExportConfig: self._export_config,
            ImportConfig: self._import_config,
        }

    async def handle(self, message: dict):
        """
        Parse and dispatch a raw message record.

        Errors are answered with ``{"error": ...}`` instead of raised.
        """
        try:
            request = parse_request(message)
        except UnknownActionError:
            self.logger.warning(f"Unknown action in message: {message!r}")
            return {'error': 'Unknown action'}
        except InvalidMessageError as e:
            return {'error': str(e)}
        return await self.dispatch(request)

    async def dispatch(self, request: Request):
        handler = self.handlers.get(type(request))
        if handler is None:
            return {'error': 'Unknown action'}
        try:
            return await handler(request)
        except TabShepherdError as e:
            self.logger.error(f"Action '{request.action}' failed: {e}")
            return {'error': str(e)}

    # Handlers

    async def _get_config(self, request):
        return (await self.service.config_store.get()).to_dict()

    async def _save_config(self, request):
        await self.service.config_store.save_dict(request.config)
        return {'success': True}

    async def _get_window_bindings(self, request):
        return await self.service.bindings.get()

    async def _bind_window(self, request):
        await self.service.bindings.bind(request.window_id, request.group_name)
        return {'success': True}

    async def _unbind_window(self, request):
        await self.service.bindings.unbind(request.window_id)
        return {'success': True}

    async def _bind_window_to_group(self, request):
        if request.window_id:
            await self.service.bindings.bind(request.window_id, request.group_name)
        else:
            await self.service.bindings.unbind_group(request.group_name)
        return {'success': True}

    async def _get_current_window(self, request):
        window = await self.service.browser.get_current_window()
        return {
            'windowId': window.id,
            'groupName': await self.service.bindings.group_for_window(window.id),
        }

    async def _sort_all_tabs(self, request):
        return (await self.service.sort_all()).to_dict()

    async def _rebind_windows(self, request):
        bindings = await self.service.rebind()
        return {'success': True, 'bindings': bindings}

    async def _get_all_windows(self, request):
        windows = await self.service.browser.get_all_windows()
        bindings = await self.service.bindings.get()
        label_names = await self.service.labeler.label_names()
        is_internal = self.service.settings.is_internal_url

        window_list = []
        for window in windows:
            if not window.is_normal:
                continue
            # First non-internal tab identifies the window
            first_tab = next((t for t in window.tabs if not is_internal(t.url)), None)
            window_list.append({
                'id': window.id,
                'tabCount': len(window.tabs),
                'firstTabUrl': first_tab.url if first_tab else '(empty)',
                'firstTabTitle': first_tab.title if first_tab else '(no tabs)',
                'boundGroup': bindings.get(window.id),
                'tabGroupName': label_names.get(window.id),
            })
        return window_list

    async def _test_patterns(self, request):
        patterns: List[str] = [p.strip() for p in request.patterns if p and p.strip()]
        mode = MatchMode.SIMPLE if request.simple_mode else MatchMode.REGEX
        is_internal = self.service.settings.is_internal_url

        results = []
        for window in await self.service.browser.get_all_windows():
            for tab in window.tabs:
                if is_internal(tab.url):
                    continue
                results.append({
                    'id': tab.id,
                    'windowId': window.id,
                    'url': tab.url,
                    'title': tab.title,
                    'matches': bool(patterns) and (
                        matches_any(tab.url, patterns, mode) or matches_any(tab.title, patterns, mode)
                    ),
                })
        return results

    async def _identify_window(self, request):
        try:
            await self.service.browser.focus_window(request.window_id, draw_attention=True)
        except WindowNotFoundError:
            return {'success': False}
        return {'success': True}

    async def _label_window(self, request):
        name = request.name or await self.service.bindings.group_for_window(request.window_id)
        if not name:
            return {'error': f"Window {request.window_id} has no group to label"}
        try:
            return await self.service.labeler.label_window(request.window_id, name)
        except ValueError as e:
            return {'error': str(e)}

    async def _export_config(self, request):
        return {'config': await self.service.config_store.export_text()}

    async def _import_config(self, request):
        try:
            config = await self.service.config_store.import_text(request.text)
        except ConfigValidationError as e:
            return {'error': f"Import failed: {e}"}
        return {'success': True, 'groups': len(config.groups)}
