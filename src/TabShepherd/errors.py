"""
Exception hierarchy for TabShepherd.

Nothing raised here is fatal to the process: callers either self-heal
(stale references), record the failure (move errors) or reject the input
(configuration errors).
"""


class TabShepherdError(Exception):
    """Base class for all TabShepherd errors."""


class ConfigValidationError(TabShepherdError):
    """Exception raised when configuration validation fails."""


class WindowNotFoundError(TabShepherdError):
    """A window referenced by id no longer exists."""

    def __init__(self, window_id):
        super().__init__(f"Window {window_id} not found")
        self.window_id = window_id


class TabNotFoundError(TabShepherdError):
    """A tab referenced by id no longer exists."""

    def __init__(self, tab_id):
        super().__init__(f"Tab {tab_id} not found")
        self.tab_id = tab_id


class TabMoveError(TabShepherdError):
    """Moving a tab into another window failed."""

    def __init__(self, tab_id, window_id, reason):
        super().__init__(str(reason))
        self.tab_id = tab_id
        self.window_id = window_id
        self.reason = reason


class InvalidMessageError(TabShepherdError):
    """A message is missing fields its action requires."""


class UnknownActionError(InvalidMessageError):
    """A message carried an action name with no registered handler."""
