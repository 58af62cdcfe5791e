"""
Visual labels for windows.

A label groups all tabs of a window under a name and a color taken from a
fixed palette. Colors already used by other labels are skipped so each
window stays distinguishable.
"""
import logging
from typing import Iterable, List

from PIL import ImageColor

from .browser import BrowserHost

LABEL_COLORS = ['grey', 'blue', 'red', 'yellow', 'green', 'pink', 'purple', 'cyan', 'orange']


def pick_label_color(used_colors: Iterable[str], palette: List[str] = LABEL_COLORS) -> str:
    """
    Pick the first palette color not already in use.

    :param used_colors: Colors of existing labels
    :param palette: Ordered color names
    :return: A color name; cycles through the palette once every color is used
    """
    used = list(used_colors)
    for color in palette:
        if color not in used:
            return color
    return palette[len(used) % len(palette)]


def color_to_hex(color: str) -> str:
    """Display RGB for a palette color, e.g. 'blue' -> '#0000ff'."""
    r, g, b = ImageColor.getrgb(color)[:3]
    return f"#{r:02x}{g:02x}{b:02x}"


class TabLabeler:
    """Create and color window labels through the browser host."""

    def __init__(self, browser: BrowserHost):
        self.logger = logging.getLogger(__name__)
        self.browser = browser

    async def label_window(self, window_id: int, name: str) -> dict:
        """
        Group a window's tabs under a named, colored label.

        :param window_id: Window whose tabs are labeled
        :param name: Label title (usually the bound group name)
        :return: Dict with labelId, color and rgb
        """
        window = await self.browser.get_window(window_id)
        tab_ids = [tab.id for tab in window.tabs]
        if not tab_ids:
            raise ValueError(f"Window {window_id} has no tabs to label")

        labels = await self.browser.get_labels()
        used = [label.color for label in labels if label.window_id != window_id]
        color = pick_label_color(used)

        label_id = await self.browser.group_tabs(window_id, tab_ids)
        await self.browser.update_label(label_id, name, color)
        self.logger.info(f"Labeled window {window_id} as '{name}' ({color})")
        return {'labelId': label_id, 'color': color, 'rgb': color_to_hex(color)}

    async def label_names(self) -> dict:
        """Map window id -> label title for windows carrying a label."""
        names = {}
        for label in await self.browser.get_labels():
            if label.title and label.window_id not in names:
                names[label.window_id] = label.title
        return names
