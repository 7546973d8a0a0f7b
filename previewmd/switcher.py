"""Active-view routing between the browser and the pager."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .browser import Browser
from .pager import Pager
from .status_bar import StatusBar


@dataclass(frozen=True)
class BrowserView:
    browser: Browser


@dataclass(frozen=True)
class PagerView:
    pager: Pager
    status_bar: StatusBar


ActiveView = Union[BrowserView, PagerView]


class Switcher:
    """Forwards input and render calls to whichever view is showing.

    The pager view reserves the last terminal row for its status bar; the
    browser uses the whole screen.
    """

    def __init__(self, view: ActiveView) -> None:
        self.view = view

    def show(self, view: ActiveView) -> None:
        self.view = view

    @property
    def is_browser(self) -> bool:
        return isinstance(self.view, BrowserView)

    @property
    def is_pager(self) -> bool:
        return isinstance(self.view, PagerView)

    def set_size(self, rows: int) -> None:
        view = self.view
        if isinstance(view, PagerView):
            view.pager.set_viewport_height(max(0, rows - 1))
        else:
            view.browser.set_viewport_height(rows)

    def handle_input(self, key: str) -> None:
        view = self.view
        if isinstance(view, PagerView):
            view.pager.handle_input(key)
        else:
            view.browser.handle_input(key)

    def invalidate(self) -> None:
        view = self.view
        if isinstance(view, PagerView):
            view.pager.invalidate()
            view.status_bar.invalidate()
        else:
            view.browser.invalidate()

    def render(self, width: int, rows: int) -> list[str]:
        """Render the active view clipped to ``rows`` terminal rows."""
        view = self.view
        if isinstance(view, PagerView):
            body = view.pager.render(width)[: max(0, rows - 1)]
            return body + view.status_bar.render(width)
        return view.browser.render(width)[:rows]
