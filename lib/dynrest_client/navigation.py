from __future__ import annotations

import logging
import webbrowser
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


class Navigator:
    """The "active page" seen by the client.

    Holds the current location and page content; ``navigate`` records the new
    location. ``history`` keeps the last ``HISTORY_LIMIT`` targets.
    Subclasses decide what navigating means outside of a browser.
    """

    def __init__(self, location: str = "/", page_content: str = ""):
        self.location = location
        self.page_content = page_content
        self.history: list[str] = []

    @property
    def current_path(self) -> str:
        return urlsplit(self.location).path or "/"

    def navigate(self, url: str) -> None:
        logger.debug("navigate -> %s", url)
        self.history.append(url)
        if len(self.history) > HISTORY_LIMIT:
            del self.history[:-HISTORY_LIMIT]
        self.location = url


class BrowserNavigator(Navigator):
    """Opens absolute URLs in the system web browser."""

    def navigate(self, url: str) -> None:
        super().navigate(url)
        if urlsplit(url).scheme in ("http", "https"):
            webbrowser.open(url)
