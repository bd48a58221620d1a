"""
Abstract Base Class for Browser Drivers.

Defines the unified interface that all browser drivers (Playwright, Mock) must
implement. The UI executor only talks to this interface, so flows can run
against a real browser or the in-process simulation transparently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from loguru import logger


class BrowserDriverError(Exception):
    """Raised when a browser interaction cannot be performed."""


@dataclass
class BrowserConfig:
    """Settings for a browser session."""
    browser: str = "chromium"
    headless: bool = True
    window_width: int = 1920
    window_height: int = 1080
    default_timeout_sec: float = 10.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    simulate: bool = False


class BrowserDriver(ABC):
    """
    Abstract base class for all browser driver implementations.

    One driver instance owns one browser session; it is never shared between
    executions. Drivers are context managers and close themselves on exit.
    """

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self.config = config or BrowserConfig()
        self._closed = False
        self.timeout_sec = self.config.default_timeout_sec
        logger.debug(
            f"{type(self).__name__} initialized — headless={self.config.headless}, "
            f"window={self.config.window_width}x{self.config.window_height}"
        )

    @property
    def is_closed(self) -> bool:
        return self._closed

    @abstractmethod
    def navigate(self, url: str) -> None:
        """Load the given URL in the current page."""
        ...

    @abstractmethod
    def fill_field(self, name: str, value: str) -> bool:
        """
        Fill the input identified by its name attribute.

        Returns:
            True if the field was found and filled, False if it is absent.
        """
        ...

    @abstractmethod
    def click(self, selector: str) -> None:
        """Click the element matched by the selector."""
        ...

    @abstractmethod
    def page_content(self) -> str:
        """Current page source."""
        ...

    @abstractmethod
    def current_url(self) -> str:
        """Current page URL."""
        ...

    @abstractmethod
    def capture_screenshot(self, path: str) -> str:
        """Write a screenshot to the given path and return the path."""
        ...

    def set_default_timeout(self, timeout_sec: float) -> None:
        """Change how long element lookups and navigations may wait."""
        self.timeout_sec = timeout_sec

    @abstractmethod
    def _shutdown(self) -> None:
        """Release the underlying browser resources."""
        ...

    def close(self) -> None:
        """Close the session; calling it more than once is harmless."""
        if self._closed:
            return
        self._closed = True
        self._shutdown()
        logger.debug(f"{type(self).__name__} closed")

    def __enter__(self) -> BrowserDriver:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
