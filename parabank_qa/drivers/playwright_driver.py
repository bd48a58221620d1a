"""
Playwright Browser Driver.

Drives a real browser instance through the Playwright sync API.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from parabank_qa.drivers.browser_driver_base import (
    BrowserConfig,
    BrowserDriver,
    BrowserDriverError,
)


class PlaywrightBrowserDriver(BrowserDriver):
    """Browser driver backed by Playwright (chromium, firefox or webkit)."""

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        super().__init__(config)
        self._playwright = None
        self._browser = None
        self._context = None
        try:
            self._playwright = sync_playwright().start()
            browser_type = getattr(self._playwright, self.config.browser)
            self._browser = browser_type.launch(headless=self.config.headless)
            self._context = self._browser.new_context(
                viewport={
                    "width": self.config.window_width,
                    "height": self.config.window_height,
                },
                user_agent=self.config.user_agent,
            )
            self._page = self._context.new_page()
            self._page.set_default_timeout(self.timeout_sec * 1000)
        except PlaywrightError as e:
            self._shutdown()
            raise BrowserDriverError(f"Failed to launch browser: {e}") from e
        logger.info(f"Playwright {self.config.browser} started (headless={self.config.headless})")

    def set_default_timeout(self, timeout_sec: float) -> None:
        super().set_default_timeout(timeout_sec)
        self._page.set_default_timeout(timeout_sec * 1000)

    def navigate(self, url: str) -> None:
        try:
            self._page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            raise BrowserDriverError(f"Navigation to {url} failed: {e}") from e

    def fill_field(self, name: str, value: str) -> bool:
        locator = self._page.locator(f"[name='{name}']")
        if locator.count() == 0:
            logger.debug(f"Field not found: {name}")
            return False
        try:
            locator.first.fill(str(value))
        except PlaywrightError as e:
            raise BrowserDriverError(f"Cannot fill field {name}: {e}") from e
        return True

    def click(self, selector: str) -> None:
        try:
            self._page.locator(selector).first.click()
            self._page.wait_for_load_state("domcontentloaded")
        except PlaywrightError as e:
            raise BrowserDriverError(f"Cannot click {selector}: {e}") from e

    def page_content(self) -> str:
        return self._page.content()

    def current_url(self) -> str:
        return self._page.url

    def capture_screenshot(self, path: str) -> str:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._page.screenshot(path=path, full_page=True)
        except PlaywrightError as e:
            raise BrowserDriverError(f"Screenshot failed: {e}") from e
        return path

    def _shutdown(self) -> None:
        # also called from __init__ with only part of the stack started
        try:
            for resource in (self._context, self._browser):
                if resource is not None:
                    resource.close()
        except PlaywrightError as e:
            logger.error(f"Error closing browser: {e}")
        finally:
            if self._playwright is not None:
                self._playwright.stop()
