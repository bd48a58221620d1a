"""
Driver Factory — creates the appropriate browser driver based on configuration.

Selects the Playwright or Mock driver based on the browser name and the
simulation flag.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from loguru import logger

from parabank_qa.drivers.browser_driver_base import BrowserConfig, BrowserDriver

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

DriverFactory = Callable[[], BrowserDriver]


def create_browser_driver(
    config: Optional[BrowserConfig] = None,
    **mock_options: Any,
) -> BrowserDriver:
    """
    Factory function to create the correct browser driver.

    Args:
        config: Browser settings (defaults when None).
        **mock_options: Extra keyword arguments for MockBrowserDriver
            (base_url, users, start_logged_in, ...). Ignored for real browsers.

    Returns:
        An instance of BrowserDriver.

    Raises:
        ValueError: If the browser name is unknown.
    """
    config = config or BrowserConfig()
    if config.browser not in SUPPORTED_BROWSERS:
        raise ValueError(
            f"Unknown browser '{config.browser}'. "
            f"Supported browsers: {list(SUPPORTED_BROWSERS)}"
        )

    if config.simulate:
        from parabank_qa.drivers.mock_browser import MockBrowserDriver
        logger.debug("Creating MockBrowserDriver")
        return MockBrowserDriver(config=config, **mock_options)

    from parabank_qa.drivers.playwright_driver import PlaywrightBrowserDriver
    logger.debug(f"Creating PlaywrightBrowserDriver ({config.browser})")
    return PlaywrightBrowserDriver(config=config)


def browser_driver_factory(
    config: Optional[BrowserConfig] = None,
    **mock_options: Any,
) -> DriverFactory:
    """Bind a configuration into a zero-argument factory for the UI executor."""
    def factory() -> BrowserDriver:
        return create_browser_driver(config, **mock_options)
    return factory
