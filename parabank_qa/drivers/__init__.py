"""
Driver Abstraction Layer.

Provides the collaborators the executors talk to:
- HttpClient over requests for the Parabank REST services
- BrowserDriver interface with Playwright and Mock implementations

The factory function `create_browser_driver()` returns the appropriate
browser driver based on the browser name and whether simulation mode is enabled.
"""

from parabank_qa.drivers.browser_driver_base import (
    BrowserConfig,
    BrowserDriver,
    BrowserDriverError,
)
from parabank_qa.drivers.driver_factory import browser_driver_factory, create_browser_driver
from parabank_qa.drivers.http_client import HttpClient, HttpClientError, HttpResponse

__all__ = [
    "BrowserConfig",
    "BrowserDriver",
    "BrowserDriverError",
    "HttpClient",
    "HttpClientError",
    "HttpResponse",
    "browser_driver_factory",
    "create_browser_driver",
]
