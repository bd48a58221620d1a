"""
Root conftest.py — Shared Pytest fixtures and configuration.

Provides fixtures for:
- Configuration loading from the project config directory
- A stub requests session for HTTP-level tests (no network)
- Mock browser sessions (in-process Parabank simulation)
- API / UI executors wired to the stubs
- A recording no-op sleep so retry and settle delays cost nothing

All external systems are simulated; the suite never touches the network
or a real browser.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from parabank_qa.config.loader import ConfigLoader
from parabank_qa.drivers.browser_driver_base import BrowserConfig
from parabank_qa.drivers.http_client import HttpClient
from parabank_qa.drivers.mock_browser import MockBrowserDriver
from parabank_qa.executors.api_executor import ApiExecutor, ApiExecutorConfig
from parabank_qa.executors.screenshots import ScreenshotPolicy
from parabank_qa.executors.ui_executor import UiExecutor, UiExecutorConfig

FIXED_CLOCK = 1700000123.5  # generated usernames become "user123500"


# ---------------------------------------------------------------------------
# Stubs
# ---------------------------------------------------------------------------


class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, text: str = "", content_type: str = "application/xml"):
        self.status_code = status_code
        self.text = text
        self.headers = {"Content-Type": content_type} if content_type else {}


class StubSession:
    """
    Stand-in for requests.Session.

    Routes are matched in registration order on (method, URL fragment); the
    outcome is either a StubResponse or an exception to raise.
    """

    def __init__(self, default: Optional[StubResponse] = None) -> None:
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self.routes: List[Tuple[Optional[str], str, Any]] = []
        self.default = default or StubResponse(200, "<ok/>")
        self.closed = False

    def route(self, fragment: str, outcome: Any, method: Optional[str] = None) -> None:
        self.routes.append((method, fragment, outcome))

    def request(self, method: str, url: str, timeout: Any = None, **kwargs: Any) -> StubResponse:
        self.calls.append({"method": method, "url": url, "timeout": timeout, **kwargs})
        for route_method, fragment, outcome in self.routes:
            if (route_method is None or route_method == method) and fragment in url:
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome
        return self.default

    def close(self) -> None:
        self.closed = True


class MockDriverFactory:
    """Zero-argument driver factory that keeps every session it created."""

    def __init__(self, users: Optional[Dict[str, str]] = None, driver_cls=MockBrowserDriver, **options: Any):
        self.users = {"testuser": "testpass"} if users is None else users
        self.driver_cls = driver_cls
        self.options = options
        self.drivers: List[MockBrowserDriver] = []

    def __call__(self) -> MockBrowserDriver:
        driver = self.driver_cls(
            config=BrowserConfig(simulate=True), users=self.users, **self.options
        )
        self.drivers.append(driver)
        return driver

    @property
    def last(self) -> MockBrowserDriver:
        return self.drivers[-1]


# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def config_dir() -> Path:
    """Return the path to the configuration directory."""
    project_root = Path(__file__).parent.parent
    return project_root / "config"


@pytest.fixture
def config_loader(config_dir: Path) -> ConfigLoader:
    """Create a ConfigLoader rooted at the project config directory."""
    return ConfigLoader(config_dir=config_dir)


# ---------------------------------------------------------------------------
# Timing Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sleeps() -> List[float]:
    """Durations passed to the no-op sleep."""
    return []


@pytest.fixture
def no_sleep(sleeps: List[float]):
    """Sleep replacement that records the requested delay and returns at once."""
    return sleeps.append


# ---------------------------------------------------------------------------
# HTTP / API Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stub_session() -> StubSession:
    return StubSession()


@pytest.fixture
def http_client(stub_session: StubSession) -> HttpClient:
    return HttpClient(
        base_url="https://parabank.test/parabank/services/bank",
        timeout_sec=5.0,
        session=stub_session,
    )


@pytest.fixture
def api_executor(http_client: HttpClient) -> ApiExecutor:
    """API executor in mock mode over the stub session."""
    return ApiExecutor(ApiExecutorConfig(mock_mode=True), http_client=http_client)


@pytest.fixture
def live_api_executor(http_client: HttpClient) -> ApiExecutor:
    """API executor in live mode over the stub session."""
    config = ApiExecutorConfig(
        base_url="https://parabank.test/parabank/services/bank",
        site_url="https://parabank.test/parabank",
        validation_url="https://echo.test",
        mock_mode=False,
    )
    return ApiExecutor(config, http_client=http_client)


# ---------------------------------------------------------------------------
# Browser / UI Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def driver_factory() -> MockDriverFactory:
    return MockDriverFactory()


@pytest.fixture
def ui_config(tmp_path: Path) -> UiExecutorConfig:
    return UiExecutorConfig(
        screenshot_dir=str(tmp_path / "screenshots"),
        screenshot_policy=ScreenshotPolicy.ALWAYS,
        settle_sec=0.0,
        browser=BrowserConfig(simulate=True),
    )


@pytest.fixture
def ui_executor(ui_config: UiExecutorConfig, driver_factory: MockDriverFactory, no_sleep) -> UiExecutor:
    """UI executor running against the mock browser."""
    return UiExecutor(
        ui_config,
        driver_factory=driver_factory,
        sleep=no_sleep,
        clock=lambda: FIXED_CLOCK,
    )


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom Pytest markers."""
    config.addinivalue_line(
        "markers",
        "functional: End-to-end run scenarios against simulated executors",
    )
