"""
UI Executor.

Runs Parabank browser flows. Every execution gets its own browser session
from the driver factory and tears it down afterwards, whatever the outcome.

- register / login run directly against the forms.
- Every other operation first acquires an authenticated session through a
  fresh SessionAuthenticator; if none can be acquired the operation page is
  never visited and the result is an authentication failure.
- Operation outcomes are decided by the page classifier.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional

from loguru import logger

from parabank_qa.drivers.browser_driver_base import (
    BrowserConfig,
    BrowserDriver,
    BrowserDriverError,
)
from parabank_qa.drivers.driver_factory import DriverFactory, browser_driver_factory
from parabank_qa.executors.base import ExecutorBase
from parabank_qa.executors.operations import UiOperation
from parabank_qa.executors.page_classifier import (
    MarkerPageClassifier,
    PageCheck,
    PageClassifier,
    PageVerdict,
    await_verdict,
)
from parabank_qa.executors.payloads import as_mapping
from parabank_qa.executors.result import ErrorCategory, ExecutionResult, ResultKind
from parabank_qa.executors.screenshots import ScreenshotPolicy, ScreenshotStore
from parabank_qa.executors.session_auth import SessionAuthenticator

TRANSFER_BUTTON = "input[value='Transfer']"
LOGOUT_LINK = "text=Log Out"


class OperationPage(NamedTuple):
    page: str
    check: PageCheck
    title: str


OPERATION_PAGES: Mapping[UiOperation, OperationPage] = {
    UiOperation.OPEN_ACCOUNT: OperationPage(
        "openaccount.htm", PageCheck.OPEN_ACCOUNT, "Open account"
    ),
    UiOperation.ACCOUNT_OVERVIEW: OperationPage(
        "overview.htm", PageCheck.ACCOUNT_OVERVIEW, "Account overview"
    ),
    UiOperation.TRANSFER_FUNDS: OperationPage(
        "transfer.htm", PageCheck.TRANSFER_FUNDS, "Transfer funds"
    ),
    UiOperation.PAY_BILLS: OperationPage("billpay.htm", PageCheck.PAY_BILLS, "Bill pay"),
    UiOperation.FIND_TRANSACTIONS: OperationPage(
        "findtrans.htm", PageCheck.FIND_TRANSACTIONS, "Find transactions"
    ),
    UiOperation.UPDATE_PROFILE: OperationPage(
        "updateprofile.htm", PageCheck.UPDATE_PROFILE, "Update profile"
    ),
    UiOperation.REQUEST_LOAN: OperationPage(
        "requestloan.htm", PageCheck.REQUEST_LOAN, "Request loan"
    ),
}


@dataclass
class UiExecutorConfig:
    """Configuration for the UI executor."""

    base_url: str = "https://parabank.parasoft.com/parabank"
    screenshot_dir: str = "screenshots"
    screenshot_policy: ScreenshotPolicy = ScreenshotPolicy.ALWAYS
    settle_sec: float = 2.0
    settle_polls: int = 1
    credentials: Optional[Dict[str, str]] = None
    browser: BrowserConfig = field(default_factory=BrowserConfig)


SessionHandler = Callable[
    [UiOperation, BrowserDriver, SessionAuthenticator, Dict[str, Any]], ExecutionResult
]


class UiExecutor(ExecutorBase):
    """
    Executor for UI test cases.

    Usage::

        executor = UiExecutor(UiExecutorConfig(browser=BrowserConfig(simulate=True)))
        result = executor.execute("account-overview")
        print(result.success, result.screenshot_path)
    """

    operations = UiOperation
    kind = ResultKind.UI

    def __init__(
        self,
        config: Optional[UiExecutorConfig] = None,
        driver_factory: Optional[DriverFactory] = None,
        classifier: Optional[PageClassifier] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the executor.

        Args:
            config: Executor configuration (defaults when None).
            driver_factory: Zero-argument callable returning a new browser
                session (built from `config.browser` if None).
            classifier: Page classifier (Parabank markers if None).
            sleep: Sleep function used while pages settle.
            clock: Time source used for generated usernames.
        """
        super().__init__("ui")
        self.config = config or UiExecutorConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self._driver_factory = driver_factory or browser_driver_factory(
            self.config.browser, base_url=self.base_url
        )
        self.classifier = classifier or MarkerPageClassifier()
        self.screenshots = ScreenshotStore(self.config.screenshot_dir, self.config.screenshot_policy)
        self._sleep = sleep
        self._clock = clock
        self._session_handlers: Dict[UiOperation, SessionHandler] = {
            op: self._page_operation for op in OPERATION_PAGES
        }
        self._session_handlers[UiOperation.TRANSFER_FUNDS] = self._transfer_funds
        self._session_handlers[UiOperation.LOGOUT] = self._logout
        logger.info(
            f"[UI] Executor initialized — base_url={self.base_url}, "
            f"screenshots={self.config.screenshot_dir} ({self.config.screenshot_policy.value})"
        )

    def new_authenticator(self) -> SessionAuthenticator:
        return SessionAuthenticator(
            base_url=self.base_url,
            credentials=self.config.credentials,
            classifier=self.classifier,
            settle_sec=self.config.settle_sec,
            settle_polls=self.config.settle_polls,
            sleep=self._sleep,
            clock=self._clock,
        )

    def _execute(
        self, operation: UiOperation, data: Any, timeout_sec: Optional[float]
    ) -> ExecutionResult:
        payload = as_mapping(data)
        driver = self._driver_factory()
        try:
            if timeout_sec:
                driver.set_default_timeout(timeout_sec)
            return self._run(operation, driver, payload)
        except Exception as e:
            logger.error(f"[UI] {operation.value} raised: {e}")
            screenshot = self.screenshots.capture(driver, f"{operation.value}_error", success=False)
            return ExecutionResult.failure(
                f"UI execution error in {operation.value}: {e}",
                screenshot_path=screenshot,
                kind=ResultKind.UI,
                error_type=type(e).__name__,
            )
        finally:
            try:
                driver.close()
            except Exception as e:
                logger.error(f"[UI] Error closing browser session: {e}")

    def _run(
        self, operation: UiOperation, driver: BrowserDriver, payload: Dict[str, Any]
    ) -> ExecutionResult:
        authenticator = self.new_authenticator()

        if operation == UiOperation.REGISTER:
            ok = authenticator.register(driver, profile=payload)
            details = (
                f"Registration completed for user {authenticator.username}"
                if ok else "Registration failed"
            )
            return self._finish(driver, operation, ok, details)

        if operation == UiOperation.LOGIN:
            ok = authenticator.login(driver, credentials=payload)
            details = (
                f"Login successful for user {authenticator.username}" if ok else "Login failed"
            )
            return self._finish(driver, operation, ok, details)

        outcome = authenticator.authenticate(driver)
        if not outcome.authenticated:
            return self._fail(
                driver,
                operation,
                f"Authentication failed for operation: {operation.value}",
                ErrorCategory.AUTHENTICATION,
            )
        logger.debug(f"[UI] Authenticated ({outcome.state.name}), running {operation.value}")
        return self._session_handlers[operation](operation, driver, authenticator, payload)

    # ------------------------------------------------------------------
    # Operations inside an authenticated session
    # ------------------------------------------------------------------

    def _page_operation(
        self,
        operation: UiOperation,
        driver: BrowserDriver,
        authenticator: SessionAuthenticator,
        payload: Dict[str, Any],
    ) -> ExecutionResult:
        spec = OPERATION_PAGES[operation]
        if not self._open_page(driver, authenticator, spec.page):
            return self._session_lost(driver, operation)
        ok = self._verdict(driver, spec.check) == PageVerdict.SUCCESS
        details = f"{spec.title} page {'loaded successfully' if ok else 'failed to load'}"
        return self._finish(driver, operation, ok, details)

    def _transfer_funds(
        self,
        operation: UiOperation,
        driver: BrowserDriver,
        authenticator: SessionAuthenticator,
        payload: Dict[str, Any],
    ) -> ExecutionResult:
        spec = OPERATION_PAGES[operation]
        if not self._open_page(driver, authenticator, spec.page):
            return self._session_lost(driver, operation)

        amount = str(payload.get("amount", "100"))
        if not driver.fill_field("amount", amount):
            return self._fail(
                driver, operation, "Transfer form not available", ErrorCategory.EXECUTION
            )
        driver.click(TRANSFER_BUTTON)
        ok = self._verdict(driver, spec.check) == PageVerdict.SUCCESS
        details = f"Funds transfer of {amount} successful" if ok else "Funds transfer failed"
        return self._finish(driver, operation, ok, details)

    def _logout(
        self,
        operation: UiOperation,
        driver: BrowserDriver,
        authenticator: SessionAuthenticator,
        payload: Dict[str, Any],
    ) -> ExecutionResult:
        try:
            driver.click(LOGOUT_LINK)
        except BrowserDriverError as e:
            logger.debug(f"[UI] Log Out link not clickable ({e}), loading the landing page")
            driver.navigate(f"{self.base_url}/index.htm")

        ok = self._verdict(driver, PageCheck.LOGOUT) == PageVerdict.SUCCESS
        if ok:
            authenticator.invalidate()
        return self._finish(
            driver, operation, ok, "Logout completed successfully" if ok else "Logout failed"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _open_page(
        self, driver: BrowserDriver, authenticator: SessionAuthenticator, page: str
    ) -> bool:
        """Load an operation page; returns False (and invalidates) if the session was lost."""
        driver.navigate(f"{self.base_url}/{page}")
        if self._verdict(driver, PageCheck.SESSION_LOST) == PageVerdict.SUCCESS:
            authenticator.invalidate()
            return False
        return True

    def _verdict(self, driver: BrowserDriver, check: PageCheck) -> PageVerdict:
        return await_verdict(
            driver,
            self.classifier,
            check,
            self.config.settle_sec,
            self.config.settle_polls,
            self._sleep,
        )

    def _session_lost(self, driver: BrowserDriver, operation: UiOperation) -> ExecutionResult:
        return self._fail(
            driver,
            operation,
            f"Session lost while executing {operation.value}",
            ErrorCategory.AUTHENTICATION,
        )

    def _finish(
        self, driver: BrowserDriver, operation: UiOperation, ok: bool, details: str
    ) -> ExecutionResult:
        screenshot = self.screenshots.capture(driver, operation.value, ok)
        return ExecutionResult.ui_result(ok, details, screenshot)

    def _fail(
        self,
        driver: BrowserDriver,
        operation: UiOperation,
        message: str,
        category: ErrorCategory,
    ) -> ExecutionResult:
        screenshot = self.screenshots.capture(driver, operation.value, False)
        return ExecutionResult.failure(
            message, screenshot_path=screenshot, category=category, kind=ResultKind.UI
        )
