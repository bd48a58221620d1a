"""
Session Authenticator.

State machine that obtains an authenticated browser session before a UI
operation runs. Strategies are tried in order and stop at the first success:

    UNCHECKED -> REUSED                       (session already active)
              -> LOGGING_IN -> LOGIN_SUCCEEDED
                            -> LOGIN_FAILED -> REGISTERING -> REGISTER_SUCCEEDED
                                                          -> REGISTER_FAILED

One authenticator belongs to one browser session; state is never persisted.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional

from loguru import logger

from parabank_qa.drivers.browser_driver_base import BrowserDriver
from parabank_qa.executors.page_classifier import (
    MarkerPageClassifier,
    PageCheck,
    PageClassifier,
    PageVerdict,
    await_verdict,
)
from parabank_qa.executors.payloads import DEFAULT_CREDENTIALS, DEFAULT_PROFILE, merge_payload

# logical profile key -> registration form field name
REGISTRATION_FORM_FIELDS = {
    "firstName": "customer.firstName",
    "lastName": "customer.lastName",
    "address": "customer.address.street",
    "city": "customer.address.city",
    "state": "customer.address.state",
    "zipCode": "customer.address.zipCode",
    "phone": "customer.phoneNumber",
    "ssn": "customer.ssn",
    "username": "customer.username",
    "password": "customer.password",
}

LOGIN_BUTTON = "input[value='Log In']"
REGISTER_BUTTON = "input[value='Register']"


class SessionState(Enum):
    UNCHECKED = "unchecked"
    REUSED = "reused"
    LOGGING_IN = "logging_in"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    REGISTERING = "registering"
    REGISTER_SUCCEEDED = "register_succeeded"
    REGISTER_FAILED = "register_failed"
    SIGNED_OUT = "signed_out"

    @property
    def is_authenticated(self) -> bool:
        return self in (
            SessionState.REUSED,
            SessionState.LOGIN_SUCCEEDED,
            SessionState.REGISTER_SUCCEEDED,
        )


@dataclass
class AuthOutcome:
    """Result of an authentication attempt."""

    authenticated: bool
    state: SessionState
    username: Optional[str] = None
    transitions: List[SessionState] = field(default_factory=list)


class SessionAuthenticator:
    """
    Acquires an authenticated session via reuse, then login, then registration.

    Every page check waits `settle_sec` before reading the page and re-reads
    it up to `settle_polls` times while the classifier stays inconclusive.
    """

    def __init__(
        self,
        base_url: str,
        credentials: Optional[Mapping[str, str]] = None,
        classifier: Optional[PageClassifier] = None,
        profile_defaults: Optional[Mapping[str, str]] = None,
        settle_sec: float = 2.0,
        settle_polls: int = 1,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.credentials = merge_payload(DEFAULT_CREDENTIALS, credentials)
        self.classifier = classifier or MarkerPageClassifier()
        self.profile_defaults = merge_payload(DEFAULT_PROFILE, profile_defaults)
        self.settle_sec = settle_sec
        self.settle_polls = max(1, settle_polls)
        self._sleep = sleep
        self._clock = clock
        self._state = SessionState.UNCHECKED
        self._transitions: List[SessionState] = []
        self.username: Optional[str] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"[Auth] {self._state.name} -> {state.name}")
        self._state = state
        self._transitions.append(state)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def authenticate(self, driver: BrowserDriver) -> AuthOutcome:
        """
        Run the reuse -> login -> register strategy chain.

        Args:
            driver: Browser session to authenticate.

        Returns:
            AuthOutcome with the terminal state and the transitions taken.
        """
        self._transitions = []
        self._transition(SessionState.UNCHECKED)

        if self.check_active_session(driver):
            self._transition(SessionState.REUSED)
        elif not self.login(driver):
            logger.info("[Auth] Login failed, registering a new customer")
            self.register(driver)

        outcome = AuthOutcome(
            authenticated=self._state.is_authenticated,
            state=self._state,
            username=self.username,
            transitions=list(self._transitions),
        )
        if outcome.authenticated:
            logger.info(f"[Auth] Session acquired ({self._state.name}) as {self.username}")
        else:
            logger.warning("[Auth] Could not acquire an authenticated session")
        return outcome

    def check_active_session(self, driver: BrowserDriver) -> bool:
        """Load the landing page and report whether a session is already active."""
        try:
            driver.navigate(self._url("index.htm"))
            active = self._await_verdict(driver, PageCheck.ACTIVE_SESSION) == PageVerdict.SUCCESS
        except Exception as e:
            logger.warning(f"[Auth] Session check failed: {e}")
            return False
        if active and self.username is None:
            self.username = self.credentials.get("username")
        return active

    def login(
        self, driver: BrowserDriver, credentials: Optional[Mapping[str, Any]] = None
    ) -> bool:
        """
        Submit the login form.

        Args:
            driver: Browser session.
            credentials: Overrides for the configured username/password.

        Returns:
            True if the login was confirmed by the page.
        """
        creds = merge_payload(self.credentials, credentials)
        username = str(creds.get("username", ""))
        self._transition(SessionState.LOGGING_IN)
        try:
            driver.navigate(self._url("index.htm"))
            filled = driver.fill_field("username", username) and driver.fill_field(
                "password", str(creds.get("password", ""))
            )
            if not filled:
                logger.warning("[Auth] Login form not available")
                self._transition(SessionState.LOGIN_FAILED)
                return False
            driver.click(LOGIN_BUTTON)
            verdict = self._await_verdict(driver, PageCheck.LOGIN)
        except Exception as e:
            logger.warning(f"[Auth] Login raised: {e}")
            verdict = PageVerdict.FAILURE

        if verdict == PageVerdict.SUCCESS:
            self.username = username
            self._transition(SessionState.LOGIN_SUCCEEDED)
            return True
        self._transition(SessionState.LOGIN_FAILED)
        return False

    def register(
        self, driver: BrowserDriver, profile: Optional[Mapping[str, Any]] = None
    ) -> bool:
        """
        Register a new customer and log in as it.

        A fresh username ("user" + last six digits of the epoch milliseconds)
        is generated unless the profile supplies one.

        Returns:
            True if the registration was confirmed by the page.
        """
        values = merge_payload(self.profile_defaults, profile)
        values.setdefault("username", self._generate_username())
        self._transition(SessionState.REGISTERING)
        try:
            driver.navigate(self._url("register.htm"))
            for key, form_field in REGISTRATION_FORM_FIELDS.items():
                if not driver.fill_field(form_field, str(values.get(key, ""))):
                    raise LookupError(f"Registration field missing: {form_field}")
            driver.fill_field("repeatedPassword", str(values.get("password", "")))
            driver.click(REGISTER_BUTTON)
            verdict = self._await_verdict(driver, PageCheck.REGISTRATION)
        except Exception as e:
            logger.warning(f"[Auth] Registration raised: {e}")
            verdict = PageVerdict.FAILURE

        if verdict == PageVerdict.SUCCESS:
            self.username = str(values["username"])
            self._transition(SessionState.REGISTER_SUCCEEDED)
            return True
        self._transition(SessionState.REGISTER_FAILED)
        return False

    def invalidate(self) -> None:
        """Mark the session as signed out (after logout or a lost session)."""
        self._transition(SessionState.SIGNED_OUT)
        self.username = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, page: str) -> str:
        return f"{self.base_url}/{page}"

    def _generate_username(self) -> str:
        millis = int(self._clock() * 1000)
        return f"user{str(millis)[-6:]}"

    def _await_verdict(self, driver: BrowserDriver, check: PageCheck) -> PageVerdict:
        return await_verdict(
            driver, self.classifier, check, self.settle_sec, self.settle_polls, self._sleep
        )
