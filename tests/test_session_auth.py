"""
Unit Tests for the Session Authenticator.

Covers:
- Reuse of an active session without login or registration.
- Login success, login failure falling back to registration.
- Both strategies failing.
- Driver exceptions counted as step failures.
- Username generation and invalidation.
"""

from __future__ import annotations

from parabank_qa.drivers.mock_browser import MockBrowserDriver
from parabank_qa.executors.session_auth import (
    LOGIN_BUTTON,
    REGISTER_BUTTON,
    SessionAuthenticator,
    SessionState,
)

from tests.conftest import FIXED_CLOCK

BASE_URL = "https://parabank.parasoft.com/parabank"


def make_authenticator(no_sleep, **kwargs) -> SessionAuthenticator:
    kwargs.setdefault("settle_sec", 0.0)
    return SessionAuthenticator(BASE_URL, sleep=no_sleep, clock=lambda: FIXED_CLOCK, **kwargs)


class TestAuthenticate:
    """Tests for the reuse -> login -> register chain."""

    def test_reuses_active_session(self, no_sleep):
        driver = MockBrowserDriver(start_logged_in=True)
        outcome = make_authenticator(no_sleep).authenticate(driver)
        assert outcome.authenticated
        assert outcome.state == SessionState.REUSED
        assert outcome.transitions == [SessionState.UNCHECKED, SessionState.REUSED]
        assert driver.count("click") == 0
        assert driver.count("fill_field") == 0

    def test_login_with_configured_credentials(self, no_sleep):
        driver = MockBrowserDriver(users={"alice": "s3cret"})
        auth = make_authenticator(no_sleep, credentials={"username": "alice", "password": "s3cret"})
        outcome = auth.authenticate(driver)
        assert outcome.state == SessionState.LOGIN_SUCCEEDED
        assert outcome.username == "alice"
        assert driver.calls.count(("click", REGISTER_BUTTON)) == 0
        assert driver.calls.count(("click", LOGIN_BUTTON)) == 1

    def test_login_failure_falls_back_to_registration(self, no_sleep):
        users = {}
        driver = MockBrowserDriver(users=users)
        outcome = make_authenticator(no_sleep).authenticate(driver)
        assert outcome.authenticated
        assert outcome.state == SessionState.REGISTER_SUCCEEDED
        assert outcome.username == "user123500"
        assert outcome.transitions == [
            SessionState.UNCHECKED,
            SessionState.LOGGING_IN,
            SessionState.LOGIN_FAILED,
            SessionState.REGISTERING,
            SessionState.REGISTER_SUCCEEDED,
        ]
        assert users["user123500"] == "testpass"

    def test_both_strategies_fail(self, no_sleep):
        driver = MockBrowserDriver(users={}, fail_registration=True)
        auth = make_authenticator(no_sleep)
        outcome = auth.authenticate(driver)
        assert not outcome.authenticated
        assert outcome.state == SessionState.REGISTER_FAILED
        assert not auth.is_authenticated
        assert outcome.username is None

    def test_driver_errors_count_as_failures(self, no_sleep):
        driver = MockBrowserDriver(fail_navigation=True)
        outcome = make_authenticator(no_sleep).authenticate(driver)
        assert not outcome.authenticated
        assert SessionState.LOGIN_FAILED in outcome.transitions
        assert outcome.state == SessionState.REGISTER_FAILED

    def test_settle_delay_applied(self, no_sleep, sleeps):
        driver = MockBrowserDriver(start_logged_in=True)
        make_authenticator(no_sleep, settle_sec=2.0).authenticate(driver)
        assert sleeps == [2.0]


class TestSteps:
    """Tests for individual authenticator steps."""

    def test_login_override_credentials(self, no_sleep):
        driver = MockBrowserDriver(users={"bob": "pw"})
        auth = make_authenticator(no_sleep)
        assert auth.login(driver, {"username": "bob", "password": "pw"})
        assert auth.state == SessionState.LOGIN_SUCCEEDED
        assert driver.logged_in_user == "bob"

    def test_login_wrong_password(self, no_sleep):
        auth = make_authenticator(no_sleep)
        assert not auth.login(MockBrowserDriver(), {"password": "wrong"})
        assert auth.state == SessionState.LOGIN_FAILED

    def test_register_with_profile_username(self, no_sleep):
        users = {}
        auth = make_authenticator(no_sleep)
        assert auth.register(MockBrowserDriver(users=users), {"username": "carol", "password": "pw1"})
        assert auth.username == "carol"
        assert users == {"carol": "pw1"}

    def test_register_duplicate_username(self, no_sleep):
        auth = make_authenticator(no_sleep)
        assert not auth.register(MockBrowserDriver(), {"username": "testuser"})
        assert auth.state == SessionState.REGISTER_FAILED

    def test_generated_username_format(self, no_sleep):
        auth = make_authenticator(no_sleep)
        assert auth._generate_username() == "user123500"

    def test_invalidate(self, no_sleep):
        auth = make_authenticator(no_sleep)
        auth.authenticate(MockBrowserDriver(start_logged_in=True))
        auth.invalidate()
        assert auth.state == SessionState.SIGNED_OUT
        assert not auth.is_authenticated
        assert auth.username is None
