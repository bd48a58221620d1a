"""
Page Classification.

Decides what a rendered page means for a given check (is a session active,
did the login succeed, did the transfer page load, ...). The session
authenticator and UI executor only consume verdicts, so the marker tables
below can be replaced by another `PageClassifier` without touching them.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Mapping, Optional, Tuple

from loguru import logger

if TYPE_CHECKING:
    from parabank_qa.drivers.browser_driver_base import BrowserDriver


class PageCheck(Enum):
    """What is being asked of a page."""

    ACTIVE_SESSION = "active_session"
    LOGIN = "login"
    REGISTRATION = "registration"
    SESSION_LOST = "session_lost"
    OPEN_ACCOUNT = "open_account"
    ACCOUNT_OVERVIEW = "account_overview"
    TRANSFER_FUNDS = "transfer_funds"
    PAY_BILLS = "pay_bills"
    FIND_TRANSACTIONS = "find_transactions"
    UPDATE_PROFILE = "update_profile"
    REQUEST_LOAN = "request_loan"
    LOGOUT = "logout"


class PageVerdict(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True)
class PageSnapshot:
    """Page content and URL read at one instant."""

    content: str
    url: str = ""


class PageClassifier(ABC):
    """Interface for page classification strategies."""

    @abstractmethod
    def classify(self, check: PageCheck, snapshot: PageSnapshot) -> PageVerdict:
        ...


@dataclass(frozen=True)
class MarkerRule:
    """
    Marker-based rule for one check.

    Evaluation order:
        1. any failure marker in the content -> FAILURE
        2. required_url set and absent from the URL -> INCONCLUSIVE
        3. all of `all_text` present, and any of `any_text` in the content
           or any of `any_url` in the URL -> SUCCESS
        4. otherwise INCONCLUSIVE

    Matching is case-sensitive substring matching.
    """

    any_text: Tuple[str, ...] = ()
    all_text: Tuple[str, ...] = ()
    any_url: Tuple[str, ...] = ()
    required_url: Optional[str] = None
    failure_text: Tuple[str, ...] = ()

    def evaluate(self, snapshot: PageSnapshot) -> PageVerdict:
        content, url = snapshot.content or "", snapshot.url or ""
        if any(marker in content for marker in self.failure_text):
            return PageVerdict.FAILURE
        if self.required_url and self.required_url not in url:
            return PageVerdict.INCONCLUSIVE
        if not all(marker in content for marker in self.all_text):
            return PageVerdict.INCONCLUSIVE
        if not self.any_text and not self.any_url:
            return PageVerdict.SUCCESS if self.all_text else PageVerdict.INCONCLUSIVE
        if any(marker in content for marker in self.any_text):
            return PageVerdict.SUCCESS
        if any(marker in url for marker in self.any_url):
            return PageVerdict.SUCCESS
        return PageVerdict.INCONCLUSIVE


PARABANK_RULES: Mapping[PageCheck, MarkerRule] = {
    PageCheck.ACTIVE_SESSION: MarkerRule(
        all_text=("Welcome",), required_url="overview", failure_text=("Customer Login",)
    ),
    PageCheck.LOGIN: MarkerRule(all_text=("Welcome",), failure_text=("Error",)),
    PageCheck.REGISTRATION: MarkerRule(
        any_text=("Your account was created successfully", "Welcome"),
        any_url=("overview",),
        failure_text=("This username already exists", "Passwords did not match"),
    ),
    # SUCCESS means the session is gone (login form shown, no greeting).
    PageCheck.SESSION_LOST: MarkerRule(any_text=("login",), failure_text=("Welcome",)),
    PageCheck.OPEN_ACCOUNT: MarkerRule(any_text=("Open New Account",)),
    PageCheck.ACCOUNT_OVERVIEW: MarkerRule(
        any_text=("Accounts Overview", "Balance", "Available Amount", "Account Number")
    ),
    PageCheck.TRANSFER_FUNDS: MarkerRule(
        any_text=("Transfer Complete", "successfully"), any_url=("activity",)
    ),
    PageCheck.PAY_BILLS: MarkerRule(any_text=("Bill Payment Service", "Payee Name")),
    PageCheck.FIND_TRANSACTIONS: MarkerRule(any_text=("Find Transactions", "Select an account")),
    PageCheck.UPDATE_PROFILE: MarkerRule(any_text=("Update Profile", "First Name")),
    PageCheck.REQUEST_LOAN: MarkerRule(any_text=("Apply for a Loan", "Loan Amount")),
    PageCheck.LOGOUT: MarkerRule(
        any_text=("Customer Login", "Thank you for visiting ParaBank"), any_url=("index.htm",)
    ),
}


class MarkerPageClassifier(PageClassifier):
    """Classifier driven by a table of MarkerRule entries (Parabank markers by default)."""

    def __init__(self, rules: Optional[Mapping[PageCheck, MarkerRule]] = None) -> None:
        self._rules: Dict[PageCheck, MarkerRule] = dict(PARABANK_RULES)
        if rules:
            self._rules.update(rules)

    def classify(self, check: PageCheck, snapshot: PageSnapshot) -> PageVerdict:
        rule = self._rules.get(check)
        if rule is None:
            return PageVerdict.INCONCLUSIVE
        return rule.evaluate(snapshot)


def await_verdict(
    driver: BrowserDriver,
    classifier: PageClassifier,
    check: PageCheck,
    settle_sec: float = 0.0,
    polls: int = 1,
    sleep: Callable[[float], None] = time.sleep,
) -> PageVerdict:
    """
    Wait for the page to settle, then classify it.

    Re-reads the page up to `polls` times while the verdict is inconclusive,
    sleeping `settle_sec` before every read.
    """
    verdict = PageVerdict.INCONCLUSIVE
    for _ in range(max(1, polls)):
        if settle_sec > 0:
            sleep(settle_sec)
        snapshot = PageSnapshot(driver.page_content(), driver.current_url())
        verdict = classifier.classify(check, snapshot)
        logger.debug(f"Page check {check.name} -> {verdict.name}")
        if verdict != PageVerdict.INCONCLUSIVE:
            break
    return verdict
