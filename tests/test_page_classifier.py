"""
Unit Tests for Page Classification.

Covers:
- MarkerRule evaluation order (failure markers, required URL, markers).
- Parabank marker tables for the session and operation checks.
- Replacing rules on MarkerPageClassifier.
- await_verdict settle/poll behavior.
"""

from __future__ import annotations

from parabank_qa.drivers.mock_browser import MockBrowserDriver
from parabank_qa.executors.page_classifier import (
    MarkerPageClassifier,
    MarkerRule,
    PageCheck,
    PageClassifier,
    PageSnapshot,
    PageVerdict,
    await_verdict,
)


class TestMarkerRule:
    """Tests for MarkerRule.evaluate()."""

    def test_failure_marker_wins(self):
        rule = MarkerRule(any_text=("Welcome",), failure_text=("Error",))
        assert rule.evaluate(PageSnapshot("Welcome ... Error")) == PageVerdict.FAILURE

    def test_required_url_missing(self):
        rule = MarkerRule(all_text=("Welcome",), required_url="overview")
        assert rule.evaluate(PageSnapshot("Welcome", "https://x/index.htm")) == PageVerdict.INCONCLUSIVE

    def test_all_text_only(self):
        rule = MarkerRule(all_text=("a", "b"))
        assert rule.evaluate(PageSnapshot("a b")) == PageVerdict.SUCCESS
        assert rule.evaluate(PageSnapshot("a")) == PageVerdict.INCONCLUSIVE

    def test_any_url(self):
        rule = MarkerRule(any_text=("done",), any_url=("activity",))
        assert rule.evaluate(PageSnapshot("", "https://x/activity.htm?id=1")) == PageVerdict.SUCCESS

    def test_empty_rule_inconclusive(self):
        assert MarkerRule().evaluate(PageSnapshot("anything")) == PageVerdict.INCONCLUSIVE

    def test_case_sensitive(self):
        rule = MarkerRule(any_text=("Welcome",))
        assert rule.evaluate(PageSnapshot("welcome")) == PageVerdict.INCONCLUSIVE


class TestParabankRules:
    """Tests for the default Parabank marker table."""

    def setup_method(self):
        self.classifier = MarkerPageClassifier()

    def test_login_success(self):
        snapshot = PageSnapshot("<b>Welcome</b> John", "https://x/overview.htm")
        assert self.classifier.classify(PageCheck.LOGIN, snapshot) == PageVerdict.SUCCESS

    def test_login_error(self):
        snapshot = PageSnapshot("<h1>Error!</h1> Welcome", "https://x/login.htm")
        assert self.classifier.classify(PageCheck.LOGIN, snapshot) == PageVerdict.FAILURE

    def test_active_session_needs_overview_url(self):
        content = "<b>Welcome</b> John"
        assert (
            self.classifier.classify(PageCheck.ACTIVE_SESSION, PageSnapshot(content, "https://x/overview.htm"))
            == PageVerdict.SUCCESS
        )
        assert (
            self.classifier.classify(PageCheck.ACTIVE_SESSION, PageSnapshot(content, "https://x/index.htm"))
            == PageVerdict.INCONCLUSIVE
        )

    def test_active_session_login_panel(self):
        snapshot = PageSnapshot("<h2>Customer Login</h2>", "https://x/overview.htm")
        assert self.classifier.classify(PageCheck.ACTIVE_SESSION, snapshot) == PageVerdict.FAILURE

    def test_registration_markers(self):
        ok = PageSnapshot("Your account was created successfully", "https://x/register.htm")
        dup = PageSnapshot("This username already exists.", "https://x/register.htm")
        assert self.classifier.classify(PageCheck.REGISTRATION, ok) == PageVerdict.SUCCESS
        assert self.classifier.classify(PageCheck.REGISTRATION, dup) == PageVerdict.FAILURE

    def test_session_lost(self):
        lost = PageSnapshot("<form action='login.htm'>", "https://x/transfer.htm")
        alive = PageSnapshot("Welcome John <a href='login.htm'>", "https://x/transfer.htm")
        assert self.classifier.classify(PageCheck.SESSION_LOST, lost) == PageVerdict.SUCCESS
        assert self.classifier.classify(PageCheck.SESSION_LOST, alive) == PageVerdict.FAILURE

    def test_operation_markers(self):
        cases = {
            PageCheck.OPEN_ACCOUNT: "Open New Account",
            PageCheck.ACCOUNT_OVERVIEW: "Available Amount",
            PageCheck.TRANSFER_FUNDS: "Transfer Complete!",
            PageCheck.PAY_BILLS: "Bill Payment Service",
            PageCheck.FIND_TRANSACTIONS: "Select an account",
            PageCheck.UPDATE_PROFILE: "First Name",
            PageCheck.REQUEST_LOAN: "Apply for a Loan",
            PageCheck.LOGOUT: "Customer Login",
        }
        for check, marker in cases.items():
            assert self.classifier.classify(check, PageSnapshot(marker)) == PageVerdict.SUCCESS, check

    def test_rule_override(self):
        classifier = MarkerPageClassifier({PageCheck.LOGIN: MarkerRule(any_text=("Hello",))})
        assert classifier.classify(PageCheck.LOGIN, PageSnapshot("Hello")) == PageVerdict.SUCCESS
        # Other checks keep the defaults.
        assert classifier.classify(PageCheck.LOGOUT, PageSnapshot("Customer Login")) == PageVerdict.SUCCESS


class SequenceClassifier(PageClassifier):
    """Returns scripted verdicts in order."""

    def __init__(self, *verdicts: PageVerdict):
        self.verdicts = list(verdicts)
        self.calls = 0

    def classify(self, check, snapshot):
        verdict = self.verdicts[min(self.calls, len(self.verdicts) - 1)]
        self.calls += 1
        return verdict


class TestAwaitVerdict:
    """Tests for await_verdict()."""

    def test_settles_before_each_read(self, no_sleep, sleeps):
        driver = MockBrowserDriver()
        classifier = SequenceClassifier(PageVerdict.INCONCLUSIVE, PageVerdict.INCONCLUSIVE, PageVerdict.SUCCESS)
        verdict = await_verdict(driver, classifier, PageCheck.LOGIN, settle_sec=2.0, polls=5, sleep=no_sleep)
        assert verdict == PageVerdict.SUCCESS
        assert classifier.calls == 3
        assert sleeps == [2.0, 2.0, 2.0]

    def test_stops_on_failure(self, no_sleep):
        classifier = SequenceClassifier(PageVerdict.FAILURE)
        verdict = await_verdict(MockBrowserDriver(), classifier, PageCheck.LOGIN, polls=3, sleep=no_sleep)
        assert verdict == PageVerdict.FAILURE
        assert classifier.calls == 1

    def test_inconclusive_after_polls(self, no_sleep, sleeps):
        classifier = SequenceClassifier(PageVerdict.INCONCLUSIVE)
        verdict = await_verdict(MockBrowserDriver(), classifier, PageCheck.LOGIN, polls=2, sleep=no_sleep)
        assert verdict == PageVerdict.INCONCLUSIVE
        assert classifier.calls == 2
        assert sleeps == []
