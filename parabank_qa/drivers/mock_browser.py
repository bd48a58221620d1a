"""
Mock Browser Driver — simulation layer for running UI flows without a browser.

Renders a small in-process imitation of the Parabank pages the UI executor
visits, allowing the framework to run in simulation mode. This enables:
- CI validation without a browser installation
- Development of UI flow logic against deterministic pages
- Counting driver interactions in tests (see `calls` / `count`)
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from loguru import logger

from parabank_qa.drivers.browser_driver_base import (
    BrowserConfig,
    BrowserDriver,
    BrowserDriverError,
)

DEFAULT_BASE_URL = "https://parabank.parasoft.com/parabank"

LOGIN_FIELDS = ("username", "password")
REGISTRATION_FIELDS = (
    "customer.firstName",
    "customer.lastName",
    "customer.address.street",
    "customer.address.city",
    "customer.address.state",
    "customer.address.zipCode",
    "customer.phoneNumber",
    "customer.ssn",
    "customer.username",
    "customer.password",
    "repeatedPassword",
)
TRANSFER_FIELDS = ("amount", "fromAccountId", "toAccountId")

# page -> body shown to a logged-in customer
_ACCOUNT_PAGES: Dict[str, str] = {
    "overview.htm": (
        "<h1 class='title'>Accounts Overview</h1>"
        "<table><tr><th>Account</th><th>Balance*</th><th>Available Amount</th></tr>"
        "<tr><td>13344</td><td>$515.50</td><td>$515.50</td></tr></table>"
    ),
    "openaccount.htm": (
        "<h1 class='title'>Open New Account</h1>"
        "<p>What type of Account would you like to open?</p>"
    ),
    "transfer.htm": (
        "<h1 class='title'>Transfer Funds</h1>"
        "<form><input name='amount'/><select name='fromAccountId'></select>"
        "<select name='toAccountId'></select><input type='submit' value='Transfer'/></form>"
    ),
    "billpay.htm": (
        "<h1 class='title'>Bill Payment Service</h1>"
        "<form><td>Payee Name:</td><input name='payee.name'/></form>"
    ),
    "findtrans.htm": (
        "<h1 class='title'>Find Transactions</h1>"
        "<p>Select an account:</p><select id='accountId'></select>"
    ),
    "updateprofile.htm": (
        "<h1 class='title'>Update Profile</h1>"
        "<form><td>First Name:</td><input name='customer.firstName'/></form>"
    ),
    "requestloan.htm": (
        "<h1 class='title'>Apply for a Loan</h1>"
        "<form><td>Loan Amount:</td><input id='amount'/></form>"
    ),
}

_LOGIN_PANEL = (
    "<div id='leftPanel'><h2>Customer Login</h2>"
    "<form method='post' action='login.htm'>"
    "<input name='username'/><input name='password' type='password'/>"
    "<input type='submit' value='Log In'/></form>"
    "<a href='register.htm'>Register</a></div>"
)

# Smallest valid PNG (1x1 transparent pixel).
_PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


class MockBrowserDriver(BrowserDriver):
    """
    Mock browser driver that simulates the Parabank web application.

    Registered users live in the `users` mapping passed in; sharing one
    mapping between driver instances lets accounts created by one session be
    used by later ones, as on the real site.
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        base_url: str = DEFAULT_BASE_URL,
        users: Optional[Dict[str, str]] = None,
        start_logged_in: bool = False,
        fail_registration: bool = False,
        broken_pages: Iterable[str] = (),
        fail_navigation: bool = False,
        fail_screenshot: bool = False,
    ) -> None:
        super().__init__(config)
        self.base_url = base_url.rstrip("/")
        self.users = users if users is not None else {"testuser": "testpass"}
        self.fail_registration = fail_registration
        self.broken_pages = set(broken_pages)
        self.fail_navigation = fail_navigation
        self.fail_screenshot = fail_screenshot
        self.calls: List[Tuple[str, str]] = []
        self._logged_in_user: Optional[str] = "testuser" if start_logged_in else None
        self._page = "about:blank"
        self._content = ""
        self._fields: Dict[str, str] = {}
        self._available_fields: Tuple[str, ...] = ()

    @property
    def logged_in_user(self) -> Optional[str]:
        return self._logged_in_user

    def count(self, method: str) -> int:
        """Number of recorded calls of the given driver method."""
        return sum(1 for name, _ in self.calls if name == method)

    # ------------------------------------------------------------------
    # BrowserDriver interface
    # ------------------------------------------------------------------

    def navigate(self, url: str) -> None:
        self._ensure_open()
        self.calls.append(("navigate", url))
        if self.fail_navigation:
            raise BrowserDriverError(f"Simulated navigation failure: {url}")
        page = urlparse(url).path.rsplit("/", 1)[-1] or "index.htm"
        if page == "logout.htm":
            self._logout()
            return
        self._render(page)

    def fill_field(self, name: str, value: str) -> bool:
        self._ensure_open()
        self.calls.append(("fill_field", name))
        if name not in self._available_fields:
            return False
        self._fields[name] = str(value)
        return True

    def click(self, selector: str) -> None:
        self._ensure_open()
        self.calls.append(("click", selector))
        if selector == "input[value='Log In']" and "username" in self._available_fields:
            self._submit_login()
        elif selector == "input[value='Register']" and self._page == "register.htm":
            self._submit_registration()
        elif selector == "input[value='Transfer']" and self._page == "transfer.htm":
            self._submit_transfer()
        elif selector == "text=Log Out" and self._logged_in_user:
            self._logout()
        else:
            raise BrowserDriverError(f"No element matches selector {selector!r} on {self._page}")

    def page_content(self) -> str:
        self._ensure_open()
        self.calls.append(("page_content", self._page))
        return self._content

    def current_url(self) -> str:
        return f"{self.base_url}/{self._page}" if self._page != "about:blank" else self._page

    def capture_screenshot(self, path: str) -> str:
        self._ensure_open()
        self.calls.append(("capture_screenshot", path))
        if self.fail_screenshot:
            raise BrowserDriverError("Simulated screenshot failure")
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(_PNG_BYTES)
        return str(target)

    def _shutdown(self) -> None:
        self.calls.append(("close", ""))

    # ------------------------------------------------------------------
    # Simulated site
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise BrowserDriverError("Browser session is closed")

    def _render(self, page: str) -> None:
        self._fields = {}
        user = self._logged_in_user

        if page in ("index.htm", "login.htm") and user:
            # Parabank sends a logged-in customer straight to the overview.
            page = "overview.htm"

        self._page = page
        if page == "register.htm":
            self._show(
                "<h1 class='title'>Signing up is easy!</h1><form id='customerForm'>"
                + "".join(f"<input name='{f}'/>" for f in REGISTRATION_FIELDS)
                + "<input type='submit' value='Register'/></form>",
                REGISTRATION_FIELDS,
            )
        elif page in self.broken_pages:
            self._show(
                "<h1 class='title'>Error!</h1>"
                "<p class='error'>An internal error has occurred and has been logged.</p>"
            )
        elif page in _ACCOUNT_PAGES and user:
            fields = TRANSFER_FIELDS if page == "transfer.htm" else ()
            self._show(_ACCOUNT_PAGES[page], fields)
        else:
            self._show_login_panel()

    def _show(self, body: str, fields: Tuple[str, ...] = ()) -> None:
        header = ""
        if self._logged_in_user:
            header = (
                f"<div id='leftPanel'><p class='smallText'><b>Welcome</b> "
                f"{self._logged_in_user}</p><a href='logout.htm'>Log Out</a></div>"
            )
        self._content = f"<html><body>{header}<div id='rightPanel'>{body}</div></body></html>"
        self._available_fields = fields

    def _show_login_panel(self, body: str = "") -> None:
        self._content = (
            f"<html><body>{_LOGIN_PANEL}<div id='rightPanel'>{body}</div></body></html>"
        )
        self._available_fields = LOGIN_FIELDS

    def _submit_login(self) -> None:
        username = self._fields.get("username", "")
        password = self._fields.get("password", "")
        if username and self.users.get(username) == password:
            self._logged_in_user = username
            logger.debug(f"MockBrowser: {username} logged in")
            self._render("overview.htm")
            return
        logger.debug(f"MockBrowser: login rejected for {username!r}")
        self._page = "login.htm"
        self._fields = {}
        self._show_login_panel(
            "<h1 class='title'>Error!</h1>"
            "<p class='error'>The username and password could not be verified.</p>"
        )

    def _submit_registration(self) -> None:
        username = self._fields.get("customer.username", "")
        password = self._fields.get("customer.password", "")
        if self.fail_registration or not username or username in self.users:
            self._show(
                "<h1 class='title'>Signing up is easy!</h1>"
                "<span class='error'>This username already exists.</span>",
                REGISTRATION_FIELDS,
            )
            self._fields = {}
            return
        if password != self._fields.get("repeatedPassword"):
            self._show(
                "<span class='error'>Passwords did not match.</span>", REGISTRATION_FIELDS
            )
            self._fields = {}
            return
        self.users[username] = password
        self._logged_in_user = username
        logger.debug(f"MockBrowser: registered {username}")
        self._show(
            f"<h1 class='title'>Welcome {username}</h1>"
            "<p>Your account was created successfully. You are now logged in.</p>"
        )

    def _submit_transfer(self) -> None:
        amount = self._fields.get("amount", "")
        self._show(
            "<h1 class='title'>Transfer Complete!</h1>"
            f"<p>${amount} has been transferred from account #13344 to account #13455.</p>"
            "<p>See Account Activity for more details.</p>"
        )

    def _logout(self) -> None:
        self._logged_in_user = None
        self._page = "index.htm"
        self._fields = {}
        self._show_login_panel()
