"""
HTTP Client.

Thin synchronous client over `requests.Session` used by the API executor:
- Base URL joining and per-call absolute URLs.
- Configurable timeout and default headers, set per client instance.
- Uniform response record and a single error type for transport failures.
- One session per calling thread unless a session is injected.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests
from loguru import logger


# Browser-like headers; the public Parabank instance sits behind a CDN that
# rejects obvious scripted clients.
DEFAULT_HEADERS: Mapping[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "application/json, application/xml;q=0.9, text/html;q=0.8, */*;q=0.5",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
}


class HttpClientError(Exception):
    """Raised when an HTTP request cannot be completed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HttpResponse:
    """Response of a completed HTTP request."""

    status_code: int
    body: str = ""
    content_type: str = ""
    url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpClient:
    """
    Synchronous HTTP client with instance-level configuration.

    Usage::

        client = HttpClient("https://parabank.parasoft.com/parabank/services/bank")
        response = client.request("GET", "/customers/12212")
        print(response.status_code, response.body)
    """

    def __init__(
        self,
        base_url: str = "",
        timeout_sec: float = 30.0,
        default_headers: Optional[Mapping[str, str]] = None,
        session: Optional[Any] = None,
        session_factory: Callable[[], Any] = requests.Session,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Prefix for relative request paths.
            timeout_sec: Default timeout for every request.
            default_headers: Headers sent with every request.
            session: Pre-built session shared by every thread. When None, each
                thread gets its own session from `session_factory`.
            session_factory: Creates the per-thread sessions.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self._headers = dict(DEFAULT_HEADERS if default_headers is None else default_headers)
        self._shared_session = session
        self._session_factory = session_factory
        self._local = threading.local()
        self._sessions: List[Any] = []
        self._lock = threading.Lock()
        if session is not None:
            session.headers.update(self._headers)
        logger.debug(f"HttpClient initialized — base_url={self.base_url}, timeout={timeout_sec}s")

    @property
    def session(self) -> Any:
        """Session used by the calling thread."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            session.headers.update(self._headers)
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
            logger.debug(f"HttpClient session opened for {threading.current_thread().name}")
        return session

    def build_url(self, path: str, base_url: Optional[str] = None) -> str:
        """Join a path onto the base URL; absolute URLs pass through unchanged."""
        if path.startswith(("http://", "https://")):
            return path
        base = (base_url if base_url is not None else self.base_url).rstrip("/")
        return f"{base}/{path.lstrip('/')}" if path else base

    def request(
        self,
        method: str,
        path: str,
        *,
        base_url: Optional[str] = None,
        timeout_sec: Optional[float] = None,
        **kwargs: Any,
    ) -> HttpResponse:
        """
        Perform a request and return the response whatever its status.

        Args:
            method: HTTP method (GET, POST, ...).
            path: Path relative to the base URL, or an absolute URL.
            base_url: Alternative base URL for this call only.
            timeout_sec: Timeout override for this call only.
            **kwargs: Passed to requests (params, json, data, headers).

        Returns:
            HttpResponse for any HTTP status.

        Raises:
            HttpClientError: On connection errors, timeouts, or other transport failures.
        """
        url = self.build_url(path, base_url)
        timeout = timeout_sec if timeout_sec is not None else self.timeout_sec
        logger.debug(f"HTTP {method} {url}")

        try:
            response = self.session.request(method=method, url=url, timeout=timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise HttpClientError(f"{method} {url} timed out after {timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            raise HttpClientError(f"Cannot connect to {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise HttpClientError(f"{method} {url} failed: {e}") from e

        headers = dict(response.headers or {})
        return HttpResponse(
            status_code=response.status_code,
            body=response.text or "",
            content_type=headers.get("Content-Type", ""),
            url=url,
            headers=headers,
        )

    def get(self, path: str, **kwargs: Any) -> HttpResponse:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> HttpResponse:
        return self.request("POST", path, **kwargs)

    def close(self) -> None:
        """Close every session this client opened, plus the injected one."""
        with self._lock:
            sessions, self._sessions = self._sessions, []
            self._local = threading.local()
        if self._shared_session is not None:
            sessions.append(self._shared_session)
        for session in sessions:
            close = getattr(session, "close", None)
            if close is not None:
                close()
