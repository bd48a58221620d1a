"""
Execution Result Module.

Provides the unified outcome record produced by every test execution,
whether it came from the API executor or the UI executor. A result is
immutable once built; helpers such as `with_screenshot` return a copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ResultKind(Enum):
    """Which executor produced the result (and which field group is populated)."""

    API = "api"
    UI = "ui"


class ErrorCategory(Enum):
    """Classification of a failed execution."""

    UNKNOWN_OPERATION = "unknown_operation"
    EXECUTION = "execution"
    AUTHENTICATION = "authentication"
    HTTP_STATUS = "http_status"
    COORDINATOR = "coordinator"


GENERIC_FAILURE_MESSAGE = "Execution failed"


@dataclass(frozen=True)
class ExecutionResult:
    """
    Result of a single test execution attempt.

    Attributes:
        success: Whether the execution passed.
        details: Human-readable summary.
        error_message: Failure description (always set when success is False).
        executed_at: Construction timestamp.
        status_code: HTTP status code (API results).
        response_body: Raw response body (API results).
        screenshot_path: Screenshot artifact path (UI results).
        kind: Executor kind that produced the result, if any.
        error_category: Failure classification, if the result is a failure.
        error_type: Exception class name when the failure came from a raised
            exception rather than a failed check.
    """

    success: bool
    details: str = ""
    error_message: Optional[str] = None
    executed_at: datetime = field(default_factory=datetime.now)
    status_code: Optional[int] = None
    response_body: Optional[str] = None
    screenshot_path: Optional[str] = None
    kind: Optional[ResultKind] = None
    error_category: Optional[ErrorCategory] = None
    error_type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success:
            object.__setattr__(self, "error_message", None)
            object.__setattr__(self, "error_category", None)
            object.__setattr__(self, "error_type", None)
        elif not self.error_message:
            object.__setattr__(
                self, "error_message", self.details or GENERIC_FAILURE_MESSAGE
            )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def success_result(cls, details: str, kind: Optional[ResultKind] = None) -> ExecutionResult:
        """Success without extra artifacts."""
        return cls(success=True, details=details, kind=kind)

    @classmethod
    def failure(
        cls,
        error_message: str,
        screenshot_path: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.EXECUTION,
        kind: Optional[ResultKind] = None,
        error_type: Optional[str] = None,
    ) -> ExecutionResult:
        """Failure with an error message and an optional screenshot."""
        if screenshot_path and kind is None:
            kind = ResultKind.UI
        return cls(
            success=False,
            details=GENERIC_FAILURE_MESSAGE,
            error_message=error_message or GENERIC_FAILURE_MESSAGE,
            screenshot_path=screenshot_path,
            kind=kind,
            error_category=category,
            error_type=error_type,
        )

    @classmethod
    def api_result(
        cls,
        success: bool,
        details: str,
        status_code: int,
        response_body: Optional[str] = None,
        operation: str = "",
    ) -> ExecutionResult:
        """
        Build an API result.

        A failed API result gets an error message naming the HTTP status,
        so callers never see a failure without a message.
        """
        error_message = None
        category = None
        if not success:
            target = f" from {operation}" if operation else ""
            error_message = f"HTTP {status_code}{target}"
            category = ErrorCategory.HTTP_STATUS
        return cls(
            success=success,
            details=details,
            error_message=error_message,
            status_code=status_code,
            response_body=response_body,
            kind=ResultKind.API,
            error_category=category,
        )

    @classmethod
    def ui_result(
        cls,
        success: bool,
        details: str,
        screenshot_path: Optional[str] = None,
    ) -> ExecutionResult:
        """Build a UI result; failures reuse the details as the error message."""
        return cls(
            success=success,
            details=details,
            error_message=None if success else details,
            screenshot_path=screenshot_path,
            kind=ResultKind.UI,
            error_category=None if success else ErrorCategory.EXECUTION,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_failure(self) -> bool:
        return not self.success

    def with_screenshot(self, screenshot_path: Optional[str]) -> ExecutionResult:
        """Return a copy carrying the given screenshot path."""
        if not screenshot_path:
            return self
        return replace(self, screenshot_path=screenshot_path, kind=self.kind or ResultKind.UI)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the external result-item shape (optional fields omitted)."""
        data: Dict[str, Any] = {
            "success": self.success,
            "details": self.details,
            "executedAt": self.executed_at.isoformat(),
        }
        if self.error_message:
            data["errorMessage"] = self.error_message
        if self.status_code is not None:
            data["statusCode"] = self.status_code
        if self.response_body is not None:
            data["responseBody"] = self.response_body
        if self.screenshot_path:
            data["screenshotPath"] = self.screenshot_path
        if self.error_category is not None:
            data["errorCategory"] = self.error_category.value
        return data
