"""
Screenshot artifacts for UI executions.
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from parabank_qa.drivers.browser_driver_base import BrowserDriver


class ScreenshotPolicy(Enum):
    ALWAYS = "always"
    ON_FAILURE = "on_failure"
    NEVER = "never"


class ScreenshotStore:
    """
    Writes screenshots as `<operation>_<YYYYmmdd_HHMMSS>_<token>.png`.

    The directory is created on first capture if it does not exist.
    """

    def __init__(
        self,
        directory: str = "screenshots",
        policy: ScreenshotPolicy = ScreenshotPolicy.ALWAYS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.directory = Path(directory)
        self.policy = policy
        self._clock = clock

    def should_capture(self, success: bool) -> bool:
        if self.policy == ScreenshotPolicy.NEVER:
            return False
        if self.policy == ScreenshotPolicy.ON_FAILURE:
            return not success
        return True

    def path_for(self, operation: str) -> Path:
        safe_name = re.sub(r"[^A-Za-z0-9_.-]+", "_", operation) or "screenshot"
        timestamp = self._clock().strftime("%Y%m%d_%H%M%S")
        return self.directory / f"{safe_name}_{timestamp}_{secrets.token_hex(4)}.png"

    def capture(self, driver: BrowserDriver, operation: str, success: bool) -> Optional[str]:
        """
        Capture a screenshot if the policy asks for one.

        Returns:
            The written file path, or None if skipped or the capture failed.
        """
        if not self.should_capture(success):
            return None
        path = self.path_for(operation)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            written = driver.capture_screenshot(str(path))
        except Exception as e:
            logger.error(f"[UI] Failed to capture screenshot for {operation}: {e}")
            return None
        logger.debug(f"[UI] Screenshot saved: {written}")
        return written
