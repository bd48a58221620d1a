"""
Retry Wrapper.

Re-invokes a test attempt under a bounded, fixed-delay policy:
- attempts 0..max_retries inclusive, stopping at the first success
- a fixed delay between attempts (no backoff)
- an exception from the attempt becomes a failure result and is retried
- failures converted from an exception name the attempt they happened on
- after exhaustion the result of the last attempt is returned
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Callable, List

from loguru import logger

from parabank_qa.executors.result import GENERIC_FAILURE_MESSAGE, ExecutionResult


@dataclass
class RetryPolicy:
    """Retry settings; UI attempts wait longer than API attempts."""

    api_delay_sec: float = 1.0
    ui_delay_sec: float = 2.0
    default_retry_count: int = 0

    def delay_for(self, is_ui: bool) -> float:
        return self.ui_delay_sec if is_ui else self.api_delay_sec


def with_retry(
    attempt_fn: Callable[[], ExecutionResult],
    max_retries: int,
    delay_sec: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "",
) -> ExecutionResult:
    """
    Run `attempt_fn` until it succeeds or `max_retries + 1` attempts were made.

    Args:
        attempt_fn: Zero-argument callable producing one attempt's result.
        max_retries: Extra attempts after the first (negative counts as 0).
        delay_sec: Wait between attempts.
        sleep: Sleep function.
        label: Name used in log messages.

    Returns:
        The first successful result, or the result of the last attempt.
    """
    attempts = max(0, max_retries) + 1
    prefix = f"[Retry] {label}: " if label else "[Retry] "
    last_result: ExecutionResult = ExecutionResult.failure(GENERIC_FAILURE_MESSAGE)
    errors: List[str] = []

    for attempt in range(1, attempts + 1):
        if attempt > 1:
            logger.info(f"{prefix}attempt {attempt}/{attempts} after {delay_sec}s")
            if delay_sec > 0:
                sleep(delay_sec)

        try:
            last_result = attempt_fn()
        except Exception as e:
            errors.append(str(e))
            last_result = ExecutionResult.failure(
                f"Execution error on attempt {attempt}: {e}", error_type=type(e).__name__
            )
        else:
            if last_result.success:
                if attempt > 1:
                    logger.info(f"{prefix}succeeded on attempt {attempt}/{attempts}")
                return last_result
            errors.append(last_result.error_message or "")
            if last_result.error_type:
                last_result = replace(
                    last_result,
                    error_message=f"{last_result.error_message} (attempt {attempt} of {attempts})",
                )

        logger.warning(f"{prefix}attempt {attempt}/{attempts} failed: {last_result.error_message}")

    if attempts > 1 and len(set(errors)) == 1:
        logger.warning(
            f"{prefix}all {attempts} attempts failed with the same error; "
            f"the failure is probably not transient: {errors[0]}"
        )
    return last_result
