"""
Run Record.

Mutable, lock-protected state of one batch run:

    PENDING -> RUNNING -> COMPLETED
                       -> FAILED
    PENDING -> FAILED            (dispatcher could not start)

Results are stored into slots fixed at creation in dispatch order, so the
completed-so-far view is always ordered by submission regardless of the
order in which workers finish. Readers get immutable RunStatusView snapshots.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from parabank_qa.executors.result import ExecutionResult


class RunStatus(Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


class InvalidRunTransitionError(RuntimeError):
    """Raised when a run is moved to a state its current state cannot reach."""


_ALLOWED_TRANSITIONS = {
    RunStatus.PENDING: {RunStatus.RUNNING, RunStatus.FAILED},
    RunStatus.RUNNING: {RunStatus.COMPLETED, RunStatus.FAILED},
    RunStatus.COMPLETED: set(),
    RunStatus.FAILED: set(),
}


@dataclass(frozen=True)
class RunResultItem:
    """Stored result of one test case in a run."""

    test_case_id: str
    result: ExecutionResult

    def to_dict(self) -> Dict[str, Any]:
        return {"testCaseId": self.test_case_id, **self.result.to_dict()}


@dataclass(frozen=True)
class RunMetrics:
    total: int = 0
    completed: int = 0
    passed: int = 0
    failed: int = 0
    success_rate: float = 0.0
    progress: float = 0.0
    duration_sec: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTests": self.total,
            "completedTests": self.completed,
            "passed": self.passed,
            "failed": self.failed,
            "successRate": round(self.success_rate, 2),
            "progress": round(self.progress, 2),
            "durationSeconds": round(self.duration_sec, 3),
        }


@dataclass(frozen=True)
class RunStatusView:
    """Point-in-time snapshot of a run."""

    run_id: str
    status: RunStatus
    total_tests: int
    results: Tuple[RunResultItem, ...] = ()
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    metrics: RunMetrics = field(default_factory=RunMetrics)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        def _ts(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        data: Dict[str, Any] = {
            "runId": self.run_id,
            "status": self.status.value,
            "totalTests": self.total_tests,
            "results": [item.to_dict() for item in self.results],
            "createdAt": _ts(self.created_at),
            "startedAt": _ts(self.started_at),
            "finishedAt": _ts(self.finished_at),
            "metrics": self.metrics.to_dict(),
        }
        if self.failure_reason:
            data["failureReason"] = self.failure_reason
        return data


class RunRecord:
    """
    State of a single run, safe to update from worker threads.

    Args:
        run_id: Unique run identifier.
        test_case_ids: Identifiers in dispatch order (duplicates allowed).
        clock: Time source for the lifecycle timestamps.
    """

    def __init__(
        self,
        run_id: str,
        test_case_ids: Sequence[str],
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.run_id = run_id
        self._clock = clock
        self._lock = threading.Lock()
        self._finished = threading.Event()
        self._test_case_ids: Tuple[str, ...] = tuple(test_case_ids)
        self._slots: List[Optional[ExecutionResult]] = [None] * len(self._test_case_ids)
        self._status = RunStatus.PENDING
        self._created_at = clock()
        self._started_at: Optional[datetime] = None
        self._finished_at: Optional[datetime] = None
        self._failure_reason: Optional[str] = None

    @property
    def status(self) -> RunStatus:
        with self._lock:
            return self._status

    @property
    def total_tests(self) -> int:
        return len(self._test_case_ids)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _move_to(self, status: RunStatus) -> None:
        # Caller holds the lock.
        if status not in _ALLOWED_TRANSITIONS[self._status]:
            raise InvalidRunTransitionError(
                f"Run {self.run_id}: cannot move from {self._status.value} to {status.value}"
            )
        logger.debug(f"[Run {self.run_id}] {self._status.value} -> {status.value}")
        self._status = status

    def mark_running(self) -> None:
        with self._lock:
            self._move_to(RunStatus.RUNNING)
            self._started_at = self._clock()

    def mark_completed(self) -> None:
        with self._lock:
            self._move_to(RunStatus.COMPLETED)
            self._finished_at = self._clock()
        self._finished.set()

    def mark_failed(self, reason: str) -> None:
        with self._lock:
            self._move_to(RunStatus.FAILED)
            self._failure_reason = reason
            self._finished_at = self._clock()
        self._finished.set()

    def store(self, index: int, result: ExecutionResult) -> None:
        """Store the result of the test case at dispatch position `index`."""
        with self._lock:
            if self._status.is_terminal:
                logger.warning(
                    f"[Run {self.run_id}] Ignoring result for slot {index}: run already "
                    f"{self._status.value}"
                )
                return
            self._slots[index] = result

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the run is terminal; returns False on timeout."""
        return self._finished.wait(timeout)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> RunStatusView:
        with self._lock:
            items = tuple(
                RunResultItem(test_case_id, result)
                for test_case_id, result in zip(self._test_case_ids, self._slots)
                if result is not None
            )
            return RunStatusView(
                run_id=self.run_id,
                status=self._status,
                total_tests=self.total_tests,
                results=items,
                created_at=self._created_at,
                started_at=self._started_at,
                finished_at=self._finished_at,
                failure_reason=self._failure_reason,
                metrics=self._metrics(items),
            )

    def _metrics(self, items: Tuple[RunResultItem, ...]) -> RunMetrics:
        completed = len(items)
        passed = sum(1 for item in items if item.result.success)
        total = self.total_tests
        if total:
            progress = completed / total * 100
        else:
            progress = 100.0 if self._status.is_terminal else 0.0

        duration = 0.0
        if self._started_at is not None:
            end = self._finished_at or self._clock()
            duration = max(0.0, (end - self._started_at).total_seconds())

        return RunMetrics(
            total=total,
            completed=completed,
            passed=passed,
            failed=completed - passed,
            success_rate=(passed / completed * 100) if completed else 0.0,
            progress=progress,
            duration_sec=duration,
        )
