"""
Run Coordinator.

Accepts batches of test cases, runs each one through the retry wrapper and
the matching executor, and tracks the run through its lifecycle:

    PENDING -> RUNNING -> COMPLETED | FAILED

Submission returns immediately; a dispatcher thread drives the run either
sequentially or on a bounded worker pool. Per-test failures are data stored
in the run record; only faults of the scheduling machinery itself (pool or
thread creation, a worker raising past the retry wrapper) fail the run.
"""

from __future__ import annotations

import secrets
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from parabank_qa.execution.retry import RetryPolicy, with_retry
from parabank_qa.execution.run_record import RunRecord, RunStatusView
from parabank_qa.execution.test_cases import TestCaseReference, TestCaseRepository, TestKind
from parabank_qa.executors.base import ExecutorBase
from parabank_qa.executors.result import ExecutionResult

PoolFactory = Callable[[int, str], Executor]
ThreadFactory = Callable[..., threading.Thread]


class RunNotFoundError(KeyError):
    """Raised when a run identifier is unknown (never submitted or purged)."""

    def __init__(self, run_id: str) -> None:
        super().__init__(run_id)
        self.run_id = run_id

    def __str__(self) -> str:
        return f"Run not found: {self.run_id}"


class RunDispatchError(RuntimeError):
    """Raised when a run cannot be accepted or managed."""


@dataclass
class CoordinatorConfig:
    """Configuration for the run coordinator."""

    default_pool_size: int = 4
    max_pool_size: Optional[int] = 16
    thread_name_prefix: str = "parabank-run"


def _default_pool_factory(max_workers: int, thread_name_prefix: str) -> Executor:
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)


class RunCoordinator:
    """
    Dispatches runs of test cases to the API and UI executors.

    Usage::

        coordinator = RunCoordinator(repository, ApiExecutor(), UiExecutor())
        run_id = coordinator.submit_run(["TC-1", "TC-2"], parallel=True, pool_size=2)
        status = coordinator.wait_for_run(run_id, timeout=60)
        print(status.status, [item.result.success for item in status.results])

    Thread Safety:
        The run registry is guarded by a lock; each run record guards its own
        state. Executors are shared between workers and must be thread-safe.
    """

    def __init__(
        self,
        repository: TestCaseRepository,
        api_executor: ExecutorBase,
        ui_executor: ExecutorBase,
        retry_policy: Optional[RetryPolicy] = None,
        config: Optional[CoordinatorConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        pool_factory: PoolFactory = _default_pool_factory,
        thread_factory: ThreadFactory = threading.Thread,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            repository: Source of test case references.
            api_executor: Executor for API test cases.
            ui_executor: Executor for UI test cases.
            retry_policy: Retry delays and default retry count.
            config: Pool sizing and thread naming.
            sleep: Sleep function used between retry attempts.
            clock: Time source for generated run identifiers.
            pool_factory: Builds the worker pool for parallel runs.
            thread_factory: Builds the dispatcher thread.
        """
        self.repository = repository
        self.retry_policy = retry_policy or RetryPolicy()
        self.config = config or CoordinatorConfig()
        self._executors: Dict[TestKind, ExecutorBase] = {
            TestKind.API: api_executor,
            TestKind.UI: ui_executor,
        }
        self._sleep = sleep
        self._clock = clock
        self._pool_factory = pool_factory
        self._thread_factory = thread_factory
        self._lock = threading.Lock()
        self._runs: Dict[str, RunRecord] = {}

        logger.info(
            f"RunCoordinator initialized — default_pool_size={self.config.default_pool_size}, "
            f"max_pool_size={self.config.max_pool_size}"
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit_run(
        self,
        test_case_ids: Sequence[str],
        parallel: bool = False,
        pool_size: Optional[int] = None,
        run_id: Optional[str] = None,
    ) -> str:
        """
        Accept a run of stored test cases and start it in the background.

        Args:
            test_case_ids: Identifiers in the order results must be reported.
            parallel: Run on a worker pool instead of one after another.
            pool_size: Worker count for parallel runs (config default if None).
            run_id: Caller-chosen identifier (generated if None).

        Returns:
            The run identifier.

        Raises:
            TestCaseNotFoundError: If any identifier is unknown; the run is
                not accepted.
            RunDispatchError: If the run identifier is already in use.
        """
        test_cases = self.repository.get_many(test_case_ids)
        return self.submit_test_cases(test_cases, parallel, pool_size, run_id)

    def submit_test_cases(
        self,
        test_cases: Iterable[TestCaseReference],
        parallel: bool = False,
        pool_size: Optional[int] = None,
        run_id: Optional[str] = None,
    ) -> str:
        """Same as `submit_run` for already-resolved test case references."""
        test_cases = list(test_cases)
        workers = self.effective_pool_size(pool_size) if parallel else 1

        with self._lock:
            run_id = run_id or self._generate_run_id()
            if run_id in self._runs:
                raise RunDispatchError(f"Run id already in use: {run_id}")
            record = RunRecord(run_id, [tc.id for tc in test_cases])
            self._runs[run_id] = record

        mode = f"parallel x{workers}" if parallel else "sequential"
        logger.info(f"[Run {run_id}] Accepted {len(test_cases)} test case(s) ({mode})")

        try:
            dispatcher = self._thread_factory(
                target=self._dispatch,
                args=(record, test_cases, parallel, workers),
                name=f"{self.config.thread_name_prefix}-dispatch-{run_id}",
                daemon=True,
            )
            dispatcher.start()
        except Exception as e:
            logger.error(f"[Run {run_id}] Dispatcher could not start: {e}")
            record.mark_failed(f"Dispatcher could not start: {e}")
        return run_id

    def effective_pool_size(self, pool_size: Optional[int]) -> int:
        """Clamp a requested pool size to [1, max_pool_size]."""
        size = self.config.default_pool_size if pool_size is None else pool_size
        size = max(1, size)
        if self.config.max_pool_size:
            size = min(size, self.config.max_pool_size)
        return size

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_run_status(self, run_id: str) -> RunStatusView:
        """
        Snapshot of a run: status, completed results in dispatch order, metrics.

        Raises:
            RunNotFoundError: If the run is unknown.
        """
        return self._get_record(run_id).snapshot()

    def wait_for_run(self, run_id: str, timeout: Optional[float] = None) -> RunStatusView:
        """Block until the run is terminal (or the timeout passes) and return its status."""
        record = self._get_record(run_id)
        if not record.wait(timeout):
            logger.warning(f"[Run {run_id}] Still {record.status.value} after {timeout}s")
        return record.snapshot()

    def list_runs(self) -> List[RunStatusView]:
        with self._lock:
            records = list(self._runs.values())
        return [record.snapshot() for record in records]

    def purge_run(self, run_id: str) -> None:
        """
        Drop a finished run from the registry.

        Raises:
            RunNotFoundError: If the run is unknown.
            RunDispatchError: If the run has not reached a terminal state.
        """
        with self._lock:
            record = self._runs.get(run_id)
            if record is None:
                raise RunNotFoundError(run_id)
            if not record.status.is_terminal:
                raise RunDispatchError(
                    f"Run {run_id} is still {record.status.value}; only finished runs can be purged"
                )
            del self._runs[run_id]
        logger.info(f"[Run {run_id}] Purged")

    def close(self) -> None:
        """Release the executors' resources. In-flight runs are not waited for."""
        for executor in self._executors.values():
            executor.close()
        logger.debug("Run coordinator closed its executors")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute_test_case(self, test_case: TestCaseReference) -> ExecutionResult:
        """Run one test case's full retry sequence on its executor."""
        executor = self._executors[test_case.kind]
        max_retries = (
            test_case.retry_count
            if test_case.retry_count is not None
            else self.retry_policy.default_retry_count
        )
        delay = self.retry_policy.delay_for(test_case.kind == TestKind.UI)
        return with_retry(
            lambda: executor.execute(
                test_case.functionality, test_case.input_data, test_case.timeout_sec
            ),
            max_retries=max_retries,
            delay_sec=delay,
            sleep=self._sleep,
            label=test_case.id,
        )

    def _run_slot(self, record: RunRecord, index: int, test_case: TestCaseReference) -> None:
        result = self.execute_test_case(test_case)
        record.store(index, result)
        outcome = "passed" if result.success else "failed"
        logger.info(f"[Run {record.run_id}] {test_case.id} {outcome}")

    def _dispatch(
        self,
        record: RunRecord,
        test_cases: List[TestCaseReference],
        parallel: bool,
        workers: int,
    ) -> None:
        record.mark_running()
        logger.info(f"[Run {record.run_id}] Started")

        try:
            if not test_cases:
                faults: List[str] = []
            elif parallel:
                faults = self._dispatch_parallel(record, test_cases, workers)
            else:
                faults = self._dispatch_sequential(record, test_cases)
        except Exception as e:
            logger.error(f"[Run {record.run_id}] Scheduling fault: {e}")
            record.mark_failed(str(e))
            return

        if faults:
            reason = "; ".join(faults)
            logger.error(f"[Run {record.run_id}] Failed: {reason}")
            record.mark_failed(reason)
            return

        record.mark_completed()
        metrics = record.snapshot().metrics
        logger.info(
            f"[Run {record.run_id}] Completed — {metrics.passed}/{metrics.total} passed "
            f"in {metrics.duration_sec:.1f}s"
        )

    def _dispatch_sequential(
        self, record: RunRecord, test_cases: List[TestCaseReference]
    ) -> List[str]:
        faults = []
        for index, test_case in enumerate(test_cases):
            try:
                self._run_slot(record, index, test_case)
            except Exception as e:
                logger.error(f"[Run {record.run_id}] Worker fault on {test_case.id}: {e}")
                faults.append(f"Worker fault on {test_case.id}: {e}")
        return faults

    def _dispatch_parallel(
        self, record: RunRecord, test_cases: List[TestCaseReference], workers: int
    ) -> List[str]:
        try:
            pool = self._pool_factory(workers, self.config.thread_name_prefix)
        except Exception as e:
            raise RunDispatchError(f"Worker pool could not be created: {e}") from e

        faults = []
        with pool:
            futures: List[Tuple[TestCaseReference, Future]] = [
                (test_case, pool.submit(self._run_slot, record, index, test_case))
                for index, test_case in enumerate(test_cases)
            ]
            for test_case, future in futures:
                try:
                    future.result()
                except Exception as e:
                    logger.error(f"[Run {record.run_id}] Worker fault on {test_case.id}: {e}")
                    faults.append(f"Worker fault on {test_case.id}: {e}")
        return faults

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_record(self, run_id: str) -> RunRecord:
        with self._lock:
            record = self._runs.get(run_id)
        if record is None:
            raise RunNotFoundError(run_id)
        return record

    def _generate_run_id(self) -> str:
        return f"run-{int(self._clock() * 1000)}-{secrets.token_hex(3)}"
