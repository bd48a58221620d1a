"""
Execution Orchestration.

- Retry wrapper with a fixed-delay, bounded policy.
- Test case references and the repository they are resolved through.
- Run coordinator tracking batch runs from submission to a terminal state.
"""

from parabank_qa.execution.coordinator import (
    CoordinatorConfig,
    RunCoordinator,
    RunDispatchError,
    RunNotFoundError,
)
from parabank_qa.execution.retry import RetryPolicy, with_retry
from parabank_qa.execution.run_record import RunRecord, RunStatus, RunStatusView
from parabank_qa.execution.test_cases import (
    InMemoryTestCaseRepository,
    TestCaseNotFoundError,
    TestCaseReference,
    TestCaseRepository,
    TestKind,
    load_test_cases,
)

__all__ = [
    "CoordinatorConfig",
    "InMemoryTestCaseRepository",
    "RetryPolicy",
    "RunCoordinator",
    "RunDispatchError",
    "RunNotFoundError",
    "RunRecord",
    "RunStatus",
    "RunStatusView",
    "TestCaseNotFoundError",
    "TestCaseReference",
    "TestCaseRepository",
    "TestKind",
    "load_test_cases",
    "with_retry",
]
