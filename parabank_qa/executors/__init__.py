"""
Test Executors.

Each executor turns a (functionality, input payload) pair into an
ExecutionResult without ever raising:
- ApiExecutor: Parabank REST services (mock or live)
- UiExecutor: Parabank browser flows behind a session authenticator
"""

from parabank_qa.executors.api_executor import ApiExecutor, ApiExecutorConfig
from parabank_qa.executors.base import ExecutorBase
from parabank_qa.executors.operations import ApiOperation, UiOperation, UnknownFunctionalityError
from parabank_qa.executors.result import ErrorCategory, ExecutionResult, ResultKind
from parabank_qa.executors.ui_executor import UiExecutor, UiExecutorConfig

__all__ = [
    "ApiExecutor",
    "ApiExecutorConfig",
    "ApiOperation",
    "ErrorCategory",
    "ExecutionResult",
    "ExecutorBase",
    "ResultKind",
    "UiExecutor",
    "UiExecutorConfig",
    "UiOperation",
    "UnknownFunctionalityError",
]
