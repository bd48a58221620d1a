"""
Executor Base Module.

Every executor exposes one entry point, `execute(functionality, data,
timeout_sec)`, that never raises: unknown operations, network errors,
automation errors and malformed input all come back as failure results.

Subclasses resolve functionality names into their own operation enum and
implement `_execute` for a resolved operation.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, Type

from loguru import logger

from parabank_qa.executors.operations import OperationEnum, UnknownFunctionalityError
from parabank_qa.executors.result import ErrorCategory, ExecutionResult, ResultKind


class ExecutorBase(ABC):
    """
    Abstract base class for test executors.

    Provides a standardized execution pattern with:
    - Functionality resolution before dispatch
    - Timed execution
    - Automatic conversion of exceptions into failure results

    Example usage::

        executor = ApiExecutor(ApiExecutorConfig())
        result = executor.execute("login", {"username": "john", "password": "demo"})
        assert result.success
    """

    operations: Type[OperationEnum]
    kind: ResultKind

    def __init__(self, name: str) -> None:
        self.name = name

    @property
    def label(self) -> str:
        return self.kind.name

    def supported_operations(self) -> List[str]:
        return [op.value for op in self.operations]

    def execute(
        self,
        functionality: str,
        data: Any = None,
        timeout_sec: Optional[float] = None,
    ) -> ExecutionResult:
        """
        Execute one functionality.

        Args:
            functionality: Operation name (case-insensitive, aliases accepted).
            data: Opaque input payload.
            timeout_sec: Soft per-call timeout hint.

        Returns:
            ExecutionResult; never raises.
        """
        try:
            operation = self.operations.parse(functionality)
        except UnknownFunctionalityError as e:
            logger.error(f"[{self.label}] {e}")
            return ExecutionResult.failure(
                str(e), category=ErrorCategory.UNKNOWN_OPERATION, kind=self.kind
            )

        logger.info(f"[{self.label}] Executing {operation.value}")
        start_time = time.perf_counter()
        try:
            result = self._execute(operation, data, timeout_sec)
        except Exception as e:
            logger.error(f"[{self.label}] {operation.value} raised: {e}")
            result = ExecutionResult.failure(
                f"Execution error in {operation.value}: {e}",
                kind=self.kind,
                error_type=type(e).__name__,
            )

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        if result.success:
            logger.info(f"[{self.label}] {operation.value} passed in {elapsed_ms:.1f}ms")
        else:
            logger.warning(
                f"[{self.label}] {operation.value} failed in {elapsed_ms:.1f}ms: "
                f"{result.error_message}"
            )
        return result

    @abstractmethod
    def _execute(
        self, operation: Enum, data: Any, timeout_sec: Optional[float]
    ) -> ExecutionResult:
        """
        Core execution logic for a resolved operation.

        May raise; the caller converts exceptions into failure results.
        """
        ...

    def close(self) -> None:
        """Release executor resources. Override when needed."""
        pass
