"""
Test Case References.

Read-only descriptions of the test cases a run executes, and the repository
interface the run coordinator resolves identifiers through. Test case
definitions can be loaded from a YAML/JSON file validated against the
`test_cases_schema`.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from loguru import logger


class TestCaseNotFoundError(KeyError):
    """Raised when a test case identifier is not known to the repository."""

    def __init__(self, test_case_id: str) -> None:
        super().__init__(test_case_id)
        self.test_case_id = test_case_id

    def __str__(self) -> str:
        return f"Test case not found: {self.test_case_id}"


class TestKind(Enum):
    """Which executor runs a test case."""

    __test__ = False

    API = "api"
    UI = "ui"

    @classmethod
    def parse(cls, value: Any) -> TestKind:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ValueError(f"Unknown test kind '{value}'. Supported: api, ui") from e


@dataclass(frozen=True)
class TestCaseReference:
    """
    A test case as seen by the execution core.

    Attributes:
        id: Unique identifier.
        name: Human-readable name.
        kind: API or UI (never both).
        functionality: Operation name handed to the executor.
        input_data: Opaque payload (mapping, scalar, JSON string or None).
        timeout_sec: Soft per-test timeout hint.
        retry_count: Per-test retry override (the run default applies if None).
    """

    __test__ = False

    id: str
    name: str
    kind: TestKind
    functionality: str
    input_data: Any = None
    timeout_sec: Optional[float] = None
    retry_count: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TestCaseReference:
        """Build a reference from a definitions-file entry."""
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            kind=TestKind.parse(data["kind"]),
            functionality=str(data["functionality"]),
            input_data=data.get("input"),
            timeout_sec=data.get("timeout_sec"),
            retry_count=data.get("retry_count"),
        )


class TestCaseRepository(ABC):
    """Source of test case references."""

    __test__ = False

    @abstractmethod
    def get(self, test_case_id: str) -> TestCaseReference:
        """
        Look up a test case.

        Raises:
            TestCaseNotFoundError: If the identifier is unknown.
        """
        ...

    def get_many(self, test_case_ids: Iterable[str]) -> List[TestCaseReference]:
        """Resolve identifiers in order; fails on the first unknown one."""
        return [self.get(test_case_id) for test_case_id in test_case_ids]


class InMemoryTestCaseRepository(TestCaseRepository):
    """Thread-safe repository holding test cases in a dictionary."""

    def __init__(self, test_cases: Iterable[TestCaseReference] = ()) -> None:
        self._lock = threading.Lock()
        self._test_cases: Dict[str, TestCaseReference] = {}
        for test_case in test_cases:
            self.add(test_case)

    def add(self, test_case: TestCaseReference) -> None:
        with self._lock:
            self._test_cases[test_case.id] = test_case

    def get(self, test_case_id: str) -> TestCaseReference:
        with self._lock:
            try:
                return self._test_cases[test_case_id]
            except KeyError:
                raise TestCaseNotFoundError(test_case_id) from None

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._test_cases)

    def __len__(self) -> int:
        with self._lock:
            return len(self._test_cases)


def load_test_cases(path: str | Path, loader: Optional[Any] = None) -> InMemoryTestCaseRepository:
    """
    Load test case definitions into an in-memory repository.

    Args:
        path: YAML or JSON definitions file.
        loader: ConfigLoader to use (a default one rooted at the file's
            directory if None).

    Returns:
        Repository holding every defined test case.

    Raises:
        ConfigurationError: If the file is invalid.
    """
    from parabank_qa.config.loader import ConfigLoader

    path = Path(path)
    loader = loader or ConfigLoader(config_dir=path.parent)
    data = loader.load(str(path), schema_name="test_cases_schema")
    repository = InMemoryTestCaseRepository(
        TestCaseReference.from_dict(entry) for entry in data.get("test_cases", [])
    )
    logger.info(f"Loaded {len(repository)} test case(s) from {path}")
    return repository
