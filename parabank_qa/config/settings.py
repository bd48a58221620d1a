"""
Typed execution settings.

Turns a loaded execution configuration document into the explicit config
values each component takes in its constructor. Omitted values keep the
component defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from parabank_qa.drivers.browser_driver_base import BrowserConfig
from parabank_qa.execution.coordinator import CoordinatorConfig
from parabank_qa.execution.retry import RetryPolicy
from parabank_qa.executors.api_executor import ApiExecutorConfig
from parabank_qa.executors.screenshots import ScreenshotPolicy
from parabank_qa.executors.ui_executor import UiExecutorConfig

_T = TypeVar("_T")


def _build(config_cls: Type[_T], section: Optional[Mapping[str, Any]], **overrides: Any) -> _T:
    """Instantiate a config dataclass from the known keys of a section."""
    known = {f.name for f in fields(config_cls)}
    values: Dict[str, Any] = {k: v for k, v in (section or {}).items() if k in known}
    values.update(overrides)
    return config_cls(**values)


@dataclass
class ExecutionSettings:
    """All settings needed to build the executors and the run coordinator."""

    api: ApiExecutorConfig = field(default_factory=ApiExecutorConfig)
    ui: UiExecutorConfig = field(default_factory=UiExecutorConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    coordinator: CoordinatorConfig = field(default_factory=CoordinatorConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExecutionSettings:
        """
        Build settings from a configuration document.

        Args:
            data: Document with optional `api`, `ui`, `retry` and
                `coordinator` sections.

        Raises:
            ValueError: If a value cannot be converted (e.g. unknown
                screenshot policy).
        """
        api_section = dict(data.get("api") or {})
        if "health_check_paths" in api_section:
            api_section["health_check_paths"] = tuple(api_section["health_check_paths"])

        ui_section = dict(data.get("ui") or {})
        ui_overrides: Dict[str, Any] = {
            "browser": _build(BrowserConfig, ui_section.pop("browser", None))
        }
        if "screenshot_policy" in ui_section:
            ui_overrides["screenshot_policy"] = ScreenshotPolicy(ui_section.pop("screenshot_policy"))

        return cls(
            api=_build(ApiExecutorConfig, api_section),
            ui=_build(UiExecutorConfig, ui_section, **ui_overrides),
            retry=_build(RetryPolicy, data.get("retry")),
            coordinator=_build(CoordinatorConfig, data.get("coordinator")),
        )

    def simulated(self) -> ExecutionSettings:
        """Copy of the settings with mock API responses and the mock browser."""
        browser = _build(BrowserConfig, vars(self.ui.browser), simulate=True)
        return ExecutionSettings(
            api=_build(ApiExecutorConfig, vars(self.api), mock_mode=True),
            ui=_build(UiExecutorConfig, vars(self.ui), browser=browser),
            retry=self.retry,
            coordinator=self.coordinator,
        )
