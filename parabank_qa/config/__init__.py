"""
Configuration Management Module.

Handles loading and validation of:
- Execution settings (API, UI, retry and coordinator sections).
- Test case definition files.
- Version-aware backward compatibility for older file formats.
"""

from parabank_qa.config.loader import ConfigLoader, ConfigurationError
from parabank_qa.config.schema_registry import SchemaRegistry, SchemaValidationError
from parabank_qa.config.settings import ExecutionSettings

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "ExecutionSettings",
    "SchemaRegistry",
    "SchemaValidationError",
]
