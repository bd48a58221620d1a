"""
Configuration Loader Module.

Reads the two documents the execution core is driven by:
- the execution settings (`api`, `ui`, `retry`, `coordinator` sections)
- the test case definitions (`test_cases` list)

Each document is parsed from YAML or JSON, brought up to the current
`schema_version` and checked against its JSON schema before use.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from loguru import logger

from parabank_qa.config.schema_registry import PACKAGE_SCHEMA_DIR, SchemaRegistry
from parabank_qa.config.settings import ExecutionSettings
from parabank_qa.config.version_compat import VersionCompatManager

# document stem -> schema name
DOCUMENT_SCHEMAS: Dict[str, str] = {
    "execution": "execution_config_schema",
    "test_cases": "test_cases_schema",
}

_PARSERS: Dict[str, Callable[[str], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.loads,
}


class ConfigurationError(Exception):
    """Raised when a configuration document is unreadable or invalid."""


def schema_for_file(filename: str | Path) -> Optional[str]:
    """
    Schema name implied by a document's file name.

    `execution.yaml` and `execution.example.yaml` both map to
    `execution_config_schema`; unknown stems map to None.
    """
    stem = Path(filename).name.split(".", 1)[0]
    return DOCUMENT_SCHEMAS.get(stem)


def read_document(path: Path) -> Dict[str, Any]:
    """
    Parse a YAML or JSON document whose top level must be a mapping.

    Raises:
        ConfigurationError: On an unknown extension, unreadable file,
            syntax error or non-mapping top level.
    """
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise ConfigurationError(
            f"Unsupported file format '{path.suffix}' for {path.name}; "
            f"use one of {sorted(_PARSERS)}"
        )

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        document = parser(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}") from e

    if not isinstance(document, dict):
        raise ConfigurationError(
            f"{path} must hold a mapping at the top level, found {type(document).__name__}"
        )
    return document


class ConfigLoader:
    """
    Loads, migrates and validates configuration documents.

    Relative names are looked up in `config_dir` first, then relative to the
    working directory. Loaded documents are cached by absolute path until
    `clear_cache()` is called.

    Usage::

        loader = ConfigLoader("config")
        settings = loader.load_execution_settings()
        definitions = loader.load_test_cases("test_cases.yaml")
    """

    def __init__(
        self,
        config_dir: str | Path = "config",
        schema_dir: str | Path | None = None,
    ) -> None:
        """
        Args:
            config_dir: Directory holding the configuration documents.
            schema_dir: Directory holding JSON schemas. When None, a
                `schemas/` directory inside config_dir is used if present,
                otherwise the schemas shipped with the package.
        """
        self.config_dir = Path(config_dir)
        if schema_dir is None:
            candidate = self.config_dir / "schemas"
            schema_dir = candidate if candidate.is_dir() else PACKAGE_SCHEMA_DIR
        self.schema_registry = SchemaRegistry(schema_dir)
        self.version_manager = VersionCompatManager()
        self._documents: Dict[Path, Dict[str, Any]] = {}

        logger.info(f"ConfigLoader ready — config_dir={self.config_dir}, schemas={schema_dir}")

    def locate(self, filename: str | Path) -> Path:
        """
        Find a configuration document on disk.

        Raises:
            FileNotFoundError: If neither location holds the file.
        """
        requested = Path(filename)
        candidates = [requested] if requested.is_absolute() else [self.config_dir / requested, requested]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise FileNotFoundError(
            f"Configuration file not found: {filename} "
            f"(looked in {', '.join(str(c.parent) for c in candidates)})"
        )

    def load(
        self,
        filename: str | Path,
        schema_name: Optional[str] = None,
        *,
        validate: bool = True,
        use_cache: bool = True,
    ) -> Dict[str, Any]:
        """
        Load one configuration document.

        Args:
            filename: Document name or path.
            schema_name: Schema to check against; inferred from the file
                name when None. Documents with no known schema are not checked.
            validate: Set False to skip the schema check.
            use_cache: Reuse a previously loaded copy of the same file.

        Returns:
            The migrated document.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If it cannot be parsed or fails the schema.
        """
        path = self.locate(filename).resolve()
        if use_cache and path in self._documents:
            logger.debug(f"Config cache hit: {path.name}")
            return self._documents[path]

        logger.info(f"Loading configuration: {path}")
        document = self.version_manager.migrate(read_document(path))

        schema = schema_name or schema_for_file(path)
        if validate and schema:
            try:
                self.schema_registry.validate(document, schema)
            except Exception as e:
                raise ConfigurationError(f"{path.name} does not match schema '{schema}': {e}") from e

        if use_cache:
            self._documents[path] = document
        return document

    def load_execution_settings(self, filename: str | Path = "execution.yaml") -> ExecutionSettings:
        """Load the execution document and turn it into typed settings."""
        document = self.load(filename, schema_name=DOCUMENT_SCHEMAS["execution"])
        try:
            return ExecutionSettings.from_dict(document)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid execution settings in {filename}: {e}") from e

    def load_test_cases(self, filename: str | Path = "test_cases.yaml") -> Dict[str, Any]:
        """Load a test case definitions document."""
        return self.load(filename, schema_name=DOCUMENT_SCHEMAS["test_cases"])

    def clear_cache(self) -> None:
        self._documents.clear()
        logger.debug("Configuration cache cleared")
