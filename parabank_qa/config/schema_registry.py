"""
Schema Registry.

Looks up the Draft-07 JSON schemas that guard the configuration documents.
A schema is searched for in the configured directory first and then among
the schemas shipped inside the package.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import jsonschema
from loguru import logger

PACKAGE_SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"


class SchemaValidationError(Exception):
    """A document broke its schema; `errors` lists one line per violation."""

    def __init__(self, message: str, errors: List[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def _describe(error: jsonschema.ValidationError) -> str:
    location = ".".join(str(part) for part in error.absolute_path) or "<document>"
    return f"{location}: {error.message}"


class SchemaRegistry:
    """Loads schemas by name on first use and validates documents against them."""

    def __init__(self, schema_dir: str | Path = PACKAGE_SCHEMA_DIR) -> None:
        self.schema_dir = Path(schema_dir)
        self._validators: Dict[str, jsonschema.Draft7Validator] = {}

    @property
    def search_path(self) -> Tuple[Path, ...]:
        if self.schema_dir.resolve() == PACKAGE_SCHEMA_DIR:
            return (PACKAGE_SCHEMA_DIR,)
        return (self.schema_dir, PACKAGE_SCHEMA_DIR)

    def get_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Return the parsed schema called `schema_name` (file name without .json).

        Raises:
            FileNotFoundError: If no directory on the search path has it.
            SchemaValidationError: If the file is not valid JSON or not a
                valid Draft-07 schema.
        """
        return self._validator(schema_name).schema

    def validate(self, data: Dict[str, Any], schema_name: str) -> None:
        """
        Check a document against a schema, reporting every violation at once.

        Raises:
            SchemaValidationError: If the document does not conform.
        """
        validator = self._validator(schema_name)
        problems = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
        if not problems:
            logger.debug(f"Schema check passed: {schema_name}")
            return

        lines = [_describe(problem) for problem in problems]
        raise SchemaValidationError(
            f"{len(lines)} violation(s) of '{schema_name}':\n  " + "\n  ".join(lines),
            errors=lines,
        )

    def list_schemas(self) -> List[str]:
        """Names of every schema reachable through the search path."""
        return sorted(
            {path.stem for directory in self.search_path if directory.is_dir() for path in directory.glob("*.json")}
        )

    def _validator(self, schema_name: str) -> jsonschema.Draft7Validator:
        if schema_name in self._validators:
            return self._validators[schema_name]

        for directory in self.search_path:
            path = directory / f"{schema_name}.json"
            if path.is_file():
                break
        else:
            raise FileNotFoundError(
                f"Schema '{schema_name}' not found in {[str(d) for d in self.search_path]}"
            )

        try:
            schema = json.loads(path.read_text(encoding="utf-8"))
            jsonschema.Draft7Validator.check_schema(schema)
        except (OSError, json.JSONDecodeError, jsonschema.SchemaError) as e:
            raise SchemaValidationError(f"Schema '{schema_name}' at {path} is unusable: {e}") from e

        logger.debug(f"Schema loaded: {schema_name} ({path})")
        validator = jsonschema.Draft7Validator(schema)
        self._validators[schema_name] = validator
        return validator
