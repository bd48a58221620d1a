"""
Version Compatibility.

Configuration documents carry a `schema_version`. Documents written for an
older release are upgraded step by step through registered migrations
before they are validated, so old execution settings and test case files
keep loading unchanged.

Known steps:

    0.1.0 -> 1.0.0   flat execution keys moved into `api` / `ui` sections;
                     test case keys `type`, `test_data`, `max_retries`
                     renamed to `kind`, `input`, `retry_count`
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, NamedTuple, Tuple

from loguru import logger

Document = Dict[str, Any]
MigrationFunc = Callable[[Document], Document]

# legacy flat key -> (section path, key)
LEGACY_FLAT_KEYS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "api_base_url": (("api",), "base_url"),
    "mock_mode": (("api",), "mock_mode"),
    "ui_base_url": (("ui",), "base_url"),
    "screenshot_path": (("ui",), "screenshot_dir"),
    "headless": (("ui", "browser"), "headless"),
}

# legacy test case key -> current key
LEGACY_TEST_CASE_KEYS = {
    "type": "kind",
    "test_data": "input",
    "max_retries": "retry_count",
}


class Migration(NamedTuple):
    source: str
    target: str
    apply: MigrationFunc


def parse_version(version: Any) -> Tuple[int, ...]:
    """'1.2.3' -> (1, 2, 3); unparsable strings sort first as (0, 0, 0)."""
    try:
        return tuple(int(part) for part in str(version).split("."))
    except ValueError:
        logger.warning(f"Unparsable schema_version {version!r}; treating it as 0.0.0")
        return (0, 0, 0)


def lift_flat_keys(document: Document) -> Document:
    """Move top-level legacy keys into their sections; section values win."""
    for legacy_key, (section_path, key) in LEGACY_FLAT_KEYS.items():
        if legacy_key not in document:
            continue
        value = document.pop(legacy_key)
        section = document
        for name in section_path:
            section = section.setdefault(name, {})
        section.setdefault(key, value)
        logger.debug(f"Moved {legacy_key} to {'.'.join(section_path)}.{key}")
    return document


def rename_test_case_keys(document: Document) -> Document:
    for entry in document.get("test_cases") or []:
        if not isinstance(entry, dict):
            continue
        for old, new in LEGACY_TEST_CASE_KEYS.items():
            if old in entry and new not in entry:
                entry[new] = entry.pop(old)
    return document


class VersionCompatManager:
    """
    Ordered registry of document migrations.

    Further steps are added with the decorator::

        manager = VersionCompatManager()

        @manager.register_migration("1.0.0", "1.1.0")
        def add_pool_section(document):
            document.setdefault("coordinator", {})
            return document
    """

    CURRENT_VERSION = "1.0.0"

    def __init__(self) -> None:
        self._migrations: List[Migration] = []
        self.register_migration("0.1.0", "1.0.0")(
            lambda document: rename_test_case_keys(lift_flat_keys(document))
        )

    def register_migration(self, from_version: str, to_version: str) -> Callable[[MigrationFunc], MigrationFunc]:
        def decorator(func: MigrationFunc) -> MigrationFunc:
            self._migrations.append(Migration(from_version, to_version, func))
            self._migrations.sort(key=lambda m: parse_version(m.source))
            logger.debug(f"Migration registered: {from_version} -> {to_version}")
            return func

        return decorator

    def get_migration_path(self, from_version: str) -> List[Tuple[str, str]]:
        """(source, target) pairs that would run for a document at `from_version`."""
        return [(m.source, m.target) for m in self._steps_from(from_version)]

    def migrate(self, config: Document) -> Document:
        """
        Upgrade a document to CURRENT_VERSION.

        A document without `schema_version` is taken to be current and gets
        the field added. Older documents are copied before being changed.
        """
        version = config.get("schema_version")
        if version is None:
            config["schema_version"] = self.CURRENT_VERSION
            return config
        if str(version) == self.CURRENT_VERSION:
            return config

        logger.info(f"Upgrading configuration from v{version} to v{self.CURRENT_VERSION}")
        document = copy.deepcopy(config)
        for step in self._steps_from(str(version)):
            try:
                document = step.apply(document)
            except Exception as e:
                logger.error(f"Migration {step.source} -> {step.target} failed: {e}")
                raise
            document["schema_version"] = step.target
            logger.debug(f"Applied migration {step.source} -> {step.target}")
        return document

    def _steps_from(self, version: str) -> List[Migration]:
        start, end = parse_version(version), parse_version(self.CURRENT_VERSION)
        return [
            m for m in self._migrations
            if parse_version(m.source) >= start and parse_version(m.target) <= end
        ]
