from __future__ import annotations

from enum import auto

from strenum import StrEnum

METADATA_FILENAME = "metadata.json"
"""The name of the authoritative metadata record inside a store directory."""

METADATA_TEMP_SUFFIX = ".tmp"
"""Suffix of the sibling file written during an atomic persist."""

CORRUPTED_METADATA_PREFIX = "metadata_corrupted_"
"""Prefix of quarantined, unparseable metadata records."""

RESERVED_FILENAMES = frozenset({METADATA_FILENAME, METADATA_FILENAME + METADATA_TEMP_SUFFIX})
"""Names which can never be registered as tracked files."""

LEGACY_SCHEMA_VERSION = "1.0.0"
"""The schema version of records written with the legacy camelCase layout."""

CURRENT_SCHEMA_VERSION = "2.0.0"
"""The schema version written by this package."""

DEFAULT_PRODUCER_VERSION = "unknown"


class VALIDATION_VERDICT(StrEnum):
    """The possible outcomes of validating a single tracked file."""

    valid = auto()
    mismatch = auto()
    missing = auto()
    unreadable = auto()
    untracked = auto()
