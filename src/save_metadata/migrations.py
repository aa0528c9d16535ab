"""Conversion of raw metadata documents read from disk into the current `MetadataRecord` schema.

A document is first upgraded to the current layout (if it was written with the legacy camelCase
layout), then every field of the current schema is defaulted individually, so fields introduced
after the document was written acquire defaults instead of being absent.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from save_metadata.errors import MetadataSchemaError
from save_metadata.meta_consts import CURRENT_SCHEMA_VERSION, DEFAULT_PRODUCER_VERSION, LEGACY_SCHEMA_VERSION
from save_metadata.metadata_records import MetadataRecord, SaveStatistics
from save_metadata.statistics import apply_size_statistics

_LEGACY_RECORD_FIELDS = {
    "lastSave": "last_save_timestamp",
    "autoSaveEnabled": "auto_save_enabled",
    "autoSaveInterval": "auto_save_interval_ms",
    "backupCount": "backup_retention_count",
    "totalSaves": "total_save_count",
    "migrationCompleted": "migration_completed",
}

_LEGACY_STATISTICS_FIELDS = {
    "totalSaveOperations": "total_save_operations",
    "totalLoadOperations": "total_load_operations",
    "lastSuccessfulSave": "last_successful_save_at",
    "lastSuccessfulLoad": "last_successful_load_at",
    "averageSaveSize": "average_entry_size_bytes",
    "totalDiskUsage": "total_disk_usage_bytes",
}

_LEGACY_ENTRY_FIELDS = {
    "checksum": "checksum",
    "size": "size_bytes",
    "created": "created_at",
    "lastModified": "last_modified_at",
    "lastAccessed": "last_accessed_at",
    "isBackup": "is_backup_variant",
    "saveCount": "registration_count",
    "gameVersion": "producer_version",
    "playerLevel": "producer_level",
}


def parse_schema_version(version: str) -> tuple[int, ...] | None:
    """Parse a dotted schema version into a comparable tuple, or None if it is not numeric."""
    try:
        return tuple(int(part) for part in version.split("."))
    except (AttributeError, ValueError):
        return None


def is_legacy_document(document: dict[str, Any]) -> bool:
    """Whether `document` was written with the legacy camelCase layout."""
    if "schema_version" in document:
        return False
    return "saves" in document or "version" in document


def _rename_fields(source: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    return {new_name: source[old_name] for old_name, new_name in mapping.items() if source.get(old_name) is not None}


def _upgrade_legacy_entry(filename: str, raw_entry: Any) -> dict[str, Any]:  # noqa: ANN401
    if not isinstance(raw_entry, dict):
        raise MetadataSchemaError(f"Legacy entry {filename!r} is not an object")

    entry = _rename_fields(raw_entry, _LEGACY_ENTRY_FIELDS)
    entry["filename"] = filename
    entry.setdefault("last_modified_at", entry.get("created_at"))
    entry.setdefault("created_at", entry.get("last_modified_at"))

    # Producer tags were stored untyped.
    producer_version = entry.get("producer_version")
    if producer_version is None or producer_version == "":
        entry["producer_version"] = DEFAULT_PRODUCER_VERSION
    else:
        entry["producer_version"] = str(producer_version)
    entry["producer_level"] = _coerce_level(entry.get("producer_level"))
    return entry


def _coerce_level(value: Any) -> int:  # noqa: ANN401
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return 0
    try:
        return max(int(float(value)), 0)
    except (ValueError, OverflowError):
        return 0


def upgrade_legacy_document(document: dict[str, Any]) -> dict[str, Any]:
    """Convert a legacy camelCase document into the current snake_case layout.

    Args:
        document: The legacy document.

    Returns:
        dict[str, Any]: An untyped document in the current layout. Missing fields are left absent.

    Raises:
        MetadataSchemaError: If the legacy entries are not objects.
    """
    upgraded = _rename_fields(document, _LEGACY_RECORD_FIELDS)

    raw_statistics = document.get("statistics")
    if isinstance(raw_statistics, dict):
        upgraded["statistics"] = _rename_fields(raw_statistics, _LEGACY_STATISTICS_FIELDS)

    raw_saves = document.get("saves") or {}
    if not isinstance(raw_saves, dict):
        raise MetadataSchemaError("Legacy 'saves' is not an object")
    upgraded["entries"] = {
        filename: _upgrade_legacy_entry(filename, raw_entry) for filename, raw_entry in raw_saves.items()
    }

    upgraded["schema_version"] = CURRENT_SCHEMA_VERSION
    logger.info(
        f"Upgraded legacy metadata (schema {document.get('version', LEGACY_SCHEMA_VERSION)}) "
        f"with {len(upgraded['entries'])} entries to schema {CURRENT_SCHEMA_VERSION}",
    )
    return upgraded


def _default_fields(
    document: dict[str, Any],
    defaults: dict[str, Any],
    model: type[MetadataRecord] | type[SaveStatistics],
) -> dict[str, Any]:
    """Merge `document` over `defaults`, field by field, for the fields declared on `model`.

    A None value is only kept for fields whose default is None.
    """
    merged: dict[str, Any] = {}
    for field_name, field_info in model.model_fields.items():
        value = document.get(field_name)
        if value is None and field_info.default is not None:
            merged[field_name] = defaults[field_name]
        else:
            merged[field_name] = value
    return merged


def migrate_metadata_document(document: Any, defaults: MetadataRecord) -> MetadataRecord:  # noqa: ANN401
    """Migrate a raw parsed document to a current `MetadataRecord`.

    Args:
        document: The parsed JSON document.
        defaults: The record providing values for every field absent from the document.

    Returns:
        MetadataRecord: The migrated record, with size statistics recomputed from its entries.

    Raises:
        MetadataSchemaError: If the document is not a JSON object or has malformed sections.
        pydantic.ValidationError: If a field has a value the current schema rejects.
    """
    if not isinstance(document, dict):
        raise MetadataSchemaError(f"Metadata document is a {type(document).__name__}, expected an object")

    if is_legacy_document(document):
        document = upgrade_legacy_document(document)

    version = str(document.get("schema_version") or CURRENT_SCHEMA_VERSION)
    parsed_version = parse_schema_version(version)
    current_version = parse_schema_version(CURRENT_SCHEMA_VERSION)
    if parsed_version is None:
        logger.warning(f"Metadata has unrecognized schema version {version!r}, loading known fields only")
    elif current_version is not None and parsed_version > current_version:
        logger.warning(
            f"Metadata schema {version} is newer than supported {CURRENT_SCHEMA_VERSION}, loading known fields only",
        )

    default_values = defaults.model_dump()

    raw_statistics = document.get("statistics")
    if raw_statistics is None:
        raw_statistics = {}
    if not isinstance(raw_statistics, dict):
        raise MetadataSchemaError("'statistics' is not an object")

    raw_entries = document.get("entries")
    if raw_entries is None:
        raw_entries = {}
    if not isinstance(raw_entries, dict):
        raise MetadataSchemaError("'entries' is not an object")

    merged = _default_fields(document, default_values, MetadataRecord)
    merged["statistics"] = _default_fields(raw_statistics, default_values["statistics"], SaveStatistics)
    merged["entries"] = raw_entries
    merged["schema_version"] = CURRENT_SCHEMA_VERSION

    record = MetadataRecord.model_validate(merged)

    for filename, entry in list(record.entries.items()):
        if entry.filename != filename:
            logger.warning(f"Entry key {filename!r} names file {entry.filename!r}, using the key")
            record.entries[filename] = entry.model_copy(update={"filename": filename})

    apply_size_statistics(record)
    return record


__all__ = [
    "is_legacy_document",
    "migrate_metadata_document",
    "parse_schema_version",
    "upgrade_legacy_document",
]
