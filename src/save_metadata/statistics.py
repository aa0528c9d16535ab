"""Size statistics derived from the tracked entries of a store."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from save_metadata.metadata_records import FileEntry, MetadataRecord, SizeStatistics, StatisticsReport


def compute_size_statistics(entries: Iterable[FileEntry]) -> SizeStatistics:
    """Recompute the size aggregates over `entries`.

    Args:
        entries: The entries to aggregate.

    Returns:
        SizeStatistics: Total and average size. The average is 0.0 when there are no entries.
    """
    sizes = [entry.size_bytes for entry in entries]
    total = sum(sizes)
    average = total / len(sizes) if sizes else 0.0
    return SizeStatistics(
        entry_count=len(sizes),
        total_disk_usage_bytes=total,
        average_entry_size_bytes=average,
    )


def apply_size_statistics(record: MetadataRecord) -> None:
    """Overwrite the size aggregates of `record.statistics` from its current entries."""
    size_statistics = compute_size_statistics(record.entries.values())
    record.statistics.total_disk_usage_bytes = size_statistics.total_disk_usage_bytes
    record.statistics.average_entry_size_bytes = size_statistics.average_entry_size_bytes


def build_statistics_report(record: MetadataRecord) -> StatisticsReport:
    """Build the caller-facing statistics report of `record`."""
    entries: Mapping[str, FileEntry] = record.entries
    backup_files = sum(1 for entry in entries.values() if entry.is_backup_variant)
    created = [entry.created_at for entry in entries.values()]

    return StatisticsReport(
        **record.statistics.model_dump(),
        total_files=len(entries),
        backup_files=backup_files,
        regular_files=len(entries) - backup_files,
        oldest_entry_created_at=min(created, default=None),
        newest_entry_created_at=max(created, default=None),
        auto_save_enabled=record.auto_save_enabled,
        auto_save_interval_ms=record.auto_save_interval_ms,
        backup_retention_count=record.backup_retention_count,
        migration_completed=record.migration_completed,
    )
