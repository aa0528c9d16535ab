"""Integrity validation and reconciliation of tracked save files against the filesystem.

Validation never raises for the state of a tracked file: every condition (untracked, missing,
unreadable, checksum mismatch) is reported as a `ValidationResult` verdict.
"""

from __future__ import annotations

import os

from loguru import logger

from save_metadata.checksum import digest_file
from save_metadata.errors import FileSystemErrorKind, InvalidFilenameError, MetadataIOError, classify_os_error
from save_metadata.meta_consts import VALIDATION_VERDICT
from save_metadata.metadata_records import SizeStatistics, ValidationReport, ValidationResult
from save_metadata.metadata_store import MetadataStore
from save_metadata.statistics import compute_size_statistics


class IntegrityService:
    """Validates tracked files against their stored checksums and prunes orphaned entries.

    The service reads the filesystem directly but only ever changes the record through the
    `MetadataStore` it is given.
    """

    def __init__(self, store: MetadataStore) -> None:
        """Initialize the service.

        Args:
            store: The store whose entries are validated and reconciled.
        """
        self._store = store

    @property
    def store(self) -> MetadataStore:
        """The store this service operates on."""
        return self._store

    def validate_one(self, filename: str) -> ValidationResult:
        """Validate a single tracked file.

        Args:
            filename: Name of the save file.

        Returns:
            ValidationResult: The verdict, with both checksums when the file could be read.
        """
        entry = self._store.get_entry(filename)
        if entry is None:
            return ValidationResult(
                filename=filename,
                verdict=VALIDATION_VERDICT.untracked,
                reason="No metadata found for file",
            )

        try:
            file_digest = digest_file(self._store.resolve_artifact_path(filename))
        except InvalidFilenameError as e:
            return ValidationResult(
                filename=filename,
                verdict=VALIDATION_VERDICT.unreadable,
                reason=str(e),
                stored_checksum=entry.checksum,
                last_modified_at=entry.last_modified_at,
            )
        except OSError as e:
            kind = classify_os_error(e)
            if kind == FileSystemErrorKind.not_found:
                return ValidationResult(
                    filename=filename,
                    verdict=VALIDATION_VERDICT.missing,
                    reason="File not found on disk",
                    stored_checksum=entry.checksum,
                    last_modified_at=entry.last_modified_at,
                )
            return ValidationResult(
                filename=filename,
                verdict=VALIDATION_VERDICT.unreadable,
                reason=f"File could not be read ({kind}): {e}",
                stored_checksum=entry.checksum,
                last_modified_at=entry.last_modified_at,
            )

        current_checksum = file_digest.checksum
        is_valid = current_checksum == entry.checksum
        return ValidationResult(
            filename=filename,
            verdict=VALIDATION_VERDICT.valid if is_valid else VALIDATION_VERDICT.mismatch,
            reason="File integrity verified" if is_valid else "Checksum mismatch - file may be corrupted",
            stored_checksum=entry.checksum,
            current_checksum=current_checksum,
            file_size_bytes=file_digest.size_bytes,
            last_modified_at=entry.last_modified_at,
        )

    def validate_all(self) -> ValidationReport:
        """Validate every tracked file, in filename order.

        Every entry is checked even after failures, so the report is always complete.

        Returns:
            ValidationReport: Counts and per-file results.
        """
        report = ValidationReport()
        for filename in self._store.tracked_filenames():
            result = self.validate_one(filename)
            report.details.append(result)
            report.total_files += 1

            if result.valid:
                report.valid_files += 1
                continue

            report.invalid_files += 1
            if result.verdict == VALIDATION_VERDICT.missing:
                report.missing_files += 1

        logger.info(f"Validation complete: {report.valid_files}/{report.total_files} files valid")
        return report

    def reconcile(self) -> int:
        """Remove entries whose file no longer exists in the store directory.

        Files present on disk but not tracked are never added. All removals are applied as one
        store transaction and persisted once.

        Returns:
            int: The number of entries removed.

        Raises:
            MetadataIOError: If the store directory cannot be listed or the record cannot be persisted.
        """
        with self._store.transaction():
            try:
                present = set(os.listdir(self._store.store_directory))
            except OSError as e:
                logger.error(f"Failed to list {self._store.store_directory}: {e}")
                raise MetadataIOError(
                    self._store.store_directory,
                    "list directory for",
                    classify_os_error(e),
                    str(e),
                ) from e

            orphaned = [filename for filename in self._store.tracked_filenames() if filename not in present]
            removed = sum(1 for filename in orphaned if self._store.unregister_entry(filename))

        if removed:
            logger.info(f"Cleaned up {removed} orphaned metadata entries")
        else:
            logger.debug("No orphaned metadata entries found")
        return removed

    def compute_statistics(self) -> SizeStatistics:
        """Recompute the size aggregates from the store's current entries."""
        return compute_size_statistics(self._store.get_all_entries())
