"""The metadata store: owner of the persisted metadata record of one save directory.

All mutations go through `MetadataStore` methods. Each mutation is applied to a working copy of the
record under the store lock, persisted with a write-temp-then-rename protocol, and only then swapped
in as the live record. A failed persist therefore leaves both the on-disk and the in-memory record
at their previous version.
"""

from __future__ import annotations

import json
import os
import shutil
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock

from loguru import logger
from pydantic import ValidationError

from save_metadata import SaveMetadataSettings, save_metadata_settings
from save_metadata.checksum import digest_file
from save_metadata.errors import (
    InvalidFilenameError,
    MetadataIOError,
    MetadataSchemaError,
    UnreadableArtifactError,
    classify_os_error,
)
from save_metadata.meta_consts import (
    CORRUPTED_METADATA_PREFIX,
    DEFAULT_PRODUCER_VERSION,
    METADATA_FILENAME,
    METADATA_TEMP_SUFFIX,
    RESERVED_FILENAMES,
)
from save_metadata.metadata_records import (
    ConfigurationUpdate,
    FileEntry,
    MetadataRecord,
    RegistrationInfo,
    StatisticsReport,
)
from save_metadata.migrations import migrate_metadata_document
from save_metadata.statistics import apply_size_statistics, build_statistics_report

Clock = Callable[[], int]
"""A callable returning the current time as Unix milliseconds."""


def current_time_ms() -> int:
    """Return the current wall clock time as Unix milliseconds."""
    return time.time_ns() // 1_000_000


def quarantine_timestamp(now: datetime | None = None) -> str:
    """Return a filename-safe UTC timestamp such as `2026-10-18T12-30-00-123Z`."""
    if now is None:
        now = datetime.now(timezone.utc)
    iso_timestamp = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return iso_timestamp.replace(":", "-").replace(".", "-")


class MetadataStore:
    """Tracks checksums, sizes and timestamps of the save files in one directory.

    The record is loaded (or bootstrapped) at construction and persisted to
    `<store_directory>/metadata.json` after every mutation.

    Thread-safe with RLock protection. Multiple processes writing the same directory are not
    coordinated; the last writer wins.
    """

    def __init__(
        self,
        store_directory: Path | str,
        *,
        settings: SaveMetadataSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the store and load its record.

        Args:
            store_directory: The directory holding the save files. Created if it does not exist.
            settings: Settings to use. If None, the environment-derived settings are used.
            clock: Source of timestamps. If None, the wall clock is used.

        Raises:
            MetadataIOError: If the directory cannot be created, or an existing record cannot be
                read or a new one cannot be written.
        """
        self._settings = settings or save_metadata_settings
        self._store_directory = Path(store_directory)
        self._metadata_path = self._store_directory / METADATA_FILENAME
        self._temp_path = self._store_directory / (METADATA_FILENAME + METADATA_TEMP_SUFFIX)
        self._clock = clock or current_time_ms
        self._lock = RLock()

        self._working: MetadataRecord | None = None
        self._dirty = False

        try:
            self._store_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MetadataIOError(self._store_directory, "create directory for", classify_os_error(e), str(e)) from e

        self._record = self.default_record()
        self.load()

    @property
    def store_directory(self) -> Path:
        """The directory holding the tracked save files."""
        return self._store_directory

    @property
    def metadata_path(self) -> Path:
        """The path of the persisted metadata record."""
        return self._metadata_path

    def default_record(self) -> MetadataRecord:
        """Return an empty record carrying the configured defaults."""
        return MetadataRecord(
            auto_save_enabled=self._settings.default_auto_save_enabled,
            auto_save_interval_ms=self._settings.default_auto_save_interval_ms,
            backup_retention_count=self._settings.default_backup_retention_count,
        )

    # Load and persist

    def load(self) -> MetadataRecord:
        """Load the record from disk, replacing the in-memory record.

        A missing record is bootstrapped as an empty one and persisted. An unparseable record is
        copied aside to a quarantine file and then bootstrapped.

        Returns:
            MetadataRecord: A copy of the loaded record.

        Raises:
            MetadataIOError: If the record exists but cannot be read, or a bootstrapped record
                cannot be written.
        """
        with self._lock:
            try:
                raw_content = self._metadata_path.read_bytes()
            except FileNotFoundError:
                logger.info(f"No existing metadata found in {self._store_directory}, creating new metadata file")
                return self._bootstrap()
            except OSError as e:
                logger.error(f"Error loading metadata from {self._metadata_path}: {e}")
                raise MetadataIOError(self._metadata_path, "read", classify_os_error(e), str(e)) from e

            try:
                document = json.loads(raw_content.decode("utf-8"))
                record = migrate_metadata_document(document, self.default_record())
            except (UnicodeDecodeError, json.JSONDecodeError, MetadataSchemaError, ValidationError) as e:
                logger.warning(f"Corrupted metadata file {self._metadata_path}, creating backup and resetting: {e}")
                self._quarantine_corrupted_metadata()
                return self._bootstrap()

            self._record = record
            logger.debug(f"Metadata loaded from {self._metadata_path} ({len(record.entries)} entries)")
            return record.model_copy(deep=True)

    def persist(self) -> None:
        """Write the current record to disk atomically.

        Raises:
            MetadataIOError: If the temporary file cannot be written or renamed into place.
        """
        with self._lock:
            self._write_record(self._record)

    def _bootstrap(self) -> MetadataRecord:
        record = self.default_record()
        self._write_record(record)
        self._record = record
        return record.model_copy(deep=True)

    def _write_record(self, record: MetadataRecord) -> None:
        """Write `record` to the temporary sibling file and rename it over the metadata file."""
        content = json.dumps(record.model_dump(mode="json"), indent=2)
        try:
            with open(self._temp_path, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                if self._settings.fsync_writes:
                    os.fsync(f.fileno())
            os.replace(self._temp_path, self._metadata_path)
        except OSError as e:
            logger.error(f"Failed to save metadata to {self._metadata_path}: {e}")
            self._discard_temp_file()
            raise MetadataIOError(self._metadata_path, "write", classify_os_error(e), str(e)) from e

        logger.debug(f"Metadata saved to {self._metadata_path}")

    def _discard_temp_file(self) -> None:
        try:
            self._temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary metadata file {self._temp_path}: {e}")

    def _quarantine_corrupted_metadata(self) -> Path | None:
        """Copy the unparseable metadata file aside. Failure is logged, not raised."""
        backup_path = self._store_directory / f"{CORRUPTED_METADATA_PREFIX}{quarantine_timestamp()}.json"
        try:
            shutil.copy2(self._metadata_path, backup_path)
        except OSError as e:
            logger.warning(f"Could not backup corrupted metadata: {e}")
            return None

        logger.warning(f"Corrupted metadata backed up to: {backup_path}")
        return backup_path

    # Mutations

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group mutations into one atomic unit with a single persist.

        Mutations made inside the block are applied to a working copy of the record and persisted
        once when the block exits. If the block raises, or the persist fails, the working copy is
        discarded. Nested transactions join the outermost one.

        Raises:
            MetadataIOError: If persisting the changes fails.
        """
        with self._lock:
            if self._working is not None:
                yield
                return

            self._working = self._record.model_copy(deep=True)
            self._dirty = False
            try:
                yield
                if self._dirty:
                    self._write_record(self._working)
                    self._record = self._working
            finally:
                self._working = None
                self._dirty = False

    def _working_record(self) -> MetadataRecord:
        if self._working is None:
            raise RuntimeError("Metadata mutations must run inside a transaction")
        return self._working

    def resolve_artifact_path(self, filename: str) -> Path:
        """Return the path of `filename` inside the store directory.

        Args:
            filename: A bare filename.

        Returns:
            Path: The path of the file.

        Raises:
            InvalidFilenameError: If the name is empty, contains a path separator, is `.` or `..`,
                or is reserved for the metadata record.
        """
        if not filename or filename.strip() == "":
            raise InvalidFilenameError(filename, "name is empty")
        if "/" in filename or "\\" in filename:
            raise InvalidFilenameError(filename, "name must not contain path separators")
        if filename in (".", ".."):
            raise InvalidFilenameError(filename, "name must refer to a file")
        if filename in RESERVED_FILENAMES:
            raise InvalidFilenameError(filename, "name is reserved for the metadata record")
        return self._store_directory / filename

    def register_entry(self, filename: str, info: RegistrationInfo | None = None) -> FileEntry:
        """Register (or re-register) a save file, recording its current checksum.

        The entry is rebuilt from scratch on every registration: both timestamps are set to now and
        the access time is cleared. Only the registration count carries over.

        Args:
            filename: Name of the save file inside the store directory.
            info: Optional size and producer information supplied by the caller. A missing or zero
                `size_bytes` falls back to the byte length of the file.

        Returns:
            FileEntry: A copy of the registered entry.

        Raises:
            InvalidFilenameError: If `filename` does not name a file inside the store directory.
            UnreadableArtifactError: If the file is missing or cannot be read. Nothing is recorded.
            MetadataIOError: If the updated record cannot be persisted. Nothing is recorded.
        """
        if info is None:
            info = RegistrationInfo()
        file_path = self.resolve_artifact_path(filename)

        with self.transaction():
            try:
                file_digest = digest_file(file_path)
            except OSError as e:
                logger.error(f"Failed to register save file {filename}: {e}")
                raise UnreadableArtifactError(filename, classify_os_error(e), str(e)) from e

            record = self._working_record()
            timestamp = self._clock()
            previous = record.entries.get(filename)

            entry = FileEntry(
                filename=filename,
                checksum=file_digest.checksum,
                size_bytes=info.size_bytes or file_digest.size_bytes,
                created_at=timestamp,
                last_modified_at=timestamp,
                is_backup_variant=self._settings.backup_marker in filename,
                registration_count=(previous.registration_count if previous is not None else 0) + 1,
                producer_version=info.producer_version or DEFAULT_PRODUCER_VERSION,
                producer_level=info.producer_level or 0,
            )
            record.entries[filename] = entry

            record.last_save_timestamp = timestamp
            record.total_save_count += 1
            record.statistics.total_save_operations += 1
            record.statistics.last_successful_save_at = timestamp
            apply_size_statistics(record)
            self._dirty = True

        logger.info(f"Save file registered: {filename} (registration #{entry.registration_count})")
        return entry.model_copy(deep=True)

    def record_load_operation(self, filename: str) -> bool:
        """Record that a save file was loaded.

        Unknown filenames still count towards the load statistics. Load tracking is advisory, so a
        failure to persist is logged rather than raised.

        Args:
            filename: Name of the loaded save file.

        Returns:
            bool: True if the load was recorded and persisted, False if persisting failed.
        """
        try:
            with self.transaction():
                record = self._working_record()
                timestamp = self._clock()

                entry = record.entries.get(filename)
                if entry is not None:
                    entry.last_accessed_at = timestamp

                record.statistics.total_load_operations += 1
                record.statistics.last_successful_load_at = timestamp
                self._dirty = True
        except MetadataIOError as e:
            logger.error(f"Failed to record load operation for {filename}: {e}")
            return False

        logger.debug(f"Load operation recorded for: {filename}")
        return True

    def unregister_entry(self, filename: str) -> bool:
        """Stop tracking a save file. The file itself is not touched.

        Args:
            filename: Name of the save file.

        Returns:
            bool: True if an entry was removed, False if the filename was not tracked.

        Raises:
            MetadataIOError: If the updated record cannot be persisted.
        """
        with self.transaction():
            record = self._working_record()
            if record.entries.pop(filename, None) is None:
                return False

            apply_size_statistics(record)
            self._dirty = True

        logger.info(f"Save file unregistered: {filename}")
        return True

    def update_configuration(self, update: ConfigurationUpdate) -> MetadataRecord:
        """Apply the explicitly set fields of `update` to the record.

        Args:
            update: The partial configuration. Unset and None fields are left untouched.

        Returns:
            MetadataRecord: A copy of the updated record.

        Raises:
            MetadataIOError: If the updated record cannot be persisted.
        """
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        with self.transaction():
            record = self._working_record()
            for field_name, value in changes.items():
                setattr(record, field_name, value)
            self._dirty = True

        logger.info(f"Configuration updated: {changes}")
        return self.get_metadata()

    # Read side

    def get_entry(self, filename: str) -> FileEntry | None:
        """Return a copy of the entry for `filename`, or None if it is not tracked."""
        with self._lock:
            entry = self._record.entries.get(filename)
            return entry.model_copy(deep=True) if entry is not None else None

    def get_all_entries(self) -> list[FileEntry]:
        """Return copies of all entries, most recently registered first."""
        with self._lock:
            entries = [entry.model_copy(deep=True) for entry in self._record.entries.values()]
        entries.sort(key=lambda entry: entry.filename)
        entries.sort(key=lambda entry: entry.last_modified_at, reverse=True)
        return entries

    def tracked_filenames(self) -> list[str]:
        """Return the tracked filenames in sorted order."""
        with self._lock:
            return sorted(self._record.entries)

    def get_statistics(self) -> StatisticsReport:
        """Return the statistics of the store with derived counts and configuration."""
        with self._lock:
            return build_statistics_report(self._record)

    def get_metadata(self) -> MetadataRecord:
        """Return a deep copy of the full record."""
        with self._lock:
            return self._record.model_copy(deep=True)

    def export_metadata(self, path: Path | str) -> Path:
        """Write the current record to `path` for manual backup.

        This is a plain write. The exported copy is never read back by the store.

        Args:
            path: Destination file.

        Returns:
            Path: The destination file.

        Raises:
            MetadataIOError: If the file cannot be written.
        """
        export_path = Path(path)
        with self._lock:
            content = json.dumps(self._record.model_dump(mode="json"), indent=2)
        try:
            export_path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to export metadata to {export_path}: {e}")
            raise MetadataIOError(export_path, "export", classify_os_error(e), str(e)) from e

        logger.info(f"Metadata exported to: {export_path}")
        return export_path
