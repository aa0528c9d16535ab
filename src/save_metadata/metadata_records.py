"""Pydantic models for the persisted metadata record and the values exchanged with callers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from save_metadata.meta_consts import CURRENT_SCHEMA_VERSION, DEFAULT_PRODUCER_VERSION, VALIDATION_VERDICT


class FileEntry(BaseModel):
    """Metadata for a single tracked save file."""

    model_config = ConfigDict(
        use_attribute_docstrings=True,
        validate_assignment=True,
    )

    filename: str
    """The name of the file, relative to the store directory. Matches the entry's key."""
    checksum: str
    """Hex digest of the file contents at the time of the last registration."""
    size_bytes: int = Field(ge=0)
    """Size of the file in bytes as reported at registration."""
    created_at: int
    """Unix timestamp (milliseconds) of the first registration."""
    last_modified_at: int
    """Unix timestamp (milliseconds) of the latest registration."""
    last_accessed_at: int | None = None
    """Unix timestamp (milliseconds) of the latest recorded load, if any."""
    is_backup_variant: bool = False
    """Whether the filename carries the backup marker."""
    registration_count: int = Field(default=1, ge=1)
    """How many times this filename has been registered."""
    producer_version: str = DEFAULT_PRODUCER_VERSION
    """Opaque version tag supplied by the producer of the file."""
    producer_level: int = Field(default=0, ge=0)
    """Opaque level tag supplied by the producer of the file."""


class SaveStatistics(BaseModel):
    """Operation counters and size aggregates for a store."""

    model_config = ConfigDict(
        use_attribute_docstrings=True,
        validate_assignment=True,
    )

    total_save_operations: int = Field(default=0, ge=0)
    """Number of successful registrations."""
    total_load_operations: int = Field(default=0, ge=0)
    """Number of recorded load operations."""
    last_successful_save_at: int | None = None
    """Unix timestamp (milliseconds) of the latest successful registration."""
    last_successful_load_at: int | None = None
    """Unix timestamp (milliseconds) of the latest recorded load."""
    average_entry_size_bytes: float = Field(default=0.0, ge=0)
    """Mean `size_bytes` over the current entries, 0 when there are none."""
    total_disk_usage_bytes: int = Field(default=0, ge=0)
    """Sum of `size_bytes` over the current entries."""


class MetadataRecord(BaseModel):
    """The single persisted aggregate describing every tracked file of a store."""

    model_config = ConfigDict(
        use_attribute_docstrings=True,
        validate_assignment=True,
    )

    schema_version: str = CURRENT_SCHEMA_VERSION
    """Version of the record layout."""
    last_save_timestamp: int | None = None
    """Unix timestamp (milliseconds) of the latest successful registration."""
    auto_save_enabled: bool = True
    """Pass-through flag consulted by an external auto-save scheduler."""
    auto_save_interval_ms: int = Field(default=30000, ge=0)
    """Pass-through interval consulted by an external auto-save scheduler."""
    backup_retention_count: int = Field(default=10, ge=0)
    """Advisory number of backups to keep. Not enforced by the store."""
    total_save_count: int = Field(default=0, ge=0)
    """Number of successful registrations over the lifetime of the record. Never decremented."""
    migration_completed: bool = False
    """Opaque flag for external migration tooling."""
    entries: dict[str, FileEntry] = Field(default_factory=dict)
    """Tracked files keyed by filename."""
    statistics: SaveStatistics = Field(default_factory=SaveStatistics)
    """Counters and derived size aggregates."""


class RegistrationInfo(BaseModel):
    """Optional information supplied by the producer when a file is registered."""

    model_config = ConfigDict(use_attribute_docstrings=True)

    size_bytes: int | None = Field(default=None, ge=0)
    """Size to record. If None, the size of the file contents is used."""
    producer_version: str | None = None
    """Version tag of the producer. Defaults to 'unknown'."""
    producer_level: int | None = Field(default=None, ge=0)
    """Level tag of the producer. Defaults to 0."""


class ConfigurationUpdate(BaseModel):
    """A partial update of the pass-through configuration fields.

    Only fields which are explicitly set (and not None) are applied.
    """

    model_config = ConfigDict(use_attribute_docstrings=True)

    auto_save_enabled: bool | None = None
    auto_save_interval_ms: int | None = Field(default=None, ge=0)
    backup_retention_count: int | None = Field(default=None, ge=0)
    migration_completed: bool | None = None


class StatisticsReport(SaveStatistics):
    """Statistics of a store together with values derived from its entries and configuration."""

    total_files: int = Field(default=0, ge=0)
    """Number of tracked files."""
    backup_files: int = Field(default=0, ge=0)
    """Number of tracked files which are backup variants."""
    regular_files: int = Field(default=0, ge=0)
    """Number of tracked files which are not backup variants."""
    oldest_entry_created_at: int | None = None
    """Earliest `created_at` over the tracked files."""
    newest_entry_created_at: int | None = None
    """Latest `created_at` over the tracked files."""
    auto_save_enabled: bool = True
    auto_save_interval_ms: int = 0
    backup_retention_count: int = 0
    migration_completed: bool = False


class ValidationResult(BaseModel):
    """The outcome of validating one tracked file against its stored checksum."""

    model_config = ConfigDict(
        use_attribute_docstrings=True,
        use_enum_values=True,
    )

    filename: str
    verdict: VALIDATION_VERDICT
    reason: str
    """Human-readable description of the verdict."""
    stored_checksum: str | None = None
    current_checksum: str | None = None
    file_size_bytes: int | None = None
    """Size of the file contents at validation time, if they could be read."""
    last_modified_at: int | None = None
    """`last_modified_at` of the entry, if tracked."""

    @property
    def valid(self) -> bool:
        """Whether the file matches its stored checksum."""
        return self.verdict == VALIDATION_VERDICT.valid


class ValidationReport(BaseModel):
    """Aggregated validation results for every tracked file."""

    model_config = ConfigDict(use_attribute_docstrings=True)

    total_files: int = 0
    valid_files: int = 0
    invalid_files: int = 0
    """Files with any verdict other than valid (mismatch, missing or unreadable)."""
    missing_files: int = 0
    details: list[ValidationResult] = Field(default_factory=list)


class SizeStatistics(BaseModel):
    """Size aggregates recomputed from a set of entries."""

    model_config = ConfigDict(use_attribute_docstrings=True)

    entry_count: int = Field(default=0, ge=0)
    total_disk_usage_bytes: int = Field(default=0, ge=0)
    average_entry_size_bytes: float = Field(default=0.0, ge=0)
