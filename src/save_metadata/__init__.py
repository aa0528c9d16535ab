"""Metadata tracking and integrity verification for directories of save files."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from save_metadata.logging_config import LogLevel


class SaveMetadataSettings(BaseSettings):
    """Settings for the save-metadata package."""

    model_config = SettingsConfigDict(
        env_prefix="SAVE_METADATA_",
        use_attribute_docstrings=True,
    )

    store_directory: Path = Path("saves")
    """The directory holding the tracked save files and their `metadata.json`."""

    log_level: LogLevel = "WARNING"
    """The log level used by the command line interface and the service."""

    backup_marker: str = Field(default="backup_", min_length=1)
    """Filenames containing this marker are recorded as backup variants."""

    default_auto_save_enabled: bool = True
    """The `auto_save_enabled` value of a newly bootstrapped record."""

    default_auto_save_interval_ms: int = Field(default=30000, ge=0)
    """The `auto_save_interval_ms` value of a newly bootstrapped record."""

    default_backup_retention_count: int = Field(default=10, ge=0)
    """The `backup_retention_count` value of a newly bootstrapped record."""

    fsync_writes: bool = True
    """Whether persisted records are fsynced before being renamed into place."""


save_metadata_settings: SaveMetadataSettings = SaveMetadataSettings()
"""Settings read from `SAVE_METADATA_*` environment variables."""


from .errors import (  # noqa: E402
    FileSystemErrorKind,
    InvalidFilenameError,
    MetadataIOError,
    MetadataSchemaError,
    SaveMetadataError,
    UnreadableArtifactError,
)
from .logging_config import configure_logger, disable_logging, enable_debug_logging, enable_logging  # noqa: E402
from .meta_consts import CURRENT_SCHEMA_VERSION, METADATA_FILENAME, VALIDATION_VERDICT  # noqa: E402
from .metadata_records import (  # noqa: E402
    ConfigurationUpdate,
    FileEntry,
    MetadataRecord,
    RegistrationInfo,
    SaveStatistics,
    SizeStatistics,
    StatisticsReport,
    ValidationReport,
    ValidationResult,
)
from .metadata_store import MetadataStore  # noqa: E402
from .integrity import IntegrityService  # noqa: E402, I001

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "METADATA_FILENAME",
    "VALIDATION_VERDICT",
    "ConfigurationUpdate",
    "FileEntry",
    "FileSystemErrorKind",
    "IntegrityService",
    "InvalidFilenameError",
    "MetadataIOError",
    "MetadataRecord",
    "MetadataSchemaError",
    "MetadataStore",
    "RegistrationInfo",
    "SaveMetadataError",
    "SaveMetadataSettings",
    "SaveStatistics",
    "SizeStatistics",
    "StatisticsReport",
    "UnreadableArtifactError",
    "ValidationReport",
    "ValidationResult",
    "configure_logger",
    "disable_logging",
    "enable_debug_logging",
    "enable_logging",
    "save_metadata_settings",
]
