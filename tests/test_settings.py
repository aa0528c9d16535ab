"""Tests for environment-derived settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from save_metadata import SaveMetadataSettings


def test_defaults() -> None:
    """Without environment variables the documented defaults apply."""
    settings = SaveMetadataSettings()

    assert settings.store_directory == Path("saves")
    assert settings.log_level == "WARNING"
    assert settings.backup_marker == "backup_"
    assert settings.default_auto_save_enabled is True
    assert settings.default_auto_save_interval_ms == 30000
    assert settings.default_backup_retention_count == 10
    assert settings.fsync_writes is True


def test_environment_prefix(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Settings are read from SAVE_METADATA_* environment variables."""
    monkeypatch.setenv("SAVE_METADATA_STORE_DIRECTORY", str(tmp_path))
    monkeypatch.setenv("SAVE_METADATA_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("SAVE_METADATA_BACKUP_MARKER", ".bak")
    monkeypatch.setenv("SAVE_METADATA_DEFAULT_AUTO_SAVE_ENABLED", "false")
    monkeypatch.setenv("SAVE_METADATA_FSYNC_WRITES", "0")

    settings = SaveMetadataSettings()

    assert settings.store_directory == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.backup_marker == ".bak"
    assert settings.default_auto_save_enabled is False
    assert settings.fsync_writes is False


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("SAVE_METADATA_BACKUP_MARKER", ""),
        ("SAVE_METADATA_LOG_LEVEL", "LOUD"),
        ("SAVE_METADATA_DEFAULT_AUTO_SAVE_INTERVAL_MS", "-1"),
    ],
)
def test_invalid_environment_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    """Invalid values are rejected when the settings are created."""
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        SaveMetadataSettings()
