"""Tests for the `save-metadata` command line interface."""

import json
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from loguru import logger

from save_metadata import MetadataStore
from save_metadata.checksum import digest
from save_metadata.cli import EXIT_ERROR, EXIT_INVALID_FILES, EXIT_OK, build_parser, main


@pytest.fixture(autouse=True)
def restore_test_logging() -> Iterator[None]:
    """`main` reconfigures loguru; put the test sink back afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")


def _run(directory: Path, *args: str) -> int:
    return main(["--directory", str(directory), "--log-level", "ERROR", *args])


def _stdout_json(capsys: pytest.CaptureFixture[str]) -> Any:  # noqa: ANN401
    return json.loads(capsys.readouterr().out)


def test_register_and_entries(store_directory: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Registering prints the new entry and it appears in the listing."""
    (store_directory / "slot1.sav").write_text("AAAA")

    exit_code = _run(
        store_directory,
        "register",
        "slot1.sav",
        "--producer-version",
        "1.4.2",
        "--producer-level",
        "12",
    )

    assert exit_code == EXIT_OK
    entry = _stdout_json(capsys)
    assert entry["checksum"] == digest(b"AAAA")
    assert entry["producer_version"] == "1.4.2"
    assert entry["producer_level"] == 12

    assert _run(store_directory, "entries") == EXIT_OK
    assert [item["filename"] for item in _stdout_json(capsys)] == ["slot1.sav"]


def test_validate_exit_codes(store_directory: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Validation exits non-zero once a tracked file has changed."""
    (store_directory / "slot1.sav").write_text("AAAA")
    assert _run(store_directory, "register", "slot1.sav") == EXIT_OK
    capsys.readouterr()

    assert _run(store_directory, "validate") == EXIT_OK
    assert _stdout_json(capsys)["valid_files"] == 1

    (store_directory / "slot1.sav").write_text("BBBB")

    assert _run(store_directory, "validate") == EXIT_INVALID_FILES
    assert _stdout_json(capsys)["invalid_files"] == 1

    assert _run(store_directory, "validate", "slot1.sav") == EXIT_INVALID_FILES
    assert _stdout_json(capsys)["verdict"] == "mismatch"


def test_reconcile_and_stats(store_directory: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Reconciling reports the number of pruned entries."""
    (store_directory / "slot1.sav").write_text("AAAA")
    (store_directory / "slot2.sav").write_text("BB")
    _run(store_directory, "register", "slot1.sav")
    _run(store_directory, "register", "slot2.sav")
    (store_directory / "slot1.sav").unlink()
    capsys.readouterr()

    assert _run(store_directory, "reconcile") == EXIT_OK
    assert _stdout_json(capsys) == {"removed": 1}

    assert _run(store_directory, "stats") == EXIT_OK
    stats = _stdout_json(capsys)
    assert stats["total_files"] == 1
    assert stats["total_disk_usage_bytes"] == 2
    assert stats["total_save_operations"] == 2


def test_configure(store_directory: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Configuration changes are persisted."""
    exit_code = _run(store_directory, "configure", "--auto-save", "off", "--auto-save-interval-ms", "5000")

    assert exit_code == EXIT_OK
    output = _stdout_json(capsys)
    assert output["auto_save_enabled"] is False
    assert "entries" not in output

    record = MetadataStore(store_directory).get_metadata()
    assert record.auto_save_enabled is False
    assert record.auto_save_interval_ms == 5000
    assert record.backup_retention_count == 10


def test_export(store_directory: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """The record is exported to the given path."""
    export_path = tmp_path / "export.json"

    assert _run(store_directory, "export", str(export_path)) == EXIT_OK

    assert _stdout_json(capsys) == {"exported_to": str(export_path)}
    assert json.loads(export_path.read_text())["entries"] == {}


@pytest.mark.parametrize(
    "args",
    [
        ("register", "absent.sav"),
        ("register", "../escape.sav"),
        ("export", "/nonexistent-directory/export.json"),
    ],
)
def test_errors_exit_with_error_code(store_directory: Path, args: tuple[str, ...]) -> None:
    """Store errors are reported with the error exit code instead of a traceback."""
    assert _run(store_directory, *args) == EXIT_ERROR


def test_invalid_on_off_value() -> None:
    """Boolean options only accept on/off style values."""
    with pytest.raises(SystemExit):
        build_parser().parse_args(["configure", "--auto-save", "maybe"])
