"""Tests for the loguru configuration helpers."""

import io
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from save_metadata import METADATA_FILENAME, MetadataStore
from save_metadata.logging_config import (
    configure_logger,
    disable_logging,
    enable_debug_logging,
    enable_logging,
)


@pytest.fixture(autouse=True)
def restore_test_logging() -> Iterator[None]:
    """Put the test sink back after each test."""
    yield
    enable_logging()
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")


def _load_corrupted_store(directory: Path) -> None:
    (directory / METADATA_FILENAME).write_text("{ not json", encoding="utf-8")
    MetadataStore(directory)


def test_configure_logger_filters_by_level() -> None:
    """Messages below the configured level are dropped."""
    stream = io.StringIO()
    configure_logger("WARNING", sink=stream, format_string="{level}|{message}", colorize=False)

    logger.info("registration noise")
    logger.warning("corrupted record")

    assert "registration noise" not in stream.getvalue()
    assert "WARNING|corrupted record" in stream.getvalue()


def test_package_only_hides_other_modules(store_directory: Path) -> None:
    """With `package_only`, messages from outside the package are filtered out."""
    stream = io.StringIO()
    configure_logger("WARNING", sink=stream, format_string="{name}|{message}", colorize=False, package_only=True)

    logger.warning("application warning")
    _load_corrupted_store(store_directory)

    output = stream.getvalue()
    assert "application warning" not in output
    assert "save_metadata.metadata_store|Corrupted metadata" in output


def test_disable_logging_only_silences_the_package(store_directory: Path) -> None:
    """Disabling silences save-metadata while other loguru users keep logging."""
    stream = io.StringIO()
    configure_logger("DEBUG", sink=stream, format_string="{message}", colorize=False)

    disable_logging()
    _load_corrupted_store(store_directory)
    logger.warning("application warning")

    output = stream.getvalue()
    assert "Corrupted metadata" not in output
    assert "application warning" in output

    enable_logging()
    MetadataStore(store_directory)
    assert "Metadata loaded" in stream.getvalue()


def test_enable_debug_logging(capsys: pytest.CaptureFixture[str], store_directory: Path) -> None:
    """Debug logging shows the package's debug messages on stderr."""
    enable_debug_logging()

    MetadataStore(store_directory)

    assert "Metadata saved" in capsys.readouterr().err
