import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path

# Settings singletons read the environment at import time; make sure no developer configuration leaks in.
for _var_name in list(os.environ):
    if _var_name.startswith("SAVE_METADATA_"):
        del os.environ[_var_name]

import pytest
from loguru import logger
from pytest import LogCaptureFixture

from save_metadata import IntegrityService, MetadataStore
from tests.helpers import FakeClock


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Set up logging for tests."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss} | {name}:{function}:{line} | {level} | {message}",
    )


@pytest.fixture
def caplog(caplog: LogCaptureFixture) -> Generator[LogCaptureFixture, None, None]:
    """Fixture to capture log messages during tests.

    See https://loguru.readthedocs.io/en/stable/resources/migration.html#migration-caplog for more information.
    """
    handler_id = logger.add(caplog.handler, format="{message}")
    yield caplog
    logger.remove(handler_id)


@pytest.fixture
def store_directory(tmp_path: Path) -> Path:
    """Return an isolated, empty save directory."""
    directory = tmp_path / "saves"
    directory.mkdir()
    return directory


@pytest.fixture
def fake_clock() -> FakeClock:
    """Return a clock which advances one second per call."""
    return FakeClock()


@pytest.fixture
def store(store_directory: Path, fake_clock: FakeClock) -> MetadataStore:
    """Return a store over the isolated save directory."""
    return MetadataStore(store_directory, clock=fake_clock)


@pytest.fixture
def integrity(store: MetadataStore) -> IntegrityService:
    """Return an integrity service over `store`."""
    return IntegrityService(store)


@pytest.fixture
def write_save(store_directory: Path) -> Callable[[str, bytes | str], Path]:
    """Return a helper writing a save file into the save directory."""

    def _write(filename: str, content: bytes | str) -> Path:
        path = store_directory / filename
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return path

    return _write
