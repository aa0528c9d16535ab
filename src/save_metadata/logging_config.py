"""Logging configuration utilities for save-metadata.

The package logs through loguru and installs no handler of its own. Applications (and the bundled
command line interface) decide what is shown by calling `configure_logger`. Silencing the package
with `disable_logging` leaves the application's own loguru output untouched.
"""

import sys
from typing import TYPE_CHECKING, Literal, TextIO

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

PACKAGE_NAME = "save_metadata"

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def _is_package_record(record: "Record") -> bool:
    name = record["name"] or ""
    return name == PACKAGE_NAME or name.startswith(f"{PACKAGE_NAME}.")


def configure_logger(
    level: LogLevel = "WARNING",
    *,
    sink: TextIO | None = None,
    format_string: str | None = None,
    colorize: bool | None = None,
    package_only: bool = False,
) -> int:
    """Replace every loguru handler with one writing to `sink`.

    Args:
        level: The minimum log level to display.
        sink: The stream to write to. Defaults to stderr at call time.
        format_string: Custom format string for log messages. If None, uses `DEFAULT_FORMAT`.
        colorize: Whether to use colored output. If None, loguru decides from the sink.
        package_only: Only show messages emitted by save-metadata modules.

    Returns:
        int: The loguru handler id, for a later `logger.remove(handler_id)`.

    Examples:
        ```python
        from save_metadata.logging_config import configure_logger

        # See every persist and registration
        configure_logger("DEBUG")

        # Only corruption warnings and errors from this package, without colors
        configure_logger("WARNING", colorize=False, package_only=True)
        ```

    Note:
        The command line interface reads the level from the environment variable
        SAVE_METADATA_LOG_LEVEL when `--log-level` is not given.
    """
    logger.remove()
    logger.enable(PACKAGE_NAME)

    return logger.add(
        sink if sink is not None else sys.stderr,
        level=level,
        format=format_string or DEFAULT_FORMAT,
        colorize=colorize,
        filter=_is_package_record if package_only else None,
    )


def disable_logging() -> None:
    """Silence messages emitted by save-metadata. Other loguru users are unaffected."""
    logger.disable(PACKAGE_NAME)


def enable_logging() -> None:
    """Undo `disable_logging`."""
    logger.enable(PACKAGE_NAME)


def enable_debug_logging() -> int:
    """Show save-metadata DEBUG messages on stderr."""
    return configure_logger("DEBUG", package_only=True)


__all__ = [
    "DEFAULT_FORMAT",
    "PACKAGE_NAME",
    "LogLevel",
    "configure_logger",
    "disable_logging",
    "enable_debug_logging",
    "enable_logging",
]
