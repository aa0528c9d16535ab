"""Exceptions raised by the metadata store and the filesystem error kinds they carry.

Failures are always classified by exception type and errno, never by inspecting error messages.
"""

from __future__ import annotations

import errno
from enum import auto
from pathlib import Path

from strenum import StrEnum


class FileSystemErrorKind(StrEnum):
    """The closed set of filesystem failure kinds the store distinguishes."""

    not_found = auto()
    permission_denied = auto()
    is_a_directory = auto()
    other = auto()


def classify_os_error(error: OSError) -> FileSystemErrorKind:
    """Map an `OSError` to a `FileSystemErrorKind`.

    Args:
        error: The error raised by a filesystem call.

    Returns:
        FileSystemErrorKind: The kind of failure.
    """
    if isinstance(error, FileNotFoundError) or error.errno == errno.ENOENT:
        return FileSystemErrorKind.not_found
    if isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
        return FileSystemErrorKind.permission_denied
    if isinstance(error, IsADirectoryError) or error.errno == errno.EISDIR:
        return FileSystemErrorKind.is_a_directory
    return FileSystemErrorKind.other


class SaveMetadataError(Exception):
    """Base exception for all save metadata errors."""


class MetadataIOError(SaveMetadataError):
    """Raised when reading or writing the backing metadata record fails."""

    def __init__(self, path: Path, operation: str, kind: FileSystemErrorKind, detail: str = "") -> None:
        self.path = path
        self.operation = operation
        self.kind = kind
        message = f"Failed to {operation} metadata at {path} ({kind})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnreadableArtifactError(SaveMetadataError):
    """Raised when a file to be registered is missing or cannot be read."""

    def __init__(self, filename: str, kind: FileSystemErrorKind, detail: str = "") -> None:
        self.filename = filename
        self.kind = kind
        message = f"Cannot read save file {filename} ({kind})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MetadataSchemaError(SaveMetadataError):
    """Raised when a parsed metadata document does not have the shape of any known schema."""


class InvalidFilenameError(SaveMetadataError, ValueError):
    """Raised when a filename does not name a file directly inside the store directory."""

    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"Invalid save filename {filename!r}: {reason}")
