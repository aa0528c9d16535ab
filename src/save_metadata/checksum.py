"""Content digests used as integrity fingerprints for tracked files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import NamedTuple

_READ_CHUNK_SIZE = 1024 * 1024


def digest(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of `data`."""
    return hashlib.sha256(data).hexdigest()


class FileDigest(NamedTuple):
    """The digest and byte length of a file, taken in the same read."""

    checksum: str
    size_bytes: int


def digest_file(path: Path) -> FileDigest:
    """Return the SHA-256 digest and byte length of the file at `path`.

    The file is read in chunks so large files are never fully materialized.

    Args:
        path: The file to hash.

    Returns:
        FileDigest: The lowercase hex digest and the number of bytes read.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    hasher = hashlib.sha256()
    size_bytes = 0
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_READ_CHUNK_SIZE), b""):
            hasher.update(chunk)
            size_bytes += len(chunk)
    return FileDigest(hasher.hexdigest(), size_bytes)
