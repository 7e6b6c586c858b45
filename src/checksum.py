"""SHA-512 content digests used to prove byte-level equality between files."""

from __future__ import annotations

import hashlib
from pathlib import Path

from constants import CHECKSUM_ALGORITHM, CHECKSUM_CHUNK_SIZE
from errors import FileAccessError


def checksum_bytes(data: bytes) -> str:
    """Return the lowercase hex SHA-512 digest of *data*."""
    return hashlib.new(CHECKSUM_ALGORITHM, data).hexdigest()


def checksum_file(path: Path) -> str:
    """
    Return the lowercase hex SHA-512 digest of a file's full content.

    Args:
        path: Path to the file.

    Returns:
        128-character hex digest.

    Raises:
        FileAccessError: If the file cannot be opened or read.
    """
    digest = hashlib.new(CHECKSUM_ALGORITHM)
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHECKSUM_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise FileAccessError(f"Cannot read '{path}' for checksum: {e}", path) from e
    return digest.hexdigest()


def checksums_match(left: str, right: str) -> bool:
    """Compare two hex digests by exact string equality."""
    return left == right
