"""Filesystem operations that must never touch file content.

Move, rename and delete are pure relocations.  ``open_for_read`` reads a
file the way a viewer would and reports the access-time movement, which
the harness uses to show that OS-level access metadata can change while
the content checksum does not.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from constants import CHECKSUM_CHUNK_SIZE, OUTPUT_PATTERN
from errors import FileAccessError

logger = logging.getLogger(__name__)

# relatime only refreshes atime when it is older than mtime/ctime
_ATIME_BACKDATE_SECONDS = 2 * 24 * 60 * 60


@dataclass(frozen=True)
class ReadAccess:
    """Access timestamps around one read of a file."""

    path: Path
    atime_before: float
    atime_after: float
    bytes_read: int

    @property
    def atime_changed(self) -> bool:
        return self.atime_after != self.atime_before


def move(src: Path, dest: Path) -> Path:
    """
    Move *src* to *dest*, creating parent directories as needed.

    Returns:
        The destination path.

    Raises:
        FileAccessError: If the source is missing or the move fails.
    """
    src = Path(src)
    dest = Path(dest)
    if not src.is_file():
        raise FileAccessError(f"Cannot move '{src}', it does not exist", src)

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        moved = Path(shutil.move(str(src), str(dest)))
    except OSError as e:
        raise FileAccessError(f"Cannot move '{src}' to '{dest}': {e}", src) from e
    logger.debug("Moved %s -> %s", src, moved)
    return moved


def rename(path: Path, new_name: str) -> Path:
    """Rename a file within its directory."""
    path = Path(path)
    return move(path, path.with_name(new_name))


def delete(path: Path, missing_ok: bool = True) -> None:
    """
    Delete a file.

    Raises:
        FileAccessError: If deletion fails, or the file is missing and
            *missing_ok* is False.
    """
    path = Path(path)
    try:
        path.unlink(missing_ok=missing_ok)
    except OSError as e:
        raise FileAccessError(f"Cannot delete '{path}': {e}", path) from e


def open_for_read(path: Path) -> ReadAccess:
    """
    Read a file fully and report its access time before and after.

    The access time is first set two days into the past (keeping mtime)
    so that ``relatime`` mounts register the read.  Filesystems mounted
    ``noatime`` will report no change.

    Raises:
        FileAccessError: If the file cannot be stat'ed or read.
    """
    path = Path(path)
    try:
        stat = path.stat()
        backdated = stat.st_mtime - _ATIME_BACKDATE_SECONDS
        os.utime(path, (backdated, stat.st_mtime))
        atime_before = path.stat().st_atime

        total = 0
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHECKSUM_CHUNK_SIZE), b""):
                total += len(chunk)

        atime_after = path.stat().st_atime
    except OSError as e:
        raise FileAccessError(f"Cannot open '{path}' for read: {e}", path) from e

    return ReadAccess(path=path, atime_before=atime_before, atime_after=atime_after, bytes_read=total)


def list_output_files(directory: Path, pattern: str = OUTPUT_PATTERN) -> list[Path]:
    """List regular files in *directory* whose name matches *pattern*."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    regex = re.compile(pattern)
    return sorted(p for p in directory.iterdir() if p.is_file() and regex.match(p.name))


def remove_output_files(directory: Path, pattern: str = OUTPUT_PATTERN) -> list[Path]:
    """
    Delete generated artifacts in *directory*.

    Returns:
        The deleted paths.
    """
    removed = list_output_files(directory, pattern)
    for path in removed:
        delete(path)
    if removed:
        logger.info(f"Removed {len(removed)} generated file(s) from {directory}")
    return removed
