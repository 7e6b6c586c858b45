"""Delete every tag from a file, and undo it.

``exiftool -all= <file>`` rewrites the file in place and leaves the
previous bytes in a ``<file>_original`` sibling.  That backup is not an
``OUT`` artifact, so callers that strip a shared fixture must restore it
explicitly (move the backup back over the file, which also deletes the
backup) even when the scenario failed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from constants import BACKUP_SUFFIX, DELETE_ALL_TAGS_ARG
from errors import FileAccessError, ToolInvocationError
from exiftool_session import ExifToolSession

logger = logging.getLogger(__name__)


def backup_path_for(path: Path) -> Path:
    """Return the ``<path>_original`` sibling ExifTool writes before editing in place."""
    path = Path(path)
    return path.with_name(path.name + BACKUP_SUFFIX)


def delete_all_tags(session: ExifToolSession, path: Path) -> Path:
    """
    Remove all writable metadata from *path* in place.

    Args:
        session: Running ExifTool session.
        path: File to strip.

    Returns:
        Path of the backup ExifTool left behind.

    Raises:
        FileAccessError: If the file does not exist, or a backup from an
            earlier run is still in the way.
        ToolInvocationError: If ExifTool fails or leaves no backup.
    """
    path = Path(path)
    backup = backup_path_for(path)

    if not path.is_file():
        raise FileAccessError(f"Cannot delete tags, '{path}' does not exist", path)
    if backup.exists():
        # ExifTool would keep the stale backup and our restore would bring back the wrong bytes
        raise FileAccessError(f"Backup '{backup}' already exists; restore it first", backup)

    session.execute(DELETE_ALL_TAGS_ARG, str(path))

    if not backup.is_file():
        raise ToolInvocationError(f"ExifTool stripped '{path}' but left no backup at '{backup}'")
    logger.debug("Stripped all tags from %s (backup %s)", path, backup)
    return backup


def restore_original(path: Path) -> bool:
    """
    Move the ``_original`` backup back over *path*.

    Args:
        path: File previously stripped with ``delete_all_tags``.

    Returns:
        True if a backup was restored, False if there was none.

    Raises:
        FileAccessError: If the backup cannot be moved.
    """
    path = Path(path)
    backup = backup_path_for(path)
    if not backup.is_file():
        return False

    try:
        backup.replace(path)
    except OSError as e:
        raise FileAccessError(f"Cannot restore '{path}' from '{backup}': {e}", backup) from e
    logger.debug("Restored %s from backup", path)
    return True


def restore_backups(directory: Path) -> list[Path]:
    """
    Restore every ``*_original`` backup found in *directory*.

    Returns:
        The restored file paths.
    """
    directory = Path(directory)
    restored: list[Path] = []
    if not directory.is_dir():
        return restored

    for backup in sorted(directory.glob(f"*{BACKUP_SUFFIX}")):
        target = backup.with_name(backup.name[: -len(BACKUP_SUFFIX)])
        if restore_original(target):
            restored.append(target)

    if restored:
        logger.warning(f"Restored {len(restored)} stripped file(s) left behind in {directory}")
    return restored
