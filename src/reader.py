"""Read-only tag extraction through the ExifTool session.

Returns the harness's two custom fields plus every other tag ExifTool
reports, including filesystem-level values such as the last-access
date, without modifying the file's content.
"""

from __future__ import annotations

import logging
from pathlib import Path

from errors import FileAccessError, ToolInvocationError
from exiftool_session import ExifToolSession
from models import TagReadResult, TagSet

logger = logging.getLogger(__name__)


class TagReader:
    """Narrow "get tags" interface over the ExifTool session."""

    def __init__(self, session: ExifToolSession) -> None:
        self.session = session

    def read(self, path: Path) -> TagReadResult:
        """
        Read all embedded tags from a file.

        Args:
            path: Path to the media file.

        Returns:
            The custom tag set (fields are None when absent) and the
            full metadata row.

        Raises:
            FileAccessError: If the file does not exist.
            ToolInvocationError: If ExifTool fails or returns no row.
        """
        path = Path(path)
        if not path.is_file():
            raise FileAccessError(f"Cannot read tags, '{path}' does not exist", path)

        rows = self.session.get_metadata(path)
        if not rows or not isinstance(rows[0], dict):
            raise ToolInvocationError(f"ExifTool returned no metadata for '{path}'")

        metadata = rows[0]
        result = TagReadResult(tags=TagSet.from_metadata(metadata), metadata=metadata)
        logger.debug("Read %s from %s", result.tags, path)
        return result

    def read_tags(self, path: Path) -> TagSet:
        """Read only the custom identity/signature fields."""
        return self.read(path).tags
