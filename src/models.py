"""Value types passed between the harness components."""

from __future__ import annotations

import uuid
from datetime import datetime
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from constants import FILE_ACCESS_DATE_KEY, IDENTITY_TAG, SIGNATURE_TAG
from errors import FileAccessError, ToolInvocationError
from utils import get_media_format


@dataclass(frozen=True)
class TagSet:
    """The two custom XMP fields the harness writes and reads back."""

    identity: str | None = None
    signature: str | None = None

    @classmethod
    def fresh(cls, signature: str) -> TagSet:
        """Create a tag set with a newly generated UUID4 identity."""
        return cls(identity=str(uuid.uuid4()), signature=signature)

    @property
    def is_empty(self) -> bool:
        return self.identity is None and self.signature is None

    def to_exiftool(self) -> dict[str, str]:
        """
        Map the tag set onto ExifTool tag names.

        Absent fields are skipped rather than written as empty strings.
        """
        tags: dict[str, str] = {}
        if self.identity is not None:
            tags[IDENTITY_TAG] = self.identity
        if self.signature is not None:
            tags[SIGNATURE_TAG] = self.signature
        return tags

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any]) -> TagSet:
        """Pick the two custom fields out of an ExifTool metadata row."""
        return cls(
            identity=_as_text(metadata.get(IDENTITY_TAG)),
            signature=_as_text(metadata.get(SIGNATURE_TAG)),
        )


# Local time is assumed when ExifTool omits the zone
_EXIFTOOL_DATE_FORMATS = ("%Y:%m:%d %H:%M:%S%z", "%Y:%m:%d %H:%M:%S")


def _as_text(value: Any) -> str | None:
    # ExifTool's JSON output turns numeric-looking strings into numbers
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class TagReadResult:
    """Everything ExifTool reported for one file."""

    tags: TagSet
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def file_access_date(self) -> str | None:
        value = self.metadata.get(FILE_ACCESS_DATE_KEY)
        return None if value is None else str(value)

    @property
    def file_access_timestamp(self) -> float | None:
        """The access date as a POSIX timestamp, or None when absent or unparseable."""
        value = self.metadata.get(FILE_ACCESS_DATE_KEY)
        if isinstance(value, (int, float)):
            return float(value)
        if not isinstance(value, str):
            return None
        for fmt in _EXIFTOOL_DATE_FORMATS:
            try:
                return datetime.strptime(value, fmt).timestamp()
            except ValueError:
                continue
        return None


@dataclass(frozen=True)
class MediaFile:
    """An existing PDF, JPEG, or PNG file used as scenario input."""

    path: Path
    format: str

    @classmethod
    def from_path(cls, path: Path | str) -> MediaFile:
        """
        Wrap an existing file, detecting its format from the suffix.

        Args:
            path: Path to the media file.

        Returns:
            The media file.

        Raises:
            FileAccessError: If the file does not exist.
            ToolInvocationError: If the format is not supported.
        """
        path = Path(path)
        if not path.is_file():
            raise FileAccessError(f"Media file '{path}' does not exist", path)

        fmt = get_media_format(path)
        if fmt is None:
            raise ToolInvocationError(f"Unsupported media format: '{path.suffix}' ({path})")
        return cls(path=path, format=fmt)

    def read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise FileAccessError(f"Cannot read '{self.path}': {e}", self.path) from e
