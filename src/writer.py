"""Write the custom identity/signature tags into media files.

ExifTool is always asked to emit a new file (``-o``) so the input is
never touched.  Compact shorthand XMP keeps the added packet limited to
the two custom fields, and because ExifTool's output is a function of
the input bytes and the tag values only, writing the same tags twice
yields byte-identical files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from constants import DEFAULT_WRITE_ARGS
from errors import FileAccessError, ToolInvocationError
from exiftool_session import ExifToolSession
from models import TagSet
from utils import get_media_format, sniff_media_format

logger = logging.getLogger(__name__)


class TagWriter:
    """Narrow "set tags" interface over the ExifTool session."""

    def __init__(self, session: ExifToolSession) -> None:
        self.session = session

    def write(
        self,
        input_path: Path,
        tags: TagSet,
        output_path: Path,
        extra_args: Sequence[str] | None = None,
    ) -> Path:
        """
        Write *tags* into a copy of *input_path* saved at *output_path*.

        An existing file at *output_path* is replaced.

        Args:
            input_path: Existing PDF, JPEG or PNG file.
            tags: Tags to add; must not be empty.
            output_path: Where the tagged copy is written.
            extra_args: Additional ExifTool options, placed after the
                compact-encoding options.

        Returns:
            The output path.

        Raises:
            FileAccessError: If the input is missing or the old output
                cannot be removed.
            ToolInvocationError: If the format is unsupported, the tag set
                is empty, or ExifTool fails.
            ValueError: If output and input are the same file.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)

        _check_input(input_path)
        if tags.is_empty:
            raise ToolInvocationError(f"Refusing to write an empty tag set to '{output_path}'")
        if output_path.resolve() == input_path.resolve():
            raise ValueError(f"Output path must differ from input path: {input_path}")

        _clear_output(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        params = [*DEFAULT_WRITE_ARGS, *(extra_args or []), "-o", str(output_path)]
        logger.debug("Tagging %s -> %s with %s", input_path, output_path, tags)
        try:
            self.session.set_tags(input_path, tags.to_exiftool(), params=params)
        except ToolInvocationError:
            # ExifTool can leave a partial file behind when it fails late
            output_path.unlink(missing_ok=True)
            raise

        if not output_path.is_file():
            raise ToolInvocationError(f"ExifTool reported success but did not create '{output_path}'")
        return output_path


def _check_input(input_path: Path) -> None:
    if not input_path.is_file():
        raise FileAccessError(f"Input file '{input_path}' does not exist", input_path)

    fmt = get_media_format(input_path)
    if fmt is None:
        raise ToolInvocationError(f"Unsupported media format: '{input_path.suffix}' ({input_path})")

    try:
        sniffed = sniff_media_format(input_path)
    except OSError as e:
        raise FileAccessError(f"Cannot read '{input_path}': {e}", input_path) from e
    if sniffed != fmt:
        raise ToolInvocationError(
            f"'{input_path}' has a {fmt} suffix but its content looks like {sniffed or 'an unknown format'}"
        )


def _clear_output(output_path: Path) -> None:
    try:
        output_path.unlink(missing_ok=True)
    except OSError as e:
        raise FileAccessError(f"Cannot replace existing output '{output_path}': {e}", output_path) from e
