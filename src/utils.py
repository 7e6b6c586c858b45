"""Low-level format helpers used across the harness.

These helpers import only from ``constants``, so any module can use
them without creating an import cycle.
"""

from __future__ import annotations

from pathlib import Path

from constants import FORMAT_SIGNATURES, OUTPUT_MARKER, SUPPORTED_FORMATS


def is_supported_format(file_path: Path) -> bool:
    """
    Check if the file format is supported.

    Args:
        file_path: Path to the media file.

    Returns:
        True if the format is supported, False otherwise.
    """
    return file_path.suffix.lower() in SUPPORTED_FORMATS


def get_media_format(file_path: Path) -> str | None:
    """
    Get the media format from file path.

    Args:
        file_path: Path to the media file.

    Returns:
        Format string (PDF, JPEG or PNG), or None for unsupported suffixes.
    """
    return SUPPORTED_FORMATS.get(file_path.suffix.lower())


def sniff_media_format(file_path: Path) -> str | None:
    """
    Detect the media format from the file's leading bytes.

    Args:
        file_path: Path to an existing file.

    Returns:
        Format string, or None if no known signature matches.
    """
    longest = max(len(sig) for sig in FORMAT_SIGNATURES.values())
    with open(file_path, "rb") as f:
        head = f.read(longest)

    for fmt, signature in FORMAT_SIGNATURES.items():
        if head.startswith(signature):
            return fmt
    return None


def output_name(source: Path, scenario: str, label: str) -> str:
    """Build the generated-artifact file name for one scenario step."""
    return f"{source.stem}_{scenario}_{label}_{OUTPUT_MARKER}{source.suffix}"
