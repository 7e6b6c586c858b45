"""xmptag-harness - XMP identity/signature tagging verification harness.

This package writes custom identity and signature XMP fields into PDF,
JPEG and PNG files through ExifTool, then proves with SHA-512 checksums
that tagging is deterministic, that metadata stays isolated from
content, and that relocation or read access never changes the bytes.
"""

__version__ = "0.1.0"

from harness import (
    ExifToolSession,
    HarnessConfig,
    MediaFile,
    ScenarioRunner,
    TagReader,
    TagSet,
    TagWriter,
    checksum_file,
    standard_scenarios,
)

__all__ = [
    "ExifToolSession",
    "HarnessConfig",
    "MediaFile",
    "ScenarioRunner",
    "TagReader",
    "TagSet",
    "TagWriter",
    "checksum_file",
    "standard_scenarios",
]
