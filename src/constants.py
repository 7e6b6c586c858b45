"""Shared constants for format support, custom XMP tags, and ExifTool options.

All modules reference these constants rather than hard-coding values,
so renaming a tag or adding a format requires updating only this file.
"""

# Supported media formats, keyed by lowercase suffix
SUPPORTED_FORMATS = {
    ".pdf": "PDF",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
}

# Magic bytes used to confirm a file is what its suffix claims
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
PDF_SIGNATURE = b"%PDF-"

FORMAT_SIGNATURES = {
    "PNG": PNG_SIGNATURE,
    "JPEG": JPEG_SIGNATURE,
    "PDF": PDF_SIGNATURE,
}

# Custom XMP namespace holding the two harness fields
XMP_NAMESPACE_PREFIX = "xmptag"
XMP_NAMESPACE_URI = "http://ns.xmptag.dev/harness/1.0/"
XMP_GROUP = f"XMP-{XMP_NAMESPACE_PREFIX}"

IDENTITY_TAG = f"{XMP_GROUP}:Identity"
SIGNATURE_TAG = f"{XMP_GROUP}:Signature"

# ExifTool cannot write tags outside its built-in tables without this
# user definition loaded at process start.
EXIFTOOL_CONFIG_FILENAME = ".ExifTool_config"
EXIFTOOL_CONFIG = f"""\
%Image::ExifTool::UserDefined = (
    'Image::ExifTool::XMP::Main' => {{
        {XMP_NAMESPACE_PREFIX} => {{
            SubDirectory => {{
                TagTable => 'Image::ExifTool::UserDefined::{XMP_NAMESPACE_PREFIX}',
            }},
        }},
    }},
);

%Image::ExifTool::UserDefined::{XMP_NAMESPACE_PREFIX} = (
    GROUPS => {{ 0 => 'XMP', 1 => '{XMP_GROUP}', 2 => 'Other' }},
    NAMESPACE => {{ '{XMP_NAMESPACE_PREFIX}' => '{XMP_NAMESPACE_URI}' }},
    WRITABLE => 'string',
    Identity => {{ }},
    Signature => {{ }},
);

1;
"""

# Compact XMP keeps the added packet limited to the two custom fields
DEFAULT_WRITE_ARGS = ["-api", "Compact=Shorthand"]

# -G1 prefixes keys with the family 1 group (e.g. "XMP-xmptag:Identity")
EXIFTOOL_COMMON_ARGS = ["-G1", "-n"]

DELETE_ALL_TAGS_ARG = "-all="
BACKUP_SUFFIX = "_original"

FILE_ACCESS_DATE_KEY = "System:FileAccessDate"

MIN_EXIFTOOL_VERSION = "12.15"

# Generated artifacts carry "OUT" in their name
OUTPUT_MARKER = "OUT"
OUTPUT_PATTERN = r".*OUT.*$"

DEFAULT_SCENARIO_TIMEOUT = 30.0
DEFAULT_ASSETS_DIR = "assets"

CHECKSUM_ALGORITHM = "sha512"
CHECKSUM_HEX_LENGTH = 128
CHECKSUM_CHUNK_SIZE = 64 * 1024
