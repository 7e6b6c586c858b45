"""Public façade for the tagging harness: re-exports every symbol.

Consumers should ``import harness`` rather than reaching into the
internal modules directly.  This file gathers all public names so that
the API surface stays stable even as the implementation is reorganised.

Internal modules:

- ``constants``: formats, tag names, ExifTool options
- ``errors``: exception taxonomy
- ``config``: environment-driven settings
- ``utils``: format helpers
- ``models``: TagSet, MediaFile, TagReadResult
- ``checksum``: SHA-512 content digests
- ``exiftool_session``: the process-scoped ExifTool handle
- ``writer``: write tags into a new file
- ``reader``: read tags back
- ``stripper``: delete all tags and restore backups
- ``file_ops``: move/rename/delete, read-access records, cleanup
- ``scenarios``: steps, expectations, format policy, builders
- ``runner``: the scenario state machine
"""

from checksum import checksum_bytes, checksum_file, checksums_match
from config import HarnessConfig
from constants import (
    DEFAULT_SCENARIO_TIMEOUT,
    DEFAULT_WRITE_ARGS,
    IDENTITY_TAG,
    OUTPUT_PATTERN,
    SIGNATURE_TAG,
    SUPPORTED_FORMATS,
)
from errors import (
    ConfigurationError,
    FileAccessError,
    ScenarioAssertionError,
    ScenarioTimeoutError,
    TagHarnessError,
    ToolInvocationError,
)
from exiftool_session import ExifToolSession
from file_ops import (
    ReadAccess,
    delete,
    list_output_files,
    move,
    open_for_read,
    remove_output_files,
    rename,
)
from models import MediaFile, TagReadResult, TagSet
from reader import TagReader
from runner import ScenarioResult, ScenarioRunner, ScenarioState
from scenarios import (
    FORMAT_POLICIES,
    FormatPolicy,
    Rule,
    Scenario,
    chained_retag_scenario,
    different_identity_scenario,
    different_signature_scenario,
    read_access_scenario,
    relocation_scenario,
    roundtrip_scenario,
    same_tags_scenario,
    source_stability_scenario,
    standard_scenarios,
    tag_deletion_scenario,
    tagging_changes_content_scenario,
)
from stripper import delete_all_tags, restore_backups, restore_original
from utils import get_media_format, is_supported_format
from writer import TagWriter

__all__ = [
    # Constants
    "SUPPORTED_FORMATS",
    "IDENTITY_TAG",
    "SIGNATURE_TAG",
    "DEFAULT_WRITE_ARGS",
    "OUTPUT_PATTERN",
    "DEFAULT_SCENARIO_TIMEOUT",
    # Errors
    "TagHarnessError",
    "ConfigurationError",
    "ToolInvocationError",
    "FileAccessError",
    "ScenarioAssertionError",
    "ScenarioTimeoutError",
    # Config
    "HarnessConfig",
    # Utils
    "is_supported_format",
    "get_media_format",
    # Models
    "TagSet",
    "MediaFile",
    "TagReadResult",
    # Checksum
    "checksum_bytes",
    "checksum_file",
    "checksums_match",
    # ExifTool
    "ExifToolSession",
    "TagWriter",
    "TagReader",
    "delete_all_tags",
    "restore_original",
    "restore_backups",
    # File operations
    "ReadAccess",
    "move",
    "rename",
    "delete",
    "open_for_read",
    "list_output_files",
    "remove_output_files",
    # Scenarios
    "Rule",
    "FormatPolicy",
    "FORMAT_POLICIES",
    "Scenario",
    "roundtrip_scenario",
    "source_stability_scenario",
    "tagging_changes_content_scenario",
    "same_tags_scenario",
    "different_signature_scenario",
    "different_identity_scenario",
    "chained_retag_scenario",
    "relocation_scenario",
    "read_access_scenario",
    "tag_deletion_scenario",
    "standard_scenarios",
    # Runner
    "ScenarioRunner",
    "ScenarioResult",
    "ScenarioState",
]
