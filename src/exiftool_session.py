"""Process-scoped handle on the long-lived ExifTool process.

One ``exiftool -stay_open`` process (driven through pyexiftool's
``ExifToolHelper``) serves a whole test session:

1. It starts lazily on first use, or eagerly through ``start()``.
2. Its version is checked once, right after it starts.
3. ``interrupt()`` kills a stuck process; the next call starts a new one.
4. ``close()`` terminates it exactly once.

The session is passed explicitly to the writer, reader, stripper and
scenario runner instead of living in module-level state, so separate
sessions can coexist.

ExifTool only writes the custom ``XMP-xmptag`` fields when their
definition is loaded at process start, so unless a config file is
supplied the session writes the bundled definition into a private
temporary directory.
"""

from __future__ import annotations

import contextlib
import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any, Iterator

from exiftool import ExifToolHelper
from exiftool.exceptions import ExifToolException, ExifToolExecuteError

from config import HarnessConfig
from constants import (
    EXIFTOOL_COMMON_ARGS,
    EXIFTOOL_CONFIG,
    EXIFTOOL_CONFIG_FILENAME,
    MIN_EXIFTOOL_VERSION,
)
from errors import ToolInvocationError

logger = logging.getLogger(__name__)


def parse_version(version: str) -> tuple[int, ...]:
    """Turn an ExifTool version string such as ``"12.76"`` into a comparable tuple."""
    try:
        return tuple(int(part) for part in version.strip().split("."))
    except ValueError as e:
        raise ToolInvocationError(f"Unrecognized ExifTool version: {version!r}") from e


@contextlib.contextmanager
def translate_tool_errors(action: str) -> Iterator[None]:
    """Re-raise pyexiftool failures as ``ToolInvocationError``."""
    try:
        yield
    except ExifToolExecuteError as e:
        raise ToolInvocationError(
            f"ExifTool failed to {action}",
            returncode=getattr(e, "returncode", None),
            stderr=getattr(e, "stderr", None),
        ) from e
    except ExifToolException as e:
        raise ToolInvocationError(f"ExifTool failed to {action}: {e}") from e


class ExifToolSession:
    """Owns one ExifTool process for the duration of a test session."""

    def __init__(
        self,
        executable: str | None = None,
        config_file: Path | str | None = None,
        helper: Any = None,
    ) -> None:
        """
        Args:
            executable: ExifTool executable. Defaults to ``exiftool`` on ``PATH``.
            config_file: ExifTool config declaring the custom namespace.
                Defaults to the bundled definition.
            helper: Pre-built helper object with the ``ExifToolHelper``
                interface. Used instead of spawning a process.
        """
        self._executable = executable
        self._config_file = Path(config_file) if config_file else None
        self._helper = helper
        self._owned_config_dir: Path | None = None
        self._version: str | None = None
        self._closed = False
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: HarnessConfig) -> ExifToolSession:
        return cls(
            executable=config.exiftool_executable,
            config_file=config.exiftool_config_file,
        )

    # ── Lifecycle ────────────────────────────────────────────────────

    @property
    def started(self) -> bool:
        return self._version is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def version(self) -> str:
        """ExifTool version, starting the process if needed."""
        self.start()
        assert self._version is not None
        return self._version

    def start(self) -> str:
        """
        Start the ExifTool process and check its version.

        Calling it again on a started session is a no-op.

        Returns:
            The ExifTool version string.

        Raises:
            ToolInvocationError: If the session is closed, the executable
                cannot be launched, or the version is too old.
        """
        if self._closed:
            raise ToolInvocationError("ExifTool session is already closed")
        if self._version is not None:
            return self._version

        helper = self._helper if self._helper is not None else self._build_helper()
        with translate_tool_errors("start"):
            if not helper.running:
                helper.run()
            version = str(helper.version)
        self._helper = helper

        if parse_version(version) < parse_version(MIN_EXIFTOOL_VERSION):
            self._terminate()
            raise ToolInvocationError(
                f"ExifTool {version} is too old, {MIN_EXIFTOOL_VERSION} or newer is required"
            )

        self._version = version
        logger.info("Running ExifTool v%s", version)
        return version

    def close(self) -> None:
        """Terminate the ExifTool process. Later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        self._terminate()
        if self._owned_config_dir is not None:
            shutil.rmtree(self._owned_config_dir, ignore_errors=True)
            self._owned_config_dir = None
        logger.debug("ExifTool session closed")

    def __enter__(self) -> ExifToolSession:
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def interrupt(self) -> None:
        """
        Kill the ExifTool process from another thread.

        A call blocked on the process fails once it is gone.  The session
        stays open: the next operation starts a fresh process.
        """
        if self._closed:
            return
        try:
            self._terminate()
        except (ExifToolException, OSError) as e:
            logger.warning(f"Could not terminate ExifTool cleanly: {e}")
        self._version = None
        logger.warning("ExifTool process interrupted")

    def _terminate(self) -> None:
        with self._lock:
            if self._helper is not None and self._helper.running:
                self._helper.terminate()

    def _build_helper(self) -> ExifToolHelper:
        config_file = self._config_file or self._write_bundled_config()
        try:
            return ExifToolHelper(
                executable=self._executable,
                common_args=list(EXIFTOOL_COMMON_ARGS),
                config_file=str(config_file),
            )
        except OSError as e:
            raise ToolInvocationError(f"Cannot launch ExifTool: {e}") from e

    def _write_bundled_config(self) -> Path:
        self._owned_config_dir = Path(tempfile.mkdtemp(prefix="xmptag-"))
        config_path = self._owned_config_dir / EXIFTOOL_CONFIG_FILENAME
        config_path.write_text(EXIFTOOL_CONFIG, encoding="utf-8")
        logger.debug(f"Wrote ExifTool config to {config_path}")
        return config_path

    # ── Tool operations ──────────────────────────────────────────────

    def set_tags(self, path: Path, tags: dict[str, str], params: list[str] | None = None) -> str:
        """Write *tags* through ExifTool; *params* go before the assignments."""
        helper = self._running_helper()
        with translate_tool_errors(f"write tags to '{path}'"):
            return helper.set_tags(str(path), tags, params=params)

    def get_metadata(self, path: Path, params: list[str] | None = None) -> list[dict[str, Any]]:
        """Read every tag of *path* as ExifTool JSON rows."""
        helper = self._running_helper()
        with translate_tool_errors(f"read tags from '{path}'"):
            return helper.get_metadata(str(path), params=params)

    def execute(self, *params: str) -> str:
        """Run a raw ExifTool command in the running process."""
        helper = self._running_helper()
        with translate_tool_errors(f"execute {' '.join(params)}"):
            return helper.execute(*params)

    def _running_helper(self) -> Any:
        self.start()
        return self._helper
