"""
Defines the harness exceptions so callers can tell a broken tool from a broken invariant.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class TagHarnessError(Exception):
    """Base exception for all harness errors."""


class ConfigurationError(TagHarnessError):
    """Raised when an environment setting cannot be parsed."""


class ToolInvocationError(TagHarnessError):
    """Raised when ExifTool exits non-zero, returns malformed output, or cannot handle the format."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        if self.returncode is not None:
            message = f"{message} (exit status {self.returncode})"
        if self.stderr:
            message = f"{message}: {self.stderr.strip()}"
        return message


class FileAccessError(TagHarnessError):
    """Raised when a file is missing or cannot be read, moved, or deleted."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ScenarioAssertionError(TagHarnessError, AssertionError):
    """Raised when an observed tag value or checksum differs from the expected one."""

    def __init__(self, message: str, rule: Any = None, expected: Any = None, actual: Any = None) -> None:
        super().__init__(message)
        self.rule = rule
        self.expected = expected
        self.actual = actual


class ScenarioTimeoutError(TagHarnessError, TimeoutError):
    """Raised when a scenario runs past its wall-clock budget."""

    def __init__(self, scenario: str, budget: float, elapsed: float) -> None:
        super().__init__(
            f"Scenario '{scenario}' exceeded its {budget:.1f}s budget ({elapsed:.1f}s elapsed)"
        )
        self.scenario = scenario
        self.budget = budget
        self.elapsed = elapsed
