"""Run tagging scenarios and assert their checksum relationships.

Each scenario moves through ``INIT -> TAGGED -> (RETAGGED)* -> VERIFIED
-> CLEANED``:

1. Steps run in order.  Every write is read back and its tags compared
   with what was written, and the file it was derived from must keep its
   checksum.
2. Expectations are evaluated against checksum snapshots, skipping the
   rules the input's format policy exempts.
3. Cleanup always runs: stripped files are restored from their ExifTool
   backups first, then generated artifacts are deleted.

Nothing is retried.  The first failed assertion aborts the scenario
with both literal digests in the message.  A watchdog timer kills the
ExifTool process when the budget runs out, so a hung call fails the
scenario with ``ScenarioTimeoutError`` instead of blocking forever.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable

from checksum import checksum_file, checksums_match
from config import HarnessConfig
from constants import DEFAULT_SCENARIO_TIMEOUT
from errors import FileAccessError, ScenarioAssertionError, ScenarioTimeoutError, TagHarnessError
from exiftool_session import ExifToolSession
from file_ops import ReadAccess, delete, move, open_for_read
from models import TagSet
from reader import TagReader
from scenarios import (
    INPUT_LABEL,
    ChecksumStep,
    Expectation,
    MoveStep,
    ReadStep,
    Rule,
    Scenario,
    Step,
    StripStep,
    WriteStep,
)
from stripper import delete_all_tags, restore_original
from utils import output_name
from writer import TagWriter

logger = logging.getLogger(__name__)

# ExifTool reports file dates with one-second resolution
_ACCESS_DATE_TOLERANCE = 2.0


class ScenarioState(str, Enum):
    INIT = "init"
    TAGGED = "tagged"
    RETAGGED = "retagged"
    VERIFIED = "verified"
    CLEANED = "cleaned"


@dataclass
class ScenarioResult:
    """What one scenario observed."""

    name: str
    format: str
    state: ScenarioState = ScenarioState.INIT
    paths: dict[str, Path] = field(default_factory=dict)
    checksums: dict[str, str] = field(default_factory=dict)
    tags_read: dict[str, TagSet] = field(default_factory=dict)
    read_accesses: dict[str, ReadAccess] = field(default_factory=dict)
    reported_access: dict[str, float | None] = field(default_factory=dict)
    asserted: list[Expectation] = field(default_factory=list)
    skipped: list[Expectation] = field(default_factory=list)
    elapsed: float = 0.0
    error: Exception | None = None

    @property
    def passed(self) -> bool:
        return self.error is None and self.state is ScenarioState.CLEANED


@dataclass
class _Workspace:
    artifacts: list[Path] = field(default_factory=list)
    stripped: list[Path] = field(default_factory=list)
    created_dirs: list[Path] = field(default_factory=list)


class _Watchdog:
    """Calls *on_expire* from a timer thread once *budget* seconds have passed."""

    def __init__(self, budget: float, on_expire: Callable[[], None]) -> None:
        self._on_expire = on_expire
        self._expired = threading.Event()
        self._timer = threading.Timer(budget, self._fire)
        self._timer.daemon = True

    @property
    def expired(self) -> bool:
        return self._expired.is_set()

    def start(self) -> None:
        self._timer.start()

    def cancel(self) -> None:
        self._timer.cancel()

    def _fire(self) -> None:
        self._expired.set()
        self._on_expire()


class ScenarioRunner:
    """Executes scenarios against one ExifTool session."""

    def __init__(
        self,
        session: ExifToolSession,
        work_dir: Path,
        budget_seconds: float = DEFAULT_SCENARIO_TIMEOUT,
        keep_outputs: bool = False,
    ) -> None:
        """
        Args:
            session: The session-wide ExifTool handle.
            work_dir: Directory receiving generated ``OUT`` files.
            budget_seconds: Wall-clock budget per scenario.
            keep_outputs: Leave generated files in place after each scenario.
        """
        self.session = session
        self.work_dir = Path(work_dir)
        self.budget_seconds = budget_seconds
        self.keep_outputs = keep_outputs
        self.writer = TagWriter(session)
        self.reader = TagReader(session)

    @classmethod
    def from_config(
        cls,
        session: ExifToolSession,
        config: HarnessConfig,
        work_dir: Path | None = None,
    ) -> ScenarioRunner:
        return cls(
            session,
            work_dir if work_dir is not None else config.assets_dir,
            budget_seconds=config.scenario_timeout,
            keep_outputs=config.keep_outputs,
        )

    # ── Public API ───────────────────────────────────────────────────

    def run(self, scenario: Scenario) -> ScenarioResult:
        """
        Run one scenario.

        Returns:
            The result, in state CLEANED.

        Raises:
            ScenarioAssertionError: On the first mismatch.
            ScenarioTimeoutError: When the budget is exceeded.
            ToolInvocationError: When ExifTool fails.
            FileAccessError: When a file cannot be read or moved.
            ValueError: When the scenario refers to unknown labels.
        """
        result = ScenarioResult(name=scenario.name, format=scenario.source.format)
        self._execute(scenario, result)
        return result

    def run_all(self, scenarios: Iterable[Scenario]) -> list[ScenarioResult]:
        """Run scenarios one after another; a failure does not stop the rest."""
        results = []
        for scenario in scenarios:
            result = ScenarioResult(name=scenario.name, format=scenario.source.format)
            try:
                self._execute(scenario, result)
            except (TagHarnessError, ValueError, TypeError) as e:
                result.error = e
                logger.error(f"Scenario {scenario.name} ({result.format}) failed: {e}")
            results.append(result)
        return results

    # ── State machine ────────────────────────────────────────────────

    def _execute(self, scenario: Scenario, result: ScenarioResult) -> None:
        _validate(scenario)
        started = time.monotonic()
        workspace = _Workspace()
        logger.info("Scenario %s started on %s", scenario.name, scenario.source.path)

        watchdog = _Watchdog(self.budget_seconds, lambda: self._on_budget_expired(scenario))
        watchdog.start()
        try:
            result.paths[INPUT_LABEL] = scenario.source.path
            result.checksums[INPUT_LABEL] = checksum_file(scenario.source.path)

            for step in scenario.steps:
                self._check_budget(scenario, started)
                self._apply(step, scenario, result, workspace)

            self._check_budget(scenario, started)
            self._verify(scenario, result)
            result.state = ScenarioState.VERIFIED
        except BaseException as e:
            watchdog.cancel()
            self._cleanup(workspace, result, raise_errors=False)
            result.elapsed = time.monotonic() - started
            if watchdog.expired and isinstance(e, Exception) and not isinstance(e, ScenarioTimeoutError):
                raise ScenarioTimeoutError(scenario.name, self.budget_seconds, result.elapsed) from e
            raise

        watchdog.cancel()
        self._cleanup(workspace, result, raise_errors=True)
        result.elapsed = time.monotonic() - started
        logger.info(
            "Scenario %s passed in %.2fs (%d asserted, %d skipped)",
            scenario.name, result.elapsed, len(result.asserted), len(result.skipped),
        )

    def _on_budget_expired(self, scenario: Scenario) -> None:
        logger.warning(
            "Scenario %s exceeded its %.1fs budget, interrupting ExifTool",
            scenario.name, self.budget_seconds,
        )
        self.session.interrupt()

    def _check_budget(self, scenario: Scenario, started: float) -> None:
        elapsed = time.monotonic() - started
        if elapsed > self.budget_seconds:
            raise ScenarioTimeoutError(scenario.name, self.budget_seconds, elapsed)

    def _apply(
        self,
        step: Step,
        scenario: Scenario,
        result: ScenarioResult,
        workspace: _Workspace,
    ) -> None:
        logger.debug("Scenario %s: %s", scenario.name, step)

        if isinstance(step, WriteStep):
            path = self._write(step, scenario, result, workspace)
        elif isinstance(step, ChecksumStep):
            path = result.paths[step.target]
        elif isinstance(step, MoveStep):
            path = self._move(step, result, workspace)
        elif isinstance(step, ReadStep):
            path = result.paths[step.target]
            access = open_for_read(path)
            result.read_accesses[step.label] = access
            if step.expect_atime_change and not access.atime_changed:
                raise ScenarioAssertionError(
                    f"[{scenario.name}] opening '{path}' for read did not move its access time "
                    f"(before {access.atime_before}, after {access.atime_after})",
                    rule=Rule.READ_ACCESS,
                    expected=f"!= {access.atime_before}",
                    actual=access.atime_after,
                )
            self._check_reported_access(step, scenario, path, access, result)
        elif isinstance(step, StripStep):
            path = result.paths[step.target]
            delete_all_tags(self.session, path)
            workspace.stripped.append(path)
        else:
            raise TypeError(f"Unknown scenario step: {step!r}")

        result.paths[step.label] = path
        result.checksums[step.label] = checksum_file(path)

    def _check_reported_access(
        self,
        step: ReadStep,
        scenario: Scenario,
        path: Path,
        access: ReadAccess,
        result: ScenarioResult,
    ) -> None:
        """ExifTool's FileAccessDate must agree with the access time seen after the read."""
        reported = self.reader.read(path).file_access_timestamp
        result.reported_access[step.label] = reported
        if reported is None or abs(reported - access.atime_after) > _ACCESS_DATE_TOLERANCE:
            raise ScenarioAssertionError(
                f"[{scenario.name}] ExifTool reports access date {reported} for '{path}' "
                f"but the filesystem reports {access.atime_after}",
                rule=Rule.READ_ACCESS,
                expected=access.atime_after,
                actual=reported,
            )

    def _write(
        self,
        step: WriteStep,
        scenario: Scenario,
        result: ScenarioResult,
        workspace: _Workspace,
    ) -> Path:
        source_path = result.paths[step.source]
        source_before = checksum_file(source_path)
        output = self.work_dir / output_name(scenario.source.path, scenario.name, step.label)

        workspace.artifacts.append(output)
        self.writer.write(source_path, step.tags, output)

        read_back = self.reader.read_tags(output)
        result.tags_read[step.label] = read_back
        if read_back != step.tags:
            raise ScenarioAssertionError(
                f"[{scenario.name}] tags read back from '{output}' differ from the written ones: "
                f"expected {step.tags}, got {read_back}",
                expected=step.tags,
                actual=read_back,
            )

        source_after = checksum_file(source_path)
        if not checksums_match(source_before, source_after):
            raise ScenarioAssertionError(
                f"[{scenario.name}] writing '{step.label}' modified its source '{source_path}'\n"
                f"  before: {source_before}\n  after:  {source_after}",
                expected=source_before,
                actual=source_after,
            )

        if result.state is ScenarioState.INIT:
            result.state = ScenarioState.TAGGED
        else:
            result.state = ScenarioState.RETAGGED
        return output

    def _move(self, step: MoveStep, result: ScenarioResult, workspace: _Workspace) -> Path:
        source_path = result.paths[step.target]
        if source_path == result.paths[INPUT_LABEL]:
            raise ValueError("Refusing to relocate the scenario input")

        dest_dir = self.work_dir
        if step.subdir:
            dest_dir = self.work_dir / step.subdir
            if not dest_dir.exists():
                workspace.created_dirs.append(dest_dir)

        moved = move(source_path, dest_dir / step.new_name)
        workspace.artifacts.append(moved)
        return moved

    def _verify(self, scenario: Scenario, result: ScenarioResult) -> None:
        policy = scenario.policy
        for expectation in scenario.expectations:
            if not policy.asserts(expectation.rule):
                logger.debug(
                    "Scenario %s: %s not asserted for %s",
                    scenario.name, expectation.rule.value, scenario.source.format,
                )
                result.skipped.append(expectation)
                continue

            left = result.checksums[expectation.left]
            right = result.checksums[expectation.right]
            if checksums_match(left, right) != expectation.expect_equal:
                relation = "==" if expectation.expect_equal else "!="
                raise ScenarioAssertionError(
                    f"[{scenario.name}] {expectation.rule.value}: expected "
                    f"checksum({expectation.left}) {relation} checksum({expectation.right})\n"
                    f"  {expectation.left}: {left}\n  {expectation.right}: {right}",
                    rule=expectation.rule,
                    expected=left if expectation.expect_equal else f"!= {left}",
                    actual=right,
                )
            result.asserted.append(expectation)

    def _cleanup(self, workspace: _Workspace, result: ScenarioResult, raise_errors: bool) -> None:
        errors: list[FileAccessError] = []

        for path in reversed(workspace.stripped):
            try:
                restore_original(path)
            except FileAccessError as e:
                logger.warning(f"Could not restore {path}: {e}")
                errors.append(e)

        if not self.keep_outputs:
            for path in workspace.artifacts:
                try:
                    delete(path)
                except FileAccessError as e:
                    logger.warning(f"Could not delete {path}: {e}")
                    errors.append(e)
            for directory in reversed(workspace.created_dirs):
                try:
                    if directory.is_dir() and not any(directory.iterdir()):
                        directory.rmdir()
                except OSError as e:
                    logger.warning(f"Could not remove {directory}: {e}")
                    errors.append(FileAccessError(f"Cannot remove '{directory}': {e}", directory))

        result.state = ScenarioState.CLEANED
        if raise_errors and errors:
            raise errors[0]


def _validate(scenario: Scenario) -> None:
    known = {INPUT_LABEL}
    for step in scenario.steps:
        refs = [step.source] if isinstance(step, WriteStep) else [step.target]
        for ref in refs:
            if ref not in known:
                raise ValueError(f"Scenario '{scenario.name}': step '{step.label}' refers to unknown label '{ref}'")
        if step.label in known:
            raise ValueError(f"Scenario '{scenario.name}': duplicate label '{step.label}'")
        known.add(step.label)

    for expectation in scenario.expectations:
        for ref in (expectation.left, expectation.right):
            if ref not in known:
                raise ValueError(f"Scenario '{scenario.name}': expectation refers to unknown label '{ref}'")
