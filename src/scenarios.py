"""Scenario definitions: steps, checksum expectations, and per-format policy.

A scenario is a small script over labelled files.  ``"input"`` is the
source fixture; every step produces a new label whose checksum is
snapshotted when the step runs.  Expectations compare two labels and
carry the rule they exercise, so the per-format policy table can decide
which of them are asserted.

Container formats do not all behave alike: ExifTool appends PDF edits as
incremental updates, so PDF files are exempt from the content-change
and deletion rules and from the A == C half of the chained-retag rule.
The chain's inequalities fall under the different-tags rule, which every
format asserts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from models import MediaFile, TagSet
from utils import output_name

INPUT_LABEL = "input"

DEFAULT_SIGNATURE = "randomSig"
DUMMY_SIGNATURE = "dummySig"


class Rule(str, Enum):
    SAME_TAGS = "same-tags"
    DIFFERENT_TAGS = "different-tags"
    TAGGING_CHANGES_CONTENT = "tagging-changes-content"
    CHAINED_RETAG = "chained-retag"
    TAG_DELETION = "tag-deletion"
    RELOCATION = "relocation"
    READ_ACCESS = "read-access"
    STABILITY = "stability"


@dataclass(frozen=True)
class FormatPolicy:
    """Which format-dependent rules are asserted for one container format."""

    tagging_changes_content: bool = True
    deletion_canonical: bool = True
    chain_canonical: bool = True

    def asserts(self, rule: Rule) -> bool:
        if rule is Rule.TAGGING_CHANGES_CONTENT:
            return self.tagging_changes_content
        if rule is Rule.TAG_DELETION:
            return self.deletion_canonical
        if rule is Rule.CHAINED_RETAG:
            return self.chain_canonical
        return True


FORMAT_POLICIES: dict[str, FormatPolicy] = {
    "PNG": FormatPolicy(),
    "JPEG": FormatPolicy(),
    "PDF": FormatPolicy(
        tagging_changes_content=False,
        deletion_canonical=False,
        chain_canonical=False,
    ),
}


def policy_for(fmt: str) -> FormatPolicy:
    """Return the policy for *fmt*; unknown formats get every rule asserted."""
    return FORMAT_POLICIES.get(fmt, FormatPolicy())


# ── Steps ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class WriteStep:
    """Tag the file at *source* into a new output labelled *label*."""

    label: str
    tags: TagSet
    source: str = INPUT_LABEL


@dataclass(frozen=True)
class ChecksumStep:
    """Digest *target* again under a new label."""

    label: str
    target: str


@dataclass(frozen=True)
class MoveStep:
    """Relocate *target* to *new_name*, optionally inside *subdir* of the work directory."""

    label: str
    target: str
    new_name: str
    subdir: str | None = None


@dataclass(frozen=True)
class ReadStep:
    """Open *target* for read access; by default its access time must move."""

    label: str
    target: str
    expect_atime_change: bool = True


@dataclass(frozen=True)
class StripStep:
    """Delete all tags from *target* in place; its backup is restored at cleanup."""

    label: str
    target: str


Step = Union[WriteStep, ChecksumStep, MoveStep, ReadStep, StripStep]


# ── Expectations ────────────────────────────────────────────────────


@dataclass(frozen=True)
class SameChecksum:
    left: str
    right: str
    rule: Rule

    expect_equal = True


@dataclass(frozen=True)
class DifferentChecksum:
    left: str
    right: str
    rule: Rule

    expect_equal = False


Expectation = Union[SameChecksum, DifferentChecksum]


@dataclass(frozen=True)
class Scenario:
    """One self-contained tagging/verification case."""

    name: str
    source: MediaFile
    steps: tuple[Step, ...] = ()
    expectations: tuple[Expectation, ...] = ()

    @property
    def policy(self) -> FormatPolicy:
        return policy_for(self.source.format)

    def labels(self) -> list[str]:
        return [INPUT_LABEL] + [step.label for step in self.steps]


# ── Builders ────────────────────────────────────────────────────────


def roundtrip_scenario(source: MediaFile, signature: str = DEFAULT_SIGNATURE) -> Scenario:
    """Write fresh tags and read them back."""
    return Scenario(
        name="roundtrip",
        source=source,
        steps=(WriteStep("tagged", TagSet.fresh(signature)),),
    )


def source_stability_scenario(source: MediaFile) -> Scenario:
    """The same untouched document digests identically twice."""
    return Scenario(
        name="stability",
        source=source,
        steps=(ChecksumStep("input_again", INPUT_LABEL),),
        expectations=(SameChecksum(INPUT_LABEL, "input_again", Rule.STABILITY),),
    )


def tagging_changes_content_scenario(source: MediaFile, signature: str = DUMMY_SIGNATURE) -> Scenario:
    """The digest before and after tagging differs."""
    return Scenario(
        name="before_after",
        source=source,
        steps=(WriteStep("tagged", TagSet.fresh(signature)),),
        expectations=(DifferentChecksum(INPUT_LABEL, "tagged", Rule.TAGGING_CHANGES_CONTENT),),
    )


def same_tags_scenario(source: MediaFile, signature: str = DUMMY_SIGNATURE) -> Scenario:
    """Two independent writes of the same tags give identical files."""
    tags = TagSet.fresh(signature)
    return Scenario(
        name="same_tags",
        source=source,
        steps=(WriteStep("1", tags), WriteStep("2", tags)),
        expectations=(SameChecksum("1", "2", Rule.SAME_TAGS),),
    )


def different_signature_scenario(
    source: MediaFile,
    signatures: tuple[str, str] = ("dummySig-1", "dummySig-2"),
) -> Scenario:
    """Same identity, different signatures: the outputs differ."""
    identity = TagSet.fresh(signatures[0]).identity
    return Scenario(
        name="different_signature",
        source=source,
        steps=(
            WriteStep("1", TagSet(identity, signatures[0])),
            WriteStep("2", TagSet(identity, signatures[1])),
        ),
        expectations=(DifferentChecksum("1", "2", Rule.DIFFERENT_TAGS),),
    )


def different_identity_scenario(source: MediaFile, signature: str = DUMMY_SIGNATURE) -> Scenario:
    """Same signature, different identities: the outputs differ."""
    return Scenario(
        name="different_identity",
        source=source,
        steps=(
            WriteStep("1", TagSet.fresh(signature)),
            WriteStep("2", TagSet.fresh(signature)),
        ),
        expectations=(DifferentChecksum("1", "2", Rule.DIFFERENT_TAGS),),
    )


def chained_retag_scenario(source: MediaFile) -> Scenario:
    """input -> A(T1) -> B(T2) -> C(T1): A and C match, B differs from both."""
    first = TagSet.fresh("chainSig-1")
    second = TagSet.fresh("chainSig-2")
    return Scenario(
        name="chain",
        source=source,
        steps=(
            WriteStep("A", first),
            WriteStep("B", second, source="A"),
            WriteStep("C", first, source="B"),
        ),
        expectations=(
            SameChecksum("A", "C", Rule.CHAINED_RETAG),
            DifferentChecksum("A", "B", Rule.DIFFERENT_TAGS),
            DifferentChecksum("B", "C", Rule.DIFFERENT_TAGS),
        ),
    )


def relocation_scenario(source: MediaFile, signature: str = DUMMY_SIGNATURE) -> Scenario:
    """Renaming and moving a tagged file keep its digest."""
    name = "relocation"
    return Scenario(
        name=name,
        source=source,
        steps=(
            WriteStep("tagged", TagSet.fresh(signature)),
            MoveStep("renamed", "tagged", output_name(source.path, name, "renamed")),
            MoveStep("moved", "renamed", output_name(source.path, name, "moved"), subdir="relocated"),
        ),
        expectations=(
            SameChecksum("tagged", "renamed", Rule.RELOCATION),
            SameChecksum("tagged", "moved", Rule.RELOCATION),
        ),
    )


def read_access_scenario(
    source: MediaFile,
    signature: str = DUMMY_SIGNATURE,
    expect_atime_change: bool = True,
) -> Scenario:
    """Opening a tagged file for read moves its access time but not its digest.

    Pass ``expect_atime_change=False`` on filesystems mounted ``noatime``.
    """
    return Scenario(
        name="read_access",
        source=source,
        steps=(
            WriteStep("tagged", TagSet.fresh(signature)),
            ReadStep("opened", "tagged", expect_atime_change),
        ),
        expectations=(SameChecksum("tagged", "opened", Rule.READ_ACCESS),),
    )


def tag_deletion_scenario(source: MediaFile, signature: str = DUMMY_SIGNATURE) -> Scenario:
    """Stripping the input and a tagged copy of it yields identical bytes.

    The input fixture itself is stripped in place and restored from its
    backup during cleanup.
    """
    return Scenario(
        name="deletion",
        source=source,
        steps=(
            WriteStep("tagged", TagSet.fresh(signature)),
            StripStep("tagged_stripped", "tagged"),
            StripStep("input_stripped", INPUT_LABEL),
        ),
        expectations=(SameChecksum("tagged_stripped", "input_stripped", Rule.TAG_DELETION),),
    )


def standard_scenarios(source: MediaFile) -> list[Scenario]:
    """Every built-in scenario for one input file."""
    return [
        roundtrip_scenario(source),
        source_stability_scenario(source),
        tagging_changes_content_scenario(source),
        same_tags_scenario(source),
        different_signature_scenario(source),
        different_identity_scenario(source),
        chained_retag_scenario(source),
        relocation_scenario(source),
        read_access_scenario(source),
        tag_deletion_scenario(source),
    ]
