"""End-to-end scenarios against the real ExifTool binary.

Every standard scenario runs once per supported format in a temporary
work directory, so the shared ``assets`` directory is never touched.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from checksum import checksum_file
from exiftool_session import ExifToolSession
from file_ops import list_output_files
from models import MediaFile, TagSet
from runner import ScenarioRunner, ScenarioState
from scenarios import (
    Rule,
    chained_retag_scenario,
    different_identity_scenario,
    different_signature_scenario,
    read_access_scenario,
    relocation_scenario,
    same_tags_scenario,
    source_stability_scenario,
    tag_deletion_scenario,
    tagging_changes_content_scenario,
)
from stripper import backup_path_for

from conftest import requires_exiftool

pytestmark = requires_exiftool


@pytest.fixture
def runner(exiftool_session: ExifToolSession, temp_dir: Path) -> ScenarioRunner:
    return ScenarioRunner(exiftool_session, temp_dir)


class TestEveryFormat:
    """Rules that hold for PDF, JPEG and PNG alike."""

    def test_stability(self, runner: ScenarioRunner, sample_media: Path) -> None:
        result = runner.run(source_stability_scenario(MediaFile.from_path(sample_media)))
        assert result.passed

    def test_same_tags_give_same_file(self, runner: ScenarioRunner, sample_media: Path) -> None:
        result = runner.run(same_tags_scenario(MediaFile.from_path(sample_media)))

        assert result.checksums["1"] == result.checksums["2"]
        assert result.tags_read["1"] == result.tags_read["2"]

    def test_different_signature_gives_different_file(self, runner: ScenarioRunner, sample_media: Path) -> None:
        result = runner.run(different_signature_scenario(MediaFile.from_path(sample_media)))
        assert result.checksums["1"] != result.checksums["2"]

    def test_different_identity_gives_different_file(self, runner: ScenarioRunner, sample_media: Path) -> None:
        result = runner.run(different_identity_scenario(MediaFile.from_path(sample_media)))
        assert result.checksums["1"] != result.checksums["2"]

    def test_relocation_keeps_checksum(self, runner: ScenarioRunner, sample_media: Path, temp_dir: Path) -> None:
        result = runner.run(relocation_scenario(MediaFile.from_path(sample_media)))

        assert result.checksums["tagged"] == result.checksums["moved"]
        assert list_output_files(temp_dir) == []

    def test_read_access_keeps_checksum(self, runner: ScenarioRunner, sample_media: Path, atime_tracked: bool) -> None:
        scenario = read_access_scenario(MediaFile.from_path(sample_media), expect_atime_change=atime_tracked)

        result = runner.run(scenario)

        assert result.checksums["tagged"] == result.checksums["opened"]
        assert result.read_accesses["opened"].bytes_read > 0


class TestFormatDependentRules:
    """Rules the PDF container is exempt from."""

    @pytest.mark.parametrize("fixture", ["sample_png", "sample_jpeg"])
    def test_tagging_changes_content(self, runner: ScenarioRunner, fixture: str, request: pytest.FixtureRequest) -> None:
        path = request.getfixturevalue(fixture)
        result = runner.run(tagging_changes_content_scenario(MediaFile.from_path(path)))

        assert result.checksums["input"] != result.checksums["tagged"]
        assert [e.rule for e in result.asserted] == [Rule.TAGGING_CHANGES_CONTENT]

    @pytest.mark.parametrize("fixture", ["sample_png", "sample_jpeg"])
    def test_chained_retag_is_canonical(self, runner: ScenarioRunner, fixture: str, request: pytest.FixtureRequest) -> None:
        path = request.getfixturevalue(fixture)
        result = runner.run(chained_retag_scenario(MediaFile.from_path(path)))

        assert result.checksums["A"] == result.checksums["C"]
        assert result.checksums["A"] != result.checksums["B"]

    @pytest.mark.parametrize("fixture", ["sample_png", "sample_jpeg_with_exif"])
    def test_deletion_is_canonical(self, runner: ScenarioRunner, fixture: str, request: pytest.FixtureRequest) -> None:
        path = request.getfixturevalue(fixture)
        before = checksum_file(path)

        result = runner.run(tag_deletion_scenario(MediaFile.from_path(path)))

        assert result.checksums["tagged_stripped"] == result.checksums["input_stripped"]
        assert checksum_file(path) == before
        assert not backup_path_for(path).exists()

    def test_pdf_exemptions_are_skipped(self, runner: ScenarioRunner, sample_pdf: Path) -> None:
        media = MediaFile.from_path(sample_pdf)

        results = runner.run_all(
            [tagging_changes_content_scenario(media), chained_retag_scenario(media), tag_deletion_scenario(media)]
        )

        assert all(r.state is ScenarioState.CLEANED and r.error is None for r in results)
        content_change, chain, deletion = results
        assert content_change.asserted == [] and deletion.asserted == []
        assert [e.rule for e in chain.skipped] == [Rule.CHAINED_RETAG]
        assert [e.rule for e in chain.asserted] == [Rule.DIFFERENT_TAGS, Rule.DIFFERENT_TAGS]


class TestSamplePng:
    """Concrete checks on a PNG fixture with the dummy signature."""

    def test_dummy_signature_round_trip(self, runner: ScenarioRunner, sample_png: Path) -> None:
        result = runner.run(same_tags_scenario(MediaFile.from_path(sample_png), signature="dummySig"))

        tags = result.tags_read["1"]
        assert tags.signature == "dummySig"
        assert tags == TagSet(tags.identity, "dummySig")
        assert len(result.checksums["1"]) == 128
