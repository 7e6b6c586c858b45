"""Tests for utils module."""

from pathlib import Path

from utils import get_media_format, is_supported_format, output_name, sniff_media_format


class TestIsSupportedFormat:
    """Tests for is_supported_format function."""

    def test_png_lowercase(self) -> None:
        assert is_supported_format(Path("image.png")) is True

    def test_png_uppercase(self) -> None:
        assert is_supported_format(Path("image.PNG")) is True

    def test_jpg_lowercase(self) -> None:
        assert is_supported_format(Path("image.jpg")) is True

    def test_jpeg_uppercase(self) -> None:
        assert is_supported_format(Path("image.JPEG")) is True

    def test_pdf(self) -> None:
        assert is_supported_format(Path("document.pdf")) is True

    def test_unsupported_gif(self) -> None:
        assert is_supported_format(Path("image.gif")) is False

    def test_unsupported_tiff(self) -> None:
        assert is_supported_format(Path("image.tiff")) is False

    def test_no_extension(self) -> None:
        assert is_supported_format(Path("image")) is False


class TestGetMediaFormat:
    """Tests for get_media_format function."""

    def test_png_returns_png(self) -> None:
        assert get_media_format(Path("image.png")) == "PNG"

    def test_jpg_returns_jpeg(self) -> None:
        assert get_media_format(Path("image.JPG")) == "JPEG"

    def test_pdf_returns_pdf(self) -> None:
        assert get_media_format(Path("doc.PDF")) == "PDF"

    def test_unknown_returns_none(self) -> None:
        assert get_media_format(Path("image.webp")) is None


class TestSniffMediaFormat:
    """Tests for sniff_media_format function."""

    def test_png(self, sample_png: Path) -> None:
        assert sniff_media_format(sample_png) == "PNG"

    def test_jpeg(self, sample_jpeg: Path) -> None:
        assert sniff_media_format(sample_jpeg) == "JPEG"

    def test_pdf(self, sample_pdf: Path) -> None:
        assert sniff_media_format(sample_pdf) == "PDF"

    def test_unknown_content(self, temp_dir: Path) -> None:
        path = temp_dir / "fake.png"
        path.write_bytes(b"not an image")
        assert sniff_media_format(path) is None

    def test_empty_file(self, temp_dir: Path) -> None:
        path = temp_dir / "empty.pdf"
        path.write_bytes(b"")
        assert sniff_media_format(path) is None


class TestOutputName:
    """Tests for output_name function."""

    def test_contains_out_marker(self) -> None:
        name = output_name(Path("assets/SAMPLE_PNG.png"), "same_tags", "1")
        assert name == "SAMPLE_PNG_same_tags_1_OUT.png"

    def test_keeps_suffix(self) -> None:
        assert output_name(Path("SAMPLE_PDF.pdf"), "chain", "A").endswith(".pdf")
