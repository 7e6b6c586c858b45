"""Test configuration and fixtures."""

from __future__ import annotations

import json
import shutil
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

import piexif
import pytest
from exiftool.exceptions import ExifToolExecuteError
from PIL import Image

from config import HarnessConfig
from exiftool_session import ExifToolSession
from file_ops import remove_output_files
from stripper import restore_backups

EXIFTOOL_AVAILABLE = shutil.which("exiftool") is not None

requires_exiftool = pytest.mark.skipif(not EXIFTOOL_AVAILABLE, reason="exiftool not installed")


# ── Sample inputs ───────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_png(temp_dir: Path) -> Path:
    """Create a sample PNG image for testing."""
    img_path = temp_dir / "SAMPLE_PNG.png"
    img = Image.new("RGB", (100, 100), color="red")
    img.save(img_path, "PNG")
    return img_path


@pytest.fixture
def sample_jpeg(temp_dir: Path) -> Path:
    """Create a sample JPEG image for testing."""
    img_path = temp_dir / "SAMPLE_JPEG.jpeg"
    img = Image.new("RGB", (100, 100), color="blue")
    img.save(img_path, "JPEG")
    return img_path


@pytest.fixture
def sample_jpeg_with_exif(temp_dir: Path) -> Path:
    """Create a JPEG that already carries EXIF fields."""
    img_path = temp_dir / "SAMPLE_EXIF.jpg"
    img = Image.new("RGB", (64, 64), color="green")

    exif_dict = {
        "0th": {
            piexif.ImageIFD.Make: b"TestCam",
            piexif.ImageIFD.Artist: b"Test Author",
        },
        "Exif": {},
        "1st": {},
        "GPS": {},
        "Interop": {},
    }
    img.save(img_path, "JPEG", exif=piexif.dump(exif_dict))
    return img_path


@pytest.fixture
def sample_pdf(temp_dir: Path) -> Path:
    """Create a single-page sample PDF for testing."""
    pdf_path = temp_dir / "SAMPLE_PDF.pdf"
    img = Image.new("RGB", (200, 100), color="white")
    img.save(pdf_path, "PDF")
    return pdf_path


@pytest.fixture(params=["sample_png", "sample_jpeg", "sample_pdf"])
def sample_media(request: pytest.FixtureRequest) -> Path:
    """Each supported format in turn."""
    return request.getfixturevalue(request.param)


@pytest.fixture
def atime_tracked(temp_dir: Path) -> bool:
    """Whether the temp filesystem records read access times."""
    from file_ops import open_for_read

    marker_file = temp_dir / "atime_check.bin"
    marker_file.write_bytes(b"atime")
    tracked = open_for_read(marker_file).atime_changed
    marker_file.unlink()
    return tracked


# ── ExifTool ────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def exiftool_session() -> Generator[ExifToolSession, None, None]:
    """One real ExifTool process shared by the whole test session."""
    if not EXIFTOOL_AVAILABLE:
        pytest.skip("exiftool not installed")

    config = HarnessConfig.from_env()
    session = ExifToolSession.from_config(config)
    session.start()
    yield session
    session.close()

    if not config.keep_outputs and config.assets_dir.is_dir():
        restore_backups(config.assets_dir)
        remove_output_files(config.assets_dir)


_FAKE_MARKER = b"\n%%FAKE-XMP "


class FakeExifToolHelper:
    """In-memory stand-in for ``ExifToolHelper``.

    Tags are appended to the file as a JSON trailer, so writes are
    deterministic in (input bytes, tags) and ``-all=`` strips them back
    to the untagged bytes.
    """

    def __init__(self, version: str = "12.76") -> None:
        self.running = False
        self.version = version
        self.run_calls = 0
        self.terminate_calls = 0
        self.calls: list[tuple[str, Any]] = []
        self.fail_next: str | None = None
        self.hang = False
        self._killed = threading.Event()

    def run(self) -> None:
        self.run_calls += 1
        self._killed.clear()
        self.running = True

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.running = False
        self._killed.set()

    def _maybe_fail(self, params: list[str]) -> None:
        if self.fail_next is not None:
            stderr, self.fail_next = self.fail_next, None
            raise ExifToolExecuteError(1, "", stderr, params)

    @staticmethod
    def _split(data: bytes) -> tuple[bytes, dict[str, str]]:
        idx = data.rfind(_FAKE_MARKER)
        if idx < 0:
            return data, {}
        return data[:idx], json.loads(data[idx + len(_FAKE_MARKER):].decode("utf-8"))

    def set_tags(self, files: str, tags: dict[str, str], params: list[str] | None = None) -> str:
        params = list(params or [])
        self.calls.append(("set_tags", (files, dict(tags), params)))
        self._maybe_fail(params)
        if self.hang:
            # Blocks like a stuck -stay_open call until the process is killed
            self._killed.wait(timeout=10)
            raise ExifToolExecuteError(-9, "", "exiftool process terminated", params)

        output = Path(params[params.index("-o") + 1]) if "-o" in params else Path(files)
        if output.exists() and output != Path(files):
            raise ExifToolExecuteError(1, "", f"Error: '{output}' already exists", params)

        body, existing = self._split(Path(files).read_bytes())
        existing.update(tags)
        trailer = json.dumps(existing, sort_keys=True).encode("utf-8")
        output.write_bytes(body + _FAKE_MARKER + trailer)
        return "    1 image files created"

    def get_metadata(self, files: str, params: list[str] | None = None) -> list[dict[str, Any]]:
        self.calls.append(("get_metadata", (files, params)))
        self._maybe_fail(list(params or []))

        path = Path(files)
        accessed = datetime.fromtimestamp(path.stat().st_atime, tz=timezone.utc)
        _, tags = self._split(path.read_bytes())
        row: dict[str, Any] = {
            "SourceFile": files,
            "System:FileName": path.name,
            "System:FileAccessDate": accessed.strftime("%Y:%m:%d %H:%M:%S+00:00"),
        }
        row.update(tags)
        return [row]

    def execute(self, *params: str) -> str:
        self.calls.append(("execute", params))
        self._maybe_fail(list(params))

        if params and params[0] == "-all=":
            path = Path(params[1])
            data = path.read_bytes()
            shutil.copyfile(path, path.with_name(path.name + "_original"))
            body, _ = self._split(data)
            path.write_bytes(body)
            return "    1 image files updated"
        return ""


@pytest.fixture
def fake_helper() -> FakeExifToolHelper:
    return FakeExifToolHelper()


@pytest.fixture
def fake_session(fake_helper: FakeExifToolHelper) -> Generator[ExifToolSession, None, None]:
    """An ExifTool session backed by the in-memory fake helper."""
    session = ExifToolSession(helper=fake_helper)
    yield session
    session.close()
