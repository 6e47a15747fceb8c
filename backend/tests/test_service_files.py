"""Tests for download helpers."""
import re
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, patch

from studio.models.image import GeneratedImage
from studio.services import files


def test_format_date() -> None:
    assert files.format_date(datetime(2026, 3, 4, 5, 6, 7)) == "20260304-050607"


def test_download_filename_is_one_based_and_padded() -> None:
    now = datetime(2026, 1, 2, 3, 4, 5)
    assert files.download_filename(0, now) == "001_20260102-030405.png"
    assert files.download_filename(41, now) == "042_20260102-030405.png"


def test_download_filename_uses_current_time() -> None:
    assert re.fullmatch(r"007_\d{8}-\d{6}\.png", files.download_filename(6))


def test_save_download_writes_decoded_png(tmp_path: Path, png_base64: str, png_bytes: bytes) -> None:
    """The directory is created and the decoded bytes are written."""
    target = tmp_path / "nested" / "dir"
    path = files.save_download(png_base64, "001_x.png", target)
    assert path == target / "001_x.png"
    assert path.read_bytes() == png_bytes


class TestDownloadAll:
    async def test_writes_one_file_per_image_in_list_order(
        self, tmp_path: Path, png_base64: str
    ) -> None:
        images = [GeneratedImage(prompt=f"p{i}", base64=png_base64) for i in range(3)]
        paths = await files.download_all(images, tmp_path, stagger_seconds=0)
        assert [p.name[:4] for p in paths] == ["001_", "002_", "003_"]
        assert all(p.exists() for p in paths)

    async def test_staggers_between_files(self, tmp_path: Path, png_base64: str) -> None:
        """Each write after the first waits the stagger delay."""
        images = [GeneratedImage(prompt=f"p{i}", base64=png_base64) for i in range(3)]
        with patch.object(files.asyncio, "sleep", new=AsyncMock()) as sleep:
            await files.download_all(images, tmp_path, stagger_seconds=0.2)
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.2)

    async def test_empty_list_writes_nothing(self, tmp_path: Path) -> None:
        assert await files.download_all([], tmp_path / "out") == []
        assert not (tmp_path / "out").exists()
