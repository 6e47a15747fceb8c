"""Download helpers for generated images."""
import asyncio
import base64
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from studio.models.image import GeneratedImage

logger = logging.getLogger(__name__)


def format_date(now: Optional[datetime] = None) -> str:
    """Timestamp used in download filenames, e.g. ``20261019-142530``."""
    return (now or datetime.now()).strftime("%Y%m%d-%H%M%S")


def download_filename(index: int, now: Optional[datetime] = None) -> str:
    """Filename for the image at 0-based ``index`` in the displayed list.

    Format: {index+1:03d}_{date}.png
    """
    return f"{index + 1:03d}_{format_date(now)}.png"


def save_download(image_base64: str, filename: str, directory: Path) -> Path:
    """Decode a base64 PNG and write it under ``directory``.

    Returns:
        Path of the written file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    file_path = directory / filename
    file_path.write_bytes(base64.b64decode(image_base64))
    return file_path


async def download_all(
    images: Sequence[GeneratedImage],
    directory: Path,
    stagger_seconds: float = 0.2,
) -> list[Path]:
    """Write every image in ``images`` to ``directory``, one after another.

    Sequence numbers are fixed from the list as it was at call time; each
    write waits ``stagger_seconds`` after the previous one. The date part of
    each filename is taken when that file is written.
    """
    snapshot = list(images)
    paths: list[Path] = []
    for index, image in enumerate(snapshot):
        if index > 0 and stagger_seconds > 0:
            await asyncio.sleep(stagger_seconds)
        paths.append(save_download(image.base64, download_filename(index), directory))
    logger.info("Downloaded %d image(s) to %s", len(paths), directory)
    return paths
