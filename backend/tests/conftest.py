"""Shared test fixtures and configuration."""
import base64
from typing import Iterator

import pytest

from studio.models.image import ImageAsset

# 1x1 transparent PNG
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


@pytest.fixture(autouse=True)
def set_required_env_vars(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Set the Gemini credential for all tests and reset cached settings."""
    from studio.core.config import get_settings

    monkeypatch.setenv("GEMINI_API_KEY", "test-api-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def png_base64() -> str:
    return PNG_BASE64


@pytest.fixture
def png_bytes() -> bytes:
    return base64.b64decode(PNG_BASE64)


@pytest.fixture
def asset() -> ImageAsset:
    return ImageAsset(base64=PNG_BASE64, mime_type="image/png")


@pytest.fixture
def other_asset() -> ImageAsset:
    return ImageAsset(base64=base64.b64encode(b"jpeg-bytes").decode(), mime_type="image/jpeg")
