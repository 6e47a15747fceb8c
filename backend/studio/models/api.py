"""Request/response bodies for the studio HTTP API."""
from typing import Optional, Union

from pydantic import BaseModel, Field

from studio.models.image import AspectRatio, ImageStyle, Mode
from studio.models.state import MAX_IMAGE_COUNT


class ModeRequest(BaseModel):
    mode: Mode


class ImageCountRequest(BaseModel):
    count: int = Field(..., ge=1, le=MAX_IMAGE_COUNT)


class CharacterPatch(BaseModel):
    """Partial update of a character slot; omitted fields are left as they are."""

    name: Optional[str] = None
    selected: Optional[bool] = None


class StyleRequest(BaseModel):
    style: ImageStyle


class TextRequest(BaseModel):
    text: str = Field(..., max_length=10000)


class AspectRatioRequest(BaseModel):
    """Ratio choice; width/height are raw field input, used for Custom only."""

    aspect_ratio: AspectRatio
    width: Union[int, str, None] = None
    height: Union[int, str, None] = None


class DownloadAllResponse(BaseModel):
    directory: str
    files: list[str]
