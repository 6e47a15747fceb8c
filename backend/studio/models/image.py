"""Image, character and generation-request data models."""
import base64
import binascii
import random
import re
import time
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Mode(str, Enum):
    """The four independent generation workflows."""

    story = "story"
    item_swap = "item_swap"
    face_swap = "face_swap"
    background_removal = "background_removal"


class AspectRatio(str, Enum):
    """Ratio choices offered to the user."""

    square = "1:1"
    widescreen = "16:9"
    portrait = "9:16"
    standard = "4:3"
    custom = "Custom"


# Ratios the image model accepts as an explicit imageConfig hint.
SUPPORTED_ASPECT_RATIOS: frozenset[str] = frozenset({"1:1", "3:4", "4:3", "9:16", "16:9"})


class ImageStyle(str, Enum):
    """Named art styles for story scenes."""

    default = "Default"
    cyberpunk = "Cyberpunk"
    anime = "Anime"
    watercolor = "Watercolor Painting"
    cinematic = "Cinematic"
    glitch_art = "Glitch Art"
    pop_surrealism = "Pop Surrealism"
    art_deco_revival = "Art Deco Revival"
    abstract_data_art = "Abstract Data Art"
    kinetic_art = "Kinetic Art"
    ascii_art_overlay = "ASCII Art Overlay"
    synesthesia_art = "Synesthesia Art"
    sumi_e = "Sumi-e Art"
    low_poly_3d = "Low Poly 3D"


_DATA_URL_PREFIX = re.compile(r"^data:[^;,]*;base64,")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_dimension(value: Any) -> int:
    """Parse a custom-ratio input the way a number field does.

    Leading integer digits are used ("16px" -> 16); anything non-numeric,
    non-finite, zero or negative becomes 1, as does a digit run too long
    to parse.
    """
    if isinstance(value, bool):
        return 1
    try:
        if isinstance(value, int):
            number = value
        elif isinstance(value, float):
            number = int(value)
        else:
            match = _LEADING_INT.match(str(value))
            number = int(match.group(1)) if match else 0
    except (ValueError, OverflowError):
        return 1
    return number if number >= 1 else 1


class ImageAsset(BaseModel):
    """A single uploaded image held as base64 with its MIME type."""

    model_config = ConfigDict(frozen=True)

    base64: str
    mime_type: str

    @field_validator("base64")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        value = _DATA_URL_PREFIX.sub("", value.strip())
        if not value:
            raise ValueError("image data is empty")
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("image data is not valid base64") from exc
        return value

    @field_validator("mime_type")
    @classmethod
    def _check_mime_type(cls, value: str) -> str:
        value = value.strip().lower()
        if not value.startswith("image/"):
            raise ValueError(f"unsupported MIME type: {value!r}")
        return value

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.base64)


class Character(BaseModel):
    """A story-mode reference slot."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    image: Optional[str] = None
    mime_type: Optional[str] = None
    selected: bool = False

    @property
    def is_reference(self) -> bool:
        """True when the slot is selected and has an uploaded image."""
        return self.selected and self.image is not None and self.mime_type is not None

    def asset(self) -> Optional[ImageAsset]:
        if self.image is None or self.mime_type is None:
            return None
        return ImageAsset(base64=self.image, mime_type=self.mime_type)


def default_characters(count: int = 4) -> tuple[Character, ...]:
    """Placeholder slots created at session start."""
    return tuple(Character(id=i, name=f"Character {i}") for i in range(1, count + 1))


_last_image_id = 0


def new_image_id() -> int:
    """Millisecond timestamp with a random tail; never repeats within a process.

    Stays below 2**53 so JSON clients read it back exactly.
    """
    global _last_image_id
    candidate = time.time_ns() // 1_000_000 * 1000 + random.randrange(1000)
    _last_image_id = max(candidate, _last_image_id + 1)
    return _last_image_id


class GeneratedImage(BaseModel):
    """One successful generation result."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(default_factory=new_image_id)
    prompt: str
    base64: str

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.base64)


class CustomRatio(BaseModel):
    """Width:height pair used when the ratio choice is Custom."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=1, ge=1)
    height: int = Field(default=1, ge=1)

    @classmethod
    def from_input(cls, width: Any, height: Any) -> "CustomRatio":
        return cls(width=coerce_dimension(width), height=coerce_dimension(height))

    def __str__(self) -> str:
        return f"{self.width}:{self.height}"


# ---------------------------------------------------------------------------
# Request parts
# ---------------------------------------------------------------------------


class TextPart(BaseModel):
    """Instructional text part of a generation request."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Inline image part of a generation request."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    base64: str
    mime_type: str

    @classmethod
    def from_asset(cls, asset: ImageAsset) -> "ImagePart":
        return cls(base64=asset.base64, mime_type=asset.mime_type)


RequestPart = Annotated[Union[TextPart, ImagePart], Field(discriminator="kind")]


class GenerationRequest(BaseModel):
    """Ordered multi-part request for the image model.

    ``aspect_ratio`` is only set when the requested ratio is one the model
    accepts as an explicit hint; otherwise the text alone carries it.
    """

    model_config = ConfigDict(frozen=True)

    model: str
    parts: tuple[RequestPart, ...]
    aspect_ratio: Optional[str] = None

    @property
    def text(self) -> str:
        return "\n".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def images(self) -> list[ImagePart]:
        return [p for p in self.parts if isinstance(p, ImagePart)]
