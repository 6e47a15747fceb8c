"""Studio session state snapshot and the actions that transform it."""
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from studio.models.image import (
    AspectRatio,
    Character,
    CustomRatio,
    GeneratedImage,
    ImageAsset,
    ImageStyle,
    Mode,
    default_characters,
)

MAX_IMAGE_COUNT = 4
DEFAULT_SWAP_PROMPT = "Put the item on the person"


class Status(str, Enum):
    """Submission lifecycle."""

    idle = "idle"
    submitting = "submitting"


class NoticeKind(str, Enum):
    validation = "validation"
    generation = "generation"
    batch_failure = "batch_failure"


class Notice(BaseModel):
    """A blocking message the user has to acknowledge."""

    model_config = ConfigDict(frozen=True)

    kind: NoticeKind
    message: str


class Slot(str, Enum):
    """Single-image inputs of the non-story modes."""

    base_image = "base_image"
    item_image = "item_image"
    face_target = "face_target"
    face_source = "face_source"
    background_input = "background_input"


# ---------------------------------------------------------------------------
# Per-mode groups
# ---------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class RatioSettings(_Frozen):
    aspect_ratio: AspectRatio = AspectRatio.square
    custom_ratio: CustomRatio = Field(default_factory=CustomRatio)

    def ratio_string(self) -> str:
        """Return "W:H" for Custom, otherwise the preset value."""
        if self.aspect_ratio is AspectRatio.custom:
            return str(self.custom_ratio)
        return self.aspect_ratio.value


class StoryState(RatioSettings):
    characters: tuple[Character, ...] = Field(default_factory=default_characters)
    style: ImageStyle = ImageStyle.default
    prompts: str = ""
    images: tuple[GeneratedImage, ...] = ()

    def reference_characters(self) -> list[Character]:
        return [c for c in self.characters if c.is_reference]


class ItemSwapState(RatioSettings):
    base_image: Optional[ImageAsset] = None
    item_image: Optional[ImageAsset] = None
    prompt: str = DEFAULT_SWAP_PROMPT
    images: tuple[GeneratedImage, ...] = ()


class FaceSwapState(RatioSettings):
    target_image: Optional[ImageAsset] = None
    source_image: Optional[ImageAsset] = None
    images: tuple[GeneratedImage, ...] = ()


class BackgroundRemovalState(_Frozen):
    input_image: Optional[ImageAsset] = None
    images: tuple[GeneratedImage, ...] = ()


ModeGroup = Union[StoryState, ItemSwapState, FaceSwapState, BackgroundRemovalState]

# Mode -> attribute name of its group on StudioState
MODE_FIELDS: dict[Mode, str] = {
    Mode.story: "story",
    Mode.item_swap: "item_swap",
    Mode.face_swap: "face_swap",
    Mode.background_removal: "background_removal",
}

# Slot -> (owning mode, attribute name within that mode's group)
SLOT_FIELDS: dict[Slot, tuple[Mode, str]] = {
    Slot.base_image: (Mode.item_swap, "base_image"),
    Slot.item_image: (Mode.item_swap, "item_image"),
    Slot.face_target: (Mode.face_swap, "target_image"),
    Slot.face_source: (Mode.face_swap, "source_image"),
    Slot.background_input: (Mode.background_removal, "input_image"),
}


class StudioState(_Frozen):
    """Immutable snapshot of the whole session.

    Each mode keeps its own inputs and results; switching the active mode
    never touches another mode's group.
    """

    active_mode: Mode = Mode.story
    image_count: int = Field(default=1, ge=1, le=MAX_IMAGE_COUNT)
    status: Status = Status.idle
    submitting_mode: Optional[Mode] = None
    notice: Optional[Notice] = None

    story: StoryState = Field(default_factory=StoryState)
    item_swap: ItemSwapState = Field(default_factory=ItemSwapState)
    face_swap: FaceSwapState = Field(default_factory=FaceSwapState)
    background_removal: BackgroundRemovalState = Field(default_factory=BackgroundRemovalState)

    @property
    def is_submitting(self) -> bool:
        return self.status is Status.submitting

    @computed_field  # type: ignore[prop-decorator]
    @property
    def placeholder_count(self) -> int:
        """Number of placeholder cells the result grid shows while submitting."""
        return self.image_count if self.is_submitting else 0

    def group(self, mode: Optional[Mode] = None) -> ModeGroup:
        return getattr(self, MODE_FIELDS[mode or self.active_mode])

    def images(self, mode: Optional[Mode] = None) -> tuple[GeneratedImage, ...]:
        return self.group(mode).images


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class Action(_Frozen):
    """Base class for state transitions handled by the reducer."""


class SetActiveMode(Action):
    mode: Mode


class SetImageCount(Action):
    count: int = Field(..., ge=1, le=MAX_IMAGE_COUNT)


class UpdateCharacter(Action):
    character_id: int
    name: Optional[str] = None
    selected: Optional[bool] = None
    image: Optional[ImageAsset] = None


class SetImageStyle(Action):
    style: ImageStyle


class SetScenePrompts(Action):
    text: str


class SetSwapPrompt(Action):
    text: str


class SetAspectRatio(Action):
    mode: Mode
    aspect_ratio: AspectRatio


class SetCustomRatio(Action):
    """Raw width/height as typed by the user; coerced by the reducer."""

    mode: Mode
    width: Any = 1
    height: Any = 1


class SetImageSlot(Action):
    """Upload into a slot, or clear it when ``image`` is None."""

    slot: Slot
    image: Optional[ImageAsset] = None


class SubmissionStarted(Action):
    mode: Mode


class SubmissionSettled(Action):
    mode: Mode
    images: tuple[GeneratedImage, ...] = ()


class DeleteImage(Action):
    image_id: int


class ClearImages(Action):
    pass


class ShowNotice(Action):
    notice: Notice


class DismissNotice(Action):
    pass


class SubmissionOutcome(_Frozen):
    """What one submit produced: the new results and any notice raised."""

    mode: Mode
    attempted: int = 0
    images: tuple[GeneratedImage, ...] = ()
    notice: Optional[Notice] = None
