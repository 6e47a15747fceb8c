"""Generation client for the Gemini image model.

Each mode has a pure ``build_*_request`` function that lays out the ordered
request parts, and a coroutine on :class:`GenerationClient` that sends it and
returns the base64 payload of the first image in the response.

Part ordering per mode (the model reads them in this order):

- scene:              text, then 0..4 character reference images
- item swap:          base image, item image, then text
- face swap:          text, then target image, then source-face image
- background removal: image, then text (no aspect ratio hint)
"""
import base64
import logging
from typing import Any, Optional, Sequence, Union

from google import genai  # type: ignore[import-untyped]
from google.genai import types  # type: ignore[import-untyped]

from studio.core.errors import GenerationError
from studio.models.image import (
    SUPPORTED_ASPECT_RATIOS,
    Character,
    GenerationRequest,
    ImageAsset,
    ImagePart,
    ImageStyle,
    TextPart,
)
from studio.services import prompts

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"
NO_IMAGE_MESSAGE = "no image data in response"


def aspect_ratio_hint(aspect_ratio: str) -> Optional[str]:
    """Return the ratio if the model accepts it as an explicit hint, else None."""
    return aspect_ratio if aspect_ratio in SUPPORTED_ASPECT_RATIOS else None


def build_scene_request(
    prompt: str,
    characters: Sequence[Character],
    aspect_ratio: str,
    style: Union[ImageStyle, str] = ImageStyle.default,
    model: str = DEFAULT_MODEL,
) -> GenerationRequest:
    """Text first, then one image per selected character that has an upload."""
    references = [c for c in characters if c.is_reference]
    parts: list[Union[TextPart, ImagePart]] = [
        TextPart(text=prompts.scene_prompt(prompt, references, aspect_ratio, style))
    ]
    for character in references:
        asset = character.asset()
        if asset is not None:
            parts.append(ImagePart.from_asset(asset))
    return GenerationRequest(
        model=model, parts=tuple(parts), aspect_ratio=aspect_ratio_hint(aspect_ratio)
    )


def build_item_swap_request(
    instruction: str,
    base_image: ImageAsset,
    item_image: ImageAsset,
    aspect_ratio: str,
    model: str = DEFAULT_MODEL,
) -> GenerationRequest:
    return GenerationRequest(
        model=model,
        parts=(
            ImagePart.from_asset(base_image),
            ImagePart.from_asset(item_image),
            TextPart(text=prompts.item_swap_prompt(instruction, aspect_ratio)),
        ),
        aspect_ratio=aspect_ratio_hint(aspect_ratio),
    )


def build_face_swap_request(
    target_image: ImageAsset,
    source_image: ImageAsset,
    aspect_ratio: str,
    model: str = DEFAULT_MODEL,
) -> GenerationRequest:
    # Instructions go before the images so the model reads the rules first.
    return GenerationRequest(
        model=model,
        parts=(
            TextPart(text=prompts.face_swap_prompt(aspect_ratio)),
            ImagePart.from_asset(target_image),
            ImagePart.from_asset(source_image),
        ),
        aspect_ratio=aspect_ratio_hint(aspect_ratio),
    )


def build_background_removal_request(
    image: ImageAsset, model: str = DEFAULT_MODEL
) -> GenerationRequest:
    return GenerationRequest(
        model=model,
        parts=(
            ImagePart.from_asset(image),
            TextPart(text=prompts.background_removal_prompt()),
        ),
    )


def to_contents(request: GenerationRequest) -> list[types.Content]:
    """Convert request parts into a single user turn for the SDK."""
    parts: list[types.Part] = []
    for part in request.parts:
        if isinstance(part, TextPart):
            parts.append(types.Part(text=part.text))
        else:
            parts.append(
                types.Part(
                    inline_data=types.Blob(
                        data=base64.b64decode(part.base64), mime_type=part.mime_type
                    )
                )
            )
    return [types.Content(role="user", parts=parts)]


def to_config(request: GenerationRequest) -> types.GenerateContentConfig:
    if request.aspect_ratio is None:
        return types.GenerateContentConfig(response_modalities=["IMAGE"])
    return types.GenerateContentConfig(
        response_modalities=["IMAGE"],
        image_config=types.ImageConfig(aspect_ratio=request.aspect_ratio),
    )


def extract_image(response: Any) -> str:
    """Return the base64 payload of the first inline-image part.

    Raises:
        GenerationError: When no part carries image data.
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                data = inline.data
                if isinstance(data, str):
                    return data
                return base64.b64encode(data).decode("ascii")
    raise GenerationError(NO_IMAGE_MESSAGE)


class GenerationClient:
    """Sends mode-specific requests to the Gemini image model.

    No retries: every failure surfaces as a single GenerationError and the
    caller decides what to do with it.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.model = model
        self._client = client if client is not None else genai.Client(api_key=api_key)

    async def generate_scene(
        self,
        prompt: str,
        characters: Sequence[Character],
        aspect_ratio: str,
        style: Union[ImageStyle, str] = ImageStyle.default,
    ) -> str:
        request = build_scene_request(prompt, characters, aspect_ratio, style, self.model)
        return await self.generate(request)

    async def generate_item_swap(
        self,
        instruction: str,
        base_image: ImageAsset,
        item_image: ImageAsset,
        aspect_ratio: str,
    ) -> str:
        request = build_item_swap_request(
            instruction, base_image, item_image, aspect_ratio, self.model
        )
        return await self.generate(request)

    async def generate_face_swap(
        self, target_image: ImageAsset, source_image: ImageAsset, aspect_ratio: str
    ) -> str:
        request = build_face_swap_request(target_image, source_image, aspect_ratio, self.model)
        return await self.generate(request)

    async def remove_background(self, image: ImageAsset) -> str:
        return await self.generate(build_background_removal_request(image, self.model))

    async def generate(self, request: GenerationRequest) -> str:
        """Send ``request`` and return the first image as base64.

        Raises:
            GenerationError: The call failed or the response held no image.
        """
        try:
            response = await self._call_image_api(request)
        except Exception as exc:
            logger.error(
                "Image generation call failed: %s: %s",
                type(exc).__name__,
                exc,
                extra={"error_type": type(exc).__name__},
            )
            raise GenerationError(f"Image generation failed: {exc}") from exc

        try:
            return extract_image(response)
        except GenerationError:
            logger.error(
                "Image model returned no image part",
                extra={"error_type": "GenerationError"},
            )
            raise

    async def _call_image_api(self, request: GenerationRequest) -> Any:
        """Call the Gemini API asynchronously and return the raw response."""
        return await self._client.aio.models.generate_content(
            model=request.model,
            contents=to_contents(request),
            config=to_config(request),
        )
