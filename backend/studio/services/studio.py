"""StudioController: validates, fans out and merges generation batches."""
import asyncio
import re
from functools import partial
from pathlib import Path
from typing import Awaitable, Callable, Optional

from studio.core.errors import (
    BatchFailure,
    GenerationError,
    StudioError,
    SubmissionInProgress,
    ValidationError,
)
from studio.core.logging import setup_logging
from studio.models.image import GeneratedImage, Mode
from studio.models.state import (
    Action,
    ClearImages,
    DeleteImage,
    Notice,
    NoticeKind,
    ShowNotice,
    StudioState,
    SubmissionOutcome,
    SubmissionSettled,
    SubmissionStarted,
)
from studio.services import files
from studio.services.generation import GenerationClient
from studio.services.state import reduce

logger = setup_logging("studio")

BACKGROUND_REMOVAL_LABEL = "Background Removal"
FACE_SWAP_LABEL = "Face Swap"

_PROMPT_SEPARATORS = re.compile(r"[\n,]")

_NOTICE_KINDS: dict[type, NoticeKind] = {
    ValidationError: NoticeKind.validation,
    BatchFailure: NoticeKind.batch_failure,
    GenerationError: NoticeKind.generation,
}

# One labelled call per entry; the callable starts the request when awaited.
Job = tuple[str, Callable[[], Awaitable[str]]]


def parse_scene_prompts(text: str) -> list[str]:
    """Split on newlines and commas, trim, and drop empty entries."""
    return [p.strip() for p in _PROMPT_SEPARATORS.split(text) if p.strip()]


def variant_label(label: str, index: int, count: int) -> str:
    """``label`` alone for a single image, else ``label (vN)`` with 1-based N."""
    return f"{label} (v{index + 1})" if count > 1 else label


class StudioController:
    """Owns the session state and runs submissions against the image model.

    Responsibilities:
    1. Pre-flight validation of the active mode's inputs
    2. Fan out ``image_count`` parallel calls (per prompt in story mode)
    3. Wait for every call to settle, drop failures, keep creation order
    4. Prepend the successes to the mode's result list
    5. Raise the mode's failure notice when a whole batch failed

    State notes:
    - The snapshot is replaced, never mutated, on every transition.
    - ``status`` is the only guard against overlapping submissions.
    """

    def __init__(
        self,
        client: GenerationClient,
        download_dir: Optional[Path] = None,
        download_stagger_seconds: float = 0.2,
        state: Optional[StudioState] = None,
    ) -> None:
        self.client = client
        self.download_dir = Path(download_dir) if download_dir is not None else Path("data/downloads")
        self.download_stagger_seconds = download_stagger_seconds
        self._state = state if state is not None else StudioState()

    @property
    def state(self) -> StudioState:
        return self._state

    def dispatch(self, action: Action) -> StudioState:
        """Apply an action through the reducer and store the new snapshot."""
        self._state = reduce(self._state, action)
        return self._state

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    async def submit(self, mode: Optional[Mode] = None) -> SubmissionOutcome:
        """Run one submission for ``mode`` (default: the active mode).

        Validation and whole-batch failures are reported through a Notice on
        the state and in the returned outcome, not raised.

        Raises:
            SubmissionInProgress: A previous batch has not settled yet.
        """
        mode = mode or self._state.active_mode
        if self._state.is_submitting:
            raise SubmissionInProgress("A generation is already in progress.")

        snapshot = self._state
        planners = {
            Mode.story: self._plan_story,
            Mode.item_swap: self._plan_item_swap,
            Mode.face_swap: self._plan_face_swap,
            Mode.background_removal: self._plan_background_removal,
        }
        try:
            jobs = planners[mode](snapshot)
        except ValidationError as exc:
            logger.info("Submission rejected: %s", exc, extra={"mode": mode.value})
            return SubmissionOutcome(mode=mode, notice=self._notify(exc))

        images: tuple[GeneratedImage, ...] = ()
        self.dispatch(SubmissionStarted(mode=mode))
        try:
            images = await self._run_batch(mode, jobs)
        finally:
            self.dispatch(SubmissionSettled(mode=mode, images=images))

        notice: Optional[Notice] = None
        try:
            self._check_batch(mode, len(jobs), images)
        except (BatchFailure, GenerationError) as exc:
            notice = self._notify(exc)
        return SubmissionOutcome(mode=mode, attempted=len(jobs), images=images, notice=notice)

    async def generate_story(self) -> SubmissionOutcome:
        return await self.submit(Mode.story)

    async def generate_item_swap(self) -> SubmissionOutcome:
        return await self.submit(Mode.item_swap)

    async def generate_face_swap(self) -> SubmissionOutcome:
        return await self.submit(Mode.face_swap)

    async def remove_background(self) -> SubmissionOutcome:
        return await self.submit(Mode.background_removal)

    def _plan_story(self, state: StudioState) -> list[Job]:
        story = state.story
        scene_prompts = parse_scene_prompts(story.prompts)
        if not scene_prompts:
            raise ValidationError("Please enter at least one prompt.")
        references = story.reference_characters()
        if not references:
            raise ValidationError(
                "Please upload and select at least one character reference image."
            )

        ratio = story.ratio_string()
        count = state.image_count
        return [
            (
                variant_label(prompt, i, count),
                partial(self.client.generate_scene, prompt, references, ratio, story.style),
            )
            for prompt in scene_prompts
            for i in range(count)
        ]

    def _plan_item_swap(self, state: StudioState) -> list[Job]:
        swap = state.item_swap
        if swap.base_image is None or swap.item_image is None:
            raise ValidationError("Please upload both a base image and an item image.")
        if not swap.prompt.strip():
            raise ValidationError("Please enter a prompt for the swap.")

        call = partial(
            self.client.generate_item_swap,
            swap.prompt,
            swap.base_image,
            swap.item_image,
            swap.ratio_string(),
        )
        count = state.image_count
        return [(variant_label(swap.prompt, i, count), call) for i in range(count)]

    def _plan_face_swap(self, state: StudioState) -> list[Job]:
        face = state.face_swap
        if face.target_image is None or face.source_image is None:
            raise ValidationError("Please upload both a target image and a face source image.")

        call = partial(
            self.client.generate_face_swap,
            face.target_image,
            face.source_image,
            face.ratio_string(),
        )
        count = state.image_count
        return [(variant_label(FACE_SWAP_LABEL, i, count), call) for i in range(count)]

    def _plan_background_removal(self, state: StudioState) -> list[Job]:
        image = state.background_removal.input_image
        if image is None:
            raise ValidationError("Please upload an image to remove the background from.")
        # Always a single call; the shared image count does not apply here.
        return [(BACKGROUND_REMOVAL_LABEL, partial(self.client.remove_background, image))]

    async def _run_batch(self, mode: Mode, jobs: list[Job]) -> tuple[GeneratedImage, ...]:
        """Start every job at once and collect all outcomes before merging.

        Failed calls are logged and dropped; sibling calls are never
        cancelled. Results keep job order regardless of completion order.
        """
        results = await asyncio.gather(*(call() for _, call in jobs), return_exceptions=True)

        images: list[GeneratedImage] = []
        for (label, _), result in zip(jobs, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(
                    "Generation failed for %r: %s",
                    label,
                    result,
                    extra={
                        "mode": mode.value,
                        "label": label,
                        "error_type": type(result).__name__,
                    },
                )
                continue
            images.append(GeneratedImage(prompt=label, base64=result))

        logger.info(
            "Batch settled: %d/%d succeeded",
            len(images),
            len(jobs),
            extra={"mode": mode.value, "batch_size": len(jobs), "succeeded": len(images)},
        )
        return tuple(images)

    @staticmethod
    def _check_batch(mode: Mode, attempted: int, images: tuple[GeneratedImage, ...]) -> None:
        """Raise the mode's failure when nothing in an attempted batch succeeded.

        Story mode never raises here; only its pre-flight checks reach the user.
        """
        if images or attempted == 0:
            return
        if mode is Mode.item_swap:
            raise BatchFailure("Failed to generate swap image.")
        if mode is Mode.face_swap:
            raise BatchFailure("Failed to generate face swap image.")
        if mode is Mode.background_removal:
            raise GenerationError("Failed to remove background.")

    def _notify(self, error: StudioError) -> Notice:
        notice = Notice(kind=_NOTICE_KINDS[type(error)], message=str(error))
        self.dispatch(ShowNotice(notice=notice))
        return notice

    # ------------------------------------------------------------------
    # Result list maintenance (active mode)
    # ------------------------------------------------------------------

    def delete_image(self, image_id: int) -> StudioState:
        return self.dispatch(DeleteImage(image_id=image_id))

    def clear_images(self) -> StudioState:
        return self.dispatch(ClearImages())

    def find_image(self, image_id: int) -> tuple[int, GeneratedImage]:
        """Return (position, image) in the active mode's list.

        Raises:
            LookupError: No image with that id in the active mode.
        """
        for index, image in enumerate(self._state.images()):
            if image.id == image_id:
                return index, image
        raise LookupError(f"Unknown image id: {image_id}")

    async def download_all(self) -> list[Path]:
        """Save every image of the active mode, numbered by list position."""
        images = self._state.images()
        if not images:
            return []
        return await files.download_all(
            images, self.download_dir, stagger_seconds=self.download_stagger_seconds
        )
