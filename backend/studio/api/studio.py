"""Studio API router: the controls of the single-page front end."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from studio.core.errors import SubmissionInProgress
from studio.models.api import (
    AspectRatioRequest,
    CharacterPatch,
    DownloadAllResponse,
    ImageCountRequest,
    ModeRequest,
    StyleRequest,
    TextRequest,
)
from studio.models.image import ImageAsset, Mode
from studio.models.state import (
    Action,
    DismissNotice,
    NoticeKind,
    RatioSettings,
    SetActiveMode,
    SetAspectRatio,
    SetCustomRatio,
    SetImageCount,
    SetImageSlot,
    SetImageStyle,
    SetScenePrompts,
    SetSwapPrompt,
    Slot,
    StudioState,
    SubmissionOutcome,
    UpdateCharacter,
)
from studio.services import files
from studio.services.studio import StudioController

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/studio", tags=["studio"])

_NOTICE_STATUS: dict[NoticeKind, int] = {
    NoticeKind.validation: 400,
    NoticeKind.batch_failure: 502,
    NoticeKind.generation: 502,
}


def get_studio(request: Request) -> StudioController:
    """FastAPI dependency: retrieve StudioController from app.state.

    Returns HTTP 503 if the controller was not initialized at startup.
    """
    studio: StudioController | None = getattr(request.app.state, "studio", None)
    if studio is None:
        raise HTTPException(status_code=503, detail="Studio not initialized.")
    return studio


@router.get("/state", response_model=StudioState)
async def get_state(studio: StudioController = Depends(get_studio)) -> StudioState:
    return studio.state


@router.put("/mode", response_model=StudioState)
async def set_mode(
    body: ModeRequest, studio: StudioController = Depends(get_studio)
) -> StudioState:
    return studio.dispatch(SetActiveMode(mode=body.mode))


@router.put("/image-count", response_model=StudioState)
async def set_image_count(
    body: ImageCountRequest, studio: StudioController = Depends(get_studio)
) -> StudioState:
    return studio.dispatch(SetImageCount(count=body.count))


@router.patch("/characters/{character_id}", response_model=StudioState)
async def update_character(
    character_id: int,
    body: CharacterPatch,
    studio: StudioController = Depends(get_studio),
) -> StudioState:
    try:
        return studio.dispatch(
            UpdateCharacter(character_id=character_id, name=body.name, selected=body.selected)
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.put("/characters/{character_id}/image", response_model=StudioState)
async def upload_character_image(
    character_id: int,
    body: ImageAsset,
    studio: StudioController = Depends(get_studio),
) -> StudioState:
    try:
        return studio.dispatch(UpdateCharacter(character_id=character_id, image=body))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.put("/style", response_model=StudioState)
async def set_style(
    body: StyleRequest, studio: StudioController = Depends(get_studio)
) -> StudioState:
    return studio.dispatch(SetImageStyle(style=body.style))


@router.put("/prompts", response_model=StudioState)
async def set_prompts(
    body: TextRequest, studio: StudioController = Depends(get_studio)
) -> StudioState:
    return studio.dispatch(SetScenePrompts(text=body.text))


@router.put("/item-swap/prompt", response_model=StudioState)
async def set_swap_prompt(
    body: TextRequest, studio: StudioController = Depends(get_studio)
) -> StudioState:
    return studio.dispatch(SetSwapPrompt(text=body.text))


@router.put("/{mode}/aspect-ratio", response_model=StudioState)
async def set_aspect_ratio(
    mode: Mode,
    body: AspectRatioRequest,
    studio: StudioController = Depends(get_studio),
) -> StudioState:
    """Set the ratio choice, plus the custom width/height when provided.

    All checks run before anything is applied, so a rejected request leaves
    the state as it was.
    """
    group = studio.state.group(mode)
    if not isinstance(group, RatioSettings):
        raise HTTPException(
            status_code=400, detail=f"Mode {mode.value} has no aspect ratio setting"
        )

    actions: list[Action] = []
    if body.width is not None or body.height is not None:
        current = group.custom_ratio
        actions.append(
            SetCustomRatio(
                mode=mode,
                width=current.width if body.width is None else body.width,
                height=current.height if body.height is None else body.height,
            )
        )
    actions.append(SetAspectRatio(mode=mode, aspect_ratio=body.aspect_ratio))

    state = studio.state
    for action in actions:
        state = studio.dispatch(action)
    return state


@router.put("/slots/{slot}", response_model=StudioState)
async def upload_slot_image(
    slot: Slot, body: ImageAsset, studio: StudioController = Depends(get_studio)
) -> StudioState:
    return studio.dispatch(SetImageSlot(slot=slot, image=body))


@router.delete("/slots/{slot}", response_model=StudioState)
async def clear_slot_image(
    slot: Slot, studio: StudioController = Depends(get_studio)
) -> StudioState:
    return studio.dispatch(SetImageSlot(slot=slot, image=None))


@router.post("/generate", response_model=SubmissionOutcome)
async def generate(studio: StudioController = Depends(get_studio)) -> SubmissionOutcome:
    """Run one submission for the active mode.

    Raises:
        HTTPException 400: Pre-flight validation failed (nothing was sent).
        HTTPException 409: Another submission has not settled yet.
        HTTPException 502: Every call of the batch failed.
    """
    try:
        outcome = await studio.submit()
    except SubmissionInProgress as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    if outcome.notice is not None:
        logger.warning(
            "generate finished with notice: %s",
            outcome.notice.message,
            extra={"mode": outcome.mode.value},
        )
        raise HTTPException(
            status_code=_NOTICE_STATUS[outcome.notice.kind], detail=outcome.notice.message
        )
    return outcome


@router.delete("/images/{image_id}", response_model=StudioState)
async def delete_image(
    image_id: int, studio: StudioController = Depends(get_studio)
) -> StudioState:
    return studio.delete_image(image_id)


@router.delete("/images", response_model=StudioState)
async def clear_images(studio: StudioController = Depends(get_studio)) -> StudioState:
    return studio.clear_images()


@router.get("/images/{image_id}/download")
async def download_image(
    image_id: int, studio: StudioController = Depends(get_studio)
) -> Response:
    """Return one result as a PNG attachment named by its list position."""
    try:
        index, image = studio.find_image(image_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    filename = files.download_filename(index)
    return Response(
        content=image.to_bytes(),
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/images/download-all", response_model=DownloadAllResponse)
async def download_all(studio: StudioController = Depends(get_studio)) -> DownloadAllResponse:
    paths = await studio.download_all()
    return DownloadAllResponse(
        directory=str(studio.download_dir), files=[p.name for p in paths]
    )


@router.post("/notice/dismiss", response_model=StudioState)
async def dismiss_notice(studio: StudioController = Depends(get_studio)) -> StudioState:
    return studio.dispatch(DismissNotice())
