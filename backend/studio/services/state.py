"""Pure reducer over StudioState.

Every transition takes the current snapshot and an action and returns a new
snapshot; nothing here performs I/O or mutates its inputs.
"""
from typing import Callable

from studio.models.image import CustomRatio, Mode
from studio.models.state import (
    MODE_FIELDS,
    SLOT_FIELDS,
    Action,
    ClearImages,
    DeleteImage,
    DismissNotice,
    RatioSettings,
    SetActiveMode,
    SetAspectRatio,
    SetCustomRatio,
    SetImageCount,
    SetImageSlot,
    SetImageStyle,
    SetScenePrompts,
    SetSwapPrompt,
    ShowNotice,
    Status,
    StudioState,
    SubmissionSettled,
    SubmissionStarted,
    UpdateCharacter,
)


def _replace_group(state: StudioState, mode: Mode, **changes: object) -> StudioState:
    field = MODE_FIELDS[mode]
    group = getattr(state, field)
    return state.model_copy(update={field: group.model_copy(update=changes)})


def _ratio_group(state: StudioState, mode: Mode) -> RatioSettings:
    group = state.group(mode)
    if not isinstance(group, RatioSettings):
        raise ValueError(f"Mode {mode.value} has no aspect ratio setting")
    return group


def _set_active_mode(state: StudioState, action: SetActiveMode) -> StudioState:
    return state.model_copy(update={"active_mode": action.mode})


def _set_image_count(state: StudioState, action: SetImageCount) -> StudioState:
    return state.model_copy(update={"image_count": action.count})


def _update_character(state: StudioState, action: UpdateCharacter) -> StudioState:
    if not any(c.id == action.character_id for c in state.story.characters):
        raise LookupError(f"Unknown character id: {action.character_id}")

    changes: dict[str, object] = {}
    if action.name is not None:
        changes["name"] = action.name
    if action.selected is not None:
        changes["selected"] = action.selected
    if action.image is not None:
        changes["image"] = action.image.base64
        changes["mime_type"] = action.image.mime_type

    characters = tuple(
        c.model_copy(update=changes) if c.id == action.character_id else c
        for c in state.story.characters
    )
    return _replace_group(state, Mode.story, characters=characters)


def _set_image_style(state: StudioState, action: SetImageStyle) -> StudioState:
    return _replace_group(state, Mode.story, style=action.style)


def _set_scene_prompts(state: StudioState, action: SetScenePrompts) -> StudioState:
    return _replace_group(state, Mode.story, prompts=action.text)


def _set_swap_prompt(state: StudioState, action: SetSwapPrompt) -> StudioState:
    return _replace_group(state, Mode.item_swap, prompt=action.text)


def _set_aspect_ratio(state: StudioState, action: SetAspectRatio) -> StudioState:
    _ratio_group(state, action.mode)
    return _replace_group(state, action.mode, aspect_ratio=action.aspect_ratio)


def _set_custom_ratio(state: StudioState, action: SetCustomRatio) -> StudioState:
    _ratio_group(state, action.mode)
    ratio = CustomRatio.from_input(action.width, action.height)
    return _replace_group(state, action.mode, custom_ratio=ratio)


def _set_image_slot(state: StudioState, action: SetImageSlot) -> StudioState:
    mode, field = SLOT_FIELDS[action.slot]
    return _replace_group(state, mode, **{field: action.image})


def _submission_started(state: StudioState, action: SubmissionStarted) -> StudioState:
    return state.model_copy(
        update={"status": Status.submitting, "submitting_mode": action.mode}
    )


def _submission_settled(state: StudioState, action: SubmissionSettled) -> StudioState:
    # Newest batch goes in front, keeping the batch's own creation order.
    images = action.images + state.images(action.mode)
    settled = _replace_group(state, action.mode, images=images)
    return settled.model_copy(update={"status": Status.idle, "submitting_mode": None})


def _delete_image(state: StudioState, action: DeleteImage) -> StudioState:
    images = tuple(img for img in state.images() if img.id != action.image_id)
    return _replace_group(state, state.active_mode, images=images)


def _clear_images(state: StudioState, action: ClearImages) -> StudioState:
    return _replace_group(state, state.active_mode, images=())


def _show_notice(state: StudioState, action: ShowNotice) -> StudioState:
    return state.model_copy(update={"notice": action.notice})


def _dismiss_notice(state: StudioState, action: DismissNotice) -> StudioState:
    return state.model_copy(update={"notice": None})


_HANDLERS: dict[type, Callable[[StudioState, Action], StudioState]] = {
    SetActiveMode: _set_active_mode,
    SetImageCount: _set_image_count,
    UpdateCharacter: _update_character,
    SetImageStyle: _set_image_style,
    SetScenePrompts: _set_scene_prompts,
    SetSwapPrompt: _set_swap_prompt,
    SetAspectRatio: _set_aspect_ratio,
    SetCustomRatio: _set_custom_ratio,
    SetImageSlot: _set_image_slot,
    SubmissionStarted: _submission_started,
    SubmissionSettled: _submission_settled,
    DeleteImage: _delete_image,
    ClearImages: _clear_images,
    ShowNotice: _show_notice,
    DismissNotice: _dismiss_notice,
}


def reduce(state: StudioState, action: Action) -> StudioState:
    """Apply ``action`` to ``state`` and return the new snapshot.

    Raises:
        LookupError: UpdateCharacter names a character id that doesn't exist.
        ValueError: A ratio action targets background removal.
        TypeError: The action type has no handler.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unhandled action: {type(action).__name__}")
    return handler(state, action)
