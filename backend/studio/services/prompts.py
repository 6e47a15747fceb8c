"""Instruction text for the image model, one builder per mode."""
from textwrap import dedent
from typing import Sequence, Union

from studio.models.image import Character, ImageStyle

STYLE_INSTRUCTIONS: dict[ImageStyle, str] = {
    ImageStyle.default: "Generate the image in a consistent, high-quality cartoon style.",
    ImageStyle.cyberpunk: (
        "Generate the image in a vibrant, high-contrast cyberpunk style with neon lights, "
        "futuristic cityscapes, and cybernetic elements."
    ),
    ImageStyle.anime: (
        "Generate the image in a classic 90s anime style, with detailed hand-drawn "
        "aesthetics, film grain, and expressive characters."
    ),
    ImageStyle.watercolor: (
        "Generate the image as a beautiful watercolor painting with soft edges, blended "
        "colors, and a textured paper look."
    ),
    ImageStyle.cinematic: (
        "Generate the image in a cinematic style with dramatic lighting, a shallow depth "
        "of field, and a widescreen aspect ratio feel. The colors should be rich and moody."
    ),
    ImageStyle.glitch_art: (
        "Generate the image in a glitch art style, with digital artifacts, scan lines, "
        "color aberrations, and a distorted, chaotic aesthetic."
    ),
    ImageStyle.pop_surrealism: (
        "Generate the image in a Pop Surrealism (or Lowbrow) style, featuring cartoonish, "
        "big-eyed figures in a whimsical or bizarre, dream-like setting. The colors should "
        "be vibrant and saturated."
    ),
    ImageStyle.art_deco_revival: (
        "Generate the image in an elegant Art Deco Revival style, characterized by bold "
        "geometric patterns, symmetrical designs, rich colors, and a glamorous, vintage "
        "1920s feel."
    ),
    ImageStyle.abstract_data_art: (
        "Generate the image in an Abstract Data Art style, using algorithms and data "
        "visualization principles to create complex, geometric, and colorful compositions."
    ),
    ImageStyle.kinetic_art: (
        "Generate the image in a Kinetic Art style, creating a sense of movement, "
        "vibration, or optical illusion through patterns, lines, and composition."
    ),
    ImageStyle.ascii_art_overlay: (
        "Generate the image with a creative ASCII art overlay. The underlying image should "
        "be clear, but with a stylized layer of text characters forming the visual details."
    ),
    ImageStyle.synesthesia_art: (
        "Generate the image in a Synesthesia Art style, translating abstract concepts or "
        "emotions into a vibrant explosion of interconnected colors, shapes, and textures."
    ),
    ImageStyle.sumi_e: (
        "Generate the image in a traditional Japanese Sumi-e (ink wash) style, emphasizing "
        "minimalist beauty, flowing brushstrokes, and a monochromatic palette with subtle "
        "gradients."
    ),
    ImageStyle.low_poly_3d: (
        "Generate the image in a Low Poly 3D style, featuring a faceted, geometric look as "
        "if constructed from a 3D mesh with flat-shaded polygons. Colors should be clean "
        "and vibrant."
    ),
}

SINGLE_IMAGE_DIRECTIVE = "OUTPUT: Produce exactly one image."

_SCENE_TEMPLATE = dedent(
    """
    You are an AI assistant creating a set of story images with consistent characters.
    Reference the following characters: {names}.

    Scene Prompt: "{prompt}"

    Style instructions:
    - {style}
    - Ensure the characters look the same as in the provided reference images.
    - The image must be in 4K resolution and highly detailed.
    """
).strip()

_ITEM_SWAP_TEMPLATE = dedent(
    """
    TASK: Generative Fashion Integration.

    INPUTS:
    - IMAGE 1 (First image): Model/Person (Mannequin).
    - IMAGE 2 (Second image): Clothing/Item (Apparel).

    INSTRUCTION:
    {instruction}

    Generate a single photorealistic image of the person from IMAGE 1, but wearing the item/clothing from IMAGE 2.

    GUIDELINES:
    - Maintain the pose, body shape, and the background scene of IMAGE 1 exactly.
    - Drape the item from IMAGE 2 naturally over the person.
    - Adapt the lighting of the item to match the scene in IMAGE 1.
    - If the requested ratio differs from IMAGE 1, extend the scene rather than cropping it.
    """
).strip()


def style_instruction(style: Union[ImageStyle, str]) -> str:
    """Map a style name to its instruction; unknown names get the Default style."""
    try:
        key = ImageStyle(style)
    except ValueError:
        key = ImageStyle.default
    return STYLE_INSTRUCTIONS[key]


def _ratio_directive(aspect_ratio: str, outpaint: bool = False) -> str:
    lines = [
        "[SYSTEM CONFIGURATION]",
        f"MANDATORY ASPECT RATIO: {aspect_ratio}",
        f"- The final output image MUST strictly adhere to the {aspect_ratio} aspect ratio.",
    ]
    if outpaint:
        lines.append(
            "- If the generated content does not fit, EXTEND the background (outpaint) "
            "to fill the ratio. Do not crop important details."
        )
    return "\n".join(lines)


def scene_prompt(
    prompt: str,
    characters: Sequence[Character],
    aspect_ratio: str,
    style: Union[ImageStyle, str],
) -> str:
    """Instruction for one story scene featuring the reference characters."""
    names = ", ".join(c.name for c in characters) or "the character(s) described"
    body = _SCENE_TEMPLATE.format(names=names, prompt=prompt, style=style_instruction(style))
    return "\n\n".join([_ratio_directive(aspect_ratio, outpaint=True), body, SINGLE_IMAGE_DIRECTIVE])


def item_swap_prompt(instruction: str, aspect_ratio: str) -> str:
    """Instruction for dressing the person in IMAGE 1 with the item in IMAGE 2."""
    body = _ITEM_SWAP_TEMPLATE.format(instruction=instruction)
    return "\n\n".join(
        [_ratio_directive(aspect_ratio), body, "OUTPUT: A SINGLE, high-quality composite image."]
    )


def face_swap_prompt(aspect_ratio: str) -> str:
    """Instruction for replacing the face in IMAGE 1 with the identity in IMAGE 2."""
    body = dedent(
        """
        TASK: ABSOLUTE FACE REPLACEMENT

        INPUTS:
        - IMAGE 1 (First Image): The TARGET Scene. Keep body, pose, hair, clothes, and background.
        - IMAGE 2 (Second Image): The SOURCE Face. Use this identity.

        INSTRUCTION:
        You are an expert digital editor. Your task is to replace the face of the person in IMAGE 1 with the face of the person in IMAGE 2.

        EXECUTION RULES:
        1. OVERWRITE IDENTITY: The facial features (eyes, nose, mouth, eyebrows, jaw structure) in the output MUST match IMAGE 2.
        2. FORBIDDEN: Do NOT output the original face from IMAGE 1. The identity must change.
        3. INTEGRATION: Map the face from IMAGE 2 onto the head angle and lighting conditions of IMAGE 1.
        4. PRESERVATION: Do not change the hair style, hair color, ears, neck, clothing, or background of IMAGE 1.

        If the resulting face looks like the person in IMAGE 1, you have failed.
        The resulting face MUST look like the person in IMAGE 2.
        """
    ).strip()
    return "\n\n".join([_ratio_directive(aspect_ratio, outpaint=True), body, SINGLE_IMAGE_DIRECTIVE])


def background_removal_prompt() -> str:
    """Instruction for isolating the main subject on plain white."""
    return dedent(
        """
        [SYSTEM CONFIGURATION]
        TASK: Background Removal.

        INPUT: One reference image.

        INSTRUCTION:
        Identify the main subject in the provided image. Generate a new image containing ONLY that subject.

        RULES:
        1. The background MUST be perfectly plain white (#FFFFFF).
        2. The subject must remain EXACTLY as they appear in the source image (same pose, lighting, details).
        3. Do not add any new elements.
        4. Do not crop the subject.

        OUTPUT: Produce exactly one high-quality image of the isolated subject on a white background.
        """
    ).strip()
