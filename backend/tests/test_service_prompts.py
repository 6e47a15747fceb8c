"""Tests for instruction text building."""
import pytest

from studio.models.image import Character, ImageStyle
from studio.services import prompts


class TestStyleInstruction:
    """Tests for the style -> instruction mapping."""

    def test_every_style_has_instruction(self) -> None:
        """Every ImageStyle value maps to a non-empty fragment."""
        for style in ImageStyle:
            assert prompts.style_instruction(style)

    def test_accepts_display_name(self) -> None:
        """Style names as shown to the user resolve to their fragment."""
        assert "cyberpunk" in prompts.style_instruction("Cyberpunk")
        assert "Sumi-e" in prompts.style_instruction("Sumi-e Art")

    @pytest.mark.parametrize("style", ["Vaporwave", "", "default"])
    def test_unknown_style_falls_back_to_default(self, style: str) -> None:
        """Unrecognized styles get the Default fragment."""
        assert prompts.style_instruction(style) == prompts.STYLE_INSTRUCTIONS[ImageStyle.default]

    def test_styles_are_distinct(self) -> None:
        assert len(set(prompts.STYLE_INSTRUCTIONS.values())) == len(ImageStyle)


class TestScenePrompt:
    """Tests for prompts.scene_prompt()."""

    def test_contains_ratio_directive(self) -> None:
        text = prompts.scene_prompt("cat jumping", [], "21:9", ImageStyle.default)
        assert "MANDATORY ASPECT RATIO: 21:9" in text
        assert "EXTEND the background (outpaint)" in text

    def test_names_characters(self) -> None:
        chars = [Character(id=1, name="Mia"), Character(id=2, name="Rex")]
        text = prompts.scene_prompt("p", chars, "1:1", ImageStyle.default)
        assert "Reference the following characters: Mia, Rex." in text

    def test_no_characters_fallback(self) -> None:
        text = prompts.scene_prompt("p", [], "1:1", ImageStyle.default)
        assert "the character(s) described" in text

    def test_quotes_scene_and_style(self) -> None:
        text = prompts.scene_prompt("dog running", [], "1:1", ImageStyle.anime)
        assert 'Scene Prompt: "dog running"' in text
        assert prompts.STYLE_INSTRUCTIONS[ImageStyle.anime] in text

    def test_single_image_directive(self) -> None:
        text = prompts.scene_prompt("p", [], "1:1", ImageStyle.default)
        assert prompts.SINGLE_IMAGE_DIRECTIVE in text


class TestSwapPrompts:
    def test_item_swap_includes_instruction_and_guidelines(self) -> None:
        text = prompts.item_swap_prompt("Put the hat on\nand the scarf", "4:3")
        assert "MANDATORY ASPECT RATIO: 4:3" in text
        assert "Put the hat on\nand the scarf" in text
        assert "GUIDELINES:" in text
        assert "A SINGLE, high-quality composite image" in text

    def test_item_swap_braces_in_instruction(self) -> None:
        """User text containing braces is inserted verbatim."""
        assert "{size}" in prompts.item_swap_prompt("use {size}", "1:1")

    def test_face_swap_identity_rules(self) -> None:
        text = prompts.face_swap_prompt("5:4")
        assert "MANDATORY ASPECT RATIO: 5:4" in text
        assert "OVERWRITE IDENTITY" in text
        assert "FORBIDDEN" in text
        assert prompts.SINGLE_IMAGE_DIRECTIVE in text

    def test_background_removal_has_no_ratio(self) -> None:
        text = prompts.background_removal_prompt()
        assert "ASPECT RATIO" not in text
        assert "#FFFFFF" in text
        assert "exactly one" in text
