"""
Image enhancement presets.

Each enhancement type maps to a fixed natural-language instruction that is
sent to the model together with the uploaded image.
"""

from enum import Enum


class EnhancementType(Enum):
    """Supported one-click enhancement presets."""
    AUTO = "auto"
    UPSCALE = "upscale"
    ENHANCE_QUALITY = "enhance_quality"
    REMOVE_NOISE = "remove_noise"
    IMPROVE_LIGHTING = "improve_lighting"
    ENHANCE_COLORS = "enhance_colors"
    SHARPEN = "sharpen"


ENHANCEMENT_PROMPTS = {
    EnhancementType.AUTO: (
        "Analyze this image and automatically enhance it by improving brightness, contrast, "
        "colors, and sharpness. Make it look more professional and visually appealing while "
        "maintaining the original composition and style."
    ),
    EnhancementType.UPSCALE: (
        "Upscale this image to higher resolution while maintaining quality and sharpness. "
        "Enhance details and reduce pixelation. Make it suitable for high-resolution display."
    ),
    EnhancementType.ENHANCE_QUALITY: (
        "Improve the overall quality of this image by enhancing sharpness, reducing noise, "
        "and improving clarity. Make it look more professional and crisp."
    ),
    EnhancementType.REMOVE_NOISE: (
        "Remove noise, grain, and artifacts from this image while preserving important "
        "details and textures. Clean up the image quality."
    ),
    EnhancementType.IMPROVE_LIGHTING: (
        "Improve the lighting in this image by adjusting brightness, contrast, and shadows. "
        "Make the image well-lit and balanced without overexposure or underexposure."
    ),
    EnhancementType.ENHANCE_COLORS: (
        "Enhance the colors in this image by improving saturation, vibrancy, and color "
        "balance. Make the colors more vivid and appealing while maintaining naturalness."
    ),
    EnhancementType.SHARPEN: (
        "Sharpen this image to improve clarity and detail definition. Enhance edges and "
        "fine details while avoiding over-sharpening artifacts."
    ),
}


def parse_enhancement_type(value: str) -> EnhancementType:
    """Parse an enhancement type name.

    Raises:
        ValueError: If the name is not a supported preset
    """
    try:
        return EnhancementType(value)
    except ValueError:
        valid = [kind.value for kind in EnhancementType]
        raise ValueError(f"Invalid enhancement type {value!r}, must be one of: {valid}")


def get_enhancement_prompt(kind: EnhancementType) -> str:
    return ENHANCEMENT_PROMPTS[kind]
