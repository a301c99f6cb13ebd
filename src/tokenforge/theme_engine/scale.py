"""Perceptual color scale generation.

A single anchor color becomes an eleven-step scale. Lightness and chroma are
derived per step from two fixed calibration tables; hue stays constant.
"""

import logging
from typing import Dict, Iterable, Optional, Union

from .schema import (
    COLOR_STEPS,
    MAX_CHROMA,
    ColorDefinition,
    ColorScale,
    DarkModeAdjustments,
    GeneratedColorStep,
    OKLCHColor,
    validate_steps,
)
from .utils import clamp, oklch_to_hex

logger = logging.getLogger(__name__)


# Steps lighter than the anchor move toward white by this fraction
# of the anchor's remaining distance to 1.0
LIGHT_STEP_MIX: Dict[int, float] = {
    50: 0.9,
    100: 0.8,
    200: 0.6,
    300: 0.4,
    400: 0.3,
}

# Steps darker than the anchor scale its lightness directly
DARK_STEP_MULTIPLIERS: Dict[int, float] = {
    600: 0.91,
    700: 0.82,
    800: 0.64,
    900: 0.45,
    950: 0.27,
}

CHROMA_MULTIPLIERS: Dict[int, float] = {
    50: 0.13,
    100: 0.27,
    200: 0.4,
    300: 0.6,
    400: 0.8,
    500: 1.0,
    600: 1.0,
    700: 0.93,
    800: 0.8,
    900: 0.67,
    950: 0.4,
}


def step_lightness(anchor_lightness: float, step: int) -> float:
    """Lightness for ``step`` given the anchor (step 500) lightness."""
    if step in LIGHT_STEP_MIX:
        return anchor_lightness + (1.0 - anchor_lightness) * LIGHT_STEP_MIX[step]
    if step in DARK_STEP_MULTIPLIERS:
        return anchor_lightness * DARK_STEP_MULTIPLIERS[step]
    return anchor_lightness


def apply_contrast_boost(lightness: float, boost: float) -> float:
    """Push lightness away from the midpoint by ``boost - 1``."""
    if boost == 1.0:
        return lightness
    if lightness > 0.5:
        boosted = lightness + (1.0 - lightness) * (boost - 1.0)
    else:
        boosted = lightness - lightness * (boost - 1.0)
    return clamp(boosted, 0.0, 1.0)


def generate_color_scale(
    source: Union[OKLCHColor, dict],
    steps: Optional[Iterable[int]] = None,
    dark_mode: Optional[DarkModeAdjustments] = None,
) -> ColorScale:
    """Generate a perceptual color scale from an anchor color.

    Args:
        source: Anchor color (reproduced exactly at step 500)
        steps: Subset of the canonical steps to generate (default: all)
        dark_mode: Optional chroma/contrast adjustments

    Returns:
        Dict mapping each requested step to its OKLCH value and hex fallback

    Raises:
        ValueError: If the anchor color or any step is invalid
    """
    anchor = source if isinstance(source, OKLCHColor) else OKLCHColor.model_validate(source)
    requested = validate_steps(COLOR_STEPS if steps is None else steps)
    chroma_multiplier = dark_mode.chroma_multiplier if dark_mode else 1.0
    contrast_boost = dark_mode.contrast_boost if dark_mode else 1.0

    scale: ColorScale = {}
    for step in requested:
        lightness = clamp(step_lightness(anchor.l, step), 0.0, 1.0)
        lightness = apply_contrast_boost(lightness, contrast_boost)

        chroma = anchor.c * CHROMA_MULTIPLIERS[step] * chroma_multiplier
        chroma = clamp(chroma, 0.0, MAX_CHROMA)

        color = OKLCHColor(l=lightness, c=chroma, h=anchor.h)
        scale[step] = GeneratedColorStep(oklch=color, hex=oklch_to_hex(color))

    return scale


def generate_all_color_scales(
    colors: Dict[str, ColorDefinition],
    dark_mode: Optional[DarkModeAdjustments] = None,
) -> Dict[str, ColorScale]:
    """Generate scales for every color definition, keyed by color name."""
    scales = {}
    for name, definition in colors.items():
        scales[name] = generate_color_scale(definition.source, definition.scale, dark_mode)
        logger.debug(f"Generated {len(scales[name])} steps for color '{name}'")
    return scales
