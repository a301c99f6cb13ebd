"""Utility functions for theme engine operations.

This module provides OKLCH / sRGB color conversion, WCAG luminance and
contrast calculation, and dictionary merging for the theming pipeline.
All conversions are pure Python and deterministic.
"""

import math
import re
from typing import Tuple, Dict, Any, Union

from .schema import OKLCHColor, MAX_CHROMA


_HEX_PATTERN = re.compile(r'^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$')

OKLCHLike = Union[OKLCHColor, Tuple[float, float, float]]


def _components(color: OKLCHLike) -> Tuple[float, float, float]:
    if isinstance(color, OKLCHColor):
        return color.l, color.c, color.h
    l, c, h = color
    return float(l), float(c), float(h)


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert hex color to RGB tuple.

    Args:
        hex_color: Hex color string (e.g., '#FF0000', 'FF0000' or '#f00')

    Returns:
        RGB tuple (r, g, b) with values 0-255

    Raises:
        ValueError: If hex_color is not a valid hex color
    """
    match = _HEX_PATTERN.match(hex_color.strip()) if isinstance(hex_color, str) else None
    if not match:
        raise ValueError(f"Invalid hex color: {hex_color}")

    digits = match.group(1)
    if len(digits) == 3:
        digits = ''.join(ch * 2 for ch in digits)

    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Convert RGB values to hex color string.

    Args:
        r, g, b: RGB values 0-255

    Returns:
        Hex color string with # prefix
    """
    return f"#{r:02x}{g:02x}{b:02x}"


def srgb_to_linear(value: float) -> float:
    """Undo sRGB gamma encoding for one channel in 0-1."""
    if value <= 0.04045:
        return value / 12.92
    return ((value + 0.055) / 1.055) ** 2.4


def linear_to_srgb(value: float) -> float:
    """Apply sRGB gamma encoding to one linear channel in 0-1."""
    if value <= 0.0031308:
        return 12.92 * value
    return 1.055 * (value ** (1 / 2.4)) - 0.055


def oklch_to_oklab(color: OKLCHLike) -> Tuple[float, float, float]:
    """Convert OKLCH to OKLab (L, a, b)."""
    l, c, h = _components(color)
    radians = math.radians(h)
    return l, c * math.cos(radians), c * math.sin(radians)


def oklab_to_oklch(l: float, a: float, b: float) -> Tuple[float, float, float]:
    """Convert OKLab to OKLCH, normalizing hue to [0, 360)."""
    chroma = math.sqrt(a * a + b * b)
    if chroma < 1e-6:
        return l, 0.0, 0.0

    hue = math.degrees(math.atan2(b, a)) % 360.0
    if hue >= 360.0:
        hue = 0.0
    return l, chroma, hue


def oklab_to_linear_rgb(l: float, a: float, b: float) -> Tuple[float, float, float]:
    """Convert OKLab to linear sRGB (channels may fall outside 0-1)."""
    l_ = l + 0.3963377774 * a + 0.2158037573 * b
    m_ = l - 0.1055613458 * a - 0.0638541728 * b
    s_ = l - 0.0894841775 * a - 1.2914855480 * b

    l3 = l_ ** 3
    m3 = m_ ** 3
    s3 = s_ ** 3

    return (
        4.0767416621 * l3 - 3.3077115913 * m3 + 0.2309699292 * s3,
        -1.2684380046 * l3 + 2.6097574011 * m3 - 0.3413193965 * s3,
        -0.0041960863 * l3 - 0.7034186147 * m3 + 1.7076147010 * s3,
    )


def linear_rgb_to_oklab(r: float, g: float, b: float) -> Tuple[float, float, float]:
    """Convert linear sRGB to OKLab."""
    l = 0.4122214708 * r + 0.5363325363 * g + 0.0514459929 * b
    m = 0.2119034982 * r + 0.6806995451 * g + 0.1073969566 * b
    s = 0.0883024619 * r + 0.2817188376 * g + 0.6299787005 * b

    l_ = math.copysign(abs(l) ** (1 / 3), l)
    m_ = math.copysign(abs(m) ** (1 / 3), m)
    s_ = math.copysign(abs(s) ** (1 / 3), s)

    return (
        0.2104542553 * l_ + 0.7936177850 * m_ - 0.0040720468 * s_,
        1.9779984951 * l_ - 2.4285922050 * m_ + 0.4505937099 * s_,
        0.0259040371 * l_ + 0.7827717662 * m_ - 0.8086757660 * s_,
    )


def oklch_to_rgb(color: OKLCHLike) -> Tuple[int, int, int]:
    """Convert OKLCH to 8-bit sRGB, clipping out-of-gamut channels.

    Args:
        color: OKLCHColor or (l, c, h) tuple

    Returns:
        RGB tuple (r, g, b) with values 0-255
    """
    linear = oklab_to_linear_rgb(*oklch_to_oklab(color))
    channels = []
    for value in linear:
        encoded = linear_to_srgb(min(1.0, max(0.0, value)))
        channels.append(int(round(min(1.0, max(0.0, encoded)) * 255)))
    return channels[0], channels[1], channels[2]


def oklch_to_hex(color: OKLCHLike) -> str:
    """Convert OKLCH to a lowercase ``#rrggbb`` string."""
    return rgb_to_hex(*oklch_to_rgb(color))


def hex_to_oklch(hex_color: str) -> OKLCHColor:
    """Convert a hex color to OKLCH.

    Args:
        hex_color: Hex color string

    Returns:
        OKLCHColor (hue is 0 for achromatic colors)

    Raises:
        ValueError: If hex_color is not a valid hex color
    """
    r, g, b = hex_to_rgb(hex_color)
    oklab = linear_rgb_to_oklab(
        srgb_to_linear(r / 255.0),
        srgb_to_linear(g / 255.0),
        srgb_to_linear(b / 255.0),
    )
    l, c, h = oklab_to_oklch(*oklab)
    return OKLCHColor(l=min(1.0, max(0.0, l)), c=min(MAX_CHROMA, c), h=h)


def is_valid_oklch(l: Any, c: Any, h: Any) -> bool:
    """Check OKLCH components against their valid ranges."""
    try:
        l, c, h = float(l), float(c), float(h)
    except (TypeError, ValueError):
        return False
    if any(math.isnan(v) for v in (l, c, h)):
        return False
    return 0.0 <= l <= 1.0 and 0.0 <= c <= MAX_CHROMA and 0.0 <= h < 360.0


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def adjust_lightness(color: OKLCHColor, amount: float) -> OKLCHColor:
    """Shift lightness by ``amount``, clamped to [0, 1]."""
    return OKLCHColor(l=clamp(color.l + amount, 0.0, 1.0), c=color.c, h=color.h)


def adjust_chroma(color: OKLCHColor, factor: float) -> OKLCHColor:
    """Scale chroma by ``factor``, clamped to [0, 0.4]."""
    return OKLCHColor(l=color.l, c=clamp(color.c * factor, 0.0, MAX_CHROMA), h=color.h)


def hue_difference(h1: float, h2: float) -> float:
    """Smallest angular distance between two hues, 0-180 degrees."""
    diff = abs(h1 - h2) % 360.0
    return 360.0 - diff if diff > 180.0 else diff


def interpolate_oklch(start: OKLCHColor, end: OKLCHColor, t: float) -> OKLCHColor:
    """Interpolate between two colors along the shortest hue path.

    Args:
        start: Color at t=0
        end: Color at t=1
        t: Position between 0 and 1 (clamped)

    Returns:
        Interpolated OKLCHColor
    """
    t = clamp(t, 0.0, 1.0)
    delta = end.h - start.h
    if delta > 180.0:
        delta -= 360.0
    elif delta < -180.0:
        delta += 360.0

    hue = (start.h + delta * t) % 360.0
    if hue >= 360.0:
        hue = 0.0

    return OKLCHColor(
        l=start.l + (end.l - start.l) * t,
        c=start.c + (end.c - start.c) * t,
        h=hue,
    )


def format_oklch_for_css(color: OKLCHColor) -> str:
    """Format as a CSS ``oklch()`` value, e.g. ``oklch(55.00% 0.1500 240.00)``."""
    return f"oklch({color.l * 100:.2f}% {color.c:.4f} {color.h:.2f})"


def calculate_luminance(r: int, g: int, b: int) -> float:
    """Calculate relative luminance of an RGB color.

    Uses the WCAG formula for luminance calculation.

    Args:
        r, g, b: RGB values 0-255

    Returns:
        Relative luminance 0.0-1.0
    """
    def gamma_correct(value: int) -> float:
        normalized = value / 255.0
        if normalized <= 0.03928:
            return normalized / 12.92
        else:
            return ((normalized + 0.055) / 1.055) ** 2.4

    r_linear = gamma_correct(r)
    g_linear = gamma_correct(g)
    b_linear = gamma_correct(b)

    return 0.2126 * r_linear + 0.7152 * g_linear + 0.0722 * b_linear


def calculate_contrast_ratio(color1: str, color2: str) -> float:
    """Calculate WCAG contrast ratio between two colors.

    Args:
        color1, color2: Hex color strings

    Returns:
        Contrast ratio 1.0-21.0 (higher is more contrast)

    Raises:
        ValueError: If either color is not a valid hex color
    """
    lum1 = calculate_luminance(*hex_to_rgb(color1))
    lum2 = calculate_luminance(*hex_to_rgb(color2))

    # Ensure lighter color is in numerator
    if lum1 < lum2:
        lum1, lum2 = lum2, lum1

    return (lum1 + 0.05) / (lum2 + 0.05)


# Minimum ratios per WCAG level: (normal text, large text / UI)
WCAG_THRESHOLDS: Dict[str, Tuple[float, float]] = {
    'AA': (4.5, 3.0),
    'AAA': (7.0, 4.5),
}


def meets_wcag(ratio: float, level: str = 'AA', large_text: bool = False) -> bool:
    """Check a contrast ratio against a WCAG level.

    Args:
        ratio: Contrast ratio
        level: 'AA' or 'AAA'
        large_text: Use the large-text threshold

    Returns:
        True if the ratio meets the level
    """
    if level not in WCAG_THRESHOLDS:
        raise ValueError(f"Unknown WCAG level: {level}")
    normal, large = WCAG_THRESHOLDS[level]
    return ratio >= (large if large_text else normal)


def meets_wcag_contrast(fg_color: str, bg_color: str, level: str = 'AA') -> bool:
    """Check if color combination meets WCAG contrast requirements.

    Args:
        fg_color: Foreground hex color
        bg_color: Background hex color
        level: 'AA' (4.5:1) or 'AAA' (7:1)

    Returns:
        True if contrast meets requirements
    """
    return meets_wcag(calculate_contrast_ratio(fg_color, bg_color), level)


def deep_merge_dict(base: Dict[Any, Any], overlay: Dict[Any, Any]) -> Dict[Any, Any]:
    """Deep merge two dictionaries, with overlay taking precedence.

    Nested dictionaries merge recursively; lists and scalars in the
    overlay replace the base value. ``None`` in the overlay is ignored.

    Args:
        base: Base dictionary
        overlay: Overlay dictionary (takes precedence)

    Returns:
        New merged dictionary
    """
    result = dict(base)

    for key, value in overlay.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_dict(result[key], value)
        else:
            result[key] = value

    return result
