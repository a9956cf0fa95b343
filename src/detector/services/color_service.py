# src/detector/services/color_service.py
import logging
import math
from typing import Any, List, Optional, Sequence

from detector.model import Compliance, ContrastResult
from detector.tree.core import Paint, RGB, is_mixed

logger = logging.getLogger(__name__)

# WCAG 2.x thresholds
LARGE_TEXT_SIZE = 18
LARGE_BOLD_TEXT_SIZE = 14

BLACK: RGB = (0, 0, 0)


def _channel_to_linear(value: int) -> float:
    c = value / 255
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(color: Sequence[int]) -> float:
    """WCAG relative luminance of an sRGB color given as 0..255 channels."""
    r, g, b = (_channel_to_linear(c) for c in color)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(a: Sequence[int], b: Sequence[int]) -> float:
    """
    Contrast ratio between two colors, in [1, 21].
    Symmetric in argument order.
    """
    la = relative_luminance(a)
    lb = relative_luminance(b)
    lighter, darker = max(la, lb), min(la, lb)
    # Clamp float noise at the extremes (white on black lands a hair above 21).
    return min(21.0, max(1.0, (lighter + 0.05) / (darker + 0.05)))


def is_valid_font_size(font_size: Any) -> bool:
    if is_mixed(font_size) or isinstance(font_size, bool):
        return False
    return isinstance(font_size, (int, float)) and math.isfinite(font_size)


def is_large_text(font_size: float, is_bold: bool) -> bool:
    return font_size >= LARGE_TEXT_SIZE or (is_bold and font_size >= LARGE_BOLD_TEXT_SIZE)


def compliance_tier(ratio: float, font_size: Any, is_bold: bool = False) -> Compliance:
    """
    Maps a contrast ratio to the WCAG tier for the given text size.
    An unusable font size (non-finite, non-numeric, MIXED) yields FAIL.
    """
    if not is_valid_font_size(font_size):
        logger.debug(f"Invalid font size {font_size!r}, failing closed.")
        return Compliance.FAIL

    if is_large_text(font_size, is_bold):
        if ratio >= 4.5:
            return Compliance.AAA_LARGE
        if ratio >= 3:
            return Compliance.AA_LARGE
    else:
        if ratio >= 7:
            return Compliance.AAA
        if ratio >= 4.5:
            return Compliance.AA

    return Compliance.FAIL


def evaluate_contrast(foreground: RGB, background: RGB, font_size: Any, is_bold: bool = False) -> ContrastResult:
    """
    Computes ratio and tier for a text color on a background.
    Never raises: unusable font sizes give ContrastResult(ratio=0, compliance=FAIL).
    """
    if not is_valid_font_size(font_size):
        return ContrastResult(ratio=0.0, compliance=Compliance.FAIL)

    ratio = contrast_ratio(foreground, background)
    return ContrastResult(ratio=ratio, compliance=compliance_tier(ratio, font_size, is_bold))


def foreground_color(fills: Optional[List[Paint]]) -> RGB:
    """
    Text color taken from the first fill when it is a visible solid paint.
    Anything else (gradient, image, hidden, no fills) is read as black.
    """
    if fills and fills[0].is_visible_solid:
        return fills[0].to_rgb()
    logger.debug("Text fill is not a visible solid paint, assuming black.")
    return BLACK
