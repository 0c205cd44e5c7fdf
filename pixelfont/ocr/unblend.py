"""
Unblending Preprocessors

Convert a capture of rendered text into the calibration representation:
red = font coverage (0-255), green = normalized luminance, blue = red,
alpha = 255. Both transforms are pure per-pixel maps.
"""

import logging
from typing import Sequence

import numpy as np

from .buffer import PixelBuffer
from .color import decompose2col
from .errors import UnblendError

logger = logging.getLogger(__name__)


# Residual share above which a pixel counts as badly explained
HIGH_ERROR_COMPONENT = 0.01


def _pack(coverage: np.ndarray, luminance: np.ndarray) -> PixelBuffer:
    """Build the output buffer from float channel planes (0-255 scale)."""
    height, width = coverage.shape
    out = np.empty((height, width, 4), dtype=np.uint8)

    red = np.clip(np.rint(np.nan_to_num(coverage)), 0, 255).astype(np.uint8)
    green = np.clip(np.rint(np.nan_to_num(luminance)), 0, 255).astype(np.uint8)

    out[..., 0] = red
    out[..., 1] = green
    out[..., 2] = red
    out[..., 3] = 255
    return PixelBuffer(width, height, out)


def unblend_known_bg(img: PixelBuffer, bgimg: PixelBuffer, shadow: bool,
                     font_color: Sequence[int]) -> PixelBuffer:
    """
    Unblend a capture using a second capture of the same background.

    The background image must show the pixels the text covers, so every
    pixel can be decomposed into font color, background color and noise.

    Args:
        img: Capture containing the text
        bgimg: Same region without the text
        shadow: Font has a black shadow as second color
        font_color: Glyph ink color (r, g, b)

    Returns:
        Calibration-ready buffer

    Raises:
        UnblendError: If the two images differ in size
    """
    if img.width != bgimg.width or img.height != bgimg.height:
        raise UnblendError(
            f"Background size {bgimg.width}x{bgimg.height} doesn't match "
            f"capture size {img.width}x{img.height}"
        )

    pixels = img.data[..., :3].astype(np.float64)
    background = bgimg.data[..., :3].astype(np.float64)
    font_part, bg_part, noise = decompose2col(pixels, font_color, background)

    with np.errstate(divide="ignore", invalid="ignore"):
        if shadow:
            abs_noise = np.abs(np.nan_to_num(noise))
            high = int(np.count_nonzero(abs_noise > HIGH_ERROR_COMPONENT))
            if high:
                logger.warning(f"{high} pixels with error component above "
                               f"{HIGH_ERROR_COMPONENT * 100:.0f}%")
            logger.info(f"Avg unblend px error: {abs_noise.mean() * 100:.1f}%")

            # main color + black = 100% - background - error
            m = 1.0 - bg_part - abs_noise
            return _pack(m * 255.0, font_part / m * 255.0)

        coverage = font_part * 255.0
        return _pack(coverage, coverage)


def unblend_trans(img: PixelBuffer, shadow: bool, font_color: Sequence[int]) -> PixelBuffer:
    """
    Unblend a capture whose alpha channel already isolates the glyphs.

    Suited to pixel fonts with alpha of 0 or 255 and to extracted font
    sheets.

    Args:
        img: Capture with glyph coverage in the alpha channel
        shadow: Font has a black shadow; luminance relative to the font
                color goes to the green channel
        font_color: Glyph ink color (r, g, b)

    Returns:
        Calibration-ready buffer
    """
    alpha = img.data[..., 3].astype(np.float64)
    if not shadow:
        return _pack(alpha, alpha)

    font_lum = float(sum(font_color))
    lum = img.data[..., :3].astype(np.float64).sum(axis=-1)
    with np.errstate(divide="ignore", invalid="ignore"):
        return _pack(alpha, lum / font_lum * 255.0)
