"""
Font Calibration

Builds a FontDefinition from an unblended reference image.

The reference image holds every character of the font side by side. Its
bottom row is a marker row: pixels with red == 255 and alpha == 255 mark
the columns that belong to a glyph, one contiguous run per character.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from .buffer import PixelBuffer
from .errors import CalibrationError
from .font import Charinfo, FontDefinition, make_font

logger = logging.getLogger(__name__)


# Bonus added per template pixel so denser glyphs beat sparse ones
PIXEL_BONUS = 5


def find_spans(unblended: PixelBuffer) -> List[Tuple[int, int]]:
    """
    Locate glyph column spans on the marker row.

    Returns:
        List of (start, end) column ranges, end exclusive, left to right
    """
    row = unblended.data[unblended.height - 1]
    marked = (row[:, 0] == 255) & (row[:, 3] == 255)

    spans = []
    start: Optional[int] = None
    for x, is_marked in enumerate(marked):
        if is_marked and start is None:
            start = x
        elif not is_marked and start is not None:
            spans.append((start, x))
            start = None
    if start is not None:
        spans.append((start, unblended.width))
    return spans


def generate_font(unblended: PixelBuffer, chars: str, seconds: str = "",
                  bonuses: Optional[Dict[str, float]] = None, basey: int = 0,
                  spacewidth: int = 3, threshold: float = 0.5,
                  shadow: bool = False) -> FontDefinition:
    """
    Generate a font definition from a reference image.

    Args:
        unblended: Reference image after unblend_known_bg/unblend_trans
        chars: The characters in the image, in left-to-right order
        seconds: Characters that are unlikely and only read when nothing
                 else fits (e.g. '.' matches inside many glyphs)
        bonuses: Extra score per character to favour hard-to-read glyphs
        basey: Row of the baseline pixel in the reference image
        spacewidth: Pixels taken by a space
        threshold: Minimal coverage (0-1) for a pixel to join a template
        shadow: Font has a black shadow; the image must be unblended with
                shadow as well

    Returns:
        Immutable FontDefinition

    Raises:
        CalibrationError: If the marker spans don't match chars, or no
                          pixel reaches the threshold
    """
    level = threshold * 255
    bonuses = bonuses or {}

    spans = find_spans(unblended)
    if len(spans) != len(chars):
        raise CalibrationError(
            f"Found {len(spans)} marked glyph spans but {len(chars)} characters "
            f"were given ({chars!r})"
        )

    # Marker row excluded
    coverage = unblended.data[:unblended.height - 1, :, 0]
    glyph_area = np.zeros(coverage.shape, dtype=bool)
    for start, end in spans:
        glyph_area[:, start:end] = True

    rows = np.nonzero(((coverage >= level) & glyph_area).any(axis=1))[0]
    if rows.size == 0:
        raise CalibrationError(f"No glyph pixel reaches threshold {threshold}")

    miny = int(rows[0])
    maxy = int(rows[-1])
    height = maxy + 1 - miny
    logger.debug(f"Calibrating {len(spans)} glyphs, rows {miny}-{maxy}")

    infos = []
    for (start, end), char in zip(spans, chars):
        pixels = []
        bonus = float(bonuses.get(char, 0))

        # Column-major order, matching the sample layout of saved fonts
        for x in range(end - start):
            for y in range(height):
                px = unblended.data[y + miny, x + start]
                if px[0] >= level:
                    sample = (x, y, int(px[0]))
                    if shadow:
                        sample += (int(px[1]),)
                    pixels.append(sample)
                    bonus += PIXEL_BONUS

        infos.append(Charinfo(
            chr=char,
            width=end - start,
            bonus=round(bonus, 3),
            secondary=char in seconds,
            pixels=tuple(pixels),
        ))

    font = make_font(infos, spacewidth=spacewidth, shadow=shadow,
                     height=height, basey=basey - miny)
    logger.info(f"Font calibrated: {len(infos)} chars, cell {font.width}x{font.height}, "
                f"basey {font.basey}")
    return font
