import os
import sys

import numpy as np
import pytest

# Add project root to path so tests can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pixelfont.ocr import PixelBuffer, generate_font


# 3x5 glyphs, '#' = ink
GLYPHS = {
    "A": [
        ".#.",
        "#.#",
        "###",
        "#.#",
        "#.#",
    ],
    "B": [
        "##.",
        "#.#",
        "##.",
        "#.#",
        "##.",
    ],
}

# Reference layout: one blank row on top, glyph rows 1-5, marker row 6
REF_TOP = 1
REF_BASELINE = 5
SPACEWIDTH = 2

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def make_reference(chars="AB", glyphs=GLYPHS, top=REF_TOP, gap=1):
    """
    Build an unblended reference image: red = coverage, marker row at the
    bottom flags the glyph columns.
    """
    glyph_w = len(next(iter(glyphs.values()))[0])
    glyph_h = len(next(iter(glyphs.values())))
    width = gap + len(chars) * (glyph_w + gap)
    height = top + glyph_h + 1

    data = np.zeros((height, width, 4), dtype=np.uint8)
    data[..., 3] = 255
    for index, char in enumerate(chars):
        left = gap + index * (glyph_w + gap)
        data[height - 1, left:left + glyph_w, 0] = 255
        for dy, row in enumerate(glyphs[char]):
            for dx, cell in enumerate(row):
                if cell == "#":
                    data[top + dy, left + dx, :3] = 255
    return PixelBuffer.from_array(data)


def render_text(font, text, color, x, y, size=(20, 10), background=BLACK):
    """
    Draw text with the font's own templates, blended over a background.

    x is the left edge of the first character (spaces advance by the
    font's space width), y is the baseline row.
    """
    buf = PixelBuffer.filled(size[0], size[1], background)
    top = y - font.basey
    color = np.asarray(color, dtype=np.float64)
    for char in text:
        if char == " ":
            x += font.spacewidth
            continue
        info = font.get_char(char)
        for px in info.pixels:
            p = px[2] / 255.0
            ink = color * (px[3] / 255.0) if font.shadow else color
            bg = buf.data[top + px[1], x + px[0], :3].astype(np.float64)
            mixed = np.rint(ink * p + bg * (1 - p))
            buf.set_pixel(x + px[0], top + px[1], [int(v) for v in mixed])
        x += info.width
    return buf


@pytest.fixture
def reference():
    """Unblended reference image for glyphs A and B."""
    return make_reference()


@pytest.fixture
def font(reference):
    """Font calibrated from the A/B reference image."""
    return generate_font(reference, "AB", basey=REF_BASELINE,
                         spacewidth=SPACEWIDTH, threshold=0.5)


@pytest.fixture
def render():
    return render_text
