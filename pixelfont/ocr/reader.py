"""
Pixel Font Reader

Character matcher and line scanner for calibrated pixel fonts.

A glyph is read by scoring every template of the font against the pixels
at an anchor: each template sample must be explainable as a blend of the
target color (at the sampled intensity) with some unknown background. The
line scanner chains character reads in either direction, re-detecting the
text color and skipping word spaces when a read fails.

All functions are pure; optional score collectors receive every candidate
score for debugging.
"""

import logging
import math
from enum import Enum, auto
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .base import ScoreCollector
from .buffer import PixelBuffer
from .color import blend_penalties
from .font import FontDefinition
from .result import CharMatch, CharScore, ColorTriplet, LineResult, Rect

logger = logging.getLogger(__name__)


# Highest raw score still accepted as a character (tuned, not derived)
MAX_CHAR_SCORE = 400

# Search window height used by find_read_line when none is given
DEFAULT_SEARCH_HEIGHT = 7

Colors = Union[ColorTriplet, Sequence[ColorTriplet]]


class Direction(Enum):
    """Scan direction; the value is the sign of cursor steps."""
    FORWARD = 1
    BACKWARD = -1


class ScanState(Enum):
    """
    States of one directional scan pass.

    States:
        MATCH_GLYPH: Read a glyph with the current (sticky) color
        RETRY_COLOR: Drop the sticky color, re-detect and read again
        TRY_SPACE: Step over one word space
        TERMINATED: Nothing more to read in this direction
    """
    MATCH_GLYPH = auto()
    RETRY_COLOR = auto()
    TRY_SPACE = auto()
    TERMINATED = auto()


def step(dx: int, direction: Direction, amount: int) -> int:
    """Move the cursor offset by amount pixels in the scan direction."""
    return dx + direction.value * amount


def next_scan_state(state: ScanState, matched: bool, multicolor: bool,
                    space_pending: bool) -> ScanState:
    """
    Transition function of a scan pass.

    Order after a failed read: recolor (multi-color only), then one space
    skip, then stop. A successful read resets to MATCH_GLYPH.

    Args:
        state: State that just ran
        matched: Whether that state read a glyph
        multicolor: Whether more than one candidate color was given
        space_pending: Whether a space was skipped since the last glyph
    """
    if state is ScanState.TERMINATED:
        return ScanState.TERMINATED
    if state is ScanState.TRY_SPACE or matched:
        return ScanState.MATCH_GLYPH
    if state is ScanState.MATCH_GLYPH and multicolor:
        return ScanState.RETRY_COLOR
    if not space_pending:
        return ScanState.TRY_SPACE
    return ScanState.TERMINATED


def read_char(buffer: PixelBuffer, font: FontDefinition, color: Sequence[int],
              x: int, y: int, backwards: bool = False, allow_secondary: bool = False,
              collector: Optional[ScoreCollector] = None) -> Optional[CharMatch]:
    """
    Read a single character at an exact location.

    Args:
        buffer: Pixels to read from
        font: Calibrated font
        color: Text color (r, g, b)
        x: First pixel of the character cell, or with backwards the first
           pixel after it
        y: Row of the text baseline
        backwards: Read the glyph that ends at x
        allow_secondary: Also consider glyphs marked secondary
        collector: Optional sink for every candidate score

    Returns:
        CharMatch, or None when the cell is outside the buffer or no glyph
        scores within MAX_CHAR_SCORE
    """
    top = y - font.basey

    # The full glyph cell has to be inside the buffer
    if top < 0 or top + font.height > buffer.height:
        return None
    if backwards:
        if x - font.width < 0 or x > buffer.width:
            return None
    elif x < 0 or x + font.width > buffer.width:
        return None

    target = np.asarray(color[:3], dtype=np.float64)
    rgb = buffer.data[..., :3]

    best = None
    best_score = 0.0
    best_sizescore = math.inf
    scores: Optional[List[CharScore]] = [] if collector is not None else None

    for info in font.chars:
        if info.secondary and not allow_secondary:
            continue
        left = x - info.width if backwards else x

        observed = rgb[top + info.dy, left + info.dx]
        expected = target * info.shadow_lum[:, np.newaxis] if font.shadow else target
        score = float(blend_penalties(observed, expected, info.intensity).sum())
        sizescore = score - info.bonus

        if scores is not None:
            scores.append(CharScore(info.chr, score, sizescore))
        if sizescore < best_sizescore:
            best = info
            best_score = score
            best_sizescore = sizescore

    if collector is not None:
        collector.record(x, y, tuple(int(c) for c in color[:3]), scores)

    if best is None or best_score > MAX_CHAR_SCORE:
        return None

    return CharMatch(
        chr=best.chr,
        charinfo=best,
        x=x,
        y=y,
        score=best_score,
        sizescore=best_sizescore,
    )


def detect_color(buffer: PixelBuffer, font: FontDefinition, colors: Sequence[ColorTriplet],
                 x: int, y: int, backwards: bool,
                 collector: Optional[ScoreCollector] = None) -> Optional[ColorTriplet]:
    """Pick the candidate color whose best glyph has the lowest sizescore."""
    best = None
    best_sizescore = math.inf
    for color in colors:
        match = read_char(buffer, font, color, x, y, backwards, False, collector)
        if match is not None and match.sizescore < best_sizescore:
            best = color
            best_sizescore = match.sizescore
    return best


def _as_color_list(colors: Colors) -> Tuple[List[ColorTriplet], bool]:
    """Normalize one color or a list of colors; returns (colors, multicolor)."""
    if len(colors) > 0 and np.ndim(colors[0]) == 0:
        return [tuple(colors)], False
    return [tuple(c) for c in colors], True


class _ScanPass:
    """One directional run of the line scanner."""

    def __init__(self, buffer: PixelBuffer, font: FontDefinition,
                 colors: List[ColorTriplet], multicolor: bool, x: int, y: int,
                 direction: Direction, collector: Optional[ScoreCollector]):
        self.buffer = buffer
        self.font = font
        self.colors = colors
        self.multicolor = multicolor
        self.x = x
        self.y = y
        self.direction = direction
        self.collector = collector

    @property
    def backwards(self) -> bool:
        return self.direction is Direction.BACKWARD

    def _read(self, dx: int, color: Optional[ColorTriplet]) -> Optional[CharMatch]:
        if color is None:
            return None
        return read_char(self.buffer, self.font, color, self.x + dx, self.y,
                         self.backwards, True, self.collector)

    def _detect(self, dx: int) -> Optional[ColorTriplet]:
        return detect_color(self.buffer, self.font, self.colors, self.x + dx, self.y,
                            self.backwards, self.collector)

    def run(self) -> Tuple[str, int]:
        """
        Scan until two consecutive failures around a space.

        Returns:
            Tuple of (text read, x of the scanned boundary)
        """
        pieces: List[str] = []
        dx = 0
        space_pending = False
        color = None if self.multicolor else self.colors[0]
        state = ScanState.MATCH_GLYPH

        while state is not ScanState.TERMINATED:
            matched = False

            if state is ScanState.TRY_SPACE:
                dx = step(dx, self.direction, self.font.spacewidth)
                space_pending = True
            else:
                if state is ScanState.RETRY_COLOR or color is None:
                    color = self._detect(dx)
                match = self._read(dx, color)
                if match is not None and match.charinfo.width < 1:
                    logger.warning(f"Glyph {match.chr!r} has no width, ending scan at dx={dx}")
                    break

                if match is not None:
                    matched = True
                    if space_pending:
                        pieces.append(match.chr + " " if self.backwards else " " + match.chr)
                    else:
                        pieces.append(match.chr)
                    space_pending = False
                    dx = step(dx, self.direction, match.charinfo.width)

            state = next_scan_state(state, matched, self.multicolor, space_pending)

        if self.backwards:
            pieces.reverse()

        # The last step was an unused space skip
        boundary = self.x + step(dx, self.direction, -self.font.spacewidth)
        logger.debug(f"{self.direction.name.lower()} scan from ({self.x}, {self.y}): "
                     f"{''.join(pieces)!r}")
        return "".join(pieces), boundary


def read_line(buffer: PixelBuffer, font: FontDefinition, colors: Colors, x: int, y: int,
              forward: bool = True, backward: bool = False,
              collector: Optional[ScoreCollector] = None) -> LineResult:
    """
    Read a line of text with exactly known position.

    Args:
        buffer: Pixels to read from
        font: Calibrated font
        colors: One text color, or a list of candidates. With a list the
                detected color is reused until a read fails.
        x: First pixel of a character (forward) / first pixel after a
           character (backward)
        y: Row of the text baseline
        forward: Read to the right of x
        backward: Read to the left of x
        collector: Optional sink for every candidate score

    Returns:
        LineResult with the text and the scanned area
    """
    color_list, multicolor = _as_color_list(colors)

    text = ""
    x1 = x
    x2 = x

    if forward:
        found, x2 = _ScanPass(buffer, font, color_list, multicolor, x, y,
                              Direction.FORWARD, collector).run()
        text = text + found
    if backward:
        found, x1 = _ScanPass(buffer, font, color_list, multicolor, x, y,
                              Direction.BACKWARD, collector).run()
        text = found + text

    return LineResult(
        text=text,
        debug_area=Rect(x1, y - font.basey, x2 - x1, font.height),
    )


def find_char(buffer: PixelBuffer, font: FontDefinition, color: Sequence[int],
              x: int, y: int, w: int, h: int,
              collector: Optional[ScoreCollector] = None) -> Optional[CharMatch]:
    """
    Brute force the exact position of a character.

    Every anchor in [x, x+w) x [y, y+h) is tried, y being a baseline row.

    Returns:
        The match with the lowest sizescore, or None
    """
    best: Optional[CharMatch] = None
    for cx in range(x, x + w):
        for cy in range(y, y + h):
            match = read_char(buffer, font, color, cx, cy, False, False, collector)
            if match is not None and (best is None or match.sizescore < best.sizescore):
                best = match
    return best


def find_read_line(buffer: PixelBuffer, font: FontDefinition, colors: Colors,
                   x: int, y: int, w: int = -1, h: int = -1,
                   collector: Optional[ScoreCollector] = None) -> LineResult:
    """
    Read text whose exact position is unknown.

    (x, y) should lie inside the text near its baseline. When w/h are -1 a
    window of about one glyph cell centered on (x, y) is searched for a
    starting character using the first color.

    Returns:
        LineResult; empty text and the search window as debug area when no
        starting character was found
    """
    color_list, _ = _as_color_list(colors)

    if w == -1:
        w = font.width + font.spacewidth
        x -= math.ceil(w / 2)
    if h == -1:
        h = DEFAULT_SEARCH_HEIGHT
        y -= h // 2

    match = None
    if color_list:
        match = find_char(buffer, font, color_list[0], x, y, w, h, collector)
    if match is None:
        logger.debug(f"No starting character in ({x}, {y}, {w}, {h})")
        return LineResult(text="", debug_area=Rect(x, y, w, h))

    return read_line(buffer, font, colors, match.x, match.y, True, True, collector)
