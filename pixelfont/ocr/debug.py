"""
OCR Debug Utilities

Score recording, font previews and annotated debug images.
"""

import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .base import ScoreCollector
from .buffer import PixelBuffer
from .font import FontDefinition
from .result import CharScore, LineResult

logger = logging.getLogger(__name__)


# Debug settings
DEBUG_DIR = Path("./debug")
MAX_DEBUG_IMAGES = 10

# Gap between glyph cells in render_font output
FONT_PREVIEW_GAP = 2

ScoreKey = Tuple[int, int, Tuple[int, int, int]]


class ScoreRecorder(ScoreCollector):
    """
    Collects candidate scores per (x, y, color).

    Attributes:
        scores: Recorded candidate lists, appended per read
        log_top: Number of best candidates logged per read (0 disables)
    """

    def __init__(self, log_top: int = 0):
        self.scores: Dict[ScoreKey, List[CharScore]] = defaultdict(list)
        self.log_top = log_top

    def record(self, x, y, color, scores) -> None:
        self.scores[(x, y, color)].extend(scores)

        if self.log_top:
            ranked = sorted(scores, key=lambda s: s.sizescore)[:self.log_top]
            for s in ranked:
                logger.debug(f"({x}, {y}) {s.chr!r} {s.score:.3f} {s.sizescore:.3f}")

    def best(self, x: int, y: int, color: Tuple[int, int, int]) -> List[CharScore]:
        """Candidates recorded at a position, best sizescore first."""
        return sorted(self.scores.get((x, y, tuple(color)), []), key=lambda s: s.sizescore)

    def clear(self) -> None:
        self.scores.clear()

    def __len__(self) -> int:
        return len(self.scores)


def render_font(font: FontDefinition) -> PixelBuffer:
    """
    Draw every glyph of a font side by side for inspection.

    Template intensity is drawn as gray; for shadow fonts the shadow
    luminance replaces it in the red channel.

    Returns:
        Buffer of (width + 2) * len(chars) by height + 1 pixels
    """
    spacing = font.width + FONT_PREVIEW_GAP
    buf = PixelBuffer.filled(spacing * len(font.chars), font.height + 1, (0, 0, 0, 255))

    for index, info in enumerate(font.chars):
        bx = index * spacing
        for px in info.pixels:
            if font.shadow:
                buf.set_pixel(bx + px[0], px[1], (px[3], 0, 0, 255))
            else:
                buf.set_pixel(bx + px[0], px[1], (px[2], px[2], px[2], 255))
    return buf


def zoom_image(buffer: PixelBuffer, zoom: int) -> PixelBuffer:
    """Nearest-neighbour upscale so single pixels stay visible."""
    if zoom <= 1:
        return buffer
    scaled = cv2.resize(buffer.data, (buffer.width * zoom, buffer.height * zoom),
                        interpolation=cv2.INTER_NEAREST)
    return PixelBuffer.from_array(scaled)


def save_debug_image(
    image: Union[Image.Image, PixelBuffer],
    result: LineResult,
    path: Optional[Union[str, Path]] = None,
    zoom: int = 1,
) -> Path:
    """
    Save an annotated debug image of a line read.

    Annotations include:
    - Scanned area
    - Recognized text (red when nothing was read)

    Args:
        image: Original image or buffer that was read
        result: Line read result
        path: Output file path. When omitted a timestamped debug_*.png is
              written to DEBUG_DIR and only the newest MAX_DEBUG_IMAGES
              are kept there.
        zoom: Integer upscale factor applied before drawing

    Returns:
        Path of the written image
    """
    if path is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        path = DEBUG_DIR / f"debug_{timestamp}.png"
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    buffer = image if isinstance(image, PixelBuffer) else PixelBuffer.from_image(image)
    debug_img = zoom_image(buffer, zoom).to_image().convert("RGB")
    draw = ImageDraw.Draw(debug_img)
    font = ImageFont.load_default()

    area = result.debug_area
    box = np.array([area.x, area.y, area.x + area.width, area.y + area.height]) * max(zoom, 1)
    draw.rectangle(box.tolist(), outline="lime" if result.found else "red", width=1)

    label = result.text if result.found else "<none>"
    draw.text((2, 2), f"{label!r} {result.processing_time_ms:.1f}ms",
              fill="yellow" if result.found else "red", font=font)

    debug_img.save(path, "PNG")
    logger.debug(f"Debug image saved: {path}")

    if path.parent.resolve() == DEBUG_DIR.resolve():
        _cleanup_debug_images()
    return path


def _cleanup_debug_images() -> None:
    """Remove old debug images, keeping only the most recent MAX_DEBUG_IMAGES."""
    if not DEBUG_DIR.exists():
        return

    debug_files = sorted(
        DEBUG_DIR.glob("debug_*.png"),
        key=lambda p: p.stat().st_mtime,
        reverse=True
    )

    for old_file in debug_files[MAX_DEBUG_IMAGES:]:
        try:
            old_file.unlink()
        except OSError as e:
            logger.warning(f"Could not remove {old_file}: {e}")
