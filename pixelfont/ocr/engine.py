"""
Pixel Font OCR Engine

OCR engine that reads lines of a calibrated pixel font from captured
images. Wraps the reader functions with font loading, image conversion
and timing.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Sequence, Union

from PIL import Image

from .base import OCREngine, ScoreCollector
from .buffer import PixelBuffer
from .font import FontDefinition, load_font
from .reader import find_read_line, read_line
from .result import LineResult

logger = logging.getLogger(__name__)


class FontOCREngine(OCREngine):
    """
    OCR engine for one calibrated pixel font.

    The font is either given directly or loaded from a JSON file on the
    first read.
    """

    def __init__(self, font: Optional[FontDefinition] = None,
                 font_path: Optional[Path] = None,
                 collector: Optional[ScoreCollector] = None):
        """
        Initialize the engine.

        Args:
            font: Font definition to use
            font_path: Font JSON to load lazily when font is None
            collector: Optional score collector passed to every read
        """
        self._font = font
        self._font_path = font_path
        self._collector = collector

    @property
    def name(self) -> str:
        return "font"

    @property
    def font(self) -> FontDefinition:
        """
        Loaded font definition.

        Raises:
            ValueError: If neither a font nor a font path was configured
        """
        if self._font is None:
            if self._font_path is None:
                raise ValueError("No font or font_path configured")
            self._font = load_font(self._font_path)
            logger.info(f"Loaded font {self._font_path} ({len(self._font.chars)} chars)")
        return self._font

    def configure(self, **kwargs) -> None:
        """
        Configure engine parameters.

        Args:
            font: Font definition to use
            font_path: Path to a font JSON (reloaded on next read)
            collector: Score collector, None to disable recording
        """
        if 'font' in kwargs:
            self._font = kwargs['font']
        if 'font_path' in kwargs:
            self._font_path = Path(kwargs['font_path'])
            self._font = None
        if 'collector' in kwargs:
            self._collector = kwargs['collector']

    def process(self, image: Union[Image.Image, PixelBuffer], colors: Sequence,
                x: int, y: int, w: int = -1, h: int = -1) -> LineResult:
        """
        Find and read the line of text around (x, y).

        Args:
            image: PIL Image or PixelBuffer of the captured region
            colors: Text color or list of candidate colors
            x: Column inside the text
            y: Approximate baseline row

        Returns:
            LineResult with text, scanned area and processing time
        """
        start_time = time.perf_counter()

        buffer = self._to_buffer(image)
        result = find_read_line(buffer, self.font, colors, x, y, w, h, self._collector)

        result.processing_time_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Read {result.text!r} near ({x}, {y}) in {result.processing_time_ms:.1f}ms")
        return result

    def read_exact(self, image: Union[Image.Image, PixelBuffer], colors: Sequence,
                   x: int, y: int, forward: bool = True, backward: bool = False) -> LineResult:
        """
        Read a line whose first character position is exactly known.

        Returns:
            LineResult with text, scanned area and processing time
        """
        start_time = time.perf_counter()

        buffer = self._to_buffer(image)
        result = read_line(buffer, self.font, colors, x, y, forward, backward, self._collector)

        result.processing_time_ms = (time.perf_counter() - start_time) * 1000
        return result

    @staticmethod
    def _to_buffer(image: Union[Image.Image, PixelBuffer]) -> PixelBuffer:
        if isinstance(image, PixelBuffer):
            return image
        return PixelBuffer.from_image(image)

