"""
OCR Engine Base Interface

Contracts shared by engines and by the debug score collectors.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Sequence, Tuple

from PIL import Image

if TYPE_CHECKING:
    from .result import CharScore, LineResult


class OCREngine(ABC):
    """
    Reads one line of text near a position in a captured image.

    Engines are created through create_engine() and may be reconfigured
    between reads.
    """

    @abstractmethod
    def process(self, image: Image.Image, colors: Sequence, x: int, y: int,
                w: int = -1, h: int = -1) -> "LineResult":
        """
        Read the line of text around a position.

        Args:
            image: PIL Image of the captured region
            colors: Text color (r, g, b) or list of candidate colors
            x: Column inside the text
            y: Approximate baseline row of the text
            w: Search window width (-1 for one glyph cell)
            h: Search window height (-1 for the default)

        Returns:
            LineResult with the text (empty when nothing was read), the
            scanned area and the processing time
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of the engine (e.g. "font")."""

    def configure(self, **kwargs) -> None:
        """Apply engine specific options; engines without options ignore them."""


class ScoreCollector(ABC):
    """
    Receives the score of every candidate glyph evaluated by read_char.

    Collectors are passed explicitly to the reader functions; nothing is
    recorded unless one is given.
    """

    @abstractmethod
    def record(self, x: int, y: int, color: Tuple[int, int, int],
               scores: List["CharScore"]) -> None:
        """
        Record one character read.

        Args:
            x: Anchor column passed to read_char
            y: Baseline row passed to read_char
            color: Text color tried
            scores: Candidate scores in font order
        """
