"""
OCR Result Dataclasses

Shared data structures for character and line reads.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from .font import Charinfo


@dataclass(frozen=True)
class Rect:
    """Axis aligned rectangle in buffer coordinates."""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class CharMatch:
    """Single character read at an anchor."""
    chr: str
    charinfo: "Charinfo" = field(repr=False)
    x: int           # anchor x as passed to read_char
    y: int           # baseline row
    score: float     # sum of per-pixel blend penalties (>= 0)
    sizescore: float  # score - glyph bonus, the ranking key


@dataclass(frozen=True)
class CharScore:
    """Score of one candidate glyph, recorded for debugging."""
    chr: str
    score: float
    sizescore: float


@dataclass
class LineResult:
    """Complete line read."""
    text: str
    debug_area: Rect                 # extent actually scanned
    processing_time_ms: float = 0.0  # filled in by engines

    @property
    def found(self) -> bool:
        return len(self.text) > 0


ColorTriplet = Tuple[int, int, int]
