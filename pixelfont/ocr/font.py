"""
Font Definition

Immutable glyph template catalog produced by calibration and persisted as
JSON. Pixel samples are kept both as plain tuples (for serialization) and
as numpy arrays (for scoring).
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple, Union

import numpy as np

from .errors import FontFormatError

logger = logging.getLogger(__name__)


# Sample layout: (dx, dy, intensity) or (dx, dy, intensity, shadow_intensity)
PixelSample = Tuple[int, ...]

_FONT_KEYS = ("chars", "width", "spacewidth", "shadow", "height", "basey")
_CHAR_KEYS = ("chr", "width", "bonus", "secondary", "pixels")


@dataclass(frozen=True)
class Charinfo:
    """
    Template for one character.

    Attributes:
        chr: Character value
        width: Advance width in pixels
        bonus: Reward subtracted from the raw score; denser glyphs get more
        secondary: Ambiguous glyph, only matched when explicitly allowed
        pixels: Samples relative to the top-left of the glyph cell
    """
    chr: str
    width: int
    bonus: float
    secondary: bool
    pixels: Tuple[PixelSample, ...]

    # Column views of pixels used by the matcher
    dx: np.ndarray = field(init=False, repr=False, compare=False)
    dy: np.ndarray = field(init=False, repr=False, compare=False)
    intensity: np.ndarray = field(init=False, repr=False, compare=False)
    shadow_lum: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        pixels = tuple(tuple(int(v) for v in px) for px in self.pixels)
        object.__setattr__(self, "pixels", pixels)

        if pixels:
            cols = np.array(pixels, dtype=np.int64)
        else:
            cols = np.zeros((0, 3), dtype=np.int64)
        object.__setattr__(self, "dx", cols[:, 0])
        object.__setattr__(self, "dy", cols[:, 1])
        object.__setattr__(self, "intensity", cols[:, 2] / 255.0)
        if cols.shape[1] > 3:
            object.__setattr__(self, "shadow_lum", cols[:, 3] / 255.0)
        else:
            object.__setattr__(self, "shadow_lum", np.ones(len(pixels)))

    @property
    def pixel_count(self) -> int:
        return len(self.pixels)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with pixels flattened to one int list."""
        return {
            "chr": self.chr,
            "width": self.width,
            "bonus": self.bonus,
            "secondary": self.secondary,
            "pixels": [v for px in self.pixels for v in px],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], shadow: bool) -> "Charinfo":
        missing = [k for k in _CHAR_KEYS if k not in data]
        if missing:
            raise FontFormatError(f"Character entry missing keys: {', '.join(missing)}")

        stride = 4 if shadow else 3
        flat = list(data["pixels"])
        if len(flat) % stride:
            raise FontFormatError(
                f"Pixel list of '{data['chr']}' is not a multiple of {stride}"
            )
        if int(data["width"]) < 1:
            raise FontFormatError(f"Character '{data['chr']}' has width {data['width']}")
        pixels = tuple(tuple(flat[i:i + stride]) for i in range(0, len(flat), stride))
        return cls(
            chr=data["chr"],
            width=int(data["width"]),
            bonus=float(data["bonus"]),
            secondary=bool(data["secondary"]),
            pixels=pixels,
        )


@dataclass(frozen=True)
class FontDefinition:
    """
    Calibrated pixel font.

    Attributes:
        chars: Glyph templates; order decides ties between equal scores
        width: Widest glyph cell
        spacewidth: Pixels skipped for a space between words
        shadow: Glyphs carry a black shadow (samples hold a 4th value)
        height: Glyph cell height shared by all characters
        basey: Baseline row measured from the top of the cell
    """
    chars: Tuple[Charinfo, ...]
    width: int
    spacewidth: int
    shadow: bool
    height: int
    basey: int

    def __post_init__(self):
        object.__setattr__(self, "chars", tuple(self.chars))

    @property
    def characters(self) -> str:
        """All characters in catalog order."""
        return "".join(c.chr for c in self.chars)

    def get_char(self, chr: str) -> Charinfo:
        """
        Find the first template for a character.

        Raises:
            KeyError: If the font has no such character
        """
        for info in self.chars:
            if info.chr == chr:
                return info
        raise KeyError(chr)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chars": [c.to_dict() for c in self.chars],
            "width": self.width,
            "spacewidth": self.spacewidth,
            "shadow": self.shadow,
            "height": self.height,
            "basey": self.basey,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FontDefinition":
        """
        Build a font from its serialized form.

        Only the presence of fields is checked; offsets are trusted.

        Raises:
            FontFormatError: If required fields are missing
        """
        missing = [k for k in _FONT_KEYS if k not in data]
        if missing:
            raise FontFormatError(f"Font definition missing keys: {', '.join(missing)}")

        shadow = bool(data["shadow"])
        return cls(
            chars=tuple(Charinfo.from_dict(c, shadow) for c in data["chars"]),
            width=int(data["width"]),
            spacewidth=int(data["spacewidth"]),
            shadow=shadow,
            height=int(data["height"]),
            basey=int(data["basey"]),
        )


def save_font(font: FontDefinition, path: Union[str, Path]) -> None:
    """Write a font definition as JSON."""
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(font.to_dict(), f)
    logger.debug(f"Font with {len(font.chars)} chars saved to {path}")


def load_font(path: Union[str, Path]) -> FontDefinition:
    """
    Read a font definition written by save_font.

    Raises:
        FileNotFoundError: If the file does not exist
        FontFormatError: If the JSON is invalid or incomplete
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise FontFormatError(f"Invalid font file {path}: {e}") from e

    font = FontDefinition.from_dict(data)
    logger.debug(f"Font loaded from {path}: {font.characters!r}")
    return font


def make_font(chars: Sequence[Charinfo], spacewidth: int, shadow: bool,
              height: int, basey: int, width: int = None) -> FontDefinition:
    """Assemble a font, deriving the cell width from the widest glyph."""
    chars = list(chars)
    if width is None:
        width = max((c.width for c in chars), default=0)
    return FontDefinition(
        chars=tuple(chars),
        width=width,
        spacewidth=spacewidth,
        shadow=shadow,
        height=height,
        basey=basey,
    )
