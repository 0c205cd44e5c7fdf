"""
OCR Module for pixelfont

Reads text drawn in a fixed pixel font on top of an unknown, blended
background.

Usage:
    from pixelfont.ocr import PixelBuffer, load_font, find_read_line

    font = load_font("fonts/chat.json")
    buffer = PixelBuffer.from_image(image)

    # (x, y) somewhere inside the text, y near the baseline
    result = find_read_line(buffer, font, [(255, 255, 0), (0, 255, 255)], 40, 12)
    print(result.text)

Calibrating a font:
    from pixelfont.ocr import unblend_trans, generate_font, save_font

    ref = unblend_trans(PixelBuffer.load("chat_font.png"), False, (255, 255, 255))
    font = generate_font(ref, "ABCabc0123", basey=8, spacewidth=3, threshold=0.6)
    save_font(font, "fonts/chat.json")
"""

# Public API - Data types
from .buffer import PixelBuffer
from .font import Charinfo, FontDefinition, load_font, save_font
from .result import CharMatch, CharScore, LineResult, Rect

# Public API - Errors
from .errors import OCRError, UnblendError, CalibrationError, FontFormatError

# Public API - Color model
from .color import canblend, decompose2col, decompose3col

# Public API - Calibration
from .unblend import unblend_known_bg, unblend_trans
from .calibration import generate_font

# Public API - Reading
from .reader import (
    MAX_CHAR_SCORE,
    ScanState,
    read_char,
    read_line,
    find_char,
    find_read_line,
    next_scan_state,
)

# Public API - Engines
from .base import OCREngine, ScoreCollector
from .engine import FontOCREngine
from .factory import (
    create_engine,
    register_engine,
    available_engines,
)

# Debug utilities
from .debug import DEBUG_DIR, ScoreRecorder, render_font, save_debug_image

__all__ = [
    # Data types
    "PixelBuffer",
    "Charinfo",
    "FontDefinition",
    "load_font",
    "save_font",
    "CharMatch",
    "CharScore",
    "LineResult",
    "Rect",
    # Errors
    "OCRError",
    "UnblendError",
    "CalibrationError",
    "FontFormatError",
    # Color model
    "canblend",
    "decompose2col",
    "decompose3col",
    # Calibration
    "unblend_known_bg",
    "unblend_trans",
    "generate_font",
    # Reading
    "MAX_CHAR_SCORE",
    "ScanState",
    "read_char",
    "read_line",
    "find_char",
    "find_read_line",
    "next_scan_state",
    # Engines
    "OCREngine",
    "ScoreCollector",
    "FontOCREngine",
    "create_engine",
    "register_engine",
    "available_engines",
    # Debug
    "DEBUG_DIR",
    "ScoreRecorder",
    "render_font",
    "save_debug_image",
]
