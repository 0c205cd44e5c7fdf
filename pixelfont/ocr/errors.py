"""
OCR Exceptions

Raised only for structurally invalid input. Recognition misses are reported
as None / empty results, never as exceptions.
"""


class OCRError(Exception):
    """Base class for all pixelfont errors."""


class UnblendError(OCRError):
    """Capture and background reference cannot be unblended together."""


class CalibrationError(OCRError):
    """Reference image does not describe the requested characters."""


class FontFormatError(OCRError):
    """Serialized font definition is missing required fields."""
