"""
pixelfont - pixel font text recognition for blended screen captures.

See pixelfont.ocr for the public API.
"""

__version__ = "0.1.0"
