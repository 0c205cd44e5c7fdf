"""
Pixel Buffer

RGBA raster handed to the matcher by whatever captured it. Pixels are held
as a numpy (height, width, 4) uint8 array in row-major order.
"""

from pathlib import Path
from typing import Sequence, Tuple, Union

import cv2
import numpy as np
from PIL import Image


class PixelBuffer:
    """
    Owned RGBA pixel raster.

    The matcher only reads from a buffer. Unblending and calibration always
    return a new buffer instead of mutating their input.
    """

    def __init__(self, width: int, height: int, data: np.ndarray = None):
        """
        Create a buffer.

        Args:
            width: Width in pixels
            height: Height in pixels
            data: Optional (height, width, 4) array, copied into the buffer.
                  A zeroed (transparent black) raster is allocated if omitted.
        """
        if data is None:
            data = np.zeros((height, width, 4), dtype=np.uint8)
        else:
            data = np.array(data, dtype=np.uint8, copy=True)
            if data.shape != (height, width, 4):
                raise ValueError(
                    f"Pixel data shape {data.shape} does not match {width}x{height} RGBA"
                )
        self.width = width
        self.height = height
        self.data = data

    @classmethod
    def from_array(cls, data: np.ndarray) -> "PixelBuffer":
        """Wrap an RGBA (or RGB, alpha filled with 255) array."""
        data = np.asarray(data, dtype=np.uint8)
        if data.ndim == 3 and data.shape[2] == 3:
            alpha = np.full(data.shape[:2] + (1,), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=2)
        height, width = data.shape[:2]
        return cls(width, height, data)

    @classmethod
    def filled(cls, width: int, height: int, color: Sequence[int]) -> "PixelBuffer":
        """Create a buffer with every pixel set to color (RGB or RGBA)."""
        rgba = list(color) + [255] * (4 - len(color))
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[:, :] = rgba
        return cls(width, height, data)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Convert a PIL image (any mode) to a buffer."""
        return cls.from_array(np.array(image.convert("RGBA")))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "PixelBuffer":
        """
        Load an image file.

        Args:
            path: Image path (PNG keeps the alpha channel)

        Returns:
            PixelBuffer in RGBA order

        Raises:
            FileNotFoundError: If the file could not be read
        """
        img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if img is None:
            raise FileNotFoundError(f"Could not read image: {path}")

        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
        elif img.shape[2] == 3:
            img = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
        else:
            img = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
        return cls.from_array(img)

    def save(self, path: Union[str, Path]) -> None:
        """Write the buffer to an image file (alpha preserved for PNG)."""
        cv2.imwrite(str(path), cv2.cvtColor(self.data, cv2.COLOR_RGBA2BGRA))

    def to_image(self) -> Image.Image:
        """Convert to a PIL RGBA image."""
        return Image.fromarray(self.data, "RGBA")

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = self.data[y, x]
        return int(r), int(g), int(b), int(a)

    def set_pixel(self, x: int, y: int, color: Sequence[int]) -> None:
        """Set one pixel; a 3-channel color gets alpha 255."""
        rgba = list(color) + [255] * (4 - len(color))
        self.data[y, x] = rgba

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.data)

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"
