"""RGB to grayscale conversion using NTSC perceptual weights."""

from __future__ import annotations

import numpy as np
from PIL import Image

# Gray = 0.299 R + 0.587 G + 0.114 B
RED_WEIGHT = 0.299
GREEN_WEIGHT = 0.587
BLUE_WEIGHT = 0.114


def to_gray(r: int, g: int, b: int, a: int = 255) -> int:
    """Map one pixel's 8-bit channels to an 8-bit intensity.

    The weighted sum is truncated, not rounded. Alpha is ignored.
    """
    gray = RED_WEIGHT * r + GREEN_WEIGHT * g + BLUE_WEIGHT * b
    return int(gray)


def gray_grid(image: Image.Image | np.ndarray) -> np.ndarray:
    """Convert a whole image to a fresh, writable uint8 grid.

    Accepts a PIL image in any mode, or an (h, w, 3) / (h, w, 4) array.
    Produces exactly the same value as `to_gray` for every pixel, which
    Pillow's own "L" conversion does not (it rounds in fixed point).

    Returns:
        Array of shape (height, width), dtype uint8.
    """
    if isinstance(image, Image.Image):
        rgb = np.asarray(image.convert("RGB"))
    else:
        rgb = np.asarray(image)
        if rgb.ndim != 3 or rgb.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (h, w, 3|4) array, got {rgb.shape}")

    r = rgb[:, :, 0].astype(np.float64)
    g = rgb[:, :, 1].astype(np.float64)
    b = rgb[:, :, 2].astype(np.float64)
    gray = RED_WEIGHT * r + GREEN_WEIGHT * g + BLUE_WEIGHT * b
    return gray.astype(np.uint8)
