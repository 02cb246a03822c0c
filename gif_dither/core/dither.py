"""Floyd-Steinberg error diffusion dithering onto a fixed palette."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from PIL import Image

from gif_dither.core.color import gray_grid
from gif_dither.core.palettes import Palette
from gif_dither.core.quantize import palette_levels, quantize

#     [ ] [*] [7]
#     [3] [5] [1]     (each /16)
FLOYD_STEINBERG = (
    (1, 0, 7),
    (-1, 1, 3),
    (0, 1, 5),
    (1, 1, 1),
)


def push_error(value: int, error: int, weight: int) -> int:
    """Add weight/16 of the error to a neighbor value, clamped to 0-255."""
    new = value + error * weight / 16
    if new > 255:
        return 255
    if new < 0:
        return 0
    return int(new)


def diffuse_error(grid: np.ndarray, x: int, y: int, error: int) -> None:
    """Spread the quantization error at (x, y) to unvisited neighbors.

    Neighbors outside the grid are skipped. Every neighbor is updated from
    the same original error, so the order of updates does not matter.
    """
    h, w = grid.shape
    for dx, dy, weight in FLOYD_STEINBERG:
        nx, ny = x + dx, y + dy
        if 0 <= nx < w and ny < h:
            grid[ny, nx] = push_error(int(grid[ny, nx]), error, weight)


def dither_grid(
    grid: np.ndarray,
    palette_size: int,
    levels: Sequence[int] | None = None,
) -> np.ndarray:
    """Dither a grayscale grid in place and return its palette indices.

    Pixels are visited top-to-bottom, left-to-right. Diffusion only reaches
    pixels later in that order, so each pixel is quantized with all the
    error it will ever receive.

    Args:
        grid: writable uint8 array of shape (height, width). Consumed.
        palette_size: number of palette colors (selects the threshold bands).
        levels: optional reconstruction values, see `quantize`.

    Returns:
        uint8 array of palette indices, same shape as `grid`.
    """
    h, w = grid.shape
    indices = np.zeros((h, w), dtype=np.uint8)

    for y in range(h):
        for x in range(w):
            old = int(grid[y, x])
            index, new = quantize(old, palette_size, levels)
            indices[y, x] = index
            diffuse_error(grid, x, y, old - new)

    return indices


def dither_frame(
    image: Image.Image | np.ndarray,
    palette: Palette,
    palette_accurate: bool = False,
) -> np.ndarray:
    """Dither one frame onto a palette.

    Args:
        image: source frame; any PIL mode, or an (h, w, 3|4) array.
        palette: target palette (2 or 4 colors).
        palette_accurate: compute the diffusion error against the
            palette's own luminance instead of the canonical gray ramp.

    Returns:
        uint8 array of palette indices with the frame's dimensions.
    """
    grid = gray_grid(image)
    levels = palette_levels(palette) if palette_accurate else None
    return dither_grid(grid, palette.size, levels)
