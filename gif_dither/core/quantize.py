"""Threshold quantization of grayscale values onto palette indices.

Quantization is band-based rather than nearest-color: the 8-bit range is
split into equal bands (two or four), and each band has a fixed
reconstruction value used to compute the diffusion error. The reconstruction
values describe a canonical gray ramp, not the palette's actual colors.
"""

from __future__ import annotations

from typing import Sequence

from gif_dither.core.color import to_gray
from gif_dither.core.palettes import Palette

# Band midpoints of the canonical ramp.
LEVELS_2 = (31, 223)
LEVELS_4 = (31, 95, 159, 223)


def quantize(
    value: int,
    palette_size: int,
    levels: Sequence[int] | None = None,
) -> tuple[int, int]:
    """Pick the palette index for a grayscale value.

    Args:
        value: grayscale intensity, 0-255.
        palette_size: 4 selects four bands split at 64/128/192; any other
            size uses two bands split at 128.
        levels: optional reconstruction values overriding the canonical
            ramp, one per band.

    Returns:
        (palette_index, reconstruction_value) tuple.
    """
    if palette_size == 4:
        if value < 64:
            index = 0
        elif value < 128:
            index = 1
        elif value < 192:
            index = 2
        else:
            index = 3
        ramp = LEVELS_4
    else:
        index = 0 if value < 128 else 1
        ramp = LEVELS_2

    if levels is not None:
        return index, int(levels[index])
    return index, ramp[index]


def palette_levels(palette: Palette) -> tuple[int, ...]:
    """Reconstruction values taken from the palette's own luminance."""
    return tuple(to_gray(*color) for color in palette.colors)
