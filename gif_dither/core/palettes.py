"""Palette presets for dithered output.

Each palette is an ordered, immutable sequence of RGB colors, dark to light.
Palettes are looked up by integer id or by name; the 1-bit black and white
palette is the default.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

RGB = tuple[int, int, int]


class PaletteError(ValueError):
    """Raised for an invalid palette definition or selection."""


class PaletteName(str, Enum):
    ONEBIT = "onebit"
    GREYS = "greys"
    GAMEBOY = "gameboy"
    RETRO = "retro"
    AQUA = "aqua"
    WARM = "warm"


@dataclass(frozen=True)
class Palette:
    name: PaletteName
    id: int
    colors: tuple[RGB, ...]
    description: str = ""

    def __post_init__(self) -> None:
        if len(self.colors) not in (2, 4):
            raise PaletteError(
                f"Palette {self.name.value!r} has {len(self.colors)} colors "
                "(expected 2 or 4)"
            )
        for color in self.colors:
            if len(color) != 3 or any(not 0 <= c <= 255 for c in color):
                raise PaletteError(
                    f"Palette {self.name.value!r} has invalid color {color!r}"
                )

    @property
    def size(self) -> int:
        return len(self.colors)

    def flat(self) -> list[int]:
        """Flattened [r, g, b, r, g, b, ...] list for Image.putpalette."""
        return [c for color in self.colors for c in color]


PALETTES: dict[PaletteName, Palette] = {
    PaletteName.ONEBIT: Palette(
        name=PaletteName.ONEBIT,
        id=1,
        colors=((0, 0, 0), (255, 255, 255)),
        description="Black and white",
    ),
    PaletteName.GREYS: Palette(
        name=PaletteName.GREYS,
        id=2,
        colors=((51, 51, 51), (102, 102, 102), (153, 153, 153), (204, 204, 204)),
        description="Greyscale",
    ),
    PaletteName.GAMEBOY: Palette(
        name=PaletteName.GAMEBOY,
        id=3,
        colors=((8, 24, 32), (52, 104, 86), (136, 192, 112), (224, 248, 208)),
        description="Green-grey gradient",
    ),
    PaletteName.RETRO: Palette(
        name=PaletteName.RETRO,
        id=4,
        colors=((40, 40, 40), (51, 255, 51)),
        description="Black and lime green",
    ),
    PaletteName.AQUA: Palette(
        name=PaletteName.AQUA,
        id=5,
        colors=((0, 128, 191), (0, 172, 223), (85, 208, 255), (124, 232, 255)),
        description="Blue and white",
    ),
    PaletteName.WARM: Palette(
        name=PaletteName.WARM,
        id=6,
        colors=((100, 69, 54), (178, 103, 94), (196, 163, 129), (238, 241, 189)),
        description="Reds and browns",
    ),
}

DEFAULT_PALETTE = PALETTES[PaletteName.ONEBIT]

_BY_ID: dict[int, Palette] = {p.id: p for p in PALETTES.values()}


def palette_by_id(palette_id: int) -> Palette | None:
    return _BY_ID.get(palette_id)


def get_palette(selector: int | str | PaletteName | None = None) -> Palette:
    """Resolve a palette from an id, a name, or nothing.

    None selects the default palette. Integers (or numeric strings) are
    looked up by id, and an id outside the registry falls back to the
    default palette. Anything else is treated as a name.

    Raises:
        PaletteError: if a name does not match any palette.
    """
    if selector is None:
        return DEFAULT_PALETTE
    if isinstance(selector, PaletteName):
        return PALETTES[selector]
    if isinstance(selector, bool):
        raise PaletteError(f"Invalid palette selection: {selector!r}")
    if isinstance(selector, int):
        return palette_by_id(selector) or DEFAULT_PALETTE

    text = str(selector).strip()
    if text.lstrip("+-").isdigit():
        return palette_by_id(int(text)) or DEFAULT_PALETTE
    try:
        return PALETTES[PaletteName(text.lower())]
    except ValueError:
        choices = ", ".join(f"{p.id}={p.name.value}" for p in PALETTES.values())
        raise PaletteError(
            f"Invalid palette {selector!r} (choose one of {choices})"
        ) from None
