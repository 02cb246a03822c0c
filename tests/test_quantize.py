"""Tests for threshold quantization."""

import pytest

from gif_dither.core.palettes import PALETTES, PaletteName
from gif_dither.core.quantize import LEVELS_2, LEVELS_4, palette_levels, quantize


class TestTwoColor:
    def test_split_at_128(self):
        assert quantize(127, 2) == (0, 31)
        assert quantize(128, 2) == (1, 223)

    def test_extremes(self):
        assert quantize(0, 2) == (0, 31)
        assert quantize(255, 2) == (1, 223)

    @pytest.mark.parametrize("size", [1, 3, 5, 16])
    def test_other_sizes_use_two_bands(self, size):
        assert quantize(127, size) == (0, 31)
        assert quantize(128, size) == (1, 223)


class TestFourColor:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, (0, 31)),
            (63, (0, 31)),
            (64, (1, 95)),
            (100, (1, 95)),
            (127, (1, 95)),
            (128, (2, 159)),
            (191, (2, 159)),
            (192, (3, 223)),
            (255, (3, 223)),
        ],
    )
    def test_bands(self, value, expected):
        assert quantize(value, 4) == expected

    def test_residual_error_for_100(self):
        index, recon = quantize(100, 4)
        assert index == 1
        assert 100 - recon == 5


class TestLevels:
    def test_canonical_ramps(self):
        assert LEVELS_2 == (31, 223)
        assert LEVELS_4 == (31, 95, 159, 223)

    def test_override_levels(self):
        assert quantize(200, 2, levels=(10, 240)) == (1, 240)
        assert quantize(70, 4, levels=(0, 80, 160, 250)) == (1, 80)

    def test_palette_levels_onebit(self):
        levels = palette_levels(PALETTES[PaletteName.ONEBIT])
        assert levels[0] == 0
        assert levels[1] >= 254

    def test_palette_levels_one_per_color(self):
        for palette in PALETTES.values():
            levels = palette_levels(palette)
            assert len(levels) == palette.size
            assert list(levels) == sorted(levels)
