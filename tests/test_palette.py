import pytest
from hypothesis import given, strategies as st

from rk86emu.palette import (
    PaletteCycler,
    background_color,
    convert_color,
    default_palette,
    fast_text_palette,
    rgb888,
    text_palette,
)

colors = st.integers(min_value=0, max_value=0xFFFFFF)


def _swap(word):
    return ((word & 0xFF) << 8) | (word >> 8)


def test_rgb888_packs_channels():
    assert rgb888(0x12, 0x34, 0x56) == 0x123456


@given(st.integers(0, 255), st.integers(0, 255), st.integers(0, 255))
def test_rgb888_channels_recoverable(r, g, b):
    value = rgb888(r, g, b)
    assert ((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF) == (r, g, b)


def test_black_converts_to_zero():
    assert convert_color(0x000000) == (0, 0)


def test_white_with_sync_mask_is_all_ones():
    assert convert_color(0xFFFFFF, 0xC0C0) == (0xFFFF, 0xFFFF)


@given(colors)
def test_convert_color_pair_is_byte_swapped(color):
    first, second = convert_color(color)
    assert second == _swap(first)


@given(colors)
def test_convert_color_without_mask_stays_in_color_bits(color):
    first, second = convert_color(color)
    assert first & ~0x3F3F == 0
    assert second & ~0x3F3F == 0


@given(colors)
def test_convert_color_mask_is_applied(color):
    plain = convert_color(color)
    masked = convert_color(color, 0xC0C0)
    assert masked == tuple(word | 0xC0C0 for word in plain)


@given(colors, st.sampled_from([0, 0xC0C0]))
def test_background_color_repeats_pixel_word(color, mask):
    first, second = convert_color(color, mask)
    bg_first, bg_second = background_color(color, mask)
    assert bg_first >> 16 == first and bg_first & 0xFFFF == first
    assert bg_second >> 16 == second and bg_second & 0xFFFF == second


def test_default_palette_shape_and_sync_bits():
    first, second = default_palette()
    assert len(first) == len(second) == 256
    assert all(word & 0xC0C0 == 0xC0C0 for word in first + second)
    assert all(b == _swap(a) for a, b in zip(first, second))


def test_default_palette_black_entry():
    first, second = default_palette()
    assert first[0] == 0xC0C0
    assert second[0] == 0xC0C0


def test_fast_text_palette_uniform_input():
    table = fast_text_palette([0xC5] * 16)
    assert len(table) == 1024
    assert set(table) == {0xC5C5}


def test_fast_text_palette_same_fg_bg_has_equal_mixed_entries():
    palette = text_palette()
    table = fast_text_palette(palette)
    for attr in (0x00, 0x11, 0xFF):
        entries = table[attr * 4:attr * 4 + 4]
        assert len(set(entries)) == 1


def test_fast_text_palette_mixed_entries_are_swapped():
    table = fast_text_palette(text_palette())
    for attr in range(256):
        assert table[attr * 4 + 2] == _swap(table[attr * 4 + 1])


def test_fast_text_palette_rejects_wrong_length():
    with pytest.raises(ValueError):
        fast_text_palette([0] * 15)


def test_palette_cycler_sequence_wraps():
    cycler = PaletteCycler()
    assert cycler.palette_id == 8
    seen = [cycler.next() for _ in range(5)]
    assert seen == [0x1E, 0xBC, 0xBE, 16, 8]
    assert cycler.palette_id == 8