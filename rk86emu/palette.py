"""Colour tables for the 8-bit VGA output: RGB conversion, palettes and text colours."""

# Two-bit levels for a three-bit channel value; the pair of tables gives two
# slightly different shades that are alternated to approximate more colours.
_CONV0 = (0b00, 0b00, 0b01, 0b10, 0b10, 0b10, 0b11, 0b11)
_CONV1 = (0b00, 0b01, 0b01, 0b01, 0b10, 0b11, 0b11, 0b11)

_COLOR_BITS = 0x3F3F
SYNC_MASK = 0xC0C0
TEXT_SYNC_BITS = 0xC0

PALETTE_IDS = (8, 0x1E, 0xBC, 0xBE, 16)


def rgb888(r, g, b):
    """Pack three 8-bit channels into a 24-bit 0xRRGGBB value."""
    return (r << 16) | (g << 8) | b


def _split(color888):
    r = ((color888 >> 16) & 0xFF) // 42
    g = ((color888 >> 8) & 0xFF) // 42
    b = (color888 & 0xFF) // 42
    return r, g, b


def _shades(color888):
    r, g, b = _split(color888)
    c_hi = _CONV0[r] << 4 | _CONV0[g] << 2 | _CONV0[b]
    c_lo = _CONV1[r] << 4 | _CONV1[g] << 2 | _CONV1[b]
    return c_hi, c_lo


def convert_color(color888, mask=0):
    """Convert a 24-bit colour into the pair of 16-bit pixel words used on alternate frames.

    ``mask`` carries the sync bits that are ORed into every pixel word.
    """
    c_hi, c_lo = _shades(color888)
    first = ((c_hi << 8 | c_lo) & _COLOR_BITS) | mask
    second = ((c_lo << 8 | c_hi) & _COLOR_BITS) | mask
    return first, second


def background_color(color888, mask=0):
    """Return the pair of 32-bit words used to fill the border with ``color888``."""
    first, second = convert_color(color888, mask)
    return (first << 16) | first, (second << 16) | second


def default_palette():
    """Return the two 256-entry palettes for 3-3-2 RGB pixel values."""
    first = []
    second = []
    for index in range(256):
        b = index & 0b11
        r = (index >> 5) & 0b111
        g = (index >> 2) & 0b111
        c_hi = 0xC0 | _CONV0[r] << 4 | _CONV0[g] << 2 | b
        c_lo = 0xC0 | _CONV1[r] << 4 | _CONV1[g] << 2 | b
        first.append(c_hi << 8 | c_lo)
        second.append(c_lo << 8 | c_hi)
    return tuple(first), tuple(second)


def text_palette():
    """Return the 16 text-mode colours (IRGB), each with the sync bits set."""
    colors = []
    for index in range(16):
        level = 3 if index >> 3 else 2
        b = level if index & 1 else 0
        g = level if index & 2 else 0
        r = level if index & 4 else 0
        c = r << 4 | g << 2 | b
        colors.append((c & 0x3F) | TEXT_SYNC_BITS)
    return tuple(colors)


def fast_text_palette(palette):
    """Expand 16 text colours into a 1024-entry table of two-pixel words.

    For each attribute byte (background in the high nibble, foreground in the
    low nibble) four words give the pixel pairs 00, 01, 10 and 11.
    """
    palette = tuple(palette)
    if len(palette) != 16:
        raise ValueError(f"text palette must have 16 entries, got {len(palette)}")
    table = []
    for attr in range(256):
        c1 = palette[attr & 0x0F] & 0xFF
        c0 = palette[attr >> 4] & 0xFF
        table.extend((
            c0 | c0 << 8,
            c1 | c0 << 8,
            c0 | c1 << 8,
            c1 | c1 << 8,
        ))
    return tuple(table)


class PaletteCycler:
    """Steps through the preset text colour schemes."""

    def __init__(self):
        self._index = 0
        self.palette_id = PALETTE_IDS[0]

    def next(self):
        """Switch to the next scheme, wrapping round; return its palette id."""
        self._index = (self._index + 1) % len(PALETTE_IDS)
        self.palette_id = PALETTE_IDS[self._index]
        return self.palette_id