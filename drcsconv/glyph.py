"""
DRCS glyph codec
Infers glyph cell size from the raw byte length, unpacks the bitstream
into a pixel grid and computes the content hash used as the file name
"""

import hashlib
from dataclasses import dataclass

# Known DRCS cell sizes, checked in this order
# length: (width, height, depth)
KNOWN_SIZES = [
    (324, (36, 36, 2)),
    (162, (18, 36, 2)),
    (225, (30, 30, 2)),
    (113, (30, 30, 1)),
    (96, (16, 24, 2)),
    (57, (15, 30, 1)),
]

# 72 bytes fits both 16x18 and 12x24 at 2bit
AMBIGUOUS_LENGTH = 72
AMBIGUOUS_WIDE = (16, 18, 2)
AMBIGUOUS_TALL = (12, 24, 2)
# 12x24 wins unless it scores clearly worse
TALL_BIAS = 0.8

SEARCH_DEPTHS = (2, 1)
SEARCH_HEIGHTS = (36, 30, 24, 18, 20, 16)

FALLBACK_HEIGHT = 36


@dataclass(frozen=True)
class GlyphDimensions:
    width: int
    height: int
    depth: int
    ambiguous: bool = False


@dataclass
class PixelGrid:
    """Flat row-major pixel buffer, row 0 at the top"""
    width: int
    height: int
    pixels: bytearray

    def __post_init__(self):
        if len(self.pixels) != self.width * self.height:
            raise ValueError(f"Pixel count mismatch: {len(self.pixels)} != {self.width}x{self.height}")

    @classmethod
    def blank(cls, width, height):
        return cls(width, height, bytearray(width * height))

    def get(self, x, y):
        return self.pixels[y * self.width + x]

    def rows(self):
        """Yield each row as a bytes object, top to bottom"""
        for y in range(self.height):
            start = y * self.width
            yield bytes(self.pixels[start:start + self.width])


def packed_size(width, height, depth):
    """Number of bytes a width x height glyph occupies at the given depth"""
    return (width * height * depth + 7) // 8


def decode_glyph(data, width, height, depth):
    """Unpack a raw DRCS bitstream into a PixelGrid

    Args:
        data: Raw glyph bytes
        width, height: Cell size in pixels
        depth: Bits per pixel (1 or 2)

    Returns:
        PixelGrid with values 0-3. 1bit pixels are mapped to 0 or 3.
        Bits beyond the end of data read as 0.
    """
    grid = PixelGrid.blank(width, height)
    size = len(data)
    pixels = grid.pixels

    for index in range(width * height):
        if depth == 2:
            pos = index // 4
            if pos < size:
                pixels[index] = (data[pos] >> (6 - (index % 4) * 2)) & 0b11
        else:
            pos = index // 8
            if pos < size and (data[pos] >> (7 - index % 8)) & 1:
                pixels[index] = 3

    return grid


def score_pattern(data, width, height, depth):
    """Score how much data decoded at this size looks like a character

    Strokes that continue downwards or to the right add to the score,
    pixels touching the cell border subtract from it.
    """
    grid = decode_glyph(data, width, height, depth)
    score = 0.0
    edge_contact = 0

    for y in range(height):
        for x in range(width):
            value = grid.get(x, y)
            if value == 0:
                continue
            if y + 1 < height and grid.get(x, y + 1) == value:
                score += 2.0
            if x + 1 < width and grid.get(x + 1, y) == value:
                score += 1.0
            if y == 0 or y == height - 1 or x == 0 or x == width - 1:
                edge_contact += 1

    return score - 5.0 * edge_contact


def resolve_ambiguous(data):
    """Pick 12x24 or 16x18 for a 72 byte glyph"""
    wide_score = score_pattern(data, *AMBIGUOUS_WIDE)
    tall_score = score_pattern(data, *AMBIGUOUS_TALL)
    if tall_score >= wide_score * TALL_BIAS:
        return AMBIGUOUS_TALL
    return AMBIGUOUS_WIDE


def estimate_dimensions(length, data=None):
    """Estimate (width, height, depth) from the raw byte length

    The source format carries no dimensions, so the length is matched
    against known cell sizes first, then a generic search over common
    heights, then a 36 pixel high fallback. The order matters: existing
    hash corpora depend on it.

    Args:
        length: Raw glyph byte length
        data: Raw bytes, only used to disambiguate 72 byte glyphs

    Returns:
        GlyphDimensions
    """
    for known_length, (width, height, depth) in KNOWN_SIZES:
        if length == known_length:
            return GlyphDimensions(width, height, depth)

    if length == AMBIGUOUS_LENGTH:
        if data is None:
            data = bytes(length)
        width, height, depth = resolve_ambiguous(data)
        return GlyphDimensions(width, height, depth, ambiguous=True)

    for depth in SEARCH_DEPTHS:
        for height in SEARCH_HEIGHTS:
            width = length * 8 // (height * depth)
            if width > 0 and packed_size(width, height, depth) == length:
                return GlyphDimensions(width, height, depth)

    width = max(1, length * 4 // FALLBACK_HEIGHT)
    return GlyphDimensions(width, FALLBACK_HEIGHT, 2)


def glyph_hash(grid):
    """MD5 of the grid repacked at 2bit, bottom row first, as uppercase hex"""
    count = grid.width * grid.height
    packed = bytearray((count + 3) // 4)

    pos = 0
    for y in range(grid.height - 1, -1, -1):
        row_start = y * grid.width
        for x in range(grid.width):
            value = grid.pixels[row_start + x] & 0b11
            packed[pos // 4] |= value << ((3 - pos % 4) * 2)
            pos += 1

    return hashlib.md5(bytes(packed)).hexdigest().upper()
