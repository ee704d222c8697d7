"""
Single glyph conversion: base64 -> hash + BMP bytes
"""

import base64
from dataclasses import dataclass
from typing import Optional

from drcsconv.bmp import encode_bmp
from drcsconv.glyph import GlyphDimensions, PixelGrid, decode_glyph, estimate_dimensions, glyph_hash


class GlyphInputError(ValueError):
    """Empty or malformed base64 glyph data"""


@dataclass
class ConversionResult:
    success: bool
    hash: Optional[str] = None
    bitmap: Optional[bytes] = None
    grid: Optional[PixelGrid] = None
    dimensions: Optional[GlyphDimensions] = None
    detail: str = ""
    error: str = ""


def decode_base64(text):
    """Decode base64 glyph text, ignoring embedded whitespace"""
    if not text:
        raise GlyphInputError("Empty DRCS data")

    compact = ''.join(text.split())
    try:
        data = base64.b64decode(compact, validate=True)
    except ValueError as e:
        raise GlyphInputError(f"Invalid base64: {e}") from e

    if not data:
        raise GlyphInputError("DRCS data decodes to 0 bytes")
    return data


def describe(length, dims):
    if dims.ambiguous:
        return f"auto-detected {length} bytes as {dims.width}x{dims.height}"
    return f"{length} bytes, {dims.width}x{dims.height}, {dims.depth}bit"


def convert_glyph(text):
    """Convert one base64 DRCS glyph

    Only bad input fails. Every non-empty byte string gets some size
    estimate, so the remaining steps always succeed.
    """
    try:
        data = decode_base64(text)
    except GlyphInputError as e:
        return ConversionResult(success=False, error=str(e))

    dims = estimate_dimensions(len(data), data)
    grid = decode_glyph(data, dims.width, dims.height, dims.depth)

    return ConversionResult(
        success=True,
        hash=glyph_hash(grid),
        bitmap=encode_bmp(grid),
        grid=grid,
        dimensions=dims,
        detail=describe(len(data), dims),
    )
