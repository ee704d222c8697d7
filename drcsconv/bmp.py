"""
4bit indexed color BMP writer for DRCS glyphs
"""

import struct

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
PALETTE_ENTRIES = 16
PALETTE_SIZE = PALETTE_ENTRIES * 4
PIXEL_OFFSET = FILE_HEADER_SIZE + INFO_HEADER_SIZE + PALETTE_SIZE
BITS_PER_PIXEL = 4

# Glyph index -> (B, G, R). Indexes 4-15 are unused and stay zero
PALETTE = [
    (255, 255, 255),  # white
    (170, 170, 170),  # light gray
    (85, 85, 85),     # dark gray
    (0, 0, 0),        # black / transparent
]


def row_stride(width):
    """Bytes per pixel row, padded to a 4 byte boundary"""
    return (width * BITS_PER_PIXEL + 31) // 32 * 4


def bmp_size(width, height):
    return PIXEL_OFFSET + row_stride(width) * height


def create_file_header(file_size):
    """Create BITMAPFILEHEADER"""
    header = bytearray(FILE_HEADER_SIZE)

    # Signature
    header[0:2] = b'BM'

    # Total file size
    header[2:6] = struct.pack('<I', file_size)

    # Reserved (2 x 2 bytes) - already zero

    # Offset to pixel data
    header[10:14] = struct.pack('<I', PIXEL_OFFSET)

    return header


def create_info_header(width, height, image_size):
    """Create BITMAPINFOHEADER

    Height is positive, so rows are stored bottom-up.
    """
    header = bytearray(INFO_HEADER_SIZE)

    header[0:4] = struct.pack('<I', INFO_HEADER_SIZE)
    header[4:8] = struct.pack('<i', width)
    header[8:12] = struct.pack('<i', height)

    # Planes
    header[12:14] = struct.pack('<H', 1)

    header[14:16] = struct.pack('<H', BITS_PER_PIXEL)

    # Compression (BI_RGB = 0)
    header[16:20] = struct.pack('<I', 0)

    header[20:24] = struct.pack('<I', image_size)

    # Resolution and color counts remain zero

    return header


def create_palette():
    palette = bytearray(PALETTE_SIZE)
    for i, (blue, green, red) in enumerate(PALETTE):
        palette[i * 4:i * 4 + 4] = bytes((blue, green, red, 0))
    return palette


def pack_row(row, stride):
    """Pack one row of indexes two per byte, high nibble first"""
    packed = bytearray(stride)
    for x in range(0, len(row), 2):
        high = row[x] & 0x0F
        low = row[x + 1] & 0x0F if x + 1 < len(row) else 0
        packed[x // 2] = (high << 4) | low
    return packed


def encode_bmp(grid):
    """Encode a PixelGrid as a complete BMP file

    Returns:
        bytes of header + info header + palette + bottom-up pixel rows
    """
    stride = row_stride(grid.width)
    image_size = stride * grid.height
    file_size = PIXEL_OFFSET + image_size

    output = bytearray()
    output.extend(create_file_header(file_size))
    output.extend(create_info_header(grid.width, grid.height, image_size))
    output.extend(create_palette())

    for row in reversed(list(grid.rows())):
        output.extend(pack_row(row, stride))

    return bytes(output)
