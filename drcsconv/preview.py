from PIL import Image

from drcsconv.bmp import PALETTE

GUTTER = 2


def make_preview(grids, path, scale=2, columns=16):
    """Render glyphs into one palette image for a quick visual check

    Each cell is as large as the biggest glyph plus a gutter.
    Returns the number of glyphs drawn.
    """
    grids = list(grids)
    if not grids:
        return 0

    cell_w = max(g.width for g in grids) + GUTTER
    cell_h = max(g.height for g in grids) + GUTTER
    columns = max(1, min(columns, len(grids)))
    rows = (len(grids) + columns - 1) // columns

    sheet = Image.new('P', (columns * cell_w, rows * cell_h), 0)
    palette = []
    for blue, green, red in PALETTE:
        palette.extend((red, green, blue))
    sheet.putpalette(palette)

    for n, grid in enumerate(grids):
        glyph = Image.new('P', (grid.width, grid.height), 0)
        glyph.putdata(list(grid.pixels))
        left = (n % columns) * cell_w + GUTTER // 2
        top = (n // columns) * cell_h + GUTTER // 2
        sheet.paste(glyph, (left, top))

    if scale != 1:
        sheet = sheet.resize((sheet.width * scale, sheet.height * scale), Image.NEAREST)

    sheet.save(path)
    return len(grids)
