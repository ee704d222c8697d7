from PIL import Image

from drcsconv.glyph import PixelGrid
from drcsconv.preview import make_preview


def test_preview_layout(tmp_path):
    path = tmp_path / "sheet.png"
    grids = [PixelGrid.blank(36, 36), PixelGrid(12, 24, bytearray([3] * 288)), PixelGrid.blank(16, 18)]
    assert make_preview(grids, path, scale=1, columns=2) == 3

    img = Image.open(path)
    assert img.mode == 'P'
    assert img.size == (2 * 38, 2 * 38)
    # second cell starts after one cell width plus half the gutter
    assert img.getpixel((38 + 1, 1)) == 3
    assert img.getpixel((0, 0)) == 0


def test_preview_scale(tmp_path):
    path = tmp_path / "sheet.png"
    make_preview([PixelGrid.blank(4, 4)], path, scale=3)
    assert Image.open(path).size == (18, 18)


def test_preview_nothing_to_draw(tmp_path):
    path = tmp_path / "sheet.png"
    assert make_preview([], path) == 0
    assert not path.exists()
