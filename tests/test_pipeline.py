import base64
import hashlib

import pytest

from drcsconv.pipeline import GlyphInputError, convert_glyph, decode_base64


def b64(data):
    return base64.b64encode(data).decode('ascii')


def test_blank_36x36_end_to_end():
    result = convert_glyph(b64(bytes(324)))
    assert result.success
    assert result.dimensions.width == 36 and result.dimensions.height == 36
    assert result.dimensions.depth == 2
    assert result.hash == hashlib.md5(bytes(324)).hexdigest().upper()
    assert len(result.bitmap) == 838
    assert result.detail == "324 bytes, 36x36, 2bit"
    assert result.error == ""


def test_ambiguous_detail():
    result = convert_glyph(b64(bytes(72)))
    assert result.success
    assert result.dimensions.ambiguous
    assert result.detail == "auto-detected 72 bytes as 12x24"


def test_identical_pixels_give_same_hash():
    first = convert_glyph(b64(bytes(113)))
    second = convert_glyph(b64(bytes(112) + b'\x0f'))
    assert first.hash == second.hash
    assert first.bitmap == second.bitmap


def test_whitespace_in_base64_is_ignored():
    text = b64(bytes(range(96)))
    wrapped = text[:40] + "\n" + text[40:80] + "\r\n " + text[80:]
    assert convert_glyph(wrapped).hash == convert_glyph(text).hash


@pytest.mark.parametrize("text", [None, "", "   ", "not base64!", "===="])
def test_bad_input_fails(text):
    result = convert_glyph(text)
    assert not result.success
    assert result.error
    assert result.hash is None
    assert result.bitmap is None


def test_decode_base64_raises_input_error():
    with pytest.raises(GlyphInputError):
        decode_base64("@@@@")
    assert decode_base64("AAEC") == b'\x00\x01\x02'


def test_non_ascii_base64_fails():
    result = convert_glyph("ＡＡＡＡ")
    assert not result.success
    assert result.error.startswith("Invalid base64")
